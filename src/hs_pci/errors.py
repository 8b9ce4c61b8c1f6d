from __future__ import annotations

from pathlib import Path
from typing import Iterable

__all__ = ["HsPciError", "MissingInputError", "SchemaMismatchError"]


class HsPciError(Exception):
    """Base class for fatal input problems; the CLI turns these into exit code 2."""


class MissingInputError(HsPciError, FileNotFoundError):
    def __init__(self, name: str, path: Path | str):
        self.name = name
        self.path = Path(path)
        super().__init__(f"missing {name} input: {self.path}")


class SchemaMismatchError(HsPciError, ValueError):
    def __init__(self, source: str, role: str, variants: Iterable[str], columns: Iterable[str]):
        self.source = source
        self.role = role
        self.variants = tuple(variants)
        self.columns = tuple(str(c) for c in columns)
        super().__init__(
            f"{source}: no {role} column; expected one of {list(self.variants)}, "
            f"found {list(self.columns)}"
        )
