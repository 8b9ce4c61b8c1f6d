"""
hs_pci.loaders — read the trade panel, label dictionary, crosswalk and industry titles

Inputs:
  panel CSV       product code, year, export value, import value, PCI (one row per product-year)
  dictionary JSON {code: label} or a list of {code/id, label/text} records
  crosswalk CSV   hs6 -> 4-digit industry with a fractional weight
  titles CSV      4-digit industry -> title (may be incomplete)

Every loader returns a DataFrame with fixed column names so downstream code never
has to look at the raw headers. Headers are matched against a small list of known
variants; anything else raises SchemaMismatchError.
"""

from __future__ import annotations

import json
import os
import re
from pathlib import Path
from typing import Iterable, Optional

import pandas as pd

from hs_pci.errors import MissingInputError, SchemaMismatchError

__all__ = [
    "PANEL_COLUMNS",
    "load_panel",
    "load_dictionary",
    "load_crosswalk",
    "load_titles",
    "attach_labels",
    "pick_column",
]

PANEL_COLUMNS = ["product_code", "year", "export_value", "import_value", "pci"]

_PANEL_VARIANTS = {
    "product_code": ("product_code", "hs_product_code", "hs92", "hs4", "commodity_code", "code"),
    "year": ("year", "period"),
    "export_value": ("export_value", "exports", "export"),
    "import_value": ("import_value", "imports", "import"),
    "pci": ("pci", "hs_product_complexity_index", "complexity"),
}

_CROSSWALK_VARIANTS = {
    "fine_code": ("hs6", "hs92", "hs_code", "fine_code", "hs1992"),
    "industry4": ("isic4", "industry4", "industry", "isic", "isic_code", "coarse_code"),
    "weight": ("weight", "share", "wt", "wgt"),
}

_TITLE_VARIANTS = {
    "industry4": ("isic4", "industry4", "industry", "isic", "isic_code", "isic4_code", "isic_rev4", "code"),
    "industry_title": ("title", "description", "industry_title", "label", "name"),
}

_DICT_CODE_KEYS = ("code", "id", "hs_code", "product_code")
_DICT_LABEL_KEYS = ("label", "text", "description", "name")

_DEBUG = os.environ.get("HS_PCI_DEBUG") == "1"


def _debug(msg: str) -> None:
    if _DEBUG:
        print(f"[loaders] {msg}")


# ---------- header matching ----------


def _norm(s: str) -> str:
    return re.sub(r"[^a-z0-9]+", "", str(s).lower())


def pick_column(
    df: pd.DataFrame, variants: Iterable[str], role: str, source: str, required: bool = True
) -> Optional[str]:
    """
    Return the first column of df whose normalised name matches one of variants
    (tried in order). Raises SchemaMismatchError when required and nothing matches.
    """
    variants = tuple(variants)
    nmap = {_norm(c): c for c in reversed(list(df.columns))}
    for v in variants:
        hit = nmap.get(_norm(v))
        if hit is not None:
            return hit
    if required:
        raise SchemaMismatchError(source, role, variants, df.columns)
    return None


def _rename_known(df: pd.DataFrame, variants: dict, source: str, optional=()) -> pd.DataFrame:
    rename: dict[str, str] = {}
    for target, names in variants.items():
        col = pick_column(df, names, target, source, required=target not in optional)
        if col is not None:
            rename[col] = target
    out = df[list(rename)].rename(columns=rename).copy()
    for target in optional:
        if target not in out.columns:
            out[target] = float("nan")
    return out


def _require(path: Path | str, name: str) -> Path:
    p = Path(path)
    if not p.exists():
        raise MissingInputError(name, p)
    return p


def _code_series(s: pd.Series, width: int) -> pd.Series:
    """String codes with leading zeros restored; '101.0' style floats are repaired."""
    out = s.astype("string").str.strip().str.replace(r"\.0$", "", regex=True)
    out = out.replace("", pd.NA).str.zfill(width)
    return out.astype(object)


def _to_int64_series(x: pd.Series) -> pd.Series:
    """Coerce to pandas nullable Int64 dtype."""
    return pd.to_numeric(x, errors="coerce").astype("Int64")


def _to_float_series(x: pd.Series) -> pd.Series:
    return pd.to_numeric(x, errors="coerce").astype("float64")


# ---------- panel ----------


def load_panel(path: Path | str, code_width: int = 4) -> pd.DataFrame:
    """
    Load the product-year panel.

    Non-numeric values become NaN. Rows are never dropped for missing numbers, so a
    product that appears with all-null values still counts as present that year.
    Duplicate (product_code, year) keys keep their first occurrence. Rows without
    a usable code or year are dropped.
    """
    p = _require(path, "panel")
    raw = pd.read_csv(p, dtype=str, keep_default_na=True)
    df = _rename_known(raw, _PANEL_VARIANTS, p.name, optional=("import_value", "pci"))

    df["product_code"] = _code_series(df["product_code"], code_width)
    df["year"] = _to_int64_series(df["year"])
    for c in ("export_value", "import_value", "pci"):
        df[c] = _to_float_series(df[c])

    before = len(df)
    df = df.dropna(subset=["product_code", "year"])
    df = df.drop_duplicates(subset=["product_code", "year"], keep="first")
    _debug(f"{p.name}: {before} rows read, {len(df)} kept")
    return df[PANEL_COLUMNS].reset_index(drop=True)


# ---------- dictionary ----------


def _dict_records(payload) -> list[tuple[str, str]]:
    if isinstance(payload, dict):
        # {"data": [...]} wrappers are common in exported code lists
        if "data" in payload and isinstance(payload["data"], list):
            return _dict_records(payload["data"])
        return [(str(k), "" if v is None else str(v)) for k, v in payload.items()]

    if isinstance(payload, list):
        pairs: list[tuple[str, str]] = []
        for rec in payload:
            if not isinstance(rec, dict):
                continue
            code_key = next((k for k in _DICT_CODE_KEYS if k in rec), None)
            label_key = next((k for k in _DICT_LABEL_KEYS if k in rec), None)
            if code_key is None or label_key is None:
                raise SchemaMismatchError(
                    "dictionary", "code/label", _DICT_CODE_KEYS + _DICT_LABEL_KEYS, rec.keys()
                )
            pairs.append((str(rec[code_key]), "" if rec[label_key] is None else str(rec[label_key])))
        return pairs

    raise SchemaMismatchError("dictionary", "code/label", ("object", "list of records"), [])


def load_dictionary(path: Path | str, code_width: int = 4) -> pd.DataFrame:
    """
    Load the code→label dictionary as a two-column frame (code, label).

    Only numeric codes at the panel's resolution are kept (code_width digits, or one
    fewer when a leading zero was lost), so a dictionary that also lists chapters
    or 6-digit subheadings is filtered down. Duplicate codes keep their first label.
    """
    p = _require(path, "dictionary")
    with open(p, encoding="utf-8") as fh:
        payload = json.load(fh)

    d = pd.DataFrame(_dict_records(payload), columns=["code", "label"])
    d["code"] = d["code"].str.strip()
    d = d[d["code"].str.fullmatch(r"\d+")]
    d = d[d["code"].str.len().isin([code_width - 1, code_width])].copy()
    d["code"] = d["code"].str.zfill(code_width)
    d["label"] = d["label"].str.strip()
    d = d.drop_duplicates(subset="code", keep="first")
    _debug(f"{p.name}: {len(d)} labels")
    return d.sort_values("code").reset_index(drop=True)


# ---------- crosswalk & titles ----------


def load_crosswalk(path: Path | str) -> pd.DataFrame:
    """
    Load the hs6 -> industry weight table as (fine_code, industry4, weight).

    Rows with a missing or negative weight are dropped; they carry no allocation.
    """
    p = _require(path, "crosswalk")
    raw = pd.read_csv(p, dtype=str)
    cw = _rename_known(raw, _CROSSWALK_VARIANTS, p.name)

    cw["fine_code"] = _code_series(cw["fine_code"], 6)
    cw["industry4"] = _code_series(cw["industry4"], 4)
    cw["weight"] = _to_float_series(cw["weight"])

    bad = cw["weight"].isna() | (cw["weight"] < 0)
    if bad.any():
        print(f"[loaders] {p.name}: dropping {int(bad.sum())} rows with missing/negative weight")
    cw = cw[~bad].dropna(subset=["fine_code", "industry4"])
    return cw[["fine_code", "industry4", "weight"]].reset_index(drop=True)


def load_titles(path: Path | str) -> pd.DataFrame:
    """Load industry4 -> industry_title; header names drift between releases."""
    p = _require(path, "titles")
    raw = pd.read_csv(p, dtype=str)
    t = _rename_known(raw, _TITLE_VARIANTS, p.name)
    t["industry4"] = _code_series(t["industry4"], 4)
    t["industry_title"] = t["industry_title"].astype("string").str.strip()
    t = t.dropna(subset=["industry4"]).drop_duplicates(subset="industry4", keep="first")
    return t.sort_values("industry4").reset_index(drop=True)


# ---------- label join ----------


def attach_labels(panel: pd.DataFrame, labels: pd.DataFrame, on: str = "product_code") -> pd.DataFrame:
    """Left-join dictionary labels onto `on`; unknown codes get a null label."""
    out = panel.merge(
        labels.rename(columns={"code": on}), how="left", on=on, validate="m:1"
    )
    return out
