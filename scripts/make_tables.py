#!/usr/bin/env python3
"""
scripts/make_tables.py
Table-only run of the pipeline: diagnostics, industry PCI by year, descriptive
tables and coverage audits. Figures are drawn separately by make_figures.py.

Usage:
    ./scripts/make_tables.py [--focal-year 1995] [--workers 4] [...]
"""
import sys
from pathlib import Path

# Setup paths
HERE = Path(__file__).resolve()
ROOT = HERE.parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from hs_pci.pipeline import main  # noqa: E402

if __name__ == "__main__":
    argv = sys.argv[1:]
    if "--no-plots" not in argv:
        argv.append("--no-plots")
    sys.exit(main(argv))
