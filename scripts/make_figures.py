#!/usr/bin/env python3
"""
scripts/make_figures.py
Redraw the distribution figures from the outputs of a previous table run
(data_output/tables/*.csv and data_output/cache/panel_labeled.parquet).

Usage:
    ./scripts/make_figures.py [--outdir data_output]
"""
import argparse
import sys
from pathlib import Path

import pandas as pd

# Setup paths
HERE = Path(__file__).resolve()
ROOT = HERE.parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from hs_pci import figures  # noqa: E402
from hs_pci import paths as P  # noqa: E402


def _load(outdir: Path):
    panel_path = outdir / "cache" / "panel_labeled.parquet"
    diag_path = outdir / "tables" / "product_diagnostics.csv"
    agg_path = outdir / "tables" / "industry_pci_by_year.csv"
    for p in (panel_path, diag_path, agg_path):
        if not p.exists():
            print(f"Missing {p}! Run 'make_tables.py' first.")
            return None

    panel = pd.read_parquet(panel_path)
    diag = pd.read_csv(diag_path, dtype={"product_code": str})
    agg = pd.read_csv(agg_path, dtype={"industry4": str, "representative_product": str})
    return panel, diag, agg


def main():
    ap = argparse.ArgumentParser()
    ap.add_argument("--outdir", default=str(P.DATA_OUTPUT), help="run output directory")
    ap.add_argument("--years", type=int, nargs="*", help="years for the PCI density plot")
    args = ap.parse_args()

    outdir = Path(args.outdir)
    print("Loading Data...")
    loaded = _load(outdir)
    if loaded is None:
        return
    panel, diag, agg = loaded
    fdir = outdir / "figures"

    print(f"Loaded {len(panel)} panel rows. Generating Figures...")
    for path in (
        figures.plot_pci_distribution(panel, fdir, years=args.years or None),
        figures.plot_weighted_pci_distribution(agg, fdir),
        figures.plot_years_present(diag, fdir),
        figures.plot_sd_distribution(diag, fdir),
    ):
        if path is not None:
            print(f"wrote {path}")

    print(f"\nDone! Check '{fdir}'.")


if __name__ == "__main__":
    main()
