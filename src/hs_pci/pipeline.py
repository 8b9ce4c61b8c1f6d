#!/usr/bin/env python3
"""
hs_pci.pipeline — one-shot batch run: load inputs, build diagnostics, allocate
product exports to industries, write tables, caches and figures

Inputs (defaults under data_raw/, see hs_pci.paths):
  hs92_product_year.csv   product code, year, export value, import value, pci
  hs92_labels.json        code -> label
  hs6_isic4_crosswalk.csv hs6 -> isic4 weight
  isic4_titles.csv        isic4 -> title

Outputs (in --outdir, default data_output/):
  tables/*.csv            diagnostics, industry PCI by year, descriptive tables, audits
  cache/*.parquet         labeled panel and allocation template
  figures/*.png           distribution plots (skip with --no-plots)

Every output is overwritten on rerun; identical inputs give identical files.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Optional

import pandas as pd

from hs_pci import audit, crosswalk, diagnostics, figures, loaders, tables
from hs_pci import paths as P
from hs_pci.errors import HsPciError

FLOAT_FORMAT = "%.10g"


# ---------- IO helpers ----------


def _write_csv(df: pd.DataFrame, path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(path, index=False, float_format=FLOAT_FORMAT, lineterminator="\n")
    print(f"wrote {path} rows: {len(df)}")
    return path


def _write_parquet(df: pd.DataFrame, path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    df.to_parquet(path, index=False)
    print(f"wrote {path} rows: {len(df)}")
    return path


# ---------- run ----------


def run(
    panel_path: Path,
    dictionary_path: Path,
    crosswalk_path: Path,
    titles_path: Path,
    outdir: Path,
    focal_year: int = 1995,
    top_n: int = 10,
    workers: int = 1,
    make_plots: bool = True,
) -> dict[str, Path]:
    """
    Execute the full pipeline and return {output name: path}. Missing inputs and
    unrecognised headers raise before anything is written.
    """
    outdir = Path(outdir)
    tdir = outdir / "tables"
    cdir = outdir / "cache"
    fdir = outdir / "figures"

    print("Loading inputs...")
    panel = loaders.load_panel(panel_path)
    labels = loaders.load_dictionary(dictionary_path)
    cw = loaders.load_crosswalk(crosswalk_path)
    titles = loaders.load_titles(titles_path)
    print(
        f"  panel rows: {len(panel)}  labels: {len(labels)}  "
        f"crosswalk edges: {len(cw)}  titles: {len(titles)}"
    )

    written: dict[str, Path] = {}

    labeled = loaders.attach_labels(panel, labels)
    written["panel_labeled"] = _write_parquet(labeled, cdir / "panel_labeled.parquet")

    # --- change diagnostics ---
    print("Computing product diagnostics...")
    diag = diagnostics.diagnostics_table(panel, labels)
    written["product_diagnostics"] = _write_csv(diag, tdir / "product_diagnostics.csv")
    written["year_gaps"] = _write_csv(diagnostics.year_gaps(panel), tdir / "year_gaps.csv")

    # --- crosswalk allocation ---
    print("Building allocation template...")
    template = crosswalk.build_allocation_template(cw)
    written["allocation_template"] = _write_parquet(template.frame, cdir / "allocation_template.parquet")

    print(f"Allocating exports to industries (workers={workers})...")
    agg = crosswalk.allocate_all_years(panel, template, titles=titles, labels=labels, workers=workers)
    written["industry_pci_by_year"] = _write_csv(agg, tdir / "industry_pci_by_year.csv")

    undefined = [
        crosswalk.undefined_industries(crosswalk.allocation_rows(int(y), panel, template))
        for y in sorted(panel["year"].dropna().unique())
    ]
    undefined = [u for u in undefined if not u.empty]
    undefined_df = (
        pd.concat(undefined, ignore_index=True)
        if undefined
        else pd.DataFrame(columns=["year", "industry4", "rows", "contributing_export"])
    )

    # --- descriptive tables ---
    print("Building descriptive tables...")
    written["year_summary"] = _write_csv(tables.year_summary(panel), tdir / "year_summary.csv")
    top_products = tables.top_by_year(labeled, "export_value", n=top_n, key="product_code")
    written["top_products_by_year"] = _write_csv(top_products, tdir / "top_products_by_year.csv")
    top_ind = tables.top_by_year(agg, "weighted_pci", n=top_n, key="industry4")
    written["top_industries_by_year"] = _write_csv(top_ind, tdir / "top_industries_by_year.csv")
    freq = tables.frequency_table(diag["years_present"], name="years_present")
    written["years_present_freq"] = _write_csv(freq, tdir / "years_present_freq.csv")
    written["changed_summary"] = _write_csv(tables.changed_summary(diag), tdir / "changed_summary.csv")

    # --- coverage audits ---
    print("Running coverage audits...")
    written["audit_missing_labels"] = _write_csv(
        audit.missing_labels(panel, labels), tdir / "audit_missing_labels.csv"
    )
    written["audit_dictionary_absent"] = _write_csv(
        audit.dictionary_absent_in_year(panel, labels, focal_year),
        tdir / f"audit_dictionary_absent_{focal_year}.csv",
    )
    written["audit_late_entrants"] = _write_csv(
        audit.late_entrants(panel, focal_year), tdir / "audit_late_entrants.csv"
    )
    written["audit_unallocated_products"] = _write_csv(
        audit.unallocated_products(panel, template), tdir / "audit_unallocated_products.csv"
    )
    written["audit_undefined_industries"] = _write_csv(
        undefined_df, tdir / "audit_undefined_industries.csv"
    )
    written["audit_missing_titles"] = _write_csv(
        audit.missing_titles(agg, titles), tdir / "audit_missing_titles.csv"
    )

    # --- figures ---
    if make_plots:
        print("Drawing figures...")
        for name, fn in (
            ("fig_pci_distribution", lambda: figures.plot_pci_distribution(panel, fdir)),
            ("fig_weighted_pci", lambda: figures.plot_weighted_pci_distribution(agg, fdir)),
            ("fig_years_present", lambda: figures.plot_years_present(diag, fdir)),
            ("fig_pci_sd", lambda: figures.plot_sd_distribution(diag, fdir)),
        ):
            path = fn()
            if path is None:
                print(f"skip {name} (no data)")
            else:
                print(f"wrote {path}")
                written[name] = path

    return written


# ---------- CLI ----------


def _parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        description="HS92 product complexity panel: diagnostics and industry allocation"
    )
    ap.add_argument("--panel", default=str(P.PANEL_CSV), help="product-year trade panel CSV")
    ap.add_argument("--dictionary", default=str(P.DICTIONARY_JSON), help="code->label JSON")
    ap.add_argument("--crosswalk", default=str(P.CROSSWALK_CSV), help="hs6->industry weight CSV")
    ap.add_argument("--titles", default=str(P.TITLES_CSV), help="industry->title CSV")
    ap.add_argument("--outdir", default=str(P.DATA_OUTPUT), help="output directory (default: data_output/)")
    ap.add_argument("--focal-year", type=int, default=1995, help="year used by the coverage audits")
    ap.add_argument("--top-n", type=int, default=10, help="rows per year in the ranking tables")
    ap.add_argument("--workers", type=int, default=1, help="threads for the per-year allocation")
    ap.add_argument("--no-plots", action="store_true", help="skip figure generation")
    return ap


def main(argv: Optional[list[str]] = None) -> int:
    args = _parser().parse_args(argv)
    try:
        written = run(
            Path(args.panel),
            Path(args.dictionary),
            Path(args.crosswalk),
            Path(args.titles),
            Path(args.outdir),
            focal_year=args.focal_year,
            top_n=args.top_n,
            workers=args.workers,
            make_plots=not args.no_plots,
        )
    except HsPciError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    print(f"\nDone! {len(written)} outputs under {args.outdir}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
