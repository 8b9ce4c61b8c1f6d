"""
hs_pci.tables — descriptive tables over the panel and the industry aggregates
"""

from __future__ import annotations

import pandas as pd

__all__ = ["year_summary", "top_by_year", "frequency_table", "changed_summary"]


def year_summary(panel: pd.DataFrame) -> pd.DataFrame:
    """Per year: products observed, trade totals, PCI location and missing-PCI count."""
    p = panel.dropna(subset=["year"])
    g = p.groupby("year", sort=True)
    out = g.agg(
        products=("product_code", "nunique"),
        total_exports=("export_value", "sum"),
        total_imports=("import_value", "sum"),
        pci_mean=("pci", "mean"),
        pci_median=("pci", "median"),
    )
    out["pci_missing"] = g["pci"].apply(lambda s: int(s.isna().sum()))
    out = out.reset_index()
    out["year"] = out["year"].astype("Int64")
    return out


def top_by_year(frame: pd.DataFrame, value: str, n: int = 10, key: str = "product_code") -> pd.DataFrame:
    """
    Top-n rows per year by `value` (descending), ties broken by `key` ascending.
    Rows with a missing value are not ranked.
    """
    d = frame.dropna(subset=["year", value])
    d = d.sort_values(["year", value, key], ascending=[True, False, True], kind="mergesort")
    d = d.groupby("year", sort=True).head(n).copy()
    d["rank"] = d.groupby("year").cumcount() + 1
    cols = ["year", "rank", key, value] + [c for c in d.columns if c not in ("year", "rank", key, value)]
    return d[cols].reset_index(drop=True)


def frequency_table(series: pd.Series, name: str = "value") -> pd.DataFrame:
    """Counts and shares of each distinct value, sorted by value."""
    vc = series.dropna().value_counts().sort_index()
    out = vc.rename_axis(name).reset_index(name="count")
    total = out["count"].sum()
    out["share"] = out["count"] / total if total else 0.0
    return out


def changed_summary(diagnostics: pd.DataFrame) -> pd.DataFrame:
    """How many products changed PCI or values, are balanced, or re-enter."""
    rows = [("products", len(diagnostics))]
    for c in ("pci_changed", "values_changed", "balanced", "reenters"):
        rows.append((c, int(diagnostics[c].sum())))
    return pd.DataFrame(rows, columns=["measure", "count"])
