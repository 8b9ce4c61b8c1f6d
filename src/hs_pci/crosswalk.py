"""
hs_pci.crosswalk — allocate 4-digit product exports to 4-digit industries and
compute export-weighted industry complexity per year

Two stages:

1. build_allocation_template (once per run)
   hs6 -> industry weights are collapsed to their 4-digit parent (product4),
   summed per (product4, industry4) and divided by the product4 total, giving
   share4 that sums to 1 over each product4's industries. Parents whose weights
   sum to zero are dropped.

2. allocate_year (once per panel year, pure)
   the year's panel slice is inner-joined to the template; each row carries
   allocated_export = export_value * share4, and industries are collapsed to
   weighted_pci = sum(pci * allocated_export) / sum(allocated_export).

All sums run over frames sorted by their keys so the output is reproducible
byte for byte. Industries without positive allocated exports are omitted from the
weighted table rather than emitted with NaN.
"""

from __future__ import annotations

import os
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Optional

import numpy as np
import pandas as pd

__all__ = [
    "AllocationTemplate",
    "AGGREGATE_COLUMNS",
    "ALLOCATION_COLUMNS",
    "build_allocation_template",
    "year_slice",
    "allocation_rows",
    "aggregate_industries",
    "undefined_industries",
    "allocate_year",
    "allocate_all_years",
]

ALLOCATION_COLUMNS = [
    "year",
    "product4",
    "industry4",
    "share4",
    "export_value",
    "pci",
    "allocated_export",
    "allocated_pci_contribution",
]

AGGREGATE_COLUMNS = [
    "year",
    "industry4",
    "industry_title",
    "representative_product",
    "representative_label",
    "weighted_pci",
    "total_allocated_export",
    "product_count",
]

_DEBUG = os.environ.get("HS_PCI_DEBUG") == "1"


@dataclass(frozen=True, eq=False)
class AllocationTemplate:
    """Year-independent product4 -> [(industry4, share4)] allocation."""

    frame: pd.DataFrame = field(repr=False)

    @property
    def products(self) -> frozenset:
        return frozenset(self.frame["product4"].unique())

    def shares_for(self, product4: str) -> list[tuple[str, float]]:
        sub = self.frame[self.frame["product4"] == product4]
        return list(zip(sub["industry4"], sub["share4"].astype(float)))

    def __len__(self) -> int:
        return len(self.frame)


# ---------- stage 1: renormalisation ----------


def build_allocation_template(crosswalk: pd.DataFrame) -> AllocationTemplate:
    """
    crosswalk columns: fine_code (6-digit str), industry4, weight (>= 0).
    Returns an AllocationTemplate whose frame has product4, industry4, grouped_weight,
    share4, sorted by (product4, industry4).
    """
    cw = crosswalk[["fine_code", "industry4", "weight"]].copy()
    cw["product4"] = cw["fine_code"].astype(str).str[:4]
    cw["weight"] = pd.to_numeric(cw["weight"], errors="coerce").fillna(0.0).astype(float)
    cw = cw.sort_values(["product4", "industry4", "fine_code"], kind="mergesort")

    grouped = (
        cw.groupby(["product4", "industry4"], sort=True, as_index=False)["weight"]
        .sum()
        .rename(columns={"weight": "grouped_weight"})
    )
    total = grouped.groupby("product4", sort=True)["grouped_weight"].transform("sum")

    keep = total > 0
    if _DEBUG and (~keep).any():
        dropped = grouped.loc[~keep, "product4"].nunique()
        print(f"[crosswalk] {dropped} product4 parents have zero total weight; dropped")

    tmpl = grouped[keep].copy()
    tmpl["share4"] = tmpl["grouped_weight"] / total[keep]
    tmpl = tmpl.sort_values(["product4", "industry4"], kind="mergesort").reset_index(drop=True)
    return AllocationTemplate(tmpl[["product4", "industry4", "grouped_weight", "share4"]])


# ---------- stage 2: per-year allocation ----------


def year_slice(panel: pd.DataFrame, year: int) -> pd.DataFrame:
    """One row per product4 for `year` (first occurrence wins): product4, export_value, pci."""
    sl = panel[panel["year"] == year].copy()
    sl["product4"] = sl["product_code"].astype(str).str[:4]
    sl = sl.drop_duplicates(subset="product4", keep="first")
    return sl[["product4", "export_value", "pci"]].reset_index(drop=True)


def allocation_rows(year: int, panel: pd.DataFrame, template: AllocationTemplate) -> pd.DataFrame:
    """
    AllocationRows for one year: every (product4, industry4) of the template whose
    product4 is observed in the year. Missing export_value or pci propagate as NaN.
    """
    sl = year_slice(panel, year)
    rows = template.frame[["product4", "industry4", "share4"]].merge(
        sl, how="inner", on="product4", validate="m:1"
    )
    rows.insert(0, "year", year)
    rows["allocated_export"] = rows["export_value"] * rows["share4"]
    rows["allocated_pci_contribution"] = rows["pci"] * rows["allocated_export"]
    rows = rows.sort_values(["industry4", "product4"], kind="mergesort").reset_index(drop=True)
    return rows[ALLOCATION_COLUMNS]


def _contributing(rows: pd.DataFrame) -> pd.DataFrame:
    return rows[(rows["allocated_export"] > 0) & rows["pci"].notna()]


def aggregate_industries(
    rows: pd.DataFrame,
    titles: Optional[pd.DataFrame] = None,
    labels: Optional[pd.DataFrame] = None,
) -> pd.DataFrame:
    """
    Collapse AllocationRows to one IndustryAggregate per industry4 with positive
    total_allocated_export. Only rows with a positive allocated export and a PCI
    contribute, so product_count counts products that actually add export.
    """
    c = _contributing(rows)
    if c.empty:
        return pd.DataFrame(columns=AGGREGATE_COLUMNS)

    c = c.sort_values(["industry4", "product4"], kind="mergesort")
    g = c.groupby("industry4", sort=True)
    agg = g.agg(
        year=("year", "first"),
        total_allocated_export=("allocated_export", "sum"),
        pci_num=("allocated_pci_contribution", "sum"),
        product_count=("product4", "nunique"),
    )
    agg = agg[agg["total_allocated_export"] > 0].copy()
    agg["weighted_pci"] = agg["pci_num"] / agg["total_allocated_export"]
    agg = agg[np.isfinite(agg["weighted_pci"])]

    # largest allocated export wins, smallest product4 on ties
    rep = (
        c.sort_values(["industry4", "allocated_export", "product4"], ascending=[True, False, True], kind="mergesort")
        .drop_duplicates(subset="industry4", keep="first")
        .set_index("industry4")["product4"]
        .rename("representative_product")
    )
    out = agg.join(rep).reset_index()

    if titles is not None and not titles.empty:
        out = out.merge(titles[["industry4", "industry_title"]], how="left", on="industry4")
    else:
        out["industry_title"] = pd.NA

    if labels is not None and not labels.empty:
        lab = labels.rename(columns={"code": "representative_product", "label": "representative_label"})
        out = out.merge(lab, how="left", on="representative_product")
    else:
        out["representative_label"] = pd.NA

    out["year"] = out["year"].astype("Int64")
    out["product_count"] = out["product_count"].astype("int64")
    return out[AGGREGATE_COLUMNS].sort_values("industry4").reset_index(drop=True)


def undefined_industries(rows: pd.DataFrame) -> pd.DataFrame:
    """
    Industries that receive allocation rows in a year but end up with no positive
    contributing export, so their weighted PCI is undefined.
    """
    if rows.empty:
        return pd.DataFrame(columns=["year", "industry4", "rows", "contributing_export"])

    c = _contributing(rows)
    tot = c.groupby("industry4", sort=True)["allocated_export"].sum()
    counts = rows.groupby("industry4", sort=True).agg(year=("year", "first"), rows=("product4", "size"))
    counts["contributing_export"] = tot.reindex(counts.index).fillna(0.0)
    out = counts[~(counts["contributing_export"] > 0)].reset_index()
    out["year"] = out["year"].astype("Int64")
    return out[["year", "industry4", "rows", "contributing_export"]]


def allocate_year(
    year: int,
    panel: pd.DataFrame,
    template: AllocationTemplate,
    titles: Optional[pd.DataFrame] = None,
    labels: Optional[pd.DataFrame] = None,
) -> pd.DataFrame:
    """IndustryAggregate table for a single year."""
    return aggregate_industries(allocation_rows(year, panel, template), titles=titles, labels=labels)


def allocate_all_years(
    panel: pd.DataFrame,
    template: AllocationTemplate,
    titles: Optional[pd.DataFrame] = None,
    labels: Optional[pd.DataFrame] = None,
    workers: int = 1,
) -> pd.DataFrame:
    """
    Run allocate_year for every year in the panel and stack the results, sorted by
    (year, industry4). Years are independent; workers > 1 runs them on a thread pool.
    """
    years = sorted(int(y) for y in panel["year"].dropna().unique())
    if not years:
        return pd.DataFrame(columns=AGGREGATE_COLUMNS)

    def _one(y: int) -> pd.DataFrame:
        return allocate_year(y, panel, template, titles=titles, labels=labels)

    if workers > 1:
        with ThreadPoolExecutor(max_workers=workers) as ex:
            frames = list(ex.map(_one, years))
    else:
        frames = [_one(y) for y in years]

    frames = [f for f in frames if not f.empty]
    if not frames:
        return pd.DataFrame(columns=AGGREGATE_COLUMNS)

    out = pd.concat(frames, ignore_index=True)
    return out.sort_values(["year", "industry4"], kind="mergesort").reset_index(drop=True)
