"""
hs_pci.audit — coverage audits between panel, dictionary, crosswalk and titles

Nothing here raises on a missing key; every gap becomes a row in an audit table.
"""

from __future__ import annotations

import pandas as pd

from hs_pci.crosswalk import AllocationTemplate, year_slice

__all__ = [
    "missing_labels",
    "dictionary_absent_in_year",
    "late_entrants",
    "unallocated_products",
    "missing_titles",
]


def _presence(panel: pd.DataFrame) -> pd.DataFrame:
    return (
        panel.dropna(subset=["year"])
        .groupby("product_code", sort=True)["year"]
        .agg(first_year="min", last_year="max", years_present="nunique")
    )


def missing_labels(panel: pd.DataFrame, labels: pd.DataFrame) -> pd.DataFrame:
    """Product codes present in the panel with no dictionary entry."""
    pres = _presence(panel)
    miss = pres[~pres.index.isin(labels["code"])].reset_index()
    return miss[["product_code", "first_year", "last_year", "years_present"]]


def dictionary_absent_in_year(panel: pd.DataFrame, labels: pd.DataFrame, focal_year: int) -> pd.DataFrame:
    """
    Dictionary codes with no panel row in focal_year. ever_seen separates codes that
    the panel never contains from codes that are only absent in that year.
    """
    in_year = set(panel.loc[panel["year"] == focal_year, "product_code"])
    pres = _presence(panel)

    out = labels[~labels["code"].isin(in_year)].copy()
    out = out.merge(pres, how="left", left_on="code", right_index=True)
    out["ever_seen"] = out["years_present"].notna()
    out["years_present"] = out["years_present"].fillna(0).astype("int64")
    out.insert(0, "focal_year", focal_year)
    cols = ["focal_year", "code", "label", "ever_seen", "first_year", "last_year", "years_present"]
    return out[cols].sort_values("code").reset_index(drop=True)


def late_entrants(panel: pd.DataFrame, focal_year: int) -> pd.DataFrame:
    """Products absent in focal_year that appear in some later year."""
    in_year = set(panel.loc[panel["year"] == focal_year, "product_code"])
    later = panel[(panel["year"] > focal_year) & ~panel["product_code"].isin(in_year)]
    out = (
        later.groupby("product_code", sort=True)["year"]
        .agg(first_later_year="min", later_years="nunique")
        .reset_index()
    )
    seen_before = set(panel.loc[panel["year"] < focal_year, "product_code"])
    out["seen_before_focal"] = out["product_code"].isin(seen_before)
    return out


def unallocated_products(panel: pd.DataFrame, template: AllocationTemplate) -> pd.DataFrame:
    """
    Per year, the product4 codes observed in the panel that the allocation template
    does not cover, with their export value so the missing mass can be judged.
    """
    known = template.products
    frames = []
    for y in sorted(int(v) for v in panel["year"].dropna().unique()):
        sl = year_slice(panel, y)
        miss = sl[~sl["product4"].isin(known)].copy()
        if miss.empty:
            continue
        miss.insert(0, "year", y)
        frames.append(miss[["year", "product4", "export_value"]])

    if not frames:
        return pd.DataFrame(columns=["year", "product4", "export_value"])
    out = pd.concat(frames, ignore_index=True)
    return out.sort_values(["year", "product4"], kind="mergesort").reset_index(drop=True)


def missing_titles(aggregates: pd.DataFrame, titles: pd.DataFrame) -> pd.DataFrame:
    """Industry codes in the aggregate table with no title."""
    codes = pd.Series(sorted(set(aggregates["industry4"].dropna())), name="industry4", dtype=object)
    miss = codes[~codes.isin(titles["industry4"])]
    years = aggregates[aggregates["industry4"].isin(miss)].groupby("industry4")["year"].nunique()
    out = miss.to_frame().reset_index(drop=True)
    out["years_emitted"] = out["industry4"].map(years).fillna(0).astype("int64")
    return out
