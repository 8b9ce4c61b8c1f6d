"""
hs_pci.diagnostics — per-product change and presence diagnostics over the year axis

A product "changed" when a quantity takes more than one distinct non-missing value
across its years, which is the same as a strictly positive standard deviation but
without floating-point noise on constant series. Missing values are excluded, never
counted as zero; a single observation has no spread and is reported as unchanged.

Presence counts rows, not values: a product that appears in a year with every
numeric field missing is still present that year.
"""

from __future__ import annotations

from typing import Optional

import pandas as pd

__all__ = [
    "DIAGNOSTIC_COLUMNS",
    "dispersion",
    "span",
    "balanced",
    "diagnostics_table",
    "year_gaps",
]

DIAGNOSTIC_COLUMNS = [
    "product_code",
    "label",
    "pci_sd",
    "export_sd",
    "import_sd",
    "pci_changed",
    "values_changed",
    "years_present",
    "first_year",
    "last_year",
    "reenters",
    "balanced",
]

_VALUE_COLS = ["pci", "export_value", "import_value"]


def _dedupe(panel: pd.DataFrame) -> pd.DataFrame:
    return panel.drop_duplicates(subset=["product_code", "year"], keep="first")


def _product_rows(panel: pd.DataFrame, product_code: str) -> pd.DataFrame:
    p = _dedupe(panel)
    return p[p["product_code"] == product_code]


def _varies(s: pd.Series) -> bool:
    return bool(s.dropna().nunique() > 1)


def dispersion(panel: pd.DataFrame, product_code: str) -> dict:
    """
    Sample standard deviation of pci, export_value and import_value for one product,
    plus the pci_changed / values_changed flags. Unknown products give NaN spreads
    and False flags.
    """
    rows = _product_rows(panel, product_code)
    return {
        "pci_sd": float(rows["pci"].std()),
        "export_sd": float(rows["export_value"].std()),
        "import_sd": float(rows["import_value"].std()),
        "pci_changed": _varies(rows["pci"]),
        "values_changed": _varies(rows["export_value"]) or _varies(rows["import_value"]),
    }


def span(panel: pd.DataFrame, product_code: str) -> dict:
    rows = _product_rows(panel, product_code)
    years = sorted(int(y) for y in rows["year"].dropna().unique())
    if not years:
        return {"years_present": 0, "first_year": None, "last_year": None, "reenters": False}
    reenters = any(b - a > 1 for a, b in zip(years, years[1:]))
    return {
        "years_present": len(years),
        "first_year": years[0],
        "last_year": years[-1],
        "reenters": reenters,
    }


def balanced(panel: pd.DataFrame, product_code: str) -> bool:
    """True iff the product is observed in every year present anywhere in the panel."""
    n_years = panel["year"].dropna().nunique()
    present = span(panel, product_code)["years_present"]
    return bool(n_years > 0 and present == n_years)


def _sorted_years(panel: pd.DataFrame) -> pd.DataFrame:
    p = _dedupe(panel).dropna(subset=["year"])
    return p.sort_values(["product_code", "year"], kind="mergesort").reset_index(drop=True)


def diagnostics_table(panel: pd.DataFrame, labels: Optional[pd.DataFrame] = None) -> pd.DataFrame:
    """
    One row per product code with spread, change flags and presence bookkeeping.
    Same semantics as dispersion/span/balanced, computed for every product at once.
    """
    p = _sorted_years(panel)
    if p.empty:
        return pd.DataFrame(columns=DIAGNOSTIC_COLUMNS)

    g = p.groupby("product_code", sort=True)

    sd = g[_VALUE_COLS].std().rename(
        columns={"pci": "pci_sd", "export_value": "export_sd", "import_value": "import_sd"}
    )
    nun = g[_VALUE_COLS].nunique()

    pres = g["year"].agg(years_present="nunique", first_year="min", last_year="max")

    gap = g["year"].diff().fillna(0)
    reenters = (gap > 1).groupby(p["product_code"]).any().rename("reenters")

    out = sd.join(pres).join(reenters)
    out["pci_changed"] = nun["pci"] > 1
    out["values_changed"] = (nun["export_value"] > 1) | (nun["import_value"] > 1)
    out["balanced"] = out["years_present"] == p["year"].nunique()
    out = out.reset_index()

    if labels is not None:
        out = out.merge(labels.rename(columns={"code": "product_code"}), how="left", on="product_code")
    else:
        out["label"] = pd.NA

    out["years_present"] = out["years_present"].astype("int64")
    out["first_year"] = out["first_year"].astype("Int64")
    out["last_year"] = out["last_year"].astype("Int64")
    for c in ("pci_changed", "values_changed", "reenters", "balanced"):
        out[c] = out[c].astype(bool)

    return out[DIAGNOSTIC_COLUMNS].sort_values("product_code").reset_index(drop=True)


def year_gaps(panel: pd.DataFrame) -> pd.DataFrame:
    """
    Each stretch of missing years between two observations of a product:
    product_code, gap_start, gap_end, gap_years. Products that re-enter have rows here.
    """
    p = _sorted_years(panel)[["product_code", "year"]].copy()
    p["prev_year"] = p.groupby("product_code")["year"].shift(1)
    p = p[p["prev_year"].notna() & (p["year"] - p["prev_year"] > 1)].copy()

    out = pd.DataFrame(
        {
            "product_code": p["product_code"],
            "gap_start": (p["prev_year"] + 1).astype("Int64"),
            "gap_end": (p["year"] - 1).astype("Int64"),
        }
    )
    out["gap_years"] = (out["gap_end"] - out["gap_start"] + 1).astype("Int64")
    return out.sort_values(["product_code", "gap_start"]).reset_index(drop=True)
