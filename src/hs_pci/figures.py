"""
hs_pci.figures — distribution plots for the panel, diagnostics and industry PCI

Each plot function writes one PNG into `outdir` and returns its path, or None when
the input has nothing to draw.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Optional

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt  # noqa: E402
import pandas as pd  # noqa: E402
import seaborn as sns  # noqa: E402

__all__ = [
    "plot_pci_distribution",
    "plot_weighted_pci_distribution",
    "plot_years_present",
    "plot_sd_distribution",
]

plt.style.use("seaborn-v0_8-whitegrid")
plt.rcParams.update(
    {
        "font.family": "sans-serif",
        "axes.titleweight": "bold",
        "figure.dpi": 150,
        "savefig.bbox": "tight",
        "grid.alpha": 0.3,
    }
)


def _save(fig, outdir: Path, name: str) -> Path:
    outdir = Path(outdir)
    outdir.mkdir(parents=True, exist_ok=True)
    path = outdir / name
    fig.savefig(path)
    plt.close(fig)
    return path


def plot_pci_distribution(panel: pd.DataFrame, outdir: Path, years: Optional[Iterable[int]] = None) -> Optional[Path]:
    """PCI density for the selected years (default: first, middle and last panel year)."""
    d = panel.dropna(subset=["pci", "year"])
    if d.empty:
        return None

    all_years = sorted(int(y) for y in d["year"].unique())
    if years is None:
        years = sorted({all_years[0], all_years[len(all_years) // 2], all_years[-1]})
    years = [y for y in years if y in all_years]
    if not years:
        return None

    d = d[d["year"].isin(years)].copy()
    d["year"] = d["year"].astype(int).astype(str)

    fig, ax = plt.subplots(figsize=(9, 5))
    palette = sns.color_palette("tab10", len(years))
    for color, (y, sub) in zip(palette, d.groupby("year", sort=True)):
        if sub["pci"].nunique() > 1:
            sns.kdeplot(sub["pci"], ax=ax, color=color, lw=2, label=y)
        else:
            ax.axvline(sub["pci"].iloc[0], color=color, lw=2, label=y)

    ax.set_title("Product Complexity Index: Distribution by Year")
    ax.set_xlabel("PCI")
    ax.set_ylabel("Density")
    ax.legend(title="Year", loc="upper left", bbox_to_anchor=(1.02, 1))
    return _save(fig, outdir, "pci_distribution.png")


def plot_weighted_pci_distribution(aggregates: pd.DataFrame, outdir: Path) -> Optional[Path]:
    """Box plot of export-weighted industry PCI by year."""
    if aggregates.empty:
        return None
    d = aggregates[["year", "weighted_pci"]].dropna().copy()
    if d.empty:
        return None
    d["year"] = d["year"].astype(int)

    n_years = d["year"].nunique()
    fig, ax = plt.subplots(figsize=(max(8, 0.4 * n_years), 5))
    sns.boxplot(data=d, x="year", y="weighted_pci", ax=ax, color="#4c72b0", fliersize=2)
    ax.axhline(0, color="black", ls="--", lw=1)
    ax.set_title("Industry Complexity (Export-Weighted PCI) by Year")
    ax.set_xlabel("Year")
    ax.set_ylabel("Weighted PCI")
    ax.tick_params(axis="x", rotation=90)
    return _save(fig, outdir, "industry_weighted_pci_by_year.png")


def plot_years_present(diagnostics: pd.DataFrame, outdir: Path) -> Optional[Path]:
    if diagnostics.empty:
        return None
    counts = diagnostics["years_present"].value_counts().sort_index()

    fig, ax = plt.subplots(figsize=(9, 5))
    ax.bar(counts.index.astype(int), counts.values, color="#55a868", edgecolor="white")
    ax.set_title("Panel Coverage: Years Observed per Product")
    ax.set_xlabel("Years present")
    ax.set_ylabel("Products")
    return _save(fig, outdir, "years_present_hist.png")


def plot_sd_distribution(diagnostics: pd.DataFrame, outdir: Path) -> Optional[Path]:
    """Histogram of the within-product PCI standard deviation."""
    sd = diagnostics["pci_sd"].dropna() if not diagnostics.empty else pd.Series(dtype=float)
    if sd.empty:
        return None

    fig, ax = plt.subplots(figsize=(9, 5))
    sns.histplot(sd, bins=40, ax=ax, color="#c44e52")
    ax.set_title("Within-Product PCI Variation Across Years")
    ax.set_xlabel("PCI standard deviation")
    ax.set_ylabel("Products")
    return _save(fig, outdir, "pci_sd_hist.png")
