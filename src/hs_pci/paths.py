from __future__ import annotations

from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[2]
DATA_RAW = REPO_ROOT / "data_raw"
DATA_WORK = REPO_ROOT / "data_work"
DATA_OUTPUT = REPO_ROOT / "data_output"
FIGURES = DATA_OUTPUT / "figures"

# default input files (override with CLI flags)
PANEL_CSV = DATA_RAW / "hs92_product_year.csv"
DICTIONARY_JSON = DATA_RAW / "hs92_labels.json"
CROSSWALK_CSV = DATA_RAW / "hs6_isic4_crosswalk.csv"
TITLES_CSV = DATA_RAW / "isic4_titles.csv"


def ensure_dirs() -> None:
    for p in (DATA_RAW, DATA_WORK, DATA_OUTPUT, FIGURES):
        p.mkdir(parents=True, exist_ok=True)
