import json

import pandas as pd
import pytest


def _panel_rows():
    # product_code, year, export_value, import_value, pci
    return [
        ("0101", 1995, 100.0, 10.0, 1.0),
        ("0101", 1996, 120.0, 10.0, 1.5),
        ("0101", 1997, 130.0, 12.0, 1.5),
        ("0201", 1995, 50.0, 5.0, 2.0),
        ("0201", 1996, 50.0, 5.0, 2.0),
        ("0201", 1997, 50.0, 5.0, 2.0),
        ("0301", 1995, 10.0, 1.0, 0.5),
        ("0301", 1997, 12.0, 1.0, 0.7),
        ("0401", 1996, 0.0, 3.0, 3.0),
        ("0401", 1997, 0.0, 4.0, 3.0),
        ("0501", 1995, 20.0, None, None),
    ]


@pytest.fixture
def panel():
    df = pd.DataFrame(_panel_rows(), columns=["product_code", "year", "export_value", "import_value", "pci"])
    df["year"] = df["year"].astype("Int64")
    return df


@pytest.fixture
def labels():
    return pd.DataFrame(
        {
            "code": ["0101", "0201", "0401", "0601"],
            "label": ["Horses", "Beef, fresh", "Milk", "Live trees"],
        }
    )


@pytest.fixture
def crosswalk():
    return pd.DataFrame(
        {
            "fine_code": ["010110", "010190", "010190", "020110", "030110", "040110"],
            "industry4": ["0111", "0111", "0112", "0112", "0113", "0114"],
            "weight": [2.0, 1.0, 1.0, 0.5, 0.0, 1.0],
        }
    )


@pytest.fixture
def titles():
    return pd.DataFrame(
        {
            "industry4": ["0111", "0112"],
            "industry_title": ["Growing of cereals", "Farming of cattle"],
        }
    )


@pytest.fixture
def input_files(tmp_path, panel, labels, crosswalk, titles):
    """The fixture tables written out in raw-file form, with source-style headers."""
    raw = tmp_path / "raw"
    raw.mkdir()

    p = panel.rename(columns={"product_code": "hs_product_code"}).copy()
    p["hs_product_code"] = p["hs_product_code"].str.lstrip("0")
    p.to_csv(raw / "panel.csv", index=False)

    with open(raw / "labels.json", "w", encoding="utf-8") as fh:
        json.dump([{"id": c, "text": t} for c, t in zip(labels["code"], labels["label"])], fh)

    crosswalk.rename(columns={"fine_code": "hs6", "industry4": "isic4"}).to_csv(
        raw / "crosswalk.csv", index=False
    )
    titles.rename(columns={"industry4": "ISIC Code", "industry_title": "Description"}).to_csv(
        raw / "titles.csv", index=False
    )
    return {
        "panel_path": raw / "panel.csv",
        "dictionary_path": raw / "labels.json",
        "crosswalk_path": raw / "crosswalk.csv",
        "titles_path": raw / "titles.csv",
    }
