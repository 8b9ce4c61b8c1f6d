import pandas as pd
import pytest

from hs_pci import diagnostics, tables


def test_year_summary(panel):
    s = tables.year_summary(panel).set_index("year")
    assert s.loc[1995, "products"] == 4
    assert s.loc[1995, "total_exports"] == pytest.approx(180.0)
    assert s.loc[1995, "pci_missing"] == 1
    assert s.loc[1996, "pci_mean"] == pytest.approx((1.5 + 2.0 + 3.0) / 3)


def test_top_by_year_ranks_and_ties():
    d = pd.DataFrame(
        {
            "year": [2000, 2000, 2000, 2001],
            "product_code": ["0201", "0101", "0301", "0101"],
            "export_value": [5.0, 5.0, 1.0, 2.0],
        }
    )
    t = tables.top_by_year(d, "export_value", n=2)
    assert t[t["year"] == 2000]["product_code"].tolist() == ["0101", "0201"]
    assert t[t["year"] == 2000]["rank"].tolist() == [1, 2]
    assert t[t["year"] == 2001]["rank"].tolist() == [1]


def test_frequency_table():
    f = tables.frequency_table(pd.Series([3, 1, 3, 2, 3]), name="years_present")
    assert f["years_present"].tolist() == [1, 2, 3]
    assert f["count"].tolist() == [1, 1, 3]
    assert f["share"].sum() == pytest.approx(1.0)


def test_changed_summary(panel):
    diag = diagnostics.diagnostics_table(panel)
    cs = tables.changed_summary(diag)
    s = dict(zip(cs["measure"], cs["count"]))
    assert s["products"] == 5
    assert s["balanced"] == 2
    assert s["reenters"] == 1
    assert s["pci_changed"] == 2
