import numpy as np
import pandas as pd
import pytest

from hs_pci import crosswalk as C


@pytest.fixture
def template(crosswalk):
    return C.build_allocation_template(crosswalk)


def test_shares_sum_to_one(template):
    sums = template.frame.groupby("product4")["share4"].sum()
    assert np.allclose(sums.values, 1.0, atol=1e-9)


def test_template_collapses_to_product4(template):
    assert template.shares_for("0101") == [("0111", 0.75), ("0112", 0.25)]
    assert template.shares_for("0201") == [("0112", 1.0)]
    # zero total weight: parent dropped
    assert "0301" not in template.products
    assert template.shares_for("0301") == []
    assert len(template) == 4


def test_unnormalised_weights():
    cw = pd.DataFrame(
        {
            "fine_code": ["847110", "847130", "847141", "847150"],
            "industry4": ["3000", "3000", "3000", "3220"],
            "weight": [0.2, 0.2, 0.1, 1.5],
        }
    )
    t = C.build_allocation_template(cw)
    shares = dict(t.shares_for("8471"))
    assert shares["3000"] == pytest.approx(0.25)
    assert shares["3220"] == pytest.approx(0.75)
    assert sum(shares.values()) == pytest.approx(1.0, abs=1e-9)


def test_year_slice_dedupes_first(panel):
    p = pd.concat(
        [panel, pd.DataFrame([{"product_code": "0101", "year": 1995, "export_value": 1.0, "pci": 9.0}])],
        ignore_index=True,
    )
    sl = C.year_slice(p, 1995)
    assert sl["product4"].tolist() == ["0101", "0201", "0301", "0501"]
    assert sl.set_index("product4").loc["0101", "export_value"] == 100.0


def test_allocation_conserves_exports(panel, template):
    rows = C.allocation_rows(1996, panel, template)
    per_product = rows.groupby("product4")["allocated_export"].sum()
    sl = C.year_slice(panel, 1996).set_index("product4")
    for code, alloc in per_product.items():
        assert alloc == pytest.approx(sl.loc[code, "export_value"], abs=1e-9)


def test_weighted_pci_hand_computed(panel, template, titles, labels):
    agg = C.allocate_year(1995, panel, template, titles=titles, labels=labels)

    assert list(agg.columns) == C.AGGREGATE_COLUMNS
    assert agg["industry4"].tolist() == ["0111", "0112"]

    a = agg.set_index("industry4")
    # 0111: only 0101 at share 0.75 -> 75 @ pci 1.0
    assert a.loc["0111", "total_allocated_export"] == pytest.approx(75.0)
    assert a.loc["0111", "weighted_pci"] == pytest.approx(1.0)
    assert a.loc["0111", "product_count"] == 1
    assert a.loc["0111", "representative_product"] == "0101"
    assert a.loc["0111", "industry_title"] == "Growing of cereals"

    # 0112: 0101 at 0.25 -> 25 @ 1.0, 0201 at 1.0 -> 50 @ 2.0
    assert a.loc["0112", "total_allocated_export"] == pytest.approx(75.0)
    assert a.loc["0112", "weighted_pci"] == pytest.approx((25 * 1.0 + 50 * 2.0) / 75)
    assert a.loc["0112", "product_count"] == 2
    assert a.loc["0112", "representative_product"] == "0201"
    assert a.loc["0112", "representative_label"] == "Beef, fresh"


def test_zero_export_industry_is_omitted(panel, template):
    # 0401 is the only product behind 0114 and exports nothing
    agg = C.allocate_year(1996, panel, template)
    assert "0114" not in set(agg["industry4"])
    assert agg["weighted_pci"].notna().all()
    assert np.isfinite(agg["weighted_pci"]).all()

    und = C.undefined_industries(C.allocation_rows(1996, panel, template))
    assert und["industry4"].tolist() == ["0114"]
    assert und.iloc[0]["contributing_export"] == 0


def test_missing_pci_does_not_contribute():
    cw = pd.DataFrame({"fine_code": ["010110", "020110"], "industry4": ["0111", "0111"], "weight": [1.0, 1.0]})
    panel = pd.DataFrame(
        {
            "product_code": ["0101", "0201"],
            "year": pd.array([2000, 2000], dtype="Int64"),
            "export_value": [10.0, 30.0],
            "import_value": [0.0, 0.0],
            "pci": [2.0, np.nan],
        }
    )
    agg = C.allocate_year(2000, panel, C.build_allocation_template(cw))
    assert agg.iloc[0]["weighted_pci"] == pytest.approx(2.0)
    assert agg.iloc[0]["total_allocated_export"] == pytest.approx(10.0)
    assert agg.iloc[0]["product_count"] == 1


def test_representative_tie_breaks_on_smallest_code():
    cw = pd.DataFrame({"fine_code": ["020110", "010110"], "industry4": ["0111", "0111"], "weight": [1.0, 1.0]})
    panel = pd.DataFrame(
        {
            "product_code": ["0201", "0101"],
            "year": pd.array([2000, 2000], dtype="Int64"),
            "export_value": [10.0, 10.0],
            "import_value": [0.0, 0.0],
            "pci": [1.0, 3.0],
        }
    )
    agg = C.allocate_year(2000, panel, C.build_allocation_template(cw))
    assert agg.iloc[0]["representative_product"] == "0101"
    assert agg.iloc[0]["weighted_pci"] == pytest.approx(2.0)


def test_products_outside_template_do_not_allocate(panel, template):
    rows = C.allocation_rows(1995, panel, template)
    assert set(rows["product4"]) == {"0101", "0201"}
    # every observed product the template covers gets rows
    observed = set(C.year_slice(panel, 1995)["product4"])
    assert observed & template.products == set(rows["product4"])


def test_allocate_all_years_is_deterministic(panel, template, titles, labels):
    a = C.allocate_all_years(panel, template, titles=titles, labels=labels)
    b = C.allocate_all_years(panel, template, titles=titles, labels=labels, workers=3)
    pd.testing.assert_frame_equal(a, b)
    assert a.to_csv(index=False) == C.allocate_all_years(panel, template, titles=titles, labels=labels).to_csv(
        index=False
    )

    keys = list(zip(a["year"], a["industry4"]))
    assert keys == sorted(keys)
    assert set(a["year"]) == {1995, 1996, 1997}


def test_empty_year_gives_empty_frame(panel, template):
    agg = C.allocate_year(1990, panel, template)
    assert agg.empty
    assert list(agg.columns) == C.AGGREGATE_COLUMNS


def test_product_count_skips_products_without_export():
    # 0301 maps to 0111 with zero weight, 0201 exports nothing this year
    cw = pd.DataFrame(
        {
            "fine_code": ["010110", "020110", "030110", "030190"],
            "industry4": ["0111", "0111", "0111", "0999"],
            "weight": [1.0, 1.0, 0.0, 1.0],
        }
    )
    panel = pd.DataFrame(
        {
            "product_code": ["0101", "0201", "0301"],
            "year": pd.array([2000, 2000, 2000], dtype="Int64"),
            "export_value": [10.0, 0.0, 50.0],
            "import_value": [0.0, 0.0, 0.0],
            "pci": [1.0, 2.0, 3.0],
        }
    )
    agg = C.allocate_year(2000, panel, C.build_allocation_template(cw)).set_index("industry4")
    assert agg.loc["0111", "total_allocated_export"] == pytest.approx(10.0)
    assert agg.loc["0111", "weighted_pci"] == pytest.approx(1.0)
    assert agg.loc["0111", "product_count"] == 1
    assert agg.loc["0111", "representative_product"] == "0101"
    assert agg.loc["0999", "product_count"] == 1
