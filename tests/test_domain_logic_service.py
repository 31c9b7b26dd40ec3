from models.workbook_models import Sheet, Workbook
from services.domain_logic_service import (
    METRICS,
    describe_metrics,
    detect_metrics,
    infer_domain,
    infer_domain_from_columns,
)


def _workbook(*column_sets):
    sheets = [
        Sheet(sheet_name=f"S{i}", columns=list(cols), rows=[{c: 1 for c in cols}])
        for i, cols in enumerate(column_sets, start=1)
    ]
    return Workbook(file_name="f.xlsx", sheets=sheets)


def test_infer_domain_from_columns():
    assert infer_domain_from_columns(["Campaign", "Spend", "Clicks", "Impressions"]) == "marketing"
    assert infer_domain_from_columns(["student_id", "module_name", "score"]) == "education"
    assert infer_domain_from_columns(["foo", "bar"]) == "unknown"


def test_infer_domain_looks_at_every_sheet():
    workbook = _workbook(["Name"], ["equipment_id", "downtime_hours"])
    assert infer_domain(workbook) == "manufacturing"


def test_detect_metrics_matches_columns_within_a_sheet():
    workbook = _workbook(["Month", "Marketing Spend", "New Customers", "Clicks", "Impressions"])

    found = {m["name"]: m for m in detect_metrics(workbook)}

    assert found["CAC (Customer Acquisition Cost)"]["numerator"] == "Marketing Spend"
    assert found["CAC (Customer Acquisition Cost)"]["denominator"] == "New Customers"
    assert found["CTR (Click-Through Rate)"]["numerator"] == "Clicks"
    assert found["CTR (Click-Through Rate)"]["denominator"] == "Impressions"
    assert found["CTR (Click-Through Rate)"]["sheet"] == "S1"


def test_detect_metrics_needs_both_columns_in_one_sheet():
    workbook = _workbook(["Clicks"], ["Impressions"])
    assert "CTR (Click-Through Rate)" not in [m["name"] for m in detect_metrics(workbook)]


def test_describe_metrics_lists_all_definitions():
    text = describe_metrics(_workbook(["Region"]))

    for metric in METRICS:
        assert metric["name"] in text
    assert "can be computed from this file" not in text
