"""
Tests for table payloads and display labels
"""

import pytest

from d1_reports.display import format_filter_display, report_type_display, to_table_payload
from d1_reports.models import ReportFilter, ReportResult

pytestmark = [pytest.mark.unit, pytest.mark.d1_reports]


class TestTablePayload:
    def test_keys_are_lower_cased(self, sales_result):
        payload = to_table_payload(sales_result)

        assert payload["header"] == [
            {"key": "region", "label": "Region", "type": "text"},
            {"key": "total", "label": "Total Sales", "type": "number"},
        ]
        assert payload["data"][1] == {"region": "South", "total": "80.5"}

    def test_header_and_row_keys_agree(self, sales_result):
        payload = to_table_payload(sales_result)
        header_keys = {header["key"] for header in payload["header"]}
        assert all(set(row) == header_keys for row in payload["data"])

    def test_missing_data_type_defaults_to_text(self):
        result = ReportResult.model_validate({"headers": [{"key": "Name", "label": "Name"}], "data": [{"Name": "x"}]})
        assert to_table_payload(result)["header"][0]["type"] == "text"

    def test_empty_result(self):
        assert to_table_payload(ReportResult()) == {"header": [], "data": []}


class TestDisplayLabels:
    @pytest.mark.parametrize(
        "report_type,label",
        [("table", "Table Report"), ("chart", "Chart Report"), ("kpi", "KPI Dashboard"), ("pivot", "Pivot Table")],
    )
    def test_report_type_display(self, report_type, label):
        assert report_type_display(report_type) == label

    def test_unknown_report_type_passes_through(self):
        assert report_type_display("gantt") == "gantt"

    def test_format_filter_display(self):
        report_filter = ReportFilter(field_name="total", operator="gte", value=100)
        assert format_filter_display(report_filter) == "total ≥ 100"

    def test_format_like_filter(self):
        report_filter = ReportFilter(field_name="region", operator="like", value="North")
        assert format_filter_display(report_filter) == "region contains North"

    def test_relative_date_filter_has_no_value(self):
        report_filter = ReportFilter(field_name="created_at", operator="last_month")
        assert format_filter_display(report_filter) == "created_at last month"
