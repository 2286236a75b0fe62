"""
Tests for the report builder session
"""
from unittest.mock import AsyncMock, Mock

import pytest

from core.exceptions import ExternalAPIError, ValidationError
from d1_reports.builder import BuilderStep, ReportBuilderSession, build_definition, humanize_field_name
from d1_reports.gateway import ReportExecutionGateway
from d1_reports.models import (
    ChartReportDefinition,
    ChartType,
    FilterOperator,
    LogicalOperator,
    ReportDraft,
    ReportResult,
    ReportType,
    SortDirection,
    TableField,
    TableReportDefinition,
)

pytestmark = [pytest.mark.unit, pytest.mark.d1_reports]


@pytest.fixture
def schema_client():
    client = Mock()
    client.list_tables = AsyncMock(
        return_value=[
            {"table_name": "form_sales", "form_code": "SALES", "form_id": "f-1", "form_title": "Sales", "record_count": 42}
        ]
    )
    client.list_fields = AsyncMock(
        return_value=[
            {"name": "region", "type": "text"},
            {"name": "total_amount", "type": "number"},
            {"name": "created_at", "type": "date"},
        ]
    )
    return client


@pytest.fixture
def gateway():
    gateway = Mock()
    gateway.preview = AsyncMock(return_value=ReportResult())
    gateway.save = AsyncMock()
    return gateway


@pytest.fixture
def session(gateway, schema_client):
    return ReportBuilderSession(gateway=gateway, schema_client=schema_client)


def add_fields(session, *names):
    for name in names:
        session.add_field(TableField(name=name, type="text"))


class TestHumanizeFieldName:
    @pytest.mark.parametrize(
        "name,alias",
        [
            ("total_amount", "Total Amount"),
            ("region", "Region"),
            ("created_at_date", "Created At Date"),
            ("already Spaced", "Already Spaced"),
            ("q1_2024", "Q1 2024"),
        ],
    )
    def test_humanize(self, name, alias):
        assert humanize_field_name(name) == alias


class TestDataSourceSelection:
    @pytest.mark.asyncio
    async def test_load_tables(self, session):
        tables = await session.load_tables()
        assert tables[0].table_name == "form_sales"
        assert tables[0].record_count == 42

    @pytest.mark.asyncio
    async def test_load_tables_failure_sets_error(self, session, schema_client):
        schema_client.list_tables.side_effect = ExternalAPIError("schema", "Forbidden", status_code=403)

        assert await session.load_tables() == []
        assert session.error == "Forbidden"

    @pytest.mark.asyncio
    async def test_select_data_source(self, session, schema_client):
        await session.select_data_source("form_sales", "SALES", "f-1")

        assert len(session.draft.data_sources) == 1
        source = session.draft.data_sources[0]
        assert (source.alias, source.table_name, source.form_code, source.form_id) == ("data", "form_sales", "SALES", "f-1")
        assert [field.name for field in session.table_fields] == ["region", "total_amount", "created_at"]
        assert session.step == BuilderStep.FIELDS
        schema_client.list_fields.assert_awaited_once_with("form_sales")

    @pytest.mark.asyncio
    async def test_select_replaces_previous_source(self, session):
        await session.select_data_source("form_sales", "SALES", "f-1")
        await session.select_data_source("form_orders", "ORDERS", "f-2")

        assert [source.table_name for source in session.draft.data_sources] == ["form_orders"]

    @pytest.mark.asyncio
    async def test_field_fetch_failure_still_advances(self, session, schema_client):
        schema_client.list_fields.side_effect = ExternalAPIError("schema", "Table not found", status_code=404)

        await session.select_data_source("form_missing")

        assert session.error == "Table not found"
        assert session.table_fields == []
        assert session.step == BuilderStep.FIELDS


class TestFieldOperations:
    def test_add_field(self, session):
        session.add_field(TableField(name="total_amount", type="number"))

        field = session.draft.fields[0]
        assert field.field_name == "total_amount"
        assert field.alias == "Total Amount"
        assert field.data_source == "data"
        assert field.data_type == "number"
        assert field.is_visible is True
        assert field.order == 1

    def test_add_field_from_dict(self, session):
        session.add_field({"name": "region", "type": "text"})
        assert session.draft.fields[0].alias == "Region"

    def test_add_field_appends_with_next_order(self, session):
        add_fields(session, "a", "b", "c")
        assert [field.order for field in session.draft.fields] == [1, 2, 3]

    def test_duplicate_field_is_noop(self, session):
        add_fields(session, "region", "region")
        assert len(session.draft.fields) == 1

    def test_remove_field_does_not_renumber(self, session):
        add_fields(session, "a", "b", "c")

        session.remove_field(0)

        assert [field.field_name for field in session.draft.fields] == ["b", "c"]
        assert [field.order for field in session.draft.fields] == [2, 3]

    def test_remove_field_out_of_range_is_noop(self, session):
        add_fields(session, "a")
        before = session.draft.model_dump()

        session.remove_field(5)
        session.remove_field(-1)

        assert session.draft.model_dump() == before

    def test_remove_field_leaves_other_entries_untouched(self, session):
        add_fields(session, "a", "b", "c")
        survivors = [session.draft.fields[0].model_dump(), session.draft.fields[2].model_dump()]

        session.remove_field(1)

        assert [field.model_dump() for field in session.draft.fields] == survivors

    def test_move_field_renumbers(self, session):
        add_fields(session, "a", "b", "c", "d")
        session.remove_field(1)

        session.move_field(2, 0)

        assert [field.field_name for field in session.draft.fields] == ["d", "a", "c"]
        assert [field.order for field in session.draft.fields] == [1, 2, 3]

    def test_move_field_past_end_appends(self, session):
        add_fields(session, "a", "b", "c")

        session.move_field(0, 10)

        assert [field.field_name for field in session.draft.fields] == ["b", "c", "a"]
        assert [field.order for field in session.draft.fields] == [1, 2, 3]

    def test_move_field_invalid_source_is_noop(self, session):
        add_fields(session, "a", "b")
        session.move_field(7, 0)
        assert [field.field_name for field in session.draft.fields] == ["a", "b"]

    def test_update_field_alias(self, session):
        add_fields(session, "total_amount")
        session.update_field_alias(0, "Revenue")
        session.update_field_alias(3, "Ignored")
        assert session.draft.fields[0].alias == "Revenue"


class TestFilterAndSortOperations:
    def test_add_filter(self, session):
        session.add_filter("region", "eq", "North")

        report_filter = session.draft.filters[0]
        assert report_filter.operator == FilterOperator.EQ
        assert report_filter.value == "North"
        assert report_filter.logical_op == LogicalOperator.AND
        assert report_filter.group is None
        assert report_filter.data_source == "data"

    def test_add_relative_date_filter(self, session):
        session.add_filter("created_at", FilterOperator.THIS_MONTH)
        assert session.draft.filters[0].value is None

    def test_add_filter_rejects_unknown_operator(self, session):
        with pytest.raises(ValueError):
            session.add_filter("region", "roughly", "North")

    def test_add_then_remove_filter_restores_filters(self, session):
        session.add_filter("total_amount", "gt", 100)
        before = [f.model_dump() for f in session.draft.filters]

        session.add_filter("region", "eq", "X")
        session.remove_filter(1)

        assert [f.model_dump() for f in session.draft.filters] == before

    def test_remove_filter_out_of_range_is_noop(self, session):
        session.remove_filter(0)
        assert session.draft.filters == []

    def test_sorting(self, session):
        session.add_sort("region")
        session.add_sort("total_amount", "DESC")
        session.add_sort("region", "DESC")

        assert [(s.field_name, s.direction, s.order) for s in session.draft.sorting] == [
            ("region", SortDirection.ASC, 1),
            ("total_amount", SortDirection.DESC, 2),
        ]

        session.remove_sort(0)
        assert [(s.field_name, s.order) for s in session.draft.sorting] == [("total_amount", 1)]


class TestConfiguration:
    def test_set_report_type_advances_to_configuration(self, session):
        session.set_report_type("chart")
        assert session.draft.report_type == ReportType.CHART
        assert session.step == BuilderStep.CONFIGURATION

    def test_chart_type_restored_when_switching_to_chart(self, session):
        session.draft.chart_type = None
        session.set_report_type(ReportType.CHART)
        assert session.draft.chart_type == ChartType.BAR

    def test_set_chart_type(self, session):
        session.set_chart_type("doughnut")
        assert session.draft.chart_type == ChartType.DOUGHNUT

    def test_set_details(self, session):
        session.set_details(name="Sales by Region", category="Sales")
        session.set_details(description="Monthly totals")

        assert session.draft.name == "Sales by Region"
        assert session.draft.category == "Sales"
        assert session.draft.description == "Monthly totals"


class TestPreviewAndSave:
    @pytest.mark.asyncio
    async def test_preview_success(self, session, gateway):
        result = ReportResult.model_validate({"headers": [{"key": "a", "label": "A"}], "data": [{"a": 1}]})
        gateway.preview.return_value = result

        assert await session.preview() is result
        assert session.preview_result is result
        assert session.step == BuilderStep.PREVIEW
        assert session.loading is False
        gateway.preview.assert_awaited_once_with(session.draft)

    @pytest.mark.asyncio
    async def test_preview_validation_error_becomes_error(self, session, gateway):
        gateway.preview.side_effect = ValidationError("Please select at least one field", field="fields")

        assert await session.preview() is None
        assert session.error == "Please select at least one field"
        assert session.step == BuilderStep.DATA_SOURCE
        assert session.loading is False

    @pytest.mark.asyncio
    async def test_preview_server_error_becomes_error(self, session, gateway):
        gateway.preview.side_effect = ExternalAPIError("reports", "Execution failed: division by zero", status_code=500)

        await session.preview()

        assert session.error == "Execution failed: division by zero"

    @pytest.mark.asyncio
    async def test_malformed_backend_result_becomes_error(
        self, schema_client, mock_report_client, test_settings, draft_with_field
    ):
        gateway = ReportExecutionGateway(client=mock_report_client, settings=test_settings)
        session = ReportBuilderSession(gateway=gateway, schema_client=schema_client)
        session.draft = draft_with_field
        mock_report_client.create_report.return_value = {"report": {"id": "tmp-1"}}
        mock_report_client.execute_report.return_value = {"result": {"headers": [{"key": "a"}], "data": [None]}}

        assert await session.preview() is None
        assert session.error == "Invalid response format, expected ReportResult"
        assert session.preview_result is None
        assert session.loading is False

    @pytest.mark.asyncio
    async def test_preview_clears_previous_error(self, session):
        session.error = "old"
        await session.preview()
        assert session.error == ""

    @pytest.mark.asyncio
    async def test_in_flight_guard(self, session, gateway):
        session.loading = True

        assert await session.preview() is None
        assert await session.save() is None

        gateway.preview.assert_not_awaited()
        gateway.save.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_save_success(self, session, gateway):
        saved = TableReportDefinition(id="r-1", code="sales", name="Sales")
        gateway.save.return_value = saved

        assert await session.save() is saved
        assert session.saved_report is saved

    @pytest.mark.asyncio
    async def test_save_failure_sets_error(self, session, gateway):
        gateway.save.side_effect = ValidationError("Please enter a report name", field="name")

        assert await session.save() is None
        assert session.error == "Please enter a report name"


class TestBuildDefinition:
    def test_table_definition(self, draft_with_field):
        definition = build_definition(draft_with_field, "monthly_sales", business_vertical_id="bv-1")

        assert isinstance(definition, TableReportDefinition)
        assert definition.code == "monthly_sales"
        assert definition.name == "Monthly Sales"
        assert definition.business_vertical_id == "bv-1"

    def test_chart_definition_defaults_to_bar(self, draft_with_field):
        draft = draft_with_field.model_copy(update={"report_type": ReportType.CHART, "chart_type": None})

        definition = build_definition(draft, "monthly_sales")

        assert isinstance(definition, ChartReportDefinition)
        assert definition.chart_type == ChartType.BAR

    def test_name_override(self, draft_with_field):
        assert build_definition(draft_with_field, "preview_1", name="preview_1").name == "preview_1"

    def test_invalid_draft_raises_validation_error(self):
        draft = ReportDraft(name="Orphan", fields=[{"field_name": "x", "alias": "X", "order": 1}])

        with pytest.raises(ValidationError) as exc_info:
            build_definition(draft, "orphan")

        assert "undeclared data source 'data'" in exc_info.value.message

    def test_missing_name_raises_validation_error(self, draft_with_field):
        draft = draft_with_field.model_copy(update={"name": ""})
        with pytest.raises(ValidationError):
            build_definition(draft, "code")
