"""
Report Models

Pydantic models for report definitions, execution results and the schema
introspection payloads consumed by the report builder.

Report definitions are a discriminated union keyed by ``report_type``: each
variant carries only the fields relevant to it and validates its data source
references on construction. ``ReportDraft`` is the loosely validated value the
builder mutates before a definition is produced.
"""

from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, model_validator


class ReportType(str, Enum):
    """Report presentation type"""

    TABLE = "table"
    CHART = "chart"
    KPI = "kpi"
    PIVOT = "pivot"


class ChartType(str, Enum):
    """Chart family for chart reports"""

    BAR = "bar"
    LINE = "line"
    PIE = "pie"
    DOUGHNUT = "doughnut"
    AREA = "area"
    SCATTER = "scatter"


class FilterOperator(str, Enum):
    """Filter comparison operators"""

    EQ = "eq"
    NE = "ne"
    GT = "gt"
    GTE = "gte"
    LT = "lt"
    LTE = "lte"
    LIKE = "like"
    IN = "in"
    BETWEEN = "between"
    THIS_MONTH = "this_month"
    THIS_WEEK = "this_week"
    THIS_YEAR = "this_year"
    LAST_MONTH = "last_month"
    LAST_WEEK = "last_week"
    LAST_YEAR = "last_year"

    @property
    def is_relative_date(self) -> bool:
        """Relative date operators are resolved by the backend and take no value"""
        return self.value.startswith(("this_", "last_"))


class LogicalOperator(str, Enum):
    AND = "AND"
    OR = "OR"


class AggregateFunction(str, Enum):
    SUM = "SUM"
    AVG = "AVG"
    COUNT = "COUNT"
    MIN = "MIN"
    MAX = "MAX"


class SortDirection(str, Enum):
    ASC = "ASC"
    DESC = "DESC"


class JoinType(str, Enum):
    INNER = "INNER"
    LEFT = "LEFT"
    RIGHT = "RIGHT"
    FULL = "FULL"


class ExportFormat(str, Enum):
    CSV = "csv"
    XLSX = "xlsx"
    PDF = "pdf"
    JSON = "json"


class ScheduleFrequency(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    CUSTOM = "custom"


class DataSource(BaseModel):
    """Named binding of an alias to an underlying table"""

    alias: str = Field(..., min_length=1, description="Alias referenced by fields, filters and sorting")
    table_name: str = Field(..., description="Backing table")
    form_code: Optional[str] = None
    form_id: Optional[str] = None
    join_type: Optional[JoinType] = None
    join_condition: Optional[str] = None


class ReportField(BaseModel):
    """Selected output column"""

    field_name: str
    alias: str
    data_source: str = Field(default="data", description="Data source alias")
    data_type: Optional[str] = None
    aggregate: Optional[AggregateFunction] = None
    is_visible: bool = True
    order: int = Field(..., description="1-based display position")
    format: Optional[str] = None


class ReportFilter(BaseModel):
    """Filter condition; ``group`` partitions filters into parenthesized expressions"""

    field_name: str
    data_source: str = "data"
    operator: FilterOperator
    value: Any = None
    logical_op: LogicalOperator = LogicalOperator.AND
    group: Optional[int] = None


class ReportSort(BaseModel):
    field_name: str
    data_source: str = "data"
    direction: SortDirection = SortDirection.ASC
    order: int


class ReportDraft(BaseModel):
    """In-memory report under construction

    Only shapes are checked here; references and required fields are
    validated when the draft is turned into a definition.
    """

    name: str = ""
    description: str = ""
    category: str = ""
    report_type: ReportType = ReportType.TABLE
    chart_type: Optional[ChartType] = ChartType.BAR
    chart_config: Dict[str, Any] = Field(default_factory=dict)
    data_sources: List[DataSource] = Field(default_factory=list)
    fields: List[ReportField] = Field(default_factory=list)
    filters: List[ReportFilter] = Field(default_factory=list)
    sorting: List[ReportSort] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    is_public: bool = False


class BaseReportDefinition(BaseModel):
    """Fields shared by every report definition variant"""

    model_config = ConfigDict(extra="ignore")

    id: Optional[str] = None
    code: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    business_vertical_id: Optional[str] = None
    data_sources: List[DataSource] = Field(default_factory=list)
    fields: List[ReportField] = Field(default_factory=list)
    filters: List[ReportFilter] = Field(default_factory=list)
    sorting: List[ReportSort] = Field(default_factory=list)
    is_favorite: bool = False
    category: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    is_public: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @model_validator(mode="after")
    def validate_data_source_references(self):
        aliases = [ds.alias for ds in self.data_sources]
        duplicates = sorted({alias for alias in aliases if aliases.count(alias) > 1})
        if duplicates:
            raise ValueError(f"Duplicate data source aliases: {duplicates}")

        declared = set(aliases)
        for kind, items in (("field", self.fields), ("filter", self.filters), ("sort", self.sorting)):
            for item in items:
                if item.data_source not in declared:
                    raise ValueError(
                        f"{kind} '{item.field_name}' references undeclared data source '{item.data_source}'"
                    )
        return self


class TableReportDefinition(BaseReportDefinition):
    report_type: Literal["table"] = "table"


class ChartReportDefinition(BaseReportDefinition):
    report_type: Literal["chart"] = "chart"
    chart_type: ChartType
    chart_config: Dict[str, Any] = Field(default_factory=dict)


class KpiReportDefinition(BaseReportDefinition):
    report_type: Literal["kpi"] = "kpi"


class PivotReportDefinition(BaseReportDefinition):
    report_type: Literal["pivot"] = "pivot"


ReportDefinition = Annotated[
    Union[TableReportDefinition, ChartReportDefinition, KpiReportDefinition, PivotReportDefinition],
    Field(discriminator="report_type"),
]

_definition_adapter = TypeAdapter(ReportDefinition)


def parse_report_definition(data: Dict[str, Any]) -> BaseReportDefinition:
    """Build the definition variant matching ``data["report_type"]``"""
    return _definition_adapter.validate_python(data)


class ReportHeader(BaseModel):
    key: str
    label: str
    data_type: Optional[str] = None
    format: Optional[str] = None


class ReportMetadata(BaseModel):
    total_rows: int = 0
    execution_time_ms: float = 0
    generated_at: Optional[str] = None
    filters_applied: Optional[List[ReportFilter]] = None
    page: Optional[int] = None
    page_size: Optional[int] = None


class ReportResult(BaseModel):
    """Tabular execution result"""

    headers: List[ReportHeader] = Field(default_factory=list)
    data: List[Dict[str, Any]] = Field(default_factory=list)
    metadata: ReportMetadata = Field(default_factory=ReportMetadata)

    def normalized(self) -> "ReportResult":
        """Copy with header keys and row keys lower-cased"""
        headers = [header.model_copy(update={"key": header.key.lower()}) for header in self.headers]
        data = [{str(key).lower(): value for key, value in row.items()} for row in self.data]
        return ReportResult(headers=headers, data=data, metadata=self.metadata)


class ExecutionResponse(BaseModel):
    definition: ReportDefinition
    result: ReportResult


class ExportArtifact(BaseModel):
    report_id: str
    format: ExportFormat
    filename: str
    content: bytes


class FormTable(BaseModel):
    """Table exposed by the schema introspection service"""

    table_name: str
    form_code: str
    form_id: str
    form_title: str
    record_count: Optional[int] = None


class TableField(BaseModel):
    """Typed column of a form table"""

    name: str
    type: str
    label: Optional[str] = None
    is_required: bool = False
    is_unique: bool = False


class ReportSchedule(BaseModel):
    id: Optional[str] = None
    report_id: str
    name: str
    frequency: ScheduleFrequency
    cron_expression: Optional[str] = None
    format: ExportFormat = ExportFormat.PDF
    recipients: List[str] = Field(default_factory=list)
    is_active: bool = True
    last_run_at: Optional[str] = None
    next_run_at: Optional[str] = None
