"""
Report Execution Gateway

Turns a draft or a stored definition into a ReportResult through the report
execution service. Every call is exactly one backend round trip (two for a
persisted preview), nothing is cached, and service errors propagate to the
caller unchanged.
"""

import re
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple, Union

from pydantic import ValidationError as PydanticValidationError

from core.config import Settings, get_settings
from core.exceptions import ValidationError
from core.logging import get_logger
from d0_gateway.exceptions import InvalidResponseError
from d0_gateway.providers.reports import ReportServiceClient

from .builder import build_definition
from .models import (
    BaseReportDefinition,
    ExecutionResponse,
    ExportArtifact,
    ExportFormat,
    ReportDraft,
    ReportFilter,
    ReportResult,
    ReportSchedule,
    parse_report_definition,
)

logger = get_logger(__name__, domain="d1")

# Server-managed fields never sent back in a create payload
_READ_ONLY_FIELDS = {"id", "created_at", "updated_at", "is_favorite"}


def merge_filters(stored: List[ReportFilter], runtime: Optional[List[ReportFilter]]) -> List[ReportFilter]:
    """
    Overlay runtime filters on a definition's stored filters

    A runtime filter replaces the stored filter on the same
    (data_source, field_name); runtime filters on other fields are appended
    in the order given. Several runtime filters on one field collapse to the
    last of them.
    """
    if not runtime:
        return list(stored)

    overrides: Dict[Tuple[str, str], ReportFilter] = {}
    for f in runtime:
        overrides[(f.data_source, f.field_name)] = f

    merged = [overrides.pop((f.data_source, f.field_name), f) for f in stored]
    merged.extend(overrides.values())
    return merged


def derive_report_code(name: str) -> str:
    """Lower-case the name and collapse whitespace runs to underscores"""
    return re.sub(r"\s+", "_", name.lower())


class ReportExecutionGateway:
    """Report execution facade over ReportServiceClient"""

    def __init__(self, client: Optional[ReportServiceClient] = None, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.client = client or ReportServiceClient()

    def _payload(self, definition: BaseReportDefinition) -> Dict[str, Any]:
        return definition.model_dump(mode="json", exclude=_READ_ONLY_FIELDS, exclude_none=True)

    def _report_from(self, response: Dict[str, Any], fallback: Optional[Dict[str, Any]] = None) -> BaseReportDefinition:
        report = response.get("report")
        if not isinstance(report, dict):
            raise InvalidResponseError(self.client.provider, expected_format="{report: ReportDefinition}")
        try:
            return parse_report_definition({**(fallback or {}), **report})
        except PydanticValidationError as e:
            raise InvalidResponseError(
                self.client.provider, expected_format="ReportDefinition", received_data=str(report)
            ) from e

    def _result_from(self, response: Dict[str, Any]) -> ReportResult:
        result = response.get("result")
        if not isinstance(result, dict):
            raise InvalidResponseError(self.client.provider, expected_format="{result: ReportResult}")
        try:
            return ReportResult.model_validate(result)
        except PydanticValidationError as e:
            raise InvalidResponseError(
                self.client.provider, expected_format="ReportResult", received_data=str(result)
            ) from e

    def _schedule_from(self, data: Any) -> ReportSchedule:
        try:
            return ReportSchedule.model_validate(data)
        except PydanticValidationError as e:
            raise InvalidResponseError(
                self.client.provider, expected_format="ReportSchedule", received_data=str(data)
            ) from e

    async def preview(self, draft: ReportDraft) -> ReportResult:
        """
        Execute an unsaved draft once

        In ``persist`` mode the draft is stored as a throwaway definition
        under a synthetic ``preview_<epoch ms>`` code and then executed. In
        ``dry_run`` mode the definition body is posted to the stateless
        preview endpoint and nothing is stored.

        Raises:
            ValidationError: When no field is selected or the draft is invalid
            ExternalAPIError: When the service call fails
        """
        if not draft.fields:
            raise ValidationError("Please select at least one field", field="fields")

        code = f"preview_{int(time.time() * 1000)}"
        definition = build_definition(
            draft,
            code,
            name=draft.name or code,
            business_vertical_id=self.settings.business_vertical_id,
        )
        payload = self._payload(definition)

        if self.settings.preview_mode == "dry_run":
            logger.debug(f"Dry-run preview {code}")
            return self._result_from(await self.client.preview_report(payload))

        created = self._report_from(await self.client.create_report(payload), fallback=payload)
        logger.info(f"Stored preview definition {created.id} ({code})")
        return self._result_from(await self.client.execute_report(created.id))

    async def save(self, draft: ReportDraft) -> BaseReportDefinition:
        """
        Persist a draft permanently

        Returns:
            The stored definition, including its server-assigned id

        Raises:
            ValidationError: When the name is empty or the draft is invalid
        """
        if not draft.name:
            raise ValidationError("Please enter a report name", field="name")

        definition = build_definition(
            draft,
            derive_report_code(draft.name),
            business_vertical_id=self.settings.business_vertical_id,
        )
        payload = self._payload(definition)
        return self._report_from(await self.client.create_report(payload), fallback=payload)

    async def execute(
        self,
        report_id: str,
        filters: Optional[List[ReportFilter]] = None,
        page: Optional[int] = None,
        page_size: Optional[int] = None,
    ) -> ExecutionResponse:
        """
        Execute a stored definition with optional runtime filters

        When the service does not report the filters it applied,
        ``metadata.filters_applied`` is filled with the stored filters
        overlaid by the runtime ones.
        """
        runtime = [f.model_dump(mode="json") for f in filters] if filters else None
        response = await self.client.execute_report(report_id, filters=runtime, page=page, page_size=page_size)

        definition = self._report_from(response)
        result = self._result_from(response)
        if result.metadata.filters_applied is None:
            result.metadata.filters_applied = merge_filters(definition.filters, filters)

        return ExecutionResponse(definition=definition, result=result)

    async def export(self, report_id: str, format: Union[ExportFormat, str]) -> ExportArtifact:
        """Download a rendered artifact; the content is passed through untouched"""
        export_format = ExportFormat(format)
        content = await self.client.export_report(report_id, export_format.value)
        filename = f"report-{report_id}-{datetime.now(timezone.utc).date().isoformat()}.{export_format.value}"
        return ExportArtifact(report_id=report_id, format=export_format, filename=filename, content=content)

    # Pass-throughs

    async def list_reports(self, **params) -> Dict[str, Any]:
        return await self.client.list_reports(**params)

    async def get_report(self, report_id: str) -> BaseReportDefinition:
        response = await self.client.get_report(report_id)
        if "report" not in response:
            response = {"report": response}
        return self._report_from(response)

    async def delete_report(self, report_id: str) -> Dict[str, Any]:
        return await self.client.delete_report(report_id)

    async def clone_report(self, report_id: str, name: Optional[str] = None) -> BaseReportDefinition:
        return self._report_from(await self.client.clone_report(report_id, name))

    async def toggle_favorite(self, report_id: str) -> BaseReportDefinition:
        return self._report_from(await self.client.toggle_favorite(report_id))

    # Schedules

    async def list_schedules(self, report_id: Optional[str] = None) -> List[ReportSchedule]:
        return [self._schedule_from(schedule) for schedule in await self.client.list_schedules(report_id)]

    async def create_schedule(self, schedule: ReportSchedule) -> ReportSchedule:
        payload = schedule.model_dump(mode="json", exclude={"id", "last_run_at", "next_run_at"}, exclude_none=True)
        response = await self.client.create_schedule(payload)
        return self._schedule_from({**payload, **response.get("schedule", response)})

    async def update_schedule(self, schedule_id: str, changes: Dict[str, Any]) -> ReportSchedule:
        response = await self.client.update_schedule(schedule_id, changes)
        return self._schedule_from(response.get("schedule", response))

    async def delete_schedule(self, schedule_id: str) -> Dict[str, Any]:
        return await self.client.delete_schedule(schedule_id)
