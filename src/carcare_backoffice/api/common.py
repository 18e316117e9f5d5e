"""Helpers shared by the API routers."""

from __future__ import annotations

from dataclasses import asdict
from datetime import date
from typing import TYPE_CHECKING
from uuid import UUID

from fastapi import Query, Request
from fastapi.responses import Response

from carcare_backoffice.adapters.spreadsheet_exporter import XLSX_MEDIA_TYPE
from carcare_backoffice.domain.reports import Page, RecordFilters

if TYPE_CHECKING:
    from carcare_backoffice.containers import AppContainer


def get_container(request: Request) -> AppContainer:
    return request.app.state.container


def report_filters(
    request: Request,
    date_from: date | None = Query(default=None, alias="from"),
    date_to: date | None = Query(default=None, alias="to"),
    user_id: UUID | None = None,
    location_id: UUID | None = None,
    search: str | None = None,
) -> RecordFilters:
    """Build listing filters from the shared query parameters."""
    container = get_container(request)
    return container.report_service.build_filters(
        date_from=date_from,
        date_to=date_to,
        user_id=user_id,
        location_id=location_id,
        search=search,
    )


def page_body(page: Page) -> dict[str, object]:
    return asdict(page)


def xlsx_response(content: bytes, filename: str) -> Response:
    """Return workbook bytes as a download."""
    return Response(
        content=content,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
