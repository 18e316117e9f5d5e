"""Car wash and car transfer endpoints."""

from typing import Literal
from uuid import UUID

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse, Response

from carcare_backoffice.adapters.spreadsheet_exporter import (
    TRANSFER_METHOD_LABELS,
    TRANSFER_TYPE_LABELS,
    WASH_TYPE_LABELS,
    build_workbook,
)
from carcare_backoffice.api.auth import get_principal, require_roles
from carcare_backoffice.api.common import (
    get_container,
    page_body,
    report_filters,
    xlsx_response,
)
from carcare_backoffice.api.schemas import ServiceRecordRequest
from carcare_backoffice.domain.locations import ServiceKind
from carcare_backoffice.domain.models import Principal
from carcare_backoffice.domain.reports import RecordFilters
from carcare_backoffice.domain.service_records import ServiceRequest
from carcare_backoffice.services.permissions import (
    ADMIN_ONLY,
    ADMIN_OR_MANAGER,
    ensure_self_or_roles,
)

SUSPECTED_MESSAGE = (
    "This license plate was already recorded in the last hours. "
    "Submit again to confirm."
)

_WASH_COLUMNS = (
    ("User", "user"),
    ("Date", "date"),
    ("License plate", "license_plate"),
    ("Car type", "car_type"),
    ("Wash type", "subtype_label"),
    ("Location", "location"),
    ("Price", "final_price"),
)
_TRANSFER_COLUMNS = (
    ("User", "user"),
    ("Date", "date"),
    ("License plate", "license_plate"),
    ("Car type", "car_type"),
    ("Transfer type", "subtype_label"),
    ("Method", "method_label"),
    ("Place", "transfer_place"),
    ("Distance", "transfer_distance"),
    ("Location", "location"),
    ("Price", "final_price"),
)


def build_service_record_router(kind: ServiceKind) -> APIRouter:
    """Create the router for one kind of service record."""
    name = f"car-{kind.value}"
    router = APIRouter(prefix=f"/{name}", tags=[name])

    def service(request: Request):
        return get_container(request).service_record_services[kind]

    @router.post("/", status_code=status.HTTP_201_CREATED)
    async def submit(
        body: ServiceRecordRequest,
        request: Request,
        principal: Principal = Depends(get_principal),
    ) -> dict[str, object]:
        """Create a record, or ask for confirmation of a likely duplicate."""
        outcome = service(request).submit(principal, _to_request(body))
        if outcome.suspected:
            return JSONResponse(
                status_code=status.HTTP_200_OK,
                content={"suspected": True, "msg": SUSPECTED_MESSAGE},
            )
        report_service = get_container(request).report_service
        return {"record": report_service.describe_record(principal, outcome.record)}

    @router.get("/")
    async def list_records(
        request: Request,
        page: int = 1,
        filters: RecordFilters = Depends(report_filters),
        principal: Principal = Depends(require_roles(ADMIN_OR_MANAGER)),
    ) -> dict[str, object]:
        """Return a page of records in the date range."""
        report_service = get_container(request).report_service
        return page_body(
            report_service.list_service_records(principal, kind, filters, page)
        )

    @router.get("/groups", dependencies=[Depends(require_roles(ADMIN_OR_MANAGER))])
    async def groups(
        request: Request,
        by: Literal["user", "location"] = "user",
        filters: RecordFilters = Depends(report_filters),
    ) -> dict[str, object]:
        """Return counts and price sums per user or location."""
        report_service = get_container(request).report_service
        summary = report_service.group_totals(kind, filters, by)
        return {
            "groups": summary.groups,
            "overall": {"count": summary.count, "total": summary.total},
        }

    @router.get("/excel")
    async def export_excel(
        request: Request,
        filters: RecordFilters = Depends(report_filters),
        principal: Principal = Depends(require_roles(ADMIN_OR_MANAGER)),
    ) -> Response:
        """Download the records in the date range as a workbook."""
        report_service = get_container(request).report_service
        rows, totals = report_service.export_service_rows(principal, kind, filters)
        content = build_workbook(
            name,
            _WASH_COLUMNS if kind is ServiceKind.WASH else _TRANSFER_COLUMNS,
            [_with_labels(row, kind) for row in rows],
            {"final_price": totals["total_price"]},
        )
        return xlsx_response(content, f"{name}.xlsx")

    @router.get("/user/{user_id}")
    async def user_records(
        user_id: UUID,
        request: Request,
        page: int = 1,
        filters: RecordFilters = Depends(report_filters),
        principal: Principal = Depends(get_principal),
    ) -> dict[str, object]:
        """Return one employee's records in the date range."""
        ensure_self_or_roles(principal, user_id)
        report_service = get_container(request).report_service
        scoped = RecordFilters(
            date_range=filters.date_range,
            user_id=user_id,
            location_id=filters.location_id,
            search=filters.search,
        )
        return page_body(
            report_service.list_service_records(principal, kind, scoped, page)
        )

    @router.get("/location/{location_id}")
    async def location_records(
        location_id: UUID,
        request: Request,
        page: int = 1,
        filters: RecordFilters = Depends(report_filters),
        principal: Principal = Depends(require_roles(ADMIN_OR_MANAGER)),
    ) -> dict[str, object]:
        """Return the records of one location in the date range."""
        report_service = get_container(request).report_service
        scoped = RecordFilters(
            date_range=filters.date_range,
            user_id=filters.user_id,
            location_id=location_id,
            search=filters.search,
        )
        return page_body(
            report_service.list_service_records(principal, kind, scoped, page)
        )

    @router.get("/{record_id}")
    async def get_record(
        record_id: UUID,
        request: Request,
        principal: Principal = Depends(get_principal),
    ) -> dict[str, object]:
        record = service(request).get(record_id)
        ensure_self_or_roles(principal, record.user_id)
        report_service = get_container(request).report_service
        return {"record": report_service.describe_record(principal, record)}

    @router.patch("/{record_id}")
    async def update_record(
        record_id: UUID,
        body: ServiceRecordRequest,
        request: Request,
        principal: Principal = Depends(get_principal),
    ) -> dict[str, object]:
        """Edit a record, re-checking duplicates around its timestamp."""
        outcome = service(request).update(principal, record_id, _to_request(body))
        if outcome.suspected:
            return {"suspected": True, "msg": SUSPECTED_MESSAGE}
        report_service = get_container(request).report_service
        return {"record": report_service.describe_record(principal, outcome.record)}

    @router.patch(
        "/{record_id}/suspect", dependencies=[Depends(require_roles(ADMIN_ONLY))]
    )
    async def clear_suspect(
        record_id: UUID,
        request: Request,
        principal: Principal = Depends(get_principal),
    ) -> dict[str, object]:
        """Mark a reviewed record as legitimate."""
        record = service(request).clear_suspect(record_id)
        report_service = get_container(request).report_service
        return {"record": report_service.describe_record(principal, record)}

    @router.delete(
        "/{record_id}", dependencies=[Depends(require_roles(ADMIN_OR_MANAGER))]
    )
    async def delete_record(record_id: UUID, request: Request) -> dict[str, str]:
        service(request).delete(record_id)
        return {"msg": f"Success! Car {kind.value} removed."}

    @router.delete(
        "/{record_id}/permanent", dependencies=[Depends(require_roles(ADMIN_ONLY))]
    )
    async def purge_record(record_id: UUID, request: Request) -> dict[str, str]:
        service(request).purge(record_id)
        return {"msg": f"Success! Car {kind.value} deleted permanently."}

    return router


def _to_request(body: ServiceRecordRequest) -> ServiceRequest:
    return ServiceRequest(
        user_id=body.user_id,
        location_id=body.location_id,
        license_plate=body.license_plate,
        car_type=body.car_type,
        subtype=body.subtype,
        transfer_method=body.transfer_method,
        transfer_distance=body.transfer_distance,
        transfer_place=body.transfer_place,
        override_price=body.override_price,
        accept_suspect=body.accept_suspect,
    )


def _with_labels(row: dict[str, object], kind: ServiceKind) -> dict[str, object]:
    labels = WASH_TYPE_LABELS if kind is ServiceKind.WASH else TRANSFER_TYPE_LABELS
    subtype = str(row.get("subtype") or "")
    method = str(row.get("transfer_method") or "")
    return {
        **row,
        "subtype_label": labels.get(subtype, subtype),
        "method_label": TRANSFER_METHOD_LABELS.get(method, method),
    }


car_wash_router = build_service_record_router(ServiceKind.WASH)
car_transfer_router = build_service_record_router(ServiceKind.TRANSFER)
