"""Supabase-backed payroll repository."""

from dataclasses import dataclass
from uuid import UUID

from supabase import Client

from carcare_backoffice.adapters.row_parsing import (
    parse_datetime,
    parse_float,
    parse_uuid,
    to_json_value,
)
from carcare_backoffice.domain.payroll import PayrollRecord
from carcare_backoffice.domain.reports import RecordFilters
from carcare_backoffice.services.payroll import PayrollRepository

_AMOUNT_FIELDS = (
    "total_hours",
    "hourly_pay",
    "holiday_bonus",
    "hourly_pay_gross",
    "gross_salary",
    "hourly_deduction",
    "monthly_deduction",
    "monthly_pay",
)


@dataclass
class SupabasePayrollRepository(PayrollRepository):
    """Supabase implementation for payroll statements."""

    client: Client

    def create_payroll(self, payload: dict[str, object]) -> PayrollRecord:
        """Insert a payroll row and return it."""
        row = {key: to_json_value(value) for key, value in payload.items()}
        response = self.client.table("payrolls").insert(row).execute()
        if not response.data:
            raise RuntimeError("Failed to create payroll")
        return _parse_payroll(response.data[0])

    def get_payroll(self, payroll_id: UUID) -> PayrollRecord | None:
        """Return a payroll by id, if present."""
        response = (
            self.client.table("payrolls")
            .select("*")
            .eq("id", str(payroll_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_payroll(response.data[0])

    def list_payrolls(
        self,
        filters: RecordFilters | None,
        user_id: UUID | None,
        offset: int,
        limit: int,
    ) -> tuple[list[PayrollRecord], int]:
        """Return a page of payrolls by creation desc and the total count."""
        request = self.client.table("payrolls").select("*", count="exact")
        if filters is not None:
            request = request.gte(
                "created_at", filters.date_range.start.isoformat()
            ).lt("created_at", filters.date_range.end.isoformat())
        if user_id is not None:
            request = request.eq("user_id", str(user_id))
        response = (
            request.order("created_at", desc=True)
            .range(offset, offset + limit - 1)
            .execute()
        )
        payrolls = [_parse_payroll(row) for row in response.data or []]
        return payrolls, response.count or 0

    def user_ids_for_month(self, month_year: str) -> set[UUID]:
        """Return ids of users that already have a payroll for the month."""
        response = (
            self.client.table("payrolls")
            .select("user_id")
            .eq("month_year", month_year)
            .execute()
        )
        return {UUID(str(row["user_id"])) for row in response.data or []}

    def delete_payroll(self, payroll_id: UUID) -> bool:
        """Delete a payroll row."""
        response = (
            self.client.table("payrolls").delete().eq("id", str(payroll_id)).execute()
        )
        return bool(response.data)


def _parse_payroll(row: dict[str, object]) -> PayrollRecord:
    amounts = {name: parse_float(row.get(name)) for name in _AMOUNT_FIELDS}
    return PayrollRecord(
        id=UUID(str(row["id"])),
        user_id=UUID(str(row["user_id"])),
        month_year=str(row["month_year"]),
        employer=row.get("employer") or {},
        worker=row.get("worker") or {},
        place_date=row.get("place_date"),
        canton=row.get("canton"),
        billing_procedure=row.get("billing_procedure"),
        taxes=row.get("taxes") or {},
        created_by=parse_uuid(row.get("created_by")),
        created_at=parse_datetime(row.get("created_at")),
        **amounts,
    )
