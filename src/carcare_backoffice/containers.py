"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import timedelta
from zoneinfo import ZoneInfo

from supabase import create_client

from carcare_backoffice.adapters.mail_client import HttpxMailClient, MailClient
from carcare_backoffice.adapters.supabase_location_repository import (
    SupabaseLocationRepository,
)
from carcare_backoffice.adapters.supabase_payroll_repository import (
    SupabasePayrollRepository,
)
from carcare_backoffice.adapters.supabase_service_record_repository import (
    SupabaseServiceRecordRepository,
)
from carcare_backoffice.adapters.supabase_session_repository import (
    SupabaseWorkSessionRepository,
)
from carcare_backoffice.adapters.supabase_today_plan_repository import (
    SupabaseTodayPlanRepository,
)
from carcare_backoffice.adapters.supabase_user_repository import SupabaseUserRepository
from carcare_backoffice.config import Settings
from carcare_backoffice.domain.locations import ServiceKind
from carcare_backoffice.services.locations import LocationService
from carcare_backoffice.services.payroll import PayrollService
from carcare_backoffice.services.reports import ReportService
from carcare_backoffice.services.service_records import ServiceRecordService
from carcare_backoffice.services.sessions import SessionService
from carcare_backoffice.services.today_plan import TodayPlanService
from carcare_backoffice.services.users import UserService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    mail_client: MailClient
    user_service: UserService
    location_service: LocationService
    session_service: SessionService
    service_record_services: dict[ServiceKind, ServiceRecordService]
    report_service: ReportService
    payroll_service: PayrollService
    today_plan_service: TodayPlanService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    timezone = ZoneInfo(resolved_settings.business_timezone)
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    user_repository = SupabaseUserRepository(supabase_client)
    location_repository = SupabaseLocationRepository(supabase_client)
    session_repository = SupabaseWorkSessionRepository(supabase_client)
    record_repositories = {
        kind: SupabaseServiceRecordRepository(supabase_client, kind)
        for kind in ServiceKind
    }
    payroll_repository = SupabasePayrollRepository(supabase_client)
    mail_client = HttpxMailClient.create(
        api_url=resolved_settings.mail_api_url,
        api_key=resolved_settings.mail_api_key,
        sender=resolved_settings.mail_sender,
    )

    duplicate_window = timedelta(hours=resolved_settings.duplicate_window_hours)
    service_record_services = {
        kind: ServiceRecordService(
            kind=kind,
            repository=repository,
            locations=location_repository,
            users=user_repository,
            duplicate_window=duplicate_window,
        )
        for kind, repository in record_repositories.items()
    }
    report_service = ReportService(
        sessions=session_repository,
        records=record_repositories,
        users=user_repository,
        locations=location_repository,
        timezone=timezone,
        page_size=resolved_settings.page_size,
        pay_period_start_day=resolved_settings.pay_period_start_day,
    )
    payroll_service = PayrollService(
        repository=payroll_repository,
        users=user_repository,
        sessions=session_repository,
        mail_client=mail_client,
        timezone=timezone,
        page_size=resolved_settings.page_size,
        pay_period_start_day=resolved_settings.pay_period_start_day,
    )

    async def close_resources() -> None:
        await mail_client.close()

    return AppContainer(
        settings=resolved_settings,
        mail_client=mail_client,
        user_service=UserService(user_repository, page_size=resolved_settings.page_size),
        location_service=LocationService(location_repository),
        session_service=SessionService(session_repository, user_repository, timezone),
        service_record_services=service_record_services,
        report_service=report_service,
        payroll_service=payroll_service,
        today_plan_service=TodayPlanService(
            SupabaseTodayPlanRepository(supabase_client), user_repository, timezone
        ),
        close_resources=close_resources,
    )
