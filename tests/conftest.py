"""Shared test fixtures."""

from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from uuid import UUID, uuid4
from zoneinfo import ZoneInfo

import pytest

from carcare_backoffice.adapters.mail_client import MailAttachment, MailClient
from carcare_backoffice.config import Settings
from carcare_backoffice.containers import AppContainer
from carcare_backoffice.domain.locations import (
    CarTypePrices,
    LocationRecord,
    LocationType,
    ServiceKind,
    TransferType,
    WashType,
)
from carcare_backoffice.domain.models import Lifecycle, Principal, Role, UserRecord
from carcare_backoffice.domain.payroll import PayrollRecord
from carcare_backoffice.domain.reports import RecordFilters
from carcare_backoffice.domain.service_records import ServiceRecord
from carcare_backoffice.domain.sessions import WorkSessionRecord
from carcare_backoffice.domain.today_plan import TodayPlanRecord
from carcare_backoffice.errors import ConflictError, NotFoundError
from carcare_backoffice.services.locations import LocationRepository, LocationService
from carcare_backoffice.services.payroll import PayrollRepository, PayrollService
from carcare_backoffice.services.reports import ReportService
from carcare_backoffice.services.service_records import (
    ServiceRecordRepository,
    ServiceRecordService,
)
from carcare_backoffice.services.sessions import SessionService, WorkSessionRepository
from carcare_backoffice.services.today_plan import TodayPlanRepository, TodayPlanService
from carcare_backoffice.services.users import UserQuery, UserRepository, UserService

ZURICH = ZoneInfo("Europe/Zurich")


@dataclass
class InMemoryUserRepository(UserRepository):
    """In-memory user repository for tests."""

    users: dict[UUID, UserRecord] = field(default_factory=dict)

    def add(
        self,
        first_name: str = "Anna",
        last_name: str = "Muster",
        role: Role = Role.USER,
        hourly_pay: float = 20.0,
        **extra: object,
    ) -> UserRecord:
        email = extra.pop("email", f"{first_name}.{last_name}.{len(self.users)}@x.ch")
        return self.create_user(
            {
                "first_name": first_name,
                "last_name": last_name,
                "email": str(email).lower(),
                "role": role,
                "hourly_pay": hourly_pay,
                **extra,
            }
        )

    def create_user(self, payload: dict[str, object]) -> UserRecord:
        now = datetime.now(tz=UTC)
        user = UserRecord(id=uuid4(), created_at=now, updated_at=now, **payload)
        self.users[user.id] = user
        return user

    def get_user(self, user_id: UUID) -> UserRecord | None:
        return self.users.get(user_id)

    def get_by_email(self, email: str) -> UserRecord | None:
        return next((user for user in self.users.values() if user.email == email), None)

    def get_users_by_ids(self, user_ids: list[UUID]) -> list[UserRecord]:
        return [self.users[user_id] for user_id in user_ids if user_id in self.users]

    def list_users(
        self, query: UserQuery, offset: int, limit: int
    ) -> tuple[list[UserRecord], int]:
        lifecycle = Lifecycle.DELETED if query.deleted else Lifecycle.ACTIVE
        users = [user for user in self.users.values() if user.lifecycle is lifecycle]
        if not query.deleted and query.active is not None:
            users = [user for user in users if user.active is query.active]
        if query.roles:
            users = [user for user in users if user.role in query.roles]
        if query.search:
            term = query.search.lower()
            users = [
                user
                for user in users
                if term in user.first_name.lower() or term in user.last_name.lower()
            ]
        users.sort(key=lambda user: user.updated_at, reverse=True)
        return users[offset : offset + limit], len(users)

    def update_user(self, user_id: UUID, payload: dict[str, object]) -> UserRecord:
        if user_id not in self.users:
            raise NotFoundError("Not found user.")
        user = replace(self.users[user_id], updated_at=datetime.now(tz=UTC), **payload)
        self.users[user_id] = user
        return user

    def delete_user(self, user_id: UUID) -> bool:
        return self.users.pop(user_id, None) is not None


@dataclass
class InMemoryLocationRepository(LocationRepository):
    """In-memory location repository for tests."""

    locations: dict[UUID, LocationRecord] = field(default_factory=dict)
    users: InMemoryUserRepository | None = None

    def create_location(self, payload: dict[str, object]) -> LocationRecord:
        location = LocationRecord(id=uuid4(), created_at=datetime.now(tz=UTC), **payload)
        self.locations[location.id] = location
        return location

    def get_location(self, location_id: UUID) -> LocationRecord | None:
        return self.locations.get(location_id)

    def list_locations(self) -> list[LocationRecord]:
        return sorted(self.locations.values(), key=lambda location: location.name)

    def count_users_by_location(self) -> dict[UUID, int]:
        counts: dict[UUID, int] = {}
        if self.users is None:
            return counts
        for user in self.users.users.values():
            if user.location_id is not None and user.lifecycle is Lifecycle.ACTIVE:
                counts[user.location_id] = counts.get(user.location_id, 0) + 1
        return counts

    def update_location(
        self, location_id: UUID, payload: dict[str, object]
    ) -> LocationRecord | None:
        if location_id not in self.locations:
            return None
        location = replace(self.locations[location_id], **payload)
        self.locations[location_id] = location
        return location

    def delete_location(self, location_id: UUID) -> bool:
        return self.locations.pop(location_id, None) is not None


@dataclass
class InMemoryWorkSessionRepository(WorkSessionRepository):
    """In-memory work session repository enforcing one session per day."""

    sessions: dict[UUID, WorkSessionRecord] = field(default_factory=dict)

    def create_session(
        self, user_id: UUID, payload: dict[str, object]
    ) -> WorkSessionRecord:
        if self.find_for_day(user_id, payload["work_day"]) is not None:
            raise ConflictError("You can't create check-in twice for the same day.")
        session = WorkSessionRecord(
            id=uuid4(),
            user_id=user_id,
            created_at=datetime.now(tz=UTC),
            **_normalize(payload),
        )
        self.sessions[session.id] = session
        return session

    def get_session(self, session_id: UUID) -> WorkSessionRecord | None:
        return self.sessions.get(session_id)

    def find_for_day(self, user_id: UUID, work_day) -> WorkSessionRecord | None:  # type: ignore[no-untyped-def]
        return next(
            (
                session
                for session in self.sessions.values()
                if session.user_id == user_id and session.work_day == work_day
            ),
            None,
        )

    def update_session(
        self, session_id: UUID, payload: dict[str, object]
    ) -> WorkSessionRecord:
        if session_id not in self.sessions:
            raise NotFoundError("Not found check-in")
        session = replace(self.sessions[session_id], **_normalize(payload))
        self.sessions[session_id] = session
        return session

    def delete_session(self, session_id: UUID) -> bool:
        return self.sessions.pop(session_id, None) is not None

    def list_sessions(
        self, filters: RecordFilters, offset: int, limit: int
    ) -> tuple[list[WorkSessionRecord], int]:
        sessions = self.list_sessions_in_range(filters)
        return sessions[offset : offset + limit], len(sessions)

    def list_sessions_in_range(
        self, filters: RecordFilters
    ) -> list[WorkSessionRecord]:
        sessions = [
            session
            for session in self.sessions.values()
            if filters.date_range.start <= session.start_time < filters.date_range.end
            and (filters.user_id is None or session.user_id == filters.user_id)
        ]
        return sorted(sessions, key=lambda session: session.start_time, reverse=True)


@dataclass
class InMemoryServiceRecordRepository(ServiceRecordRepository):
    """In-memory repository for one kind of service record."""

    kind: ServiceKind
    records: dict[UUID, ServiceRecord] = field(default_factory=dict)

    def create_record(self, payload: dict[str, object]) -> ServiceRecord:
        record = ServiceRecord(id=uuid4(), kind=self.kind, **payload)
        self.records[record.id] = record
        return record

    def get_record(self, record_id: UUID) -> ServiceRecord | None:
        return self.records.get(record_id)

    def find_duplicate(
        self,
        license_plate: str,
        start: datetime,
        end: datetime,
        exclude_id: UUID | None = None,
    ) -> ServiceRecord | None:
        return next(
            (
                record
                for record in self.records.values()
                if record.license_plate == license_plate
                and record.lifecycle is Lifecycle.ACTIVE
                and record.id != exclude_id
                and start <= record.created_at < end
            ),
            None,
        )

    def update_record(
        self, record_id: UUID, payload: dict[str, object]
    ) -> ServiceRecord:
        if record_id not in self.records:
            raise NotFoundError("Not found record.")
        record = replace(self.records[record_id], **payload)
        self.records[record_id] = record
        return record

    def delete_record(self, record_id: UUID) -> bool:
        return self.records.pop(record_id, None) is not None

    def list_records(
        self, filters: RecordFilters, offset: int, limit: int
    ) -> tuple[list[ServiceRecord], int]:
        records = self.list_records_in_range(filters)
        return records[offset : offset + limit], len(records)

    def list_records_in_range(self, filters: RecordFilters) -> list[ServiceRecord]:
        records = [
            record
            for record in self.records.values()
            if record.lifecycle is Lifecycle.ACTIVE
            and filters.date_range.start <= record.created_at < filters.date_range.end
            and (filters.user_id is None or record.user_id == filters.user_id)
            and (
                filters.location_id is None
                or record.location_id == filters.location_id
            )
            and (
                filters.search is None
                or filters.search.upper() in record.license_plate
            )
        ]
        return sorted(records, key=lambda record: record.created_at, reverse=True)


@dataclass
class InMemoryPayrollRepository(PayrollRepository):
    """In-memory payroll repository for tests."""

    payrolls: dict[UUID, PayrollRecord] = field(default_factory=dict)

    def create_payroll(self, payload: dict[str, object]) -> PayrollRecord:
        payroll = PayrollRecord(id=uuid4(), created_at=datetime.now(tz=UTC), **payload)
        self.payrolls[payroll.id] = payroll
        return payroll

    def get_payroll(self, payroll_id: UUID) -> PayrollRecord | None:
        return self.payrolls.get(payroll_id)

    def list_payrolls(
        self,
        filters: RecordFilters | None,
        user_id: UUID | None,
        offset: int,
        limit: int,
    ) -> tuple[list[PayrollRecord], int]:
        payrolls = [
            payroll
            for payroll in self.payrolls.values()
            if (user_id is None or payroll.user_id == user_id)
            and (
                filters is None
                or filters.date_range.start
                <= payroll.created_at
                < filters.date_range.end
            )
        ]
        payrolls.sort(key=lambda payroll: payroll.created_at, reverse=True)
        return payrolls[offset : offset + limit], len(payrolls)

    def user_ids_for_month(self, month_year: str) -> set[UUID]:
        return {
            payroll.user_id
            for payroll in self.payrolls.values()
            if payroll.month_year == month_year
        }

    def delete_payroll(self, payroll_id: UUID) -> bool:
        return self.payrolls.pop(payroll_id, None) is not None


@dataclass
class InMemoryTodayPlanRepository(TodayPlanRepository):
    """In-memory daily plan repository for tests."""

    plans: dict[UUID, TodayPlanRecord] = field(default_factory=dict)

    def create_plan(self, payload: dict[str, object]) -> TodayPlanRecord:
        plan = TodayPlanRecord(id=uuid4(), **payload)
        self.plans[plan.id] = plan
        return plan

    def get_plan(self, plan_id: UUID) -> TodayPlanRecord | None:
        return self.plans.get(plan_id)

    def get_current_plan(self) -> TodayPlanRecord | None:
        if not self.plans:
            return None
        return max(self.plans.values(), key=lambda plan: plan.created_at)

    def update_plan(self, plan_id: UUID, payload: dict[str, object]) -> TodayPlanRecord:
        plan = replace(self.plans[plan_id], **payload)
        self.plans[plan_id] = plan
        return plan


@dataclass
class FakeMailClient(MailClient):
    """Fake mail client that records messages."""

    sent: list[tuple[str, str, list[MailAttachment]]] = field(default_factory=list)
    fail: bool = False

    async def send(
        self,
        to: str,
        subject: str,
        html_body: str,
        attachments: list[MailAttachment] | None = None,
    ) -> None:
        if self.fail:
            raise RuntimeError("mail API unavailable")
        self.sent.append((to, subject, attachments or []))


def _normalize(payload: dict[str, object]) -> dict[str, object]:
    data = dict(payload)
    if "breaks" in data:
        data["breaks"] = tuple(data["breaks"])
    return data


def zurich_location(location_type: LocationType = LocationType.WITH_TRANSFER):
    """Build the reference location used across tests."""
    return {
        "name": "Zürich",
        "location_type": location_type,
        "car_types": (
            CarTypePrices(
                name="sedan",
                wash={
                    WashType.OUTSIDE: 25.0,
                    WashType.INSIDE: 30.0,
                    WashType.OUT_INSIDE: 50.0,
                },
                transfer={TransferType.HZP: 45.0, TransferType.APDT: 60.0},
                transfer_base=10.0,
                transfer_per_km=2.0,
            ),
        ),
    }


def principal_for(user: UserRecord) -> Principal:
    return Principal(id=user.id, role=user.role, hourly_pay=user.hourly_pay)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key="service-key",
        jwt_secret="test-secret",
        mail_api_key="mail-key",
        mail_sender="office@example.ch",
    )


@pytest.fixture
def user_repository() -> InMemoryUserRepository:
    return InMemoryUserRepository()


@pytest.fixture
def location_repository(
    user_repository: InMemoryUserRepository,
) -> InMemoryLocationRepository:
    return InMemoryLocationRepository(users=user_repository)


@pytest.fixture
def session_repository() -> InMemoryWorkSessionRepository:
    return InMemoryWorkSessionRepository()


@pytest.fixture
def record_repositories() -> dict[ServiceKind, InMemoryServiceRecordRepository]:
    return {kind: InMemoryServiceRecordRepository(kind=kind) for kind in ServiceKind}


@pytest.fixture
def payroll_repository() -> InMemoryPayrollRepository:
    return InMemoryPayrollRepository()


@pytest.fixture
def mail_client() -> FakeMailClient:
    return FakeMailClient()


@pytest.fixture
def admin(user_repository: InMemoryUserRepository) -> UserRecord:
    return user_repository.add("Admin", "Boss", role=Role.ADMIN, hourly_pay=0.0)


@pytest.fixture
def employee(user_repository: InMemoryUserRepository) -> UserRecord:
    return user_repository.add("Anna", "Muster", role=Role.USER, hourly_pay=20.0)


@pytest.fixture
def location(location_repository: InMemoryLocationRepository) -> LocationRecord:
    return location_repository.create_location(zurich_location())


@pytest.fixture
def session_service(
    session_repository: InMemoryWorkSessionRepository,
    user_repository: InMemoryUserRepository,
) -> SessionService:
    return SessionService(session_repository, user_repository, ZURICH)


@pytest.fixture
def report_service(
    session_repository: InMemoryWorkSessionRepository,
    record_repositories: dict[ServiceKind, InMemoryServiceRecordRepository],
    user_repository: InMemoryUserRepository,
    location_repository: InMemoryLocationRepository,
) -> ReportService:
    return ReportService(
        sessions=session_repository,
        records=record_repositories,
        users=user_repository,
        locations=location_repository,
        timezone=ZURICH,
    )


@pytest.fixture
def today_plan_repository() -> InMemoryTodayPlanRepository:
    return InMemoryTodayPlanRepository()


@pytest.fixture
def today_plan_service(
    today_plan_repository: InMemoryTodayPlanRepository,
    user_repository: InMemoryUserRepository,
) -> TodayPlanService:
    return TodayPlanService(today_plan_repository, user_repository, ZURICH)


@pytest.fixture
def payroll_service(
    payroll_repository: InMemoryPayrollRepository,
    user_repository: InMemoryUserRepository,
    session_repository: InMemoryWorkSessionRepository,
    mail_client: FakeMailClient,
) -> PayrollService:
    return PayrollService(
        repository=payroll_repository,
        users=user_repository,
        sessions=session_repository,
        mail_client=mail_client,
        timezone=ZURICH,
    )


@pytest.fixture
def container(  # noqa: PLR0913
    settings: Settings,
    user_repository: InMemoryUserRepository,
    location_repository: InMemoryLocationRepository,
    record_repositories: dict[ServiceKind, InMemoryServiceRecordRepository],
    session_service: SessionService,
    report_service: ReportService,
    payroll_service: PayrollService,
    today_plan_service: TodayPlanService,
    mail_client: FakeMailClient,
) -> AppContainer:
    service_record_services = {
        kind: ServiceRecordService(
            kind=kind,
            repository=repository,
            locations=location_repository,
            users=user_repository,
        )
        for kind, repository in record_repositories.items()
    }

    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        mail_client=mail_client,
        user_service=UserService(user_repository),
        location_service=LocationService(location_repository),
        session_service=session_service,
        service_record_services=service_record_services,
        report_service=report_service,
        payroll_service=payroll_service,
        today_plan_service=today_plan_service,
        close_resources=close_resources,
    )
