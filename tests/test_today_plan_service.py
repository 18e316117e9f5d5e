"""Tests for the shared daily plan."""

from datetime import UTC, datetime
from uuid import uuid4

import pytest

from carcare_backoffice.domain.models import Role
from carcare_backoffice.errors import NotFoundError, ValidationError
from carcare_backoffice.services.reports import DELETED_USER_LABEL
from tests.conftest import principal_for

ASSIGNMENTS = {"Zürich": ["Anna Muster"], "Bern": []}


def test_create_and_show_plan(today_plan_service, today_plan_repository, admin) -> None:
    plan = today_plan_service.create_plan(principal_for(admin), ASSIGNMENTS)
    today_plan_repository.update_plan(
        plan.id, {"updated_at": datetime(2024, 3, 4, 7, 5, tzinfo=UTC)}
    )

    shown = today_plan_service.current_plan()

    assert shown["id"] == str(plan.id)
    assert shown["users"] == ASSIGNMENTS
    assert shown["created_by"] == admin.display_name
    assert shown["last_modified"] == "04 March, 08:05"


def test_plan_requires_users(today_plan_service, admin) -> None:
    with pytest.raises(ValidationError):
        today_plan_service.create_plan(principal_for(admin), None)


def test_missing_plan_not_found(today_plan_service) -> None:
    with pytest.raises(NotFoundError):
        today_plan_service.current_plan()


def test_update_replaces_users_and_author(
    today_plan_service, admin, user_repository
) -> None:
    plan = today_plan_service.create_plan(principal_for(admin), ASSIGNMENTS)
    manager = user_repository.add("Mia", "Leiter", role=Role.MANAGER)

    updated = today_plan_service.update_plan(
        principal_for(manager), plan.id, {"Zürich": ["Mia Leiter"]}
    )

    assert updated.users == {"Zürich": ["Mia Leiter"]}
    assert updated.created_by == manager.id
    assert today_plan_service.current_plan()["created_by"] == "Mia Leiter"


def test_update_unknown_plan_not_found(today_plan_service, admin) -> None:
    with pytest.raises(NotFoundError):
        today_plan_service.update_plan(principal_for(admin), uuid4(), ASSIGNMENTS)


def test_removed_author_is_labelled(
    today_plan_service, today_plan_repository, admin
) -> None:
    plan = today_plan_service.create_plan(principal_for(admin), ASSIGNMENTS)
    today_plan_repository.update_plan(plan.id, {"created_by": uuid4()})

    assert today_plan_service.current_plan()["created_by"] == DELETED_USER_LABEL
