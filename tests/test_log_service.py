"""Tests for calorie log rules and storage."""

from datetime import UTC, datetime

import pytest
from pydantic import ValidationError

from calories_bot.domain.logs import LogCreate, LogUpdate
from calories_bot.services.logs import (
    InMemoryLogRepository,
    LogNotFoundError,
    LogService,
)
from tests.fakes import FakeClock


def _service(clock: FakeClock | None = None) -> LogService:
    return LogService(InMemoryLogRepository(), clock=clock or FakeClock())


def _payload(**overrides: object) -> LogCreate:
    data: dict[str, object] = {
        "food_items": ["Chicken", "Rice"],
        "calories": 450,
        "confidence": "high",
    }
    data.update(overrides)
    return LogCreate.model_validate(data)


def test_create_log_assigns_id_and_timestamps() -> None:
    clock = FakeClock()
    service = _service(clock)

    log = service.create_log(1, _payload())

    assert log.id
    assert log.user_id == 1
    assert log.timestamp == clock.now
    assert log.created_at == clock.now
    assert log.updated_at == clock.now


def test_create_log_keeps_explicit_timestamp() -> None:
    service = _service()
    when = datetime(2023, 5, 1, 12, 0, tzinfo=UTC)

    log = service.create_log(1, _payload(timestamp=when))

    assert log.timestamp == when


def test_list_logs_is_per_user_and_newest_first() -> None:
    service = _service()
    older = service.create_log(
        1, _payload(timestamp=datetime(2024, 1, 1, 8, 0, tzinfo=UTC))
    )
    newer = service.create_log(
        1, _payload(timestamp=datetime(2024, 1, 1, 19, 0, tzinfo=UTC))
    )
    service.create_log(2, _payload())

    logs = service.list_logs(1)

    assert [log.id for log in logs] == [newer.id, older.id]
    assert service.list_logs(3) == []


def test_update_log_merges_fields() -> None:
    clock = FakeClock()
    service = _service(clock)
    log = service.create_log(1, _payload())
    clock.advance(minutes=5)

    updated = service.update_log(1, log.id, LogUpdate(calories=500))

    assert updated.calories == 500
    assert updated.food_items == ["Chicken", "Rice"]
    assert updated.created_at == log.created_at
    assert updated.updated_at == clock.now
    assert service.list_logs(1)[0].calories == 500


def test_update_log_rejects_invalid_merge() -> None:
    service = _service()
    log = service.create_log(1, _payload())

    with pytest.raises(ValidationError):
        service.update_log(1, log.id, LogUpdate(calories=-1))
    with pytest.raises(ValidationError):
        service.update_log(1, log.id, LogUpdate(food_items=[]))

    assert service.list_logs(1)[0].calories == 450


def test_other_users_log_is_not_found() -> None:
    service = _service()
    log = service.create_log(1, _payload())

    with pytest.raises(LogNotFoundError):
        service.update_log(2, log.id, LogUpdate(calories=1))
    with pytest.raises(LogNotFoundError):
        service.delete_log(2, log.id)

    assert len(service.list_logs(1)) == 1


def test_delete_log_removes_entry() -> None:
    service = _service()
    log = service.create_log(1, _payload())

    service.delete_log(1, log.id)

    assert service.list_logs(1) == []
    with pytest.raises(LogNotFoundError):
        service.delete_log(1, log.id)


@pytest.mark.parametrize(
    "overrides",
    [
        {"food_items": []},
        {"food_items": ["Rice", "   "]},
        {"food_items": [f"item {index}" for index in range(11)]},
        {"food_items": ["x" * 1001]},
        {"calories": -5},
        {"confidence": "certain"},
    ],
)
def test_log_create_validation(overrides: dict[str, object]) -> None:
    with pytest.raises(ValidationError):
        _payload(**overrides)


def test_log_create_accepts_camel_case() -> None:
    payload = LogCreate.model_validate(
        {"foodItems": ["Soup"], "calories": 120, "confidence": "low"}
    )

    assert payload.food_items == ["Soup"]


def test_log_json_uses_camel_case() -> None:
    service = _service()
    log = service.create_log(7, _payload())

    body = log.to_json()

    assert body["userId"] == 7
    assert body["foodItems"] == ["Chicken", "Rice"]
    assert {"createdAt", "updatedAt", "timestamp"} <= body.keys()
