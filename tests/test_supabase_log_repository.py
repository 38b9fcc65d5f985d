"""Tests for the Supabase calorie log repository."""

from dataclasses import dataclass, field
from datetime import UTC, datetime

import pytest

from calories_bot.adapters.supabase_log_repository import SupabaseLogRepository
from calories_bot.domain.logs import CalorieLog


@dataclass
class FakeResponse:
    data: list[dict[str, object]] | None


@dataclass
class FakeTable:
    name: str
    response_queue: dict[str, list[list[dict[str, object]]]] = field(
        default_factory=lambda: {"select": [], "insert": [], "update": [], "delete": []}
    )
    last_payload: object | None = None
    last_filters: list[tuple[str, object]] = field(default_factory=list)
    last_order: tuple[str, bool] | None = None
    actions: list[str] = field(default_factory=list)

    def queue(self, action: str, data: list[dict[str, object]]) -> None:
        self.response_queue[action].append(data)

    def select(self, *_args) -> "FakeTable":
        self._action = "select"
        return self

    def insert(self, payload) -> "FakeTable":  # type: ignore[no-untyped-def]
        self._action = "insert"
        self.last_payload = payload
        return self

    def update(self, payload) -> "FakeTable":  # type: ignore[no-untyped-def]
        self._action = "update"
        self.last_payload = payload
        return self

    def delete(self) -> "FakeTable":
        self._action = "delete"
        return self

    def eq(self, column: str, value) -> "FakeTable":  # type: ignore[no-untyped-def]
        self.last_filters.append((column, value))
        return self

    def limit(self, _count: int) -> "FakeTable":
        return self

    def order(self, column: str, desc: bool = False) -> "FakeTable":
        self.last_order = (column, desc)
        return self

    def execute(self) -> FakeResponse:
        action = getattr(self, "_action", "select")
        self.actions.append(action)
        queue = self.response_queue.get(action, [])
        data = queue.pop(0) if queue else []
        return FakeResponse(data=data)


@dataclass
class FakeSupabaseClient:
    tables: dict[str, FakeTable] = field(default_factory=dict)

    def table(self, name: str) -> FakeTable:
        if name not in self.tables:
            self.tables[name] = FakeTable(name=name)
        return self.tables[name]


def _log(**overrides: object) -> CalorieLog:
    now = datetime(2024, 3, 1, 12, 0, tzinfo=UTC)
    data: dict[str, object] = {
        "id": "log-1",
        "user_id": 123,
        "food_items": ["Chicken", "Rice"],
        "calories": 450,
        "confidence": "high",
        "timestamp": now,
        "created_at": now,
        "updated_at": now,
    }
    data.update(overrides)
    return CalorieLog.model_validate(data)


def _row(log_id: str = "log-1", logged_at: str = "2024-03-01T12:00:00+00:00") -> dict:
    return {
        "id": log_id,
        "telegram_user_id": 123,
        "food_items": ["Chicken", "Rice"],
        "calories": 450,
        "confidence": "high",
        "logged_at": logged_at,
        "created_at": "2024-03-01T12:00:00+00:00",
        "updated_at": "2024-03-01T12:00:00+00:00",
    }


def test_add_inserts_row() -> None:
    client = FakeSupabaseClient()
    table = client.table("calorie_logs")
    table.queue("insert", [_row()])

    SupabaseLogRepository(client).add(_log())

    assert isinstance(table.last_payload, dict)
    assert table.last_payload["telegram_user_id"] == 123
    assert table.last_payload["logged_at"] == "2024-03-01T12:00:00+00:00"


def test_add_raises_when_insert_returns_nothing() -> None:
    client = FakeSupabaseClient()

    with pytest.raises(RuntimeError):
        SupabaseLogRepository(client).add(_log())


def test_get_maps_row_to_log() -> None:
    client = FakeSupabaseClient()
    table = client.table("calorie_logs")
    table.queue("select", [_row()])
    repository = SupabaseLogRepository(client)

    fetched = repository.get("log-1")
    missing = repository.get("log-2")

    assert fetched == _log()
    assert missing is None
    assert ("id", "log-1") in table.last_filters


def test_list_for_user_orders_by_log_time() -> None:
    client = FakeSupabaseClient()
    table = client.table("calorie_logs")
    table.queue(
        "select",
        [_row("b", "2024-03-02T08:00:00+00:00"), _row("a")],
    )

    logs = SupabaseLogRepository(client).list_for_user(123)

    assert [log.id for log in logs] == ["b", "a"]
    assert table.last_order == ("logged_at", True)
    assert ("telegram_user_id", 123) in table.last_filters


def test_save_updates_mutable_columns() -> None:
    client = FakeSupabaseClient()
    table = client.table("calorie_logs")

    SupabaseLogRepository(client).save(_log(calories=500))

    assert isinstance(table.last_payload, dict)
    assert table.last_payload["calories"] == 500
    assert "id" not in table.last_payload
    assert "created_at" not in table.last_payload
    assert table.actions == ["update"]


def test_remove_deletes_row() -> None:
    client = FakeSupabaseClient()
    table = client.table("calorie_logs")

    SupabaseLogRepository(client).remove("log-1")

    assert table.actions == ["delete"]
    assert ("id", "log-1") in table.last_filters
