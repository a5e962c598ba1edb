from datetime import date, datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

from fieldroute.exceptions import PersistenceError
from fieldroute.models.domain import (
    Alert,
    AlertSeverity,
    AlertType,
    GpsSample,
    RouteRecord,
    RouteStatus,
    RouteStop,
    Visit,
    VisitStatus,
)
from fieldroute.persistence import InMemoryRepository
from fieldroute.persistence import database
from fieldroute.persistence.database import (
    SupabaseRepository,
    alert_to_row,
    row_to_alert,
    row_to_location,
    row_to_sample,
    row_to_visit,
)

NOW = datetime(2024, 5, 2, 12, 0, tzinfo=timezone.utc)


def _alert(minutes_ago: float, **kwargs) -> Alert:
    defaults = dict(
        agent_id="agent-1",
        route_id="R1",
        alert_type=AlertType.SIGNIFICANT_DELAY,
        severity=AlertSeverity.MEDIUM,
        message="late",
        created_at=NOW - timedelta(minutes=minutes_ago),
    )
    defaults.update(kwargs)
    return Alert(**defaults)


def test_memory_store_saves_route_with_ordered_stops() -> None:
    repository = InMemoryRepository()
    record = RouteRecord(id="R1", agent_id="agent-1", name="Monday", route_date=date(2024, 5, 2))

    repository.save_route(
        record,
        [
            RouteStop(route_id="", customer_id="C2", stop_order=2),
            RouteStop(route_id="", customer_id="C1", stop_order=1),
        ],
    )

    stops = repository.get_route_stops("R1")
    assert [stop.customer_id for stop in stops] == ["C1", "C2"]
    assert all(stop.route_id == "R1" and stop.id for stop in stops)
    assert repository.get_route_stops("unknown") == []


def test_memory_store_filters_routes() -> None:
    repository = InMemoryRepository()
    repository.save_route(RouteRecord(id="R1", agent_id="a", name="", route_date=date(2024, 5, 2), status=RouteStatus.IN_PROGRESS), [])
    repository.save_route(RouteRecord(id="R2", agent_id="a", name="", route_date=date(2024, 5, 2)), [])
    repository.save_route(RouteRecord(id="R3", agent_id="a", name="", route_date=date(2024, 5, 3), status=RouteStatus.IN_PROGRESS), [])

    active_today = repository.list_routes(route_date=date(2024, 5, 2), status=RouteStatus.IN_PROGRESS)

    assert [route.id for route in active_today] == ["R1"]
    assert len(repository.list_routes()) == 3


def test_memory_store_latest_sample_by_timestamp() -> None:
    repository = InMemoryRepository()
    repository.add_gps_sample(GpsSample(agent_id="a", latitude=2.0, longitude=2.0, timestamp=NOW))
    repository.add_gps_sample(GpsSample(agent_id="a", latitude=1.0, longitude=1.0, timestamp=NOW - timedelta(minutes=5)))

    assert repository.get_latest_gps_sample("a").latitude == 2.0
    assert repository.get_latest_gps_sample("b") is None
    assert repository.list_latest_gps_samples(NOW + timedelta(minutes=1)) == []


def test_memory_store_visit_queries() -> None:
    repository = InMemoryRepository()
    old = repository.add_visit(Visit(agent_id="a", customer_id="C1", check_in_time=NOW - timedelta(days=1)))
    recent = repository.add_visit(Visit(agent_id="a", customer_id="C2", check_in_time=NOW - timedelta(hours=1)))
    repository.add_visit(
        Visit(
            agent_id="a",
            customer_id="C3",
            check_in_time=NOW - timedelta(minutes=30),
            check_out_time=NOW - timedelta(minutes=5),
            status=VisitStatus.COMPLETED,
        )
    )

    assert old.id and recent.id
    assert repository.get_open_visit("a") is recent
    assert len(repository.list_open_visits()) == 2
    assert {visit.customer_id for visit in repository.get_visits_since("a", NOW - timedelta(hours=2))} == {"C2", "C3"}


def test_memory_store_alerts() -> None:
    repository = InMemoryRepository()
    older = repository.create_alert(_alert(30))
    newer = repository.create_alert(_alert(5))
    other_route = repository.create_alert(_alert(1, route_id="R2"))

    assert repository.list_alerts(agent_id="agent-1")[0] is other_route
    recent = repository.find_recent_alerts(
        agent_id="agent-1",
        alert_type=AlertType.SIGNIFICANT_DELAY,
        since=NOW - timedelta(minutes=10),
        route_id="R1",
    )
    assert recent == [newer]

    assert repository.mark_alert_read(older.id) is True
    assert repository.mark_alert_read("missing") is False
    assert older not in repository.list_alerts(unread_only=True)


def test_row_to_location_parses_decimal_strings() -> None:
    location = row_to_location(
        {
            "id": 17,
            "name": "Al Noor Market",
            "latitude": "21.4858",
            "longitude": "39.1925",
            "visit_duration": 45,
            "priority": None,
            "average_order_value": "850.50",
            "last_visit_date": "2024-04-30T09:15:00Z",
        }
    )

    assert location.id == "17"
    assert location.coordinates == (21.4858, 39.1925)
    assert location.visit_duration_minutes == 45
    assert location.priority == 3
    assert location.average_order_value == 850.5
    assert location.last_visit_at == datetime(2024, 4, 30, 9, 15, tzinfo=timezone.utc)


def test_row_to_location_without_coordinates_is_none() -> None:
    assert row_to_location({"id": "C1", "latitude": None, "longitude": "39.1"}) is None
    assert row_to_location({"id": "C1", "latitude": "n/a", "longitude": "39.1"}) is None


def test_row_to_sample_and_visit() -> None:
    sample = row_to_sample(
        {"agent_id": "a", "latitude": "21.5", "longitude": "39.2", "speed": "12.5", "timestamp": "2024-05-02T12:00:00+00:00"}
    )
    visit = row_to_visit(
        {
            "id": 4,
            "agent_id": "a",
            "customer_id": "C1",
            "check_in_time": "2024-05-02T10:00:00+00:00",
            "check_out_time": None,
            "check_in_latitude": "21.5",
            "check_in_longitude": "39.2",
            "status": None,
        }
    )

    assert sample.speed == 12.5
    assert sample.timestamp == NOW
    assert visit.is_open
    assert visit.status == VisitStatus.IN_PROGRESS
    assert visit.check_in_latitude == 21.5


def test_alert_row_mapping() -> None:
    alert = _alert(0, metadata={"customer_id": "C1", "minutes_late": 45})

    row = alert_to_row(alert)
    row["id"] = "99"
    row["metadata"] = '{"customer_id": "C1", "minutes_late": 45}'
    mapped = row_to_alert(row)

    assert row["alert_type"] == "significant_delay"
    assert mapped.id == "99"
    assert mapped.metadata == {"customer_id": "C1", "minutes_late": 45}
    assert mapped.created_at == alert.created_at


def test_supabase_repository_requires_configuration(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(database, "get_supabase_client", lambda: None)

    with pytest.raises(ValueError):
        SupabaseRepository()


class _FailingQuery:
    def __getattr__(self, name):
        return lambda *args, **kwargs: self

    def execute(self):
        raise ConnectionError("network down")


class _FailingClient:
    def table(self, name):
        return _FailingQuery()


def test_supabase_failures_become_persistence_errors() -> None:
    repository = SupabaseRepository(client=_FailingClient())

    with pytest.raises(PersistenceError):
        repository.get_route("R1")


class _RecordingQuery:
    def __init__(self, client: "_RecordingClient", table: str) -> None:
        self.client = client
        self.table = table
        self.calls: list[tuple] = []

    def __getattr__(self, name):
        def call(*args, **kwargs):
            self.calls.append((name, args, kwargs))
            return self

        return call

    @property
    def action(self) -> str:
        return self.calls[0][0]

    def args(self, name: str) -> list[tuple]:
        return [args for call, args, _ in self.calls if call == name]

    def execute(self):
        self.client.executed.append(self)
        key = (self.table, self.action)
        if key in self.client.failures:
            self.client.failures.remove(key)
            raise ConnectionError("insert rejected")
        return SimpleNamespace(data=self.client.responses.get(key, []))


class _RecordingClient:
    def __init__(self, responses: dict | None = None, failures: list | None = None) -> None:
        self.responses = responses or {}
        self.failures = failures or []
        self.executed: list[_RecordingQuery] = []

    def table(self, name):
        return _RecordingQuery(self, name)


def test_supabase_save_route_replaces_stops() -> None:
    client = _RecordingClient()
    record = RouteRecord(id="R1", agent_id="agent-1", name="Monday", route_date=date(2024, 5, 2))

    SupabaseRepository(client=client).save_route(
        record,
        [
            RouteStop(route_id="R1", customer_id="C1", stop_order=1, planned_arrival=NOW),
            RouteStop(route_id="R1", customer_id="C2", stop_order=2),
        ],
    )

    assert [(query.table, query.action) for query in client.executed] == [
        ("routes", "upsert"),
        ("route_stops", "select"),
        ("route_stops", "delete"),
        ("route_stops", "insert"),
    ]
    upsert = client.executed[0].args("upsert")[0][0]
    assert upsert["route_name"] == "Monday"
    assert upsert["route_date"] == "2024-05-02"
    assert upsert["status"] == "planned"
    assert client.executed[2].args("eq") == [("route_id", "R1")]
    inserted = client.executed[3].args("insert")[0][0]
    assert [(row["customer_id"], row["stop_order"]) for row in inserted] == [("C1", 1), ("C2", 2)]
    assert inserted[0]["planned_arrival"] == NOW.isoformat()
    assert inserted[1]["planned_arrival"] is None


def test_supabase_save_route_restores_stops_when_insert_fails() -> None:
    previous = {"id": 7, "route_id": "R1", "customer_id": "C9", "stop_order": 1, "planned_arrival": None}
    client = _RecordingClient(
        responses={("route_stops", "select"): [previous]},
        failures=[("route_stops", "insert")],
    )
    record = RouteRecord(id="R1", agent_id="agent-1", name="Monday", route_date=date(2024, 5, 2))

    with pytest.raises(PersistenceError):
        SupabaseRepository(client=client).save_route(record, [RouteStop(route_id="R1", customer_id="C1", stop_order=1)])

    restore = client.executed[-1]
    assert (restore.table, restore.action) == ("route_stops", "insert")
    assert restore.args("insert")[0][0] == [
        {"route_id": "R1", "customer_id": "C9", "stop_order": 1, "planned_arrival": None}
    ]


def test_supabase_create_alert_takes_generated_id() -> None:
    client = _RecordingClient(responses={("alerts", "insert"): [{"id": 42}]})

    alert = SupabaseRepository(client=client).create_alert(_alert(0))

    assert alert.id == "42"
    row = client.executed[0].args("insert")[0][0]
    assert row["alert_type"] == "significant_delay"
    assert "id" not in row


def test_supabase_recent_alerts_filters_by_route() -> None:
    client = _RecordingClient(responses={("alerts", "select"): [alert_to_row(_alert(2)) | {"id": "5"}]})
    repository = SupabaseRepository(client=client)
    since = NOW - timedelta(minutes=15)

    found = repository.find_recent_alerts(
        agent_id="agent-1", alert_type=AlertType.SIGNIFICANT_DELAY, since=since, route_id="R1"
    )
    repository.find_recent_alerts(agent_id="agent-1", alert_type=AlertType.EXTENDED_VISIT, since=since)

    with_route, without_route = client.executed
    assert [alert.id for alert in found] == ["5"]
    assert with_route.args("eq") == [("agent_id", "agent-1"), ("alert_type", "significant_delay"), ("route_id", "R1")]
    assert with_route.args("gte") == [("created_at", since.isoformat())]
    assert with_route.args("is_") == []
    assert without_route.args("is_") == [("route_id", "null")]
    assert ("route_id", "R1") not in without_route.args("eq")


def test_supabase_open_visit_requires_no_check_out() -> None:
    client = _RecordingClient(
        responses={
            ("visits", "select"): [
                {"id": 3, "agent_id": "a", "customer_id": "C1", "check_in_time": "2024-05-02T11:00:00+00:00"}
            ]
        }
    )

    visit = SupabaseRepository(client=client).get_open_visit("a")

    query = client.executed[0]
    assert query.table == "visits"
    assert query.args("eq") == [("agent_id", "a")]
    assert query.args("is_") == [("check_out_time", "null")]
    assert query.args("order") == [("check_in_time",)]
    assert visit.is_open
    assert visit.id == "3"
