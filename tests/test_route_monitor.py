import asyncio
from datetime import date, datetime, timedelta, timezone

from fieldroute.models.domain import GpsSample, Location, RouteRecord, RouteStatus, RouteStop
from fieldroute.persistence import InMemoryRepository
from fieldroute.services.alerts.engine import AlertEngine
from fieldroute.services.alerts.monitor import RouteMonitor

NOW = datetime(2024, 5, 2, 12, 0, tzinfo=timezone.utc)


def _add_route(
    repository: InMemoryRepository,
    route_id: str,
    agent_id: str,
    status: RouteStatus = RouteStatus.IN_PROGRESS,
    route_date: date = NOW.date(),
) -> None:
    customer_id = f"{route_id}-C1"
    repository.add_location(Location(id=customer_id, name=f"Shop {route_id}", latitude=0.0, longitude=0.0))
    repository.save_route(
        RouteRecord(id=route_id, agent_id=agent_id, name=route_id, route_date=route_date, status=status),
        [RouteStop(route_id=route_id, customer_id=customer_id, stop_order=1, planned_arrival=NOW + timedelta(hours=1))],
    )


def _far_away(repository: InMemoryRepository, agent_id: str) -> None:
    repository.add_gps_sample(GpsSample(agent_id=agent_id, latitude=0.02, longitude=0.0, timestamp=NOW))


def test_cycle_checks_in_progress_routes_of_today() -> None:
    repository = InMemoryRepository()
    _add_route(repository, "R1", "agent-1")
    _add_route(repository, "R2", "agent-2", status=RouteStatus.PLANNED)
    _add_route(repository, "R3", "agent-3", route_date=date(2024, 5, 1))
    for agent_id in ("agent-1", "agent-2", "agent-3"):
        _far_away(repository, agent_id)

    report = asyncio.run(RouteMonitor(AlertEngine(repository)).run_cycle(NOW))

    assert report.routes_checked == 1
    assert report.failures == 0
    assert [alert.route_id for alert in report.alerts] == ["R1"]
    assert report.alerts[0].alert_type.value == "route_deviation"


def test_cycle_skips_agents_without_position() -> None:
    repository = InMemoryRepository()
    _add_route(repository, "R1", "agent-1")
    _add_route(repository, "R2", "agent-2")
    _far_away(repository, "agent-2")

    report = asyncio.run(RouteMonitor(AlertEngine(repository)).run_cycle(NOW))

    assert report.routes_skipped == 1
    assert report.routes_checked == 1


def test_failing_route_does_not_stop_the_cycle(monkeypatch) -> None:
    repository = InMemoryRepository()
    _add_route(repository, "R1", "agent-1")
    _add_route(repository, "R2", "agent-2")
    _far_away(repository, "agent-1")
    _far_away(repository, "agent-2")
    engine = AlertEngine(repository)
    original = engine.check_route

    def flaky(agent_id, route_id, **kwargs):
        if route_id == "R1":
            raise RuntimeError("store timeout")
        return original(agent_id, route_id, **kwargs)

    monkeypatch.setattr(engine, "check_route", flaky)

    report = asyncio.run(RouteMonitor(engine).run_cycle(NOW))

    assert report.failures == 1
    assert report.routes_checked == 1
    assert [alert.route_id for alert in report.alerts] == ["R2"]


def test_empty_cycle() -> None:
    report = asyncio.run(RouteMonitor(AlertEngine(InMemoryRepository())).run_cycle(NOW))

    assert report.routes_checked == 0
    assert report.alerts == []


def test_run_forever_stops_on_event() -> None:
    monitor = RouteMonitor(AlertEngine(InMemoryRepository()), interval_seconds=0.01)
    cycles = []

    async def scenario() -> None:
        stop_event = asyncio.Event()

        async def fake_cycle(now=None):
            cycles.append(now)
            if len(cycles) == 2:
                stop_event.set()

        monitor.run_cycle = fake_cycle
        await asyncio.wait_for(monitor.run_forever(stop_event), timeout=2)

    asyncio.run(scenario())

    assert len(cycles) == 2
