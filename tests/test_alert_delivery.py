import json
from datetime import datetime, timezone

import httpx
import pytest

from fieldroute.exceptions import NotificationError
from fieldroute.models.domain import Alert, AlertSeverity, AlertType
from fieldroute.services.alerts.events import AlertBus
from fieldroute.services.alerts.notifier import OwnerNotifier, build_payload

WEBHOOK = "https://notify.example.test/hooks/alerts"


def _alert() -> Alert:
    return Alert(
        id="a1",
        agent_id="agent-1",
        route_id="R1",
        alert_type=AlertType.ROUTE_DEVIATION,
        severity=AlertSeverity.HIGH,
        message="Agent agent-1 is 1334m away from the nearest planned stop.",
        metadata={"distance": 1334.3},
        created_at=datetime(2024, 5, 2, 12, 0, tzinfo=timezone.utc),
    )


def test_bus_delivers_to_every_subscriber() -> None:
    bus = AlertBus()
    first, second = [], []
    bus.subscribe(first.append)
    bus.subscribe(second.append)
    bus.subscribe(first.append)

    delivered = bus.publish(_alert())

    assert delivered == 2
    assert len(first) == 1
    assert len(second) == 1


def test_bus_isolates_failing_subscriber(caplog: pytest.LogCaptureFixture) -> None:
    bus = AlertBus()
    received = []

    def broken(alert: Alert) -> None:
        raise RuntimeError("boom")

    bus.subscribe(broken)
    bus.subscribe(received.append)

    assert bus.publish(_alert()) == 1
    assert len(received) == 1
    assert "failed for alert a1" in caplog.text


def test_bus_unsubscribe() -> None:
    bus = AlertBus()
    received = []
    bus.subscribe(received.append)
    bus.unsubscribe(received.append)

    assert bus.publish(_alert()) == 0
    assert received == []


def test_payload_shape() -> None:
    payload = build_payload(_alert())

    assert payload["title"] == "Route Deviation Alert"
    assert payload["content"] == _alert().message
    assert payload["alert"]["severity"] == "high"
    assert payload["alert"]["type"] == "route_deviation"
    assert payload["alert"]["created_at"] == "2024-05-02T12:00:00+00:00"


def test_notifier_without_webhook_is_a_no_op(monkeypatch: pytest.MonkeyPatch) -> None:
    from fieldroute.services.alerts import notifier as notifier_module

    monkeypatch.setattr(notifier_module.settings, "notification_webhook_url", None)

    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected")

    assert OwnerNotifier(transport=httpx.MockTransport(handler)).notify(_alert()) is False


def test_notifier_posts_payload() -> None:
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json={"ok": True})

    notifier = OwnerNotifier(WEBHOOK, transport=httpx.MockTransport(handler))

    assert notifier(_alert()) is True
    assert len(requests) == 1
    assert str(requests[0].url) == WEBHOOK
    assert json.loads(requests[0].content)["title"] == "Route Deviation Alert"


def test_notifier_retries_then_succeeds() -> None:
    statuses = iter([503, 500, 200])
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(next(statuses))

    notifier = OwnerNotifier(WEBHOOK, max_retries=2, backoff_seconds=0, transport=httpx.MockTransport(handler))

    assert notifier.notify(_alert()) is True
    assert len(calls) == 3


def test_notifier_gives_up_after_retries() -> None:
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(502)

    notifier = OwnerNotifier(WEBHOOK, max_retries=1, backoff_seconds=0, transport=httpx.MockTransport(handler))

    with pytest.raises(NotificationError):
        notifier.notify(_alert())
    assert len(calls) == 2


def test_failed_notification_through_bus_is_logged_not_raised(caplog: pytest.LogCaptureFixture) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("unreachable", request=request)

    bus = AlertBus()
    bus.subscribe(OwnerNotifier(WEBHOOK, max_retries=0, transport=httpx.MockTransport(handler)))

    assert bus.publish(_alert()) == 0
    assert "failed for alert a1" in caplog.text
