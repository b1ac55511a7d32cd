from datetime import datetime, timezone

import requests

from news_intel.alerts import dispatcher
from news_intel.models.schemas import Alert


def _make_alert(alert_id: str) -> Alert:
    return Alert(
        alert_id=alert_id,
        title="Breaking News Alert",
        message="Breaking news about Piccoma: outage hits readers",
        type="error",
        created_at=datetime(2026, 10, 12, 8, 0, tzinfo=timezone.utc),
        priority=5,
        company_id="c001",
        article_id="a001",
    )


def test_dispatch_slack_sends_when_enabled(monkeypatch) -> None:
    alerts = [_make_alert("al001"), _make_alert("al002")]
    calls: list[tuple[str, dict, int]] = []

    def fake_post(url, json, timeout):
        calls.append((url, json, timeout))

        class Response:
            status_code = 200

        return Response()

    monkeypatch.setattr(dispatcher.requests, "post", fake_post)

    sent_ids = dispatcher.dispatch_alerts(
        alerts,
        channel="slack",
        enabled=True,
        slack_webhook_url="https://hooks.slack.com/services/T000/B000/XXX",
    )

    assert len(calls) == 2
    assert calls[0][1]["text"].startswith("[ERROR P5] Breaking News Alert")
    assert sent_ids == {"al001", "al002"}


def test_dispatch_slack_skips_when_disabled(monkeypatch) -> None:
    alerts = [_make_alert("al003")]
    calls: list[tuple[str, dict, int]] = []

    def fake_post(url, json, timeout):
        calls.append((url, json, timeout))

        class Response:
            status_code = 200

        return Response()

    monkeypatch.setattr(dispatcher.requests, "post", fake_post)

    sent_ids = dispatcher.dispatch_alerts(
        alerts,
        channel="slack",
        enabled=False,
        slack_webhook_url="https://hooks.slack.com/services/T000/B000/XXX",
    )

    assert calls == []
    assert sent_ids == set()


def test_dispatch_slack_failures_are_not_raised(monkeypatch, caplog) -> None:
    alerts = [_make_alert("al004"), _make_alert("al005")]
    statuses = iter([500])

    def fake_post(url, json, timeout):
        status = next(statuses, None)
        if status is None:
            raise requests.ConnectionError("webhook unreachable")

        class Response:
            status_code = status

        return Response()

    monkeypatch.setattr(dispatcher.requests, "post", fake_post)

    sent_ids = dispatcher.dispatch_alerts(
        alerts,
        channel="slack",
        enabled=True,
        slack_webhook_url="https://hooks.slack.com/services/T000/B000/XXX",
    )

    assert sent_ids == set()
    assert "status 500" in caplog.text
    assert "webhook unreachable" in caplog.text
