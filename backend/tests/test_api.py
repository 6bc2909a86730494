"""Tests for the HTTP API."""

from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from app.main import create_application
from app.services.exceptions import (
    DestinationRejectedError,
    MalformedInputError,
    UpstreamUnavailableError,
)

API = "/api/v1"
WEBHOOK_URL = "https://discord.com/api/webhooks/123/abc"


@pytest.fixture
def client(test_settings, test_db_engine, check_service):
    app = create_application(
        settings=test_settings, engine=test_db_engine, check_service=check_service
    )
    with TestClient(app) as client:
        yield client


class TestHealth:
    def test_health(self, client):
        assert client.get(f"{API}/health/").json() == {"status": "ok"}

    def test_ready(self, client):
        response = client.get(f"{API}/health/ready")
        assert response.status_code == 200
        assert response.json()["database"] == "connected"
        assert response.json()["scheduler"] == "stopped"
        assert response.json()["storage_timezone"] == "Asia/Tokyo"


class TestCheckAndNotify:
    """Tests for POST /notifications/check-and-notify."""

    def test_no_subscriptions(self, client):
        response = client.post(f"{API}/notifications/check-and-notify")

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "message": "No enabled Discord notifications found",
            "results": [],
        }

    def test_delivers(self, client, seed_calendar, everyone_available, mock_transport):
        everyone_available(seed_calendar())

        response = client.post(f"{API}/notifications/check-and-notify")

        body = response.json()
        assert response.status_code == 200
        assert body["message"] == "Processed 1 notification settings"
        assert body["results"][0]["delivered"] is True
        assert body["results"][0]["slots_found"] == 1
        mock_transport.deliver.assert_called_once()

    def test_explicit_target_date(self, client, seed_calendar):
        seed_calendar()

        response = client.post(
            f"{API}/notifications/check-and-notify", json={"target_date": "2026-12-24"}
        )

        assert response.json()["results"][0]["date_checked"] == "2026-12-24"

    def test_store_unavailable(self, client, check_service):
        with patch.object(
            check_service, "check_all",
            AsyncMock(side_effect=UpstreamUnavailableError("Failed to fetch notification settings")),
        ):
            response = client.post(f"{API}/notifications/check-and-notify")

        assert response.status_code == 503
        assert response.json()["kind"] == "upstream_unavailable"


class TestManualCheck:
    """Tests for POST /notifications/manual-check."""

    def test_checks_regardless_of_time(self, client, seed_calendar, everyone_available):
        seeded = seed_calendar(notification_time="03:00")
        everyone_available(seeded)

        response = client.post(
            f"{API}/notifications/manual-check", json={"calendar_id": str(seeded.id)}
        )

        assert response.status_code == 200
        assert response.json()["outcome"] == "delivered"

    def test_not_found(self, client):
        response = client.post(
            f"{API}/notifications/manual-check", json={"calendar_id": str(uuid4())}
        )

        assert response.status_code == 404
        assert response.json()["kind"] == "not_found"

    def test_invalid_calendar_id(self, client):
        response = client.post(
            f"{API}/notifications/manual-check", json={"calendar_id": "nope"}
        )

        assert response.status_code == 422

    def test_background(self, client, seed_calendar):
        seeded = seed_calendar()
        queued = MagicMock(id="task-1")

        with patch("app.api.v1.notifications.safe_celery_delay", return_value=queued) as delay:
            response = client.post(
                f"{API}/notifications/manual-check?background=true",
                json={"calendar_id": str(seeded.id)},
            )

        assert response.status_code == 202
        assert response.json() == {"queued": True, "task_id": "task-1"}
        assert delay.call_args.args[1] == str(seeded.id)

    def test_background_falls_back_to_inline(self, client, seed_calendar):
        seeded = seed_calendar()

        with patch("app.api.v1.notifications.safe_celery_delay", return_value=None):
            response = client.post(
                f"{API}/notifications/manual-check?background=true",
                json={"calendar_id": str(seeded.id)},
            )

        assert response.status_code == 200
        assert response.json()["calendar_id"] == str(seeded.id)


class TestDebugEndpoints:
    """Tests for debug-settings, test-notification and timezone-test."""

    def test_debug_settings(self, client, seed_calendar):
        seeded = seed_calendar(notification_time="17:01")

        response = client.get(
            f"{API}/notifications/debug-settings", params={"calendar_id": str(seeded.id)}
        )

        body = response.json()
        assert body["current_database_time"] == "17:00"
        assert body["database_timezone"] == "Asia/Tokyo"
        assert body["settings"]["notification_time"] == "17:01"
        assert body["time_comparison"]["time_diff"] == 1
        assert body["time_comparison"]["should_trigger"] is True

    def test_debug_settings_unknown_calendar(self, client):
        response = client.get(
            f"{API}/notifications/debug-settings", params={"calendar_id": str(uuid4())}
        )

        assert response.status_code == 200
        assert response.json()["settings"] is None
        assert response.json()["time_comparison"] is None

    def test_send_test_notification(self, client, mock_transport):
        response = client.post(
            f"{API}/notifications/test-notification",
            json={"webhook_url": WEBHOOK_URL, "calendar_name": "Team"},
        )

        assert response.status_code == 200
        assert response.json()["success"] is True
        mock_transport.send_test.assert_called_once_with(WEBHOOK_URL, "Team")

    def test_send_test_invalid_url(self, client, mock_transport):
        mock_transport.send_test.side_effect = MalformedInputError("Invalid Discord webhook URL")

        response = client.post(
            f"{API}/notifications/test-notification",
            json={"webhook_url": "https://example.com", "calendar_name": "Team"},
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid Discord webhook URL"

    def test_send_test_rejected(self, client, mock_transport):
        mock_transport.send_test.side_effect = DestinationRejectedError(
            "Discord API error: Unknown Webhook", status_code=404
        )

        response = client.post(
            f"{API}/notifications/test-notification",
            json={"webhook_url": WEBHOOK_URL, "calendar_name": "Team"},
        )

        assert response.status_code == 502
        assert response.json()["kind"] == "destination_rejected"

    def test_timezone_test(self, client):
        response = client.get(
            f"{API}/notifications/timezone-test",
            params={"user_time": "09:00", "user_timezone": "UTC"},
        )

        body = response.json()
        assert body["storage_time"] == "18:00"
        assert body["back_converted"] == "09:00"
        assert body["is_round_trip"] is True
        assert [row["timezone"] for row in body["timezone_tests"]][0] == "Asia/Tokyo"

    def test_timezone_test_bad_time(self, client):
        response = client.get(
            f"{API}/notifications/timezone-test", params={"user_time": "9am"}
        )

        assert response.status_code == 400


class TestCron:
    """Tests for GET /cron/notifications."""

    def test_success(self, client, seed_calendar, everyone_available):
        everyone_available(seed_calendar())

        response = client.get(f"{API}/cron/notifications")

        body = response.json()
        assert body["success"] is True
        assert body["duration_ms"] >= 0
        assert body["results"][0]["delivered"] is True

    def test_failure_reported_in_body(self, client, check_service):
        with patch.object(
            check_service, "check_all",
            AsyncMock(side_effect=UpstreamUnavailableError("database is down")),
        ):
            response = client.get(f"{API}/cron/notifications")

        assert response.status_code == 200
        assert response.json()["success"] is False
        assert response.json()["error"] == "database is down"


class TestSchedulerEndpoints:
    """Tests for the scheduler control endpoints."""

    def test_status_idle(self, client):
        body = client.get(f"{API}/scheduler/status").json()
        assert body["running"] is False
        assert body["interval_seconds"] == 60

    def test_start_and_stop(self, client):
        calendar_id = str(uuid4())

        started = client.post(
            f"{API}/scheduler/start",
            json={"calendar_id": calendar_id, "interval_seconds": 120},
        ).json()
        assert started["running"] is True
        assert started["calendar_id"] == calendar_id
        assert started["interval_seconds"] == 120

        stopped = client.post(f"{API}/scheduler/stop").json()
        assert stopped["running"] is False
        assert stopped["calendar_id"] is None

    def test_start_rejects_bad_interval(self, client):
        response = client.post(f"{API}/scheduler/start", json={"interval_seconds": 0})
        assert response.status_code == 422
