import logging
from datetime import date, datetime, timezone
from typing import Optional

import requests

from app.core.config import settings
from app.schemas.notification import DeliveryResult, NotificationPayload
from app.services.exceptions import (
    DestinationRejectedError,
    MalformedInputError,
    UpstreamUnavailableError,
)

logger = logging.getLogger(__name__)

WEBHOOK_PATH = "discord.com/api/webhooks/"
AVAILABILITY_COLOR = 0x10B981
TEST_COLOR = 0x3B82F6
FOOTER = "Team Schedule Manager"


def validate_webhook_url(url: str) -> str:
    """Reject anything that is not a Discord webhook URL."""
    if not url or WEBHOOK_PATH not in url:
        raise MalformedInputError("Invalid Discord webhook URL")
    return url


def _format_date(value: date) -> str:
    # e.g. "Saturday, October 17, 2026"
    return f"{value.strftime('%A, %B')} {value.day}, {value.year}"


def build_availability_message(payload: NotificationPayload) -> dict:
    """
    Render a notification payload as a Discord embed.

    Slots are grouped into one field per date, in date order.
    """
    fields = []
    for slot_date, slots in sorted(payload.slots_by_date().items()):
        slot_list = "\n".join(
            f"• {slot.name} ({slot.start[:5]} - {slot.end[:5]})" for slot in slots
        )
        fields.append(
            {
                "name": f"📅 {_format_date(slot_date)}",
                "value": slot_list,
                "inline": False,
            }
        )

    return {
        "embeds": [
            {
                "title": payload.title,
                "description": payload.summary,
                "color": AVAILABILITY_COLOR,
                "fields": [
                    {
                        "name": "📊 Summary",
                        "value": _slot_count_text(len(payload.grouped_slots)),
                        "inline": False,
                    },
                    *fields,
                ],
                "footer": {"text": f"{FOOTER} • Perfect attendance opportunity!"},
                "timestamp": datetime.now(timezone.utc).isoformat(),
            }
        ]
    }


def build_test_message(calendar_name: str) -> dict:
    now = datetime.now(timezone.utc)
    return {
        "embeds": [
            {
                "title": "🧪 Test Notification",
                "description": f"This is a test notification from **{calendar_name}**.",
                "color": TEST_COLOR,
                "fields": [
                    {"name": "📅 Calendar", "value": calendar_name, "inline": True},
                    {
                        "name": "⏰ Time",
                        "value": now.strftime("%b %d, %Y, %H:%M UTC"),
                        "inline": True,
                    },
                ],
                "footer": {"text": FOOTER},
                "timestamp": now.isoformat(),
            }
        ]
    }


def _slot_count_text(count: int) -> str:
    return f"{count} time slot{'s' if count != 1 else ''} available"


class DiscordWebhookTransport:
    """
    Delivers messages to Discord webhooks.

    Args:
        timeout: Seconds before a request is abandoned
        execution_mode: ``production`` or ``test``; only ``test`` turns an
            unreachable endpoint into a simulated success
        session: Optional ``requests.Session`` to send with
    """

    def __init__(
        self,
        timeout: Optional[float] = None,
        execution_mode: Optional[str] = None,
        session: Optional[requests.Session] = None,
    ):
        self.timeout = timeout if timeout is not None else settings.REMOTE_CALL_TIMEOUT_SECONDS
        self.execution_mode = execution_mode or settings.EXECUTION_MODE
        self._session = session or requests.Session()

    def deliver(self, destination: str, payload: NotificationPayload) -> DeliveryResult:
        """
        Send an availability notification.

        Raises:
            MalformedInputError: destination is not a Discord webhook URL
            UpstreamUnavailableError: network failure, timeout, 429 or 5xx
            DestinationRejectedError: any other non-2xx answer
        """
        count = len(payload.grouped_slots)
        return self._post(
            destination,
            build_availability_message(payload),
            f"Notification sent for {count} available slots",
        )

    def send_test(self, destination: str, calendar_name: str) -> DeliveryResult:
        return self._post(
            destination,
            build_test_message(calendar_name),
            "Test notification sent successfully",
        )

    def _post(self, destination: str, message: dict, success_message: str) -> DeliveryResult:
        validate_webhook_url(destination)

        try:
            response = self._session.post(destination, json=message, timeout=self.timeout)
        except (requests.ConnectionError, requests.Timeout) as exc:
            if self.execution_mode == "test":
                logger.warning(
                    f"Webhook unreachable in test mode, simulating delivery: {exc}"
                )
                return DeliveryResult(
                    success=True,
                    simulated=True,
                    message=f"{success_message} (simulated)",
                )
            logger.error(f"Webhook unreachable: {destination[:50]}...: {exc}")
            raise UpstreamUnavailableError(f"Discord webhook unreachable: {exc}") from exc
        except requests.RequestException as exc:
            logger.error(f"Webhook request failed: {exc}")
            raise UpstreamUnavailableError(f"Discord webhook request failed: {exc}") from exc

        status_code = response.status_code
        if status_code == 429 or status_code >= 500:
            logger.warning(f"Discord API unavailable ({status_code}) for {destination[:50]}...")
            raise UpstreamUnavailableError(f"Discord API error {status_code}: {response.text}")
        if status_code >= 400:
            logger.warning(f"Discord rejected webhook ({status_code}): {response.text}")
            raise DestinationRejectedError(
                f"Discord API error: {response.text}", status_code=status_code
            )

        logger.info(f"Discord webhook delivered to {destination[:50]}...")
        return DeliveryResult(success=True, message=success_message, status_code=status_code)
