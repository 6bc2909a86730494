"""Error taxonomy for the notification check pipeline."""

from __future__ import annotations

from typing import Optional


class NotificationError(Exception):
    """Base class for notification pipeline errors."""

    kind = "error"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class MalformedInputError(NotificationError):
    """Bad time string, bad date or missing required field."""

    kind = "malformed_input"


class UpstreamUnavailableError(NotificationError):
    """Record store or delivery transport unreachable or timed out."""

    kind = "upstream_unavailable"


class DestinationRejectedError(NotificationError):
    """The delivery endpoint answered with a non-retryable rejection."""

    kind = "destination_rejected"

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class ConfigurationMissingError(NotificationError):
    """Required configuration is absent; raised only at start-up."""

    kind = "configuration_missing"


class SubscriptionNotFound(NotificationError):
    """No enabled notification subscription exists for the calendar."""

    kind = "not_found"

    def __init__(self, calendar_id):
        self.calendar_id = calendar_id
        super().__init__(f"No enabled notification found for calendar {calendar_id}")
