"""
Custom application exceptions.

Every error carries its kind from the moment it is raised, so boundaries
render it without guessing from the exception type or message.
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    """Machine-readable error codes exposed to RPC callers and webhook senders."""

    UPSTREAM_API = "JENKINS_ERROR"
    AUTHENTICATION = "AUTHENTICATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    STORE_UNAVAILABLE = "STORE_UNAVAILABLE"
    NOTIFICATION_DELIVERY = "NOTIFICATION_FAILED"
    VALIDATION = "VALIDATION_ERROR"
    CONFIGURATION = "CONFIGURATION_ERROR"
    INTERNAL = "INTERNAL_ERROR"


class BridgeError(Exception):
    """Base exception for bridge errors."""

    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        """Render as the ``{error: {code, message, details?}}`` response body."""
        error: dict[str, Any] = {"code": self.kind.value, "message": self.message}
        if self.details:
            error["details"] = self.details
        return {"error": error}


class JenkinsAPIError(BridgeError):
    """Jenkins returned a non-2xx response or could not be reached."""

    kind = ErrorKind.UPSTREAM_API

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        body: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        merged = dict(details or {})
        if status_code is not None:
            merged["upstreamStatus"] = status_code
        if body:
            merged["upstreamBody"] = body[:1000]
        super().__init__(message, merged or None)
        self.status_code = status_code
        self.body = body


class QueueTimeoutError(JenkinsAPIError):
    """No build number was assigned to a queue item before the deadline.

    The build may still start later; ``queue_id`` lets the caller follow up.
    """

    def __init__(self, job_name: str, queue_id: int, waited: float):
        super().__init__(
            f"Timeout waiting for build number for queue item {queue_id}",
            details={"jobName": job_name, "queueId": queue_id, "waitedSeconds": waited},
        )
        self.job_name = job_name
        self.queue_id = queue_id


class AuthenticationError(BridgeError):
    """Webhook signature rejected or Jenkins refused our credentials."""

    kind = ErrorKind.AUTHENTICATION


class NotFoundError(BridgeError):
    """Unknown job or build."""

    kind = ErrorKind.NOT_FOUND


class StoreUnavailableError(BridgeError):
    """Correlation store cannot be reached."""

    kind = ErrorKind.STORE_UNAVAILABLE


class NotificationError(BridgeError):
    """Delivering a build notification failed."""

    kind = ErrorKind.NOTIFICATION_DELIVERY

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        body: str | None = None,
        network: bool = False,
    ):
        details: dict[str, Any] = {"network": network}
        if status_code is not None:
            details["upstreamStatus"] = status_code
        if body:
            details["upstreamBody"] = body[:1000]
        super().__init__(message, details)
        self.status_code = status_code
        self.body = body
        self.network = network


class ValidationError(BridgeError):
    """Input or payload failed validation."""

    kind = ErrorKind.VALIDATION

    def __init__(self, message: str, errors: list[dict[str, Any]] | None = None):
        self.errors = errors or []
        super().__init__(message, {"errors": self.errors} if self.errors else None)

    @classmethod
    def from_pydantic(cls, exc: Any, message: str = "Input validation failed") -> "ValidationError":
        """Build from a ``pydantic.ValidationError``."""
        errors = [
            {
                "field": ".".join(str(part) for part in err.get("loc", ())),
                "message": err.get("msg", ""),
                "value": err.get("input"),
            }
            for err in exc.errors(include_url=False)
        ]
        return cls(message, errors)


class ConfigurationError(BridgeError):
    """Missing or unsafe configuration."""

    kind = ErrorKind.CONFIGURATION


def internal_error(exc: BaseException) -> BridgeError:
    """Wrap an unexpected exception so it can cross a boundary."""
    if isinstance(exc, BridgeError):
        return exc
    return BridgeError(
        f"Unexpected error: {exc}",
        {"type": type(exc).__name__},
    )
