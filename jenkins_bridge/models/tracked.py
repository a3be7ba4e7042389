"""
Data model for tracked Jenkins builds awaiting a completion notification.
"""

from __future__ import annotations

import json
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class JobStatus(str, Enum):
    """Lifecycle status of a tracked build."""

    PENDING = "PENDING"
    SUCCESS = "SUCCESS"
    FAILURE = "FAILURE"
    UNSTABLE = "UNSTABLE"
    ABORTED = "ABORTED"

    @property
    def is_terminal(self) -> bool:
        return self is not JobStatus.PENDING


# UNSTABLE is terminal but keeps its entry until the TTL expires.
RETIRING_STATUSES = frozenset({JobStatus.SUCCESS, JobStatus.FAILURE, JobStatus.ABORTED})


def now_ms() -> int:
    """Current time as epoch milliseconds."""
    return int(time.time() * 1000)


def job_key(job_name: str, build_number: int) -> str:
    """Store key for a build."""
    return f"job:{job_name}:{build_number}"


@dataclass(frozen=True)
class CallbackInfo:
    """Where to deliver the completion notification."""

    channel: str
    thread_id: str
    user_id: str

    def to_dict(self) -> dict[str, str]:
        return {"channel": self.channel, "threadId": self.thread_id, "userId": self.user_id}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CallbackInfo":
        return cls(
            channel=str(data["channel"]),
            thread_id=str(data["threadId"]),
            user_id=str(data["userId"]),
        )


@dataclass
class TrackedJob:
    """One in-flight build keyed by (job_name, build_number)."""

    job_name: str
    build_number: int
    callback_info: CallbackInfo | None = None
    status: JobStatus = JobStatus.PENDING
    timestamp: int = field(default_factory=now_ms)
    details: dict[str, Any] | None = None

    @property
    def key(self) -> str:
        return job_key(self.job_name, self.build_number)

    def to_dict(self) -> dict[str, Any]:
        """Convert to the persisted JSON layout."""
        data: dict[str, Any] = {
            "jobName": self.job_name,
            "buildNumber": self.build_number,
            "callbackInfo": self.callback_info.to_dict() if self.callback_info else None,
            "status": self.status.value,
            "timestamp": self.timestamp,
        }
        if self.details is not None:
            data["details"] = self.details
        return data

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TrackedJob":
        callback = data.get("callbackInfo")
        return cls(
            job_name=str(data["jobName"]),
            build_number=int(data["buildNumber"]),
            callback_info=CallbackInfo.from_dict(callback) if callback else None,
            status=JobStatus(data.get("status", JobStatus.PENDING.value)),
            timestamp=int(data["timestamp"]),
            details=data.get("details"),
        )

    @classmethod
    def from_json(cls, raw: str) -> "TrackedJob":
        """Parse a stored record.

        Raises:
            ValueError, KeyError, TypeError: If the record is malformed
        """
        data = json.loads(raw)
        if not isinstance(data, dict):
            raise ValueError("Tracked job record is not an object")
        return cls.from_dict(data)


@dataclass
class BuildNotification:
    """Outbound message describing a finished build."""

    job_name: str
    build_number: int
    status: JobStatus
    build_url: str
    callback_info: CallbackInfo

    def to_dict(self) -> dict[str, Any]:
        return {
            "jobName": self.job_name,
            "buildNumber": self.build_number,
            "status": self.status.value,
            "buildUrl": self.build_url,
            "callbackInfo": self.callback_info.to_dict(),
        }
