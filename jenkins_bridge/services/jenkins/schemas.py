"""
Data schemas for Jenkins API results.
"""

from dataclasses import asdict, dataclass, field
from typing import Any


@dataclass
class TriggerResult:
    """A queued build that has been assigned a build number."""

    job_name: str
    build_number: int
    queue_id: int
    status: str = "TRIGGERED"

    def to_dict(self) -> dict[str, Any]:
        return {
            "jobName": self.job_name,
            "buildNumber": self.build_number,
            "queueId": self.queue_id,
            "status": self.status,
        }


@dataclass
class BuildStatus:
    """Status of one build. ``status`` is RUNNING or PENDING until Jenkins reports a result."""

    job_name: str
    build_number: int
    status: str
    duration: int | None = None
    timestamp: int | None = None
    url: str | None = None

    @classmethod
    def from_api(cls, job_name: str, build_number: int, data: dict[str, Any]) -> "BuildStatus":
        if data.get("result"):
            status = str(data["result"])
        elif data.get("building"):
            status = "RUNNING"
        else:
            status = "PENDING"
        return cls(
            job_name=job_name,
            build_number=build_number,
            status=status,
            duration=data.get("duration"),
            timestamp=data.get("timestamp"),
            url=data.get("url"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "jobName": self.job_name,
            "buildNumber": self.build_number,
            "status": self.status,
            "duration": self.duration,
            "timestamp": self.timestamp,
            "url": self.url,
        }


@dataclass
class JobInfo:
    name: str
    url: str
    color: str
    buildable: bool

    DISABLED_COLOR = "disabled"

    @property
    def disabled(self) -> bool:
        return self.color == self.DISABLED_COLOR

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class JobParameter:
    name: str
    description: str = ""
    defaultValue: str = ""
    type: str = "String"

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class ConnectionCheck:
    """Outcome of a Jenkins connectivity probe."""

    success: bool
    message: str
    details: dict[str, Any] = field(default_factory=dict)
    errors: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
