"""
Schema for Jenkins build notification webhooks.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from jenkins_bridge.models.tracked import JobStatus

BuildPhase = Literal["STARTED", "COMPLETED", "FINALIZED"]


class WebhookBuild(BaseModel):
    """The ``build`` object of a notification."""

    model_config = ConfigDict(extra="ignore")

    number: int = Field(ge=1)
    phase: BuildPhase
    status: str | None = None
    url: str = ""
    full_url: str = ""
    timestamp: int | None = None
    duration: int | None = None

    @model_validator(mode="after")
    def _check_completed_status(self):
        if self.phase == "COMPLETED" and self.status is not None:
            allowed = {s.value for s in JobStatus if s.is_terminal}
            if self.status not in allowed:
                raise ValueError(
                    f"status must be one of {', '.join(sorted(allowed))} for COMPLETED builds"
                )
        return self

    @property
    def terminal_status(self) -> JobStatus | None:
        """Terminal outcome, or None when this event carries none."""
        if self.phase != "COMPLETED" or self.status is None:
            return None
        return JobStatus(self.status)


class WebhookPayload(BaseModel):
    """Inbound notification body."""

    model_config = ConfigDict(extra="ignore")

    name: str = Field(min_length=1)
    url: str = ""
    build: WebhookBuild
