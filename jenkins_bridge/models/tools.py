"""
Input models for the MCP tools.
"""

from pydantic import BaseModel, ConfigDict, Field

from jenkins_bridge.models.tracked import CallbackInfo

JOB_NAME_PATTERN = r"^[a-zA-Z0-9_\-/]+$"


class CallbackInfoInput(BaseModel):
    """All three fields are required together."""

    model_config = ConfigDict(extra="ignore")

    channel: str = Field(min_length=1, max_length=100)
    threadId: str = Field(min_length=1, max_length=100)
    userId: str = Field(min_length=1, max_length=100)

    def to_callback_info(self) -> CallbackInfo:
        return CallbackInfo(channel=self.channel, thread_id=self.threadId, user_id=self.userId)


class TriggerJobInput(BaseModel):
    model_config = ConfigDict(extra="ignore")

    jobName: str = Field(min_length=1, max_length=255, pattern=JOB_NAME_PATTERN)
    parameters: dict[str, str | int | float | bool] = Field(default_factory=dict)
    callbackInfo: CallbackInfoInput | None = None


class JobStatusInput(BaseModel):
    model_config = ConfigDict(extra="ignore")

    jobName: str = Field(min_length=1, max_length=255, pattern=JOB_NAME_PATTERN)
    buildNumber: int = Field(ge=1)


class ListJobsInput(BaseModel):
    model_config = ConfigDict(extra="ignore")

    filter: str | None = Field(default=None, min_length=1, max_length=100)
    includeDisabled: bool = False


class JobParametersInput(BaseModel):
    model_config = ConfigDict(extra="ignore")

    jobName: str = Field(min_length=1, max_length=255, pattern=JOB_NAME_PATTERN)
