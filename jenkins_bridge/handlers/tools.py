"""
MCP tool implementations.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from jenkins_bridge.core.exceptions import StoreUnavailableError, ValidationError
from jenkins_bridge.core.logging import get_logger
from jenkins_bridge.models.tools import (
    JobParametersInput,
    JobStatusInput,
    ListJobsInput,
    TriggerJobInput,
)
from jenkins_bridge.models.tracked import JobStatus, TrackedJob, now_ms
from jenkins_bridge.services.jenkins import JenkinsClient
from jenkins_bridge.state.jobs import JobStore

logger = get_logger(__name__)


def _validate(model: type[BaseModel], args: dict[str, Any]) -> Any:
    try:
        return model.model_validate(args)
    except PydanticValidationError as e:
        raise ValidationError.from_pydantic(e) from e


class ToolHandlers:
    """The four Jenkins operations exposed as MCP tools."""

    def __init__(self, jenkins: JenkinsClient, store: JobStore):
        self._jenkins = jenkins
        self._store = store

    async def trigger_job(self, args: dict[str, Any]) -> dict[str, Any]:
        """Trigger a build and, with callback info, track it for notification."""
        data: TriggerJobInput = _validate(TriggerJobInput, args)
        logger.info(f"Triggering Jenkins job: {data.jobName}")

        result = await self._jenkins.trigger_job(data.jobName, data.parameters)
        response = result.to_dict()
        response["tracked"] = False

        if data.callbackInfo is None:
            return response

        job = TrackedJob(
            job_name=data.jobName,
            build_number=result.build_number,
            callback_info=data.callbackInfo.to_callback_info(),
            status=JobStatus.PENDING,
            timestamp=now_ms(),
        )
        try:
            await self._store.put(job)
        except StoreUnavailableError as e:
            # The build is already running; report it rather than invite a retry.
            logger.error(f"Build {job.key} started but could not be tracked: {e.message}")
            response["trackingError"] = e.to_dict()["error"]
        else:
            response["tracked"] = True
        return response

    async def get_job_status(self, args: dict[str, Any]) -> dict[str, Any]:
        data: JobStatusInput = _validate(JobStatusInput, args)
        logger.info(f"Getting status for Jenkins job: {data.jobName} #{data.buildNumber}")
        status = await self._jenkins.get_build_status(data.jobName, data.buildNumber)
        return status.to_dict()

    async def list_jobs(self, args: dict[str, Any]) -> list[dict[str, Any]]:
        data: ListJobsInput = _validate(ListJobsInput, args)
        logger.info(f"Listing Jenkins jobs (filter={data.filter!r}, include_disabled={data.includeDisabled})")
        jobs = await self._jenkins.list_jobs(data.filter, data.includeDisabled)
        return [job.to_dict() for job in jobs]

    async def get_job_parameters(self, args: dict[str, Any]) -> dict[str, Any]:
        data: JobParametersInput = _validate(JobParametersInput, args)
        logger.info(f"Getting parameters for Jenkins job: {data.jobName}")
        parameters = await self._jenkins.get_job_parameters(data.jobName)
        return {"jobName": data.jobName, "parameters": [p.to_dict() for p in parameters]}
