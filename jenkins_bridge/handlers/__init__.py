"""
MCP tool registration.
"""

import json
from typing import Any, Awaitable

from mcp.server.fastmcp import FastMCP

from jenkins_bridge.core.exceptions import BridgeError, internal_error
from jenkins_bridge.core.logging import get_logger
from jenkins_bridge.handlers.tools import ToolHandlers

logger = get_logger(__name__)


async def run_tool(name: str, call: Awaitable[Any]) -> str:
    """Await a tool call and render its result or error as JSON text."""
    try:
        result = await call
    except BridgeError as e:
        logger.error(f"Tool {name} failed: {e.message}")
        return json.dumps(e.to_dict())
    except Exception as e:
        logger.exception(f"Unexpected error in tool {name}")
        return json.dumps(internal_error(e).to_dict())
    return json.dumps(result)


def _drop_none(**kwargs: Any) -> dict[str, Any]:
    return {k: v for k, v in kwargs.items() if v is not None}


def register_tools(mcp: FastMCP, tools: ToolHandlers) -> None:
    """Register all Jenkins tools with the MCP server."""

    @mcp.tool(name="trigger_jenkins_job")
    async def trigger_jenkins_job(
        jobName: str,
        parameters: dict[str, Any] | None = None,
        callbackInfo: dict[str, Any] | None = None,
    ) -> str:
        """Trigger a Jenkins job with optional parameters and callback information.

        Args:
            jobName: Name of the Jenkins job to trigger (folders separated by "/")
            parameters: Optional job parameters
            callbackInfo: Optional {channel, threadId, userId} to notify when the build finishes
        """
        args = _drop_none(jobName=jobName, parameters=parameters, callbackInfo=callbackInfo)
        return await run_tool("trigger_jenkins_job", tools.trigger_job(args))

    @mcp.tool(name="get_job_status")
    async def get_job_status(jobName: str, buildNumber: int) -> str:
        """Get the status of a specific Jenkins build.

        Args:
            jobName: Name of the Jenkins job
            buildNumber: Build number
        """
        args = {"jobName": jobName, "buildNumber": buildNumber}
        return await run_tool("get_job_status", tools.get_job_status(args))

    @mcp.tool(name="list_jenkins_jobs")
    async def list_jenkins_jobs(filter: str | None = None, includeDisabled: bool = False) -> str:
        """List available Jenkins jobs with optional filtering.

        Args:
            filter: Case-insensitive substring to match job names
            includeDisabled: Whether to include disabled jobs
        """
        args = _drop_none(filter=filter, includeDisabled=includeDisabled)
        return await run_tool("list_jenkins_jobs", tools.list_jobs(args))

    @mcp.tool(name="get_job_parameters")
    async def get_job_parameters(jobName: str) -> str:
        """Get the parameter definitions for a Jenkins job.

        Args:
            jobName: Name of the Jenkins job
        """
        return await run_tool("get_job_parameters", tools.get_job_parameters({"jobName": jobName}))

    logger.info("Registered MCP tools: trigger_jenkins_job, get_job_status, list_jenkins_jobs, get_job_parameters")
