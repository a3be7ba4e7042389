"""
Tests for MCP tool handlers.
"""

import json
from unittest.mock import AsyncMock, MagicMock

import pytest


CALLBACK = {"channel": "#deployments", "threadId": "1700000000.123", "userId": "U123ABC"}


@pytest.fixture
def mock_jenkins():
    """Jenkins client with canned async responses."""
    from jenkins_bridge.services.jenkins import BuildStatus, JobInfo, JobParameter, TriggerResult

    jenkins = MagicMock()
    jenkins.trigger_job = AsyncMock(return_value=TriggerResult(job_name="deploy", build_number=42, queue_id=7))
    jenkins.get_build_status = AsyncMock(
        return_value=BuildStatus(job_name="deploy", build_number=42, status="RUNNING", duration=0)
    )
    jenkins.list_jobs = AsyncMock(
        return_value=[JobInfo(name="deploy", url="http://jenkins.test/job/deploy/", color="blue", buildable=True)]
    )
    jenkins.get_job_parameters = AsyncMock(return_value=[JobParameter(name="ENV", defaultValue="staging")])
    return jenkins


@pytest.fixture
def tools(mock_jenkins, job_store):
    from jenkins_bridge.handlers.tools import ToolHandlers
    return ToolHandlers(mock_jenkins, job_store)


class TestTriggerJob:
    """Tests for the trigger tool."""

    @pytest.mark.asyncio
    async def test_trigger_with_callback_tracks_build(self, tools, mock_jenkins, job_store, callback_info):
        from jenkins_bridge.models.tracked import JobStatus

        result = await tools.trigger_job({"jobName": "deploy", "parameters": {"ENV": "prod"}, "callbackInfo": CALLBACK})

        assert result == {"jobName": "deploy", "buildNumber": 42, "queueId": 7, "status": "TRIGGERED", "tracked": True}
        mock_jenkins.trigger_job.assert_awaited_once_with("deploy", {"ENV": "prod"})
        stored = await job_store.get("deploy", 42)
        assert stored.status is JobStatus.PENDING
        assert stored.callback_info == callback_info

    @pytest.mark.asyncio
    async def test_trigger_without_callback_is_not_tracked(self, tools, mock_jenkins, fake_redis):
        result = await tools.trigger_job({"jobName": "deploy"})

        assert result["tracked"] is False
        assert "trackingError" not in result
        mock_jenkins.trigger_job.assert_awaited_once_with("deploy", {})
        assert fake_redis.data == {}

    @pytest.mark.asyncio
    async def test_parameter_types_preserved(self, tools, mock_jenkins):
        await tools.trigger_job({"jobName": "deploy", "parameters": {"DRY_RUN": True, "REPLICAS": 3}})

        params = mock_jenkins.trigger_job.await_args.args[1]
        assert params["DRY_RUN"] is True
        assert params["REPLICAS"] == 3

    @pytest.mark.parametrize("args", [
        {"jobName": "deploy", "callbackInfo": {"channel": "#deployments", "threadId": "1"}},
        {"jobName": "deploy; rm -rf /"},
        {"jobName": ""},
        {},
        {"jobName": "deploy", "parameters": {"ENV": ["a", "b"]}},
    ])
    @pytest.mark.asyncio
    async def test_invalid_input_never_reaches_jenkins(self, tools, mock_jenkins, args):
        from jenkins_bridge.core.exceptions import ValidationError

        with pytest.raises(ValidationError) as exc_info:
            await tools.trigger_job(args)

        assert exc_info.value.errors
        mock_jenkins.trigger_job.assert_not_called()

    @pytest.mark.asyncio
    async def test_store_failure_reports_untracked_build(self, tools, mock_jenkins, fake_redis):
        fake_redis.fail = True

        result = await tools.trigger_job({"jobName": "deploy", "callbackInfo": CALLBACK})

        assert result["buildNumber"] == 42
        assert result["tracked"] is False
        assert result["trackingError"]["code"] == "STORE_UNAVAILABLE"

    @pytest.mark.asyncio
    async def test_jenkins_error_propagates(self, tools, mock_jenkins, fake_redis):
        from jenkins_bridge.core.exceptions import QueueTimeoutError

        mock_jenkins.trigger_job.side_effect = QueueTimeoutError("deploy", 7, 60.0)

        with pytest.raises(QueueTimeoutError):
            await tools.trigger_job({"jobName": "deploy", "callbackInfo": CALLBACK})

        assert fake_redis.data == {}


class TestReadTools:
    """Tests for the read-only tools."""

    @pytest.mark.asyncio
    async def test_get_job_status(self, tools, mock_jenkins):
        result = await tools.get_job_status({"jobName": "team/deploy", "buildNumber": 42})

        assert result["status"] == "RUNNING"
        mock_jenkins.get_build_status.assert_awaited_once_with("team/deploy", 42)

    @pytest.mark.asyncio
    async def test_get_job_status_rejects_build_zero(self, tools, mock_jenkins):
        from jenkins_bridge.core.exceptions import ValidationError

        with pytest.raises(ValidationError):
            await tools.get_job_status({"jobName": "deploy", "buildNumber": 0})
        mock_jenkins.get_build_status.assert_not_called()

    @pytest.mark.asyncio
    async def test_list_jobs(self, tools, mock_jenkins):
        result = await tools.list_jobs({"filter": "dep", "includeDisabled": True})

        assert result == [{"name": "deploy", "url": "http://jenkins.test/job/deploy/", "color": "blue", "buildable": True}]
        mock_jenkins.list_jobs.assert_awaited_once_with("dep", True)

    @pytest.mark.asyncio
    async def test_list_jobs_defaults(self, tools, mock_jenkins):
        await tools.list_jobs({})

        mock_jenkins.list_jobs.assert_awaited_once_with(None, False)

    @pytest.mark.asyncio
    async def test_get_job_parameters(self, tools):
        result = await tools.get_job_parameters({"jobName": "deploy"})

        assert result == {
            "jobName": "deploy",
            "parameters": [{"name": "ENV", "description": "", "defaultValue": "staging", "type": "String"}],
        }


class TestRunTool:
    """Tests for JSON rendering at the tool boundary."""

    @pytest.mark.asyncio
    async def test_success(self):
        from jenkins_bridge.handlers import run_tool

        async def call():
            return {"ok": True}

        assert json.loads(await run_tool("t", call())) == {"ok": True}

    @pytest.mark.asyncio
    async def test_bridge_error(self):
        from jenkins_bridge.core.exceptions import NotFoundError
        from jenkins_bridge.handlers import run_tool

        async def call():
            raise NotFoundError("Jenkins resource not found")

        assert json.loads(await run_tool("t", call())) == {
            "error": {"code": "NOT_FOUND", "message": "Jenkins resource not found"}
        }

    @pytest.mark.asyncio
    async def test_unexpected_error(self):
        from jenkins_bridge.handlers import run_tool

        async def call():
            raise KeyError("executable")

        data = json.loads(await run_tool("t", call()))

        assert data["error"]["code"] == "INTERNAL_ERROR"
        assert data["error"]["details"] == {"type": "KeyError"}


class TestRegistration:
    @pytest.mark.asyncio
    async def test_tools_registered(self, settings, mock_jenkins, job_store):
        from jenkins_bridge.app import create_mcp_server

        mcp = create_mcp_server(settings, mock_jenkins, job_store)
        tools = {tool.name: tool for tool in await mcp.list_tools()}

        assert set(tools) == {"trigger_jenkins_job", "get_job_status", "list_jenkins_jobs", "get_job_parameters"}
        assert "jobName" in tools["trigger_jenkins_job"].inputSchema["properties"]
        assert tools["get_job_status"].inputSchema["required"] == ["jobName", "buildNumber"]
