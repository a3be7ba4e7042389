"""
Jenkins REST API client.
"""

from __future__ import annotations

import asyncio
import re
import time
import xml.etree.ElementTree as ET
from typing import Any
from urllib.parse import quote

import httpx

from jenkins_bridge.core.config import Settings
from jenkins_bridge.core.exceptions import (
    AuthenticationError,
    JenkinsAPIError,
    NotFoundError,
    QueueTimeoutError,
)
from jenkins_bridge.core.logging import get_logger
from .schemas import BuildStatus, ConnectionCheck, JobInfo, JobParameter, TriggerResult

logger = get_logger(__name__)

_QUEUE_LOCATION_RE = re.compile(r"/queue/item/(\d+)/?$")
_XML_DECLARATION_RE = re.compile(r"^\s*<\?xml[^>]*\?>")
_PARAMETER_TAG_RE = re.compile(r"(?:^|\.)(\w*)ParameterDefinition$")


def job_path(job_name: str) -> str:
    """Map ``folder/job`` to ``job/folder/job/job``."""
    segments = [s for s in job_name.split("/") if s]
    return "/".join(f"job/{quote(s, safe='')}" for s in segments)


def _form_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def parse_job_parameters(config_xml: str) -> list[JobParameter]:
    """
    Extract parameter definitions from a job's ``config.xml``.

    Malformed XML or a job without parameters yields an empty list.
    """
    try:
        root = ET.fromstring(_XML_DECLARATION_RE.sub("", config_xml, count=1))
    except ET.ParseError as e:
        logger.warning(f"Could not parse job config XML: {e}")
        return []

    parameters = []
    for element in root.iter():
        if not isinstance(element.tag, str):
            continue
        match = _PARAMETER_TAG_RE.search(element.tag)
        if not match:
            continue
        parameters.append(
            JobParameter(
                name=(element.findtext("name") or "").strip(),
                description=(element.findtext("description") or "").strip(),
                defaultValue=(element.findtext("defaultValue") or "").strip(),
                type=match.group(1) or "String",
            )
        )
    return parameters


class JenkinsClient:
    """Client for Jenkins API operations."""

    def __init__(self, settings: Settings, transport: httpx.AsyncBaseTransport | None = None):
        self._base_url = settings.jenkins_url
        self._auth = httpx.BasicAuth(settings.jenkins_username, settings.jenkins_auth_secret)
        self._timeout = settings.jenkins_timeout
        self._use_crumb = settings.jenkins_crumb_issuer
        self._poll_interval = settings.queue_poll_interval
        self._poll_timeout = settings.queue_poll_timeout
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._base_url,
            auth=self._auth,
            timeout=self._timeout,
            transport=self._transport,
        )

    @staticmethod
    def _raise_for_response(response: httpx.Response, action: str) -> None:
        if response.is_success:
            return
        status = response.status_code
        body = response.text
        if status in (401, 403):
            raise AuthenticationError(
                f"Jenkins rejected credentials while trying to {action} (HTTP {status})",
                {"upstreamStatus": status},
            )
        if status == 404:
            raise NotFoundError(f"Jenkins resource not found while trying to {action}", {"upstreamStatus": 404})
        raise JenkinsAPIError(f"Failed to {action}: HTTP {status}", status_code=status, body=body)

    @staticmethod
    def _json(response: httpx.Response, action: str, details: dict[str, Any] | None = None) -> dict[str, Any]:
        """Decode a JSON object body, or raise JenkinsAPIError with what came back."""
        try:
            data = response.json()
        except ValueError as e:
            raise JenkinsAPIError(
                f"Failed to {action}: response is not JSON",
                status_code=response.status_code,
                body=response.text,
                details=details,
            ) from e
        if not isinstance(data, dict):
            raise JenkinsAPIError(
                f"Failed to {action}: expected a JSON object",
                status_code=response.status_code,
                body=response.text,
                details=details,
            )
        return data

    async def _request(
        self,
        client: httpx.AsyncClient,
        method: str,
        path: str,
        action: str,
        **kwargs: Any,
    ) -> httpx.Response:
        try:
            response = await client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"Jenkins request failed ({action}): {e}")
            raise JenkinsAPIError(f"Failed to {action}: {e}") from e
        self._raise_for_response(response, action)
        return response

    async def _crumb_headers(self, client: httpx.AsyncClient) -> dict[str, str]:
        """CSRF crumb header for POSTs, or nothing if the issuer is disabled."""
        if not self._use_crumb:
            return {}
        try:
            response = await client.get("/crumbIssuer/api/json")
        except httpx.HTTPError as e:
            raise JenkinsAPIError(f"Failed to fetch CSRF crumb: {e}") from e
        if response.status_code == 404:
            return {}
        self._raise_for_response(response, "fetch CSRF crumb")
        data = self._json(response, "fetch CSRF crumb")
        try:
            return {data["crumbRequestField"]: data["crumb"]}
        except KeyError as e:
            raise JenkinsAPIError(
                f"Failed to fetch CSRF crumb: missing {e}",
                status_code=response.status_code,
                body=response.text,
            ) from e

    async def trigger_job(self, job_name: str, parameters: dict[str, Any] | None = None) -> TriggerResult:
        """
        Queue a build and wait for Jenkins to assign its build number.

        Raises:
            QueueTimeoutError: If no build number appears before the deadline
            JenkinsAPIError: If Jenkins rejects the request
        """
        parameters = parameters or {}
        endpoint = "buildWithParameters" if parameters else "build"
        path = f"/{job_path(job_name)}/{endpoint}"

        async with self._client() as client:
            headers = await self._crumb_headers(client)
            response = await self._request(
                client,
                "POST",
                path,
                f"trigger job {job_name}",
                headers=headers,
                data={k: _form_value(v) for k, v in parameters.items()} or None,
            )
            queue_id = self._parse_queue_id(response)
            logger.info(f"Queued {job_name} as queue item {queue_id}")
            build_number = await self._wait_for_build_number(client, job_name, queue_id)

        logger.info(f"Triggered {job_name} #{build_number}")
        return TriggerResult(job_name=job_name, build_number=build_number, queue_id=queue_id)

    @staticmethod
    def _parse_queue_id(response: httpx.Response) -> int:
        location = response.headers.get("Location", "")
        match = _QUEUE_LOCATION_RE.search(location)
        if not match:
            raise JenkinsAPIError(
                "Jenkins did not return a queue item location",
                status_code=response.status_code,
                details={"location": location},
            )
        return int(match.group(1))

    async def _wait_for_build_number(self, client: httpx.AsyncClient, job_name: str, queue_id: int) -> int:
        """Poll the queue item until it has a build number; the poll timeout caps the whole wait."""
        loop = asyncio.get_running_loop()
        started = loop.time()
        try:
            return await asyncio.wait_for(
                self._poll_queue_item(client, job_name, queue_id),
                timeout=self._poll_timeout,
            )
        except asyncio.TimeoutError:
            waited = round(loop.time() - started, 3)
            logger.error(f"Timed out after {waited}s waiting for a build number for queue item {queue_id}")
            raise QueueTimeoutError(job_name, queue_id, waited) from None

    async def _poll_queue_item(self, client: httpx.AsyncClient, job_name: str, queue_id: int) -> int:
        details = {"jobName": job_name, "queueId": queue_id}
        action = f"read queue item {queue_id} for {job_name}"

        while True:
            try:
                response = await client.get(f"/queue/item/{queue_id}/api/json")
            except httpx.HTTPError as e:
                logger.debug(f"Queue item {queue_id} not readable yet: {e}")
            else:
                if response.is_success:
                    item = self._json(response, action, details)
                    executable = item.get("executable") or {}
                    number = executable.get("number") if isinstance(executable, dict) else None
                    if number:
                        try:
                            return int(number)
                        except (TypeError, ValueError) as e:
                            raise JenkinsAPIError(
                                f"Failed to {action}: invalid build number {number!r}",
                                status_code=response.status_code,
                                body=response.text,
                                details=details,
                            ) from e
                    if item.get("cancelled"):
                        raise JenkinsAPIError(
                            f"Queue item {queue_id} for {job_name} was cancelled",
                            details=details,
                        )
                else:
                    logger.debug(f"Queue item {queue_id} returned HTTP {response.status_code}")

            await asyncio.sleep(self._poll_interval)

    async def get_build_status(self, job_name: str, build_number: int) -> BuildStatus:
        """Get status, duration, timestamp and URL of a build."""
        async with self._client() as client:
            response = await self._request(
                client,
                "GET",
                f"/{job_path(job_name)}/{build_number}/api/json",
                f"get build status for {job_name} #{build_number}",
            )
        data = self._json(response, f"get build status for {job_name} #{build_number}")
        return BuildStatus.from_api(job_name, build_number, data)

    async def list_jobs(self, filter: str | None = None, include_disabled: bool = False) -> list[JobInfo]:
        """
        List jobs, skipping disabled ones unless asked.

        Args:
            filter: Case-insensitive substring matched against job names
            include_disabled: Keep jobs whose color marks them disabled
        """
        async with self._client() as client:
            response = await self._request(
                client,
                "GET",
                "/api/json",
                "list jobs",
                params={"tree": "jobs[name,url,buildable,color]"},
            )

        jobs = [
            JobInfo(
                name=item.get("name", ""),
                url=item.get("url", ""),
                color=item.get("color", ""),
                buildable=bool(item.get("buildable", False)),
            )
            for item in self._json(response, "list jobs").get("jobs") or []
            if isinstance(item, dict)
        ]
        if not include_disabled:
            jobs = [job for job in jobs if not job.disabled]
        if filter:
            needle = filter.lower()
            jobs = [job for job in jobs if needle in job.name.lower()]
        return jobs

    async def get_job_parameters(self, job_name: str) -> list[JobParameter]:
        """Get the parameter definitions declared in a job's config.xml."""
        async with self._client() as client:
            response = await self._request(
                client,
                "GET",
                f"/{job_path(job_name)}/config.xml",
                f"get job parameters for {job_name}",
            )
        return parse_job_parameters(response.text)

    async def check_connection(self) -> ConnectionCheck:
        """Probe reachability, authentication and API access."""
        started = time.monotonic()

        def elapsed_ms() -> int:
            return int((time.monotonic() - started) * 1000)

        async with self._client() as client:
            try:
                await client.get("/login")
            except httpx.HTTPError as e:
                return ConnectionCheck(
                    success=False,
                    message="Jenkins server is not reachable",
                    details={"response_time_ms": elapsed_ms()},
                    errors=[str(e)],
                )

            try:
                me = await self._request(client, "GET", "/me/api/json", "authenticate")
                info = await self._request(client, "GET", "/api/json", "read server info")
                user = self._json(me, "authenticate")
                server = self._json(info, "read server info")
            except (AuthenticationError, NotFoundError, JenkinsAPIError) as e:
                return ConnectionCheck(
                    success=False,
                    message="Jenkins authentication or API access failed",
                    details={"response_time_ms": elapsed_ms()},
                    errors=[e.message],
                )

        return ConnectionCheck(
            success=True,
            message="Jenkins connection test successful",
            details={
                "authenticated": True,
                "user": user.get("fullName") or user.get("id"),
                "jenkins_version": info.headers.get("X-Jenkins"),
                "mode": server.get("mode"),
                "node_name": server.get("nodeName"),
                "job_count": len(server.get("jobs", [])),
                "response_time_ms": elapsed_ms(),
            },
        )
