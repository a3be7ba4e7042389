"""
Redis-backed storage for tracked builds.

Entries live under ``job:{jobName}:{buildNumber}`` with a TTL that is
refreshed on every write, so builds whose webhook never arrives expire.
"""

from __future__ import annotations

import asyncio
from typing import Any

import redis.asyncio as redis
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import RedisError
from redis.exceptions import TimeoutError as RedisTimeoutError

from jenkins_bridge.core.exceptions import StoreUnavailableError
from jenkins_bridge.core.logging import get_logger
from jenkins_bridge.models.tracked import JobStatus, TrackedJob, job_key, now_ms

logger = get_logger(__name__)

_CONNECTIVITY_ERRORS = (RedisConnectionError, RedisTimeoutError, OSError)
_STORE_ERRORS = (RedisError, OSError)


class JobStore:
    """Storage for builds awaiting a completion webhook."""

    def __init__(
        self,
        url: str,
        ttl_seconds: int = 3600,
        *,
        max_reconnect_attempts: int = 10,
        backoff_base: float = 0.1,
        backoff_cap: float = 5.0,
        client: Any | None = None,
    ):
        self._ttl = ttl_seconds
        self._max_attempts = max_reconnect_attempts
        self._backoff_base = backoff_base
        self._backoff_cap = backoff_cap
        self._client = client if client is not None else redis.from_url(
            url,
            decode_responses=True,
            socket_timeout=5.0,
            socket_connect_timeout=5.0,
        )
        self._connected = False
        self._gave_up = False
        self._reconnect_task: asyncio.Task | None = None

    @property
    def is_connected(self) -> bool:
        return self._connected

    @property
    def ttl_seconds(self) -> int:
        return self._ttl

    def _backoff(self, attempt: int) -> float:
        return min(self._backoff_base * (2 ** (attempt - 1)), self._backoff_cap)

    async def connect(self) -> None:
        """
        Connect with capped exponential backoff.

        Raises:
            StoreUnavailableError: If every attempt fails. The store then stays
                unavailable until the process is restarted.
        """
        for attempt in range(1, self._max_attempts + 1):
            try:
                await self._client.ping()
            except _STORE_ERRORS as e:
                delay = self._backoff(attempt)
                logger.warning(
                    f"Redis connection attempt {attempt}/{self._max_attempts} failed: {e} (retrying in {delay:.2f}s)"
                )
                if attempt < self._max_attempts:
                    await asyncio.sleep(delay)
                continue
            self._connected = True
            logger.info("Job store connected")
            return

        self._connected = False
        self._gave_up = True
        logger.error(f"Giving up on Redis after {self._max_attempts} attempts")
        raise StoreUnavailableError(
            "Job store is unavailable",
            {"attempts": self._max_attempts},
        )

    async def _reconnect(self) -> None:
        try:
            await self.connect()
        except StoreUnavailableError:
            logger.error("Job store reconnect failed; operations will be rejected")

    def _mark_disconnected(self, error: BaseException) -> None:
        was_connected = self._connected
        self._connected = False
        if was_connected:
            logger.error(f"Lost connection to Redis: {error}")
        if self._gave_up:
            return
        if self._reconnect_task is None or self._reconnect_task.done():
            self._reconnect_task = asyncio.create_task(self._reconnect())

    def _ensure_connected(self) -> None:
        if not self._connected:
            raise StoreUnavailableError("Job store is not connected")

    async def close(self) -> None:
        """Stop reconnecting and close the client."""
        if self._reconnect_task is not None and not self._reconnect_task.done():
            self._reconnect_task.cancel()
            try:
                await self._reconnect_task
            except asyncio.CancelledError:
                pass
        self._connected = False
        await self._client.aclose()
        logger.info("Job store closed")

    async def put(self, job: TrackedJob) -> None:
        """
        Store a tracked job, replacing any entry with the same key.

        Raises:
            StoreUnavailableError: If Redis cannot be reached
        """
        self._ensure_connected()
        try:
            await self._client.set(job.key, job.to_json(), ex=self._ttl)
        except _CONNECTIVITY_ERRORS as e:
            self._mark_disconnected(e)
            raise StoreUnavailableError(f"Failed to track job {job.key}") from e
        except RedisError as e:
            raise StoreUnavailableError(f"Failed to track job {job.key}") from e
        logger.info(f"Tracking job: {job.key} (status={job.status.value})")

    async def _read(self, job_name: str, build_number: int) -> TrackedJob | None:
        """Read a record. Unparseable records count as absent."""
        self._ensure_connected()
        key = job_key(job_name, build_number)
        try:
            raw = await self._client.get(key)
        except _CONNECTIVITY_ERRORS as e:
            self._mark_disconnected(e)
            raise StoreUnavailableError(f"Failed to read {key}") from e
        except RedisError as e:
            raise StoreUnavailableError(f"Failed to read {key}") from e
        if raw is None:
            return None
        try:
            return TrackedJob.from_json(raw)
        except (ValueError, KeyError, TypeError) as e:
            logger.error(f"Discarding unreadable record {key}: {e}")
            return None

    async def get(self, job_name: str, build_number: int) -> TrackedJob | None:
        """Get a tracked job. Any read or parse failure yields None."""
        try:
            return await self._read(job_name, build_number)
        except StoreUnavailableError as e:
            logger.warning(f"Job lookup degraded to not-found: {e}")
            return None

    async def update_status(
        self,
        job_name: str,
        build_number: int,
        status: JobStatus,
        details: dict[str, Any] | None = None,
    ) -> TrackedJob | None:
        """
        Record a terminal outcome for a tracked job.

        Absent entries are left absent. An entry that already holds a
        terminal status is not changed.

        Returns:
            The stored job after the update, or None if it was not tracked

        Raises:
            StoreUnavailableError: If Redis cannot be reached
        """
        job = await self._read(job_name, build_number)
        if job is None:
            logger.warning(f"Status update for untracked build {job_key(job_name, build_number)}")
            return None

        if job.status.is_terminal:
            logger.info(f"Ignoring {status.value} for {job.key}: already {job.status.value}")
            return job

        job.status = status
        job.details = {**(job.details or {}), **(details or {})}
        job.timestamp = now_ms()
        await self.put(job)
        return job

    async def remove(self, job_name: str, build_number: int) -> None:
        """
        Delete a tracked job. Deleting a missing key is fine.

        Raises:
            StoreUnavailableError: If Redis cannot be reached
        """
        self._ensure_connected()
        key = job_key(job_name, build_number)
        try:
            deleted = await self._client.delete(key)
        except _CONNECTIVITY_ERRORS as e:
            self._mark_disconnected(e)
            raise StoreUnavailableError(f"Failed to remove {key}") from e
        except RedisError as e:
            raise StoreUnavailableError(f"Failed to remove {key}") from e
        if deleted:
            logger.info(f"Cleaned up job tracking: {key}")
        else:
            logger.debug(f"Job tracking already gone: {key}")
