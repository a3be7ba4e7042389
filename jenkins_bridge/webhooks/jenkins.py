"""
Jenkins build notification webhook.

Authenticates the sender, then for COMPLETED builds that were triggered
with callback info: notify, record the outcome, and retire the entry.
"""

from __future__ import annotations

import json
from typing import Any

from aiohttp import web
from pydantic import ValidationError as PydanticValidationError

from jenkins_bridge.core.exceptions import (
    AuthenticationError,
    BridgeError,
    ValidationError,
    internal_error,
)
from jenkins_bridge.core.logging import get_logger
from jenkins_bridge.models.tracked import RETIRING_STATUSES, BuildNotification, now_ms
from jenkins_bridge.models.webhook import WebhookPayload
from jenkins_bridge.services.notifier import Notifier
from jenkins_bridge.state.jobs import JobStore
from jenkins_bridge.webhooks.signature import (
    get_signature_header,
    verify_signature,
    webhook_auth_bypass,
)

logger = get_logger(__name__)


def error_response(error: BridgeError) -> web.Response:
    """Map an error to 400, 401 or 500 with the standard error body."""
    if isinstance(error, ValidationError):
        status = 400
    elif isinstance(error, AuthenticationError):
        status = 401
    else:
        status = 500
    return web.json_response(error.to_dict(), status=status)


class JenkinsWebhookHandler:
    """Handles ``POST /webhook/jenkins``."""

    def __init__(
        self,
        store: JobStore,
        notifier: Notifier,
        secret: str | None,
        *,
        auth_bypass: bool = False,
        environment: str = "development",
    ):
        self._store = store
        self._notifier = notifier
        self._secret = secret
        self._auth_bypass = auth_bypass
        self._environment = environment

    def _authenticate(self, body: bytes, headers: Any) -> None:
        if self._auth_bypass:
            webhook_auth_bypass(self._environment)
            return

        signature = get_signature_header(headers)
        if not signature:
            logger.warning("Webhook authentication failed: no signature header found")
            raise AuthenticationError("Missing webhook signature")
        if not verify_signature(body, signature, self._secret):
            raise AuthenticationError("Invalid webhook signature")

    @staticmethod
    def _parse(body: bytes) -> WebhookPayload:
        try:
            data = json.loads(body)
        except (UnicodeDecodeError, ValueError) as e:
            raise ValidationError(
                "Webhook body is not valid JSON",
                [{"field": "", "message": str(e), "value": None}],
            ) from e
        try:
            return WebhookPayload.model_validate(data)
        except PydanticValidationError as e:
            raise ValidationError.from_pydantic(e, "Invalid webhook payload") from e

    async def handle(self, request: web.Request) -> web.Response:
        """Process one inbound notification."""
        body = await request.read()
        try:
            self._authenticate(body, request.headers)
        except BridgeError as e:
            return error_response(e)

        try:
            payload = self._parse(body)
            await self._process(payload)
        except BridgeError as e:
            if isinstance(e, ValidationError):
                logger.warning(f"Webhook validation failed: {e.message}")
            else:
                logger.error(f"Error processing webhook: {e.message}")
            return error_response(e)
        except Exception as e:
            logger.exception("Unexpected error processing webhook")
            return error_response(internal_error(e))

        return web.json_response(
            {
                "success": True,
                "message": "Webhook processed successfully",
                "jobName": payload.name,
                "buildNumber": payload.build.number,
                "phase": payload.build.phase,
            }
        )

    async def _process(self, payload: WebhookPayload) -> None:
        job_name = payload.name
        build = payload.build
        logger.info(f"Webhook for {job_name} #{build.number}: phase={build.phase} status={build.status}")

        status = build.terminal_status
        if status is None:
            logger.debug(f"Ignoring {build.phase} phase without a terminal status")
            return

        job = await self._store.get(job_name, build.number)
        if job is None or job.callback_info is None:
            logger.info(f"No callback information found for {job_name} #{build.number}")
            return

        await self._notifier.notify(
            BuildNotification(
                job_name=job_name,
                build_number=build.number,
                status=status,
                build_url=build.full_url or build.url,
                callback_info=job.callback_info,
            )
        )

        await self._store.update_status(
            job_name,
            build.number,
            status,
            {"duration": build.duration, "timestamp": build.timestamp or now_ms()},
        )

        if status in RETIRING_STATUSES:
            await self._store.remove(job_name, build.number)

        logger.info(f"Processed completed build {job_name} #{build.number} ({status.value})")
