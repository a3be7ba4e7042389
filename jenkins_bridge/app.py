"""
Application factory and main entry point.
"""

import asyncio
from typing import Any

from mcp.server.fastmcp import FastMCP

from jenkins_bridge.core.config import Settings
from jenkins_bridge.core.exceptions import ConfigurationError, StoreUnavailableError
from jenkins_bridge.core.logging import get_logger, setup_logging
from jenkins_bridge.handlers import register_tools
from jenkins_bridge.handlers.tools import ToolHandlers
from jenkins_bridge.services.jenkins import JenkinsClient
from jenkins_bridge.services.notifier import Notifier
from jenkins_bridge.state.jobs import JobStore
from jenkins_bridge.webhooks.jenkins import JenkinsWebhookHandler
from jenkins_bridge.webhooks.server import create_webhook_app, start_webhook_server
from jenkins_bridge.webhooks.signature import webhook_auth_bypass

logger = get_logger(__name__)


def create_mcp_server(settings: Settings, jenkins: JenkinsClient, store: JobStore) -> FastMCP:
    """Create the MCP server with all tools registered."""
    mcp = FastMCP(settings.mcp_server_name)
    register_tools(mcp, ToolHandlers(jenkins, store))
    return mcp


def create_webhook_handler(settings: Settings, store: JobStore) -> JenkinsWebhookHandler:
    """Build the webhook handler, refusing an auth bypass in production."""
    if settings.webhook_auth_bypass:
        webhook_auth_bypass(settings.environment)
    elif not settings.webhook_secret:
        log = logger.error if settings.is_production else logger.warning
        log("WEBHOOK_SECRET is not set; every webhook will be rejected")

    notifier = Notifier(settings.notify_webhook_url, timeout=settings.notify_timeout)
    return JenkinsWebhookHandler(
        store,
        notifier,
        settings.webhook_secret,
        auth_bypass=settings.webhook_auth_bypass,
        environment=settings.environment,
    )


def _log_task_exception(loop: asyncio.AbstractEventLoop, context: dict[str, Any]) -> None:
    error = context.get("exception")
    logger.error(f"Unhandled error in background task: {context.get('message')}", exc_info=error)


async def main() -> None:
    """Main application entry point."""
    settings = Settings()
    setup_logging(settings.log_level)
    asyncio.get_running_loop().set_exception_handler(_log_task_exception)

    logger.info(
        f"Starting {settings.mcp_server_name} v{settings.mcp_server_version} ({settings.environment})..."
    )

    jenkins = JenkinsClient(settings)
    store = JobStore(
        settings.redis_url,
        settings.job_ttl_seconds,
        max_reconnect_attempts=settings.redis_max_reconnect_attempts,
    )
    runner = None

    try:
        check = await jenkins.check_connection()
        if check.success:
            logger.info(f"{check.message}: {check.details}")
        else:
            logger.warning(f"{check.message}: {check.errors}")

        try:
            await store.connect()
        except StoreUnavailableError:
            logger.error("Continuing without job tracking; build notifications are disabled")

        handler = create_webhook_handler(settings, store)
        app = create_webhook_app(handler, store)
        runner = await start_webhook_server(app, settings.webhook_host, settings.webhook_port)

        mcp = create_mcp_server(settings, jenkins, store)
        logger.info("MCP server listening on stdio")
        await mcp.run_stdio_async()
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e.message}")
        raise
    except asyncio.CancelledError:
        pass
    except Exception:
        logger.exception("Fatal error; shutting down")
        raise
    finally:
        # Graceful shutdown
        if runner is not None:
            await runner.cleanup()
        await store.close()
        logger.info("Shutdown complete")
