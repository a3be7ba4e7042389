"""
Webhook server setup.
"""

from datetime import datetime, timezone

from aiohttp import web

from jenkins_bridge import __version__
from jenkins_bridge.core.logging import get_logger
from jenkins_bridge.state.jobs import JobStore
from jenkins_bridge.webhooks.jenkins import JenkinsWebhookHandler

logger = get_logger(__name__)

SERVICE_NAME = "jenkins-mcp-webhook-handler"


@web.middleware
async def log_requests(request: web.Request, handler):
    logger.info(
        f"Webhook request received: {request.method} {request.path} "
        f"(ua={request.headers.get('User-Agent')}, content-type={request.headers.get('Content-Type')})"
    )
    return await handler(request)


def create_webhook_app(handler: JenkinsWebhookHandler, store: JobStore) -> web.Application:
    """Build the aiohttp application with health and webhook routes."""

    async def health(request: web.Request) -> web.Response:
        return web.json_response(
            {
                "status": "healthy" if store.is_connected else "degraded",
                "service": SERVICE_NAME,
                "version": __version__,
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "store": "connected" if store.is_connected else "disconnected",
            }
        )

    app = web.Application(middlewares=[log_requests])
    app.router.add_get("/health", health)
    app.router.add_post("/webhook/jenkins", handler.handle)
    return app


async def start_webhook_server(app: web.Application, host: str = "0.0.0.0", port: int = 3001) -> web.AppRunner:
    """
    Start the webhook server.

    Args:
        app: Application from create_webhook_app
        host: Host to bind to
        port: Port to bind to

    Returns:
        The runner; call ``cleanup()`` on it to stop the server
    """
    runner = web.AppRunner(app)
    await runner.setup()

    site = web.TCPSite(runner, host, port)
    await site.start()

    logger.info(f"Webhook server started on {host}:{port}")
    return runner
