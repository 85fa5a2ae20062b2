"""FastAPI application receiving Miniflux webhooks."""

import json

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from .dispatch import WebhookRelay
from .logging_config import create_execution_logger
from .models import MinifluxWebhook

WEBHOOK_PATH = "/webhook"


def parse_notification(body: bytes) -> MinifluxWebhook:
    """Decode a webhook body; anything unreadable is an empty notification."""
    try:
        data = json.loads(body) if body else {}
    except (json.JSONDecodeError, UnicodeDecodeError, RecursionError):
        return MinifluxWebhook()
    return MinifluxWebhook.from_dict(data)


def create_app(relay: WebhookRelay) -> FastAPI:
    """Build the web application around a relay instance."""
    app = FastAPI(title="Miniflux to Lark relay")
    logger = create_execution_logger("webhook", "server")

    @app.post(WEBHOOK_PATH)
    async def miniflux_webhook(request: Request):
        """Forward each entry of a Miniflux notification to Lark."""
        body = await request.body()
        notification = parse_notification(body)
        if not notification.entries:
            logger.debug("Notification without entries, nothing to send")

        # Waiting on the gate and the send delays happen on a worker thread
        outcome = await run_in_threadpool(relay.handle, notification)

        status_code = 200 if outcome.ok else 500
        return JSONResponse(
            status_code=status_code,
            content={
                "success": outcome.success_count,
                "failed": outcome.failed_count,
            },
        )

    return app
