"""Dispatch Miniflux notifications to Lark, one entry at a time."""

import threading
import time
from collections.abc import Callable
from datetime import UTC, datetime

from .config import LarkConfig
from .logging_config import create_execution_logger
from .models import DispatchOutcome, MinifluxWebhook
from .payload import build_lark_payload
from .retry import RetryController


class SerialGate:
    """Lets one notification through at a time.

    Lark enforces a per-bot rate ceiling, so batches must never interleave.
    """

    def __init__(self, lock: "threading.Lock | None" = None):
        self._lock = lock if lock is not None else threading.Lock()

    def __enter__(self) -> "SerialGate":
        self._lock.acquire()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self._lock.release()

    def locked(self) -> bool:
        return self._lock.locked()


class BatchDispatcher:
    """Sends every entry of a notification in order and counts the results."""

    def __init__(
        self,
        retry: RetryController,
        config: LarkConfig,
        sleep: Callable[[float], None] = time.sleep,
        execution_id: str | None = None,
    ):
        self.retry = retry
        self.config = config
        self.sleep = sleep
        self.logger = create_execution_logger("dispatcher", execution_id)

    def dispatch(self, notification: MinifluxWebhook) -> DispatchOutcome:
        """
        Deliver each entry of the notification.

        One entry failing never stops the batch. After a successful send the
        dispatcher waits for the configured message interval before the next
        entry.

        Args:
            notification: Parsed Miniflux webhook

        Returns:
            DispatchOutcome with success and failure counts
        """
        outcome = DispatchOutcome()
        entries = notification.entries
        total = len(entries)

        if not entries:
            return outcome

        self.logger.log_execution_start(
            feed_title=notification.feed.title, entries=total
        )

        for index, entry in enumerate(entries):
            self.logger.info(
                f"Processing entry {index + 1}/{total}: {entry.title}",
                entry_index=index + 1,
                entry_title=entry.title,
            )

            try:
                message = build_lark_payload(entry, self.config.miniflux_url)
                result = self.retry.send(self.config.webhook_url, message)
            except Exception as e:
                self.logger.exception(
                    f"Unexpected error sending entry {index + 1}: {e}",
                    entry_index=index + 1,
                    entry_title=entry.title,
                )
                outcome.failed_count += 1
                continue

            if not result.success:
                outcome.failed_count += 1
                self.logger.log_entry_processing(
                    entry.title,
                    "failed",
                    success=False,
                    entry_index=index + 1,
                    reason=result.reason,
                    attempts=result.attempts,
                )
                continue

            outcome.success_count += 1
            self.logger.log_entry_processing(
                entry.title, "sent_to_lark", entry_index=index + 1
            )

            if index < total - 1 and self.config.message_interval > 0:
                self.sleep(self.config.message_interval)

        metrics = {
            "entries": total,
            "success": outcome.success_count,
            "failed": outcome.failed_count,
        }
        self.logger.log_metrics(metrics)
        self.logger.log_execution_end(success=outcome.ok, metrics=metrics)
        return outcome


class WebhookRelay:
    """Entry point for one inbound notification: gate, then dispatch."""

    def __init__(self, dispatcher: BatchDispatcher, gate: SerialGate | None = None):
        self.dispatcher = dispatcher
        self.gate = gate if gate is not None else SerialGate()

    def handle(self, notification: MinifluxWebhook) -> DispatchOutcome:
        """Dispatch a notification once no other notification is in flight."""
        execution_id = f"webhook_{datetime.now(UTC).strftime('%Y%m%d_%H%M%S_%f')}"
        logger = create_execution_logger("webhook", execution_id)

        logger.info(
            f"Received Miniflux notification: {notification.feed.title}, "
            f"{len(notification.entries)} entries",
            feed_title=notification.feed.title,
            event_type=notification.event_type,
        )

        logger.debug("Waiting for dispatch gate")
        with self.gate:
            logger.debug("Dispatch gate acquired")
            outcome = self.dispatcher.dispatch(notification)
        logger.debug("Dispatch gate released")

        logger.info(
            f"Dispatch finished: {outcome.success_count} sent, "
            f"{outcome.failed_count} failed",
            metrics={
                "success": outcome.success_count,
                "failed": outcome.failed_count,
            },
        )
        return outcome
