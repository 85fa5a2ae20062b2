"""Rate limit retry for Lark deliveries."""

import time
from collections.abc import Callable
from enum import Enum

from .config import LarkConfig
from .lark import LarkClient
from .logging_config import create_execution_logger
from .models import AttemptStatus, DeliveryResult, LarkMessage

MAX_RETRIES_REASON = "max retries exceeded"


class RetryState(Enum):
    ATTEMPTING = "attempting"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


def backoff_delay(retry_count: int, base_delay: float = 1.0) -> float:
    """Delay before the given retry: base, 2 * base, 4 * base, ..."""
    return base_delay * 2 ** (retry_count - 1)


class RetryController:
    """Drives one message to a terminal state.

    Only 429 responses are retried, with exponential backoff. Any other
    failure ends the message immediately.
    """

    def __init__(
        self,
        client: LarkClient,
        config: LarkConfig,
        sleep: Callable[[float], None] = time.sleep,
        execution_id: str | None = None,
    ):
        self.client = client
        self.max_attempts = config.retry_attempts
        self.base_delay = config.retry_base_delay
        self.sleep = sleep
        self.logger = create_execution_logger("retry", execution_id)

    def send(self, webhook_url: str, message: LarkMessage) -> DeliveryResult:
        """
        Deliver a message, retrying while Lark rate limits us.

        Args:
            webhook_url: Lark bot webhook URL
            message: Message to deliver

        Returns:
            DeliveryResult with the terminal state and number of attempts made
        """
        state = RetryState.ATTEMPTING
        retries = 0
        attempts = 0
        reason = ""

        while state is RetryState.ATTEMPTING:
            attempts += 1
            result = self.client.deliver(webhook_url, message)

            if result.status is AttemptStatus.ACCEPTED:
                state = RetryState.SUCCEEDED

            elif result.status is AttemptStatus.RATE_LIMITED:
                retries += 1
                if retries >= self.max_attempts:
                    reason = MAX_RETRIES_REASON
                    state = RetryState.FAILED
                    self.logger.error(
                        "Rate limited by Lark, giving up",
                        entry_title=message.title,
                        retry_count=retries,
                    )
                else:
                    delay = backoff_delay(retries, self.base_delay)
                    self.logger.warning(
                        f"Rate limited by Lark, retry {retries} in {delay}s",
                        entry_title=message.title,
                        retry_count=retries,
                        backoff_seconds=delay,
                    )
                    self.sleep(delay)

            else:
                reason = result.reason
                state = RetryState.FAILED

        return DeliveryResult(
            success=state is RetryState.SUCCEEDED, attempts=attempts, reason=reason
        )
