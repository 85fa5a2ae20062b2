"""Lark bot webhook client for the Miniflux to Lark relay."""

import threading

import requests
from requests.adapters import HTTPAdapter

from .config import LarkConfig
from .logging_config import create_execution_logger
from .models import AttemptResult, LarkMessage

USER_AGENT = "Miniflux-Lark-Relay/1.0"


class LarkClient:
    """Posts messages to a Lark bot webhook and classifies the response.

    The underlying requests.Session is created on first use and then shared
    by every call, so connections to the webhook host are pooled.
    """

    def __init__(self, config: LarkConfig, execution_id: str | None = None):
        """Initialize the client; no connection is opened until first delivery."""
        self.config = config
        self.logger = create_execution_logger("lark_client", execution_id)
        self._session: requests.Session | None = None
        self._session_lock = threading.Lock()

    @property
    def session(self) -> requests.Session:
        """Shared HTTP session, built at most once."""
        session = self._session
        if session is not None:
            return session

        with self._session_lock:
            if self._session is None:
                self._session = self._create_session()
            return self._session

    def _create_session(self) -> requests.Session:
        self.logger.info(
            "Initializing shared HTTP session",
            pool_size=self.config.pool_size,
            timeout=self.config.timeout,
        )
        session = requests.Session()
        adapter = HTTPAdapter(
            pool_connections=self.config.pool_size,
            pool_maxsize=self.config.pool_size,
        )
        session.mount("https://", adapter)
        session.mount("http://", adapter)
        session.headers.update({"User-Agent": USER_AGENT})
        return session

    def deliver(self, webhook_url: str, message: LarkMessage) -> AttemptResult:
        """
        Post one message to the webhook.

        Args:
            webhook_url: Lark bot webhook URL
            message: Message to serialize and send

        Returns:
            Accepted on 2xx, RateLimited on 429, Failed with a reason otherwise
        """
        try:
            response = self.session.post(
                webhook_url,
                json=message.to_dict(),
                timeout=(self.config.connect_timeout, self.config.timeout),
            )
        except requests.RequestException as e:
            self.logger.error(
                f"Request to Lark failed: {e}", error=str(e), entry_title=message.title
            )
            return AttemptResult.failed(f"request failed: {e}")

        status = response.status_code
        self.logger.debug(
            f"Lark responded with status {status}",
            status_code=status,
            entry_title=message.title,
        )

        if 200 <= status < 300:
            return AttemptResult.accepted()

        if status == 429:
            return AttemptResult.rate_limited()

        try:
            body = response.text
        except (requests.RequestException, UnicodeDecodeError):
            body = "<unreadable response body>"

        self.logger.error(
            f"Lark returned status {status}: {body}",
            status_code=status,
            response_body=body,
            entry_title=message.title,
        )
        return AttemptResult.failed(f"status {status}, response: {body}")

    def close(self) -> None:
        """Close the shared session if it was ever opened."""
        with self._session_lock:
            if self._session is not None:
                self._session.close()
                self._session = None
