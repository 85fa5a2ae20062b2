"""Configuration management for the Miniflux to Lark relay."""

import argparse
import os
from dataclasses import dataclass

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


class ConfigError(ValueError):
    """Raised when the relay cannot start with the given configuration."""


@dataclass
class LarkConfig:
    """Configuration for the Lark bot webhook."""

    webhook_url: str
    miniflux_url: str = ""
    timeout: float = 10.0
    connect_timeout: float = 5.0
    pool_size: int = 10
    retry_attempts: int = 3
    retry_base_delay: float = 1.0
    message_interval: float = 2.5  # keeps under Lark's 20 messages per minute


@dataclass
class ServerConfig:
    """Configuration for the inbound HTTP listener."""

    ip: str = "0.0.0.0"
    port: int = 8083
    log_level: str = "INFO"


class Config:
    """Main configuration manager.

    Values come from command line flags first, then environment variables,
    then defaults.
    """

    DEFAULT_IP = "0.0.0.0"
    DEFAULT_PORT = 8083
    DEFAULT_MESSAGE_INTERVAL = 2.5

    def __init__(self, args: argparse.Namespace | None = None):
        """Initialize configuration from parsed flags and the environment."""
        self.ip = _pick(args, "ip", os.getenv("IP", self.DEFAULT_IP))
        self.port = _parse_number(
            "port", _pick(args, "port", os.getenv("PORT", "")), int, self.DEFAULT_PORT
        )
        self.webhook_url = (
            _pick(args, "webhook_url", os.getenv("WEBHOOK_URL", "")) or ""
        ).strip()
        self.miniflux_url = (
            _pick(args, "miniflux_url", os.getenv("MINIFLUX_URL", "")) or ""
        ).strip()
        self.message_interval = _parse_number(
            "message interval",
            _pick(args, "message_interval", os.getenv("MESSAGE_INTERVAL", "")),
            float,
            self.DEFAULT_MESSAGE_INTERVAL,
        )
        log_level = _pick(args, "log_level", os.getenv("LOG_LEVEL", "INFO"))
        self.log_level = str(log_level).upper()
        if self.log_level not in LOG_LEVELS:
            raise ConfigError(f"Invalid log level: {self.log_level!r}")

    def validate(self) -> None:
        """Check the settings the relay cannot run without.

        Raises:
            ConfigError: If the webhook URL is missing or a value is out of range
        """
        if not self.webhook_url:
            raise ConfigError(
                "Lark webhook URL is required (use -w/--webhook-url or WEBHOOK_URL)"
            )
        if not 0 < self.port < 65536:
            raise ConfigError(f"Port out of range: {self.port}")
        if self.message_interval < 0:
            raise ConfigError(
                f"Message interval cannot be negative: {self.message_interval}"
            )

    def get_lark_config(self) -> LarkConfig:
        """Get Lark delivery configuration."""
        return LarkConfig(
            webhook_url=self.webhook_url,
            miniflux_url=self.miniflux_url,
            message_interval=self.message_interval,
        )

    def get_server_config(self) -> ServerConfig:
        """Get HTTP listener configuration."""
        return ServerConfig(ip=self.ip, port=self.port, log_level=self.log_level)


def _pick(args: argparse.Namespace | None, name: str, fallback):
    """Return the flag value when it was given on the command line."""
    value = getattr(args, name, None) if args is not None else None
    return fallback if value is None else value


def _parse_number(label: str, value, kind: type, default):
    if value is None or value == "":
        return default
    try:
        return kind(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid {label}: {value!r}") from e


def build_arg_parser() -> argparse.ArgumentParser:
    """Command line interface of the relay."""
    parser = argparse.ArgumentParser(
        prog="lark-relay",
        description="Forward Miniflux webhook notifications to a Lark bot",
    )
    parser.add_argument("-i", "--ip", help="Listen address (env: IP, default 0.0.0.0)")
    parser.add_argument(
        "-p", "--port", type=int, help="Listen port (env: PORT, default 8083)"
    )
    parser.add_argument(
        "-w", "--webhook-url", dest="webhook_url", help="Lark bot webhook URL (env: WEBHOOK_URL)"
    )
    parser.add_argument(
        "-m",
        "--miniflux-url",
        dest="miniflux_url",
        help="Miniflux base URL for entry links (env: MINIFLUX_URL)",
    )
    parser.add_argument(
        "--message-interval",
        dest="message_interval",
        type=float,
        help="Seconds to wait after each delivered message (env: MESSAGE_INTERVAL, default 2.5)",
    )
    parser.add_argument(
        "--log-level",
        dest="log_level",
        choices=LOG_LEVELS,
        help="Logging level (env: LOG_LEVEL, default INFO)",
    )
    return parser
