"""Command line entry point for the Miniflux to Lark relay."""

import sys

import uvicorn

from .config import Config, ConfigError, build_arg_parser
from .dispatch import BatchDispatcher, SerialGate, WebhookRelay
from .lark import LarkClient
from .logging_config import create_execution_logger, setup_structured_logging
from .retry import RetryController
from .server import create_app


def build_relay(config: Config, client: LarkClient) -> WebhookRelay:
    """Wire client, retry controller, dispatcher and gate together."""
    lark_config = config.get_lark_config()
    retry = RetryController(client, lark_config, execution_id="main")
    dispatcher = BatchDispatcher(retry, lark_config, execution_id="main")
    return WebhookRelay(dispatcher, SerialGate())


def main(argv: list[str] | None = None) -> int:
    """Parse configuration and serve until interrupted."""
    args = build_arg_parser().parse_args(argv)

    try:
        config = Config(args)
    except ConfigError as e:
        setup_structured_logging()
        create_execution_logger("main", "startup").error(f"Configuration error: {e}")
        return 2

    setup_structured_logging(config.log_level)
    logger = create_execution_logger("main", "startup")

    try:
        config.validate()
    except ConfigError as e:
        logger.error(f"Configuration error: {e}")
        return 2

    server_config = config.get_server_config()
    logger.info(
        f"Listening on {server_config.ip}:{server_config.port}",
        miniflux_url=config.miniflux_url,
        message_interval=config.message_interval,
    )

    client = LarkClient(config.get_lark_config(), execution_id="main")
    app = create_app(build_relay(config, client))
    try:
        uvicorn.run(
            app,
            host=server_config.ip,
            port=server_config.port,
            log_config=None,
        )
    finally:
        client.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
