"""Relay Miniflux webhook notifications to a Lark (Feishu) bot."""

__version__ = "1.0.0"
