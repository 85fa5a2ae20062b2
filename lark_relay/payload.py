"""Build Lark rich text messages from Miniflux entries."""

import re
from datetime import timedelta, timezone

from dateutil import parser as date_parser

from .models import LarkElement, LarkMessage, MinifluxEntry

# Lark users are assumed to read Beijing time
DISPLAY_TIMEZONE = timezone(timedelta(hours=8))
DISPLAY_FORMAT = "%Y-%m-%d %H:%M"

MINIFLUX_LINK_TEXT = "Miniflux"
ORIGINAL_LINK_TEXT = "原文"

# Full date-time in extended format; the offset may be omitted and is then UTC
RFC3339_PATTERN = re.compile(
    r"^\d{4}-\d{2}-\d{2}[Tt ]\d{2}:\d{2}:\d{2}(\.\d+)?([Zz]|[+-]\d{2}:\d{2})?$"
)


def format_published_time(published_at: str) -> str | None:
    """
    Render an RFC3339 timestamp as UTC+8 "YYYY-MM-DD HH:MM".

    Args:
        published_at: Timestamp as sent by Miniflux

    Returns:
        The formatted time, or None when the value is empty or unparseable
    """
    published_at = (published_at or "").strip()
    if not RFC3339_PATTERN.match(published_at):
        return None

    try:
        published = date_parser.isoparse(published_at)
        if published.tzinfo is None:
            published = published.replace(tzinfo=timezone.utc)
        local = published.astimezone(DISPLAY_TIMEZONE)
    except (ValueError, OverflowError):
        return None

    return local.strftime(DISPLAY_FORMAT)


def build_entry_url(miniflux_url: str, entry_id: int) -> str:
    """Link to the entry inside the Miniflux web UI."""
    return f"{miniflux_url.rstrip('/')}/rss/entry/{entry_id}"


def build_lark_payload(entry: MinifluxEntry, miniflux_url: str = "") -> LarkMessage:
    """
    Build the Lark message announcing one entry.

    Lines, in order: published time (when parseable), Miniflux link (when a
    Miniflux base URL is configured), link to the original article.

    Args:
        entry: Entry received from Miniflux
        miniflux_url: Base URL of the Miniflux instance, may be empty

    Returns:
        LarkMessage titled with the entry title
    """
    lines: list[tuple[LarkElement, ...]] = []

    published = format_published_time(entry.published_at)
    if published:
        lines.append((LarkElement.text_element(published),))

    if miniflux_url:
        lines.append(
            (LarkElement.link(MINIFLUX_LINK_TEXT, build_entry_url(miniflux_url, entry.id)),)
        )

    lines.append((LarkElement.link(ORIGINAL_LINK_TEXT, entry.url),))

    return LarkMessage(title=entry.title, lines=tuple(lines))
