"""Data models for the Miniflux to Lark relay."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


def _as_str(value: Any, default: str = "") -> str:
    """Return value if it is a string, otherwise the default."""
    return value if isinstance(value, str) else default


def _as_int(value: Any, default: int = 0) -> int:
    """Return value as an int, accepting numeric strings."""
    if isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return default
    return default


def _as_optional_str(value: Any) -> str | None:
    return value if isinstance(value, str) else None


@dataclass(frozen=True)
class MinifluxFeed:
    """Feed block of a Miniflux webhook notification."""

    id: int = 0
    title: str = ""
    feed_url: str = ""
    site_url: str = ""

    @classmethod
    def from_dict(cls, data: Any) -> "MinifluxFeed":
        """Build a feed, defaulting every missing or mistyped field."""
        if not isinstance(data, dict):
            return cls()
        return cls(
            id=_as_int(data.get("id")),
            title=_as_str(data.get("title")),
            feed_url=_as_str(data.get("feed_url")),
            site_url=_as_str(data.get("site_url")),
        )


@dataclass(frozen=True)
class MinifluxEntry:
    """A single article announced by Miniflux."""

    id: int = 0
    title: str = ""
    url: str = ""
    comments_url: str = ""
    published_at: str = ""  # RFC3339, e.g. "2023-08-17T19:29:22Z"
    author: str | None = None
    content: str | None = None
    feed_id: int = 0

    @classmethod
    def from_dict(cls, data: Any) -> "MinifluxEntry":
        """Build an entry, defaulting every missing or mistyped field."""
        if not isinstance(data, dict):
            return cls()
        return cls(
            id=_as_int(data.get("id")),
            title=_as_str(data.get("title")),
            url=_as_str(data.get("url")),
            comments_url=_as_str(data.get("comments_url")),
            published_at=_as_str(data.get("published_at")),
            author=_as_optional_str(data.get("author")),
            content=_as_optional_str(data.get("content")),
            feed_id=_as_int(data.get("feed_id")),
        )


@dataclass(frozen=True)
class MinifluxWebhook:
    """Inbound notification posted by Miniflux for newly fetched entries."""

    event_type: str = ""
    feed: MinifluxFeed = field(default_factory=MinifluxFeed)
    entries: tuple[MinifluxEntry, ...] = ()

    @classmethod
    def from_dict(cls, data: Any) -> "MinifluxWebhook":
        """Parse a decoded JSON body.

        Anything that is not a JSON object yields an empty notification;
        entries that are not objects become default entries so that the
        position of every article is preserved.
        """
        if not isinstance(data, dict):
            return cls()
        raw_entries = data.get("entries")
        if not isinstance(raw_entries, list):
            raw_entries = []
        return cls(
            event_type=_as_str(data.get("event_type")),
            feed=MinifluxFeed.from_dict(data.get("feed")),
            entries=tuple(MinifluxEntry.from_dict(entry) for entry in raw_entries),
        )


@dataclass(frozen=True)
class LarkElement:
    """Inline element of a Lark rich text ("post") line."""

    tag: str
    text: str = ""
    href: str = ""
    user_id: str = ""

    @classmethod
    def text_element(cls, text: str) -> "LarkElement":
        return cls(tag="text", text=text)

    @classmethod
    def link(cls, text: str, href: str) -> "LarkElement":
        return cls(tag="a", text=text, href=href)

    @classmethod
    def mention(cls, user_id: str) -> "LarkElement":
        return cls(tag="at", user_id=user_id)

    def to_dict(self) -> dict[str, str]:
        """Serialize to the tagged wire shape expected by Lark."""
        if self.tag == "a":
            return {"tag": "a", "text": self.text, "href": self.href}
        if self.tag == "at":
            return {"tag": "at", "user_id": self.user_id}
        return {"tag": "text", "text": self.text}


@dataclass(frozen=True)
class LarkMessage:
    """Outbound Lark bot message: a title plus lines of inline elements."""

    title: str
    lines: tuple[tuple[LarkElement, ...], ...]
    msg_type: str = "post"
    locale: str = "zh_cn"

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the JSON body posted to the bot webhook."""
        return {
            "msg_type": self.msg_type,
            "content": {
                "post": {
                    self.locale: {
                        "title": self.title,
                        "content": [
                            [element.to_dict() for element in line]
                            for line in self.lines
                        ],
                    }
                }
            },
        }


class AttemptStatus(Enum):
    """Classification of a single delivery attempt."""

    ACCEPTED = "accepted"
    RATE_LIMITED = "rate_limited"
    FAILED = "failed"


@dataclass(frozen=True)
class AttemptResult:
    """Outcome of one POST to the Lark webhook."""

    status: AttemptStatus
    reason: str = ""

    @classmethod
    def accepted(cls) -> "AttemptResult":
        return cls(AttemptStatus.ACCEPTED)

    @classmethod
    def rate_limited(cls) -> "AttemptResult":
        return cls(AttemptStatus.RATE_LIMITED)

    @classmethod
    def failed(cls, reason: str) -> "AttemptResult":
        return cls(AttemptStatus.FAILED, reason)


@dataclass(frozen=True)
class DeliveryResult:
    """Terminal state of one article after retries."""

    success: bool
    attempts: int
    reason: str = ""


@dataclass
class DispatchOutcome:
    """Aggregate counts for one dispatched notification."""

    success_count: int = 0
    failed_count: int = 0

    @property
    def attempted(self) -> int:
        return self.success_count + self.failed_count

    @property
    def ok(self) -> bool:
        return self.failed_count == 0
