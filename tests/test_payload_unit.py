"""Unit tests for the Lark payload builder."""

from lark_relay.models import LarkElement, MinifluxEntry
from lark_relay.payload import (
    build_entry_url,
    build_lark_payload,
    format_published_time,
)


class TestPayloadBuilderUnit:
    """Unit tests for build_lark_payload."""

    def setup_method(self):
        """Set up a typical Miniflux entry."""
        self.entry = MinifluxEntry(
            id=42,
            title="Rust 1.72 released",
            url="https://blog.rust-lang.org/2023/08/24/Rust-1.72.0.html",
            published_at="2023-08-17T19:29:22Z",
            feed_id=7,
        )

    def test_full_message_lines(self):
        """Date line, Miniflux link and original link, in that order."""
        message = build_lark_payload(self.entry, "https://example.com/")

        assert message.title == "Rust 1.72 released"
        assert message.lines == (
            (LarkElement.text_element("2023-08-18 03:29"),),
            (LarkElement.link("Miniflux", "https://example.com/rss/entry/42"),),
            (
                LarkElement.link(
                    "原文", "https://blog.rust-lang.org/2023/08/24/Rust-1.72.0.html"
                ),
            ),
        )

    def test_wire_format(self):
        """Serialized message matches the Lark post schema."""
        message = build_lark_payload(self.entry, "https://example.com")

        assert message.to_dict() == {
            "msg_type": "post",
            "content": {
                "post": {
                    "zh_cn": {
                        "title": "Rust 1.72 released",
                        "content": [
                            [{"tag": "text", "text": "2023-08-18 03:29"}],
                            [
                                {
                                    "tag": "a",
                                    "text": "Miniflux",
                                    "href": "https://example.com/rss/entry/42",
                                }
                            ],
                            [
                                {
                                    "tag": "a",
                                    "text": "原文",
                                    "href": "https://blog.rust-lang.org/2023/08/24/Rust-1.72.0.html",
                                }
                            ],
                        ],
                    }
                }
            },
        }

    def test_no_miniflux_url_skips_entry_link(self):
        message = build_lark_payload(self.entry, "")

        assert len(message.lines) == 2
        assert message.lines[-1][0].href == self.entry.url
        assert all(line[0].text != "Miniflux" for line in message.lines)

    def test_unparseable_timestamp_skips_date_line(self):
        entry = MinifluxEntry(id=1, title="T", url="https://a.example", published_at="yesterday")

        message = build_lark_payload(entry, "https://example.com")

        assert [line[0].tag for line in message.lines] == ["a", "a"]

    def test_empty_entry_still_links_original(self):
        """A default entry still produces a message with the original link."""
        message = build_lark_payload(MinifluxEntry())

        assert message.title == ""
        assert message.lines == ((LarkElement.link("原文", ""),),)

    def test_mention_serialization(self):
        assert LarkElement.mention("all").to_dict() == {"tag": "at", "user_id": "all"}


class TestFormatPublishedTime:
    """Unit tests for timestamp rendering."""

    def test_utc_converted_to_utc8(self):
        assert format_published_time("2023-08-17T19:29:22Z") == "2023-08-18 03:29"

    def test_offset_timestamp(self):
        assert format_published_time("2024-01-01T10:00:00+02:00") == "2024-01-01 16:00"

    def test_fractional_seconds(self):
        assert format_published_time("2024-01-01T00:00:59.999999Z") == "2024-01-01 08:00"

    def test_naive_timestamp_read_as_utc(self):
        assert format_published_time("2024-01-01T00:00:00") == "2024-01-01 08:00"

    def test_date_only_rejected(self):
        assert format_published_time("2023-08-17") is None

    def test_basic_format_rejected(self):
        assert format_published_time("20230817T192922Z") is None

    def test_space_separator_accepted(self):
        assert format_published_time("2023-08-17 19:29:22+00:00") == "2023-08-18 03:29"

    def test_empty_and_invalid(self):
        assert format_published_time("") is None
        assert format_published_time("   ") is None
        assert format_published_time("not a date") is None
        assert format_published_time("2024-13-45T99:00:00Z") is None


class TestBuildEntryUrl:
    def test_trailing_slash_stripped(self):
        assert build_entry_url("https://rss.example.org/", 5) == "https://rss.example.org/rss/entry/5"

    def test_without_trailing_slash(self):
        assert build_entry_url("https://rss.example.org", 5) == "https://rss.example.org/rss/entry/5"


class TestDateLineRequiresDateTime:
    def test_date_only_entry_has_no_date_line(self):
        entry = MinifluxEntry(id=1, title="T", url="u", published_at="2023-08-17")

        message = build_lark_payload(entry)

        assert message.lines == ((LarkElement.link("原文", "u"),),)
