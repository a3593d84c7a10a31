"""Tests for frontmatter splitting, rendering and inline properties."""

from __future__ import annotations

import pytest
import yaml

from timeline_sync.frontmatter import (
    extract_inline_properties,
    parse_frontmatter,
    render_frontmatter,
    split_frontmatter,
)

NOTE = "---\ndate: 2024-03\nstatus: in progress\n---\n# Launch\n\nBody text.\n"


class TestSplit:
    def test_split(self):
        yaml_text, body = split_frontmatter(NOTE)
        assert yaml_text == "date: 2024-03\nstatus: in progress\n"
        assert body == "# Launch\n\nBody text.\n"

    def test_no_frontmatter(self):
        assert split_frontmatter("Just text\n") == (None, "Just text\n")

    def test_unterminated_block(self):
        text = "---\ndate: 2024\nno closing delimiter\n"
        assert split_frontmatter(text) == (None, text)

    def test_bom_ignored(self):
        yaml_text, _ = split_frontmatter("\ufeff" + NOTE)
        assert yaml_text is not None


class TestParse:
    def test_mapping(self):
        assert parse_frontmatter(NOTE) == {"date": "2024-03", "status": "in progress"}

    def test_absent(self):
        assert parse_frontmatter("Body only") == {}

    def test_scalar_frontmatter_is_empty(self):
        assert parse_frontmatter("---\njust a string\n---\n") == {}

    def test_invalid_yaml_raises(self):
        with pytest.raises(yaml.YAMLError):
            parse_frontmatter("---\ndate: [unclosed\n---\n")


class TestRender:
    def test_keeps_key_order_and_body(self):
        text = render_frontmatter({"status": "done", "date": "2024-01-01"}, "Body\n")
        assert text == "---\nstatus: done\ndate: '2024-01-01'\n---\nBody\n"

    def test_empty_metadata_returns_body(self):
        assert render_frontmatter({}, "Body\n") == "Body\n"

    def test_round_trip(self):
        yaml_text, body = split_frontmatter(NOTE)
        rebuilt = render_frontmatter(yaml.safe_load(yaml_text), body)
        assert parse_frontmatter(rebuilt) == parse_frontmatter(NOTE)
        assert split_frontmatter(rebuilt)[1] == body


class TestInlineProperties:
    def test_line_form(self):
        assert extract_inline_properties("status:: active\nendDate:: 2024-06\n") == {
            "status": "active",
            "endDate": "2024-06",
        }

    def test_bracket_form(self):
        text = "Meeting notes [status:: blocked] and (owner:: sam)."
        assert extract_inline_properties(text) == {
            "status": "blocked",
            "owner": "sam",
        }

    def test_first_occurrence_wins(self):
        assert extract_inline_properties("status:: a\nstatus:: b\n") == {"status": "a"}

    def test_frontmatter_not_scanned(self):
        text = "---\nstatus:: hidden\n---\nbody\n"
        assert extract_inline_properties(text) == {}
