# FILE: tests/test_slot_extractors.py
"""
Tests for shelf/commands/slots.py
Pure extractors: content kind, title, tags, category, visibility, expiry,
item references and search queries.
"""

import sys
from pathlib import Path

_project_root = Path(__file__).parent.parent
if str(_project_root) not in sys.path:
    sys.path.insert(0, str(_project_root))

from datetime import datetime, timedelta, timezone

import pytest

from shelf.content.schemas import ContentItem, ContentType
from shelf.commands.slots import (
    extract_auto_delete,
    extract_category,
    extract_content_type,
    extract_search_query,
    extract_tags,
    extract_title,
    extract_visibility,
    find_item_reference,
)
from conftest import make_items


# =============================================================================
# CONTENT TYPE
# =============================================================================

class TestContentType:

    @pytest.mark.parametrize("message,expected", [
        ("create a new text note", ContentType.TEXT),
        ("save a code sample", ContentType.CODE),
        ("add a book I'm reading", ContentType.BOOK),
        ("save this python snippet", ContentType.CODE),
        ("save this website", ContentType.LINK),
        ("upload a photo", ContentType.IMAGE),
        ("keep this movie", ContentType.VIDEO),
    ])
    def test_kinds_and_aliases(self, message, expected):
        assert extract_content_type(message) == expected

    def test_kind_names_beat_aliases(self):
        # "javascript" contains "script"
        assert extract_content_type("a javascript helper") == ContentType.SCRIPT

    def test_nothing_found(self):
        assert extract_content_type("hello there") is None


# =============================================================================
# TITLE
# =============================================================================

class TestTitle:

    def test_double_quoted(self):
        assert extract_title('create a text note called "Groceries"') == "Groceries"

    def test_single_quoted(self):
        assert extract_title("create a text note 'Weekend Plans'") == "Weekend Plans"

    def test_about_phrase(self):
        assert extract_title("create a text note about quarterly planning") == "quarterly planning"

    def test_named_stops_at_for(self):
        assert extract_title("write a note named Ideas for work") == "Ideas"

    def test_create_x_for(self):
        assert extract_title("create note Groceries for the weekend") == "Groceries"

    def test_no_title(self):
        assert extract_title("create a new text note") is None


# =============================================================================
# TAGS
# =============================================================================

class TestTags:

    def test_hashtags_and_tag_list(self):
        assert extract_tags("#foo, #bar tags: baz, qux") == ["foo", "bar", "baz", "qux"]

    def test_case_folded_and_deduplicated(self):
        assert extract_tags("#Python tags: python, Web") == ["python", "web"]

    def test_semicolons(self):
        assert extract_tags("tags: a; b;c") == ["a", "b", "c"]

    def test_stops_at_standalone_for(self):
        assert extract_tags("tags: home, food for the kitchen") == ["home", "food"]

    def test_stops_at_period(self):
        assert extract_tags("tags: data, ai. Thanks") == ["data", "ai"]

    def test_words_containing_terminators_are_kept(self):
        assert extract_tags("tags: format, info") == ["format", "info"]

    def test_no_tags(self):
        assert extract_tags("create a note") == []


# =============================================================================
# CATEGORY / VISIBILITY
# =============================================================================

class TestCategory:

    def test_in_x(self):
        assert extract_category("list all code in Work") == "Work"

    def test_in_category_x(self):
        assert extract_category("create text in category Recipes for dinner") == "Recipes"

    def test_under_x(self):
        assert extract_category("show items under Personal with tags") == "Personal"

    def test_in_must_be_a_word(self):
        assert extract_category("nothing here") is None


class TestVisibility:

    @pytest.mark.parametrize("message,expected", [
        ("make it public", "public"),
        ("keep it private", "private"),
        ("make it shareable", "public"),
        ("public or private", "public"),
        ("just a note", None),
    ])
    def test_visibility(self, message, expected):
        assert extract_visibility(message) == expected


# =============================================================================
# AUTO-EXPIRY
# =============================================================================

class TestAutoDelete:
    NOW = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)

    def test_days_give_timestamp(self):
        enabled, at = extract_auto_delete("expire in 7 days", now=self.NOW)
        assert enabled is True
        assert at == self.NOW + timedelta(days=7)

    def test_single_day(self):
        enabled, at = extract_auto_delete("delete after 1 day", now=self.NOW)
        assert enabled is True
        assert at == self.NOW + timedelta(days=1)

    def test_hours_enable_without_timestamp(self):
        assert extract_auto_delete("delete after 24 hours", now=self.NOW) == (True, None)

    def test_bare_auto_delete(self):
        assert extract_auto_delete("auto-delete this one") == (True, None)
        assert extract_auto_delete("auto delete please") == (True, None)

    def test_no_expiry(self):
        assert extract_auto_delete("keep forever") == (False, None)


# =============================================================================
# ITEM REFERENCE
# =============================================================================

class TestItemReference:

    def test_explicit_item_id(self):
        item = find_item_reference("show item item-3", make_items())
        assert item.id == "item-3"

    def test_explicit_id_with_colon(self):
        item = find_item_reference("open id: local-1", make_items())
        assert item.id == "local-1"

    def test_quoted_title_case_insensitive(self):
        item = find_item_reference("show 'groceries'", make_items())
        assert item.id == "item-1"

    def test_called_substring(self):
        item = find_item_reference("open the note called python", make_items())
        assert item.id == "item-2"

    def test_unknown_id_falls_through_to_title(self):
        item = find_item_reference('item nope "Java Notes"', make_items())
        assert item.id == "item-3"

    def test_first_match_in_snapshot_order(self):
        items = [
            ContentItem(id="a", title="Meeting Notes", type=ContentType.TEXT),
            ContentItem(id="b", title="Java Notes", type=ContentType.TEXT),
        ]
        assert find_item_reference("open the one called notes", items).id == "a"
        assert find_item_reference("open the one called notes", list(reversed(items))).id == "b"

    def test_no_match(self):
        assert find_item_reference("show 'Missing'", make_items()) is None

    def test_empty_snapshot(self):
        assert find_item_reference("show item item-1", []) is None


# =============================================================================
# SEARCH QUERY
# =============================================================================

class TestSearchQuery:

    def test_search_for(self):
        assert extract_search_query("search for recipes") == "recipes"

    def test_filter_by_stops_at_in(self):
        assert extract_search_query("filter by python in Work") == "python"

    def test_quotes_stripped(self):
        assert extract_search_query("look for 'tax return'") == "tax return"

    def test_quoted_fallback(self):
        assert extract_search_query("anything 'budget'") == "budget"

    def test_no_query(self):
        assert extract_search_query("search") is None
