# FILE: tests/test_intent_classifier.py
"""
Tests for shelf/commands/intents.py and shelf/commands/classifier.py
Ordered classification, confidence scoring, per-intent parameters and the
flags detect_intent() sets from the gates.
"""

import sys
from pathlib import Path

_project_root = Path(__file__).parent.parent
if str(_project_root) not in sys.path:
    sys.path.insert(0, str(_project_root))

from datetime import datetime, timedelta, timezone

import pytest

from shelf.content.schemas import ContentType
from shelf.commands.classifier import calculate_confidence, classify_intent_type, detect_intent
from shelf.commands.gates import ITEM_QUESTION, TITLE_QUESTION, TYPE_QUESTION
from shelf.commands.intents import (
    INTENT_DEFINITIONS,
    PRIORITY_ORDER,
    get_intent_definition,
    get_reference_intents,
    operation_name_for,
)
from shelf.commands.schemas import (
    CreateParams,
    IntentType,
    ItemParams,
    ListParams,
    NoParams,
    SearchParams,
    ShareParams,
    UpdateParams,
)
from conftest import make_items


# =============================================================================
# INTENT DEFINITIONS
# =============================================================================

class TestIntentDefinitions:

    def test_priority_order_starts_with_delete(self):
        assert PRIORITY_ORDER[0] == IntentType.DELETE
        assert PRIORITY_ORDER[-1] == IntentType.SEARCH

    def test_every_intent_but_unknown_is_defined(self):
        assert set(INTENT_DEFINITIONS) == set(IntentType) - {IntentType.UNKNOWN}
        assert list(INTENT_DEFINITIONS) == PRIORITY_ORDER

    def test_unknown_has_no_definition(self):
        with pytest.raises(KeyError):
            get_intent_definition(IntentType.UNKNOWN)

    def test_operation_names(self):
        assert operation_name_for(IntentType.DELETE) == "deleteContent"
        assert operation_name_for(IntentType.RETRIEVE) == "viewContent"
        assert operation_name_for(IntentType.UNKNOWN) == "unknown"

    def test_reference_intents(self):
        assert set(get_reference_intents()) == {
            IntentType.DELETE,
            IntentType.UPDATE,
            IntentType.SHARE,
            IntentType.PROTECT,
            IntentType.RETRIEVE,
            IntentType.DUPLICATE,
        }


# =============================================================================
# CLASSIFICATION
# =============================================================================

class TestClassification:

    @pytest.mark.parametrize("message", [
        "delete the new note",
        "create a note then remove the old one",
        "make a new list and trash the old one",
        "CREATE and DELETE",
    ])
    def test_delete_beats_create(self, message):
        assert classify_intent_type(message) == IntentType.DELETE

    @pytest.mark.parametrize("message,expected", [
        ('create a text note called "Ideas"', IntentType.CREATE),
        ('show "Groceries"', IntentType.RETRIEVE),
        ('edit "Groceries"', IntentType.UPDATE),
        ('share "Groceries"', IntentType.SHARE),
        ('lock "Groceries"', IntentType.PROTECT),
        ("list everything", IntentType.LIST),
        ('duplicate "Groceries"', IntentType.DUPLICATE),
        ("filter by python", IntentType.SEARCH),
        ("hello there", IntentType.UNKNOWN),
    ])
    def test_each_intent(self, message, expected):
        assert classify_intent_type(message) == expected

    def test_search_for_is_claimed_by_retrieve(self):
        assert classify_intent_type("search for recipes") == IntentType.RETRIEVE

    def test_empty_is_unknown(self):
        assert classify_intent_type("") == IntentType.UNKNOWN
        assert classify_intent_type("   ") == IntentType.UNKNOWN


# =============================================================================
# CONFIDENCE
# =============================================================================

class TestConfidence:

    def test_single_keyword_with_phrase(self):
        assert calculate_confidence('delete "Groceries"', IntentType.DELETE) == pytest.approx(0.3 / 7 + 0.7)

    def test_multiple_keywords_get_boost(self):
        # create + new matched, "new text" phrase
        assert calculate_confidence("create a new text note", IntentType.CREATE) == pytest.approx(0.875)

    def test_capped_at_one(self):
        message = "delete remove erase destroy discard dump trash"
        assert calculate_confidence(message, IntentType.DELETE) == 1.0

    def test_search_has_a_scoring_table(self):
        assert calculate_confidence("filter by python", IntentType.SEARCH) == pytest.approx(0.3 / 6 + 0.7)

    def test_unknown_and_empty_score_zero(self):
        assert calculate_confidence("hello", IntentType.UNKNOWN) == 0.0
        assert calculate_confidence("", IntentType.DELETE) == 0.0

    @pytest.mark.parametrize("message", [
        "",
        "x",
        "delete delete delete",
        "list all show all display all browse see all",
        "#tags: , ; ...",
        "创建 一个 笔记",
        "make public publish post share distribute",
    ])
    def test_always_in_range(self, message):
        intent = detect_intent(message, make_items())
        assert 0.0 <= intent.confidence <= 1.0


# =============================================================================
# DETECT INTENT
# =============================================================================

class TestDetectIntent:
    NOW = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)

    def test_create_without_title_asks_for_title(self):
        intent = detect_intent("create a new text note")
        assert intent.type == IntentType.CREATE
        assert intent.operation_name == "createContent"
        assert intent.clarification_needed == TITLE_QUESTION
        assert intent.requires_verification is False

    def test_create_without_kind_asks_for_kind(self):
        intent = detect_intent("create something")
        assert intent.clarification_needed == TYPE_QUESTION

    def test_create_parameters(self):
        intent = detect_intent('create a text note called "Groceries" #home tags: food, weekly')
        params = intent.parameters
        assert isinstance(params, CreateParams)
        assert params.content_type == ContentType.TEXT
        assert params.title == "Groceries"
        assert params.tags == ["home", "food", "weekly"]
        assert intent.clarification_needed is None

    def test_create_public_with_expiry(self):
        intent = detect_intent('create a public code snippet called "Sorter" expire in 3 days', now=self.NOW)
        params = intent.parameters
        assert intent.type == IntentType.CREATE
        assert params.is_public is True
        assert params.auto_delete_enabled is True
        assert params.auto_delete_at == self.NOW + timedelta(days=3)

    def test_update_only_sets_mentioned_fields(self):
        intent = detect_intent('edit "Groceries" tags: home, errands', make_items())
        params = intent.parameters
        assert isinstance(params, UpdateParams)
        assert params.item_id == "item-1"
        assert params.tags == ["home", "errands"]
        assert params.is_public is None
        assert params.category is None

    def test_delete_resolves_item_and_needs_verification(self):
        intent = detect_intent('delete "Groceries"', make_items())
        assert isinstance(intent.parameters, ItemParams)
        assert intent.item_id == "item-1"
        assert intent.requires_verification is True
        assert intent.clarification_needed is None

    def test_delete_unknown_item_asks_which(self):
        intent = detect_intent('delete "Nope"', make_items())
        assert intent.item_id is None
        assert intent.clarification_needed == ITEM_QUESTION

    def test_share_public_needs_verification(self):
        intent = detect_intent('share "Groceries"', make_items())
        assert isinstance(intent.parameters, ShareParams)
        assert intent.parameters.is_public is True
        assert intent.requires_verification is True

    def test_share_private_needs_no_verification(self):
        intent = detect_intent('share "Groceries" as private', make_items())
        assert intent.type == IntentType.SHARE
        assert intent.parameters.is_public is False
        assert intent.requires_verification is False

    def test_protect_needs_verification(self):
        intent = detect_intent('lock "Groceries"', make_items())
        assert intent.type == IntentType.PROTECT
        assert intent.requires_verification is True

    def test_list_parameters(self):
        intent = detect_intent("list all code tagged #python")
        params = intent.parameters
        assert isinstance(params, ListParams)
        assert params.content_type == ContentType.CODE
        assert params.tags == ["python"]
        assert intent.clarification_needed is None

    def test_search_parameters(self):
        intent = detect_intent("filter by python")
        assert isinstance(intent.parameters, SearchParams)
        assert intent.parameters.query == "python"

    def test_unknown(self):
        intent = detect_intent("hello there")
        assert intent.type == IntentType.UNKNOWN
        assert isinstance(intent.parameters, NoParams)
        assert intent.operation_name == "unknown"
        assert intent.confidence == 0.0

    def test_snapshot_is_not_mutated(self):
        items = make_items()
        before = [i.model_dump() for i in items]
        detect_intent('delete "Groceries"', items)
        detect_intent('edit "Groceries" tags: x', items)
        assert [i.model_dump() for i in items] == before

    def test_intent_is_frozen(self):
        intent = detect_intent('delete "Groceries"', make_items())
        with pytest.raises(Exception):
            intent.confidence = 0.5
