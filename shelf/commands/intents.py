# FILE: shelf/commands/intents.py
"""
Intent definitions for the Shelf command layer.
This is the CLOSED SET of recognised intents.

Each definition carries two keyword tables:
- `keywords` decide classification (any lower-cased substring hit wins)
- `score_keywords` / `score_phrases` only feed the confidence heuristic

They overlap but are not identical ("post" classifies as CREATE but does not
raise CREATE confidence).
"""
from __future__ import annotations
from typing import Dict, List

from shelf.content.schemas import CONTENT_TYPES
from .schemas import IntentDefinition, IntentType

_KINDS = "|".join(t.value for t in CONTENT_TYPES)


# =============================================================================
# PRIORITY ORDER
# =============================================================================
# Destructive intent must win any lexical tie ("delete the new note" is a
# DELETE). The rest run roughly by operational risk, then specificity.

PRIORITY_ORDER: List[IntentType] = [
    IntentType.DELETE,
    IntentType.CREATE,
    IntentType.UPDATE,
    IntentType.SHARE,
    IntentType.PROTECT,
    IntentType.RETRIEVE,
    IntentType.LIST,
    IntentType.DUPLICATE,
    IntentType.SEARCH,
]


# =============================================================================
# INTENT DEFINITIONS
# =============================================================================

INTENT_DEFINITIONS: Dict[IntentType, IntentDefinition] = {

    IntentType.DELETE: IntentDefinition(
        intent=IntentType.DELETE,
        operation_name="deleteContent",
        keywords=["delete", "remove", "erase", "destroy", "discard", "trash", "dump"],
        score_keywords=["delete", "remove", "erase", "destroy", "discard", "dump", "trash"],
        score_phrases=["delete", "remove", "erase"],
        requires=["item_id"],
        description="Permanently remove a content item",
    ),

    IntentType.CREATE: IntentDefinition(
        intent=IntentType.CREATE,
        operation_name="createContent",
        keywords=["create", "add", "new", "make", "write", "compose", "start", "insert", "post"],
        score_keywords=["create", "add", "new", "make", "insert", "write", "compose", "start"],
        score_phrases=[
            rf"new ({_KINDS})",
            rf"create a?n? ({_KINDS})",
            rf"add a?n? ({_KINDS})",
        ],
        requires=["content_type", "title"],
        description="Create a new content item of one of the nine kinds",
    ),

    IntentType.UPDATE: IntentDefinition(
        intent=IntentType.UPDATE,
        operation_name="updateContent",
        keywords=["update", "edit", "change", "modify", "revise", "alter", "adjust"],
        score_keywords=["update", "edit", "change", "modify", "revise", "alter", "adjust"],
        score_phrases=["update", "edit", "modify", "change"],
        requires=["item_id"],
        description="Edit title, tags, category or visibility of an item",
    ),

    IntentType.SHARE: IntentDefinition(
        intent=IntentType.SHARE,
        operation_name="shareContent",
        keywords=["share", "public", "publish", "make public", "post", "distribute"],
        score_keywords=["share", "public", "publish", "make public", "post", "distribute"],
        score_phrases=["share", "make public", "publish"],
        requires=["item_id"],
        description="Change an item's public/private visibility",
    ),

    IntentType.PROTECT: IntentDefinition(
        intent=IntentType.PROTECT,
        operation_name="protectContent",
        keywords=["protect", "password", "secure", "lock", "private", "hide", "encrypt"],
        score_keywords=["protect", "password", "secure", "lock", "private", "hide"],
        score_phrases=["protect", "password", "secure", "private"],
        requires=["item_id"],
        description="Make an item private, optionally behind a password link",
    ),

    IntentType.RETRIEVE: IntentDefinition(
        intent=IntentType.RETRIEVE,
        operation_name="viewContent",
        keywords=["show", "view", "get", "find", "open", "look", "display", "search for"],
        score_keywords=["show", "view", "get", "find", "look", "search", "display", "open"],
        score_phrases=["show me", "view", "get", "find", "search for"],
        requires=["item_id"],
        description="Open a single item",
    ),

    IntentType.LIST: IntentDefinition(
        intent=IntentType.LIST,
        operation_name="listContent",
        keywords=["list", "all", "show all", "display all", "browse", "see all"],
        score_keywords=["list", "all", "show all", "display all", "browse", "see all"],
        score_phrases=["list all", "show all", "display all"],
        description="List visible items, filtered by kind, category and tags",
    ),

    IntentType.DUPLICATE: IntentDefinition(
        intent=IntentType.DUPLICATE,
        operation_name="duplicateContent",
        keywords=["duplicate", "copy", "clone", "replicate"],
        score_keywords=["duplicate", "copy", "replicate", "clone", "reproduce"],
        score_phrases=["duplicate", "copy", "clone"],
        requires=["item_id"],
        description="Copy an item into the acting user's content",
    ),

    IntentType.SEARCH: IntentDefinition(
        intent=IntentType.SEARCH,
        operation_name="searchContent",
        keywords=["search", "find", "filter", "look for", "query", "search for"],
        score_keywords=["search", "find", "filter", "look for", "query", "search for"],
        score_phrases=["search for", "filter by", "query"],
        description="Free-text search over titles, categories and tags",
    ),
}


UNKNOWN_OPERATION = "unknown"


def get_intent_definition(intent: IntentType) -> IntentDefinition:
    """Get definition for an intent type. UNKNOWN has none."""
    if intent not in INTENT_DEFINITIONS:
        raise KeyError(f"No definition for intent: {intent}")
    return INTENT_DEFINITIONS[intent]


def operation_name_for(intent: IntentType) -> str:
    defn = INTENT_DEFINITIONS.get(intent)
    return defn.operation_name if defn else UNKNOWN_OPERATION


def get_reference_intents() -> List[IntentType]:
    """Intents whose contract needs a resolved item reference."""
    return [i for i in PRIORITY_ORDER if "item_id" in INTENT_DEFINITIONS[i].requires]


def get_modal_intents() -> List[IntentType]:
    """Intents completed through a UI surface instead of immediately."""
    return [
        IntentType.CREATE,
        IntentType.UPDATE,
        IntentType.DELETE,
        IntentType.SHARE,
        IntentType.PROTECT,
    ]
