# FILE: shelf/commands/classifier.py
"""
Rule-based intent classification for Shelf.
No network calls, no model. Deterministic for a given message and snapshot.

Pipeline (detect_intent):
1. Classify by ordered keyword sets (first category with a substring hit wins)
2. Score confidence from the category's scoring table
3. Extract per-intent parameters from the message and item snapshot
4. Clarification Gate (missing required parameter -> question)
5. Verification Gate (DELETE, SHARE->public, PROTECT)
"""
from __future__ import annotations
import logging
import re
from datetime import datetime
from typing import Optional, Sequence

from shelf.content.schemas import ContentItem
from .gates import check_clarification_gate, check_verification_gate
from .intents import INTENT_DEFINITIONS, PRIORITY_ORDER, operation_name_for
from .schemas import (
    CreateParams,
    Intent,
    IntentParameters,
    IntentType,
    ItemParams,
    ListParams,
    NoParams,
    SearchParams,
    ShareParams,
    UpdateParams,
)
from .slots import (
    extract_auto_delete,
    extract_category,
    extract_content_type,
    extract_search_query,
    extract_tags,
    extract_title,
    extract_visibility,
    find_item_reference,
)

logger = logging.getLogger(__name__)

KEYWORD_WEIGHT = 0.3
PHRASE_WEIGHT = 0.7
MULTI_KEYWORD_BOOST = 0.1


# =============================================================================
# CLASSIFICATION
# =============================================================================

def classify_intent_type(message: str) -> IntentType:
    """First intent in priority order whose keywords appear in the message."""
    lower = message.lower()
    if not lower.strip():
        return IntentType.UNKNOWN

    for intent_type in PRIORITY_ORDER:
        defn = INTENT_DEFINITIONS[intent_type]
        if any(kw in lower for kw in defn.keywords):
            return intent_type
    return IntentType.UNKNOWN


def calculate_confidence(message: str, intent_type: IntentType) -> float:
    """
    min(1, 0.3 * matched/total + 0.7 * any_phrase + 0.1 * (matched > 1))

    A heuristic, not a probability. UNKNOWN and empty input score 0.
    """
    defn = INTENT_DEFINITIONS.get(intent_type)
    if defn is None or not defn.score_keywords or not message.strip():
        return 0.0

    lower = message.lower()
    matched = sum(1 for kw in defn.score_keywords if kw in lower)
    confidence = KEYWORD_WEIGHT * matched / len(defn.score_keywords)

    if any(re.search(phrase, message, re.IGNORECASE) for phrase in defn.score_phrases):
        confidence += PHRASE_WEIGHT

    if matched > 1:
        confidence += MULTI_KEYWORD_BOOST

    return min(1.0, confidence)


# =============================================================================
# PARAMETER EXTRACTION
# =============================================================================

def extract_parameters(
    intent_type: IntentType,
    message: str,
    items: Sequence[ContentItem] = (),
    now: Optional[datetime] = None,
) -> IntentParameters:
    """Build the parameter variant for an intent type."""
    if intent_type == IntentType.CREATE:
        auto_delete_enabled, auto_delete_at = extract_auto_delete(message, now=now)
        return CreateParams(
            content_type=extract_content_type(message),
            title=extract_title(message),
            tags=extract_tags(message),
            category=extract_category(message),
            is_public=extract_visibility(message) == "public",
            auto_delete_enabled=auto_delete_enabled,
            auto_delete_at=auto_delete_at,
        )

    if intent_type == IntentType.UPDATE:
        item = find_item_reference(message, items)
        tags = extract_tags(message)
        visibility = extract_visibility(message)
        return UpdateParams(
            item_id=item.id if item else None,
            title=extract_title(message),
            tags=tags or None,
            category=extract_category(message),
            is_public=(visibility == "public") if visibility else None,
        )

    if intent_type == IntentType.SHARE:
        item = find_item_reference(message, items)
        return ShareParams(
            item_id=item.id if item else None,
            is_public=extract_visibility(message) != "private",
        )

    if intent_type in (IntentType.DELETE, IntentType.RETRIEVE, IntentType.PROTECT, IntentType.DUPLICATE):
        item = find_item_reference(message, items)
        return ItemParams(item_id=item.id if item else None)

    if intent_type == IntentType.LIST:
        return ListParams(
            content_type=extract_content_type(message),
            category=extract_category(message),
            tags=extract_tags(message),
        )

    if intent_type == IntentType.SEARCH:
        return SearchParams(
            query=extract_search_query(message),
            content_type=extract_content_type(message),
            category=extract_category(message),
            tags=extract_tags(message),
        )

    return NoParams()


# =============================================================================
# DETECTION
# =============================================================================

def detect_intent(
    message: str,
    items: Sequence[ContentItem] = (),
    now: Optional[datetime] = None,
) -> Intent:
    """
    Classify a message against a snapshot of the user's items.

    Args:
        message: Raw user text
        items: Snapshot used to resolve item references (never mutated)
        now: Reference time for relative expiry ("expire in 7 days")

    Returns:
        Frozen Intent, with clarification_needed set when a required
        parameter is missing
    """
    intent_type = classify_intent_type(message)
    confidence = calculate_confidence(message, intent_type)
    parameters = extract_parameters(intent_type, message, items, now=now)

    clarification = check_clarification_gate(intent_type, parameters)

    item_id = getattr(parameters, "item_id", None)
    item = next((i for i in items if i.id == item_id), None) if item_id else None
    verification = check_verification_gate(intent_type, parameters, item)

    logger.debug(
        f"[classifier] {intent_type.value} confidence={confidence:.2f} "
        f"item={item_id} clarify={not clarification.passed} verify={verification.requires_verification}"
    )

    return Intent(
        type=intent_type,
        operation_name=operation_name_for(intent_type),
        parameters=parameters,
        confidence=confidence,
        clarification_needed=clarification.question,
        requires_verification=verification.requires_verification,
    )
