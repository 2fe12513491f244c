# FILE: shelf/commands/gates.py
"""
Gates for the Shelf command layer.
- Clarification Gate: the intent's minimal parameter contract is satisfied
- Verification Gate: irreversible or privacy-widening intents need explicit confirmation

Both gates are pure. A failed clarification gate halts the message; there is
no pending state, the next message is classified from scratch.
"""
from __future__ import annotations
from typing import Dict, Optional

from shelf.content.schemas import ContentItem
from .schemas import (
    ClarificationGateResult,
    IntentParameters,
    IntentType,
    VerificationGateResult,
)


# =============================================================================
# CLARIFICATION GATE
# =============================================================================

TYPE_QUESTION = (
    "What type of content would you like to create? "
    "(text, code, image, video, file, link, prompt, script, or book)"
)
TITLE_QUESTION = "What would you like to title this content?"
ITEM_QUESTION = (
    "Which content item would you like to work with? "
    "(You can use the title, ID, or describe it)"
)

ITEM_REFERENCE_INTENTS = {
    IntentType.UPDATE,
    IntentType.DELETE,
    IntentType.RETRIEVE,
    IntentType.DUPLICATE,
    IntentType.SHARE,
    IntentType.PROTECT,
}


def check_clarification_gate(
    intent_type: IntentType,
    parameters: IntentParameters,
) -> ClarificationGateResult:
    """
    Check the minimal parameter contract for an intent.

    CREATE needs a content kind and a title (kind is asked for first).
    Item intents need a resolved item reference. LIST, SEARCH and UNKNOWN
    always pass.
    """
    if intent_type == IntentType.CREATE:
        if getattr(parameters, "content_type", None) is None:
            return ClarificationGateResult(
                passed=False,
                gate_name="clarification",
                reason="Missing content type",
                missing=["content_type"],
                question=TYPE_QUESTION,
            )
        if not getattr(parameters, "title", None):
            return ClarificationGateResult(
                passed=False,
                gate_name="clarification",
                reason="Missing title",
                missing=["title"],
                question=TITLE_QUESTION,
            )

    elif intent_type in ITEM_REFERENCE_INTENTS:
        if not getattr(parameters, "item_id", None):
            return ClarificationGateResult(
                passed=False,
                gate_name="clarification",
                reason="No item reference resolved",
                missing=["item_id"],
                question=ITEM_QUESTION,
            )

    return ClarificationGateResult(
        passed=True,
        gate_name="clarification",
        reason="All required parameters present",
    )


# =============================================================================
# VERIFICATION GATE
# =============================================================================

VERIFICATION_ACTIONS: Dict[IntentType, str] = {
    IntentType.DELETE: "delete",
    IntentType.SHARE: "make public",
    IntentType.PROTECT: "protect",
}


def format_confirmation_prompt(action: str, title: str) -> str:
    return f'⚠️ This action cannot be undone. Are you sure you want to {action} "{title}"?'


def check_verification_gate(
    intent_type: IntentType,
    parameters: IntentParameters,
    item: Optional[ContentItem] = None,
) -> VerificationGateResult:
    """
    DELETE and PROTECT always need confirmation. SHARE only when it makes the
    item public; going private never widens access.
    """
    needs = False
    if intent_type in (IntentType.DELETE, IntentType.PROTECT):
        needs = True
    elif intent_type == IntentType.SHARE:
        needs = getattr(parameters, "is_public", False) is True

    if not needs:
        return VerificationGateResult(
            passed=True,
            gate_name="verification",
            reason="No confirmation required for this intent",
        )

    title = item.title if item is not None else "this content"
    return VerificationGateResult(
        passed=False,
        gate_name="verification",
        reason="Irreversible or privacy-widening operation",
        requires_verification=True,
        confirmation_prompt=format_confirmation_prompt(VERIFICATION_ACTIONS[intent_type], title),
    )
