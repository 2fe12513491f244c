# FILE: shelf/commands/processor.py
"""
Message processor: the single entry point of the Shelf command layer.

Pipeline (process):
1. Validate the message (non-empty, bounded length)
2. Classify + extract + gate (detect_intent)
3. Clarification needed -> ask, stop (no permission check, no dispatch)
4. CREATE/UPDATE/DELETE/SHARE/PROTECT -> permission check, then a ModalState
   for the UI; nothing is mutated yet
5. RETRIEVE/LIST/SEARCH/DUPLICATE/UNKNOWN -> dispatch immediately
6. Format the reply, record both turns in chat history (best-effort)

complete() is the commit path the UI calls once a modal is confirmed. It is
the only caller of the mutating dispatcher handlers, and it refuses intents
that still need clarification or never open a modal.
"""
from __future__ import annotations
import asyncio
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple

from pydantic import ValidationError

from shelf.config import MAX_MESSAGE_LENGTH
from shelf.content.schemas import ContentItem, ContentType, User
from shelf.content.share_links import ShareLinkStore
from shelf.content.store import ContentStore
from .classifier import detect_intent
from .dispatcher import OperationDispatcher, SnapshotEntry
from .gates import TYPE_QUESTION, check_verification_gate
from .history import ChatHistoryStore
from .intents import get_modal_intents
from .permissions import INTENT_ACTIONS, ContentPermissions, permission_error
from .responses import (
    format_clarification_request,
    format_create_response,
    format_delete_response,
    format_duplicate_response,
    format_error_response,
    format_list_response,
    format_operation_response,
    format_permission_denied,
    format_retrieve_response,
    format_share_response,
    format_type_selection,
    format_update_response,
    format_verification_request,
    suggest_next_actions,
)
from .schemas import (
    AssistantReply,
    ChatMessage,
    CompletedOperation,
    CreateParams,
    ErrorCode,
    Intent,
    IntentType,
    ModalKind,
    ModalState,
    OperationResult,
    ProcessedMessage,
)

logger = logging.getLogger(__name__)

MODAL_KINDS: Dict[IntentType, ModalKind] = {
    IntentType.CREATE: ModalKind.CONTENT_EDIT,
    IntentType.UPDATE: ModalKind.CONTENT_EDIT,
    IntentType.PROTECT: ModalKind.CONTENT_EDIT,
    IntentType.DELETE: ModalKind.DELETE_CONFIRM,
    IntentType.SHARE: ModalKind.SHARE,
}

NOTHING_TO_CONFIRM = "There is nothing to confirm for that request. Just send it as a message."


# =============================================================================
# HELPERS
# =============================================================================

def validate_message(message: Optional[str], max_length: int = MAX_MESSAGE_LENGTH) -> Tuple[bool, Optional[str]]:
    """Returns (valid, error)."""
    if not message or not message.strip():
        return False, "Message cannot be empty"
    if len(message) > max_length:
        return False, f"Message is too long (max {max_length} characters)"
    return True, None


def generate_suggestions(intent: Intent, items: Sequence[ContentItem]) -> List[str]:
    """Plain-text follow-ups shown under the assistant reply."""
    if intent.type == IntentType.CREATE:
        return ["View my new content", "Share this content", "Add another content item"]

    if intent.type == IntentType.RETRIEVE:
        item = next((i for i in items if i.id == intent.item_id), None) if intent.item_id else None
        if item is None:
            return []
        return [f"Edit {item.title}", f"Share {item.title}", f"Delete {item.title}"]

    if intent.type == IntentType.UPDATE:
        return ["View the updated content", "Delete this content", "Share this content"]
    if intent.type == IntentType.DELETE:
        return ["View all my content", "Create new content"]
    if intent.type == IntentType.SHARE:
        return ["Generate a share link", "Protect with password", "View sharing settings"]
    if intent.type == IntentType.LIST:
        if not items:
            return []
        return ["Search for specific content", "Filter by category", "Sort by date"]
    if intent.type == IntentType.DUPLICATE:
        return ["View the duplicated content", "Share the copy"]
    if intent.type == IntentType.SEARCH:
        return ["Refine search results", "Filter by type", "View all content"]
    return ["Create new content", "View my content", "Search content"]


def _classifiable(items: Sequence[SnapshotEntry]) -> List[ContentItem]:
    """Snapshot entries usable for reference resolution. Malformed ones are skipped."""
    result = []
    for entry in items:
        if isinstance(entry, ContentItem):
            result.append(entry)
            continue
        try:
            result.append(ContentItem.model_validate(dict(entry)))
        except (ValidationError, TypeError, ValueError) as e:
            logger.warning(f"[processor] Skipping malformed snapshot entry: {e}")
    return result


def _seed_data(intent: Intent, item: Optional[ContentItem]) -> Dict[str, Any]:
    params = intent.parameters
    if isinstance(params, CreateParams):
        return {
            "type": (params.content_type.value if params.content_type else "text"),
            "title": params.title or "",
            "tags": list(params.tags),
            "category": params.category,
            "is_public": params.is_public,
            "auto_delete_enabled": params.auto_delete_enabled,
            "auto_delete_at": params.auto_delete_at.isoformat() if params.auto_delete_at else None,
        }

    seed = item.model_dump(mode="json") if item is not None else {}
    if intent.type == IntentType.UPDATE:
        for key in ("title", "tags", "category", "is_public"):
            value = getattr(params, key, None)
            if value is not None:
                seed[key] = value
    elif intent.type == IntentType.SHARE:
        seed["is_public"] = getattr(params, "is_public", True)
    return seed


def _modal_message(intent: Intent, item: Optional[ContentItem]) -> str:
    params = intent.parameters
    if intent.type == IntentType.CREATE:
        kind = params.content_type.value if getattr(params, "content_type", None) else "content"
        titled = f' titled "{params.title}"' if getattr(params, "title", None) else ""
        return f"I'll help you create a new {kind} item{titled}. Please fill in the details."

    title = item.title if item is not None else "this content"
    if intent.type == IntentType.UPDATE:
        return f'I\'ll update "{title}" for you. Please modify the details as needed.'
    if intent.type == IntentType.DELETE:
        return f'I\'ll delete "{title}". Please confirm this action.'
    if intent.type == IntentType.SHARE:
        action = "share publicly" if getattr(params, "is_public", True) else "make private"
        return f'I\'ll help you {action} "{title}".'
    return (
        f'I\'ll set password protection on "{title}". '
        "You'll need to open the details to set the password."
    )


# =============================================================================
# PROCESSOR
# =============================================================================

class MessageProcessor:
    """
    Turns one chat message into an intent, a result and a reply.

    Calls on the same instance are serialized; the item snapshot passed in is
    read-only and owned by the caller.
    """

    def __init__(
        self,
        store: ContentStore,
        share_links: Optional[ShareLinkStore] = None,
        history: Optional[ChatHistoryStore] = None,
        max_length: int = MAX_MESSAGE_LENGTH,
    ):
        self.dispatcher = OperationDispatcher(store, share_links)
        self.history = history
        self.max_length = max_length
        self._lock = asyncio.Lock()

    async def process(
        self,
        message: str,
        user: Optional[User] = None,
        items: Sequence[SnapshotEntry] = (),
        session_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> ProcessedMessage:
        async with self._lock:
            return await self._process(message, user, items, session_id, now)

    async def complete(
        self,
        intent: Intent,
        user: Optional[User] = None,
        items: Sequence[SnapshotEntry] = (),
        session_id: Optional[str] = None,
        **overrides,
    ) -> CompletedOperation:
        """
        Commit an intent the user confirmed through its modal.

        Only modal intents that need no clarification are dispatched; anything
        else is answered without touching the store.
        """
        async with self._lock:
            snapshot = _classifiable(items)
            if intent.clarification_needed:
                result = OperationResult(
                    success=False,
                    message=intent.clarification_needed,
                    error_code=ErrorCode.MISSING_PARAMETER,
                )
                reply = format_clarification_request(intent.clarification_needed)
            elif intent.type not in get_modal_intents():
                logger.warning(f"[processor] {intent.type.value} has no modal to commit")
                result = OperationResult(success=False, message=NOTHING_TO_CONFIRM)
                reply = format_error_response(NOTHING_TO_CONFIRM)
            else:
                result = await self.dispatcher.dispatch(intent, user, items, **overrides)
                reply = self._reply_for(intent.type, result, snapshot)
            assistant_message = self._assistant_message(intent, result, reply.content)
            await self._record(session_id, assistant_message)
            logger.info(f"[processor] Completed {intent.operation_name}: success={result.success}")
            return CompletedOperation(
                intent=intent,
                result=result,
                reply=reply,
                assistant_message=assistant_message,
                suggestions=generate_suggestions(intent, snapshot) if result.success else [],
            )

    # -------------------------------------------------------------------------
    # Pipeline
    # -------------------------------------------------------------------------

    async def _process(
        self,
        message: str,
        user: Optional[User],
        items: Sequence[SnapshotEntry],
        session_id: Optional[str],
        now: Optional[datetime],
    ) -> ProcessedMessage:
        message = message or ""
        user_message = ChatMessage(
            role="user",
            content=message,
            metadata={
                "characterCount": len(message),
                "wordCount": len(message.split()),
            },
        )

        valid, error = validate_message(message, self.max_length)
        if not valid:
            result = OperationResult(success=False, message=error)
            reply = format_error_response(error)
            return ProcessedMessage(
                user_message=user_message,
                assistant_message=ChatMessage(
                    role="assistant",
                    content=reply.content,
                    metadata={"success": False, "errorCode": None},
                ),
                result=result,
                reply=reply,
            )

        await self._record(session_id, user_message)

        snapshot = _classifiable(items)
        intent = detect_intent(message, snapshot, now=now)
        logger.info(
            f"[processor] {intent.type.value} ({intent.operation_name}) "
            f"confidence={intent.confidence:.2f}"
        )

        modal_state = ModalState.closed()
        if intent.clarification_needed:
            result = OperationResult(
                success=False,
                message=intent.clarification_needed,
                error_code=ErrorCode.MISSING_PARAMETER,
            )
            if intent.clarification_needed == TYPE_QUESTION:
                reply = format_type_selection()
                reply = reply.model_copy(update={"content": intent.clarification_needed})
            else:
                reply = format_clarification_request(intent.clarification_needed)

        elif intent.type in get_modal_intents():
            result, reply, modal_state = self._open_modal(intent, user, snapshot)

        else:
            result = await self.dispatcher.dispatch(intent, user, items)
            reply = self._reply_for(intent.type, result, snapshot)

        assistant_message = self._assistant_message(intent, result, reply.content)
        await self._record(session_id, assistant_message)

        return ProcessedMessage(
            user_message=user_message,
            assistant_message=assistant_message,
            intent=intent,
            result=result,
            reply=reply,
            modal_state=modal_state,
            suggestions=generate_suggestions(intent, snapshot) if result.success else [],
        )

    def _open_modal(
        self,
        intent: Intent,
        user: Optional[User],
        snapshot: Sequence[ContentItem],
    ) -> Tuple[OperationResult, AssistantReply, ModalState]:
        item = next((i for i in snapshot if i.id == intent.item_id), None) if intent.item_id else None

        if not ContentPermissions(user).can_perform(intent.type, item):
            message = permission_error(INTENT_ACTIONS[intent.type], user)
            return (
                OperationResult(success=False, message=message, error_code=ErrorCode.PERMISSION_DENIED),
                format_permission_denied(message),
                ModalState.closed(),
            )

        message = _modal_message(intent, item)
        if intent.requires_verification:
            verification = check_verification_gate(intent.type, intent.parameters, item)
            reply = format_verification_request(verification.confirmation_prompt)
        else:
            reply = AssistantReply(type="text", content=message)

        modal_state = ModalState(
            kind=MODAL_KINDS[intent.type],
            is_open=True,
            seed_data=_seed_data(intent, item),
        )
        data = {"id": item.id, "title": item.title} if item is not None else None
        return OperationResult(success=True, message=message, data=data), reply, modal_state

    @staticmethod
    def _reply_for(
        intent_type: IntentType,
        result: OperationResult,
        snapshot: Sequence[ContentItem],
    ) -> AssistantReply:
        if not result.success:
            if result.error_code == ErrorCode.PERMISSION_DENIED:
                return format_permission_denied(result.message)
            if result.error_code == ErrorCode.MISSING_PARAMETER or intent_type == IntentType.UNKNOWN:
                return format_clarification_request(result.message)
            return AssistantReply(
                type="error",
                content=result.message,
                options=suggest_next_actions(intent_type, False),
            )

        data = result.data
        if intent_type == IntentType.CREATE:
            return format_create_response(ContentType(data["type"]), data["title"])
        if intent_type == IntentType.RETRIEVE:
            return format_retrieve_response(data.title)
        if intent_type == IntentType.UPDATE:
            return format_update_response(data["title"])
        if intent_type == IntentType.DELETE:
            return format_delete_response(data["title"])
        if intent_type == IntentType.SHARE:
            return format_share_response(data["title"], data["is_public"])
        if intent_type == IntentType.DUPLICATE:
            original = next((i for i in snapshot if i.id == data["source_id"]), None)
            return format_duplicate_response(original.title if original else "content", data["title"])
        if intent_type in (IntentType.LIST, IntentType.SEARCH):
            return format_list_response(data["count"], data["items"])
        return format_operation_response(intent_type, True, data)

    @staticmethod
    def _assistant_message(intent: Intent, result: OperationResult, content: str) -> ChatMessage:
        return ChatMessage(
            role="assistant",
            content=content,
            metadata={
                "intent": intent.type.value,
                "operation": intent.operation_name,
                "success": result.success,
                "requiresVerification": intent.requires_verification,
                "confidence": intent.confidence,
                "errorCode": result.error_code.value if result.error_code else None,
            },
        )

    async def _record(self, session_id: Optional[str], message: ChatMessage) -> None:
        """Best-effort history append. Failures never reach the caller."""
        if self.history is None or session_id is None:
            return
        try:
            await self.history.append_message(session_id, message)
            await self.history.touch(session_id)
        except Exception as e:
            logger.warning(f"[processor] Could not record message in {session_id}: {e}")


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================

_processor: Optional[MessageProcessor] = None


def get_processor() -> MessageProcessor:
    """Get or create the processor backed by the local database."""
    global _processor
    if _processor is None:
        from shelf.content.store import SqlContentStore
        from .history import ResilientChatHistory, SqlChatHistory

        _processor = MessageProcessor(
            store=SqlContentStore(),
            share_links=ShareLinkStore(),
            history=ResilientChatHistory(SqlChatHistory()),
        )
    return _processor


async def process_message(
    message: str,
    user: Optional[User] = None,
    items: Sequence[SnapshotEntry] = (),
    session_id: Optional[str] = None,
) -> ProcessedMessage:
    """Convenience function to process one message with the default processor."""
    return await get_processor().process(message, user, items, session_id)
