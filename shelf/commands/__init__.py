# FILE: shelf/commands/__init__.py
"""
Shelf command layer.

Turns a free-text chat message into a classified intent, checks it against
the acting user's permissions, runs the matching content operation, and
renders a reply with suggested next steps.

Usage:
    from shelf.commands import MessageProcessor

    processor = MessageProcessor(store=SqlContentStore())
    processed = await processor.process("show me 'Groceries'", user, items)
    if processed.modal_state.is_open:
        # UI collects/confirms details, then:
        await processor.complete(processed.intent, user, items, **form_values)

Key Invariants:
- Clarification halts the message; nothing is dispatched
- CREATE/UPDATE/DELETE/SHARE/PROTECT never mutate from process()
- Handlers return error codes as data; they never raise
- The caller's item snapshot is never mutated
"""
from __future__ import annotations

# Schemas
from .schemas import (
    IntentType,
    ErrorCode,
    ModalKind,
    CreateParams,
    UpdateParams,
    ItemParams,
    ShareParams,
    ListParams,
    SearchParams,
    NoParams,
    IntentParameters,
    Intent,
    IntentDefinition,
    GateResult,
    ClarificationGateResult,
    VerificationGateResult,
    OperationResult,
    ModalState,
    SuggestedAction,
    AssistantReply,
    ChatMessage,
    ChatSession,
    ProcessedMessage,
    CompletedOperation,
)

# Intents
from .intents import (
    INTENT_DEFINITIONS,
    PRIORITY_ORDER,
    get_intent_definition,
    operation_name_for,
    get_reference_intents,
    get_modal_intents,
)

# Slot extraction
from .slots import (
    extract_content_type,
    extract_title,
    extract_tags,
    extract_category,
    extract_visibility,
    extract_auto_delete,
    find_item_reference,
    extract_search_query,
)

# Classification
from .classifier import (
    classify_intent_type,
    calculate_confidence,
    extract_parameters,
    detect_intent,
)

# Gates
from .gates import (
    check_clarification_gate,
    check_verification_gate,
    format_confirmation_prompt,
)

# Permissions
from .permissions import (
    ContentPermissions,
    permission_error,
)

# Dispatch
from .dispatcher import OperationDispatcher

# Responses
from .responses import (
    suggest_next_actions,
    format_assistant_message,
    format_operation_response,
    format_list_response,
    format_welcome_message,
    format_help_message,
)

# History
from .history import (
    ChatHistoryStore,
    InMemoryChatHistory,
    SqlChatHistory,
    ResilientChatHistory,
)

# Processor
from .processor import (
    MessageProcessor,
    validate_message,
    generate_suggestions,
    get_processor,
    process_message,
)

__all__ = [
    # Schemas
    "IntentType",
    "ErrorCode",
    "ModalKind",
    "CreateParams",
    "UpdateParams",
    "ItemParams",
    "ShareParams",
    "ListParams",
    "SearchParams",
    "NoParams",
    "IntentParameters",
    "Intent",
    "IntentDefinition",
    "GateResult",
    "ClarificationGateResult",
    "VerificationGateResult",
    "OperationResult",
    "ModalState",
    "SuggestedAction",
    "AssistantReply",
    "ChatMessage",
    "ChatSession",
    "ProcessedMessage",
    "CompletedOperation",
    # Intents
    "INTENT_DEFINITIONS",
    "PRIORITY_ORDER",
    "get_intent_definition",
    "operation_name_for",
    "get_reference_intents",
    "get_modal_intents",
    # Slots
    "extract_content_type",
    "extract_title",
    "extract_tags",
    "extract_category",
    "extract_visibility",
    "extract_auto_delete",
    "find_item_reference",
    "extract_search_query",
    # Classification
    "classify_intent_type",
    "calculate_confidence",
    "extract_parameters",
    "detect_intent",
    # Gates
    "check_clarification_gate",
    "check_verification_gate",
    "format_confirmation_prompt",
    # Permissions
    "ContentPermissions",
    "permission_error",
    # Dispatch
    "OperationDispatcher",
    # Responses
    "suggest_next_actions",
    "format_assistant_message",
    "format_operation_response",
    "format_list_response",
    "format_welcome_message",
    "format_help_message",
    # History
    "ChatHistoryStore",
    "InMemoryChatHistory",
    "SqlChatHistory",
    "ResilientChatHistory",
    # Processor
    "MessageProcessor",
    "validate_message",
    "generate_suggestions",
    "get_processor",
    "process_message",
]
