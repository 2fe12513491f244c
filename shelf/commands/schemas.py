# FILE: shelf/commands/schemas.py
"""
Pydantic models for the Shelf command layer.
Defines intent types, per-intent parameter variants, gate results, operation
results, modal signals, and chat messages.

Intents and results are frozen: they are built once per message and passed
down the pipeline unchanged.
"""
from __future__ import annotations
from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from shelf.content.schemas import ContentType


def utcnow():
    """Timezone-aware UTC now."""
    return datetime.now(timezone.utc)


class IntentType(str, Enum):
    """Closed set of command intents."""
    CREATE = "CREATE"
    RETRIEVE = "RETRIEVE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    SHARE = "SHARE"
    PROTECT = "PROTECT"
    LIST = "LIST"
    DUPLICATE = "DUPLICATE"
    SEARCH = "SEARCH"
    UNKNOWN = "UNKNOWN"


class ErrorCode(str, Enum):
    """Failure taxonomy carried on OperationResult. Never raised."""
    MISSING_PARAMETER = "MISSING_PARAMETER"
    NOT_FOUND = "NOT_FOUND"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    CREATE_FAILED = "CREATE_FAILED"
    UPDATE_FAILED = "UPDATE_FAILED"
    DELETE_FAILED = "DELETE_FAILED"
    SHARE_FAILED = "SHARE_FAILED"
    DUPLICATE_FAILED = "DUPLICATE_FAILED"
    LIST_FAILED = "LIST_FAILED"


class ModalKind(str, Enum):
    """Which UI surface must finish an intent."""
    NONE = "none"
    CONTENT_EDIT = "content-edit"
    SHARE = "share"
    DELETE_CONFIRM = "delete-confirm"


# =============================================================================
# PARAMETERS (tagged union keyed by `kind`)
# =============================================================================

class _Params(BaseModel):
    model_config = ConfigDict(frozen=True)


class CreateParams(_Params):
    kind: Literal["create"] = "create"
    content_type: Optional[ContentType] = None
    title: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    category: Optional[str] = None
    is_public: bool = False
    auto_delete_enabled: bool = False
    auto_delete_at: Optional[datetime] = None


class UpdateParams(_Params):
    """Only the fields the user mentioned are set; None means unchanged."""
    kind: Literal["update"] = "update"
    item_id: Optional[str] = None
    title: Optional[str] = None
    tags: Optional[List[str]] = None
    category: Optional[str] = None
    is_public: Optional[bool] = None


class ItemParams(_Params):
    """DELETE, RETRIEVE, DUPLICATE and PROTECT only need the target item."""
    kind: Literal["item"] = "item"
    item_id: Optional[str] = None


class ShareParams(_Params):
    kind: Literal["share"] = "share"
    item_id: Optional[str] = None
    is_public: bool = True


class ListParams(_Params):
    kind: Literal["list"] = "list"
    content_type: Optional[ContentType] = None
    category: Optional[str] = None
    tags: List[str] = Field(default_factory=list)


class SearchParams(_Params):
    kind: Literal["search"] = "search"
    query: Optional[str] = None
    content_type: Optional[ContentType] = None
    category: Optional[str] = None
    tags: List[str] = Field(default_factory=list)


class NoParams(_Params):
    kind: Literal["none"] = "none"


IntentParameters = Annotated[
    Union[CreateParams, UpdateParams, ItemParams, ShareParams, ListParams, SearchParams, NoParams],
    Field(discriminator="kind"),
]


# =============================================================================
# INTENT
# =============================================================================

class Intent(BaseModel):
    """Classified purpose of one user message."""
    model_config = ConfigDict(frozen=True)

    type: IntentType
    operation_name: str
    parameters: IntentParameters = Field(default_factory=NoParams)
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    clarification_needed: Optional[str] = None
    requires_verification: bool = False

    @property
    def item_id(self) -> Optional[str]:
        return getattr(self.parameters, "item_id", None)


class IntentDefinition(BaseModel):
    """Definition of an intent type and how it is recognised."""
    intent: IntentType
    operation_name: str
    keywords: List[str]                                         # Classification (substring, lower-case)
    score_keywords: List[str] = Field(default_factory=list)     # Confidence keyword density
    score_phrases: List[str] = Field(default_factory=list)      # Confidence phrase regexes
    requires: List[str] = Field(default_factory=list)           # Minimal parameter contract
    description: str


# =============================================================================
# GATE RESULTS
# =============================================================================

class GateResult(BaseModel):
    """Result of passing through a gate."""
    passed: bool
    gate_name: str
    reason: Optional[str] = None


class ClarificationGateResult(GateResult):
    """Minimal parameter contract check."""
    missing: List[str] = Field(default_factory=list)
    question: Optional[str] = None


class VerificationGateResult(GateResult):
    """Explicit-confirmation policy for irreversible or privacy-widening intents."""
    requires_verification: bool = False
    confirmation_prompt: Optional[str] = None


# =============================================================================
# OPERATION RESULTS & REPLIES
# =============================================================================

class OperationResult(BaseModel):
    """Terminal value of a dispatcher handler."""
    model_config = ConfigDict(frozen=True)

    success: bool
    message: str
    data: Optional[Any] = None
    error_code: Optional[ErrorCode] = None


class ModalState(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: ModalKind = ModalKind.NONE
    is_open: bool = False
    seed_data: Optional[Dict[str, Any]] = None

    @classmethod
    def closed(cls) -> "ModalState":
        return cls()


class SuggestedAction(BaseModel):
    action: str
    label: str
    description: str


class AssistantReply(BaseModel):
    """Assistant-facing text plus follow-up options."""
    type: Literal["text", "options", "error", "success"] = "text"
    content: str
    options: List[SuggestedAction] = Field(default_factory=list)


class ChatMessage(BaseModel):
    id: str = Field(default_factory=lambda: f"msg-{uuid4().hex[:12]}")
    role: Literal["user", "assistant"]
    content: str
    timestamp: datetime = Field(default_factory=utcnow)
    metadata: Dict[str, Any] = Field(default_factory=dict)


class ChatSession(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class ProcessedMessage(BaseModel):
    """Everything one call to MessageProcessor.process() produced."""
    user_message: ChatMessage
    assistant_message: ChatMessage
    intent: Optional[Intent] = None
    result: OperationResult
    reply: AssistantReply
    modal_state: ModalState = Field(default_factory=ModalState.closed)
    suggestions: List[str] = Field(default_factory=list)


class CompletedOperation(BaseModel):
    """Outcome of MessageProcessor.complete() after a modal was confirmed."""
    intent: Intent
    result: OperationResult
    reply: AssistantReply
    assistant_message: ChatMessage
    suggestions: List[str] = Field(default_factory=list)
