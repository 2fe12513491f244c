# FILE: shelf/commands/router.py
"""
HTTP surface for the command layer.

Thin JSON wrapper over MessageProcessor. Operation failures come back as
data in a 200 response; only malformed request bodies produce errors (422).
"""
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from shelf.auth import get_current_user
from shelf.config import GUEST_OWNER_ID
from shelf.content.schemas import ContentItem, User
from .processor import MessageProcessor, get_processor
from .responses import format_help_message, format_welcome_message
from .schemas import AssistantReply, ChatMessage, ChatSession, CompletedOperation, Intent, ProcessedMessage

router = APIRouter(prefix="/commands", tags=["commands"])


class MessageRequest(BaseModel):
    message: str
    items: List[ContentItem] = Field(default_factory=list)
    session_id: Optional[str] = None


class CompleteRequest(BaseModel):
    intent: Intent
    items: List[ContentItem] = Field(default_factory=list)
    session_id: Optional[str] = None
    overrides: Dict[str, Any] = Field(default_factory=dict)


# ============== COMMANDS ==============

@router.post("/messages", response_model=ProcessedMessage)
async def post_message(
    data: MessageRequest,
    user: Optional[User] = Depends(get_current_user),
    processor: MessageProcessor = Depends(get_processor),
):
    return await processor.process(data.message, user, data.items, session_id=data.session_id)


@router.post("/complete", response_model=CompletedOperation)
async def complete_intent(
    data: CompleteRequest,
    user: Optional[User] = Depends(get_current_user),
    processor: MessageProcessor = Depends(get_processor),
):
    return await processor.complete(
        data.intent, user, data.items, session_id=data.session_id, **data.overrides
    )


@router.get("/welcome", response_model=AssistantReply)
def welcome():
    return format_welcome_message()


@router.get("/help", response_model=AssistantReply)
def help_message():
    return format_help_message()


# ============== SESSIONS ==============

def _require_history(processor: MessageProcessor):
    if processor.history is None:
        raise HTTPException(status_code=503, detail="Chat history not configured")
    return processor.history


@router.post("/sessions", response_model=ChatSession, status_code=201)
async def create_session(
    user: Optional[User] = Depends(get_current_user),
    processor: MessageProcessor = Depends(get_processor),
):
    history = _require_history(processor)
    return await history.create_session(user.id if user else GUEST_OWNER_ID)


@router.get("/sessions/{session_id}/messages", response_model=List[ChatMessage])
async def list_session_messages(
    session_id: str,
    processor: MessageProcessor = Depends(get_processor),
):
    history = _require_history(processor)
    return await history.load_messages(session_id)
