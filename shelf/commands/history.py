# FILE: shelf/commands/history.py
"""
Chat history persistence.

SqlChatHistory is the durable store; InMemoryChatHistory is the local
substitute. ResilientChatHistory wraps the two: every call is tried once
against the primary store, and on any error it logs a warning and serves the
call from the fallback instead. Callers never see history errors.
"""
from __future__ import annotations
import asyncio
import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional, Protocol, Set
from uuid import uuid4

from sqlalchemy import Column, DateTime, ForeignKey, JSON, String, Text
from sqlalchemy.orm import relationship, sessionmaker

from shelf.config import HISTORY_MAX_MESSAGES, HISTORY_MAX_SESSIONS
from shelf.db import Base
from .schemas import ChatMessage, ChatSession

logger = logging.getLogger(__name__)


def _utcnow():
    return datetime.now(timezone.utc)


# =============================================================================
# ORM MODELS
# =============================================================================

class ChatSessionRecord(Base):
    __tablename__ = "chat_sessions"

    id = Column(String(36), primary_key=True, default=lambda: uuid4().hex)
    user_id = Column(String(64), nullable=False, index=True)
    created_at = Column(DateTime, default=_utcnow, nullable=False)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow, nullable=False)

    messages = relationship(
        "ChatMessageRecord",
        back_populates="session",
        cascade="all, delete-orphan",
        order_by="ChatMessageRecord.timestamp",
    )


class ChatMessageRecord(Base):
    __tablename__ = "chat_messages"

    id = Column(String(40), primary_key=True)
    session_id = Column(String(36), ForeignKey("chat_sessions.id"), nullable=False, index=True)
    role = Column(String(20), nullable=False)
    content = Column(Text, nullable=False)
    # "metadata" is reserved on declarative classes
    meta = Column("metadata", JSON, nullable=False, default=dict)
    timestamp = Column(DateTime, default=_utcnow, nullable=False)

    session = relationship("ChatSessionRecord", back_populates="messages")


def _to_message(record: ChatMessageRecord) -> ChatMessage:
    return ChatMessage(
        id=record.id,
        role=record.role,
        content=record.content,
        timestamp=record.timestamp,
        metadata=record.meta or {},
    )


# =============================================================================
# STORES
# =============================================================================

class ChatHistoryStore(Protocol):
    async def create_session(self, user_id: str) -> ChatSession: ...

    async def load_messages(self, session_id: str) -> List[ChatMessage]: ...

    async def append_message(self, session_id: str, message: ChatMessage) -> None: ...

    async def touch(self, session_id: str) -> None: ...


class InMemoryChatHistory:
    """
    Process-local history. Lost on restart.

    Bounded: each session keeps its newest max_messages, and at max_sessions
    the oldest session is dropped to make room for a new one.
    """

    def __init__(self, max_sessions: int = HISTORY_MAX_SESSIONS, max_messages: int = HISTORY_MAX_MESSAGES):
        self._sessions: Dict[str, ChatSession] = {}
        self._messages: Dict[str, List[ChatMessage]] = {}
        self._max_sessions = max_sessions
        self._max_messages = max_messages

    def has_session(self, session_id: str) -> bool:
        return session_id in self._messages

    def _make_room(self) -> None:
        while self._messages and len(self._messages) >= self._max_sessions:
            oldest = next(iter(self._messages))
            self._messages.pop(oldest)
            self._sessions.pop(oldest, None)
            logger.debug(f"[history] Evicted local session {oldest}")

    async def create_session(self, user_id: str) -> ChatSession:
        session = ChatSession(id=f"local-{uuid4().hex}", user_id=user_id)
        self._make_room()
        self._sessions[session.id] = session
        self._messages[session.id] = []
        return session

    async def load_messages(self, session_id: str) -> List[ChatMessage]:
        return list(self._messages.get(session_id, []))

    async def append_message(self, session_id: str, message: ChatMessage) -> None:
        if session_id not in self._messages:
            self._make_room()
            self._messages[session_id] = []
        history = self._messages[session_id]
        history.append(message)
        if len(history) > self._max_messages:
            self._messages[session_id] = history[-self._max_messages:]

    async def touch(self, session_id: str) -> None:
        session = self._sessions.get(session_id)
        if session is not None:
            self._sessions[session_id] = session.model_copy(update={"updated_at": _utcnow()})


class SqlChatHistory:
    """Durable history. Sessions are synchronous, so each call runs in a worker thread."""

    def __init__(self, session_factory: Optional[sessionmaker] = None):
        if session_factory is None:
            from shelf.db import SessionLocal
            session_factory = SessionLocal
        self._session_factory = session_factory

    async def create_session(self, user_id: str) -> ChatSession:
        return await asyncio.to_thread(self._create_session_sync, user_id)

    async def load_messages(self, session_id: str) -> List[ChatMessage]:
        return await asyncio.to_thread(self._load_messages_sync, session_id)

    async def append_message(self, session_id: str, message: ChatMessage) -> None:
        await asyncio.to_thread(self._append_message_sync, session_id, message)

    async def touch(self, session_id: str) -> None:
        await asyncio.to_thread(self._touch_sync, session_id)

    def _create_session_sync(self, user_id: str) -> ChatSession:
        db = self._session_factory()
        try:
            record = ChatSessionRecord(user_id=user_id)
            db.add(record)
            db.commit()
            db.refresh(record)
            return ChatSession.model_validate(record)
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def _load_messages_sync(self, session_id: str) -> List[ChatMessage]:
        db = self._session_factory()
        try:
            records = (
                db.query(ChatMessageRecord)
                .filter(ChatMessageRecord.session_id == session_id)
                .order_by(ChatMessageRecord.timestamp.asc())
                .all()
            )
            return [_to_message(r) for r in records]
        finally:
            db.close()

    def _append_message_sync(self, session_id: str, message: ChatMessage) -> None:
        db = self._session_factory()
        try:
            if db.get(ChatSessionRecord, session_id) is None:
                raise LookupError(f"Chat session {session_id} not found")
            db.add(ChatMessageRecord(
                id=message.id,
                session_id=session_id,
                role=message.role,
                content=message.content,
                meta=message.model_dump(mode="json")["metadata"],
                timestamp=message.timestamp,
            ))
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def _touch_sync(self, session_id: str) -> None:
        db = self._session_factory()
        try:
            record = db.get(ChatSessionRecord, session_id)
            if record is None:
                raise LookupError(f"Chat session {session_id} not found")
            record.updated_at = _utcnow()
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()


class ResilientChatHistory:
    """Primary store with a silent in-memory fallback. Never raises."""

    def __init__(self, primary: ChatHistoryStore, fallback: Optional[InMemoryChatHistory] = None):
        self.primary = primary
        self.fallback = fallback or InMemoryChatHistory()
        # Sessions that only exist in the fallback; pruned to what the fallback still holds
        self._local_sessions: Set[str] = set()

    async def create_session(self, user_id: str) -> ChatSession:
        try:
            return await self.primary.create_session(user_id)
        except Exception as e:
            logger.warning(f"[history] create_session failed, using local session: {e}")
            session = await self.fallback.create_session(user_id)
            self._local_sessions = {s for s in self._local_sessions if self.fallback.has_session(s)}
            self._local_sessions.add(session.id)
            return session

    async def load_messages(self, session_id: str) -> List[ChatMessage]:
        if session_id not in self._local_sessions:
            try:
                return await self.primary.load_messages(session_id)
            except Exception as e:
                logger.warning(f"[history] load_messages failed for {session_id}: {e}")
        return await self.fallback.load_messages(session_id)

    async def append_message(self, session_id: str, message: ChatMessage) -> None:
        if session_id not in self._local_sessions:
            try:
                await self.primary.append_message(session_id, message)
                return
            except Exception as e:
                logger.warning(f"[history] append_message failed for {session_id}: {e}")
        await self.fallback.append_message(session_id, message)

    async def touch(self, session_id: str) -> None:
        if session_id not in self._local_sessions:
            try:
                await self.primary.touch(session_id)
                return
            except Exception as e:
                logger.warning(f"[history] touch failed for {session_id}: {e}")
        await self.fallback.touch(session_id)
