# FILE: shelf/content/models.py
"""
SQLAlchemy ORM models for locally stored content.

ContentRecord.user_id holds either a signed-in user's id or the guest sentinel
owner for anonymous content. Tags are stored as a JSON list so tag filters keep
their list semantics.
"""
from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, JSON, String, Text
from sqlalchemy.orm import relationship

from shelf.db import Base


def _utcnow():
    return datetime.now(timezone.utc)


def _new_id():
    return uuid4().hex


class ContentRecord(Base):
    __tablename__ = "content"

    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(String(64), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    type = Column(String(20), nullable=False, index=True)
    content = Column(Text, nullable=True)
    category = Column(String(100), nullable=True, index=True)
    tags = Column(JSON, nullable=False, default=list)
    file_url = Column(String(500), nullable=True)
    file_size = Column(String(50), nullable=True)
    is_public = Column(Boolean, nullable=False, default=False)
    status = Column(String(20), nullable=False, default="active")
    auto_delete_at = Column(DateTime, nullable=True)
    auto_delete_enabled = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=_utcnow, nullable=False)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow, nullable=False)

    share_links = relationship("ShareLinkRecord", back_populates="content", cascade="all, delete-orphan")


class ShareLinkRecord(Base):
    __tablename__ = "share_links"

    id = Column(Integer, primary_key=True, index=True)
    content_id = Column(String(36), ForeignKey("content.id"), nullable=False, index=True)
    token = Column(String(64), unique=True, nullable=False, index=True)

    # bcrypt hash; never the plain password
    password_hash = Column(String(100), nullable=True)

    expires_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=_utcnow, nullable=False)

    content = relationship("ContentRecord", back_populates="share_links")
