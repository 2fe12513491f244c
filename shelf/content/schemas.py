# FILE: shelf/content/schemas.py
"""
Pydantic models for stored content.

ContentItem mirrors a row of the content table. The command layer only ever
reads snapshots of these; mutations go through a ContentStore.
"""
from __future__ import annotations
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, List

from pydantic import BaseModel, ConfigDict, Field

from shelf.config import GUEST_OWNER_ID


def utcnow():
    """Timezone-aware UTC now."""
    return datetime.now(timezone.utc)


class ContentType(str, Enum):
    """The nine content kinds. Order matters for substring detection."""
    TEXT = "text"
    CODE = "code"
    IMAGE = "image"
    VIDEO = "video"
    FILE = "file"
    LINK = "link"
    PROMPT = "prompt"
    SCRIPT = "script"
    BOOK = "book"


CONTENT_TYPES: List[ContentType] = list(ContentType)


class ContentStatus(str, Enum):
    ACTIVE = "active"
    PENDING = "pending"
    COMPLETED = "completed"


class User(BaseModel):
    """Signed-in user as yielded by the auth provider. None means guest."""
    model_config = ConfigDict(frozen=True)

    id: str
    email: str


class ContentItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str = GUEST_OWNER_ID
    title: str
    type: ContentType
    content: Optional[str] = None
    category: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    file_url: Optional[str] = None
    file_size: Optional[str] = None
    is_public: bool = False
    status: ContentStatus = ContentStatus.ACTIVE
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    auto_delete_at: Optional[datetime] = None
    auto_delete_enabled: bool = False

    @property
    def is_guest_owned(self) -> bool:
        return self.user_id == GUEST_OWNER_ID


class ContentCreate(BaseModel):
    title: str
    type: ContentType = ContentType.TEXT
    content: Optional[str] = None
    category: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    file_url: Optional[str] = None
    file_size: Optional[str] = None
    is_public: bool = False
    status: ContentStatus = ContentStatus.ACTIVE
    auto_delete_at: Optional[datetime] = None
    auto_delete_enabled: bool = False


class ContentUpdate(BaseModel):
    title: Optional[str] = None
    content: Optional[str] = None
    category: Optional[str] = None
    tags: Optional[List[str]] = None
    is_public: Optional[bool] = None
    status: Optional[ContentStatus] = None
    auto_delete_at: Optional[datetime] = None
    auto_delete_enabled: Optional[bool] = None


class ContentFilter(BaseModel):
    """Filters accepted by ContentStore.list()."""
    owner_id: Optional[str] = None
    type: Optional[ContentType] = None
    category: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    include_public: bool = True


class ShareLink(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    content_id: str
    token: str
    has_password: bool = False
    expires_at: Optional[datetime] = None
    created_at: datetime
