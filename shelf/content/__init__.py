"""
Content data model and storage collaborators.

Usage:
    from shelf.content import SqlContentStore, ContentCreate, ContentType

    store = SqlContentStore()
    item = await store.create(ContentCreate(title="Ideas", type=ContentType.TEXT), owner_id="guest")
"""
from .schemas import (
    CONTENT_TYPES,
    ContentCreate,
    ContentFilter,
    ContentItem,
    ContentStatus,
    ContentType,
    ContentUpdate,
    ShareLink,
    User,
)
from .errors import ContentNotFoundError, ContentStoreError, ShareLinkError
from .store import ContentStore, SqlContentStore
from .share_links import ShareLinkStore

__all__ = [
    # Schemas
    "CONTENT_TYPES",
    "ContentCreate",
    "ContentFilter",
    "ContentItem",
    "ContentStatus",
    "ContentType",
    "ContentUpdate",
    "ShareLink",
    "User",
    # Errors
    "ContentNotFoundError",
    "ContentStoreError",
    "ShareLinkError",
    # Stores
    "ContentStore",
    "SqlContentStore",
    "ShareLinkStore",
]
