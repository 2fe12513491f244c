# FILE: shelf/content/store.py
"""
Content store contract and the local SQLAlchemy implementation.

The command dispatcher only talks to the ContentStore protocol, so a remote
backing service can be swapped in for signed-in users. SqlContentStore is the
local store: guest content lives here under the guest sentinel owner.

Every mutating method commits or rolls back as a unit, so a failed delete or
visibility change never leaves a half-applied row behind. Sessions are
synchronous, so the async methods run them through asyncio.to_thread and
keep the event loop free.
"""
from __future__ import annotations
import asyncio
import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Protocol, Union

from sqlalchemy import or_
from sqlalchemy.orm import Session, sessionmaker

from shelf.config import GUEST_OWNER_ID
from shelf.content.errors import ContentNotFoundError
from shelf.content.models import ContentRecord
from shelf.content.schemas import (
    ContentCreate,
    ContentFilter,
    ContentItem,
    ContentStatus,
    ContentUpdate,
)

logger = logging.getLogger(__name__)


class ContentStore(Protocol):
    """Async collaborator the dispatcher mutates content through."""

    async def create(self, data: ContentCreate, owner_id: str) -> ContentItem: ...

    async def get(self, item_id: str) -> ContentItem: ...

    async def list(self, filters: Optional[ContentFilter] = None) -> List[ContentItem]: ...

    async def update(self, item_id: str, changes: Union[ContentUpdate, Dict[str, Any]]) -> ContentItem: ...

    async def delete(self, item_id: str) -> None: ...

    async def duplicate(self, item_id: str, owner_id: str) -> ContentItem: ...

    async def set_visibility(self, item_id: str, is_public: bool) -> ContentItem: ...


def _to_item(record: ContentRecord) -> ContentItem:
    return ContentItem.model_validate(record)


class SqlContentStore:
    """ContentStore backed by the local SQL database."""

    def __init__(self, session_factory: Optional[sessionmaker] = None):
        if session_factory is None:
            from shelf.db import SessionLocal
            session_factory = SessionLocal
        self._session_factory = session_factory

    @contextmanager
    def _session(self) -> Iterator[Session]:
        db = self._session_factory()
        try:
            yield db
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    @staticmethod
    def _require(db: Session, item_id: str) -> ContentRecord:
        record = db.get(ContentRecord, item_id)
        if record is None:
            raise ContentNotFoundError(f"Content item {item_id} not found")
        return record

    # -------------------------------------------------------------------------
    # Async API: each call runs its session in a worker thread
    # -------------------------------------------------------------------------

    async def create(self, data: ContentCreate, owner_id: str = GUEST_OWNER_ID) -> ContentItem:
        return await asyncio.to_thread(self._create_sync, data, owner_id)

    async def get(self, item_id: str) -> ContentItem:
        return await asyncio.to_thread(self._get_sync, item_id)

    async def list(self, filters: Optional[ContentFilter] = None) -> List[ContentItem]:
        return await asyncio.to_thread(self._list_sync, filters or ContentFilter())

    async def update(self, item_id: str, changes: Union[ContentUpdate, Dict[str, Any]]) -> ContentItem:
        if isinstance(changes, dict):
            changes = ContentUpdate(**changes)
        return await asyncio.to_thread(self._update_sync, item_id, changes.model_dump(exclude_none=True))

    async def delete(self, item_id: str) -> None:
        await asyncio.to_thread(self._delete_sync, item_id)

    async def duplicate(self, item_id: str, owner_id: str = GUEST_OWNER_ID) -> ContentItem:
        """Copy an item for owner_id. Copies start private, active, with no expiry."""
        return await asyncio.to_thread(self._duplicate_sync, item_id, owner_id)

    async def set_visibility(self, item_id: str, is_public: bool) -> ContentItem:
        return await asyncio.to_thread(self._set_visibility_sync, item_id, is_public)

    # -------------------------------------------------------------------------
    # Blocking session work
    # -------------------------------------------------------------------------

    def _create_sync(self, data: ContentCreate, owner_id: str) -> ContentItem:
        with self._session() as db:
            record = ContentRecord(
                user_id=owner_id,
                title=data.title,
                type=data.type.value,
                content=data.content,
                category=data.category,
                tags=list(data.tags),
                file_url=data.file_url,
                file_size=data.file_size,
                is_public=data.is_public,
                status=data.status.value,
                auto_delete_at=data.auto_delete_at,
                auto_delete_enabled=data.auto_delete_enabled,
            )
            db.add(record)
            db.flush()
            db.refresh(record)
            item = _to_item(record)
        logger.info(f"[content_store] Created {item.type.value} '{item.title}' ({item.id}) for {owner_id}")
        return item

    def _get_sync(self, item_id: str) -> ContentItem:
        with self._session() as db:
            return _to_item(self._require(db, item_id))

    def _list_sync(self, filters: ContentFilter) -> List[ContentItem]:
        with self._session() as db:
            query = db.query(ContentRecord)
            if filters.owner_id is not None:
                if filters.include_public:
                    query = query.filter(
                        or_(ContentRecord.user_id == filters.owner_id, ContentRecord.is_public.is_(True))
                    )
                else:
                    query = query.filter(ContentRecord.user_id == filters.owner_id)
            if filters.type is not None:
                query = query.filter(ContentRecord.type == filters.type.value)
            if filters.category:
                query = query.filter(ContentRecord.category == filters.category)
            records = query.order_by(ContentRecord.created_at.desc()).all()
            items = [_to_item(r) for r in records]

        if filters.tags:
            wanted = set(filters.tags)
            items = [i for i in items if wanted.intersection(i.tags)]
        return items

    def _update_sync(self, item_id: str, values: Dict[str, Any]) -> ContentItem:
        with self._session() as db:
            record = self._require(db, item_id)
            for key, value in values.items():
                if key == "status":
                    value = ContentStatus(value).value
                setattr(record, key, value)
            db.flush()
            db.refresh(record)
            item = _to_item(record)
        logger.info(f"[content_store] Updated {item_id}: {sorted(values)}")
        return item

    def _delete_sync(self, item_id: str) -> None:
        with self._session() as db:
            record = self._require(db, item_id)
            db.delete(record)
        logger.info(f"[content_store] Deleted {item_id}")

    def _duplicate_sync(self, item_id: str, owner_id: str) -> ContentItem:
        with self._session() as db:
            original = self._require(db, item_id)
            copy = ContentRecord(
                user_id=owner_id,
                title=f"{original.title} (copy)",
                type=original.type,
                content=original.content,
                category=original.category,
                tags=list(original.tags or []),
                file_url=original.file_url,
                file_size=original.file_size,
                is_public=False,
                status=ContentStatus.ACTIVE.value,
                auto_delete_at=None,
                auto_delete_enabled=False,
            )
            db.add(copy)
            db.flush()
            db.refresh(copy)
            item = _to_item(copy)
        logger.info(f"[content_store] Duplicated {item_id} -> {item.id}")
        return item

    def _set_visibility_sync(self, item_id: str, is_public: bool) -> ContentItem:
        with self._session() as db:
            record = self._require(db, item_id)
            record.is_public = is_public
            db.flush()
            db.refresh(record)
            item = _to_item(record)
        logger.info(f"[content_store] {item_id} is now {'public' if is_public else 'private'}")
        return item
