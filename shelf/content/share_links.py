# FILE: shelf/content/share_links.py
"""
Scoped share links for content items.

A link is an unguessable token, optionally password protected (bcrypt) and
optionally expiring. Guests never get share links; that rule is enforced here
and not in the permission layer, which only knows about ownership.
"""
from __future__ import annotations
import asyncio
import logging
import secrets
from datetime import datetime, timezone
from typing import List, Optional

import bcrypt
from sqlalchemy.orm import sessionmaker

from shelf.config import GUEST_OWNER_ID
from shelf.content.errors import ContentNotFoundError, ShareLinkError
from shelf.content.models import ContentRecord, ShareLinkRecord
from shelf.content.schemas import ShareLink

logger = logging.getLogger(__name__)

TOKEN_BYTES = 24


def _hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt()).decode()


def _verify_password(password: str, stored_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode(), stored_hash.encode())
    except ValueError:
        return False


def _to_link(record: ShareLinkRecord) -> ShareLink:
    return ShareLink(
        id=record.id,
        content_id=record.content_id,
        token=record.token,
        has_password=record.password_hash is not None,
        expires_at=record.expires_at,
        created_at=record.created_at,
    )


def _is_expired(expires_at: Optional[datetime], now: datetime) -> bool:
    if expires_at is None:
        return False
    if expires_at.tzinfo is None:
        expires_at = expires_at.replace(tzinfo=timezone.utc)
    return expires_at <= now


class ShareLinkStore:
    def __init__(self, session_factory: Optional[sessionmaker] = None):
        if session_factory is None:
            from shelf.db import SessionLocal
            session_factory = SessionLocal
        self._session_factory = session_factory

    async def create(
        self,
        content_id: str,
        password: Optional[str] = None,
        expires_at: Optional[datetime] = None,
    ) -> ShareLink:
        return await asyncio.to_thread(self._create_sync, content_id, password, expires_at)

    async def list(self, content_id: str) -> List[ShareLink]:
        return await asyncio.to_thread(self._list_sync, content_id)

    async def delete(self, token: str) -> bool:
        return await asyncio.to_thread(self._delete_sync, token)

    async def verify(self, token: str, password: Optional[str] = None, now: Optional[datetime] = None) -> str:
        """
        Resolve a token to its content id.

        Raises ShareLinkError if the token is unknown, expired, or the password
        does not match.
        """
        now = now or datetime.now(timezone.utc)
        return await asyncio.to_thread(self._verify_sync, token, password, now)

    # bcrypt and the session both block; everything below runs in a worker thread

    def _create_sync(self, content_id: str, password: Optional[str], expires_at: Optional[datetime]) -> ShareLink:
        db = self._session_factory()
        try:
            content = db.get(ContentRecord, content_id)
            if content is None:
                raise ContentNotFoundError(f"Content item {content_id} not found")
            if content.user_id == GUEST_OWNER_ID:
                raise ShareLinkError("Share links require a signed-in owner")

            record = ShareLinkRecord(
                content_id=content_id,
                token=secrets.token_urlsafe(TOKEN_BYTES),
                password_hash=_hash_password(password) if password else None,
                expires_at=expires_at,
            )
            db.add(record)
            db.commit()
            db.refresh(record)
            link = _to_link(record)
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

        logger.info(
            f"[share_links] Created link for {content_id} "
            f"(password={'yes' if password else 'no'}, expires={expires_at})"
        )
        return link

    def _list_sync(self, content_id: str) -> List[ShareLink]:
        db = self._session_factory()
        try:
            records = (
                db.query(ShareLinkRecord)
                .filter(ShareLinkRecord.content_id == content_id)
                .order_by(ShareLinkRecord.created_at.desc())
                .all()
            )
            return [_to_link(r) for r in records]
        finally:
            db.close()

    def _delete_sync(self, token: str) -> bool:
        db = self._session_factory()
        try:
            record = db.query(ShareLinkRecord).filter(ShareLinkRecord.token == token).first()
            if record is None:
                return False
            db.delete(record)
            db.commit()
            return True
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def _verify_sync(self, token: str, password: Optional[str], now: datetime) -> str:
        db = self._session_factory()
        try:
            record = db.query(ShareLinkRecord).filter(ShareLinkRecord.token == token).first()
            if record is None:
                raise ShareLinkError("Unknown share link")
            if _is_expired(record.expires_at, now):
                raise ShareLinkError("Share link has expired")
            if record.password_hash is not None:
                if not password or not _verify_password(password, record.password_hash):
                    raise ShareLinkError("Incorrect password")
            return record.content_id
        finally:
            db.close()
