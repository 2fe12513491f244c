# FILE: shelf/auth.py
"""
Auth provider for Shelf.

Identity is established upstream (reverse proxy or session layer) and passed
in as headers. No headers means an anonymous guest; guests are never
rejected here, the permission layer decides what they may do.
"""
from typing import Optional

from fastapi import Header

from shelf.content.schemas import User


async def get_current_user(
    x_user_id: Optional[str] = Header(default=None),
    x_user_email: Optional[str] = Header(default=None),
) -> Optional[User]:
    """Dependency yielding the signed-in User, or None for guests."""
    if not x_user_id or not x_user_id.strip():
        return None
    return User(id=x_user_id.strip(), email=(x_user_email or "").strip())
