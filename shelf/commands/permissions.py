# FILE: shelf/commands/permissions.py
"""
Capability checks for content commands.

Ownership is the only rule: a signed-in user owns items whose user_id is
their id, and an anonymous user owns guest-sentinel items. Viewing also
allows public items. Nothing here touches a store.
"""
from __future__ import annotations
from typing import Dict, Iterable, Optional

from shelf.config import GUEST_OWNER_ID
from shelf.content.schemas import ContentItem, User
from .schemas import IntentType

# Verb used in permission_error() for each intent
INTENT_ACTIONS: Dict[IntentType, str] = {
    IntentType.CREATE: "create",
    IntentType.RETRIEVE: "view",
    IntentType.UPDATE: "edit",
    IntentType.DELETE: "delete",
    IntentType.SHARE: "share",
    IntentType.PROTECT: "protect",
    IntentType.LIST: "list",
    IntentType.DUPLICATE: "duplicate",
    IntentType.SEARCH: "search",
}


class ContentPermissions:
    """Permission checks for one acting user (None = guest)."""

    def __init__(self, user: Optional[User]):
        self.user = user

    @property
    def is_guest(self) -> bool:
        return self.user is None

    def owns(self, item: ContentItem) -> bool:
        if self.user is not None:
            return item.user_id == self.user.id
        return item.user_id == GUEST_OWNER_ID

    def can_view(self, item: ContentItem) -> bool:
        return item.is_public or self.owns(item)

    def can_edit(self, item: ContentItem) -> bool:
        return self.owns(item)

    def can_delete(self, item: ContentItem) -> bool:
        return self.owns(item)

    def can_share(self, item: ContentItem) -> bool:
        # Guests may toggle visibility on their own items; share links are
        # refused later by ShareLinkStore.
        return self.owns(item)

    def can_protect(self, item: ContentItem) -> bool:
        return self.owns(item)

    def can_duplicate(self, item: ContentItem) -> bool:
        return self.can_view(item)

    def can_create(self) -> bool:
        return True

    def can_list(self) -> bool:
        return True

    # Bulk checks are all-or-nothing; an empty batch is allowed.

    def can_bulk_delete(self, items: Iterable[ContentItem]) -> bool:
        return all(self.can_delete(i) for i in items)

    def can_bulk_edit(self, items: Iterable[ContentItem]) -> bool:
        return all(self.can_edit(i) for i in items)

    def can_bulk_share(self, items: Iterable[ContentItem]) -> bool:
        return all(self.can_share(i) for i in items)

    def can_perform(self, intent_type: IntentType, item: Optional[ContentItem] = None) -> bool:
        """Dispatch to the check matching an intent. Item intents without an item fail."""
        if intent_type in (IntentType.CREATE, IntentType.UNKNOWN):
            return self.can_create()
        if intent_type in (IntentType.LIST, IntentType.SEARCH):
            return self.can_list()
        if item is None:
            return False

        checks = {
            IntentType.RETRIEVE: self.can_view,
            IntentType.UPDATE: self.can_edit,
            IntentType.DELETE: self.can_delete,
            IntentType.SHARE: self.can_share,
            IntentType.PROTECT: self.can_protect,
            IntentType.DUPLICATE: self.can_duplicate,
        }
        return checks[intent_type](item)


def permission_error(action: str, user: Optional[User]) -> str:
    if user is None:
        return f"You must be signed in to {action} this content. Please sign in and try again."
    return f"You don't have permission to {action} this content."
