# FILE: shelf/commands/dispatcher.py
"""
Operation dispatcher for Shelf.

One async handler per intent type. Every handler:
1. Re-checks the required parameter and that the item exists in the snapshot
2. Re-checks permission. Handlers that call the store first re-read the item
   from it, so snapshot ownership and visibility are never trusted
3. Awaits the injected ContentStore (RETRIEVE, LIST and SEARCH only read the snapshot)
4. Returns an OperationResult; store exceptions become error codes, never raise

The snapshot passed in is never mutated. Callers refresh it after a
successful mutation.
"""
from __future__ import annotations
import logging
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Sequence, Union

from pydantic import ValidationError

from shelf.config import GUEST_OWNER_ID, LIST_RESULT_LIMIT
from shelf.content.errors import ContentNotFoundError
from shelf.content.schemas import ContentCreate, ContentItem, ContentType, ContentUpdate, User
from shelf.content.share_links import ShareLinkStore
from shelf.content.store import ContentStore
from .permissions import INTENT_ACTIONS, ContentPermissions, permission_error
from .responses import format_assistant_message
from .schemas import (
    CreateParams,
    ErrorCode,
    Intent,
    IntentParameters,
    IntentType,
    OperationResult,
)

logger = logging.getLogger(__name__)

SnapshotEntry = Union[ContentItem, Mapping[str, Any]]

UNKNOWN_MESSAGE = (
    "I didn't understand that request. You can create, view, edit, delete, "
    "or share content. What would you like to do?"
)
SEARCH_QUESTION = "What would you like to search for?"

_UPDATE_FIELDS = set(ContentUpdate.model_fields)

_FAILURE_CODES: Dict[IntentType, ErrorCode] = {
    IntentType.UPDATE: ErrorCode.UPDATE_FAILED,
    IntentType.DELETE: ErrorCode.DELETE_FAILED,
    IntentType.SHARE: ErrorCode.SHARE_FAILED,
    IntentType.PROTECT: ErrorCode.UPDATE_FAILED,
    IntentType.DUPLICATE: ErrorCode.DUPLICATE_FAILED,
}


def _entry_id(entry: SnapshotEntry) -> Optional[str]:
    if isinstance(entry, ContentItem):
        return entry.id
    return entry.get("id")


def _coerce(entry: SnapshotEntry) -> ContentItem:
    if isinstance(entry, ContentItem):
        return entry
    return ContentItem.model_validate(dict(entry))


def _find_item(items: Sequence[SnapshotEntry], item_id: str) -> Optional[ContentItem]:
    for entry in items:
        if _entry_id(entry) == item_id:
            return _coerce(entry)
    return None


def _failure(message: str, code: Optional[ErrorCode]) -> OperationResult:
    return OperationResult(success=False, message=message, error_code=code)


def _store_failure(intent_type: IntentType, code: ErrorCode, exc: Exception) -> OperationResult:
    logger.warning(f"[dispatcher] {intent_type.value} failed: {exc}")
    return _failure(format_assistant_message(intent_type, False, {"error": str(exc)}), code)


def _summary(item: ContentItem, **extra) -> Dict[str, Any]:
    data = {"id": item.id, "title": item.title, "type": item.type.value}
    data.update(extra)
    return data


class OperationDispatcher:
    """Routes a classified intent to its handler."""

    def __init__(self, store: ContentStore, share_links: Optional[ShareLinkStore] = None):
        self.store = store
        self.share_links = share_links
        self._handlers: Dict[IntentType, Callable[..., Awaitable[OperationResult]]] = {
            IntentType.CREATE: self.handle_create,
            IntentType.RETRIEVE: self.handle_retrieve,
            IntentType.UPDATE: self.handle_update,
            IntentType.DELETE: self.handle_delete,
            IntentType.SHARE: self.handle_share,
            IntentType.PROTECT: self.handle_protect,
            IntentType.LIST: self.handle_list,
            IntentType.DUPLICATE: self.handle_duplicate,
            IntentType.SEARCH: self.handle_search,
            IntentType.UNKNOWN: self.handle_unknown,
        }

    async def dispatch(
        self,
        intent: Intent,
        user: Optional[User],
        items: Sequence[SnapshotEntry],
        **overrides,
    ) -> OperationResult:
        """
        Run the handler for intent.type.

        overrides carry values confirmed in the UI (edited title, password,
        final visibility). They take precedence over extracted parameters.
        """
        handler = self._handlers[intent.type]
        logger.info(f"[dispatcher] {intent.operation_name} user={user.id if user else 'guest'}")
        return await handler(user, intent.parameters, items, **overrides)

    # -------------------------------------------------------------------------
    # Shared checks
    # -------------------------------------------------------------------------

    async def _resolve(
        self,
        intent_type: IntentType,
        user: Optional[User],
        params: IntentParameters,
        items: Sequence[SnapshotEntry],
        overrides: Dict[str, Any],
        fetch: bool = True,
    ) -> Union[ContentItem, OperationResult]:
        """
        Item lookup plus permission check. Returns the item or a failure result.

        With fetch (every handler that calls the store) the stored row replaces
        the snapshot entry before the permission check, so a snapshot that lies
        about user_id or is_public cannot act on someone else's item.
        """
        verb = INTENT_ACTIONS[intent_type]
        not_found = f"I couldn't find that content item to {verb}."
        item_id = overrides.get("item_id") or getattr(params, "item_id", None)
        if not item_id:
            return _failure(f"Which content item would you like to {verb}?", ErrorCode.MISSING_PARAMETER)

        try:
            item = _find_item(items, item_id)
        except ValidationError as e:
            logger.warning(f"[dispatcher] Malformed snapshot entry {item_id}: {e}")
            item = None
        if item is None:
            return _failure(not_found, ErrorCode.NOT_FOUND)

        if fetch:
            try:
                item = await self.store.get(item_id)
            except ContentNotFoundError:
                logger.warning(f"[dispatcher] Snapshot item {item_id} is not in the store")
                return _failure(not_found, ErrorCode.NOT_FOUND)
            except Exception as e:
                return _store_failure(intent_type, _FAILURE_CODES[intent_type], e)

        if not ContentPermissions(user).can_perform(intent_type, item):
            return _failure(permission_error(verb, user), ErrorCode.PERMISSION_DENIED)
        return item

    @staticmethod
    def _visible(
        user: Optional[User],
        items: Sequence[SnapshotEntry],
        content_type: Optional[ContentType],
        category: Optional[str],
        tags: List[str],
    ) -> List[ContentItem]:
        """Snapshot filtered by kind, category, any shared tag, and view permission."""
        perms = ContentPermissions(user)
        wanted_tags = set(tags)
        result = []
        for entry in items:
            item = _coerce(entry)
            if content_type is not None and item.type != content_type:
                continue
            if category and item.category != category:
                continue
            if wanted_tags and not wanted_tags.intersection(item.tags):
                continue
            if not perms.can_view(item):
                continue
            result.append(item)
        return result

    # -------------------------------------------------------------------------
    # Handlers
    # -------------------------------------------------------------------------

    async def handle_create(self, user, params, items, **overrides) -> OperationResult:
        if not ContentPermissions(user).can_create():
            return _failure(permission_error("create", user), ErrorCode.PERMISSION_DENIED)

        base = params if isinstance(params, CreateParams) else CreateParams()
        title = overrides.get("title") or base.title
        content_type = overrides.get("type") or base.content_type
        if not content_type:
            return _failure("What type of content would you like to create?", ErrorCode.MISSING_PARAMETER)
        if not title:
            return _failure("What would you like to title this content?", ErrorCode.MISSING_PARAMETER)

        try:
            data = ContentCreate(
                title=title,
                type=content_type,
                content=overrides.get("content"),
                category=overrides.get("category", base.category),
                tags=overrides.get("tags", base.tags),
                file_url=overrides.get("file_url"),
                file_size=overrides.get("file_size"),
                is_public=overrides.get("is_public", base.is_public),
                auto_delete_enabled=overrides.get("auto_delete_enabled", base.auto_delete_enabled),
                auto_delete_at=overrides.get("auto_delete_at", base.auto_delete_at),
            )
            owner_id = user.id if user else GUEST_OWNER_ID
            created = await self.store.create(data, owner_id)
        except Exception as e:
            return _store_failure(IntentType.CREATE, ErrorCode.CREATE_FAILED, e)

        return OperationResult(
            success=True,
            message=format_assistant_message(IntentType.CREATE, True, {"title": created.title}),
            data=_summary(created),
        )

    async def handle_retrieve(self, user, params, items, **overrides) -> OperationResult:
        resolved = await self._resolve(IntentType.RETRIEVE, user, params, items, overrides, fetch=False)
        if isinstance(resolved, OperationResult):
            return resolved
        return OperationResult(
            success=True,
            message=format_assistant_message(IntentType.RETRIEVE, True, {"title": resolved.title}),
            data=resolved,
        )

    async def handle_update(self, user, params, items, **overrides) -> OperationResult:
        resolved = await self._resolve(IntentType.UPDATE, user, params, items, overrides)
        if isinstance(resolved, OperationResult):
            return resolved

        changes = {
            key: getattr(params, key)
            for key in ("title", "tags", "category", "is_public")
            if getattr(params, key, None) is not None
        }
        changes.update({k: v for k, v in overrides.items() if k in _UPDATE_FIELDS})

        try:
            updated = await self.store.update(resolved.id, ContentUpdate(**changes))
        except Exception as e:
            return _store_failure(IntentType.UPDATE, ErrorCode.UPDATE_FAILED, e)

        return OperationResult(
            success=True,
            message=format_assistant_message(IntentType.UPDATE, True, {"title": updated.title}),
            data=_summary(updated, changed=sorted(changes)),
        )

    async def handle_delete(self, user, params, items, **overrides) -> OperationResult:
        resolved = await self._resolve(IntentType.DELETE, user, params, items, overrides)
        if isinstance(resolved, OperationResult):
            return resolved

        try:
            await self.store.delete(resolved.id)
        except Exception as e:
            return _store_failure(IntentType.DELETE, ErrorCode.DELETE_FAILED, e)

        return OperationResult(
            success=True,
            message=format_assistant_message(IntentType.DELETE, True, {"title": resolved.title}),
            data=_summary(resolved),
        )

    async def handle_share(self, user, params, items, **overrides) -> OperationResult:
        resolved = await self._resolve(IntentType.SHARE, user, params, items, overrides)
        if isinstance(resolved, OperationResult):
            return resolved

        is_public = overrides.get("is_public", getattr(params, "is_public", True))
        try:
            updated = await self.store.set_visibility(resolved.id, is_public)
        except Exception as e:
            return _store_failure(IntentType.SHARE, ErrorCode.SHARE_FAILED, e)

        return OperationResult(
            success=True,
            message=format_assistant_message(IntentType.SHARE, True, {"is_public": updated.is_public}),
            data=_summary(updated, is_public=updated.is_public),
        )

    async def handle_protect(self, user, params, items, **overrides) -> OperationResult:
        """
        Make the item private. With a password (signed-in users only) also
        issue a password-protected share link. If the link cannot be created
        the previous visibility is restored.
        """
        resolved = await self._resolve(IntentType.PROTECT, user, params, items, overrides)
        if isinstance(resolved, OperationResult):
            return resolved

        password = overrides.get("password")
        try:
            updated = await self.store.set_visibility(resolved.id, False)
        except Exception as e:
            return _store_failure(IntentType.PROTECT, ErrorCode.UPDATE_FAILED, e)

        link_token = None
        if password and user is not None and self.share_links is not None:
            try:
                link = await self.share_links.create(
                    resolved.id,
                    password=password,
                    expires_at=overrides.get("expires_at"),
                )
                link_token = link.token
            except Exception as e:
                if resolved.is_public:
                    try:
                        await self.store.set_visibility(resolved.id, True)
                    except Exception as restore_error:
                        logger.error(f"[dispatcher] Could not restore visibility of {resolved.id}: {restore_error}")
                return _store_failure(IntentType.PROTECT, ErrorCode.UPDATE_FAILED, e)

        return OperationResult(
            success=True,
            message=format_assistant_message(IntentType.PROTECT, True, {"title": updated.title}),
            data=_summary(updated, is_public=False, share_token=link_token),
        )

    async def handle_duplicate(self, user, params, items, **overrides) -> OperationResult:
        resolved = await self._resolve(IntentType.DUPLICATE, user, params, items, overrides)
        if isinstance(resolved, OperationResult):
            return resolved

        try:
            copy = await self.store.duplicate(resolved.id, user.id if user else GUEST_OWNER_ID)
        except Exception as e:
            return _store_failure(IntentType.DUPLICATE, ErrorCode.DUPLICATE_FAILED, e)

        return OperationResult(
            success=True,
            message=format_assistant_message(IntentType.DUPLICATE, True, {"title": copy.title}),
            data=_summary(copy, source_id=resolved.id),
        )

    async def handle_list(self, user, params, items, **overrides) -> OperationResult:
        try:
            matched = self._visible(
                user,
                items,
                overrides.get("type", getattr(params, "content_type", None)),
                overrides.get("category", getattr(params, "category", None)),
                overrides.get("tags", getattr(params, "tags", [])),
            )
        except (ValidationError, TypeError, AttributeError) as e:
            return _store_failure(IntentType.LIST, ErrorCode.LIST_FAILED, e)

        return OperationResult(
            success=True,
            message=format_assistant_message(IntentType.LIST, True, {"count": len(matched)}),
            data={"count": len(matched), "items": matched[:LIST_RESULT_LIMIT]},
        )

    async def handle_search(self, user, params, items, **overrides) -> OperationResult:
        query = overrides.get("query") or getattr(params, "query", None)
        if not query:
            return _failure(SEARCH_QUESTION, ErrorCode.MISSING_PARAMETER)

        try:
            visible = self._visible(
                user,
                items,
                overrides.get("type", getattr(params, "content_type", None)),
                overrides.get("category", getattr(params, "category", None)),
                overrides.get("tags", getattr(params, "tags", [])),
            )
        except (ValidationError, TypeError, AttributeError) as e:
            return _store_failure(IntentType.SEARCH, ErrorCode.LIST_FAILED, e)

        needle = query.lower()
        matched = [
            item for item in visible
            if needle in f"{item.title} {item.category or ''} {' '.join(item.tags)}".lower()
        ]
        return OperationResult(
            success=True,
            message=format_assistant_message(
                IntentType.SEARCH, True, {"count": len(matched), "query": query}
            ),
            data={"count": len(matched), "query": query, "items": matched[:LIST_RESULT_LIMIT]},
        )

    async def handle_unknown(self, user, params, items, **overrides) -> OperationResult:
        return OperationResult(success=False, message=UNKNOWN_MESSAGE)
