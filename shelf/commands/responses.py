# FILE: shelf/commands/responses.py
"""
Assistant-facing text for the Shelf command layer.

Two levels:
- format_assistant_message / suggest_next_actions: one line plus follow-up
  actions for any (intent, success) pair
- format_*_response templates: richer replies for specific outcomes, used by
  the message processor when it knows more (item titles, list contents)
"""
from __future__ import annotations
from typing import Any, Dict, List, Optional, Sequence

from shelf.config import LIST_PREVIEW_LIMIT
from shelf.content.schemas import ContentItem, ContentType
from .schemas import AssistantReply, IntentType, SuggestedAction


def _action(action: str, label: str, description: str) -> SuggestedAction:
    return SuggestedAction(action=action, label=label, description=description)


# =============================================================================
# NEXT ACTIONS
# =============================================================================

NEXT_ACTIONS: Dict[IntentType, List[SuggestedAction]] = {
    IntentType.CREATE: [
        _action("view", "View", "View the new content"),
        _action("share", "Share", "Share this content"),
        _action("add_more", "Add More", "Create another item"),
    ],
    IntentType.RETRIEVE: [
        _action("edit", "Edit", "Edit this content"),
        _action("share", "Share", "Share this content"),
        _action("delete", "Delete", "Delete this content"),
    ],
    IntentType.DELETE: [
        _action("undo", "Undo", "Undo the deletion"),
        _action("list", "List All", "View all content"),
    ],
    IntentType.SHARE: [
        _action("copy", "Copy Link", "Copy the share link"),
        _action("view", "View", "View the shared content"),
    ],
}

FAILURE_ACTIONS: List[SuggestedAction] = [
    _action("retry", "Try Again", "Retry the last operation"),
    _action("cancel", "Cancel", "Cancel and go back"),
]


def suggest_next_actions(intent_type: IntentType, success: bool) -> List[SuggestedAction]:
    if not success:
        return list(FAILURE_ACTIONS)
    return list(NEXT_ACTIONS.get(intent_type, []))


# =============================================================================
# ONE-LINE MESSAGES
# =============================================================================

def format_assistant_message(
    intent_type: IntentType,
    success: bool,
    details: Optional[Dict[str, Any]] = None,
) -> str:
    details = details or {}

    if not success:
        error = details.get("error")
        head = f"I wasn't able to complete that operation. Error: {error}" if error else (
            "I wasn't able to complete that operation."
        )
        return f"{head} Please try again or provide more details."

    title = details.get("title")
    if intent_type == IntentType.CREATE:
        return f'✓ Content created successfully as "{title}"' if title else "✓ Content created successfully"
    if intent_type == IntentType.RETRIEVE:
        return f"Found: {title or 'your content'}"
    if intent_type == IntentType.UPDATE:
        return "✓ Updated successfully"
    if intent_type == IntentType.DELETE:
        return "✓ Deleted successfully"
    if intent_type == IntentType.SHARE:
        return f"✓ Visibility updated ({'now public' if details.get('is_public') else 'now private'})"
    if intent_type == IntentType.PROTECT:
        return "✓ Protection settings updated"
    if intent_type == IntentType.LIST:
        return f"Found {details.get('count') or 0} items"
    if intent_type == IntentType.SEARCH:
        return f'Found {details.get("count") or 0} items matching "{details.get("query", "")}"'
    if intent_type == IntentType.DUPLICATE:
        return f'✓ Content duplicated as "{title or "copy"}"'
    return "Operation completed successfully"


def format_operation_response(
    intent_type: IntentType,
    success: bool,
    details: Optional[Dict[str, Any]] = None,
) -> AssistantReply:
    message = format_assistant_message(intent_type, success, details)
    if not success:
        return AssistantReply(
            type="error",
            content=message,
            options=[_action("retry", "Try Again", "Retry the operation")],
        )
    return AssistantReply(
        type="success",
        content=message,
        options=suggest_next_actions(intent_type, success),
    )


# =============================================================================
# OUTCOME TEMPLATES
# =============================================================================

def format_create_response(content_type: ContentType, title: str) -> AssistantReply:
    return AssistantReply(
        type="success",
        content=f'✓ Created {content_type.value}: "{title}"',
        options=suggest_next_actions(IntentType.CREATE, True),
    )


def format_retrieve_response(title: str) -> AssistantReply:
    return AssistantReply(
        type="text",
        content=f"Retrieved: {title}. What would you like to do next?",
        options=[
            _action("view", "View Full Content", "See the complete content"),
            _action("edit", "Edit", "Make changes to this content"),
            _action("share", "Share", "Share this with others"),
            _action("delete", "Delete", "Remove this content"),
        ],
    )


def format_update_response(title: str) -> AssistantReply:
    return AssistantReply(
        type="success",
        content=f'✓ Updated "{title}"',
        options=[
            _action("view", "View Changes", "See the updated content"),
            _action("add_more", "Update More", "Update another item"),
        ],
    )


def format_delete_response(title: str) -> AssistantReply:
    return AssistantReply(
        type="success",
        content=f'✓ Deleted "{title}"',
        options=[
            _action("undo", "Undo Deletion", "Restore this content"),
            _action("list", "View All Content", "See your remaining content"),
        ],
    )


def format_share_response(title: str, is_public: bool) -> AssistantReply:
    if is_public:
        options = [
            _action("copy", "Copy Link", "Copy the public link"),
            _action("protect", "Protect", "Add password protection"),
        ]
    else:
        options = [_action("make_public", "Make Public", "Share with others")]
    return AssistantReply(
        type="success",
        content=f'✓ "{title}" is now {"public" if is_public else "private"}',
        options=options,
    )


def format_duplicate_response(original_title: str, copy_title: str) -> AssistantReply:
    return AssistantReply(
        type="success",
        content=f'✓ Duplicated "{original_title}" as "{copy_title}"',
        options=[
            _action("view", "View Copy", "See the duplicated content"),
            _action("edit", "Edit Copy", "Modify the duplicated content"),
        ],
    )


def format_list_response(count: int, items: Sequence[ContentItem]) -> AssistantReply:
    """First few titles inline, then '... and N more'."""
    if count == 0:
        return AssistantReply(
            type="text",
            content="No content found matching your criteria. Would you like to create something?",
            options=[_action("create", "Create New Content", "Start creating")],
        )

    lines = "\n".join(f"• {item.title} ({item.type.value})" for item in items[:LIST_PREVIEW_LIMIT])
    more = f"\n\n... and {count - LIST_PREVIEW_LIMIT} more" if count > LIST_PREVIEW_LIMIT else ""
    return AssistantReply(
        type="text",
        content=f"Found {count} item{'' if count == 1 else 's'}:\n\n{lines}{more}",
        options=[
            _action("view_all", "View All", "See all items"),
            _action("filter", "Filter", "Refine your search"),
        ],
    )


def format_error_response(error: str, suggestion: Optional[str] = None) -> AssistantReply:
    return AssistantReply(
        type="error",
        content=f"Error: {error}" + (f"\n\n{suggestion}" if suggestion else ""),
        options=[
            _action("retry", "Try Again", "Retry the operation"),
            _action("help", "Get Help", "Learn how to use this"),
        ],
    )


def format_clarification_request(
    question: str,
    options: Optional[List[SuggestedAction]] = None,
) -> AssistantReply:
    return AssistantReply(
        type="options",
        content=question,
        options=options or [
            _action("help", "Show Examples", "See example requests"),
            _action("cancel", "Cancel", "Go back"),
        ],
    )


TYPE_DESCRIPTIONS: Dict[ContentType, str] = {
    ContentType.TEXT: "Notes, documents, ideas",
    ContentType.CODE: "Code snippets, scripts",
    ContentType.IMAGE: "Pictures, diagrams",
    ContentType.VIDEO: "Video files, links",
    ContentType.LINK: "URLs, references",
    ContentType.FILE: "Documents, archives",
}


def format_type_selection() -> AssistantReply:
    return AssistantReply(
        type="options",
        content="What type of content would you like to create?",
        options=[
            _action(t.value, t.value.capitalize(), description)
            for t, description in TYPE_DESCRIPTIONS.items()
        ],
    )


def format_verification_request(prompt: str) -> AssistantReply:
    """Wrap a confirmation prompt from the verification gate."""
    return AssistantReply(
        type="text",
        content=prompt,
        options=[
            _action("confirm", "Yes, Confirm", "Proceed with the action"),
            _action("cancel", "Cancel", "Don't proceed"),
        ],
    )


def format_permission_denied(message: str) -> AssistantReply:
    return AssistantReply(
        type="error",
        content=message,
        options=[
            _action("login", "Sign In", "Sign in to your account"),
            _action("help", "Learn More", "Understand permissions"),
        ],
    )


def format_welcome_message() -> AssistantReply:
    return AssistantReply(
        type="text",
        content=(
            "Welcome! I'm your content assistant. I can help you create, view, edit, "
            "delete, and organize your content. What would you like to do?"
        ),
        options=[
            _action("create", "Create Content", "Add something new"),
            _action("list", "View Content", "See your items"),
            _action("help", "Get Help", "Learn more"),
        ],
    )


HELP_TEXT = """Here are some things you can ask me:

**Create:**
"Create a new text note called 'My Ideas'"
"Add a code snippet for Python"

**View:**
"Show me all my notes"
"List content with tags: python"

**Edit:**
"Edit 'My Ideas'"
"Share 'Important Note'"

**Delete:**
"Delete 'Old Notes'"

Just describe what you want in natural language!"""


def format_help_message() -> AssistantReply:
    return AssistantReply(
        type="text",
        content=HELP_TEXT,
        options=[
            _action("create", "Create", "Try creating something"),
            _action("list", "List All", "See your content"),
        ],
    )
