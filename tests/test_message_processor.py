# FILE: tests/test_message_processor.py
"""
Tests for shelf/commands/processor.py
- Validation and clarification short-circuits
- Mutating intents open a modal and never touch the store
- Read intents dispatch immediately
- complete() commits a confirmed intent
- Chat history is recorded best-effort
"""

import sys
from pathlib import Path

_project_root = Path(__file__).parent.parent
if str(_project_root) not in sys.path:
    sys.path.insert(0, str(_project_root))

import pytest
from unittest.mock import AsyncMock

from shelf.content.schemas import ContentItem, ContentType
from shelf.commands.dispatcher import UNKNOWN_MESSAGE
from shelf.commands.gates import TYPE_QUESTION
from shelf.commands.history import InMemoryChatHistory
from shelf.commands.processor import MessageProcessor, generate_suggestions, validate_message
from shelf.commands.schemas import ErrorCode, IntentType, ModalKind
from conftest import ALICE, BOB, lookup_item, make_items


@pytest.fixture
def store():
    store = AsyncMock()
    store.get.side_effect = lookup_item
    store.create.side_effect = lambda data, owner_id: ContentItem(
        id="new-1", user_id=owner_id, **data.model_dump()
    )
    store.duplicate.side_effect = lambda item_id, owner_id: ContentItem(
        id="copy-1", user_id=owner_id, title="Python Utils (copy)", type=ContentType.CODE
    )
    return store


@pytest.fixture
def history():
    return InMemoryChatHistory()


@pytest.fixture
def processor(store, history):
    return MessageProcessor(store, history=history)


# =============================================================================
# VALIDATION
# =============================================================================

class TestValidation:

    def test_validate_message(self):
        assert validate_message("hi") == (True, None)
        assert validate_message("") == (False, "Message cannot be empty")
        assert validate_message("   ") == (False, "Message cannot be empty")
        assert validate_message("x" * 11, max_length=10) == (False, "Message is too long (max 10 characters)")

    @pytest.mark.asyncio
    async def test_empty_message_is_rejected_and_not_recorded(self, processor, history):
        session = await history.create_session("alice")
        processed = await processor.process("   ", ALICE, make_items(), session_id=session.id)

        assert processed.result.success is False
        assert processed.reply.type == "error"
        assert processed.reply.content == "Error: Message cannot be empty"
        assert processed.intent is None
        assert await history.load_messages(session.id) == []

    @pytest.mark.asyncio
    async def test_too_long(self, store):
        processor = MessageProcessor(store, max_length=20)
        processed = await processor.process("list " + "a" * 40, ALICE, make_items())
        assert processed.result.message == "Message is too long (max 20 characters)"
        assert store.method_calls == []


# =============================================================================
# CLARIFICATION
# =============================================================================

class TestClarification:

    @pytest.mark.asyncio
    async def test_missing_kind_offers_type_options(self, processor, store):
        processed = await processor.process("create something", ALICE)
        assert processed.result.error_code == ErrorCode.MISSING_PARAMETER
        assert processed.reply.type == "options"
        assert processed.reply.content == TYPE_QUESTION
        assert [o.action for o in processed.reply.options][:2] == ["text", "code"]
        assert processed.modal_state.is_open is False
        assert store.method_calls == []

    @pytest.mark.asyncio
    async def test_unresolved_item_asks_which(self, processor, store):
        processed = await processor.process('delete "Nope"', ALICE, make_items())
        assert processed.intent.type == IntentType.DELETE
        assert processed.reply.content.startswith("Which content item")
        assert processed.suggestions == []
        store.delete.assert_not_awaited()


# =============================================================================
# MODAL INTENTS
# =============================================================================

class TestModalIntents:

    @pytest.mark.asyncio
    async def test_delete_opens_confirmation_without_deleting(self, processor, store):
        processed = await processor.process('delete "Groceries"', ALICE, make_items())

        assert processed.result.success is True
        assert processed.result.data == {"id": "item-1", "title": "Groceries"}
        assert processed.modal_state.kind == ModalKind.DELETE_CONFIRM
        assert processed.modal_state.is_open is True
        assert processed.modal_state.seed_data["id"] == "item-1"
        assert processed.reply.content == (
            '⚠️ This action cannot be undone. Are you sure you want to delete "Groceries"?'
        )
        assert [o.action for o in processed.reply.options] == ["confirm", "cancel"]
        store.delete.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_non_owner_is_denied_before_modal(self, processor, store):
        processed = await processor.process('delete "Groceries"', BOB, make_items())
        assert processed.result.error_code == ErrorCode.PERMISSION_DENIED
        assert processed.reply.type == "error"
        assert processed.modal_state.is_open is False
        store.delete.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_create_seeds_content_editor(self, processor, store):
        processed = await processor.process('create a text note called "Ideas" #work', None)

        assert processed.modal_state.kind == ModalKind.CONTENT_EDIT
        seed = processed.modal_state.seed_data
        assert seed["type"] == "text"
        assert seed["title"] == "Ideas"
        assert seed["tags"] == ["work"]
        assert processed.reply.content == (
            'I\'ll help you create a new text item titled "Ideas". Please fill in the details.'
        )
        assert processed.result.data is None
        store.create.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_update_seed_merges_changes(self, processor, store):
        processed = await processor.process('edit "Groceries" tags: weekly', ALICE, make_items())
        seed = processed.modal_state.seed_data
        assert processed.modal_state.kind == ModalKind.CONTENT_EDIT
        assert seed["title"] == "Groceries"
        assert seed["tags"] == ["weekly"]
        store.update.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_share_private_needs_no_confirmation(self, processor, store):
        processed = await processor.process('share "Groceries" as private', ALICE, make_items())
        assert processed.modal_state.kind == ModalKind.SHARE
        assert processed.modal_state.seed_data["is_public"] is False
        assert processed.reply.content == 'I\'ll help you make private "Groceries".'
        store.set_visibility.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_protect_opens_content_editor(self, processor, store):
        processed = await processor.process('lock "Python Utils"', ALICE, make_items())
        assert processed.intent.type == IntentType.PROTECT
        assert processed.modal_state.kind == ModalKind.CONTENT_EDIT
        assert processed.intent.requires_verification is True
        store.set_visibility.assert_not_awaited()


# =============================================================================
# IMMEDIATE INTENTS
# =============================================================================

class TestImmediateIntents:

    @pytest.mark.asyncio
    async def test_retrieve(self, processor):
        processed = await processor.process('show "Groceries"', ALICE, make_items())
        assert processed.result.success is True
        assert processed.reply.content == "Retrieved: Groceries. What would you like to do next?"
        assert processed.suggestions == ["Edit Groceries", "Share Groceries", "Delete Groceries"]
        assert processed.modal_state.is_open is False

    @pytest.mark.asyncio
    async def test_list(self, processor):
        processed = await processor.process("list all code", BOB, make_items())
        assert processed.reply.content == "Found 2 items:\n\n• Python Utils (code)\n• Java Notes (code)"
        assert processed.suggestions[0] == "Search for specific content"

    @pytest.mark.asyncio
    async def test_duplicate_runs_immediately(self, processor, store):
        processed = await processor.process('duplicate "Python Utils"', BOB, make_items())
        store.duplicate.assert_awaited_once_with("item-2", "bob")
        assert processed.reply.content == '✓ Duplicated "Python Utils" as "Python Utils (copy)"'

    @pytest.mark.asyncio
    async def test_unknown(self, processor, store):
        processed = await processor.process("hello there", ALICE, make_items())
        assert processed.intent.type == IntentType.UNKNOWN
        assert processed.result.success is False
        assert processed.reply.content == UNKNOWN_MESSAGE
        assert processed.suggestions == []
        assert store.method_calls == []

    @pytest.mark.asyncio
    async def test_malformed_snapshot_entries_are_skipped(self, processor):
        items = [{"id": "broken"}] + [item.model_dump() for item in make_items()]
        processed = await processor.process('show "Groceries"', ALICE, items)
        assert processed.result.success is True


# =============================================================================
# COMPLETE
# =============================================================================

class TestComplete:

    @pytest.mark.asyncio
    async def test_confirmed_delete_commits(self, processor, store):
        items = make_items()
        processed = await processor.process('delete "Groceries"', ALICE, items)
        completed = await processor.complete(processed.intent, ALICE, items)

        store.delete.assert_awaited_once_with("item-1")
        assert completed.result.success is True
        assert completed.reply.content == '✓ Deleted "Groceries"'
        assert completed.suggestions == ["View all my content", "Create new content"]

    @pytest.mark.asyncio
    async def test_confirmed_create_uses_edited_values(self, processor, store):
        processed = await processor.process('create a text note called "Draft"', ALICE)
        completed = await processor.complete(processed.intent, ALICE, [], title="Final", content="body")

        data = store.create.await_args.args[0]
        assert data.title == "Final"
        assert completed.reply.content == '✓ Created text: "Final"'

    @pytest.mark.asyncio
    async def test_complete_rechecks_permission(self, processor, store):
        processed = await processor.process('delete "Groceries"', ALICE, make_items())
        completed = await processor.complete(processed.intent, BOB, make_items())
        assert completed.result.error_code == ErrorCode.PERMISSION_DENIED
        store.delete.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_store_failure_reply(self, processor, store):
        store.delete.side_effect = RuntimeError("locked")
        processed = await processor.process('delete "Groceries"', ALICE, make_items())
        completed = await processor.complete(processed.intent, ALICE, make_items())
        assert completed.result.error_code == ErrorCode.DELETE_FAILED
        assert completed.reply.type == "error"
        assert completed.suggestions == []

    @pytest.mark.asyncio
    async def test_clarification_intent_is_not_committed(self, processor, store):
        processed = await processor.process("create a new text note", ALICE)
        assert processed.intent.clarification_needed == "What would you like to title this content?"

        completed = await processor.complete(processed.intent, ALICE, [], title="x")
        assert completed.result.success is False
        assert completed.result.error_code == ErrorCode.MISSING_PARAMETER
        assert completed.reply.content == "What would you like to title this content?"
        store.create.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_non_modal_intent_is_not_committed(self, processor, store):
        processed = await processor.process('duplicate "Python Utils"', ALICE, make_items())
        store.duplicate.reset_mock()

        completed = await processor.complete(processed.intent, ALICE, make_items())
        assert completed.result.success is False
        assert completed.reply.type == "error"
        store.duplicate.assert_not_awaited()


# =============================================================================
# MESSAGES AND HISTORY
# =============================================================================

class TestMessages:

    @pytest.mark.asyncio
    async def test_assistant_metadata(self, processor):
        processed = await processor.process('delete "Groceries"', ALICE, make_items())
        meta = processed.assistant_message.metadata
        assert meta["intent"] == "DELETE"
        assert meta["operation"] == "deleteContent"
        assert meta["success"] is True
        assert meta["requiresVerification"] is True
        assert meta["errorCode"] is None
        assert 0.0 < meta["confidence"] <= 1.0

    @pytest.mark.asyncio
    async def test_user_message_metadata(self, processor):
        processed = await processor.process("list all code", ALICE, make_items())
        assert processed.user_message.role == "user"
        assert processed.user_message.metadata == {"characterCount": 13, "wordCount": 3}
        assert processed.user_message.id.startswith("msg-")

    @pytest.mark.asyncio
    async def test_both_turns_recorded(self, processor, history):
        session = await history.create_session("alice")
        await processor.process("list all code", ALICE, make_items(), session_id=session.id)
        await processor.process("hello there", ALICE, make_items(), session_id=session.id)

        messages = await history.load_messages(session.id)
        assert [m.role for m in messages] == ["user", "assistant", "user", "assistant"]
        assert messages[2].content == "hello there"

    @pytest.mark.asyncio
    async def test_complete_records_assistant_turn(self, processor, history):
        session = await history.create_session("alice")
        processed = await processor.process('delete "Groceries"', ALICE, make_items(), session_id=session.id)
        await processor.complete(processed.intent, ALICE, make_items(), session_id=session.id)
        messages = await history.load_messages(session.id)
        assert len(messages) == 3
        assert messages[-1].content == '✓ Deleted "Groceries"'

    @pytest.mark.asyncio
    async def test_history_failure_is_absorbed(self, store):
        broken = AsyncMock()
        broken.append_message.side_effect = RuntimeError("db down")
        processor = MessageProcessor(store, history=broken)

        processed = await processor.process("list all code", ALICE, make_items(), session_id="s1")
        assert processed.result.success is True

    @pytest.mark.asyncio
    async def test_no_session_means_no_recording(self, store):
        history = AsyncMock()
        processor = MessageProcessor(store, history=history)
        await processor.process("list all code", ALICE, make_items())
        history.append_message.assert_not_awaited()


class TestSuggestions:

    def test_list_with_empty_snapshot(self):
        from shelf.commands.classifier import detect_intent
        intent = detect_intent("list all")
        assert generate_suggestions(intent, []) == []

    def test_unknown(self):
        from shelf.commands.classifier import detect_intent
        intent = detect_intent("hello there")
        assert generate_suggestions(intent, []) == [
            "Create new content", "View my content", "Search content",
        ]
