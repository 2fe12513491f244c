# FILE: tests/conftest.py
"""
Pytest configuration for the Shelf test suite.

Provides:
- Users and an item snapshot shared by the command-layer tests
- lookup_item, a ContentStore.get stand-in over that snapshot for mocked stores
- An in-memory SQLite session factory with every table created
"""
import sys
from pathlib import Path

_project_root = Path(__file__).parent.parent
if str(_project_root) not in sys.path:
    sys.path.insert(0, str(_project_root))

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from shelf.content.errors import ContentNotFoundError
from shelf.content.schemas import ContentItem, ContentType, User


ALICE = User(id="alice", email="alice@example.com")
BOB = User(id="bob", email="bob@example.com")


def make_items():
    return [
        ContentItem(
            id="item-1",
            user_id="alice",
            title="Groceries",
            type=ContentType.TEXT,
            category="Personal",
            tags=["home", "food"],
        ),
        ContentItem(
            id="item-2",
            user_id="alice",
            title="Python Utils",
            type=ContentType.CODE,
            category="Work",
            tags=["python", "util"],
            is_public=True,
        ),
        ContentItem(
            id="item-3",
            user_id="bob",
            title="Java Notes",
            type=ContentType.CODE,
            category="Work",
            tags=["java"],
        ),
        ContentItem(
            id="local-1",
            user_id="guest",
            title="Draft Poem",
            type=ContentType.TEXT,
            tags=["poetry"],
        ),
    ]


def lookup_item(item_id):
    """What the store holds: the same rows as make_items()."""
    for item in make_items():
        if item.id == item_id:
            return item
    raise ContentNotFoundError(f"Content item {item_id} not found")


@pytest.fixture
def items():
    return make_items()


@pytest.fixture
def session_factory():
    """Fresh in-memory database per test. StaticPool keeps one shared connection."""
    from shelf.db import Base
    import shelf.content.models  # noqa: F401
    import shelf.commands.history  # noqa: F401

    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    yield factory
    engine.dispose()
