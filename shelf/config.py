# FILE: shelf/config.py
"""
Environment-driven settings for Shelf.

Values are read once at import time. Call load_dotenv() (main.py does) before
importing anything from shelf if you rely on a .env file.
"""
import os


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        return default


# Database path: ./data/shelf.db relative to project root
DATABASE_URL = os.getenv("SHELF_DATABASE_URL", "sqlite:///./data/shelf.db")

# Owner id used for content created without signing in
GUEST_OWNER_ID = os.getenv("SHELF_GUEST_OWNER_ID", "guest")

# Chat input limits
MAX_MESSAGE_LENGTH = _int_env("SHELF_MAX_MESSAGE_LENGTH", 1000)

# LIST/SEARCH replies show this many titles inline...
LIST_PREVIEW_LIMIT = _int_env("SHELF_LIST_PREVIEW_LIMIT", 5)
# ...and return at most this many items as data
LIST_RESULT_LIMIT = _int_env("SHELF_LIST_RESULT_LIMIT", 10)

# In-memory chat history keeps at most this many sessions (oldest evicted first)
HISTORY_MAX_SESSIONS = _int_env("SHELF_HISTORY_MAX_SESSIONS", 200)
# ...each trimmed to its newest messages
HISTORY_MAX_MESSAGES = _int_env("SHELF_HISTORY_MAX_MESSAGES", 100)

LOG_LEVEL = os.getenv("SHELF_LOG_LEVEL", "INFO").upper()
