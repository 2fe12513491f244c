# FILE: shelf/commands/slots.py
"""
Slot extractors: pull structured values out of free text.

All functions here are pure. Each runs a cascade of patterns and returns the
first hit; nothing is inferred across messages. Matching is case-insensitive
unless noted, and returned text keeps the user's original casing (tags are the
exception, they are always lower-cased).
"""
from __future__ import annotations
import re
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Sequence, Tuple

from shelf.content.schemas import CONTENT_TYPES, ContentItem, ContentType


# =============================================================================
# PATTERNS
# =============================================================================

QUOTED_PATTERN = re.compile(r"[\"']([^\"']+)[\"']")

TITLE_KEYWORD_PATTERN = re.compile(
    r"\b(?:about|called|named|title|name)\s+(.+?)(?:\s+for|\s+of|$)", re.IGNORECASE
)
TITLE_FOR_PATTERN = re.compile(r"^(?:create|add|new)(?:\s+\w+)?\s+(.+?)\s+for", re.IGNORECASE)

HASHTAG_PATTERN = re.compile(r"#(\w+)")
TAGS_LIST_PATTERN = re.compile(
    r"\btags?:\s*(.+?)(?:\.|$|\b(?:for|by|in|at)\b)", re.IGNORECASE
)
TAG_SPLIT_PATTERN = re.compile(r"[,;]+")

CATEGORY_IN_PATTERN = re.compile(
    r"\bin\s+(?:category\s+)?(.+?)(?:\s+(?:with|for|by)|$)", re.IGNORECASE
)
CATEGORY_UNDER_PATTERN = re.compile(r"\bunder\s+(.+?)(?:\s+(?:with|for|by)|$)", re.IGNORECASE)

EXPIRY_DAYS_PATTERN = re.compile(r"(?:delete|expire)(?:\s+after|\s+in)\s+(\d+)\s+days?", re.IGNORECASE)
EXPIRY_OTHER_PATTERN = re.compile(
    r"(?:delete|expire)(?:\s+after|\s+in)\s+\d+\s+(?:hours?|weeks?|months?)", re.IGNORECASE
)

ITEM_ID_PATTERN = re.compile(r"\b(?:id|item)[\s:-]+([\w\-]+)", re.IGNORECASE)
ITEM_TITLE_PATTERN = re.compile(r"\b(?:about|called|named)\s+(.+?)(?:\s+(?:for|from)|$)", re.IGNORECASE)

SEARCH_QUERY_PATTERN = re.compile(
    r"\b(?:search|filter|query|look)\s+(?:(?:for|by)\s+)?(.+?)(?:\s+(?:in|with|under)\b|$)",
    re.IGNORECASE,
)

# Checked in order, after the nine kind names themselves
CONTENT_TYPE_ALIASES: List[Tuple[Tuple[str, ...], ContentType]] = [
    (("snippet", "programming", "python", "javascript", "java", "typescript"), ContentType.CODE),
    (("url", "website", "web"), ContentType.LINK),
    (("photo", "picture", "img"), ContentType.IMAGE),
    (("movie", "clip", "stream"), ContentType.VIDEO),
]


# =============================================================================
# EXTRACTORS
# =============================================================================

def extract_content_type(message: str) -> Optional[ContentType]:
    """First content kind named in the message, then common aliases."""
    lower = message.lower()
    for content_type in CONTENT_TYPES:
        if content_type.value in lower:
            return content_type
    for aliases, content_type in CONTENT_TYPE_ALIASES:
        if any(alias in lower for alias in aliases):
            return content_type
    return None


def extract_title(message: str) -> Optional[str]:
    """
    Title cascade:
    1. Quoted text: "Groceries" or 'Groceries'
    2. about/called/named/title/name X, up to " for", " of" or end
    3. create|add|new [word] X for ...
    """
    match = QUOTED_PATTERN.search(message)
    if match:
        return match.group(1)

    match = TITLE_KEYWORD_PATTERN.search(message)
    if match and match.group(1).strip():
        return match.group(1).strip()

    match = TITLE_FOR_PATTERN.search(message.strip())
    if match and match.group(1).strip():
        return match.group(1).strip()

    return None


def extract_tags(message: str) -> List[str]:
    """
    Union of #hashtags and a "tags:" list, lower-cased and deduplicated in
    order of first appearance.
    """
    tags: List[str] = []

    def _add(tag: str) -> None:
        tag = tag.strip().lstrip("#").strip().lower()
        if tag and tag not in tags:
            tags.append(tag)

    for tag in HASHTAG_PATTERN.findall(message):
        _add(tag)

    match = TAGS_LIST_PATTERN.search(message)
    if match:
        for tag in TAG_SPLIT_PATTERN.split(match.group(1)):
            _add(tag)

    return tags


def extract_category(message: str) -> Optional[str]:
    for pattern in (CATEGORY_IN_PATTERN, CATEGORY_UNDER_PATTERN):
        match = pattern.search(message)
        if match and match.group(1).strip():
            return match.group(1).strip()
    return None


def extract_visibility(message: str) -> Optional[str]:
    """Returns "public", "private" or None. "shared"/"shareable" count as public."""
    lower = message.lower()
    if "public" in lower:
        return "public"
    if "private" in lower:
        return "private"
    if "shared" in lower or "shareable" in lower:
        return "public"
    return None


def extract_auto_delete(
    message: str,
    now: Optional[datetime] = None,
) -> Tuple[bool, Optional[datetime]]:
    """
    Detect an expiry request.

    Returns (enabled, delete_at). Only a day count produces a timestamp;
    hours/weeks/months and a bare "auto delete" only enable the flag.
    """
    match = EXPIRY_DAYS_PATTERN.search(message)
    if match:
        now = now or datetime.now(timezone.utc)
        return True, now + timedelta(days=int(match.group(1)))

    if EXPIRY_OTHER_PATTERN.search(message):
        return True, None

    lower = message.lower()
    if "auto delete" in lower or "auto-delete" in lower:
        return True, None

    return False, None


def find_item_reference(message: str, items: Sequence[ContentItem]) -> Optional[ContentItem]:
    """
    Resolve which snapshot item the message points at.

    1. "id X" / "item: X" matched exactly against item ids
    2. quoted text matched case-insensitively against whole titles
    3. about/called/named X as a case-insensitive title substring

    The first item in snapshot order wins at every step.
    """
    if not items:
        return None

    match = ITEM_ID_PATTERN.search(message)
    if match:
        wanted = match.group(1)
        for item in items:
            if item.id == wanted:
                return item

    match = QUOTED_PATTERN.search(message)
    if match:
        wanted = match.group(1).lower()
        for item in items:
            if item.title.lower() == wanted:
                return item

    match = ITEM_TITLE_PATTERN.search(message)
    if match:
        wanted = match.group(1).strip().lower()
        if wanted:
            for item in items:
                if wanted in item.title.lower():
                    return item

    return None


def extract_search_query(message: str) -> Optional[str]:
    """Free-text query after search/filter/query/look [for|by], else quoted text."""
    match = SEARCH_QUERY_PATTERN.search(message)
    if match:
        query = match.group(1).strip().strip("\"'").strip()
        if query:
            return query

    match = QUOTED_PATTERN.search(message)
    if match and match.group(1).strip():
        return match.group(1).strip()

    return None
