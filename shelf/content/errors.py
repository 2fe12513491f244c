# FILE: shelf/content/errors.py
class ContentStoreError(Exception):
    """Base class for content store failures."""


class ContentNotFoundError(ContentStoreError):
    pass


class ShareLinkError(ContentStoreError):
    """Raised when a share link cannot be created, found, or verified."""
