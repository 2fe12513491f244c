"""
Shelf - personal content manager with a conversational command layer.

Packages:
- shelf.content: content data model, local content store, share links
- shelf.commands: free-text command interpreter (classify -> gate -> permission
  check -> dispatch -> reply)
"""

__version__ = "0.3.0"
