"""
Live feed connections.

Each source inherits from FeedSource and implements:
- subscribe(callback): receive raw payloads
- close(): release connections
"""

from .firebase_source import FirebaseFeedSource

__all__ = [
    "FirebaseFeedSource",
]
