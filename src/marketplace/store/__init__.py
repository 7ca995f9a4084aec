"""Message store contract and the hosted REST implementation."""

from marketplace.store.client import SupabaseMessageStore
from marketplace.store.protocol import MessageStore

__all__ = [
    "MessageStore",
    "SupabaseMessageStore",
]
