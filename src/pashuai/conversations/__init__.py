"""Conversation persistence.

Usage:
    from pashuai.conversations import get_conversation_store

    store = get_conversation_store()
    conversation = await store.create_conversation(None, "Wheat rust", "hi")
    await store.create_message(conversation.id, "user", "...")
"""

from pashuai.conversations.models import (
    ChatHistoryEntry,
    Conversation,
    Message,
    MessageRole,
    to_chat_history,
)
from pashuai.conversations.protocol import ConversationStoreProtocol
from pashuai.conversations.store import (
    FileConversationStore,
    get_conversation_store,
    reset_conversation_store,
)

__all__ = [
    # Models
    "ChatHistoryEntry",
    "Conversation",
    "Message",
    "MessageRole",
    "to_chat_history",
    # Store
    "ConversationStoreProtocol",
    "FileConversationStore",
    "get_conversation_store",
    "reset_conversation_store",
]
