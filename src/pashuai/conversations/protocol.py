"""Conversation storage protocol.

Created: 2026-10-06
Defines the interface the chat controller depends on. The default
implementation is the JSON-file store; a SQL backend only has to satisfy
these methods.
"""

from typing import Any, Protocol, runtime_checkable

from pashuai.conversations.models import Conversation, Message, MessageRole


@runtime_checkable
class ConversationStoreProtocol(Protocol):
    """Persistence for conversations and their messages.

    Implementations never retry internally; failures propagate to the caller.
    """

    async def create_conversation(
        self,
        user_id: str | None,
        title: str,
        language: str = "en",
    ) -> Conversation:
        """Create a conversation with a fresh id and current timestamps."""
        ...

    async def get_conversation(self, conversation_id: str) -> Conversation | None:
        """Get a conversation by ID."""
        ...

    async def update_conversation(self, conversation_id: str, **fields: Any) -> None:
        """Update conversation fields. ``updated_at`` is refreshed when not given.

        Raises ConversationNotFoundError for unknown ids.
        """
        ...

    async def create_message(
        self,
        conversation_id: str,
        role: MessageRole | str,
        content: str,
        image_url: str | None = None,
        audio_url: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> Message:
        """Append a message.

        Raises ConversationNotFoundError if the conversation does not exist.
        """
        ...

    async def get_conversation_messages(self, conversation_id: str) -> list[Message]:
        """All messages of a conversation in insertion order (empty if none)."""
        ...

    async def get_user_conversations(self, user_id: str) -> list[Conversation]:
        """Conversations owned by a user, most recently updated first."""
        ...
