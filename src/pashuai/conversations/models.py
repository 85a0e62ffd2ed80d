"""Conversation data models.

Created: 2026-10-06

Defines the persisted records of the chat service:
- Conversation (one per browser chat session)
- Message (one per user or assistant turn, immutable)
- ChatHistoryEntry (role/content projection fed to text generation)

Design notes:
- Dataclasses with explicit to_dict/from_dict (JSON file store and API share them)
- IDs are UUID4 strings, timestamps are ISO 8601 UTC strings
- Wire keys are camelCase to match the web client
"""

import copy
import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any


class MessageRole(str, Enum):
    """Author of a persisted message."""

    USER = "user"
    ASSISTANT = "assistant"


def generate_id() -> str:
    """Generate a unique ID."""
    return str(uuid.uuid4())


def now_iso() -> str:
    """Get current UTC time as ISO 8601 string."""
    return datetime.now(UTC).isoformat(timespec="microseconds")


@dataclass
class Conversation:
    """
    A chat session between a farmer and the assistant.

    Attributes:
        id: Unique identifier
        user_id: Owning user, None for anonymous sessions
        title: Display title
        language: Language code the session was started in (e.g. "en", "hi")
        created_at: Creation time
        updated_at: Refreshed after every completed exchange (never < created_at)
    """

    id: str = field(default_factory=generate_id)
    user_id: str | None = None
    title: str = ""
    language: str = "en"
    created_at: str = field(default_factory=now_iso)
    updated_at: str = field(default_factory=now_iso)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "userId": self.user_id,
            "title": self.title,
            "language": self.language,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Conversation":
        """Create from dictionary."""
        created = data.get("createdAt") or now_iso()
        return cls(
            id=data.get("id", generate_id()),
            user_id=data.get("userId"),
            title=data.get("title", ""),
            language=data.get("language", "en"),
            created_at=created,
            updated_at=data.get("updatedAt") or created,
        )


@dataclass
class Message:
    """
    A single turn inside a conversation.

    Attributes:
        id: Unique identifier
        conversation_id: Owning conversation
        role: user or assistant
        content: Text content (for image turns, the composed analysis)
        image_url: Optional uploaded image reference
        audio_url: Optional audio reference
        metadata: Optional structured data (e.g. the raw vision analysis)
        created_at: Creation time
        seq: Insertion sequence within the store, breaks timestamp ties
    """

    id: str = field(default_factory=generate_id)
    conversation_id: str = ""
    role: MessageRole = MessageRole.USER
    content: str = ""
    image_url: str | None = None
    audio_url: str | None = None
    metadata: dict[str, Any] | None = None
    created_at: str = field(default_factory=now_iso)
    seq: int = 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "conversationId": self.conversation_id,
            "role": self.role.value,
            "content": self.content,
            "imageUrl": self.image_url,
            "audioUrl": self.audio_url,
            "metadata": copy.deepcopy(self.metadata),
            "createdAt": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Message":
        """Create from dictionary."""
        return cls(
            id=data.get("id", generate_id()),
            conversation_id=data.get("conversationId", ""),
            role=MessageRole(data.get("role", "user")),
            content=data.get("content", ""),
            image_url=data.get("imageUrl"),
            audio_url=data.get("audioUrl"),
            metadata=copy.deepcopy(data.get("metadata")),
            created_at=data.get("createdAt", now_iso()),
            seq=data.get("seq", 0),
        )

    def to_history_entry(self) -> "ChatHistoryEntry":
        return ChatHistoryEntry(role=self.role.value, content=self.content)


@dataclass(frozen=True)
class ChatHistoryEntry:
    """Role/content pair handed to text generation.

    Role is one of "system", "user", "assistant". Image, audio and metadata
    never reach the text path.
    """

    role: str
    content: str

    def to_dict(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}


def to_chat_history(messages: list[Message]) -> list[ChatHistoryEntry]:
    """Project stored messages into generation history, preserving order."""
    return [m.to_history_entry() for m in messages]
