"""File-based conversation store.

Created: 2026-10-06
Implements ConversationStoreProtocol using JSON files.

Storage layout:
~/.pashuai/conversations/
    conversations.json  # All conversations
    messages/
        <conversation_id>.json  # One thread per file (with insertion sequence)

Design notes:
- In-memory indexes, loaded once at startup
- Atomic writes using temp file + rename
- Appending a message rewrites only that conversation's thread file
- Messages are ordered by a monotonically increasing sequence number,
  so two messages created within the same clock tick keep insertion order
- Metadata is deep-copied on the way in and out
"""

import copy
import json
import logging
from pathlib import Path
from typing import Any

from pashuai.config import get_config_dir
from pashuai.conversations.models import Conversation, Message, MessageRole, now_iso
from pashuai.errors import ConversationNotFoundError, StorageError

logger = logging.getLogger(__name__)

# Fields callers may change through update_conversation()
_UPDATABLE_FIELDS = {"title", "language", "user_id", "updated_at"}


class FileConversationStore:
    """JSON-file implementation of the conversation store."""

    def __init__(self, base_path: Path | None = None):
        """Initialize the store.

        Args:
            base_path: Directory for storage files. Defaults to <data_dir>/conversations/
        """
        if base_path is None:
            base_path = get_config_dir() / "conversations"

        self.base_path = base_path
        self.base_path.mkdir(parents=True, exist_ok=True)

        self._conversations_file = self.base_path / "conversations.json"
        self._messages_dir = self.base_path / "messages"
        self._messages_dir.mkdir(exist_ok=True)

        self._conversations: dict[str, Conversation] = {}
        self._messages: dict[str, list[Message]] = {}
        self._seq = 0

        self._load_all()

    # =========================================================================
    # File I/O Helpers
    # =========================================================================

    def _load_json(self, path: Path) -> list[dict[str, Any]]:
        """Load a JSON file, returning empty list if not found."""
        if not path.exists():
            return []
        try:
            with open(path, encoding="utf-8") as f:
                return json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            logger.error(f"Error loading {path}: {e}")
            return []

    def _save_json(self, path: Path, data: list[dict[str, Any]]) -> None:
        """Save data to JSON file atomically."""
        temp_path = path.with_suffix(".tmp")
        try:
            with open(temp_path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            temp_path.replace(path)
        except (OSError, TypeError, ValueError) as e:
            if temp_path.exists():
                temp_path.unlink()
            raise StorageError(f"Error saving {path.name}: {e}") from e

    def _load_all(self) -> None:
        for data in self._load_json(self._conversations_file):
            conversation = Conversation.from_dict(data)
            self._conversations[conversation.id] = conversation

        for thread_file in sorted(self._messages_dir.glob("*.json")):
            for data in self._load_json(thread_file):
                message = Message.from_dict(data)
                self._messages.setdefault(message.conversation_id, []).append(message)
                self._seq = max(self._seq, message.seq)

        for messages in self._messages.values():
            messages.sort(key=lambda m: m.seq)

        logger.info(
            f"Conversation store loaded: {len(self._conversations)} conversations, "
            f"{sum(len(m) for m in self._messages.values())} messages"
        )

    def _persist_conversations(self) -> None:
        data = [c.to_dict() for c in self._conversations.values()]
        self._save_json(self._conversations_file, data)

    def _thread_file(self, conversation_id: str) -> Path:
        return self._messages_dir / f"{conversation_id}.json"

    def _persist_thread(self, conversation_id: str) -> None:
        data = [{**m.to_dict(), "seq": m.seq} for m in self._messages.get(conversation_id, [])]
        self._save_json(self._thread_file(conversation_id), data)

    # =========================================================================
    # Conversation Operations
    # =========================================================================

    async def create_conversation(
        self,
        user_id: str | None,
        title: str,
        language: str = "en",
    ) -> Conversation:
        """Create a conversation with a fresh id and current timestamps."""
        now = now_iso()
        conversation = Conversation(
            user_id=user_id,
            title=title,
            language=language or "en",
            created_at=now,
            updated_at=now,
        )
        self._conversations[conversation.id] = conversation
        try:
            self._persist_conversations()
        except StorageError:
            del self._conversations[conversation.id]
            raise
        logger.debug("Created conversation %s (%s)", conversation.id, conversation.language)
        return copy.copy(conversation)

    async def get_conversation(self, conversation_id: str) -> Conversation | None:
        """Get a conversation by ID."""
        conversation = self._conversations.get(conversation_id)
        return copy.copy(conversation) if conversation else None

    async def update_conversation(self, conversation_id: str, **fields: Any) -> None:
        """Update conversation fields; ``updated_at`` defaults to now."""
        conversation = self._conversations.get(conversation_id)
        if conversation is None:
            raise ConversationNotFoundError(conversation_id)

        unknown = set(fields) - _UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update conversation fields: {', '.join(sorted(unknown))}")

        previous = copy.copy(conversation)
        for key, value in fields.items():
            if key != "updated_at":
                setattr(conversation, key, value)

        # updated_at never moves behind created_at or its previous value
        requested = fields.get("updated_at") or now_iso()
        conversation.updated_at = max(requested, conversation.updated_at, conversation.created_at)

        try:
            self._persist_conversations()
        except StorageError:
            self._conversations[conversation_id] = previous
            raise

    async def get_user_conversations(self, user_id: str) -> list[Conversation]:
        """Conversations owned by a user, most recently updated first."""
        owned = [c for c in self._conversations.values() if c.user_id == user_id]
        owned.sort(key=lambda c: c.updated_at, reverse=True)
        return [copy.copy(c) for c in owned]

    # =========================================================================
    # Message Operations
    # =========================================================================

    async def create_message(
        self,
        conversation_id: str,
        role: MessageRole | str,
        content: str,
        image_url: str | None = None,
        audio_url: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> Message:
        """Append a message to an existing conversation."""
        if conversation_id not in self._conversations:
            raise ConversationNotFoundError(conversation_id)

        self._seq += 1
        message = Message(
            conversation_id=conversation_id,
            role=MessageRole(role),
            content=content,
            image_url=image_url,
            audio_url=audio_url,
            metadata=copy.deepcopy(metadata),
            seq=self._seq,
        )
        thread = self._messages.setdefault(conversation_id, [])
        thread.append(message)
        try:
            self._persist_thread(conversation_id)
        except StorageError:
            thread.pop()
            raise
        return copy.deepcopy(message)

    async def get_conversation_messages(self, conversation_id: str) -> list[Message]:
        """All messages of a conversation in insertion order."""
        return [copy.deepcopy(m) for m in self._messages.get(conversation_id, [])]

# =========================================================================
# Factory Function
# =========================================================================

_store_instance: FileConversationStore | None = None


def get_conversation_store(base_path: Path | None = None) -> FileConversationStore:
    """Get or create the conversation store singleton.

    Args:
        base_path: Optional custom storage path. Only used on first call.
    """
    global _store_instance
    if _store_instance is None:
        _store_instance = FileConversationStore(base_path)
    return _store_instance


def reset_conversation_store() -> None:
    """Reset the store singleton (for testing)."""
    global _store_instance
    _store_instance = None
