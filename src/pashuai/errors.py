# Exception hierarchy shared across the store, gateways and routes.
# Created: 2026-10-06


class PashuAIError(Exception):
    """Base class for all application errors."""


class StorageError(PashuAIError):
    """A conversation store read or write could not be completed."""


class ConversationNotFoundError(StorageError, LookupError):
    """Raised when a conversation id does not reference a stored conversation."""

    def __init__(self, conversation_id: str):
        self.conversation_id = conversation_id
        super().__init__(f"Conversation not found: {conversation_id}")


class ProviderError(PashuAIError):
    """A text-generation provider call failed."""

    def __init__(self, message: str, provider: str = "", model: str = ""):
        self.provider = provider
        self.model = model
        super().__init__(message)


class RetryableProviderError(ProviderError):
    """Transient failure; the next strategy in the chain should be tried."""


class FatalProviderError(ProviderError):
    """Non-recoverable failure (bad credentials, invalid request); stop the chain."""


class AnalysisError(PashuAIError):
    """The vision provider call itself could not be completed."""


class InvalidTransitionError(PashuAIError):
    """A streaming session was moved to a state it cannot reach from its current one."""
