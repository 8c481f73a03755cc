from typing import Protocol, Sequence

from .models import ChatMessage, Documents, ProposedUpdate


class Assistant(Protocol):
    """A protocol for assistant backends."""

    async def propose(
        self, transcript: Sequence[ChatMessage], documents: Documents
    ) -> ProposedUpdate:
        """
        Asks the assistant for edits to the documents.

        Args:
            transcript: The conversation so far, ending with the operator's latest message.
            documents: The documents as currently loaded.

        Returns:
            The assistant's proposal. An empty `updates` map means no change.
        """
        ...
