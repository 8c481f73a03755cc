import asyncio
from typing import Optional, Sequence

from folio.config.models import AssistantConfig
from folio.core.contracts.assistant import Assistant
from folio.core.contracts.models import ChatMessage, Documents, ProposedUpdate
from folio.core.registry import assistant_registry


@assistant_registry.register("dummy")
class DummyAssistant(Assistant):
    """An offline assistant that always answers with the configured canned reply."""

    def __init__(self, config: AssistantConfig, api_key: Optional[str] = None):
        self.config = config
        self._reply = ProposedUpdate.model_validate(
            config.canned_reply or {"updates": {}, "human_message": "No changes requested."}
        )

    async def propose(self, transcript: Sequence[ChatMessage], documents: Optional[Documents]) -> ProposedUpdate:
        await asyncio.sleep(0)
        return self._reply.model_copy(deep=True)
