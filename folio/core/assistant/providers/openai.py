import json
from typing import Any, Dict, List, Optional, Sequence

import httpx
from pydantic import ValidationError

from folio.config.models import AssistantConfig
from folio.core.assistant.prompts import CONTEXT_TEMPLATE, SYSTEM_PROMPT
from folio.core.contracts.assistant import Assistant
from folio.core.contracts.models import DOCUMENT_NAMES, ChatMessage, Documents, ProposedUpdate
from folio.core.registry import assistant_registry
from folio.utils.errors import AssistantError
from folio.utils.logger import logger


def snapshot_documents(documents: Optional[Documents]) -> str:
    if documents is None:
        return json.dumps({name: None for name in DOCUMENT_NAMES})
    return json.dumps(documents.model_dump(), ensure_ascii=False)


@assistant_registry.register("openai")
class OpenAIAssistant(Assistant):
    """
    Asks an OpenAI chat-completions model for document edits.
    """

    def __init__(self, config: AssistantConfig, api_key: Optional[str] = None):
        self.config = config
        self._api_key = api_key
        if not self._api_key:
            raise AssistantError("OpenAI Key not found.")

        self._headers = {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }

    async def _request(self, payload: dict) -> httpx.Response:
        try:
            async with httpx.AsyncClient(
                base_url=self.config.base_url,
                headers=self._headers,
                timeout=self.config.timeout_sec,
            ) as client:
                response = await client.post("/chat/completions", json=payload)
                response.raise_for_status()
                return response
        except httpx.TimeoutException as e:
            raise AssistantError(f"Request to OpenAI timed out: {e}") from e
        except httpx.HTTPStatusError as e:
            try:
                error_details = e.response.json()
                error_message = error_details.get("error", {}).get("message", e.response.text)
            except (json.JSONDecodeError, AttributeError):
                error_message = e.response.text
            raise AssistantError(f"OpenAI API error ({e.response.status_code}): {error_message}") from e
        except httpx.RequestError as e:
            raise AssistantError(f"An unexpected network error occurred: {e}") from e

    def _build_messages(self, transcript: Sequence[ChatMessage], documents: Optional[Documents]) -> List[Dict[str, str]]:
        turns = [m for m in transcript if m.role in ("user", "assistant")]
        last_user = max((i for i, m in enumerate(turns) if m.role == "user"), default=None)
        if last_user is None:
            raise AssistantError("There is no user message to send.")

        messages = [{"role": "system", "content": SYSTEM_PROMPT}]
        for i, message in enumerate(turns):
            content = message.content
            if i == last_user:
                # Only the newest request carries the document snapshot.
                content = CONTEXT_TEMPLATE.format(snapshot=snapshot_documents(documents), request=content)
            messages.append({"role": message.role, "content": content})
        return messages

    def _build_payload(self, messages: List[Dict[str, str]]) -> Dict[str, Any]:
        return {
            "model": self.config.name,
            "messages": messages,
            "response_format": {"type": "json_object"},
            **self.config.parameters,
        }

    def _parse_reply(self, data: Any) -> ProposedUpdate:
        if isinstance(data, dict) and data.get("error"):
            error = data["error"]
            message = error.get("message") if isinstance(error, dict) else str(error)
            raise AssistantError(message or "OpenAI API Error")

        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise AssistantError(f"Unexpected response from OpenAI: {e}") from e
        if not isinstance(content, str):
            raise AssistantError("OpenAI returned an empty reply.")

        try:
            return ProposedUpdate.model_validate_json(content)
        except ValidationError as e:
            raise AssistantError(f"Assistant reply is not a valid proposal: {e}") from e

    async def propose(self, transcript: Sequence[ChatMessage], documents: Optional[Documents]) -> ProposedUpdate:
        payload = self._build_payload(self._build_messages(transcript, documents))
        logger.info(f"Asking '{self.config.name}' for a proposal ({len(payload['messages'])} messages)")

        response = await self._request(payload)
        try:
            data = response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise AssistantError(f"OpenAI returned a non-JSON body: {e}") from e

        proposal = self._parse_reply(data)
        logger.debug(f"Proposal touches: {list(proposal.updates)}")
        return proposal
