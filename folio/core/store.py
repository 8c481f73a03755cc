import asyncio
import json
import time
from typing import Any, Dict, Optional

import httpx

from folio.config.models import ContentConfig
from folio.core.contracts.models import DOCUMENT_NAMES, Documents, document_path
from folio.utils.errors import FetchError
from folio.utils.logger import logger


class DocumentStore:
    """
    Loads the three site documents from the content origin.

    Every load appends a strictly increasing `t` query parameter so that a
    document rewritten by a commit moments ago is not served from a cache.
    """

    def __init__(self, config: ContentConfig, origin: Optional[str] = None):
        self.config = config
        self.origin = (origin or config.origin).rstrip("/") + "/"
        self._last_buster = 0

    def _next_cache_buster(self) -> int:
        now = int(time.time() * 1000)
        self._last_buster = max(now, self._last_buster + 1)
        return self._last_buster

    async def _fetch(self, client: httpx.AsyncClient, name: str, buster: int) -> Dict[str, Any]:
        path = document_path(name)
        try:
            response = await client.get(path, params={"t": buster})
        except httpx.TimeoutException as e:
            raise FetchError(name, f"request timed out: {e}") from e
        except httpx.RequestError as e:
            raise FetchError(name, f"network error: {e}") from e

        if response.status_code != 200:
            raise FetchError(name, response.reason_phrase or "unexpected status", status=response.status_code)

        try:
            data = response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise FetchError(name, f"invalid JSON: {e}", status=response.status_code) from e
        if not isinstance(data, dict):
            raise FetchError(name, "document is not a JSON object", status=response.status_code)
        return data

    async def load_all(self) -> Documents:
        """
        Fetches profile, services and portfolio concurrently.

        Returns:
            All three documents.

        Raises:
            FetchError: If any one of the documents fails to load. Nothing is
                returned for the others.
        """
        buster = self._next_cache_buster()
        logger.info(f"Loading documents from {self.origin} (t={buster})")
        async with httpx.AsyncClient(base_url=self.origin, timeout=self.config.timeout_sec) as client:
            results = await asyncio.gather(
                *(self._fetch(client, name, buster) for name in DOCUMENT_NAMES),
                return_exceptions=True,
            )
        for result in results:
            if isinstance(result, BaseException):
                logger.error(f"Document load failed: {result}")
                raise result
        documents = Documents(**dict(zip(DOCUMENT_NAMES, results)))
        logger.debug(f"Loaded documents: {list(DOCUMENT_NAMES)}")
        return documents
