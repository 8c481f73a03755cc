import base64
import binascii
import json
from typing import Any, Dict, Mapping, Optional

import httpx

from folio.config.models import HostingConfig
from folio.core.contracts.hosting import HostingBackend
from folio.core.contracts.models import FileRevision
from folio.core.registry import hosting_registry
from folio.utils.errors import HostingError
from folio.utils.logger import logger

BRANCH = "main"


def encode_content(content: Mapping[str, Any]) -> str:
    """JSON text of `content`, UTF-8 encoded then base64 encoded."""
    text = json.dumps(content, indent=2, ensure_ascii=False)
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


def decode_content(encoded: str) -> Dict[str, Any]:
    """Inverse of `encode_content`. GitHub wraps the base64 text in newlines."""
    try:
        raw = base64.b64decode("".join(encoded.split()), validate=True)
        data = json.loads(raw.decode("utf-8"))
    except (AttributeError, TypeError, binascii.Error, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise HostingError(f"Stored content could not be decoded: {e}") from e
    if not isinstance(data, dict):
        raise HostingError("Stored content is not a JSON object")
    return data


@hosting_registry.register("github")
class GitHubClient(HostingBackend):
    """
    Reads and writes repository files through the GitHub contents API.

    Every write is conditioned on the `sha` read just before it; GitHub rejects
    the write if the file has moved on since.
    """

    def __init__(
        self,
        config: HostingConfig,
        token: Optional[str],
        owner: Optional[str] = None,
        repo: Optional[str] = None,
    ):
        self.config = config
        self.owner = owner
        self.repo = repo
        self.branch = BRANCH
        self._headers = {
            "Authorization": f"Bearer {token}",
            "Accept": "application/vnd.github.v3+json",
        }

    def _contents_url(self, path: str) -> str:
        if not self.owner or not self.repo:
            raise HostingError("Repository settings missing")
        return f"{self.config.api_url.rstrip('/')}/repos/{self.owner}/{self.repo}/contents/{path}"

    @staticmethod
    def _error_message(response: httpx.Response, fallback: str) -> str:
        try:
            body = response.json()
        except (json.JSONDecodeError, ValueError):
            return fallback
        if isinstance(body, dict) and body.get("message"):
            return body["message"]
        return fallback

    async def read_file(self, path: str) -> FileRevision:
        url = self._contents_url(path)
        try:
            async with httpx.AsyncClient(timeout=self.config.timeout_sec) as client:
                response = await client.get(url, headers=self._headers, params={"ref": self.branch})
        except httpx.RequestError as e:
            raise HostingError(f"Failed to fetch {path} from GitHub API: {e}") from e

        if response.status_code != 200:
            message = self._error_message(response, "request failed")
            raise HostingError(f"Failed to fetch {path} from GitHub API ({response.status_code}): {message}")

        try:
            body = response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise HostingError(f"Unexpected GitHub API response for {path}: {e}") from e
        if not isinstance(body, dict) or "content" not in body or "sha" not in body:
            raise HostingError(f"Unexpected GitHub API response for {path}")

        logger.debug(f"Read {path} at {body['sha']}")
        return FileRevision(content=decode_content(body["content"]), revision_token=body["sha"])

    async def write_file(
        self, path: str, content: Mapping[str, Any], message: str, revision_token: str
    ) -> str:
        url = self._contents_url(path)
        payload = {
            "message": message,
            "content": encode_content(content),
            "sha": revision_token,
            "branch": self.branch,
        }
        headers = {**self._headers, "Content-Type": "application/json"}
        try:
            async with httpx.AsyncClient(timeout=self.config.timeout_sec) as client:
                response = await client.put(url, headers=headers, json=payload)
        except httpx.RequestError as e:
            raise HostingError(f"Failed to update {path}: {e}") from e

        if not 200 <= response.status_code < 300:
            raise HostingError(self._error_message(response, f"Failed to update {path}"))

        try:
            new_token = response.json()["content"]["sha"]
        except (json.JSONDecodeError, KeyError, TypeError) as e:
            raise HostingError(f"Unexpected GitHub API response after updating {path}") from e
        logger.info(f"Wrote {path}: {revision_token} -> {new_token}")
        return new_token
