from typing import Any, Mapping, Protocol

from .models import FileRevision


class HostingBackend(Protocol):
    """A protocol for the remote store the site is published from."""

    async def read_file(self, path: str) -> FileRevision:
        ...

    async def write_file(
        self, path: str, content: Mapping[str, Any], message: str, revision_token: str
    ) -> str:
        """Writes `content` as a new revision, conditioned on `revision_token`. Returns the new token."""
        ...
