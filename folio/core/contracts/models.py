from pydantic import BaseModel, field_validator, model_validator
from typing import Any, Dict, List, Literal

DOCUMENT_NAMES = ("profile", "services", "portfolio")


def document_path(name: str) -> str:
    """Repository path of a document; documents live at the repository root."""
    return f"{name}.json"


class Documents(BaseModel):
    profile: Dict[str, Any]
    services: Dict[str, Any]
    portfolio: Dict[str, Any]


class ProposedUpdate(BaseModel):
    commit_message: str = ""
    updates: Dict[str, Dict[str, Any]]
    human_message: str

    @field_validator("updates", mode="before")
    @classmethod
    def _normalize_document_names(cls, value: Any) -> Any:
        # The assistant is allowed to answer with file names ("profile.json").
        if not isinstance(value, dict):
            return value
        normalized = {}
        for key, partial in value.items():
            name = key[:-len(".json")] if isinstance(key, str) and key.endswith(".json") else key
            if name not in DOCUMENT_NAMES:
                raise ValueError(f"unknown document '{key}'")
            if name in normalized:
                raise ValueError(f"document '{name}' is given more than once")
            normalized[name] = partial
        return normalized

    @model_validator(mode="after")
    def _require_commit_message(self) -> "ProposedUpdate":
        if self.updates and not self.commit_message.strip():
            raise ValueError("commit_message is required when updates are proposed")
        return self

    def has_changes(self) -> bool:
        return bool(self.updates)


class FileRevision(BaseModel):
    content: Dict[str, Any]
    revision_token: str


class ChatMessage(BaseModel):
    role: Literal["user", "assistant", "system"]
    content: str


class CommitReport(BaseModel):
    committed: List[str] = []
    revisions: Dict[str, str] = {}  # document name -> new revision token
    skipped: List[str] = []
