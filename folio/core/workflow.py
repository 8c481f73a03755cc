"""
The proposal/commit workflow.

State changes are pure functions: each takes the current `AppState` plus an
event and returns a `Transition`, which is the new state together with the
effects the caller has to perform (call the assistant, commit, reload, alert).
`AdminSession` is the only place those effects are carried out.
"""
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Mapping, NamedTuple, Optional, Union

from pydantic import BaseModel, Field

from folio.core.contracts.hosting import HostingBackend
from folio.core.contracts.models import ChatMessage, CommitReport, Documents, ProposedUpdate, document_path
from folio.utils.errors import CommitError, FolioException, WorkflowError
from folio.utils.logger import logger


class WorkflowStatus(str, Enum):
    IDLE = "idle"
    AWAITING_ASSISTANT = "awaiting_assistant"
    PROPOSED = "proposed"
    COMMITTING = "committing"


class AppState(BaseModel):
    status: WorkflowStatus = WorkflowStatus.IDLE
    documents: Optional[Documents] = None
    load_error: Optional[str] = None
    pending: Optional[ProposedUpdate] = None
    transcript: List[ChatMessage] = Field(default_factory=list)


# --- effects ---

class CallAssistant(BaseModel):
    transcript: List[ChatMessage]
    documents: Optional[Documents] = None


class CommitProposal(BaseModel):
    proposal: ProposedUpdate


class ReloadDocuments(BaseModel):
    pass


class Alert(BaseModel):
    message: str


Effect = Union[CallAssistant, CommitProposal, ReloadDocuments, Alert]


class Transition(NamedTuple):
    state: AppState
    effects: List[Effect]


def _say(state: AppState, role: str, text: str) -> List[ChatMessage]:
    return [*state.transcript, ChatMessage(role=role, content=text)]


def _require(state: AppState, *allowed: WorkflowStatus) -> None:
    if state.status not in allowed:
        raise WorkflowError(f"Not possible while {state.status.value}.")


# --- transitions ---

def submit_chat(state: AppState, text: str) -> Transition:
    """The operator sends a chat message. Any pending proposal is discarded."""
    text = text.strip()
    if not text:
        return Transition(state, [])
    _require(state, WorkflowStatus.IDLE, WorkflowStatus.PROPOSED)

    transcript = _say(state, "user", text)
    new_state = state.model_copy(update={
        "status": WorkflowStatus.AWAITING_ASSISTANT,
        "pending": None,
        "transcript": transcript,
    })
    return Transition(new_state, [CallAssistant(transcript=transcript, documents=state.documents)])


def chat_blocked(state: AppState, text: str, error: Exception) -> Transition:
    """The message could not be sent, so nothing else changes."""
    transcript = _say(state, "user", text.strip())
    transcript.append(ChatMessage(role="system", content=f"Error: {error}"))
    return Transition(state.model_copy(update={"transcript": transcript}), [])


def assistant_succeeded(state: AppState, proposal: ProposedUpdate) -> Transition:
    _require(state, WorkflowStatus.AWAITING_ASSISTANT)
    transcript = _say(state, "assistant", proposal.human_message)
    if not proposal.has_changes():
        return Transition(
            state.model_copy(update={"status": WorkflowStatus.IDLE, "transcript": transcript}), []
        )
    return Transition(
        state.model_copy(update={
            "status": WorkflowStatus.PROPOSED,
            "pending": proposal,
            "transcript": transcript,
        }),
        [],
    )


def assistant_failed(state: AppState, error: Exception) -> Transition:
    _require(state, WorkflowStatus.AWAITING_ASSISTANT)
    return Transition(
        state.model_copy(update={
            "status": WorkflowStatus.IDLE,
            "transcript": _say(state, "system", f"Error: {error}"),
        }),
        [],
    )


def confirm_commit(state: AppState) -> Transition:
    """
    The operator confirms the pending proposal.

    Only valid from PROPOSED, so a double confirmation is rejected rather
    than committing twice.
    """
    if state.status is WorkflowStatus.COMMITTING:
        raise WorkflowError("A commit is already in progress.")
    if state.status is not WorkflowStatus.PROPOSED or state.pending is None:
        raise WorkflowError("There is no pending proposal to commit.")
    return Transition(
        state.model_copy(update={"status": WorkflowStatus.COMMITTING}),
        [CommitProposal(proposal=state.pending)],
    )


def commit_blocked(state: AppState, error: Exception) -> Transition:
    """The commit could not start; the proposal stays pending."""
    return Transition(
        state.model_copy(update={"transcript": _say(state, "system", f"Error: {error}")}),
        [Alert(message=str(error))],
    )


def commit_progress(state: AppState, document: str, step: str) -> Transition:
    text = {
        "read": f"Fetching revision for {document_path(document)}...",
        "write": f"Updating {document_path(document)}...",
    }.get(step, f"{step} {document_path(document)}")
    return Transition(state.model_copy(update={"transcript": _say(state, "system", text)}), [])


def commit_succeeded(state: AppState, report: CommitReport) -> Transition:
    _require(state, WorkflowStatus.COMMITTING)
    text = "Committed! Redeploying..." if report.committed else "Nothing to commit."
    effects: List[Effect] = [ReloadDocuments()]
    if report.committed:
        effects.insert(0, Alert(message="Updates committed! The site will rebuild shortly."))
    return Transition(
        state.model_copy(update={
            "status": WorkflowStatus.IDLE,
            "pending": None,
            "transcript": _say(state, "system", text),
        }),
        effects,
    )


def commit_failed(state: AppState, error: Exception) -> Transition:
    """No retry is offered: the proposal is cleared even if some files were written."""
    _require(state, WorkflowStatus.COMMITTING)
    text = f"Commit Failed: {error}"
    if isinstance(error, CommitError) and error.committed:
        text += f" (already committed: {', '.join(document_path(n) for n in error.committed)})"
    return Transition(
        state.model_copy(update={
            "status": WorkflowStatus.IDLE,
            "pending": None,
            "transcript": _say(state, "system", text),
        }),
        [Alert(message=f"Commit Failed: {error}")],
    )


def documents_loaded(state: AppState, documents: Documents) -> Transition:
    return Transition(state.model_copy(update={"documents": documents, "load_error": None}), [])


def documents_failed(state: AppState, error: Exception) -> Transition:
    return Transition(
        state.model_copy(update={
            "load_error": str(error),
            "transcript": _say(state, "system", f"Error: {error}"),
        }),
        [],
    )


# --- commit procedure ---

def shallow_merge(current: Mapping[str, Any], partial: Mapping[str, Any]) -> Dict[str, Any]:
    """Top-level keys of `partial` replace those of `current`; nested values are not merged."""
    return {**current, **partial}


ProgressCallback = Callable[[str, str], Optional[Awaitable[None]]]


async def apply_proposal(
    hosting: HostingBackend,
    proposal: ProposedUpdate,
    on_progress: Optional[ProgressCallback] = None,
) -> CommitReport:
    """
    Writes each document of the proposal, one at a time, in `updates` order.

    Each partial document is merged onto the content read from the hosting
    backend just before the write, and the write is conditioned on the
    revision token of that read.

    Raises:
        CommitError: On the first document that fails. Documents written
            before it stay written.
    """
    report = CommitReport()

    async def progress(name: str, step: str) -> None:
        if on_progress is not None:
            result = on_progress(name, step)
            if result is not None:
                await result

    for name, partial in proposal.updates.items():
        if not partial:
            report.skipped.append(name)
            continue
        path = document_path(name)
        try:
            await progress(name, "read")
            current = await hosting.read_file(path)
            merged = shallow_merge(current.content, partial)
            await progress(name, "write")
            new_token = await hosting.write_file(path, merged, proposal.commit_message, current.revision_token)
        except FolioException as e:
            logger.error(f"Commit stopped at {path}: {e}")
            raise CommitError(name, e, committed=report.committed) from e
        report.committed.append(name)
        report.revisions[name] = new_token

    logger.info(f"Committed {report.committed}, skipped {report.skipped}")
    return report
