from typing import Callable, List, Optional

from folio.config.models import Config, SessionCredentials
from folio.core.assistant.router import get_assistant
from folio.core.contracts.assistant import Assistant
from folio.core.contracts.hosting import HostingBackend
from folio.core.hosting.router import get_hosting
from folio.core.store import DocumentStore
from folio.core import workflow
from folio.core.workflow import (
    Alert,
    AppState,
    CallAssistant,
    CommitProposal,
    ReloadDocuments,
    Transition,
    WorkflowStatus,
)
from folio.utils.errors import FolioException, PreconditionError
from folio.utils.logger import logger

StateListener = Callable[[AppState], None]
AlertListener = Callable[[str], None]


class AdminSession:
    """
    Drives the workflow: owns the application state, performs the effects the
    transitions ask for, and tells subscribers about every change.

    Credentials are read from `load_credentials` before every remote call, so a
    settings save takes effect without restarting the session.
    """

    def __init__(
        self,
        config: Config,
        load_credentials: Callable[[], SessionCredentials],
        store: Optional[DocumentStore] = None,
        assistant_factory: Optional[Callable[[SessionCredentials], Assistant]] = None,
        hosting_factory: Optional[Callable[[SessionCredentials], HostingBackend]] = None,
    ):
        self.config = config
        self._load_credentials = load_credentials
        self.store = store or DocumentStore(config.content)
        self._assistant_factory = assistant_factory or (
            lambda creds: get_assistant(config.assistant, api_key=creds.assistant_key)
        )
        self._hosting_factory = hosting_factory or (lambda creds: get_hosting(config.hosting, creds))
        self.state = AppState()
        self._state_listeners: List[StateListener] = []
        self._alert_listeners: List[AlertListener] = []

    def subscribe(self, on_state: Optional[StateListener] = None, on_alert: Optional[AlertListener] = None) -> None:
        if on_state is not None:
            self._state_listeners.append(on_state)
        if on_alert is not None:
            self._alert_listeners.append(on_alert)

    async def _apply(self, transition: Transition) -> None:
        self.state = transition.state
        for listener in self._state_listeners:
            listener(self.state)
        for effect in transition.effects:
            await self._perform(effect)

    async def _perform(self, effect) -> None:
        if isinstance(effect, CallAssistant):
            await self._call_assistant(effect)
        elif isinstance(effect, CommitProposal):
            await self._commit(effect)
        elif isinstance(effect, ReloadDocuments):
            await self.reload()
        elif isinstance(effect, Alert):
            for listener in self._alert_listeners:
                listener(effect.message)
        else:
            raise TypeError(f"Unknown effect: {effect!r}")

    async def reload(self) -> AppState:
        """Loads all three documents, replacing whatever is held in memory."""
        try:
            documents = await self.store.load_all()
        except FolioException as e:
            logger.error(f"Failed to load documents: {e}")
            await self._apply(workflow.documents_failed(self.state, e))
        else:
            await self._apply(workflow.documents_loaded(self.state, documents))
        return self.state

    async def send(self, text: str) -> AppState:
        """
        Sends an operator chat message to the assistant.

        Raises:
            WorkflowError: If a request or a commit is already in flight.
        """
        if not text.strip():
            return self.state
        credentials = self._load_credentials()
        if not credentials.assistant_key and self.state.status in (WorkflowStatus.IDLE, WorkflowStatus.PROPOSED):
            await self._apply(workflow.chat_blocked(self.state, text, PreconditionError("OpenAI Key not found.")))
            return self.state
        await self._apply(workflow.submit_chat(self.state, text))
        return self.state

    async def _call_assistant(self, effect: CallAssistant) -> None:
        try:
            assistant = self._assistant_factory(self._load_credentials())
            proposal = await assistant.propose(effect.transcript, effect.documents)
        except FolioException as e:
            logger.error(f"Assistant request failed: {e}")
            await self._apply(workflow.assistant_failed(self.state, e))
            return
        except Exception as e:
            logger.opt(exception=True).error(f"Unexpected error during assistant request: {e}")
            await self._apply(workflow.assistant_failed(self.state, e))
            return
        await self._apply(workflow.assistant_succeeded(self.state, proposal))

    async def commit(self) -> AppState:
        """
        Commits the pending proposal.

        Raises:
            WorkflowError: If nothing is pending or a commit is already running.
        """
        credentials = self._load_credentials()
        if self.state.status is WorkflowStatus.PROPOSED and not credentials.hosting_token:
            await self._apply(workflow.commit_blocked(self.state, PreconditionError("GitHub Token not found.")))
            return self.state
        await self._apply(workflow.confirm_commit(self.state))
        return self.state

    async def _commit(self, effect: CommitProposal) -> None:
        async def progress(name: str, step: str) -> None:
            await self._apply(workflow.commit_progress(self.state, name, step))

        try:
            hosting = self._hosting_factory(self._load_credentials())
            report = await workflow.apply_proposal(hosting, effect.proposal, on_progress=progress)
        except FolioException as e:
            await self._apply(workflow.commit_failed(self.state, e))
            return
        except Exception as e:
            logger.opt(exception=True).error(f"Unexpected error during commit: {e}")
            await self._apply(workflow.commit_failed(self.state, e))
            return
        await self._apply(workflow.commit_succeeded(self.state, report))
