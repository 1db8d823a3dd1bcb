"""Abstract interfaces for the collaborators the state machine consumes.

These ABCs define the contract that external implementations must fulfil:

  - SurveyGateway: the remote store (prior-submission lookup, insert or
    update of a submission, question and team reference data, admin check)
  - KeyValueStorage: local string key-value persistence used for drafts
    and session-scoped "already submitted" flags

Typical wiring::

    gateway: SurveyGateway = SqlSurveyGateway(session_factory)
    drafts = DraftStore(JsonFileStorage("drafts.json"), MemoryStorage())
    catalog = QuestionCatalog(gateway, BuiltinCatalog.load())
    machine = SurveyStateMachine(gateway, drafts, catalog)
    await machine.bootstrap()
"""

from abc import ABC, abstractmethod

from mission_survey.models.question import StoredQuestion, TeamInfo
from mission_survey.models.session import Identity, PriorSubmission, SubmissionPayload


class SurveyGateway(ABC):
    """Interface to the remote store.

    Every method is a suspension point: its continuation may run after
    arbitrary unrelated user interaction.  Implementations must raise
    :class:`~mission_survey.errors.GatewayError` for any remote failure
    so callers can distinguish it from programming errors.
    """

    @abstractmethod
    async def lookup_prior_submission(self, identity: Identity) -> PriorSubmission | None:
        """Return the most recent submission linked to ``identity``, if any.

        Linking is by email; an identity without an email has no prior
        submission.
        """
        ...

    @abstractmethod
    async def insert_submission(self, payload: SubmissionPayload) -> str:
        """Insert a new submission and return its id."""
        ...

    @abstractmethod
    async def update_submission(self, submission_id: str, payload: SubmissionPayload) -> None:
        """Overwrite an existing submission (last write wins)."""
        ...

    @abstractmethod
    async def list_questions(self, *, include_hidden: bool = False) -> list[StoredQuestion]:
        """Return question rows ordered by ``sort_order``."""
        ...

    @abstractmethod
    async def list_teams(self) -> list[TeamInfo]:
        """Return mission teams ordered by country."""
        ...

    @abstractmethod
    async def is_admin(self, email: str) -> bool:
        """True if ``email`` is registered as an administrator."""
        ...


class KeyValueStorage(ABC):
    """String key-value storage.

    Implementations raise
    :class:`~mission_survey.errors.StorageUnavailableError` when the
    backend is disabled, full, or unreadable.
    """

    @abstractmethod
    def get(self, key: str) -> str | None:
        ...

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        ...

    @abstractmethod
    def remove(self, key: str) -> None:
        """Delete ``key``; deleting an absent key is not an error."""
        ...

    @abstractmethod
    def keys(self) -> list[str]:
        ...
