"""SessionRegistry: one state machine per survey session.

Every survey session gets its own machine, submission guard and
session-scoped flag storage.  The remote gateway and the persistent draft
backend are shared, but each session sees drafts only through a
namespace: ``user:<id>`` for a signed-in owner, ``session:<id>`` while
anonymous.  Sessions live in process memory, are lost on restart and are
evicted after ``idle_timeout`` seconds without a request.
"""

from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Callable
from urllib.parse import quote

from mission_survey.drafts import DraftStore
from mission_survey.errors import SessionNotFoundError
from mission_survey.interfaces import KeyValueStorage, SurveyGateway
from mission_survey.machine import SurveyStateMachine
from mission_survey.models.session import Identity
from mission_survey.questions import BuiltinCatalog, QuestionCatalog
from mission_survey.storage import MemoryStorage, NamespacedStorage

logger = logging.getLogger(__name__)

DEFAULT_IDLE_TIMEOUT = 60 * 60


def draft_namespace(session_id: str, identity: Identity | None) -> str:
    if identity is not None:
        return f"user:{quote(identity.user_id, safe='')}"
    return f"session:{session_id}"


@dataclass
class SurveySession:
    id: str
    machine: SurveyStateMachine
    drafts: DraftStore
    draft_space: NamespacedStorage
    # user_id of the identity that owns the session (None while anonymous)
    owner: str | None = None
    # Monotonic seconds of the last request that resolved this session
    last_access: float = field(default_factory=time.monotonic)


class SessionRegistry:
    """Creates, finds and drops survey sessions.

    Args:
        gateway: remote store shared by all sessions
        builtin: built-in questions and teams
        draft_storage: persistent backend holding every respondent's drafts
        idle_timeout: seconds without access after which a session is evicted
        clock: monotonic seconds (injectable for tests)
    """

    def __init__(
        self,
        gateway: SurveyGateway,
        builtin: BuiltinCatalog,
        draft_storage: KeyValueStorage,
        *,
        idle_timeout: float = DEFAULT_IDLE_TIMEOUT,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.gateway = gateway
        self.builtin = builtin
        self.draft_storage = draft_storage
        self.idle_timeout = idle_timeout
        self._clock = clock
        # Reference catalog for the read-only endpoints
        self.catalog = QuestionCatalog(gateway, builtin)
        self._sessions: dict[str, SurveySession] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    async def warm_up(self) -> None:
        """Load the reference catalog from the remote store."""
        await self.catalog.refresh()
        await self.catalog.load_teams()

    async def create(self, identity: Identity | None = None) -> SurveySession:
        self.evict_idle()

        session_id = uuid.uuid4().hex
        draft_space = NamespacedStorage(self.draft_storage, draft_namespace(session_id, identity))
        drafts = DraftStore(draft_space, MemoryStorage())
        machine = SurveyStateMachine(
            self.gateway,
            drafts,
            QuestionCatalog(self.gateway, self.builtin),
            identity=identity,
        )
        await machine.bootstrap()

        session = SurveySession(
            id=session_id,
            machine=machine,
            drafts=drafts,
            draft_space=draft_space,
            owner=identity.user_id if identity else None,
            last_access=self._clock(),
        )
        self._sessions[session.id] = session
        logger.info("Survey session created: id=%s, owner=%s", session.id, session.owner)
        return session

    def get(self, session_id: str, identity: Identity | None = None) -> SurveySession:
        """Return the session, or raise if it is unknown, idle or owned by someone else."""
        session = self._sessions.get(session_id)
        if session is not None and self._is_idle(session):
            self._evict(session)
            session = None
        if session is None:
            raise SessionNotFoundError(f"Survey session not found: id={session_id}")
        if session.owner is not None and (identity is None or identity.user_id != session.owner):
            # Do not reveal that the session exists
            raise SessionNotFoundError(f"Survey session not found: id={session_id}")
        session.last_access = self._clock()
        return session

    def claim(self, session: SurveySession, identity: Identity | None) -> None:
        """Record (or clear) the owning identity after sign-in / sign-out.

        Drafts follow the owner: later reads and writes use the identity's
        namespace.
        """
        session.owner = identity.user_id if identity else None
        session.draft_space.namespace = draft_namespace(session.id, identity)

    def remove(self, session_id: str) -> None:
        if self._sessions.pop(session_id, None) is None:
            raise SessionNotFoundError(f"Survey session not found: id={session_id}")
        logger.info("Survey session removed: id=%s", session_id)

    def evict_idle(self) -> int:
        """Drop every idle session.  Returns the number evicted."""
        idle = [s for s in self._sessions.values() if self._is_idle(s)]
        for session in idle:
            self._evict(session)
        return len(idle)

    def _is_idle(self, session: SurveySession) -> bool:
        # A session with a submit in flight is never idle
        if session.machine.submit_locked:
            return False
        return self._clock() - session.last_access > self.idle_timeout

    def _evict(self, session: SurveySession) -> None:
        self._sessions.pop(session.id, None)
        logger.info("Survey session evicted after idling: id=%s", session.id)
