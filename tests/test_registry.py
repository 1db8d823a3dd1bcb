"""SessionRegistry: ownership, draft namespaces and idle eviction."""

import asyncio

import pytest

from helpers.fakes import BlockingGateway, fill_form

from mission_survey.errors import SessionNotFoundError
from mission_survey.models.enums import Role
from mission_survey.models.session import Identity
from mission_survey_server.registry import SessionRegistry, draft_namespace

ALICE = Identity(user_id="u-alice", email="alice@example.com")
BOB = Identity(user_id="u-bob", email="bob@example.com")
IDLE = 600


class SecondsClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture
def seconds():
    return SecondsClock()


@pytest.fixture
def make_registry(builtin, gateway, draft_storage, seconds):
    def _make(gw=None):
        return SessionRegistry(gw or gateway, builtin, draft_storage, idle_timeout=IDLE, clock=seconds)
    return _make


async def _to_missionary_form(machine):
    await machine.start()
    await machine.select_role(Role.MISSIONARY)


# =====================================================================
# Drafts per respondent
# =====================================================================


class TestDraftNamespaces:

    def test_namespace_names(self):
        assert draft_namespace("abc", None) == "session:abc"
        assert draft_namespace("abc", ALICE) == "user:u-alice"
        assert draft_namespace("abc", Identity(user_id="a/b")) == "user:a%2Fb"

    @pytest.mark.asyncio
    async def test_drafts_are_written_under_the_owner(self, make_registry, draft_storage):
        registry = make_registry()
        session = await registry.create(ALICE)
        await _to_missionary_form(session.machine)
        session.machine.set_answer("q1", 5)
        assert draft_storage.keys() == ["user:u-alice/survey_draft_missionary_general"]

    @pytest.mark.asyncio
    async def test_other_owner_gets_no_draft(self, make_registry):
        registry = make_registry()
        alice = await registry.create(ALICE)
        await _to_missionary_form(alice.machine)
        alice.machine.set_answer("q1", 5)

        bob = await registry.create(BOB)
        await _to_missionary_form(bob.machine)
        assert bob.machine.pending_draft is None

        again = await registry.create(ALICE)
        await _to_missionary_form(again.machine)
        assert again.machine.pending_draft is not None

    @pytest.mark.asyncio
    async def test_claim_moves_drafts_to_the_identity(self, make_registry, draft_storage):
        registry = make_registry()
        session = await registry.create()
        registry.claim(session, ALICE)
        assert session.owner == "u-alice"
        await _to_missionary_form(session.machine)
        session.machine.set_answer("q1", 5)
        assert draft_storage.keys() == ["user:u-alice/survey_draft_missionary_general"]

        registry.claim(session, None)
        assert session.draft_space.namespace == f"session:{session.id}"


# =====================================================================
# Ownership
# =====================================================================


class TestOwnership:

    @pytest.mark.asyncio
    async def test_owner_only(self, make_registry):
        registry = make_registry()
        session = await registry.create(ALICE)
        assert registry.get(session.id, ALICE) is session
        with pytest.raises(SessionNotFoundError):
            registry.get(session.id, BOB)
        with pytest.raises(SessionNotFoundError):
            registry.get(session.id)

    @pytest.mark.asyncio
    async def test_remove(self, make_registry):
        registry = make_registry()
        session = await registry.create()
        registry.remove(session.id)
        assert len(registry) == 0
        with pytest.raises(SessionNotFoundError):
            registry.remove(session.id)


# =====================================================================
# Idle eviction
# =====================================================================


class TestIdleEviction:

    @pytest.mark.asyncio
    async def test_idle_session_is_gone(self, make_registry, seconds):
        registry = make_registry()
        session = await registry.create()
        seconds.now += IDLE + 1
        with pytest.raises(SessionNotFoundError):
            registry.get(session.id)
        assert len(registry) == 0

    @pytest.mark.asyncio
    async def test_access_keeps_session_alive(self, make_registry, seconds):
        registry = make_registry()
        session = await registry.create()
        for _ in range(3):
            seconds.now += IDLE - 1
            assert registry.get(session.id) is session
        assert registry.evict_idle() == 0

    @pytest.mark.asyncio
    async def test_create_evicts_idle_sessions(self, make_registry, seconds):
        registry = make_registry()
        await registry.create()
        await registry.create()
        seconds.now += IDLE + 1
        fresh = await registry.create()
        assert len(registry) == 1
        assert registry.get(fresh.id) is fresh

    @pytest.mark.asyncio
    async def test_session_with_submit_in_flight_is_kept(self, make_registry, seconds):
        gateway = BlockingGateway()
        registry = make_registry(gateway)
        session = await registry.create()
        await _to_missionary_form(session.machine)
        fill_form(session.machine)

        task = asyncio.create_task(session.machine.submit())
        await gateway.started.wait()
        seconds.now += IDLE + 1
        assert registry.evict_idle() == 0, "a submitting session is never idle"

        gateway.release.set()
        await task
        assert registry.evict_idle() == 1
