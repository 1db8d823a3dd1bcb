import pytest

from helpers.fakes import FakeClock

from mission_survey.drafts import DraftStore
from mission_survey.machine import SurveyStateMachine
from mission_survey.memory import InMemorySurveyGateway
from mission_survey.questions import BuiltinCatalog, QuestionCatalog
from mission_survey.storage import MemoryStorage


@pytest.fixture(scope="session")
def builtin():
    return BuiltinCatalog.load()


@pytest.fixture
def gateway():
    return InMemorySurveyGateway()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def draft_storage():
    return MemoryStorage()


@pytest.fixture
def drafts(draft_storage, clock):
    return DraftStore(draft_storage, MemoryStorage(), clock=clock)


@pytest.fixture
def make_machine(builtin, drafts):
    """Factory: a machine over the given gateway with the built-in catalog."""
    def _make(gateway, *, identity=None, draft_store=None):
        return SurveyStateMachine(
            gateway,
            draft_store or drafts,
            QuestionCatalog(gateway, builtin),
            identity=identity,
        )
    return _make
