"""Draft maintenance CLI helpers on a real draft file."""

import pytest
from rich.console import Console

from helpers.fakes import FakeClock

from mission_survey.drafts import DraftStore
from mission_survey.models.answer import ScaleAnswer
from mission_survey.models.enums import Role
from mission_survey.storage import JsonFileStorage, MemoryStorage, NamespacedStorage
from mission_survey_server.cleanup import render_drafts, run_cleanup


@pytest.fixture
def draft_file(tmp_path):
    """One stale draft (saved in 2025) and one fresh draft."""
    path = tmp_path / "drafts.json"
    stale = DraftStore(JsonFileStorage(path), MemoryStorage(), clock=FakeClock())
    stale.save(Role.MISSIONARY, None, {"q1": ScaleAnswer(value=2)})
    fresh = DraftStore(JsonFileStorage(path), MemoryStorage())
    fresh.save(Role.TEAM_MEMBER, "김축복 선교사", {"t_pre": ScaleAnswer(value=5)})
    return path


class TestCleanup:

    def test_purges_only_expired(self, draft_file):
        assert run_cleanup(str(draft_file)) == 1
        remaining = JsonFileStorage(draft_file).keys()
        assert remaining == ["survey_draft_team_member_김축복 선교사"]

    def test_clear_all(self, draft_file):
        assert run_cleanup(str(draft_file), clear_all=True) == 2
        assert JsonFileStorage(draft_file).keys() == []

    def test_render_lists_valid_drafts(self, draft_file):
        console = Console(record=True, width=200)
        assert render_drafts(str(draft_file), console) == 1
        output = console.export_text()
        assert "단기선교 팀원" in output
        assert "김축복 선교사" in output


@pytest.fixture
def owned_draft_file(draft_file):
    """draft_file plus one stale and one fresh draft owned by a signed-in user."""
    space = NamespacedStorage(JsonFileStorage(draft_file), "user:u-alice")
    DraftStore(space, MemoryStorage(), clock=FakeClock()).save(
        Role.LEADER, None, {"l1": ScaleAnswer(value=3)})
    DraftStore(space, MemoryStorage()).save(
        Role.MISSIONARY, None, {"q1": ScaleAnswer(value=9)})
    return draft_file


class TestOwnedDrafts:

    def test_purge_reaches_every_owner(self, owned_draft_file):
        assert run_cleanup(str(owned_draft_file)) == 2
        assert sorted(JsonFileStorage(owned_draft_file).keys()) == [
            "survey_draft_team_member_김축복 선교사",
            "user:u-alice/survey_draft_missionary_general",
        ]

    def test_clear_all_reaches_every_owner(self, owned_draft_file):
        assert run_cleanup(str(owned_draft_file), clear_all=True) == 4
        assert JsonFileStorage(owned_draft_file).keys() == []

    def test_render_shows_owner(self, owned_draft_file):
        console = Console(record=True, width=200)
        assert render_drafts(str(owned_draft_file), console) == 2
        assert "user:u-alice" in console.export_text()
