"""DraftStore and KeyValueStorage backends."""

import json
import re

import pytest

from helpers.fakes import FakeClock

from mission_survey.constants import DRAFT_EXPIRATION_MS
from mission_survey.drafts import DraftStore, draft_key, submitted_key
from mission_survey.errors import StorageUnavailableError
from mission_survey.models.answer import ScaleAnswer, TextAnswer
from mission_survey.models.enums import Role
from mission_survey.models.session import RespondentInfo
from mission_survey.storage import JsonFileStorage, MemoryStorage, NamespacedStorage, namespaces

TEAM = "김축복 선교사"


# =====================================================================
# Keys
# =====================================================================


def test_key_layout():
    assert draft_key(Role.TEAM_MEMBER, TEAM) == f"survey_draft_team_member_{TEAM}"
    assert draft_key(Role.MISSIONARY, None) == "survey_draft_missionary_general"
    assert submitted_key(Role.LEADER, None) == "survey_submitted_leader_general"


# =====================================================================
# Save / load
# =====================================================================


class TestSaveLoad:

    def test_round_trip(self, drafts, clock):
        form = {"t_pre": ScaleAnswer(value=4), "t_pre_3": TextAnswer(value="메모")}
        assert drafts.save(Role.TEAM_MEMBER, TEAM, form, RespondentInfo(name="홍길동"))

        draft = drafts.load(Role.TEAM_MEMBER, TEAM)
        assert draft.form_data == form
        assert draft.respondent_info.name == "홍길동"
        assert draft.saved_at == clock.now
        assert draft.role == Role.TEAM_MEMBER
        assert draft.team_missionary == TEAM

    def test_serialized_with_camel_case_keys(self, drafts, draft_storage):
        drafts.save(Role.MISSIONARY, None, {"q1": ScaleAnswer(value=2)})
        raw = json.loads(draft_storage.get("survey_draft_missionary_general"))
        assert set(raw) >= {"formData", "respondentInfo", "savedAt"}

    def test_drafts_are_keyed_by_team(self, drafts):
        drafts.save(Role.TEAM_MEMBER, TEAM, {"t_pre": ScaleAnswer(value=4)})
        assert drafts.load(Role.TEAM_MEMBER, "여호수아 선교사") is None

    def test_expired_draft_is_purged_on_read(self, drafts, clock, draft_storage):
        drafts.save(Role.MISSIONARY, None, {"q1": ScaleAnswer(value=2)})
        clock.advance(DRAFT_EXPIRATION_MS + 1)
        assert drafts.load(Role.MISSIONARY, None) is None
        assert draft_storage.get("survey_draft_missionary_general") is None

    def test_draft_at_expiry_boundary_survives(self, drafts, clock):
        drafts.save(Role.MISSIONARY, None, {"q1": ScaleAnswer(value=2)})
        clock.advance(DRAFT_EXPIRATION_MS)
        assert drafts.load(Role.MISSIONARY, None) is not None

    def test_malformed_draft_is_purged_on_read(self, drafts, draft_storage):
        draft_storage.set("survey_draft_missionary_general", "{not json")
        assert drafts.load(Role.MISSIONARY, None) is None
        assert draft_storage.get("survey_draft_missionary_general") is None

    def test_remove_is_idempotent(self, drafts):
        drafts.save(Role.MISSIONARY, None, {})
        assert drafts.remove(Role.MISSIONARY, None)
        assert drafts.remove(Role.MISSIONARY, None)

    def test_saved_at_display(self, drafts):
        assert drafts.saved_at_display(Role.MISSIONARY, None) is None
        drafts.save(Role.MISSIONARY, None, {})
        shown = drafts.saved_at_display(Role.MISSIONARY, None)
        assert re.fullmatch(r"\d{4}-\d{2}-\d{2} \d{2}:\d{2}", shown)


# =====================================================================
# Degraded storage
# =====================================================================


class TestUnavailableStorage:

    def test_disabled_storage_never_raises(self, clock):
        store = DraftStore(MemoryStorage(available=False), MemoryStorage(available=False), clock=clock)
        assert not store.save(Role.MISSIONARY, None, {"q1": ScaleAnswer(value=2)})
        assert store.load(Role.MISSIONARY, None) is None
        assert not store.remove(Role.MISSIONARY, None)
        assert not store.mark_submitted(Role.MISSIONARY, None)
        assert not store.was_submitted(Role.MISSIONARY, None)
        assert store.purge_expired() == 0
        assert store.list_drafts() == []

    def test_quota_exceeded(self, clock):
        store = DraftStore(MemoryStorage(quota=64), MemoryStorage(), clock=clock)
        big = {"q1": TextAnswer(value="가" * 200)}
        assert not store.save(Role.MISSIONARY, None, big)
        assert store.load(Role.MISSIONARY, None) is None

    def test_memory_storage_raises_when_disabled(self):
        storage = MemoryStorage(available=False)
        with pytest.raises(StorageUnavailableError):
            storage.get("k")


# =====================================================================
# Session flags and maintenance
# =====================================================================


class TestFlagsAndMaintenance:

    def test_submitted_flag(self, drafts):
        assert not drafts.was_submitted(Role.LEADER, None)
        drafts.mark_submitted(Role.LEADER, None)
        assert drafts.was_submitted(Role.LEADER, None)
        assert not drafts.was_submitted(Role.MISSIONARY, None)

    def test_purge_expired_counts_removed(self, drafts, clock, draft_storage):
        drafts.save(Role.MISSIONARY, None, {})
        clock.advance(DRAFT_EXPIRATION_MS + 1)
        drafts.save(Role.LEADER, None, {})
        draft_storage.set("survey_draft_team_member_x", "garbage")
        draft_storage.set("unrelated", "kept")

        assert drafts.purge_expired() == 2
        assert [k for k, _ in drafts.list_drafts()] == ["survey_draft_leader_general"]
        assert draft_storage.get("unrelated") == "kept"

    def test_clear_all(self, drafts, draft_storage):
        drafts.save(Role.MISSIONARY, None, {})
        drafts.save(Role.LEADER, None, {})
        drafts.mark_submitted(Role.LEADER, None)
        draft_storage.set("unrelated", "kept")

        assert drafts.clear_all() == 3
        assert drafts.list_drafts() == []
        assert not drafts.was_submitted(Role.LEADER, None)
        assert draft_storage.keys() == ["unrelated"]


# =====================================================================
# JsonFileStorage
# =====================================================================


class TestJsonFileStorage:

    def test_persists_across_instances(self, tmp_path):
        path = tmp_path / "drafts.json"
        clock = FakeClock()
        DraftStore(JsonFileStorage(path), MemoryStorage(), clock=clock).save(
            Role.MISSIONARY, None, {"q1": ScaleAnswer(value=3)},
        )
        reopened = DraftStore(JsonFileStorage(path), MemoryStorage(), clock=clock)
        assert reopened.load(Role.MISSIONARY, None).form_data == {"q1": ScaleAnswer(value=3)}

    def test_korean_text_is_stored_readably(self, tmp_path):
        path = tmp_path / "drafts.json"
        JsonFileStorage(path).set("k", "선교")
        assert "선교" in path.read_text(encoding="utf-8")

    def test_corrupt_file_reads_as_empty(self, tmp_path):
        path = tmp_path / "drafts.json"
        path.write_text("[[[", encoding="utf-8")
        storage = JsonFileStorage(path)
        assert storage.keys() == []
        storage.set("k", "v")
        assert storage.get("k") == "v"

    def test_missing_file(self, tmp_path):
        storage = JsonFileStorage(tmp_path / "nested" / "drafts.json")
        assert storage.get("k") is None
        storage.remove("k")
        storage.set("k", "v")
        assert storage.keys() == ["k"]


# =====================================================================
# Namespaced storage
# =====================================================================


class TestNamespacedStorage:

    def test_namespaces_are_isolated(self):
        backend = MemoryStorage()
        alice = NamespacedStorage(backend, "user:alice")
        bob = NamespacedStorage(backend, "user:bob")
        alice.set("k", "1")
        assert alice.get("k") == "1"
        assert bob.get("k") is None
        assert bob.keys() == []
        assert backend.keys() == ["user:alice/k"]

    def test_reassigned_namespace_leaves_old_keys(self):
        backend = MemoryStorage()
        space = NamespacedStorage(backend, "session:s1")
        space.set("k", "1")
        space.namespace = "user:alice"
        assert space.get("k") is None
        space.set("k", "2")
        assert sorted(backend.keys()) == ["session:s1/k", "user:alice/k"]

    def test_draft_store_over_namespace(self, clock):
        backend = MemoryStorage()
        mine = DraftStore(NamespacedStorage(backend, "user:alice"), MemoryStorage(), clock=clock)
        theirs = DraftStore(NamespacedStorage(backend, "user:bob"), MemoryStorage(), clock=clock)
        mine.save(Role.MISSIONARY, None, {"q1": ScaleAnswer(value=2)})
        assert theirs.load(Role.MISSIONARY, None) is None
        assert mine.load(Role.MISSIONARY, None) is not None
        assert theirs.clear_all() == 0
        assert backend.keys() == ["user:alice/survey_draft_missionary_general"]

    def test_namespaces_listing(self):
        backend = MemoryStorage()
        backend.set("user:bob/k", "1")
        backend.set("session:s1/k", "1")
        backend.set("user:bob/j", "1")
        backend.set("survey_draft_team_member_A/B", "1")
        assert namespaces(backend) == ["session:s1", "user:bob"]
