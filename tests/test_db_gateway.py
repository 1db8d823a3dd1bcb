"""SqlSurveyGateway and seeding with a mocked DB layer.

Mock strategy:
  - MockRepository keeps plain namespace rows in dicts and implements the
    SurveyRepository methods the gateway calls.
  - FakeSessionFactory yields an AsyncMock standing in for AsyncSession;
    commit/rollback are recorded no-ops.
"""

import uuid
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest
from sqlalchemy.exc import OperationalError

from mission_survey.errors import GatewayError
from mission_survey.models.session import Identity, SubmissionPayload
from mission_survey_db.gateway import SqlSurveyGateway
from mission_survey_db.seed import seed_reference_data

PAYLOAD = SubmissionPayload(
    role="선교사",
    respondent_name="Alice",
    respondent_email="alice@example.com",
    answers={"q1": 7},
)


# =====================================================================
# Mock infrastructure
# =====================================================================


class FakeSessionFactory:
    def __init__(self):
        self.db = AsyncMock()

    def __call__(self):
        return self

    async def __aenter__(self):
        return self.db

    async def __aexit__(self, *exc_info):
        return False


class MockRepository:
    def __init__(self):
        self.evaluations: dict[uuid.UUID, SimpleNamespace] = {}
        self.questions: list[SimpleNamespace] = []
        self.teams: list[SimpleNamespace] = []
        self.admins: set[str] = set()
        self.fail = False

    async def create_evaluation(self, db, **fields):
        if self.fail:
            raise OperationalError("INSERT", {}, Exception("connection lost"))
        row = SimpleNamespace(id=uuid.uuid4(), created_at=datetime.now(timezone.utc), **fields)
        self.evaluations[row.id] = row
        return row

    async def get_evaluation(self, db, evaluation_id):
        return self.evaluations.get(evaluation_id)

    async def update_evaluation(self, db, row, **fields):
        for name, value in fields.items():
            setattr(row, name, value)
        return row

    async def latest_by_email(self, db, email):
        rows = [r for r in self.evaluations.values() if r.respondent_email == email]
        return max(rows, key=lambda r: r.created_at) if rows else None

    async def list_questions(self, db, *, include_hidden=False):
        rows = [q for q in self.questions if include_hidden or not q.is_hidden]
        return sorted(rows, key=lambda q: q.sort_order)

    async def count_questions(self, db):
        return len(self.questions)

    async def add_questions(self, db, rows):
        rows = list(rows)
        self.questions.extend(SimpleNamespace(**r) for r in rows)
        return len(rows)

    async def list_teams(self, db):
        return list(self.teams)

    async def count_teams(self, db):
        return len(self.teams)

    async def add_teams(self, db, rows):
        rows = list(rows)
        self.teams.extend(SimpleNamespace(id=uuid.uuid4(), **r) for r in rows)
        return len(rows)

    async def is_admin_email(self, db, email):
        return email.lower() in self.admins


@pytest.fixture
def factory():
    return FakeSessionFactory()


@pytest.fixture
def repo():
    return MockRepository()


@pytest.fixture
def sql_gateway(factory, repo):
    return SqlSurveyGateway(factory, admin_email="Root@Example.com", repo=repo)


# =====================================================================
# Submissions
# =====================================================================


class TestSubmissions:

    @pytest.mark.asyncio
    async def test_insert_commits_and_returns_id(self, sql_gateway, factory, repo):
        submission_id = await sql_gateway.insert_submission(PAYLOAD)
        assert uuid.UUID(submission_id) in repo.evaluations
        factory.db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_update_overwrites(self, sql_gateway, repo):
        submission_id = await sql_gateway.insert_submission(PAYLOAD)
        changed = PAYLOAD.model_copy(update={"answers": {"q1": 1}})
        await sql_gateway.update_submission(submission_id, changed)
        assert repo.evaluations[uuid.UUID(submission_id)].answers == {"q1": 1}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("submission_id", ["not-a-uuid", str(uuid.uuid4())])
    async def test_update_unknown_id(self, sql_gateway, submission_id):
        with pytest.raises(GatewayError, match="not found"):
            await sql_gateway.update_submission(submission_id, PAYLOAD)

    @pytest.mark.asyncio
    async def test_database_error_is_wrapped(self, sql_gateway, factory, repo):
        repo.fail = True
        with pytest.raises(GatewayError):
            await sql_gateway.insert_submission(PAYLOAD)
        factory.db.rollback.assert_awaited_once()
        factory.db.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_lookup_latest_by_email(self, sql_gateway, repo):
        old_id = await sql_gateway.insert_submission(PAYLOAD)
        repo.evaluations[uuid.UUID(old_id)].created_at -= timedelta(days=1)
        new_id = await sql_gateway.insert_submission(PAYLOAD.model_copy(update={"role": "인솔자"}))

        prior = await sql_gateway.lookup_prior_submission(
            Identity(user_id="u1", email="alice@example.com"),
        )
        assert prior.id == new_id
        assert prior.role == "인솔자"
        assert prior.answers == {"q1": 7}

    @pytest.mark.asyncio
    async def test_lookup_without_email(self, sql_gateway, factory):
        assert await sql_gateway.lookup_prior_submission(Identity(user_id="u1")) is None
        factory.db.commit.assert_not_awaited()


# =====================================================================
# Reference data and admins
# =====================================================================


class TestReferenceData:

    @pytest.mark.asyncio
    async def test_questions_and_teams_convert(self, sql_gateway, repo, factory, builtin):
        await seed_reference_data(factory.db, builtin, repo=repo)

        questions = await sql_gateway.list_questions()
        assert len(questions) == 40
        c1 = next(q for q in questions if q.id == "c1")
        assert c1.role == "common"
        assert "기타" in c1.options

        teams = await sql_gateway.list_teams()
        assert len(teams) == 12
        assert all(t.id for t in teams)

    @pytest.mark.asyncio
    async def test_seed_skips_filled_tables(self, repo, factory, builtin):
        await seed_reference_data(factory.db, builtin, repo=repo)
        added = await seed_reference_data(factory.db, builtin, repo=repo)
        assert added == {"questions": 0, "teams": 0}

    @pytest.mark.asyncio
    async def test_seed_force_adds_missing_only(self, repo, factory, builtin):
        await seed_reference_data(factory.db, builtin, repo=repo, teams=False)
        repo.questions = [q for q in repo.questions if q.id != "c3"]
        added = await seed_reference_data(factory.db, builtin, repo=repo, teams=False, force=True)
        assert added == {"questions": 1, "teams": 0}

    @pytest.mark.asyncio
    async def test_admin_check(self, sql_gateway, repo, factory):
        repo.admins.add("staff@example.com")
        assert await sql_gateway.is_admin("root@example.com"), "super admin, case-insensitive"
        assert await sql_gateway.is_admin("Staff@Example.com")
        assert not await sql_gateway.is_admin("guest@example.com")
        assert not await sql_gateway.is_admin("")
