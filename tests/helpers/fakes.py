"""Test doubles for the gateway, the clock and form filling."""

import asyncio

from mission_survey.errors import GatewayError
from mission_survey.memory import InMemorySurveyGateway

# 2025-10-09 08:53:20 UTC
EPOCH_MS = 1_760_000_000_000


class FakeClock:
    """Injectable epoch-millisecond clock."""

    def __init__(self, now: int = EPOCH_MS):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


class FailingGateway(InMemorySurveyGateway):
    """Raises GatewayError on writes (and optionally reads) while enabled."""

    def __init__(self, *, fail_writes=True, fail_reads=False, **kwargs):
        super().__init__(**kwargs)
        self.fail_writes = fail_writes
        self.fail_reads = fail_reads

    async def insert_submission(self, payload):
        if self.fail_writes:
            raise GatewayError("insert refused")
        return await super().insert_submission(payload)

    async def update_submission(self, submission_id, payload):
        if self.fail_writes:
            raise GatewayError("update refused")
        return await super().update_submission(submission_id, payload)

    async def lookup_prior_submission(self, identity):
        if self.fail_reads:
            raise GatewayError("lookup refused")
        return await super().lookup_prior_submission(identity)

    async def list_questions(self, *, include_hidden=False):
        if self.fail_reads:
            raise GatewayError("questions unavailable")
        return await super().list_questions(include_hidden=include_hidden)

    async def list_teams(self):
        if self.fail_reads:
            raise GatewayError("teams unavailable")
        return await super().list_teams()


class BlockingGateway(InMemorySurveyGateway):
    """Holds ``insert_submission`` open until ``release`` is set."""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.started = asyncio.Event()
        self.release = asyncio.Event()

    async def insert_submission(self, payload):
        self.started.set()
        await self.release.wait()
        return await super().insert_submission(payload)


def valid_raw_answer(question):
    """A raw value that passes validation for ``question``."""
    if question.type == "scale":
        return 7
    if question.type == "text":
        return "좋았습니다"
    return [question.options[0]]


def fill_form(machine):
    """Answer every question of the machine's current role."""
    for question in machine.questions:
        machine.set_answer(question.id, valid_raw_answer(question))


class SlowLookupGateway(InMemorySurveyGateway):
    """Holds ``lookup_prior_submission`` open until ``release`` is set."""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.lookup_started = asyncio.Event()
        self.release = asyncio.Event()

    async def lookup_prior_submission(self, identity):
        self.lookup_started.set()
        await self.release.wait()
        return await super().lookup_prior_submission(identity)
