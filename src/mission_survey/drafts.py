"""DraftStore: local persistence of in-progress answers.

Drafts are keyed by ``(role, team_key)`` and live in a persistent
:class:`KeyValueStorage`; "already submitted this session" flags live in a
separate session-scoped storage so a just-submitted respondent is not
offered a stale draft.

No method raises: storage failures degrade to "no draft" and are logged.
A draft that is expired (older than 24 hours) or structurally invalid is
removed on read.
"""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Callable, Mapping

from pydantic import ValidationError

from mission_survey.constants import (
    DRAFT_EXPIRATION_MS,
    DRAFT_KEY_PREFIX,
    GENERAL_TEAM_KEY,
    SUBMITTED_KEY_PREFIX,
)
from mission_survey.errors import StorageUnavailableError
from mission_survey.interfaces import KeyValueStorage
from mission_survey.models.answer import Answer
from mission_survey.models.enums import Role
from mission_survey.models.session import Draft, RespondentInfo

logger = logging.getLogger(__name__)


def _role_key(role: Role | str) -> str:
    return role.value if isinstance(role, Role) else role


def draft_key(role: Role | str, team_key: str | None) -> str:
    return f"{DRAFT_KEY_PREFIX}{_role_key(role)}_{team_key or GENERAL_TEAM_KEY}"


def submitted_key(role: Role | str, team_key: str | None) -> str:
    return f"{SUBMITTED_KEY_PREFIX}{_role_key(role)}_{team_key or GENERAL_TEAM_KEY}"


def _epoch_ms() -> int:
    return int(time.time() * 1000)


class DraftStore:
    """Save, load and expire drafts.

    Args:
        storage: persistent backend for drafts
        session_storage: backend for session-scoped submitted flags
        clock: returns the current time in epoch milliseconds
    """

    def __init__(
        self,
        storage: KeyValueStorage,
        session_storage: KeyValueStorage,
        *,
        clock: Callable[[], int] = _epoch_ms,
    ) -> None:
        self._storage = storage
        self._session = session_storage
        self._clock = clock

    # ------------------------------------------------------------------
    # Drafts
    # ------------------------------------------------------------------

    def save(
        self,
        role: Role,
        team_key: str | None,
        form_data: Mapping[str, Answer],
        respondent: RespondentInfo | None = None,
    ) -> bool:
        """Write a timestamped draft.  Returns False if storage is unavailable."""
        draft = Draft(
            form_data=dict(form_data),
            respondent_info=respondent or RespondentInfo(),
            saved_at=self._clock(),
            role=role,
            team_missionary=team_key or None,
        )
        key = draft_key(role, team_key)
        try:
            self._storage.set(key, draft.model_dump_json(by_alias=True))
        except StorageUnavailableError as exc:
            logger.warning("Draft not saved (%s): %s", key, exc)
            return False
        return True

    def load(self, role: Role, team_key: str | None) -> Draft | None:
        """Return the stored draft if present, well-formed and not expired."""
        key = draft_key(role, team_key)
        try:
            raw = self._storage.get(key)
        except StorageUnavailableError as exc:
            logger.warning("Draft not loaded (%s): %s", key, exc)
            return None
        if raw is None:
            return None

        try:
            draft = Draft.model_validate_json(raw)
        except ValidationError:
            logger.warning("Invalid draft format at %s, removing", key)
            self._discard(key)
            return None

        if self._is_expired(draft):
            logger.info("Draft expired at %s, removing", key)
            self._discard(key)
            return None

        return draft

    def remove(self, role: Role, team_key: str | None) -> bool:
        """Delete the draft.  Removing an absent draft succeeds."""
        return self._discard(draft_key(role, team_key))

    def saved_at_display(self, role: Role, team_key: str | None) -> str | None:
        """Local ``YYYY-MM-DD HH:MM`` timestamp of the stored draft, if any."""
        draft = self.load(role, team_key)
        if draft is None:
            return None
        saved = datetime.fromtimestamp(draft.saved_at / 1000, tz=timezone.utc).astimezone()
        return saved.strftime("%Y-%m-%d %H:%M")

    # ------------------------------------------------------------------
    # Session-scoped submitted flags
    # ------------------------------------------------------------------

    def mark_submitted(self, role: Role, team_key: str | None) -> bool:
        key = submitted_key(role, team_key)
        try:
            self._session.set(key, "true")
        except StorageUnavailableError as exc:
            logger.warning("Submitted flag not saved (%s): %s", key, exc)
            return False
        return True

    def was_submitted(self, role: Role, team_key: str | None) -> bool:
        try:
            return self._session.get(submitted_key(role, team_key)) == "true"
        except StorageUnavailableError:
            return False

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    def list_drafts(self) -> list[tuple[str, Draft]]:
        """Every readable, unexpired draft as ``(key, draft)``, sorted by key."""
        try:
            keys = sorted(k for k in self._storage.keys() if k.startswith(DRAFT_KEY_PREFIX))
        except StorageUnavailableError as exc:
            logger.warning("Draft listing skipped: %s", exc)
            return []
        entries: list[tuple[str, Draft]] = []
        for key in keys:
            try:
                raw = self._storage.get(key)
                draft = Draft.model_validate_json(raw) if raw is not None else None
            except (StorageUnavailableError, ValidationError):
                continue
            if draft is not None and not self._is_expired(draft):
                entries.append((key, draft))
        return entries

    def purge_expired(self) -> int:
        """Remove every expired or malformed draft.  Returns the count removed."""
        try:
            keys = [k for k in self._storage.keys() if k.startswith(DRAFT_KEY_PREFIX)]
        except StorageUnavailableError as exc:
            logger.warning("Draft purge skipped: %s", exc)
            return 0

        removed = 0
        for key in keys:
            try:
                raw = self._storage.get(key)
            except StorageUnavailableError:
                continue
            if raw is None:
                continue
            try:
                draft = Draft.model_validate_json(raw)
            except ValidationError:
                draft = None
            if draft is None or self._is_expired(draft):
                if self._discard(key):
                    removed += 1
        return removed

    def clear_all(self) -> int:
        """Remove every draft and submitted flag.  Returns the count removed."""
        removed = 0
        for storage, prefix in (
            (self._storage, DRAFT_KEY_PREFIX),
            (self._session, SUBMITTED_KEY_PREFIX),
        ):
            try:
                keys = [k for k in storage.keys() if k.startswith(prefix)]
                for key in keys:
                    storage.remove(key)
                    removed += 1
            except StorageUnavailableError as exc:
                logger.warning("Failed to clear survey data: %s", exc)
        return removed

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _is_expired(self, draft: Draft) -> bool:
        return self._clock() - draft.saved_at > DRAFT_EXPIRATION_MS

    def _discard(self, key: str) -> bool:
        try:
            self._storage.remove(key)
        except StorageUnavailableError as exc:
            logger.warning("Draft not removed (%s): %s", key, exc)
            return False
        return True
