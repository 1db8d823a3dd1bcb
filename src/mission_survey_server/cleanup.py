"""Draft maintenance CLI: ``mission-survey-drafts``.

Works on the persistent draft file the server writes when
``SURVEY_DRAFT_PATH`` is set.  Intended for cron jobs or one-off
maintenance.

Examples::

    # Remove expired or malformed drafts (default)
    mission-survey-drafts

    # Show the drafts that are still valid
    mission-survey-drafts --list

    # Remove every draft
    mission-survey-drafts --all --path /var/lib/survey/drafts.json
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from datetime import datetime, timezone

from rich.console import Console
from rich.table import Table

from mission_survey.drafts import DraftStore
from mission_survey.storage import JsonFileStorage, MemoryStorage, NamespacedStorage, namespaces

logger = logging.getLogger(__name__)


def _stores(path: str) -> list[tuple[str | None, DraftStore]]:
    """A DraftStore per respondent namespace in ``path``, plus the bare key space."""
    storage = JsonFileStorage(path)
    stores: list[tuple[str | None, DraftStore]] = [(None, DraftStore(storage, MemoryStorage()))]
    for namespace in namespaces(storage):
        stores.append((namespace, DraftStore(NamespacedStorage(storage, namespace), MemoryStorage())))
    return stores


def run_cleanup(path: str, *, clear_all: bool = False) -> int:
    """Purge drafts in ``path`` and return the number removed."""
    removed = 0
    for _, store in _stores(path):
        removed += store.clear_all() if clear_all else store.purge_expired()
    action = "clear_all" if clear_all else "purge_expired"
    logger.info("Draft cleanup complete: action=%s, removed=%d, path=%s", action, removed, path)
    return removed


def render_drafts(path: str, console: Console | None = None) -> int:
    """Print valid drafts as a table.  Returns how many were listed."""
    console = console or Console()

    table = Table(title=f"Drafts in {path}")
    table.add_column("Owner")
    table.add_column("Key")
    table.add_column("Role")
    table.add_column("Team")
    table.add_column("Answers", justify="right")
    table.add_column("Saved at")
    listed = 0
    for namespace, store in _stores(path):
        for key, draft in store.list_drafts():
            saved = datetime.fromtimestamp(draft.saved_at / 1000, tz=timezone.utc).astimezone()
            table.add_row(
                namespace or "-",
                key,
                draft.role.label if draft.role else "-",
                draft.team_missionary or "-",
                str(len(draft.form_data)),
                saved.strftime("%Y-%m-%d %H:%M"),
            )
            listed += 1
    console.print(table)
    return listed


def cli() -> None:
    """Console-script entry point: ``mission-survey-drafts``."""
    parser = argparse.ArgumentParser(
        prog="mission-survey-drafts",
        description="List or clean up locally persisted survey drafts.",
    )
    parser.add_argument(
        "--path",
        default=os.getenv("SURVEY_DRAFT_PATH"),
        help="Draft file (default: $SURVEY_DRAFT_PATH)",
    )
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument(
        "--all",
        action="store_true",
        default=False,
        help="Remove every draft and submitted flag, not only expired ones",
    )
    mode.add_argument(
        "--list",
        action="store_true",
        default=False,
        help="List valid drafts instead of removing anything",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (default: INFO)",
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    if not args.path:
        parser.error("no draft file: pass --path or set SURVEY_DRAFT_PATH")

    if args.list:
        render_drafts(args.path)
        sys.exit(0)

    removed = run_cleanup(args.path, clear_all=args.all)
    print(f"Removed drafts: {removed}")
    sys.exit(0)
