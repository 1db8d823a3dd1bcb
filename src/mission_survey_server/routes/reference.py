"""Reference data endpoints: mission teams and per-role questions.

Read-only and public.  Data comes from the remote store when it has any,
otherwise from the built-in lists.
"""

from fastapi import APIRouter, Depends, Query

from mission_survey.models.enums import Role, parse_role
from mission_survey.models.question import Question, TeamInfo, sort_teams

from mission_survey_server.dependencies import get_registry
from mission_survey_server.registry import SessionRegistry

router = APIRouter(prefix="/reference", tags=["reference"])


@router.get("/teams")
async def list_teams(
    registry: SessionRegistry = Depends(get_registry),
    order: str = Query("country", pattern="^(country|dept)$"),
) -> list[TeamInfo]:
    """Mission teams, by country (store order) or grouped by department
    and ordered by start date."""
    teams = await registry.catalog.load_teams()
    if order == "dept":
        return sort_teams(teams)
    return teams


@router.get("/questions/{role}")
async def list_questions(
    role: str,
    registry: SessionRegistry = Depends(get_registry),
) -> list[Question]:
    """Effective questions for ``role`` (key or Korean label)."""
    await registry.catalog.refresh()
    return registry.catalog.for_role(parse_role(role))


@router.get("/roles")
async def list_roles() -> list[dict]:
    """Roles selectable on the role_selection view."""
    return [
        {"key": role.value, "label": role.label, "requires_team": role.requires_team}
        for role in Role
    ]
