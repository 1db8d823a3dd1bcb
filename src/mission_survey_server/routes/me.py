"""Caller identity endpoint."""

from fastapi import APIRouter, Depends

from mission_survey.interfaces import SurveyGateway
from mission_survey.models.session import Identity
from mission_survey.validation import is_valid_email

from mission_survey_server.dependencies import get_gateway, get_identity

router = APIRouter(tags=["identity"])


@router.get("/me")
async def me(
    identity: Identity | None = Depends(get_identity),
    gateway: SurveyGateway = Depends(get_gateway),
) -> dict:
    """The header identity and whether it may use the admin area."""
    if identity is None:
        return {"identity": None, "is_admin": False}
    is_admin = False
    if identity.email and is_valid_email(identity.email):
        is_admin = await gateway.is_admin(identity.email)
    return {"identity": identity.model_dump(), "is_admin": is_admin}
