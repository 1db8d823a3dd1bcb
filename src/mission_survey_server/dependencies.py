"""FastAPI dependency injection: registry, gateway and caller identity.

Identity comes from headers injected by the auth proxy.  Anonymous callers
are allowed: without ``X-User-ID`` the identity is ``None``.
"""

import hmac

from fastapi import Depends, Header, HTTPException, Request

from mission_survey.interfaces import SurveyGateway
from mission_survey.models.session import Identity

from mission_survey_server.registry import SessionRegistry, SurveySession


def get_registry(request: Request) -> SessionRegistry:
    """Return the registry singleton from ``app.state``."""
    return request.app.state.registry


def get_gateway(request: Request) -> SurveyGateway:
    return request.app.state.registry.gateway


async def get_identity(
    request: Request,
    x_user_id: str | None = Header(None, alias="X-User-ID"),
    x_user_email: str | None = Header(None, alias="X-User-Email"),
    x_user_name: str | None = Header(None, alias="X-User-Name"),
    x_proxy_secret: str | None = Header(None, alias="X-Proxy-Secret"),
) -> Identity | None:
    """Build the caller's identity from the ``X-User-*`` headers.

    When ``TRUSTED_PROXY_SECRET`` is configured, a request carrying
    ``X-User-ID`` must also carry a matching ``X-Proxy-Secret``.
    """
    if not x_user_id:
        return None

    expected_secret: str | None = request.app.state.settings.trusted_proxy_secret
    if expected_secret:
        if not x_proxy_secret:
            raise HTTPException(status_code=403, detail="X-Proxy-Secret header is required")
        # Constant-time comparison
        if not hmac.compare_digest(x_proxy_secret, expected_secret):
            raise HTTPException(status_code=403, detail="Invalid proxy secret")

    return Identity(
        user_id=x_user_id,
        email=x_user_email or None,
        name=x_user_name or None,
    )


async def get_survey(
    survey_id: str,
    registry: SessionRegistry = Depends(get_registry),
    identity: Identity | None = Depends(get_identity),
) -> SurveySession:
    """Resolve ``{survey_id}`` to a session the caller may access."""
    return registry.get(survey_id, identity)
