"""Route registration: mounts all routers under ``/api/v1``."""

from fastapi import FastAPI

from mission_survey_server.routes.me import router as me_router
from mission_survey_server.routes.reference import router as reference_router
from mission_survey_server.routes.surveys import router as surveys_router

API_PREFIX = "/api/v1"


def register_routes(app: FastAPI) -> None:
    app.include_router(surveys_router, prefix=API_PREFIX)
    app.include_router(reference_router, prefix=API_PREFIX)
    app.include_router(me_router, prefix=API_PREFIX)
