"""
FastAPI application factory.

Run with:
    uvicorn examprep.app:app
"""

import logging

from fastapi import FastAPI

from examprep import __version__
from examprep.api.routes import access, catalog, health, onboarding, organization, payment
from examprep.platform.errors import ErrorHandlerMiddleware

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    app = FastAPI(title="Exam Prep Access API", version=__version__)

    app.add_middleware(ErrorHandlerMiddleware)

    app.include_router(health.router)
    app.include_router(access.router)
    app.include_router(payment.router)
    app.include_router(onboarding.router)
    app.include_router(organization.router)
    app.include_router(catalog.router)

    return app


app = create_app()
