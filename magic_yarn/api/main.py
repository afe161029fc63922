"""FastAPI application factory.

Builds the Magic Yarn API: CORS, the logging lifespan and one router per
resource.  ``magic_yarn.main`` re-exports :data:`app` for uvicorn.
"""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from magic_yarn.api.routes.admin import router as admin_router
from magic_yarn.api.routes.admin import users_router
from magic_yarn.api.routes.auth import router as auth_router
from magic_yarn.api.routes.dashboard import router as dashboard_router
from magic_yarn.api.routes.deliveries import router as deliveries_router
from magic_yarn.api.routes.health import router as health_router
from magic_yarn.api.routes.planner import router as planner_router
from magic_yarn.api.routes.recipients import router as recipients_router
from magic_yarn.core.logging import setup_logging
from magic_yarn.core.settings import get_settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI):
    setup_logging()
    logger.info("Starting %s %s (env=%s)", settings.app_name, settings.app_version, settings.app_env)
    yield


settings = get_settings()

app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    lifespan=lifespan,
)

# Credentialed CORS; origins come from ALLOWED_ORIGINS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health_router)
app.include_router(auth_router)
app.include_router(dashboard_router)
app.include_router(recipients_router)
app.include_router(deliveries_router)
app.include_router(planner_router)
app.include_router(admin_router)
app.include_router(users_router)
