"""FastAPI application entry point for the Roma CRM API."""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from roma_crm.app.config import get_settings
from roma_crm.app.errors import register_error_handlers
from roma_crm.infra.database import init_db

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: initialize database on startup."""
    await init_db()
    yield


settings = get_settings()

# Configure logging
logging.basicConfig(
    level=logging.INFO if settings.debug else logging.WARNING,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    datefmt="%H:%M:%S",
)

app = FastAPI(
    title="Roma CRM API",
    lifespan=lifespan,
    debug=settings.debug,
)

_cors_origins = settings.cors_origins_list
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=("*" not in _cors_origins),
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

# ---------------------------------------------------------------------------
# Route includes
# ---------------------------------------------------------------------------
from roma_crm.app.routes.auth import router as auth_router
from roma_crm.app.routes.companies import router as companies_router
from roma_crm.app.routes.intake import router as intake_router
from roma_crm.app.routes.media import router as media_router
from roma_crm.app.routes.onboarding import router as onboarding_router
from roma_crm.app.routes.webflow import router as webflow_router

app.include_router(auth_router)
app.include_router(companies_router)
app.include_router(intake_router)
app.include_router(media_router)
app.include_router(onboarding_router)
app.include_router(webflow_router)


@app.get("/health", tags=["health"])
async def health_check():
    """Return service health status."""
    return {"status": "ok", "service": "roma-crm"}


def run():
    """Run the API with uvicorn (development entry point)."""
    uvicorn.run("roma_crm.app.main:app", host="0.0.0.0", port=8000, reload=settings.debug)


if __name__ == "__main__":
    run()
