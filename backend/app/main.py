"""
ControlPulse FastAPI Application
Compliance entropy and risk momentum analytics service
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Dict

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import get_settings
from .routes import analytics

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan management."""
    logger.info(f"Starting {settings.app_name} analytics service v{settings.app_version}...")
    logger.info(
        f"Analytics defaults: entropy window={settings.entropy_velocity_window}, "
        f"momentum window={settings.momentum_window}, industry prior={settings.default_industry}"
    )
    yield
    logger.info(f"Shutting down {settings.app_name} analytics service...")


app = FastAPI(
    title=f"{settings.app_name} Analytics API",
    description="Compliance Entropy Index, risk momentum, Bayesian risk and cascade risk analytics",
    version=settings.app_version,
    debug=settings.debug,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)

app.include_router(analytics.router, prefix="/api")


@app.get("/health")
async def health_check() -> Dict[str, str]:
    """Liveness probe."""
    return {"status": "healthy", "version": settings.app_version}


if __name__ == "__main__":
    uvicorn.run("app.main:app", host="0.0.0.0", port=8000, log_level=settings.log_level.lower())
