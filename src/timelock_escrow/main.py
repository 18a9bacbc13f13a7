"""FastAPI application entry point for the time-locked escrow service.

Lifecycle:
    1. create_app(): builds the clock, deploys the configured token and wires
       the AgreementService onto ``app.state``.
    2. Startup: configures structured logging.
    3. Running: serves the REST API.

Run with:
    uvicorn timelock_escrow.main:app --reload --host 0.0.0.0 --port 8000
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI

from timelock_escrow import __version__
from timelock_escrow.config import Settings, get_settings
from timelock_escrow.logging_config import get_logger, setup_logging_from_settings

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from timelock_escrow.domain.collaborators import Clock


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Manage application startup and shutdown lifecycle."""
    settings: Settings = app.state.settings
    setup_logging_from_settings(settings)
    logger = get_logger(__name__)
    logger.info(
        "app.started",
        env=settings.app_env,
        clock_mode=settings.clock_mode,
        host=settings.app_host,
        port=settings.app_port,
    )

    yield

    logger.info(
        "app.stopped",
        agreements=app.state.agreement_service.count_agreements(),
    )


def create_app(settings: Settings | None = None, clock: Clock | None = None) -> FastAPI:
    """Application factory: creates and configures the FastAPI app.

    Args:
        settings: Overrides the cached environment settings.
        clock: Overrides the clock selected by ``settings.clock_mode``.
    """
    from timelock_escrow.infrastructure.clock import build_clock
    from timelock_escrow.infrastructure.token import deploy_token
    from timelock_escrow.services.agreement_service import AgreementService

    settings = settings or get_settings()

    app = FastAPI(
        title="Time-Locked Escrow",
        description=(
            "Two-party token escrow: the buyer settles once, "
            "the seller withdraws after the unlock time."
        ),
        version=__version__,
        lifespan=lifespan,
        debug=settings.app_debug,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
    )

    service = AgreementService(clock=clock if clock is not None else build_clock(settings))
    service.register_asset(deploy_token(settings))
    app.state.settings = settings
    app.state.agreement_service = service

    # --- Middleware ---
    from timelock_escrow.api.middleware import setup_middleware

    setup_middleware(app)

    # --- REST API Routes ---
    from timelock_escrow.api.routes.agreements import router as agreements_router
    from timelock_escrow.api.routes.assets import router as assets_router
    from timelock_escrow.api.routes.health import router as health_router

    app.include_router(health_router)
    app.include_router(agreements_router)
    app.include_router(assets_router)

    return app


# The app instance used by Uvicorn
app = create_app()
