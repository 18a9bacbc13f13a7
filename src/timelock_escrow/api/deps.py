"""FastAPI dependency providers.

The application factory stores the AgreementService on ``app.state``; route
handlers receive it through Depends() so tests can build an app around a
ManualClock.
"""

from __future__ import annotations

from fastapi import Request

from timelock_escrow.config import Settings, get_settings
from timelock_escrow.services.agreement_service import AgreementService


def get_agreement_service(request: Request) -> AgreementService:
    """Provide the AgreementService bound to the running application."""
    return request.app.state.agreement_service


def get_app_settings() -> Settings:
    """Provide the application settings."""
    return get_settings()
