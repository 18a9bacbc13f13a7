"""Health check endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from timelock_escrow import __version__
from timelock_escrow.api.deps import get_agreement_service
from timelock_escrow.schemas.agreement import HealthResponse
from timelock_escrow.services.agreement_service import AgreementService

router = APIRouter(tags=["Health"])


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Returns the service status, the current clock reading and registry sizes.",
)
async def health_check(
    service: AgreementService = Depends(get_agreement_service),
) -> HealthResponse:
    return HealthResponse(
        status="ok",
        version=__version__,
        now=service.clock.now(),
        agreements=service.count_agreements(),
        assets=[ledger.symbol for ledger in service.list_assets()],
    )
