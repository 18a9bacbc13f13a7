"""Agreement REST API routes.

Routes:
    POST   /api/v1/agreements                 Create a new agreement
    GET    /api/v1/agreements                 List agreements
    GET    /api/v1/agreements/{id}            Observers snapshot
    GET    /api/v1/agreements/{id}/status     Stage and allowed next events
    GET    /api/v1/agreements/{id}/events     Event trail
    POST   /api/v1/agreements/{id}/settle     Settle (caller becomes buyer)
    POST   /api/v1/agreements/{id}/withdraw   Seller withdraws after unlock
"""

from __future__ import annotations

from fastapi import APIRouter, Body, Depends

from timelock_escrow.api.deps import get_agreement_service
from timelock_escrow.schemas.agreement import (
    AgreementEventResponse,
    AgreementResponse,
    AgreementStatusResponse,
    CreateAgreementRequest,
    SettleAgreementRequest,
    WithdrawRequest,
)
from timelock_escrow.services.agreement_service import AgreementService

router = APIRouter(prefix="/api/v1/agreements", tags=["Agreements"])


@router.post(
    "",
    response_model=AgreementResponse,
    status_code=201,
    summary="Create a new escrow agreement",
)
async def create_agreement(
    request: CreateAgreementRequest | None = Body(default=None),
    service: AgreementService = Depends(get_agreement_service),
) -> AgreementResponse:
    """Create an agreement in CREATED stage with every field unset."""
    custody_address = request.custody_address if request else None
    agreement = service.create_agreement(custody_address=custody_address)
    return AgreementResponse.from_snapshot(agreement.snapshot())


@router.get(
    "",
    response_model=list[AgreementResponse],
    summary="List agreements",
)
async def list_agreements(
    party: str | None = None,
    service: AgreementService = Depends(get_agreement_service),
) -> list[AgreementResponse]:
    """List all agreements, optionally only those involving ``party``."""
    return [AgreementResponse.from_snapshot(s) for s in service.list_agreements(party)]


@router.post(
    "/{agreement_id}/settle",
    response_model=AgreementResponse,
    summary="Settle the agreement and pull the deposit into custody",
)
async def settle_agreement(
    agreement_id: str,
    request: SettleAgreementRequest,
    service: AgreementService = Depends(get_agreement_service),
) -> AgreementResponse:
    """Transitions CREATED -> SETTLED. The caller must have approved the custody address."""
    snapshot = service.settle(
        agreement_id=agreement_id,
        caller=request.caller,
        seller=request.seller,
        period_seconds=request.period_seconds,
        amount=request.amount,
        asset_symbol=request.asset_symbol,
    )
    return AgreementResponse.from_snapshot(snapshot)


@router.post(
    "/{agreement_id}/withdraw",
    response_model=AgreementResponse,
    summary="Withdraw the deposit to the seller",
)
async def withdraw(
    agreement_id: str,
    request: WithdrawRequest,
    service: AgreementService = Depends(get_agreement_service),
) -> AgreementResponse:
    """Transitions SETTLED -> WITHDRAWN once the unlock timestamp has passed."""
    snapshot = service.withdraw(agreement_id=agreement_id, caller=request.caller)
    return AgreementResponse.from_snapshot(snapshot)


@router.get(
    "/{agreement_id}",
    response_model=AgreementResponse,
    summary="Get agreement observers",
)
async def get_agreement(
    agreement_id: str,
    service: AgreementService = Depends(get_agreement_service),
) -> AgreementResponse:
    return AgreementResponse.from_snapshot(service.get_agreement(agreement_id))


@router.get(
    "/{agreement_id}/status",
    response_model=AgreementStatusResponse,
    summary="Get lightweight status check",
)
async def get_status(
    agreement_id: str,
    service: AgreementService = Depends(get_agreement_service),
) -> AgreementStatusResponse:
    return AgreementStatusResponse(**service.get_status(agreement_id))


@router.get(
    "/{agreement_id}/events",
    response_model=list[AgreementEventResponse],
    summary="Get event trail",
)
async def get_events(
    agreement_id: str,
    service: AgreementService = Depends(get_agreement_service),
) -> list[AgreementEventResponse]:
    return [AgreementEventResponse.from_event(e) for e in service.get_events(agreement_id)]
