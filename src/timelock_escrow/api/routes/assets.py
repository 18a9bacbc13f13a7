"""Token ledger REST API routes.

Buyers need these to fund themselves and approve an agreement's custody
address before settling.

Routes:
    GET    /api/v1/assets/{symbol}
    GET    /api/v1/assets/{symbol}/balances/{address}
    GET    /api/v1/assets/{symbol}/allowances/{owner}/{spender}
    POST   /api/v1/assets/{symbol}/transfer
    POST   /api/v1/assets/{symbol}/approve
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from timelock_escrow.api.deps import get_agreement_service
from timelock_escrow.domain.collaborators import normalize_address
from timelock_escrow.infrastructure.token import format_units
from timelock_escrow.schemas.agreement import (
    AllowanceResponse,
    ApproveRequest,
    AssetResponse,
    BalanceResponse,
    TransferRequest,
)
from timelock_escrow.services.agreement_service import AgreementService

router = APIRouter(prefix="/api/v1/assets", tags=["Assets"])


def _balance(service: AgreementService, symbol: str, address: str) -> BalanceResponse:
    ledger = service.get_asset(symbol)
    balance = ledger.balance_of(address)
    return BalanceResponse(
        symbol=ledger.symbol,
        address=normalize_address(address),
        balance=balance,
        formatted=format_units(balance, ledger.decimals),
    )


@router.get("/{symbol}", response_model=AssetResponse, summary="Get token metadata")
async def get_asset(
    symbol: str,
    service: AgreementService = Depends(get_agreement_service),
) -> AssetResponse:
    return AssetResponse.from_ledger(service.get_asset(symbol))


@router.get(
    "/{symbol}/balances/{address}",
    response_model=BalanceResponse,
    summary="Get a balance",
)
async def get_balance(
    symbol: str,
    address: str,
    service: AgreementService = Depends(get_agreement_service),
) -> BalanceResponse:
    return _balance(service, symbol, address)


@router.get(
    "/{symbol}/allowances/{owner}/{spender}",
    response_model=AllowanceResponse,
    summary="Get an allowance",
)
async def get_allowance(
    symbol: str,
    owner: str,
    spender: str,
    service: AgreementService = Depends(get_agreement_service),
) -> AllowanceResponse:
    return AllowanceResponse(
        symbol=service.get_asset(symbol).symbol,
        owner=normalize_address(owner),
        spender=normalize_address(spender),
        allowance=service.allowance(symbol, owner, spender),
    )


@router.post(
    "/{symbol}/transfer",
    response_model=BalanceResponse,
    summary="Transfer tokens",
)
async def transfer(
    symbol: str,
    request: TransferRequest,
    service: AgreementService = Depends(get_agreement_service),
) -> BalanceResponse:
    """Move tokens from ``caller`` to ``to``; returns the sender's new balance."""
    service.transfer(symbol, request.caller, request.to, request.amount)
    return _balance(service, symbol, request.caller)


@router.post(
    "/{symbol}/approve",
    response_model=AllowanceResponse,
    summary="Approve a spender",
)
async def approve(
    symbol: str,
    request: ApproveRequest,
    service: AgreementService = Depends(get_agreement_service),
) -> AllowanceResponse:
    service.approve(symbol, request.caller, request.spender, request.amount)
    return AllowanceResponse(
        symbol=service.get_asset(symbol).symbol,
        owner=normalize_address(request.caller),
        spender=normalize_address(request.spender),
        allowance=service.allowance(symbol, request.caller, request.spender),
    )
