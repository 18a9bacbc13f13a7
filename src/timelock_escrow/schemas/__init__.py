"""Pydantic API schemas."""

from timelock_escrow.schemas.agreement import (
    AgreementEventResponse,
    AgreementResponse,
    AgreementStatusResponse,
    AllowanceResponse,
    ApproveRequest,
    AssetResponse,
    BalanceResponse,
    CreateAgreementRequest,
    HealthResponse,
    SettleAgreementRequest,
    TransferRequest,
    WithdrawRequest,
)

__all__ = [
    "AgreementEventResponse",
    "AgreementResponse",
    "AgreementStatusResponse",
    "AllowanceResponse",
    "ApproveRequest",
    "AssetResponse",
    "BalanceResponse",
    "CreateAgreementRequest",
    "HealthResponse",
    "SettleAgreementRequest",
    "TransferRequest",
    "WithdrawRequest",
]
