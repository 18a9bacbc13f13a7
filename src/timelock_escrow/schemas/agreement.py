"""Pydantic schemas for the escrow API.

Request schemas check address shape only. Zero addresses, zero periods and
zero amounts pass through so the agreement reports them with its own error
codes.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from timelock_escrow.domain.agreement import AgreementEvent, AgreementSnapshot
    from timelock_escrow.infrastructure.token import TokenLedger

ADDRESS_PATTERN = r"^0x[0-9a-fA-F]{40}$"


def _address_field(description: str) -> Any:
    return Field(
        ...,
        pattern=ADDRESS_PATTERN,
        description=description,
        examples=["0x70997970c51812dc3a010c7d01b50e0d17dc79c8"],
    )


# ---------------------------------------------------------------------------
# Request Schemas
# ---------------------------------------------------------------------------


class CreateAgreementRequest(BaseModel):
    """Optional body for creating an agreement."""

    custody_address: str | None = Field(
        default=None,
        pattern=ADDRESS_PATTERN,
        description="Custody account for the deposit; generated when omitted",
    )


class SettleAgreementRequest(BaseModel):
    """Request body for settling an agreement (the caller becomes the buyer)."""

    caller: str = _address_field("Address of the buyer settling the agreement")
    seller: str = _address_field("Address allowed to withdraw after unlock")
    period_seconds: int = Field(
        ...,
        description="Lock period in seconds, counted from settlement",
        examples=[432000],
    )
    amount: int = Field(
        ...,
        description="Deposit in token base units",
        examples=[500000 * 10**18],
    )
    asset_symbol: str | None = Field(
        default=None,
        description="Symbol of a registered token ledger",
        examples=["EKT"],
    )


class WithdrawRequest(BaseModel):
    caller: str = _address_field("Address attempting the withdrawal")


class TransferRequest(BaseModel):
    caller: str = _address_field("Sender of the tokens")
    to: str = _address_field("Recipient of the tokens")
    amount: int = Field(..., ge=0, description="Amount in base units")


class ApproveRequest(BaseModel):
    caller: str = _address_field("Owner granting the allowance")
    spender: str = _address_field("Spender, usually an agreement's custody address")
    amount: int = Field(..., ge=0, description="Allowance in base units")


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------


class AgreementResponse(BaseModel):
    """Every observer of an agreement."""

    agreement_id: str
    custody_address: str
    stage: str
    stage_index: int = Field(description="0 = CREATED, 1 = SETTLED, 2 = WITHDRAWN")
    buyer: str
    seller: str
    unlock_timestamp: int
    deposit_amount: int
    asset_symbol: str | None

    @classmethod
    def from_snapshot(cls, snapshot: AgreementSnapshot) -> AgreementResponse:
        return cls(**snapshot.to_dict(), stage_index=snapshot.stage.ordinal)


class AgreementStatusResponse(BaseModel):
    """Lightweight status check."""

    agreement_id: str
    stage: str
    allowed_events: list[str] = Field(
        description="Stage events that can fire next (caller and time checks still apply)"
    )
    unlock_timestamp: int
    seconds_until_unlock: int | None
    now: int


class AgreementEventResponse(BaseModel):
    event_type: str
    old_stage: str | None
    new_stage: str
    actor: str
    timestamp: int
    metadata: dict[str, Any]

    @classmethod
    def from_event(cls, event: AgreementEvent) -> AgreementEventResponse:
        return cls(**event.to_dict())


class AssetResponse(BaseModel):
    name: str
    symbol: str
    decimals: int
    total_supply: int

    @classmethod
    def from_ledger(cls, ledger: TokenLedger) -> AssetResponse:
        return cls(
            name=ledger.name,
            symbol=ledger.symbol,
            decimals=ledger.decimals,
            total_supply=ledger.total_supply,
        )


class BalanceResponse(BaseModel):
    symbol: str
    address: str
    balance: int
    formatted: str = Field(description="Balance scaled by the token's decimals")


class AllowanceResponse(BaseModel):
    symbol: str
    owner: str
    spender: str
    allowance: int


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str = "0.1.0"
    now: int
    agreements: int
    assets: list[str]
