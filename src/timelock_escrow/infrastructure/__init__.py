"""Infrastructure: in-memory token ledger, clocks and repositories."""

from timelock_escrow.infrastructure.clock import ManualClock, SystemClock, build_clock
from timelock_escrow.infrastructure.repositories import AgreementRepository, AssetRepository
from timelock_escrow.infrastructure.token import (
    TokenLedger,
    deploy_token,
    format_units,
    parse_units,
)

__all__ = [
    "ManualClock",
    "SystemClock",
    "build_clock",
    "AgreementRepository",
    "AssetRepository",
    "TokenLedger",
    "deploy_token",
    "format_units",
    "parse_units",
]
