"""Domain layer: the agreement state machine and its collaborator protocols."""

from timelock_escrow.domain.agreement import (
    AgreementEvent,
    AgreementRecord,
    AgreementSnapshot,
    EscrowAgreement,
)
from timelock_escrow.domain.collaborators import (
    ZERO_ADDRESS,
    AssetLedger,
    Clock,
    normalize_address,
)
from timelock_escrow.domain.enums import AgreementStage, EventType
from timelock_escrow.domain.exceptions import (
    AgreementNotFoundError,
    AlreadySettledError,
    EscrowError,
    InvalidAmountError,
    InvalidAssetError,
    InvalidPeriodError,
    InvalidSellerError,
    InvalidStageError,
    LedgerError,
    TooEarlyError,
    TransferFailedError,
    UnauthorizedError,
)
from timelock_escrow.domain.state_machine import AgreementStageMachine, validate_transition

__all__ = [
    "AgreementEvent",
    "AgreementRecord",
    "AgreementSnapshot",
    "EscrowAgreement",
    "ZERO_ADDRESS",
    "AssetLedger",
    "Clock",
    "normalize_address",
    "AgreementStage",
    "EventType",
    "AgreementNotFoundError",
    "AlreadySettledError",
    "EscrowError",
    "InvalidAmountError",
    "InvalidAssetError",
    "InvalidPeriodError",
    "InvalidSellerError",
    "InvalidStageError",
    "LedgerError",
    "TooEarlyError",
    "TransferFailedError",
    "UnauthorizedError",
    "AgreementStageMachine",
    "validate_transition",
]
