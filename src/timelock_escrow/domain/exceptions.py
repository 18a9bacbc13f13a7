"""Domain exceptions for the time-locked escrow.

Every failure is a synchronous rejection carrying a stable ``code``. The API
layer's middleware translates them to HTTP responses; nothing in the domain
catches and discards them.
"""


class EscrowError(Exception):
    """Base exception for all domain errors."""

    def __init__(self, message: str, code: str = "ESCROW_ERROR") -> None:
        self.message = message
        self.code = code
        super().__init__(self.message)


# --- Settlement Errors ---


class AlreadySettledError(EscrowError):
    """Raised when settle is called on an agreement that left CREATED."""

    def __init__(self, stage: str) -> None:
        super().__init__(message="Agreement already settled.", code="ALREADY_SETTLED")
        self.stage = stage


class InvalidSellerError(EscrowError):
    """Raised when the seller is unset or is the caller itself."""

    def __init__(self, seller: str | None) -> None:
        super().__init__(message="Invalid seller address.", code="INVALID_SELLER")
        self.seller = seller


class InvalidPeriodError(EscrowError):
    def __init__(self, period_seconds: int) -> None:
        super().__init__(message="Invalid time period.", code="INVALID_PERIOD")
        self.period_seconds = period_seconds


class InvalidAmountError(EscrowError):
    def __init__(self, amount: int) -> None:
        super().__init__(
            message="Deposited token amount should be greater than 0.",
            code="INVALID_AMOUNT",
        )
        self.amount = amount


class InvalidAssetError(EscrowError):
    """Raised when the asset reference is not a usable ledger."""

    def __init__(self, reason: str = "Asset reference is not a token ledger.") -> None:
        super().__init__(message=reason, code="INVALID_ASSET")


class TransferFailedError(EscrowError):
    """Raised when the ledger rejects a pull into or push out of custody."""

    def __init__(self, message: str, direction: str) -> None:
        super().__init__(message=message, code="TRANSFER_FAILED")
        self.direction = direction


# --- Withdrawal Errors ---


class UnauthorizedError(EscrowError):
    def __init__(self, caller: str | None) -> None:
        super().__init__(
            message="Only seller address can call this function.",
            code="UNAUTHORIZED",
        )
        self.caller = caller


class InvalidStageError(EscrowError):
    def __init__(self, stage: str) -> None:
        super().__init__(message="Withdraw not allowed in this stage", code="INVALID_STAGE")
        self.stage = stage


class TooEarlyError(EscrowError):
    """Raised when withdraw is attempted before the unlock timestamp."""

    def __init__(self, now: int, unlock_timestamp: int) -> None:
        super().__init__(message="Withdraw not enabled yet.", code="TOO_EARLY")
        self.now = now
        self.unlock_timestamp = unlock_timestamp

    @property
    def seconds_remaining(self) -> int:
        return self.unlock_timestamp - self.now


# --- State Machine Errors ---


class InvalidStateTransitionError(EscrowError):
    """Raised when the stage guard refuses a transition.

    The agreement checks its stage before firing, so seeing this means the
    record and the guard disagree.
    """

    def __init__(self, current_stage: str, attempted_event: str) -> None:
        super().__init__(
            message=f"Invalid stage transition: {current_stage} -/-> {attempted_event}",
            code="INVALID_STATE_TRANSITION",
        )
        self.current_stage = current_stage
        self.attempted_event = attempted_event


# --- Lookup Errors ---


class AgreementNotFoundError(EscrowError):
    def __init__(self, agreement_id: str) -> None:
        super().__init__(
            message=f"Agreement not found: {agreement_id}",
            code="AGREEMENT_NOT_FOUND",
        )
        self.agreement_id = agreement_id


class AssetNotFoundError(EscrowError):
    def __init__(self, symbol: str) -> None:
        super().__init__(message=f"Asset not found: {symbol}", code="ASSET_NOT_FOUND")
        self.symbol = symbol


# --- Ledger Errors ---


class LedgerError(EscrowError):
    """Raised by a token ledger when a balance movement is refused."""

    def __init__(self, message: str, code: str = "LEDGER_ERROR") -> None:
        super().__init__(message=message, code=code)


class InsufficientBalanceError(LedgerError):
    def __init__(self, owner: str, required: int, available: int) -> None:
        super().__init__(
            message="ERC20: transfer amount exceeds balance",
            code="INSUFFICIENT_BALANCE",
        )
        self.owner = owner
        self.required = required
        self.available = available


class InsufficientAllowanceError(LedgerError):
    def __init__(self, owner: str, spender: str, required: int, available: int) -> None:
        super().__init__(
            message="ERC20: insufficient allowance",
            code="INSUFFICIENT_ALLOWANCE",
        )
        self.owner = owner
        self.spender = spender
        self.required = required
        self.available = available


class InvalidTransferError(LedgerError):
    """Raised for transfers from/to the zero address or with a negative amount."""

    def __init__(self, message: str) -> None:
        super().__init__(message=message, code="INVALID_TRANSFER")
