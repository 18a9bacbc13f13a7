"""Escrow agreement: custody record plus the settle/withdraw state machine.

An agreement is created empty (stage CREATED, every field at its sentinel).
``settle`` fixes the parties and terms and pulls the deposit into the
agreement's custody account; ``withdraw`` lets the seller take the deposit
once the unlock timestamp has passed. Each instance settles at most once and
pays out at most once.

Ordering inside both operations:
    1. every precondition is checked, first failure aborts with no effect
    2. the record is moved to its post-operation state
    3. the ledger is asked to move the funds
    4. if the ledger call fails, the record is restored and the error raised

Step 2 happening before step 3 means a ledger that calls back into the
agreement only ever sees the advanced stage. Readers on other threads take
the same lock, so they only ever see committed state.
"""

from __future__ import annotations

import threading
import uuid
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any

import structlog
from statemachine.exceptions import TransitionNotAllowed

from timelock_escrow.domain.collaborators import (
    ZERO_ADDRESS,
    AssetLedger,
    is_unset,
    normalize_address,
)
from timelock_escrow.domain.enums import AgreementStage, EventType
from timelock_escrow.domain.exceptions import (
    AlreadySettledError,
    EscrowError,
    InvalidAmountError,
    InvalidAssetError,
    InvalidPeriodError,
    InvalidSellerError,
    InvalidStageError,
    InvalidStateTransitionError,
    LedgerError,
    TooEarlyError,
    TransferFailedError,
    UnauthorizedError,
)
from timelock_escrow.domain.state_machine import AgreementStageMachine, validate_transition
from timelock_escrow.logging_config import get_logger

if TYPE_CHECKING:
    from collections.abc import Callable

    from timelock_escrow.domain.collaborators import Clock

logger = get_logger(__name__)


def generate_address() -> str:
    """Return a random 20-byte hex address for a custody account."""
    return "0x" + uuid.uuid4().hex + uuid.uuid4().hex[:8]


def _is_positive_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


@dataclass
class AgreementRecord:
    """The custody record. Only EscrowAgreement writes to it."""

    stage: AgreementStage = AgreementStage.CREATED
    buyer: str = ZERO_ADDRESS
    seller: str = ZERO_ADDRESS
    unlock_timestamp: int = 0
    deposit_amount: int = 0
    asset: AssetLedger | None = None

    def invariant_violations(self) -> list[str]:
        """Describe every record invariant that does not currently hold."""
        problems = []
        if (self.deposit_amount > 0) != (self.stage is AgreementStage.SETTLED):
            problems.append(
                f"deposit_amount={self.deposit_amount} inconsistent with stage {self.stage}"
            )
        if self.stage is AgreementStage.CREATED:
            if not (is_unset(self.buyer) and is_unset(self.seller)):
                problems.append("parties set before settlement")
            if self.unlock_timestamp != 0 or self.asset is not None:
                problems.append("terms set before settlement")
        else:
            if is_unset(self.buyer) or is_unset(self.seller):
                problems.append("party unset after settlement")
            if self.buyer == self.seller:
                problems.append("buyer and seller are the same identity")
            if self.asset is None:
                problems.append("asset unset after settlement")
        return problems


@dataclass(frozen=True)
class AgreementEvent:
    """One entry of the append-only event trail."""

    event_type: EventType
    old_stage: AgreementStage | None
    new_stage: AgreementStage
    actor: str
    timestamp: int
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "event_type": self.event_type.value,
            "old_stage": self.old_stage.value if self.old_stage else None,
            "new_stage": self.new_stage.value,
            "actor": self.actor,
            "timestamp": self.timestamp,
            "metadata": dict(self.metadata),
        }


@dataclass(frozen=True)
class AgreementSnapshot:
    """Read-only copy of every observer, taken at one instant."""

    agreement_id: str
    custody_address: str
    stage: AgreementStage
    buyer: str
    seller: str
    unlock_timestamp: int
    deposit_amount: int
    asset_symbol: str | None

    def to_dict(self) -> dict[str, Any]:
        return {
            "agreement_id": self.agreement_id,
            "custody_address": self.custody_address,
            "stage": self.stage.value,
            "buyer": self.buyer,
            "seller": self.seller,
            "unlock_timestamp": self.unlock_timestamp,
            "deposit_amount": self.deposit_amount,
            "asset_symbol": self.asset_symbol,
        }


class EscrowAgreement:
    """Two-party time-locked escrow over a single fungible asset.

    Args:
        clock: Source of the current timestamp.
        custody_address: Ledger account holding the deposit. A random one is
            generated when omitted.
        agreement_id: Identifier used in logs and by the repositories.
    """

    def __init__(
        self,
        clock: Clock,
        custody_address: str | None = None,
        agreement_id: str | None = None,
    ) -> None:
        self.agreement_id = agreement_id or str(uuid.uuid4())
        self.custody_address = (
            normalize_address(custody_address) if custody_address else generate_address()
        )
        self._clock = clock
        self._record = AgreementRecord()
        self._events: list[AgreementEvent] = []
        self._lock = threading.RLock()

        self._append_event(
            EventType.AGREEMENT_CREATED,
            old_stage=None,
            actor=self.custody_address,
        )

    # ------------------------------------------------------------------
    # Observers
    # ------------------------------------------------------------------
    # Every read takes the instance lock, so other threads never see the
    # provisional state an in-flight operation may still roll back.

    @property
    def stage(self) -> AgreementStage:
        with self._lock:
            return self._record.stage

    @property
    def buyer(self) -> str:
        with self._lock:
            return self._record.buyer

    @property
    def seller(self) -> str:
        with self._lock:
            return self._record.seller

    @property
    def unlock_timestamp(self) -> int:
        with self._lock:
            return self._record.unlock_timestamp

    @property
    def deposit_amount(self) -> int:
        with self._lock:
            return self._record.deposit_amount

    @property
    def asset(self) -> AssetLedger | None:
        with self._lock:
            return self._record.asset

    @property
    def record(self) -> AgreementRecord:
        """A copy of the custody record."""
        with self._lock:
            return replace(self._record)

    @property
    def events(self) -> tuple[AgreementEvent, ...]:
        with self._lock:
            return tuple(self._events)

    def snapshot(self) -> AgreementSnapshot:
        with self._lock:
            record = self._record
            return AgreementSnapshot(
                agreement_id=self.agreement_id,
                custody_address=self.custody_address,
                stage=record.stage,
                buyer=record.buyer,
                seller=record.seller,
                unlock_timestamp=record.unlock_timestamp,
                deposit_amount=record.deposit_amount,
                asset_symbol=getattr(record.asset, "symbol", None),
            )

    def allowed_events(self) -> list[str]:
        """Stage events that could fire next, ignoring caller and time checks."""
        return AgreementStageMachine(current_stage=self.stage).get_allowed_events()

    def seconds_until_unlock(self) -> int | None:
        """Seconds left before withdraw opens; ``None`` unless the agreement is SETTLED."""
        with self._lock:
            if self._record.stage is not AgreementStage.SETTLED:
                return None
            return max(0, self._record.unlock_timestamp - self._clock.now())

    def withdrawable_at(self, now: int) -> bool:
        """Whether the stage and time checks of ``withdraw`` would pass at ``now``."""
        with self._lock:
            record = self._record
            return record.stage is AgreementStage.SETTLED and now >= record.unlock_timestamp

    # ------------------------------------------------------------------
    # Settlement
    # ------------------------------------------------------------------

    def settle(
        self,
        seller: str,
        period_seconds: int,
        amount: int,
        asset: AssetLedger | None,
        caller: str,
    ) -> None:
        """Fix the agreement terms and pull ``amount`` from ``caller`` into custody.

        Raises:
            AlreadySettledError: The agreement already left CREATED.
            InvalidSellerError: Caller or seller is unset, or they are equal.
            InvalidPeriodError: Period is not a positive integer.
            InvalidAmountError: Amount is not a positive integer.
            InvalidAssetError: ``asset`` is not an AssetLedger.
            TransferFailedError: The ledger refused the pull.
        """
        caller = normalize_address(caller)
        with self._lock, structlog.contextvars.bound_contextvars(agreement_id=self.agreement_id):
            try:
                self._settle(normalize_address(seller), period_seconds, amount, asset, caller)
            except EscrowError as exc:
                logger.warning(
                    "agreement.settle_rejected",
                    code=exc.code,
                    reason=exc.message,
                    caller=caller,
                )
                raise

    def _settle(
        self,
        seller: str,
        period_seconds: int,
        amount: int,
        asset: AssetLedger | None,
        caller: str,
    ) -> None:
        record = self._record
        if record.stage is not AgreementStage.CREATED:
            raise AlreadySettledError(record.stage)
        if is_unset(caller) or is_unset(seller) or seller == caller:
            raise InvalidSellerError(seller)
        if not _is_positive_int(period_seconds):
            raise InvalidPeriodError(period_seconds)
        if not _is_positive_int(amount):
            raise InvalidAmountError(amount)
        if asset is None or not isinstance(asset, AssetLedger):
            raise InvalidAssetError()

        previous = replace(record)
        settled_at = self._clock.now()
        record.buyer = caller
        record.seller = seller
        record.deposit_amount = amount
        record.asset = asset
        record.unlock_timestamp = settled_at + period_seconds
        record.stage = self._advance("settle")

        try:
            self._move_funds(
                asset.pull_into, caller, self.custody_address, amount, direction="pull"
            )
        except EscrowError:
            self._record = previous
            raise

        self._append_event(
            EventType.AGREEMENT_SETTLED,
            old_stage=AgreementStage.CREATED,
            actor=caller,
            metadata={
                "seller": seller,
                "amount": amount,
                "unlock_timestamp": record.unlock_timestamp,
                "asset": getattr(asset, "symbol", None),
            },
        )
        logger.info(
            "agreement.settled",
            buyer=caller,
            seller=seller,
            amount=amount,
            unlock_timestamp=record.unlock_timestamp,
        )

    # ------------------------------------------------------------------
    # Withdrawal
    # ------------------------------------------------------------------

    def withdraw(self, caller: str) -> int:
        """Release the deposit to the seller once the unlock time has passed.

        Returns:
            The amount paid out.

        Raises:
            UnauthorizedError: Caller is not the recorded seller (checked first).
            InvalidStageError: The agreement is not SETTLED.
            TooEarlyError: The unlock timestamp has not been reached.
            TransferFailedError: The ledger refused the payout; nothing changed.
        """
        caller = normalize_address(caller)
        with self._lock, structlog.contextvars.bound_contextvars(agreement_id=self.agreement_id):
            try:
                return self._withdraw(caller)
            except EscrowError as exc:
                logger.warning(
                    "agreement.withdraw_rejected",
                    code=exc.code,
                    reason=exc.message,
                    caller=caller,
                )
                raise

    def _withdraw(self, caller: str) -> int:
        record = self._record
        if is_unset(caller) or caller != record.seller:
            raise UnauthorizedError(caller)
        if record.stage is not AgreementStage.SETTLED:
            raise InvalidStageError(record.stage)
        now = self._clock.now()
        if now < record.unlock_timestamp:
            raise TooEarlyError(now, record.unlock_timestamp)

        amount = record.deposit_amount
        asset = record.asset
        previous = replace(record)
        record.deposit_amount = 0
        record.stage = self._advance("withdraw")

        try:
            self._move_funds(
                asset.push_from, self.custody_address, record.seller, amount, direction="push"
            )
        except EscrowError:
            self._record = previous
            raise

        self._append_event(
            EventType.FUNDS_WITHDRAWN,
            old_stage=AgreementStage.SETTLED,
            actor=caller,
            metadata={"amount": amount},
        )
        logger.info("agreement.withdrawn", seller=caller, amount=amount)
        return amount

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _advance(self, event_name: str) -> AgreementStage:
        current = self._record.stage
        try:
            return AgreementStage(validate_transition(current, event_name))
        except TransitionNotAllowed as err:
            raise InvalidStateTransitionError(current, event_name) from err

    def _move_funds(
        self,
        transfer: Callable[[str, str, int], bool | None],
        source: str,
        target: str,
        amount: int,
        direction: str,
    ) -> None:
        """Run one ledger call, translating every failure into a domain error."""
        try:
            result = transfer(source, target, amount)
        except (AttributeError, TypeError, NotImplementedError) as exc:
            # missing or unusable ledger method
            if direction == "pull":
                raise InvalidAssetError(f"Asset ledger call failed: {exc}") from exc
            raise TransferFailedError(f"Asset ledger call failed: {exc}", direction) from exc
        except LedgerError as exc:
            raise TransferFailedError(exc.message, direction) from exc
        except Exception as exc:
            raise TransferFailedError(f"Asset ledger fault: {exc}", direction) from exc
        if result is False:
            raise TransferFailedError("Asset ledger reported a failed transfer.", direction)

    def _append_event(
        self,
        event_type: EventType,
        old_stage: AgreementStage | None,
        actor: str,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        self._events.append(
            AgreementEvent(
                event_type=event_type,
                old_stage=old_stage,
                new_stage=self._record.stage,
                actor=actor,
                timestamp=self._clock.now(),
                metadata=metadata or {},
            )
        )

    def __repr__(self) -> str:
        return (
            f"<EscrowAgreement id={self.agreement_id} stage={self._record.stage} "
            f"deposit={self._record.deposit_amount}>"
        )
