"""In-memory fungible token ledger.

Balances, allowances and total supply with the usual transfer / approve /
transfer_from semantics. Every mutation validates first and then writes,
under one lock, so a refused call never leaves a partial movement behind.

The ledger satisfies the ``AssetLedger`` protocol through ``pull_into`` and
``push_from``: the escrow's custody account spends the allowance the payer
granted it.
"""

from __future__ import annotations

import threading
from decimal import Decimal, InvalidOperation, localcontext
from typing import TYPE_CHECKING

from timelock_escrow.domain.collaborators import ZERO_ADDRESS, normalize_address
from timelock_escrow.domain.exceptions import (
    InsufficientAllowanceError,
    InsufficientBalanceError,
    InvalidTransferError,
)
from timelock_escrow.logging_config import get_logger

if TYPE_CHECKING:
    from timelock_escrow.config import Settings

logger = get_logger(__name__)

MAX_UINT256 = 2**256 - 1


def parse_units(value: str | int | Decimal, decimals: int = 18) -> int:
    """Convert a human amount ("500000", "0.5") into integer base units.

    Raises:
        ValueError: If the value is not a number or has more fractional
            digits than ``decimals`` allows.
    """
    with localcontext() as ctx:
        ctx.prec = 100
        try:
            scaled = Decimal(str(value)).scaleb(decimals)
        except InvalidOperation as exc:
            raise ValueError(f"Not a decimal amount: {value!r}") from exc
        if scaled != scaled.to_integral_value():
            raise ValueError(f"{value!r} has more than {decimals} decimal places")
        return int(scaled)


def format_units(value: int, decimals: int = 18) -> str:
    """Render integer base units as a plain decimal string."""
    with localcontext() as ctx:
        ctx.prec = 100
        return format(Decimal(value).scaleb(-decimals).normalize(), "f")


def _check_amount(amount: int) -> None:
    if not isinstance(amount, int) or isinstance(amount, bool) or amount < 0:
        raise InvalidTransferError(f"Amount must be a non-negative integer, got {amount!r}")


class TokenLedger:
    """Transferable-balance store for one fungible token."""

    def __init__(self, name: str, symbol: str, decimals: int = 18) -> None:
        self.name = name
        self.symbol = symbol
        self.decimals = decimals
        self._balances: dict[str, int] = {}
        self._allowances: dict[tuple[str, str], int] = {}
        self._total_supply = 0
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @property
    def total_supply(self) -> int:
        return self._total_supply

    def balance_of(self, owner: str) -> int:
        return self._balances.get(normalize_address(owner), 0)

    def allowance(self, owner: str, spender: str) -> int:
        return self._allowances.get((normalize_address(owner), normalize_address(spender)), 0)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def mint(self, to: str, amount: int) -> None:
        to = normalize_address(to)
        _check_amount(amount)
        if to == ZERO_ADDRESS:
            raise InvalidTransferError("ERC20: mint to the zero address")
        with self._lock:
            self._total_supply += amount
            self._balances[to] = self._balances.get(to, 0) + amount
        logger.debug("ledger.mint", symbol=self.symbol, to=to, amount=amount)

    def approve(self, owner: str, spender: str, amount: int) -> bool:
        owner = normalize_address(owner)
        spender = normalize_address(spender)
        _check_amount(amount)
        if owner == ZERO_ADDRESS:
            raise InvalidTransferError("ERC20: approve from the zero address")
        if spender == ZERO_ADDRESS:
            raise InvalidTransferError("ERC20: approve to the zero address")
        with self._lock:
            self._allowances[(owner, spender)] = amount
        logger.debug("ledger.approve", symbol=self.symbol, owner=owner, spender=spender, amount=amount)
        return True

    def transfer(self, sender: str, to: str, amount: int) -> bool:
        with self._lock:
            self._move(normalize_address(sender), normalize_address(to), amount)
        return True

    def transfer_from(self, spender: str, owner: str, to: str, amount: int) -> bool:
        """Move ``amount`` from ``owner`` to ``to`` on ``spender``'s allowance."""
        spender = normalize_address(spender)
        owner = normalize_address(owner)
        _check_amount(amount)
        with self._lock:
            allowed = self._allowances.get((owner, spender), 0)
            if allowed < amount:
                raise InsufficientAllowanceError(owner, spender, amount, allowed)
            self._move(owner, normalize_address(to), amount)
            if allowed != MAX_UINT256:
                self._allowances[(owner, spender)] = allowed - amount
        return True

    # ------------------------------------------------------------------
    # AssetLedger protocol
    # ------------------------------------------------------------------

    def pull_into(self, payer: str, custody: str, amount: int) -> bool:
        return self.transfer_from(custody, payer, custody, amount)

    def push_from(self, custody: str, payee: str, amount: int) -> bool:
        return self.transfer(custody, payee, amount)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _move(self, sender: str, to: str, amount: int) -> None:
        _check_amount(amount)
        if sender == ZERO_ADDRESS:
            raise InvalidTransferError("ERC20: transfer from the zero address")
        if to == ZERO_ADDRESS:
            raise InvalidTransferError("ERC20: transfer to the zero address")
        available = self._balances.get(sender, 0)
        if available < amount:
            raise InsufficientBalanceError(sender, amount, available)
        self._balances[sender] = available - amount
        self._balances[to] = self._balances.get(to, 0) + amount
        logger.debug("ledger.transfer", symbol=self.symbol, sender=sender, to=to, amount=amount)

    def __repr__(self) -> str:
        return f"<TokenLedger {self.symbol} supply={self._total_supply}>"


def deploy_token(settings: Settings) -> TokenLedger:
    """Create the configured token and mint its initial supply to the deployer."""
    ledger = TokenLedger(settings.token_name, settings.token_symbol, settings.token_decimals)
    supply = parse_units(settings.token_initial_supply, settings.token_decimals)
    ledger.mint(settings.deployer_address, supply)
    logger.info(
        "ledger.deployed",
        symbol=ledger.symbol,
        deployer=normalize_address(settings.deployer_address),
        supply=supply,
    )
    return ledger
