"""Collaborator protocols consumed by the escrow agreement.

These are Protocols (structural subtyping): a ledger or clock only has to
match the shape, not inherit from anything. The domain layer never imports
a concrete implementation; see infrastructure/ for the in-memory ones.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


def normalize_address(identity: str | None) -> str:
    """Lowercase an identity, mapping ``None`` and ``""`` to the zero address."""
    if not identity:
        return ZERO_ADDRESS
    return identity.lower()


def is_unset(identity: str | None) -> bool:
    return normalize_address(identity) == ZERO_ADDRESS


@runtime_checkable
class AssetLedger(Protocol):
    """Transferable-balance store the agreement moves custody through.

    Both methods either succeed (return ``None`` or ``True``) or fail by
    raising ``LedgerError`` / returning ``False``. A failed call must not
    have moved any balance.
    """

    def pull_into(self, payer: str, custody: str, amount: int) -> bool | None:
        """Move ``amount`` from ``payer`` into ``custody`` using ``custody``'s allowance."""
        ...

    def push_from(self, custody: str, payee: str, amount: int) -> bool | None:
        """Move ``amount`` out of ``custody`` to ``payee``."""
        ...


@runtime_checkable
class Clock(Protocol):
    """Source of non-decreasing integer timestamps (seconds since epoch)."""

    def now(self) -> int: ...
