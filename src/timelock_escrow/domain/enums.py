"""Domain enumerations for the time-locked escrow.

Framework-agnostic: no FastAPI or pydantic imports here.
"""

import enum


class AgreementStage(enum.StrEnum):
    """Lifecycle stages of an escrow agreement.

    Stages only ever advance CREATED -> SETTLED -> WITHDRAWN.
    See domain/state_machine.py for the transition table.
    """

    CREATED = "CREATED"
    SETTLED = "SETTLED"
    WITHDRAWN = "WITHDRAWN"

    @property
    def ordinal(self) -> int:
        """Numeric position of the stage (0, 1, 2), as exposed by on-chain observers."""
        return list(AgreementStage).index(self)


class EventType(enum.StrEnum):
    """Entries of an agreement's append-only event trail.

    Every stage change produces exactly one event.
    """

    AGREEMENT_CREATED = "AGREEMENT_CREATED"
    AGREEMENT_SETTLED = "AGREEMENT_SETTLED"
    FUNDS_WITHDRAWN = "FUNDS_WITHDRAWN"
