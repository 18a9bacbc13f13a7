"""Agreement stage guard.

Uses python-statemachine to enforce the only two legal stage changes. The
agreement builds a throwaway machine from its recorded stage, fires the
event, and stores the resulting stage back on the record.

Transition table:
    CREATED  -> SETTLED    (settle)
    SETTLED  -> WITHDRAWN  (withdraw)
"""

from __future__ import annotations

from statemachine import State, StateMachine

STAGE_EVENTS = ("settle", "withdraw")


class AgreementStageMachine(StateMachine):
    """State machine that guards agreement lifecycle transitions.

    Usage:
        sm = AgreementStageMachine(current_stage="SETTLED")
        sm.withdraw()   # transitions to WITHDRAWN
        sm.stage        # "WITHDRAWN"
    """

    CREATED = State("CREATED", initial=True)
    SETTLED = State("SETTLED")
    WITHDRAWN = State("WITHDRAWN", final=True)

    settle = CREATED.to(SETTLED)
    withdraw = SETTLED.to(WITHDRAWN)

    def __init__(self, current_stage: str = "CREATED") -> None:
        valid_values = {s.value for s in self.states}
        if current_stage not in valid_values:
            valid = ", ".join(sorted(valid_values))
            raise ValueError(f"Unknown stage '{current_stage}'. Valid stages: {valid}")
        super().__init__(start_value=current_stage)

    @property
    def stage(self) -> str:
        return str(self.current_state.value)

    def get_allowed_events(self) -> list[str]:
        """Return the event names that can fire from the current stage."""
        # newer releases keep the identifier on ``id`` and a humanized label on ``name``
        return [getattr(event, "id", None) or event.name for event in self.allowed_events]


def validate_transition(current_stage: str, event_name: str) -> str:
    """Fire ``event_name`` from ``current_stage`` and return the resulting stage.

    Raises:
        TransitionNotAllowed: If the event cannot fire from this stage.
        ValueError: If the stage or event name is unknown.
    """
    sm = AgreementStageMachine(current_stage=current_stage)

    event_method = getattr(sm, event_name, None)
    if event_name not in STAGE_EVENTS or not callable(event_method):
        raise ValueError(
            f"Unknown event '{event_name}'. "
            f"Allowed events from {current_stage}: {sm.get_allowed_events()}"
        )

    event_method()
    return sm.stage
