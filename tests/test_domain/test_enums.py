"""Tests for domain enumerations."""

from __future__ import annotations

from timelock_escrow.domain.enums import AgreementStage, EventType


class TestAgreementStage:
    def test_all_stages_exist(self) -> None:
        assert {s.value for s in AgreementStage} == {"CREATED", "SETTLED", "WITHDRAWN"}

    def test_stage_is_str_enum(self) -> None:
        assert isinstance(AgreementStage.SETTLED, str)
        assert AgreementStage.SETTLED == "SETTLED"

    def test_ordinals_match_declaration_order(self) -> None:
        assert AgreementStage.CREATED.ordinal == 0
        assert AgreementStage.SETTLED.ordinal == 1
        assert AgreementStage.WITHDRAWN.ordinal == 2


class TestEventType:
    def test_one_event_per_stage(self) -> None:
        assert len(EventType) == len(AgreementStage)

    def test_event_type_is_str_enum(self) -> None:
        assert EventType.FUNDS_WITHDRAWN == "FUNDS_WITHDRAWN"
