"""Smoke test: every simulation scenario runs to completion."""

from __future__ import annotations

import pytest

import simulation


@pytest.mark.parametrize("scenario", sorted(simulation.SCENARIOS))
def test_scenario_passes(scenario, capsys) -> None:
    assert simulation.run(scenario) == 0
    assert "ALL SCENARIOS COMPLETED SUCCESSFULLY" in capsys.readouterr().out


def test_unknown_scenario() -> None:
    assert simulation.run(99) == 2
