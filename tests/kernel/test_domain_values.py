"""Pure kernel domain helpers: money formatting, clocks, workflow lookups."""

from datetime import datetime, timedelta, timezone

import pytest

from supply_kernel.domain.clock import DeterministicClock
from supply_kernel.domain.money import format_cents
from supply_kernel.domain.workflow import Transition, Workflow


class TestFormatCents:

    @pytest.mark.parametrize(
        "cents, expected",
        [
            (0, "$0.00"),
            (5, "$0.05"),
            (499_999, "$4,999.99"),
            (500_000, "$5,000.00"),
            (-5, "-$0.05"),
        ],
    )
    def test_formats(self, cents, expected):
        assert format_cents(cents) == expected

    def test_rejects_float(self):
        with pytest.raises(TypeError):
            format_cents(1.5)


class TestDeterministicClock:

    def test_fixed_until_advanced(self):
        start = datetime(2026, 10, 31, 23, 59, 59, tzinfo=timezone.utc)
        clock = DeterministicClock(start)
        assert clock.now() == clock.now() == start
        assert clock.tick() == start + timedelta(seconds=1)
        assert clock.now_utc().month == 11

    def test_set_time_resets_offset(self):
        clock = DeterministicClock()
        clock.advance(60)
        target = datetime(2027, 1, 1, tzinfo=timezone.utc)
        clock.set_time(target)
        assert clock.now() == target


class TestWorkflowLookups:

    WORKFLOW = Workflow(
        name="toy",
        description="",
        initial_state="a",
        states=("a", "b", "c"),
        transitions=(
            Transition("a", "b", "go"),
            Transition("a", "c", "go", event_type="went_far"),
            Transition("b", "c", "go"),
            Transition("b", "a", "back"),
        ),
        terminal_states=("c",),
    )

    def test_transitions_for(self):
        assert {t.to_state for t in self.WORKFLOW.transitions_for("a", "go")} == {"b", "c"}
        assert self.WORKFLOW.transitions_for("c", "go") == ()

    def test_sources_for_in_declaration_order(self):
        assert self.WORKFLOW.sources_for("go") == ("a", "b")

    def test_recorded_as_defaults_to_action(self):
        first, second = self.WORKFLOW.transitions_for("a", "go")
        assert first.recorded_as == "go"
        assert second.recorded_as == "went_far"

    def test_actions(self):
        assert self.WORKFLOW.actions() == ("go", "back")
