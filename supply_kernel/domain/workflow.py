"""
Canonical workflow types (``supply_kernel.domain.workflow``).

Responsibility
--------------
Pure value objects for workflow state machines, defined once so module
workflows (the purchase order lifecycle) and their executors share them.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.  No imports
from ``db/``, ``services/``, ``selectors/``, or outer layers.

Invariants enforced
-------------------
* Transitions reference only states in ``Workflow.states``.
* ``initial_state`` is a member of ``states``.
* A self-loop transition (``from_state == to_state``) records an event and
  bumps the document version without changing its status.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Guard:
    """A condition that must be satisfied before a transition fires.

    Contract: frozen, descriptive only.
    Non-goals: does not evaluate the condition -- the executor does.
    """
    name: str
    description: str


@dataclass(frozen=True)
class Transition:
    """A valid state transition in a workflow.

    ``event_type`` is the audit event appended when the transition fires;
    it defaults to the action name.
    """
    from_state: str
    to_state: str
    action: str
    guard: Guard | None = None
    event_type: str | None = None

    @property
    def recorded_as(self) -> str:
        return self.event_type or self.action


@dataclass(frozen=True)
class Workflow:
    """A state machine definition for a document lifecycle.

    Contract: frozen; ``transitions`` reference only states in ``states``.
    ``terminal_states`` are states with no outgoing transitions.
    """
    name: str
    description: str
    initial_state: str
    states: tuple[str, ...]
    transitions: tuple[Transition, ...]
    terminal_states: tuple[str, ...] = ()

    def transitions_for(self, from_state: str, action: str) -> tuple[Transition, ...]:
        """All transitions ``action`` may take out of ``from_state`` (possibly none)."""
        return tuple(
            t for t in self.transitions
            if t.from_state == from_state and t.action == action
        )

    def sources_for(self, action: str) -> tuple[str, ...]:
        """States from which ``action`` is legal, in declaration order."""
        seen: list[str] = []
        for t in self.transitions:
            if t.action == action and t.from_state not in seen:
                seen.append(t.from_state)
        return tuple(seen)

    def actions(self) -> tuple[str, ...]:
        seen: list[str] = []
        for t in self.transitions:
            if t.action not in seen:
                seen.append(t.action)
        return tuple(seen)
