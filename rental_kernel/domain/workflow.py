"""
Workflow -- declarative status machines for domain records.

Each domain module declares one ``Workflow`` per stateful entity.  Rule
modules and domain services consult it before changing a status:
``workflow.is_terminal(state)`` blocks any automated move out of a
terminal state, and ``workflow.allows(from_state, to_state)`` rejects
transitions that are not declared.

Pure data; zero I/O.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


def _state(value: str | Enum) -> str:
    return value.value if isinstance(value, Enum) else value


@dataclass(frozen=True)
class Guard:
    """A condition that must hold before a transition fires (descriptive)."""

    name: str
    description: str


@dataclass(frozen=True)
class Transition:
    """A valid state transition."""

    from_state: str
    to_state: str
    action: str
    guard: Guard | None = None


@dataclass(frozen=True)
class Workflow:
    """A state machine definition for one entity type.

    Contract: ``transitions`` reference only states in ``states``;
    ``terminal_states`` have no outgoing transitions.
    """

    name: str
    description: str
    initial_state: str
    states: tuple[str, ...]
    transitions: tuple[Transition, ...]
    terminal_states: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if self.initial_state not in self.states:
            raise ValueError(f"{self.name}: unknown initial state {self.initial_state}")
        for t in self.transitions:
            if t.from_state not in self.states or t.to_state not in self.states:
                raise ValueError(
                    f"{self.name}: transition {t.action} references unknown state"
                )
            if t.from_state in self.terminal_states:
                raise ValueError(
                    f"{self.name}: terminal state {t.from_state} has outgoing "
                    f"transition {t.action}"
                )

    def is_terminal(self, state: str | Enum) -> bool:
        return _state(state) in self.terminal_states

    def allows(self, from_state: str | Enum, to_state: str | Enum) -> bool:
        src, dst = _state(from_state), _state(to_state)
        return any(
            t.from_state == src and t.to_state == dst for t in self.transitions
        )

    def transition_for(
        self, from_state: str | Enum, to_state: str | Enum,
    ) -> Transition | None:
        src, dst = _state(from_state), _state(to_state)
        for t in self.transitions:
            if t.from_state == src and t.to_state == dst:
                return t
        return None
