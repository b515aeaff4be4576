"""Domain models for slot assignment and fairness scoring."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Mapping, Optional


DEFAULT_MISSING_PENALTY = 150.0


@dataclass(frozen=True)
class Slot:
    slot_id: str
    start: datetime
    duration_hours: float


@dataclass(frozen=True)
class Client:
    """A party competing for slots.

    `availability` maps slot ids to a declared cost in [0, 100]; a slot that
    is absent from the mapping is unavailable for this client.
    """

    client_id: str
    requested_quota: int
    availability: Mapping[str, float] = field(default_factory=dict)
    score: float = 0.0
    missing_penalty: Optional[float] = None
    last_score_decay: Optional[datetime] = None

    @property
    def effective_missing_penalty(self) -> float:
        if self.missing_penalty is None:
            return DEFAULT_MISSING_PENALTY
        return float(self.missing_penalty)

    def cost_for(self, slot_id: str) -> Optional[float]:
        cost = self.availability.get(slot_id)
        return None if cost is None else float(cost)


@dataclass(frozen=True)
class FixedAssignment:
    slot_id: str
    client_id: str


@dataclass(frozen=True)
class ProposedAssignment:
    slot_id: str
    client_id: str


@dataclass(frozen=True)
class PlanResult:
    assignments: list[ProposedAssignment]
    objective_value: float
    baseline_value: float
    strategy: str
    candidates_evaluated: int


@dataclass(frozen=True)
class CommitResult:
    fixed_assignments: list[FixedAssignment]
    clients: list[Client]
    new_score: Optional[float]


@dataclass(frozen=True)
class ReleaseResult:
    fixed_assignments: list[FixedAssignment]
    clients: list[Client]
    released: FixedAssignment
