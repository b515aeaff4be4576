"""Fairness objective shared by the assignment search and score updates."""

from __future__ import annotations

from collections import Counter
from typing import Iterable, Optional, Sequence

from fairslot.domain.models import Client, FixedAssignment, ProposedAssignment, Slot
from fairslot.utils.logger import get_logger


logger = get_logger(__name__)


class AssignmentValidationError(Exception):
    """Raised when planning inputs are structurally inconsistent."""


def _duplicates(values: Iterable[str]) -> list[str]:
    counts = Counter(values)
    return sorted(str(value) for value, count in counts.items() if count > 1)


def validate_planning_inputs(
    slots: Sequence[Slot],
    fixed_assignments: Sequence[FixedAssignment],
    clients: Sequence[Client],
) -> None:
    duplicate_slots = _duplicates(slot.slot_id for slot in slots)
    if duplicate_slots:
        raise AssignmentValidationError(f"duplicate slot ids: {', '.join(duplicate_slots)}")

    duplicate_clients = _duplicates(client.client_id for client in clients)
    if duplicate_clients:
        raise AssignmentValidationError(
            f"duplicate client ids: {', '.join(duplicate_clients)}"
        )

    known_slots = {slot.slot_id for slot in slots}
    unknown = sorted(
        str(fixed.slot_id) for fixed in fixed_assignments if fixed.slot_id not in known_slots
    )
    if unknown:
        raise AssignmentValidationError(
            f"fixed assignments reference unknown slots: {', '.join(unknown)}"
        )

    double_fixed = _duplicates(fixed.slot_id for fixed in fixed_assignments)
    if double_fixed:
        raise AssignmentValidationError(
            f"slots fixed more than once: {', '.join(double_fixed)}"
        )

    known_clients = {client.client_id for client in clients}
    orphaned = [fixed for fixed in fixed_assignments if fixed.client_id not in known_clients]
    if orphaned:
        logger.debug(
            "Fixed assignments for clients outside the roster | count=%s",
            len(orphaned),
        )


def free_slots(
    slots: Sequence[Slot],
    fixed_assignments: Sequence[FixedAssignment],
) -> list[Slot]:
    """Slots open for planning, in input order."""
    fixed_ids = {fixed.slot_id for fixed in fixed_assignments}
    return [slot for slot in slots if slot.slot_id not in fixed_ids]


def working_score(
    client: Client,
    assigned_slot_ids: Sequence[str],
    *,
    unavailable_cost: Optional[float] = None,
) -> float:
    """Fairness score a client would carry with the given slots.

    A slot without a declared cost is charged `unavailable_cost`, which
    defaults to the client's missing penalty.
    """
    penalty = client.effective_missing_penalty
    total = float(client.score)
    for slot_id in assigned_slot_ids:
        cost = client.cost_for(slot_id)
        if cost is None:
            cost = penalty if unavailable_cost is None else unavailable_cost
        total += cost
    missing = max(0, client.requested_quota - len(assigned_slot_ids))
    total += missing * penalty
    return total


def total_working_score(
    clients: Sequence[Client],
    assignments: Sequence[ProposedAssignment],
) -> float:
    slots_by_client: dict[str, list[str]] = {client.client_id: [] for client in clients}
    for assignment in assignments:
        if assignment.client_id in slots_by_client:
            slots_by_client[assignment.client_id].append(assignment.slot_id)
    return sum(
        working_score(client, slots_by_client[client.client_id]) for client in clients
    )


def evaluate_objective(
    clients: Sequence[Client],
    assignments: Sequence[ProposedAssignment],
) -> float:
    """Mean working score across clients; lower is better."""
    if not clients:
        return 0.0
    return total_working_score(clients, assignments) / len(clients)
