from __future__ import annotations

import itertools
import math
import random
from datetime import datetime, timedelta
from typing import Optional, Sequence

from fairslot.domain.models import Client, ProposedAssignment, Slot
from fairslot.services.objective import evaluate_objective


BASE_START = datetime(2026, 3, 2, 9, 0)


def make_slots(*slot_ids: str) -> list[Slot]:
    return [
        Slot(slot_id=slot_id, start=BASE_START + timedelta(hours=index), duration_hours=1.0)
        for index, slot_id in enumerate(slot_ids)
    ]


def make_client(
    client_id: str,
    availability: Optional[dict[str, float]] = None,
    *,
    quota: int = 1,
    score: float = 0.0,
    penalty: Optional[float] = 150.0,
    last_score_decay: Optional[datetime] = None,
) -> Client:
    return Client(
        client_id=client_id,
        requested_quota=quota,
        availability=dict(availability or {}),
        score=score,
        missing_penalty=penalty,
        last_score_decay=last_score_decay,
    )


def random_instance(
    seed: int,
    slot_count: int,
    client_count: int,
) -> tuple[list[Slot], list[Client]]:
    rng = random.Random(seed)
    slots = make_slots(*(f"S{index}" for index in range(slot_count)))
    clients = []
    for index in range(client_count):
        availability = {
            slot.slot_id: float(rng.randint(0, 100))
            for slot in slots
            if rng.random() < 0.6
        }
        clients.append(
            make_client(
                f"C{index}",
                availability,
                quota=rng.randint(0, 3),
                score=float(rng.randint(0, 80)),
                penalty=float(rng.choice([50, 150, 300])),
            )
        )
    return slots, clients


def brute_force(
    open_slots: Sequence[Slot],
    clients: Sequence[Client],
) -> tuple[list[ProposedAssignment], float]:
    """Enumerate every candidate in search order and keep the first strict minimum."""
    per_slot = []
    for slot in open_slots:
        choices: list[Optional[Client]] = [
            client for client in clients if client.cost_for(slot.slot_id) is not None
        ]
        choices.append(None)
        per_slot.append(choices)

    best_value = math.inf
    best: list[ProposedAssignment] = []
    for combination in itertools.product(*per_slot):
        counts: dict[str, int] = {}
        for client in combination:
            if client is not None:
                counts[client.client_id] = counts.get(client.client_id, 0) + 1
        if any(counts.get(client.client_id, 0) > client.requested_quota for client in clients):
            continue
        candidate = [
            ProposedAssignment(slot_id=slot.slot_id, client_id=client.client_id)
            for slot, client in zip(open_slots, combination)
            if client is not None
        ]
        value = evaluate_objective(clients, candidate)
        if value < best_value:
            best_value = value
            best = candidate
    return best, best_value
