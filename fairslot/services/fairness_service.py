"""Fairness score maintenance: commit-time recompute and periodic decay."""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timedelta, timezone
from typing import Optional, Sequence

from fairslot.domain.constraints import DecayPolicy, validate_decay_policy
from fairslot.domain.models import Client, FixedAssignment, Slot
from fairslot.services.objective import (
    AssignmentValidationError,
    validate_planning_inputs,
    working_score,
)
from fairslot.utils.logger import get_logger


logger = get_logger(__name__)


def recompute_score(
    slots: Sequence[Slot],
    fixed_assignments: Sequence[FixedAssignment],
    clients: Sequence[Client],
    client_id: str,
) -> Optional[float]:
    """Working score of one client against the fixed assignment set.

    The result becomes the client's persisted score once a slot is committed.
    Fixed slots the client never declared a cost for add nothing. Returns None
    when `client_id` is not part of `clients`, in which case callers leave the
    stored score untouched.
    """
    validate_planning_inputs(slots, fixed_assignments, clients)
    client = next((item for item in clients if item.client_id == client_id), None)
    if client is None:
        logger.debug("Score recompute skipped for unknown client | client_id=%s", client_id)
        return None

    fixed_slot_ids = [
        fixed.slot_id for fixed in fixed_assignments if fixed.client_id == client_id
    ]
    new_score = working_score(client, fixed_slot_ids, unavailable_cost=0.0)
    logger.info(
        "Score recomputed | client_id=%s | previous=%.3f | new=%.3f | fixed_slots=%s",
        client_id,
        client.score,
        new_score,
        len(fixed_slot_ids),
    )
    return new_score


def _as_utc(value: datetime) -> datetime:
    # Naive datetimes are taken to be UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _is_due(client: Client, now: datetime, cadence: timedelta) -> bool:
    if client.last_score_decay is None:
        return False
    return _as_utc(client.last_score_decay) < _as_utc(now) - cadence


def apply_decay(
    clients: Sequence[Client],
    now: datetime,
    policy: Optional[DecayPolicy] = None,
) -> list[Client]:
    """Divide the score of every client whose last decay is older than one cadence.

    Decayed clients are stamped with `now`, so a second call with the same
    `now` changes nothing. Clients with no decay history are stamped with
    `now` and keep their score.
    """
    resolved = policy or DecayPolicy()
    try:
        validate_decay_policy(resolved)
    except ValueError as exc:
        raise AssignmentValidationError(str(exc)) from exc

    cadence = timedelta(days=resolved.cadence_days)
    updated: list[Client] = []
    decayed = 0
    for client in clients:
        if client.last_score_decay is None:
            updated.append(replace(client, last_score_decay=now))
        elif _is_due(client, now, cadence):
            updated.append(
                replace(
                    client,
                    score=client.score / resolved.decay_factor,
                    last_score_decay=now,
                )
            )
            decayed += 1
        else:
            updated.append(client)

    logger.info(
        "Score decay applied | clients=%s | decayed=%s | factor=%.3f | cadence_days=%.1f",
        len(updated),
        decayed,
        resolved.decay_factor,
        resolved.cadence_days,
    )
    return updated
