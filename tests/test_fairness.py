from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from fairslot.domain.constraints import DecayPolicy
from fairslot.domain.models import FixedAssignment
from fairslot.services.fairness_service import apply_decay, recompute_score
from fairslot.services.objective import AssignmentValidationError
from tests.utils import make_client, make_slots


NOW = datetime(2026, 3, 16, 12, 0)


def test_recompute_adds_committed_cost_to_score():
    slots = make_slots("S1")
    clients = [make_client("C", {"S1": 12}, quota=1, score=40)]
    fixed = [FixedAssignment(slot_id="S1", client_id="C")]

    assert recompute_score(slots, fixed, clients, "C") == pytest.approx(52.0)


def test_recompute_charges_unmet_quota():
    slots = make_slots("S1", "S2")
    clients = [make_client("C", {"S1": 12}, quota=3, score=10, penalty=200)]
    fixed = [FixedAssignment(slot_id="S1", client_id="C")]

    assert recompute_score(slots, fixed, clients, "C") == pytest.approx(10 + 12 + 2 * 200)


def test_recompute_uses_default_penalty_when_absent():
    slots = make_slots("S1")
    clients = [make_client("C", {}, quota=1, penalty=None)]

    assert recompute_score(slots, [], clients, "C") == pytest.approx(150.0)


def test_recompute_ignores_other_clients_and_undeclared_fixed_slots():
    slots = make_slots("S1", "S2", "S3")
    clients = [
        make_client("C", {"S1": 12}, quota=0, score=5),
        make_client("D", {"S2": 70}, quota=1),
    ]
    fixed = [
        FixedAssignment(slot_id="S1", client_id="C"),
        FixedAssignment(slot_id="S2", client_id="D"),
        FixedAssignment(slot_id="S3", client_id="C"),
    ]

    assert recompute_score(slots, fixed, clients, "C") == pytest.approx(17.0)


def test_recompute_unknown_client_is_noop():
    slots = make_slots("S1")
    clients = [make_client("C", {"S1": 12})]

    assert recompute_score(slots, [], clients, "nobody") is None


def test_recompute_rejects_fixed_assignment_on_unknown_slot():
    with pytest.raises(AssignmentValidationError):
        recompute_score(make_slots("S1"), [FixedAssignment("S2", "C")], [], "C")


def test_decay_divides_overdue_score():
    clients = [make_client("D", score=100, last_score_decay=NOW - timedelta(days=8))]

    decayed = apply_decay(clients, NOW, DecayPolicy(cadence_days=7, decay_factor=2.5))

    assert decayed[0].score == pytest.approx(40.0)
    assert decayed[0].last_score_decay == NOW


def test_decay_leaves_recent_clients_untouched():
    recent = make_client("R", score=100, last_score_decay=NOW - timedelta(days=6))

    decayed = apply_decay([recent], NOW)

    assert decayed == [recent]


def test_decay_exactly_one_cadence_old_is_not_due():
    client = make_client("E", score=100, last_score_decay=NOW - timedelta(days=7))

    assert apply_decay([client], NOW)[0].score == 100


def test_decay_accepts_aware_now_with_naive_history():
    clients = [make_client("D", score=100, last_score_decay=NOW - timedelta(days=8))]
    aware_now = NOW.replace(tzinfo=timezone.utc)

    decayed = apply_decay(clients, aware_now)

    assert decayed[0].score == pytest.approx(40.0)
    assert decayed[0].last_score_decay == aware_now


def test_decay_accepts_naive_now_with_aware_history():
    recent = make_client(
        "R",
        score=100,
        last_score_decay=(NOW - timedelta(days=2)).replace(tzinfo=timezone.utc),
    )
    stale = make_client(
        "D",
        score=100,
        last_score_decay=(NOW - timedelta(days=8)).replace(tzinfo=timezone(timedelta(hours=2))),
    )

    decayed = apply_decay([recent, stale], NOW)

    assert decayed[0] == recent
    assert decayed[1].score == pytest.approx(40.0)


def test_decay_is_idempotent_within_period():
    clients = [
        make_client("D", score=100, last_score_decay=NOW - timedelta(days=8)),
        make_client("R", score=60, last_score_decay=NOW - timedelta(days=2)),
    ]

    once = apply_decay(clients, NOW)
    twice = apply_decay(once, NOW)

    assert twice == once


def test_decay_stamps_clients_without_history():
    client = make_client("N", score=30)

    decayed = apply_decay([client], NOW)

    assert decayed[0].score == 30
    assert decayed[0].last_score_decay == NOW


def test_decay_does_not_mutate_input():
    client = make_client("D", score=100, last_score_decay=NOW - timedelta(days=30))

    apply_decay([client], NOW)

    assert client.score == 100


def test_decay_rejects_invalid_policy():
    with pytest.raises(AssignmentValidationError):
        apply_decay([], NOW, DecayPolicy(decay_factor=0.5))
