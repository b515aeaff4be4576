"""Scheduler façade between the planning core and the storage/API layer.

Callers supply a consistent snapshot of slots, fixed assignments and clients
per call; the service holds configuration only and never mutates its inputs.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import Optional, Sequence

from fairslot.domain.constraints import (
    DecayPolicy,
    SearchConfig,
    validate_decay_policy,
    validate_search_config,
)
from fairslot.domain.models import (
    Client,
    CommitResult,
    FixedAssignment,
    PlanResult,
    ProposedAssignment,
    ReleaseResult,
    Slot,
)
from fairslot.schemas.snapshot import SchedulingSnapshot
from fairslot.services import fairness_service
from fairslot.services.matching_service import cp_sat_search
from fairslot.services.objective import (
    AssignmentValidationError,
    evaluate_objective,
    free_slots,
    validate_planning_inputs,
)
from fairslot.services.search_service import exhaustive_search
from fairslot.utils.config import Settings, get_settings
from fairslot.utils.logger import get_logger


logger = get_logger(__name__)


class SchedulerService:
    """Plans proposals, applies commits/releases and decays fairness scores."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self._settings = settings or get_settings()

    def _search_config(self, strategy: Optional[str] = None) -> SearchConfig:
        config = SearchConfig(
            strategy=strategy if strategy is not None else self._settings.search_strategy,
            exhaustive_max_free_slots=self._settings.exhaustive_max_free_slots,
            exhaustive_max_clients=self._settings.exhaustive_max_clients,
            solver_max_time_seconds=self._settings.solver_max_time_seconds,
            solver_random_seed=self._settings.solver_random_seed,
            objective_scale=self._settings.objective_scale,
            cp_sat_workers=self._settings.cp_sat_workers,
        )
        try:
            validate_search_config(config)
        except ValueError as exc:
            raise AssignmentValidationError(str(exc)) from exc
        return config

    def _decay_policy(self) -> DecayPolicy:
        policy = DecayPolicy(
            cadence_days=self._settings.decay_cadence_days,
            decay_factor=self._settings.decay_factor,
        )
        try:
            validate_decay_policy(policy)
        except ValueError as exc:
            raise AssignmentValidationError(str(exc)) from exc
        return policy

    def _with_default_penalty(self, clients: Sequence[Client]) -> list[Client]:
        return [
            client
            if client.missing_penalty is not None
            else replace(client, missing_penalty=self._settings.default_missing_penalty)
            for client in clients
        ]

    @staticmethod
    def _resolve_strategy(config: SearchConfig, free_slot_count: int, client_count: int) -> str:
        if config.strategy != "auto":
            return config.strategy
        if (
            free_slot_count <= config.exhaustive_max_free_slots
            and client_count <= config.exhaustive_max_clients
        ):
            return "exhaustive"
        return "cp_sat"

    def plan(
        self,
        slots: Sequence[Slot],
        fixed_assignments: Sequence[FixedAssignment],
        clients: Sequence[Client],
        *,
        strategy: Optional[str] = None,
    ) -> PlanResult:
        config = self._search_config(strategy)
        resolved_clients = self._with_default_penalty(clients)
        validate_planning_inputs(slots, fixed_assignments, resolved_clients)

        free_slot_count = len(free_slots(slots, fixed_assignments))
        resolved_strategy = self._resolve_strategy(config, free_slot_count, len(resolved_clients))
        if resolved_strategy == "exhaustive":
            outcome = exhaustive_search(slots, fixed_assignments, resolved_clients)
        else:
            outcome = cp_sat_search(slots, fixed_assignments, resolved_clients, config)

        baseline_value = evaluate_objective(resolved_clients, [])
        logger.info(
            (
                "Assignment planned | strategy=%s | free_slots=%s | clients=%s | "
                "assigned=%s | objective_value=%.6f | baseline_value=%.6f"
            ),
            resolved_strategy,
            free_slot_count,
            len(resolved_clients),
            len(outcome.assignments),
            outcome.objective_value,
            baseline_value,
        )
        return PlanResult(
            assignments=outcome.assignments,
            objective_value=outcome.objective_value,
            baseline_value=baseline_value,
            strategy=resolved_strategy,
            candidates_evaluated=outcome.candidates_evaluated,
        )

    def propose_assignment(
        self,
        slots: Sequence[Slot],
        fixed_assignments: Sequence[FixedAssignment],
        clients: Sequence[Client],
    ) -> list[ProposedAssignment]:
        return self.plan(slots, fixed_assignments, clients).assignments

    def plan_snapshot(self, snapshot: SchedulingSnapshot) -> PlanResult:
        slots, fixed_assignments, clients = snapshot.to_domain()
        return self.plan(slots, fixed_assignments, clients)

    def update_score_on_commit(
        self,
        slots: Sequence[Slot],
        fixed_assignments: Sequence[FixedAssignment],
        clients: Sequence[Client],
        client_id: str,
    ) -> Optional[float]:
        return fairness_service.recompute_score(
            slots,
            fixed_assignments,
            self._with_default_penalty(clients),
            client_id,
        )

    def apply_decay(self, clients: Sequence[Client], now: datetime) -> list[Client]:
        return fairness_service.apply_decay(clients, now, self._decay_policy())

    def commit(
        self,
        slots: Sequence[Slot],
        fixed_assignments: Sequence[FixedAssignment],
        clients: Sequence[Client],
        slot_id: str,
        client_id: str,
    ) -> CommitResult:
        """Fix `slot_id` to `client_id`, rescore the client and consume one unit of quota.

        The score is recomputed against the new fixed set with the client's
        quota as it stood before this commit. A roster client with no remaining
        quota is rejected; a client outside the roster still gets the fixed
        assignment but no score or quota change.
        """
        validate_planning_inputs(slots, fixed_assignments, clients)
        if slot_id not in {slot.slot_id for slot in slots}:
            raise AssignmentValidationError(f"cannot commit unknown slot {slot_id}")
        if any(fixed.slot_id == slot_id for fixed in fixed_assignments):
            raise AssignmentValidationError(f"slot {slot_id} is already fixed")
        owner = next((client for client in clients if client.client_id == client_id), None)
        if owner is not None and owner.requested_quota <= 0:
            raise AssignmentValidationError(f"client {client_id} has no remaining quota")

        updated_fixed = [*fixed_assignments, FixedAssignment(slot_id=slot_id, client_id=client_id)]
        new_score = self.update_score_on_commit(slots, updated_fixed, clients, client_id)

        updated_clients: list[Client] = []
        for client in clients:
            if client.client_id == client_id and new_score is not None:
                client = replace(
                    client,
                    score=new_score,
                    requested_quota=client.requested_quota - 1,
                )
            updated_clients.append(client)

        logger.info(
            "Slot committed | slot_id=%s | client_id=%s | new_score=%s",
            slot_id,
            client_id,
            "n/a" if new_score is None else f"{new_score:.3f}",
        )
        return CommitResult(
            fixed_assignments=updated_fixed,
            clients=updated_clients,
            new_score=new_score,
        )

    def release(
        self,
        fixed_assignments: Sequence[FixedAssignment],
        clients: Sequence[Client],
        slot_id: str,
    ) -> ReleaseResult:
        """Unfix `slot_id` and return one unit of quota to its client."""
        released = next((fixed for fixed in fixed_assignments if fixed.slot_id == slot_id), None)
        if released is None:
            raise AssignmentValidationError(f"slot {slot_id} is not fixed")

        remaining = [fixed for fixed in fixed_assignments if fixed.slot_id != slot_id]
        updated_clients = [
            replace(client, requested_quota=client.requested_quota + 1)
            if client.client_id == released.client_id
            else client
            for client in clients
        ]
        logger.info(
            "Slot released | slot_id=%s | client_id=%s",
            slot_id,
            released.client_id,
        )
        return ReleaseResult(
            fixed_assignments=remaining,
            clients=updated_clients,
            released=released,
        )
