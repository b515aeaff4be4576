"""Validated input DTOs for callers that hold planning state as plain data."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

from fairslot.domain.models import Client, FixedAssignment, Slot


def _coerce_identifier(value: Any) -> Any:
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return value


class SlotIn(BaseModel):
    slot_id: str = Field(min_length=1)
    start: datetime
    duration_hours: float = Field(gt=0.0)

    @field_validator("slot_id", mode="before")
    @classmethod
    def normalize_slot_id(cls, value: Any) -> Any:
        return _coerce_identifier(value)

    def to_domain(self) -> Slot:
        return Slot(slot_id=self.slot_id, start=self.start, duration_hours=self.duration_hours)


class ClientIn(BaseModel):
    client_id: str = Field(min_length=1)
    score: float = Field(default=0.0, ge=0.0)
    missing_penalty: float | None = Field(default=None, gt=0.0)
    requested_quota: int = Field(ge=0)
    availability: dict[str, float] = Field(default_factory=dict)
    last_score_decay: datetime | None = None

    @field_validator("client_id", mode="before")
    @classmethod
    def normalize_client_id(cls, value: Any) -> Any:
        return _coerce_identifier(value)

    @field_validator("availability", mode="before")
    @classmethod
    def normalize_availability_keys(cls, value: Any) -> Any:
        if isinstance(value, dict):
            return {str(key): cost for key, cost in value.items()}
        return value

    @field_validator("availability")
    @classmethod
    def validate_cost_bounds(cls, value: dict[str, float]) -> dict[str, float]:
        for slot_id, cost in value.items():
            if not 0.0 <= cost <= 100.0:
                raise ValueError(f"cost for slot {slot_id} must be between 0 and 100")
        return value

    def to_domain(self) -> Client:
        return Client(
            client_id=self.client_id,
            requested_quota=self.requested_quota,
            availability=dict(self.availability),
            score=self.score,
            missing_penalty=self.missing_penalty,
            last_score_decay=self.last_score_decay,
        )


class FixedAssignmentIn(BaseModel):
    slot_id: str = Field(min_length=1)
    client_id: str = Field(min_length=1)

    @field_validator("slot_id", "client_id", mode="before")
    @classmethod
    def normalize_ids(cls, value: Any) -> Any:
        return _coerce_identifier(value)

    def to_domain(self) -> FixedAssignment:
        return FixedAssignment(slot_id=self.slot_id, client_id=self.client_id)


class SchedulingSnapshot(BaseModel):
    """Consistent view of one scheduling scope, e.g. one host's slots and clients."""

    slots: list[SlotIn] = Field(default_factory=list)
    fixed_assignments: list[FixedAssignmentIn] = Field(default_factory=list)
    clients: list[ClientIn] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_fixed_slots_known(self) -> "SchedulingSnapshot":
        known = {slot.slot_id for slot in self.slots}
        for fixed in self.fixed_assignments:
            if fixed.slot_id not in known:
                raise ValueError(f"fixed assignment references unknown slot {fixed.slot_id}")
        return self

    def to_domain(self) -> tuple[list[Slot], list[FixedAssignment], list[Client]]:
        return (
            [slot.to_domain() for slot in self.slots],
            [fixed.to_domain() for fixed in self.fixed_assignments],
            [client.to_domain() for client in self.clients],
        )
