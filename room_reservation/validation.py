from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable

from .booking import has_time_overlap
from .models import Reservation


class RejectionReason(str, Enum):
    NO_USER_SELECTED = "No user selected."
    INVALID_TIME_RANGE = "End time must be after start time."
    SLOT_ALREADY_BOOKED = "The selected time slot is already booked."


@dataclass(frozen=True)
class ValidationResult:
    reason: RejectionReason | None = None
    conflicts: tuple[Reservation, ...] = ()

    @property
    def ok(self) -> bool:
        return self.reason is None

    @property
    def message(self) -> str:
        return self.reason.value if self.reason is not None else ""


ACCEPTED = ValidationResult()


class ReservationRejected(ValueError):
    def __init__(self, result: ValidationResult) -> None:
        super().__init__(result.message)
        self.result = result

    @property
    def reason(self) -> RejectionReason | None:
        return self.result.reason


def find_conflicts(
    candidate: Reservation,
    existing_reservations: Iterable[Reservation],
    exclude_id: str | None = None,
) -> tuple[Reservation, ...]:
    """Return the reservations on the candidate's date whose time range overlaps it."""
    return tuple(
        reservation
        for reservation in existing_reservations
        if reservation.date == candidate.date
        and (exclude_id is None or reservation.id != exclude_id)
        and has_time_overlap(candidate.start_time, candidate.end_time, reservation.start_time, reservation.end_time)
    )


def validate(
    candidate: Reservation,
    existing_reservations: Iterable[Reservation],
    exclude_id: str | None = None,
) -> ValidationResult:
    """Decide whether ``candidate`` may be stored next to ``existing_reservations``.

    Checks run in order and stop at the first failure: a user must be
    selected, the start time must be earlier than the end time, and no
    reservation on the same date may overlap. When editing, pass the edited
    reservation's id as ``exclude_id`` so it does not collide with itself.
    """
    if not candidate.user_id:
        return ValidationResult(RejectionReason.NO_USER_SELECTED)

    if candidate.start_time >= candidate.end_time:
        return ValidationResult(RejectionReason.INVALID_TIME_RANGE)

    conflicts = find_conflicts(candidate, existing_reservations, exclude_id)
    if conflicts:
        return ValidationResult(RejectionReason.SLOT_ALREADY_BOOKED, conflicts)

    return ACCEPTED


def ensure_valid(
    candidate: Reservation,
    existing_reservations: Iterable[Reservation],
    exclude_id: str | None = None,
) -> None:
    result = validate(candidate, existing_reservations, exclude_id)
    if not result.ok:
        raise ReservationRejected(result)
