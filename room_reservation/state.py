from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from datetime import date, time
from typing import Any, Iterator

from .calendar_view import DayBucket, Granularity, pad_to_weeks, project
from .models import MeetingRoom, Reservation, User
from .store_client import RecordNotFoundError, RecordStore
from .validation import ValidationResult, ensure_valid, validate

logger = logging.getLogger("room_reservation.state")

UNKNOWN_USER_NAME = "Unknown user"
_RESERVATION_FIELDS = {"user_id", "date", "start_time", "end_time", "purpose"}


class UserInUseError(ValueError):
    def __init__(self, user_id: str, reservation_count: int) -> None:
        super().__init__(
            f"User has {reservation_count} reservation(s); delete those reservations before deleting the user."
        )
        self.user_id = user_id
        self.reservation_count = reservation_count


class BoardBusyError(RuntimeError):
    pass


class ReservationBoard:
    """Session snapshot of users and reservations backed by a record store.

    Call :meth:`load` before reading. Every mutation validates against the
    snapshot, sends one request to the store, and only then patches the
    snapshot, so a failed request leaves it unchanged. All three steps run
    under one lock; a mutation that finds it held fails with
    :class:`BoardBusyError` instead of waiting.
    """

    def __init__(self, store: RecordStore, holiday_country: str | None = None) -> None:
        self.store = store
        self.holiday_country = holiday_country
        self._users: list[User] = []
        self._reservations: list[Reservation] = []
        self._meeting_room: MeetingRoom | None = None
        self._loaded = False
        self._lock = threading.Lock()

    @property
    def loaded(self) -> bool:
        return self._loaded

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    @property
    def users(self) -> tuple[User, ...]:
        return tuple(self._users)

    @property
    def reservations(self) -> tuple[Reservation, ...]:
        return tuple(self._reservations)

    @property
    def meeting_room(self) -> MeetingRoom | None:
        return self._meeting_room

    def load(self) -> None:
        with self._mutation("reload the board"):
            users = self.store.list_users()
            reservations = self.store.list_reservations()
            meeting_room = self.store.get_meeting_room()

            self._users = list(users)
            self._reservations = list(reservations)
            self._meeting_room = meeting_room
            self._loaded = True
        logger.info("Loaded %d user(s) and %d reservation(s)", len(self._users), len(self._reservations))

    def refresh(self) -> None:
        self.load()

    def ensure_loaded(self) -> None:
        if not self._loaded:
            self.load()

    @contextmanager
    def _mutation(self, action: str) -> Iterator[None]:
        if not self._lock.acquire(blocking=False):
            raise BoardBusyError(f"Cannot {action} while another change is being saved.")
        try:
            yield
        finally:
            self._lock.release()

    def get_user(self, user_id: str) -> User | None:
        return next((user for user in self._users if user.id == user_id), None)

    def get_reservation(self, reservation_id: str) -> Reservation | None:
        return next((row for row in self._reservations if row.id == reservation_id), None)

    def user_name(self, user_id: str | None) -> str:
        user = self.get_user(user_id) if user_id else None
        return user.name if user is not None else UNKNOWN_USER_NAME

    def reservations_for_user(self, user_id: str) -> list[Reservation]:
        return [row for row in self._reservations if row.user_id == user_id]

    def sorted_reservations(self) -> list[Reservation]:
        return sorted(self._reservations, key=lambda row: (row.date, row.start_time, row.end_time))

    def check(self, candidate: Reservation, exclude_id: str | None = None) -> ValidationResult:
        return validate(candidate, self._reservations, exclude_id)

    def create_reservation(
        self,
        user_id: str | None,
        reservation_date: date | str,
        start_time: time | str,
        end_time: time | str,
        purpose: str = "",
    ) -> Reservation:
        candidate = Reservation.create(user_id, reservation_date, start_time, end_time, purpose)

        with self._mutation("create a reservation"):
            ensure_valid(candidate, self._reservations)
            created = self.store.create_reservation(candidate)
            self._reservations.append(created)
        logger.info("Created reservation %s on %s %s", created.id, created.date, created.interval)
        return created

    def update_reservation(self, reservation_id: str, **changes: Any) -> Reservation:
        unknown = set(changes) - _RESERVATION_FIELDS
        if unknown:
            raise ValueError(f"Unknown reservation field(s): {', '.join(sorted(unknown))}")

        with self._mutation("update a reservation"):
            current = self.get_reservation(reservation_id)
            if current is None:
                raise RecordNotFoundError(f"reservation {reservation_id} not found")

            candidate = Reservation.create(
                user_id=changes.get("user_id", current.user_id),
                reservation_date=changes.get("date", current.date),
                start_time=changes.get("start_time", current.start_time),
                end_time=changes.get("end_time", current.end_time),
                purpose=changes.get("purpose", current.purpose),
                reservation_id=reservation_id,
            )
            ensure_valid(candidate, self._reservations, exclude_id=reservation_id)
            updated = self.store.update_reservation(candidate)
            self._reservations = [updated if row.id == reservation_id else row for row in self._reservations]
        logger.info("Updated reservation %s to %s %s", reservation_id, updated.date, updated.interval)
        return updated

    def delete_reservation(self, reservation_id: str) -> None:
        with self._mutation("delete a reservation"):
            if self.get_reservation(reservation_id) is None:
                raise RecordNotFoundError(f"reservation {reservation_id} not found")
            self.store.delete_reservation(reservation_id)
            self._reservations = [row for row in self._reservations if row.id != reservation_id]
        logger.info("Deleted reservation %s", reservation_id)

    def create_user(self, name: str, email: str) -> User:
        name, email = _require_name(name), _require_email(email)
        with self._mutation("create a user"):
            created = self.store.create_user(name, email)
            self._users.append(created)
        logger.info("Created user %s", created.id)
        return created

    def update_user(self, user_id: str, *, name: str | None = None, email: str | None = None) -> User:
        changes: dict[str, str] = {}
        if name is not None:
            changes["name"] = _require_name(name)
        if email is not None:
            changes["email"] = _require_email(email)

        with self._mutation("update a user"):
            if self.get_user(user_id) is None:
                raise RecordNotFoundError(f"user {user_id} not found")
            updated = self.store.update_user(user_id, changes)
            self._users = [updated if user.id == user_id else user for user in self._users]
        logger.info("Updated user %s", user_id)
        return updated

    def delete_user(self, user_id: str) -> None:
        with self._mutation("delete a user"):
            if self.get_user(user_id) is None:
                raise RecordNotFoundError(f"user {user_id} not found")

            owned = self.reservations_for_user(user_id)
            if owned:
                raise UserInUseError(user_id, len(owned))

            self.store.delete_user(user_id)
            self._users = [user for user in self._users if user.id != user_id]
        logger.info("Deleted user %s", user_id)

    def calendar(self, reference_date: date, granularity: Granularity, pad: bool = False) -> list[DayBucket]:
        buckets = project(reference_date, granularity, self._reservations, holiday_country=self.holiday_country)
        if pad:
            return pad_to_weeks(buckets, holiday_country=self.holiday_country)
        return buckets


def _require_name(name: str | None) -> str:
    name = (name or "").strip()
    if not name:
        raise ValueError("Name must not be empty.")
    return name


def _require_email(email: str | None) -> str:
    email = (email or "").strip()
    if "@" not in email:
        raise ValueError("A valid email address is required.")
    return email
