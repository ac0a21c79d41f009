from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, time
from typing import Any

from .booking import TimeInterval, format_time, parse_slot_time, parse_time


def _parse_date(value: Any) -> date:
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip())
    except ValueError as error:
        raise ValueError(f"Invalid date {value!r}. Expected format: YYYY-MM-DD") from error


def _optional_id(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


@dataclass(frozen=True)
class User:
    id: str
    name: str
    email: str

    def to_dict(self) -> dict[str, str]:
        return {"id": self.id, "name": self.name, "email": self.email}

    @staticmethod
    def from_dict(data: dict[str, Any]) -> User:
        return User(
            id=str(data["id"]),
            name=str(data.get("name", "")),
            email=str(data.get("email", "")),
        )


@dataclass(frozen=True)
class Reservation:
    """A booking of the meeting room on one date.

    ``id`` is ``None`` for a candidate that has not been stored yet, and
    ``user_id`` is ``None`` when no user has been selected.
    """

    user_id: str | None
    date: date
    start_time: time
    end_time: time
    purpose: str = ""
    id: str | None = None

    @staticmethod
    def create(
        user_id: Any,
        reservation_date: date | str,
        start_time: time | str,
        end_time: time | str,
        purpose: str = "",
        reservation_id: str | None = None,
    ) -> Reservation:
        return Reservation(
            user_id=_optional_id(user_id),
            date=_parse_date(reservation_date),
            start_time=parse_slot_time(start_time),
            end_time=parse_slot_time(end_time),
            purpose=purpose or "",
            id=_optional_id(reservation_id),
        )

    @property
    def interval(self) -> TimeInterval:
        return TimeInterval(self.start_time, self.end_time)

    def with_id(self, reservation_id: str) -> Reservation:
        return replace(self, id=reservation_id)

    def to_dict(self, include_id: bool = True) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "userId": self.user_id,
            "date": self.date.isoformat(),
            "startTime": format_time(self.start_time),
            "endTime": format_time(self.end_time),
            "purpose": self.purpose,
        }
        if include_id and self.id is not None:
            payload = {"id": self.id, **payload}
        return payload

    @staticmethod
    def from_dict(data: dict[str, Any]) -> Reservation:
        # Stored rows are read as-is; the slot grid applies to new input only.
        return Reservation(
            user_id=_optional_id(data.get("userId")),
            date=_parse_date(data["date"]),
            start_time=parse_time(data["startTime"]),
            end_time=parse_time(data["endTime"]),
            purpose=str(data.get("purpose") or ""),
            id=_optional_id(data.get("id")),
        )


@dataclass(frozen=True)
class MeetingRoom:
    id: str
    name: str
    capacity: int = 0
    equipment: tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "capacity": self.capacity,
            "equipment": list(self.equipment),
        }

    @staticmethod
    def from_dict(data: dict[str, Any]) -> MeetingRoom:
        return MeetingRoom(
            id=str(data["id"]),
            name=str(data.get("name", "")),
            capacity=int(data.get("capacity") or 0),
            equipment=tuple(str(item) for item in data.get("equipment") or ()),
        )
