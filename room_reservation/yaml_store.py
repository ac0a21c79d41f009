from __future__ import annotations

from datetime import date, datetime, timedelta
from pathlib import Path
from typing import Any
import logging
import shutil
from uuid import uuid4

import yaml

from .models import MeetingRoom, Reservation, User
from .store_client import RecordNotFoundError, StoreError

logger = logging.getLogger("room_reservation.yaml_store")


class StoreStorageError(StoreError):
    pass


SAMPLE_USERS = [
    ("Aiko Tanaka", "aiko.tanaka@example.com"),
    ("Kenji Sato", "kenji.sato@example.com"),
    ("Mei Suzuki", "mei.suzuki@example.com"),
]
SAMPLE_ROOM = MeetingRoom(
    id="room-1",
    name="Meeting Room A",
    capacity=8,
    equipment=("projector", "whiteboard", "video conferencing"),
)


class YamlRecordStore:
    """Keeps users, reservations and the meeting room in YAML files under ``base_dir``.

    Implements the same CRUD surface as :class:`HttpRecordStore`, so it can
    stand in for the records service during development and tests. It stores
    what it is given: overlap checks belong to the caller.
    """

    def __init__(self, base_dir: str | Path = "data") -> None:
        self.base_dir = Path(base_dir)
        self.users_file = self.base_dir / "users.yaml"
        self.reservations_file = self.base_dir / "reservations.yaml"
        self.room_file = self.base_dir / "meeting_room.yaml"
        self.log_file = self.base_dir / "store_events.yaml"
        self._ensure_files()

    def _ensure_files(self) -> None:
        self.base_dir.mkdir(parents=True, exist_ok=True)
        for path in (self.users_file, self.reservations_file, self.log_file):
            if not path.exists():
                path.write_text("[]\n", encoding="utf-8")

    def _read_yaml(self, path: Path) -> Any:
        try:
            return yaml.safe_load(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError, yaml.YAMLError) as error:
            self._recover_corrupted_yaml(path, error)
            return None

    def _read_yaml_list(self, path: Path) -> list[dict[str, Any]]:
        payload = self._read_yaml(path)
        if payload is None:
            return []
        if not isinstance(payload, list):
            self._recover_corrupted_yaml(path, ValueError("top-level YAML is not a list"))
            return []

        sanitized: list[dict[str, Any]] = []
        for index, row in enumerate(payload):
            if isinstance(row, dict):
                sanitized.append(row)
            else:
                self._log_event(
                    "YAML_ROW_SKIPPED",
                    {
                        "file": str(path.name),
                        "index": index,
                        "reason": "row is not a mapping",
                    },
                )
        return sanitized

    def _write_yaml(self, path: Path, payload: Any) -> None:
        temp_path = path.with_suffix(path.suffix + ".tmp")
        try:
            temp_path.write_text(yaml.safe_dump(payload, allow_unicode=True, sort_keys=False), encoding="utf-8")
            temp_path.replace(path)
        except OSError as error:
            raise StoreStorageError(f"Failed to write YAML file: {path}") from error
        finally:
            if temp_path.exists():
                temp_path.unlink(missing_ok=True)

    def _recover_corrupted_yaml(self, path: Path, error: Exception) -> None:
        timestamp = datetime.now().strftime("%Y%m%d%H%M%S")
        backup_path = path.with_name(f"{path.stem}.corrupt.{timestamp}{path.suffix}")
        try:
            if path.exists():
                shutil.copy2(path, backup_path)
        except OSError:
            logger.warning("Could not back up corrupted file %s", path)

        logger.warning("Recovered corrupted YAML file %s: %s", path.name, error)
        path.write_text("[]\n" if path != self.room_file else "", encoding="utf-8")
        if path != self.log_file:
            self._log_event(
                "YAML_RECOVERED",
                {
                    "file": str(path.name),
                    "backup": str(backup_path.name),
                    "reason": str(error),
                },
            )

    def _log_event(self, event_type: str, payload: dict[str, Any], event_time: datetime | None = None) -> None:
        timestamp = (event_time or datetime.now()).isoformat(timespec="seconds")
        events = self._read_yaml_list(self.log_file)
        events.append({"event_time": timestamp, "event_type": event_type, "payload": payload})
        self._write_yaml(self.log_file, events)

    def get_events(self) -> list[dict[str, Any]]:
        return self._read_yaml_list(self.log_file)

    @staticmethod
    def _find_index(rows: list[dict[str, Any]], record_id: str) -> int:
        for index, row in enumerate(rows):
            if str(row.get("id")) == record_id:
                return index
        return -1

    @staticmethod
    def _decode(path: Path, factory: Any, row: dict[str, Any]) -> Any:
        try:
            return factory(row)
        except (KeyError, TypeError, ValueError) as error:
            raise StoreStorageError(f"Malformed record in {path.name}: {error!r}") from error

    def _decode_rows(self, path: Path, factory: Any) -> list[Any]:
        return [self._decode(path, factory, row) for row in self._read_yaml_list(path)]

    def list_users(self) -> list[User]:
        return self._decode_rows(self.users_file, User.from_dict)

    def create_user(self, name: str, email: str) -> User:
        user = User(id=str(uuid4()), name=name, email=email)
        rows = self._read_yaml_list(self.users_file)
        rows.append(user.to_dict())
        self._write_yaml(self.users_file, rows)
        self._log_event("USER_CREATED", user.to_dict())
        return user

    def update_user(self, user_id: str, changes: dict[str, Any]) -> User:
        rows = self._read_yaml_list(self.users_file)
        found_index = self._find_index(rows, user_id)
        if found_index < 0:
            raise RecordNotFoundError(f"user {user_id} not found")

        current = self._decode(self.users_file, User.from_dict, rows[found_index])
        updated = User(
            id=current.id,
            name=str(changes["name"]) if changes.get("name") is not None else current.name,
            email=str(changes["email"]) if changes.get("email") is not None else current.email,
        )
        rows[found_index] = updated.to_dict()
        self._write_yaml(self.users_file, rows)
        self._log_event("USER_UPDATED", updated.to_dict())
        return updated

    def delete_user(self, user_id: str) -> None:
        rows = self._read_yaml_list(self.users_file)
        remaining = [row for row in rows if str(row.get("id")) != user_id]
        if len(remaining) == len(rows):
            raise RecordNotFoundError(f"user {user_id} not found")
        self._write_yaml(self.users_file, remaining)
        self._log_event("USER_DELETED", {"id": user_id})

    def list_reservations(self) -> list[Reservation]:
        return self._decode_rows(self.reservations_file, Reservation.from_dict)

    def create_reservation(self, reservation: Reservation) -> Reservation:
        stored = reservation.with_id(str(uuid4()))
        rows = self._read_yaml_list(self.reservations_file)
        rows.append(stored.to_dict())
        self._write_yaml(self.reservations_file, rows)
        self._log_event("RESERVATION_CREATED", stored.to_dict())
        return stored

    def update_reservation(self, reservation: Reservation) -> Reservation:
        if reservation.id is None:
            raise ValueError("reservation id is required for an update")

        rows = self._read_yaml_list(self.reservations_file)
        found_index = self._find_index(rows, reservation.id)
        if found_index < 0:
            raise RecordNotFoundError(f"reservation {reservation.id} not found")

        rows[found_index] = reservation.to_dict()
        self._write_yaml(self.reservations_file, rows)
        self._log_event("RESERVATION_UPDATED", reservation.to_dict())
        return reservation

    def delete_reservation(self, reservation_id: str) -> None:
        rows = self._read_yaml_list(self.reservations_file)
        remaining = [row for row in rows if str(row.get("id")) != reservation_id]
        if len(remaining) == len(rows):
            raise RecordNotFoundError(f"reservation {reservation_id} not found")
        self._write_yaml(self.reservations_file, remaining)
        self._log_event("RESERVATION_DELETED", {"id": reservation_id})

    def get_meeting_room(self) -> MeetingRoom | None:
        payload = self._read_yaml(self.room_file)
        if not isinstance(payload, dict):
            return None
        return self._decode(self.room_file, MeetingRoom.from_dict, payload)

    def save_meeting_room(self, room: MeetingRoom) -> MeetingRoom:
        self._write_yaml(self.room_file, room.to_dict())
        self._log_event("MEETING_ROOM_SAVED", room.to_dict())
        return room

    def seed_sample_data(self, today: date | None = None, overwrite: bool = True) -> list[Reservation]:
        """Write a demo roster, the meeting room and a few reservations starting at ``today``."""
        start_day = today or date.today()

        if overwrite:
            self._write_yaml(self.users_file, [])
            self._write_yaml(self.reservations_file, [])

        users = [self.create_user(name, email) for name, email in SAMPLE_USERS]
        self.save_meeting_room(SAMPLE_ROOM)

        slots = [
            (0, "09:00", "10:00", "Weekly planning"),
            (0, "10:00", "11:30", "Design review"),
            (1, "13:00", "14:00", "Customer call"),
            (3, "15:15", "16:45", "Retrospective"),
        ]
        created: list[Reservation] = []
        for index, (offset, start_time, end_time, purpose) in enumerate(slots):
            candidate = Reservation.create(
                user_id=users[index % len(users)].id,
                reservation_date=start_day + timedelta(days=offset),
                start_time=start_time,
                end_time=end_time,
                purpose=purpose,
            )
            created.append(self.create_reservation(candidate))

        self._log_event(
            "SAMPLE_DATA_GENERATED",
            {
                "users": len(users),
                "reservations": len(created),
                "start_date": start_day.isoformat(),
                "overwrite": overwrite,
            },
        )
        return created
