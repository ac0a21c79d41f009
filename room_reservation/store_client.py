"""CRUD access to the records service that persists users and reservations."""
from __future__ import annotations

import logging
from typing import Any, Protocol

import httpx

from .models import MeetingRoom, Reservation, User

logger = logging.getLogger("room_reservation.store_client")

DEFAULT_STORE_URL = "http://localhost:3001"


class StoreError(RuntimeError):
    """Raised when the records service cannot complete an operation."""


class RecordNotFoundError(StoreError):
    pass


class RecordStore(Protocol):
    def list_users(self) -> list[User]: ...

    def create_user(self, name: str, email: str) -> User: ...

    def update_user(self, user_id: str, changes: dict[str, Any]) -> User: ...

    def delete_user(self, user_id: str) -> None: ...

    def list_reservations(self) -> list[Reservation]: ...

    def create_reservation(self, reservation: Reservation) -> Reservation: ...

    def update_reservation(self, reservation: Reservation) -> Reservation: ...

    def delete_reservation(self, reservation_id: str) -> None: ...

    def get_meeting_room(self) -> MeetingRoom | None: ...


def _normalize_base_url(base_url: str) -> str:
    normalized = base_url.strip()
    if not normalized:
        raise ValueError("Records service URL must not be empty")
    return normalized.rstrip("/")


class HttpRecordStore:
    """Talks to a generic REST records service (one collection per entity kind).

    Users are updated with partial ``PATCH`` bodies; reservations are
    replaced with full ``PUT`` bodies. Creation posts the entity without an
    identifier and returns what the service stored, including the assigned id.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_STORE_URL,
        timeout: float = 10.0,
        client: httpx.Client | None = None,
    ) -> None:
        self.base_url = _normalize_base_url(base_url)
        self._client = client or httpx.Client(base_url=self.base_url, timeout=timeout)

    def close(self) -> None:
        self._client.close()

    def _request(self, operation: str, method: str, path: str, payload: dict[str, Any] | None = None) -> Any:
        try:
            response = self._client.request(method, path, json=payload)
        except httpx.RequestError as exc:
            logger.warning("%s failed: could not reach records service: %s", operation, exc)
            raise StoreError(f"{operation} failed: could not reach records service ({exc})") from exc

        if response.status_code == 404:
            raise RecordNotFoundError(f"{operation} failed: record not found ({method} {path})")
        if response.status_code >= 400:
            logger.warning("%s failed with status %s: %s", operation, response.status_code, response.text[:200])
            raise StoreError(f"{operation} failed with status {response.status_code}")

        if method == "DELETE" or not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise StoreError(f"{operation} failed: response body is not valid JSON") from exc

    def _decode(self, operation: str, factory: Any, payload: Any) -> Any:
        if not isinstance(payload, dict):
            raise StoreError(f"{operation} failed: expected a JSON object")
        try:
            return factory(payload)
        except (KeyError, TypeError, ValueError) as exc:
            raise StoreError(f"{operation} failed: malformed record ({exc})") from exc

    def _decode_list(self, operation: str, factory: Any, payload: Any) -> list[Any]:
        if not isinstance(payload, list):
            raise StoreError(f"{operation} failed: expected a JSON array")
        return [self._decode(operation, factory, row) for row in payload]

    def list_users(self) -> list[User]:
        payload = self._request("list users", "GET", "/users")
        return self._decode_list("list users", User.from_dict, payload)

    def create_user(self, name: str, email: str) -> User:
        payload = self._request("create user", "POST", "/users", {"name": name, "email": email})
        return self._decode("create user", User.from_dict, payload)

    def update_user(self, user_id: str, changes: dict[str, Any]) -> User:
        body = {key: value for key, value in changes.items() if key in ("name", "email")}
        payload = self._request("update user", "PATCH", f"/users/{user_id}", body)
        return self._decode("update user", User.from_dict, payload)

    def delete_user(self, user_id: str) -> None:
        self._request("delete user", "DELETE", f"/users/{user_id}")

    def list_reservations(self) -> list[Reservation]:
        payload = self._request("list reservations", "GET", "/reservations")
        return self._decode_list("list reservations", Reservation.from_dict, payload)

    def create_reservation(self, reservation: Reservation) -> Reservation:
        payload = self._request(
            "create reservation", "POST", "/reservations", reservation.to_dict(include_id=False)
        )
        return self._decode("create reservation", Reservation.from_dict, payload)

    def update_reservation(self, reservation: Reservation) -> Reservation:
        if reservation.id is None:
            raise ValueError("reservation id is required for an update")
        payload = self._request(
            "update reservation", "PUT", f"/reservations/{reservation.id}", reservation.to_dict()
        )
        return self._decode("update reservation", Reservation.from_dict, payload)

    def delete_reservation(self, reservation_id: str) -> None:
        self._request("delete reservation", "DELETE", f"/reservations/{reservation_id}")

    def get_meeting_room(self) -> MeetingRoom | None:
        try:
            payload = self._request("get meeting room", "GET", "/meetingRoom")
        except RecordNotFoundError:
            return None
        if payload is None:
            return None
        return self._decode("get meeting room", MeetingRoom.from_dict, payload)
