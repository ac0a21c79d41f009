from __future__ import annotations

from datetime import date
from typing import Any

from mcp.server.fastmcp import FastMCP

from room_reservation import (
    Granularity,
    Reservation,
    ReservationBoard,
    build_store,
    configure_logging,
    load_settings,
)

mcp = FastMCP(
    "Meeting Room Reservation MCP Server",
    instructions="Inspect and book the meeting room using the room_reservation project.",
    json_response=True,
)

SETTINGS = load_settings()
BOARD = ReservationBoard(build_store(SETTINGS), holiday_country=SETTINGS.holiday_country)


def _serialize(record: Reservation) -> dict[str, Any]:
    return {**record.to_dict(), "userName": BOARD.user_name(record.user_id)}


@mcp.resource("reservation://meeting-room")
async def meeting_room() -> dict[str, Any]:
    """Describe the meeting room (name, capacity, equipment)."""
    BOARD.ensure_loaded()
    room = BOARD.meeting_room
    return room.to_dict() if room is not None else {}


@mcp.tool()
def list_reservations(reservation_date: str | None = None) -> list[dict[str, Any]]:
    """Return reservations ordered by date and start time, optionally for one ISO date."""
    BOARD.refresh()
    records = BOARD.sorted_reservations()
    if reservation_date:
        target = date.fromisoformat(reservation_date)
        records = [record for record in records if record.date == target]
    return [_serialize(record) for record in records]


@mcp.tool()
def check_reservation(user_id: str, reservation_date: str, start_time: str, end_time: str) -> dict[str, Any]:
    """Dry-run the booking rules for a slot without saving anything."""
    BOARD.refresh()
    candidate = Reservation.create(user_id, reservation_date, start_time, end_time)
    result = BOARD.check(candidate)
    return {
        "ok": result.ok,
        "message": result.message,
        "conflicts": [_serialize(record) for record in result.conflicts],
    }


@mcp.tool()
def add_reservation(
    user_id: str,
    reservation_date: str,
    start_time: str,
    end_time: str,
    purpose: str = "MCP reservation",
) -> dict[str, Any]:
    """Book the meeting room. Fails when the slot overlaps an existing reservation."""
    BOARD.refresh()
    created = BOARD.create_reservation(user_id, reservation_date, start_time, end_time, purpose)
    return _serialize(created)


@mcp.tool()
def calendar_view(reference_date: str | None = None, view: str = "week") -> list[dict[str, Any]]:
    """Return the week or month around a date, one entry per day with its reservations."""
    BOARD.refresh()
    target = date.fromisoformat(reference_date) if reference_date else date.today()
    buckets = BOARD.calendar(target, Granularity(view.lower()))
    return [
        {
            "date": bucket.date.isoformat(),
            "holiday": bucket.holiday_name,
            "reservations": [_serialize(record) for record in bucket.reservations],
        }
        for bucket in buckets
    ]


def main() -> None:
    configure_logging(SETTINGS.log_level)
    mcp.run()


if __name__ == "__main__":
    main()
