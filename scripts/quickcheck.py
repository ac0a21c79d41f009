from __future__ import annotations

from datetime import date
from pathlib import Path
import traceback

from room_reservation import Granularity, ReservationBoard, ReservationRejected, YamlRecordStore


def main() -> int:
    print("[INFO] Meeting Room Reservation Quick Check")
    print("[INFO] Seeding sample data...")

    store = YamlRecordStore("data")
    today = date(2024, 6, 10)
    seeded = store.seed_sample_data(today=today, overwrite=True)
    print(f"[OK] Sample reservations generated: {len(seeded)}")

    board = ReservationBoard(store, holiday_country="JP")
    board.load()
    first_user = board.users[0]

    try:
        board.create_reservation(first_user.id, today, "09:30", "10:30", "Overlapping on purpose")
        print("[ERROR] Overlapping reservation was accepted.")
        return 1
    except ReservationRejected as error:
        print(f"[OK] Overlap rejected: {error}")

    created = board.create_reservation(first_user.id, today, "11:30", "12:00", "Back-to-back booking")
    print(f"[OK] Reserved slot: {created.date.isoformat()} {created.interval}")

    week = board.calendar(today, Granularity.WEEK)
    booked_days = sum(1 for bucket in week if bucket.reservations)
    print(f"[OK] Week view: {len(week)} days, {booked_days} with reservations")
    print(f"[OK] Reservations YAML: {Path('data/reservations.yaml').resolve()}")
    print(f"[OK] Event Log YAML: {Path('data/store_events.yaml').resolve()}")

    print("[DONE] Quick check completed successfully.")
    return 0


if __name__ == "__main__":
    try:
        raise SystemExit(main())
    except Exception:
        print("[ERROR] Quick check failed.")
        traceback.print_exc()
        raise SystemExit(1)
