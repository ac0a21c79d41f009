import unittest
from datetime import date, timedelta

from room_reservation import (
    Direction,
    Granularity,
    Reservation,
    advance,
    pad_to_weeks,
    period_bounds,
    project,
    weeks,
)
from room_reservation.calendar_view import start_of_week


def _reservation(reservation_date: str, start: str = "09:00", end: str = "10:00", reservation_id: str = "r") -> Reservation:
    return Reservation.create("u1", reservation_date, start, end, "Meeting", reservation_id)


class TestProjectWeek(unittest.TestCase):
    def test_start_of_week_is_sunday(self) -> None:
        self.assertEqual(start_of_week(date(2024, 6, 12)), date(2024, 6, 9))
        self.assertEqual(start_of_week(date(2024, 6, 9)), date(2024, 6, 9))
        self.assertEqual(start_of_week(date(2024, 6, 15)), date(2024, 6, 9))

    def test_empty_week_has_seven_sunday_first_buckets(self) -> None:
        buckets = project(date(2024, 6, 12), Granularity.WEEK, [])

        self.assertEqual(len(buckets), 7)
        self.assertEqual(buckets[0].date, date(2024, 6, 9))
        self.assertEqual(buckets[-1].date, date(2024, 6, 15))
        self.assertEqual(buckets[0].date.weekday(), 6)
        for offset, bucket in enumerate(buckets):
            self.assertEqual(bucket.date, date(2024, 6, 9) + timedelta(days=offset))
            self.assertTrue(bucket.is_in_current_period)
            self.assertEqual(bucket.reservations, ())

    def test_sunday_reference_starts_its_own_week(self) -> None:
        buckets = project(date(2024, 6, 9), Granularity.WEEK, [])

        self.assertEqual(buckets[0].date, date(2024, 6, 9))

    def test_reservations_land_in_matching_bucket_in_input_order(self) -> None:
        reservations = [
            _reservation("2024-06-12", "13:00", "14:00", "late"),
            _reservation("2024-06-12", "09:00", "10:00", "early"),
            _reservation("2024-06-15", reservation_id="saturday"),
            _reservation("2024-06-16", reservation_id="next-week"),
        ]

        buckets = project(date(2024, 6, 12), Granularity.WEEK, reservations)
        by_date = {bucket.date: bucket for bucket in buckets}

        self.assertEqual([row.id for row in by_date[date(2024, 6, 12)].reservations], ["late", "early"])
        self.assertEqual([row.id for row in by_date[date(2024, 6, 15)].reservations], ["saturday"])
        self.assertNotIn("next-week", [row.id for bucket in buckets for row in bucket.reservations])

    def test_projection_is_idempotent(self) -> None:
        reservations = [_reservation("2024-06-10", reservation_id="a")]

        first = project(date(2024, 6, 12), Granularity.WEEK, reservations)
        second = project(date(2024, 6, 12), Granularity.WEEK, reservations)

        self.assertEqual(first, second)


class TestProjectMonth(unittest.TestCase):
    def test_month_covers_first_to_last_day_without_padding(self) -> None:
        buckets = project(date(2024, 2, 14), Granularity.MONTH, [])

        self.assertEqual(len(buckets), 29)
        self.assertEqual(buckets[0].date, date(2024, 2, 1))
        self.assertEqual(buckets[-1].date, date(2024, 2, 29))
        self.assertTrue(all(bucket.is_in_current_period for bucket in buckets))

    def test_every_in_range_reservation_lands_in_exactly_one_bucket(self) -> None:
        reservations = [
            _reservation(f"2024-06-{day:02d}", reservation_id=f"r{day}")
            for day in (1, 5, 5, 17, 30)
        ] + [_reservation("2024-07-01", reservation_id="july")]

        buckets = project(date(2024, 6, 20), Granularity.MONTH, reservations)
        placed = [(bucket.date, row) for bucket in buckets for row in bucket.reservations]

        self.assertEqual(len(placed), 5)
        for bucket_date, row in placed:
            self.assertEqual(bucket_date, row.date)

    def test_accepts_granularity_value_strings(self) -> None:
        buckets = project(date(2024, 6, 20), "month", [])

        self.assertEqual(len(buckets), 30)

    def test_holiday_annotation(self) -> None:
        buckets = project(date(2024, 5, 1), Granularity.MONTH, [], holiday_country="JP")
        by_date = {bucket.date: bucket for bucket in buckets}

        self.assertTrue(by_date[date(2024, 5, 3)].is_holiday)
        self.assertIsNotNone(by_date[date(2024, 5, 3)].holiday_name)
        self.assertFalse(by_date[date(2024, 5, 8)].is_holiday)

    def test_no_holiday_annotation_without_country(self) -> None:
        buckets = project(date(2024, 5, 1), Granularity.MONTH, [])

        self.assertFalse(any(bucket.is_holiday for bucket in buckets))


class TestPadding(unittest.TestCase):
    def test_pads_month_to_whole_weeks(self) -> None:
        reservations = [_reservation("2024-06-01", reservation_id="first")]
        buckets = project(date(2024, 6, 1), Granularity.MONTH, reservations)

        padded = pad_to_weeks(buckets)

        self.assertEqual(len(padded), 42)
        self.assertEqual(padded[0].date, date(2024, 5, 26))
        self.assertEqual(padded[-1].date, date(2024, 7, 6))
        self.assertFalse(padded[0].is_in_current_period)
        self.assertFalse(padded[-1].is_in_current_period)
        self.assertEqual(sum(1 for bucket in padded if bucket.is_in_current_period), 30)
        self.assertEqual(padded[6].reservations[0].id, "first")

        rows = weeks(padded)
        self.assertEqual(len(rows), 6)
        self.assertTrue(all(len(row) == 7 for row in rows))
        self.assertTrue(all(row[0].date.weekday() == 6 for row in rows))

    def test_padding_does_not_change_a_full_week(self) -> None:
        buckets = project(date(2024, 6, 12), Granularity.WEEK, [])

        self.assertEqual(pad_to_weeks(buckets), buckets)

    def test_padding_empty_projection(self) -> None:
        self.assertEqual(pad_to_weeks([]), [])


class TestNavigation(unittest.TestCase):
    def test_week_forward_then_backward_returns_to_same_week(self) -> None:
        start = date(2024, 6, 12)

        forward = advance(start, Granularity.WEEK, Direction.FORWARD)

        self.assertEqual(forward, date(2024, 6, 19))
        self.assertEqual(advance(forward, Granularity.WEEK, Direction.BACKWARD), start)

    def test_month_steps_clamp_day(self) -> None:
        self.assertEqual(advance(date(2024, 1, 31), Granularity.MONTH, Direction.FORWARD), date(2024, 2, 29))
        self.assertEqual(advance(date(2024, 3, 31), Granularity.MONTH, Direction.BACKWARD), date(2024, 2, 29))

    def test_month_steps_cross_year_boundaries(self) -> None:
        self.assertEqual(advance(date(2024, 12, 15), Granularity.MONTH, Direction.FORWARD), date(2025, 1, 15))
        self.assertEqual(advance(date(2024, 1, 15), Granularity.MONTH, Direction.BACKWARD), date(2023, 12, 15))

    def test_period_bounds(self) -> None:
        self.assertEqual(period_bounds(date(2024, 6, 12), Granularity.WEEK), (date(2024, 6, 9), date(2024, 6, 15)))
        self.assertEqual(period_bounds(date(2024, 6, 12), Granularity.MONTH), (date(2024, 6, 1), date(2024, 6, 30)))


if __name__ == "__main__":
    unittest.main()
