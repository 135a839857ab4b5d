"""
Tests for shared date helpers.
"""

from datetime import date, datetime, timedelta, timezone

from cellarwise.utils import as_datetime, days_until


class TestAsDatetime:
    """Normalization of dates and datetimes."""

    def test_date_is_midnight(self):
        """Calendar dates become local midnight."""
        assert as_datetime(date(2024, 6, 15)) == datetime(2024, 6, 15)

    def test_naive_datetime_unchanged(self):
        """Naive datetimes are already local wall time."""
        value = datetime(2024, 6, 15, 18, 30)
        assert as_datetime(value) is value

    def test_aware_datetime_converted_to_local(self):
        """The instant is kept; only the zone is dropped."""
        aware = datetime(2024, 6, 15, 12, tzinfo=timezone.utc)
        result = as_datetime(aware)
        assert result.tzinfo is None
        assert result == aware.astimezone().replace(tzinfo=None)

    def test_same_instant_in_different_zones(self):
        """Equal instants compare equal whatever their offsets."""
        utc = datetime(2024, 6, 15, 12, tzinfo=timezone.utc)
        kiritimati = datetime(2024, 6, 16, 2, tzinfo=timezone(timedelta(hours=14)))
        assert as_datetime(utc) == as_datetime(kiritimati)
        assert days_until(kiritimati, utc) == 0
