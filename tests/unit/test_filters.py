"""Unit tests for Jinja2 filters."""

from datetime import UTC, datetime, timedelta, timezone

from tmplcache.templates.filters import format_datetime, is_empty, pluralize


class TestFormatDatetime:
    """Tests for format_datetime filter."""

    def test_none(self) -> None:
        """Test None renders as N/A."""
        assert format_datetime(None) == "N/A"

    def test_aware_datetime(self) -> None:
        """Test aware datetimes are converted to UTC."""
        dt = datetime(2024, 1, 15, 14, 0, 0, tzinfo=timezone(timedelta(hours=2)))

        assert format_datetime(dt) == "2024-01-15 12:00:00 UTC"

    def test_naive_datetime_is_utc(self) -> None:
        """Test naive datetimes are treated as UTC."""
        assert format_datetime(datetime(2024, 1, 15, 12, 0, 0)) == "2024-01-15 12:00:00 UTC"

    def test_iso_string(self) -> None:
        """Test ISO strings are parsed."""
        assert format_datetime("2024-01-15T12:00:00+00:00") == "2024-01-15 12:00:00 UTC"

    def test_non_iso_string_passthrough(self) -> None:
        """Test unparseable strings are returned unchanged."""
        assert format_datetime("yesterday") == "yesterday"

    def test_custom_format(self) -> None:
        """Test a custom strftime format."""
        dt = datetime(2024, 1, 15, tzinfo=UTC)

        assert format_datetime(dt, "%d/%m/%Y") == "15/01/2024"


class TestPluralize:
    """Tests for pluralize filter."""

    def test_singular(self) -> None:
        assert pluralize(1) == ""

    def test_plural(self) -> None:
        assert pluralize(0) == "s"
        assert pluralize(2) == "s"

    def test_custom_suffixes(self) -> None:
        assert pluralize(1, "y", "ies") == "y"
        assert pluralize(3, "y", "ies") == "ies"


class TestIsEmpty:
    """Tests for the `empty` template test."""

    def test_empty_values(self) -> None:
        assert is_empty(None)
        assert is_empty("")
        assert is_empty("   ")
        assert is_empty([])
        assert is_empty({})

    def test_non_empty_values(self) -> None:
        assert not is_empty("text")
        assert not is_empty([0])
        assert not is_empty(0)
