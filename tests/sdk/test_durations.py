"""Unit tests for dataapi_sdk.protocol.durations."""

from datetime import timedelta

import pytest

from dataapi_sdk.data_types import DataAPIDuration
from dataapi_sdk.exceptions import DecodeError
from dataapi_sdk.protocol.durations import (
    DataAPIDurationCodec,
    DurationCodec,
    format_compact,
    format_iso8601,
    is_iso8601,
    parse_compact,
    parse_iso8601,
)


class TestCompactNotation:
    def test_parse_all_units(self) -> None:
        parts = parse_compact("1y2mo1w3d4h5m6s7ms8us9ns")
        assert parts.months == 14
        assert parts.days == 10
        expected_nanos = (4 * 3600 + 5 * 60 + 6) * 10**9 + 7 * 10**6 + 8 * 10**3 + 9
        assert parts.nanoseconds == expected_nanos
        assert parts.negative is False

    def test_parse_negative(self) -> None:
        parts = parse_compact("-1h30m")
        assert parts.negative is True
        assert parts.nanoseconds == 90 * 60 * 10**9

    def test_parse_micro_sign(self) -> None:
        assert parse_compact("5µs").nanoseconds == 5000

    def test_units_are_case_insensitive(self) -> None:
        assert parse_compact("2H").nanoseconds == parse_compact("2h").nanoseconds

    def test_repeated_units_add_up(self) -> None:
        assert parse_compact("1h1h").nanoseconds == 2 * 3600 * 10**9

    @pytest.mark.parametrize("text", ["", "-", "1x", "h1", "1h 30m", "1.5h", "10"])
    def test_invalid(self, text: str) -> None:
        with pytest.raises(DecodeError):
            parse_compact(text)

    def test_error_names_grammar(self) -> None:
        with pytest.raises(DecodeError) as exc_info:
            parse_compact("3 days")
        assert exc_info.value.text == "3 days"
        assert "expected" in str(exc_info.value)

    def test_format_zero(self) -> None:
        assert format_compact(0, 0, 0) == "0s"

    def test_format_normalizes_months(self) -> None:
        assert format_compact(14, 3, 0) == "1y2mo3d"

    def test_format_negative(self) -> None:
        assert format_compact(0, 0, -90 * 60 * 10**9) == "-1h30m"

    def test_format_sub_second(self) -> None:
        assert format_compact(0, 0, 1_500_000_001) == "1s500ms1ns"


class TestISO8601Notation:
    def test_detection(self) -> None:
        assert is_iso8601("P1Y2M10DT2H30M")
        assert is_iso8601("-PT1H")
        assert is_iso8601("pt5s")
        assert not is_iso8601("1h30m")
        assert not is_iso8601("P")
        assert not is_iso8601("PT")

    def test_parse(self) -> None:
        parts = parse_iso8601("P1Y2M1W3DT4H5M6.5S")
        assert parts.months == 14
        assert parts.days == 10
        assert parts.nanoseconds == (4 * 3600 + 5 * 60 + 6) * 10**9 + 500_000_000

    def test_month_and_minute_are_distinguished(self) -> None:
        assert parse_iso8601("P1M").months == 1
        assert parse_iso8601("PT1M").nanoseconds == 60 * 10**9

    def test_parse_invalid(self) -> None:
        with pytest.raises(DecodeError):
            parse_iso8601("P1H")

    def test_component_signs(self) -> None:
        parts = parse_iso8601("PT-1M-30S")
        assert parts.negative is True
        assert parts.nanoseconds == 90 * 10**9
        assert parse_iso8601("PT1M-30S").nanoseconds == 30 * 10**9
        assert parse_iso8601("-PT-1H").negative is False

    def test_negative_fraction(self) -> None:
        parts = parse_iso8601("PT-0.5S")
        assert parts.negative is True
        assert parts.nanoseconds == 500_000_000

    def test_opposite_signs(self) -> None:
        with pytest.raises(DecodeError, match="opposite signs"):
            parse_iso8601("P1DT-1H")

    def test_format(self) -> None:
        assert format_iso8601(14, 3, 3661 * 10**9) == "P1Y2M3DT1H1M1S"

    def test_format_fraction(self) -> None:
        assert format_iso8601(0, 0, 1_250_000_000) == "PT1.25S"

    def test_format_zero_and_negative(self) -> None:
        assert format_iso8601(0, 0, 0) == "PT0S"
        assert format_iso8601(0, -2, 0) == "-P2D"


class TestDurationCodec:
    def test_encode_compact(self) -> None:
        assert DurationCodec().encode(timedelta(seconds=3661)) == "1h1m1s"

    def test_decode_compact(self) -> None:
        assert DurationCodec().decode("1h1m1s") == timedelta(seconds=3661)

    def test_days_fold_into_hours(self) -> None:
        assert DurationCodec().encode(timedelta(days=1, minutes=1)) == "24h1m"

    def test_decode_weeks_and_days(self) -> None:
        assert DurationCodec().decode("1w2d") == timedelta(days=9)

    def test_negative(self) -> None:
        codec = DurationCodec()
        assert codec.encode(timedelta(minutes=-90)) == "-1h30m"
        assert codec.decode("-1h30m") == timedelta(minutes=-90)

    def test_decode_signed_iso_components(self) -> None:
        assert DurationCodec().decode("PT-1M-30S") == timedelta(seconds=-90)

    def test_zero(self) -> None:
        codec = DurationCodec()
        assert codec.encode(timedelta(0)) == "0s"
        assert codec.decode("0s") == timedelta(0)

    def test_iso_mode(self) -> None:
        codec = DurationCodec(iso8601=True)
        assert codec.encode(timedelta(seconds=3661)) == "PT1H1M1S"
        assert codec.decode("PT1H1M1S") == timedelta(seconds=3661)

    def test_decode_accepts_either_notation(self) -> None:
        codec = DurationCodec()
        assert codec.decode("PT2M") == codec.decode("2m")

    def test_microseconds(self) -> None:
        codec = DurationCodec()
        value = timedelta(seconds=1, microseconds=250)
        assert codec.encode(value) == "1s250us"
        assert codec.decode(codec.encode(value)) == value

    def test_calendar_units_rejected(self) -> None:
        with pytest.raises(DecodeError, match="years or months"):
            DurationCodec().decode("1mo")

    def test_sub_microsecond_rejected(self) -> None:
        with pytest.raises(DecodeError, match="finer than a microsecond"):
            DurationCodec().decode("1500ns")

    def test_non_string_rejected(self) -> None:
        with pytest.raises(DecodeError):
            DurationCodec().decode(3600)

    @pytest.mark.parametrize("text", ["1h", "2h30m", "45s100ms", "-3m"])
    def test_encode_decode_encode_is_stable(self, text: str) -> None:
        codec = DurationCodec()
        assert codec.encode(codec.decode(text)) == text


class TestDataAPIDurationCodec:
    def test_encode(self) -> None:
        value = DataAPIDuration(years=1, months=14, days=3, nanoseconds=5 * 10**9)
        assert DataAPIDurationCodec().encode(value) == "2y2mo3d5s"

    def test_decode(self) -> None:
        value = DataAPIDurationCodec().decode("1y2mo1w1d2h")
        assert value == DataAPIDuration(years=1, months=2, days=8, nanoseconds=2 * 3600 * 10**9)

    def test_decode_negative(self) -> None:
        value = DataAPIDurationCodec().decode("-1mo2d")
        assert value == DataAPIDuration(months=-1, days=-2)
        assert value.is_negative

    def test_keeps_nanoseconds(self) -> None:
        codec = DataAPIDurationCodec()
        assert codec.decode("1500ns").nanoseconds == 1500
        assert codec.encode(DataAPIDuration(nanoseconds=1500)) == "1us500ns"

    def test_iso(self) -> None:
        codec = DataAPIDurationCodec(iso8601=True)
        assert codec.encode(DataAPIDuration(months=3, days=1)) == "P3M1D"
        assert codec.decode("P3M1D") == DataAPIDuration(months=3, days=1)

    def test_zero(self) -> None:
        assert DataAPIDurationCodec().encode(DataAPIDuration()) == "0s"
