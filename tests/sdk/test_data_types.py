"""Unit tests for dataapi_sdk value types, options and exceptions."""

from datetime import timedelta

import pytest

from dataapi_sdk.data_types import (
    DataAPIDuration,
    DataAPIPair,
    DataAPIVector,
    IndexMapKind,
    TableIndexColumn,
    timedelta_to_nanos,
)
from dataapi_sdk.exceptions import (
    CursorError,
    CursorExhaustedError,
    DataAPIError,
    DecodeError,
    MappingError,
    TooManyDocumentsToCountError,
)
from dataapi_sdk.options import DataAPIClientOptions, SerdesOptions


class TestDataAPIVector:
    def test_values_are_floats(self) -> None:
        vector = DataAPIVector([1, 2])
        assert vector.values == (1.0, 2.0)
        assert len(vector) == 2
        assert vector[1] == 2.0
        assert list(vector) == [1.0, 2.0]

    def test_hashable_and_comparable(self) -> None:
        assert DataAPIVector([0.5]) == DataAPIVector((0.5,))
        assert len({DataAPIVector([0.5]), DataAPIVector([0.5])}) == 1

    def test_to_list(self) -> None:
        assert DataAPIVector([0.25]).to_list() == [0.25]


class TestDataAPIDuration:
    def test_mixed_signs_rejected(self) -> None:
        with pytest.raises(ValueError, match="same sign"):
            DataAPIDuration(months=1, days=-1)

    def test_of(self) -> None:
        value = DataAPIDuration.of(months=1, duration=timedelta(minutes=1), nanoseconds=5)
        assert value == DataAPIDuration(months=1, nanoseconds=60 * 10**9 + 5)

    def test_negation_and_addition(self) -> None:
        value = DataAPIDuration(days=2, nanoseconds=10)
        assert -value == DataAPIDuration(days=-2, nanoseconds=-10)
        assert value + DataAPIDuration(days=1) == DataAPIDuration(days=3, nanoseconds=10)
        assert (-value).is_negative
        assert DataAPIDuration().is_zero

    def test_to_timedelta(self) -> None:
        assert DataAPIDuration(days=1, nanoseconds=1_500_000).to_timedelta() == timedelta(days=1, microseconds=1500)
        assert DataAPIDuration(days=-1, nanoseconds=-2000).to_timedelta() == timedelta(days=-1, microseconds=-2)

    def test_to_timedelta_with_months(self) -> None:
        with pytest.raises(ValueError, match="years or months"):
            DataAPIDuration(years=1).to_timedelta()


class TestSmallTypes:
    def test_pair(self) -> None:
        assert DataAPIPair("a", 1).as_tuple() == ("a", 1)

    def test_index_column_entries_is_default(self) -> None:
        column = TableIndexColumn("tags", IndexMapKind.ENTRIES)
        assert column.kind is None
        assert column.is_default_kind
        assert column == TableIndexColumn("tags")
        assert not TableIndexColumn("tags", IndexMapKind.KEYS).is_default_kind

    def test_timedelta_to_nanos(self) -> None:
        assert timedelta_to_nanos(timedelta(seconds=1, microseconds=1)) == 1_000_001_000
        assert timedelta_to_nanos(timedelta(microseconds=-1)) == -1000


class TestOptions:
    def test_defaults(self) -> None:
        options = DataAPIClientOptions()
        assert options.api_version == "v1"
        assert options.max_documents_in_insert == 50
        assert options.max_document_count == 1000
        assert options.serdes == SerdesOptions()

    def test_with_changes(self) -> None:
        options = DataAPIClientOptions().with_changes(timeout=5.0)
        assert options.timeout == 5.0

    @pytest.mark.parametrize(
        "changes",
        [{"timeout": 0}, {"max_documents_in_insert": 0}, {"max_document_count": -1}],
    )
    def test_validation(self, changes: dict) -> None:
        with pytest.raises(ValueError):
            DataAPIClientOptions(**changes)


class TestExceptions:
    def test_hierarchy(self) -> None:
        assert issubclass(DecodeError, DataAPIError)
        assert issubclass(DecodeError, ValueError)
        assert issubclass(CursorExhaustedError, CursorError)
        assert issubclass(MappingError, DataAPIError)

    def test_decode_error_message(self) -> None:
        error = DecodeError("Bad value", "x", "a number")
        assert str(error) == "Bad value (expected a number)"
        assert error.text == "x"

    def test_cursor_error_message(self) -> None:
        error = CursorError("Cursor is closed", "closed")
        assert str(error) == "Cursor is closed (cursor state: closed)"
        assert error.cursor_state == "closed"

    def test_too_many_documents_messages(self) -> None:
        assert "server" in str(TooManyDocumentsToCountError())
        error = TooManyDocumentsToCountError(100)
        assert error.upper_bound == 100
        assert "(100)" in str(error)

    def test_mapping_error_context(self) -> None:
        class Book:
            pass

        error = MappingError("Cannot convert", field_name="title", model=Book)
        assert str(error) == "Cannot convert [model=Book, field=title]"
