"""
Unit tests for entity mapping.

Covers model names from DataAPIConfigDict, column aliases, per-field
conversion through the codec registries and the generic record shortcut.
"""

import json
import math
from datetime import UTC, datetime, timedelta
from decimal import Decimal
from uuid import UUID

import pytest
from pydantic import BaseModel, Field

from dataapi_orm.documents import Document, Row
from dataapi_orm.mapping import DataAPIConfigDict, EntityMapper, EntityMapping
from dataapi_sdk.data_types import DataAPIVector
from dataapi_sdk.exceptions import DecodeError, MappingError
from dataapi_sdk.protocol.codecs import build_collection_registry, build_table_registry
from dataapi_sdk.protocol.command import Command, CommandName, parse_json_float


class Author(BaseModel):
    name: str
    born: int | None = None


class Book(BaseModel):
    model_config = DataAPIConfigDict(table_name="books")

    title: str
    year: int = 0
    rating: float | None = None
    ttl: timedelta | None = None
    tags: list[str]
    ratings_by_year: dict[int, float] = Field(default_factory=dict)
    author: Author | None = None
    published: str | None = Field(default=None, alias="pub_date")


class Person(BaseModel):
    model_config = DataAPIConfigDict(collection_name="people")

    id: UUID = Field(alias="_id")
    created: datetime
    embedding: DataAPIVector | None = Field(default=None, alias="$vector")


class Address(BaseModel):
    model_config = DataAPIConfigDict(udt_name="address")

    city: str


class Reading(BaseModel):
    model_config = DataAPIConfigDict(table_name="readings")

    pages: int
    speed: float
    finished: bool
    reader: str
    author: Author


class Price(BaseModel):
    model_config = DataAPIConfigDict(table_name="prices")

    sku: str
    amount: Decimal


@pytest.fixture
def table_mapper() -> EntityMapper:
    return EntityMapper(build_table_registry())


@pytest.fixture
def collection_mapper() -> EntityMapper:
    return EntityMapper(build_collection_registry())


class TestEntityMapping:
    """Tests for the cached per-model description."""

    def test_fields_and_columns(self) -> None:
        mapping = EntityMapping.for_model(Book)
        columns = {f.name: f.column for f in mapping.fields}
        assert columns["published"] == "pub_date"
        assert columns["title"] == "title"
        assert mapping.table_name == "books"
        assert mapping.collection_name is None

    def test_cached(self) -> None:
        assert EntityMapping.for_model(Book) is EntityMapping.for_model(Book)

    def test_required_fields(self) -> None:
        required = {f.name for f in EntityMapping.for_model(Book).fields if f.required}
        assert required == {"title", "tags"}

    def test_resolve_declared_name(self) -> None:
        mapping = EntityMapping.for_model(Book)
        assert mapping.resolve_name(None, "table") == "books"
        assert mapping.resolve_name("books", "table") == "books"

    def test_resolve_conflicting_name(self) -> None:
        with pytest.raises(MappingError, match="bound to table 'books'"):
            EntityMapping.for_model(Book).resolve_name("novels", "table")

    def test_resolve_missing_name(self) -> None:
        with pytest.raises(MappingError, match="No collection name"):
            EntityMapping.for_model(Book).resolve_name(None, "collection")

    def test_udt_name(self) -> None:
        assert EntityMapping.for_model(Address).resolve_name(None, "udt") == "address"

    def test_not_a_model(self) -> None:
        with pytest.raises(MappingError, match="not a pydantic model"):
            EntityMapping.for_model(dict)


class TestFromDocument:
    """Tests for records to models."""

    def test_table_row(self, table_mapper: EntityMapper) -> None:
        row = Row(
            title="Dune",
            year=1965,
            rating="Infinity",
            ttl="1h30m",
            tags=["sf"],
            ratings_by_year=[[2020, 4.5], [2021, "NaN"]],
            author={"name": "Frank Herbert", "born": 1920},
            pub_date="1965-08-01",
        )
        book = table_mapper.from_document(row, Book)
        assert isinstance(book, Book)
        assert book.title == "Dune"
        assert book.year == 1965
        assert book.rating == math.inf
        assert book.ttl == timedelta(hours=1, minutes=30)
        assert book.tags == ["sf"]
        assert book.ratings_by_year[2020] == 4.5
        assert math.isnan(book.ratings_by_year[2021])
        assert book.author == Author(name="Frank Herbert", born=1920)
        assert book.published == "1965-08-01"

    def test_missing_columns(self, table_mapper: EntityMapper) -> None:
        book = table_mapper.from_document({}, Book)
        assert book.title == ""
        assert book.tags == []
        assert book.year == 0
        assert book.ratings_by_year == {}

    def test_missing_scalars_get_their_zero(self, table_mapper: EntityMapper) -> None:
        reading = table_mapper.from_document({}, Reading)
        assert reading.pages == 0
        assert reading.speed == 0.0
        assert reading.finished is False
        assert reading.reader == ""
        assert reading.author is None

    def test_unknown_columns_are_ignored(self, table_mapper: EntityMapper) -> None:
        book = table_mapper.from_document({"title": "Dune", "tags": [], "isbn": "x"}, Book)
        assert not hasattr(book, "isbn")

    def test_null_columns(self, table_mapper: EntityMapper) -> None:
        book = table_mapper.from_document({"title": "Dune", "tags": [], "rating": None, "author": None}, Book)
        assert book.rating is None
        assert book.author is None

    def test_collection_document(self, collection_mapper: EntityMapper) -> None:
        document = Document(
            {
                "_id": {"$uuid": "12345678-1234-5678-1234-567812345678"},
                "created": {"$date": 0},
                "$vector": [0.5, 0.25],
            }
        )
        person = collection_mapper.from_document(document, Person)
        assert person.id == UUID("12345678-1234-5678-1234-567812345678")
        assert person.created == datetime(1970, 1, 1, tzinfo=UTC)
        assert person.embedding == DataAPIVector([0.5, 0.25])

    def test_decode_error_is_not_wrapped(self, table_mapper: EntityMapper) -> None:
        with pytest.raises(DecodeError):
            table_mapper.from_document({"title": "Dune", "tags": [], "ttl": "soon"}, Book)

    def test_conversion_error(self, table_mapper: EntityMapper) -> None:
        with pytest.raises(MappingError) as exc_info:
            table_mapper.from_document({"title": "Dune", "tags": [], "year": "nineteen"}, Book)
        assert exc_info.value.field_name == "year"
        assert exc_info.value.model is Book

    def test_generic_records(self, table_mapper: EntityMapper) -> None:
        row = Row(a=1)
        assert table_mapper.from_document(row, Row) is row
        assert table_mapper.from_document(row, None) is row
        document = table_mapper.from_document(row, Document)
        assert isinstance(document, Document)
        assert document == {"a": 1}

    def test_none(self, table_mapper: EntityMapper) -> None:
        assert table_mapper.from_document(None, Book) is None

    def test_converters_are_cached(self, table_mapper: EntityMapper) -> None:
        assert table_mapper.converters_for(Book) is table_mapper.converters_for(Book)


class TestToDocument:
    """Tests for models to records."""

    def test_columns_follow_aliases(self, table_mapper: EntityMapper) -> None:
        book = Book(title="Dune", tags=["sf"], pub_date="1965-08-01", author=Author(name="Frank Herbert"))
        row = table_mapper.to_document(book)
        assert isinstance(row, Row)
        assert row["pub_date"] == "1965-08-01"
        assert "published" not in row
        assert row["author"] == {"name": "Frank Herbert", "born": None}
        assert list(row)[0] == "title"

    def test_codec_values_are_left_for_the_registry(self, table_mapper: EntityMapper) -> None:
        book = Book(title="Dune", tags=[], ttl=timedelta(minutes=5))
        row = table_mapper.to_document(book)
        assert row["ttl"] == timedelta(minutes=5)
        assert table_mapper.registry.encode_value(row)["ttl"] == "5m"

    def test_generic_records(self, table_mapper: EntityMapper) -> None:
        row = Row(a=1)
        assert table_mapper.to_document(row) is row
        document = table_mapper.to_document({"a": 1}, Document)
        assert isinstance(document, Document)

    def test_not_mappable(self, table_mapper: EntityMapper) -> None:
        with pytest.raises(MappingError):
            table_mapper.to_document(42)

    def test_none(self, table_mapper: EntityMapper) -> None:
        with pytest.raises(ValueError):
            table_mapper.to_document(None)

    def test_round_trip_through_registry(self, table_mapper: EntityMapper) -> None:
        book = Book(title="Dune", year=1965, tags=["sf"], rating=math.inf, ratings_by_year={2020: 4.5})
        wire = table_mapper.registry.encode_value(table_mapper.to_document(book))
        assert wire["rating"] == "Infinity"
        assert wire["ratings_by_year"] == [[2020, 4.5]]
        assert table_mapper.from_document(wire, Book) == book

    def test_exact_decimal_round_trip(self, table_mapper: EntityMapper) -> None:
        price = Price(sku="a-1", amount=Decimal("12345678901234567890.123456789"))
        text = Command(CommandName.INSERT_ONE).with_document(table_mapper.to_document(price)).to_json(
            table_mapper.registry
        )
        wire = json.loads(text, parse_float=parse_json_float)["insertOne"]["document"]
        assert wire["amount"] == Decimal("12345678901234567890.123456789")
        assert table_mapper.from_document(wire, Price) == price
