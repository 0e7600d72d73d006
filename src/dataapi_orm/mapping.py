"""
Entity mapping between pydantic models and Data API records.

A model class is described once by an ``EntityMapping`` (field name, column
name, declared type). An ``EntityMapper`` bound to a codec registry turns
that description into one converter per field, built on first use and
cached by class.

Column names come from field aliases:

    class Book(BaseModel):
        model_config = DataAPIConfigDict(table_name="books")

        title: str
        published: date | None = Field(default=None, alias="pub_date")
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from functools import cache
from types import NoneType, UnionType
from typing import Any, Literal, TypeVar, Union, get_args, get_origin

from pydantic import BaseModel, ConfigDict, TypeAdapter

from dataapi_sdk.exceptions import DecodeError, MappingError
from dataapi_sdk.protocol.codecs import CodecRegistry
from dataapi_sdk.protocol.pairs import PairMapCodec

from .documents import Row

logger = logging.getLogger(__name__)

T = TypeVar("T")
NameKind = Literal["collection", "table", "udt"]
Converter = Callable[[Any], Any]

_CONTAINERS = (list, set, frozenset, tuple, dict)
_SCALAR_ZEROS: dict[Any, Any] = {bool: False, int: 0, float: 0.0, str: "", bytes: b""}


class DataAPIConfigDict(ConfigDict):
    """
    Pydantic ConfigDict extended with the Data API names a model is bound to.

    Attributes:
        collection_name: Collection the model is stored in
        table_name: Table the model is stored in
        udt_name: User-defined type the model represents
    """

    collection_name: str | None
    table_name: str | None
    udt_name: str | None


def _identity(value: Any) -> Any:
    return value


@dataclass(frozen=True)
class EntityField:
    """One mapped field of a model."""

    name: str
    column: str
    annotation: Any
    required: bool

    def zero_value(self) -> Any:
        """
        Value given to a required field whose column is absent.

        Containers start empty and scalars at their zero; any other type
        (models, optional unions, codec types) gets None.
        """
        origin = get_origin(self.annotation) or self.annotation
        if origin in _CONTAINERS:
            return origin()
        return _SCALAR_ZEROS.get(origin)


@dataclass(frozen=True)
class EntityMapping:
    """Immutable description of how a model class maps to records."""

    model: type[BaseModel]
    fields: tuple[EntityField, ...]
    collection_name: str | None = None
    table_name: str | None = None
    udt_name: str | None = None

    @classmethod
    def for_model(cls, model: type) -> EntityMapping:
        """Return the cached mapping of ``model``."""
        return _build_mapping(model)

    def declared_name(self, kind: NameKind) -> str | None:
        return getattr(self, f"{kind}_name")

    def resolve_name(self, explicit: str | None, kind: NameKind) -> str:
        """
        Pick the collection/table/type name to use for this model.

        Raises:
            MappingError: If the model declares a name and ``explicit`` is a
                different one, or if no name is available at all.
        """
        declared = self.declared_name(kind)
        if explicit and declared and explicit != declared:
            raise MappingError(
                f"Model is bound to {kind} '{declared}' and cannot be used with {kind} '{explicit}'",
                model=self.model,
            )
        name = explicit or declared
        if not name:
            raise MappingError(f"No {kind} name given and none declared in model_config", model=self.model)
        return name


@cache
def _build_mapping(model: type) -> EntityMapping:
    if not (isinstance(model, type) and issubclass(model, BaseModel)):
        raise MappingError(f"{model!r} is not a pydantic model")
    fields = tuple(
        EntityField(
            name=name,
            column=info.alias or name,
            annotation=info.annotation,
            required=info.is_required(),
        )
        for name, info in model.model_fields.items()
    )
    config = model.model_config
    logger.debug(f"Built entity mapping for {model.__name__} ({len(fields)} fields)")
    return EntityMapping(
        model=model,
        fields=fields,
        collection_name=config.get("collection_name"),
        table_name=config.get("table_name"),
        udt_name=config.get("udt_name"),
    )


def _is_class(annotation: Any) -> bool:
    return isinstance(annotation, type) and get_origin(annotation) is None


def _is_generic_record(record_type: Any) -> bool:
    return _is_class(record_type) and issubclass(record_type, dict)


class EntityMapper:
    """
    Converts records to and from model instances.

    Values whose type has a codec in ``registry`` are decoded by it; nested
    models are mapped recursively; everything else goes through a pydantic
    ``TypeAdapter``. Encoding of codec types is left to the registry at
    command serialization time.
    """

    def __init__(self, registry: CodecRegistry):
        self.registry = registry
        self._converters: dict[type, dict[str, Converter]] = {}

    # Records -> models

    def from_document(self, document: dict[str, Any] | None, record_type: type[T] | None) -> T | Any:
        """
        Map a raw record to ``record_type``.

        Generic record types (dict, Document, Row) are served without
        field mapping. Absent columns leave the field at its default, or at
        its zero value when it has none (see ``EntityField.zero_value``).

        Raises:
            DecodeError: If a column value is malformed for its codec.
            MappingError: If a column value cannot be converted.
        """
        if document is None:
            return None
        if record_type is None:
            return document
        if _is_generic_record(record_type):
            if type(document) is record_type:
                return document
            return record_type(document)

        mapping = EntityMapping.for_model(record_type)
        converters = self.converters_for(record_type)
        values: dict[str, Any] = {}
        for field in mapping.fields:
            if field.column in document:
                try:
                    values[field.name] = converters[field.name](document[field.column])
                except DecodeError:
                    raise
                except (TypeError, ValueError) as e:
                    raise MappingError(
                        f"Cannot convert column '{field.column}': {e}", field_name=field.name, model=record_type
                    ) from e
            elif field.required:
                values[field.name] = field.zero_value()
        return record_type.model_construct(**values)

    def converters_for(self, model: type[BaseModel]) -> dict[str, Converter]:
        converters = self._converters.get(model)
        if converters is None:
            mapping = EntityMapping.for_model(model)
            converters = {f.name: self._build_converter(f.annotation) for f in mapping.fields}
            self._converters[model] = converters
        return converters

    def _needs_custom(self, annotation: Any) -> bool:
        if _is_class(annotation):
            if annotation in self.registry or issubclass(annotation, BaseModel):
                return True
            return _is_generic_record(annotation) and annotation is not dict
        args = get_args(annotation)
        if get_origin(annotation) is dict and args and args[0] is not str:
            return True
        return any(self._needs_custom(a) for a in args if a is not Ellipsis)

    def _build_converter(self, annotation: Any) -> Converter:
        if annotation is Any or annotation is None:
            return _identity
        if not self._needs_custom(annotation):
            return TypeAdapter(annotation).validate_python

        origin = get_origin(annotation)
        args = get_args(annotation)

        if origin in (Union, UnionType):
            members = [a for a in args if a is not NoneType]
            if len(members) != 1:
                return TypeAdapter(annotation).validate_python
            inner = self._build_converter(members[0])
            return lambda v: None if v is None else inner(v)

        if _is_class(annotation):
            codec = self.registry.get(annotation)
            if codec is not None:
                return lambda v: v if v is None or type(v) is annotation else codec.decode(v)
            if issubclass(annotation, BaseModel):
                return lambda v: v if isinstance(v, annotation) else self.from_document(v, annotation)
            return annotation

        if origin in (list, set, frozenset) and args:
            element = self._build_converter(args[0])
            return lambda v: origin(element(x) for x in v)
        if origin is tuple and len(args) == 2 and args[1] is Ellipsis:
            element = self._build_converter(args[0])
            return lambda v: tuple(element(x) for x in v)
        if origin is dict and len(args) == 2:
            return PairMapCodec(self._build_converter(args[0]), self._build_converter(args[1])).decode

        return TypeAdapter(annotation).validate_python

    # Models -> records

    def to_document(self, entity: Any, container: type[dict[str, Any]] = Row) -> dict[str, Any]:
        """
        Map an entity to a ``container`` record, column by column.

        Generic records are returned as-is (or re-wrapped in ``container``).
        Nested models become nested objects; other values are left for the
        codec registry.
        """
        if entity is None:
            raise ValueError("Cannot map None to a record")
        if isinstance(entity, container):
            return entity
        if isinstance(entity, dict):
            return container(entity)
        if not isinstance(entity, BaseModel):
            raise MappingError(f"Cannot map a {type(entity).__name__} to a record", model=type(entity))

        mapping = EntityMapping.for_model(type(entity))
        document = container()
        for field in mapping.fields:
            try:
                value = getattr(entity, field.name)
            except AttributeError as e:
                raise MappingError(f"Cannot read field: {e}", field_name=field.name, model=type(entity)) from e
            document[field.column] = self._to_wire(value)
        return document

    def _to_wire(self, value: Any) -> Any:
        if isinstance(value, BaseModel):
            return self.to_document(value, dict)
        if isinstance(value, list):
            return [self._to_wire(v) for v in value]
        if isinstance(value, dict):
            return {k: self._to_wire(v) for k, v in value.items()}
        return value


__all__ = ["DataAPIConfigDict", "EntityField", "EntityMapper", "EntityMapping"]
