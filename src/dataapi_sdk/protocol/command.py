"""
Data API command envelope.

Every operation is a JSON object with a single key, the command name,
whose value is the command payload:

    {"find": {"filter": {"age": {"$gt": 21}}, "options": {"limit": 10}}}
"""

import json
import math
import re
from dataclasses import dataclass, field
from datetime import date, datetime, time
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Self
from uuid import UUID, uuid4

if TYPE_CHECKING:
    from .codecs import CodecRegistry


class DataAPIJSONEncoder(json.JSONEncoder):
    """
    JSON encoder for values left untouched by the codec registry.

    - datetime / date / time → ISO 8601 string
    - Decimal → JSON number with the exact decimal digits
    - UUID → string
    - set / frozenset → list

    The stdlib encoder only writes floats with ``float.__repr__``, so a
    decimal is first written as a quoted placeholder and the placeholder
    is replaced with the decimal text once the document is encoded.
    """

    def __init__(self, *args: Any, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self._marker = f"__decimal_{uuid4().hex}_"
        self._decimals: list[str] = []

    def default(self, obj: Any) -> Any:
        if isinstance(obj, (datetime, date, time)):
            return obj.isoformat()
        if isinstance(obj, Decimal):
            if not obj.is_finite():
                raise ValueError(f"Decimal {obj} has no JSON representation")
            self._decimals.append(str(obj))
            return f"{self._marker}{len(self._decimals) - 1}"
        if isinstance(obj, UUID):
            return str(obj)
        if isinstance(obj, (set, frozenset)):
            return list(obj)
        return super().default(obj)

    def encode(self, o: Any) -> str:
        self._decimals = []
        text = super().encode(o)
        if not self._decimals:
            return text
        return re.sub(f'"{self._marker}(\\d+)"', lambda m: self._decimals[int(m.group(1))], text)


def parse_json_float(text: str) -> float | Decimal:
    """
    ``parse_float`` hook for decoding responses.

    Returns a float when the float reproduces the number exactly, otherwise
    the ``Decimal`` of the text, so high-precision decimals are not truncated.
    """
    value = float(text)
    if math.isfinite(value) and Decimal(repr(value)) == Decimal(text):
        return value
    return Decimal(text)


@dataclass
class Command:
    """
    A Data API command.

    Builder methods only set a key when the value is not None, so optional
    arguments can be passed straight through.

    Attributes:
        name: Command name (find, insertMany, createTable...)
        payload: Command body (filter, sort, options, documents...)
    """

    name: str
    payload: dict[str, Any] = field(default_factory=dict)

    def append(self, key: str, value: Any) -> Self:
        if value is not None:
            self.payload[key] = value
        return self

    def with_filter(self, filter: dict[str, Any] | None) -> Self:
        return self.append("filter", filter)

    def with_sort(self, sort: dict[str, Any] | None) -> Self:
        return self.append("sort", sort)

    def with_projection(self, projection: dict[str, Any] | None) -> Self:
        return self.append("projection", projection)

    def with_document(self, document: Any) -> Self:
        return self.append("document", document)

    def with_documents(self, documents: list[Any] | None) -> Self:
        return self.append("documents", documents)

    def with_update(self, update: dict[str, Any] | None) -> Self:
        return self.append("update", update)

    def with_replacement(self, replacement: Any) -> Self:
        return self.append("replacement", replacement)

    def with_options(self, options: dict[str, Any] | None) -> Self:
        """Merge ``options`` into the ``options`` object, skipping None values."""
        for key, value in (options or {}).items():
            self.with_option(key, value)
        return self

    def with_option(self, key: str, value: Any) -> Self:
        if value is not None:
            self.payload.setdefault("options", {})[key] = value
        return self

    @property
    def options(self) -> dict[str, Any]:
        return self.payload.get("options", {})

    def to_dict(self) -> dict[str, Any]:
        return {self.name: self.payload}

    def to_json(self, registry: "CodecRegistry | None" = None) -> str:
        """Serialize, encoding custom types through ``registry`` first."""
        body: Any = self.to_dict()
        if registry is not None:
            body = registry.encode_value(body)
        return json.dumps(body, cls=DataAPIJSONEncoder)


class CommandName:
    """Data API command name constants."""

    # Documents / rows
    FIND = "find"
    FIND_ONE = "findOne"
    FIND_AND_RERANK = "findAndRerank"
    INSERT_ONE = "insertOne"
    INSERT_MANY = "insertMany"
    DELETE_ONE = "deleteOne"
    UPDATE_ONE = "updateOne"
    UPDATE_MANY = "updateMany"
    FIND_ONE_AND_UPDATE = "findOneAndUpdate"
    FIND_ONE_AND_REPLACE = "findOneAndReplace"
    FIND_ONE_AND_DELETE = "findOneAndDelete"
    DELETE_MANY = "deleteMany"
    COUNT_DOCUMENTS = "countDocuments"
    ESTIMATED_DOCUMENT_COUNT = "estimatedDocumentCount"

    # Indexes
    CREATE_INDEX = "createIndex"
    CREATE_VECTOR_INDEX = "createVectorIndex"
    DROP_INDEX = "dropIndex"
    LIST_INDEXES = "listIndexes"

    # Schema
    CREATE_COLLECTION = "createCollection"
    DELETE_COLLECTION = "deleteCollection"
    FIND_COLLECTIONS = "findCollections"
    CREATE_TABLE = "createTable"
    DROP_TABLE = "dropTable"
    LIST_TABLES = "listTables"
    CREATE_TYPE = "createType"
    ALTER_TYPE = "alterType"
    DROP_TYPE = "dropType"
