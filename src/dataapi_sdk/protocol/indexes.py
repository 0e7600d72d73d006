"""Index target columns: ``"tags"`` or ``{"tags": "$keys"}``."""

from __future__ import annotations

from typing import Any

from ..data_types import IndexMapKind, TableIndexColumn
from ..exceptions import DecodeError
from .codecs import Codec

INDEX_COLUMN_GRAMMAR = '"<column>" or {"<column>": "$keys" | "$values" | "$entries"}'


class IndexColumnCodec(Codec[TableIndexColumn]):
    """Codec for ``TableIndexColumn``. The default kind (entries) encodes as the bare name."""

    def encode(self, value: TableIndexColumn) -> str | dict[str, str]:
        if value.is_default_kind:
            return value.name
        return {value.name: value.kind.value}

    def decode(self, wire: Any) -> TableIndexColumn:
        if isinstance(wire, str):
            return TableIndexColumn(wire)
        if not isinstance(wire, dict) or len(wire) != 1:
            raise DecodeError(f"Invalid index column: {wire!r}", wire, INDEX_COLUMN_GRAMMAR)
        ((name, kind),) = wire.items()
        try:
            return TableIndexColumn(name, IndexMapKind(kind))
        except ValueError:
            raise DecodeError(f"Invalid index kind {kind!r} for column {name!r}", wire, INDEX_COLUMN_GRAMMAR) from None


__all__ = ["IndexColumnCodec"]
