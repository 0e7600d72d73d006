"""
Generic record containers.

``Document`` is the record of a collection and ``Row`` the record of a
table. Both are plain insertion-ordered dicts; mapping a raw record to
either of them is the identity.
"""

from typing import Any, Self


class _Record(dict[str, Any]):
    def append(self, key: str, value: Any) -> Self:
        """Set ``key`` and return self for chaining."""
        self[key] = value
        return self

    def __repr__(self) -> str:
        return f"{type(self).__name__}({dict.__repr__(self)})"


class Document(_Record):
    """
    A collection document.

    Example:
        doc = Document().append("_id", 1).append("name", "Ada")
        doc.id  # 1
    """

    @property
    def id(self) -> Any:
        return self.get("_id")


class Row(_Record):
    """A table row."""

    pass


__all__ = ["Document", "Row"]
