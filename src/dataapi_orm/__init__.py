from .documents import Document, Row
from .mapping import DataAPIConfigDict, EntityField, EntityMapper, EntityMapping
from .cursor import BaseCursor, CursorState, FindAndRerankCursor, FindCursor, Page, QueryShape, RerankedResult
from .insert_many import InsertManyOptions, InsertManyOutcome, dispatch_insert_many
from .data_source import DeleteResult, InsertOneResult, ReturnDocument, UpdateResult
from .collection import Collection
from .table import Table, TableIndexDescriptor
from .database import DataAPIClient, Database

__all__ = [
    "BaseCursor",
    "Collection",
    "CursorState",
    "DataAPIClient",
    "DataAPIConfigDict",
    "Database",
    "DeleteResult",
    "Document",
    "EntityField",
    "EntityMapper",
    "EntityMapping",
    "FindAndRerankCursor",
    "FindCursor",
    "InsertManyOptions",
    "InsertManyOutcome",
    "InsertOneResult",
    "Page",
    "QueryShape",
    "RerankedResult",
    "ReturnDocument",
    "Row",
    "Table",
    "TableIndexDescriptor",
    "UpdateResult",
    "dispatch_insert_many",
]
