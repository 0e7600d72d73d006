"""
Data API ORM Command Line Interface.

Provides:
- count: Count the documents of a collection
- find: Print matching documents as JSON lines
- load: Bulk load a JSON / JSON-lines file with insert_many
"""

from .commands import cli

__all__ = ["cli"]
