"""
Data API SDK Connection Module.

Provides the command runner interface and its HTTP implementation.
"""

from .base import BaseCommandRunner
from .http import HTTPCommandRunner

__all__ = [
    "BaseCommandRunner",
    "HTTPCommandRunner",
]
