"""
Base Command Runner for the Data API SDK.

Defines the abstract interface that every transport must implement: send
one serialized command, get back the decoded JSON body.
"""

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Self

from ..exceptions import DataAPIResponseError
from ..protocol.command import Command
from ..types import DataAPIResponse

if TYPE_CHECKING:
    from ..protocol.codecs import CodecRegistry

logger = logging.getLogger(__name__)


class BaseCommandRunner(ABC):
    """
    Abstract base class for command runners.

    A runner is bound to one keyspace; ``target`` selects a collection or
    table inside it, ``None`` addresses the keyspace itself.
    """

    def __init__(self, keyspace: str):
        self.keyspace = keyspace

    @abstractmethod
    async def _send_command(self, body: str, target: str | None) -> dict[str, Any]:
        """
        Send a serialized command and return the decoded response body.

        Args:
            body: JSON text of the command
            target: Collection or table name, or None for keyspace commands

        Raises:
            ConnectionError, TimeoutError, DataAPIHttpError: On transport failures
        """
        ...

    async def connect(self) -> Self:
        return self

    async def close(self) -> None:
        pass

    async def __aenter__(self) -> Self:
        await self.connect()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    async def run_command(
        self,
        command: Command,
        target: str | None = None,
        registry: "CodecRegistry | None" = None,
    ) -> DataAPIResponse:
        """
        Execute a command.

        Args:
            command: The command to run
            target: Collection or table name, or None for keyspace commands
            registry: Codecs used to encode the payload

        Returns:
            The parsed response

        Raises:
            DataAPIResponseError: If the response carries errors
        """
        logger.debug(f"Running command '{command.name}' on {self.keyspace}/{target or ''}")
        raw = await self._send_command(command.to_json(registry), target)
        response = DataAPIResponse.from_dict(raw)

        for warning in response.status.warnings:
            message = warning.get("message", warning) if isinstance(warning, dict) else warning
            logger.warning(f"Command '{command.name}' returned a warning: {message}")

        if response.errors:
            raise DataAPIResponseError(command.name, response.errors)
        return response
