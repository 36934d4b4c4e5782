"""Defines the transport capability used to call stored functions."""

from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any


# pylint: disable=R0903 # Abstract transport interface
class StoredFunctionCaller(ABC):
    """Synchronously calls a named, argument-less remote function.

    Implementations raise `CommunicationFailure` when the call cannot be
    delivered (including timeouts) and `RemoteExecutionFailure` when the
    remote function itself fails.
    """

    @abstractmethod
    def call(self, function_name: str) -> Sequence[Any]:
        """Calls `function_name` with no arguments.

        Args:
            function_name: Name of the remote function.

        Returns:
            The function's return values, in order.
        """
