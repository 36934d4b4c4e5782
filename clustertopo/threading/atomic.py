"""
Provides generic `Atomic[AtomicTypeT]`, a lock-guarded reference cell.

`TopologyRefresher` keeps its published `AddressSet` in an `Atomic` so that
connection-pool threads reading the topology always get either the previous
or the next snapshot object, never a half-built one. The stored values are
expected to be immutable; `Atomic` guards the reference, not the referent.
"""

import threading
from typing import Generic, TypeVar

AtomicTypeT = TypeVar("AtomicTypeT")


class Atomic(Generic[AtomicTypeT]):
    """
    Holds a single reference that may be read and replaced from any thread.
    """

    def __init__(self, value: AtomicTypeT) -> None:
        """
        Initializes the cell with its first value.

        Args:
            value: The initial value.
        """
        self.__value: AtomicTypeT = value
        self.__lock = threading.Lock()

    def set(self, value: AtomicTypeT) -> None:
        """
        Replaces the stored reference with `value` in one step.

        Args:
            value: The new value to publish.
        """
        with self.__lock:
            self.__value = value

    def get(self) -> AtomicTypeT:
        """
        Returns the currently stored reference.
        """
        with self.__lock:
            return self.__value

    def get_and_set(self, value: AtomicTypeT) -> AtomicTypeT:
        """
        Replaces the stored reference and returns the one it replaced.

        Args:
            value: The new value to publish.

        Returns:
            The value that was stored before this call.
        """
        with self.__lock:
            previous = self.__value
            self.__value = value
            return previous
