"""
Defines the `ThreadWatcher` class.

`ThreadWatcher` creates the refresher's poll thread (a `ThrowingThread`) and
notification executor (a `ThrowingThreadPoolExecutor`) and collects any
exception either of them lets escape, so the owning application can surface
it on a thread of its choosing.
"""

import threading
from collections.abc import Callable
from typing import List, Optional

from clustertopo.threading.throwing_thread import ThrowingThread
from clustertopo.threading.throwing_thread_pool_executor import (
    ThrowingThreadPoolExecutor,
)


class ThreadWatcher:
    """
    Creates tracked threads and executors and surfaces their exceptions.
    """

    def __init__(self) -> None:
        self.__seen = threading.Condition()
        self.__exceptions: List[Exception] = []

    def create_tracked_thread(
        self,
        target: Callable[[], None],
        is_daemon: bool = True,
        name: Optional[str] = None,
    ) -> threading.Thread:
        """Returns a not yet started thread that reports to this watcher."""
        return ThrowingThread(
            target, self.on_exception_seen, name=name, daemon=is_daemon
        )

    def create_tracked_thread_pool_executor(
        self, max_workers: int = 1, thread_name_prefix: str = ""
    ) -> ThrowingThreadPoolExecutor:
        """Returns an executor whose task failures report to this watcher."""
        return ThrowingThreadPoolExecutor(
            self.on_exception_seen,
            max_workers=max_workers,
            thread_name_prefix=thread_name_prefix,
        )

    def run_until_exception(self) -> None:
        """
        Blocks until a tracked thread or task reports an exception.

        Raises:
            Exception: The first exception reported.
        """
        with self.__seen:
            self.__seen.wait_for(lambda: bool(self.__exceptions))
            raise self.__exceptions[0]

    def check_for_exception(self) -> None:
        """Raises the first reported exception, if any. Never blocks."""
        with self.__seen:
            if self.__exceptions:
                raise self.__exceptions[0]

    def on_exception_seen(self, e: Exception) -> None:
        with self.__seen:
            self.__exceptions.append(e)
            self.__seen.notify_all()
