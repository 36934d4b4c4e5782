"""ThreadPoolExecutor that reports exceptions raised by submitted tasks."""

from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any


class ThrowingThreadPoolExecutor(ThreadPoolExecutor):
    """
    `ThreadPoolExecutor` that passes task exceptions to an error callback.

    The refresher submits pool notifications here and never waits on the
    returned futures, so a failing `_on_addresses_added` would otherwise go
    unnoticed. The exception is still set on the `Future`.
    """

    def __init__(
        self,
        error_cb: Callable[[Exception], None],
        max_workers: int = 1,
        thread_name_prefix: str = "",
    ) -> None:
        super().__init__(
            max_workers=max_workers, thread_name_prefix=thread_name_prefix
        )
        self.__error_cb = error_cb

    def submit(  # type: ignore[override]
        self, fn: Callable[..., Any], /, *args: Any, **kwargs: Any
    ) -> Future[Any]:
        return super().submit(self.__report_errors, fn, *args, **kwargs)

    def __report_errors(
        self, fn: Callable[..., Any], *args: Any, **kwargs: Any
    ) -> Any:
        try:
            return fn(*args, **kwargs)
        except Exception as e:
            self.__error_cb(e)
            raise
