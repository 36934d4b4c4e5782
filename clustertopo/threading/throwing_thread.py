"""Defines ThrowingThread, the refresher's polling thread."""

import logging
import threading
from collections.abc import Callable
from typing import Optional


class ThrowingThread(threading.Thread):
    """
    Thread that logs an exception escaping `target` and hands it to
    `on_error_cb`, rather than letting it die in the default excepthook.
    """

    def __init__(
        self,
        target: Callable[[], None],
        on_error_cb: Callable[[Exception], None],
        name: Optional[str] = None,
        daemon: bool = True,
    ) -> None:
        super().__init__(name=name, daemon=daemon)
        self.__target = target
        self.__on_error_cb = on_error_cb

    def run(self) -> None:
        try:
            self.__target()
        # pylint: disable=broad-exception-caught # Thread boundary.
        except Exception as e:
            logging.error(
                "Thread %s stopped by an exception: %r",
                self.name,
                e,
                exc_info=True,
            )
            self.__on_error_cb(e)
