"""Threading utils for clustertopo: atomic cells, tracked threads, watchers."""

from clustertopo.threading.atomic import Atomic
from clustertopo.threading.thread_watcher import ThreadWatcher

__all__ = [
    "Atomic",
    "ThreadWatcher",
]
