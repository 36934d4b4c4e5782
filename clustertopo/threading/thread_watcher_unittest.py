import threading

import pytest

from clustertopo.threading.thread_watcher import ThreadWatcher
from clustertopo.threading.throwing_thread import ThrowingThread
from clustertopo.threading.throwing_thread_pool_executor import (
    ThrowingThreadPoolExecutor,
)


class TestThreadWatcher:
    def setup_method(self) -> None:
        self.watcher = ThreadWatcher()

    def test_check_for_exception_without_errors_is_noop(self) -> None:
        self.watcher.check_for_exception()

    def test_tracked_thread_reports_exception(self) -> None:
        def failing_target() -> None:
            raise ValueError("poll loop failed")

        thread = self.watcher.create_tracked_thread(
            failing_target, name="tracked"
        )
        assert isinstance(thread, ThrowingThread)
        thread.start()
        thread.join(timeout=2.0)

        with pytest.raises(ValueError, match="poll loop failed"):
            self.watcher.check_for_exception()
        with pytest.raises(ValueError, match="poll loop failed"):
            self.watcher.run_until_exception()

    def test_tracked_thread_success_reports_nothing(self) -> None:
        ran = threading.Event()
        thread = self.watcher.create_tracked_thread(ran.set)
        thread.start()
        thread.join(timeout=2.0)

        assert ran.is_set()
        self.watcher.check_for_exception()

    def test_tracked_executor_reports_and_keeps_future_exception(
        self,
    ) -> None:
        executor = self.watcher.create_tracked_thread_pool_executor(
            max_workers=1, thread_name_prefix="notify"
        )
        assert isinstance(executor, ThrowingThreadPoolExecutor)

        def failing_task() -> None:
            raise RuntimeError("pool callback failed")

        future = executor.submit(failing_task)
        with pytest.raises(RuntimeError, match="pool callback failed"):
            future.result(timeout=2.0)
        executor.shutdown(wait=True)

        with pytest.raises(RuntimeError, match="pool callback failed"):
            self.watcher.check_for_exception()

    def test_tracked_executor_returns_results(self) -> None:
        executor = self.watcher.create_tracked_thread_pool_executor(
            max_workers=1
        )
        future = executor.submit(lambda x, y: x + y, 2, y=3)
        assert future.result(timeout=2.0) == 5
        executor.shutdown(wait=True)
        self.watcher.check_for_exception()


def test_throwing_thread_reports_to_callback() -> None:
    errors: list[Exception] = []

    def target() -> None:
        raise KeyError("missing")

    thread = ThrowingThread(target, errors.append, name="poller")
    thread.start()
    thread.join(timeout=2.0)

    assert thread.name == "poller"
    assert thread.daemon
    assert len(errors) == 1
    assert isinstance(errors[0], KeyError)


def test_run_until_exception_wakes_on_report() -> None:
    watcher = ThreadWatcher()
    failure = RuntimeError("late failure")
    timer = threading.Timer(0.05, watcher.on_exception_seen, args=(failure,))
    timer.start()

    with pytest.raises(RuntimeError, match="late failure"):
        watcher.run_until_exception()
    timer.join()
