"""Unit tests for TopologyRefresher."""

import queue
import threading
import time
from collections.abc import Callable
from typing import List, Optional, Tuple, Union

import pytest

from clustertopo.address.address_set import AddressSet
from clustertopo.discovery.cluster_discoverer import ClusterDiscoverer
from clustertopo.discovery.discovery_errors import (
    CommunicationFailure,
    IllegalDiscoveryFunctionResult,
)
from clustertopo.threading.thread_watcher import ThreadWatcher
from clustertopo.topology.discovery_config import DiscoveryConfig
from clustertopo.topology.refresher_state import RefresherState
from clustertopo.topology.topology_refresher import TopologyRefresher

WAIT_SECONDS = 2.0


def addresses(*tokens: str) -> AddressSet:
    return AddressSet.from_strings(tokens)


class FakeDiscoverer(ClusterDiscoverer):
    """Returns (or raises) scripted results in order, repeating the last."""

    def __init__(
        self, *results: Union[AddressSet, Exception, Callable[[], AddressSet]]
    ) -> None:
        self.results = list(results)
        self.calls = 0

    def get_instances(self) -> AddressSet:
        index = min(self.calls, len(self.results) - 1)
        self.calls += 1
        result = self.results[index]
        if isinstance(result, Exception):
            raise result
        if callable(result):
            return result()
        return result


class RecordingClient(TopologyRefresher.Client):
    def __init__(self, fail_on_add: bool = False) -> None:
        self.events: "queue.Queue[Tuple[str, Tuple[str, ...]]]" = queue.Queue()
        self.fail_on_add = fail_on_add

    def _on_addresses_added(self, addresses: AddressSet) -> None:
        self.events.put(("added", addresses.to_strings()))
        if self.fail_on_add:
            raise RuntimeError("pool rejected addresses")

    def _on_addresses_removed(self, addresses: AddressSet) -> None:
        self.events.put(("removed", addresses.to_strings()))

    def next_event(self) -> Tuple[str, Tuple[str, ...]]:
        return self.events.get(timeout=WAIT_SECONDS)


class TestTopologyRefresher:
    def setup_method(self) -> None:
        self.watcher = ThreadWatcher()
        self.client = RecordingClient()
        self.config = DiscoveryConfig(
            "get_cluster_nodes",
            poll_interval_seconds=0.01,
            call_timeout_seconds=WAIT_SECONDS,
        )
        self.refreshers: List[TopologyRefresher] = []

    def teardown_method(self) -> None:
        for refresher in self.refreshers:
            refresher.stop()
            refresher.wait_until_stopped(WAIT_SECONDS)

    def make_refresher(
        self,
        discoverer: ClusterDiscoverer,
        config: Optional[DiscoveryConfig] = None,
        initial: AddressSet = AddressSet(),
    ) -> TopologyRefresher:
        refresher = TopologyRefresher(
            discoverer,
            self.client,
            config or self.config,
            self.watcher,
            initial_topology=initial,
        )
        self.refreshers.append(refresher)
        return refresher

    def test_initial_topology_visible_before_first_cycle(self) -> None:
        refresher = self.make_refresher(
            FakeDiscoverer(addresses("a:1")), initial=addresses("seed:3301")
        )
        assert refresher.get_current_topology() == addresses("seed:3301")
        assert refresher.state is RefresherState.IDLE

    def test_refresh_publishes_and_notifies_added(self) -> None:
        refresher = self.make_refresher(
            FakeDiscoverer(addresses("a:1", "b:2"))
        )

        assert refresher.refresh() is True

        assert refresher.get_current_topology() == addresses("a:1", "b:2")
        assert refresher.state is RefresherState.IDLE
        assert self.client.next_event() == ("added", ("a:1", "b:2"))

    def test_change_notifies_added_before_removed(self) -> None:
        refresher = self.make_refresher(
            FakeDiscoverer(addresses("b:2", "c:3")),
            initial=addresses("a:1", "b:2"),
        )

        assert refresher.refresh() is True

        assert self.client.next_event() == ("added", ("c:3",))
        assert self.client.next_event() == ("removed", ("a:1",))

    def test_unchanged_topology_sends_no_notifications(self) -> None:
        refresher = self.make_refresher(
            FakeDiscoverer(
                addresses("a:1"), addresses("a:1"), addresses("a:1", "b:2")
            ),
        )

        assert refresher.refresh() is True
        assert refresher.refresh() is True
        assert refresher.refresh() is True

        assert self.client.next_event() == ("added", ("a:1",))
        # The unchanged second cycle produced nothing.
        assert self.client.next_event() == ("added", ("b:2",))

    def test_empty_result_removes_everything(self) -> None:
        refresher = self.make_refresher(
            FakeDiscoverer(AddressSet()), initial=addresses("a:1")
        )

        assert refresher.refresh() is True

        assert not refresher.get_current_topology()
        assert self.client.next_event() == ("removed", ("a:1",))

    @pytest.mark.parametrize(
        "error",
        [
            CommunicationFailure("connection refused"),
            IllegalDiscoveryFunctionResult("The first value must be an array"),
            ValueError("unexpected"),
        ],
    )
    def test_failed_cycle_keeps_snapshot_and_backs_off(
        self, error: Exception
    ) -> None:
        refresher = self.make_refresher(
            FakeDiscoverer(error, addresses("a:1", "b:2")),
            initial=addresses("a:1"),
        )

        assert refresher.refresh() is False
        assert refresher.get_current_topology() == addresses("a:1")
        assert refresher.state is RefresherState.BACKOFF
        assert self.client.events.empty()

        assert refresher.refresh() is True
        assert refresher.state is RefresherState.IDLE
        assert self.client.next_event() == ("added", ("b:2",))
        self.watcher.check_for_exception()

    def test_non_address_set_result_fails_cycle(self) -> None:
        refresher = self.make_refresher(
            FakeDiscoverer(lambda: ["a:1"]),  # type: ignore[arg-type,return-value]
            initial=addresses("a:1"),
        )

        assert refresher.refresh() is False
        assert refresher.state is RefresherState.BACKOFF
        assert refresher.get_current_topology() == addresses("a:1")

    def test_timed_out_call_is_communication_failure_and_skips_ticks(
        self,
    ) -> None:
        release = threading.Event()

        def slow() -> AddressSet:
            release.wait(WAIT_SECONDS)
            return addresses("slow:1")

        discoverer = FakeDiscoverer(slow, addresses("fast:1"))
        config = DiscoveryConfig(
            "get_cluster_nodes",
            poll_interval_seconds=60.0,
            call_timeout_seconds=0.05,
        )
        refresher = self.make_refresher(discoverer, config=config)

        assert refresher.refresh() is False
        assert refresher.state is RefresherState.BACKOFF

        # The late call is still running, so this tick is skipped.
        assert refresher.refresh() is False
        assert discoverer.calls == 1

        release.set()
        deadline = time.monotonic() + WAIT_SECONDS
        while not refresher.refresh():
            assert time.monotonic() < deadline
            time.sleep(0.01)

        assert discoverer.calls == 2
        assert refresher.get_current_topology() == addresses("fast:1")

    def test_overlapping_refresh_is_skipped(self) -> None:
        entered = threading.Event()
        release = threading.Event()

        def blocking() -> AddressSet:
            entered.set()
            release.wait(WAIT_SECONDS)
            return addresses("a:1")

        discoverer = FakeDiscoverer(blocking)
        refresher = self.make_refresher(discoverer)

        results: List[bool] = []
        worker = threading.Thread(target=lambda: results.append(refresher.refresh()))
        worker.start()
        assert entered.wait(WAIT_SECONDS)
        assert refresher.state is RefresherState.POLLING

        assert refresher.refresh() is False

        release.set()
        worker.join(WAIT_SECONDS)
        assert results == [True]
        assert discoverer.calls == 1

    def test_result_discarded_when_stopped_during_call(self) -> None:
        entered = threading.Event()
        release = threading.Event()

        def blocking() -> AddressSet:
            entered.set()
            release.wait(WAIT_SECONDS)
            return addresses("late:1")

        refresher = self.make_refresher(
            FakeDiscoverer(blocking), initial=addresses("a:1")
        )

        results: List[bool] = []
        worker = threading.Thread(target=lambda: results.append(refresher.refresh()))
        worker.start()
        assert entered.wait(WAIT_SECONDS)

        refresher.stop()
        release.set()
        worker.join(WAIT_SECONDS)

        assert results == [False]
        assert refresher.state is RefresherState.STOPPED
        assert refresher.get_current_topology() == addresses("a:1")
        assert self.client.events.empty()

    def test_stop_is_idempotent_and_final(self) -> None:
        discoverer = FakeDiscoverer(addresses("a:1"))
        refresher = self.make_refresher(discoverer, initial=addresses("s:1"))

        refresher.stop()
        refresher.stop()

        assert refresher.state is RefresherState.STOPPED
        assert refresher.refresh() is False
        assert discoverer.calls == 0
        assert refresher.get_current_topology() == addresses("s:1")
        with pytest.raises(RuntimeError):
            refresher.start()

    def test_start_twice_raises(self) -> None:
        refresher = self.make_refresher(FakeDiscoverer(addresses("a:1")))
        refresher.start()
        with pytest.raises(RuntimeError):
            refresher.start()

    def test_background_polling_and_stop(self) -> None:
        discoverer = FakeDiscoverer(addresses("a:1"), addresses("a:1", "b:2"))
        refresher = self.make_refresher(discoverer)

        refresher.start()

        assert self.client.next_event() == ("added", ("a:1",))
        assert self.client.next_event() == ("added", ("b:2",))

        refresher.stop()
        assert refresher.wait_until_stopped(WAIT_SECONDS)
        calls = discoverer.calls
        time.sleep(0.05)
        assert discoverer.calls == calls
        self.watcher.check_for_exception()

    def test_background_polling_survives_failures(self) -> None:
        discoverer = FakeDiscoverer(
            CommunicationFailure("down"), addresses("a:1")
        )
        config = DiscoveryConfig(
            "get_cluster_nodes",
            poll_interval_seconds=60.0,
            backoff_seconds=0.01,
        )
        refresher = self.make_refresher(discoverer, config=config)

        refresher.start()

        assert self.client.next_event() == ("added", ("a:1",))
        assert discoverer.calls == 2

    def test_persistent_failure_waits_backoff_between_polls(self) -> None:
        discoverer = FakeDiscoverer(CommunicationFailure("down"))
        config = DiscoveryConfig(
            "get_cluster_nodes",
            poll_interval_seconds=60.0,
            backoff_seconds=0.1,
        )
        refresher = self.make_refresher(discoverer, config=config)

        refresher.start()
        time.sleep(0.35)
        refresher.stop()

        # One immediate poll, then one per backoff period.
        assert 2 <= discoverer.calls <= 5
        assert refresher.get_current_topology() == AddressSet()

    def test_concurrent_readers_see_whole_snapshots(self) -> None:
        first = addresses("a:1", "b:2", "c:3")
        second = addresses("x:7", "y:8", "z:9")
        flip = {"count": 0}

        def alternating() -> AddressSet:
            flip["count"] += 1
            return second if flip["count"] % 2 else first

        refresher = self.make_refresher(
            FakeDiscoverer(alternating), initial=first
        )
        done = threading.Event()
        mixed: List[AddressSet] = []

        def read() -> None:
            while not done.is_set():
                snapshot = refresher.get_current_topology()
                if snapshot != first and snapshot != second:
                    mixed.append(snapshot)

        readers = [threading.Thread(target=read) for _ in range(4)]
        for reader in readers:
            reader.start()
        try:
            for _ in range(200):
                assert refresher.refresh() is True
        finally:
            done.set()
            for reader in readers:
                reader.join(WAIT_SECONDS)

        assert not mixed

    def test_client_exception_is_reported_to_watcher(self) -> None:
        self.client = RecordingClient(fail_on_add=True)
        refresher = self.make_refresher(
            FakeDiscoverer(addresses("a:1"), addresses("b:2"))
        )

        assert refresher.refresh() is True
        assert self.client.next_event() == ("added", ("a:1",))

        deadline = time.monotonic() + WAIT_SECONDS
        with pytest.raises(RuntimeError, match="pool rejected addresses"):
            while time.monotonic() < deadline:
                self.watcher.check_for_exception()
                time.sleep(0.01)

        # Polling goes on regardless.
        assert refresher.refresh() is True
        assert refresher.get_current_topology() == addresses("b:2")

    def test_constructor_validates_types(self) -> None:
        discoverer = FakeDiscoverer(addresses("a:1"))
        with pytest.raises(TypeError):
            TopologyRefresher(
                object(), self.client, self.config, self.watcher  # type: ignore[arg-type]
            )
        with pytest.raises(TypeError):
            TopologyRefresher(
                discoverer, object(), self.config, self.watcher  # type: ignore[arg-type]
            )
        with pytest.raises(TypeError):
            TopologyRefresher(
                discoverer, self.client, {}, self.watcher  # type: ignore[arg-type]
            )
        with pytest.raises(TypeError):
            TopologyRefresher(
                discoverer, self.client, self.config, object()  # type: ignore[arg-type]
            )
        with pytest.raises(TypeError):
            TopologyRefresher(
                discoverer,
                self.client,
                self.config,
                self.watcher,
                initial_topology=["a:1"],  # type: ignore[arg-type]
            )
