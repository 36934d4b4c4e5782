"""Keeps a client's view of the cluster topology up to date.

`TopologyRefresher` polls a `ClusterDiscoverer` on a background thread,
publishes each successfully discovered `AddressSet` as the current topology
snapshot, and tells its `Client` (the connection pool) which addresses
appeared and which went away. A failed discovery cycle never touches the
published snapshot.
"""

import concurrent.futures
import logging
import threading
from abc import ABC, abstractmethod
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Optional

from clustertopo.address.address_set import EMPTY_ADDRESS_SET, AddressSet
from clustertopo.discovery.cluster_discoverer import ClusterDiscoverer
from clustertopo.discovery.discovery_errors import (
    CommunicationFailure,
    DiscoveryError,
)
from clustertopo.threading.atomic import Atomic
from clustertopo.threading.thread_watcher import ThreadWatcher
from clustertopo.topology.discovery_config import DiscoveryConfig
from clustertopo.topology.refresher_state import RefresherState

_STOP_JOIN_TIMEOUT_SECONDS = 1.0


class TopologyRefresher:
    """Periodically rediscovers cluster members and publishes the result.

    Only one discovery cycle runs at a time. A tick that fires while a cycle
    (or a discovery call that outlived its timeout) is still running is
    skipped. Readers call `get_current_topology()` from any thread and always
    get a complete snapshot.

    Client notifications run on a dedicated single-thread executor in the
    order they were produced. Exceptions raised by the client are reported
    to the `ThreadWatcher` and do not affect polling.
    """

    # pylint: disable=R0903 # Abstract listener interface
    class Client(ABC):
        """Receives topology changes, typically a connection pool."""

        @abstractmethod
        def _on_addresses_added(self, addresses: AddressSet) -> None:
            """Called with addresses that joined the topology.

            The pool may start opening connections to them.
            """
            raise NotImplementedError(
                "TopologyRefresher.Client._on_addresses_added must be "
                "implemented by subclasses."
            )

        @abstractmethod
        def _on_addresses_removed(self, addresses: AddressSet) -> None:
            """Called with addresses that left the topology.

            The pool should stop opening new connections to them and drain
            existing ones gracefully rather than abort in-flight work.
            """
            raise NotImplementedError(
                "TopologyRefresher.Client._on_addresses_removed must be "
                "implemented by subclasses."
            )

    # pylint: disable=too-many-arguments
    def __init__(
        self,
        discoverer: ClusterDiscoverer,
        client: "TopologyRefresher.Client",
        config: DiscoveryConfig,
        watcher: ThreadWatcher,
        initial_topology: AddressSet = EMPTY_ADDRESS_SET,
    ) -> None:
        """
        Args:
            discoverer: Strategy used to find the cluster members.
            client: Receives add/remove notifications.
            config: Poll interval, call timeout and backoff settings.
            watcher: Collects exceptions from the background threads.
            initial_topology: Snapshot visible before the first successful
                cycle, e.g. the seed addresses.

        Raises:
            TypeError: If an argument has the wrong type.
        """
        if not isinstance(discoverer, ClusterDiscoverer):
            raise TypeError(
                "discoverer must be a ClusterDiscoverer, got "
                f"{type(discoverer).__name__}."
            )
        if not isinstance(client, TopologyRefresher.Client):
            raise TypeError(
                "client must be a TopologyRefresher.Client, got "
                f"{type(client).__name__}."
            )
        if not isinstance(config, DiscoveryConfig):
            raise TypeError(
                f"config must be a DiscoveryConfig, got {type(config).__name__}."
            )
        if not isinstance(watcher, ThreadWatcher):
            raise TypeError(
                "Watcher must be an instance of ThreadWatcher, got "
                f"{type(watcher).__name__}."
            )
        if not isinstance(initial_topology, AddressSet):
            raise TypeError(
                "initial_topology must be an AddressSet, got "
                f"{type(initial_topology).__name__}."
            )

        self.__discoverer = discoverer
        self.__client = client
        self.__config = config
        self.__watcher = watcher

        self.__snapshot = Atomic[AddressSet](initial_topology)

        # Guards __state and the publish/notify step of a cycle.
        self.__state_lock = threading.Lock()
        self.__state = RefresherState.IDLE

        self.__cycle_lock = threading.Lock()
        self.__pending_call: Optional[Future[AddressSet]] = None
        self.__stop_event = threading.Event()
        self.__thread: Optional[threading.Thread] = None

        self.__discovery_executor = ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="clustertopo-discovery"
        )
        self.__notification_executor = (
            watcher.create_tracked_thread_pool_executor(
                max_workers=1, thread_name_prefix="clustertopo-notify"
            )
        )

    @property
    def state(self) -> RefresherState:
        with self.__state_lock:
            return self.__state

    def get_current_topology(self) -> AddressSet:
        """Returns the latest published topology snapshot."""
        return self.__snapshot.get()

    def start(self, poll_immediately: bool = True) -> None:
        """Starts polling on a background thread.

        Args:
            poll_immediately: Run the first cycle right away instead of
                after one poll interval.

        Raises:
            RuntimeError: If already started or already stopped.
        """
        with self.__state_lock:
            if self.__state is RefresherState.STOPPED:
                raise RuntimeError("TopologyRefresher cannot be restarted.")
            if self.__thread is not None:
                raise RuntimeError("TopologyRefresher is already running.")
            self.__thread = self.__watcher.create_tracked_thread(
                lambda: self.__run_loop(poll_immediately),
                name="clustertopo-refresher",
            )
            self.__thread.start()

        logging.info(
            "Topology refresher started: function '%s', every %.1fs",
            self.__config.function_name,
            self.__config.poll_interval_seconds,
        )

    def refresh(self) -> bool:
        """Runs one discovery cycle on the calling thread.

        Returns:
            True if a new snapshot was published. False if the cycle failed,
            was skipped because another one is running, or the refresher is
            stopped.
        """
        return self.__run_cycle()

    def stop(self) -> None:
        """Stops polling. Safe to call from any thread, more than once.

        Waits briefly for the polling thread. A discovery call already in
        flight may finish, but its result is discarded. Queued notifications
        are still delivered. The last snapshot stays readable.
        """
        with self.__state_lock:
            if self.__state is RefresherState.STOPPED:
                return
            self.__state = RefresherState.STOPPED
            self.__stop_event.set()
            self.__notification_executor.shutdown(wait=False)

        self.__discovery_executor.shutdown(wait=False, cancel_futures=True)
        if not self.wait_until_stopped(_STOP_JOIN_TIMEOUT_SECONDS):
            logging.warning(
                "Refresher thread still busy after %.1fs, not waiting longer.",
                _STOP_JOIN_TIMEOUT_SECONDS,
            )
        logging.info("Topology refresher stopped.")

    def wait_until_stopped(self, timeout: Optional[float] = None) -> bool:
        """Waits for the polling thread to exit after `stop()`.

        Returns:
            True if the thread has exited (or was never started).
        """
        thread = self.__thread
        if thread is None or thread is threading.current_thread():
            return True
        thread.join(timeout)
        return not thread.is_alive()

    def __run_loop(self, poll_immediately: bool) -> None:
        delay = 0.0 if poll_immediately else self.__config.poll_interval_seconds
        while not self.__stop_event.wait(delay):
            self.__run_cycle()
            if self.state is not RefresherState.BACKOFF:
                delay = self.__config.poll_interval_seconds
                continue

            if self.__stop_event.wait(self.__config.effective_backoff_seconds):
                break
            with self.__state_lock:
                if self.__state is RefresherState.BACKOFF:
                    self.__state = RefresherState.IDLE
            delay = 0.0

    def __run_cycle(self) -> bool:
        if not self.__cycle_lock.acquire(blocking=False):
            logging.debug("Discovery cycle already running, skipping tick.")
            return False

        try:
            pending = self.__pending_call
            if pending is not None and not pending.done():
                logging.debug(
                    "Previous discovery call has not returned, skipping tick."
                )
                return False

            with self.__state_lock:
                if self.__state is RefresherState.STOPPED:
                    return False
                self.__state = RefresherState.POLLING

            try:
                new_topology = self.__discover()
            # pylint: disable=broad-exception-caught # Cycle boundary.
            except Exception as e:
                self.__on_cycle_failed(e)
                return False

            return self.__apply(new_topology)
        finally:
            self.__cycle_lock.release()

    def __discover(self) -> AddressSet:
        timeout = self.__config.call_timeout_seconds
        future = self.__discovery_executor.submit(
            self.__discoverer.get_instances
        )
        self.__pending_call = future
        try:
            result = future.result(timeout=timeout)
        except concurrent.futures.TimeoutError as e:
            raise CommunicationFailure(
                f"Discovery call timed out after {timeout} seconds"
            ) from e

        if not isinstance(result, AddressSet):
            raise TypeError(
                "ClusterDiscoverer.get_instances() must return an AddressSet, "
                f"got {type(result).__name__}."
            )
        return result

    def __on_cycle_failed(self, error: Exception) -> None:
        with self.__state_lock:
            if self.__state is RefresherState.STOPPED:
                logging.debug("Discovery failed after stop: %s", error)
                return
            self.__state = RefresherState.BACKOFF

        known = len(self.__snapshot.get())
        if isinstance(error, DiscoveryError):
            logging.warning(
                "Discovery cycle failed (%s), keeping %d known instances: %s",
                error.kind.value,
                known,
                error,
            )
        else:
            logging.error(
                "Discovery cycle failed unexpectedly, keeping %d known "
                "instances: %r",
                known,
                error,
                exc_info=True,
            )

    def __apply(self, new_topology: AddressSet) -> bool:
        with self.__state_lock:
            if self.__state is RefresherState.STOPPED:
                logging.debug(
                    "Refresher stopped during discovery, discarding result."
                )
                return False
            self.__state = RefresherState.APPLYING

            previous = self.__snapshot.get_and_set(new_topology)
            added = new_topology.difference(previous)
            removed = previous.difference(new_topology)

            if added:
                self.__notification_executor.submit(
                    self.__client._on_addresses_added, added
                )
            if removed:
                self.__notification_executor.submit(
                    self.__client._on_addresses_removed, removed
                )

            self.__state = RefresherState.IDLE

        if added or removed:
            logging.info(
                "Cluster topology changed: added %s, removed %s",
                list(added.to_strings()),
                list(removed.to_strings()),
            )
        else:
            logging.debug(
                "Cluster topology unchanged (%d instances).", len(new_topology)
            )
        return True
