"""End-to-end tests: TopologyRefresher polling a real gRPC stored-function
server through GrpcStoredFunctionCaller."""

import logging
import queue
import threading
import time
from concurrent import futures
from typing import Any, Dict, Iterator, List, Tuple

import grpc
import pytest
from google.protobuf import struct_pb2, wrappers_pb2

from clustertopo.address.address_set import AddressSet
from clustertopo.discovery.discovery_errors import (
    CommunicationFailure,
    IllegalDiscoveryFunctionResult,
    RemoteExecutionFailure,
)
from clustertopo.discovery.stored_function_discoverer import (
    StoredFunctionDiscoverer,
)
from clustertopo.rpc.grpc_util.grpc_stored_function_caller import (
    GrpcStoredFunctionCaller,
)
from clustertopo.threading.thread_watcher import ThreadWatcher
from clustertopo.topology.discovery_config import DiscoveryConfig
from clustertopo.topology.refresher_state import RefresherState
from clustertopo.topology.round_robin_address_provider import (
    RoundRobinAddressProvider,
)
from clustertopo.topology.topology_refresher import TopologyRefresher

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

SERVICE_NAME = "clustertopo.StoredFunctions"
FUNCTION_NAME = "get_cluster_nodes"
WAIT_SECONDS = 5.0


class StoredFunctionServer:
    """Serves stored functions whose replies the test can change."""

    def __init__(self) -> None:
        self.__lock = threading.Lock()
        self.__replies: Dict[str, List[Any]] = {}

    def set_reply(self, function_name: str, reply: List[Any]) -> None:
        with self.__lock:
            self.__replies[function_name] = reply

    def call(
        self, request: wrappers_pb2.StringValue, context: grpc.ServicerContext
    ) -> struct_pb2.ListValue:
        with self.__lock:
            reply = self.__replies.get(request.value)
        if reply is None:
            context.abort(
                grpc.StatusCode.NOT_FOUND,
                f"Procedure '{request.value}' is not defined",
            )

        result = struct_pb2.ListValue()
        result.extend(reply)
        return result


class RecordingPool(TopologyRefresher.Client):
    def __init__(self) -> None:
        self.events: "queue.Queue[Tuple[str, Tuple[str, ...]]]" = queue.Queue()

    def _on_addresses_added(self, addresses: AddressSet) -> None:
        self.events.put(("added", addresses.to_strings()))

    def _on_addresses_removed(self, addresses: AddressSet) -> None:
        self.events.put(("removed", addresses.to_strings()))


@pytest.fixture
def stored_function_server() -> Iterator[Tuple[StoredFunctionServer, int]]:
    functions = StoredFunctionServer()
    server = grpc.server(futures.ThreadPoolExecutor(max_workers=4))
    handler = grpc.method_handlers_generic_handler(
        SERVICE_NAME,
        {
            "Call": grpc.unary_unary_rpc_method_handler(
                functions.call,
                request_deserializer=wrappers_pb2.StringValue.FromString,
                response_serializer=struct_pb2.ListValue.SerializeToString,
            )
        },
    )
    server.add_generic_rpc_handlers((handler,))
    port = server.add_insecure_port("localhost:0")
    assert port != 0, "Failed to bind test server"
    server.start()
    logger.info("Stored function server listening on port %d", port)

    try:
        yield functions, port
    finally:
        server.stop(grace=None)


@pytest.fixture
def channel(
    stored_function_server: Tuple[StoredFunctionServer, int],
) -> Iterator[grpc.Channel]:
    _, port = stored_function_server
    with grpc.insecure_channel(f"localhost:{port}") as test_channel:
        yield test_channel


def make_discoverer(
    test_channel: grpc.Channel, function_name: str = FUNCTION_NAME
) -> StoredFunctionDiscoverer:
    caller = GrpcStoredFunctionCaller(test_channel, timeout_seconds=WAIT_SECONDS)
    return StoredFunctionDiscoverer(caller, function_name)


def test_discoverer_reads_instances(
    stored_function_server: Tuple[StoredFunctionServer, int],
    channel: grpc.Channel,
) -> None:
    functions, _ = stored_function_server
    functions.set_reply(
        FUNCTION_NAME, [["a:3301", "b:3302", "a:3301", "bad:port", ""]]
    )

    result = make_discoverer(channel).get_instances()

    assert result.to_strings() == ("a:3301", "b:3302")


def test_unknown_function_is_remote_execution_failure(
    channel: grpc.Channel,
) -> None:
    with pytest.raises(RemoteExecutionFailure) as info:
        make_discoverer(channel, "no_such_function").get_instances()

    assert "is not defined" in info.value.message


def test_illegal_reply_is_contract_violation(
    stored_function_server: Tuple[StoredFunctionServer, int],
    channel: grpc.Channel,
) -> None:
    functions, _ = stored_function_server
    functions.set_reply(FUNCTION_NAME, ["a:3301"])

    with pytest.raises(IllegalDiscoveryFunctionResult):
        make_discoverer(channel).get_instances()


def test_unreachable_server_is_communication_failure() -> None:
    with grpc.insecure_channel("localhost:1") as dead_channel:
        caller = GrpcStoredFunctionCaller(dead_channel, timeout_seconds=0.5)
        discoverer = StoredFunctionDiscoverer(caller, FUNCTION_NAME)
        with pytest.raises(CommunicationFailure):
            discoverer.get_instances()


def test_refresher_follows_topology_changes(
    stored_function_server: Tuple[StoredFunctionServer, int],
    channel: grpc.Channel,
) -> None:
    functions, _ = stored_function_server
    functions.set_reply(FUNCTION_NAME, [["a:3301", "b:3302"]])

    watcher = ThreadWatcher()
    pool = RecordingPool()
    refresher = TopologyRefresher(
        make_discoverer(channel),
        pool,
        DiscoveryConfig(FUNCTION_NAME),
        watcher,
        initial_topology=AddressSet.from_strings(["seed:3301"]),
    )

    try:
        assert refresher.refresh() is True
        assert refresher.get_current_topology().to_strings() == (
            "a:3301",
            "b:3302",
        )
        assert pool.events.get(timeout=WAIT_SECONDS) == (
            "added",
            ("a:3301", "b:3302"),
        )
        assert pool.events.get(timeout=WAIT_SECONDS) == (
            "removed",
            ("seed:3301",),
        )

        functions.set_reply(FUNCTION_NAME, [["b:3302", "c:3303"]])
        assert refresher.refresh() is True
        assert pool.events.get(timeout=WAIT_SECONDS) == ("added", ("c:3303",))
        assert pool.events.get(timeout=WAIT_SECONDS) == (
            "removed",
            ("a:3301",),
        )
    finally:
        refresher.stop()

    watcher.check_for_exception()


def test_failed_cycle_keeps_last_snapshot(
    stored_function_server: Tuple[StoredFunctionServer, int],
    channel: grpc.Channel,
) -> None:
    functions, _ = stored_function_server
    functions.set_reply(FUNCTION_NAME, [["a:3301"]])

    refresher = TopologyRefresher(
        make_discoverer(channel),
        RecordingPool(),
        DiscoveryConfig(FUNCTION_NAME),
        ThreadWatcher(),
    )

    try:
        assert refresher.refresh() is True

        functions.set_reply(FUNCTION_NAME, [None])
        assert refresher.refresh() is False
        assert refresher.state is RefresherState.BACKOFF
        assert refresher.get_current_topology().to_strings() == ("a:3301",)
    finally:
        refresher.stop()


def test_background_refresh_feeds_round_robin_provider(
    stored_function_server: Tuple[StoredFunctionServer, int],
    channel: grpc.Channel,
) -> None:
    functions, _ = stored_function_server
    functions.set_reply(FUNCTION_NAME, [["a:3301", "b:3302"]])

    provider = RoundRobinAddressProvider(["a:3301"])
    watcher = ThreadWatcher()
    refresher = TopologyRefresher(
        make_discoverer(channel),
        provider,
        DiscoveryConfig(FUNCTION_NAME, poll_interval_seconds=0.05),
        watcher,
        initial_topology=provider.get_addresses(),
    )

    refresher.start()
    try:
        seen = set()
        for _ in range(200):
            seen.add(str(provider.next_address()))
            if seen == {"a:3301", "b:3302"}:
                break
            time.sleep(0.01)
        assert seen == {"a:3301", "b:3302"}
    finally:
        refresher.stop()
        assert refresher.wait_until_stopped(WAIT_SECONDS)

    watcher.check_for_exception()
