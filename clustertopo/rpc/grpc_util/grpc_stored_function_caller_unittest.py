from unittest.mock import MagicMock

import grpc
import pytest
from google.protobuf import struct_pb2, wrappers_pb2

from clustertopo.discovery.discovery_errors import (
    CommunicationFailure,
    RemoteExecutionFailure,
)
from clustertopo.rpc.grpc_util.grpc_stored_function_caller import (
    DEFAULT_CALL_METHOD,
    GrpcStoredFunctionCaller,
    list_value_to_python,
)


class FakeRpcError(grpc.RpcError):
    def __init__(self, code: grpc.StatusCode, details: str = "") -> None:
        super().__init__()
        self._code = code
        self._details = details

    def code(self) -> grpc.StatusCode:
        return self._code

    def details(self) -> str:
        return self._details


@pytest.fixture
def mock_channel() -> MagicMock:
    return MagicMock(spec=grpc.Channel)


def test_list_value_to_python_handles_nested_values() -> None:
    outer = struct_pb2.ListValue()
    outer.add_list().extend(["a:1", "b:2"])
    outer.append("extra")
    outer.append(423)
    outer.append(None)
    outer.append(True)
    outer.add_struct()["k"] = "v"

    assert list_value_to_python(outer) == [
        ["a:1", "b:2"],
        "extra",
        423.0,
        None,
        True,
        {"k": "v"},
    ]


def test_call_sends_function_name_and_converts_reply(
    mock_channel: MagicMock,
) -> None:
    reply = struct_pb2.ListValue()
    reply.add_list().extend(["localhost:3301"])
    stub = mock_channel.unary_unary.return_value
    stub.return_value = reply

    caller = GrpcStoredFunctionCaller(mock_channel, timeout_seconds=2.5)
    result = caller.call("get_cluster_nodes")

    assert result == [["localhost:3301"]]
    mock_channel.unary_unary.assert_called_once_with(
        DEFAULT_CALL_METHOD,
        request_serializer=wrappers_pb2.StringValue.SerializeToString,
        response_deserializer=struct_pb2.ListValue.FromString,
    )
    stub.assert_called_once_with(
        wrappers_pb2.StringValue(value="get_cluster_nodes"), timeout=2.5
    )


@pytest.mark.parametrize(
    "code, expected",
    [
        (grpc.StatusCode.UNAVAILABLE, CommunicationFailure),
        (grpc.StatusCode.DEADLINE_EXCEEDED, CommunicationFailure),
        (grpc.StatusCode.NOT_FOUND, RemoteExecutionFailure),
        (grpc.StatusCode.UNKNOWN, RemoteExecutionFailure),
    ],
)
def test_call_maps_grpc_errors(
    mock_channel: MagicMock, code: grpc.StatusCode, expected: type
) -> None:
    original = FakeRpcError(code, "boom")
    mock_channel.unary_unary.return_value.side_effect = original

    caller = GrpcStoredFunctionCaller(mock_channel)
    with pytest.raises(expected) as info:
        caller.call("get_cluster_nodes")

    assert info.value.__cause__ is original


def test_constructor_validates_arguments(mock_channel: MagicMock) -> None:
    with pytest.raises(ValueError):
        GrpcStoredFunctionCaller(None)  # type: ignore[arg-type]
    with pytest.raises(ValueError):
        GrpcStoredFunctionCaller(mock_channel, method="Call")
    with pytest.raises(ValueError):
        GrpcStoredFunctionCaller(mock_channel, timeout_seconds=0)
