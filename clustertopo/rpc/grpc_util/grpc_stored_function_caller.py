"""A `StoredFunctionCaller` that invokes stored functions over gRPC.

The call is a generic unary RPC that needs no generated stubs. The request
is a `google.protobuf.StringValue` holding the function name and the response
is a `google.protobuf.ListValue` holding the function's return values, so a
Lua multi-value return ``return {"a:1", "b:2"}, "extra"`` arrives as
``[["a:1", "b:2"], "extra"]``.
"""

import logging
from typing import Any, List, Optional

import grpc
from google.protobuf import struct_pb2, wrappers_pb2

from clustertopo.rpc.grpc_util.grpc_caller import to_discovery_error
from clustertopo.rpc.stored_function_caller import StoredFunctionCaller

DEFAULT_CALL_METHOD = "/clustertopo.StoredFunctions/Call"


def value_to_python(value: struct_pb2.Value) -> Any:
    """Converts a protobuf `Value` into plain Python data.

    Whole numbers stay floats, as `Value` has a single double number kind.
    """
    kind = value.WhichOneof("kind")
    if kind is None or kind == "null_value":
        return None
    if kind == "number_value":
        return value.number_value
    if kind == "string_value":
        return value.string_value
    if kind == "bool_value":
        return value.bool_value
    if kind == "list_value":
        return list_value_to_python(value.list_value)
    return {
        key: value_to_python(item)
        for key, item in value.struct_value.fields.items()
    }


def list_value_to_python(list_value: struct_pb2.ListValue) -> List[Any]:
    """Converts a protobuf `ListValue` into a Python list."""
    return [value_to_python(item) for item in list_value.values]


class GrpcStoredFunctionCaller(StoredFunctionCaller):
    """Calls stored functions through a gRPC channel.

    gRPC errors are translated by `to_discovery_error`: `UNAVAILABLE` and
    `DEADLINE_EXCEEDED` raise `CommunicationFailure`, any other status raises
    `RemoteExecutionFailure`.
    """

    def __init__(
        self,
        channel: grpc.Channel,
        method: str = DEFAULT_CALL_METHOD,
        timeout_seconds: Optional[float] = None,
    ) -> None:
        """
        Args:
            channel: A synchronous gRPC channel to one cluster instance.
            method: Full gRPC method path of the call endpoint.
            timeout_seconds: Per-call deadline. None waits indefinitely.

        Raises:
            ValueError: If `channel` is None, `method` is not a full method
                path, or `timeout_seconds` is not positive.
        """
        if channel is None:
            raise ValueError("channel cannot be None.")
        if not method or not method.startswith("/"):
            raise ValueError(
                f"method must be a full gRPC method path, got '{method}'."
            )
        if timeout_seconds is not None and timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be positive.")

        self.__timeout_seconds = timeout_seconds
        self.__call = channel.unary_unary(
            method,
            request_serializer=wrappers_pb2.StringValue.SerializeToString,
            response_deserializer=struct_pb2.ListValue.FromString,
        )

    def call(self, function_name: str) -> List[Any]:
        request = wrappers_pb2.StringValue(value=function_name)
        try:
            response = self.__call(request, timeout=self.__timeout_seconds)
        except grpc.RpcError as e:
            error = to_discovery_error(e, function_name)
            logging.debug("Stored function call failed: %s", error)
            raise error from e

        return list_value_to_python(response)
