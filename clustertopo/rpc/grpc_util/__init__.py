"""gRPC transport for stored function calls and gRPC error classification."""

from clustertopo.rpc.grpc_util.grpc_caller import (
    is_grpc_error,
    is_server_unavailable_error,
    to_discovery_error,
)
from clustertopo.rpc.grpc_util.grpc_stored_function_caller import (
    GrpcStoredFunctionCaller,
)

__all__ = [
    "GrpcStoredFunctionCaller",
    "is_grpc_error",
    "is_server_unavailable_error",
    "to_discovery_error",
]
