"""Classifies gRPC errors into discovery transport failures."""

from __future__ import annotations

import grpc
from google.rpc.status_pb2 import Status

from clustertopo.discovery.discovery_errors import (
    CommunicationFailure,
    DiscoveryError,
    RemoteExecutionFailure,
)


def get_grpc_status_code(error: Exception) -> grpc.StatusCode | None:
    """Extracts the gRPC status code from a gRPC exception.

    Args:
        error: The exception, potentially a gRPC error.

    Returns:
        The `grpc.StatusCode` if one can be extracted, otherwise `None`.
    """
    from grpc_status import rpc_status

    if not issubclass(type(error), grpc.RpcError):
        return None

    code = getattr(error, "code", None)
    if callable(code):
        result = code()
        if isinstance(result, grpc.StatusCode):
            return result

    status: Status | None = rpc_status.from_call(error)
    if status is None:
        return None

    for status_code in grpc.StatusCode:
        if status_code.value[0] == status.code:
            return status_code
    return None


def is_server_unavailable_error(error: Exception) -> bool:
    """Checks whether `error` means the call could not be delivered.

    This covers the `UNAVAILABLE` and `DEADLINE_EXCEEDED` status codes.
    """
    return get_grpc_status_code(error) in (
        grpc.StatusCode.UNAVAILABLE,
        grpc.StatusCode.DEADLINE_EXCEEDED,
    )


def is_grpc_error(error: Exception) -> bool:
    """Checks if the given exception carries a gRPC status code."""
    return get_grpc_status_code(error) is not None


def to_discovery_error(error: Exception, function_name: str) -> DiscoveryError:
    """Maps a failed gRPC call onto the discovery error taxonomy.

    Unavailable servers and exceeded deadlines become `CommunicationFailure`.
    Any other status means the server ran (or refused to run) the function
    and becomes `RemoteExecutionFailure`.

    Args:
        error: The exception raised by the gRPC call.
        function_name: The stored function being called, for the message.

    Returns:
        The discovery error to raise in place of `error`.
    """
    status_code = get_grpc_status_code(error)
    details = _get_details(error)
    if status_code is None:
        return CommunicationFailure(
            f"Call to '{function_name}' failed: {error!r}"
        )

    message = f"Call to '{function_name}' failed with {status_code.name}"
    if details:
        message = f"{message}: {details}"

    if is_server_unavailable_error(error):
        return CommunicationFailure(message)
    return RemoteExecutionFailure(message)


def _get_details(error: Exception) -> str | None:
    details = getattr(error, "details", None)
    if callable(details):
        result = details()
        if isinstance(result, str):
            return result
    return None
