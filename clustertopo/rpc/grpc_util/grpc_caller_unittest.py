"""Unit tests for clustertopo.rpc.grpc_util.grpc_caller."""

from unittest.mock import MagicMock, patch

import grpc
from google.rpc.status_pb2 import Status

from clustertopo.discovery.discovery_errors import (
    CommunicationFailure,
    RemoteExecutionFailure,
)
from clustertopo.rpc.grpc_util.grpc_caller import (
    get_grpc_status_code,
    is_grpc_error,
    is_server_unavailable_error,
    to_discovery_error,
)


class FakeRpcError(grpc.RpcError):
    """RpcError carrying a status code, like the sync channel's errors."""

    def __init__(self, code: grpc.StatusCode, details: str = "") -> None:
        super().__init__()
        self._code = code
        self._details = details

    def code(self) -> grpc.StatusCode:
        return self._code

    def details(self) -> str:
        return self._details


class CustomRpcError(grpc.RpcError):
    """RpcError without code(); status comes from trailing metadata."""


# --- Tests for get_grpc_status_code ---


def test_get_grpc_status_code_from_call_error() -> None:
    error = FakeRpcError(grpc.StatusCode.UNAVAILABLE)
    assert get_grpc_status_code(error) == grpc.StatusCode.UNAVAILABLE


def test_get_grpc_status_code_rpc_error_with_status() -> None:
    """Test with grpc.RpcError and rpc_status.from_call returns a Status."""
    mock_status_pb = MagicMock(spec=Status)
    mock_status_pb.code = grpc.StatusCode.NOT_FOUND.value[0]

    mock_rpc_status_obj = MagicMock()
    mock_rpc_status_obj.from_call.return_value = mock_status_pb
    mock_grpc_status_mod = MagicMock()
    mock_grpc_status_mod.rpc_status = mock_rpc_status_obj

    error = CustomRpcError()
    with patch.dict("sys.modules", {"grpc_status": mock_grpc_status_mod}):
        assert get_grpc_status_code(error) == grpc.StatusCode.NOT_FOUND
        mock_rpc_status_obj.from_call.assert_called_once_with(error)


def test_get_grpc_status_code_rpc_error_no_status() -> None:
    mock_rpc_status_obj = MagicMock()
    mock_rpc_status_obj.from_call.return_value = None
    mock_grpc_status_mod = MagicMock()
    mock_grpc_status_mod.rpc_status = mock_rpc_status_obj

    with patch.dict("sys.modules", {"grpc_status": mock_grpc_status_mod}):
        assert get_grpc_status_code(CustomRpcError()) is None


def test_get_grpc_status_code_non_grpc_error() -> None:
    assert get_grpc_status_code(ValueError("Test error")) is None


# --- Tests for is_server_unavailable_error / is_grpc_error ---


def test_is_server_unavailable_error() -> None:
    assert is_server_unavailable_error(
        FakeRpcError(grpc.StatusCode.UNAVAILABLE)
    )
    assert is_server_unavailable_error(
        FakeRpcError(grpc.StatusCode.DEADLINE_EXCEEDED)
    )
    assert not is_server_unavailable_error(
        FakeRpcError(grpc.StatusCode.INTERNAL)
    )
    assert not is_server_unavailable_error(ValueError())


@patch("clustertopo.rpc.grpc_util.grpc_caller.get_grpc_status_code")
def test_is_grpc_error(mock_get_status: MagicMock) -> None:
    mock_get_status.return_value = grpc.StatusCode.OK
    assert is_grpc_error(Exception()) is True
    mock_get_status.return_value = None
    assert is_grpc_error(Exception()) is False


# --- Tests for to_discovery_error ---


def test_unavailable_maps_to_communication_failure() -> None:
    error = to_discovery_error(
        FakeRpcError(grpc.StatusCode.UNAVAILABLE, "connection refused"),
        "get_nodes",
    )
    assert isinstance(error, CommunicationFailure)
    assert "get_nodes" in error.message
    assert "UNAVAILABLE" in error.message
    assert "connection refused" in error.message


def test_deadline_maps_to_communication_failure() -> None:
    error = to_discovery_error(
        FakeRpcError(grpc.StatusCode.DEADLINE_EXCEEDED), "get_nodes"
    )
    assert isinstance(error, CommunicationFailure)


def test_other_status_maps_to_remote_execution_failure() -> None:
    error = to_discovery_error(
        FakeRpcError(
            grpc.StatusCode.NOT_FOUND, "Procedure 'get_nodes' is not defined"
        ),
        "get_nodes",
    )
    assert isinstance(error, RemoteExecutionFailure)
    assert "is not defined" in error.message


def test_error_without_status_maps_to_communication_failure() -> None:
    with patch(
        "clustertopo.rpc.grpc_util.grpc_caller.get_grpc_status_code",
        return_value=None,
    ):
        error = to_discovery_error(CustomRpcError(), "get_nodes")
    assert isinstance(error, CommunicationFailure)
