"""Unit tests for StoredFunctionDiscoverer and StaticListDiscoverer."""

from unittest.mock import MagicMock

import pytest

from clustertopo.discovery.cluster_discoverer import ClusterDiscoverer
from clustertopo.discovery.discovery_errors import (
    CommunicationFailure,
    DiscoveryContractViolation,
    RemoteExecutionFailure,
)
from clustertopo.discovery.static_list_discoverer import StaticListDiscoverer
from clustertopo.discovery.stored_function_discoverer import (
    StoredFunctionDiscoverer,
)
from clustertopo.rpc.stored_function_caller import StoredFunctionCaller


@pytest.fixture
def mock_caller(mocker) -> MagicMock:
    return mocker.create_autospec(StoredFunctionCaller, instance=True)


class TestStoredFunctionDiscoverer:
    def test_calls_function_by_name_and_validates(
        self, mock_caller: MagicMock
    ) -> None:
        mock_caller.call.return_value = [["a:3301", "b:3302", "a:3301"]]
        discoverer = StoredFunctionDiscoverer(mock_caller, "get_cluster_nodes")

        result = discoverer.get_instances()

        mock_caller.call.assert_called_once_with("get_cluster_nodes")
        assert result.to_strings() == ("a:3301", "b:3302")
        assert isinstance(discoverer, ClusterDiscoverer)
        assert discoverer.function_name == "get_cluster_nodes"

    @pytest.mark.parametrize(
        "error",
        [
            CommunicationFailure("connection refused"),
            RemoteExecutionFailure("Procedure 'nope' is not defined"),
        ],
    )
    def test_transport_errors_propagate_unchanged(
        self, mock_caller: MagicMock, error: Exception
    ) -> None:
        mock_caller.call.side_effect = error
        discoverer = StoredFunctionDiscoverer(mock_caller, "nope")

        with pytest.raises(type(error)) as info:
            discoverer.get_instances()

        assert info.value is error
        assert not isinstance(info.value, DiscoveryContractViolation)

    def test_empty_reply_is_contract_violation(
        self, mock_caller: MagicMock
    ) -> None:
        mock_caller.call.return_value = []
        discoverer = StoredFunctionDiscoverer(mock_caller, "fn")

        with pytest.raises(DiscoveryContractViolation):
            discoverer.get_instances()

    def test_scalar_reply_is_contract_violation(
        self, mock_caller: MagicMock
    ) -> None:
        mock_caller.call.return_value = ["localhost:3301"]
        discoverer = StoredFunctionDiscoverer(mock_caller, "fn")

        with pytest.raises(DiscoveryContractViolation):
            discoverer.get_instances()

    def test_constructor_validates_arguments(
        self, mock_caller: MagicMock
    ) -> None:
        with pytest.raises(ValueError):
            StoredFunctionDiscoverer(mock_caller, "")
        with pytest.raises(ValueError):
            StoredFunctionDiscoverer(mock_caller, "   ")
        with pytest.raises(TypeError):
            StoredFunctionDiscoverer(mock_caller, None)  # type: ignore[arg-type]
        with pytest.raises(ValueError):
            StoredFunctionDiscoverer(None, "fn")  # type: ignore[arg-type]


class TestStaticListDiscoverer:
    def test_returns_configured_addresses(self) -> None:
        discoverer = StaticListDiscoverer(["a:1", "b", "a:1"])
        assert discoverer.get_instances().to_strings() == ("a:1", "b")

    def test_requires_addresses(self) -> None:
        with pytest.raises(ValueError):
            StaticListDiscoverer([])

    def test_rejects_invalid_addresses(self) -> None:
        with pytest.raises(ValueError):
            StaticListDiscoverer(["a:1", "b:0"])
        with pytest.raises(ValueError):
            StaticListDiscoverer([""])
