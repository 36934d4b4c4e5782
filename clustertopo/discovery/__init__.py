"""Cluster discovery: strategies, reply validation and error types."""

from clustertopo.discovery.cluster_discoverer import ClusterDiscoverer
from clustertopo.discovery.discovery_errors import (
    CommunicationFailure,
    DiscoveryContractViolation,
    DiscoveryError,
    DiscoveryErrorKind,
    IllegalDiscoveryFunctionResult,
    RemoteExecutionFailure,
)
from clustertopo.discovery.discovery_result_validator import extract_addresses
from clustertopo.discovery.static_list_discoverer import StaticListDiscoverer
from clustertopo.discovery.stored_function_discoverer import (
    StoredFunctionDiscoverer,
)

__all__ = [
    "ClusterDiscoverer",
    "CommunicationFailure",
    "DiscoveryContractViolation",
    "DiscoveryError",
    "DiscoveryErrorKind",
    "IllegalDiscoveryFunctionResult",
    "RemoteExecutionFailure",
    "StaticListDiscoverer",
    "StoredFunctionDiscoverer",
    "extract_addresses",
]
