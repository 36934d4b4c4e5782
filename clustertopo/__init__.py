"""Clustertopo: client-side discovery of cluster members.

A `TopologyRefresher` periodically asks a `ClusterDiscoverer` (usually a
`StoredFunctionDiscoverer` calling a function on one cluster node) for the
current member addresses, publishes them as an immutable `AddressSet`
snapshot and notifies a connection pool of added and removed members.
"""

from clustertopo.address import Address, AddressSet
from clustertopo.discovery import (
    ClusterDiscoverer,
    DiscoveryError,
    StaticListDiscoverer,
    StoredFunctionDiscoverer,
)
from clustertopo.rpc.grpc_util import GrpcStoredFunctionCaller
from clustertopo.threading import ThreadWatcher
from clustertopo.topology import (
    DiscoveryConfig,
    RefresherState,
    RoundRobinAddressProvider,
    TopologyRefresher,
)

__all__ = [
    "Address",
    "AddressSet",
    "ClusterDiscoverer",
    "DiscoveryConfig",
    "DiscoveryError",
    "GrpcStoredFunctionCaller",
    "RefresherState",
    "RoundRobinAddressProvider",
    "StaticListDiscoverer",
    "StoredFunctionDiscoverer",
    "ThreadWatcher",
    "TopologyRefresher",
]
