"""Topology refresh: periodic discovery, snapshot publishing, notifications."""

from clustertopo.topology.discovery_config import DiscoveryConfig
from clustertopo.topology.refresher_state import RefresherState
from clustertopo.topology.round_robin_address_provider import (
    RoundRobinAddressProvider,
)
from clustertopo.topology.topology_refresher import TopologyRefresher

__all__ = [
    "DiscoveryConfig",
    "RefresherState",
    "RoundRobinAddressProvider",
    "TopologyRefresher",
]
