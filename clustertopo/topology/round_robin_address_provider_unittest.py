"""Unit tests for RoundRobinAddressProvider."""

import logging
import time

import pytest

from clustertopo.address.address import Address
from clustertopo.address.address_set import AddressSet
from clustertopo.discovery.cluster_discoverer import ClusterDiscoverer
from clustertopo.threading.thread_watcher import ThreadWatcher
from clustertopo.topology.discovery_config import DiscoveryConfig
from clustertopo.topology.round_robin_address_provider import (
    RoundRobinAddressProvider,
)
from clustertopo.topology.topology_refresher import TopologyRefresher


def addresses(*tokens: str) -> AddressSet:
    return AddressSet.from_strings(tokens)


class ScriptedDiscoverer(ClusterDiscoverer):
    def __init__(self, *results: AddressSet) -> None:
        self.__results = list(results)

    def get_instances(self) -> AddressSet:
        if len(self.__results) > 1:
            return self.__results.pop(0)
        return self.__results[0]


def take(provider: RoundRobinAddressProvider, count: int) -> list:
    return [str(provider.next_address()) for _ in range(count)]


def test_rotates_through_addresses() -> None:
    provider = RoundRobinAddressProvider(["a:1", "b:2", "c:3"])

    assert isinstance(provider, TopologyRefresher.Client)
    assert provider.get_last_obtained_address() is None
    assert take(provider, 4) == ["a:1", "b:2", "c:3", "a:1"]
    assert provider.get_last_obtained_address() == Address("a", 1)


def test_refresh_keeps_position_on_surviving_address() -> None:
    provider = RoundRobinAddressProvider(["a:1", "b:2", "c:3"])
    take(provider, 2)  # Last handed out b:2.

    provider.refresh_addresses(["x:9", "b:2", "c:3"])

    assert take(provider, 3) == ["c:3", "x:9", "b:2"]


def test_refresh_restarts_when_last_address_is_gone() -> None:
    provider = RoundRobinAddressProvider(["a:1", "b:2"])
    take(provider, 1)

    provider.refresh_addresses(addresses("c:3", "d:4"))

    assert provider.get_last_obtained_address() is None
    assert take(provider, 2) == ["c:3", "d:4"]


def test_refresh_rejects_empty_and_invalid_lists() -> None:
    with pytest.raises(ValueError):
        RoundRobinAddressProvider([])

    provider = RoundRobinAddressProvider(["a:1"])
    with pytest.raises(ValueError):
        provider.refresh_addresses(AddressSet())
    with pytest.raises(ValueError):
        provider.refresh_addresses(["a:0"])
    assert provider.get_addresses() == addresses("a:1")


def test_default_port_fills_missing_ports() -> None:
    provider = RoundRobinAddressProvider(["a", "b:2"], default_port=3301)

    assert take(provider, 2) == ["a:3301", "b:2"]
    assert provider.get_addresses().to_strings() == ("a", "b:2")

    with pytest.raises(ValueError):
        RoundRobinAddressProvider(["a"], default_port=70000)


def test_topology_notifications_update_rotation() -> None:
    provider = RoundRobinAddressProvider(["a:1", "b:2"])
    take(provider, 1)  # a:1

    provider._on_addresses_added(addresses("c:3", "a:1"))
    assert provider.get_addresses().to_strings() == ("a:1", "b:2", "c:3")
    assert take(provider, 2) == ["b:2", "c:3"]

    provider._on_addresses_removed(addresses("a:1"))
    assert provider.get_addresses().to_strings() == ("b:2", "c:3")
    assert take(provider, 2) == ["b:2", "c:3"]


def test_removing_every_address_is_deferred(caplog) -> None:
    provider = RoundRobinAddressProvider(["a:1", "b:2"])

    with caplog.at_level(logging.WARNING):
        provider._on_addresses_removed(addresses("a:1", "b:2"))

    assert provider.get_addresses() == addresses("a:1", "b:2")
    assert "keeping" in caplog.text


def test_deferred_removal_applies_on_next_addition() -> None:
    provider = RoundRobinAddressProvider(["a:1", "b:2"])
    take(provider, 1)

    provider._on_addresses_removed(addresses("a:1", "b:2"))
    provider._on_addresses_added(addresses("c:3"))

    assert provider.get_addresses().to_strings() == ("c:3",)
    assert take(provider, 2) == ["c:3", "c:3"]


def test_deferred_removal_keeps_addresses_that_came_back() -> None:
    provider = RoundRobinAddressProvider(["a:1", "b:2"])

    provider._on_addresses_removed(addresses("a:1", "b:2"))
    provider._on_addresses_added(addresses("b:2", "c:3"))

    assert provider.get_addresses().to_strings() == ("b:2", "c:3")


def test_provider_follows_refresher_through_empty_topology() -> None:
    discoverer = ScriptedDiscoverer(AddressSet(), addresses("c:3"))
    provider = RoundRobinAddressProvider(["a:1", "b:2"])
    refresher = TopologyRefresher(
        discoverer,
        provider,
        DiscoveryConfig("get_cluster_nodes"),
        ThreadWatcher(),
        initial_topology=provider.get_addresses(),
    )

    try:
        assert refresher.refresh() is True
        assert refresher.refresh() is True
        assert refresher.get_current_topology().to_strings() == ("c:3",)

        deadline = time.monotonic() + 2.0
        while provider.get_addresses() != refresher.get_current_topology():
            assert time.monotonic() < deadline
            time.sleep(0.01)
    finally:
        refresher.stop()

    assert provider.get_addresses().to_strings() == ("c:3",)
