"""A discoverer that always reports the same configured addresses."""

from collections.abc import Iterable

from clustertopo.address.address_set import AddressSet
from clustertopo.discovery.cluster_discoverer import ClusterDiscoverer


class StaticListDiscoverer(ClusterDiscoverer):
    """Reports a fixed list of seed addresses.

    Useful for clusters whose membership never changes, and as the seed list
    handed to a `TopologyRefresher` before the first successful discovery.
    """

    def __init__(self, addresses: Iterable[str]) -> None:
        """
        Args:
            addresses: ``host[:port]`` tokens.

        Raises:
            ValueError: If no addresses are given or any token is invalid.
        """
        address_set = AddressSet.from_strings(addresses)
        if not address_set:
            raise ValueError("At least one address must be provided.")
        self.__addresses = address_set

    def get_instances(self) -> AddressSet:
        return self.__addresses
