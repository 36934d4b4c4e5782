"""Defines the interface for cluster instance discovery strategies."""

from abc import ABC, abstractmethod

from clustertopo.address.address_set import AddressSet


# pylint: disable=R0903 # Abstract discovery strategy interface
class ClusterDiscoverer(ABC):
    """Strategy that reports the current members of a cluster.

    `TopologyRefresher` polls a `ClusterDiscoverer` on a schedule, so a new
    strategy (static list, DNS, stored function) only needs to implement
    `get_instances`.
    """

    @abstractmethod
    def get_instances(self) -> AddressSet:
        """Returns the addresses of the cluster instances.

        May block. Implementations raise a `DiscoveryError` subclass when the
        membership cannot be determined.
        """
        raise NotImplementedError(
            "ClusterDiscoverer.get_instances must be implemented by subclasses."
        )
