"""Round-robin selection over the current cluster addresses."""

import logging
import threading
from collections.abc import Iterable
from typing import List, Optional, Union

from clustertopo.address.address import Address
from clustertopo.address.address_set import EMPTY_ADDRESS_SET, AddressSet
from clustertopo.topology.topology_refresher import TopologyRefresher

_UNSET_POSITION = -1


class RoundRobinAddressProvider(TopologyRefresher.Client):
    """Hands out cluster addresses in round-robin order.

    Plugs into a `TopologyRefresher` as its client, so the rotation follows
    topology changes. When the list is replaced, rotation resumes after the
    last handed-out address if that address is still present, and from the
    start otherwise.

    A removal that would leave nothing to hand out is deferred: the removed
    addresses stay in rotation as retired entries until the next change,
    which drops them unless they came back. This keeps the provider usable
    while the published topology is empty and converges on it afterwards.
    """

    def __init__(
        self,
        addresses: Union[AddressSet, Iterable[str]],
        default_port: Optional[int] = None,
    ) -> None:
        """
        Args:
            addresses: Initial addresses, as an `AddressSet` or as
                ``host[:port]`` strings.
            default_port: Port filled into handed-out addresses that have
                none.

        Raises:
            ValueError: If `addresses` is empty or has an invalid token.
        """
        if default_port is not None:
            # Validates the port.
            Address("localhost", default_port)

        self.__lock = threading.Lock()
        self.__default_port = default_port
        self.__addresses: List[Address] = []
        self.__retired = EMPTY_ADDRESS_SET
        self.__position = _UNSET_POSITION

        self.refresh_addresses(addresses)

    def refresh_addresses(
        self, addresses: Union[AddressSet, Iterable[str]]
    ) -> None:
        """Replaces the address list.

        Raises:
            ValueError: If `addresses` is empty or has an invalid token.
        """
        if not isinstance(addresses, AddressSet):
            addresses = AddressSet.from_strings(addresses)
        if not addresses:
            raise ValueError("At least one address must be provided.")

        with self.__lock:
            self.__retired = EMPTY_ADDRESS_SET
            self.__replace_locked(list(addresses))

    def get_addresses(self) -> AddressSet:
        with self.__lock:
            return AddressSet(self.__addresses)

    def get_last_obtained_address(self) -> Optional[Address]:
        with self.__lock:
            return self.__last_obtained_locked()

    def next_address(self) -> Address:
        """Advances the rotation and returns the next address."""
        with self.__lock:
            self.__position = (self.__position + 1) % len(self.__addresses)
            address = self.__addresses[self.__position]

        if self.__default_port is not None:
            return address.with_default_port(self.__default_port)
        return address

    def _on_addresses_added(self, addresses: AddressSet) -> None:
        if not addresses:
            return
        with self.__lock:
            gone = self.__retired.difference(addresses)
            kept = AddressSet(self.__addresses).difference(gone)
            self.__retired = EMPTY_ADDRESS_SET
            self.__replace_locked(list(kept.union(addresses)))

    def _on_addresses_removed(self, addresses: AddressSet) -> None:
        with self.__lock:
            retired = self.__retired.union(addresses)
            remaining = AddressSet(self.__addresses).difference(retired)
            if not remaining:
                logging.warning(
                    "Cluster reported no addresses, keeping %s in rotation "
                    "until new ones appear",
                    [str(a) for a in self.__addresses],
                )
                self.__retired = retired
                return
            self.__retired = EMPTY_ADDRESS_SET
            self.__replace_locked(list(remaining))

    def __last_obtained_locked(self) -> Optional[Address]:
        if self.__position == _UNSET_POSITION:
            return None
        return self.__addresses[self.__position]

    def __replace_locked(self, addresses: List[Address]) -> None:
        last = self.__last_obtained_locked()
        self.__addresses = addresses
        if last is not None and last in addresses:
            self.__position = addresses.index(last)
        else:
            self.__position = _UNSET_POSITION
