"""Discovers cluster instances advertised over mDNS, using `zeroconf`."""

import logging
import threading
from typing import Dict, Optional

from zeroconf import IPVersion, ServiceBrowser, ServiceListener, Zeroconf

from clustertopo.address.address import Address
from clustertopo.address.address_set import AddressSet
from clustertopo.discovery.cluster_discoverer import ClusterDiscoverer


class MdnsDiscoverer(ClusterDiscoverer, ServiceListener):
    """Reports every instance currently advertising an mDNS service type.

    Implements `zeroconf.ServiceListener`. Browsing starts with `start()`;
    from then on `get_instances()` returns the instances resolved so far as
    ``ipv4:port`` addresses (or ``hostname:port`` when a record carries no
    IPv4 address). IPv6-only records are skipped.
    """

    def __init__(
        self,
        service_type: str,
        zc_instance: Optional[Zeroconf] = None,
        resolve_timeout_ms: int = 3000,
    ) -> None:
        """
        Args:
            service_type: mDNS service type, e.g. ``"_db"``, ``"_db._tcp"`` or
                ``"_db._tcp.local."``. Bare names get ``._tcp.local.``.
            zc_instance: Shared `Zeroconf` instance. When None, one is created
                and closed again by `close()`.
            resolve_timeout_ms: Timeout for resolving each service record.

        Raises:
            ValueError: If `service_type` is missing or lacks a leading '_'.
            TypeError: If `service_type` is not a string.
        """
        if service_type is None:
            raise ValueError("service_type cannot be None for MdnsDiscoverer.")
        if not isinstance(service_type, str):
            raise TypeError(
                f"service_type must be str, got {type(service_type).__name__}."
            )
        if not service_type.startswith("_"):
            raise ValueError(
                f"service_type must start with '_', got '{service_type}'."
            )

        self.__expected_type: str
        if service_type.endswith("._tcp.local.") or service_type.endswith(
            "._udp.local."
        ):
            self.__expected_type = service_type
        elif service_type.endswith("._tcp") or service_type.endswith("._udp"):
            self.__expected_type = f"{service_type}.local."
        else:
            self.__expected_type = f"{service_type}._tcp.local."

        self.__is_shared_zc = zc_instance is not None
        self.__zc: Zeroconf = zc_instance if zc_instance else Zeroconf()
        self.__resolve_timeout_ms = resolve_timeout_ms

        self.__instances_lock = threading.Lock()
        self.__instances: Dict[str, Address] = {}
        self.__browser: Optional[ServiceBrowser] = None

    @property
    def service_type(self) -> str:
        return self.__expected_type

    def start(self) -> None:
        """Starts browsing for the service type."""
        if self.__browser is not None:
            return
        logging.info("Starting mDNS browse for %s", self.__expected_type)
        self.__browser = ServiceBrowser(
            self.__zc, self.__expected_type, listener=self
        )

    def get_instances(self) -> AddressSet:
        if self.__browser is None:
            raise RuntimeError(
                "MdnsDiscoverer.start() must be called before get_instances()."
            )
        with self.__instances_lock:
            return AddressSet(self.__instances.values())

    def close(self) -> None:
        """Stops browsing and closes the `Zeroconf` instance if owned."""
        if self.__browser is not None:
            self.__browser.cancel()
            self.__browser = None
        if not self.__is_shared_zc:
            self.__zc.close()

    # --- ServiceListener interface methods ---

    def add_service(self, zc: Zeroconf, type_: str, name: str) -> None:
        self.__resolve(zc, type_, name)

    def update_service(self, zc: Zeroconf, type_: str, name: str) -> None:
        self.__resolve(zc, type_, name)

    def remove_service(self, zc: Zeroconf, type_: str, name: str) -> None:
        with self.__instances_lock:
            removed = self.__instances.pop(name, None)
        if removed is not None:
            logging.info("mDNS instance %s (%s) went away", name, removed)

    def __resolve(self, zc: Zeroconf, type_: str, name: str) -> None:
        if type_ != self.__expected_type:
            logging.debug(
                "Ignoring service '%s', type '%s'. Expected '%s'.",
                name,
                type_,
                self.__expected_type,
            )
            return

        info = zc.get_service_info(type_, name, self.__resolve_timeout_ms)
        if info is None:
            logging.error(
                "Failed to get info for service '%s' type '%s'.", name, type_
            )
            return

        if not info.port:
            logging.error("No port for service '%s' type '%s'.", name, type_)
            return

        ipv4_addresses = info.parsed_addresses(IPVersion.V4Only)
        if ipv4_addresses:
            host = ipv4_addresses[0]
        elif info.server:
            host = info.server.rstrip(".")
        else:
            logging.warning(
                "No usable address for service '%s' type '%s'.", name, type_
            )
            return

        try:
            address = Address(host, info.port)
        except ValueError as e:
            logging.warning("Skipping mDNS service '%s': %s", name, e)
            return

        with self.__instances_lock:
            self.__instances[name] = address
        logging.info("mDNS instance %s resolved to %s", name, address)
