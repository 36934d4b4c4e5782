"""mDNS-based cluster discovery."""

from clustertopo.discovery.mdns.mdns_discoverer import MdnsDiscoverer

__all__ = ["MdnsDiscoverer"]
