"""Cluster instance addresses: syntax checking, `Address` and `AddressSet`."""

from clustertopo.address.address import Address
from clustertopo.address.address_set import EMPTY_ADDRESS_SET, AddressSet
from clustertopo.address.address_syntax import is_valid_address

__all__ = ["Address", "AddressSet", "EMPTY_ADDRESS_SET", "is_valid_address"]
