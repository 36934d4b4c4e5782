"""Validates discovery function replies and extracts the address set.

The discovery function must return a single array of ``host[:port]`` strings
as its first return value. Later return values are reserved so that the
function can grow extra results (through multi-value returns) without
breaking older clients, and are ignored here.
"""

import logging
from collections.abc import Mapping, Sequence
from typing import Any, Dict, List

from clustertopo.address.address import Address
from clustertopo.address.address_set import AddressSet
from clustertopo.address.address_syntax import is_valid_address
from clustertopo.discovery.discovery_errors import (
    DiscoveryContractViolation,
    IllegalDiscoveryFunctionResult,
)

# A reply is the sequence of return values of the discovery function.
DiscoveryReply = Sequence[Any]


def is_array_shaped(value: Any) -> bool:
    """Returns True for list-like values. Strings, bytes and maps are not."""
    if isinstance(value, (str, bytes, bytearray, Mapping)):
        return False
    return isinstance(value, Sequence)


def extract_addresses(reply: DiscoveryReply | None) -> AddressSet:
    """Extracts the validated address set from a discovery reply.

    Entries of the first return value that are not strings, are blank, or are
    not valid ``host[:port]`` tokens are skipped. All skipped entries are
    reported in a single warning.

    Args:
        reply: The return values of the discovery function.

    Returns:
        The valid addresses in first-seen order. May be empty when the
        function returned an empty array.

    Raises:
        DiscoveryContractViolation: If the reply holds no data.
        IllegalDiscoveryFunctionResult: If the first return value is not an
            array.
    """
    if reply is None:
        raise DiscoveryContractViolation("Discovery function returned no data")
    if not is_array_shaped(reply):
        raise IllegalDiscoveryFunctionResult(
            "Discovery reply must be a sequence of return values, got "
            f"{type(reply).__name__}"
        )
    if len(reply) == 0 or reply[0] is None:
        raise DiscoveryContractViolation("Discovery function returned no data")

    first_value = reply[0]
    if not is_array_shaped(first_value):
        raise IllegalDiscoveryFunctionResult(
            "The first value must be an array of strings"
        )

    accepted: Dict[str, Address] = {}
    skipped: Dict[str, None] = {}
    for item in first_value:
        if not isinstance(item, str) or not item.strip():
            skipped[str(item)] = None
            continue
        if not is_valid_address(item):
            skipped[item] = None
            continue
        accepted.setdefault(item, Address.parse(item))

    if skipped:
        skipped_list: List[str] = list(skipped)
        logging.warning(
            "Discovery function returned %d unusable entries, skipped: %s",
            len(skipped_list),
            skipped_list,
        )

    return AddressSet(accepted.values())
