"""Syntax check for a single `host[:port]` address token.

The check splits on ``:`` without any bracket handling, so IPv6 literals
(which contain several colons) are rejected along with other multi-colon
tokens.
"""

import re
from typing import Any

MIN_PORT = 1
MAX_PORT = 65535

_PORT_PATTERN = re.compile(r"\d+", re.ASCII)


def is_valid_port(port: Any) -> bool:
    """Returns True if `port` is an int in the range 1..65535."""
    if isinstance(port, bool) or not isinstance(port, int):
        return False
    return MIN_PORT <= port <= MAX_PORT


def is_valid_host(host: Any) -> bool:
    """Returns True for a non-empty host without surrounding whitespace."""
    return isinstance(host, str) and bool(host) and host == host.strip()


def is_valid_address(token: Any) -> bool:
    """Checks whether `token` has the form ``host`` or ``host:port``.

    Rules are applied in order:
      1. A token ending with ``:`` (dangling port separator) is invalid.
      2. A token with more than two ``:``-separated segments is invalid.
      3. With two segments, the second must be a decimal integer in
         1..65535.
      4. A single segment is a valid host-only address.

    The host must be non-empty and carry no surrounding whitespace, so
    ``""``, ``":3301"`` and ``" host "`` are malformed rather than
    silently trimmed.

    Args:
        token: The candidate address. Anything other than `str` is invalid.

    Returns:
        True if `token` is a valid address token.
    """
    if not isinstance(token, str):
        return False

    if token.endswith(":"):
        return False

    segments = token.split(":")
    if len(segments) > 2:
        return False

    if not is_valid_host(segments[0]):
        return False

    if len(segments) == 2:
        port_text = segments[1]
        if _PORT_PATTERN.fullmatch(port_text) is None:
            return False
        return is_valid_port(int(port_text))

    return True
