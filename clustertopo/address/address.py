"""Defines the immutable `Address` of one cluster instance."""

import dataclasses
from typing import Optional

from clustertopo.address.address_syntax import (
    is_valid_address,
    is_valid_host,
    is_valid_port,
)


@dataclasses.dataclass(frozen=True)
class Address:
    """A cluster instance address, `host` with an optional `port`.

    The canonical string form is ``host`` or ``host:port``. Two addresses are
    equal exactly when their canonical strings are equal. When `port` is None
    the caller's default port applies.
    """

    host: str
    port: Optional[int] = None

    def __post_init__(self) -> None:
        if not isinstance(self.host, str):
            raise TypeError(
                f"host must be str, got {type(self.host).__name__}."
            )
        if ":" in self.host:
            raise ValueError(f"host must not contain ':', got '{self.host}'.")
        if not is_valid_host(self.host):
            raise ValueError(
                "host must be non-empty without surrounding whitespace, got "
                f"{self.host!r}."
            )
        if self.port is not None and not is_valid_port(self.port):
            raise ValueError(
                f"port must be an int in 1..65535, got {self.port!r}."
            )

    @classmethod
    def parse(cls, token: str) -> "Address":
        """Builds an `Address` from a ``host[:port]`` token.

        Args:
            token: The address token.

        Returns:
            The parsed address.

        Raises:
            ValueError: If `token` is not a valid address token.
        """
        if not is_valid_address(token):
            raise ValueError(f"Invalid address token: '{token}'.")

        host, _, port_text = token.partition(":")
        return cls(host, int(port_text) if port_text else None)

    def with_default_port(self, default_port: int) -> "Address":
        """Returns this address, with `default_port` filled in if unset."""
        if self.port is not None:
            return self
        return Address(self.host, default_port)

    def __str__(self) -> str:
        if self.port is None:
            return self.host
        return f"{self.host}:{self.port}"
