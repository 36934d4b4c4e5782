"""Defines `AddressSet`, an immutable insertion-ordered set of addresses."""

from collections.abc import Iterable, Iterator
from typing import Any, Dict, Tuple, Union

from clustertopo.address.address import Address


class AddressSet:
    """Immutable set of `Address` values that remembers insertion order.

    Duplicates (by canonical string) are collapsed on construction, keeping
    the first occurrence. Members are held in a tuple for ordered iteration
    and indexed by canonical string for membership checks.

    Equality is set equality: two sets with the same members compare equal
    regardless of order. Use `to_strings()` when order matters.
    """

    def __init__(self, addresses: Iterable[Address] = ()) -> None:
        index: Dict[str, Address] = {}
        for address in addresses:
            if not isinstance(address, Address):
                raise TypeError(
                    "AddressSet members must be Address, got "
                    f"{type(address).__name__}."
                )
            index.setdefault(str(address), address)

        self.__index: Dict[str, Address] = index
        self.__members: Tuple[Address, ...] = tuple(index.values())

    @classmethod
    def from_strings(cls, tokens: Iterable[str]) -> "AddressSet":
        """Parses every token with `Address.parse`.

        Raises:
            ValueError: If any token is not a valid address.
        """
        return cls(Address.parse(token) for token in tokens)

    def to_strings(self) -> Tuple[str, ...]:
        """Returns the canonical strings of all members, in order."""
        return tuple(self.__index.keys())

    def difference(self, other: "AddressSet") -> "AddressSet":
        """Returns members of this set that are not in `other`, in order."""
        return AddressSet(a for a in self.__members if a not in other)

    def union(self, other: "AddressSet") -> "AddressSet":
        """Returns this set followed by the members only `other` has."""
        return AddressSet((*self.__members, *other))

    def __contains__(self, item: Union[Address, str, Any]) -> bool:
        if isinstance(item, (Address, str)):
            return str(item) in self.__index
        return False

    def __iter__(self) -> Iterator[Address]:
        return iter(self.__members)

    def __len__(self) -> int:
        return len(self.__members)

    def __bool__(self) -> bool:
        return bool(self.__members)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AddressSet):
            return NotImplemented
        return self.__index.keys() == other.__index.keys()

    def __hash__(self) -> int:
        return hash(frozenset(self.__index))

    def __repr__(self) -> str:
        return f"AddressSet({list(self.to_strings())!r})"


EMPTY_ADDRESS_SET = AddressSet()
