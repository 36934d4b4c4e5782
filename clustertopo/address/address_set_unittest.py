"""Unit tests for Address and AddressSet."""

import pytest

from clustertopo.address.address import Address
from clustertopo.address.address_set import EMPTY_ADDRESS_SET, AddressSet


class TestAddress:
    def test_parse_host_and_port(self) -> None:
        address = Address.parse("localhost:3301")
        assert address.host == "localhost"
        assert address.port == 3301
        assert str(address) == "localhost:3301"

    def test_parse_host_only(self) -> None:
        address = Address.parse("db-node-1")
        assert address.port is None
        assert str(address) == "db-node-1"

    def test_parse_invalid_raises(self) -> None:
        with pytest.raises(ValueError):
            Address.parse("host:0")
        with pytest.raises(ValueError):
            Address.parse("a:b:c")

    def test_constructor_validates(self) -> None:
        with pytest.raises(ValueError):
            Address("host", 70000)
        with pytest.raises(ValueError):
            Address("a:b")
        with pytest.raises(TypeError):
            Address(42)  # type: ignore[arg-type]

    @pytest.mark.parametrize("host", ["", "   ", " host", "host\n"])
    def test_blank_or_padded_host_rejected(self, host: str) -> None:
        with pytest.raises(ValueError):
            Address(host, 3301)

    def test_equality_follows_canonical_form(self) -> None:
        assert Address.parse("host:3301") == Address("host", 3301)
        assert Address.parse("host") != Address("host", 3301)
        assert hash(Address.parse("host:3301")) == hash(Address("host", 3301))

    def test_is_immutable(self) -> None:
        address = Address("host", 3301)
        with pytest.raises(AttributeError):
            address.port = 3302  # type: ignore[misc]

    def test_with_default_port(self) -> None:
        assert Address("host").with_default_port(3301) == Address("host", 3301)
        assert Address("host", 3302).with_default_port(3301) == Address(
            "host", 3302
        )


class TestAddressSet:
    def test_preserves_first_seen_order_and_collapses_duplicates(
        self,
    ) -> None:
        address_set = AddressSet.from_strings(
            ["b:2", "a:1", "b:2", "c", "a:1"]
        )
        assert address_set.to_strings() == ("b:2", "a:1", "c")
        assert len(address_set) == 3
        assert [str(a) for a in address_set] == ["b:2", "a:1", "c"]

    def test_membership_accepts_addresses_and_strings(self) -> None:
        address_set = AddressSet.from_strings(["host:3301"])
        assert Address("host", 3301) in address_set
        assert "host:3301" in address_set
        assert "host" not in address_set
        assert 3301 not in address_set

    def test_equality_ignores_order(self) -> None:
        first = AddressSet.from_strings(["a", "b"])
        second = AddressSet.from_strings(["b", "a"])
        assert first == second
        assert hash(first) == hash(second)
        assert first != AddressSet.from_strings(["a"])

    def test_difference_and_union(self) -> None:
        old = AddressSet.from_strings(["a:1", "b:2", "c:3"])
        new = AddressSet.from_strings(["c:3", "d:4", "a:1"])

        assert new.difference(old).to_strings() == ("d:4",)
        assert old.difference(new).to_strings() == ("b:2",)
        assert old.union(new).to_strings() == ("a:1", "b:2", "c:3", "d:4")

    def test_empty_set(self) -> None:
        assert not EMPTY_ADDRESS_SET
        assert len(EMPTY_ADDRESS_SET) == 0
        assert EMPTY_ADDRESS_SET == AddressSet()

    def test_never_holds_empty_members(self) -> None:
        with pytest.raises(ValueError):
            AddressSet.from_strings([""])
        with pytest.raises(ValueError):
            AddressSet.from_strings(["host:3301", ":3302"])

    def test_rejects_non_address_members(self) -> None:
        with pytest.raises(TypeError):
            AddressSet(["host:3301"])  # type: ignore[list-item]
        with pytest.raises(TypeError):
            AddressSet([None])  # type: ignore[list-item]

    def test_repr_lists_members(self) -> None:
        assert repr(AddressSet.from_strings(["a", "b:2"])) == (
            "AddressSet(['a', 'b:2'])"
        )
