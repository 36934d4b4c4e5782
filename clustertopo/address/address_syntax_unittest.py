"""Unit tests for clustertopo.address.address_syntax."""

import pytest

from clustertopo.address.address_syntax import is_valid_address, is_valid_port


@pytest.mark.parametrize(
    "token, expected",
    [
        ("host:", False),
        ("host:99999", False),
        ("host:0", False),
        ("host:3301", True),
        ("host", True),
        ("a:b:3301", False),
        ("localhost:65535", True),
        ("localhost:65536", False),
        ("localhost:1", True),
        ("127.0.0.1:3301", True),
        ("bad::::token", False),
        ("host:port", False),
        ("host:-1", False),
        ("host:33_01", False),
        ("host: 3301", False),
        ("::1", False),
        ("", False),
        (":3301", False),
        (" host", False),
        ("host :3301", False),
        ("\thost:3301", False),
    ],
)
def test_is_valid_address(token: str, expected: bool) -> None:
    assert is_valid_address(token) is expected


@pytest.mark.parametrize("token", [None, 42, b"host:3301", ["host"]])
def test_is_valid_address_rejects_non_strings(token: object) -> None:
    assert is_valid_address(token) is False


def test_is_valid_port_bounds() -> None:
    assert is_valid_port(1)
    assert is_valid_port(65535)
    assert not is_valid_port(0)
    assert not is_valid_port(65536)
    assert not is_valid_port(True)
    assert not is_valid_port("3301")
