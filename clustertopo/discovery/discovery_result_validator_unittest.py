"""Unit tests for clustertopo.discovery.discovery_result_validator."""

import logging

import pytest

from clustertopo.address.address_syntax import is_valid_address
from clustertopo.discovery.discovery_errors import (
    DiscoveryContractViolation,
    DiscoveryErrorKind,
    IllegalDiscoveryFunctionResult,
)
from clustertopo.discovery.discovery_result_validator import (
    extract_addresses,
    is_array_shaped,
)


def _skip_warnings(caplog: pytest.LogCaptureFixture) -> list[logging.LogRecord]:
    return [r for r in caplog.records if r.levelno == logging.WARNING]


def test_valid_reply_keeps_order() -> None:
    result = extract_addresses([["localhost:3301", "10.0.0.2:3302", "node3"]])
    assert result.to_strings() == ("localhost:3301", "10.0.0.2:3302", "node3")


def test_duplicates_collapse_to_first_seen() -> None:
    result = extract_addresses([["b:2", "a:1", "b:2", "a:1", "c:3"]])
    assert result.to_strings() == ("b:2", "a:1", "c:3")


def test_empty_first_value_is_empty_set(
    caplog: pytest.LogCaptureFixture,
) -> None:
    with caplog.at_level(logging.WARNING):
        result = extract_addresses([[]])

    assert len(result) == 0
    assert not _skip_warnings(caplog)


@pytest.mark.parametrize("reply", [None, [], (), [None]])
def test_no_data_is_contract_violation(reply: object) -> None:
    with pytest.raises(DiscoveryContractViolation, match="no data") as info:
        extract_addresses(reply)  # type: ignore[arg-type]
    assert info.value.kind is DiscoveryErrorKind.CONTRACT_VIOLATION


@pytest.mark.parametrize(
    "first_value", ["localhost:3301", 42, 3.5, True, {"a": "b:1"}, b"x"]
)
def test_non_array_first_value_is_contract_violation(
    first_value: object,
) -> None:
    with pytest.raises(
        IllegalDiscoveryFunctionResult,
        match="first value must be an array of strings",
    ) as info:
        extract_addresses([first_value])
    assert isinstance(info.value, DiscoveryContractViolation)


def test_non_sequence_reply_is_contract_violation() -> None:
    with pytest.raises(DiscoveryContractViolation):
        extract_addresses("localhost:3301")  # type: ignore[arg-type]


def test_extra_return_values_are_ignored(
    caplog: pytest.LogCaptureFixture,
) -> None:
    with caplog.at_level(logging.WARNING):
        result = extract_addresses([["host1"], "host2", 423])

    assert result.to_strings() == ("host1",)
    assert not _skip_warnings(caplog)


def test_malformed_and_non_string_entries_skipped_with_one_warning(
    caplog: pytest.LogCaptureFixture,
) -> None:
    reply = [["localhost:3311", "127.0.0.1:3301", "bad::::token", 42]]

    with caplog.at_level(logging.WARNING):
        result = extract_addresses(reply)

    assert result.to_strings() == ("localhost:3311", "127.0.0.1:3301")
    warnings = _skip_warnings(caplog)
    assert len(warnings) == 1
    assert "bad::::token" in warnings[0].getMessage()
    assert "42" in warnings[0].getMessage()


def test_blank_and_none_entries_are_skipped(
    caplog: pytest.LogCaptureFixture,
) -> None:
    with caplog.at_level(logging.WARNING):
        result = extract_addresses([["", "   ", None, "host:3301", ["x"]]])

    assert result.to_strings() == ("host:3301",)
    assert len(_skip_warnings(caplog)) == 1


def test_tuple_first_value_is_accepted() -> None:
    result = extract_addresses((("a:1", "b:2"),))
    assert result.to_strings() == ("a:1", "b:2")


def test_every_extracted_address_is_valid() -> None:
    raw = [
        "host:",
        "host:99999",
        "host:0",
        "host:3301",
        "host",
        "a:b:3301",
        "x:65535",
        ":::",
        7,
        "",
        ":3301",
        " padded:3301",
    ]
    result = extract_addresses([raw])
    assert result.to_strings() == ("host:3301", "host", "x:65535")
    assert all(is_valid_address(token) for token in result.to_strings())


def test_is_array_shaped() -> None:
    assert is_array_shaped([])
    assert is_array_shaped(())
    assert not is_array_shaped("abc")
    assert not is_array_shaped(b"abc")
    assert not is_array_shaped({})
    assert not is_array_shaped(None)
    assert not is_array_shaped(7)
