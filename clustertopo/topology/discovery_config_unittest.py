import pytest

from clustertopo.topology.discovery_config import (
    DEFAULT_POLL_INTERVAL_SECONDS,
    DiscoveryConfig,
)


def test_defaults() -> None:
    config = DiscoveryConfig("get_cluster_nodes")

    assert config.poll_interval_seconds == DEFAULT_POLL_INTERVAL_SECONDS
    assert config.effective_backoff_seconds == DEFAULT_POLL_INTERVAL_SECONDS


def test_explicit_backoff() -> None:
    config = DiscoveryConfig(
        "get_cluster_nodes", poll_interval_seconds=5.0, backoff_seconds=0.5
    )
    assert config.effective_backoff_seconds == 0.5


def test_config_is_frozen() -> None:
    config = DiscoveryConfig("get_cluster_nodes")
    with pytest.raises(AttributeError):
        config.function_name = "other"  # type: ignore[misc]


@pytest.mark.parametrize(
    "kwargs, error",
    [
        ({"function_name": 42}, TypeError),
        ({"function_name": "  "}, ValueError),
        ({"function_name": "f", "poll_interval_seconds": 0}, ValueError),
        ({"function_name": "f", "call_timeout_seconds": -1}, ValueError),
        ({"function_name": "f", "backoff_seconds": -0.1}, ValueError),
        ({"function_name": "f", "backoff_seconds": 0}, ValueError),
    ],
)
def test_invalid_values_rejected(kwargs: dict, error: type) -> None:
    with pytest.raises(error):
        DiscoveryConfig(**kwargs)


def test_call_timeout_can_be_disabled() -> None:
    assert DiscoveryConfig("f", call_timeout_seconds=None).call_timeout_seconds is None
