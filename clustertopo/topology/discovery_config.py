"""Configuration for periodic cluster discovery."""

from dataclasses import dataclass
from typing import Optional

DEFAULT_POLL_INTERVAL_SECONDS = 60.0
DEFAULT_CALL_TIMEOUT_SECONDS = 10.0


@dataclass(frozen=True)
class DiscoveryConfig:
    """Settings consumed by `TopologyRefresher` and the stored-function
    discoverer.

    Attributes:
        function_name: Name of the stored discovery function.
        poll_interval_seconds: Delay between successful discovery cycles.
        call_timeout_seconds: Longest a single discovery call may block
            before the cycle counts as a communication failure. None
            disables the limit.
        backoff_seconds: Delay after a failed cycle. None reuses
            `poll_interval_seconds`.
    """

    function_name: str
    poll_interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS
    call_timeout_seconds: Optional[float] = DEFAULT_CALL_TIMEOUT_SECONDS
    backoff_seconds: Optional[float] = None

    def __post_init__(self) -> None:
        if not isinstance(self.function_name, str):
            raise TypeError(
                "function_name must be str, got "
                f"{type(self.function_name).__name__}."
            )
        if not self.function_name.strip():
            raise ValueError("function_name cannot be empty.")
        if self.poll_interval_seconds <= 0:
            raise ValueError(
                "poll_interval_seconds must be positive, got "
                f"{self.poll_interval_seconds}."
            )
        if self.call_timeout_seconds is not None and self.call_timeout_seconds <= 0:
            raise ValueError(
                "call_timeout_seconds must be positive or None, got "
                f"{self.call_timeout_seconds}."
            )
        if self.backoff_seconds is not None and self.backoff_seconds <= 0:
            raise ValueError(
                "backoff_seconds must be positive or None, got "
                f"{self.backoff_seconds}."
            )

    @property
    def effective_backoff_seconds(self) -> float:
        """Delay to wait after a failed discovery cycle."""
        if self.backoff_seconds is None:
            return self.poll_interval_seconds
        return self.backoff_seconds
