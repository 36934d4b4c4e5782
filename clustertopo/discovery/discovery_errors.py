"""Exception types raised while discovering cluster instances.

Every error carries a `DiscoveryErrorKind`:

- `COMMUNICATION_FAILURE`: the transport could not deliver the call
  (network failure, timeout).
- `REMOTE_EXECUTION_FAILURE`: the call was delivered but the remote
  function failed (unknown function, script runtime error).
- `CONTRACT_VIOLATION`: a reply was delivered but does not have the
  mandatory shape.

Malformed individual entries inside an otherwise valid reply are not errors;
they are skipped and logged by the result validator.
"""

import enum


class DiscoveryErrorKind(enum.Enum):
    """Tag identifying which part of a discovery cycle failed."""

    COMMUNICATION_FAILURE = "communication_failure"
    REMOTE_EXECUTION_FAILURE = "remote_execution_failure"
    CONTRACT_VIOLATION = "contract_violation"


class DiscoveryError(Exception):
    """Base class for all discovery failures."""

    kind: DiscoveryErrorKind

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class CommunicationFailure(DiscoveryError):
    """The transport failed to deliver the call or timed out."""

    kind = DiscoveryErrorKind.COMMUNICATION_FAILURE


class RemoteExecutionFailure(DiscoveryError):
    """The remote function raised an error on the server side."""

    kind = DiscoveryErrorKind.REMOTE_EXECUTION_FAILURE


class DiscoveryContractViolation(DiscoveryError):
    """A delivered reply does not follow the discovery function contract."""

    kind = DiscoveryErrorKind.CONTRACT_VIOLATION


class IllegalDiscoveryFunctionResult(DiscoveryContractViolation):
    """A delivered reply whose first value is not an array."""
