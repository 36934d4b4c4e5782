"""States of a `TopologyRefresher`."""

from enum import Enum


class RefresherState(Enum):
    """Lifecycle of a topology refresher.

    Attributes:
        IDLE: Waiting for the next poll.
        POLLING: A discovery call is in flight.
        APPLYING: Publishing a freshly discovered address set.
        BACKOFF: Waiting after a failed discovery cycle.
        STOPPED: Terminal. No further polls are made.
    """

    IDLE = 0
    POLLING = 1
    APPLYING = 2
    BACKOFF = 3
    STOPPED = 4
