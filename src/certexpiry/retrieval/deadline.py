"""Socket reads bounded by an absolute per-target deadline."""

import socket
import time

from certexpiry.core.exceptions import HandshakeTimeoutError


def remaining(deadline: float, action: str) -> float:
    """Seconds left until ``deadline`` (a ``time.monotonic()`` value).

    Raises:
        HandshakeTimeoutError: if the deadline has already passed.
    """
    left = deadline - time.monotonic()
    if left <= 0:
        raise HandshakeTimeoutError(f"{action} timed out")
    return left


def recv_before(
    sock: socket.socket, bufsize: int, deadline: float | None, action: str
) -> bytes:
    """``sock.recv`` that gives up once ``deadline`` has passed.

    Without a deadline the socket's own timeout applies to the single read.
    """
    if deadline is not None:
        sock.settimeout(remaining(deadline, action))
    try:
        return sock.recv(bufsize)
    except TimeoutError as e:
        raise HandshakeTimeoutError(f"{action} timed out") from e
