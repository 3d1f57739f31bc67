"""HTTP CONNECT tunnelling."""

import socket
import time

from certexpiry.core.exceptions import ProxyError, RetrievalError
from certexpiry.models import ProxyAddress, Target
from certexpiry.retrieval.deadline import recv_before, remaining

MAX_RESPONSE_HEAD = 16 * 1024


def open_tunnel(
    proxy: ProxyAddress,
    target: Target,
    timeout: float,
    deadline: float | None = None,
) -> socket.socket:
    """Open a TCP tunnel to ``target`` through a CONNECT-capable relay.

    ``deadline`` (a ``time.monotonic()`` value, defaulting to ``timeout``
    from now) bounds connecting to the relay and reading its answer.
    """
    relay = f"{proxy.host}:{proxy.port}"
    if deadline is None:
        deadline = time.monotonic() + timeout
    action = f"CONNECT through proxy {relay}"

    try:
        sock = socket.create_connection(
            proxy.address, timeout=remaining(deadline, action)
        )
    except OSError as e:
        raise ProxyError(
            f"Cannot reach proxy {relay}: {e}", target=target.service
        ) from e

    try:
        request = (
            f"CONNECT {target.address} HTTP/1.1\r\n"
            f"Host: {target.address}\r\n"
            "\r\n"
        )
        sock.sendall(request.encode("ascii"))
        head = _read_response_head(sock, deadline, action, target)
        _check_status(head, relay, target)
    except RetrievalError as e:
        sock.close()
        e.target = e.target or target.service
        raise
    except OSError as e:
        sock.close()
        raise ProxyError(
            f"Proxy {relay} failed while tunnelling to {target.address}: {e}",
            target=target.service,
        ) from e

    return sock


def _read_response_head(
    sock: socket.socket, deadline: float, action: str, target: Target
) -> bytes:
    # One byte at a time: nothing past the blank line may be consumed.
    head = bytearray()
    while not head.endswith(b"\r\n\r\n"):
        chunk = recv_before(sock, 1, deadline, action)
        if not chunk:
            raise ProxyError(
                "Proxy closed the connection before answering CONNECT",
                target=target.service,
            )
        head += chunk
        if len(head) > MAX_RESPONSE_HEAD:
            raise ProxyError("Proxy response header too large", target=target.service)
    return bytes(head)


def _check_status(head: bytes, relay: str, target: Target) -> None:
    status_line = head.split(b"\r\n", 1)[0].decode("latin-1")
    parts = status_line.split(None, 2)
    if len(parts) < 2 or not parts[0].startswith("HTTP/") or not parts[1].isdigit():
        raise ProxyError(
            f"Malformed response from proxy {relay}: {status_line!r}",
            target=target.service,
        )
    if not parts[1].startswith("2"):
        raise ProxyError(
            f"Proxy {relay} refused CONNECT to {target.address}: {status_line}",
            target=target.service,
            details={"status": int(parts[1])},
        )
