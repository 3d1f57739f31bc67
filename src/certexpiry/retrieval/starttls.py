"""Plaintext protocol dialogs that upgrade a connection to TLS.

Each dialog speaks just enough of the protocol to reach the point where
the server expects a TLS ClientHello. Nothing is read past the final reply.
"""

import re
import socket
from collections.abc import Callable

from certexpiry.core.exceptions import StartTLSError
from certexpiry.models import StartTLSProtocol
from certexpiry.retrieval.deadline import recv_before

MAX_LINE = 4096

_CODED_LINE = re.compile(r"^(\d{3})([ -]|$)")


class _Dialog:
    """Line-oriented client side of a plaintext exchange."""

    def __init__(
        self,
        sock: socket.socket,
        protocol: StartTLSProtocol,
        deadline: float | None = None,
    ) -> None:
        self._sock = sock
        self._protocol = protocol
        self._deadline = deadline
        self._buffer = bytearray()

    def send(self, line: str) -> None:
        self._sock.sendall(line.encode("ascii") + b"\r\n")

    def readline(self) -> str:
        while b"\n" not in self._buffer:
            if len(self._buffer) > MAX_LINE:
                raise self.error("reply line too long")
            chunk = recv_before(
                self._sock, MAX_LINE, self._deadline, f"{self._protocol.value} STARTTLS"
            )
            if not chunk:
                raise self.error("server closed the connection")
            self._buffer += chunk

        line, _, rest = bytes(self._buffer).partition(b"\n")
        self._buffer = bytearray(rest)
        return line.rstrip(b"\r").decode("utf-8", errors="replace")

    def read_coded_reply(self) -> tuple[int, list[str]]:
        """Read a (possibly multi-line) ``NNN-``/``NNN `` reply as used by SMTP and FTP."""
        first = self.readline()
        match = _CODED_LINE.match(first)
        if not match:
            raise self.error(f"unexpected reply {first!r}")

        code = match.group(1)
        lines = [first]
        if match.group(2) == "-":
            # Continuation lines may carry arbitrary text (FTP); only "NNN " ends the reply.
            while True:
                line = self.readline()
                lines.append(line)
                if line == code or line.startswith(f"{code} "):
                    break
        return int(code), lines

    def expect_code(self, expected: int, step: str) -> list[str]:
        code, lines = self.read_coded_reply()
        if code != expected:
            raise self.error(f"{step}: expected {expected}, got {lines[-1]!r}")
        return lines

    def assert_drained(self) -> None:
        if self._buffer:
            raise self.error("server sent data before the TLS handshake")

    def error(self, reason: str) -> StartTLSError:
        return StartTLSError(
            f"{self._protocol.value} STARTTLS failed: {reason}",
            details={"protocol": self._protocol.value},
        )


def _smtp(dialog: _Dialog, ehlo_name: str) -> None:
    dialog.expect_code(220, "greeting")
    dialog.send(f"EHLO {ehlo_name}")
    capabilities = dialog.expect_code(250, "EHLO")
    if not any(line[4:].strip().upper() == "STARTTLS" for line in capabilities):
        raise dialog.error("server does not advertise STARTTLS")
    dialog.send("STARTTLS")
    dialog.expect_code(220, "STARTTLS")


def _ftp(dialog: _Dialog, ehlo_name: str) -> None:
    dialog.expect_code(220, "greeting")
    dialog.send("AUTH TLS")
    dialog.expect_code(234, "AUTH TLS")


def _imap(dialog: _Dialog, ehlo_name: str) -> None:
    greeting = dialog.readline()
    if not greeting.upper().startswith(("* OK", "* PREAUTH")):
        raise dialog.error(f"unexpected greeting {greeting!r}")
    dialog.send("a001 STARTTLS")
    while True:
        line = dialog.readline()
        if line.startswith("* "):
            continue
        if line.upper().startswith("A001 OK"):
            return
        raise dialog.error(f"STARTTLS rejected: {line!r}")


def _pop3(dialog: _Dialog, ehlo_name: str) -> None:
    greeting = dialog.readline()
    if not greeting.startswith("+OK"):
        raise dialog.error(f"unexpected greeting {greeting!r}")
    dialog.send("STLS")
    reply = dialog.readline()
    if not reply.startswith("+OK"):
        raise dialog.error(f"STLS rejected: {reply!r}")


_DIALOGS: dict[StartTLSProtocol, Callable[[_Dialog, str], None]] = {
    StartTLSProtocol.FTP: _ftp,
    StartTLSProtocol.IMAP: _imap,
    StartTLSProtocol.POP3: _pop3,
    StartTLSProtocol.SMTP: _smtp,
}


def negotiate_starttls(
    sock: socket.socket,
    protocol: StartTLSProtocol,
    ehlo_name: str = "localhost",
    deadline: float | None = None,
) -> None:
    """Run the upgrade dialog for ``protocol`` on a connected plaintext socket.

    ``deadline`` is a ``time.monotonic()`` value bounding the whole dialog,
    not just each read.

    Raises:
        StartTLSError: if the server does not follow the dialog.
        HandshakeTimeoutError: if the dialog outlives ``deadline``.
        OSError: on socket failures.
    """
    dialog = _Dialog(sock, protocol, deadline)
    _DIALOGS[protocol](dialog, ehlo_name)
    dialog.assert_drained()
