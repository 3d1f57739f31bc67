"""TLS certificate chain retrieval."""

import select
import socket
import time

from cryptography import x509
from cryptography.hazmat.primitives import serialization
from OpenSSL import SSL

from certexpiry.core.exceptions import (
    HandshakeTimeoutError,
    HostnameMismatchError,
    RetrievalError,
)
from certexpiry.core.interfaces import IChainRetriever
from certexpiry.core.logging import get_logger
from certexpiry.models import ProxyAddress, Target
from certexpiry.retrieval.hostname import describe_names, leaf_matches_host
from certexpiry.retrieval.proxy import open_tunnel
from certexpiry.retrieval.starttls import negotiate_starttls


class ChainRetriever(IChainRetriever):
    """Connects to a target and returns the certificate chain it presents.

    The connection is optionally tunnelled through an HTTP CONNECT relay and
    optionally upgraded with STARTTLS. Trust is never evaluated; only the
    chain as transmitted matters. The connection is closed as soon as the
    handshake completes.
    """

    def __init__(
        self,
        timeout: float = 10.0,
        proxy: ProxyAddress | None = None,
        ehlo_name: str = "localhost",
    ) -> None:
        self.timeout = timeout
        self.proxy = proxy
        self.ehlo_name = ehlo_name
        self.logger = get_logger("retriever")

    def retrieve(self, target: Target) -> list[bytes]:
        """Return the presented chain as PEM blobs, leaf first.

        ``timeout`` bounds the whole exchange with the target: proxy,
        STARTTLS dialog and TLS handshake share one deadline.
        """
        deadline = time.monotonic() + self.timeout
        sock = None
        try:
            sock = self._connect(target, deadline)
            if target.starttls:
                negotiate_starttls(sock, target.starttls, self.ehlo_name, deadline)
            chain = self._handshake(sock, target, deadline)
        except RetrievalError as e:
            e.target = e.target or target.service
            raise
        except TimeoutError as e:
            raise HandshakeTimeoutError(
                f"{target.address} did not complete within {self.timeout}s",
                target=target.service,
            ) from e
        except OSError as e:
            raise RetrievalError(
                f"Connection to {target.address} failed: {e}",
                target=target.service,
            ) from e
        except SSL.Error as e:
            raise RetrievalError(
                f"TLS handshake with {target.address} failed: {e}",
                target=target.service,
            ) from e
        finally:
            if sock is not None:
                sock.close()

        self.logger.debug(
            "chain_retrieved",
            target=target.service,
            certificates=len(chain),
        )

        if target.verify_hostname and chain:
            self._verify_hostname(target, chain[0])

        return [cert.public_bytes(serialization.Encoding.PEM) for cert in chain]

    def _connect(self, target: Target, deadline: float) -> socket.socket:
        if self.proxy:
            return open_tunnel(self.proxy, target, self.timeout, deadline)

        try:
            return socket.create_connection(
                (target.host, target.port), timeout=self.timeout
            )
        except OSError as e:
            raise RetrievalError(
                f"Cannot connect to {target.address}: {e}",
                target=target.service,
            ) from e

    def _handshake(
        self, sock: socket.socket, target: Target, deadline: float
    ) -> list[x509.Certificate]:
        context = SSL.Context(SSL.TLS_CLIENT_METHOD)
        connection = SSL.Connection(context, sock)
        connection.set_tlsext_host_name(target.server_name.encode("ascii"))
        connection.set_connect_state()

        self._do_handshake(connection, sock, target, deadline)

        certs = connection.get_peer_cert_chain() or []
        return [cert.to_cryptography() for cert in certs]

    def _do_handshake(
        self,
        connection: SSL.Connection,
        sock: socket.socket,
        target: Target,
        deadline: float,
    ) -> None:
        # A socket with a timeout is non-blocking underneath, so OpenSSL
        # reports WANT_READ/WANT_WRITE instead of blocking.
        while True:
            try:
                connection.do_handshake()
                return
            except SSL.WantReadError:
                rlist, wlist = [sock], []
            except SSL.WantWriteError:
                rlist, wlist = [], [sock]

            remaining = deadline - time.monotonic()
            if remaining <= 0:
                ready = False
            else:
                readable, writable, _ = select.select(rlist, wlist, [], remaining)
                ready = bool(readable or writable)

            if not ready:
                raise HandshakeTimeoutError(
                    f"TLS handshake with {target.address} timed out after {self.timeout}s",
                    target=target.service,
                )

    def _verify_hostname(self, target: Target, leaf: x509.Certificate) -> None:
        if leaf_matches_host(leaf, target.host):
            return

        message = (
            f"Hostname mismatch: certificate for {describe_names(leaf)} "
            f"does not cover {target.host}"
        )
        self.logger.warning("hostname_mismatch", target=target.service, names=describe_names(leaf))
        raise HostnameMismatchError(message, target=target.service)
