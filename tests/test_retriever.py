"""Tests for chain retrieval against local TLS servers."""

import socket
import ssl
import threading
import time
from datetime import timedelta

import pytest

from certexpiry.core.exceptions import (
    HandshakeTimeoutError,
    HostnameMismatchError,
    RetrievalError,
)
from certexpiry.evaluation import parse_certificate
from certexpiry.models import ProxyAddress, Target
from certexpiry.retrieval import ChainRetriever


def _readline(conn):
    line = bytearray()
    while not line.endswith(b"\n"):
        chunk = conn.recv(1)
        if not chunk:
            break
        line += chunk
    return bytes(line)


class LocalTLSServer:
    """Serves one TLS handshake on 127.0.0.1, optionally after an SMTP STARTTLS dialog."""

    def __init__(self, chain_file, key_file, smtp=False):
        self.context = ssl.SSLContext(ssl.PROTOCOL_TLS_SERVER)
        self.context.load_cert_chain(chain_file, key_file)
        self.smtp = smtp
        self.listener = socket.create_server(("127.0.0.1", 0))
        self.listener.settimeout(5)
        self.port = self.listener.getsockname()[1]
        self.thread = threading.Thread(target=self._serve, daemon=True)

    def __enter__(self):
        self.thread.start()
        return self

    def __exit__(self, *exc_info):
        self.thread.join(timeout=5)
        self.listener.close()

    def _serve(self):
        try:
            conn, _ = self.listener.accept()
        except OSError:
            return
        conn.settimeout(5)
        try:
            if self.smtp:
                conn.sendall(b"220 localhost ESMTP\r\n")
                _readline(conn)
                conn.sendall(b"250-localhost\r\n250 STARTTLS\r\n")
                _readline(conn)
                conn.sendall(b"220 Ready to start TLS\r\n")
            with self.context.wrap_socket(conn, server_side=True) as tls:
                tls.recv(1)
        except (OSError, ssl.SSLError):
            return
        finally:
            conn.close()


@pytest.fixture
def chain_files(tmp_path, cert_factory):
    """Write a leaf + intermediate chain for 127.0.0.1 and return the paths."""

    def write(dns_names=None, ip_addresses=("127.0.0.1",)):
        intermediate = cert_factory(
            common_name="Test Intermediate",
            expires_in=timedelta(days=400),
            is_ca=True,
        )
        leaf = cert_factory(
            common_name="localhost",
            expires_in=timedelta(days=60),
            dns_names=dns_names,
            ip_addresses=list(ip_addresses),
            issuer=intermediate,
        )
        chain_file = tmp_path / "chain.pem"
        key_file = tmp_path / "key.pem"
        chain_file.write_bytes(leaf.pem + intermediate.pem)
        key_file.write_bytes(leaf.key_pem)
        return chain_file, key_file, [leaf, intermediate]

    return write


def test_retrieves_full_chain_in_order(chain_files):
    chain_file, key_file, issued = chain_files()

    with LocalTLSServer(chain_file, key_file) as server:
        chain = ChainRetriever(timeout=5).retrieve(Target(host="127.0.0.1", port=server.port))

    assert [parse_certificate(pem).identity_hash for pem in chain] == [
        cert.identity_hash for cert in issued
    ]


def test_hostname_verification_passes_for_ip_san(chain_files):
    chain_file, key_file, _ = chain_files()

    with LocalTLSServer(chain_file, key_file) as server:
        target = Target(host="127.0.0.1", port=server.port, verify_hostname=True)
        chain = ChainRetriever(timeout=5).retrieve(target)

    assert len(chain) == 2


def test_hostname_mismatch(chain_files):
    chain_file, key_file, _ = chain_files(dns_names=["other.example"], ip_addresses=())

    with LocalTLSServer(chain_file, key_file) as server:
        target = Target(host="127.0.0.1", port=server.port, verify_hostname=True)
        with pytest.raises(HostnameMismatchError) as exc_info:
            ChainRetriever(timeout=5).retrieve(target)

    assert "other.example" in exc_info.value.message
    assert exc_info.value.target == target.service


def test_mismatch_ignored_without_verification(chain_files):
    chain_file, key_file, _ = chain_files(dns_names=["other.example"], ip_addresses=())

    with LocalTLSServer(chain_file, key_file) as server:
        chain = ChainRetriever(timeout=5).retrieve(Target(host="127.0.0.1", port=server.port))

    assert len(chain) == 2


def test_smtp_starttls_end_to_end(chain_files):
    chain_file, key_file, issued = chain_files()

    with LocalTLSServer(chain_file, key_file, smtp=True) as server:
        target = Target.parse(f"127.0.0.1_{server.port}_smtp")
        chain = ChainRetriever(timeout=5).retrieve(target)

    assert parse_certificate(chain[0]).identity_hash == issued[0].identity_hash


def test_connection_refused():
    probe = socket.create_server(("127.0.0.1", 0))
    port = probe.getsockname()[1]
    probe.close()

    with pytest.raises(RetrievalError, match="Cannot connect") as exc_info:
        ChainRetriever(timeout=2).retrieve(Target(host="127.0.0.1", port=port))

    assert exc_info.value.target == f"127.0.0.1_{port}"


def test_handshake_timeout():
    listener = socket.create_server(("127.0.0.1", 0))
    port = listener.getsockname()[1]
    try:
        with pytest.raises(HandshakeTimeoutError):
            ChainRetriever(timeout=0.5).retrieve(Target(host="127.0.0.1", port=port))
    finally:
        listener.close()


def test_plaintext_server_is_a_retrieval_error():
    listener = socket.create_server(("127.0.0.1", 0))
    listener.settimeout(5)
    port = listener.getsockname()[1]

    def serve():
        try:
            conn, _ = listener.accept()
        except OSError:
            return
        with conn:
            conn.sendall(b"HTTP/1.1 400 Bad Request\r\n\r\n")

    thread = threading.Thread(target=serve, daemon=True)
    thread.start()
    try:
        with pytest.raises(RetrievalError):
            ChainRetriever(timeout=2).retrieve(Target(host="127.0.0.1", port=port))
    finally:
        thread.join(timeout=5)
        listener.close()


def test_starttls_dialog_shares_the_target_timeout():
    listener = socket.create_server(("127.0.0.1", 0))
    listener.settimeout(5)
    port = listener.getsockname()[1]
    stop = threading.Event()

    def serve():
        try:
            conn, _ = listener.accept()
        except OSError:
            return
        with conn:
            try:
                conn.sendall(b"* OK IMAP ready\r\n")
                _readline(conn)
                while not stop.wait(0.3):
                    conn.sendall(b"* still here\r\n")
            except OSError:
                return

    thread = threading.Thread(target=serve, daemon=True)
    thread.start()
    target = Target.parse(f"127.0.0.1_{port}_imap")
    started = time.monotonic()
    try:
        with pytest.raises(HandshakeTimeoutError) as exc_info:
            ChainRetriever(timeout=1.0).retrieve(target)
        elapsed = time.monotonic() - started
    finally:
        stop.set()
        thread.join(timeout=5)
        listener.close()

    assert elapsed < 3
    assert exc_info.value.target == target.service


def test_proxy_errors_carry_the_target():
    listener = socket.create_server(("127.0.0.1", 0))
    listener.settimeout(5)
    port = listener.getsockname()[1]

    def serve():
        try:
            conn, _ = listener.accept()
        except OSError:
            return
        with conn:
            while _readline(conn) not in (b"\r\n", b""):
                pass

    thread = threading.Thread(target=serve, daemon=True)
    thread.start()
    retriever = ChainRetriever(timeout=2, proxy=ProxyAddress(host="127.0.0.1", port=port))
    try:
        with pytest.raises(RetrievalError, match="closed the connection") as exc_info:
            retriever.retrieve(Target.parse("example.com_443"))
    finally:
        thread.join(timeout=5)
        listener.close()

    assert exc_info.value.target == "example.com_443"
