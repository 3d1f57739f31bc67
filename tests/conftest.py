"""Pytest configuration and fixtures."""

import ipaddress
import os
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import NameOID

from certexpiry.core.config import get_settings
from certexpiry.core.exceptions import HostnameMismatchError, RetrievalError
from certexpiry.core.interfaces import IChainRetriever
from certexpiry.models import Target

NOW = datetime(2026, 1, 15, 12, 0, 0, tzinfo=timezone.utc)


class IssuedCertificate:
    """A generated certificate together with its private key."""

    def __init__(self, cert: x509.Certificate, key: ec.EllipticCurvePrivateKey) -> None:
        self.cert = cert
        self.key = key

    @property
    def pem(self) -> bytes:
        return self.cert.public_bytes(serialization.Encoding.PEM)

    @property
    def der(self) -> bytes:
        return self.cert.public_bytes(serialization.Encoding.DER)

    @property
    def key_pem(self) -> bytes:
        return self.key.private_bytes(
            serialization.Encoding.PEM,
            serialization.PrivateFormat.PKCS8,
            serialization.NoEncryption(),
        )

    @property
    def identity_hash(self) -> str:
        return self.cert.fingerprint(hashes.SHA256()).hex()


def issue_certificate(
    common_name: str = "example.com",
    expires_in: timedelta = timedelta(days=90),
    dns_names: list[str] | None = None,
    ip_addresses: list[str] | None = None,
    issuer: IssuedCertificate | None = None,
    is_ca: bool = False,
    now: datetime = NOW,
) -> IssuedCertificate:
    """Build a certificate expiring ``expires_in`` after ``now``."""
    key = ec.generate_private_key(ec.SECP256R1())
    subject = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, common_name)])
    not_after = now + expires_in
    not_before = min(now, not_after) - timedelta(days=30)

    builder = (
        x509.CertificateBuilder()
        .subject_name(subject)
        .issuer_name(issuer.cert.subject if issuer else subject)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(not_before)
        .not_valid_after(not_after)
        .add_extension(x509.BasicConstraints(ca=is_ca, path_length=None), critical=True)
    )

    names: list[x509.GeneralName] = [x509.DNSName(name) for name in dns_names or []]
    names += [x509.IPAddress(ipaddress.ip_address(ip)) for ip in ip_addresses or []]
    if names:
        builder = builder.add_extension(x509.SubjectAlternativeName(names), critical=False)

    signing_key = issuer.key if issuer else key
    cert = builder.sign(signing_key, hashes.SHA256())
    return IssuedCertificate(cert, key)


class FakeRetriever(IChainRetriever):
    """Serves canned chains or errors per service and records calls."""

    def __init__(self, responses: dict[str, list[bytes] | Exception]) -> None:
        self.responses = responses
        self.calls: list[str] = []

    def retrieve(self, target: Target) -> list[bytes]:
        self.calls.append(target.service)
        response = self.responses[target.service]
        if isinstance(response, Exception):
            raise response
        return list(response)


@pytest.fixture
def now() -> datetime:
    """Fixed evaluation instant."""
    return NOW


@pytest.fixture
def cert_factory() -> Callable[..., IssuedCertificate]:
    """Factory for generated certificates."""
    return issue_certificate


@pytest.fixture
def fake_retriever() -> type[FakeRetriever]:
    """Retriever double serving canned chains."""
    return FakeRetriever


@pytest.fixture
def sample_target() -> Target:
    """Sample target for testing."""
    return Target(host="example.com")


@pytest.fixture
def refused() -> RetrievalError:
    return RetrievalError("Cannot connect to example.com:443: [Errno 111] Connection refused")


@pytest.fixture
def mismatch() -> HostnameMismatchError:
    return HostnameMismatchError(
        "Hostname mismatch: certificate for other.example does not cover example.com"
    )


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch: pytest.MonkeyPatch, tmp_path):
    """Keep ambient CERTEXPIRY_* variables and .env files out of every test."""
    for name in list(os.environ):
        if name.upper().startswith("CERTEXPIRY_"):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
