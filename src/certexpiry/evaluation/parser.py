"""Certificate parsing."""

from cryptography import x509
from cryptography.hazmat.primitives import hashes

from certexpiry.core.exceptions import CertificateParseError
from certexpiry.models import Certificate

_PEM_MARKER = b"-----BEGIN"


def parse_certificate(data: bytes, position: int = 0) -> Certificate:
    """Extract the identity hash and expiry of one certificate.

    ``data`` is PEM; DER is accepted as well. The identity hash is the
    SHA-256 fingerprint of the DER encoding, so it is stable across runs
    and matches ``openssl x509 -fingerprint -sha256`` output once colons are
    stripped.

    Raises:
        CertificateParseError: if the data is not a decodable certificate.
    """
    try:
        if data.lstrip().startswith(_PEM_MARKER):
            cert = x509.load_pem_x509_certificate(data)
        else:
            cert = x509.load_der_x509_certificate(data)
        subject = cert.subject.rfc4514_string()
        not_after = cert.not_valid_after_utc
    except ValueError as e:
        raise CertificateParseError(
            f"Malformed certificate at chain position {position}: {e}",
            position=position,
        ) from e

    return Certificate(
        identity_hash=cert.fingerprint(hashes.SHA256()).hex(),
        not_after=not_after,
        position=position,
        subject=subject,
    )
