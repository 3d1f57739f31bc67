"""Leaf certificate hostname matching."""

from ipaddress import ip_address

from cryptography import x509
from cryptography.x509.oid import NameOID


def _dns_name_matches(pattern: str, hostname: str) -> bool:
    pattern = pattern.lower().rstrip(".")
    if pattern == hostname:
        return True

    # Only a whole left-most "*" label is honoured, and never for bare TLDs.
    if not pattern.startswith("*."):
        return False
    suffix = pattern[2:]
    if suffix.count(".") < 1:
        return False
    label, _, rest = hostname.partition(".")
    return bool(label) and rest == suffix


def _common_names(cert: x509.Certificate) -> list[str]:
    return [
        str(attribute.value)
        for attribute in cert.subject.get_attributes_for_oid(NameOID.COMMON_NAME)
    ]


def leaf_matches_host(cert: x509.Certificate, host: str) -> bool:
    """Check whether ``cert`` is valid for ``host`` (DNS name or IP literal).

    DNS names are matched against dNSName SAN entries, falling back to the
    subject CN only when the certificate carries no dNSName entries. IP
    literals are matched against iPAddress SAN entries only.
    """
    try:
        san = cert.extensions.get_extension_for_class(x509.SubjectAlternativeName).value
    except x509.ExtensionNotFound:
        san = None

    try:
        address = ip_address(host.strip("[]"))
    except ValueError:
        address = None

    if address is not None:
        if san is None:
            return False
        return address in san.get_values_for_type(x509.IPAddress)

    hostname = host.lower().rstrip(".")
    dns_names = san.get_values_for_type(x509.DNSName) if san is not None else []
    candidates = dns_names or _common_names(cert)
    return any(_dns_name_matches(name, hostname) for name in candidates)


def describe_names(cert: x509.Certificate) -> str:
    """Human-readable list of the names a certificate covers."""
    try:
        san = cert.extensions.get_extension_for_class(x509.SubjectAlternativeName).value
    except x509.ExtensionNotFound:
        names = [f"CN={name}" for name in _common_names(cert)]
    else:
        names = [str(name) for name in san.get_values_for_type(x509.DNSName)]
        names += [str(ip) for ip in san.get_values_for_type(x509.IPAddress)]
    return ", ".join(names) or "no names"
