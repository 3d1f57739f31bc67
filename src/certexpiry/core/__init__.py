"""Core module - configuration, logging, and interfaces."""

from certexpiry.core.config import Settings, get_settings
from certexpiry.core.exceptions import (
    CertExpiryError,
    CertificateParseError,
    ConfigurationError,
    HandshakeTimeoutError,
    HostnameMismatchError,
    ProxyError,
    RetrievalError,
    StartTLSError,
)

__all__ = [
    "Settings",
    "get_settings",
    "CertExpiryError",
    "CertificateParseError",
    "ConfigurationError",
    "HandshakeTimeoutError",
    "HostnameMismatchError",
    "ProxyError",
    "RetrievalError",
    "StartTLSError",
]
