"""Custom exceptions for certexpiry."""


class CertExpiryError(Exception):
    """Base exception for all certexpiry errors."""

    def __init__(self, message: str, details: dict | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(CertExpiryError):
    """Raised when configuration is invalid."""

    pass


class RetrievalError(CertExpiryError):
    """Raised when a certificate chain cannot be retrieved from a target."""

    def __init__(
        self,
        message: str,
        target: str | None = None,
        details: dict | None = None,
    ) -> None:
        super().__init__(message, details)
        self.target = target


class ProxyError(RetrievalError):
    """Raised when the CONNECT relay refuses or mangles the tunnel."""

    pass


class StartTLSError(RetrievalError):
    """Raised when the plaintext upgrade dialog fails."""

    pass


class HandshakeTimeoutError(RetrievalError):
    """Raised when connection setup (proxy, STARTTLS or TLS handshake) does not finish in time."""

    pass


class HostnameMismatchError(CertExpiryError):
    """Raised when the presented leaf does not cover the target host."""

    def __init__(
        self,
        message: str,
        target: str | None = None,
        details: dict | None = None,
    ) -> None:
        super().__init__(message, details)
        self.target = target


class CertificateParseError(CertExpiryError):
    """Raised when certificate data cannot be decoded."""

    def __init__(
        self,
        message: str,
        position: int | None = None,
        details: dict | None = None,
    ) -> None:
        super().__init__(message, details)
        self.position = position
