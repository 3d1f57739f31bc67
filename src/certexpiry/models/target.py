"""Target and proxy address models."""

import re
from ipaddress import IPv6Address, ip_address
from urllib.parse import urlsplit

import idna
from pydantic import ConfigDict, Field, ValidationError, field_validator

from certexpiry.core.exceptions import ConfigurationError
from certexpiry.models.base import BaseSchema, StartTLSProtocol

DEFAULT_PORT = 443

_HOSTNAME_PATTERN = re.compile(
    r"^(?=.{1,253}\.?$)[a-z0-9_](?:[a-z0-9_-]{0,61}[a-z0-9])?"
    r"(?:\.[a-z0-9_](?:[a-z0-9_-]{0,61}[a-z0-9])?)*\.?$"
)


def _normalize_host(value: str) -> str:
    """Normalise a DNS name or IP literal, stripping URI-style brackets."""
    host = value.strip()
    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]

    try:
        return str(ip_address(host))
    except ValueError:
        pass

    if not host.isascii():
        try:
            host = idna.encode(host, uts46=True).decode("ascii")
        except idna.IDNAError as e:
            raise ValueError(f"Invalid internationalized hostname: {value}") from e

    host = host.lower()
    if not _HOSTNAME_PATTERN.match(host):
        raise ValueError(f"Invalid hostname: {value}")
    return host


class Target(BaseSchema):
    """One service to check."""

    model_config = ConfigDict(frozen=True)

    host: str = Field(description="DNS name or IP literal")
    port: int = Field(default=DEFAULT_PORT, ge=1, le=65535)
    starttls: StartTLSProtocol | None = None
    verify_hostname: bool = False

    @field_validator("host")
    @classmethod
    def validate_host(cls, v: str) -> str:
        return _normalize_host(v)

    @classmethod
    def parse(cls, spec: str, verify_hostname: bool = False) -> "Target":
        """Parse a ``host[_port[_starttlsProtocol]]`` service specification.

        Raises:
            ConfigurationError: on malformed specs and unsupported protocols.
        """
        parts = spec.strip().split("_")
        if len(parts) > 3 or not parts[0]:
            raise ConfigurationError(
                f"Invalid service specification: {spec!r}",
                details={"expected": "host[_port[_starttlsProtocol]]"},
            )

        port = DEFAULT_PORT
        if len(parts) > 1:
            try:
                port = int(parts[1])
            except ValueError as e:
                raise ConfigurationError(
                    f"Invalid port in service specification: {spec!r}"
                ) from e

        starttls = None
        if len(parts) > 2:
            try:
                starttls = StartTLSProtocol(parts[2].lower())
            except ValueError as e:
                supported = ", ".join(p.value for p in StartTLSProtocol)
                raise ConfigurationError(
                    f"Unsupported STARTTLS protocol {parts[2]!r} in {spec!r}",
                    details={"supported": supported},
                ) from e

        try:
            return cls(
                host=parts[0],
                port=port,
                starttls=starttls,
                verify_hostname=verify_hostname,
            )
        except ValidationError as e:
            raise ConfigurationError(f"Invalid service specification: {spec!r}: {e}") from e

    @property
    def is_ip_literal(self) -> bool:
        try:
            ip_address(self.host)
        except ValueError:
            return False
        return True

    @property
    def is_ipv6(self) -> bool:
        try:
            return isinstance(ip_address(self.host), IPv6Address)
        except ValueError:
            return False

    @property
    def server_name(self) -> str:
        """Name sent as SNI; IPv6 literals are bracket-wrapped."""
        if self.is_ipv6:
            return f"[{self.host}]"
        return self.host

    @property
    def address(self) -> str:
        return f"{self.server_name}:{self.port}"

    @property
    def service(self) -> str:
        """Canonical service string, as accepted by :meth:`parse`."""
        service = f"{self.host}_{self.port}"
        if self.starttls:
            service = f"{service}_{self.starttls.value}"
        return service


class ProxyAddress(BaseSchema):
    """CONNECT-capable HTTP relay."""

    model_config = ConfigDict(frozen=True)

    host: str
    port: int = Field(ge=1, le=65535)

    @field_validator("host")
    @classmethod
    def validate_host(cls, v: str) -> str:
        return _normalize_host(v)

    @classmethod
    def parse(cls, value: str) -> "ProxyAddress":
        """Parse ``host:port`` (``[v6]:port`` and an ``http://`` prefix accepted)."""
        raw = value.strip()
        parsed = urlsplit(raw if "://" in raw else f"//{raw}")
        if parsed.scheme not in ("", "http"):
            raise ConfigurationError(f"Only http CONNECT proxies are supported: {value!r}")

        try:
            port = parsed.port
        except ValueError as e:
            raise ConfigurationError(f"Invalid proxy port: {value!r}") from e

        if not parsed.hostname or port is None:
            raise ConfigurationError(f"Proxy must be given as host:port: {value!r}")

        try:
            return cls(host=parsed.hostname, port=port)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid proxy address: {value!r}: {e}") from e

    @property
    def address(self) -> tuple[str, int]:
        return (self.host, self.port)
