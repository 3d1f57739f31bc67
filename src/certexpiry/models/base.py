"""Base models and enums."""

from enum import Enum

from pydantic import BaseModel, ConfigDict


class BaseSchema(BaseModel):
    """Base schema with common configuration."""

    model_config = ConfigDict(
        str_strip_whitespace=True,
        validate_assignment=True,
        extra="forbid",
    )


class StartTLSProtocol(str, Enum):
    """Plaintext protocols that can be upgraded to TLS in-band."""

    FTP = "ftp"
    IMAP = "imap"
    POP3 = "pop3"
    SMTP = "smtp"


class ResultStatus(str, Enum):
    """Outcome of evaluating one target."""

    VALID = "valid"
    HOSTNAME_MISMATCH = "hostname_mismatch"
    UNAVAILABLE = "unavailable"
