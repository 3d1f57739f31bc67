"""Certificate models."""

import re
from datetime import datetime

from pydantic import ConfigDict, Field, field_validator

from certexpiry.models.base import BaseSchema

SECONDS_PER_DAY = 86400.0

_HASH_NOISE = re.compile(r"[\s:]")


def normalize_identity_hash(value: str) -> str:
    """Canonical form of an identity hash: lower-case hex, no separators."""
    return _HASH_NOISE.sub("", value).lower()


class Certificate(BaseSchema):
    """One parsed entry of a presented chain."""

    model_config = ConfigDict(frozen=True)

    identity_hash: str
    not_after: datetime
    position: int = Field(default=0, ge=0, description="0 = leaf")
    subject: str | None = None

    @field_validator("identity_hash")
    @classmethod
    def validate_identity_hash(cls, v: str) -> str:
        return normalize_identity_hash(v)

    @field_validator("not_after")
    @classmethod
    def validate_not_after(cls, v: datetime) -> datetime:
        if v.tzinfo is None:
            raise ValueError("not_after must be timezone-aware")
        return v

    def days_remaining(self, now: datetime) -> float:
        """Signed fractional days between ``now`` and expiry."""
        return (self.not_after - now).total_seconds() / SECONDS_PER_DAY
