"""Explicit run configuration handed to the checker."""

from pydantic import ConfigDict, Field, field_validator

from certexpiry.models.base import BaseSchema
from certexpiry.models.certificate import normalize_identity_hash
from certexpiry.models.target import ProxyAddress, Target


class EvaluationConfig(BaseSchema):
    """Read-only configuration for one run over many targets."""

    model_config = ConfigDict(frozen=True)

    targets: list[Target] = Field(default_factory=list)
    skip_hashes: frozenset[str] = Field(default_factory=frozenset)
    proxy: ProxyAddress | None = None
    timeout: float = Field(default=10.0, gt=0, le=300)
    max_concurrent: int = Field(default=4, ge=1, le=64)
    deadline: float | None = Field(default=None, gt=0)
    ehlo_name: str = "localhost"

    @field_validator("skip_hashes", mode="before")
    @classmethod
    def normalize_skip_hashes(cls, v: object) -> object:
        if isinstance(v, (list, tuple, set, frozenset)):
            return frozenset(
                normalize_identity_hash(item) for item in v if str(item).strip()
            )
        return v
