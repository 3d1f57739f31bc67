"""Configuration management using pydantic-settings."""

import re
from functools import lru_cache
from pathlib import Path
from typing import TYPE_CHECKING, Annotated, Literal

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from certexpiry.core.exceptions import ConfigurationError

if TYPE_CHECKING:
    from certexpiry.models import EvaluationConfig

_LIST_SEPARATORS = re.compile(r"[\s,]+")


class FieldThresholds(BaseModel):
    """Per-field warning/critical overrides, passed through to the output layer."""

    warning: str | None = None
    critical: str | None = None


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="CERTEXPIRY_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Services to check, "host[_port[_starttlsProtocol]]"
    services: Annotated[list[str], NoDecode] = Field(default_factory=list)

    # Identity hashes of certificates excluded from the expiry reduction
    skip_hashes: Annotated[list[str], NoDecode] = Field(default_factory=list)

    # Connection
    proxy: str | None = Field(default=None)
    verify_hostname: bool = Field(default=False)
    timeout: float = Field(default=10.0, gt=0, le=300)
    ehlo_name: str = Field(default="localhost")

    # Run
    max_concurrent: int = Field(default=4, ge=1, le=64)
    deadline: float | None = Field(default=120.0, gt=0)

    # Thresholds (opaque to the checker, rendered by the munin output)
    warning: str | None = Field(default="30:")
    critical: str | None = Field(default="7:")
    thresholds: dict[str, FieldThresholds] = Field(default_factory=dict)

    # Snapshot cache for the munin command
    snapshot_path: Path | None = Field(default=None)
    snapshot_max_age: int = Field(default=60, ge=1, description="Minutes")

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO"
    )
    log_format: Literal["json", "text"] = Field(default="text")

    @field_validator("services", "skip_hashes", mode="before")
    @classmethod
    def split_list(cls, v: object) -> object:
        if isinstance(v, str):
            return [item for item in _LIST_SEPARATORS.split(v) if item]
        return v

    def to_evaluation_config(self) -> "EvaluationConfig":
        """Build the explicit run configuration handed to the checker.

        Raises:
            ConfigurationError: if a service, STARTTLS protocol or proxy is
                invalid, or two services share a munin field name.
        """
        from certexpiry.models import EvaluationConfig, ProxyAddress, Target
        from certexpiry.output.munin import clean_fieldname

        targets = []
        fields: dict[str, str] = {}
        for service in self.services:
            target = Target.parse(service, verify_hostname=self.verify_hostname)
            field = clean_fieldname(target.service)
            if field in fields:
                raise ConfigurationError(
                    f"Services {fields[field]!r} and {service!r} both map to "
                    f"munin field {field!r}",
                    details={"field": field},
                )
            fields[field] = service
            targets.append(target)

        proxy = ProxyAddress.parse(self.proxy) if self.proxy else None

        return EvaluationConfig(
            targets=targets,
            skip_hashes=self.skip_hashes,
            proxy=proxy,
            timeout=self.timeout,
            max_concurrent=self.max_concurrent,
            deadline=self.deadline,
            ehlo_name=self.ehlo_name,
        )

    def thresholds_for(self, field_name: str) -> FieldThresholds:
        """Resolve the warning/critical pair for one output field."""
        override = self.thresholds.get(field_name, FieldThresholds())
        return FieldThresholds(
            warning=override.warning if override.warning is not None else self.warning,
            critical=override.critical if override.critical is not None else self.critical,
        )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    try:
        return Settings()
    except ValueError as e:
        raise ConfigurationError(f"Invalid settings: {e}") from e
