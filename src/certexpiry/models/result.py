"""Evaluation result models."""

from datetime import datetime

from pydantic import Field, model_validator

from certexpiry.models.base import BaseSchema, ResultStatus
from certexpiry.models.certificate import Certificate


class EvaluationResult(BaseSchema):
    """Outcome for one target: days remaining, hostname mismatch, or unavailable."""

    target: str
    status: ResultStatus
    days_remaining: float | None = None
    message: str | None = None
    chain: list[Certificate] = Field(default_factory=list)
    evaluated_at: datetime | None = None

    @model_validator(mode="after")
    def validate_case(self) -> "EvaluationResult":
        has_days = self.days_remaining is not None
        if has_days != (self.status == ResultStatus.VALID):
            raise ValueError("days_remaining is set exactly when status is valid")
        return self

    @classmethod
    def valid(
        cls,
        target: str,
        days_remaining: float,
        chain: list[Certificate] | None = None,
        evaluated_at: datetime | None = None,
    ) -> "EvaluationResult":
        return cls(
            target=target,
            status=ResultStatus.VALID,
            days_remaining=days_remaining,
            chain=chain or [],
            evaluated_at=evaluated_at,
        )

    @classmethod
    def hostname_mismatch(
        cls,
        target: str,
        message: str,
        evaluated_at: datetime | None = None,
    ) -> "EvaluationResult":
        return cls(
            target=target,
            status=ResultStatus.HOSTNAME_MISMATCH,
            message=message,
            evaluated_at=evaluated_at,
        )

    @classmethod
    def unavailable(
        cls,
        target: str,
        message: str,
        chain: list[Certificate] | None = None,
        evaluated_at: datetime | None = None,
    ) -> "EvaluationResult":
        return cls(
            target=target,
            status=ResultStatus.UNAVAILABLE,
            message=message,
            chain=chain or [],
            evaluated_at=evaluated_at,
        )

    @property
    def is_valid(self) -> bool:
        return self.status == ResultStatus.VALID

    @property
    def is_hostname_mismatch(self) -> bool:
        return self.status == ResultStatus.HOSTNAME_MISMATCH

    @property
    def is_unavailable(self) -> bool:
        return self.status == ResultStatus.UNAVAILABLE
