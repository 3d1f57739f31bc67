"""Pydantic data models for certexpiry."""

from certexpiry.models.base import BaseSchema, ResultStatus, StartTLSProtocol
from certexpiry.models.target import DEFAULT_PORT, ProxyAddress, Target
from certexpiry.models.certificate import (
    SECONDS_PER_DAY,
    Certificate,
    normalize_identity_hash,
)
from certexpiry.models.result import EvaluationResult
from certexpiry.models.run import EvaluationConfig

__all__ = [
    # Base
    "BaseSchema",
    "ResultStatus",
    "StartTLSProtocol",
    # Target
    "DEFAULT_PORT",
    "ProxyAddress",
    "Target",
    # Certificate
    "SECONDS_PER_DAY",
    "Certificate",
    "normalize_identity_hash",
    # Results
    "EvaluationResult",
    "EvaluationConfig",
]
