"""Certificate parsing, expiry reduction and per-service evaluation."""

from certexpiry.evaluation.evaluator import ServiceEvaluator
from certexpiry.evaluation.parser import parse_certificate
from certexpiry.evaluation.reducer import reduce_chain
from certexpiry.evaluation.runner import EvaluationRunner, run_evaluation

__all__ = [
    "EvaluationRunner",
    "ServiceEvaluator",
    "parse_certificate",
    "reduce_chain",
    "run_evaluation",
]
