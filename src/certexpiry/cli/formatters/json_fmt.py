"""JSON formatter for CLI output."""

from typing import Any

from rich.console import Console

from certexpiry.models import EvaluationResult


def to_dict(results: list[EvaluationResult]) -> list[dict[str, Any]]:
    """Convert evaluation results to plain JSON-compatible data."""
    return [result.model_dump(mode="json") for result in results]


def format_json(console: Console, results: list[EvaluationResult]) -> None:
    """Format and display evaluation results as JSON."""
    console.print_json(data=to_dict(results))
