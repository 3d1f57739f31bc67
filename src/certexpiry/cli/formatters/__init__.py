"""CLI output formatters."""

from certexpiry.cli.formatters.table import format_chains, format_results
from certexpiry.cli.formatters.json_fmt import format_json

__all__ = ["format_chains", "format_results", "format_json"]
