"""Munin plugin text protocol."""

import re
from collections.abc import Iterable

from certexpiry.core.config import FieldThresholds
from certexpiry.models import EvaluationResult, ResultStatus, Target

UNKNOWN_VALUE = "U"
HOSTNAME_MISMATCH_VALUE = "-1"

GRAPH_HEADER = (
    "graph_title SSL Certificates Expiration",
    "graph_args --base 1000",
    "graph_vlabel days left",
    "graph_category security",
    "graph_info This graph shows the number of days before the certificate "
    "chain presented by each service becomes invalid",
)

_LEADING = re.compile(r"^[^A-Za-z_]")
_INVALID = re.compile(r"[^A-Za-z0-9_]")


def clean_fieldname(name: str) -> str:
    """Turn an arbitrary label into a valid munin field name."""
    return _INVALID.sub("_", _LEADING.sub("_", name))


def render_config(
    targets: Iterable[Target],
    thresholds: dict[str, FieldThresholds] | None = None,
) -> str:
    """Graph and field definitions answered to ``config``.

    ``thresholds`` maps field names to their resolved warning/critical
    specifications; they are emitted verbatim.
    """
    thresholds = thresholds or {}
    lines = list(GRAPH_HEADER)
    for target in targets:
        field = clean_fieldname(target.service)
        lines.append(f"{field}.label {target.service}")
        limits = thresholds.get(field)
        if limits is None:
            continue
        if limits.warning:
            lines.append(f"{field}.warning {limits.warning}")
        if limits.critical:
            lines.append(f"{field}.critical {limits.critical}")
    return "\n".join(lines) + "\n"


def format_value(result: EvaluationResult) -> str:
    if result.status == ResultStatus.VALID:
        return f"{result.days_remaining:.2f}"
    if result.status == ResultStatus.HOSTNAME_MISMATCH:
        return HOSTNAME_MISMATCH_VALUE
    return UNKNOWN_VALUE


def render_values(results: Iterable[EvaluationResult]) -> str:
    """Value lines answered to a plain fetch.

    A hostname mismatch is reported as ``-1`` together with an ``extinfo``
    line so that it alerts instead of disappearing as unknown.
    """
    lines = []
    for result in results:
        field = clean_fieldname(result.target)
        lines.append(f"{field}.value {format_value(result)}")
        if result.is_hostname_mismatch and result.message:
            extinfo = " ".join(result.message.split())
            lines.append(f"{field}.extinfo {extinfo}")
    return "\n".join(lines) + "\n" if lines else ""
