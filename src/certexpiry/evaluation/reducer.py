"""Chain-wide expiry reduction."""

from collections.abc import Collection, Iterable
from datetime import datetime

from certexpiry.models import Certificate


def reduce_chain(
    chain: Iterable[Certificate],
    skip_hashes: Collection[str],
    now: datetime,
) -> float | None:
    """Days until the soonest-expiring certificate not in ``skip_hashes`` expires.

    The value is signed: an already expired certificate yields a negative
    number. Order of ``chain`` does not matter. Returns ``None`` when no
    certificate is left after skipping.
    """
    remaining = [
        cert.days_remaining(now)
        for cert in chain
        if cert.identity_hash not in skip_hashes
    ]
    if not remaining:
        return None
    return min(remaining)
