"""Per-service evaluation."""

from datetime import datetime

from certexpiry.core.exceptions import (
    CertificateParseError,
    HostnameMismatchError,
    RetrievalError,
)
from certexpiry.core.interfaces import IChainRetriever
from certexpiry.core.logging import get_logger
from certexpiry.evaluation.parser import parse_certificate
from certexpiry.evaluation.reducer import reduce_chain
from certexpiry.models import Certificate, EvaluationResult, Target


class ServiceEvaluator:
    """Turns one target into one :class:`EvaluationResult`.

    Holds no mutable state; the same evaluator may serve many targets
    concurrently.
    """

    def __init__(
        self,
        retriever: IChainRetriever,
        skip_hashes: frozenset[str] = frozenset(),
    ) -> None:
        self.retriever = retriever
        self.skip_hashes = skip_hashes
        self.logger = get_logger("evaluator")

    def evaluate(self, target: Target, now: datetime) -> EvaluationResult:
        """Evaluate ``target`` against the expiry instant ``now``."""
        service = target.service

        try:
            raw_chain = self.retriever.retrieve(target)
        except HostnameMismatchError as e:
            return EvaluationResult.hostname_mismatch(service, e.message, evaluated_at=now)
        except RetrievalError as e:
            self.logger.warning("retrieval_failed", target=service, error=e.message)
            return EvaluationResult.unavailable(service, e.message, evaluated_at=now)

        if not raw_chain:
            return EvaluationResult.unavailable(
                service, "Peer presented no certificates", evaluated_at=now
            )

        chain = self.parse_chain(raw_chain, service)
        days = reduce_chain(chain, self.skip_hashes, now)
        if days is None:
            return EvaluationResult.unavailable(
                service,
                "No usable certificate in chain (all skipped or unparsable)",
                chain=chain,
                evaluated_at=now,
            )

        self.logger.info(
            "evaluation_completed",
            target=service,
            days_remaining=round(days, 2),
            chain_length=len(chain),
        )
        return EvaluationResult.valid(service, days, chain=chain, evaluated_at=now)

    def parse_chain(self, raw_chain: list[bytes], service: str) -> list[Certificate]:
        """Parse every certificate, dropping the ones that fail to decode."""
        chain = []
        for position, data in enumerate(raw_chain):
            try:
                chain.append(parse_certificate(data, position))
            except CertificateParseError as e:
                self.logger.warning(
                    "certificate_parse_failed",
                    target=service,
                    position=position,
                    error=e.message,
                )
        return chain
