"""Bounded-parallel evaluation of all configured targets."""

import asyncio
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone

from certexpiry.core.interfaces import IChainRetriever
from certexpiry.core.logging import get_logger
from certexpiry.evaluation.evaluator import ServiceEvaluator
from certexpiry.models import EvaluationConfig, EvaluationResult, Target
from certexpiry.retrieval import ChainRetriever


class EvaluationRunner:
    """Runs one evaluation per target under a worker bound and an overall deadline."""

    def __init__(
        self,
        config: EvaluationConfig,
        retriever: IChainRetriever | None = None,
    ) -> None:
        self.config = config
        self.logger = get_logger("runner")
        retriever = retriever or ChainRetriever(
            timeout=config.timeout,
            proxy=config.proxy,
            ehlo_name=config.ehlo_name,
        )
        self.evaluator = ServiceEvaluator(retriever, config.skip_hashes)

    async def run(self, now: datetime | None = None) -> list[EvaluationResult]:
        """Evaluate every target; results come back in target order.

        ``now`` is captured once so all targets are measured against the
        same instant. Evaluations still running at the deadline are
        abandoned and reported unavailable; their worker threads are left
        to finish on their own and are not waited for.
        """
        now = now or datetime.now(timezone.utc)
        targets = self.config.targets
        if not targets:
            return []

        self.logger.info(
            "run_started",
            targets=len(targets),
            max_concurrent=self.config.max_concurrent,
            deadline=self.config.deadline,
        )

        loop = asyncio.get_running_loop()
        executor = ThreadPoolExecutor(
            max_workers=self.config.max_concurrent,
            thread_name_prefix="certexpiry",
        )
        try:
            tasks = [
                loop.run_in_executor(executor, self.evaluator.evaluate, target, now)
                for target in targets
            ]
            done, pending = await asyncio.wait(tasks, timeout=self.config.deadline)
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

        if pending:
            self.logger.warning(
                "run_deadline_exceeded",
                deadline=self.config.deadline,
                abandoned=len(pending),
            )
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)

        results = [
            self._collect(target, task, task in done, now)
            for target, task in zip(targets, tasks)
        ]

        self.logger.info(
            "run_completed",
            targets=len(targets),
            valid=sum(1 for r in results if r.is_valid),
            unavailable=sum(1 for r in results if r.is_unavailable),
            hostname_mismatch=sum(1 for r in results if r.is_hostname_mismatch),
        )
        return results

    def _collect(
        self,
        target: Target,
        task: "asyncio.Future[EvaluationResult]",
        finished: bool,
        now: datetime,
    ) -> EvaluationResult:
        if not finished:
            return EvaluationResult.unavailable(
                target.service, "Deadline exceeded", evaluated_at=now
            )

        error = task.exception()
        if error is not None:
            self.logger.error(
                "evaluation_error",
                target=target.service,
                error=str(error),
                error_type=type(error).__name__,
            )
            return EvaluationResult.unavailable(
                target.service, f"Unexpected error: {error}", evaluated_at=now
            )
        return task.result()


def run_evaluation(
    config: EvaluationConfig,
    now: datetime | None = None,
    retriever: IChainRetriever | None = None,
) -> list[EvaluationResult]:
    """Synchronous entry point around :class:`EvaluationRunner`."""
    return asyncio.run(EvaluationRunner(config, retriever).run(now))
