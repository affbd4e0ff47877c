"""
Parallel Executor
Fan-out/fan-in primitive: launches jobs as explicit asyncio tasks and
waits on all of them (barrier) before returning.
"""
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, List, Optional, Sequence, Tuple, TypeVar
import asyncio
import logging

from ..core.logging_framework import Stopwatch

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class BranchOutcome(Generic[T]):
    """Terminal outcome of one job; exactly one of result/error is meaningful"""
    key: str
    result: Optional[T] = None
    error: Optional[BaseException] = None
    elapsed: float = 0.0

    @property
    def success(self) -> bool:
        return self.error is None


class ParallelExecutor:
    """
    Runs independent jobs concurrently with barrier synchronization.

    No partial aggregation: ``run_all`` returns only after every job has
    finished, failed or timed out. When the caller is cancelled (e.g. a
    workflow deadline), every in-flight job is cancelled before the
    cancellation propagates.
    """

    def __init__(self, job_timeout: Optional[float] = None):
        """
        Initialize parallel executor.

        Args:
            job_timeout: Optional per-job timeout in seconds
        """
        self.job_timeout = job_timeout

    async def _run_job(self, key: str, factory: Callable[[], Awaitable[T]]) -> BranchOutcome[T]:
        timer = Stopwatch()
        try:
            if self.job_timeout:
                result = await asyncio.wait_for(factory(), timeout=self.job_timeout)
            else:
                result = await factory()
            return BranchOutcome(key=key, result=result, elapsed=timer.elapsed)
        except asyncio.TimeoutError as e:
            logger.warning(f"[ParallelExecutor] Job {key} timed out after {self.job_timeout}s")
            return BranchOutcome(key=key, error=e, elapsed=timer.elapsed)
        except Exception as e:
            logger.error(f"[ParallelExecutor] Job {key} failed: {e}")
            return BranchOutcome(key=key, error=e, elapsed=timer.elapsed)

    async def run_all(
        self,
        jobs: Sequence[Tuple[str, Callable[[], Awaitable[T]]]]
    ) -> List[BranchOutcome[T]]:
        """
        Execute jobs concurrently and wait for all of them.

        Args:
            jobs: (key, zero-argument coroutine factory) pairs

        Returns:
            One BranchOutcome per job, in submission order
        """
        if not jobs:
            return []

        logger.info(f"[ParallelExecutor] Launching {len(jobs)} job(s)")
        tasks: List[asyncio.Task] = [
            asyncio.create_task(self._run_job(key, factory), name=f"branch:{key}")
            for key, factory in jobs
        ]

        try:
            outcomes: List[Any] = await asyncio.gather(*tasks, return_exceptions=True)
        except asyncio.CancelledError:
            for task in tasks:
                if not task.done():
                    task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            logger.warning(f"[ParallelExecutor] Cancelled {len(tasks)} in-flight job(s)")
            raise

        results: List[BranchOutcome[T]] = []
        for (key, _), outcome in zip(jobs, outcomes):
            if isinstance(outcome, BranchOutcome):
                results.append(outcome)
            else:
                # A job cancelled on its own surfaces as an exception value
                results.append(BranchOutcome(key=key, error=outcome))

        failed = sum(1 for outcome in results if not outcome.success)
        logger.info(f"[ParallelExecutor] Barrier reached: {len(results) - failed} succeeded, {failed} failed")
        return results
