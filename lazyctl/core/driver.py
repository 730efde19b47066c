"""Concurrent driver for install units.

The driver submits every unit to a thread pool in configuration order and
collects results as they complete. A unit whose attempt fails with a
retryable outcome is resubmitted to the pool as a new attempt instead of
being retried in place, so a slow or failing clone never holds up the
others. Retries are bounded by a RetryPolicy.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field

from lazyctl.core.git import GitClient
from lazyctl.core.unit import InstallUnit, Outcome, UnitResult

logger = logging.getLogger(__name__)

MAX_WORKERS = 32

ResultCallback = Callable[[UnitResult], None]


@dataclass(frozen=True)
class RetryPolicy:
    """How often and how quickly failed units are retried.

    max_attempts=None retries forever.
    """

    max_attempts: int | None = 5
    backoff: float = 1.0
    max_delay: float = 30.0

    def __post_init__(self) -> None:
        if self.max_attempts is not None and self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1 (or None for unlimited)")
        if self.backoff < 0 or self.max_delay < 0:
            raise ValueError("backoff and max_delay must not be negative")

    def should_retry(self, attempts: int) -> bool:
        """Whether a unit that has failed `attempts` times gets another attempt."""
        return self.max_attempts is None or attempts < self.max_attempts

    def delay_for(self, attempt: int) -> float:
        """Seconds to wait before starting attempt number `attempt`."""
        if attempt <= 1:
            return 0.0
        return min(self.max_delay, self.backoff * 2 ** (attempt - 2))


@dataclass
class RunSummary:
    """Results of a driver run, one slot per unit in start order."""

    results: list[UnitResult | None] = field(default_factory=list)
    completed: list[UnitResult] = field(default_factory=list)

    @classmethod
    def for_units(cls, count: int) -> RunSummary:
        return cls(results=[None] * count)

    def record(self, index: int, result: UnitResult) -> None:
        """Store the terminal result for the unit at `index`."""
        if self.results[index] is not None:
            raise RuntimeError(f"Result for unit {index} already recorded")
        self.results[index] = result
        self.completed.append(result)

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def success_count(self) -> int:
        return sum(1 for r in self.completed if r.outcome is Outcome.SUCCEEDED)

    @property
    def skipped_count(self) -> int:
        return sum(1 for r in self.completed if r.outcome is Outcome.SKIPPED)

    @property
    def failure_count(self) -> int:
        return sum(1 for r in self.completed if r.outcome is Outcome.FAILED)

    @property
    def pending_count(self) -> int:
        return sum(1 for r in self.results if r is None)

    @property
    def all_successful(self) -> bool:
        return self.pending_count == 0 and all(r.success for r in self.completed)


class Driver:
    """Runs install units concurrently until each reaches a terminal outcome.

    Cancellation is permanent: once cancel() is called, every later run()
    records its units as FAILED("cancelled"). Create a new Driver for each
    run that should clone.
    """

    def __init__(
        self,
        git: GitClient | None = None,
        jobs: int | None = None,
        retry: RetryPolicy | None = None,
    ):
        """Initialize the driver.

        Args:
            git: Client used for clones (defaults to the system git)
            jobs: Worker thread count, or None for one per unit (capped)
            retry: Retry policy for failed clones
        """
        if jobs is not None and jobs < 1:
            raise ValueError("jobs must be at least 1")
        self.git = git or GitClient()
        self.jobs = jobs
        self.retry = retry or RetryPolicy()
        self._cancelled = threading.Event()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def cancel(self) -> None:
        """Stop starting new attempts; unfinished units end as FAILED.

        The driver stays cancelled for all later runs.
        """
        self._cancelled.set()

    def _cancelled_result(self, unit: InstallUnit, attempts: int) -> UnitResult:
        return UnitResult(
            unit=unit,
            outcome=Outcome.FAILED,
            name=unit.name,
            message="cancelled",
            attempts=attempts,
        )

    def _attempt(self, unit: InstallUnit, attempt: int) -> UnitResult:
        delay = self.retry.delay_for(attempt)
        if delay:
            logger.debug("Waiting %.1fs before attempt %d of %s", delay, attempt, unit.source_url)
            # Event.wait returns True as soon as the run is cancelled
            if self._cancelled.wait(delay):
                return self._cancelled_result(unit, attempt - 1)
        if self._cancelled.is_set():
            return self._cancelled_result(unit, attempt - 1)
        return unit.execute(self.git, attempt)

    def run(self, units: Iterable[InstallUnit], on_result: ResultCallback | None = None) -> RunSummary:
        """Run all units to a terminal outcome.

        Args:
            units: Units to run, started in the given order
            on_result: Called on the driver thread with every attempt's result

        Returns:
            RunSummary with one terminal result per unit
        """
        units = list(units)
        summary = RunSummary.for_units(len(units))
        if not units:
            return summary

        workers = self.jobs or min(MAX_WORKERS, len(units))
        logger.debug("Running %d unit(s) on %d worker(s)", len(units), workers)

        pool = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="lazyctl")
        try:
            self._drive(pool, units, summary, on_result)
        except BaseException:
            self.cancel()
            pool.shutdown(wait=True, cancel_futures=True)
            raise
        pool.shutdown(wait=True)
        return summary

    def _drive(
        self,
        pool: ThreadPoolExecutor,
        units: list[InstallUnit],
        summary: RunSummary,
        on_result: ResultCallback | None,
    ) -> None:
        in_flight: dict[Future[UnitResult], tuple[int, int]] = {}
        for index, unit in enumerate(units):
            in_flight[pool.submit(self._attempt, unit, 1)] = (index, 1)

        while in_flight:
            done, _ = wait(in_flight, return_when=FIRST_COMPLETED)
            for future in done:
                index, attempt = in_flight.pop(future)
                result = future.result()
                if on_result is not None:
                    on_result(result)

                if result.outcome is Outcome.FAILED_RETRYABLE:
                    if self.cancelled:
                        result = self._cancelled_result(units[index], attempt)
                    elif self.retry.should_retry(attempt):
                        retry = pool.submit(self._attempt, units[index], attempt + 1)
                        in_flight[retry] = (index, attempt + 1)
                        continue
                    else:
                        result = UnitResult(
                            unit=units[index],
                            outcome=Outcome.FAILED,
                            name=result.name,
                            message=f"gave up after {attempt} attempt(s): {result.message}",
                            attempts=attempt,
                        )
                    if on_result is not None:
                        on_result(result)

                summary.record(index, result)
                logger.info(
                    "[%d/%d] %s: %s",
                    len(summary.completed),
                    summary.total,
                    result.name or result.unit.source_url,
                    result.outcome.value,
                )
