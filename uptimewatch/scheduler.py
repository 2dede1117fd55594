"""Fixed-interval probing loop with concurrent fan-out per tick."""

import logging
import queue
import time
from collections.abc import Callable, Iterable, Mapping, Sequence
from concurrent.futures import Future, ThreadPoolExecutor
from enum import Enum
from threading import Event, Thread
from typing import Protocol

from .aggregator import DomainAggregator
from .config import Endpoint
from .models import DomainStat, ProbeResult, ProbeStatus
from .reporter import print_report

logger = logging.getLogger(__name__)

# How often the fan-in wait looks at the cancellation event, in seconds.
CANCEL_POLL_SECONDS = 0.05

Reporter = Callable[[Sequence[str], Mapping[str, DomainStat]], None]


class Prober(Protocol):
    def probe(self, endpoint: Endpoint, deadline: float | None = None, cancel: Event | None = None) -> ProbeResult:
        ...


class SchedulerState(Enum):
    RUNNING = "running"
    STOPPED = "stopped"


class Scheduler:
    """Probes every endpoint once per tick and reports per-domain availability.

    Each tick fans out one probe per endpoint on a thread pool, bounded by
    a deadline at the next tick boundary, then folds the results into the
    aggregator and calls the reporter. Ticks follow a fixed-period clock,
    so their spacing does not depend on how long probing took.

    Collection stops at the deadline; endpoints without a result by then
    count as DOWN. Only the thread running the loop writes to the
    aggregator, and only once the tick's collection has ended. The
    reporter receives an immutable snapshot.

    Example:
        scheduler = Scheduler(config.endpoints, client, interval=15.0)
        scheduler.start()
        # ... later ...
        scheduler.stop()
    """

    def __init__(
        self,
        endpoints: Iterable[Endpoint],
        client: Prober,
        interval: float,
        reporter: Reporter = print_report,
    ) -> None:
        """Initialize the scheduler and build the domain registry.

        Args:
            endpoints: Endpoints to probe, fixed for the whole run.
            client: Prober shared by all probes.
            interval: Seconds between tick boundaries.
            reporter: Called with (domains, snapshot) after each completed tick.

        Raises:
            RegistryError: If an endpoint URL cannot be mapped to a domain.
        """
        if interval <= 0:
            raise ValueError(f"Interval must be positive (got {interval})")

        self._endpoints = tuple(endpoints)
        self._aggregator = DomainAggregator(self._endpoints)
        self._client = client
        self._interval = interval
        self._reporter = reporter
        self._state = SchedulerState.STOPPED
        self._tick_count = 0
        self._stop_event = Event()
        self._thread: Thread | None = None

    @property
    def domains(self) -> tuple[str, ...]:
        """Registered domains in report order."""
        return self._aggregator.domains

    @property
    def state(self) -> SchedulerState:
        """RUNNING while run() executes, STOPPED otherwise."""
        return self._state

    @property
    def tick_count(self) -> int:
        """Number of ticks whose results were aggregated."""
        return self._tick_count

    def snapshot(self) -> Mapping[str, DomainStat]:
        """Return a read-only view of the per-domain counters."""
        return self._aggregator.snapshot()

    def start(self) -> None:
        """Run the loop in a background thread until stop() is called."""
        if self._thread is not None and self._thread.is_alive():
            logger.warning("Scheduler already running")
            return

        self._stop_event.clear()
        self._thread = Thread(target=self.run, args=(self._stop_event,), daemon=True, name="scheduler")
        self._thread.start()

    def stop(self, timeout: float = 10.0) -> None:
        """Cancel the background loop and wait for it to return.

        Args:
            timeout: Maximum seconds to wait for the loop to stop.
        """
        if self._thread is None or not self._thread.is_alive():
            return

        logger.info("Stopping scheduler...")
        self._stop_event.set()
        self._thread.join(timeout=timeout)

        if self._thread.is_alive():
            logger.warning("Scheduler thread did not stop within timeout")

    def is_running(self) -> bool:
        """Check if the background loop is currently running."""
        return self._thread is not None and self._thread.is_alive()

    def run(self, cancel: Event) -> None:
        """Run ticks until ``cancel`` is set. Blocks the calling thread."""
        self._state = SchedulerState.RUNNING
        logger.info(
            "Probing %d endpoints across %d domains every %ss",
            len(self._endpoints),
            len(self.domains),
            self._interval,
        )

        try:
            boundary = time.monotonic()
            while True:
                started = time.monotonic()
                results, completed = self._fan_out(boundary + self._interval, cancel)
                self._fold(results)
                if not completed:
                    # Partial tick: counted as far as it got, never reported.
                    break

                self._tick_count += 1
                logger.debug("Tick %d finished in %.3fs", self._tick_count, time.monotonic() - started)
                self._report()

                boundary = self._next_boundary(boundary)
                if cancel.wait(max(0.0, boundary - time.monotonic())):
                    break
        finally:
            self._state = SchedulerState.STOPPED
            logger.info("Scheduler stopped after %d ticks", self._tick_count)

    def probe_once(self, cancel: Event | None = None) -> list[ProbeResult] | None:
        """Probe every endpoint once without aggregating.

        Returns:
            Results in endpoint order, or None if cancelled before all arrived.
        """
        results, completed = self._fan_out(time.monotonic() + self._interval, cancel or Event())
        if not completed:
            return None
        order = {id(endpoint): i for i, endpoint in enumerate(self._endpoints)}
        return sorted(results, key=lambda result: order[id(result.endpoint)])

    def _next_boundary(self, boundary: float) -> float:
        """Return the next tick boundary, skipping boundaries already missed."""
        boundary += self._interval
        now = time.monotonic()
        if now > boundary:
            missed = int((now - boundary) // self._interval)
            if missed:
                logger.warning("Probing overran the interval, skipping %d tick(s)", missed)
            boundary += missed * self._interval
        return boundary

    def _fan_out(self, deadline: float, cancel: Event) -> tuple[list[ProbeResult], bool]:
        """Probe all endpoints concurrently and collect their results.

        Collection ends at ``deadline``: endpoints still pending then count as
        DOWN, as a timeout would. It ends early as soon as ``cancel`` is set.
        Pending probes are abandoned in both cases rather than joined.

        Returns:
            (results, completed). ``completed`` is False when cancelled, in
            which case ``results`` holds only what arrived before that.
        """
        done: queue.Queue[Future] = queue.Queue()
        executor = ThreadPoolExecutor(max_workers=max(1, len(self._endpoints)), thread_name_prefix="probe")
        try:
            pending: dict[Future, Endpoint] = {}
            for endpoint in self._endpoints:
                future = executor.submit(self._client.probe, endpoint, deadline, cancel)
                pending[future] = endpoint
                future.add_done_callback(done.put)

            results: list[ProbeResult] = []
            while pending:
                if cancel.is_set():
                    logger.info("Cancelled with %d of %d results collected", len(results), len(self._endpoints))
                    return results, False

                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    for endpoint in pending.values():
                        logger.debug("%s: no result by the tick deadline", endpoint.url)
                        results.append(ProbeResult(endpoint, ProbeStatus.DOWN))
                    break

                try:
                    future = done.get(timeout=min(CANCEL_POLL_SECONDS, remaining))
                except queue.Empty:
                    continue

                result = self._result_of(future, pending.pop(future))
                if result.error is not None:
                    logger.warning("%s: %s", result.url, result.error)
                results.append(result)
            return results, True
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

    @staticmethod
    def _result_of(future: Future, endpoint: Endpoint) -> ProbeResult:
        """Unwrap a probe future, turning an unexpected exception into UNDEFINED."""
        try:
            return future.result()
        except Exception as e:
            return ProbeResult(endpoint, ProbeStatus.UNDEFINED, e)

    def _fold(self, results: list[ProbeResult]) -> None:
        for result in results:
            domain = self._aggregator.domain_for(result.url)
            self._aggregator.update(domain, result.is_up)
            logger.debug("%s (%s): %s", result.endpoint.name, domain, result.status.name)

    def _report(self) -> None:
        try:
            self._reporter(self.domains, self.snapshot())
        except Exception as e:
            logger.error("Reporter failed: %s", e)
