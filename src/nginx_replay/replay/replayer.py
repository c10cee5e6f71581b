"""
nginx-replay Traffic Replayer

Sequential replay loop: dispatch one event, record its outcome, wait out
the pacing delay, move to the next. One request is in flight at a time.
"""

import logging
import signal
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

import requests

from .dispatcher import RequestDispatcher
from .classifier import DiscrepancyClassifier
from .replay_config import ReplayOptions
from .scheduler import PacingScheduler
from ..common.log_utils import MAIN_LOGGER, RESULTS_LOGGER, SUMMARY_LOGGER
from ..common.url_utils import normalize_endpoint
from ..ingest import AccessLogParser, RecordFilter, ReplayEvent, build_events, normalize_start_timestamp
from ..models import ReplayOutcome
from ..stats import ReportGenerator, StatisticsAggregator

logger = logging.getLogger(MAIN_LOGGER)
results_logger = logging.getLogger(RESULTS_LOGGER)
summary_logger = logging.getLogger(SUMMARY_LOGGER)


@dataclass
class ReplayResult:
    """Results from a replay session."""

    total_events: int
    success: int
    failed: int
    skipped: int
    excluded: int
    header_discrepancies: int
    body_discrepancies: int
    total_duration_sec: float
    total_sleep_ms: float
    interrupted: bool = False
    report: List[str] = field(default_factory=list)

    @property
    def dispatched(self) -> int:
        return self.success + self.failed + self.skipped

    @property
    def success_rate(self) -> float:
        """Calculate success rate percentage."""
        if self.dispatched == 0:
            return 0.0
        return (self.success / self.dispatched) * 100

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'total_events': self.total_events,
            'dispatched': self.dispatched,
            'success': self.success,
            'failed': self.failed,
            'skipped': self.skipped,
            'excluded': self.excluded,
            'header_discrepancies': self.header_discrepancies,
            'body_discrepancies': self.body_discrepancies,
            'total_duration_sec': round(self.total_duration_sec, 3),
            'total_sleep_sec': round(self.total_sleep_ms / 1000, 3),
            'success_rate': round(self.success_rate, 2),
            'interrupted': self.interrupted,
        }


class TrafficReplayer:
    """
    Replay an nginx access log against a target server.

    Example:
        options = ReplayOptions(file_path='access.log', prefix='http://localhost:8080')
        replayer = TrafficReplayer(options)
        replayer.install_signal_handlers()
        result = replayer.run()
        print(f"Success rate: {result.success_rate}%")
    """

    def __init__(self, options: ReplayOptions, session: Optional[requests.Session] = None):
        """
        Initialize Traffic Replayer.

        Args:
            options: Run options
            session: Optional pre-built HTTP session (mainly for tests)
        """
        self.options = options
        self.aggregator = StatisticsAggregator()
        self.dispatcher = RequestDispatcher(
            prefix=options.prefix,
            username=options.username,
            password=options.password,
            timeout_ms=options.timeout,
            verify_ssl=not options.skip_ssl,
            classifier=DiscrepancyClassifier(),
            session=session
        )
        self.stop_event = threading.Event()
        self.events: Optional[List[ReplayEvent]] = None
        self.current_timestamp = 0
        self.excluded = 0
        self.interrupted = False

        self.started_at = datetime.now()
        self._run_start: Optional[float] = None
        self._run_finish: Optional[float] = None
        self._report: Optional[List[str]] = None

    def load_events(self) -> List[ReplayEvent]:
        """Parse and filter the access log into replay events."""
        parser = AccessLogParser(self.options.log_format, self.options.time_format)
        record_filter = RecordFilter(
            start_timestamp=normalize_start_timestamp(self.options.start_timestamp),
            only=self.options.filter_only,
            skip=self.options.filter_skip
        )
        self.events = build_events(
            parser.read(self.options.file_path),
            record_filter,
            prefix=self.options.prefix,
            query_params=self.options.query_params
        )
        return self.events

    def stop(self):
        """Interrupt pacing and finish after the in-flight request."""
        self.interrupted = True
        self.stop_event.set()

    def install_signal_handlers(self):
        """
        Route SIGINT/SIGTERM to stop(); must run on the main thread.

        A second signal raises KeyboardInterrupt, abandoning the in-flight
        request (e.g. one stuck retrying a 503).
        """
        def handler(signum, frame):
            if self.interrupted:
                raise KeyboardInterrupt
            self.stop()

        signal.signal(signal.SIGINT, handler)
        if hasattr(signal, 'SIGTERM'):
            signal.signal(signal.SIGTERM, handler)

    def _count_endpoint(self, event: ReplayEvent):
        if not self.options.stats:
            return
        endpoint = normalize_endpoint(
            self.options.prefix,
            event.url,
            only_path=self.options.stats_only_path,
            delete_query=self.options.delete_query_stats
        )
        self.aggregator.endpoints.hit(endpoint)

    def process_event(self, event: ReplayEvent) -> ReplayOutcome:
        """Dispatch one event and record its outcome."""
        self._count_endpoint(event)
        self.current_timestamp = event.timestamp

        outcome = self.dispatcher.dispatch(event)
        self.aggregator.record_outcome(outcome)
        results_logger.info(outcome.result_line(event))
        return outcome

    def run(self) -> ReplayResult:
        """
        Replay every loaded event in order.

        Returns:
            ReplayResult with counts and the rendered report
        """
        events = self.events if self.events is not None else self.load_events()
        scheduler = PacingScheduler(
            events,
            ratio=self.options.ratio,
            scale_mode=self.options.scale_mode,
            skip_sleep=self.options.skip_sleep,
            stop_event=self.stop_event
        )

        self._run_start = time.perf_counter()
        self._run_finish = self._run_start

        if not events:
            logger.info("No logs for the replaying")

        for index, event in enumerate(events):
            if scheduler.stopped:
                break

            if scheduler.is_excluded(event):
                logger.debug(f"Excluding {event.method} {event.url} (original status {event.status})")
                self.excluded += 1
                continue

            self.process_event(event)
            self._run_finish = time.perf_counter()

            if scheduler.stopped:
                break

            delay = scheduler.delay_after(index)
            if delay:
                self.aggregator.record_sleep(delay)
                if scheduler.wait(delay):
                    break

        if self.interrupted and self.current_timestamp > 0:
            logger.info(f"Interrupted at timestamp {self.current_timestamp}")

        return self.result()

    def abort(self) -> ReplayResult:
        """Finish from partial state after the run loop was torn down."""
        self.stop()
        logger.info(f"Interrupted at timestamp {self.current_timestamp}")
        return self.result()

    def result(self) -> ReplayResult:
        """Build the result, generating the report once."""
        agg = self.aggregator
        return ReplayResult(
            total_events=len(self.events or []),
            success=agg.success,
            failed=agg.failed,
            skipped=agg.skipped,
            excluded=self.excluded,
            header_discrepancies=agg.header_discrepancies,
            body_discrepancies=agg.body_discrepancies,
            total_duration_sec=self.elapsed_seconds,
            total_sleep_ms=agg.total_sleep_ms,
            interrupted=self.interrupted,
            report=self.generate_report()
        )

    @property
    def elapsed_seconds(self) -> float:
        if self._run_start is None or self._run_finish is None:
            return 0.0
        return self._run_finish - self._run_start

    def generate_report(self) -> List[str]:
        """Log the final report (and the condensed one when enabled)."""
        if self._report is not None:
            return self._report

        report = ReportGenerator(
            self.aggregator,
            self.events or [],
            prefix=self.options.prefix,
            ratio=self.options.ratio,
            custom_query_params=self.options.custom_query_params,
            show_endpoints=self.options.stats,
            hide_stats_limit=self.options.hide_stats_limit,
            dates_format=self.options.dates_format
        )
        finished_at = datetime.now()

        self._report = report.render(self.started_at, finished_at, self.elapsed_seconds)
        for line in self._report:
            logger.info(line)

        if self.options.summary:
            for line in report.render_summary(self.started_at, finished_at, self.elapsed_seconds):
                summary_logger.info(line)

        return self._report
