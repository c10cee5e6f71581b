"""
Pacing Scheduler

Works out how long to wait after each replayed event so the replay
follows the cadence of the original log, scaled by the speed ratio.

Normal mode waits the gap to the next event's timestamp. Scale mode
spreads the events that share one logged second evenly across that
second and adds any remaining gap to the following sleep.
"""

import logging
import math
import threading
from collections import Counter
from typing import Optional, Sequence

from ..ingest.records import ReplayEvent

logger = logging.getLogger(__name__)

EXCLUDED_STATUSES = ('500', '499')
EXCLUDED_URL_MARKER = 'artifacts'


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


class PacingScheduler:
    """
    Compute and wait out pacing delays between replay events.

    Delays are in milliseconds. Waiting uses a threading.Event, so
    calling stop() from a signal handler ends the current wait at once.
    """

    def __init__(
        self,
        events: Sequence[ReplayEvent],
        ratio: float = 1.0,
        scale_mode: bool = False,
        skip_sleep: bool = False,
        stop_event: Optional[threading.Event] = None
    ):
        """
        Initialize scheduler.

        Args:
            events: Ordered replay events
            ratio: Speed ratio; 2 replays twice as fast, 0.5 half as fast
            scale_mode: Spread same-second bursts across the second
            skip_sleep: Never wait between events
            stop_event: Event that interrupts waiting when set
        """
        self.events = events
        self.ratio = ratio
        self.scale_mode = scale_mode
        self.skip_sleep = skip_sleep
        self.stop_event = stop_event or threading.Event()
        self.repeats = Counter(event.timestamp for event in events)

    @staticmethod
    def is_excluded(event: ReplayEvent) -> bool:
        """Events that are neither sent, counted nor paced."""
        return event.status in EXCLUDED_STATUSES or EXCLUDED_URL_MARKER in event.url

    def delay_after(self, index: int) -> float:
        """
        Delay to wait after the event at index.

        No delay follows events in the final logged second.
        """
        if self.skip_sleep or not self.events:
            return 0.0

        current = self.events[index].timestamp
        if current == self.events[-1].timestamp:
            return 0.0

        following = self.events[index + 1].timestamp

        if self.scale_mode:
            base = _round_half_up(1000 / self.repeats[current])
            addend = 0 if following == current else following - current - 1000
            return (base + addend) / self.ratio

        if following == current:
            return 0.0
        return (following - current) / self.ratio

    def wait(self, delay_ms: float) -> bool:
        """
        Sleep for delay_ms unless stopped first.

        Returns:
            True if the wait was interrupted
        """
        if delay_ms <= 0:
            return self.stop_event.is_set()
        logger.debug(f"Sleeping {delay_ms} ms")
        return self.stop_event.wait(delay_ms / 1000)

    def stop(self):
        self.stop_event.set()

    @property
    def stopped(self) -> bool:
        return self.stop_event.is_set()
