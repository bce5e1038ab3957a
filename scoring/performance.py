"""
Build and test performance analysis.
Summarizes finished build/test tasks and relates their outcomes to AI suggestions accepted shortly before.
"""
from typing import List, Iterable, Optional
import bisect
import logging
from normalize.models import PerformanceEvent, PERF_BUILD, PERF_TEST
from .models import PerformanceMetrics, PerformanceStats

logger = logging.getLogger(__name__)

DAY_MS = 24 * 60 * 60 * 1000
AI_LOOKBACK_MS = 15 * 60 * 1000


def accepted_before(acceptance_times: List[float], timestamp: float, lookback_ms: float = AI_LOOKBACK_MS) -> bool:
    """True when some acceptance falls strictly inside (timestamp - lookback_ms, timestamp).
    acceptance_times must be sorted ascending.
    """
    i = bisect.bisect_right(acceptance_times, timestamp - lookback_ms)
    return i < len(acceptance_times) and acceptance_times[i] < timestamp


def ai_correlation(outcomes: Iterable[PerformanceEvent], acceptance_times: List[float]) -> float:
    """Mean of +1 (success) / -1 (failure) over outcomes preceded by an accepted suggestion; 0 when there are none."""
    total = 0
    counted = 0
    for outcome in outcomes:
        if not accepted_before(acceptance_times, outcome.timestamp):
            continue
        counted += 1
        total += 1 if outcome.succeeded else -1
    return total / counted if counted else 0.0


def calculate_stats(events: List[PerformanceEvent], acceptance_times: List[float]) -> PerformanceStats:
    if not events:
        return PerformanceStats()
    stamps = [e.timestamp for e in events]
    # a span shorter than a day still counts as one day
    days = max(1.0, (max(stamps) - min(stamps)) / DAY_MS)
    per_day = len(events) / days
    kind = events[0].kind
    return PerformanceStats(
        success_rate=sum(1 for e in events if e.succeeded) / len(events),
        average_duration=sum(e.duration.seconds for e in events) / len(events),
        builds_per_day=per_day if kind == PERF_BUILD else 0.0,
        tests_per_day=per_day if kind == PERF_TEST else 0.0,
        ai_correlation=ai_correlation(events, acceptance_times),
    )


class PerformanceAnalyzer:
    """Splits performance events into builds and tests and computes stats for each."""

    def analyze(self, events: Optional[Iterable[PerformanceEvent]], acceptance_times: Optional[Iterable[float]] = None) -> PerformanceMetrics:
        events = list(events or [])
        times = sorted(acceptance_times or [])
        builds = [e for e in events if e.kind == PERF_BUILD]
        tests = [e for e in events if e.kind == PERF_TEST]
        metrics = PerformanceMetrics(
            build_stats=calculate_stats(builds, times),
            test_stats=calculate_stats(tests, times),
        )
        logger.debug(f"Performance analysis over {len(builds)} builds and {len(tests)} tests")
        return metrics
