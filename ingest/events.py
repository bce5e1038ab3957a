"""
Collector event summarizers.
Turn raw event logs (as written by the editor collectors into the store) into collector output records.
"""
from typing import List, Dict, Any, Optional
from collections import Counter
import math
import time
from normalize.models import AIEventMetrics, TimeMetrics, CodeMetrics, Duration

EVENT_SUGGESTION = 'suggestion'
EVENT_ACCEPTANCE = 'acceptance'


def _recent(events: List[Dict[str, Any]], window_minutes: Optional[float], now_ms: float) -> List[Dict[str, Any]]:
    if window_minutes is None:
        return list(events)
    cutoff = now_ms - window_minutes * 60 * 1000
    return [e for e in events if float(e.get('timestamp') or 0) > cutoff]


def summarize_ai_events(
    events: List[Dict[str, Any]],
    churn_events: Optional[List[Dict[str, Any]]] = None,
    window_minutes: Optional[float] = 60,
    now: Optional[float] = None,
) -> AIEventMetrics:
    """
    Summarize AI suggestion events over the last window_minutes.

    events: dicts with 'timestamp' (epoch ms), 'type', 'acceptedLength', 'modificationTime' (ms),
            'sessionId' and optionally 'fixTime' (ms).
    churn_events: dicts with a 'rate'; their mean becomes the churn rate (None when there are none).
    now: epoch seconds used as the end of the window (defaults to the current time).
    """
    now_ms = (now if now is not None else time.time()) * 1000
    events = [e for e in (events or []) if isinstance(e, dict)]
    recent = _recent(events, window_minutes, now_ms)

    total = sum(1 for e in recent if e.get('type') == EVENT_SUGGESTION)
    accepted = sum(1 for e in recent if (e.get('acceptedLength') or 0) > 0)
    modifications = [float(e.get('modificationTime') or 0) for e in recent if (e.get('modificationTime') or 0) > 0]
    fix_times = [float(e.get('fixTime') or 0) for e in recent if e.get('fixTime') is not None]
    sessions = {e.get('sessionId') for e in recent if e.get('sessionId')}

    churn_rates = [float(c.get('rate') or 0) for c in (churn_events or []) if isinstance(c, dict)]

    return AIEventMetrics(
        acceptance_rate=accepted / total if total > 0 else 0.0,
        total_suggestions=total,
        churn_rate=sum(churn_rates) / len(churn_rates) if churn_rates else None,
        total_fix_time=Duration.from_ms(sum(fix_times)) if fix_times else None,
        average_modification_time=Duration.from_ms(sum(modifications) / len(modifications) if modifications else 0.0),
        session_count=len(sessions),
    )


def summarize_time_sessions(sessions: List[Dict[str, Any]]) -> TimeMetrics:
    """Summarize stored time-tracking sessions (durations in milliseconds)."""
    sessions = [s for s in (sessions or []) if isinstance(s, dict)]

    def _total(field_name: str) -> float:
        return sum(float(s.get(field_name) or 0) for s in sessions)

    total_ms = _total('duration')
    flow_ms = _total('flowDuration')
    count = len(sessions)
    return TimeMetrics(
        total_active_time=Duration.from_ms(total_ms),
        flow_time=Duration.from_ms(flow_ms),
        typing_time=Duration.from_ms(_total('typingDuration')),
        reading_time=Duration.from_ms(_total('readingDuration')),
        flow_efficiency=flow_ms / total_ms if total_ms > 0 else 0.0,
        context_switches=int(_total('contextSwitches')),
        total_sessions=count,
        average_session_length=Duration.from_ms(total_ms / count if count else 0.0),
    )


def summarize_code_changes(changes: List[Dict[str, Any]], saves: List[Dict[str, Any]]) -> CodeMetrics:
    """Summarize edit and save events; the most edited language wins ties by first appearance."""
    changes = [c for c in (changes or []) if isinstance(c, dict)]
    saves = [s for s in (saves or []) if isinstance(s, dict)]
    languages = Counter(c.get('languageId') for c in changes if c.get('languageId'))
    most_edited = languages.most_common(1)[0][0] if languages else ''
    return CodeMetrics(
        total_changes=len(changes),
        total_saves=len(saves),
        changes_per_save=len(changes) / len(saves) if saves else 0.0,
        most_edited_language=most_edited,
    )


def acceptance_times(events: List[Dict[str, Any]]) -> List[float]:
    """Epoch-ms timestamps of 'acceptance' events, oldest first."""
    times = []
    for e in events or []:
        if not isinstance(e, dict) or e.get('type') != EVENT_ACCEPTANCE:
            continue
        try:
            ts = float(e.get('timestamp'))
        except (TypeError, ValueError):
            continue
        if math.isfinite(ts):
            times.append(ts)
    return sorted(times)
