"""
Normalization utility helpers.
Small helpers to turn raw collector payloads (camelCase or snake_case dicts) into normalize.models records.
"""
import math
from typing import Dict, Any, Optional, List, Iterable
from normalize.models import AIEventMetrics, TimeMetrics, CodeMetrics, GitMetrics, Duration, PerformanceEvent, PERF_BUILD, PERF_TEST


def _pick(raw: Dict[str, Any], *keys: str, default: Any = None) -> Any:
    """Return the first key present (and not None) in raw."""
    for k in keys:
        if raw.get(k) is not None:
            return raw.get(k)
    return default


def _as_float(value: Any, default: float = 0.0) -> float:
    try:
        return float(value)
    except (TypeError, ValueError, OverflowError):
        return default


def _as_int(value: Any, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        return default


def normalize_ai_metrics(raw: Optional[Dict[str, Any]]) -> Optional[AIEventMetrics]:
    """Create AIEventMetrics from a raw collector dict.
    totalFixTime is in milliseconds, averageModificationTime in milliseconds.
    """
    if not isinstance(raw, dict):
        return None
    churn = _pick(raw, 'churnRate', 'churn_rate')
    fix_ms = _pick(raw, 'totalFixTime', 'total_fix_time')
    return AIEventMetrics(
        acceptance_rate=_as_float(_pick(raw, 'acceptanceRate', 'acceptance_rate', default=0.0)),
        total_suggestions=_as_int(_pick(raw, 'totalSuggestions', 'total_suggestions', default=0)),
        churn_rate=_as_float(churn) if churn is not None else None,
        total_fix_time=Duration.from_ms(_as_float(fix_ms)) if fix_ms is not None else None,
        average_modification_time=Duration.from_ms(_as_float(_pick(raw, 'averageModificationTime', 'average_modification_time', default=0.0))),
        session_count=_as_int(_pick(raw, 'sessionCount', 'session_count', default=0)),
    )


def normalize_time_metrics(raw: Optional[Dict[str, Any]]) -> Optional[TimeMetrics]:
    """Create TimeMetrics from a raw time-tracker dict (all durations in minutes)."""
    if not isinstance(raw, dict):
        return None
    return TimeMetrics(
        total_active_time=Duration.from_minutes(_as_float(_pick(raw, 'totalActiveTime', 'total_active_time', default=0.0))),
        flow_time=Duration.from_minutes(_as_float(_pick(raw, 'flowTime', 'flow_time', default=0.0))),
        typing_time=Duration.from_minutes(_as_float(_pick(raw, 'typingTime', 'typing_time', default=0.0))),
        reading_time=Duration.from_minutes(_as_float(_pick(raw, 'readingTime', 'reading_time', default=0.0))),
        flow_efficiency=_as_float(_pick(raw, 'flowEfficiency', 'flow_efficiency', default=0.0)),
        context_switches=_as_int(_pick(raw, 'contextSwitches', 'context_switches', default=0)),
        total_sessions=_as_int(_pick(raw, 'totalSessions', 'total_sessions', default=0)),
        average_session_length=Duration.from_minutes(_as_float(_pick(raw, 'averageSessionLength', 'average_session_length', default=0.0))),
    )


def normalize_code_metrics(raw: Optional[Dict[str, Any]]) -> Optional[CodeMetrics]:
    if not isinstance(raw, dict):
        return None
    return CodeMetrics(
        total_changes=_as_int(_pick(raw, 'totalChanges', 'total_changes', default=0)),
        total_saves=_as_int(_pick(raw, 'totalSaves', 'total_saves', default=0)),
        changes_per_save=_as_float(_pick(raw, 'changesPerSave', 'changes_per_save', default=0.0)),
        most_edited_language=str(_pick(raw, 'mostEditedLanguage', 'most_edited_language', default='')),
    )


def normalize_git_metrics(raw: Optional[Dict[str, Any]]) -> Optional[GitMetrics]:
    if not isinstance(raw, dict):
        return None
    return GitMetrics(
        churn_rate=_as_float(_pick(raw, 'churnRate', 'churn_rate', default=0.0)),
        recent_commits=_as_int(_pick(raw, 'recentCommits', 'recent_commits', default=0)),
        uncommitted_changes=_as_int(_pick(raw, 'uncommittedChanges', 'uncommitted_changes', default=0)),
        current_branch=str(_pick(raw, 'currentBranch', 'current_branch', default='')),
        commit_frequency=_as_float(_pick(raw, 'commitFrequency', 'commit_frequency', default=0.0)),
        lines_added=_as_int(_pick(raw, 'linesAdded', 'lines_added', default=0)),
        lines_deleted=_as_int(_pick(raw, 'linesDeleted', 'lines_deleted', default=0)),
    )


def normalize_performance_event(raw: Any, kind: Optional[str] = None) -> Optional[PerformanceEvent]:
    """Create a PerformanceEvent from a raw build/test task dict (duration in milliseconds).
    kind overrides the event's own 'type'; events that are neither builds nor tests, or that carry
    no usable timestamp, yield None.
    """
    if not isinstance(raw, dict):
        return None
    kind = kind or raw.get('type')
    if kind not in (PERF_BUILD, PERF_TEST):
        return None
    ts = _as_float(raw.get('timestamp'), math.nan)
    if not math.isfinite(ts):
        return None
    duration_ms = _as_float(raw.get('duration'), 0.0)
    return PerformanceEvent(
        timestamp=ts,
        kind=kind,
        succeeded=raw.get('status') == 'success',
        duration=Duration.from_ms(duration_ms if math.isfinite(duration_ms) and duration_ms > 0 else 0.0),
        system=str(raw.get('system') or ''),
        test_count=_as_int(_pick(raw, 'testCount', 'test_count', default=0)),
        passed_count=_as_int(_pick(raw, 'passedCount', 'passed_count', default=0)),
        failed_count=_as_int(_pick(raw, 'failedCount', 'failed_count', default=0)),
    )


def normalize_performance_events(raw: Iterable[Any], kind: Optional[str] = None) -> List[PerformanceEvent]:
    """Normalize a list of raw build/test events, dropping entries that cannot be read."""
    events = (normalize_performance_event(e, kind) for e in (raw or []))
    return [e for e in events if e is not None]
