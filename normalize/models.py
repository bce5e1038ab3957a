"""
Collector output models.
Immutable records describing what the activity collectors hand to the analyzers.
"""
from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any

# conversion factors into seconds
_UNIT_SECONDS = {
    'ms': 0.001,
    'seconds': 1.0,
    'minutes': 60.0,
    'hours': 3600.0,
}


@dataclass(frozen=True)
class Duration:
    """A length of time with an explicit unit ('ms', 'seconds', 'minutes' or 'hours')."""
    value: float = 0.0
    unit: str = 'minutes'

    def __post_init__(self):
        if self.unit not in _UNIT_SECONDS:
            raise ValueError(f"Unknown duration unit: {self.unit}")

    @classmethod
    def from_ms(cls, value: float) -> 'Duration':
        return cls(float(value or 0.0), 'ms')

    @classmethod
    def from_minutes(cls, value: float) -> 'Duration':
        return cls(float(value or 0.0), 'minutes')

    @classmethod
    def from_hours(cls, value: float) -> 'Duration':
        return cls(float(value or 0.0), 'hours')

    @property
    def seconds(self) -> float:
        return self.value * _UNIT_SECONDS[self.unit]

    @property
    def minutes(self) -> float:
        return self.seconds / 60.0

    @property
    def hours(self) -> float:
        return self.seconds / 3600.0

    def __add__(self, other: 'Duration') -> 'Duration':
        return Duration(self.seconds + other.seconds, 'seconds')


ZERO = Duration(0.0, 'minutes')


@dataclass(frozen=True)
class AIEventMetrics:
    """
    AI suggestion activity over a collection window.

    acceptance_rate: fraction of suggestions accepted, expected in [0, 1].
    total_suggestions: number of suggestions shown, expected >= 0.
    churn_rate: fraction of accepted code rewritten shortly after; None when unmeasured.
    total_fix_time: measured time spent fixing accepted suggestions; None when unmeasured.
    """
    acceptance_rate: float = 0.0
    total_suggestions: int = 0
    churn_rate: Optional[float] = None
    total_fix_time: Optional[Duration] = None
    average_modification_time: Duration = ZERO
    session_count: int = 0


@dataclass(frozen=True)
class TimeMetrics:
    """Time-on-task totals. flow_efficiency is flow time / active time."""
    total_active_time: Duration = ZERO
    flow_time: Duration = ZERO
    typing_time: Duration = ZERO
    reading_time: Duration = ZERO
    flow_efficiency: float = 0.0
    context_switches: int = 0
    total_sessions: int = 0
    average_session_length: Duration = ZERO


@dataclass(frozen=True)
class CodeMetrics:
    """Editing activity counts. Not used by the scoring formulas."""
    total_changes: int = 0
    total_saves: int = 0
    changes_per_save: float = 0.0
    most_edited_language: str = ''


@dataclass(frozen=True)
class GitMetrics:
    """Repository history summary. churn_rate is deleted / (added + deleted) lines."""
    churn_rate: float = 0.0
    recent_commits: int = 0
    uncommitted_changes: int = 0
    current_branch: str = ''
    commit_frequency: float = 0.0
    lines_added: int = 0
    lines_deleted: int = 0


@dataclass(frozen=True)
class SourceFile:
    """
    A sampled source file. Timestamps are epoch seconds; sampled_at is the
    time the sample was taken, so analyzers never need to read the clock.
    """
    path: str
    text: str
    created_at: float = 0.0
    modified_at: float = 0.0
    sampled_at: float = 0.0

    @property
    def language(self) -> str:
        return self.path.rsplit('.', 1)[-1].lower() if '.' in self.path else ''


PERF_BUILD = 'build'
PERF_TEST = 'test'


@dataclass(frozen=True)
class PerformanceEvent:
    """
    A finished build or test task. timestamp is epoch milliseconds; kind is 'build' or 'test'.
    Test runs may carry pass/fail counts; builds leave them at 0.
    """
    timestamp: float
    kind: str
    succeeded: bool
    duration: Duration = ZERO
    system: str = ''
    test_count: int = 0
    passed_count: int = 0
    failed_count: int = 0


@dataclass(frozen=True)
class CollectorInputs:
    """Everything a single analysis run consumes."""
    ai: Optional[AIEventMetrics] = None
    time: Optional[TimeMetrics] = None
    code: Optional[CodeMetrics] = None
    git: Optional[GitMetrics] = None
    sources: List[SourceFile] = field(default_factory=list)
    feedback: List[Dict[str, Any]] = field(default_factory=list)
    performance_events: List[PerformanceEvent] = field(default_factory=list)
    # epoch ms of accepted AI suggestions, used to correlate builds and tests with AI usage
    ai_acceptance_times: List[float] = field(default_factory=list)
