"""
Metric snapshot models produced by the analyzers.
Every record is an immutable value built fresh per analysis call.
Serialized form uses camelCase keys (codeChurn, overallROI, ...) so stored history stays readable by the dashboard.
"""
import dataclasses
import math
from dataclasses import dataclass, field
from typing import Optional, Dict, Any

TREND_INCREASING = 'increasing'
TREND_STABLE = 'stable'
TREND_DECREASING = 'decreasing'

# names that do not follow the plain snake_case -> camelCase rule
_WIRE_OVERRIDES = {
    'overall_roi': 'overallROI',
    'before_ai': 'beforeAI',
    'after_ai': 'afterAI',
}


def _wire_name(name: str) -> str:
    if name in _WIRE_OVERRIDES:
        return _WIRE_OVERRIDES[name]
    head, *rest = name.split('_')
    return head + ''.join(p.capitalize() for p in rest)


def to_wire(obj: Any) -> Any:
    """Convert a metrics dataclass (recursively) into a camelCase dict. Non-finite floats become None (JSON null)."""
    if dataclasses.is_dataclass(obj):
        return {_wire_name(f.name): to_wire(getattr(obj, f.name)) for f in dataclasses.fields(obj)}
    if isinstance(obj, float) and not math.isfinite(obj):
        return None
    return obj


def from_wire(cls, data: Optional[Dict[str, Any]]):
    """Rebuild a metrics dataclass from its camelCase dict. Missing keys keep the field default.
    A null numeric value also keeps the default, so a null break-even reads back as infinity.
    """
    if data is None:
        return None
    kwargs = {}
    for f in dataclasses.fields(cls):
        key = _wire_name(f.name)
        if key not in data:
            continue
        value = data[key]
        if value is None and isinstance(f.default, float):
            continue
        if dataclasses.is_dataclass(f.type) and isinstance(value, dict):
            value = from_wire(f.type, value)
        kwargs[f.name] = value
    return cls(**kwargs)


# --- quality ---

@dataclass(frozen=True)
class CodeChurn:
    rate: float = 0.0
    trend: str = TREND_STABLE
    ai_vs_human: float = 1.0


@dataclass(frozen=True)
class Duplication:
    clone_rate: float = 0.0
    copy_paste_ratio: float = 0.0
    before_ai: float = 0.0
    after_ai: float = 0.0


@dataclass(frozen=True)
class Complexity:
    cyclomatic_complexity: float = 0.0
    cognitive_load: float = 0.0
    nesting_depth: float = 0.0
    ai_generated_complexity: float = 0.0


@dataclass(frozen=True)
class Refactoring:
    rate: float = 0.0
    ai_code_refactored: float = 0.0


@dataclass(frozen=True)
class QualityMetrics:
    code_churn: CodeChurn = field(default_factory=CodeChurn)
    duplication: Duplication = field(default_factory=Duplication)
    complexity: Complexity = field(default_factory=Complexity)
    refactoring: Refactoring = field(default_factory=Refactoring)
    overall_score: float = 0.0


# --- productivity ---

@dataclass(frozen=True)
class TaskCompletion:
    velocity_change: float = 0.0
    cycle_time: float = 0.0
    rework_rate: float = 0.0


@dataclass(frozen=True)
class FlowEfficiency:
    """focus_time and wait_time are in hours."""
    focus_time: float = 0.0
    context_switches: int = 0
    wait_time: float = 0.0


@dataclass(frozen=True)
class ValueDelivery:
    features_shipped: int = 0
    bug_rate: float = 0.0
    customer_impact: float = 0.0


@dataclass(frozen=True)
class TimeBreakdown:
    """Hours credited (time_saved) and spent (review_time, fix_time) on AI suggestions."""
    time_saved: float = 0.0
    review_time: float = 0.0
    fix_time: float = 0.0


@dataclass(frozen=True)
class Satisfaction:
    average: float = 0.0
    responses: int = 0


@dataclass(frozen=True)
class ProductivityMetrics:
    task_completion: TaskCompletion = field(default_factory=TaskCompletion)
    flow_efficiency: FlowEfficiency = field(default_factory=FlowEfficiency)
    value_delivery: ValueDelivery = field(default_factory=ValueDelivery)
    actual_gain: float = 0.0
    perceived_gain: float = 0.0
    # hours; negative when AI usage cost more time than it saved
    net_time_saved: float = 0.0
    time_breakdown: Optional[TimeBreakdown] = None
    satisfaction: Satisfaction = field(default_factory=Satisfaction)


# --- roi ---

@dataclass(frozen=True)
class CostBenefit:
    """license_cost and net_value are currency; time_saved / time_wasted are hours."""
    license_cost: float = 0.0
    time_saved: float = 0.0
    time_wasted: float = 0.0
    net_value: float = 0.0


@dataclass(frozen=True)
class HiddenCosts:
    technical_debt: float = 0.0
    maintenance_burden: float = 0.0
    knowledge_gaps: float = 0.0

    @property
    def total(self) -> float:
        return self.technical_debt + self.maintenance_burden + self.knowledge_gaps


@dataclass(frozen=True)
class TeamImpact:
    review_time: float = 0.0
    onboarding_cost: float = 0.0
    collaboration_friction: float = 0.0


@dataclass(frozen=True)
class ROIMetrics:
    cost_benefit: CostBenefit = field(default_factory=CostBenefit)
    hidden_costs: HiddenCosts = field(default_factory=HiddenCosts)
    team_impact: TeamImpact = field(default_factory=TeamImpact)
    overall_roi: float = 0.0
    break_even_days: float = math.inf
    recommendation: str = ''


# --- performance ---

@dataclass(frozen=True)
class PerformanceStats:
    """
    Outcome statistics for one kind of task (builds or tests).
    average_duration is seconds. ai_correlation is in [-1, 1]: +1 when every outcome preceded by an
    accepted AI suggestion succeeded, -1 when every such outcome failed, 0 when none were preceded by one.
    """
    success_rate: float = 0.0
    average_duration: float = 0.0
    builds_per_day: float = 0.0
    tests_per_day: float = 0.0
    ai_correlation: float = 0.0


@dataclass(frozen=True)
class PerformanceMetrics:
    build_stats: PerformanceStats = field(default_factory=PerformanceStats)
    test_stats: PerformanceStats = field(default_factory=PerformanceStats)


# productivity time_breakdown is Optional[...] so from_wire cannot see the class
def _productivity_from_wire(data: Optional[Dict[str, Any]]) -> Optional[ProductivityMetrics]:
    if data is None:
        return None
    breakdown = data.get('timeBreakdown')
    base = from_wire(ProductivityMetrics, {k: v for k, v in data.items() if k != 'timeBreakdown'})
    if isinstance(breakdown, dict):
        base = dataclasses.replace(base, time_breakdown=from_wire(TimeBreakdown, breakdown))
    return base


@dataclass(frozen=True)
class Snapshot:
    """
    One aggregated analysis result. Any subset of quality / productivity / roi / performance may be present.
    timestamp is epoch milliseconds (UTC).
    """
    quality: Optional[QualityMetrics] = None
    productivity: Optional[ProductivityMetrics] = None
    roi: Optional[ROIMetrics] = None
    timestamp: int = 0
    performance: Optional[PerformanceMetrics] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        if self.quality is not None:
            out['quality'] = to_wire(self.quality)
        if self.productivity is not None:
            out['productivity'] = to_wire(self.productivity)
        if self.roi is not None:
            out['roi'] = to_wire(self.roi)
        if self.performance is not None:
            out['performance'] = to_wire(self.performance)
        out['timestamp'] = self.timestamp
        return out

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Snapshot':
        return cls(
            quality=from_wire(QualityMetrics, data.get('quality')),
            productivity=_productivity_from_wire(data.get('productivity')),
            roi=from_wire(ROIMetrics, data.get('roi')),
            timestamp=int(data.get('timestamp') or 0),
            performance=from_wire(PerformanceMetrics, data.get('performance')),
        )
