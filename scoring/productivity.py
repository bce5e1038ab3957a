"""
Productivity analysis.
Two strategies share one interface: ComputedStrategy derives gains and time saved from collector
metrics; FixedExampleStrategy returns a fixed example snapshot built from published research
baselines (demo / calibration mode). The analyzer picks exactly one per configuration.
"""
from typing import List, Dict, Any, Optional
import logging
import math
from normalize.models import AIEventMetrics, CodeMetrics, TimeMetrics
from .models import (
    ProductivityMetrics,
    TaskCompletion,
    FlowEfficiency,
    ValueDelivery,
    TimeBreakdown,
    Satisfaction,
)
from .utils import ScoringConfig, clamp, non_negative, finite_or_zero, MODE_COMPUTED, MODE_FIXED_EXAMPLE

logger = logging.getLogger(__name__)

# research baselines: experienced developers measured 19% slower while reporting 20% faster;
# 2.5 h/week saved against 3.1 h/week spent verifying and debugging
RESEARCH_ACTUAL_PRODUCTIVITY = -0.19
RESEARCH_PERCEIVED_PRODUCTIVITY = 0.20
RESEARCH_WEEKLY_HOURS_SAVED = 2.5
RESEARCH_WEEKLY_HOURS_WASTED = 3.1


def average_satisfaction(feedback: Optional[List[Dict[str, Any]]]) -> Satisfaction:
    """Average the numeric 'rating' of each feedback entry; unparsable ratings are skipped. No ratings yields 0."""
    ratings = []
    for entry in feedback or []:
        if not isinstance(entry, dict):
            continue
        try:
            rating = float(entry.get('rating'))
        except (TypeError, ValueError):
            continue
        if math.isfinite(rating):
            ratings.append(rating)
    if not ratings:
        return Satisfaction(average=0.0, responses=0)
    return Satisfaction(average=sum(ratings) / len(ratings), responses=len(ratings))


class ProductivityStrategy:
    """Interface for productivity strategies."""

    name = ''

    def analyze(
        self,
        ai_metrics: Optional[AIEventMetrics] = None,
        code_metrics: Optional[CodeMetrics] = None,
        time_metrics: Optional[TimeMetrics] = None,
        feedback: Optional[List[Dict[str, Any]]] = None,
    ) -> ProductivityMetrics:
        raise NotImplementedError


class ComputedStrategy(ProductivityStrategy):
    """Derive productivity from acceptance rate, suggestion volume and tracked time."""

    name = MODE_COMPUTED

    def __init__(self, config: Optional[ScoringConfig] = None):
        self.config = config or ScoringConfig()

    def analyze(self, ai_metrics=None, code_metrics=None, time_metrics=None, feedback=None) -> ProductivityMetrics:
        cfg = self.config
        ai = ai_metrics or AIEventMetrics()
        acceptance_rate = clamp(ai.acceptance_rate)
        total_suggestions = int(non_negative(finite_or_zero(ai.total_suggestions)))
        accepted = total_suggestions * acceptance_rate

        velocity_change = acceptance_rate * cfg.velocity_ceiling
        # an explicit 0.0 churn is a measurement, not a missing value
        rework_rate = clamp(ai.churn_rate) if ai.churn_rate is not None else cfg.default_rework_rate

        time_saved = accepted * cfg.minutes_saved_per_acceptance / 60
        review_time = total_suggestions * cfg.review_minutes_per_suggestion / 60
        if ai.total_fix_time is not None:
            fix_time = non_negative(finite_or_zero(ai.total_fix_time.hours))
        else:
            fix_time = accepted * rework_rate * cfg.fix_minutes_per_rework / 60
        net_time_saved = time_saved - (review_time + fix_time)

        focus_hours = time_metrics.flow_time.hours if time_metrics is not None else 0.0
        switches = time_metrics.context_switches if time_metrics is not None else 0

        return ProductivityMetrics(
            # cycle_time, bug_rate, customer_impact and wait_time need issue tracker / VCS data
            task_completion=TaskCompletion(velocity_change=velocity_change, cycle_time=0.0, rework_rate=rework_rate),
            flow_efficiency=FlowEfficiency(focus_time=non_negative(finite_or_zero(focus_hours)), context_switches=max(0, int(switches)), wait_time=0.0),
            value_delivery=ValueDelivery(
                features_shipped=int(math.floor(total_suggestions / max(1, cfg.suggestions_per_feature))),
                bug_rate=0.0,
                customer_impact=0.0,
            ),
            actual_gain=velocity_change,
            perceived_gain=acceptance_rate * cfg.perception_multiplier,
            net_time_saved=net_time_saved,
            time_breakdown=TimeBreakdown(time_saved=time_saved, review_time=review_time, fix_time=fix_time),
            satisfaction=average_satisfaction(feedback),
        )


class FixedExampleStrategy(ProductivityStrategy):
    """Return the same research-baseline example snapshot whatever the input."""

    name = MODE_FIXED_EXAMPLE

    EXAMPLE = ProductivityMetrics(
        task_completion=TaskCompletion(velocity_change=RESEARCH_ACTUAL_PRODUCTIVITY, cycle_time=0.0, rework_rate=0.15),
        flow_efficiency=FlowEfficiency(focus_time=0.0, context_switches=0, wait_time=0.0),
        value_delivery=ValueDelivery(features_shipped=0, bug_rate=0.0, customer_impact=0.0),
        actual_gain=RESEARCH_ACTUAL_PRODUCTIVITY,
        perceived_gain=RESEARCH_PERCEIVED_PRODUCTIVITY,
        net_time_saved=RESEARCH_WEEKLY_HOURS_SAVED - RESEARCH_WEEKLY_HOURS_WASTED,
        time_breakdown=TimeBreakdown(time_saved=RESEARCH_WEEKLY_HOURS_SAVED, review_time=0.0, fix_time=RESEARCH_WEEKLY_HOURS_WASTED),
    )

    def analyze(self, ai_metrics=None, code_metrics=None, time_metrics=None, feedback=None) -> ProductivityMetrics:
        return self.EXAMPLE


def strategy_for(config: ScoringConfig) -> ProductivityStrategy:
    if config.mode == MODE_FIXED_EXAMPLE:
        return FixedExampleStrategy()
    return ComputedStrategy(config)


class ProductivityAnalyzer:
    """
    Productivity analyzer. The strategy is fixed at construction (explicit strategy, else config.mode).
    """

    def __init__(self, config: Optional[ScoringConfig] = None, strategy: Optional[ProductivityStrategy] = None):
        self.config = config or ScoringConfig()
        self.strategy = strategy or strategy_for(self.config)
        logger.info(f"Productivity analyzer using {self.strategy.name} strategy")

    @property
    def mode(self) -> str:
        return self.strategy.name

    def analyze(
        self,
        ai_metrics: Optional[AIEventMetrics] = None,
        code_metrics: Optional[CodeMetrics] = None,
        time_metrics: Optional[TimeMetrics] = None,
        feedback: Optional[List[Dict[str, Any]]] = None,
    ) -> ProductivityMetrics:
        return self.strategy.analyze(ai_metrics, code_metrics, time_metrics, feedback)

    # published research baselines, used when no live computation path is wired

    def calculate_actual_productivity(self) -> float:
        return RESEARCH_ACTUAL_PRODUCTIVITY

    def calculate_perceived_productivity(self) -> float:
        return RESEARCH_PERCEIVED_PRODUCTIVITY

    def calculate_net_time_saved(self) -> float:
        """Weekly hours saved minus hours spent verifying/debugging AI code."""
        return RESEARCH_WEEKLY_HOURS_SAVED - RESEARCH_WEEKLY_HOURS_WASTED
