"""
ROI calculation.
Turns productivity (and optionally quality) metrics into cost/benefit figures, an overall ROI ratio,
a break-even horizon and a recommendation tier.
"""
from typing import Optional, List
import logging
import math
from .models import ProductivityMetrics, QualityMetrics, ROIMetrics, CostBenefit, HiddenCosts, TeamImpact
from .utils import ScoringConfig, clamp, non_negative, finite_or_zero

logger = logging.getLogger(__name__)

RECOMMENDATION_STRONG = 'Strong ROI - Expand usage with monitoring'
RECOMMENDATION_POSITIVE = 'Positive ROI - Continue with caution'
RECOMMENDATION_MARGINAL = 'Marginal ROI - Optimize usage patterns'
RECOMMENDATION_NEGATIVE = 'Negative ROI - Reduce usage and focus on training'

# lowest tier first
RECOMMENDATION_TIERS: List[str] = [
    RECOMMENDATION_NEGATIVE,
    RECOMMENDATION_MARGINAL,
    RECOMMENDATION_POSITIVE,
    RECOMMENDATION_STRONG,
]


def recommendation_tier(recommendation: str) -> int:
    """Position of a recommendation in RECOMMENDATION_TIERS (0 = Negative ... 3 = Strong)."""
    return RECOMMENDATION_TIERS.index(recommendation)


def split_time(productivity: Optional[ProductivityMetrics]):
    """Return (time_saved, time_wasted) hours such that saved - wasted == net_time_saved."""
    if productivity is None:
        return 0.0, 0.0
    breakdown = productivity.time_breakdown
    if breakdown is not None:
        return (
            non_negative(finite_or_zero(breakdown.time_saved)),
            non_negative(finite_or_zero(breakdown.review_time)) + non_negative(finite_or_zero(breakdown.fix_time)),
        )
    net = finite_or_zero(productivity.net_time_saved)
    return (net, 0.0) if net > 0 else (0.0, abs(net))


class ROICalculator:
    def __init__(self, config: Optional[ScoringConfig] = None):
        self.config = config or ScoringConfig()

    def calculate(
        self,
        productivity_metrics: Optional[ProductivityMetrics] = None,
        quality_metrics: Optional[QualityMetrics] = None,
    ) -> ROIMetrics:
        cfg = self.config
        time_saved, time_wasted = split_time(productivity_metrics)
        net_value = (time_saved - time_wasted) * cfg.hourly_rate
        # net time covers roughly one week of activity
        monthly_value = net_value * cfg.weeks_per_month

        hidden_costs = self.calculate_hidden_costs(quality_metrics)
        monthly_cost = cfg.license_cost + hidden_costs.total / max(1.0, cfg.hidden_cost_amortization_months)

        roi = self.calculate_overall_roi(monthly_value, monthly_cost)
        logger.debug(f"ROI: monthly value={monthly_value:.2f} monthly cost={monthly_cost:.2f} roi={roi:.3f}")

        return ROIMetrics(
            cost_benefit=CostBenefit(
                license_cost=cfg.license_cost,
                time_saved=time_saved,
                time_wasted=time_wasted,
                net_value=net_value,
            ),
            hidden_costs=hidden_costs,
            team_impact=self.calculate_team_impact(productivity_metrics),
            overall_roi=roi,
            break_even_days=self.calculate_break_even(roi, monthly_value, monthly_cost),
            recommendation=self.generate_recommendation(roi),
        )

    def calculate_hidden_costs(self, quality: Optional[QualityMetrics] = None) -> HiddenCosts:
        """Baseline hidden costs, scaled up by duplication and churn when quality metrics are known."""
        cfg = self.config
        if quality is None:
            return HiddenCosts(
                technical_debt=non_negative(cfg.technical_debt),
                maintenance_burden=non_negative(cfg.maintenance_burden),
                knowledge_gaps=non_negative(cfg.knowledge_gaps),
            )
        clone_rate = clamp(quality.duplication.clone_rate)
        churn_rate = clamp(quality.code_churn.rate)
        return HiddenCosts(
            technical_debt=non_negative(cfg.technical_debt * (1 + clone_rate)),
            maintenance_burden=non_negative(cfg.maintenance_burden * (1 + churn_rate)),
            knowledge_gaps=non_negative(cfg.knowledge_gaps),
        )

    def calculate_team_impact(self, productivity: Optional[ProductivityMetrics] = None) -> TeamImpact:
        cfg = self.config
        review = cfg.review_time
        if productivity is not None and productivity.time_breakdown is not None:
            review = productivity.time_breakdown.review_time
        return TeamImpact(
            review_time=non_negative(finite_or_zero(review)),
            onboarding_cost=non_negative(cfg.onboarding_cost),
            collaboration_friction=cfg.collaboration_friction,
        )

    @staticmethod
    def calculate_overall_roi(monthly_value: float, monthly_cost: float) -> float:
        """(value - cost) / cost. No measured value at all is reported as neutral (0) rather than -100%."""
        if monthly_cost <= 0 or monthly_value == 0:
            return 0.0
        return (monthly_value - monthly_cost) / monthly_cost

    def calculate_break_even(self, roi: float, monthly_value: float, monthly_cost: float) -> float:
        """Days until cumulative value covers the monthly cost; infinite unless ROI is positive."""
        if not roi > 0 or monthly_value <= 0:
            return math.inf
        return monthly_cost / (monthly_value / self.config.days_per_month)

    def generate_recommendation(self, roi: float) -> str:
        cfg = self.config
        if roi > cfg.strong_roi_threshold:
            return RECOMMENDATION_STRONG
        if roi > cfg.positive_roi_threshold:
            return RECOMMENDATION_POSITIVE
        if roi >= cfg.marginal_roi_threshold:
            return RECOMMENDATION_MARGINAL
        return RECOMMENDATION_NEGATIVE
