import math

import pytest

from scoring.models import ProductivityMetrics, QualityMetrics, CodeChurn, Duplication, TimeBreakdown
from scoring.roi import (
    ROICalculator,
    RECOMMENDATION_TIERS,
    RECOMMENDATION_STRONG,
    RECOMMENDATION_NEGATIVE,
    recommendation_tier,
    split_time,
)
from scoring.utils import ScoringConfig


def _productivity(net_hours: float) -> ProductivityMetrics:
    return ProductivityMetrics(net_time_saved=net_hours)


def test_no_inputs_gives_neutral_roi():
    roi = ROICalculator().calculate()
    assert roi.overall_roi == 0.0
    assert math.isinf(roi.break_even_days)
    assert roi.recommendation == RECOMMENDATION_NEGATIVE
    assert roi.hidden_costs.total == 10000.0


def test_positive_net_time_gives_finite_break_even():
    cfg = ScoringConfig()
    roi = ROICalculator(cfg).calculate(_productivity(10.0))
    # value = 10h * 75 * 4 weeks = 3000; cost = 15 + 10000/12
    monthly_cost = 15 + 10000 / 12
    assert roi.overall_roi == pytest.approx((3000 - monthly_cost) / monthly_cost)
    assert roi.break_even_days == pytest.approx(monthly_cost / (3000 / 30))
    assert roi.cost_benefit.time_saved == 10.0
    assert roi.cost_benefit.time_wasted == 0.0
    assert roi.cost_benefit.net_value == pytest.approx(750.0)


@pytest.mark.parametrize('net', [-50.0, -1 / 6, 0.0, 0.5, 2.0, 10.0, 100.0, 1e6, float('nan')])
def test_break_even_infinite_iff_roi_not_positive(net):
    roi = ROICalculator().calculate(_productivity(net))
    assert math.isinf(roi.break_even_days) == (roi.overall_roi <= 0)
    assert roi.recommendation in RECOMMENDATION_TIERS


def test_nan_time_is_treated_as_zero():
    roi = ROICalculator().calculate(_productivity(float('nan')))
    assert roi.overall_roi == 0.0
    assert math.isinf(roi.break_even_days)
    assert split_time(_productivity(float('nan'))) == (0.0, 0.0)
    breakdown = ProductivityMetrics(time_breakdown=TimeBreakdown(time_saved=float('nan'), review_time=1.0, fix_time=float('inf')))
    assert split_time(breakdown) == (0.0, 1.0)


def test_recommendation_monotonic_in_roi():
    calc = ROICalculator()
    values = [-10, -1, 0, 0.5, 0.99, 1.0, 1.2, 1.5, 1.51, 2.9, 3.0, 3.01, 50]
    tiers = [recommendation_tier(calc.generate_recommendation(v)) for v in values]
    assert tiers == sorted(tiers)
    assert calc.generate_recommendation(50) == RECOMMENDATION_STRONG


def test_thresholds_are_configurable():
    calc = ROICalculator(ScoringConfig(strong_roi_threshold=0.1, positive_roi_threshold=0.05, marginal_roi_threshold=0.0))
    assert calc.generate_recommendation(0.2) == RECOMMENDATION_STRONG


def test_split_time_prefers_breakdown():
    p = ProductivityMetrics(net_time_saved=-1 / 6, time_breakdown=TimeBreakdown(time_saved=5 / 12, review_time=1 / 3, fix_time=0.25))
    saved, wasted = split_time(p)
    assert saved == pytest.approx(5 / 12)
    assert wasted == pytest.approx(7 / 12)
    assert saved - wasted == pytest.approx(p.net_time_saved)
    assert split_time(_productivity(-2.0)) == (0.0, 2.0)
    assert split_time(None) == (0.0, 0.0)


def test_quality_scales_hidden_costs():
    quality = QualityMetrics(code_churn=CodeChurn(rate=0.5), duplication=Duplication(clone_rate=0.2))
    hidden = ROICalculator().calculate_hidden_costs(quality)
    assert hidden.technical_debt == pytest.approx(6000.0)
    assert hidden.maintenance_burden == pytest.approx(3000.0)
    assert hidden.knowledge_gaps == pytest.approx(3000.0)


def test_team_impact_uses_measured_review_time():
    p = ProductivityMetrics(time_breakdown=TimeBreakdown(review_time=0.75))
    assert ROICalculator().calculate_team_impact(p).review_time == 0.75
    assert ROICalculator().calculate_team_impact(None).review_time == 1.5


def test_extreme_inputs_stay_finite():
    roi = ROICalculator().calculate(_productivity(1e12), QualityMetrics(duplication=Duplication(clone_rate=5.0)))
    assert math.isfinite(roi.overall_roi)
    assert roi.hidden_costs.technical_debt == pytest.approx(10000.0)


def test_idempotent():
    calc = ROICalculator()
    p = _productivity(3.3)
    assert calc.calculate(p) == calc.calculate(p)
