import math
import unittest
from normalize.models import AIEventMetrics, TimeMetrics, Duration
from scoring.productivity import (
    ProductivityAnalyzer,
    ComputedStrategy,
    FixedExampleStrategy,
    average_satisfaction,
)
from scoring.utils import ScoringConfig, MODE_FIXED_EXAMPLE, MODE_COMPUTED


def _ai(acceptance=0.5, total=10, churn=0.2, fix=None):
    return AIEventMetrics(acceptance_rate=acceptance, total_suggestions=total, churn_rate=churn, total_fix_time=fix)


class TestComputedProductivity(unittest.TestCase):
    def setUp(self):
        self.analyzer = ProductivityAnalyzer(ScoringConfig())

    def test_default_mode_is_computed(self):
        self.assertEqual(self.analyzer.mode, MODE_COMPUTED)

    def test_end_to_end_scenario(self):
        result = self.analyzer.analyze(_ai())
        self.assertAlmostEqual(result.task_completion.velocity_change, 0.13)
        self.assertAlmostEqual(result.actual_gain, 0.13)
        self.assertAlmostEqual(result.perceived_gain, 0.75)
        self.assertAlmostEqual(result.time_breakdown.time_saved, 5 / 12)
        self.assertAlmostEqual(result.time_breakdown.review_time, 1 / 3)
        self.assertAlmostEqual(result.time_breakdown.fix_time, 0.25)
        self.assertAlmostEqual(result.net_time_saved, -1 / 6)
        self.assertEqual(result.value_delivery.features_shipped, 1)

    def test_velocity_in_range(self):
        for rate in (0.0, 0.1, 0.5, 0.99, 1.0):
            v = self.analyzer.analyze(_ai(acceptance=rate)).task_completion.velocity_change
            self.assertGreaterEqual(v, 0.0)
            self.assertLessEqual(v, 0.26 + 1e-12)
            self.assertAlmostEqual(v, rate * 0.26)

    def test_perception_gap(self):
        for rate in (0.01, 0.3, 0.5, 1.0):
            result = self.analyzer.analyze(_ai(acceptance=rate))
            self.assertGreaterEqual(result.perceived_gain, result.actual_gain)

    def test_missing_churn_uses_default_rework(self):
        result = self.analyzer.analyze(_ai(churn=None))
        self.assertEqual(result.task_completion.rework_rate, 0.15)

    def test_zero_churn_is_a_measurement(self):
        result = self.analyzer.analyze(_ai(churn=0.0))
        self.assertEqual(result.task_completion.rework_rate, 0.0)
        self.assertEqual(result.time_breakdown.fix_time, 0.0)

    def test_measured_fix_time_wins(self):
        result = self.analyzer.analyze(_ai(fix=Duration.from_minutes(30)))
        self.assertAlmostEqual(result.time_breakdown.fix_time, 0.5)

    def test_no_input_is_zero(self):
        result = self.analyzer.analyze()
        self.assertEqual(result.actual_gain, 0.0)
        self.assertEqual(result.perceived_gain, 0.0)
        self.assertEqual(result.net_time_saved, 0.0)
        self.assertEqual(result.satisfaction.responses, 0)

    def test_out_of_range_inputs_are_clamped(self):
        result = self.analyzer.analyze(_ai(acceptance=7.0, total=-5, churn=3.0))
        self.assertAlmostEqual(result.actual_gain, 0.26)
        self.assertEqual(result.task_completion.rework_rate, 1.0)
        self.assertEqual(result.value_delivery.features_shipped, 0)
        nan = self.analyzer.analyze(_ai(acceptance=float('nan')))
        self.assertEqual(nan.actual_gain, 0.0)

    def test_infinite_suggestion_count_does_not_overflow(self):
        result = self.analyzer.analyze(_ai(total=float('inf')))
        self.assertEqual(result.value_delivery.features_shipped, 0)
        self.assertTrue(math.isfinite(result.net_time_saved))
        self.assertEqual(result.time_breakdown.time_saved, 0.0)

    def test_flow_from_time_metrics(self):
        tm = TimeMetrics(flow_time=Duration.from_minutes(90), context_switches=4)
        result = self.analyzer.analyze(_ai(), time_metrics=tm)
        self.assertAlmostEqual(result.flow_efficiency.focus_time, 1.5)
        self.assertEqual(result.flow_efficiency.context_switches, 4)

    def test_idempotent(self):
        inputs = _ai(acceptance=0.42, total=37, churn=0.1)
        self.assertEqual(self.analyzer.analyze(inputs), self.analyzer.analyze(inputs))

    def test_satisfaction_from_feedback(self):
        result = self.analyzer.analyze(_ai(), feedback=[{'rating': 4}, {'rating': 2}])
        self.assertEqual(result.satisfaction.responses, 2)
        self.assertAlmostEqual(result.satisfaction.average, 3.0)

    def test_config_changes_formulas(self):
        analyzer = ProductivityAnalyzer(ScoringConfig(velocity_ceiling=0.5, perception_multiplier=2.0))
        result = analyzer.analyze(_ai(acceptance=0.5))
        self.assertAlmostEqual(result.actual_gain, 0.25)
        self.assertAlmostEqual(result.perceived_gain, 1.0)


class TestFixedExample(unittest.TestCase):
    def test_mode_selects_fixed_strategy(self):
        analyzer = ProductivityAnalyzer(ScoringConfig(mode=MODE_FIXED_EXAMPLE))
        self.assertEqual(analyzer.mode, MODE_FIXED_EXAMPLE)
        self.assertIsInstance(analyzer.strategy, FixedExampleStrategy)

    def test_fixed_values_ignore_inputs(self):
        analyzer = ProductivityAnalyzer(strategy=FixedExampleStrategy())
        a = analyzer.analyze(_ai(acceptance=0.9))
        b = analyzer.analyze()
        self.assertEqual(a, b)
        self.assertAlmostEqual(a.actual_gain, -0.19)
        self.assertAlmostEqual(a.perceived_gain, 0.20)
        self.assertAlmostEqual(a.net_time_saved, -0.6)

    def test_explicit_strategy_overrides_config(self):
        analyzer = ProductivityAnalyzer(ScoringConfig(mode=MODE_FIXED_EXAMPLE), strategy=ComputedStrategy())
        self.assertEqual(analyzer.mode, MODE_COMPUTED)


def test_research_baselines():
    analyzer = ProductivityAnalyzer()
    assert analyzer.calculate_actual_productivity() == -0.19
    assert analyzer.calculate_perceived_productivity() == 0.20
    assert math.isclose(analyzer.calculate_net_time_saved(), -0.6)


def test_average_satisfaction_skips_bad_ratings():
    sat = average_satisfaction([{'rating': 5}, {'rating': 'bad'}, 'not a dict'])
    assert sat.responses == 1
    assert sat.average == 5.0
    assert average_satisfaction([{'rating': float('nan')}, {'rating': '3'}]).average == 3.0
    assert average_satisfaction(None).average == 0.0


if __name__ == '__main__':
    unittest.main()
