import unittest
from normalize.models import GitMetrics, SourceFile
from scoring.models import QualityMetrics, CodeChurn, Duplication, TREND_STABLE, TREND_INCREASING, TREND_DECREASING
from scoring.quality import (
    QualityAnalyzer,
    calculate_clone_rate,
    calculate_cyclomatic_complexity,
    calculate_cognitive_load,
    calculate_quality_score,
    calculate_trend,
    extract_code_blocks,
    file_churn,
    is_likely_ai_generated,
    nesting_depths,
)

DAY = 86400.0

BLOCK = "\n".join([
    "def handler(request):",
    "    user = request.user",
    "    if user is None:",
    "        return None",
    "    return user.profile",
])


class TestQualityHelpers(unittest.TestCase):
    def test_short_blocks_are_ignored(self):
        self.assertEqual(extract_code_blocks("a\nb\nc\nd\ne"), [])
        self.assertEqual(len(extract_code_blocks(BLOCK)), 1)

    def test_clone_rate_counts_repeats(self):
        self.assertEqual(calculate_clone_rate([BLOCK]), 0.0)
        self.assertEqual(calculate_clone_rate([BLOCK, BLOCK]), 0.5)
        self.assertEqual(calculate_clone_rate([]), 0.0)

    def test_cyclomatic_complexity(self):
        self.assertEqual(calculate_cyclomatic_complexity("x = 1"), 1)
        self.assertEqual(calculate_cyclomatic_complexity("if a and b:\n    pass\nfor x in y:\n    pass"), 4)

    def test_cognitive_load_ladder(self):
        self.assertEqual(calculate_cognitive_load(0, 0), 0)
        self.assertEqual(calculate_cognitive_load(4, 1), 2)
        self.assertEqual(calculate_cognitive_load(18, 2), 4)
        self.assertEqual(calculate_cognitive_load(15, 1), 6)
        self.assertEqual(calculate_cognitive_load(25, 1), 8)
        self.assertEqual(calculate_cognitive_load(300, 1), 10)

    def test_nesting_depth_by_language(self):
        js = SourceFile(path='a.js', text='function f() { if (x) { y(); } }')
        self.assertEqual(nesting_depths(js), [1, 2])
        py = SourceFile(path='a.py', text='def f():\n    if x:\n        pass\n')
        self.assertEqual(nesting_depths(py), [1, 2])

    def test_ai_markers(self):
        self.assertTrue(is_likely_ai_generated('// TODO: implement the rest'))
        self.assertFalse(is_likely_ai_generated('return a + b'))

    def test_file_churn_window(self):
        now = 100 * DAY
        fresh = SourceFile(path='a.py', text='', created_at=now - 2 * DAY, modified_at=now - DAY, sampled_at=now)
        self.assertAlmostEqual(file_churn(fresh), 0.5)
        old = SourceFile(path='a.py', text='', created_at=now - 30 * DAY, modified_at=now, sampled_at=now)
        self.assertEqual(file_churn(old), 0.0)

    def test_trend(self):
        self.assertEqual(calculate_trend(0.3, None), TREND_STABLE)
        self.assertEqual(calculate_trend(0.3, 0.28), TREND_STABLE)
        self.assertEqual(calculate_trend(0.5, 0.3), TREND_INCREASING)
        self.assertEqual(calculate_trend(0.1, 0.3), TREND_DECREASING)

    def test_quality_score_bounds(self):
        self.assertEqual(calculate_quality_score(0, 0, 0, 0), 1.0)
        self.assertEqual(calculate_quality_score(1, 1, 100, 1), 0.0)


class TestQualityAnalyzer(unittest.TestCase):
    def setUp(self):
        self.analyzer = QualityAnalyzer()

    def test_no_input_returns_default_record(self):
        self.assertEqual(self.analyzer.analyze(), QualityMetrics())

    def test_git_churn_is_preferred(self):
        now = 100 * DAY
        src = SourceFile(path='a.py', text=BLOCK, created_at=now - DAY, modified_at=now, sampled_at=now)
        result = self.analyzer.analyze(GitMetrics(churn_rate=0.3), [src])
        self.assertAlmostEqual(result.code_churn.rate, 0.3)

    def test_churn_from_sources_without_git(self):
        now = 100 * DAY
        src = SourceFile(path='a.py', text=BLOCK, created_at=now - 2 * DAY, modified_at=now - DAY, sampled_at=now)
        result = self.analyzer.analyze(None, [src])
        self.assertAlmostEqual(result.code_churn.rate, 0.5)

    def test_duplication_and_previous(self):
        previous = QualityMetrics(code_churn=CodeChurn(rate=0.0), duplication=Duplication(clone_rate=0.1))
        sources = [SourceFile(path='a.py', text=BLOCK), SourceFile(path='b.py', text=BLOCK)]
        result = self.analyzer.analyze(GitMetrics(churn_rate=0.5), sources, previous)
        self.assertEqual(result.duplication.clone_rate, 0.5)
        self.assertEqual(result.duplication.before_ai, 0.1)
        self.assertEqual(result.duplication.after_ai, 0.5)
        self.assertEqual(result.code_churn.trend, TREND_INCREASING)

    def test_ranges_hold_for_extreme_git_churn(self):
        result = self.analyzer.analyze(GitMetrics(churn_rate=42.0))
        self.assertEqual(result.code_churn.rate, 1.0)
        self.assertGreaterEqual(result.overall_score, 0.0)
        self.assertLessEqual(result.overall_score, 1.0)

    def test_idempotent(self):
        sources = [SourceFile(path='a.ts', text='if (a) { b(); }\n' * 20)]
        self.assertEqual(self.analyzer.analyze(None, sources), self.analyzer.analyze(None, sources))


if __name__ == '__main__':
    unittest.main()
