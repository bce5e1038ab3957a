import json
import unittest
from normalize.models import Duration, SourceFile, PERF_BUILD, PERF_TEST
from normalize.util import (
    normalize_ai_metrics,
    normalize_time_metrics,
    normalize_code_metrics,
    normalize_git_metrics,
    normalize_performance_events,
)


class TestDuration(unittest.TestCase):
    def test_unit_conversions(self):
        self.assertAlmostEqual(Duration.from_ms(90_000).minutes, 1.5)
        self.assertAlmostEqual(Duration.from_minutes(30).hours, 0.5)
        self.assertAlmostEqual(Duration.from_hours(2).seconds, 7200)

    def test_addition_mixes_units(self):
        total = Duration.from_minutes(30) + Duration.from_hours(1)
        self.assertAlmostEqual(total.hours, 1.5)

    def test_unknown_unit_rejected(self):
        with self.assertRaises(ValueError):
            Duration(1, 'fortnights')


class TestNormalize(unittest.TestCase):
    def test_ai_metrics_camel_case(self):
        ai = normalize_ai_metrics({'acceptanceRate': 0.5, 'totalSuggestions': 10, 'churnRate': 0.2, 'totalFixTime': 60_000})
        self.assertEqual(ai.acceptance_rate, 0.5)
        self.assertEqual(ai.total_suggestions, 10)
        self.assertEqual(ai.churn_rate, 0.2)
        self.assertAlmostEqual(ai.total_fix_time.minutes, 1.0)

    def test_ai_metrics_snake_case_and_missing_churn(self):
        ai = normalize_ai_metrics({'acceptance_rate': '0.25', 'total_suggestions': 4})
        self.assertEqual(ai.acceptance_rate, 0.25)
        self.assertIsNone(ai.churn_rate)
        self.assertIsNone(ai.total_fix_time)

    def test_explicit_zero_churn_is_kept(self):
        ai = normalize_ai_metrics({'acceptanceRate': 0.5, 'totalSuggestions': 10, 'churnRate': 0})
        self.assertEqual(ai.churn_rate, 0.0)

    def test_bad_values_fall_back(self):
        ai = normalize_ai_metrics({'acceptanceRate': 'n/a', 'totalSuggestions': None})
        self.assertEqual(ai.acceptance_rate, 0.0)
        self.assertEqual(ai.total_suggestions, 0)

    def test_overflowing_counts_fall_back(self):
        ai = normalize_ai_metrics(json.loads('{"totalSuggestions": 1e400, "sessionCount": -1e400}'))
        self.assertEqual(ai.total_suggestions, 0)
        self.assertEqual(ai.session_count, 0)

    def test_non_dict_is_none(self):
        self.assertIsNone(normalize_ai_metrics(None))
        self.assertIsNone(normalize_time_metrics([1, 2]))
        self.assertIsNone(normalize_code_metrics('x'))
        self.assertIsNone(normalize_git_metrics(None))

    def test_time_metrics_in_minutes(self):
        tm = normalize_time_metrics({'totalActiveTime': 120, 'flowTime': 60, 'contextSwitches': 3})
        self.assertAlmostEqual(tm.total_active_time.hours, 2.0)
        self.assertAlmostEqual(tm.flow_time.hours, 1.0)
        self.assertEqual(tm.context_switches, 3)

    def test_git_metrics(self):
        gm = normalize_git_metrics({'churnRate': 0.3, 'currentBranch': 'main', 'linesAdded': 70, 'linesDeleted': 30})
        self.assertEqual(gm.churn_rate, 0.3)
        self.assertEqual(gm.current_branch, 'main')
        self.assertEqual(gm.lines_added + gm.lines_deleted, 100)

    def test_source_file_language(self):
        self.assertEqual(SourceFile(path='src/app.TS', text='').language, 'ts')
        self.assertEqual(SourceFile(path='Makefile', text='').language, '')


class TestPerformanceEvents(unittest.TestCase):
    def test_build_and_test_events(self):
        events = normalize_performance_events([
            {'timestamp': 1000, 'type': 'build', 'status': 'success', 'duration': 5000, 'system': 'npm'},
            {'timestamp': 2000, 'type': 'test', 'status': 'failure', 'duration': 1500, 'testCount': 10, 'failedCount': 2},
        ])
        self.assertEqual([e.kind for e in events], [PERF_BUILD, PERF_TEST])
        self.assertTrue(events[0].succeeded)
        self.assertAlmostEqual(events[0].duration.seconds, 5.0)
        self.assertEqual(events[0].system, 'npm')
        self.assertFalse(events[1].succeeded)
        self.assertEqual(events[1].failed_count, 2)

    def test_kind_override_and_unreadable_entries(self):
        events = normalize_performance_events([
            {'timestamp': 1000, 'status': 'success', 'duration': 'slow'},
            {'status': 'success'},
            {'timestamp': 'yesterday', 'status': 'success'},
            'not a dict',
        ], kind=PERF_TEST)
        self.assertEqual(len(events), 1)
        self.assertEqual(events[0].kind, PERF_TEST)
        self.assertEqual(events[0].duration.seconds, 0.0)
        self.assertEqual(normalize_performance_events([{'timestamp': 1, 'type': 'deploy'}]), [])
        self.assertEqual(normalize_performance_events(None), [])


if __name__ == '__main__':
    unittest.main()
