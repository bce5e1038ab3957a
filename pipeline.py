"""
Analysis pipeline: collector outputs -> analyzers -> aggregated snapshot -> store.
Also provides the alert checks and the summary report built from a snapshot.
"""
from dataclasses import replace
from typing import List, Dict, Any, Optional
from datetime import datetime, timezone
import json
import logging
from normalize.models import CollectorInputs, PERF_BUILD, PERF_TEST
from normalize.util import normalize_ai_metrics, normalize_time_metrics, normalize_code_metrics, normalize_git_metrics, normalize_performance_events
from ingest.events import summarize_ai_events, summarize_time_sessions, summarize_code_changes, acceptance_times
from ingest.git import GitChurnCollector
from ingest.workspace import sample_workspace
from scoring.models import Snapshot
from scoring.quality import QualityAnalyzer
from scoring.productivity import ProductivityAnalyzer
from scoring.roi import ROICalculator
from scoring.performance import PerformanceAnalyzer
from scoring.utils import ScoringConfig
from storage.store import MetricsStore

logger = logging.getLogger(__name__)

FEEDBACK_KEY = 'satisfaction_feedback'

SUMMARY_STRONG = 'Strong positive impact - Continue and expand usage'
SUMMARY_MODERATE = 'Moderate positive impact - Focus on training'
SUMMARY_NEGATIVE = 'Negative impact - Reduce usage and retrain team'
SUMMARY_MIXED = 'Mixed results - Analyze by team member and use case'


def _raw_ai(doc: Dict[str, Any]):
    if isinstance(doc.get('ai'), dict):
        return normalize_ai_metrics(doc['ai'])
    if isinstance(doc.get('aiEvents'), list):
        # raw logs are summarized over their whole span
        return summarize_ai_events(doc['aiEvents'], doc.get('churnEvents'), window_minutes=None)
    return None


def _raw_time(doc: Dict[str, Any]):
    if isinstance(doc.get('time'), dict):
        return normalize_time_metrics(doc['time'])
    if isinstance(doc.get('timeSessions'), list):
        return summarize_time_sessions(doc['timeSessions'])
    return None


def _raw_code(doc: Dict[str, Any]):
    if isinstance(doc.get('code'), dict):
        return normalize_code_metrics(doc['code'])
    if isinstance(doc.get('codeChanges'), list):
        return summarize_code_changes(doc['codeChanges'], doc.get('codeSaves') or [])
    return None


def _raw_performance(doc: Dict[str, Any]):
    events = []
    for key, kind in (('buildEvents', PERF_BUILD), ('testEvents', PERF_TEST), ('performanceEvents', None)):
        if isinstance(doc.get(key), list):
            events.extend(normalize_performance_events(doc[key], kind))
    return sorted(events, key=lambda e: e.timestamp)


def inputs_from_dict(doc: Dict[str, Any]) -> CollectorInputs:
    """
    Build CollectorInputs from a collector dump.

    Summarized sections ('ai', 'time', 'code', 'git') win over raw logs ('aiEvents', 'churnEvents',
    'timeSessions', 'codeChanges', 'codeSaves'). 'sourcesDir' samples a workspace for quality analysis;
    'repo' runs the git churn collector when no 'git' section is given. 'buildEvents', 'testEvents' and
    'performanceEvents' feed the performance analyzer, which correlates them with the acceptance events in 'aiEvents'.
    """
    git = normalize_git_metrics(doc.get('git'))
    if git is None and doc.get('repo'):
        git = GitChurnCollector(doc['repo']).analyze()
    sources = sample_workspace(doc['sourcesDir']) if doc.get('sourcesDir') else []
    feedback = doc.get('feedback') if isinstance(doc.get('feedback'), list) else []
    return CollectorInputs(
        ai=_raw_ai(doc),
        time=_raw_time(doc),
        code=_raw_code(doc),
        git=git,
        sources=sources,
        feedback=feedback,
        performance_events=_raw_performance(doc),
        ai_acceptance_times=acceptance_times(doc.get('aiEvents')) if isinstance(doc.get('aiEvents'), list) else [],
    )


def load_inputs(path: str) -> CollectorInputs:
    """Read a JSON collector dump from path. Raises OSError / ValueError on unreadable input."""
    with open(path, 'r', encoding='utf-8') as f:
        doc = json.load(f)
    if not isinstance(doc, dict):
        raise ValueError(f"Collector input {path} must be a JSON object")
    return inputs_from_dict(doc)


def check_alerts(snapshot: Snapshot, config: Optional[ScoringConfig] = None) -> List[str]:
    """Return warnings for concerning quality patterns (high churn or duplication)."""
    cfg = config or ScoringConfig()
    alerts: List[str] = []
    quality = snapshot.quality
    if quality is None:
        return alerts
    if quality.code_churn.rate > cfg.churn_alert_threshold:
        alerts.append(f"High code churn detected: {quality.code_churn.rate * 100:.1f}% of AI code is being rewritten")
    if quality.duplication.clone_rate > cfg.clone_alert_threshold:
        alerts.append(f"High code duplication: {quality.duplication.clone_rate * 100:.1f}% of code is duplicated")
    for alert in alerts:
        logger.warning(alert)
    return alerts


def overall_recommendation(roi: float, quality: float) -> str:
    if roi > 2 and quality > 0.7:
        return SUMMARY_STRONG
    if roi > 1 and quality > 0.5:
        return SUMMARY_MODERATE
    if roi < 1 and quality < 0.5:
        return SUMMARY_NEGATIVE
    return SUMMARY_MIXED


def build_report(snapshot: Snapshot) -> Dict[str, Any]:
    """Summarize a snapshot into headline figures plus the full details."""
    actual = snapshot.productivity.actual_gain if snapshot.productivity else 0.0
    perceived = snapshot.productivity.perceived_gain if snapshot.productivity else 0.0
    quality = snapshot.quality.overall_score if snapshot.quality else 0.0
    roi = snapshot.roi.overall_roi if snapshot.roi else 0.0
    return {
        'summary': {
            'actualProductivityGain': actual,
            'perceivedProductivityGain': perceived,
            'codeQualityImpact': quality,
            'economicROI': roi,
            'recommendation': overall_recommendation(roi, quality),
        },
        'details': snapshot.to_dict(),
    }


class MetricsPipeline:
    """Runs the analyzers over collector inputs and stores the merged snapshot."""

    def __init__(self, store: MetricsStore, config: Optional[ScoringConfig] = None):
        self.store = store
        self.config = config or ScoringConfig()
        self.quality_analyzer = QualityAnalyzer()
        self.productivity_analyzer = ProductivityAnalyzer(self.config)
        self.roi_calculator = ROICalculator(self.config)
        self.performance_analyzer = PerformanceAnalyzer()

    def analyze(self, inputs: CollectorInputs, previous: Optional[Snapshot] = None, timestamp: Optional[int] = None) -> Snapshot:
        """Run all analyzers without touching the store. Performance is only analyzed when build or test events were collected."""
        quality = self.quality_analyzer.analyze(inputs.git, inputs.sources, previous.quality if previous else None)
        productivity = self.productivity_analyzer.analyze(inputs.ai, inputs.code, inputs.time, inputs.feedback)
        roi = self.roi_calculator.calculate(productivity, quality)
        performance = None
        if inputs.performance_events:
            performance = self.performance_analyzer.analyze(inputs.performance_events, inputs.ai_acceptance_times)
        if timestamp is None:
            timestamp = int(datetime.now(timezone.utc).timestamp() * 1000)
        return Snapshot(quality=quality, productivity=productivity, roi=roi, timestamp=timestamp, performance=performance)

    def collect(self, inputs: CollectorInputs) -> Snapshot:
        """Analyze, check alerts and store; returns the stored snapshot."""
        history = self.store.get_metrics_history(1)
        previous = history[0] if history else None
        stored_feedback = self.store.get(FEEDBACK_KEY)
        if stored_feedback:
            inputs = replace(inputs, feedback=list(inputs.feedback) + stored_feedback)
        snapshot = self.analyze(inputs, previous)
        check_alerts(snapshot, self.config)
        snapshot = self.store.store_metrics(snapshot)
        logger.info('Analysis completed and metrics stored')
        return snapshot

    def record_feedback(self, rating: float, comment: str = '') -> None:
        """Store a developer satisfaction rating used by later analyses."""
        self.store.store(FEEDBACK_KEY, {
            'rating': float(rating),
            'comment': comment,
            'timestamp': int(datetime.now(timezone.utc).timestamp() * 1000),
        })
