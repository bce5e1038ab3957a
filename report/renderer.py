"""
Report renderer: generate text/Markdown/CSV/JSON/HTML summaries from a metrics Snapshot.
HTML is rendered with Jinja2 using report/templates/report.html.j2.
"""

from typing import Optional, List, Dict, Any
from datetime import datetime, timezone
from scoring.models import Snapshot, PerformanceStats, to_wire
import math
import os
import json
import io
import csv

TEMPLATE_DIR = os.path.join(os.path.dirname(__file__), 'templates')

CSV_HEADER = [
    'timestamp', 'actual_gain', 'perceived_gain', 'net_time_saved_hours',
    'quality_score', 'churn_rate', 'clone_rate', 'overall_roi', 'break_even_days', 'recommendation',
    'build_success_rate', 'test_success_rate', 'build_ai_correlation', 'test_ai_correlation',
]


def format_timestamp(ts_ms: int) -> str:
    if not ts_ms:
        return ''
    return datetime.fromtimestamp(ts_ms / 1000, tz=timezone.utc).strftime('%Y-%m-%d %H:%M UTC')


def format_days(days: float) -> str:
    """Break-even days for display; infinity means the investment never pays back."""
    if days is None or math.isinf(days):
        return 'never'
    return f"{days:.1f}"


def _pct(value: float) -> str:
    return f"{value * 100:.1f}%"


def _stats_line(label: str, stats: PerformanceStats, rate: float) -> str:
    return (f"{label}: {_pct(stats.success_rate)} success, avg {stats.average_duration:.1f}s, "
            f"{rate:.1f}/day, AI correlation {stats.ai_correlation:+.2f}")


def render_text(snapshot: Snapshot, summary: Optional[dict] = None) -> str:
    """Render a simple plain-text summary."""
    lines = [f"AI Impact Metrics ({format_timestamp(snapshot.timestamp) or 'no data'})"]
    if snapshot.productivity:
        p = snapshot.productivity
        lines.append(f"Actual productivity gain: {_pct(p.actual_gain)}")
        lines.append(f"Perceived productivity gain: {_pct(p.perceived_gain)}")
        lines.append(f"Net time saved: {p.net_time_saved:.2f} hours")
    if snapshot.quality:
        q = snapshot.quality
        lines.append(f"Quality score: {q.overall_score:.2f} (churn {_pct(q.code_churn.rate)}, clones {_pct(q.duplication.clone_rate)})")
    if snapshot.roi:
        r = snapshot.roi
        lines.append(f"ROI: {_pct(r.overall_roi)}, break-even: {format_days(r.break_even_days)} days")
        lines.append(f"Recommendation: {r.recommendation}")
    if snapshot.performance:
        perf = snapshot.performance
        lines.append(_stats_line('Builds', perf.build_stats, perf.build_stats.builds_per_day))
        lines.append(_stats_line('Tests', perf.test_stats, perf.test_stats.tests_per_day))
    if summary and summary.get('recommendation'):
        lines.append(f"Overall: {summary['recommendation']}")
    return "\n".join(lines)


def render_markdown(snapshot: Snapshot, summary: Optional[dict] = None) -> str:
    """Render a Markdown section for a single snapshot."""
    md = ["# AI Impact Summary\n"]
    if snapshot.timestamp:
        md.append(f"_Measured {format_timestamp(snapshot.timestamp)}_\n")
    if snapshot.productivity:
        p = snapshot.productivity
        md.append("## Productivity\n")
        md.append(f"- Actual gain: **{_pct(p.actual_gain)}**")
        md.append(f"- Perceived gain: **{_pct(p.perceived_gain)}**")
        md.append(f"- Net time saved: **{p.net_time_saved:.2f} hours**")
        md.append(f"- Rework rate: **{_pct(p.task_completion.rework_rate)}**")
        if p.time_breakdown:
            tb = p.time_breakdown
            md.append(f"- Time saved / review / fix: **{tb.time_saved:.2f}h / {tb.review_time:.2f}h / {tb.fix_time:.2f}h**")
        md.append("")
    if snapshot.quality:
        q = snapshot.quality
        md.append("## Code Quality\n")
        md.append(f"- Overall score: **{q.overall_score:.2f}**")
        md.append(f"- Churn rate: **{_pct(q.code_churn.rate)}** ({q.code_churn.trend})")
        md.append(f"- Clone rate: **{_pct(q.duplication.clone_rate)}**")
        md.append(f"- Cyclomatic complexity: **{q.complexity.cyclomatic_complexity:.1f}**")
        md.append("")
    if snapshot.roi:
        r = snapshot.roi
        md.append("## ROI\n")
        md.append(f"- Overall ROI: **{_pct(r.overall_roi)}**")
        md.append(f"- Break-even: **{format_days(r.break_even_days)} days**")
        md.append(f"- Recommendation: **{r.recommendation}**")
        md.append("")
    if snapshot.performance:
        perf = snapshot.performance
        md.append("## Build & Test Performance\n")
        md.append(f"- {_stats_line('Builds', perf.build_stats, perf.build_stats.builds_per_day)}")
        md.append(f"- {_stats_line('Tests', perf.test_stats, perf.test_stats.tests_per_day)}")
        md.append("")
    if summary and summary.get('recommendation'):
        md.append(f"> {summary['recommendation']}")
    return "\n".join(md).rstrip() + "\n"


def _performance_cells(snapshot: Snapshot) -> list:
    perf = snapshot.performance
    if perf is None:
        return ['', '', '', '']
    return [
        perf.build_stats.success_rate,
        perf.test_stats.success_rate,
        perf.build_stats.ai_correlation,
        perf.test_stats.ai_correlation,
    ]


def _csv_row(snapshot: Snapshot) -> list:
    p, q, r = snapshot.productivity, snapshot.quality, snapshot.roi
    return [
        snapshot.timestamp,
        p.actual_gain if p else '',
        p.perceived_gain if p else '',
        p.net_time_saved if p else '',
        q.overall_score if q else '',
        q.code_churn.rate if q else '',
        q.duplication.clone_rate if q else '',
        r.overall_roi if r else '',
        format_days(r.break_even_days) if r else '',
        r.recommendation if r else '',
    ] + _performance_cells(snapshot)


def render_csv(snapshot: Snapshot, history: Optional[List[Snapshot]] = None) -> str:
    """One row per snapshot: the history when given (newest first), otherwise just the snapshot."""
    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow(CSV_HEADER)
    for s in (history if history else [snapshot]):
        writer.writerow(_csv_row(s))
    return output.getvalue()


def render_json(snapshot: Snapshot, summary: Optional[dict] = None, history: Optional[List[Snapshot]] = None) -> str:
    """Export the snapshot (plus summary and history when given) as strict JSON. Infinite break-even is written as null."""
    doc: Dict[str, Any] = {'summary': {k: to_wire(v) for k, v in (summary or {}).items()}, 'details': snapshot.to_dict()}
    if history is not None:
        doc['history'] = [s.to_dict() for s in history]
    return json.dumps(doc, indent=2, allow_nan=False)


def render_html(
    snapshot: Snapshot,
    summary: Optional[dict] = None,
    history: Optional[List[Snapshot]] = None,
    generated_at: Optional[str] = None,
) -> str:
    from jinja2 import Environment, FileSystemLoader, select_autoescape

    env = Environment(loader=FileSystemLoader(TEMPLATE_DIR), autoescape=select_autoescape(['html', 'xml', 'html.j2']))
    env.filters['pct'] = _pct
    env.filters['days'] = format_days
    env.filters['ts'] = format_timestamp
    tmpl = env.get_template('report.html.j2')
    context = {
        'snapshot': snapshot,
        'summary': summary or {},
        'history': history or [],
        'generated_at': generated_at or format_timestamp(int(datetime.now(timezone.utc).timestamp() * 1000)),
    }
    return tmpl.render(**context)


def render(
    snapshot: Snapshot,
    fmt: str = 'text',
    summary: Optional[dict] = None,
    history: Optional[List[Snapshot]] = None,
    generated_at: Optional[str] = None,
) -> str:
    """Main render function. Unknown formats fall back to plain text."""
    fmt_l = (fmt or 'text').lower()
    if fmt_l in ('md', 'markdown'):
        return render_markdown(snapshot, summary)
    if fmt_l == 'csv':
        return render_csv(snapshot, history)
    if fmt_l in ('html', 'htm'):
        return render_html(snapshot, summary, history, generated_at)
    if fmt_l in ('json', 'js'):
        return render_json(snapshot, summary, history)
    return render_text(snapshot, summary)
