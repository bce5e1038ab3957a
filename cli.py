"""
CLI entry point for ai_impact_metrics. Wires the pipeline: collect -> normalize -> score -> store -> report
"""

import argparse
import logging
import webbrowser
import os
import sys
import json
from datetime import datetime, timezone
from pipeline import MetricsPipeline, load_inputs, build_report
from dashboard import Dashboard
from report.renderer import render
from scoring.utils import load_config, list_presets, MODES
from storage.store import MetricsStore, StorageError

DEFAULT_DB = os.getenv("AIMETRICS_DB") or "ai_metrics.db"
FILE_FORMATS = ("html", "md", "csv", "json")

logger = logging.getLogger(__name__)


def _print_json(obj):
    print(json.dumps(obj, indent=2, default=str, allow_nan=False))


def _open_file_in_browser(path: str):
    """Open a file URL in the system default web browser."""
    webbrowser.open("file://" + os.path.abspath(path))


def _write_report_file(out_path: str, ext: str, content: str, open_html: bool = False) -> str:
    """Write the rendered content to a file and optionally open HTML in the browser."""
    out_path = out_path if out_path.lower().endswith(f".{ext}") else f"{out_path}.{ext}"
    out_dir = os.path.dirname(out_path)
    if out_dir:
        os.makedirs(out_dir, exist_ok=True)
    # newline='' is safe for CSV on Windows and harmless for other formats
    with open(out_path, 'w', encoding='utf-8', newline='') as fh:
        fh.write(content)
    print(f"Wrote report to {out_path}")
    if open_html:
        try:
            _open_file_in_browser(out_path)
        except webbrowser.Error:
            print('Failed to open browser automatically; file saved at', out_path)
    return out_path


def write_output(fmt: str, rendered: str, args):
    """Write file formats to disk (default name when --out-file is empty); print everything else."""
    if fmt not in FILE_FORMATS:
        print(rendered)
        return
    out_path = args.out_file.strip() or f"ai_metrics_report_{datetime.now(timezone.utc).strftime('%Y%m%dT%H%M%SZ')}"
    _write_report_file(out_path, fmt, rendered, open_html=(args.open and fmt == "html"))


def _clear_store(store: MetricsStore, force: bool):
    if not force:
        confirm = input(f"Are you sure you want to clear the metrics store at {store.path}? This cannot be undone. [y/N]: ")
        if confirm.strip().lower() not in ("y", "yes"):
            print("Aborted store clear.")
            return
    store.clear_all()
    print(f"Cleared metrics store at {store.path}")


def _print_history(store: MetricsStore, count: int):
    _print_json([s.to_dict() for s in store.get_metrics_history(count)])


def _handle_store_actions(args, store: MetricsStore) -> bool:
    """Process store inspection/management flags. Returns True when an action ran and the CLI should exit."""
    flag_actions = [
        (args.stats, lambda: _print_json(store.stats())),
        (args.clear, lambda: _clear_store(store, args.force)),
        (args.export, lambda: print(store.export_data())),
        (args.latest, lambda: _print_json(store.get_latest_metrics().to_dict())),
        (args.history is not None, lambda: _print_history(store, args.history)),
    ]
    for enabled, handler in flag_actions:
        if enabled:
            handler()
            return True
    return False


def _config_overrides(args) -> dict:
    overrides = {}
    if args.mode:
        overrides['mode'] = args.mode
    if args.hourly_rate is not None:
        overrides['hourly_rate'] = args.hourly_rate
    if args.license_cost is not None:
        overrides['license_cost'] = args.license_cost
    return overrides


def run_pipeline(args, store: MetricsStore, config):
    """Analyze --input (when given) or reuse the latest stored snapshot, then render it. Returns (fmt, rendered)."""
    fmt = (args.output or "text").lower()
    pipeline = MetricsPipeline(store, config)
    if args.dashboard:
        dashboard = Dashboard(store, config)
        if args.input:
            inputs = load_inputs(args.input)
            dashboard.register_refresh(lambda: pipeline.collect(inputs))
            dashboard.refresh()
        return fmt, dashboard.render(fmt)

    if args.input:
        snapshot = pipeline.collect(load_inputs(args.input))
    else:
        snapshot = store.get_latest_metrics()
    report = build_report(snapshot)
    rendered = render(snapshot, fmt=fmt, summary=report['summary'], generated_at=datetime.now(timezone.utc).isoformat())
    return fmt, rendered


def main():
    parser = argparse.ArgumentParser(description="AI Impact Metrics CLI")
    parser.add_argument("--db", type=str, default=DEFAULT_DB, help=f"Path to the SQLite metrics store (default {DEFAULT_DB}, env AIMETRICS_DB)")
    parser.add_argument("--input", type=str, default="", help="Path to a JSON collector dump to analyze and store")
    parser.add_argument("--output", type=str, help="Output format (text, md, csv, json, html)", default="text")
    parser.add_argument("--out-file", type=str, default="", help="Output file path (for HTML/CSV/MD/JSON). If omitted a default name will be used")
    parser.add_argument("--open", action="store_true", help="Open the generated HTML report in the default browser")
    parser.add_argument("--dashboard", action="store_true", help="Render the dashboard view (latest snapshot plus history)")
    parser.add_argument("--latest", action="store_true", help="Print the latest stored snapshot as JSON")
    parser.add_argument("--history", type=int, default=None, help="Print the N most recent stored snapshots as JSON")
    parser.add_argument("--export", action="store_true", help="Print all stored data as JSON")
    parser.add_argument("--stats", action="store_true", help="Show metrics store statistics")
    parser.add_argument("--clear", action="store_true", help="Clear the metrics store")
    parser.add_argument("--force", action="store_true", help="Force actions without confirmation (use with --clear)")
    parser.add_argument("--feedback", type=float, default=None, help="Record a developer satisfaction rating (1-5)")
    parser.add_argument("--comment", type=str, default="", help="Comment stored with --feedback")
    parser.add_argument("--config", type=str, default="", help="Path to scoring YAML (default config/scoring.yaml)")
    parser.add_argument("--preset", type=str, default="", help="Named preset from the scoring YAML")
    parser.add_argument("--list-presets", action="store_true", help="List presets available in the scoring YAML")
    parser.add_argument("--mode", type=str, choices=MODES, default=None, help="Productivity strategy")
    parser.add_argument("--hourly-rate", type=float, default=None, help="Developer hourly rate (overrides config and AIMETRICS_HOURLY_RATE)")
    parser.add_argument("--license-cost", type=float, default=None, help="Monthly license cost per seat (overrides config and AIMETRICS_LICENSE_COST)")
    parser.add_argument("--log-level", type=str, default="WARNING", help="Logging level (DEBUG, INFO, WARNING, ERROR)")
    args = parser.parse_args()

    logging.basicConfig(level=getattr(logging, args.log_level.upper(), logging.WARNING), format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    if args.list_presets:
        _print_json(list_presets(args.config or None))
        return

    try:
        config = load_config(args.config or None, preset=args.preset or None, overrides=_config_overrides(args))
    except ValueError as e:
        print(f"Invalid configuration: {e}")
        sys.exit(1)

    try:
        with MetricsStore(args.db) as store:
            if _handle_store_actions(args, store):
                return
            if args.feedback is not None:
                MetricsPipeline(store, config).record_feedback(args.feedback, args.comment)
                print(f"Recorded feedback rating {args.feedback:g}")
                return
            fmt, rendered = run_pipeline(args, store, config)
            write_output(fmt, rendered, args)
    except (StorageError, ValueError, OSError) as e:
        logger.error(f"ai_impact_metrics failed: {e}")
        print(f"Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
