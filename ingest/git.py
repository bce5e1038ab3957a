"""
Git churn collector.
Reads recent history with the git CLI and reports the share of changed lines that were deletions
(rework) plus basic commit activity.
"""
from typing import List, Optional, Tuple
from datetime import datetime, timedelta, timezone
from pathlib import Path
import logging
import subprocess
from normalize.models import GitMetrics

logger = logging.getLogger(__name__)


def _run_git(repo_root: Path, args: List[str]) -> Optional[str]:
    try:
        completed = subprocess.run(
            ["git", "-C", str(repo_root), *args],
            check=False,
            capture_output=True,
            text=True,
            encoding="utf-8",
        )
    except OSError as ex:
        logger.debug(f"git unavailable: {ex}")
        return None
    if completed.returncode != 0:
        return None
    return completed.stdout


def parse_numstat(output: str) -> Tuple[int, int]:
    """Sum added/deleted line counts from `git log --numstat` output; binary entries ('-') are skipped."""
    added = 0
    deleted = 0
    for line in (output or '').splitlines():
        parts = line.split('\t')
        if len(parts) < 2:
            continue
        if parts[0].isdigit():
            added += int(parts[0])
        if parts[1].isdigit():
            deleted += int(parts[1])
    return added, deleted


def commit_frequency(timestamps: List[float]) -> float:
    """Commits per day between the oldest and newest commit (0 with fewer than two commits)."""
    if len(timestamps) < 2:
        return 0.0
    days = (max(timestamps) - min(timestamps)) / 86400
    return len(timestamps) / days if days > 0 else 0.0


class GitChurnCollector:
    """Collect churn for the repository containing repo_path over the last window_days."""

    def __init__(self, repo_path: str, window_days: int = 14, max_commits: int = 100):
        self.repo_root = Path(repo_path)
        self.window_days = window_days
        self.max_commits = max_commits

    def is_repo(self) -> bool:
        output = _run_git(self.repo_root, ["rev-parse", "--is-inside-work-tree"])
        return output is not None and output.strip().lower() == "true"

    def analyze(self, now: Optional[datetime] = None) -> Optional[GitMetrics]:
        """Return GitMetrics, or None when repo_path is not inside a git work tree."""
        if not self.is_repo():
            logger.info(f"{self.repo_root} is not a git repository; skipping churn analysis")
            return None
        now = now or datetime.now(timezone.utc)
        since = (now - timedelta(days=self.window_days)).strftime('%Y-%m-%d %H:%M:%S %z')

        numstat = _run_git(self.repo_root, ["log", "--numstat", f"--since={since}", "--format="]) or ''
        added, deleted = parse_numstat(numstat)
        changed = added + deleted

        log = _run_git(self.repo_root, ["log", f"--max-count={self.max_commits}", "--format=%ct"]) or ''
        timestamps = [float(t) for t in log.split() if t.isdigit()]

        status = _run_git(self.repo_root, ["status", "--porcelain"]) or ''
        branch = (_run_git(self.repo_root, ["rev-parse", "--abbrev-ref", "HEAD"]) or '').strip()

        return GitMetrics(
            churn_rate=deleted / changed if changed > 0 else 0.0,
            recent_commits=len(timestamps),
            uncommitted_changes=len([line for line in status.splitlines() if line.strip()]),
            current_branch=branch,
            commit_frequency=commit_frequency(timestamps),
            lines_added=added,
            lines_deleted=deleted,
        )
