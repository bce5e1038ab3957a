"""
Ingest package: turn raw collector logs, git history and workspace files into collector output records.
"""

from .events import summarize_ai_events, summarize_time_sessions, summarize_code_changes
from .git import GitChurnCollector
from .workspace import sample_workspace

__all__ = ["summarize_ai_events", "summarize_time_sessions", "summarize_code_changes", "GitChurnCollector", "sample_workspace"]
