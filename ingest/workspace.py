"""
Workspace sampler: collect recently modified source files for quality analysis.
"""
from typing import List, Optional
from pathlib import Path
import logging
import os
import time
from normalize.models import SourceFile

logger = logging.getLogger(__name__)

SOURCE_EXTENSIONS = ('.ts', '.js', '.py', '.java')
SKIP_DIRS = {'node_modules', '.git', '.venv', 'venv', '__pycache__', 'dist', 'build'}


def _iter_source_paths(root: Path):
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = [d for d in dirnames if d not in SKIP_DIRS]
        for name in filenames:
            if name.endswith(SOURCE_EXTENSIONS):
                yield Path(dirpath) / name


def sample_workspace(root: str, now: Optional[float] = None, window_days: float = 14, max_files: int = 50) -> List[SourceFile]:
    """
    Return up to max_files source files modified within window_days, newest first.
    Unreadable files are skipped.
    """
    now = now if now is not None else time.time()
    cutoff = now - window_days * 86400
    candidates = []
    for path in _iter_source_paths(Path(root)):
        try:
            st = path.stat()
        except OSError:
            continue
        if st.st_mtime >= cutoff:
            candidates.append((st.st_mtime, path, st))
    candidates.sort(key=lambda c: c[0], reverse=True)

    sources: List[SourceFile] = []
    for mtime, path, st in candidates[:max_files]:
        try:
            text = path.read_text(encoding='utf-8', errors='replace')
        except OSError as ex:
            logger.debug(f"Skipping unreadable file {path}: {ex}")
            continue
        created = getattr(st, 'st_birthtime', st.st_ctime)
        sources.append(SourceFile(path=str(path), text=text, created_at=min(created, mtime), modified_at=mtime, sampled_at=now))
    logger.debug(f"Sampled {len(sources)} source files under {root}")
    return sources
