"""
Code quality analysis.
Derives churn, duplication, complexity and refactoring sub-scores from git metrics and a sample of
source files, and folds them into one overall score in [0, 1].
"""
from typing import List, Optional, Iterable
import hashlib
import logging
import re
from normalize.models import GitMetrics, SourceFile
from .models import (
    QualityMetrics,
    CodeChurn,
    Duplication,
    Complexity,
    Refactoring,
    TREND_INCREASING,
    TREND_STABLE,
    TREND_DECREASING,
)
from .utils import clamp, non_negative

logger = logging.getLogger(__name__)

# no collector measures these yet; fixed illustrative values
AI_VS_HUMAN_CHURN = 1.5
COPY_PASTE_RATIO = 0.3
REFACTORING_RATE = 0.15
AI_CODE_REFACTORED = 0.35

BLOCK_LINES = 5
MIN_BLOCK_CHARS = 50
MAX_DUPLICATION_FILES = 50
MAX_COMPLEXITY_FILES = 50
MAX_NESTING_FILES = 20
CHURN_WINDOW_SECONDS = 14 * 24 * 3600
TREND_TOLERANCE = 0.05

_DECISION_POINTS = [
    re.compile(r'\bif\b'),
    re.compile(r'\belse\s+if\b'),
    re.compile(r'\belif\b'),
    re.compile(r'\bfor\b'),
    re.compile(r'\bwhile\b'),
    re.compile(r'\bcase\b'),
    re.compile(r'\bcatch\b'),
    re.compile(r'\bexcept\b'),
    re.compile(r'&&'),
    re.compile(r'\|\|'),
    re.compile(r'\band\b'),
    re.compile(r'\bor\b'),
    re.compile(r'\?.*:'),
]

_AI_MARKERS = [
    re.compile(r'TODO: Implement', re.IGNORECASE),
    re.compile(r'Generated by', re.IGNORECASE),
    re.compile(r'console\.log\([\'"]Debug', re.IGNORECASE),
    re.compile(r'placeholder', re.IGNORECASE),
    re.compile(r'example\.com', re.IGNORECASE),
]

_INDENT_LANGUAGES = ('py', 'pyw')


def extract_code_blocks(text: str) -> List[str]:
    """Return every BLOCK_LINES-line window whose stripped text is longer than MIN_BLOCK_CHARS."""
    lines = text.split('\n')
    blocks = []
    for i in range(len(lines) - BLOCK_LINES + 1):
        block = '\n'.join(lines[i:i + BLOCK_LINES])
        if len(block.strip()) > MIN_BLOCK_CHARS:
            blocks.append(block)
    return blocks


def _hash_block(block: str) -> str:
    return hashlib.sha1(block.encode('utf-8')).hexdigest()


def calculate_clone_rate(texts: Iterable[str]) -> float:
    """Fraction of code blocks that repeat an earlier block (across all texts)."""
    seen = set()
    total = 0
    duplicated = 0
    for text in texts:
        for block in extract_code_blocks(text):
            digest = _hash_block(block)
            if digest in seen:
                duplicated += 1
            else:
                seen.add(digest)
            total += 1
    return duplicated / total if total else 0.0


def calculate_cyclomatic_complexity(text: str) -> int:
    """Approximate cyclomatic complexity: 1 plus the number of decision points."""
    complexity = 1
    for pattern in _DECISION_POINTS:
        complexity += len(pattern.findall(text))
    return complexity


def calculate_cognitive_load(total_complexity: float, file_count: int) -> int:
    """Map average complexity per file onto a 0-10 cognitive load scale."""
    if file_count <= 0:
        return 0
    avg = total_complexity / file_count
    if avg < 5:
        return 2
    if avg < 10:
        return 4
    if avg < 20:
        return 6
    if avg < 30:
        return 8
    return 10


def _brace_depths(text: str) -> List[int]:
    depths = []
    depth = 0
    for ch in text:
        if ch == '{':
            depth += 1
            depths.append(depth)
        elif ch == '}':
            depth = max(0, depth - 1)
    return depths


def _indent_depths(text: str) -> List[int]:
    # a line opening a block (ending in ':') counts at its indentation level + 1
    depths = []
    for line in text.split('\n'):
        stripped = line.rstrip()
        if not stripped.strip() or stripped.lstrip().startswith('#') or not stripped.endswith(':'):
            continue
        indent = len(stripped) - len(stripped.lstrip(' '))
        depths.append(indent // 4 + 1)
    return depths


def nesting_depths(source: SourceFile) -> List[int]:
    if source.language in _INDENT_LANGUAGES:
        return _indent_depths(source.text)
    return _brace_depths(source.text)


def is_likely_ai_generated(text: str) -> bool:
    return any(p.search(text) for p in _AI_MARKERS)


def file_churn(source: SourceFile) -> float:
    """Share of a recently created file's lifetime during which it kept being modified."""
    age = source.sampled_at - source.created_at
    if age <= 0 or age >= CHURN_WINDOW_SECONDS:
        return 0.0
    return clamp((source.modified_at - source.created_at) / age)


def calculate_trend(current: float, previous: Optional[float]) -> str:
    if previous is None:
        return TREND_STABLE
    change = current - previous
    if abs(change) < TREND_TOLERANCE:
        return TREND_STABLE
    return TREND_INCREASING if change > 0 else TREND_DECREASING


def calculate_quality_score(churn_rate: float, clone_rate: float, cyclomatic: float, ai_refactored: float) -> float:
    """Average of four penalties, each in [0, 1]; higher is better."""
    churn_penalty = max(0.0, 1 - churn_rate * 2)
    duplication_penalty = max(0.0, 1 - clone_rate * 3)
    complexity_penalty = max(0.0, 1 - cyclomatic / 50)
    refactoring_penalty = max(0.0, 1 - ai_refactored)
    return clamp((churn_penalty + duplication_penalty + complexity_penalty + refactoring_penalty) / 4)


class QualityAnalyzer:
    """Stateless code quality analyzer. Previous results are passed in, never remembered."""

    def analyze(
        self,
        git_metrics: Optional[GitMetrics] = None,
        sources: Optional[List[SourceFile]] = None,
        previous: Optional[QualityMetrics] = None,
    ) -> QualityMetrics:
        sources = list(sources or [])
        if git_metrics is None and not sources:
            return QualityMetrics()

        code_churn = self._analyze_churn(git_metrics, sources, previous)
        duplication = self._analyze_duplication(sources, previous)
        complexity = self._analyze_complexity(sources)
        refactoring = Refactoring(rate=REFACTORING_RATE, ai_code_refactored=AI_CODE_REFACTORED)

        overall = calculate_quality_score(
            code_churn.rate, duplication.clone_rate, complexity.cyclomatic_complexity, refactoring.ai_code_refactored
        )
        logger.debug(f"Quality analysis over {len(sources)} files: score={overall:.3f}")
        return QualityMetrics(
            code_churn=code_churn,
            duplication=duplication,
            complexity=complexity,
            refactoring=refactoring,
            overall_score=overall,
        )

    def _analyze_churn(self, git_metrics: Optional[GitMetrics], sources: List[SourceFile], previous: Optional[QualityMetrics]) -> CodeChurn:
        # git history is more accurate than file timestamps when available
        if git_metrics is not None:
            rate = clamp(git_metrics.churn_rate)
        elif sources:
            rate = sum(file_churn(s) for s in sources) / len(sources)
        else:
            rate = 0.0
        prev = previous.code_churn.rate if previous is not None else None
        return CodeChurn(rate=rate, trend=calculate_trend(rate, prev), ai_vs_human=AI_VS_HUMAN_CHURN)

    def _analyze_duplication(self, sources: List[SourceFile], previous: Optional[QualityMetrics]) -> Duplication:
        clone_rate = clamp(calculate_clone_rate(s.text for s in sources[:MAX_DUPLICATION_FILES]))
        before = previous.duplication.clone_rate if previous is not None else 0.0
        return Duplication(clone_rate=clone_rate, copy_paste_ratio=COPY_PASTE_RATIO, before_ai=before, after_ai=clone_rate)

    def _analyze_complexity(self, sources: List[SourceFile]) -> Complexity:
        sample = sources[:MAX_COMPLEXITY_FILES]
        total = 0
        ai_total = 0
        for s in sample:
            cc = calculate_cyclomatic_complexity(s.text)
            total += cc
            if is_likely_ai_generated(s.text):
                ai_total += cc

        depths: List[int] = []
        for s in sources[:MAX_NESTING_FILES]:
            depths.extend(nesting_depths(s))

        return Complexity(
            cyclomatic_complexity=non_negative(total / len(sample)) if sample else 0.0,
            cognitive_load=clamp(calculate_cognitive_load(total, len(sample)), 0, 10),
            nesting_depth=(sum(depths) / len(depths)) if depths else 0.0,
            ai_generated_complexity=non_negative(ai_total),
        )
