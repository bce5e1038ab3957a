"""
Normalize package: collector output records and helpers to build them from raw payloads.
"""

from .models import AIEventMetrics, TimeMetrics, CodeMetrics, GitMetrics, SourceFile, CollectorInputs, Duration

__all__ = ["AIEventMetrics", "TimeMetrics", "CodeMetrics", "GitMetrics", "SourceFile", "CollectorInputs", "Duration"]
