"""
Scoring package: quality, productivity, ROI and build/test performance analyzers over collector metrics.
"""

from .quality import QualityAnalyzer
from .productivity import ProductivityAnalyzer, ComputedStrategy, FixedExampleStrategy
from .roi import ROICalculator
from .performance import PerformanceAnalyzer
from .utils import ScoringConfig, load_config

__all__ = ["QualityAnalyzer", "ProductivityAnalyzer", "ComputedStrategy", "FixedExampleStrategy", "ROICalculator", "PerformanceAnalyzer", "ScoringConfig", "load_config"]
