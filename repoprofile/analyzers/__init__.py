"""Analyzers that turn repository contents into confidence-scored signals."""

from .base import Analyzer, PerformanceMetrics
from .frameworks import FrameworkAnalyzer
from .language import LanguageDetector
from .team import TeamAnalytics

__all__ = [
    "Analyzer",
    "FrameworkAnalyzer",
    "LanguageDetector",
    "PerformanceMetrics",
    "TeamAnalytics",
]
