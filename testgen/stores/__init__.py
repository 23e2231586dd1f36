"""Persistent stores used between runs."""

from .analysis_cache import AnalysisCache

__all__ = ["AnalysisCache"]
