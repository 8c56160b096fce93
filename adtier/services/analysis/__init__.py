# Analysis - benchmarks, tier classification, breakout detection
from adtier.services.analysis.benchmarks import calculate_benchmarks
from adtier.services.analysis.breakouts import detect_breakouts
from adtier.services.analysis.classifier import ClassifierService, classify_ads

__all__ = [
    "calculate_benchmarks",
    "detect_breakouts",
    "ClassifierService",
    "classify_ads",
]
