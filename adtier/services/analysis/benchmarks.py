"""
Account benchmarks: statistical baselines used as fallback classification goals
"""
from typing import Iterable, List, Sequence

from adtier.schemas.analysis import Benchmark

# Below this spend CPA/ROAS are too noisy to rank on
MIN_SIGNIFICANT_SPEND = 10.0
MIN_SIGNIFICANT_PURCHASES = 1


def is_significant(ad) -> bool:
    """purchases >= 1 and spend >= 10"""
    return (ad.purchases or 0) >= MIN_SIGNIFICANT_PURCHASES and (ad.spend or 0) >= MIN_SIGNIFICANT_SPEND


def median(values: Sequence[float]) -> float:
    """Median; even-length inputs average the two middle values. 0 for empty input."""
    ordered = sorted(values)
    if not ordered:
        return 0.0
    mid = len(ordered) // 2
    if len(ordered) % 2 == 0:
        return (ordered[mid - 1] + ordered[mid]) / 2
    return float(ordered[mid])


def _positive_mean(values: List[float]) -> float:
    positive = [v for v in values if v > 0]
    return sum(positive) / len(positive) if positive else 0.0


def calculate_benchmarks(ads: Iterable) -> Benchmark:
    """
    Baseline over the significant subset of `ads`.

    Spend and CPA use the median so one huge-spend ad cannot skew them.
    CTR and ROAS average only positive values: zero usually means "no data".
    """
    qualifying = [ad for ad in ads if is_significant(ad)]
    if not qualifying:
        return Benchmark()

    return Benchmark(
        median_spend=median([ad.spend for ad in qualifying]),
        median_cpa=median([ad.cpa for ad in qualifying if (ad.cpa or 0) > 0]),
        avg_ctr=_positive_mean([ad.ctr or 0 for ad in qualifying]),
        avg_roas=_positive_mean([ad.roas or 0 for ad in qualifying]),
        total_ads=len(qualifying),
    )
