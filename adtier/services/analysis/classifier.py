"""
Ad Performance Classifier

Tiers (recomputed from scratch on every run):
    new       - launched within the last 7 days; checked first, overrides everything
    winner    - top N active ads by spend that hit the ROAS goal
    potential - next M active ads by spend that hit the ROAS goal,
                plus every significant paused ad that hit it
    loser     - everything else

N/M depend on the date window: last_30d ranks top 5 winners + 15 potential,
90-day and lifetime windows rank top 10 winners + 10 potential.
"""
import logging
from datetime import datetime, timedelta
from typing import Callable, List, Optional, Sequence, Tuple

from adtier.core.config import settings
from adtier.core.database import Database
from adtier.core.exceptions import ConfigError
from adtier.core.timeutils import ensure_aware, utcnow
from adtier.models.ad import FbAd
from adtier.models.brand import Brand
from adtier.models.enums import AdStatus, Classification, DateWindow
from adtier.schemas.analysis import (
    Benchmark,
    ClassificationCacheEntry,
    ClassificationCounts,
    ClassificationGoal,
    ClassificationSummary,
)
from adtier.services.analysis.benchmarks import calculate_benchmarks, is_significant
from adtier.services.analysis.cache import write_entry

logger = logging.getLogger(__name__)

NEW_AD_WINDOW = timedelta(days=7)

# Neutral goals when only one target (or neither, with no benchmark) is known
NO_CPA_CEILING = 999999.0
DEFAULT_ROAS_FLOOR = 1.0


def tier_caps(date_window: DateWindow) -> Tuple[int, int]:
    """(max_winners, max_potential) for a date window"""
    if DateWindow(date_window) is DateWindow.LAST_30D:
        return 5, 15
    return 10, 10


def resolve_goal(target_roas: Optional[float], target_cpa: Optional[float], benchmarks: Benchmark) -> ClassificationGoal:
    """
    Explicit brand targets win; with neither set, fall back to the account
    benchmark (avg ROAS, median CPA). A target that stays unset is neutralized.
    """
    roas = target_roas or 0
    cpa = target_cpa or 0

    if roas == 0 and cpa == 0:
        roas = benchmarks.avg_roas
        cpa = benchmarks.median_cpa

    if cpa <= 0:
        cpa = NO_CPA_CEILING
    if roas <= 0:
        roas = DEFAULT_ROAS_FLOOR

    return ClassificationGoal(target_roas=roas, target_cpa=cpa)


def is_new(ad, now: datetime) -> bool:
    created = ensure_aware(ad.fb_created_time)
    return created is not None and created > now - NEW_AD_WINDOW


def classify_ads(
    ads: Sequence,
    goal: ClassificationGoal,
    date_window: DateWindow,
    now: datetime,
) -> List[Classification]:
    """
    Pure tier assignment. Returns one Classification per input ad, in input order.

    Ranking sorts by spend descending; ties keep input order.
    """
    max_winners, max_potential = tier_caps(date_window)
    tiers = [Classification.LOSER] * len(ads)

    active: List[int] = []
    paused: List[int] = []
    for i, ad in enumerate(ads):
        if is_new(ad, now):
            tiers[i] = Classification.NEW
        elif is_significant(ad):
            if ad.status == AdStatus.ACTIVE.value:
                active.append(i)
            elif ad.status == AdStatus.PAUSED.value:
                paused.append(i)

    active.sort(key=lambda i: ads[i].spend, reverse=True)

    winners = potentials = 0
    for i in active:
        if (ads[i].roas or 0) < goal.target_roas:
            continue
        if winners < max_winners:
            tiers[i] = Classification.WINNER
            winners += 1
        elif potentials < max_potential:
            tiers[i] = Classification.POTENTIAL
            potentials += 1

    # A paused ad that hit goal is still a reusable reference pattern
    for i in paused:
        if (ads[i].roas or 0) >= goal.target_roas:
            tiers[i] = Classification.POTENTIAL

    return tiers


class ClassifierService:
    """Loads a brand's ads, classifies them and persists tiers + a cache snapshot atomically."""

    def __init__(
        self,
        db: Database,
        cache_ttl: Optional[timedelta] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.db = db
        self.cache_ttl = cache_ttl or timedelta(hours=settings.CLASSIFICATION_CACHE_TTL_HOURS)
        self.clock = clock

    def classify(self, brand_id: int, date_window: DateWindow = DateWindow.LAST_90D) -> ClassificationSummary:
        date_window = DateWindow(date_window)
        now = self.clock()

        with self.db.session_scope() as session:
            brand = session.get(Brand, brand_id)
            if brand is None:
                raise ConfigError(f"Brand {brand_id} not found")

            ads = session.query(FbAd).filter(FbAd.brand_id == brand_id).order_by(FbAd.id).all()

            benchmarks = calculate_benchmarks(ads)
            goal = resolve_goal(brand.target_roas, brand.target_cpa, benchmarks)
            tiers = classify_ads(ads, goal, date_window, now)

            counts = ClassificationCounts()
            for ad, tier in zip(ads, tiers):
                if ad.classification != tier:
                    ad.classification = tier
                setattr(counts, tier.value, getattr(counts, tier.value) + 1)

            write_entry(
                session,
                brand_id,
                ClassificationCacheEntry(
                    benchmarks=benchmarks,
                    counts=counts,
                    goals=goal,
                    date_window=date_window.value,
                    timestamp=now,
                ),
                ttl=self.cache_ttl,
                now=now,
            )

        logger.info(
            f"Classified {len(ads)} ads for brand {brand_id} ({date_window.value}): "
            f"{counts.winner} winner, {counts.potential} potential, "
            f"{counts.new} new, {counts.loser} loser"
        )

        return ClassificationSummary(
            brand_id=brand_id,
            date_window=date_window.value,
            benchmarks=benchmarks,
            classifications=counts,
            goals=goal,
            total_classified=len(ads),
        )
