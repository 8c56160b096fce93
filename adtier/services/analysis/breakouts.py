"""
Breakout detection: diff two spend snapshots to catch ads the platform has
started scaling.
"""
import logging
from typing import Dict, Iterable, List

from adtier.models.enums import BreakoutType
from adtier.schemas.analysis import BreakoutEvent

logger = logging.getLogger(__name__)

BREAKOUT_SPEND_INCREASE_PCT = 300.0
BREAKOUT_SPEND_THRESHOLD = 5000.0
BREAKOUT_MIN_SPEND = 1000.0


def detect_breakouts(previous_spend: Dict[str, float], current_ads: Iterable) -> List[BreakoutEvent]:
    """
    Compare current ads against a pre-sync {fb_ad_id: spend} snapshot.

    Only ads spending more than BREAKOUT_MIN_SPEND are considered. An ad can
    produce both a spend_increase and a threshold_crossed event. Ads absent
    from the snapshot have no baseline and are never flagged.
    """
    candidates = [ad for ad in current_ads if (ad.spend or 0) > BREAKOUT_MIN_SPEND]
    candidates.sort(key=lambda ad: ad.spend, reverse=True)

    breakouts: List[BreakoutEvent] = []
    for ad in candidates:
        prev = previous_spend.get(ad.fb_ad_id)
        if prev is None:
            continue

        if prev > 0:
            increase_pct = (ad.spend - prev) / prev * 100
            if increase_pct >= BREAKOUT_SPEND_INCREASE_PCT:
                breakouts.append(BreakoutEvent(
                    ad_id=ad.fb_ad_id,
                    type=BreakoutType.SPEND_INCREASE,
                    ad_name=ad.ad_name,
                    previous_spend=prev,
                    current_spend=ad.spend,
                    percent_increase=round(increase_pct, 1),
                    roas=ad.roas or 0,
                    cpa=ad.cpa or 0,
                ))

        if prev < BREAKOUT_SPEND_THRESHOLD <= ad.spend:
            breakouts.append(BreakoutEvent(
                ad_id=ad.fb_ad_id,
                type=BreakoutType.THRESHOLD_CROSSED,
                ad_name=ad.ad_name,
                previous_spend=prev,
                current_spend=ad.spend,
                threshold=BREAKOUT_SPEND_THRESHOLD,
                roas=ad.roas or 0,
                cpa=ad.cpa or 0,
            ))

    for event in breakouts:
        name = (event.ad_name or event.ad_id)[:50]
        if event.type == BreakoutType.SPEND_INCREASE:
            logger.info(
                f"Breakout: {name} +{event.percent_increase:.0f}% "
                f"({event.previous_spend:.2f} -> {event.current_spend:.2f})"
            )
        else:
            logger.info(f"Breakout: {name} crossed {event.threshold:.0f} spend")

    return breakouts
