from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

from adtier.core.exceptions import ConfigError
from adtier.core.timeutils import ensure_aware
from adtier.models import AnalysisCache, AnalysisType, Classification, FbAd
from adtier.models.enums import DateWindow
from adtier.schemas.analysis import Benchmark, ClassificationCacheEntry, ClassificationGoal
from adtier.services.analysis.cache import read_entry
from adtier.services.analysis.classifier import (
    DEFAULT_ROAS_FLOOR,
    NO_CPA_CEILING,
    ClassifierService,
    classify_ads,
    resolve_goal,
    tier_caps,
)
from tests.conftest import create_brand

NOW = datetime(2026, 6, 1, 12, tzinfo=timezone.utc)
GOAL = ClassificationGoal(target_roas=2.0, target_cpa=NO_CPA_CEILING)

W, P, L, N = Classification.WINNER, Classification.POTENTIAL, Classification.LOSER, Classification.NEW


def ad(spend=100.0, roas=3.0, purchases=5, status="ACTIVE", age_days=30):
    return SimpleNamespace(
        spend=spend,
        roas=roas,
        purchases=purchases,
        status=status,
        fb_created_time=NOW - timedelta(days=age_days),
    )


def descending(count, top=5000.0, step=100.0, **kwargs):
    return [ad(spend=top - i * step, **kwargs) for i in range(count)]


# ========================================
# Goal resolution
# ========================================

def test_goal_falls_back_to_benchmarks():
    goal = resolve_goal(0, 0, Benchmark(avg_roas=2.0, median_cpa=18))
    assert (goal.target_roas, goal.target_cpa) == (2.0, 18)


def test_explicit_goal_wins_over_benchmarks():
    goal = resolve_goal(3.5, 25, Benchmark(avg_roas=2.0, median_cpa=18))
    assert (goal.target_roas, goal.target_cpa) == (3.5, 25)


def test_single_target_neutralizes_the_other():
    assert resolve_goal(3.0, 0, Benchmark(avg_roas=9, median_cpa=9)).target_cpa == NO_CPA_CEILING
    assert resolve_goal(None, 30, Benchmark(avg_roas=9, median_cpa=9)).target_roas == DEFAULT_ROAS_FLOOR


def test_no_targets_and_empty_benchmark():
    goal = resolve_goal(0, 0, Benchmark())
    assert (goal.target_roas, goal.target_cpa) == (DEFAULT_ROAS_FLOOR, NO_CPA_CEILING)


def test_tier_caps():
    assert tier_caps(DateWindow.LAST_30D) == (5, 15)
    assert tier_caps(DateWindow.LAST_90D) == (10, 10)
    assert tier_caps("lifetime") == (10, 10)


# ========================================
# Tier assignment
# ========================================

def test_every_ad_gets_exactly_one_tier():
    ads = descending(30) + [ad(purchases=0), ad(status="PAUSED"), ad(age_days=1), ad(roas=0.5)]
    tiers = classify_ads(ads, GOAL, DateWindow.LAST_90D, NOW)
    assert len(tiers) == len(ads)
    assert set(tiers) <= {W, P, L, N}


def test_new_ads_take_priority():
    ads = [ad(spend=99999, roas=50, age_days=2), ad(spend=1, purchases=0, age_days=6)]
    assert classify_ads(ads, GOAL, DateWindow.LAST_90D, NOW) == [N, N]


def test_ad_just_past_new_window_is_ranked():
    assert classify_ads([ad(age_days=8)], GOAL, DateWindow.LAST_90D, NOW) == [W]


def test_unknown_launch_date_is_not_new():
    unknown = ad()
    unknown.fb_created_time = None
    assert classify_ads([unknown], GOAL, DateWindow.LAST_90D, NOW) == [W]


def test_naive_launch_date_is_treated_as_utc():
    naive = ad()
    naive.fb_created_time = (NOW - timedelta(days=1)).replace(tzinfo=None)
    assert classify_ads([naive], GOAL, DateWindow.LAST_90D, NOW) == [N]


def test_last_30d_top_five_by_spend_with_stable_ties():
    ads = [ad(spend=500) for _ in range(8)]
    tiers = classify_ads(ads, GOAL, DateWindow.LAST_30D, NOW)
    assert tiers == [W, W, W, W, W, P, P, P]


def test_winners_ranked_by_spend_not_input_order():
    ads = [ad(spend=s) for s in (10, 60, 20, 50, 30, 40)]
    tiers = classify_ads(ads, GOAL, DateWindow.LAST_30D, NOW)
    # Lowest spender is the only one outside the top five
    assert tiers == [P, W, W, W, W, W]


def test_last_30d_potential_cap():
    tiers = classify_ads(descending(25), GOAL, DateWindow.LAST_30D, NOW)
    assert tiers == [W] * 5 + [P] * 15 + [L] * 5


def test_lifetime_eleven_ads():
    tiers = classify_ads(descending(11), GOAL, DateWindow.LIFETIME, NOW)
    assert tiers == [W] * 10 + [P]


def test_lifetime_twelve_ads():
    tiers = classify_ads(descending(12), GOAL, DateWindow.LIFETIME, NOW)
    assert tiers == [W] * 10 + [P] * 2


def test_lifetime_twenty_one_ads():
    tiers = classify_ads(descending(21), GOAL, DateWindow.LIFETIME, NOW)
    assert tiers == [W] * 10 + [P] * 10 + [L]


def test_below_goal_ads_do_not_consume_slots():
    ads = [ad(spend=1000, roas=1.0)] + descending(5, top=900)
    tiers = classify_ads(ads, GOAL, DateWindow.LAST_30D, NOW)
    assert tiers == [L, W, W, W, W, W]


def test_insignificant_ads_are_losers():
    ads = [ad(spend=9.0, roas=10), ad(purchases=0, roas=10)]
    assert classify_ads(ads, GOAL, DateWindow.LAST_90D, NOW) == [L, L]


def test_paused_ads_meeting_goal_are_potential_without_cap():
    paused = [ad(status="PAUSED") for _ in range(15)]
    tiers = classify_ads(paused, GOAL, DateWindow.LAST_30D, NOW)
    assert tiers == [P] * 15


def test_paused_ads_below_goal_or_insignificant_are_losers():
    ads = [ad(status="PAUSED", roas=1.5), ad(status="PAUSED", purchases=0)]
    assert classify_ads(ads, GOAL, DateWindow.LAST_90D, NOW) == [L, L]


def test_other_statuses_are_losers():
    ads = [ad(status="ARCHIVED"), ad(status="DELETED")]
    assert classify_ads(ads, GOAL, DateWindow.LAST_90D, NOW) == [L, L]


def test_reclassification_starts_from_scratch():
    ads = descending(3)
    assert classify_ads(ads, GOAL, DateWindow.LAST_90D, NOW) == [W, W, W]
    ads[0].status = "PAUSED"
    ads[1].roas = 0.1
    assert classify_ads(ads, GOAL, DateWindow.LAST_90D, NOW) == [P, L, W]


# ========================================
# Service
# ========================================

def test_service_persists_tiers_and_cache(db, make_ad):
    brand = create_brand(db, name="Goals", target_roas=2.0)
    ids = [
        make_ad(brand_id=brand, fb_ad_id="big", spend=5000, roas=3.0),
        make_ad(brand_id=brand, fb_ad_id="weak", spend=4000, roas=1.0),
        make_ad(brand_id=brand, fb_ad_id="fresh", spend=10, roas=0, purchases=0,
                fb_created_time=NOW - timedelta(days=1)),
    ]

    service = ClassifierService(db, clock=lambda: NOW)
    summary = service.classify(brand, DateWindow.LAST_90D)

    assert summary.total_classified == 3
    assert summary.goals.target_roas == 2.0
    assert summary.goals.target_cpa == NO_CPA_CEILING
    assert summary.classifications.model_dump() == {"winner": 1, "potential": 0, "loser": 1, "new": 1}

    with db.session_scope() as session:
        tiers = {
            ad.fb_ad_id: ad.classification
            for ad in session.query(FbAd).filter(FbAd.fb_ad_id.in_(ids))
        }
        assert tiers == {"big": W, "weak": L, "fresh": N}

        row = session.query(AnalysisCache).filter(AnalysisCache.brand_id == brand).one()
        assert ensure_aware(row.expires_at) == NOW + timedelta(hours=6)

        entry = read_entry(session, brand, AnalysisType.CLASSIFICATION, now=NOW)
        assert isinstance(entry, ClassificationCacheEntry)
        assert entry.counts.winner == 1
        assert entry.date_window == "last_90d"
        assert entry.timestamp == NOW
        assert read_entry(session, brand, AnalysisType.CLASSIFICATION, now=NOW + timedelta(hours=7)) is None


def test_reclassifying_keeps_one_cache_row(db, brand_id, make_ad):
    make_ad(spend=500, roas=4.0)
    service = ClassifierService(db, clock=lambda: NOW)

    service.classify(brand_id)
    service.classify(brand_id)
    service.classify(brand_id, DateWindow.LAST_30D)

    with db.session_scope() as session:
        (row,) = session.query(AnalysisCache).filter(AnalysisCache.brand_id == brand_id).all()
        assert read_entry(session, brand_id, AnalysisType.CLASSIFICATION, now=NOW).date_window == "last_30d"


def test_service_uses_benchmark_goal_when_unset(db, brand_id, make_ad):
    make_ad(spend=100, cpa=10, roas=1.0)
    make_ad(spend=100, cpa=20, roas=3.0)
    make_ad(spend=100, cpa=30, roas=5.0)

    summary = ClassifierService(db).classify(brand_id)

    assert summary.benchmarks.median_cpa == 20
    assert summary.goals.target_roas == pytest.approx(3.0)
    assert summary.classifications.winner == 2
    assert summary.classifications.loser == 1


def test_service_unknown_brand(db):
    with pytest.raises(ConfigError):
        ClassifierService(db).classify(999)
