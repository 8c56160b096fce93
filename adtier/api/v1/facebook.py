"""
Facebook sync & classification API endpoints

Thin boundary over the sync pipeline; failures surface through the
exception handlers registered in adtier.main.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query

from adtier.core.deps import get_coordinator
from adtier.models.enums import DateWindow
from adtier.schemas.analysis import ClassificationSummary
from adtier.schemas.common import DataResponse, ListResponse
from adtier.schemas.sync import (
    DailyInsightsSummary,
    EnrichmentCandidate,
    SyncPerformanceResult,
    SyncStatusResponse,
    SyncSummary,
)
from adtier.services.facebook.scheduled_sync import ScheduledSyncCoordinator

router = APIRouter(prefix="/facebook", tags=["Facebook"])


# ========================================
# Sync Endpoints
# ========================================

@router.post("/sync/{brand_id}", response_model=DataResponse[SyncSummary])
async def sync_brand(
    brand_id: int,
    date_window: DateWindow = Query(DateWindow.LAST_90D),
    coordinator: ScheduledSyncCoordinator = Depends(get_coordinator),
):
    """Pull all ads for the brand's account and upsert them"""
    summary = await coordinator.sync_brand(brand_id, date_window)
    return DataResponse(
        message=f"Synced {summary.synced}/{summary.total_ads} ads",
        data=summary,
    )


@router.post("/daily-insights/{brand_id}", response_model=DataResponse[DailyInsightsSummary])
async def sync_daily_insights(
    brand_id: int,
    date_window: DateWindow = Query(DateWindow.LAST_30D),
    coordinator: ScheduledSyncCoordinator = Depends(get_coordinator),
):
    """Pull day-by-day insights for the brand's active ads"""
    summary = await coordinator.sync_daily_insights(brand_id, date_window)
    return DataResponse(data=summary)


@router.post("/classify/{brand_id}", response_model=DataResponse[ClassificationSummary])
def classify_ads(
    brand_id: int,
    date_window: DateWindow = Query(DateWindow.LAST_90D),
    coordinator: ScheduledSyncCoordinator = Depends(get_coordinator),
):
    """Recompute performance tiers for every ad of the brand"""
    return DataResponse(data=coordinator.classify(brand_id, date_window))


# ========================================
# Scheduled Processing
# ========================================

@router.post("/scheduled/sync-performance/{brand_id}", response_model=DataResponse[SyncPerformanceResult])
async def sync_performance(
    brand_id: int,
    enrichment_limit: Optional[int] = Query(None, ge=1, le=100),
    coordinator: ScheduledSyncCoordinator = Depends(get_coordinator),
):
    """Sync, reclassify, detect breakouts and hand new ads to enrichment (cron / webhook trigger)"""
    result = await coordinator.sync_performance(brand_id, enrichment_limit)
    return DataResponse(
        message=f"{len(result.breakout_ads)} breakout ads detected",
        data=result,
    )


@router.get("/ads/{brand_id}/needs-enrichment", response_model=ListResponse[EnrichmentCandidate])
def ads_needing_enrichment(
    brand_id: int,
    limit: int = Query(20, ge=1, le=200),
    coordinator: ScheduledSyncCoordinator = Depends(get_coordinator),
):
    """Video ads still missing a transcript or visual description, by priority"""
    ads = coordinator.ads_needing_enrichment(brand_id, limit)
    return ListResponse(data=ads, total=len(ads))


@router.get("/status/{brand_id}", response_model=DataResponse[SyncStatusResponse])
def sync_status(
    brand_id: int,
    coordinator: ScheduledSyncCoordinator = Depends(get_coordinator),
):
    """Last sync time and enrichment coverage"""
    return DataResponse(data=coordinator.get_sync_status(brand_id))
