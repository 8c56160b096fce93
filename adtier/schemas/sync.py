"""
Sync pipeline result schemas
"""
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel

from adtier.schemas.analysis import BreakoutEvent


class Credentials(BaseModel):
    """Decrypted access token + selected ad account for one brand"""
    access_token: str
    ad_account_id: str


class SyncSummary(BaseModel):
    brand_id: int
    date_window: str
    total_ads: int = 0
    synced: int = 0
    parsed: int = 0
    unparsed: int = 0
    errors: int = 0
    unprocessed_video_ads: int = 0
    timestamp: datetime


class DailyInsightsSummary(BaseModel):
    brand_id: int
    ads: int = 0
    total_insights: int = 0
    errors: int = 0


class EnrichmentResult(BaseModel):
    ad_id: str
    success: bool
    error: Optional[str] = None


class ProcessNewAdsResult(BaseModel):
    processed: int = 0
    results: List[EnrichmentResult] = []


class SyncPerformanceResult(BaseModel):
    success: bool = True
    brand_id: int
    synced: int = 0
    breakout_ads: List[BreakoutEvent] = []
    new_ads_processed: int = 0
    timestamp: datetime


class EnrichmentCandidate(BaseModel):
    fb_ad_id: str
    ad_name: Optional[str] = None
    video_id: Optional[str] = None
    classification: str
    spend: float = 0.0
    needs_transcript: bool = False
    needs_description: bool = False

    class Config:
        from_attributes = True


class SyncStatusCoverage(BaseModel):
    has_video_id: int = 0
    has_transcript: int = 0
    has_visuals: int = 0


class SyncStatusResponse(BaseModel):
    brand_id: int
    last_sync: Optional[datetime] = None
    connection_status: Optional[str] = None
    total_ads: int = 0
    processed: SyncStatusCoverage
    transcript_pct: float = 0.0
    visuals_pct: float = 0.0
    processing_complete: bool = False


class AdComment(BaseModel):
    message: Optional[str] = None
    author: str = "Unknown"
    created_time: Optional[str] = None
    like_count: int = 0


class AdComments(BaseModel):
    ad_id: str
    post_id: Optional[str] = None
    comments: List[AdComment] = []
    error: Optional[str] = None
