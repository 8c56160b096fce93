"""
Pydantic schemas for AdTier
"""
from adtier.schemas.common import DataResponse, ListResponse, ErrorResponse
from adtier.schemas.performance import PerformanceSnapshot, ParsedAdName, AdCreative
from adtier.schemas.analysis import (
    Benchmark, ClassificationGoal, ClassificationCounts, ClassificationSummary,
    BreakoutEvent, AnalysisCacheEntry, ClassificationCacheEntry,
)
from adtier.schemas.sync import (
    Credentials, SyncSummary, DailyInsightsSummary, SyncPerformanceResult,
    ProcessNewAdsResult, EnrichmentResult, EnrichmentCandidate, SyncStatusResponse,
    AdComment, AdComments,
)
