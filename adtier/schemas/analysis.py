"""
Classification, benchmark and breakout schemas, plus typed analysis-cache entries
"""
from datetime import datetime
from typing import Annotated, Any, Dict, Literal, Optional, Union

from pydantic import BaseModel, Field

from adtier.models.enums import BreakoutType


class Benchmark(BaseModel):
    """Account-wide baseline over ads with purchases >= 1 and spend >= the significance floor"""
    median_spend: float = 0.0
    median_cpa: float = 0.0
    avg_ctr: float = 0.0
    avg_roas: float = 0.0
    total_ads: int = 0


class ClassificationGoal(BaseModel):
    """Resolved per-brand goal used by the classifier"""
    target_roas: float
    target_cpa: float


class ClassificationCounts(BaseModel):
    winner: int = 0
    potential: int = 0
    loser: int = 0
    new: int = 0


class ClassificationSummary(BaseModel):
    brand_id: int
    date_window: str
    benchmarks: Benchmark
    classifications: ClassificationCounts
    goals: ClassificationGoal
    total_classified: int = 0


class BreakoutEvent(BaseModel):
    """An ad whose spend jumped between two snapshots"""
    ad_id: str
    type: BreakoutType
    ad_name: Optional[str] = None
    previous_spend: float
    current_spend: float
    percent_increase: Optional[float] = None
    threshold: Optional[float] = None
    roas: float = 0.0
    cpa: float = 0.0


# ============================================
# Analysis cache entries (discriminated by analysis_type)
# ============================================

class ClassificationCacheEntry(BaseModel):
    analysis_type: Literal["classification"] = "classification"
    benchmarks: Benchmark
    counts: ClassificationCounts
    goals: ClassificationGoal
    date_window: str
    timestamp: datetime


class PatternsCacheEntry(BaseModel):
    analysis_type: Literal["patterns"] = "patterns"
    payload: Dict[str, Any] = {}


class BriefCacheEntry(BaseModel):
    analysis_type: Literal["brief"] = "brief"
    payload: Dict[str, Any] = {}


class StrategicInsightsCacheEntry(BaseModel):
    analysis_type: Literal["strategic_insights"] = "strategic_insights"
    payload: Dict[str, Any] = {}


class SuggestionsCacheEntry(BaseModel):
    analysis_type: Literal["test_suggestions"] = "test_suggestions"
    payload: Dict[str, Any] = {}


AnalysisCacheEntry = Annotated[
    Union[
        ClassificationCacheEntry,
        PatternsCacheEntry,
        BriefCacheEntry,
        StrategicInsightsCacheEntry,
        SuggestionsCacheEntry,
    ],
    Field(discriminator="analysis_type"),
]
