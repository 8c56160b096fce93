"""
Flat performance schema shared by ads and daily insight snapshots
"""
from typing import Optional
from pydantic import BaseModel


class PerformanceSnapshot(BaseModel):
    """Normalized insight metrics. Every field is non-negative and defaults to zero."""
    spend: float = 0.0
    impressions: int = 0
    clicks: int = 0
    ctr: float = 0.0
    cpm: float = 0.0
    cpc: float = 0.0
    purchases: int = 0
    cpa: float = 0.0
    revenue: float = 0.0
    roas: float = 0.0


class ParsedAdName(BaseModel):
    """Tags decoded from an MTRX-formatted ad name"""
    brand: str
    batch: str
    copy_style: str
    awareness: str
    angle_type: str
    angle_num: str
    audience: str
    creator: str
    editor: str
    version: str


class AdCreative(BaseModel):
    """Creative fields extracted from an ad's embedded creative object"""
    headline: str = ""
    body: str = ""
    image_url: str = ""
    thumbnail_url: str = ""
    call_to_action: str = ""
    video_id: Optional[str] = None
