"""
Daily insight snapshots for trend/history queries.
"""
from sqlalchemy import Column, Integer, String, Float, Date, ForeignKey, UniqueConstraint

from adtier.models.base import BaseModel


class FbInsightDaily(BaseModel):
    """Daily performance snapshot for one ad"""

    __tablename__ = "fb_insights_daily"

    id = Column(Integer, primary_key=True, index=True)
    brand_id = Column(Integer, ForeignKey("brands.id", ondelete="CASCADE"), nullable=False, index=True)
    fb_ad_id = Column(String(100), nullable=False, index=True)

    # Stat date (platform's day)
    date = Column(Date, nullable=False, index=True)

    spend = Column(Float, default=0, nullable=False)
    impressions = Column(Integer, default=0, nullable=False)
    clicks = Column(Integer, default=0, nullable=False)
    ctr = Column(Float, default=0, nullable=False)
    cpm = Column(Float, default=0, nullable=False)
    cpc = Column(Float, default=0, nullable=False)
    purchases = Column(Integer, default=0, nullable=False)
    cpa = Column(Float, default=0, nullable=False)
    revenue = Column(Float, default=0, nullable=False)
    roas = Column(Float, default=0, nullable=False)

    __table_args__ = (
        UniqueConstraint("brand_id", "fb_ad_id", "date", name="uq_fb_insights_daily_brand_ad_date"),
    )
