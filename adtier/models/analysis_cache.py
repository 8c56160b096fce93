"""
Cached analysis results, one row per (brand, analysis type).
"""
from sqlalchemy import Column, Integer, Text, DateTime, Enum, ForeignKey, UniqueConstraint

from adtier.models.base import BaseModel
from adtier.models.enums import AnalysisType, enum_values


class AnalysisCache(BaseModel):
    """
    Serialized analysis payload keyed by (brand, analysis_type).

    `data` is JSON text; adtier.services.analysis.cache owns (de)serialization.
    """

    __tablename__ = "analysis_cache"

    id = Column(Integer, primary_key=True, index=True)
    brand_id = Column(Integer, ForeignKey("brands.id", ondelete="CASCADE"), nullable=False)
    analysis_type = Column(
        Enum(AnalysisType, values_callable=enum_values, name="analysis_type"),
        nullable=False,
    )
    data = Column(Text, nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        UniqueConstraint("brand_id", "analysis_type", name="uq_analysis_cache_brand_type"),
    )
