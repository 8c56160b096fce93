"""
Facebook ad model: metadata, creative snapshot, latest performance, tier
"""
from sqlalchemy import (
    Column, Integer, String, Float, Text, DateTime, Enum, ForeignKey, UniqueConstraint,
)

from adtier.models.base import BaseModel
from adtier.models.enums import Classification, NamingFormat, enum_values


class FbAd(BaseModel):
    """
    One row per (brand, Facebook ad).

    Ownership:
    - sync writes identity, creative, naming tags and performance columns
    - the classifier writes `classification`
    - enrichment collaborators write `video_transcript` / `video_description`
    """

    __tablename__ = "fb_ads"

    id = Column(Integer, primary_key=True, index=True)
    brand_id = Column(Integer, ForeignKey("brands.id", ondelete="CASCADE"), nullable=False, index=True)

    # Identity
    fb_ad_id = Column(String(100), nullable=False)
    fb_adset_id = Column(String(100), nullable=True)
    fb_campaign_id = Column(String(100), nullable=True)
    ad_name = Column(Text, nullable=True)
    status = Column(String(30), nullable=True, index=True)  # ACTIVE, PAUSED, ...

    # Creative snapshot
    headline = Column(Text, nullable=True)
    body = Column(Text, nullable=True)
    image_url = Column(Text, nullable=True)
    thumbnail_url = Column(Text, nullable=True)
    video_id = Column(String(100), nullable=True)
    call_to_action = Column(String(100), nullable=True)

    # Naming convention tags (null when the name is not MTRX)
    parsed_brand = Column(String(50), nullable=True)
    parsed_batch = Column(String(20), nullable=True)
    parsed_copy_style = Column(String(50), nullable=True)
    parsed_awareness = Column(String(50), nullable=True)
    parsed_angle_type = Column(String(50), nullable=True)
    parsed_angle_num = Column(String(20), nullable=True)
    parsed_audience = Column(String(50), nullable=True)
    parsed_creator = Column(String(50), nullable=True)
    parsed_editor = Column(String(50), nullable=True)
    parsed_version = Column(String(20), nullable=True)
    naming_format = Column(
        Enum(NamingFormat, values_callable=enum_values, name="naming_format"),
        default=NamingFormat.UNPARSED,
        nullable=False,
    )

    # Performance snapshot (latest sync window)
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

    classification = Column(
        Enum(Classification, values_callable=enum_values, name="ad_classification"),
        default=Classification.NEW,
        nullable=False,
        index=True,
    )

    # Enrichment (external collaborators only)
    video_transcript = Column(Text, nullable=True)
    video_description = Column(Text, nullable=True)

    # Ad launch time on the platform
    fb_created_time = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        UniqueConstraint("brand_id", "fb_ad_id", name="uq_fb_ads_brand_ad"),
    )
