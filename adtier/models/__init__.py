"""
Database models for AdTier
"""
from adtier.models.base import Base, BaseModel, TimestampMixin
from adtier.models.enums import (
    Classification, AdStatus, ConnectionStatus, NamingFormat, DateWindow,
    AnalysisType, BreakoutType, TaskStatus, CLASSIFICATION_PRIORITY,
)

# Brand / connection models
from adtier.models.brand import Brand, FbConnection

# Ad models
from adtier.models.ad import FbAd
from adtier.models.insight import FbInsightDaily

# Analysis cache
from adtier.models.analysis_cache import AnalysisCache

# Task models
from adtier.models.task import TaskLog


__all__ = [
    # Base
    "Base", "BaseModel", "TimestampMixin",

    # Enums
    "Classification", "AdStatus", "ConnectionStatus", "NamingFormat",
    "DateWindow", "AnalysisType", "BreakoutType", "TaskStatus", "CLASSIFICATION_PRIORITY",

    # Brand
    "Brand", "FbConnection",

    # Ads
    "FbAd", "FbInsightDaily",

    # Cache
    "AnalysisCache",

    # Task
    "TaskLog",
]
