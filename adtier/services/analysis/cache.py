"""
Typed access to the analysis_cache table.

Entries are pydantic models discriminated by `analysis_type`; they are
serialized to JSON on write and validated back into the right variant on read.
"""
import logging
from datetime import datetime, timedelta
from typing import Optional

from pydantic import TypeAdapter
from sqlalchemy.orm import Session

from adtier.core.timeutils import ensure_aware, utcnow
from adtier.models.analysis_cache import AnalysisCache
from adtier.models.enums import AnalysisType
from adtier.schemas.analysis import AnalysisCacheEntry

logger = logging.getLogger(__name__)

_entry_adapter = TypeAdapter(AnalysisCacheEntry)


def write_entry(
    session: Session,
    brand_id: int,
    entry,
    ttl: Optional[timedelta] = None,
    now: Optional[datetime] = None,
) -> AnalysisCache:
    """Replace the brand's entry of this type in the caller's transaction"""
    analysis_type = AnalysisType(entry.analysis_type)
    session.query(AnalysisCache).filter(
        AnalysisCache.brand_id == brand_id,
        AnalysisCache.analysis_type == analysis_type,
    ).delete(synchronize_session=False)

    now = now or utcnow()
    row = AnalysisCache(
        brand_id=brand_id,
        analysis_type=analysis_type,
        data=entry.model_dump_json(),
        expires_at=now + ttl if ttl else None,
    )
    session.add(row)
    return row


def read_entry(session: Session, brand_id: int, analysis_type: AnalysisType, now: Optional[datetime] = None):
    """Unexpired entry of a type, parsed into its schema; None when absent"""
    row = (
        session.query(AnalysisCache)
        .filter(
            AnalysisCache.brand_id == brand_id,
            AnalysisCache.analysis_type == AnalysisType(analysis_type),
        )
        .one_or_none()
    )
    if row is None:
        return None
    expires_at = ensure_aware(row.expires_at)
    if expires_at is not None and expires_at <= (now or utcnow()):
        return None
    return _entry_adapter.validate_json(row.data)


def invalidate_brand(session: Session, brand_id: int) -> int:
    """Delete every cached analysis for a brand. Returns the number of rows removed."""
    deleted = (
        session.query(AnalysisCache)
        .filter(AnalysisCache.brand_id == brand_id)
        .delete(synchronize_session=False)
    )
    if deleted:
        logger.info(f"Invalidated {deleted} cached analyses for brand {brand_id}")
    return deleted
