"""
Data Sync Service
Pulls ads, creatives and insights from Facebook and upserts them into the store
"""
import logging
from datetime import date
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy import func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from adtier.core.database import Database, dialect_insert
from adtier.core.exceptions import AuthError, DataError, GraphAPIError
from adtier.core.timeutils import parse_fb_datetime, utcnow
from adtier.models.ad import FbAd
from adtier.models.enums import AdStatus, DateWindow, NamingFormat
from adtier.models.insight import FbInsightDaily
from adtier.schemas.performance import AdCreative
from adtier.schemas.sync import DailyInsightsSummary, SyncSummary
from adtier.services.analysis.cache import invalidate_brand
from adtier.services.facebook.connections import ConnectionStore
from adtier.services.facebook.graph_api import GraphApiClient
from adtier.services.facebook.naming import parse_ad_name
from adtier.services.facebook.normalizer import normalize_insights

logger = logging.getLogger(__name__)

METRIC_COLUMNS = (
    "spend", "impressions", "clicks", "ctr", "cpm", "cpc",
    "purchases", "cpa", "revenue", "roas",
)

# Provider-authoritative: always overwritten on re-sync
AD_OVERWRITE_COLUMNS = (
    "fb_adset_id", "fb_campaign_id", "ad_name", "status",
    "headline", "body", "image_url", "thumbnail_url", "call_to_action",
    "parsed_brand", "parsed_batch", "parsed_copy_style", "parsed_awareness",
    "parsed_angle_type", "parsed_angle_num", "parsed_audience", "parsed_creator",
    "parsed_editor", "parsed_version", "naming_format",
) + METRIC_COLUMNS

# Not always returned by the provider: keep the previous value when absent
AD_COALESCE_COLUMNS = ("fb_created_time", "video_id")


def extract_creative(creative: Any) -> AdCreative:
    if not isinstance(creative, dict):
        return AdCreative()
    return AdCreative(
        headline=creative.get("title") or "",
        body=creative.get("body") or "",
        image_url=creative.get("image_url") or "",
        thumbnail_url=creative.get("thumbnail_url") or "",
        call_to_action=creative.get("call_to_action_type") or "",
        video_id=creative.get("video_id") or None,
    )


def build_ad_row(brand_id: int, raw_ad: Any) -> Dict[str, Any]:
    """Flatten one raw ad (with embedded creative + insights) into an fb_ads row"""
    if not isinstance(raw_ad, dict) or not raw_ad.get("id"):
        raise DataError("Ad record has no id", record_id=None)

    creative = extract_creative(raw_ad.get("creative"))
    parsed = parse_ad_name(raw_ad.get("name"))

    insights = raw_ad.get("insights")
    insights_data = insights.get("data") if isinstance(insights, dict) else None
    if not isinstance(insights_data, list) or not insights_data:
        insights_data = [None]
    perf = normalize_insights(insights_data[0])

    row = {
        "brand_id": brand_id,
        "fb_ad_id": str(raw_ad["id"]),
        "fb_adset_id": raw_ad.get("adset_id"),
        "fb_campaign_id": raw_ad.get("campaign_id"),
        "ad_name": raw_ad.get("name"),
        "status": raw_ad.get("status"),
        "headline": creative.headline,
        "body": creative.body,
        "image_url": creative.image_url,
        "thumbnail_url": creative.thumbnail_url,
        "call_to_action": creative.call_to_action,
        "video_id": creative.video_id,
        "naming_format": NamingFormat.MTRX if parsed else NamingFormat.UNPARSED,
        "fb_created_time": parse_fb_datetime(raw_ad.get("created_time")),
    }

    for field in (
        "brand", "batch", "copy_style", "awareness", "angle_type",
        "angle_num", "audience", "creator", "editor", "version",
    ):
        row[f"parsed_{field}"] = getattr(parsed, field) if parsed else None

    row.update(perf.model_dump())
    return row


class DataSyncService:
    """
    Extract-normalize-load of one brand's ads.

    Re-running a sync with identical platform data leaves rows unchanged;
    enrichment columns and the classifier's tier are never touched.
    """

    def __init__(
        self,
        db: Database,
        connections: Optional[ConnectionStore] = None,
        client_factory: Callable[[str], GraphApiClient] = GraphApiClient,
    ):
        self.db = db
        self.connections = connections or ConnectionStore(db)
        self.client_factory = client_factory

    # ========================================
    # Ads sync
    # ========================================

    async def sync_brand(self, brand_id: int, date_window: DateWindow = DateWindow.LAST_90D) -> SyncSummary:
        """Fetch every ad of the brand's account and upsert it."""
        date_window = DateWindow(date_window)
        creds = self.connections.get_credentials(brand_id)

        logger.info(f"Starting sync for brand {brand_id}, account {creds.ad_account_id} ({date_window.value})")

        client = self.client_factory(creds.access_token)
        try:
            raw_ads = await client.get_ads_with_insights(creds.ad_account_id, date_window)
        finally:
            await client.close()

        logger.info(f"Fetched {len(raw_ads)} ads from Facebook")
        return self.store_ads(brand_id, raw_ads, date_window)

    def store_ads(
        self,
        brand_id: int,
        raw_ads: List[Dict[str, Any]],
        date_window: DateWindow = DateWindow.LAST_90D,
    ) -> SyncSummary:
        """
        Upsert a batch of raw ads in one transaction.

        Each record runs in its own SAVEPOINT so a bad record is counted and
        skipped without discarding the rest of the batch.
        """
        synced = parsed = errors = 0

        with self.db.session_scope() as session:
            for raw_ad in raw_ads:
                record_id = raw_ad.get("id") if isinstance(raw_ad, dict) else None
                try:
                    row = build_ad_row(brand_id, raw_ad)
                    with session.begin_nested():
                        self._upsert_ad(session, row)
                except DataError as e:
                    logger.error(f"Error syncing ad {record_id}: {e}")
                    errors += 1
                    continue
                except SQLAlchemyError as e:
                    err = DataError(f"Failed to persist ad: {e}", record_id=record_id)
                    logger.error(f"Error syncing ad {record_id}: {err}")
                    errors += 1
                    continue
                except Exception as e:
                    err = DataError(f"Malformed ad record: {e!r}", record_id=record_id)
                    logger.error(f"Error syncing ad {record_id}: {err}")
                    errors += 1
                    continue

                synced += 1
                if row["naming_format"] == NamingFormat.MTRX:
                    parsed += 1

            # Derived analyses depend on the data just replaced
            invalidate_brand(session, brand_id)

            unprocessed = self._count_unprocessed_video_ads(session, brand_id)

        self.connections.touch_last_sync(brand_id)

        summary = SyncSummary(
            brand_id=brand_id,
            date_window=DateWindow(date_window).value,
            total_ads=len(raw_ads),
            synced=synced,
            parsed=parsed,
            unparsed=synced - parsed,
            errors=errors,
            unprocessed_video_ads=unprocessed,
            timestamp=utcnow(),
        )
        logger.info(f"Sync complete: {summary.model_dump(exclude={'timestamp'})}")
        return summary

    @staticmethod
    def _upsert_ad(session: Session, row: Dict[str, Any]) -> None:
        stmt = dialect_insert(session, FbAd).values(**row)
        excluded = stmt.excluded

        set_ = {col: excluded[col] for col in AD_OVERWRITE_COLUMNS}
        for col in AD_COALESCE_COLUMNS:
            set_[col] = func.coalesce(excluded[col], getattr(FbAd, col))
        set_["updated_at"] = func.now()

        session.execute(stmt.on_conflict_do_update(
            index_elements=["brand_id", "fb_ad_id"],
            set_=set_,
        ))

    @staticmethod
    def _count_unprocessed_video_ads(session: Session, brand_id: int) -> int:
        return (
            session.query(func.count(FbAd.id))
            .filter(
                FbAd.brand_id == brand_id,
                FbAd.video_id.isnot(None),
                or_(FbAd.video_transcript.is_(None), FbAd.video_description.is_(None)),
            )
            .scalar()
        ) or 0

    # ========================================
    # Daily insights history
    # ========================================

    async def sync_daily_insights(
        self,
        brand_id: int,
        date_window: DateWindow = DateWindow.LAST_30D,
    ) -> DailyInsightsSummary:
        """
        Pull day-by-day insights for each currently active ad.

        A failing ad is logged and skipped; an auth failure aborts the run.
        """
        creds = self.connections.get_credentials(brand_id)

        with self.db.session_scope() as session:
            ad_ids = [
                row.fb_ad_id
                for row in session.query(FbAd.fb_ad_id)
                .filter(FbAd.brand_id == brand_id, FbAd.status == AdStatus.ACTIVE.value)
                .order_by(FbAd.id)
                .all()
            ]

        logger.info(f"Syncing daily insights for {len(ad_ids)} active ads (brand {brand_id})")

        total = errors = 0
        client = self.client_factory(creds.access_token)
        try:
            for fb_ad_id in ad_ids:
                try:
                    days = await client.get_ad_insights_daily(fb_ad_id, date_window)
                except AuthError:
                    raise
                except GraphAPIError as e:
                    logger.error(f"Error fetching daily insights for ad {fb_ad_id}: {e}")
                    errors += 1
                    continue

                stored, failed = self.store_daily_insights(brand_id, fb_ad_id, days)
                total += stored
                errors += failed
        finally:
            await client.close()

        logger.info(f"Synced {total} daily insight records for brand {brand_id}")
        return DailyInsightsSummary(brand_id=brand_id, ads=len(ad_ids), total_insights=total, errors=errors)

    def store_daily_insights(self, brand_id: int, fb_ad_id: str, days: List[Dict[str, Any]]) -> tuple:
        """Upsert one ad's daily rows. Returns (stored, failed)."""
        stored = failed = 0
        with self.db.session_scope() as session:
            for day in days:
                try:
                    stat_date = date.fromisoformat(str(day.get("date_start")))
                except (ValueError, TypeError, AttributeError):
                    logger.error(f"Skipping insight row without a valid date for ad {fb_ad_id}: {day!r:.120}")
                    failed += 1
                    continue

                row = {"brand_id": brand_id, "fb_ad_id": fb_ad_id, "date": stat_date}
                row.update(normalize_insights(day).model_dump())

                stmt = dialect_insert(session, FbInsightDaily).values(**row)
                set_ = {col: stmt.excluded[col] for col in METRIC_COLUMNS}
                set_["updated_at"] = func.now()
                try:
                    with session.begin_nested():
                        session.execute(stmt.on_conflict_do_update(
                            index_elements=["brand_id", "fb_ad_id", "date"],
                            set_=set_,
                        ))
                except SQLAlchemyError as e:
                    logger.error(f"Error storing insight {fb_ad_id}@{stat_date}: {e}")
                    failed += 1
                    continue
                stored += 1
        return stored, failed
