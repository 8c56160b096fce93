"""
Scheduled Sync Coordinator

One "performance sync" cycle per brand:
    snapshot spend -> sync ads -> classify -> detect breakouts -> enrichment hand-off

Creative enrichment (transcription, visual analysis) runs once per ad and is
done by an external collaborator; this module only decides which ads need it
and in what order.
"""
import logging
from typing import Callable, Dict, List, Optional, Protocol, Sequence

from sqlalchemy import case, func, or_

from adtier.core.config import settings
from adtier.core.database import Database
from adtier.core.exceptions import AuthError
from adtier.core.timeutils import utcnow
from adtier.models.ad import FbAd
from adtier.models.brand import FbConnection
from adtier.models.enums import CLASSIFICATION_PRIORITY, DateWindow
from adtier.schemas.analysis import ClassificationSummary
from adtier.schemas.sync import (
    AdComments,
    DailyInsightsSummary,
    EnrichmentCandidate,
    EnrichmentResult,
    ProcessNewAdsResult,
    SyncPerformanceResult,
    SyncStatusCoverage,
    SyncStatusResponse,
    SyncSummary,
)
from adtier.services.analysis.breakouts import BREAKOUT_MIN_SPEND, detect_breakouts
from adtier.services.analysis.classifier import ClassifierService
from adtier.services.facebook.comments import fetch_comments_for_ads
from adtier.services.facebook.connections import ConnectionStore
from adtier.services.facebook.data_sync import DataSyncService
from adtier.services.facebook.graph_api import GraphApiClient

logger = logging.getLogger(__name__)

# Share of video ads that must be enriched before processing counts as complete
PROCESSING_COMPLETE_RATIO = 0.9


class EnrichmentCollaborator(Protocol):
    """Transcription / visual analysis service that fills the enrichment columns"""

    async def transcribe(self, brand_id: int, fb_ad_id: str) -> None:
        ...

    async def analyze_video(self, brand_id: int, fb_ad_id: str) -> None:
        ...


class ScheduledSyncCoordinator:
    """
    Composes sync, classification and breakout detection for one brand.

    An AuthError from any step marks the brand's connection expired before it
    propagates, so the next scheduled run skips the brand until it reconnects.
    """

    def __init__(
        self,
        db: Database,
        connections: Optional[ConnectionStore] = None,
        data_sync: Optional[DataSyncService] = None,
        classifier: Optional[ClassifierService] = None,
        enrichment: Optional[EnrichmentCollaborator] = None,
        client_factory: Callable[[str], GraphApiClient] = GraphApiClient,
    ):
        self.db = db
        self.connections = connections or ConnectionStore(db)
        self.client_factory = client_factory
        self.data_sync = data_sync or DataSyncService(db, self.connections, client_factory)
        self.classifier = classifier or ClassifierService(db)
        self.enrichment = enrichment

    # ========================================
    # Pipeline steps
    # ========================================

    async def sync_brand(self, brand_id: int, date_window: DateWindow = DateWindow.LAST_90D) -> SyncSummary:
        try:
            return await self.data_sync.sync_brand(brand_id, date_window)
        except AuthError:
            self.connections.mark_expired(brand_id)
            raise

    async def sync_daily_insights(
        self,
        brand_id: int,
        date_window: DateWindow = DateWindow.LAST_30D,
    ) -> DailyInsightsSummary:
        try:
            return await self.data_sync.sync_daily_insights(brand_id, date_window)
        except AuthError:
            self.connections.mark_expired(brand_id)
            raise

    def classify(self, brand_id: int, date_window: DateWindow = DateWindow.LAST_90D) -> ClassificationSummary:
        return self.classifier.classify(brand_id, date_window)

    def snapshot_spend(self, brand_id: int) -> Dict[str, float]:
        """{fb_ad_id: spend} for every ad currently spending"""
        with self.db.session_scope() as session:
            rows = (
                session.query(FbAd.fb_ad_id, FbAd.spend)
                .filter(FbAd.brand_id == brand_id, FbAd.spend > 0)
                .all()
            )
            return {row.fb_ad_id: row.spend for row in rows}

    async def sync_performance(self, brand_id: int, enrichment_limit: Optional[int] = None) -> SyncPerformanceResult:
        """Full performance cycle for one brand"""
        logger.info(f"Starting performance sync for brand {brand_id}")

        previous_spend = self.snapshot_spend(brand_id)

        summary = await self.sync_brand(brand_id, DateWindow.LAST_90D)
        logger.info(f"Synced {summary.synced} ads for brand {brand_id}")

        self.classify(brand_id, DateWindow.LAST_90D)

        with self.db.session_scope() as session:
            current_ads = (
                session.query(FbAd)
                .filter(FbAd.brand_id == brand_id, FbAd.spend > BREAKOUT_MIN_SPEND)
                .order_by(FbAd.id)
                .all()
            )
            breakouts = detect_breakouts(previous_spend, current_ads)

        if breakouts:
            logger.info(f"Detected {len(breakouts)} breakout ads for brand {brand_id}")

        enrichment = await self.process_new_ads(brand_id, enrichment_limit)

        return SyncPerformanceResult(
            success=True,
            brand_id=brand_id,
            synced=summary.synced,
            breakout_ads=breakouts,
            new_ads_processed=enrichment.processed,
            timestamp=utcnow(),
        )

    # ========================================
    # Enrichment hand-off
    # ========================================

    def ads_needing_enrichment(self, brand_id: int, limit: Optional[int] = None) -> List[EnrichmentCandidate]:
        """
        Video ads still missing a transcript or a visual description,
        ordered winner > potential > new > loser, then by spend descending.
        """
        limit = limit or settings.ENRICHMENT_BATCH_LIMIT
        priority = case(
            *[(FbAd.classification == tier, rank) for tier, rank in CLASSIFICATION_PRIORITY.items()],
            else_=len(CLASSIFICATION_PRIORITY),
        )

        with self.db.session_scope() as session:
            ads = (
                session.query(FbAd)
                .filter(
                    FbAd.brand_id == brand_id,
                    FbAd.video_id.isnot(None),
                    or_(FbAd.video_transcript.is_(None), FbAd.video_description.is_(None)),
                )
                .order_by(priority, FbAd.spend.desc(), FbAd.id)
                .limit(limit)
                .all()
            )

            return [
                EnrichmentCandidate(
                    fb_ad_id=ad.fb_ad_id,
                    ad_name=ad.ad_name,
                    video_id=ad.video_id,
                    classification=ad.classification.value,
                    spend=ad.spend or 0,
                    needs_transcript=ad.video_transcript is None,
                    needs_description=ad.video_description is None,
                )
                for ad in ads
            ]

    async def process_new_ads(self, brand_id: int, limit: Optional[int] = None) -> ProcessNewAdsResult:
        """Hand unenriched ads to the collaborator; one failing ad never stops the batch"""
        candidates = self.ads_needing_enrichment(brand_id, limit)
        logger.info(f"Found {len(candidates)} ads needing processing for brand {brand_id}")

        if self.enrichment is None:
            if candidates:
                logger.info("No enrichment service configured, skipping creative processing")
            return ProcessNewAdsResult()

        processed = 0
        results: List[EnrichmentResult] = []
        for ad in candidates:
            label = (ad.ad_name or ad.fb_ad_id)[:40]
            try:
                if ad.needs_transcript:
                    logger.info(f"Transcribing: {label}")
                    await self.enrichment.transcribe(brand_id, ad.fb_ad_id)
                if ad.needs_description:
                    logger.info(f"Analyzing visuals: {label}")
                    await self.enrichment.analyze_video(brand_id, ad.fb_ad_id)
            except Exception as e:
                logger.error(f"Error processing ad {ad.fb_ad_id}: {e}")
                results.append(EnrichmentResult(ad_id=ad.fb_ad_id, success=False, error=str(e)))
                continue

            processed += 1
            results.append(EnrichmentResult(ad_id=ad.fb_ad_id, success=True))

        return ProcessNewAdsResult(processed=processed, results=results)

    async def collect_comments(self, brand_id: int, ad_ids: Sequence[str], limit: int = 10) -> List[AdComments]:
        try:
            creds = self.connections.get_credentials(brand_id)
        except AuthError:
            self.connections.mark_expired(brand_id)
            raise

        client = self.client_factory(creds.access_token)
        try:
            return await fetch_comments_for_ads(client, ad_ids, limit=limit)
        finally:
            await client.close()

    # ========================================
    # Status
    # ========================================

    def get_sync_status(self, brand_id: int) -> SyncStatusResponse:
        """Last sync time and video enrichment coverage over spending ads"""
        with self.db.session_scope() as session:
            conn = session.query(FbConnection).filter(FbConnection.brand_id == brand_id).first()

            stats = (
                session.query(
                    func.count(FbAd.id).label("total"),
                    func.count(FbAd.video_id).label("has_video_id"),
                    func.count(FbAd.video_transcript).label("has_transcript"),
                    func.count(FbAd.video_description).label("has_visuals"),
                )
                .filter(FbAd.brand_id == brand_id, FbAd.spend > 0)
                .one()
            )

            coverage = SyncStatusCoverage(
                has_video_id=stats.has_video_id or 0,
                has_transcript=stats.has_transcript or 0,
                has_visuals=stats.has_visuals or 0,
            )
            video_ads = coverage.has_video_id

            return SyncStatusResponse(
                brand_id=brand_id,
                last_sync=conn.last_sync_at if conn else None,
                connection_status=conn.status.value if conn else None,
                total_ads=stats.total or 0,
                processed=coverage,
                transcript_pct=round(coverage.has_transcript / video_ads * 100, 1) if video_ads else 0.0,
                visuals_pct=round(coverage.has_visuals / video_ads * 100, 1) if video_ads else 0.0,
                processing_complete=(
                    video_ads > 0
                    and coverage.has_transcript >= video_ads * PROCESSING_COMPLETE_RATIO
                    and coverage.has_visuals >= video_ads * PROCESSING_COMPLETE_RATIO
                ),
            )
