"""
Daily sync tasks
"""
import logging
from typing import Any, Dict, Optional

from adtier.core.config import settings
from adtier.core.database import Database
from adtier.core.exceptions import AuthError
from adtier.core.timeutils import ensure_aware, utcnow
from adtier.models.enums import DateWindow, TaskStatus
from adtier.models.task import TaskLog
from adtier.services.facebook.scheduled_sync import ScheduledSyncCoordinator

logger = logging.getLogger(__name__)


def log_task_start(
    db: Database,
    task_name: str,
    task_type: str = "sync",
    brand_id: Optional[int] = None,
    date_window: Optional[DateWindow] = None,
    triggered_by: str = "scheduler",
) -> int:
    """Create task log entry, return its id"""
    with db.session_scope() as session:
        task = TaskLog(
            task_name=task_name,
            task_type=task_type,
            brand_id=brand_id,
            date_window=date_window,
            status=TaskStatus.RUNNING,
            started_at=utcnow(),
            triggered_by=triggered_by,
        )
        session.add(task)
        session.flush()
        return task.id


def log_task_complete(
    db: Database,
    task_id: int,
    success: bool,
    message: Optional[str] = None,
    processed: int = 0,
    succeeded: int = 0,
    failed: int = 0,
    output_data: Optional[Dict[str, Any]] = None,
) -> None:
    """Update task log on completion"""
    with db.session_scope() as session:
        task = session.get(TaskLog, task_id)
        if task is None:
            return

        task.status = TaskStatus.COMPLETED if success else TaskStatus.FAILED
        task.completed_at = utcnow()
        started = ensure_aware(task.started_at)
        if started is not None:
            task.duration_seconds = round((task.completed_at - started).total_seconds(), 2)
        task.message = message
        task.processed_count = processed
        task.succeeded_count = succeeded
        task.failed_count = failed
        task.output_data = output_data


async def sync_brand_cycle(
    coordinator: ScheduledSyncCoordinator,
    brand_id: int,
    date_window: DateWindow = DateWindow.LAST_90D,
) -> Dict[str, Any]:
    """sync -> daily insights -> classify for one brand"""
    summary = await coordinator.sync_brand(brand_id, date_window)
    daily = await coordinator.sync_daily_insights(brand_id)
    classification = coordinator.classify(brand_id, date_window)

    return {
        "synced": summary.synced,
        "errors": summary.errors + daily.errors,
        "daily_insights": daily.total_insights,
        "classified": classification.total_classified,
    }


async def sync_all_brands(
    db: Database,
    coordinator: Optional[ScheduledSyncCoordinator] = None,
    date_window: Optional[DateWindow] = None,
    triggered_by: str = "scheduler",
) -> Dict[str, Any]:
    """
    Run the daily cycle for every brand with an active connection.

    An expired token marks that brand's connection expired; any other failure
    is logged. Either way the next brand still runs.
    """
    coordinator = coordinator or ScheduledSyncCoordinator(db)
    date_window = DateWindow(date_window or settings.SYNC_DEFAULT_DATE_WINDOW)

    task_id = log_task_start(
        db, "sync_all_brands", "sync", date_window=date_window, triggered_by=triggered_by
    )
    try:
        brand_ids = coordinator.connections.active_brand_ids()
    except Exception as e:
        log_task_complete(db, task_id, False, str(e))
        raise
    logger.info(f"Daily sync starting for {len(brand_ids)} brands")

    results: Dict[str, Any] = {}
    succeeded = failed = 0

    for brand_id in brand_ids:
        try:
            results[str(brand_id)] = await sync_brand_cycle(coordinator, brand_id, date_window)
            succeeded += 1
            logger.info(f"Brand {brand_id} synced: {results[str(brand_id)]}")
        except AuthError as e:
            # Connection already marked expired by the coordinator
            failed += 1
            results[str(brand_id)] = {"error": str(e), "expired": True}
            logger.warning(f"Brand {brand_id} token expired, skipped until reconnected: {e}")
        except Exception as e:
            failed += 1
            results[str(brand_id)] = {"error": str(e)}
            logger.error(f"Daily sync failed for brand {brand_id}: {e}")

    log_task_complete(
        db,
        task_id,
        success=failed == 0,
        message=f"Synced {succeeded}/{len(brand_ids)} brands",
        processed=len(brand_ids),
        succeeded=succeeded,
        failed=failed,
        output_data=results,
    )
    logger.info(f"Daily sync finished: {succeeded} succeeded, {failed} failed")

    return {"brands": len(brand_ids), "succeeded": succeeded, "failed": failed, "results": results}


def reclassify_all_brands(
    db: Database,
    coordinator: Optional[ScheduledSyncCoordinator] = None,
    date_window: Optional[DateWindow] = None,
    triggered_by: str = "scheduler",
) -> Dict[str, Any]:
    """
    Re-run the classifier over stored rows for every active brand.

    No Graph API calls; tiers drift between daily syncs as ads age out of
    the new window and paused ads change state.
    """
    coordinator = coordinator or ScheduledSyncCoordinator(db)
    date_window = DateWindow(date_window or settings.SYNC_DEFAULT_DATE_WINDOW)

    task_id = log_task_start(
        db, "reclassify_all_brands", "classify", date_window=date_window, triggered_by=triggered_by
    )
    try:
        brand_ids = coordinator.connections.active_brand_ids()
    except Exception as e:
        log_task_complete(db, task_id, False, str(e))
        raise

    results: Dict[str, Any] = {}
    succeeded = failed = 0

    for brand_id in brand_ids:
        try:
            summary = coordinator.classify(brand_id, date_window)
            results[str(brand_id)] = summary.classifications.model_dump()
            succeeded += 1
        except Exception as e:
            failed += 1
            results[str(brand_id)] = {"error": str(e)}
            logger.error(f"Reclassification failed for brand {brand_id}: {e}")

    log_task_complete(
        db,
        task_id,
        success=failed == 0,
        message=f"Reclassified {succeeded}/{len(brand_ids)} brands",
        processed=len(brand_ids),
        succeeded=succeeded,
        failed=failed,
        output_data=results,
    )
    logger.info(f"Reclassification finished: {succeeded} succeeded, {failed} failed")

    return {"brands": len(brand_ids), "succeeded": succeeded, "failed": failed, "results": results}
