"""
Comment enrichment for a small batch of ads

The only place the pipeline fans out to the Graph API: batches of
`concurrency` requests run together, and each batch finishes before the next
starts. All calls still share the client's rate limiter.
"""
import asyncio
import logging
from typing import List, Optional, Sequence

from adtier.core.config import settings
from adtier.schemas.sync import AdComments
from adtier.services.facebook.graph_api import GraphApiClient

logger = logging.getLogger(__name__)


async def fetch_comments_for_ads(
    client: GraphApiClient,
    ad_ids: Sequence[str],
    limit: int = 10,
    concurrency: Optional[int] = None,
) -> List[AdComments]:
    """
    Fetch comments for each ad, in input order.

    A failed fetch yields an `AdComments` with no comments and the error text;
    it never aborts the rest of the batch.
    """
    concurrency = max(1, concurrency or settings.COMMENT_FETCH_CONCURRENCY)
    results: List[AdComments] = []

    for start in range(0, len(ad_ids), concurrency):
        batch = list(ad_ids[start:start + concurrency])
        outcomes = await asyncio.gather(
            *(client.get_ad_comments(ad_id, limit=limit) for ad_id in batch),
            return_exceptions=True,
        )

        for ad_id, outcome in zip(batch, outcomes):
            if isinstance(outcome, BaseException):
                if not isinstance(outcome, Exception):
                    raise outcome
                logger.warning(f"Failed to fetch comments for ad {ad_id}: {outcome}")
                results.append(AdComments(ad_id=ad_id, error=str(outcome)))
            else:
                results.append(outcome)

    return results
