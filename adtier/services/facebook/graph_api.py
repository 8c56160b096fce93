"""
Facebook Graph API Client
Rate-limited (rolling one-hour call budget), exponential backoff, paginated
"""
import asyncio
import json
import logging
import time
from collections import deque
from typing import Any, Awaitable, Callable, Deque, Dict, List, Optional

import httpx

from adtier.core.config import settings
from adtier.core.exceptions import (
    AuthError,
    GraphAPIError,
    PermissionDeniedError,
    RateLimitError,
    TransientError,
)
from adtier.models.enums import DateWindow
from adtier.schemas.sync import AdComment, AdComments

logger = logging.getLogger(__name__)

# Provider error codes
RATE_LIMIT_CODES = frozenset({4, 17, 32})
AUTH_ERROR_CODES = frozenset({190})
PERMISSION_ERROR_CODES = frozenset({10, 100, 200})

WINDOW_SECONDS = 3600.0

AD_FIELDS = (
    "id,name,status,adset_id,campaign_id,created_time,"
    "creative{id,title,body,image_url,thumbnail_url,video_id,call_to_action_type}"
)
INSIGHT_FIELDS = "spend,impressions,clicks,ctr,cpm,cpc,actions,action_values,cost_per_action_type"


def ensure_act_prefix(ad_account_id: str) -> str:
    if not ad_account_id.startswith("act_"):
        return f"act_{ad_account_id}"
    return ad_account_id


class GraphApiClient:
    """
    Graph API client scoped to one access token.

    Every HTTP attempt (including retries and pagination follow-ups) passes
    through the rate limiter, so the instance never exceeds
    `max_calls_per_hour` requests in any rolling hour.
    """

    def __init__(
        self,
        access_token: str,
        base_url: Optional[str] = None,
        max_calls_per_hour: Optional[int] = None,
        min_delay: Optional[float] = None,
        max_retries: Optional[int] = None,
        backoff_base: Optional[float] = None,
        page_size: Optional[int] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.access_token = access_token
        self.base_url = base_url or settings.facebook_api_url
        self.max_calls_per_hour = max_calls_per_hour or settings.FACEBOOK_MAX_CALLS_PER_HOUR
        self.min_delay = settings.FACEBOOK_MIN_CALL_DELAY_SECONDS if min_delay is None else min_delay
        self.max_retries = settings.FACEBOOK_MAX_RETRIES if max_retries is None else max_retries
        self.backoff_base = settings.FACEBOOK_BACKOFF_BASE_SECONDS if backoff_base is None else backoff_base
        self.page_size = page_size or settings.FACEBOOK_PAGE_SIZE
        self.timeout = timeout or settings.FACEBOOK_HTTP_TIMEOUT_SECONDS

        self._transport = transport
        self._clock = clock
        self._sleep = sleep
        self._call_times: Deque[float] = deque()
        self._lock = asyncio.Lock()
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout, transport=self._transport)
        return self._client

    async def close(self):
        """Close the HTTP client"""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "GraphApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    # ========================================
    # Rate limiting
    # ========================================

    def _prune(self, now: float) -> None:
        while self._call_times and now - self._call_times[0] >= WINDOW_SECONDS:
            self._call_times.popleft()

    async def _rate_limit(self) -> None:
        """Block until one more call fits in the rolling window, then space it out."""
        async with self._lock:
            self._prune(self._clock())
            while len(self._call_times) >= self.max_calls_per_hour:
                now = self._clock()
                wait = WINDOW_SECONDS - (now - self._call_times[0]) + 1.0
                logger.info(f"Rate limit reached ({self.max_calls_per_hour}/h), waiting {wait:.0f}s")
                await self._sleep(wait)
                self._prune(self._clock())

            # Anti-burst spacing even when under budget
            if self.min_delay > 0:
                await self._sleep(self.min_delay)
            self._call_times.append(self._clock())

    # ========================================
    # Requests
    # ========================================

    async def request(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        GET `endpoint` (e.g. "/act_123/ads") with rate limiting and retries.

        Raises:
            AuthError / PermissionDeniedError: immediately, never retried.
            RateLimitError / TransientError: after the retry budget is exhausted.
        """
        query = dict(params or {})
        query["access_token"] = self.access_token
        return await self._get_json(f"{self.base_url}{endpoint}", query)

    async def _get_json(self, url: str, params: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        attempt = 0
        while True:
            await self._rate_limit()
            try:
                return await self._send(url, params)
            except GraphAPIError as e:
                if not e.retryable or attempt >= self.max_retries:
                    raise
                attempt += 1
                backoff = self.backoff_base * (2 ** attempt)
                logger.warning(
                    f"Graph API call failed ({type(e).__name__}: {e}), "
                    f"retry {attempt}/{self.max_retries} in {backoff:.1f}s"
                )
                await self._sleep(backoff)

    async def _send(self, url: str, params: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        try:
            response = await self.client.get(url, params=params)
        except httpx.TransportError as e:
            raise TransientError(f"Network error: {e}") from e

        try:
            data = response.json()
        except ValueError:
            data = None

        if isinstance(data, dict) and data.get("error"):
            raise self._error_from_envelope(data["error"])

        if response.status_code == 429:
            raise RateLimitError("Graph API throttled request (HTTP 429)")
        if response.status_code >= 500:
            raise TransientError(f"Graph API server error (HTTP {response.status_code})")
        if response.status_code == 401:
            raise AuthError("Graph API rejected the access token (HTTP 401)")
        if response.status_code == 403:
            raise PermissionDeniedError("Graph API denied the request (HTTP 403)")
        if response.status_code >= 400:
            raise GraphAPIError(f"Graph API request failed (HTTP {response.status_code})", retryable=False)
        if not isinstance(data, dict):
            raise TransientError("Graph API returned a non-JSON response")

        return data

    @staticmethod
    def _error_from_envelope(error: Any) -> GraphAPIError:
        """Map a `{error: {message, code}}` envelope onto the error taxonomy"""
        if not isinstance(error, dict):
            return TransientError(f"Graph API error: {error}")

        code = error.get("code")
        message = f"Graph API error: {error.get('message', 'unknown error')} (code: {code})"

        if code in RATE_LIMIT_CODES:
            return RateLimitError(message, code=code)
        if code in AUTH_ERROR_CODES:
            return AuthError(message, code=code)
        if code in PERMISSION_ERROR_CODES:
            return PermissionDeniedError(message, code=code)
        return TransientError(message, code=code)

    async def fetch_all_pages(
        self,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        max_pages: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """
        Fetch every page of a cursor-paginated endpoint.

        The first page uses a small `limit` to keep payloads under the
        provider's "too much data" threshold; later pages follow `paging.next`
        (which carries all query params). Stops after `max_pages`.
        """
        max_pages = max_pages or settings.FACEBOOK_MAX_PAGES

        first_params = dict(params or {})
        first_params["limit"] = str(self.page_size)
        data = await self.request(endpoint, first_params)

        all_data: List[Dict[str, Any]] = list(data.get("data") or [])
        next_url = (data.get("paging") or {}).get("next")
        page = 1

        while next_url and page < max_pages:
            data = await self._get_json(next_url, None)
            all_data.extend(data.get("data") or [])
            next_url = (data.get("paging") or {}).get("next")
            page += 1

        if next_url:
            logger.warning(f"Stopped paginating {endpoint} at {max_pages} pages ({len(all_data)} records)")

        return all_data

    # ========================================
    # Ads API
    # ========================================

    async def get_ads_with_insights(
        self,
        ad_account_id: str,
        date_window: DateWindow = DateWindow.LAST_90D,
        max_pages: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """All ads of an account with creative and date-ranged insights embedded"""
        ad_account_id = ensure_act_prefix(ad_account_id)
        preset = DateWindow(date_window).date_preset

        return await self.fetch_all_pages(
            f"/{ad_account_id}/ads",
            {
                "fields": f"{AD_FIELDS},insights.date_preset({preset}){{{INSIGHT_FIELDS}}}",
                # Server-side filter keeps pages small on large accounts
                "filtering": json.dumps([{"field": "impressions", "operator": "GREATER_THAN", "value": "0"}]),
            },
            max_pages=max_pages,
        )

    async def get_ad_insights_daily(
        self,
        ad_id: str,
        date_window: DateWindow = DateWindow.LAST_30D,
    ) -> List[Dict[str, Any]]:
        """One insight row per calendar day for one ad"""
        return await self.fetch_all_pages(
            f"/{ad_id}/insights",
            {
                "fields": f"{INSIGHT_FIELDS},date_start",
                "date_preset": DateWindow(date_window).date_preset,
                "time_increment": "1",
            },
        )

    async def get_ad_comments(self, ad_id: str, limit: int = 10) -> AdComments:
        """Comments on the post behind an ad's creative"""
        ad_data = await self.request(f"/{ad_id}", {"fields": "creative{effective_object_story_id}"})

        post_id = (ad_data.get("creative") or {}).get("effective_object_story_id")
        if not post_id:
            return AdComments(ad_id=ad_id, error="No post associated with this ad")

        comments_data = await self.request(
            f"/{post_id}/comments",
            {"fields": "message,from,created_time,like_count", "limit": str(limit)},
        )

        return AdComments(
            ad_id=ad_id,
            post_id=post_id,
            comments=[
                AdComment(
                    message=c.get("message"),
                    author=(c.get("from") or {}).get("name") or "Unknown",
                    created_time=c.get("created_time"),
                    like_count=c.get("like_count") or 0,
                )
                for c in comments_data.get("data") or []
            ],
        )

    async def get_video_source(self, video_id: str) -> Optional[str]:
        """Temporary signed download URL for a video"""
        data = await self.request(f"/{video_id}", {"fields": "source"})
        return data.get("source")
