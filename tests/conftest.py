"""
Shared fixtures: in-memory database, seeded brand, ad factory, fake Graph client
"""
import asyncio
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import pytest

from adtier.core.database import Database
from adtier.core.exceptions import GraphAPIError
from adtier.models import AdStatus, Brand, ConnectionStatus, FbAd, FbConnection


def run(coro):
    """Drive a coroutine to completion from a sync test"""
    return asyncio.run(coro)


class ScriptedClock:
    """Monotonic clock + sleep pair; sleeping advances the clock instantly"""

    def __init__(self, start: float = 1000.0):
        self.now = start
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


def raw_ad(
    ad_id: str,
    name: Optional[str] = "MTRX_ACME01_CS1_TOF_PAIN2_BROAD_JOHN_MIKE_V1",
    status: str = "ACTIVE",
    spend: Any = "100.00",
    purchases: Any = "5",
    revenue: Any = "400.00",
    video_id: Optional[str] = None,
    created_time: Optional[str] = "2026-01-01T10:00:00+0000",
) -> Dict[str, Any]:
    """A Graph API ad record with embedded creative and insights"""
    creative: Dict[str, Any] = {
        "id": f"cr_{ad_id}",
        "title": f"Headline {ad_id}",
        "body": "Body copy",
        "image_url": "https://cdn.test/img.jpg",
        "thumbnail_url": "https://cdn.test/thumb.jpg",
        "call_to_action_type": "SHOP_NOW",
    }
    if video_id:
        creative["video_id"] = video_id

    ad: Dict[str, Any] = {
        "id": ad_id,
        "name": name,
        "status": status,
        "adset_id": "as_1",
        "campaign_id": "c_1",
        "creative": creative,
        "insights": {
            "data": [{
                "spend": str(spend),
                "impressions": "10000",
                "clicks": "200",
                "ctr": "2.0",
                "cpm": "10.0",
                "cpc": "0.5",
                "actions": [{"action_type": "purchase", "value": str(purchases)}],
                "action_values": [{"action_type": "purchase", "value": str(revenue)}],
            }]
        },
    }
    if created_time:
        ad["created_time"] = created_time
    return ad


class FakeGraphClient:
    """Stands in for GraphApiClient in pipeline tests"""

    def __init__(
        self,
        access_token: str,
        ads: Optional[List[Dict[str, Any]]] = None,
        daily: Optional[Dict[str, Any]] = None,
        error: Optional[GraphAPIError] = None,
    ):
        self.access_token = access_token
        self.ads = ads or []
        self.daily = daily or {}
        self.error = error
        self.closed = False

    async def get_ads_with_insights(self, ad_account_id, date_window=None, max_pages=None):
        if self.error:
            raise self.error
        return list(self.ads)

    async def get_ad_insights_daily(self, ad_id, date_window=None):
        result = self.daily.get(ad_id, [])
        if isinstance(result, Exception):
            raise result
        return result

    async def close(self):
        self.closed = True


class FakeClientFactory:
    """Callable client factory that remembers every client it built"""

    def __init__(self, **client_kwargs):
        self.client_kwargs = client_kwargs
        self.clients: List[FakeGraphClient] = []

    def __call__(self, access_token: str) -> FakeGraphClient:
        client = FakeGraphClient(access_token, **self.client_kwargs)
        self.clients.append(client)
        return client


@pytest.fixture
def db():
    database = Database("sqlite://")
    database.create_all()
    yield database
    database.drop_all()
    database.dispose()


def create_brand(
    db: Database,
    name: str = "Acme",
    target_roas: float = 0,
    target_cpa: float = 0,
    connected: bool = True,
    token_expires_at: Optional[datetime] = None,
    ad_account_id: Optional[str] = "act_123",
) -> int:
    with db.session_scope() as session:
        brand = Brand(name=name, target_roas=target_roas, target_cpa=target_cpa)
        session.add(brand)
        session.flush()
        if connected:
            session.add(FbConnection(
                brand_id=brand.id,
                access_token_encrypted=f"token-{name}",
                token_expires_at=token_expires_at,
                ad_account_id=ad_account_id,
                status=ConnectionStatus.ACTIVE,
            ))
        return brand.id


@pytest.fixture
def brand_id(db) -> int:
    return create_brand(db)


@pytest.fixture
def make_ad(db, brand_id):
    """Insert an fb_ads row directly; returns the fb_ad_id"""
    counter = {"n": 0}

    def _make(**fields) -> str:
        counter["n"] += 1
        values = {
            "brand_id": brand_id,
            "fb_ad_id": f"ad_{counter['n']}",
            "ad_name": f"Ad {counter['n']}",
            "status": AdStatus.ACTIVE.value,
            "spend": 100.0,
            "purchases": 5,
            "cpa": 20.0,
            "revenue": 300.0,
            "roas": 3.0,
            "fb_created_time": datetime(2025, 1, 1, tzinfo=timezone.utc),
        }
        values.update(fields)
        with db.session_scope() as session:
            session.add(FbAd(**values))
        return values["fb_ad_id"]

    return _make
