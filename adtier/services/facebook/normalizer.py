"""
Normalize raw Graph API insight objects into the flat performance schema.

The `actions`, `action_values` and `cost_per_action_type` fields come back as
arrays of {action_type, value} dicts with string values; anything absent or
malformed normalizes to zero.
"""
import math
from typing import Any, Dict, List, Optional

from adtier.schemas.performance import PerformanceSnapshot

PURCHASE_ACTION_TYPES = ("purchase", "offsite_conversion.fb_pixel_purchase")


def _to_float(value: Any) -> float:
    """Safely parse a non-negative float; 0.0 on anything unusable"""
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        result = float(value)
    except (ValueError, TypeError):
        return 0.0
    if not math.isfinite(result) or result < 0:
        return 0.0
    return result


def _to_int(value: Any) -> int:
    return int(_to_float(value))


def _find_purchase(entries: Any) -> Optional[Dict[str, Any]]:
    """First entry whose action_type is one of the purchase spellings"""
    if not isinstance(entries, list):
        return None
    for entry in entries:
        if isinstance(entry, dict) and entry.get("action_type") in PURCHASE_ACTION_TYPES:
            return entry
    return None


def extract_purchases(actions: Optional[List[Dict[str, Any]]]) -> int:
    purchase = _find_purchase(actions)
    return _to_int(purchase.get("value")) if purchase else 0


def extract_revenue(action_values: Optional[List[Dict[str, Any]]]) -> float:
    purchase = _find_purchase(action_values)
    return _to_float(purchase.get("value")) if purchase else 0.0


def extract_cpa(cost_per_action: Optional[List[Dict[str, Any]]]) -> float:
    purchase = _find_purchase(cost_per_action)
    return _to_float(purchase.get("value")) if purchase else 0.0


def normalize_insights(raw: Optional[Dict[str, Any]]) -> PerformanceSnapshot:
    """Map one raw insight object (or None) to a PerformanceSnapshot. Never raises."""
    if not isinstance(raw, dict):
        return PerformanceSnapshot()

    spend = _to_float(raw.get("spend"))
    purchases = extract_purchases(raw.get("actions"))
    revenue = extract_revenue(raw.get("action_values"))

    cpa = extract_cpa(raw.get("cost_per_action_type"))
    if not cpa and purchases > 0:
        cpa = spend / purchases

    return PerformanceSnapshot(
        spend=spend,
        impressions=_to_int(raw.get("impressions")),
        clicks=_to_int(raw.get("clicks")),
        ctr=_to_float(raw.get("ctr")),
        cpm=_to_float(raw.get("cpm")),
        cpc=_to_float(raw.get("cpc")),
        purchases=purchases,
        cpa=cpa,
        revenue=revenue,
        roas=revenue / spend if spend > 0 else 0.0,
    )
