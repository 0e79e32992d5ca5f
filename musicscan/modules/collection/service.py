from supabase import Client
from musicscan.modules.collection.schemas import (
    ScanListResponse, CollectionStats, CountValue, DecadeStats, RangeCount,
)
from typing import Any, Dict, List, Optional
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)

SCAN_TABLES = {"cd": ("cd_scan", "CD"), "vinyl": ("vinyl2_scan", "Vinyl")}
PRICE_RANGES = [("0-10", 10), ("10-25", 25), ("25-50", 50), ("50-100", 100), ("100+", None)]
TOP_N = 10


def item_price(item: Dict[str, Any]) -> float:
    """calculated_advice_price, else median_price, else marketplace_price; 0 when unpriced."""
    for field in ("calculated_advice_price", "median_price", "marketplace_price"):
        value = item.get(field)
        if value:
            try:
                return float(value)
            except (TypeError, ValueError):
                continue
    return 0.0


def price_range(price: float) -> str:
    for label, upper in PRICE_RANGES:
        if upper is None or price <= upper:
            return label
    return PRICE_RANGES[-1][0]


def decade_of(year: Any) -> Optional[str]:
    try:
        year = int(year)
    except (TypeError, ValueError):
        return None
    if year < 1900:
        return None
    return f"{year // 10 * 10}s"


def _group(items: List[Dict[str, Any]], field: str) -> List[CountValue]:
    groups: Dict[str, Dict[str, float]] = {}
    for item in items:
        key = item.get(field)
        if not key:
            continue
        entry = groups.setdefault(key, {"count": 0, "value": 0.0})
        entry["count"] += 1
        entry["value"] += item_price(item)
    ranked = sorted(groups.items(), key=lambda kv: kv[1]["count"], reverse=True)
    return [CountValue(name=k, count=int(v["count"]), value=round(v["value"], 2)) for k, v in ranked[:TOP_N]]


def compute_stats(items: List[Dict[str, Any]]) -> CollectionStats:
    priced = [i for i in items if item_price(i) > 0]
    total_value = sum(item_price(i) for i in priced)
    most_valuable = max(priced, key=item_price) if priced else None

    ranges = {label: 0 for label, _ in PRICE_RANGES}
    for item in priced:
        ranges[price_range(item_price(item))] += 1

    conditions: Dict[str, int] = {}
    for item in items:
        grade = item.get("condition_grade") or "Unknown"
        conditions[grade] = conditions.get(grade, 0) + 1

    decades: Dict[str, Dict[str, Any]] = {}
    for item in items:
        decade = decade_of(item.get("year"))
        if not decade:
            continue
        entry = decades.setdefault(decade, {"count": 0, "value": 0.0, "cd_count": 0, "vinyl_count": 0})
        entry["count"] += 1
        entry["value"] += item_price(item)
        entry["cd_count" if item.get("format") == "CD" else "vinyl_count"] += 1

    return CollectionStats(
        total_items=len(items),
        total_cds=sum(1 for i in items if i.get("format") == "CD"),
        total_vinyls=sum(1 for i in items if i.get("format") == "Vinyl"),
        total_value=round(total_value, 2),
        average_value=round(total_value / len(priced), 2) if priced else 0.0,
        most_valuable_item=most_valuable,
        items_with_pricing=len(priced),
        items_without_pricing=len(items) - len(priced),
        genres=_group(items, "genre"),
        artists=_group(items, "artist"),
        conditions=conditions,
        decades=[
            DecadeStats(decade=d, count=v["count"], value=round(v["value"], 2),
                        cd_count=v["cd_count"], vinyl_count=v["vinyl_count"])
            for d, v in sorted(decades.items())
        ],
        price_ranges=[RangeCount(range=label, count=ranges[label]) for label, _ in PRICE_RANGES],
    )


class CollectionService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def _tables(self, media_type: Optional[str]):
        if media_type is None:
            return list(SCAN_TABLES.values())
        if media_type not in SCAN_TABLES:
            raise HTTPException(status_code=400, detail="media_type must be 'cd' or 'vinyl'")
        return [SCAN_TABLES[media_type]]

    def list_scans(self, user_id: str, media_type: Optional[str] = None,
                   limit: int = 50, offset: int = 0) -> ScanListResponse:
        tables = self._tables(media_type)
        try:
            items: List[Dict[str, Any]] = []
            total = 0
            for table, label in tables:
                result = self.supabase.table(table)\
                    .select("*", count="exact")\
                    .eq("user_id", user_id)\
                    .order("created_at", desc=True)\
                    .limit(offset + limit)\
                    .execute()
                total += result.count or 0
                items.extend({**row, "format": label, "media_type": table} for row in (result.data or []))
            items.sort(key=lambda r: r.get("created_at") or "", reverse=True)
            return ScanListResponse(items=items[offset:offset + limit], total=total)
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def _all_items(self, user_id: str) -> List[Dict[str, Any]]:
        items: List[Dict[str, Any]] = []
        for table, label in SCAN_TABLES.values():
            result = self.supabase.table(table).select("*").eq("user_id", user_id).execute()
            items.extend({**row, "format": label} for row in (result.data or []))
        return items

    def get_stats(self, user_id: str) -> CollectionStats:
        try:
            return compute_stats(self._all_items(user_id))
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
