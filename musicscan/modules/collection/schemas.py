from pydantic import BaseModel
from typing import Optional, List, Dict, Any


class ScanListResponse(BaseModel):
    items: List[Dict[str, Any]]
    total: int


class CountValue(BaseModel):
    name: str
    count: int
    value: float


class DecadeStats(BaseModel):
    decade: str
    count: int
    value: float
    cd_count: int
    vinyl_count: int


class RangeCount(BaseModel):
    range: str
    count: int


class CollectionStats(BaseModel):
    total_items: int
    total_cds: int
    total_vinyls: int
    total_value: float
    average_value: float
    most_valuable_item: Optional[Dict[str, Any]] = None
    items_with_pricing: int
    items_without_pricing: int
    genres: List[CountValue]
    artists: List[CountValue]
    conditions: Dict[str, int]
    decades: List[DecadeStats]
    price_ranges: List[RangeCount]
