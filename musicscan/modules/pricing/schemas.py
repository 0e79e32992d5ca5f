from pydantic import BaseModel
from typing import Optional, List


class PriceData(BaseModel):
    lowest_price: Optional[float] = None
    median_price: Optional[float] = None
    highest_price: Optional[float] = None
    num_for_sale: int = 0
    total_prices_found: int = 0


class CollectResult(BaseModel):
    processed: int
    successful: int
    skipped: int
    errors: int


class PricePoint(BaseModel):
    created_at: str
    lowest_price: Optional[float] = None
    median_price: Optional[float] = None
    highest_price: Optional[float] = None
    num_for_sale: Optional[int] = None


class PriceHistoryResponse(BaseModel):
    discogs_id: int
    points: List[PricePoint]
