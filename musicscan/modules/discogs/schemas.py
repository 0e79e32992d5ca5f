from pydantic import BaseModel, model_validator
from typing import Optional, List, Dict, Any


class AuthorizeResponse(BaseModel):
    authorize_url: str
    oauth_token: str


class OAuthCallbackRequest(BaseModel):
    oauth_token: str
    oauth_verifier: str


class ConnectionResponse(BaseModel):
    connected: bool
    discogs_username: Optional[str] = None
    discogs_user_id: Optional[int] = None


class OrderMessageRequest(BaseModel):
    message: Optional[str] = None
    status: Optional[str] = None  # e.g. "Shipped", "Payment Received"

    @model_validator(mode="after")
    def require_message_or_status(self):
        if not self.message and not self.status:
            raise ValueError("message or status is required")
        return self


class OrderMessagesResponse(BaseModel):
    order_id: str
    messages: List[Dict[str, Any]]
    saved: int = 0


class ReleaseSearchResult(BaseModel):
    id: int
    title: str
    year: Optional[str] = None
    country: Optional[str] = None
    format: List[str] = []
    label: List[str] = []
    catno: Optional[str] = None
    cover_image: Optional[str] = None
    uri: Optional[str] = None


class ReleaseDetails(BaseModel):
    id: int
    title: str
    artists: List[str] = []
    year: Optional[int] = None
    country: Optional[str] = None
    formats: List[str] = []
    labels: List[str] = []
    tracklist: List[Dict[str, Any]] = []
    cover_image: Optional[str] = None
    lowest_price: Optional[float] = None
    currency: Optional[str] = None
    num_for_sale: Optional[int] = None
