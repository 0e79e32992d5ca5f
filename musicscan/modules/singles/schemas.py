from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any


class MasterSinglesRequest(BaseModel):
    batch_size: int = 10


class MasterSinglesResult(BaseModel):
    processed: int = 0
    inserted: int = 0
    skipped: int = 0
    failed: int = 0
    batch_id: Optional[str] = None
    message: Optional[str] = None


class SingleImport(BaseModel):
    artist: Optional[str] = None
    single_name: Optional[str] = None
    album: Optional[str] = None
    year: Optional[int] = None
    label: Optional[str] = None
    catalog: Optional[str] = None
    discogs_id: Optional[int] = None
    discogs_url: Optional[str] = None
    artwork_url: Optional[str] = None
    genre: Optional[str] = None
    styles: Optional[List[str]] = None
    tags: Optional[List[str]] = None


class SinglesImportRequest(BaseModel):
    singles: List[SingleImport] = Field(..., min_length=1)


class SinglesImportResult(BaseModel):
    batch_id: Optional[str] = None
    imported: int
    invalid: int
    invalid_items: List[Dict[str, Any]] = []
