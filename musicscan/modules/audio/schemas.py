from pydantic import BaseModel
from typing import Optional


class RecognitionResult(BaseModel):
    matched: bool
    artist: Optional[str] = None
    title: Optional[str] = None
    album: Optional[str] = None
    release_date: Optional[str] = None
    label: Optional[str] = None
    song_link: Optional[str] = None
    spotify_url: Optional[str] = None
    apple_music_url: Optional[str] = None
