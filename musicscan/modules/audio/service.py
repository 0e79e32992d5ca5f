from musicscan.modules.audio.schemas import RecognitionResult
from musicscan.config import settings
from musicscan.core.errors import ExternalServiceError
from typing import Any, Dict, Optional
from fastapi import HTTPException
import requests
import logging

logger = logging.getLogger(__name__)

AUDD_API = "https://api.audd.io/"
RETURN_SOURCES = "spotify,apple_music"


def parse_audd_response(payload: Dict[str, Any]) -> RecognitionResult:
    if payload.get("status") == "error":
        error = payload.get("error") or {}
        raise ExternalServiceError("audd", error.get("error_message") or "Recognition failed", error.get("error_code"))
    result = payload.get("result")
    if not result:
        return RecognitionResult(matched=False)
    spotify = result.get("spotify") or {}
    apple_music = result.get("apple_music") or {}
    return RecognitionResult(
        matched=True,
        artist=result.get("artist"),
        title=result.get("title"),
        album=result.get("album"),
        release_date=result.get("release_date"),
        label=result.get("label"),
        song_link=result.get("song_link"),
        spotify_url=(spotify.get("external_urls") or {}).get("spotify"),
        apple_music_url=apple_music.get("url"),
    )


class AudioService:
    def __init__(self, api_token: Optional[str] = None, timeout: int = 60):
        self.api_token = api_token or settings.audd_api_token
        self.timeout = timeout

    def recognize(self, url: Optional[str] = None, audio: Optional[bytes] = None,
                  filename: str = "sample.mp3") -> RecognitionResult:
        """Identify a song from a public URL or an uploaded clip."""
        if not url and not audio:
            raise HTTPException(status_code=400, detail="Provide an audio url or file")
        if not self.api_token:
            raise HTTPException(status_code=500, detail="AUDD_API_TOKEN is not configured")

        data = {"api_token": self.api_token, "return": RETURN_SOURCES}
        files = None
        if url:
            data["url"] = url
        else:
            files = {"file": (filename, audio)}

        try:
            response = requests.post(AUDD_API, data=data, files=files, timeout=self.timeout)
        except requests.RequestException as e:
            raise ExternalServiceError("audd", str(e))
        if not response.ok:
            raise ExternalServiceError("audd", f"HTTP {response.status_code}", response.status_code)

        result = parse_audd_response(response.json())
        if result.matched:
            logger.info(f"Recognized: {result.artist} - {result.title}")
        else:
            logger.info("No match found for audio sample")
        return result
