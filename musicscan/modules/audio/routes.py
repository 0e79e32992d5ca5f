import asyncio
from fastapi import APIRouter, Depends, File, Form, UploadFile
from musicscan.modules.audio.schemas import RecognitionResult
from musicscan.modules.audio.service import AudioService
from musicscan.core.dependencies import get_current_user
from typing import Dict, Optional

router = APIRouter(prefix="/audio", tags=["audio"])


def get_audio_service() -> AudioService:
    return AudioService()


@router.post("/recognize", response_model=RecognitionResult)
async def recognize(
    url: Optional[str] = Form(None),
    file: Optional[UploadFile] = File(None),
    user_data: Dict = Depends(get_current_user),
    service: AudioService = Depends(get_audio_service),
):
    audio = await file.read() if file is not None else None
    filename = file.filename if file is not None and file.filename else "sample.mp3"
    return await asyncio.to_thread(service.recognize, url, audio, filename)
