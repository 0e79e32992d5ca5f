from fastapi import APIRouter, Depends
from musicscan.database.supabase_client import get_service_supabase
from musicscan.modules.ai.schemas import QuizRequest, QuizResponse, QuizResultCreate, QuizResultResponse
from musicscan.modules.ai.service import AIService
from musicscan.core.dependencies import get_current_user
from supabase import Client
from typing import Dict

router = APIRouter(prefix="/quiz", tags=["quiz"])


def get_ai_service(supabase: Client = Depends(get_service_supabase)) -> AIService:
    return AIService(supabase)


@router.post("/collection", response_model=QuizResponse)
def generate_collection_quiz(
    data: QuizRequest,
    user_data: Dict = Depends(get_current_user),
    service: AIService = Depends(get_ai_service),
):
    """Quiz built by the AI from the caller's own CD and vinyl scans."""
    return service.generate_collection_quiz(user_data["id"], data.quiz_type, data.question_count)


@router.post("/results", response_model=QuizResultResponse, status_code=201)
async def save_quiz_result(
    data: QuizResultCreate,
    user_data: Dict = Depends(get_current_user),
    service: AIService = Depends(get_ai_service),
):
    return service.save_quiz_result(user_data["id"], data)
