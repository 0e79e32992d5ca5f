from supabase import Client
from musicscan.modules.ai.client import AIClient
from musicscan.modules.ai.schemas import QuizQuestion, QuizResponse, QuizResultCreate, QuizResultResponse
from musicscan.core.errors import ExternalServiceError
from typing import Any, Dict, List, Optional
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)

SCAN_COLUMNS = "artist, title, label, catalog_number, year, genre, style, country"
QUIZ_SYSTEM_PROMPT = "Je bent een expert in het maken van muziekquizzes. Genereer altijd valid JSON."


def summarize_collection(albums: List[Dict[str, Any]], sample_size: int = 20) -> Dict[str, Any]:
    artists = list(dict.fromkeys(a["artist"] for a in albums if a.get("artist")))
    genres = list(dict.fromkeys(a["genre"] for a in albums if a.get("genre")))
    years = sorted({a["year"] for a in albums if a.get("year")})
    return {
        "total_albums": len(albums),
        "artists": artists[:50],
        "genres": genres,
        "years": years,
        "sample_albums": albums[:sample_size],
    }


def build_quiz_prompt(summary: Dict[str, Any], question_count: int) -> str:
    years = summary["years"]
    year_range = f"{years[0]} - {years[-1]}" if years else "onbekend"
    samples = "\n".join(
        f"{a.get('artist')} - {a.get('title')} ({a.get('year') or 'Unknown'})"
        for a in summary["sample_albums"]
    )
    return f"""
Je bent een muziekquiz generator. Analyseer deze fysieke muziekcollectie en genereer precies {question_count} uitdagende maar eerlijke quiz vragen.

FYSIEKE COLLECTIE DATA:
- Totaal albums: {summary['total_albums']}
- Artiesten: {', '.join(summary['artists'])}
- Genres: {', '.join(summary['genres'])}
- Jaren: {year_range}

SAMPLE ALBUMS:
{samples}

Gebruik verschillende vraagtypen: album herkenning, jaar, genre, artiest tellen, chronologie, label, decennium.

BELANGRIJK: Alle antwoordopties moeten uit de DAADWERKELIJKE collectie komen.

Retourneer JSON format:
{{
  "questions": [
    {{
      "id": 1,
      "type": "album_recognition",
      "question": "Welke artiest heeft het album 'Title'?",
      "correctAnswer": "Artist Name",
      "options": ["Option 1", "Option 2", "Option 3", "Option 4"],
      "explanation": "Korte uitleg waarom dit klopt"
    }}
  ]
}}"""


def validate_questions(raw_questions: List[Dict[str, Any]]) -> List[QuizQuestion]:
    """Keep questions with exactly four distinct options that include the correct answer."""
    valid = []
    for i, q in enumerate(raw_questions or [], start=1):
        if not isinstance(q, dict):
            continue
        options = [str(o) for o in (q.get("options") or [])]
        correct = q.get("correctAnswer", q.get("correct_answer"))
        if not q.get("question") or correct is None:
            continue
        if len(options) != 4 or len(set(options)) != 4 or str(correct) not in options:
            logger.warning(f"Dropping invalid quiz question: {q.get('question')}")
            continue
        valid.append(QuizQuestion(
            id=len(valid) + 1,
            type=q.get("type"),
            question=q["question"],
            correct_answer=str(correct),
            options=options,
            explanation=q.get("explanation"),
        ))
    return valid


class AIService:
    def __init__(self, supabase: Client, ai: Optional[AIClient] = None):
        self.supabase = supabase
        self.ai = ai or AIClient()

    def _collection_albums(self, user_id: str) -> List[Dict[str, Any]]:
        albums = []
        for table in ("cd_scan", "vinyl2_scan"):
            result = self.supabase.table(table)\
                .select(SCAN_COLUMNS)\
                .eq("user_id", user_id)\
                .not_.is_("artist", "null")\
                .not_.is_("title", "null")\
                .execute()
            albums.extend(result.data or [])
        return albums

    def generate_collection_quiz(self, user_id: str, quiz_type: str = "collection",
                                 question_count: int = 10) -> QuizResponse:
        try:
            albums = self._collection_albums(user_id)
            if not albums:
                raise HTTPException(status_code=400, detail="No collection data found")
            summary = summarize_collection(albums)
            logger.info(f"Generating {question_count} quiz questions for user {user_id} ({len(albums)} albums)")

            data = self.ai.chat_json(
                [
                    {"role": "system", "content": QUIZ_SYSTEM_PROMPT},
                    {"role": "user", "content": build_quiz_prompt(summary, question_count)},
                ],
                temperature=0.7,
                max_tokens=6000 if question_count > 20 else 4000,
            )
            raw = data.get("questions") if isinstance(data, dict) else None
            questions = validate_questions(raw or [])
            if not questions:
                raise ExternalServiceError("ai", "AI response contained no valid quiz questions")
            return QuizResponse(quiz_type=quiz_type, questions=questions[:question_count], total_albums=len(albums))
        except (HTTPException, ExternalServiceError):
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def save_quiz_result(self, user_id: str, data: QuizResultCreate) -> QuizResultResponse:
        percentage = round(data.questions_correct / data.questions_total * 100)
        row = {
            "user_id": user_id,
            "quiz_type": data.quiz_type,
            "questions_total": data.questions_total,
            "questions_correct": data.questions_correct,
            "score_percentage": percentage,
            "badge_earned": data.badge_earned,
            "is_public": data.is_public,
        }
        try:
            result = self.supabase.table("quiz_results").insert(row).execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        saved = result.data[0] if result.data else row
        return QuizResultResponse(
            id=saved.get("id"),
            quiz_type=data.quiz_type,
            questions_total=data.questions_total,
            questions_correct=data.questions_correct,
            score_percentage=percentage,
            badge_earned=data.badge_earned,
        )
