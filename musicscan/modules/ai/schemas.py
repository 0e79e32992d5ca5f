from pydantic import BaseModel, Field, model_validator
from typing import Optional, List


class QuizRequest(BaseModel):
    quiz_type: str = "collection"
    question_count: int = Field(10, ge=1, le=30)


class QuizQuestion(BaseModel):
    id: int
    type: Optional[str] = None
    question: str
    correct_answer: str
    options: List[str]
    explanation: Optional[str] = None


class QuizResponse(BaseModel):
    quiz_type: str
    questions: List[QuizQuestion]
    total_albums: int


class QuizResultCreate(BaseModel):
    quiz_type: str
    questions_total: int = Field(..., ge=1)
    questions_correct: int = Field(..., ge=0)
    badge_earned: Optional[str] = None
    is_public: bool = False

    @model_validator(mode="after")
    def correct_not_above_total(self):
        if self.questions_correct > self.questions_total:
            raise ValueError("questions_correct cannot exceed questions_total")
        return self


class QuizResultResponse(BaseModel):
    id: Optional[str] = None
    quiz_type: str
    questions_total: int
    questions_correct: int
    score_percentage: int
    badge_earned: Optional[str] = None
