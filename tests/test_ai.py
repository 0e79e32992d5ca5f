import json
from unittest.mock import MagicMock

import pytest
from fastapi import HTTPException
from openai import OpenAIError

from musicscan.core.errors import ExternalServiceError
from musicscan.modules.ai.client import AIClient, strip_code_fences
from musicscan.modules.ai.schemas import QuizResultCreate
from musicscan.modules.ai.service import AIService, summarize_collection, validate_questions
from tests.conftest import USER_ID


def _openai(content):
    openai = MagicMock()
    openai.chat.completions.create.return_value.choices = [MagicMock(message=MagicMock(content=content))]
    return openai


def _question(question="Wie?", correct="Queen", options=("Queen", "ABBA", "Kiss", "Toto")):
    return {"type": "artist", "question": question, "correctAnswer": correct, "options": list(options)}


def test_strip_code_fences():
    assert strip_code_fences('```json\n{"a": 1}\n```') == '{"a": 1}'
    assert strip_code_fences(None) == ""


class TestAIClient:
    def test_chat_json_tolerates_fences(self):
        client = AIClient(client=_openai('```json\n{"questions": []}\n```'), model="test-model")
        assert client.chat_json([{"role": "user", "content": "hi"}]) == {"questions": []}
        kwargs = client.client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "test-model"
        assert "max_tokens" not in kwargs

    def test_invalid_json_is_external_error(self):
        client = AIClient(client=_openai("dit is geen json"))
        with pytest.raises(ExternalServiceError):
            client.chat_json([{"role": "user", "content": "hi"}])

    def test_openai_errors_are_wrapped(self):
        openai = MagicMock()
        openai.chat.completions.create.side_effect = OpenAIError("quota exceeded")
        with pytest.raises(ExternalServiceError) as exc:
            AIClient(client=openai).chat([{"role": "user", "content": "hi"}])
        assert exc.value.service == "ai"


def test_summarize_collection_dedupes():
    albums = [
        {"artist": "Queen", "genre": "Rock", "year": 1975},
        {"artist": "Queen", "genre": "Rock", "year": 1980},
        {"artist": "ABBA", "genre": "Pop", "year": 1975},
    ]
    summary = summarize_collection(albums, sample_size=2)
    assert summary["artists"] == ["Queen", "ABBA"]
    assert summary["genres"] == ["Rock", "Pop"]
    assert summary["years"] == [1975, 1980]
    assert len(summary["sample_albums"]) == 2


def test_validate_questions_drops_malformed_and_renumbers():
    raw = [
        _question("Goed"),
        _question("Drie opties", options=("Queen", "ABBA", "Kiss")),
        _question("Antwoord ontbreekt", correct="Blondie"),
        _question("Dubbele optie", options=("Queen", "Queen", "Kiss", "Toto")),
        "geen dict",
        _question("Ook goed", correct="Toto"),
    ]
    questions = validate_questions(raw)
    assert [q.question for q in questions] == ["Goed", "Ook goed"]
    assert [q.id for q in questions] == [1, 2]
    assert questions[1].correct_answer == "Toto"


class TestCollectionQuiz:
    def test_empty_collection_is_400(self, db):
        with pytest.raises(HTTPException) as exc:
            AIService(db, ai=MagicMock()).generate_collection_quiz(USER_ID)
        assert exc.value.status_code == 400

    def test_generates_from_both_scan_tables(self, db):
        db.insert_rows("cd_scan", {"user_id": USER_ID, "artist": "Queen", "title": "Innuendo", "year": 1991})
        db.insert_rows("vinyl2_scan", [
            {"user_id": USER_ID, "artist": "ABBA", "title": "Arrival", "year": 1976},
            {"user_id": USER_ID, "artist": None, "title": "Unknown"},
            {"user_id": "someone-else", "artist": "Kiss", "title": "Destroyer"},
        ])
        ai = MagicMock()
        ai.chat_json.return_value = {"questions": [_question("Een"), _question("Twee"), _question("Drie")]}

        quiz = AIService(db, ai=ai).generate_collection_quiz(USER_ID, question_count=2)

        assert quiz.total_albums == 2
        assert len(quiz.questions) == 2
        prompt = ai.chat_json.call_args.args[0][1]["content"]
        assert "Queen - Innuendo (1991)" in prompt
        assert "Destroyer" not in prompt
        assert ai.chat_json.call_args.kwargs["max_tokens"] == 4000

    def test_no_valid_questions_is_external_error(self, db):
        db.insert_rows("cd_scan", {"user_id": USER_ID, "artist": "Queen", "title": "Innuendo"})
        ai = MagicMock()
        ai.chat_json.return_value = {"questions": [_question(options=("a", "b"))]}
        with pytest.raises(ExternalServiceError):
            AIService(db, ai=ai).generate_collection_quiz(USER_ID)


def test_save_quiz_result_computes_percentage(db):
    result = AIService(db, ai=MagicMock()).save_quiz_result(
        USER_ID, QuizResultCreate(quiz_type="collection", questions_total=3, questions_correct=2)
    )
    assert result.score_percentage == 67
    assert result.id is not None
    assert db.rows("quiz_results")[0]["user_id"] == USER_ID


def test_quiz_result_rejects_more_correct_than_total():
    with pytest.raises(ValueError):
        QuizResultCreate(quiz_type="collection", questions_total=2, questions_correct=3)


def test_results_route(client, user_headers):
    body = {"quiz_type": "collection", "questions_total": 10, "questions_correct": 10, "badge_earned": "expert"}
    response = client.post("/api/v1/quiz/results", json=body, headers=user_headers)
    assert response.status_code == 201
    assert response.json()["score_percentage"] == 100


def test_results_route_validation_error_shape(client, user_headers):
    body = {"quiz_type": "collection", "questions_total": 0, "questions_correct": 0}
    response = client.post("/api/v1/quiz/results", json=body, headers=user_headers)
    assert response.status_code == 422
    assert "error" in response.json()


def test_collection_quiz_route_uses_ai(client, db, user_headers, monkeypatch):
    db.insert_rows("cd_scan", {"user_id": USER_ID, "artist": "Queen", "title": "Innuendo"})
    reply = json.dumps({"questions": [_question()]})
    monkeypatch.setattr("musicscan.modules.ai.service.AIClient", lambda: AIClient(client=_openai(reply)))

    response = client.post("/api/v1/quiz/collection", json={"question_count": 1}, headers=user_headers)

    assert response.status_code == 200
    assert response.json()["questions"][0]["correct_answer"] == "Queen"
