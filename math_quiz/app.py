"""FastAPI application with all routes."""
from __future__ import annotations

import logging

logging.basicConfig(level=logging.INFO, format="%(name)s | %(message)s")

from fastapi import FastAPI, HTTPException, Request

from math_quiz.config import Settings, load_settings, save_settings, update_settings
from math_quiz.grader import grade_quiz
from math_quiz.models import DIFFICULTIES
from math_quiz.prompts import MATH_CLASSES
from math_quiz.providers.factory import get_llm
from math_quiz.quiz_generator import QuizGenerationError, QuizInputError, generate_quiz

log = logging.getLogger("math_quiz.app")

app = FastAPI(title="Math Quiz")

# Global state (initialized at startup)
_settings: Settings | None = None


def get_settings() -> Settings:
    assert _settings is not None
    return _settings


def _get_llm():
    return get_llm(get_settings())


@app.on_event("startup")
async def startup():
    global _settings
    if _settings is not None:
        return  # Already initialized (e.g. by tests)
    _settings = load_settings()
    log.info("Using LLM provider %s (%s)", _settings.llm_provider, _settings.llm_model)


@app.get("/")
async def index():
    return {"message": "Math quiz API is running"}


# ── API: Quiz ─────────────────────────────────────────────────────────────

@app.get("/api/classes")
async def api_classes():
    return {"classes": MATH_CLASSES, "difficulties": list(DIFFICULTIES)}


@app.post("/api/quiz/generate")
async def api_generate_quiz(request: Request):
    body = await request.json()
    if not isinstance(body, dict):
        raise HTTPException(400, "Request body must be a JSON object")
    try:
        quiz = await generate_quiz(
            _get_llm(),
            body.get("selectedClasses"),
            body.get("numQuestions"),
            body.get("difficulty"),
            settings=get_settings(),
        )
    except (QuizInputError, QuizGenerationError) as e:
        raise HTTPException(400, str(e))
    result = quiz.to_dict()
    result["requested"] = quiz.requested
    result["partial"] = quiz.is_partial
    return result


@app.post("/api/quiz/grade")
async def api_grade_quiz(request: Request):
    body = await request.json()
    quiz = body.get("quiz") if isinstance(body, dict) else None
    answers = body.get("studentAnswers") if isinstance(body, dict) else None
    if not isinstance(quiz, dict):
        raise HTTPException(400, "No quiz provided")
    if not isinstance(answers, list):
        raise HTTPException(400, "studentAnswers must be a list")
    return grade_quiz(quiz, answers).to_dict()


# ── API: Settings ─────────────────────────────────────────────────────────

@app.get("/api/settings")
async def api_get_settings():
    return get_settings().to_dict()


@app.put("/api/settings")
async def api_update_settings(request: Request):
    body = await request.json()
    if not isinstance(body, dict):
        raise HTTPException(400, "Request body must be a JSON object")
    s = get_settings()
    try:
        update_settings(s, body)
    except ValueError as e:
        raise HTTPException(400, str(e))
    save_settings(s)
    return s.to_dict()
