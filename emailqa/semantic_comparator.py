# emailqa/semantic_comparator.py
import json
import logging
from typing import Optional

import httpx

from . import settings
from .schemas import SemanticFieldResult, SemanticOutcome, SemanticResult

logger = logging.getLogger(__name__)

MAX_PROMPT_CHARS = 4000
MOCK_MATCH_THRESHOLD = 0.3
LOW_MATCH_ISSUE = "Low word match - potential content mismatch"

SYSTEM_PROMPT = """You are an expert email QA analyst. Compare the reference document with the email content and determine if they semantically match. Focus on:
1. HEADINGS: Do the main headings/titles convey the same message?
2. BODY COPY: Does the body content convey the same information? (rewording is allowed)
3. OFFER: If there's an offer/promotion, is the value/terms preserved exactly?

Respond in JSON format only."""

RESPONSE_SHAPE = """{
    "headings": {
        "status": "PASS" or "FAIL",
        "confidence": 0.0-1.0,
        "explanation": "brief explanation",
        "issues": ["list of issues if any"]
    },
    "body_copy": {
        "status": "PASS" or "FAIL",
        "confidence": 0.0-1.0,
        "explanation": "brief explanation",
        "issues": ["list of issues if any"]
    },
    "offer": {
        "status": "PASS" or "FAIL" or "N/A",
        "confidence": 0.0-1.0,
        "explanation": "brief explanation",
        "issues": ["list of issues if any"]
    },
    "overall_semantic_match": true or false,
    "summary": "overall summary of comparison"
}"""


class SemanticUnavailable(RuntimeError):
    """Сервис смыслового сравнения не ответил или вернул некорректный ответ."""


def _significant_words(text: str) -> set:
    return {word for word in text.lower().split() if len(word) > 3}


def mock_compare(reference_text: str, email_text: str) -> SemanticResult:
    """Грубая замена ИИ: доля слов эталона (длиннее 3 символов), найденных в письме."""
    doc_words = _significant_words(reference_text)
    email_words = _significant_words(email_text)

    similarity = len(doc_words & email_words) / len(doc_words) if doc_words else 0.0
    passes = similarity > MOCK_MATCH_THRESHOLD
    percent = int(similarity * 100 + 0.5)

    def word_overlap_field() -> SemanticFieldResult:
        return SemanticFieldResult(
            status="PASS" if passes else "FAIL",
            confidence=similarity,
            explanation="Mock comparison based on word overlap",
            issues=[] if passes else [LOW_MATCH_ISSUE],
        )

    verdict = "Content appears similar." if passes else "Significant differences detected."
    return SemanticResult(
        headings=word_overlap_field(),
        body_copy=word_overlap_field(),
        offer=SemanticFieldResult(
            status="N/A",
            confidence=1.0,
            explanation="Unable to detect offer content in mock mode",
        ),
        overall_match=passes,
        summary=(
            f"Mock semantic comparison: {percent}% word overlap. {verdict} "
            "For accurate results, configure OPENAI_API_KEY."
        ),
        mock_mode=True,
    )


def build_prompt(reference_text: str, email_text: str) -> str:
    return (
        f'REFERENCE DOCUMENT:\n"""\n{reference_text[:MAX_PROMPT_CHARS]}\n"""\n\n'
        f'EMAIL CONTENT:\n"""\n{email_text[:MAX_PROMPT_CHARS]}\n"""\n\n'
        "Compare the email content against the reference document and respond with this exact JSON structure:\n"
        f"{RESPONSE_SHAPE}"
    )


def format_result(result: dict) -> SemanticResult:
    """Приводит ответ модели к SemanticResult, подставляя значения по умолчанию."""
    def field(name: str, status: str, confidence: float) -> SemanticFieldResult:
        raw = result.get(name) or {}
        if not isinstance(raw, dict):
            raise ValueError(f"field \"{name}\" is not a JSON object")
        return SemanticFieldResult(
            status=raw.get("status") or status,
            confidence=raw.get("confidence") or confidence,
            explanation=raw.get("explanation") or "",
            issues=raw.get("issues") or [],
        )

    return SemanticResult(
        headings=field("headings", "PASS", 0.9),
        body_copy=field("body_copy", "PASS", 0.9),
        offer=field("offer", "N/A", 1.0),
        overall_match=result.get("overall_semantic_match") is not False,
        summary=result.get("summary") or "Semantic comparison completed",
    )


async def compare(
    reference_text: str, email_text: str, transport: Optional[httpx.AsyncBaseTransport] = None
) -> SemanticResult:
    """Смысловое сравнение через OpenAI-совместимый API; без ключа - эвристика по словам."""
    if not settings.OPENAI_API_KEY:
        logger.info("OpenAI not configured, using mock semantic comparison")
        return mock_compare(reference_text, email_text)

    payload = {
        "model": settings.OPENAI_MODEL,
        "messages": [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": build_prompt(reference_text, email_text)},
        ],
        "temperature": 0.1,
        "response_format": {"type": "json_object"},
    }
    headers = {"Authorization": f"Bearer {settings.OPENAI_API_KEY}"}

    try:
        async with httpx.AsyncClient(timeout=settings.SEMANTIC_TIMEOUT, transport=transport) as client:
            response = await client.post(
                f"{settings.OPENAI_BASE_URL}/chat/completions", json=payload, headers=headers
            )
            response.raise_for_status()
            content = response.json()["choices"][0]["message"]["content"]
        result = json.loads(content)
        if not isinstance(result, dict):
            raise ValueError("response is not a JSON object")
        # ValidationError тоже наследуется от ValueError
        return format_result(result)
    except (httpx.HTTPError, KeyError, IndexError, TypeError, ValueError) as e:
        logger.warning("Semantic comparison failed: %s", e)
        raise SemanticUnavailable(f"AI comparison failed: {e}") from e


async def resolve_semantic(
    reference_text: str,
    email_text: str,
    checks_passed: bool,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> SemanticOutcome:
    """
    Запускает смысловое сравнение только после успешных проверок правил.
    Ошибка сервиса не прерывает проверку: результат помечается как недоступный.
    """
    if not checks_passed:
        return SemanticOutcome.skipped("function comparison failed")
    if not settings.ENABLE_SEMANTIC_COMPARISON:
        return SemanticOutcome.skipped("disabled by configuration")

    try:
        result = await compare(reference_text, email_text, transport=transport)
    except SemanticUnavailable as e:
        return SemanticOutcome.unavailable(str(e))
    return SemanticOutcome.present(result)
