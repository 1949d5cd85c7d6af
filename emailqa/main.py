# emailqa/main.py

import logging
from datetime import datetime, timezone

from dotenv import load_dotenv  # 1. Импорт

load_dotenv()  # 2. Загрузка ДО импортов модулей: settings читает окружение при импорте

from fastapi import FastAPI, File, HTTPException, UploadFile
from fastapi.middleware.cors import CORSMiddleware

from . import document_parser, email_fetcher, engine, semantic_comparator, settings
from .content_extractor import ParseError, extract
from .document_parser import UnsupportedDocumentError
from .email_fetcher import FetchError
from .schemas import (
    CompareRequest,
    EmailContent,
    ExtractRequest,
    FetchEmailRequest,
    FetchEmailResponse,
    Report,
    UploadResponse,
)

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

PREVIEW_CHARS = 500

app = FastAPI(
    title="Email QA API",
    description="API для сверки письма с утвержденным документом по набору правил.",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=False,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type"],
)


def _preview(text: str) -> str:
    return text[:PREVIEW_CHARS] + ("..." if len(text) > PREVIEW_CHARS else "")


def _extract_or_422(markup: str) -> EmailContent:
    try:
        return extract(markup)
    except ParseError as e:
        raise HTTPException(status_code=422, detail=str(e))


async def _fetch_or_502(url: str) -> str:
    try:
        return await email_fetcher.fetch_email_markup(url)
    except FetchError as e:
        logger.warning("Fetch error: %s", e)
        raise HTTPException(status_code=502, detail=str(e))


@app.post("/api/upload", response_model=UploadResponse)
async def upload_document(file: UploadFile = File(...)):
    """Извлекает текст эталонного документа. Текст не хранится на сервере: клиент передает его в /api/compare."""
    data = await file.read()
    if len(data) > settings.MAX_UPLOAD_BYTES:
        raise HTTPException(status_code=413, detail="File is too large")

    try:
        text = document_parser.parse_document(file.filename or "", data)
    except UnsupportedDocumentError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return UploadResponse(
        success=True,
        filename=file.filename or "",
        text_length=len(text),
        preview=_preview(text),
        text=text,
    )


@app.post("/api/fetch-email", response_model=FetchEmailResponse)
async def fetch_email(request: FetchEmailRequest):
    if not request.url:
        raise HTTPException(status_code=400, detail="URL is required")

    content = _extract_or_422(await _fetch_or_502(request.url))
    return FetchEmailResponse(
        success=True,
        text_length=len(content.text),
        preview=_preview(content.text),
        cta_buttons=content.cta_candidates,
        links=content.links,
    )


@app.post("/api/extract", response_model=EmailContent)
def extract_content(request: ExtractRequest):
    return _extract_or_422(request.markup)


@app.post("/api/compare", response_model=Report)
async def compare(request: CompareRequest):
    """Основной эндпоинт: проверки правил, затем (если они прошли) смысловое сравнение."""
    if not request.reference_text.strip():
        raise HTTPException(status_code=400, detail="Please upload a reference document first")
    if not request.url and request.markup is None:
        raise HTTPException(status_code=400, detail="Email URL or markup is required")

    # --- 1. Разметка письма ---
    markup = request.markup if request.markup is not None else await _fetch_or_502(request.url)

    # --- 2. Детерминированные проверки ---
    try:
        content, results, passed = engine.run_rule_checks(request.reference_text, markup, request.config)
    except ParseError as e:
        raise HTTPException(status_code=422, detail=str(e))

    # --- 3. Смысловое сравнение (только если правила выполнены) ---
    semantic = await semantic_comparator.resolve_semantic(request.reference_text, content.text, passed)

    report = engine.build_report(results, semantic)
    logger.info("Comparison finished: %s, %d issues", report.overall_status.value, len(report.issues))
    return report


@app.get("/api/health")
def health():
    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}
