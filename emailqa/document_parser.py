# emailqa/document_parser.py
import re
from io import BytesIO
from pathlib import Path

import fitz  # PyMuPDF
from docx import Document

SUPPORTED_EXTENSIONS = (".docx", ".pdf", ".txt")


class UnsupportedDocumentError(ValueError):
    """Формат эталонного документа не поддерживается или файл поврежден."""


def normalize_text(text: str) -> str:
    """Нормализует переводы строк и пробелы, обрезает каждую строку."""
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = re.sub(r"\n{3,}", "\n\n", text)
    text = re.sub(r"[ \t]+", " ", text)
    return "\n".join(line.strip() for line in text.split("\n")).strip()


def _parse_docx(data: bytes) -> str:
    document = Document(BytesIO(data))
    return "\n".join(paragraph.text for paragraph in document.paragraphs)


def _parse_pdf(data: bytes) -> str:
    with fitz.open(stream=data, filetype="pdf") as pdf:
        return "\n".join(page.get_text() for page in pdf)


def _parse_txt(data: bytes) -> str:
    return data.decode("utf-8", errors="replace")


PARSERS = {
    ".docx": _parse_docx,
    ".pdf": _parse_pdf,
    ".txt": _parse_txt,
}


def parse_document(filename: str, data: bytes) -> str:
    """Извлекает из эталонного документа (DOCX, PDF, TXT) нормализованный текст."""
    extension = Path(filename or "").suffix.lower()
    parser = PARSERS.get(extension)
    if parser is None:
        raise UnsupportedDocumentError(f"Unsupported file type: {extension or filename}")

    try:
        raw = parser(data)
    except Exception as e:
        raise UnsupportedDocumentError(f"Cannot read {extension} document: {e}") from e
    return normalize_text(raw)
