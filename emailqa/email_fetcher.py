# emailqa/email_fetcher.py
import logging
from typing import Optional

import httpx

from . import settings

logger = logging.getLogger(__name__)

HEADERS = {
    'User-Agent': 'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/115.0 Safari/537.36',
    'Accept': 'text/html,application/xhtml+xml',
}


class FetchError(RuntimeError):
    """Не удалось загрузить письмо по ссылке "View in Browser"."""


async def fetch_email_markup(url: str, transport: Optional[httpx.AsyncBaseTransport] = None) -> str:
    """Загружает HTML письма по URL. Разбор разметки выполняет content_extractor."""
    logger.info("Fetching email markup from %s", url)
    try:
        async with httpx.AsyncClient(
            follow_redirects=True, timeout=settings.FETCH_TIMEOUT, transport=transport
        ) as client:
            response = await client.get(url, headers=HEADERS)
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        raise FetchError(f"Failed to fetch email from URL: {e}") from e

    if not response.is_success:
        raise FetchError(f"Failed to fetch email from URL: HTTP {response.status_code}")

    return response.text
