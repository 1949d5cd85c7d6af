# emailqa/content_extractor.py
import logging
import re
from typing import Iterable, List, Union

from bs4 import BeautifulSoup, ParserRejectedMarkup

from .rules import (
    CTA_ACTION_WORDS,
    CTA_SELECTORS,
    FOOTER_FALLBACK_LINES,
    FOOTER_SELECTORS,
    NO_TEXT_PLACEHOLDER,
    NON_VISIBLE_TAGS,
    PERSONALIZATION_PATTERNS,
    TRACKING_PARAMS,
    UNSUBSCRIBE_HREF_MARKERS,
    UNSUBSCRIBE_TEXT_MARKERS,
)
from .schemas import EmailContent, LinkItem, UnsubscribeSignal
from .url_canonicalizer import canonicalize

logger = logging.getLogger(__name__)

WHITESPACE_RE = re.compile(r"\s+")
BLANK_LINES_RE = re.compile(r"\n\s*\n")


class ParseError(ValueError):
    """Разметку письма невозможно разобрать."""


class ContentExtractor:
    """
    Превращает HTML письма в EmailContent: текст, кнопки (CTA), ссылки,
    признаки отписки и подвал. Все таблицы эвристик передаются в конструктор.
    """

    def __init__(
        self,
        cta_selectors: Iterable[str] = CTA_SELECTORS,
        action_words: Iterable[str] = CTA_ACTION_WORDS,
        footer_selectors: Iterable[str] = FOOTER_SELECTORS,
        tracking_params: Iterable[str] = TRACKING_PARAMS,
        personalization_patterns: Iterable[re.Pattern] = PERSONALIZATION_PATTERNS,
        footer_fallback_lines: int = FOOTER_FALLBACK_LINES,
        parser: str = "html.parser",
    ):
        self.cta_selector = ", ".join(cta_selectors)
        self.action_re = re.compile(
            r"^(?:%s)" % "|".join(re.escape(word) for word in action_words), re.IGNORECASE
        )
        self.footer_selectors = tuple(footer_selectors)
        self.tracking_params = tuple(tracking_params)
        self.personalization_patterns = tuple(personalization_patterns)
        self.footer_fallback_lines = footer_fallback_lines
        self.parser = parser

    def extract(self, markup: Union[str, bytes]) -> EmailContent:
        soup = self._parse(markup)

        for tag in soup.find_all(NON_VISIBLE_TAGS):
            tag.extract()

        raw_text = self._raw_text(soup)
        content = EmailContent(
            text=self.clean_text(raw_text),
            cta_candidates=self.extract_ctas(soup),
            links=self.extract_links(soup),
            unsubscribe_signal=self.find_unsubscribe(soup, raw_text),
            footer_text=self.extract_footer(soup, raw_text),
        )
        logger.debug(
            "Extracted email content: %d chars, %d CTA candidates, %d links",
            len(content.text), len(content.cta_candidates), len(content.links),
        )
        return content

    def _parse(self, markup) -> BeautifulSoup:
        if not isinstance(markup, (str, bytes)):
            raise ParseError(f"Email markup must be text, got {type(markup).__name__}")
        try:
            return BeautifulSoup(markup, self.parser)
        except (ParserRejectedMarkup, UnicodeDecodeError) as e:
            raise ParseError(f"Cannot parse email markup: {e}") from e

    @staticmethod
    def _raw_text(soup: BeautifulSoup) -> str:
        body_text = soup.body.get_text() if soup.body is not None else ""
        return body_text or soup.get_text()

    def _link_item(self, text: str, href: str) -> LinkItem:
        return LinkItem(text=text, url=href, canonical_url=canonicalize(href, self.tracking_params))

    def extract_ctas(self, soup: BeautifulSoup) -> List[LinkItem]:
        """Кнопки по селекторам, затем ссылки, начинающиеся с глагола действия."""
        ctas = []
        seen = set()

        def add(anchor) -> None:
            text = anchor.get_text().strip()
            href = (anchor.get("href") or "").strip()
            if text and href and text not in seen:
                seen.add(text)
                ctas.append(self._link_item(text, href))

        # 1) Элементы, похожие на кнопки
        for anchor in soup.select(self.cta_selector):
            add(anchor)

        # 2) Остальные ссылки с "глагольным" текстом
        for anchor in soup.find_all("a"):
            if self.action_re.match(anchor.get_text().strip()):
                add(anchor)

        return ctas

    def extract_links(self, soup: BeautifulSoup) -> List[LinkItem]:
        links = []
        for anchor in soup.find_all("a", href=True):
            href = anchor["href"].strip()
            lower = href.lower()
            if not href or lower.startswith("mailto:") or lower.startswith("tel:"):
                continue
            text = anchor.get_text().strip() or NO_TEXT_PLACEHOLDER
            links.append(self._link_item(text, href))
        return links

    def clean_text(self, text: str) -> str:
        """Удаляет токены персонализации и схлопывает пробелы."""
        for pattern in self.personalization_patterns:
            text = pattern.sub("", text)
        text = WHITESPACE_RE.sub(" ", text)
        text = BLANK_LINES_RE.sub("\n\n", text)
        return text.strip()

    @staticmethod
    def find_unsubscribe(soup: BeautifulSoup, raw_text: str) -> UnsubscribeSignal:
        lower = raw_text.lower()
        has_text = any(marker in lower for marker in UNSUBSCRIBE_TEXT_MARKERS)
        has_link = any(
            marker in anchor["href"].lower()
            for anchor in soup.find_all("a", href=True)
            for marker in UNSUBSCRIBE_HREF_MARKERS
        )
        return UnsubscribeSignal(has_link_match=has_link, has_text_match=has_text)

    def extract_footer(self, soup: BeautifulSoup, raw_text: str) -> str:
        footer_text = ""
        for selector in self.footer_selectors:
            footer = soup.select_one(selector)
            if footer is not None:
                footer_text = footer.get_text().strip()
                break

        # Подвал не найден: берем последние строки письма
        if not footer_text:
            lines = [line for line in raw_text.split("\n") if line.strip()]
            footer_text = "\n".join(lines[-self.footer_fallback_lines:])

        return footer_text


_default_extractor = ContentExtractor()


def extract(markup: Union[str, bytes]) -> EmailContent:
    """Извлекает содержимое письма с таблицами эвристик по умолчанию."""
    return _default_extractor.extract(markup)
