# emailqa/rule_comparator.py
import logging
from typing import Callable, Dict, Iterable, List, Sequence

from .rules import DEFAULT_FOOTER_TEXTS
from .schemas import CheckResult, CheckStatus, ComparisonConfig, EmailContent, LinkItem
from .url_canonicalizer import comparison_key

logger = logging.getLogger(__name__)


def lenient_match(found: str, expected: str) -> bool:
    """
    Нестрогое совпадение: равенство или вхождение одной строки в другую в любую сторону.
    Допускает мелкие правки текста кнопки ("Shop Now" подходит под "shop").
    Строки должны быть уже нормализованы вызывающим кодом.
    Пустая строка ни с чем не совпадает: иначе ссылка "/" подошла бы под любой адрес.
    """
    if not found or not expected:
        return False
    return found == expected or expected in found or found in expected


def _status(issues: List[str]) -> CheckStatus:
    return CheckStatus.PASS if not issues else CheckStatus.FAIL


def _match_all(
    expected_items: Sequence[str],
    found_keys: List[str],
    normalize: Callable[[str], str],
    describe_missing: Callable[[str], str],
):
    matched, issues = [], []
    for expected in expected_items:
        key = normalize(expected)
        if any(lenient_match(found, key) for found in found_keys):
            matched.append(expected)
        else:
            issues.append(describe_missing(expected))
    return matched, issues


class RuleComparator:
    """Пять независимых детерминированных проверок письма."""

    def __init__(self, default_footer_texts: Iterable[str] = DEFAULT_FOOTER_TEXTS):
        self.default_footer_texts = list(default_footer_texts)

    def evaluate(
        self, reference_text: str, content: EmailContent, config: ComparisonConfig
    ) -> Dict[str, CheckResult]:
        # Все проверки выполняются всегда, даже если предыдущие не прошли
        results = {
            "cta_text": self.check_cta_text(content.cta_candidates, config.required_cta_texts),
            "cta_url": self.check_cta_urls(content.cta_candidates, config.required_cta_urls),
            "unsubscribe": self.check_unsubscribe(content, config.unsubscribe_text),
            "footer": self.check_footer(content.footer_text, content.text, config.required_footer_texts),
            "keywords": self.check_keywords(content.text, config.required_keywords),
        }
        logger.debug(
            "Rule checks (reference %d chars): %s",
            len(reference_text or ""),
            ", ".join(f"{name}={result.status.value}" for name, result in results.items()),
        )
        return results

    @staticmethod
    def check_cta_text(ctas: List[LinkItem], expected_texts: Sequence[str]) -> CheckResult:
        found = [cta.text for cta in ctas]
        if not expected_texts:
            return CheckResult(
                status=CheckStatus.PASS,
                message="No specific CTAs configured for comparison",
                found=found,
            )

        matched, issues = _match_all(
            expected_texts,
            [text.lower().strip() for text in found],
            lambda text: text.lower().strip(),
            lambda text: f'CTA "{text}" not found in email',
        )
        return CheckResult(
            status=_status(issues),
            expected=list(expected_texts),
            found=found,
            matched=matched,
            issues=issues,
        )

    @staticmethod
    def check_cta_urls(ctas: List[LinkItem], expected_urls: Sequence[str]) -> CheckResult:
        found = [cta.canonical_url for cta in ctas]
        if not expected_urls:
            return CheckResult(
                status=CheckStatus.PASS,
                message="No specific URLs configured for comparison",
                found=found,
            )

        matched, issues = _match_all(
            expected_urls,
            [comparison_key(url) for url in found],
            comparison_key,
            lambda url: f'URL "{url}" not found in email CTAs',
        )
        return CheckResult(
            status=_status(issues),
            expected=list(expected_urls),
            found=found,
            matched=matched,
            issues=issues,
        )

    @staticmethod
    def check_unsubscribe(content: EmailContent, required_text: str = "unsubscribe") -> CheckResult:
        signal = content.unsubscribe_signal
        has_required_text = required_text.lower() in content.text.lower()

        if not signal.has_link_match and not signal.has_text_match and not has_required_text:
            return CheckResult(
                status=CheckStatus.FAIL,
                message="No unsubscribe link or text found",
                expected=[required_text],
                issues=["Missing unsubscribe link/text - COMPLIANCE ISSUE"],
            )

        return CheckResult(
            status=CheckStatus.PASS,
            has_link=signal.has_link_match,
            has_text=signal.has_text_match or has_required_text,
        )

    def check_footer(self, footer_text: str, full_text: str, required_texts: Sequence[str]) -> CheckResult:
        """
        Юридический текст ищется в подвале и во всем тексте письма.
        Пустой список требований заменяется набором по умолчанию, а не считается выполненным.
        """
        texts_to_check = list(required_texts) if required_texts else list(self.default_footer_texts)
        search_text = f"{footer_text} {full_text}".lower()

        found, issues = [], []
        for text in texts_to_check:
            if text.lower() in search_text:
                found.append(text)
            else:
                issues.append(f'Required footer text "{text}" not found')

        # Явно заданный список: ни одного совпадения - провал
        if not found and required_texts:
            return CheckResult(status=CheckStatus.FAIL, expected=texts_to_check, found=[], issues=issues)

        return CheckResult(status=_status(issues), expected=texts_to_check, found=found, issues=issues)

    @staticmethod
    def check_keywords(email_text: str, required_keywords: Sequence[str]) -> CheckResult:
        if not required_keywords:
            return CheckResult(
                status=CheckStatus.PASS,
                message="No specific keywords configured for comparison",
            )

        lower = email_text.lower()
        found = [kw for kw in required_keywords if kw.lower() in lower]
        missing = [kw for kw in required_keywords if kw.lower() not in lower]
        return CheckResult(
            status=_status(missing),
            expected=list(required_keywords),
            found=found,
            missing=missing,
            issues=[f'Required keyword "{kw}" not found in email' for kw in missing],
        )


def all_checks_passed(results: Dict[str, CheckResult]) -> bool:
    return all(result.passed for result in results.values())


_default_comparator = RuleComparator()


def evaluate(reference_text: str, content: EmailContent, config: ComparisonConfig) -> Dict[str, CheckResult]:
    return _default_comparator.evaluate(reference_text, content, config)
