# emailqa/engine.py
"""
Проверка письма без сетевых вызовов: разметка -> EmailContent -> проверки правил -> отчет.

Эталонный текст и настройки передаются в каждый вызов, общего состояния нет,
поэтому функции можно вызывать параллельно из разных запросов.
"""
from typing import Dict, Optional, Tuple, Union

from .content_extractor import ContentExtractor, extract
from .report_generator import aggregate
from .rule_comparator import RuleComparator, all_checks_passed, evaluate
from .schemas import CheckResult, ComparisonConfig, EmailContent, Report, SemanticOutcome


def run_rule_checks(
    reference_text: str,
    markup: Union[str, bytes],
    config: Optional[ComparisonConfig] = None,
    extractor: Optional[ContentExtractor] = None,
    comparator: Optional[RuleComparator] = None,
) -> Tuple[EmailContent, Dict[str, CheckResult], bool]:
    """Извлекает содержимое и запускает все пять проверок. ParseError пробрасывается наверх."""
    config = config or ComparisonConfig()
    content = extractor.extract(markup) if extractor else extract(markup)
    if comparator:
        results = comparator.evaluate(reference_text, content, config)
    else:
        results = evaluate(reference_text, content, config)
    return content, results, all_checks_passed(results)


def build_report(
    check_results: Dict[str, CheckResult], semantic: Optional[SemanticOutcome] = None
) -> Report:
    semantic = semantic or SemanticOutcome.skipped()
    return aggregate(
        check_results,
        semantic.result,
        all_checks_passed(check_results),
        semantic.is_skipped,
        semantic.reason,
    )


def check_email(
    reference_text: str,
    markup: Union[str, bytes],
    config: Optional[ComparisonConfig] = None,
    semantic: Optional[SemanticOutcome] = None,
) -> Report:
    _, results, _ = run_rule_checks(reference_text, markup, config)
    return build_report(results, semantic)
