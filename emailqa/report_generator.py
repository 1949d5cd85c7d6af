# emailqa/report_generator.py
from typing import Dict, List, Optional

from .schemas import (
    CheckResult,
    CheckStatus,
    Report,
    ReportIssue,
    ReportMetadata,
    SemanticFieldSummary,
    SemanticResult,
    SemanticSummary,
)

MOCK_MODE_NOTE = "Note: AI comparison ran in mock mode (configure OPENAI_API_KEY for full analysis)."


def determine_overall_status(semantic: Optional[SemanticResult], checks_passed: bool) -> CheckStatus:
    """Детерминированные проверки главнее: при их провале смысловой слой не учитывается."""
    if not checks_passed:
        return CheckStatus.FAIL

    if semantic is not None:
        if not semantic.overall_match:
            return CheckStatus.FAIL
        for field in semantic.fields().values():
            if field is not None and field.status == CheckStatus.FAIL.value:
                return CheckStatus.FAIL

    return CheckStatus.PASS


def collect_issues(check_results: Dict[str, CheckResult], semantic: Optional[SemanticResult]) -> List[ReportIssue]:
    issues = []
    for category, result in check_results.items():
        issues.extend(
            ReportIssue(type="function", category=category, message=message, severity="critical")
            for message in result.issues
        )

    if semantic is not None:
        for category, field in semantic.fields().items():
            if field is None:
                continue
            issues.extend(
                ReportIssue(type="semantic", category=category, message=message, severity="warning")
                for message in field.issues
            )
    return issues


def format_semantic_results(semantic: Optional[SemanticResult]) -> Optional[SemanticSummary]:
    if semantic is None:
        return None

    def short(field):
        if field is None:
            return None
        return SemanticFieldSummary(
            status=field.status, confidence=field.confidence, explanation=field.explanation
        )

    return SemanticSummary(
        headings=short(semantic.headings),
        body_copy=short(semantic.body_copy),
        offer=short(semantic.offer),
        overall_match=semantic.overall_match,
        ai_summary=semantic.summary,
    )


def generate_summary(
    check_results: Dict[str, CheckResult],
    semantic: Optional[SemanticResult],
    overall_status: CheckStatus,
    semantic_skipped: bool,
    skip_reason: Optional[str] = None,
) -> str:
    parts = []

    if overall_status == CheckStatus.PASS:
        parts.append("✅ Email passed all QA checks.")
    else:
        parts.append("❌ Email failed QA checks.")

    failed = [name.replace("_", " ") for name, result in check_results.items() if not result.passed]
    if failed:
        parts.append(f"Function checks failed: {', '.join(failed)}.")
    else:
        parts.append("All function-based checks passed.")

    if semantic_skipped:
        if skip_reason:
            parts.append(f"AI semantic comparison was skipped ({skip_reason}).")
        else:
            parts.append("AI semantic comparison was skipped.")
    elif semantic is not None:
        if semantic.mock_mode:
            parts.append(MOCK_MODE_NOTE)
        if semantic.overall_match:
            parts.append("Semantic analysis confirms content matches reference document.")
        else:
            parts.append("Semantic analysis detected potential content mismatches.")

    return " ".join(parts)


def aggregate(
    check_results: Dict[str, CheckResult],
    semantic: Optional[SemanticResult],
    checks_passed: bool,
    semantic_skipped: bool,
    skip_reason: Optional[str] = None,
) -> Report:
    """Собирает итоговый отчет из результатов проверок и (необязательного) смыслового сравнения."""
    # Смысловой слой не учитывается, если он пропущен или проверки правил не прошли
    if semantic_skipped or not checks_passed:
        semantic = None
    semantic_run = semantic is not None

    overall_status = determine_overall_status(semantic, checks_passed)
    return Report(
        overall_status=overall_status,
        exact_match_results=check_results,
        semantic_match_results=format_semantic_results(semantic),
        issues=collect_issues(check_results, semantic),
        summary=generate_summary(check_results, semantic, overall_status, semantic_skipped, skip_reason),
        metadata=ReportMetadata(
            function_checks_passed=checks_passed,
            semantic_comparison_run=semantic_run,
            semantic_mock_mode=semantic_run and semantic.mock_mode,
        ),
    )
