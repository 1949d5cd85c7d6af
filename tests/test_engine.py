import pytest

from emailqa import ComparisonConfig, ParseError, SemanticOutcome, check_email, run_rule_checks
from emailqa.content_extractor import ContentExtractor
from emailqa.rule_comparator import RuleComparator
from emailqa.schemas import CheckStatus, SemanticFieldResult, SemanticResult

REFERENCE = "Summer Sale\nEverything is 50% off this weekend."

EMAIL = """
<html><body>
<h1>Summer Sale: 50% off everything</h1>
<a class="btn" href="https://shop.test/sale?utm_campaign=x">Shop Now</a>
<p>Questions? You can unsubscribe at any time.</p>
<p>© 2026 Shop. All rights reserved. Read our privacy policy and terms.</p>
</body></html>
"""

CONFIG = ComparisonConfig.model_validate(
    {
        "requiredCtaTexts": ["Shop"],
        "requiredCtaUrls": ["https://shop.test/sale"],
        "requiredKeywords": ["50% off"],
    }
)


def test_end_to_end_all_checks_pass() -> None:
    content, results, passed = run_rule_checks(REFERENCE, EMAIL, CONFIG)
    assert passed
    assert {name: r.status for name, r in results.items()} == {
        "cta_text": CheckStatus.PASS,
        "cta_url": CheckStatus.PASS,
        "unsubscribe": CheckStatus.PASS,
        "footer": CheckStatus.PASS,
        "keywords": CheckStatus.PASS,
    }
    assert content.cta_candidates[0].canonical_url == "https://shop.test/sale"


def test_end_to_end_report_without_semantic_layer() -> None:
    report = check_email(REFERENCE, EMAIL, CONFIG)
    assert report.overall_status == CheckStatus.PASS
    assert report.issues == []
    assert report.metadata.function_checks_passed is True


def test_end_to_end_semantic_mismatch_decides_status() -> None:
    mismatch = SemanticResult(
        headings=SemanticFieldResult(status="FAIL", issues=["Heading changed"]),
        overall_match=False,
    )
    report = check_email(REFERENCE, EMAIL, CONFIG, SemanticOutcome.present(mismatch))
    assert report.overall_status == CheckStatus.FAIL
    assert report.issues[0].type == "semantic"


def test_rule_failure_wins_over_semantic_match() -> None:
    config = CONFIG.model_copy(update={"required_keywords": ["free shipping"]})
    report = check_email(REFERENCE, EMAIL, config, SemanticOutcome.present(SemanticResult(overall_match=True)))
    assert report.overall_status == CheckStatus.FAIL
    assert report.semantic_match_results is None
    assert report.issues[0].message == 'Required keyword "free shipping" not found in email'
    assert report.metadata.semantic_comparison_run is False


def test_default_config() -> None:
    report = check_email(REFERENCE, EMAIL)
    assert report.overall_status == CheckStatus.PASS


def test_custom_extractor_and_comparator() -> None:
    _, results, passed = run_rule_checks(
        REFERENCE,
        EMAIL,
        CONFIG,
        extractor=ContentExtractor(cta_selectors=["a.nothing"], action_words=["nothing"]),
        comparator=RuleComparator(),
    )
    assert not passed
    assert results["cta_text"].status == CheckStatus.FAIL
    assert results["unsubscribe"].status == CheckStatus.PASS


def test_parse_error_propagates() -> None:
    with pytest.raises(ParseError):
        check_email(REFERENCE, None, CONFIG)
