import asyncio
import json

import httpx
import pytest

from emailqa import semantic_comparator, settings
from emailqa.schemas import SemanticState
from emailqa.semantic_comparator import (
    LOW_MATCH_ISSUE,
    SemanticUnavailable,
    build_prompt,
    format_result,
    mock_compare,
    resolve_semantic,
)


@pytest.fixture
def no_api_key(monkeypatch):
    monkeypatch.setattr(settings, "OPENAI_API_KEY", None)
    monkeypatch.setattr(settings, "ENABLE_SEMANTIC_COMPARISON", True)


@pytest.fixture
def api_key(monkeypatch):
    monkeypatch.setattr(settings, "OPENAI_API_KEY", "sk-test")
    monkeypatch.setattr(settings, "OPENAI_BASE_URL", "https://ai.test/v1")
    monkeypatch.setattr(settings, "ENABLE_SEMANTIC_COMPARISON", True)


def completion(content) -> httpx.Response:
    return httpx.Response(200, json={"choices": [{"message": {"content": content}}]})


def test_mock_compare_similar_text() -> None:
    result = mock_compare("Summer sale with huge discount", "summer SALE huge discount today")
    assert result.mock_mode is True
    assert result.overall_match is True
    assert result.headings.status == "PASS"
    assert result.headings.confidence == pytest.approx(0.8)
    assert result.body_copy.issues == []
    assert result.offer.status == "N/A"
    assert result.summary.startswith("Mock semantic comparison: 80% word overlap. Content appears similar.")


def test_mock_compare_different_text() -> None:
    result = mock_compare("Winter clearance event starts tomorrow", "Summer sale today")
    assert result.overall_match is False
    assert result.headings.status == "FAIL"
    assert result.body_copy.issues == [LOW_MATCH_ISSUE]
    assert "Significant differences detected." in result.summary


def test_mock_compare_empty_reference() -> None:
    result = mock_compare("", "anything at all")
    assert result.overall_match is False
    assert result.headings.confidence == 0.0


def test_build_prompt_truncates_texts() -> None:
    prompt = build_prompt("a" * 5000, "b" * 10)
    assert "a" * 4000 in prompt
    assert "a" * 4001 not in prompt
    assert '"overall_semantic_match": true or false' in prompt


def test_format_result_fills_defaults() -> None:
    result = format_result({})
    assert result.headings.status == "PASS"
    assert result.headings.confidence == 0.9
    assert result.offer.status == "N/A"
    assert result.offer.confidence == 1.0
    assert result.overall_match is True
    assert result.summary == "Semantic comparison completed"
    assert result.mock_mode is False


def test_format_result_only_explicit_false_is_mismatch() -> None:
    assert format_result({"overall_semantic_match": None}).overall_match is True
    assert format_result({"overall_semantic_match": False}).overall_match is False


def test_compare_without_key_uses_mock(no_api_key) -> None:
    result = asyncio.run(semantic_comparator.compare("summer sale", "summer sale"))
    assert result.mock_mode is True


def test_compare_with_key_calls_chat_completions(api_key) -> None:
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers["authorization"]
        seen["body"] = json.loads(request.content)
        return completion(json.dumps({
            "headings": {"status": "PASS", "confidence": 0.95, "explanation": "Same headline"},
            "body_copy": {"status": "FAIL", "confidence": 0.7, "issues": ["Shipping terms missing"]},
            "offer": {"status": "PASS", "confidence": 1.0},
            "overall_semantic_match": False,
            "summary": "Body copy differs",
        }))

    result = asyncio.run(
        semantic_comparator.compare("ref", "email", transport=httpx.MockTransport(handler))
    )
    assert seen["url"] == "https://ai.test/v1/chat/completions"
    assert seen["auth"] == "Bearer sk-test"
    assert seen["body"]["response_format"] == {"type": "json_object"}
    assert seen["body"]["temperature"] == 0.1
    assert result.headings.explanation == "Same headline"
    assert result.body_copy.issues == ["Shipping terms missing"]
    assert result.overall_match is False
    assert result.mock_mode is False


def test_compare_http_error_is_unavailable(api_key) -> None:
    transport = httpx.MockTransport(lambda request: httpx.Response(500, json={"error": "boom"}))
    with pytest.raises(SemanticUnavailable):
        asyncio.run(semantic_comparator.compare("ref", "email", transport=transport))


def test_compare_invalid_json_is_unavailable(api_key) -> None:
    transport = httpx.MockTransport(lambda request: completion("not json"))
    with pytest.raises(SemanticUnavailable):
        asyncio.run(semantic_comparator.compare("ref", "email", transport=transport))


def test_resolve_skips_after_rule_failure(api_key) -> None:
    outcome = asyncio.run(resolve_semantic("ref", "email", checks_passed=False))
    assert outcome.state == SemanticState.SKIPPED
    assert outcome.reason == "function comparison failed"


def test_resolve_skips_when_disabled(monkeypatch) -> None:
    monkeypatch.setattr(settings, "ENABLE_SEMANTIC_COMPARISON", False)
    outcome = asyncio.run(resolve_semantic("ref", "email", checks_passed=True))
    assert outcome.state == SemanticState.SKIPPED
    assert outcome.is_skipped


def test_resolve_reports_unavailable_service(api_key) -> None:
    transport = httpx.MockTransport(lambda request: httpx.Response(503))
    outcome = asyncio.run(resolve_semantic("ref", "email", checks_passed=True, transport=transport))
    assert outcome.state == SemanticState.UNAVAILABLE
    assert outcome.reason.startswith("AI comparison failed")
    assert outcome.result is None


def test_resolve_present(no_api_key) -> None:
    outcome = asyncio.run(resolve_semantic("summer sale", "summer sale", checks_passed=True))
    assert outcome.state == SemanticState.PRESENT
    assert outcome.result.mock_mode is True


def test_format_result_rejects_non_object_field() -> None:
    with pytest.raises(ValueError):
        format_result({"headings": "PASS"})


def test_resolve_non_object_field_is_unavailable(api_key) -> None:
    transport = httpx.MockTransport(
        lambda request: completion(json.dumps({"headings": "PASS", "overall_semantic_match": True}))
    )
    outcome = asyncio.run(resolve_semantic("ref", "email", checks_passed=True, transport=transport))
    assert outcome.state == SemanticState.UNAVAILABLE
    assert "headings" in outcome.reason
