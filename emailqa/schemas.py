# emailqa/schemas.py

from enum import Enum
from typing import Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_serializer


class CheckStatus(str, Enum):
    PASS = "PASS"
    FAIL = "FAIL"


class LinkItem(BaseModel):
    """Ссылка из письма: текст, исходный URL и URL без трекинговых параметров."""
    model_config = ConfigDict(frozen=True)

    text: str
    url: str
    canonical_url: str


class UnsubscribeSignal(BaseModel):
    """Признаки отписки. Ссылка и текст проверяются независимо."""
    model_config = ConfigDict(frozen=True)

    has_link_match: bool = False
    has_text_match: bool = False

    @property
    def found(self) -> bool:
        return self.has_link_match or self.has_text_match


class EmailContent(BaseModel):
    """Нормализованное содержимое письма, полученное из разметки."""
    model_config = ConfigDict(frozen=True)

    text: str = ""
    cta_candidates: List[LinkItem] = Field(default_factory=list)
    links: List[LinkItem] = Field(default_factory=list)
    unsubscribe_signal: UnsubscribeSignal = Field(default_factory=UnsubscribeSignal)
    footer_text: str = ""


class ComparisonConfig(BaseModel):
    """
    Набор правил для сравнения. Принимает snake_case, camelCase и старые имена
    полей из веб-интерфейса; неизвестные поля игнорируются.
    """
    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)

    required_cta_texts: List[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("required_cta_texts", "requiredCtaTexts", "ctaTexts"),
    )
    required_cta_urls: List[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("required_cta_urls", "requiredCtaUrls", "ctaUrls"),
    )
    required_keywords: List[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("required_keywords", "requiredKeywords"),
    )
    required_footer_texts: List[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("required_footer_texts", "requiredFooterTexts", "footerTexts"),
    )
    unsubscribe_text: str = Field(
        default="unsubscribe",
        validation_alias=AliasChoices("unsubscribe_text", "unsubscribeText"),
    )

    @field_validator(
        "required_cta_texts", "required_cta_urls", "required_keywords", "required_footer_texts",
        mode="before",
    )
    @classmethod
    def _none_to_empty(cls, value):
        return [] if value is None else value

    @field_validator("unsubscribe_text", mode="before")
    @classmethod
    def _default_unsubscribe(cls, value):
        if value is None or not str(value).strip():
            return "unsubscribe"
        return value


class CheckResult(BaseModel):
    """Результат одной детерминированной проверки."""
    status: CheckStatus
    expected: Optional[List[str]] = None
    found: Optional[List[str]] = None
    matched: Optional[List[str]] = None
    missing: Optional[List[str]] = None
    message: Optional[str] = None
    has_link: Optional[bool] = None
    has_text: Optional[bool] = None
    issues: List[str] = Field(default_factory=list)

    @model_serializer(mode="wrap")
    def _drop_unset(self, handler):
        # В отчет попадают только поля, имеющие смысл для данной проверки
        return {key: value for key, value in handler(self).items() if value is not None}

    @property
    def passed(self) -> bool:
        return self.status == CheckStatus.PASS


class SemanticFieldResult(BaseModel):
    status: str
    confidence: Optional[float] = None
    explanation: str = ""
    issues: List[str] = Field(default_factory=list)
    reason: Optional[str] = None


class SemanticResult(BaseModel):
    """Ответ сервиса смыслового сравнения (или его эвристической замены)."""
    model_config = ConfigDict(extra="ignore")

    headings: Optional[SemanticFieldResult] = None
    body_copy: Optional[SemanticFieldResult] = None
    offer: Optional[SemanticFieldResult] = None
    overall_match: bool = True
    summary: str = ""
    mock_mode: bool = False

    def fields(self) -> Dict[str, Optional[SemanticFieldResult]]:
        return {"headings": self.headings, "body_copy": self.body_copy, "offer": self.offer}


class SemanticState(str, Enum):
    PRESENT = "present"
    SKIPPED = "skipped"
    UNAVAILABLE = "unavailable"


class SemanticOutcome(BaseModel):
    """Уже вычисленный результат смыслового слоя: есть / пропущен / недоступен."""
    model_config = ConfigDict(frozen=True)

    state: SemanticState
    result: Optional[SemanticResult] = None
    reason: Optional[str] = None

    @classmethod
    def present(cls, result: SemanticResult) -> "SemanticOutcome":
        return cls(state=SemanticState.PRESENT, result=result)

    @classmethod
    def skipped(cls, reason: Optional[str] = None) -> "SemanticOutcome":
        return cls(state=SemanticState.SKIPPED, reason=reason)

    @classmethod
    def unavailable(cls, reason: str) -> "SemanticOutcome":
        return cls(state=SemanticState.UNAVAILABLE, reason=reason)

    @property
    def is_skipped(self) -> bool:
        return self.state != SemanticState.PRESENT


class ReportIssue(BaseModel):
    type: str
    category: str
    message: str
    severity: str


class ReportMetadata(BaseModel):
    function_checks_passed: bool
    semantic_comparison_run: bool
    semantic_mock_mode: bool


class SemanticFieldSummary(BaseModel):
    status: str
    confidence: Optional[float] = None
    explanation: str = ""


class SemanticSummary(BaseModel):
    headings: Optional[SemanticFieldSummary] = None
    body_copy: Optional[SemanticFieldSummary] = None
    offer: Optional[SemanticFieldSummary] = None
    overall_match: bool
    ai_summary: str = ""


class Report(BaseModel):
    """Итоговый отчет по письму."""
    overall_status: CheckStatus
    exact_match_results: Dict[str, CheckResult]
    semantic_match_results: Optional[SemanticSummary] = None
    issues: List[ReportIssue]
    summary: str
    metadata: ReportMetadata


# --- Модели HTTP API ---

class FetchEmailRequest(BaseModel):
    url: str


class ExtractRequest(BaseModel):
    markup: str


class CompareRequest(BaseModel):
    """
    Запрос на сравнение. Текст эталонного документа передается в каждом запросе,
    письмо задается либо URL, либо готовой разметкой.
    """
    model_config = ConfigDict(populate_by_name=True)

    reference_text: str = Field(validation_alias=AliasChoices("reference_text", "referenceText"))
    url: Optional[str] = None
    markup: Optional[str] = None
    config: ComparisonConfig = Field(default_factory=ComparisonConfig)

    @field_validator("config", mode="before")
    @classmethod
    def _none_config(cls, value):
        return {} if value is None else value


class UploadResponse(BaseModel):
    success: bool
    filename: str
    text_length: int
    preview: str
    text: str


class FetchEmailResponse(BaseModel):
    success: bool
    text_length: int
    preview: str
    cta_buttons: List[LinkItem]
    links: List[LinkItem]
