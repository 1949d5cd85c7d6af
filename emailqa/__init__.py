from .content_extractor import ContentExtractor, ParseError, extract
from .engine import build_report, check_email, run_rule_checks
from .report_generator import aggregate
from .rule_comparator import RuleComparator, evaluate, lenient_match
from .schemas import CheckStatus, ComparisonConfig, EmailContent, Report, SemanticOutcome
from .url_canonicalizer import canonicalize, comparison_key

__all__ = [
    "CheckStatus",
    "ComparisonConfig",
    "ContentExtractor",
    "EmailContent",
    "ParseError",
    "Report",
    "RuleComparator",
    "SemanticOutcome",
    "aggregate",
    "build_report",
    "canonicalize",
    "check_email",
    "comparison_key",
    "evaluate",
    "extract",
    "lenient_match",
]
