"""Content scope analysis and domain classification."""

from .domain_classifier import DOMAIN_RULES, DomainClassifier, DomainRule
from .scope_analyzer import (
    ContentScopeAnalyzer,
    default_scope,
    is_content_sufficient,
    merge_domain,
    parse_analysis_response,
    truncate_content,
)

__all__ = [
    "DOMAIN_RULES",
    "ContentScopeAnalyzer",
    "DomainClassifier",
    "DomainRule",
    "default_scope",
    "is_content_sufficient",
    "merge_domain",
    "parse_analysis_response",
    "truncate_content",
]
