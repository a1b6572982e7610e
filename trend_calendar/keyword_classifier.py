"""
Keyword classification for insight prompts.

Keywords are classified by substring matching against an ordered table of
rules. The first rule with a matching term wins, so the table order is the
priority order. The override rule is matched case-sensitively on the trimmed
keyword and exists to catch known false positives (e.g. a celebrity name that
contains a side-job term); the remaining rules match on the lower-cased text.
"""

from typing import NamedTuple, Optional, Tuple

from .models import KeywordCategory


class ClassificationRule(NamedTuple):
    name: str
    category: KeywordCategory
    terms: Tuple[str, ...]
    case_sensitive: bool = False

    def matches(self, keyword: str) -> bool:
        text = keyword if self.case_sensitive else keyword.lower()
        return any(term in text for term in self.terms)


FALSE_POSITIVE_PHRASES: Tuple[str, ...] = (
    "제시카 알바",
    "제시카알바",
    "Jessica Alba",
    "알바니아",
    "알바트로스",
    "알바로 모라타",
    "보험왕 드라마",
)

INSURANCE_TERMS: Tuple[str, ...] = (
    "보험",
    "실비",
    "실손",
    "보장",
    "설계사",
    "보험금",
    "보험료",
    "만기",
    "insurance",
)

SIDEJOB_TERMS: Tuple[str, ...] = (
    "부업",
    "알바",
    "아르바이트",
    "n잡",
    "투잡",
    "재택",
    "파트너스",
    "부수입",
    "수익화",
    "스마트스토어",
    "앱테크",
    "짠테크",
    "side job",
)

FINANCE_TERMS: Tuple[str, ...] = (
    "부가세",
    "종합소득세",
    "종소세",
    "연말정산",
    "세금",
    "환급",
    "대출",
    "금리",
    "이자",
    "카드값",
    "생활비",
    "관리비",
    "월세",
    "전세",
    "적금",
)

CLASSIFICATION_RULES: Tuple[ClassificationRule, ...] = (
    ClassificationRule("false_positive", KeywordCategory.UNKNOWN, FALSE_POSITIVE_PHRASES, case_sensitive=True),
    ClassificationRule("insurance", KeywordCategory.INSURANCE, INSURANCE_TERMS),
    ClassificationRule("sidejob", KeywordCategory.SIDEJOB, SIDEJOB_TERMS),
    ClassificationRule("finance", KeywordCategory.SIDEJOB, FINANCE_TERMS),
)


def matching_rule(keyword: str) -> Optional[ClassificationRule]:
    """
    Return the first rule that matches a keyword

    Args:
        keyword: Raw keyword string

    Returns:
        The matching rule, or None when nothing matches
    """
    trimmed = (keyword or "").strip()
    for rule in CLASSIFICATION_RULES:
        if rule.matches(trimmed):
            return rule
    return None


def classify(keyword: str) -> KeywordCategory:
    """Classify a keyword as insurance, sidejob or unknown."""
    rule = matching_rule(keyword)
    return rule.category if rule else KeywordCategory.UNKNOWN
