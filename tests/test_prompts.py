"""Prompt text assembled for the language model."""

from trend_calendar.insights import build_insight_request, prepare_keyword_payloads
from trend_calendar.models import KeywordCategory
from trend_calendar.prompts import (
    ANSWER_FORMAT,
    CATEGORY_ANGLES,
    SYSTEM_PROMPT,
    build_keyword_block,
    build_messages,
    format_signed_percent,
)


def _bags(dataset, keywords):
    return build_insight_request(prepare_keyword_payloads(dataset, keywords, 2025, 7), 2025, 7)


def test_format_signed_percent():
    assert format_signed_percent(400) == "+400.0%"
    assert format_signed_percent(-12.34) == "-12.3%"
    assert format_signed_percent(0) == "0.0%"


def test_keyword_block_uses_category_angle(dataset):
    block = build_keyword_block(_bags(dataset, ["부가세"])[0])

    assert '"부가세"' in block
    assert "부업·N잡" in block
    assert "2025년 7월" in block
    assert "5,000건" in block
    assert "+400.0%" in block
    assert "2400.0%" in block
    assert CATEGORY_ANGLES[KeywordCategory.SIDEJOB] in block
    assert "웹 검색 결과" not in block


def test_keyword_block_with_web_context(dataset):
    block = build_keyword_block(_bags(dataset, ["여행자보험"])[0], "1. 여름 휴가 시즌\n해외여행 증가")
    assert CATEGORY_ANGLES[KeywordCategory.INSURANCE] in block
    assert "### 웹 검색 결과\n1. 여름 휴가 시즌" in block


def test_messages_cover_every_keyword_in_order(dataset):
    messages = build_messages(_bags(dataset, ["알바", "부가세"]), {"부가세": "세금 뉴스"})

    assert [m["role"] for m in messages] == ["system", "user"]
    assert messages[0]["content"] == SYSTEM_PROMPT
    user = messages[1]["content"]
    assert user.index('"알바"') < user.index('"부가세"')
    assert "세금 뉴스" in user
    assert user.endswith(ANSWER_FORMAT)
