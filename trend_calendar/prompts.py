"""
Prompt templates for keyword insight generation.

The user prompt has one block per keyword. The analysis angle of each block
depends on the keyword category; the answer contract is a single JSON object
so the response can be mapped back to keywords.
"""

from typing import Any, Dict, List, Mapping, Optional

from .models import KeywordCategory

SYSTEM_PROMPT = """당신은 원더(Wonder) 서비스의 마케팅 전략 컨설턴트입니다.

# 원더 서비스
- 휴대폰으로 보험을 직접 설계하고 가입하며, 가입 수수료도 본인이 받을 수 있는 플랫폼
- 자격증 취득부터 설계, 가입, 정산까지 한 번에 진행
- 보험 자격증 교육 자료 무료 제공, 전문 매니저의 1:1 설계 지원
- 초기 비용과 고정비 부담이 없는 부업

# 타겟 고객
- 추가 소득이 필요한 주부와 직장인
- 보험 만기가 다가오는 40대
- 부업, N잡에 관심이 많은 사람

# 답변 원칙
- 검색량 수치를 근거로 2-3문장씩 작성
- 보험 시즌성, 지출이 늘어나는 시기, 소득 보완 니즈 관점에서 해석
- 해당 시점에 바로 실행할 수 있는 원더 마케팅 액션 제시
- 반드시 JSON 객체 하나로만 답변"""

CATEGORY_ANGLES = {
    KeywordCategory.INSURANCE: (
        "보험 키워드입니다. 보험 가입·갱신·만기 시즌성과 연결해 검색량 변화 원인을 설명하고, "
        "'내 보험을 직접 설계하고 수수료도 내가 받는다'는 원더 USP로 연결하세요."
    ),
    KeywordCategory.SIDEJOB: (
        "부업·지출 압박 키워드입니다. 세금·대출·생활비처럼 돈이 나가는 순간이나 추가 소득 니즈와 연결해 "
        "원인을 설명하고, 리스크 없는 부업으로서의 원더 메시지를 제안하세요."
    ),
    KeywordCategory.UNKNOWN: (
        "일반 관심사 키워드입니다. 사회적 이벤트나 소비 패턴 관점에서 원인을 설명하고, "
        "같은 시기 원더 타겟 고객에게 닿을 수 있는 커뮤니케이션 방향을 제안하세요."
    ),
}

ANSWER_FORMAT = """# 답변 형식
다음 JSON 객체 하나로만 답변하세요.
{
  "comparison": "선택한 키워드들의 검색량과 평균 대비 변화를 비교하는 2-3문장",
  "keyword_insights": [
    {"keyword": "키워드 원문", "reason": "상승/하락 원인 분석", "strategy": "원더 마케팅 전략"}
  ]
}
keyword 값은 위에 제시된 키워드 원문을 그대로 사용하세요."""


def format_signed_percent(value: float) -> str:
    sign = "+" if value > 0 else ""
    return f"{sign}{value:.1f}%"


def build_keyword_block(bag: Mapping[str, Any], web_context: str = "") -> str:
    """
    Prompt block describing one keyword

    Args:
        bag: Request parameter bag for the keyword
        web_context: Web-search summary, may be empty

    Returns:
        Markdown text block
    """
    category = KeywordCategory(bag["category"])
    lines = [
        f"## 키워드: \"{bag['keyword']}\" ({category.display_name})",
        f"- 시점: {bag['year']}년 {bag['month']}월",
        f"- 검색량: {bag['volume']:,}건",
        f"- 평균 대비: {format_signed_percent(bag['growth'])}",
        f"- 전월 대비: {bag['month_over_month']}%",
        f"- 최근 6개월 추이: {bag['trend_text']}",
        f"- 분석 방향: {CATEGORY_ANGLES[category]}",
    ]
    if web_context:
        lines.append("")
        lines.append("### 웹 검색 결과")
        lines.append(web_context)
    return "\n".join(lines)


def build_user_prompt(bags: List[Mapping[str, Any]], web_contexts: Optional[Mapping[str, str]] = None) -> str:
    """
    Assemble the user prompt for all selected keywords

    Args:
        bags: Request parameter bags in selection order
        web_contexts: Optional mapping of keyword to web-search summary

    Returns:
        Prompt text
    """
    web_contexts = web_contexts or {}
    blocks = [build_keyword_block(bag, web_contexts.get(bag["keyword"], "")) for bag in bags]
    header = "# 실제 검색 데이터 분석\n아래 키워드별 데이터를 바탕으로 보험/부업 관점의 마케팅 인사이트를 작성하세요."
    return "\n\n".join([header, *blocks, ANSWER_FORMAT])


def build_messages(bags: List[Mapping[str, Any]], web_contexts: Optional[Mapping[str, str]] = None) -> List[Dict[str, str]]:
    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": build_user_prompt(bags, web_contexts)},
    ]
