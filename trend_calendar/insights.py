"""
Insight request assembly for selected keywords.

Turns the dashboard's keyword selection into per-keyword parameter bags,
sends them to the language model together with optional web-search context,
and maps the model's answer back onto the selection order. Also holds the
per-session request state machine used by the dashboard.
"""

import json
import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from .api_manager import generate_ai_content, search_web
from .config_manager import get_config
from .exceptions import (ConfigurationError, InsightGenerationError, InsightStateError,
                         InsightValidationError, TrendCalendarError)
from .keyword_classifier import classify
from .models import KeywordCategory, KeywordMetrics, KeywordSeries, MonthVolume
from .prompts import build_messages
from .trend_calculator import growth_for, previous_months

MAX_KEYWORDS = 3

REASON_FALLBACK = "이 키워드에 대한 분석 문장을 확보하지 못했습니다."
STRATEGY_FALLBACK = "Wonder와 연결된 전략 제안이 수신되지 않았습니다."
COMPARISON_FALLBACK = "선택한 키워드들의 상대적인 포지션을 강조하는 비교 문장이 필요합니다."
INTERRUPTED_MESSAGE = "AI 인사이트 요청이 중단되었습니다. 다시 생성해주세요."


@dataclass(frozen=True)
class KeywordInsight:
    keyword: str
    category: KeywordCategory
    reason: str
    strategy: str
    metrics: KeywordMetrics
    is_fallback: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "keyword": self.keyword,
            "category": self.category.value,
            "reason": self.reason,
            "strategy": self.strategy,
            "metrics": self.metrics.to_dict(),
        }


@dataclass(frozen=True)
class InsightResult:
    comparison: Optional[str]
    keyword_insights: List[KeywordInsight] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "comparison": self.comparison,
            "keywordInsights": [item.to_dict() for item in self.keyword_insights],
        }


def _max_keywords() -> int:
    return get_config().get('insights', {}).get('max_keywords', MAX_KEYWORDS)


def prepare_keyword_payloads(dataset: Mapping[str, KeywordSeries], selected_keywords: Sequence[str],
                             year: int, month: int) -> List[KeywordMetrics]:
    """
    Build request payloads for the selected keywords

    Growth is recomputed from each keyword's full history. Keywords that are
    not in the dataset are skipped.

    Args:
        dataset: Mapping of keyword to series
        selected_keywords: Keywords in selection order
        year: Target year
        month: Target month

    Returns:
        List of KeywordMetrics in selection order

    Raises:
        InsightValidationError: When nothing is selected or no selected
            keyword has data
    """
    if not selected_keywords:
        raise InsightValidationError("AI 인사이트를 생성하려면 키워드를 최소 1개 이상 선택해주세요.")

    window = get_config().get('insights', {}).get('window_months', 6)
    payloads = []
    for keyword in list(selected_keywords)[:_max_keywords()]:
        series = dataset.get(keyword)
        if series is None:
            continue
        record = growth_for(series, year, month)
        payloads.append(KeywordMetrics(
            keyword=keyword,
            growth=record.growth,
            volume=record.volume,
            previous_months=previous_months(series, year, month, window),
        ))

    if not payloads:
        raise InsightValidationError(f"{month}월에 대한 데이터가 있는 키워드를 선택해주세요.")
    return payloads


def month_over_month(current_volume: int, months: Sequence[MonthVolume]) -> str:
    """
    Change against the previous month as one-decimal percent text

    The previous month is the second-to-last window entry. A missing or
    zero previous volume gives "0".
    """
    previous = months[-2].volume if len(months) >= 2 else 0
    if not previous:
        return "0"
    return f"{(current_volume - previous) / previous * 100:.1f}"


def format_trend_text(months: Sequence[MonthVolume]) -> str:
    return ", ".join(f"{m.label}: {m.volume:,}건" for m in months)


def build_insight_request(keyword_payloads: Sequence[KeywordMetrics], year: int, month: int) -> List[Dict[str, Any]]:
    """
    Assemble the parameter bag for each keyword

    Every keyword is classified before anything is sent to the language
    model. The function is pure: identical inputs give identical bags.

    Args:
        keyword_payloads: 1 to 3 keyword payloads
        year: Target year
        month: Target month

    Returns:
        List of parameter bags in payload order

    Raises:
        InsightValidationError: When the payload count is out of range
    """
    if not keyword_payloads:
        raise InsightValidationError("AI 인사이트를 생성하려면 키워드를 최소 1개 이상 선택해주세요.")
    if len(keyword_payloads) > _max_keywords():
        raise InsightValidationError(f"키워드는 최대 {_max_keywords()}개까지 선택할 수 있어요.")

    bags = []
    for payload in keyword_payloads:
        bags.append({
            "keyword": payload.keyword,
            "growth": payload.growth,
            "volume": payload.volume,
            "year": year,
            "month": month,
            "month_over_month": month_over_month(payload.volume, payload.previous_months),
            "trend_text": format_trend_text(payload.previous_months),
            "previous_months": [m.to_dict() for m in payload.previous_months],
            "category": classify(payload.keyword).value,
        })
    return bags


def extract_json_object(raw: str) -> str:
    """
    Cut the JSON object out of a model answer

    Strips markdown fences and any prose before the first ``{`` or after the
    last ``}``.

    Raises:
        InsightGenerationError: When no object is present
    """
    text = (raw or "").strip().lstrip("\ufeff")
    if text.startswith("```"):
        parts = text.split("```")
        text = parts[1] if len(parts) >= 3 else text[3:]
        text = text.strip()
        if text.lower().startswith("json"):
            text = text[4:]

    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end < start:
        raise InsightGenerationError("AI 응답에서 JSON 객체를 찾을 수 없습니다.")
    return text[start:end + 1]


def _load_json_object(raw: str) -> Any:
    text = extract_json_object(raw)
    try:
        return json.loads(text)
    except ValueError:
        # trailing commas
        return json.loads(re.sub(r",\s*([}\]])", r"\1", text))


def parse_insight_response(raw: str) -> Dict[str, Any]:
    """
    Parse the model answer into comparison text and per-keyword insights

    Args:
        raw: Message content returned by the model

    Returns:
        Dictionary with ``comparison`` (str or None) and ``insights``
        (keyword -> {reason, strategy})

    Raises:
        InsightGenerationError: When the answer is not a JSON object
    """
    try:
        data = _load_json_object(raw)
    except ValueError as e:
        raise InsightGenerationError(f"AI 응답을 해석할 수 없습니다: {e}") from e
    if not isinstance(data, dict):
        raise InsightGenerationError("AI 응답이 JSON 객체가 아닙니다.")

    items = data.get("keyword_insights", data.get("keywordInsights")) or []
    insights: Dict[str, Dict[str, str]] = {}
    for item in items if isinstance(items, list) else []:
        if not isinstance(item, dict):
            continue
        keyword = str(item.get("keyword", "")).strip()
        if keyword and keyword not in insights:
            insights[keyword] = {
                "reason": str(item.get("reason") or "").strip(),
                "strategy": str(item.get("strategy") or "").strip(),
            }

    comparison = data.get("comparison")
    comparison = str(comparison).strip() if comparison else None
    return {"comparison": comparison or None, "insights": insights}


def assemble_insights(keyword_payloads: Sequence[KeywordMetrics], bags: Sequence[Mapping[str, Any]],
                      parsed: Mapping[str, Any]) -> InsightResult:
    """
    Order the parsed insights by the caller's keyword selection

    Keywords the model left out get placeholder texts instead of failing
    the request.
    """
    insights = parsed.get("insights", {})
    ordered = []
    for payload, bag in zip(keyword_payloads, bags):
        found = insights.get(payload.keyword.strip(), {})
        reason = found.get("reason") or REASON_FALLBACK
        strategy = found.get("strategy") or STRATEGY_FALLBACK
        is_fallback = not (found.get("reason") and found.get("strategy"))
        if is_fallback:
            logging.warning(f"No complete insight returned for '{payload.keyword}'; using fallback text")
        ordered.append(KeywordInsight(
            keyword=payload.keyword,
            category=KeywordCategory(bag["category"]),
            reason=reason,
            strategy=strategy,
            metrics=payload,
            is_fallback=is_fallback,
        ))
    return InsightResult(comparison=parsed.get("comparison"), keyword_insights=ordered)


def generate_insights(keyword_payloads: Sequence[KeywordMetrics], year: int, month: int,
                      openai_api_key: Optional[str] = None, serper_api_key: Optional[str] = None,
                      search_func: Callable[..., str] = search_web,
                      completion_func: Callable[..., str] = generate_ai_content) -> InsightResult:
    """
    Generate marketing insights for 1 to 3 keywords

    Args:
        keyword_payloads: Keyword payloads in selection order
        year: Target year
        month: Target month
        openai_api_key: Overrides the configured OpenAI key
        serper_api_key: Overrides the configured Serper key
        search_func: Web-search collaborator
        completion_func: Language-model collaborator

    Returns:
        InsightResult ordered like ``keyword_payloads``

    Raises:
        InsightValidationError: Invalid selection
        ConfigurationError: No OpenAI key
        InsightGenerationError: Language-model failure
    """
    bags = build_insight_request(keyword_payloads, year, month)

    api_key = openai_api_key or get_config().get('api', {}).get('openai', {}).get('api_key')
    if not api_key:
        raise ConfigurationError("OpenAI API key가 설정되지 않았습니다.")

    web_contexts = {
        bag["keyword"]: search_func(bag["keyword"], year, month, api_key=serper_api_key)
        for bag in bags
    }
    messages = build_messages(bags, web_contexts)

    raw = completion_func(messages, api_key=api_key)
    result = assemble_insights(keyword_payloads, bags, parse_insight_response(raw))
    logging.info(f"Generated insights for {len(bags)} keywords ({year}-{month:02d})")
    return result


def handle_insight_request(body: Mapping[str, Any], **kwargs: Any) -> Tuple[int, Dict[str, Any]]:
    """
    Request handler for insight generation

    Args:
        body: JSON body with ``keywords`` (payload dicts), ``year`` and ``month``
        **kwargs: Passed through to generate_insights

    Returns:
        Tuple of (HTTP status, JSON-serialisable response body)
    """
    try:
        if not isinstance(body, Mapping):
            raise InsightValidationError("요청 본문은 JSON 객체여야 합니다.")
        try:
            year = int(body.get("year"))
            month = int(body.get("month"))
        except (TypeError, ValueError):
            raise InsightValidationError("year와 month는 정수여야 합니다.") from None
        if not 1 <= month <= 12:
            raise InsightValidationError("month는 1에서 12 사이여야 합니다.")

        keywords = body.get("keywords") or []
        if not isinstance(keywords, list):
            raise InsightValidationError("keywords는 배열이어야 합니다.")
        try:
            payloads = [KeywordMetrics.from_dict(item) for item in keywords if isinstance(item, Mapping)]
        except (AttributeError, TypeError, ValueError) as e:
            raise InsightValidationError(f"키워드 데이터 형식이 올바르지 않습니다: {e}") from None
        payloads = [p for p in payloads if p.keyword]
        result = generate_insights(payloads, year, month, **kwargs)
    except InsightValidationError as e:
        return 400, {"error": str(e)}
    except TrendCalendarError as e:
        logging.error(f"AI insight generation failed: {e}")
        return 500, {"error": f"AI 인사이트 생성 실패: {e}"}
    return 200, result.to_dict()


class InsightState(str, Enum):
    IDLE = "idle"
    REQUESTING = "requesting"
    SUCCESS = "success"
    FAILED = "failed"


class InsightSession:
    """
    Per-session state of the insight panel

    idle -> requesting -> success | failed. Changing the month, year or
    keyword set while in success or failed resets to idle. A request may only
    start from idle.
    """

    def __init__(self):
        self.state = InsightState.IDLE
        self.signature: Optional[Tuple[int, int, Tuple[str, ...]]] = None
        self.result: Optional[Dict[str, Any]] = None
        self.error_message = ""

    @staticmethod
    def make_signature(year: int, month: int, keywords: Sequence[str]) -> Tuple[int, int, Tuple[str, ...]]:
        return int(year), int(month), tuple(keywords)

    @property
    def can_request(self) -> bool:
        return self.state == InsightState.IDLE

    def sync_selection(self, year: int, month: int, keywords: Sequence[str]) -> bool:
        """
        Record the current selection; reset finished states when it changed

        Returns:
            True when the session was reset to idle
        """
        signature = self.make_signature(year, month, keywords)
        if signature == self.signature:
            return False
        if self.state == InsightState.REQUESTING:
            return False
        self.signature = signature
        if self.state in (InsightState.SUCCESS, InsightState.FAILED):
            self.reset()
            return True
        return False

    def recover_interrupted(self, message: str = INTERRUPTED_MESSAGE) -> bool:
        """
        Fail a request left in ``requesting`` by an earlier, interrupted run

        A request starts and finishes within one dashboard run, so a session
        that is still requesting when the next run begins will never finish.

        Returns:
            True when a stale request was moved to failed
        """
        if self.state != InsightState.REQUESTING:
            return False
        logging.warning("Insight request was interrupted before completion")
        self.fail(message)
        return True

    def reset(self) -> None:
        self.state = InsightState.IDLE
        self.result = None
        self.error_message = ""

    def begin(self) -> None:
        if self.state != InsightState.IDLE:
            raise InsightStateError(f"Cannot start an insight request from state '{self.state.value}'")
        self.state = InsightState.REQUESTING
        self.error_message = ""

    def succeed(self, result: Dict[str, Any]) -> None:
        if self.state != InsightState.REQUESTING:
            raise InsightStateError(f"No request in progress (state '{self.state.value}')")
        self.state = InsightState.SUCCESS
        self.result = result

    def fail(self, message: str) -> None:
        if self.state != InsightState.REQUESTING:
            raise InsightStateError(f"No request in progress (state '{self.state.value}')")
        self.state = InsightState.FAILED
        self.error_message = message
