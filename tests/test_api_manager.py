"""Web-search and chat-completion wrappers with the network mocked out."""

from unittest.mock import MagicMock, patch

import httpx
import openai
import pytest
import requests

from trend_calendar.api_manager import (
    build_search_query,
    describe_openai_error,
    format_search_results,
    generate_ai_content,
    search_web,
)
from trend_calendar.exceptions import ConfigurationError, InsightGenerationError

MESSAGES = [{"role": "system", "content": "s"}, {"role": "user", "content": "u"}]


def _serper_response(status_code=200, organic=None):
    response = MagicMock()
    response.status_code = status_code
    response.text = "error body"
    response.json.return_value = {"organic": organic or []}
    return response


def _completion(content):
    response = MagicMock()
    response.choices = [MagicMock()]
    response.choices[0].message.content = content
    return response


# ---------------------------------------------------------------------------
# Serper
# ---------------------------------------------------------------------------

def test_build_search_query():
    assert build_search_query("부가세", 2025, 7) == "부가세 2025년 7월 트렌드 이슈"


def test_format_search_results_limits_entries():
    organic = [{"title": f"t{i}", "snippet": f"s{i}"} for i in range(7)]
    text = format_search_results({"organic": organic}, limit=5)

    assert text.startswith("1. t0\ns0\n\n2. t1")
    assert "5. t4" in text
    assert "t5" not in text


def test_format_search_results_without_organic():
    assert format_search_results({}) == ""


@patch("trend_calendar.api_manager.requests.post")
def test_search_without_key_skips_request(mock_post):
    assert search_web("부가세", 2025, 7) == ""
    mock_post.assert_not_called()


@patch("trend_calendar.api_manager.requests.post")
def test_search_success(mock_post):
    organic = [{"title": f"뉴스 {i}", "snippet": "요약"} for i in range(6)]
    mock_post.return_value = _serper_response(organic=organic)

    text = search_web("부가세", 2025, 7, api_key="serper-key")

    assert text.count("뉴스") == 5
    args, kwargs = mock_post.call_args
    assert args[0] == "https://google.serper.dev/search"
    assert kwargs["json"] == {"q": "부가세 2025년 7월 트렌드 이슈", "gl": "kr", "hl": "ko", "num": 5}
    assert kwargs["headers"]["X-API-KEY"] == "serper-key"
    assert kwargs["timeout"] == 10.0


@patch("trend_calendar.api_manager.requests.post")
def test_search_uses_configured_key(mock_post, monkeypatch):
    from trend_calendar import config_manager

    monkeypatch.setenv("SERPER_API_KEY", "env-key")
    with patch.object(config_manager, "load_dotenv"):
        config_manager.get_config(refresh=True)
    mock_post.return_value = _serper_response()

    search_web("알바", 2025, 7)
    assert mock_post.call_args.kwargs["headers"]["X-API-KEY"] == "env-key"


@patch("trend_calendar.api_manager.requests.post")
def test_search_non_200_returns_empty(mock_post):
    mock_post.return_value = _serper_response(status_code=403)
    assert search_web("부가세", 2025, 7, api_key="bad") == ""


@patch("trend_calendar.api_manager.requests.post")
def test_search_network_error_returns_empty(mock_post):
    mock_post.side_effect = requests.ConnectionError("down")
    assert search_web("부가세", 2025, 7, api_key="serper-key") == ""


# ---------------------------------------------------------------------------
# OpenAI
# ---------------------------------------------------------------------------

def test_generate_without_key():
    with pytest.raises(ConfigurationError):
        generate_ai_content(MESSAGES)


@patch("trend_calendar.api_manager.OpenAI")
def test_generate_success(mock_openai):
    client = mock_openai.return_value
    client.chat.completions.create.return_value = _completion('{"comparison": "ok"}')

    content = generate_ai_content(MESSAGES, api_key="sk-test")

    assert content == '{"comparison": "ok"}'
    assert mock_openai.call_args.kwargs["api_key"] == "sk-test"
    assert mock_openai.call_args.kwargs["max_retries"] == 0
    params = client.chat.completions.create.call_args.kwargs
    assert params["model"] == "gpt-4.1"
    assert params["messages"] == MESSAGES
    assert params["max_tokens"] == 1200
    assert params["temperature"] == 0.7
    assert params["response_format"] == {"type": "json_object"}


@patch("trend_calendar.api_manager.OpenAI")
def test_generate_overrides_and_plain_text(mock_openai):
    client = mock_openai.return_value
    client.chat.completions.create.return_value = _completion("text")

    generate_ai_content(MESSAGES, api_key="sk-test", model="gpt-4o-mini", temperature=0.0, json_mode=False)

    params = client.chat.completions.create.call_args.kwargs
    assert params["model"] == "gpt-4o-mini"
    assert params["temperature"] == 0.0
    assert "response_format" not in params


@patch("trend_calendar.api_manager.OpenAI")
def test_generate_empty_content(mock_openai):
    mock_openai.return_value.chat.completions.create.return_value = _completion(None)
    with pytest.raises(InsightGenerationError, match="인사이트를 생성할 수 없습니다"):
        generate_ai_content(MESSAGES, api_key="sk-test")


@patch("trend_calendar.api_manager.OpenAI")
def test_generate_api_error_includes_code(mock_openai):
    request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
    error = openai.APIError("quota exceeded", request=request, body={"code": "insufficient_quota"})
    mock_openai.return_value.chat.completions.create.side_effect = error

    with pytest.raises(InsightGenerationError) as excinfo:
        generate_ai_content(MESSAGES, api_key="sk-test")
    assert str(excinfo.value) == "[insufficient_quota] quota exceeded"


def test_describe_error_without_code():
    request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
    assert describe_openai_error(openai.APIError("boom", request=request, body=None)) == "boom"
