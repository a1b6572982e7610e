"""
API management utilities for insight generation.

This module wraps the two external collaborators: the Serper web-search API,
whose failures are logged and degrade to an empty context string, and the
OpenAI chat completions API, whose failures are raised to the caller.
"""

import logging
from typing import Any, Dict, List, Optional

import openai
import requests
from openai import OpenAI

from .config_manager import get_config
from .exceptions import ConfigurationError, InsightGenerationError


def build_search_query(keyword: str, year: int, month: int) -> str:
    return f"{keyword} {year}년 {month}월 트렌드 이슈"


def format_search_results(data: Dict[str, Any], limit: int = 5) -> str:
    """
    Render organic search results as a numbered plain-text list

    Args:
        data: Serper response body
        limit: Maximum number of results

    Returns:
        Text with one ``n. title`` / snippet block per result
    """
    organic = data.get("organic") or []
    blocks = []
    for idx, item in enumerate(organic[:limit]):
        title = item.get("title", "")
        snippet = item.get("snippet") or ""
        blocks.append(f"{idx + 1}. {title}\n{snippet}")
    return "\n\n".join(blocks)


def search_web(keyword: str, year: int, month: int, api_key: Optional[str] = None) -> str:
    """
    Fetch a short web-search summary for a keyword and month

    Never raises: a missing key, a non-200 response or a network error all
    return an empty string so the insight request can continue without it.

    Args:
        keyword: Search keyword
        year: Target year
        month: Target month
        api_key: Serper key; falls back to the configured key

    Returns:
        Summary text, or "" when unavailable
    """
    serper_config = get_config().get('api', {}).get('serper', {})
    api_key = api_key or serper_config.get('api_key')
    if not api_key:
        return ""

    payload = {
        'q': build_search_query(keyword, year, month),
        'gl': serper_config.get('gl', 'kr'),
        'hl': serper_config.get('hl', 'ko'),
        'num': serper_config.get('num_results', 5),
    }
    headers = {
        'X-API-KEY': api_key,
        'Content-Type': 'application/json',
    }

    try:
        response = requests.post(
            serper_config.get('endpoint', 'https://google.serper.dev/search'),
            json=payload,
            headers=headers,
            timeout=serper_config.get('timeout', 10.0),
        )
        if response.status_code != 200:
            logging.warning(f"Serper request error for '{keyword}': {response.status_code} - {response.text[:200]}")
            return ""
        return format_search_results(response.json(), serper_config.get('num_results', 5))
    except Exception as e:
        logging.warning(f"Error during Serper request for '{keyword}': {e}")
        return ""


def describe_openai_error(error: openai.APIError) -> str:
    """Format an OpenAI error as ``[code] message`` when a code is present."""
    message = getattr(error, 'message', None) or str(error)
    code = getattr(error, 'code', None)
    if code:
        return f"[{code}] {message}"
    return message


def generate_ai_content(messages: List[Dict[str, str]], api_key: Optional[str] = None,
                        model: Optional[str] = None, max_tokens: Optional[int] = None,
                        temperature: Optional[float] = None, json_mode: bool = True) -> str:
    """
    Run one chat completion and return the message text

    Args:
        messages: Chat messages (system and user)
        api_key: OpenAI key; falls back to the configured key
        model: Model name; falls back to the configured model
        max_tokens: Completion token limit
        temperature: Sampling temperature
        json_mode: Ask the API for a JSON object response

    Returns:
        The content of the first choice

    Raises:
        ConfigurationError: When no API key is available
        InsightGenerationError: When the API call fails or returns no content
    """
    openai_config = get_config().get('api', {}).get('openai', {})
    api_key = api_key or openai_config.get('api_key')
    if not api_key:
        raise ConfigurationError("OpenAI API key가 설정되지 않았습니다.")

    params: Dict[str, Any] = {
        'model': model or openai_config.get('model', 'gpt-4.1'),
        'messages': messages,
        'max_tokens': max_tokens or openai_config.get('max_tokens', 1200),
        'temperature': temperature if temperature is not None else openai_config.get('temperature', 0.7),
    }
    if json_mode:
        params['response_format'] = {'type': 'json_object'}

    client = OpenAI(api_key=api_key, timeout=openai_config.get('timeout', 60.0), max_retries=0)
    try:
        response = client.chat.completions.create(**params)
    except openai.APIError as e:
        logging.error(f"OpenAI API error: {e}")
        raise InsightGenerationError(describe_openai_error(e)) from e

    content = response.choices[0].message.content if response.choices else None
    if not content:
        logging.error("OpenAI API returned an empty completion")
        raise InsightGenerationError("인사이트를 생성할 수 없습니다.")
    return content
