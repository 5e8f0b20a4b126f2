"""LLM initialisation — single place to swap providers.

Supports two modes:

1. **OpenAI cloud** (default) — set ``OPENAI_API_KEY``.
2. **OpenAI-compatible endpoint** — set ``LLM_BASE_URL`` (vLLM, LiteLLM
   proxy, …).  ``ChatOpenAI`` works unchanged against it.

The LLM is only used as a prompt-completion function whose output is
JSON; :func:`parse_json_reply` is the one place that output gets decoded.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from langchain_openai import ChatOpenAI

from knowledge_index.config import settings

logger = logging.getLogger(__name__)


def get_llm(temperature: float = 0.0) -> ChatOpenAI:
    """Return the configured chat model.

    When ``settings.llm_base_url`` is set the client is pointed at that
    endpoint instead of the OpenAI cloud API.  A dummy API key
    (``"EMPTY"``) is used when none is configured because self-hosted
    endpoints usually do not require authentication.
    """
    kwargs: dict = {
        "model": settings.llm_model_name,
        "temperature": temperature,
    }

    if settings.llm_base_url:
        logger.info("Using OpenAI-compatible endpoint: %s", settings.llm_base_url)
        kwargs["base_url"] = settings.llm_base_url
        kwargs["api_key"] = settings.openai_api_key or "EMPTY"
    else:
        kwargs["api_key"] = settings.openai_api_key

    return ChatOpenAI(**kwargs)


def parse_json_reply(content: Any) -> Any | None:
    """Best-effort JSON decoding of an LLM reply.

    LLMs occasionally return JSON wrapped in markdown fences.  This helper
    strips common wrappers before parsing and returns ``None`` when the
    reply is not JSON at all.
    """
    if not isinstance(content, str):
        return None
    cleaned = content.strip()
    # Strip ```json … ``` wrappers
    if cleaned.startswith("```"):
        first_newline = cleaned.index("\n") if "\n" in cleaned else 3
        cleaned = cleaned[first_newline + 1 :]
        if cleaned.endswith("```"):
            cleaned = cleaned[:-3]
        cleaned = cleaned.strip()
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError:
        logger.warning("Could not parse LLM JSON: %.200s", content)
        return None
