"""Tolerant JSON extraction from LLM responses.

Models asked for "JSON only" still wrap their answer in markdown fences or
surround it with prose often enough that a plain ``json.loads`` is not
good enough.  :func:`extract_json_object` handles the common shapes:

1. Clean JSON: ``{"summary": ...}``
2. Markdown-fenced: ``\\`\\`\\`json\\n{...}\\`\\`\\````
3. JSON embedded in prose: ``Here is the analysis: {...}``

It returns ``None`` instead of raising so callers can apply their own
fallback policy.
"""

from __future__ import annotations

import json
import re
from typing import Any

import structlog

logger = structlog.get_logger(logger_name=__name__)

_FENCE_RE = re.compile(r"```(?:json)?\s*\n?(.*?)```", re.DOTALL)


def extract_json_object(response: str | None) -> dict[str, Any] | None:
    """Return the JSON object contained in *response*, or ``None``."""
    if not response or not response.strip():
        return None

    cleaned = response.strip()

    fence_match = _FENCE_RE.search(cleaned)
    if fence_match:
        cleaned = fence_match.group(1).strip()
    else:
        brace_start = cleaned.find("{")
        brace_end = cleaned.rfind("}")
        if brace_start != -1 and brace_end > brace_start:
            cleaned = cleaned[brace_start : brace_end + 1]

    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError:
        logger.warning("llm_json_parse_failed", response_preview=response[:200])
        return None

    if not isinstance(data, dict):
        logger.warning("llm_json_not_object", json_type=type(data).__name__)
        return None
    return data


def coerce_string_list(value: Any) -> list[str]:
    """Return the non-empty, stripped strings of a JSON list value.

    Anything that is not a list yields ``[]``; non-string items are dropped.
    """
    if not isinstance(value, list):
        return []
    return [item.strip() for item in value if isinstance(item, str) and item.strip()]
