# feedback_radar/processors/normalizer.py
"""
Response Normalizer for enrichment oracle output.

Functions:
- extract_json_object(text) -> dict
- normalize(raw_text) -> EnrichmentResult

The oracle is asked for strict JSON but routinely wraps it in prose or code
fences. Extraction is a balanced-brace scan that understands JSON string
literals, so braces inside values ("summary": "use {x}") do not end the
object early. Once an object is found, normalization is total: every field
is coerced or defaulted into its valid range and never fails on its own.
"""

import json
from typing import Any, Dict, Iterator, List, Optional

from feedback_radar.errors import MalformedOutputError
from feedback_radar.schemas import EnrichmentResult, SENTIMENTS

DEFAULT_SENTIMENT = "neutral"
DEFAULT_URGENCY = 3
MIN_URGENCY = 1
MAX_URGENCY = 5
MAX_TAGS = 5
DEFAULT_SUMMARY = "No summary available"


def _balanced_candidates(text: str) -> Iterator[str]:
    """Yield every balanced {...} substring, in order of its opening brace."""
    start = text.find("{")
    while start != -1:
        depth = 0
        in_string = False
        escaped = False
        end = None
        for i in range(start, len(text)):
            ch = text[i]
            if in_string:
                if escaped:
                    escaped = False
                elif ch == "\\":
                    escaped = True
                elif ch == '"':
                    in_string = False
                continue
            if ch == '"':
                in_string = True
            elif ch == "{":
                depth += 1
            elif ch == "}":
                depth -= 1
                if depth == 0:
                    end = i
                    break
        if end is not None:
            yield text[start:end + 1]
        start = text.find("{", start + 1)


def extract_json_object(text: Any) -> Dict[str, Any]:
    """
    Return the first JSON object embedded in text.
    Raises MalformedOutputError if there is none.
    """
    if not isinstance(text, str) or "{" not in text:
        raise MalformedOutputError("No JSON found in AI response")
    for candidate in _balanced_candidates(text):
        try:
            parsed = json.loads(candidate)
        except ValueError:
            continue
        if isinstance(parsed, dict):
            return parsed
    raise MalformedOutputError("No parsable JSON object found in AI response")


def _normalize_sentiment(value: Any) -> str:
    if isinstance(value, str):
        v = value.strip().lower()
        if v in SENTIMENTS:
            return v
    return DEFAULT_SENTIMENT


def _normalize_urgency(value: Any) -> int:
    if isinstance(value, bool) or value is None:
        return DEFAULT_URGENCY
    try:
        n = int(round(float(value)))
    except (TypeError, ValueError, OverflowError):
        return DEFAULT_URGENCY
    # 0 is treated like a missing value
    if n == 0:
        return DEFAULT_URGENCY
    return max(MIN_URGENCY, min(MAX_URGENCY, n))


def _normalize_tags(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    tags: List[str] = []
    for item in value[:MAX_TAGS]:
        if item is None or isinstance(item, (dict, list)):
            continue
        tag = str(item).strip()
        if tag:
            tags.append(tag)
    return tags


def _normalize_summary(value: Any) -> str:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return DEFAULT_SUMMARY


def normalize(raw_text: Optional[str]) -> EnrichmentResult:
    """
    Extract and normalize the enrichment payload from raw oracle text.

    Raises:
      MalformedOutputError when no JSON object can be located.
    """
    parsed = extract_json_object(raw_text)
    return EnrichmentResult(
        sentiment=_normalize_sentiment(parsed.get("sentiment")),
        urgency=_normalize_urgency(parsed.get("urgency")),
        tags=_normalize_tags(parsed.get("tags")),
        summary=_normalize_summary(parsed.get("summary")),
    )
