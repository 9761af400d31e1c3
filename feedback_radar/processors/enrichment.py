# feedback_radar/processors/enrichment.py
import os
import json
import string
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from feedback_radar import llm_wrapper

PROMPT_TEMPLATE = string.Template("""Analyze the following feedback and return ONLY valid JSON with no additional text:
{
  "sentiment": "positive|neutral|negative",
  "urgency": 1-5,
  "tags": ["tag1", "tag2", "tag3", "tag4", "tag5"],
  "summary": "1-2 line summary"
}

Feedback: $feedback

Return only the JSON object:""")


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


@dataclass
class EnrichmentConfig:
    model: str = llm_wrapper.DEFAULT_MODEL
    provider: str = llm_wrapper.LLM_PROVIDER
    prompt_template: string.Template = PROMPT_TEMPLATE
    max_tokens: int = 300
    timeout_s: int = 30
    mock: bool = True

    @classmethod
    def from_env(cls) -> "EnrichmentConfig":
        return cls(
            model=os.getenv("ENRICHMENT_LLM_MODEL", llm_wrapper.DEFAULT_MODEL),
            provider=llm_wrapper.LLM_PROVIDER,
            max_tokens=int(os.getenv("ENRICHMENT_MAX_TOKENS", "300")),
            timeout_s=int(os.getenv("LLM_TIMEOUT_SECONDS", "30")),
            mock=_env_flag("MOCK_LLM", "true"),
        )

    def build_prompt(self, text: str) -> str:
        return self.prompt_template.safe_substitute(feedback=text)


# ---------------------------------------------------------------------------
# Mock responses for dev/test mode (MOCK_LLM=true)
# ---------------------------------------------------------------------------

_NEGATIVE_WORDS = ("slow", "bug", "crash", "incorrect", "broken", "unclear", "error", "fail")
_POSITIVE_WORDS = ("love", "great", "thank", "improved", "intuitive", "awesome")
_TAG_KEYWORDS = [
    ("slow", "performance"),
    ("performance", "performance"),
    ("api", "api"),
    ("bug", "bug"),
    ("billing", "billing"),
    ("crash", "crash"),
    ("mobile", "mobile"),
    ("ios", "ios"),
    ("documentation", "docs"),
    ("docs", "docs"),
    ("dashboard", "dashboard"),
    ("dark mode", "feature-request"),
    ("feature request", "feature-request"),
    ("auth", "authentication"),
    ("integration", "integration"),
]


def _feedback_from_prompt(prompt_text: str) -> str:
    after = prompt_text.split("Feedback:", 1)[-1]
    return after.split("Return only the JSON object:", 1)[0].strip()


def _mock_response_for_feedback(prompt_text: str) -> str:
    """Deterministic keyword-based analysis, wrapped in chatter like a real model."""
    feedback = _feedback_from_prompt(prompt_text)
    p = feedback.lower()

    if any(w in p for w in _NEGATIVE_WORDS):
        sentiment, urgency = "negative", 4
    elif any(w in p for w in _POSITIVE_WORDS):
        sentiment, urgency = "positive", 1
    else:
        sentiment, urgency = "neutral", 2

    tags: List[str] = []
    for keyword, tag in _TAG_KEYWORDS:
        if keyword in p and tag not in tags:
            tags.append(tag)
    if not tags:
        tags = ["general"]

    summary = feedback if len(feedback) <= 80 else feedback[:77] + "..."
    payload = {"sentiment": sentiment, "urgency": urgency, "tags": tags[:5], "summary": summary}
    return "Here is the analysis:\n" + json.dumps(payload)


# ---------------------------------------------------------------------------
# Oracle
# ---------------------------------------------------------------------------

class LLMEnrichmentOracle:
    """
    Text-in/text-out enrichment capability.
    run() returns {"response": <raw model text>, "model": <model identifier>}.
    """

    def __init__(self, config: Optional[EnrichmentConfig] = None):
        self.config = config or EnrichmentConfig.from_env()

    def _call_llm(self, prompt_text: str, max_tokens: int) -> Dict[str, Any]:
        # Isolated so tests can monkeypatch without touching the SDK.
        return llm_wrapper.call_llm(
            messages=[{"role": "user", "content": prompt_text}],
            model=self.config.model,
            max_tokens=max_tokens,
            temperature=0.0,
            timeout=self.config.timeout_s,
            provider=self.config.provider,
        )

    def run(self, prompt_text: str, max_tokens: int = 300) -> Dict[str, Any]:
        if self.config.mock:
            return {
                "response": _mock_response_for_feedback(prompt_text),
                "model": f"mock-{self.config.model}",
            }
        resp = self._call_llm(prompt_text, max_tokens)
        return {"response": resp["text"], "model": resp.get("model") or self.config.model}
