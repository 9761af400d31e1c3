# feedback_radar/llm_wrapper.py
"""
Provider transport for the enrichment oracle (Anthropic or OpenAI).

call_llm() returns {"text", "model", "response_id", "raw"}. Provider errors
are re-raised as RuntimeError naming the provider.

Env: LLM_PROVIDER, ANTHROPIC_API_KEY, OPENAI_API_KEY, ENRICHMENT_LLM_MODEL.
"""

import os
from typing import Dict, Any, Optional, List

OPENAI_API_KEY = os.getenv("OPENAI_API_KEY", "").strip()
ANTHROPIC_API_KEY = os.getenv("ANTHROPIC_API_KEY", "").strip()

# explicit > anthropic if key present > openai
_explicit_provider = os.getenv("LLM_PROVIDER", "").strip().lower()
if _explicit_provider in ("anthropic", "claude"):
    LLM_PROVIDER = "anthropic"
elif _explicit_provider in ("openai", "gpt"):
    LLM_PROVIDER = "openai"
elif ANTHROPIC_API_KEY:
    LLM_PROVIDER = "anthropic"
else:
    LLM_PROVIDER = "openai"

DEFAULT_MODEL = os.getenv(
    "ENRICHMENT_LLM_MODEL",
    "claude-sonnet-4-20250514" if LLM_PROVIDER == "anthropic" else "gpt-4o-mini",
)


def _real_anthropic_chat(messages: List[Dict[str, str]], model: str,
                         max_tokens: int = 300, temperature: float = 0.0,
                         timeout: int = 30) -> Dict[str, Any]:
    from anthropic import Anthropic

    client = Anthropic(api_key=ANTHROPIC_API_KEY, timeout=timeout)
    resp = client.messages.create(
        model=model,
        max_tokens=max_tokens,
        temperature=temperature,
        messages=messages,
    )
    text = "".join(block.text for block in resp.content if hasattr(block, "text"))
    return {"text": text, "model": model, "response_id": getattr(resp, "id", None), "raw": resp}


def _real_openai_chat_completion(messages: List[Dict[str, str]], model: str,
                                  max_tokens: int = 300, temperature: float = 0.0,
                                  timeout: int = 30) -> Dict[str, Any]:
    from openai import OpenAI

    client = OpenAI(api_key=OPENAI_API_KEY, timeout=timeout)
    resp = client.chat.completions.create(
        model=model,
        messages=messages,
        max_tokens=max_tokens,
        temperature=temperature,
    )
    choices = getattr(resp, "choices", [])
    text = (choices[0].message.content or "") if choices else ""
    return {"text": text, "model": model, "response_id": getattr(resp, "id", None), "raw": resp}


def call_llm(messages: List[Dict[str, str]], model: Optional[str] = None,
             max_tokens: int = 300, temperature: float = 0.0,
             timeout: int = 30, provider: Optional[str] = None) -> Dict[str, Any]:
    model = model or DEFAULT_MODEL
    provider = provider or LLM_PROVIDER
    # resolved per call so tests can monkeypatch the backends
    backend = _real_anthropic_chat if provider == "anthropic" else _real_openai_chat_completion
    try:
        return backend(messages, model=model, max_tokens=max_tokens,
                       temperature=temperature, timeout=timeout)
    except Exception as e:
        raise RuntimeError(f"LLM call failed ({provider}): {e}") from e
