import json
import pytest

from feedback_radar import llm_wrapper
from feedback_radar.processors import enrichment
from feedback_radar.processors.enrichment import EnrichmentConfig, LLMEnrichmentOracle
from feedback_radar.processors.normalizer import normalize


def test_build_prompt_embeds_feedback_verbatim():
    cfg = EnrichmentConfig()
    prompt = cfg.build_prompt("Costs $5 and {braces}")
    assert "Feedback: Costs $5 and {braces}" in prompt
    assert prompt.startswith("Analyze the following feedback")
    assert prompt.rstrip().endswith("Return only the JSON object:")


def test_from_env(monkeypatch):
    monkeypatch.setenv("ENRICHMENT_LLM_MODEL", "some-model")
    monkeypatch.setenv("ENRICHMENT_MAX_TOKENS", "512")
    monkeypatch.setenv("LLM_TIMEOUT_SECONDS", "7")
    monkeypatch.setenv("MOCK_LLM", "false")
    cfg = EnrichmentConfig.from_env()
    assert cfg.model == "some-model"
    assert cfg.max_tokens == 512
    assert cfg.timeout_s == 7
    assert cfg.mock is False


@pytest.mark.parametrize("text,sentiment,tag", [
    ("Billing page has a bug, charges are incorrect", "negative", "billing"),
    ("Love the new dashboard design! Very intuitive.", "positive", "dashboard"),
    ("Feature request: dark mode support", "neutral", "feature-request"),
])
def test_mock_oracle_output_normalizes(text, sentiment, tag):
    oracle = LLMEnrichmentOracle(EnrichmentConfig(model="m", mock=True))
    out = oracle.run(EnrichmentConfig().build_prompt(text))
    assert out["model"] == "mock-m"
    result = normalize(out["response"])
    assert result.sentiment == sentiment
    assert tag in result.tags


def test_real_path_goes_through_llm_wrapper(monkeypatch):
    seen = {}

    def fake_call_llm(messages, model=None, max_tokens=300, temperature=0.0, timeout=30, provider=None):
        seen.update(messages=messages, model=model, max_tokens=max_tokens, timeout=timeout, provider=provider)
        return {"text": json.dumps({"sentiment": "positive"}), "model": model, "response_id": "r1", "raw": {}}

    monkeypatch.setattr(llm_wrapper, "call_llm", fake_call_llm)
    cfg = EnrichmentConfig(model="claude-x", provider="anthropic", timeout_s=9, mock=False)
    out = LLMEnrichmentOracle(cfg).run("PROMPT", max_tokens=77)
    assert out == {"response": '{"sentiment": "positive"}', "model": "claude-x"}
    assert seen["messages"] == [{"role": "user", "content": "PROMPT"}]
    assert seen["max_tokens"] == 77
    assert seen["timeout"] == 9
    assert seen["provider"] == "anthropic"


def test_call_llm_wraps_provider_errors(monkeypatch):
    def boom(messages, model, **kwargs):
        raise ConnectionError("network down")

    monkeypatch.setattr(llm_wrapper, "_real_openai_chat_completion", boom)
    with pytest.raises(RuntimeError) as ei:
        llm_wrapper.call_llm([{"role": "user", "content": "x"}], model="gpt-test", provider="openai")
    assert "openai" in str(ei.value)
    assert "network down" in str(ei.value)


def test_call_llm_dispatches_to_anthropic(monkeypatch):
    monkeypatch.setattr(
        llm_wrapper, "_real_anthropic_chat",
        lambda messages, model, **kw: {"text": "ok", "model": model, "response_id": None, "raw": None},
    )
    resp = llm_wrapper.call_llm([{"role": "user", "content": "x"}], model="claude-test", provider="anthropic")
    assert resp["text"] == "ok"
    assert resp["model"] == "claude-test"


def test_mock_extracts_feedback_from_prompt():
    prompt = EnrichmentConfig().build_prompt("The mobile app crashes on iOS 17")
    assert enrichment._feedback_from_prompt(prompt) == "The mobile app crashes on iOS 17"
