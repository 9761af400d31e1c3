# feedback_radar/ingestion.py
import json
import time
from typing import Dict, Any, Optional, List

# Import modules (not bare functions) so monkeypatching in tests works correctly
import feedback_radar.processors.normalizer as _normalizer
from feedback_radar.processors.enrichment import EnrichmentConfig, LLMEnrichmentOracle
from feedback_radar.errors import ValidationError, EnrichmentFailure, StoreFailure
from feedback_radar.schemas import FeedbackRecord
from feedback_radar import monitoring
from feedback_radar import db as dbmod

MAX_ERROR_LENGTH = 500

SEED_FEEDBACK = [
    {"source": "github", "text": "The API is too slow, takes forever to respond"},
    {"source": "support", "text": "Love the new dashboard design! Very intuitive."},
    {"source": "twitter", "text": "Billing page has a bug, charges are incorrect"},
    {"source": "email", "text": "Documentation needs more examples for beginners"},
    {"source": "github", "text": "Great work on the authentication system!"},
    {"source": "support", "text": "Feature request: dark mode support"},
    {"source": "twitter", "text": "The mobile app crashes on iOS 17"},
    {"source": "email", "text": "Thank you for the quick response to my issue"},
    {"source": "github", "text": "Performance has improved significantly in v2.0"},
    {"source": "support", "text": "Need help with integration, API docs unclear"},
]


def _now_ms() -> int:
    return int(time.time() * 1000)


def _describe_failure(exc: Exception) -> str:
    msg = str(exc).strip() or exc.__class__.__name__
    return msg[:MAX_ERROR_LENGTH]


class IngestionCoordinator:
    """
    Owns the record lifecycle for one submission:
    1. Validate input
    2. Insert pending record
    3. Call the oracle and normalize its output
    4. Mark the record done (with enrichment) or failed (with cause)
    5. Re-read and return the final record

    metrics is any object exposing the monitoring helpers; None disables emission.
    """

    def __init__(self, store: Optional[dbmod.RecordStore] = None, oracle=None,
                 config: Optional[EnrichmentConfig] = None, metrics=monitoring):
        self.config = config or EnrichmentConfig.from_env()
        self.store = store or dbmod.RecordStore()
        self.oracle = oracle or LLMEnrichmentOracle(self.config)
        self.metrics = metrics

    def _emit(self, helper: str, *args):
        if self.metrics is None:
            return
        try:
            getattr(self.metrics, helper)(*args)
        except Exception:
            monitoring.logger.debug("Metrics emission failed", extra={"helper": helper})

    def _enrich(self, text: str):
        """Returns (EnrichmentResult, model, latency_ms). Raises EnrichmentFailure."""
        prompt = self.config.build_prompt(text)
        start = time.monotonic()
        try:
            out = self.oracle.run(prompt, self.config.max_tokens)
        except Exception as e:
            raise EnrichmentFailure(f"AI call failed: {_describe_failure(e)}") from e
        latency_ms = max(0, int((time.monotonic() - start) * 1000))

        raw = out.get("response") if isinstance(out, dict) else None
        result = _normalizer.normalize(raw)
        model = (out.get("model") if isinstance(out, dict) else None) or self.config.model
        return result, model, latency_ms

    def submit(self, source: Optional[str], text: Optional[str]) -> FeedbackRecord:
        missing = [name for name, value in (("source", source), ("text", text))
                   if not isinstance(value, str) or not value.strip()]
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

        self._emit("inc_ingest_received", source)

        feedback_id = self.store.insert({
            "source": source,
            "text": text,
            "created_at": _now_ms(),
            "analysis_status": "pending",
        })
        monitoring.logger.info("Feedback stored as pending", extra={"feedback_id": feedback_id, "source": source})

        try:
            result, model, latency_ms = self._enrich(text)
        except Exception as e:
            error = _describe_failure(e)
            monitoring.logger.warning(
                "Enrichment failed", extra={"feedback_id": feedback_id, "error": error}
            )
            self.store.update(feedback_id, {
                "analysis_status": "failed",
                "analysis_error": error,
            })
            self._emit("inc_ai_failed", source)
        else:
            self.store.update(feedback_id, {
                "sentiment": result.sentiment,
                "urgency": result.urgency,
                "tags": json.dumps(result.tags),
                "summary": result.summary,
                "ai_model": model,
                "ai_latency_ms": latency_ms,
                "analysis_status": "done",
            })
            self._emit("inc_ai_completed", source, result.sentiment, latency_ms, model)

        row = self.store.select_one(feedback_id)
        if row is None:
            raise StoreFailure(f"Feedback {feedback_id} vanished after update")
        return FeedbackRecord.from_row(row)


def seed_mock_feedback(store: Optional[dbmod.RecordStore] = None) -> List[Dict[str, Any]]:
    """Insert canned feedback in pending state (dev helper, no enrichment)."""
    store = store or dbmod.RecordStore()
    results = []
    for item in SEED_FEEDBACK:
        new_id = store.insert({
            "source": item["source"],
            "text": item["text"],
            "created_at": _now_ms(),
            "analysis_status": "pending",
        })
        results.append({"id": new_id, **item})
    return results
