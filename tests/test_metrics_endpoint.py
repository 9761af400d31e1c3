from fastapi.testclient import TestClient

from feedback_radar.app import app
from feedback_radar import monitoring
from feedback_radar import db as dbmod
from feedback_radar.ingestion import IngestionCoordinator
from feedback_radar.processors.enrichment import EnrichmentConfig


def test_metrics_endpoint_returns_prometheus_format():
    client = TestClient(app)
    r = client.get("/metrics")
    # Should return 200 with prometheus text format (if PROMETHEUS_ENABLED defaults to true)
    assert r.status_code in (200, 404)
    if r.status_code == 200:
        assert "text" in r.headers.get("content-type", "")


def _event_count(event, outcome):
    value = monitoring.REGISTRY.get_sample_value(
        "feedback_events_total", {"event": event, "outcome": outcome}
    )
    return value or 0.0


def _event_series():
    return {
        tuple(sorted(sample.labels.items()))
        for metric in monitoring.FEEDBACK_EVENTS.collect()
        for sample in metric.samples
        if sample.name == "feedback_events_total"
    }


def test_feedback_events_counted():
    client = TestClient(app)
    received = _event_count("ingest_received", "pending")
    completed = _event_count("ai_completed", "negative")
    client.post("/api/feedback", json={"source": "metrics-test", "text": "The API is too slow"})
    assert _event_count("ingest_received", "pending") == received + 1
    assert _event_count("ai_completed", "negative") == completed + 1


def test_distinct_sources_add_no_event_series():
    coord = IngestionCoordinator(store=dbmod.RecordStore(),
                                 config=EnrichmentConfig(model="m", mock=True))
    coord.submit("warmup", "The API is too slow")
    before = _event_series()
    for i in range(300):
        coord.submit(f"src-{i}", "The API is too slow")
    assert _event_series() == before
    assert all("source" not in dict(labels) for labels in before)
    body, _ = monitoring.prometheus_metrics_response()
    assert b"src-42" not in body


def test_health_still_works():
    client = TestClient(app)
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


def test_vercel_adapter_exports_app():
    from api.index import app as exported
    assert exported is app
