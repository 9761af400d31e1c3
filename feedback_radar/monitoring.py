# feedback_radar/monitoring.py
"""
Centralized monitoring: Prometheus metrics, structured JSON logging, optional Sentry.

Env vars:
- PROMETHEUS_ENABLED (default: true)
- SENTRY_DSN (optional)
- LOG_AS_JSON (default: true)
- LOG_LEVEL (default: INFO)
- ENVIRONMENT (default: development)
"""

import os
import logging
import time
from typing import Tuple

import sentry_sdk
from prometheus_client import (
    Counter, Histogram,
    generate_latest, CONTENT_TYPE_LATEST, REGISTRY,
)
from pythonjsonlogger.json import JsonFormatter

# --- ENV flags
PROMETHEUS_ENABLED = os.getenv("PROMETHEUS_ENABLED", "true").lower() in ("1", "true", "yes")
SENTRY_DSN = os.getenv("SENTRY_DSN", None)
LOG_AS_JSON = os.getenv("LOG_AS_JSON", "true").lower() in ("1", "true", "yes")
ENVIRONMENT = os.getenv("ENVIRONMENT", "development")


# --- Logger setup
def setup_logger(name: str = "feedback-radar", level: int = None) -> logging.Logger:
    level = logging.getLevelName(os.getenv("LOG_LEVEL", "INFO")) if level is None else level
    logger = logging.getLogger(name)
    logger.setLevel(level)
    if not logger.handlers:
        handler = logging.StreamHandler()
        if LOG_AS_JSON:
            fmt = JsonFormatter(
                "%(asctime)s %(levelname)s %(name)s %(message)s"
            )
            handler.setFormatter(fmt)
        logger.addHandler(handler)
    return logger


logger = setup_logger()

# --- Sentry (optional)
if SENTRY_DSN:
    sentry_sdk.init(dsn=SENTRY_DSN, environment=ENVIRONMENT)
    logger.info("Sentry initialized")


# --- Prometheus metrics
REQUEST_COUNT = Counter(
    "feedback_http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"],
)

REQUEST_LATENCY = Histogram(
    "feedback_http_request_latency_seconds",
    "Request latency in seconds",
    ["endpoint"],
)

# event: ingest_received | ai_completed | ai_failed
# source is caller-supplied free text; it goes to the log, never into a label
FEEDBACK_EVENTS = Counter(
    "feedback_events_total",
    "Feedback pipeline events",
    ["event", "outcome"],
)

AI_LATENCY = Histogram(
    "feedback_ai_latency_seconds",
    "Wall-clock duration of enrichment oracle calls",
    ["model"],
)


# --- Helper wrappers (never crash the app)
def observe_request(start_ts: float, endpoint: str, method: str, status: str):
    try:
        REQUEST_LATENCY.labels(endpoint=endpoint).observe(time.time() - start_ts)
        REQUEST_COUNT.labels(method=method, endpoint=endpoint, status=status).inc()
    except Exception:
        pass


def inc_ingest_received(source: str):
    try:
        FEEDBACK_EVENTS.labels(event="ingest_received", outcome="pending").inc()
        logger.debug("ingest_received", extra={"source": source})
    except Exception:
        pass


def inc_ai_completed(source: str, sentiment: str, latency_ms: int, model: str):
    try:
        FEEDBACK_EVENTS.labels(event="ai_completed", outcome=sentiment).inc()
        AI_LATENCY.labels(model=model).observe(latency_ms / 1000.0)
        logger.debug("ai_completed", extra={"source": source, "sentiment": sentiment,
                                            "latency_ms": latency_ms, "model": model})
    except Exception:
        pass


def inc_ai_failed(source: str):
    try:
        FEEDBACK_EVENTS.labels(event="ai_failed", outcome="error").inc()
        logger.debug("ai_failed", extra={"source": source})
    except Exception:
        pass


def prometheus_metrics_response() -> Tuple[bytes, str]:
    """Return (body_bytes, content_type) for Prometheus scrape."""
    try:
        return generate_latest(REGISTRY), CONTENT_TYPE_LATEST
    except Exception:
        return b"", CONTENT_TYPE_LATEST
