# feedback_radar/errors.py
"""
Error taxonomy shared by the ingestion pipeline, the store and the HTTP shell.

Each exception carries the error code used in API error responses.
"""

E_VALIDATION = "E_VALIDATION"
E_ENRICHMENT = "E_ENRICHMENT"
E_MALFORMED_OUTPUT = "E_MALFORMED_OUTPUT"
E_STORE = "E_STORE"
E_INTERNAL = "E_INTERNAL"


class FeedbackRadarError(Exception):
    error_code = E_INTERNAL


class ValidationError(FeedbackRadarError):
    """Submission is missing a required field. Nothing was written."""
    error_code = E_VALIDATION


class EnrichmentFailure(FeedbackRadarError):
    """The oracle raised, timed out, or returned output we could not use."""
    error_code = E_ENRICHMENT


class MalformedOutputError(EnrichmentFailure):
    """No JSON object could be located in the oracle output."""
    error_code = E_MALFORMED_OUTPUT


class StoreFailure(FeedbackRadarError):
    error_code = E_STORE
