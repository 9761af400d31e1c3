# feedback_radar/schemas.py
import json
from typing import List, Optional, Dict, Any, Literal
from pydantic import BaseModel, Field

SENTIMENTS = ("positive", "neutral", "negative")
ANALYSIS_STATUSES = ("pending", "done", "failed")

Sentiment = Literal["positive", "neutral", "negative"]


class FeedbackSubmission(BaseModel):
    # emptiness is checked by the coordinator so the API can answer with E_VALIDATION
    source: Optional[str] = None
    text: Optional[str] = None


class EnrichmentResult(BaseModel):
    sentiment: Sentiment
    urgency: int = Field(ge=1, le=5)
    tags: List[str] = Field(default_factory=list, max_length=5)
    summary: str


def parse_tags(raw: Optional[str]) -> Optional[List[Any]]:
    """Deserialize a stored tag list. Returns None for missing or unparsable text."""
    if raw is None:
        return None
    try:
        tags = json.loads(raw)
    except (TypeError, ValueError):
        return None
    return tags if isinstance(tags, list) else None


class FeedbackRecord(BaseModel):
    id: int
    source: str
    text: str
    created_at: int
    sentiment: Optional[str] = None
    urgency: Optional[int] = None
    tags: Optional[List[Any]] = None
    summary: Optional[str] = None
    ai_model: Optional[str] = None
    ai_latency_ms: Optional[int] = None
    analysis_status: str = "pending"
    analysis_error: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "FeedbackRecord":
        data = dict(row)
        data["tags"] = parse_tags(data.get("tags"))
        return cls(**data)


class TagCount(BaseModel):
    tag: str
    count: int


class Stats(BaseModel):
    sentiment_counts: Dict[str, int] = Field(default_factory=dict)
    top_tags: List[TagCount] = Field(default_factory=list)
    avg_ai_latency_ms: float = 0
    total_feedback: int = 0
