# feedback_radar/stats.py
import os
from collections import Counter
from typing import Optional

from feedback_radar import db as dbmod
from feedback_radar.schemas import Stats, TagCount, parse_tags

# Top tags are counted over a recent window, not the whole table, to bound cost.
TOP_TAGS_WINDOW = int(os.getenv("TOP_TAGS_WINDOW", "200"))
TOP_TAGS_LIMIT = int(os.getenv("TOP_TAGS_LIMIT", "10"))

SENTIMENT_COUNTS_SQL = (
    "SELECT sentiment, COUNT(*) AS count FROM feedback "
    "WHERE sentiment IS NOT NULL GROUP BY sentiment"
)
RECENT_TAGS_SQL = (
    "SELECT tags FROM feedback WHERE tags IS NOT NULL "
    "ORDER BY created_at DESC, id DESC LIMIT :window"
)
AVG_LATENCY_SQL = (
    "SELECT AVG(ai_latency_ms) AS avg_latency FROM feedback "
    "WHERE ai_latency_ms IS NOT NULL"
)
TOTAL_SQL = "SELECT COUNT(*) AS total FROM feedback"


class StatisticsAggregator:
    def __init__(self, store: Optional[dbmod.RecordStore] = None,
                 top_tags_window: int = TOP_TAGS_WINDOW, top_tags_limit: int = TOP_TAGS_LIMIT):
        self.store = store or dbmod.RecordStore()
        self.top_tags_window = top_tags_window
        self.top_tags_limit = top_tags_limit

    def sentiment_counts(self):
        rows = self.store.aggregate(SENTIMENT_COUNTS_SQL)
        return {r["sentiment"]: int(r["count"]) for r in rows}

    def top_tags(self):
        """
        Most frequent tags among the newest records that have tags.
        Rows whose tag text does not parse are skipped. Ties keep first-seen
        order, i.e. the tag seen in the newer record ranks first.
        """
        rows = self.store.select_many(RECENT_TAGS_SQL, {"window": self.top_tags_window})
        counts: Counter = Counter()
        for r in rows:
            tags = parse_tags(r.get("tags"))
            if tags is None:
                continue
            counts.update(t for t in tags if isinstance(t, str))
        return [TagCount(tag=t, count=c) for t, c in counts.most_common(self.top_tags_limit)]

    def avg_ai_latency_ms(self) -> float:
        rows = self.store.aggregate(AVG_LATENCY_SQL)
        avg = rows[0]["avg_latency"] if rows else None
        return float(avg) if avg is not None else 0

    def total_feedback(self) -> int:
        rows = self.store.aggregate(TOTAL_SQL)
        return int(rows[0]["total"]) if rows else 0

    def compute_stats(self) -> Stats:
        return Stats(
            sentiment_counts=self.sentiment_counts(),
            top_tags=self.top_tags(),
            avg_ai_latency_ms=self.avg_ai_latency_ms(),
            total_feedback=self.total_feedback(),
        )
