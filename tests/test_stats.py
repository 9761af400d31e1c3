import json

from feedback_radar.stats import StatisticsAggregator
from feedback_radar import db as dbmod


def _insert(store, created_at, sentiment=None, tags=None, latency=None, raw_tags=None):
    return store.insert({
        "source": "github",
        "text": "t",
        "created_at": created_at,
        "sentiment": sentiment,
        "tags": raw_tags if raw_tags is not None else (json.dumps(tags) if tags is not None else None),
        "ai_latency_ms": latency,
        "analysis_status": "done" if sentiment else "pending",
    })


def test_empty_store_gives_zeroed_stats():
    stats = StatisticsAggregator(dbmod.RecordStore()).compute_stats()
    assert stats.sentiment_counts == {}
    assert stats.top_tags == []
    assert stats.avg_ai_latency_ms == 0
    assert stats.total_feedback == 0


def test_top_tags_scenario():
    store = dbmod.RecordStore()
    _insert(store, 1, "negative", ["a", "b"], 100)
    _insert(store, 2, "negative", ["a"], 200)
    _insert(store, 3, "positive", ["c"], 300)
    stats = StatisticsAggregator(store).compute_stats()
    top = [(t.tag, t.count) for t in stats.top_tags]
    assert top[0] == ("a", 2)
    assert dict(top) == {"a": 2, "b": 1, "c": 1}


def test_counts_average_and_total():
    store = dbmod.RecordStore()
    _insert(store, 1, "negative", ["x"], 100)
    _insert(store, 2, "negative", ["x"], 300)
    _insert(store, 3, "positive", ["y"], None)
    _insert(store, 4)  # pending: counted in total only
    stats = StatisticsAggregator(store).compute_stats()
    assert stats.sentiment_counts == {"negative": 2, "positive": 1}
    assert stats.avg_ai_latency_ms == 200
    assert stats.total_feedback == 4


def test_unparsable_tags_are_skipped():
    store = dbmod.RecordStore()
    _insert(store, 1, "neutral", raw_tags="not json")
    _insert(store, 2, "neutral", raw_tags='{"a": 1}')
    _insert(store, 3, "neutral", ["ok"])
    stats = StatisticsAggregator(store).compute_stats()
    assert [(t.tag, t.count) for t in stats.top_tags] == [("ok", 1)]


def test_window_only_counts_recent_records():
    store = dbmod.RecordStore()
    _insert(store, 1, "neutral", ["old"])
    _insert(store, 2, "neutral", ["new"])
    _insert(store, 3, "neutral", ["new"])
    stats = StatisticsAggregator(store, top_tags_window=2).compute_stats()
    assert [(t.tag, t.count) for t in stats.top_tags] == [("new", 2)]


def test_top_tags_limit():
    store = dbmod.RecordStore()
    for i in range(15):
        _insert(store, i, "neutral", [f"t{i}"])
    stats = StatisticsAggregator(store, top_tags_limit=10).compute_stats()
    assert len(stats.top_tags) == 10


def test_compute_stats_is_idempotent():
    store = dbmod.RecordStore()
    _insert(store, 1, "negative", ["a", "b"], 120)
    _insert(store, 2, "positive", ["b"], 80)
    agg = StatisticsAggregator(store)
    assert agg.compute_stats() == agg.compute_stats()
