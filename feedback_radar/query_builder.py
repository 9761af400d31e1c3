# feedback_radar/query_builder.py
"""
Filter Query Builder for the feedback list endpoint.

build(criteria) -> (sql, params)

Values inside one dimension are OR'd, dimensions are AND'd:
  source=[github, email], sentiment=[positive]
  -> (source IN (:source_0, :source_1)) AND (sentiment IN (:sentiment_0))

Every value is a named bind parameter; nothing from the request is ever
interpolated into the SQL text.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

DEFAULT_LIMIT = 50
LIKE_ESCAPE = "\\"


@dataclass
class FilterCriteria:
    source: List[str] = field(default_factory=list)
    sentiment: List[str] = field(default_factory=list)
    urgency: List[int] = field(default_factory=list)
    tag: List[str] = field(default_factory=list)
    limit: Any = DEFAULT_LIMIT


def _clean(values: Optional[Iterable[Any]]) -> List[Any]:
    """Drop None and blank values (e.g. an empty select sent as ?source=)."""
    out = []
    for v in values or []:
        if v is None:
            continue
        if isinstance(v, str):
            v = v.strip()
            if not v:
                continue
        out.append(v)
    return out


def _escape_like(value: str) -> str:
    return (value.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
                 .replace("%", LIKE_ESCAPE + "%")
                 .replace("_", LIKE_ESCAPE + "_"))


def tag_pattern(tag: str) -> str:
    """
    LIKE pattern matching tag as a quoted element of the stored JSON array.
    The quotes keep "bug" from matching "debug".
    """
    return "%" + _escape_like(json.dumps(tag)) + "%"


def _in_clause(column: str, values: List[Any], params: Dict[str, Any]) -> str:
    names = []
    for i, v in enumerate(values):
        name = f"{column}_{i}"
        params[name] = v
        names.append(f":{name}")
    return f"{column} IN ({', '.join(names)})"


def build(criteria: Optional[FilterCriteria] = None) -> Tuple[str, Dict[str, Any]]:
    criteria = criteria or FilterCriteria()
    clauses: List[str] = []
    params: Dict[str, Any] = {}

    sources = _clean(criteria.source)
    if sources:
        clauses.append(_in_clause("source", sources, params))

    sentiments = _clean(criteria.sentiment)
    if sentiments:
        clauses.append(_in_clause("sentiment", sentiments, params))

    urgencies = [int(u) for u in _clean(criteria.urgency)]
    if urgencies:
        clauses.append(_in_clause("urgency", urgencies, params))

    tags = _clean(criteria.tag)
    if tags:
        likes = []
        for i, t in enumerate(tags):
            name = f"tag_{i}"
            params[name] = tag_pattern(str(t))
            likes.append(f"tags LIKE :{name} ESCAPE '{LIKE_ESCAPE}'")
        clauses.append("(" + " OR ".join(likes) + ")")

    sql = "SELECT * FROM feedback"
    if clauses:
        sql += " WHERE " + " AND ".join(clauses)
    sql += " ORDER BY created_at DESC, id DESC LIMIT :limit"
    limit = criteria.limit
    params["limit"] = DEFAULT_LIMIT if limit is None else int(limit)
    return sql, params
