"""Convert raw trends API payloads into canonical shapes.

Each endpoint returns a differently shaped body.  The functions here map
each shape onto the types in :mod:`trends_explorer.types` and never touch
the network or mutate their input.

Structural absences (a missing top-level list, a timeline point without a
date) raise :class:`~trends_explorer.errors.NormalizationError`.  Value
level absences (one keyword's score on one date, one region's score) are
filled with ``0``.
"""

import math
from datetime import datetime, time, timezone
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from dateutil import parser as date_parser

from trends_explorer.errors import NormalizationError
from trends_explorer.types import (
    Article,
    CategoryNode,
    Endpoint,
    Json,
    KeywordSeries,
    QueryItem,
    QueryRanking,
    RegionScore,
    RegionTable,
    RequestDescriptor,
    Suggestion,
    TimeSeriesPoint,
    TrendingStory,
)

MIN_SCORE = 0.0
MAX_SCORE = 100.0

# Non-keyword columns pytrends includes in every timeline point.
_TIMELINE_META_FIELDS = frozenset({"date", "isPartial"})


def normalize(endpoint: Endpoint, payload: Any,
              keywords: Optional[Sequence[str]] = None) -> Any:
    """Dispatch *payload* to the normalizer for *endpoint*.

    Args:
        endpoint: Endpoint that produced the payload.
        payload: Decoded JSON body.
        keywords: Requested keywords; used only by
            ``interest_over_time`` to decide which series to build.

    Returns:
        The canonical shape for the endpoint (see the individual
        ``normalize_*`` functions).
    """
    if endpoint is Endpoint.INTEREST_OVER_TIME:
        return normalize_interest_over_time(payload, keywords)
    handler = _HANDLERS.get(endpoint)
    if handler is None:
        raise ValueError(f"No normalizer for endpoint {endpoint!r}")
    return handler(payload)


def normalize_response(descriptor: RequestDescriptor, payload: Any) -> Any:
    """Normalize *payload* using the endpoint and keywords of *descriptor*.

    Matches the ``transform`` signature of
    :class:`~trends_explorer.executor.RequestExecutor`.
    """
    return normalize(descriptor.endpoint, payload, descriptor.keywords or None)


def normalize_interest_over_time(
    payload: Any,
    keywords: Optional[Sequence[str]] = None,
) -> List[KeywordSeries]:
    """Project a timeline payload into one series per keyword.

    Each point of ``interest_over_time`` carries a ``date`` plus one
    numeric field per keyword.  A keyword's missing or non-numeric field
    becomes ``0``; values are clamped to ``[0, 100]``.  Repeated
    timestamps keep the last occurrence, and points are returned in
    ascending order.  When every point falls on midnight the timestamps
    are plain dates; hour windows (``now 1-H``) keep naive UTC datetimes.

    Args:
        payload: ``{"interest_over_time": [{"date": ..., "<kw>": n}]}``.
        keywords: Keywords to project.  When omitted they are inferred
            from the point fields in first-seen order.

    Returns:
        One :class:`KeywordSeries` per keyword, in keyword order.

    Raises:
        NormalizationError: If the points list is missing or not a list,
            a point is not an object, or a point has no usable ``date``.
    """
    endpoint = Endpoint.INTEREST_OVER_TIME.value
    points = _require(payload, "interest_over_time", endpoint, list)

    dated: Dict[datetime, Json] = {}
    for index, point in enumerate(points):
        if not isinstance(point, dict):
            raise NormalizationError(endpoint, f"interest_over_time[{index}]",
                                     "is not an object")
        dated[_parse_timestamp(point.get("date"), endpoint, index)] = point

    if keywords is None:
        keywords = _infer_keywords(points)

    ordered = sorted(dated.items())
    # Daily timelines are keyed by date; hourly and minute timelines keep
    # their full timestamp.
    if all(ts.time() == time.min for ts, _ in ordered):
        ordered = [(ts.date(), point) for ts, point in ordered]
    return [
        KeywordSeries(
            keyword=keyword,
            points=tuple(
                TimeSeriesPoint(timestamp=ts, value=_score(point.get(keyword)))
                for ts, point in ordered
            ),
        )
        for keyword in keywords
    ]


def normalize_interest_by_region(payload: Any) -> List[RegionTable]:
    """Build one :class:`RegionTable` per keyword.

    Args:
        payload: ``{"<keyword>": {"<region code>": score}}``.

    Raises:
        NormalizationError: If the payload or a keyword entry is not an
            object.
    """
    endpoint = Endpoint.INTEREST_BY_REGION.value
    if not isinstance(payload, dict):
        raise NormalizationError(endpoint, "<root>", "is not an object")

    tables: List[RegionTable] = []
    for keyword, regions in payload.items():
        if not isinstance(regions, dict):
            raise NormalizationError(endpoint, keyword, "is not an object")
        tables.append(RegionTable(
            keyword=keyword,
            scores=tuple(
                RegionScore(region_code=str(code), score=_score(score))
                for code, score in regions.items()
            ),
        ))
    return tables


def normalize_related_queries(payload: Any) -> List[QueryRanking]:
    """Build one :class:`QueryRanking` per keyword.

    A ``null`` rising/top list (the provider's "no data") yields an empty
    tuple; an absent one is a structural error.  Entries without a query
    string are skipped.  Values are not clamped since rising values are
    percentages that routinely exceed 100.

    Raises:
        NormalizationError: If a keyword entry is not an object or lacks
            ``rising`` or ``top``.
    """
    endpoint = Endpoint.RELATED_QUERIES.value
    if not isinstance(payload, dict):
        raise NormalizationError(endpoint, "<root>", "is not an object")

    rankings: List[QueryRanking] = []
    for keyword, lists in payload.items():
        if not isinstance(lists, dict):
            raise NormalizationError(endpoint, keyword, "is not an object")
        rankings.append(QueryRanking(
            keyword=keyword,
            rising=_query_items(lists, "rising", keyword, endpoint),
            top=_query_items(lists, "top", keyword, endpoint),
        ))
    return rankings


def normalize_trending_searches(payload: Any) -> List[str]:
    """Return the trending search strings, blanks dropped."""
    endpoint = Endpoint.TRENDING_SEARCHES.value
    searches = _require(payload, "trending_searches", endpoint, list)
    return [str(s).strip() for s in searches if s is not None and str(s).strip()]


def normalize_realtime_trending(payload: Any) -> List[TrendingStory]:
    """Build :class:`TrendingStory` items from a realtime payload."""
    endpoint = Endpoint.REALTIME_TRENDING_SEARCHES.value
    stories = _require(payload, "realtime_trending_searches", endpoint, list)

    result: List[TrendingStory] = []
    for story in stories:
        if not isinstance(story, dict) or not story.get("title"):
            continue
        articles = story.get("articles") or []
        result.append(TrendingStory(
            title=str(story["title"]),
            traffic=str(story.get("formattedTraffic") or ""),
            articles=tuple(
                Article(
                    title=str(a.get("articleTitle") or a.get("title") or ""),
                    url=str(a.get("articleUrl") or ""),
                    source=str(a.get("source") or ""),
                    time_ago=str(a.get("timeAgo") or ""),
                    snippet=str(a.get("snippet") or ""),
                )
                for a in articles if isinstance(a, dict)
            ),
        ))
    return result


def normalize_suggestions(payload: Any) -> List[Suggestion]:
    """Build :class:`Suggestion` items; entries without a title are skipped."""
    endpoint = Endpoint.SUGGESTIONS.value
    suggestions = _require(payload, "suggestions", endpoint, list)
    return [
        Suggestion(title=str(s["title"]), type=str(s.get("type") or ""),
                   mid=s.get("mid") or None)
        for s in suggestions
        if isinstance(s, dict) and s.get("title")
    ]


def normalize_categories(payload: Any) -> List[CategoryNode]:
    """Build the category tree from an arbitrarily nested mapping.

    A string leaf becomes ``CategoryNode(id=key, name=value)``; a nested
    mapping becomes a node named after the last ``/`` segment of its key,
    with children built from the mapping.
    """
    endpoint = Endpoint.CATEGORIES.value
    tree = _require(payload, "categories", endpoint, dict)
    return _category_nodes(tree, endpoint, "categories")


_HANDLERS = {
    Endpoint.INTEREST_BY_REGION: normalize_interest_by_region,
    Endpoint.RELATED_QUERIES: normalize_related_queries,
    Endpoint.TRENDING_SEARCHES: normalize_trending_searches,
    Endpoint.REALTIME_TRENDING_SEARCHES: normalize_realtime_trending,
    Endpoint.SUGGESTIONS: normalize_suggestions,
    Endpoint.CATEGORIES: normalize_categories,
}


def _require(payload: Any, field: str, endpoint: str, kind: type) -> Any:
    """Return ``payload[field]`` or raise if it is absent or of the wrong type."""
    if not isinstance(payload, dict) or field not in payload:
        raise NormalizationError(endpoint, field, "is missing")
    value = payload[field]
    if not isinstance(value, kind):
        raise NormalizationError(endpoint, field,
                                 f"is not a {'list' if kind is list else 'object'}")
    return value


def _score(raw: Any) -> float:
    """Coerce one score to a number in ``[0, 100]``; unusable values give 0."""
    number = _number(raw)
    if number < MIN_SCORE or number > MAX_SCORE:
        return MIN_SCORE
    return number


def _number(raw: Any) -> float:
    if isinstance(raw, bool) or raw is None:
        return 0.0
    try:
        number = float(raw)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0


def _parse_timestamp(raw: Any, endpoint: str, index: int) -> datetime:
    """Parse a timeline ``date`` (ISO date, datetime or epoch millis).

    Returns a naive datetime; zone-aware values are converted to UTC.
    """
    field = f"interest_over_time[{index}].date"
    if raw is None or raw == "":
        raise NormalizationError(endpoint, field, "is missing")
    if isinstance(raw, (int, float)) and not isinstance(raw, bool):
        # pandas' default JSON orientation emits epoch milliseconds.
        try:
            parsed = datetime.fromtimestamp(raw / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            raise NormalizationError(
                endpoint, field, f"is not a valid epoch timestamp: {raw!r}",
            ) from None
    else:
        try:
            parsed = date_parser.isoparse(str(raw))
        except ValueError:
            try:
                parsed = date_parser.parse(str(raw))
            except (ValueError, OverflowError):
                raise NormalizationError(endpoint, field,
                                         f"is not a date: {raw!r}") from None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def _infer_keywords(points: Iterable[Json]) -> List[str]:
    seen: Dict[str, None] = {}
    for point in points:
        for name in point:
            if name not in _TIMELINE_META_FIELDS:
                seen.setdefault(name, None)
    return list(seen)


def _query_items(lists: Json, field: str, keyword: str,
                 endpoint: str) -> Tuple[QueryItem, ...]:
    if field not in lists:
        raise NormalizationError(endpoint, f"{keyword}.{field}", "is missing")
    items = lists[field]
    if items is None:
        return ()
    if not isinstance(items, list):
        raise NormalizationError(endpoint, f"{keyword}.{field}", "is not a list")
    return tuple(
        QueryItem(query=str(item["query"]), value=_number(item.get("value")))
        for item in items
        if isinstance(item, dict) and item.get("query")
    )


def _category_nodes(tree: Json, endpoint: str, path: str) -> List[CategoryNode]:
    nodes: List[CategoryNode] = []
    for key, value in tree.items():
        if isinstance(value, dict):
            nodes.append(CategoryNode(
                id=key,
                name=key.split("/")[-1] or key,
                children=tuple(_category_nodes(value, endpoint, f"{path}.{key}")),
            ))
        elif isinstance(value, str):
            nodes.append(CategoryNode(id=key, name=value))
        else:
            raise NormalizationError(endpoint, f"{path}.{key}",
                                     "is neither a name nor an object")
    return nodes
