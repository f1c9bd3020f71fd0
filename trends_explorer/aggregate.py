"""Derive comparison tables, summaries and rankings from canonical shapes.

Every function here is a pure, deterministic function of its arguments.
"""

from datetime import date, datetime
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from trends_explorer.errors import AlignmentError
from trends_explorer.types import (
    CategoryNode,
    ComparisonTable,
    KeywordSeries,
    QueryItem,
    QueryRanking,
    RegionMatrixRow,
    RegionScore,
    RegionTable,
    SeriesSummary,
)

TOP_REGIONS_LIMIT = 20


def build_comparison_table(series: Sequence[KeywordSeries]) -> ComparisonTable:
    """Align several keyword series on the union of their dates.

    Args:
        series: Series to align, one per keyword.

    Returns:
        A table whose ``timestamps`` are the sorted union of all input
        dates and whose per-keyword rows are zero-filled on dates the
        keyword has no point for.

    Raises:
        AlignmentError: If *series* is empty, any series has no points,
            a keyword appears twice, or daily and intraday series are
            mixed.
    """
    if not series:
        raise AlignmentError("Cannot build a comparison table from zero series")

    seen = set()
    for s in series:
        if not s.points:
            raise AlignmentError(f"Series for '{s.keyword}' has no data points")
        if s.keyword in seen:
            raise AlignmentError(f"Keyword '{s.keyword}' appears more than once")
        seen.add(s.keyword)

    stamps = {p.timestamp for s in series for p in s.points}
    if len({isinstance(ts, datetime) for ts in stamps}) > 1:
        raise AlignmentError("Cannot align daily and intraday series")
    timestamps: Tuple[date, ...] = tuple(sorted(stamps))

    rows: Dict[str, Tuple[float, ...]] = {}
    for s in series:
        by_date = {p.timestamp: p.value for p in s.points}
        rows[s.keyword] = tuple(by_date.get(ts, 0.0) for ts in timestamps)

    return ComparisonTable(timestamps=timestamps, series_by_keyword=rows)


def summarize(series: KeywordSeries) -> SeriesSummary:
    """Return current, previous, delta and peak values of *series*.

    Missing points count as ``0``: an empty series summarizes to all
    zeros and a single-point series has ``previous == 0``.
    """
    values = series.values
    current = values[-1] if values else 0.0
    previous = values[-2] if len(values) > 1 else 0.0
    return SeriesSummary(
        current=current,
        previous=previous,
        delta=current - previous,
        peak=max(values) if values else 0.0,
    )


def summarize_all(series: Iterable[KeywordSeries]) -> Dict[str, SeriesSummary]:
    return {s.keyword: summarize(s) for s in series}


def rank_regions(table: RegionTable,
                 limit: Optional[int] = None) -> List[RegionScore]:
    """Rank the regions of one keyword by score.

    Regions scoring ``0`` or less are dropped.  The rest are sorted by
    descending score, ties by ascending region code.

    Args:
        table: Region scores for one keyword.
        limit: Keep at most this many regions (e.g. ``20``).

    Raises:
        ValueError: If *limit* is negative.
    """
    if limit is not None and limit < 0:
        raise ValueError(f"limit must be non-negative, got {limit}")
    ranked = sorted(
        (s for s in table.scores if s.score > 0),
        key=lambda s: (-s.score, s.region_code),
    )
    return ranked if limit is None else ranked[:limit]


def rank_queries(ranking: QueryRanking) -> QueryRanking:
    """Sort rising and top queries by descending value.

    The sort is stable, so equal values keep their source order.
    """
    return QueryRanking(
        keyword=ranking.keyword,
        rising=_by_value(ranking.rising),
        top=_by_value(ranking.top),
    )


def build_region_matrix(tables: Sequence[RegionTable]) -> List[RegionMatrixRow]:
    """Combine several keywords' region tables into heatmap rows.

    Each row covers one region from the union of all tables, holding
    every keyword's score (``0`` where the keyword has none) and the
    maximum across keywords.  Rows whose maximum is ``0`` are dropped;
    the rest are ordered by descending maximum, ties by region code.
    """
    keywords = [t.keyword for t in tables]
    lookups = {t.keyword: t.as_dict() for t in tables}
    codes = sorted({code for lookup in lookups.values() for code in lookup})

    rows: List[RegionMatrixRow] = []
    for code in codes:
        scores = {kw: lookups[kw].get(code, 0.0) for kw in keywords}
        max_score = max(scores.values(), default=0.0)
        if max_score > 0:
            rows.append(RegionMatrixRow(region_code=code, scores=scores,
                                        max_score=max_score))
    rows.sort(key=lambda r: (-r.max_score, r.region_code))
    return rows


def flatten_categories(
    nodes: Sequence[CategoryNode],
    depth: int = 0,
) -> List[Tuple[int, CategoryNode]]:
    """Walk a category tree depth-first, yielding ``(depth, node)`` pairs."""
    flat: List[Tuple[int, CategoryNode]] = []
    for node in nodes:
        flat.append((depth, node))
        flat.extend(flatten_categories(node.children, depth + 1))
    return flat


def _by_value(items: Sequence[QueryItem]) -> Tuple[QueryItem, ...]:
    return tuple(sorted(items, key=lambda item: -item.value))
