from datetime import date, datetime

import pytest

from trends_explorer.aggregate import (
    build_comparison_table,
    build_region_matrix,
    flatten_categories,
    rank_queries,
    rank_regions,
    summarize,
    summarize_all,
)
from trends_explorer.errors import AlignmentError
from trends_explorer.types import (
    CategoryNode,
    KeywordSeries,
    QueryItem,
    QueryRanking,
    RegionScore,
    RegionTable,
    SeriesSummary,
    TimeSeriesPoint,
)


def _make_series(keyword, *points):
    """Build a series from ``(day_of_january_2024, value)`` pairs."""
    return KeywordSeries(keyword, tuple(
        TimeSeriesPoint(date(2024, 1, day), value) for day, value in points
    ))


def _make_regions(keyword="AI", **scores):
    return RegionTable(keyword, tuple(
        RegionScore(code, score) for code, score in scores.items()
    ))


class TestBuildComparisonTable:
    def test_aligns_on_union_of_dates(self):
        table = build_comparison_table([
            _make_series("AI", (1, 10), (3, 30)),
            _make_series("ML", (2, 5), (3, 6)),
        ])

        assert table.timestamps == (date(2024, 1, 1), date(2024, 1, 2),
                                    date(2024, 1, 3))
        assert table.series_by_keyword == {
            "AI": (10, 0, 30),
            "ML": (0, 5, 6),
        }
        assert table.keywords == ["AI", "ML"]

    def test_every_row_matches_timestamp_length(self):
        series = [
            _make_series("a", (1, 1)),
            _make_series("b", (5, 2), (9, 3)),
            _make_series("c", (2, 4), (5, 5), (7, 6)),
        ]
        table = build_comparison_table(series)
        assert len(table.timestamps) == 5
        for row in table.series_by_keyword.values():
            assert len(row) == len(table.timestamps)

    def test_own_points_are_a_subsequence(self):
        series = [
            _make_series("a", (1, 1), (4, 7)),
            _make_series("b", (2, 2), (3, 3), (4, 4)),
        ]
        table = build_comparison_table(series)
        for s in series:
            row = dict(zip(table.timestamps, table.series_by_keyword[s.keyword]))
            for point in s.points:
                assert row[point.timestamp] == point.value

    def test_single_series(self):
        table = build_comparison_table([_make_series("AI", (1, 10))])
        assert table.series_by_keyword == {"AI": (10,)}

    def test_no_series_raises(self):
        with pytest.raises(AlignmentError):
            build_comparison_table([])

    def test_empty_series_raises(self):
        with pytest.raises(AlignmentError, match="ML"):
            build_comparison_table([_make_series("AI", (1, 1)),
                                    _make_series("ML")])

    def test_duplicate_keyword_raises(self):
        with pytest.raises(AlignmentError):
            build_comparison_table([_make_series("AI", (1, 1)),
                                    _make_series("AI", (2, 2))])

    def test_aligns_intraday_series(self):
        minutes = [datetime(2024, 1, 1, 10, m) for m in range(3)]
        table = build_comparison_table([
            KeywordSeries("AI", tuple(TimeSeriesPoint(ts, 10 * i)
                                      for i, ts in enumerate(minutes))),
            KeywordSeries("ML", (TimeSeriesPoint(minutes[1], 5),)),
        ])
        assert table.timestamps == tuple(minutes)
        assert table.series_by_keyword["ML"] == (0, 5, 0)

    def test_mixing_daily_and_intraday_raises(self):
        intraday = KeywordSeries("ML", (
            TimeSeriesPoint(datetime(2024, 1, 1, 10, 0), 5),
        ))
        with pytest.raises(AlignmentError, match="intraday"):
            build_comparison_table([_make_series("AI", (1, 1)), intraday])


class TestSummarize:
    def test_current_previous_delta_peak(self):
        summary = summarize(_make_series("AI", (1, 10), (2, 20)))
        assert summary == SeriesSummary(current=20, previous=10, delta=10, peak=20)

    def test_peak_is_not_last(self):
        summary = summarize(_make_series("AI", (1, 80), (2, 100), (3, 40)))
        assert summary == SeriesSummary(current=40, previous=100, delta=-60,
                                        peak=100)

    def test_empty_series(self):
        assert summarize(_make_series("AI")) == SeriesSummary(0, 0, 0, 0)

    def test_single_point(self):
        assert summarize(_make_series("AI", (1, 7))) == SeriesSummary(7, 0, 7, 7)

    def test_summarize_all_keys_by_keyword(self):
        summaries = summarize_all([_make_series("AI", (1, 1)),
                                   _make_series("ML", (1, 2))])
        assert list(summaries) == ["AI", "ML"]
        assert summaries["ML"].current == 2


class TestRankRegions:
    def test_filters_zero_and_sorts_descending(self):
        ranked = rank_regions(_make_regions(US=80, FR=0, IN=55))
        assert ranked == [RegionScore("US", 80), RegionScore("IN", 55)]

    def test_ties_broken_by_ascending_code(self):
        ranked = rank_regions(_make_regions(US=50, BR=50, DE=50, JP=70))
        assert [r.region_code for r in ranked] == ["JP", "BR", "DE", "US"]

    def test_negative_scores_dropped(self):
        assert rank_regions(_make_regions(US=-1, FR=0)) == []

    def test_limit_truncates(self):
        table = _make_regions(**{f"R{i:02d}": i for i in range(1, 31)})
        ranked = rank_regions(table, limit=20)
        assert len(ranked) == 20
        assert ranked[0] == RegionScore("R30", 30)
        assert ranked[-1] == RegionScore("R11", 11)

    def test_limit_larger_than_table(self):
        assert len(rank_regions(_make_regions(US=1), limit=20)) == 1

    def test_negative_limit_raises(self):
        with pytest.raises(ValueError):
            rank_regions(_make_regions(US=1), limit=-1)

    def test_output_is_sorted_and_positive(self):
        ranked = rank_regions(_make_regions(A=3, B=9, C=0, D=9, E=1, F=4))
        scores = [r.score for r in ranked]
        assert scores == sorted(scores, reverse=True)
        assert all(score > 0 for score in scores)


class TestRankQueries:
    def test_sorted_descending_and_stable(self):
        ranking = QueryRanking(
            "AI",
            rising=(QueryItem("a", 50), QueryItem("b", 900), QueryItem("c", 50)),
            top=(QueryItem("x", 10), QueryItem("y", 100)),
        )
        ranked = rank_queries(ranking)

        assert [i.query for i in ranked.rising] == ["b", "a", "c"]
        assert [i.query for i in ranked.top] == ["y", "x"]
        assert ranked.keyword == "AI"

    def test_input_untouched(self):
        ranking = QueryRanking("AI", rising=(QueryItem("a", 1), QueryItem("b", 2)))
        rank_queries(ranking)
        assert [i.query for i in ranking.rising] == ["a", "b"]


class TestRegionMatrix:
    def test_union_of_regions_with_max(self):
        rows = build_region_matrix([
            _make_regions("AI", US=80, FR=0, IN=55),
            _make_regions("ML", US=20, DE=90),
        ])

        assert [r.region_code for r in rows] == ["DE", "US", "IN"]
        assert rows[0].scores == {"AI": 0, "ML": 90}
        assert rows[1].max_score == 80

    def test_all_zero_regions_dropped(self):
        rows = build_region_matrix([_make_regions("AI", FR=0),
                                    _make_regions("ML", FR=0)])
        assert rows == []

    def test_no_tables(self):
        assert build_region_matrix([]) == []


class TestFlattenCategories:
    def test_depth_first_with_depths(self):
        tree = [
            CategoryNode("a", "A", (CategoryNode("a1", "A1"),
                                    CategoryNode("a2", "A2"))),
            CategoryNode("b", "B"),
        ]
        flat = [(depth, node.id) for depth, node in flatten_categories(tree)]
        assert flat == [(0, "a"), (1, "a1"), (1, "a2"), (0, "b")]
