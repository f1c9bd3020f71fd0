from datetime import date

import pytest

from trends_explorer.endpoints import build_query_params
from trends_explorer.errors import ErrorKind, UserInputError
from trends_explorer.timeframe import ALL_TIME_START, parse_timeframe
from trends_explorer.types import Endpoint
from trends_explorer.validation import (
    categories_request,
    clean_keywords,
    interest_by_region_request,
    interest_over_time_request,
    realtime_trending_request,
    related_queries_request,
    suggestions_request,
    trending_searches_request,
    validate_geo,
    validate_gprop,
)


class TestCleanKeywords:
    def test_strips_and_drops_blanks(self):
        assert clean_keywords([" AI ", "", "  ", "ML"]) == ["AI", "ML"]

    def test_no_keywords(self):
        with pytest.raises(UserInputError, match="at least one keyword"):
            clean_keywords(["", " "])

    def test_comparison_needs_two(self):
        with pytest.raises(UserInputError, match="at least 2 keywords"):
            clean_keywords(["AI", ""], min_keywords=2)

    def test_too_many(self):
        with pytest.raises(UserInputError):
            clean_keywords(["a", "b", "c", "d", "e", "f"])

    def test_duplicates_case_insensitive(self):
        with pytest.raises(UserInputError, match="Duplicate"):
            clean_keywords(["AI", "ai"])

    def test_error_kind(self):
        with pytest.raises(UserInputError) as excinfo:
            clean_keywords([])
        assert excinfo.value.to_info().kind is ErrorKind.USER_INPUT


class TestParams:
    @pytest.mark.parametrize("geo, expected", [
        ("", ""), (None, ""), ("us", "US"), ("US-CA", "US-CA"), (" gb ", "GB"),
    ])
    def test_valid_geo(self, geo, expected):
        assert validate_geo(geo) == expected

    @pytest.mark.parametrize("geo", ["USA", "1", "united_states"])
    def test_invalid_geo(self, geo):
        with pytest.raises(UserInputError):
            validate_geo(geo)

    @pytest.mark.parametrize("gprop", ["", "images", "news", "youtube", "NEWS"])
    def test_valid_gprop(self, gprop):
        assert validate_gprop(gprop) == gprop.lower()

    def test_invalid_gprop(self):
        with pytest.raises(UserInputError):
            validate_gprop("froogle")


class TestRequestBuilders:
    def test_interest_over_time(self):
        descriptor = interest_over_time_request(
            ["AI", " ML"], timeframe="now 7-d", geo="us", gprop="news",
        )
        assert descriptor.endpoint is Endpoint.INTEREST_OVER_TIME
        assert dict(descriptor.params) == {
            "keywords": ("AI", "ML"),
            "timeframe": "now 7-d",
            "geo": "US",
            "gprop": "news",
        }

    def test_worldwide_web_search_omits_geo_and_gprop(self):
        descriptor = interest_over_time_request(["AI"])
        assert set(descriptor.params) == {"keywords", "timeframe"}
        assert descriptor.params["timeframe"] == "today 12-m"

    def test_bad_timeframe_rejected(self):
        with pytest.raises(UserInputError, match="timeframe"):
            interest_over_time_request(["AI"], timeframe="last week")

    def test_comparison_minimum(self):
        with pytest.raises(UserInputError):
            interest_over_time_request(["AI"], min_keywords=2)

    def test_region_and_related(self):
        assert interest_by_region_request(["AI"], geo="").params == {
            "keywords": ("AI",),
        }
        assert related_queries_request(["AI", "ML"]).keywords == ("AI", "ML")

    def test_trending_slug(self):
        assert trending_searches_request("United_States").params == {
            "geo": "united_states",
        }
        with pytest.raises(UserInputError):
            trending_searches_request("")

    def test_suggestions_needs_keyword(self):
        assert suggestions_request(" py ").params == {"keyword": "py"}
        with pytest.raises(UserInputError, match="keyword"):
            suggestions_request("   ")

    def test_parameterless_requests(self):
        assert categories_request().params == {}
        assert realtime_trending_request().endpoint is \
            Endpoint.REALTIME_TRENDING_SEARCHES

    def test_query_params_repeat_keywords(self):
        descriptor = interest_over_time_request(["AI", "ML"], timeframe="all")
        assert build_query_params(descriptor.params) == [
            ("keywords", "AI"), ("keywords", "ML"), ("timeframe", "all"),
        ]


class TestTimeframe:
    @pytest.mark.parametrize("raw, expected", [
        ("today 3-m", date(2024, 3, 15)),
        ("today 5-y", date(2019, 6, 15)),
        ("now 7-d", date(2024, 6, 8)),
        ("now 1-d", date(2024, 6, 14)),
        ("now 4-H", date(2024, 6, 14)),
        ("all", ALL_TIME_START),
    ])
    def test_start_date(self, raw, expected):
        assert parse_timeframe(raw).start_date(date(2024, 6, 15)) == expected

    def test_all_time(self):
        timeframe = parse_timeframe(" all ")
        assert timeframe.is_all_time
        assert str(timeframe) == "all"

    @pytest.mark.parametrize("raw", [
        "", "now", "today 0-m", "now 3-m", "today 7-d", "today 12-M",
        "yesterday 1-d", "2024-01-01 2024-06-01",
    ])
    def test_invalid(self, raw):
        with pytest.raises(UserInputError):
            parse_timeframe(raw)
