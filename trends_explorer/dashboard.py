"""View controllers that wire request, normalization and aggregation.

Each view stands for one dashboard tab.  It validates the user's input,
issues the request through its own :class:`RequestExecutor`, and publishes
view-ready data through the executor's state.  Rendering is left to the
caller, which reads ``view.state`` or subscribes with ``on_change``.
"""

from dataclasses import dataclass
from datetime import date
from typing import Any, Callable, Dict, Generic, Iterable, List, Optional, TypeVar

import httpx

from trends_explorer.aggregate import (
    TOP_REGIONS_LIMIT,
    build_comparison_table,
    build_region_matrix,
    rank_queries,
    rank_regions,
    summarize_all,
)
from trends_explorer.config import TrendsConfig
from trends_explorer.errors import UserInputError
from trends_explorer.executor import RequestExecutor, StateListener
from trends_explorer.normalize import (
    normalize_categories,
    normalize_interest_by_region,
    normalize_interest_over_time,
    normalize_realtime_trending,
    normalize_related_queries,
    normalize_suggestions,
    normalize_trending_searches,
)
from trends_explorer.refresh import PeriodicRefresh
from trends_explorer.timeframe import DEFAULT_TIMEFRAME, parse_timeframe
from trends_explorer import validation
from trends_explorer.types import (
    CategoryNode,
    ComparisonTable,
    KeywordSeries,
    QueryRanking,
    RegionMatrixRow,
    RegionScore,
    RegionTable,
    RequestDescriptor,
    RequestState,
    SeriesSummary,
    Suggestion,
    TrendingStory,
)

T = TypeVar("T")


@dataclass(frozen=True)
class InterestOverTimeResult:
    """Series, aligned table and summaries for one timeline request.

    ``window_start`` is the first day the requested timeframe covers,
    resolved against the day the response arrived.
    """

    series: List[KeywordSeries]
    table: ComparisonTable
    summaries: Dict[str, SeriesSummary]
    window_start: date


@dataclass(frozen=True)
class RegionalResult:
    tables: List[RegionTable]
    rankings: Dict[str, List[RegionScore]]
    matrix: List[RegionMatrixRow]


class TrendsView(Generic[T]):
    """Base class: one executor plus input validation.

    Subclasses implement :meth:`_transform` to turn the raw body into the
    view's data.
    """

    def __init__(
        self,
        config: TrendsConfig,
        client: Optional[httpx.AsyncClient] = None,
        on_change: Optional[StateListener] = None,
    ) -> None:
        self.config = config
        self.executor: RequestExecutor[T] = RequestExecutor(
            config, client=client, transform=self._transform,
            on_change=on_change,
        )
        self.last_request: Optional[RequestDescriptor] = None

    @property
    def state(self) -> RequestState:
        return self.executor.state

    def _transform(self, descriptor: RequestDescriptor, payload: Any) -> T:
        raise NotImplementedError

    def _submit(self, build: Callable[[], RequestDescriptor]):
        """Build a request and execute it, or publish the input error.

        Returns:
            The executor task, or ``None`` when the input was rejected.
        """
        try:
            descriptor = build()
        except UserInputError as exc:
            self.executor.fail(exc)
            return None
        self.last_request = descriptor
        return self.executor.execute(descriptor)

    def reset(self) -> None:
        self.executor.reset()

    async def aclose(self) -> None:
        await self.executor.aclose()


class InterestOverTimeView(TrendsView[InterestOverTimeResult]):
    """Interest over time for one or more keywords.

    Accepts every timeframe form, so it also backs the timeframe
    comparison tab (hour-level windows included).
    """

    min_keywords = 1

    def search(self, keywords: Iterable[str], timeframe: str = DEFAULT_TIMEFRAME,
               geo: str = "", gprop: str = ""):
        return self._submit(lambda: validation.interest_over_time_request(
            keywords, timeframe=timeframe, geo=geo, gprop=gprop,
            min_keywords=self.min_keywords,
            max_keywords=self.config.max_keywords,
        ))

    def _transform(self, descriptor, payload):
        series = normalize_interest_over_time(payload, descriptor.keywords)
        timeframe = parse_timeframe(descriptor.params["timeframe"])
        return InterestOverTimeResult(
            series=series,
            table=build_comparison_table(series),
            summaries=summarize_all(series),
            window_start=timeframe.start_date(),
        )


class ComparisonView(InterestOverTimeView):
    """Side-by-side comparison; needs at least two keywords."""

    min_keywords = 2


class RegionalInterestView(TrendsView[RegionalResult]):
    """Per-keyword region rankings plus the multi-keyword heatmap rows."""

    def __init__(self, config: TrendsConfig,
                 client: Optional[httpx.AsyncClient] = None,
                 on_change: Optional[StateListener] = None,
                 limit: Optional[int] = TOP_REGIONS_LIMIT) -> None:
        super().__init__(config, client, on_change)
        self.limit = limit

    def search(self, keywords: Iterable[str], geo: str = ""):
        return self._submit(lambda: validation.interest_by_region_request(
            keywords, geo=geo, max_keywords=self.config.max_keywords,
        ))

    def _transform(self, descriptor, payload):
        tables = normalize_interest_by_region(payload)
        return RegionalResult(
            tables=tables,
            rankings={t.keyword: rank_regions(t, self.limit) for t in tables},
            matrix=build_region_matrix(tables),
        )


class RelatedQueriesView(TrendsView[List[QueryRanking]]):

    def search(self, keywords: Iterable[str]):
        return self._submit(lambda: validation.related_queries_request(
            keywords, max_keywords=self.config.max_keywords,
        ))

    def _transform(self, descriptor, payload):
        return [rank_queries(r) for r in normalize_related_queries(payload)]


class SuggestionsView(TrendsView[List[Suggestion]]):

    def search(self, keyword: str):
        return self._submit(lambda: validation.suggestions_request(keyword))

    def _transform(self, descriptor, payload):
        return normalize_suggestions(payload)


class CategoriesView(TrendsView[List[CategoryNode]]):

    def load(self):
        return self._submit(validation.categories_request)

    def _transform(self, descriptor, payload):
        return normalize_categories(payload)


class _AutoRefreshView(TrendsView[T]):
    """A view that reloads itself every ``config.refresh_interval`` seconds.

    Call :meth:`start_auto_refresh` when the view becomes visible and
    :meth:`stop_auto_refresh` (or :meth:`aclose`) when it is torn down.
    """

    def __init__(self, config: TrendsConfig,
                 client: Optional[httpx.AsyncClient] = None,
                 on_change: Optional[StateListener] = None) -> None:
        super().__init__(config, client, on_change)
        self._refresh: Optional[PeriodicRefresh] = None

    @property
    def auto_refreshing(self) -> bool:
        return self._refresh is not None and self._refresh.running

    def load(self):
        raise NotImplementedError

    def start_auto_refresh(self) -> None:
        if self.auto_refreshing:
            return
        self._refresh = PeriodicRefresh(self._reload,
                                        self.config.refresh_interval)
        self._refresh.start()

    async def stop_auto_refresh(self) -> None:
        if self._refresh is not None:
            await self._refresh.stop()
            self._refresh = None

    async def aclose(self) -> None:
        await self.stop_auto_refresh()
        await super().aclose()

    def _reload(self) -> None:
        # Not awaited; overlapping loads resolve by request token.
        self.load()


class TrendingSearchesView(_AutoRefreshView[List[str]]):

    def __init__(self, config: TrendsConfig,
                 client: Optional[httpx.AsyncClient] = None,
                 on_change: Optional[StateListener] = None,
                 geo: str = "united_states") -> None:
        super().__init__(config, client, on_change)
        self.geo = geo

    def select_region(self, geo: str):
        """Switch region and reload immediately."""
        self.geo = geo
        return self.load()

    def load(self):
        return self._submit(lambda: validation.trending_searches_request(self.geo))

    def _transform(self, descriptor, payload):
        return normalize_trending_searches(payload)


class RealtimeTrendingView(_AutoRefreshView[List[TrendingStory]]):

    def load(self):
        return self._submit(validation.realtime_trending_request)

    def _transform(self, descriptor, payload):
        return normalize_realtime_trending(payload)
