"""Shared types: raw payload dictionaries, canonical shapes and request state."""

import enum
from dataclasses import dataclass, field
from datetime import date
from typing import (
    Any,
    Dict,
    Generic,
    List,
    Mapping,
    Optional,
    Tuple,
    TypedDict,
    TypeVar,
    Union,
)

from trends_explorer.errors import ErrorInfo

Json = Dict[str, Any]
"""A JSON-like dictionary with string keys and arbitrary values."""

ParamValue = Union[str, Tuple[str, ...]]
"""A query parameter: a single string or an ordered sequence of strings."""

T = TypeVar("T")

RequestToken = int
"""Monotonically increasing id of one issued request within an executor."""


class Endpoint(str, enum.Enum):
    """Endpoints of the trends API; each value is the URL path segment."""

    INTEREST_OVER_TIME = "interest_over_time"
    INTEREST_BY_REGION = "interest_by_region"
    RELATED_QUERIES = "related_queries"
    TRENDING_SEARCHES = "trending_searches"
    REALTIME_TRENDING_SEARCHES = "realtime_trending_searches"
    SUGGESTIONS = "suggestions"
    CATEGORIES = "categories"


# ---------------------------------------------------------------------------
# Raw payloads, as returned by the API.
# ---------------------------------------------------------------------------


class InterestOverTimeResponse(TypedDict, total=False):
    """``{interest_over_time: [{date, <keyword>: number, isPartial}]}``."""

    interest_over_time: List[Json]
    error: str


class RawQueryItem(TypedDict, total=False):
    """One rising/top entry of a related-queries payload."""

    query: str
    value: float


class RawQueryLists(TypedDict, total=False):
    """Per-keyword entry of a related-queries payload."""

    rising: Optional[List[RawQueryItem]]
    top: Optional[List[RawQueryItem]]


class TrendingSearchesResponse(TypedDict, total=False):
    trending_searches: List[str]
    error: str


class RawArticle(TypedDict, total=False):
    title: str
    articleTitle: str
    articleUrl: str
    source: str
    timeAgo: str
    snippet: str


class RawTrendingStory(TypedDict, total=False):
    title: str
    articles: List[RawArticle]
    formattedTraffic: str


class RealtimeTrendingResponse(TypedDict, total=False):
    realtime_trending_searches: List[RawTrendingStory]
    error: str


class RawSuggestion(TypedDict, total=False):
    title: str
    type: str
    mid: str


class SuggestionsResponse(TypedDict, total=False):
    suggestions: List[RawSuggestion]
    error: str


class CategoriesResponse(TypedDict, total=False):
    """``{categories: <nested mapping of id to name or sub-mapping>}``."""

    categories: Json
    error: str


# ---------------------------------------------------------------------------
# Requests and their lifecycle.
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RequestDescriptor:
    """One logical query: an endpoint plus its query parameters.

    Sequence values are stored as tuples so a descriptor cannot change
    after it has been issued.
    """

    endpoint: Endpoint
    params: Mapping[str, ParamValue] = field(default_factory=dict)

    def __post_init__(self) -> None:
        frozen = {
            name: value if isinstance(value, str) else tuple(value)
            for name, value in self.params.items()
        }
        object.__setattr__(self, "params", frozen)

    @property
    def keywords(self) -> Tuple[str, ...]:
        """The requested keywords, in request order (may be empty)."""
        value = self.params.get("keywords", ())
        return (value,) if isinstance(value, str) else tuple(value)


class RequestStatus(str, enum.Enum):
    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class RequestState(Generic[T]):
    """Tagged union over the four lifecycle states of a request.

    ``data`` is set only in ``SUCCESS`` and ``error`` only in ``ERROR``;
    use the constructors below rather than building states by hand.
    """

    status: RequestStatus
    data: Optional[T] = None
    error: Optional[ErrorInfo] = None

    def __post_init__(self) -> None:
        if self.error is not None and self.status is not RequestStatus.ERROR:
            raise ValueError(f"{self.status.value} state cannot carry an error")
        if self.status is RequestStatus.ERROR and self.error is None:
            raise ValueError("error state requires an ErrorInfo")
        if self.data is not None and self.status is not RequestStatus.SUCCESS:
            raise ValueError(f"{self.status.value} state cannot carry data")

    @classmethod
    def idle(cls) -> "RequestState[Any]":
        return cls(RequestStatus.IDLE)

    @classmethod
    def loading(cls) -> "RequestState[Any]":
        return cls(RequestStatus.LOADING)

    @classmethod
    def success(cls, data: T) -> "RequestState[T]":
        return cls(RequestStatus.SUCCESS, data=data)

    @classmethod
    def failure(cls, error: ErrorInfo) -> "RequestState[Any]":
        return cls(RequestStatus.ERROR, error=error)


# ---------------------------------------------------------------------------
# Canonical shapes.
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TimeSeriesPoint:
    """One timeline value.

    ``timestamp`` is a ``date`` for daily or coarser timelines and a naive
    UTC ``datetime`` for intraday ones.
    """

    timestamp: date
    value: float


@dataclass(frozen=True)
class KeywordSeries:
    """Interest over time for one keyword, ascending by unique timestamp."""

    keyword: str
    points: Tuple[TimeSeriesPoint, ...] = ()

    @property
    def values(self) -> Tuple[float, ...]:
        return tuple(p.value for p in self.points)


@dataclass(frozen=True)
class ComparisonTable:
    """Several keyword series aligned on the union of their timestamps.

    Every ``series_by_keyword`` entry has ``len(timestamps)`` values;
    dates a keyword has no point for hold an explicit ``0``.
    """

    timestamps: Tuple[date, ...]
    series_by_keyword: Dict[str, Tuple[float, ...]]

    @property
    def keywords(self) -> List[str]:
        return list(self.series_by_keyword)


@dataclass(frozen=True)
class RegionScore:
    region_code: str
    score: float


@dataclass(frozen=True)
class RegionTable:
    """Region scores for one keyword, unique by region code."""

    keyword: str
    scores: Tuple[RegionScore, ...] = ()

    def as_dict(self) -> Dict[str, float]:
        return {s.region_code: s.score for s in self.scores}


@dataclass(frozen=True)
class RegionMatrixRow:
    """One region's scores across several keywords (heatmap row)."""

    region_code: str
    scores: Dict[str, float]
    max_score: float


@dataclass(frozen=True)
class QueryItem:
    query: str
    value: float


@dataclass(frozen=True)
class QueryRanking:
    keyword: str
    rising: Tuple[QueryItem, ...] = ()
    top: Tuple[QueryItem, ...] = ()


@dataclass(frozen=True)
class CategoryNode:
    id: str
    name: str
    children: Tuple["CategoryNode", ...] = ()


@dataclass(frozen=True)
class Suggestion:
    title: str
    type: str
    mid: Optional[str] = None


@dataclass(frozen=True)
class Article:
    title: str
    url: str
    source: str
    time_ago: str
    snippet: str


@dataclass(frozen=True)
class TrendingStory:
    title: str
    traffic: str
    articles: Tuple[Article, ...] = ()


@dataclass(frozen=True)
class SeriesSummary:
    """Headline statistics of one keyword series."""

    current: float
    previous: float
    delta: float
    peak: float
