"""Endpoint parameter table and query-string encoding."""

from typing import Dict, FrozenSet, List, Mapping, NamedTuple, Tuple

from trends_explorer.types import Endpoint, ParamValue


class EndpointParams(NamedTuple):
    """Parameters an endpoint requires and accepts."""

    required: FrozenSet[str]
    optional: FrozenSet[str]

    @property
    def allowed(self) -> FrozenSet[str]:
        return self.required | self.optional


ENDPOINT_PARAMS: Dict[Endpoint, EndpointParams] = {
    Endpoint.INTEREST_OVER_TIME: EndpointParams(
        frozenset({"keywords"}), frozenset({"timeframe", "geo", "gprop"}),
    ),
    Endpoint.INTEREST_BY_REGION: EndpointParams(
        frozenset({"keywords"}), frozenset({"geo"}),
    ),
    Endpoint.RELATED_QUERIES: EndpointParams(frozenset({"keywords"}), frozenset()),
    Endpoint.TRENDING_SEARCHES: EndpointParams(frozenset({"geo"}), frozenset()),
    Endpoint.REALTIME_TRENDING_SEARCHES: EndpointParams(frozenset(), frozenset()),
    Endpoint.SUGGESTIONS: EndpointParams(frozenset({"keyword"}), frozenset()),
    Endpoint.CATEGORIES: EndpointParams(frozenset(), frozenset()),
}

GPROP_OPTIONS: FrozenSet[str] = frozenset({"", "images", "news", "youtube"})


def build_query_params(params: Mapping[str, ParamValue]) -> List[Tuple[str, str]]:
    """Encode request parameters as ordered query pairs.

    Sequence values become repeated entries (``keywords=a&keywords=b``),
    never a single delimited string.

    Args:
        params: Parameter name to a string or a sequence of strings.

    Returns:
        ``(name, value)`` pairs in insertion order.
    """
    pairs: List[Tuple[str, str]] = []
    for name, value in params.items():
        if isinstance(value, str):
            pairs.append((name, value))
        else:
            pairs.extend((name, item) for item in value)
    return pairs
