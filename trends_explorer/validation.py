"""Validate user input and build request descriptors.

Every builder raises :class:`~trends_explorer.errors.UserInputError`
before any network call when the input cannot form a valid request.
"""

import logging
import re
from typing import Iterable, List, Mapping, Optional

from trends_explorer.config import DEFAULT_MAX_KEYWORDS
from trends_explorer.endpoints import ENDPOINT_PARAMS, GPROP_OPTIONS
from trends_explorer.errors import UserInputError
from trends_explorer.timeframe import DEFAULT_TIMEFRAME, parse_timeframe
from trends_explorer.types import Endpoint, ParamValue, RequestDescriptor

logger = logging.getLogger(__name__)

# ISO 3166-1 alpha-2, optionally with a subdivision suffix ("US-CA").
_GEO_PATTERN = re.compile(r"^[A-Z]{2}(-[A-Z0-9]{1,3})?$")

# pytrends' trending_searches takes a country slug ("united_states").
_COUNTRY_SLUG_PATTERN = re.compile(r"^[a-z]+(_[a-z]+)*$")


def clean_keywords(
    keywords: Iterable[str],
    min_keywords: int = 1,
    max_keywords: int = DEFAULT_MAX_KEYWORDS,
) -> List[str]:
    """Strip keywords, drop blanks and check the count.

    Args:
        keywords: Raw keyword inputs (blank entries are ignored).
        min_keywords: Fewest keywords the request needs.
        max_keywords: Most keywords the provider accepts.

    Returns:
        The stripped keywords in input order.

    Raises:
        UserInputError: On too few or too many keywords, or duplicates.
    """
    cleaned = [k.strip() for k in keywords if k and k.strip()]

    if len(cleaned) < min_keywords:
        if min_keywords == 1:
            raise UserInputError("Please enter at least one keyword")
        raise UserInputError(
            f"Please enter at least {min_keywords} keywords to compare"
        )
    if len(cleaned) > max_keywords:
        raise UserInputError(
            f"At most {max_keywords} keywords can be compared, got {len(cleaned)}"
        )

    lowered = [k.lower() for k in cleaned]
    duplicates = sorted({k for k in lowered if lowered.count(k) > 1})
    if duplicates:
        raise UserInputError(f"Duplicate keywords: {duplicates}")

    return cleaned


def validate_geo(geo: Optional[str]) -> str:
    """Return the upper-cased country code, or ``""`` for worldwide."""
    value = (geo or "").strip().upper()
    if value and not _GEO_PATTERN.match(value):
        raise UserInputError(f"Invalid geo {geo!r}: expected an ISO country "
                             f"code such as 'US' or empty for worldwide")
    return value


def validate_gprop(gprop: Optional[str]) -> str:
    value = (gprop or "").strip().lower()
    if value not in GPROP_OPTIONS:
        raise UserInputError(
            f"Invalid search property {gprop!r}: expected one of "
            f"{sorted(GPROP_OPTIONS)}"
        )
    return value


def interest_over_time_request(
    keywords: Iterable[str],
    timeframe: str = DEFAULT_TIMEFRAME,
    geo: str = "",
    gprop: str = "",
    min_keywords: int = 1,
    max_keywords: int = DEFAULT_MAX_KEYWORDS,
) -> RequestDescriptor:
    """Build an ``interest_over_time`` request.

    Pass ``min_keywords=2`` for keyword comparisons.
    """
    params = {
        "keywords": tuple(clean_keywords(keywords, min_keywords, max_keywords)),
        "timeframe": str(parse_timeframe(timeframe)),
    }
    geo = validate_geo(geo)
    gprop = validate_gprop(gprop)
    if geo:
        params["geo"] = geo
    if gprop:
        params["gprop"] = gprop
    return _descriptor(Endpoint.INTEREST_OVER_TIME, params)


def interest_by_region_request(
    keywords: Iterable[str],
    geo: str = "",
    max_keywords: int = DEFAULT_MAX_KEYWORDS,
) -> RequestDescriptor:
    params = {"keywords": tuple(clean_keywords(keywords, 1, max_keywords))}
    geo = validate_geo(geo)
    if geo:
        params["geo"] = geo
    return _descriptor(Endpoint.INTEREST_BY_REGION, params)


def related_queries_request(
    keywords: Iterable[str],
    max_keywords: int = DEFAULT_MAX_KEYWORDS,
) -> RequestDescriptor:
    return _descriptor(
        Endpoint.RELATED_QUERIES,
        {"keywords": tuple(clean_keywords(keywords, 1, max_keywords))},
    )


def trending_searches_request(geo: str = "united_states") -> RequestDescriptor:
    """Build a ``trending_searches`` request for a pytrends country slug."""
    value = (geo or "").strip().lower()
    if not _COUNTRY_SLUG_PATTERN.match(value):
        raise UserInputError(f"Invalid trending region {geo!r}: expected a "
                             f"country name such as 'united_states'")
    return _descriptor(Endpoint.TRENDING_SEARCHES, {"geo": value})


def realtime_trending_request() -> RequestDescriptor:
    return _descriptor(Endpoint.REALTIME_TRENDING_SEARCHES, {})


def suggestions_request(keyword: str) -> RequestDescriptor:
    value = (keyword or "").strip()
    if not value:
        raise UserInputError("Please enter a keyword")
    return _descriptor(Endpoint.SUGGESTIONS, {"keyword": value})


def categories_request() -> RequestDescriptor:
    return _descriptor(Endpoint.CATEGORIES, {})


def _descriptor(endpoint: Endpoint,
                params: Mapping[str, ParamValue]) -> RequestDescriptor:
    """Check *params* against the endpoint table and freeze them."""
    expected = ENDPOINT_PARAMS[endpoint]
    missing = expected.required - set(params)
    unknown = set(params) - expected.allowed
    if missing or unknown:
        raise ValueError(f"Bad parameters for {endpoint.value}: "
                         f"missing={sorted(missing)} unknown={sorted(unknown)}")
    descriptor = RequestDescriptor(endpoint, params)
    logger.debug("Built request: %s", descriptor)
    return descriptor
