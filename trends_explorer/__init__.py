"""trends_explorer: Google Trends request, normalization and aggregation core.

The names most callers need are re-exported here::

    from trends_explorer import InterestOverTimeView, TrendsConfig

    view = InterestOverTimeView(TrendsConfig.from_env())
    await view.search(["python", "rust"], timeframe="today 3-m")
    view.state.data.summaries["python"]

Logging
-------
Modules log via ``logging.getLogger(__name__)`` under the ``trends_explorer``
logger: request lifecycle at INFO (``trends_explorer.executor``), discarded
stale responses at DEBUG, rejected input and failed requests at WARNING.
A :class:`~logging.NullHandler` is attached to the package logger so that
nothing is printed unless the host application (a UI server, a test
runner, a notebook) configures handlers.

For quick console output, call :func:`setup_logging`::

    import trends_explorer
    trends_explorer.setup_logging()          # INFO to stderr
    trends_explorer.setup_logging("DEBUG")   # also shows discarded responses
"""

import logging

from trends_explorer.config import TrendsConfig
from trends_explorer.dashboard import (
    CategoriesView,
    ComparisonView,
    InterestOverTimeView,
    RealtimeTrendingView,
    RegionalInterestView,
    RelatedQueriesView,
    SuggestionsView,
    TrendingSearchesView,
)
from trends_explorer.errors import ErrorInfo, ErrorKind, TrendsError
from trends_explorer.executor import RequestExecutor
from trends_explorer.types import Endpoint, RequestDescriptor, RequestStatus

__version__ = "0.1.0"

__all__ = [
    "CategoriesView",
    "ComparisonView",
    "Endpoint",
    "ErrorInfo",
    "ErrorKind",
    "InterestOverTimeView",
    "RealtimeTrendingView",
    "RegionalInterestView",
    "RelatedQueriesView",
    "RequestDescriptor",
    "RequestExecutor",
    "RequestStatus",
    "SuggestionsView",
    "TrendingSearchesView",
    "TrendsConfig",
    "TrendsError",
    "setup_logging",
]

logger: logging.Logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())


def setup_logging(level: str = "INFO") -> None:
    """Attach a console handler to the ``trends_explorer`` logger.

    Calling it again only changes the level; handlers are not stacked.

    Args:
        level: Logging level name such as ``"DEBUG"`` or ``"WARNING"``.
            Unknown names fall back to ``INFO``.
    """
    pkg_logger = logging.getLogger(__name__)
    pkg_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    if any(
        isinstance(h, logging.StreamHandler)
        and not isinstance(h, logging.NullHandler)
        for h in pkg_logger.handlers
    ):
        return
    handler = logging.StreamHandler()
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    pkg_logger.addHandler(handler)
