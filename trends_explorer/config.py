"""Runtime configuration for the trends API client.

The base URL is an explicit value handed to each
:class:`~trends_explorer.executor.RequestExecutor`, never module state.
"""

import logging
import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL: str = "https://pytrends-app.onrender.com/api"
DEFAULT_TIMEOUT: float = 30.0
DEFAULT_REFRESH_INTERVAL: float = 300.0
DEFAULT_MAX_KEYWORDS: int = 5


@dataclass(frozen=True)
class TrendsConfig:
    """Connection and behaviour settings.

    Attributes:
        base_url: Root URL of the trends API; endpoint paths are appended.
        timeout: Total per-request timeout in seconds.
        refresh_interval: Seconds between automatic refreshes of the
            trending views.
        max_keywords: Upper bound on keywords per request (the provider
            compares at most five).
    """

    base_url: str = DEFAULT_BASE_URL
    timeout: float = DEFAULT_TIMEOUT
    refresh_interval: float = DEFAULT_REFRESH_INTERVAL
    max_keywords: int = DEFAULT_MAX_KEYWORDS

    def __post_init__(self) -> None:
        if not self.base_url:
            raise ValueError("base_url must not be empty")
        if self.timeout <= 0:
            raise ValueError(f"timeout must be positive, got {self.timeout}")
        if self.refresh_interval <= 0:
            raise ValueError(
                f"refresh_interval must be positive, got {self.refresh_interval}"
            )
        if self.max_keywords < 1:
            raise ValueError(
                f"max_keywords must be at least 1, got {self.max_keywords}"
            )

    def endpoint_url(self, path: str) -> str:
        """Join *path* onto the base URL."""
        return f"{self.base_url.rstrip('/')}/{path.lstrip('/')}"

    @classmethod
    def from_env(cls, env_file: Optional[str] = None) -> "TrendsConfig":
        """Build a config from ``TRENDS_*`` environment variables.

        A ``.env`` file is loaded first (without overriding variables that
        are already set).  Unset variables fall back to the defaults.

        Args:
            env_file: Optional explicit path to a ``.env`` file.

        Returns:
            The resolved configuration.

        Raises:
            ValueError: If a numeric variable cannot be parsed or is out
                of range.
        """
        load_dotenv(env_file)

        config = cls(
            base_url=os.environ.get("TRENDS_API_BASE_URL", DEFAULT_BASE_URL),
            timeout=_env_number("TRENDS_API_TIMEOUT", DEFAULT_TIMEOUT, float),
            refresh_interval=_env_number(
                "TRENDS_REFRESH_INTERVAL", DEFAULT_REFRESH_INTERVAL, float,
            ),
            max_keywords=_env_number(
                "TRENDS_MAX_KEYWORDS", DEFAULT_MAX_KEYWORDS, int,
            ),
        )
        logger.debug("Loaded trends config: %s", config)
        return config


def _env_number(name, default, cast):
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return cast(raw.strip())
    except ValueError:
        raise ValueError(f"Environment variable {name}={raw!r} is not a "
                         f"valid {cast.__name__}") from None
