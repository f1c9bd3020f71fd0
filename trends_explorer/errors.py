"""Error taxonomy for the trends request/normalize/aggregate pipeline.

Every error the pipeline raises derives from :class:`TrendsError` and can
be turned into an :class:`ErrorInfo`, the displayable form stored in a
request state.  Nothing here is fatal: each error describes one failed
interaction and leaves the caller free to issue the next request.
"""

import enum
from dataclasses import dataclass
from typing import Optional


class ErrorKind(str, enum.Enum):
    """Machine-readable category of a failed interaction."""

    USER_INPUT = "user_input"
    NETWORK = "network"
    API = "api"
    NORMALIZATION = "normalization"
    ALIGNMENT = "alignment"


@dataclass(frozen=True)
class ErrorInfo:
    """Displayable error stored in a failed request state."""

    kind: ErrorKind
    message: str
    status_code: Optional[int] = None


class TrendsError(Exception):
    """Base class for all pipeline errors."""

    kind: ErrorKind = ErrorKind.API

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_info(self) -> ErrorInfo:
        """Return the displayable form of this error."""
        return ErrorInfo(kind=self.kind, message=self.message)


class UserInputError(TrendsError):
    """Request rejected before any network call (bad keywords, params)."""

    kind = ErrorKind.USER_INPUT


class NetworkError(TrendsError):
    """Transport failure or non-success HTTP status."""

    kind = ErrorKind.NETWORK

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code

    def to_info(self) -> ErrorInfo:
        return ErrorInfo(kind=self.kind, message=self.message,
                         status_code=self.status_code)


class APIError(TrendsError):
    """Transport succeeded but the payload carries an ``error`` field."""

    kind = ErrorKind.API


class NormalizationError(TrendsError):
    """Payload is structurally malformed for its endpoint.

    Attributes:
        endpoint: Endpoint path whose payload was rejected.
        field: The missing or malformed field.
    """

    kind = ErrorKind.NORMALIZATION

    def __init__(self, endpoint: str, field: str, detail: str = "") -> None:
        message = f"Malformed '{endpoint}' response: field '{field}'"
        if detail:
            message = f"{message} {detail}"
        super().__init__(message)
        self.endpoint = endpoint
        self.field = field


class AlignmentError(TrendsError):
    """Series given to the aggregator cannot be aligned."""

    kind = ErrorKind.ALIGNMENT
