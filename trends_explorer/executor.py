"""Asynchronous request lifecycle for trends API calls.

:class:`RequestExecutor` owns the observable state of one logical query
(idle -> loading -> success | error).  Every :meth:`RequestExecutor.execute`
call is tagged with a fresh token; a completion whose token is no longer
the current one was superseded by a newer request and is dropped on
arrival, so the latest request always wins regardless of the order in
which responses come back.

In-flight transport calls are not aborted when superseded: the old
request runs to completion and its result is discarded.
"""

import asyncio
import logging
from typing import Any, Callable, Generic, Optional, Set, TypeVar

import httpx

from trends_explorer.config import TrendsConfig
from trends_explorer.endpoints import build_query_params
from trends_explorer.errors import (
    APIError,
    ErrorInfo,
    NetworkError,
    NormalizationError,
    TrendsError,
)
from trends_explorer.types import (
    Json,
    RequestDescriptor,
    RequestState,
    RequestStatus,
    RequestToken,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

Transform = Callable[[RequestDescriptor, Any], T]
StateListener = Callable[[RequestState], None]


def _check_response_for_errors(payload: Any) -> None:
    """Raise :class:`APIError` when a decoded body carries an ``error`` field.

    The API reports some failures (quota, unknown keyword, provider
    outage) with HTTP 200 and an ``"error"`` key, so the status code alone
    does not tell whether the call worked.
    """
    if isinstance(payload, dict) and payload.get("error"):
        raise APIError(str(payload["error"]))


async def fetch_json(
    client: httpx.AsyncClient,
    config: TrendsConfig,
    descriptor: RequestDescriptor,
) -> Json:
    """Perform the GET call for *descriptor* and return the decoded body.

    Args:
        client: HTTP client used for the call.
        config: Supplies the base URL.
        descriptor: Endpoint and parameters; sequence parameters are sent
            as repeated query entries.

    Returns:
        The decoded JSON body.

    Raises:
        NetworkError: On transport failure, a non-2xx status or a body
            that is not JSON.
        APIError: When the body carries an ``error`` field.
    """
    endpoint = descriptor.endpoint.value
    url = config.endpoint_url(endpoint)

    try:
        response = await client.get(
            url, params=build_query_params(descriptor.params),
        )
    except httpx.TimeoutException as exc:
        raise NetworkError(f"Request to '{endpoint}' timed out") from exc
    except (httpx.HTTPError, httpx.InvalidURL) as exc:
        raise NetworkError(f"Request to '{endpoint}' failed: {exc}") from exc

    if not response.is_success:
        message = f"API request failed: {response.status_code} {response.reason_phrase}"
        detail = _error_detail(response)
        if detail:
            message = f"{message} ({detail})"
        raise NetworkError(message, status_code=response.status_code)

    try:
        payload = response.json()
    except ValueError as exc:
        raise NetworkError(
            f"Response from '{endpoint}' is not valid JSON",
            status_code=response.status_code,
        ) from exc

    _check_response_for_errors(payload)
    return payload


def _error_detail(response: httpx.Response) -> str:
    """Return the ``error`` field of a failed response body, if any."""
    try:
        body = response.json()
    except ValueError:
        return ""
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return ""


class RequestExecutor(Generic[T]):
    """Run trends requests and expose the outcome of the latest one.

    Args:
        config: Base URL and timeout settings.
        client: Optional shared ``httpx.AsyncClient``.  When omitted the
            executor creates its own on first use and closes it in
            :meth:`aclose`.
        transform: Optional pure function ``(descriptor, body) -> data``
            applied to a successful body before it is published
            (normalization, aggregation).  Any
            :class:`~trends_explorer.errors.TrendsError` it raises
            becomes the error state.  Any other exception also ends the
            request in the error state and is then re-raised from the
            request task.
        on_change: Optional callback invoked with every new state.

    Example::

        executor = RequestExecutor(config, transform=normalize_response)
        state = await executor.run(
            RequestDescriptor(Endpoint.SUGGESTIONS, {"keyword": "python"}),
        )
    """

    def __init__(
        self,
        config: TrendsConfig,
        client: Optional[httpx.AsyncClient] = None,
        transform: Optional[Transform] = None,
        on_change: Optional[StateListener] = None,
    ) -> None:
        self._config = config
        self._client = client
        self._owns_client = client is None
        self._transform = transform
        self._on_change = on_change
        self._state: RequestState = RequestState.idle()
        self._last_token: RequestToken = 0
        self._current_token: Optional[RequestToken] = None
        self._pending: Set["asyncio.Task[None]"] = set()

    # -- observable state ---------------------------------------------------

    @property
    def state(self) -> RequestState:
        return self._state

    @property
    def status(self) -> RequestStatus:
        return self._state.status

    @property
    def data(self) -> Optional[T]:
        return self._state.data

    @property
    def error(self) -> Optional[ErrorInfo]:
        return self._state.error

    @property
    def is_loading(self) -> bool:
        return self._state.status is RequestStatus.LOADING

    @property
    def current_token(self) -> Optional[RequestToken]:
        """Token of the request whose completion will be observed."""
        return self._current_token

    # -- lifecycle ----------------------------------------------------------

    def execute(self, descriptor: RequestDescriptor) -> "asyncio.Task[None]":
        """Issue *descriptor* and return the task completing it.

        The state switches to ``loading`` before this method returns.  The
        network call runs as a task on the running event loop; awaiting
        the returned task is optional.

        Raises:
            RuntimeError: If called outside a running event loop, or if
                the client passed to the constructor has been closed.
        """
        loop = asyncio.get_running_loop()
        client = self._get_client()
        token = self._begin()
        logger.info("Request #%d: %s %s", token, descriptor.endpoint.value,
                    dict(descriptor.params))
        task = loop.create_task(self._complete(token, client, descriptor))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def run(self, descriptor: RequestDescriptor) -> RequestState:
        """Execute *descriptor*, wait for it, and return the current state.

        If a newer request was issued meanwhile, the returned state is
        whatever that newer request has produced so far.
        """
        await self.execute(descriptor)
        return self._state

    def fail(self, error: TrendsError) -> None:
        """Publish *error* for a request rejected before it was sent.

        Supersedes any pending request.  The state passes through
        ``loading`` so that success and error never follow each other
        directly.
        """
        token = self._begin()
        logger.warning("Request #%d rejected: %s", token, error.message)
        self._set_state(RequestState.failure(error.to_info()))

    def reset(self) -> None:
        """Return to ``idle`` and invalidate any pending request."""
        self._current_token = None
        self._set_state(RequestState.idle())

    async def aclose(self) -> None:
        """Abandon pending requests and close the client if owned.

        A request still loading when the executor closes leaves the state
        ``idle``.
        """
        pending = list(self._pending)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        if self.is_loading:
            self.reset()
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "RequestExecutor[T]":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    # -- internals ----------------------------------------------------------

    def _begin(self) -> RequestToken:
        self._last_token += 1
        self._current_token = self._last_token
        self._set_state(RequestState.loading())
        return self._last_token

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is not None and self._client.is_closed:
            if not self._owns_client:
                raise RuntimeError("The HTTP client passed to RequestExecutor "
                                   "is closed")
            self._client = None
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self._config.timeout),
                follow_redirects=True,
            )
        return self._client

    def _is_stale(self, token: RequestToken, stage: str) -> bool:
        if token == self._current_token:
            return False
        logger.debug("Request #%d superseded (current: %s); discarding %s.",
                     token, self._current_token, stage)
        return True

    async def _complete(self, token: RequestToken, client: httpx.AsyncClient,
                        descriptor: RequestDescriptor) -> None:
        endpoint = descriptor.endpoint.value
        try:
            payload = await fetch_json(client, self._config, descriptor)
        except TrendsError as exc:
            if not self._is_stale(token, "error"):
                self._publish_error(token, exc)
            return
        except Exception as exc:
            if not self._is_stale(token, "error"):
                self._publish_unexpected(token, NetworkError(
                    f"Request to '{endpoint}' failed unexpectedly: {exc}"))
            raise

        if self._is_stale(token, "response"):
            return

        try:
            result = (self._transform(descriptor, payload) if self._transform
                      else payload)
        except TrendsError as exc:
            self._publish_error(token, exc)
            return
        except Exception as exc:
            self._publish_unexpected(token, NormalizationError(
                endpoint, "<root>", f"could not be processed: {exc}"))
            raise

        self._set_state(RequestState.success(result))
        logger.info("Request #%d succeeded.", token)

    def _publish_unexpected(self, token: RequestToken,
                            error: TrendsError) -> None:
        logger.exception("Request #%d raised an unexpected error.", token)
        self._set_state(RequestState.failure(error.to_info()))

    def _publish_error(self, token: RequestToken, exc: TrendsError) -> None:
        logger.warning("Request #%d failed (%s): %s", token, exc.kind.value,
                       exc.message)
        self._set_state(RequestState.failure(exc.to_info()))

    def _set_state(self, state: RequestState) -> None:
        self._state = state
        if self._on_change is not None:
            self._on_change(state)
