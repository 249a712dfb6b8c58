"""Async HTTP client for the lunch stats API."""

import asyncio
import logging
from typing import Any, Dict, Optional

import httpx

from ..config import api_config
from .cancellation import CancellationToken
from .errors import NetworkUnavailable, RemoteRequestFailed

logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}
IDEMPOTENT_METHODS = {'GET', 'HEAD', 'OPTIONS'}


class ApiClient:
    """Thin JSON transport over ``httpx.AsyncClient``.

    Every request carries a bounded timeout. Failed requests are retried
    with a linear delay (``retry_delay * attempt``) when the request is
    idempotent: GET-style methods always are, mutating calls only when the
    caller says so.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        retry_attempts: Optional[int] = None,
        retry_delay: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or api_config.base_url).rstrip('/')
        self.retry_attempts = max(1, retry_attempts if retry_attempts is not None else api_config.retry_attempts)
        self.retry_delay = retry_delay if retry_delay is not None else api_config.retry_delay
        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(timeout if timeout is not None else api_config.timeout),
            headers={'Content-Type': 'application/json', 'Accept': 'application/json'},
            transport=transport,
        )

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.aclose()

    async def aclose(self) -> None:
        await self.client.aclose()

    async def request(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        json: Any = None,
        idempotent: Optional[bool] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> Any:
        """Send a request and return the decoded JSON body.

        Args:
            method: HTTP method
            endpoint: Path relative to the base URL, e.g. ``/api/ratings``
            params: Optional query parameters
            json: Optional JSON body
            idempotent: Whether the request may be retried. Defaults to True
                for GET-style methods and False otherwise.
            cancel_token: Optional token that aborts the request when fired

        Returns:
            Decoded JSON, the raw text for non-JSON bodies, or None when empty

        Raises:
            RemoteRequestFailed: The API answered with a non-2xx status
            NetworkUnavailable: No response was received
            RequestCancelled: ``cancel_token`` fired before completion
        """
        method = method.upper()
        if idempotent is None:
            idempotent = method in IDEMPOTENT_METHODS
        attempts = self.retry_attempts if idempotent else 1

        last_error: Optional[Exception] = None
        for attempt in range(1, attempts + 1):
            try:
                send = self.client.request(method, endpoint, params=params, json=json)
                if cancel_token is not None:
                    response = await cancel_token.run(send, endpoint)
                else:
                    response = await send
            except httpx.RequestError as e:
                last_error = NetworkUnavailable(endpoint, f"{type(e).__name__}: {e}")
            else:
                if response.is_success:
                    return self._decode(response)
                last_error = RemoteRequestFailed(
                    endpoint,
                    response.status_code,
                    response.reason_phrase,
                    response.text,
                )
                if response.status_code not in RETRYABLE_STATUS_CODES:
                    # Callers decide whether a 4xx is an error, e.g. 404 for an unknown restaurant
                    logger.debug("API request failed method=%s endpoint=%s status=%s",
                                 method, endpoint, response.status_code)
                    raise last_error

            if attempt >= attempts:
                break

            wait_seconds = self.retry_delay * attempt
            logger.warning(
                "API request retry method=%s endpoint=%s attempt=%s/%s wait_seconds=%.2f error=%s",
                method, endpoint, attempt, attempts, wait_seconds, last_error,
            )
            if cancel_token is not None:
                await cancel_token.run(asyncio.sleep(wait_seconds), endpoint)
            else:
                await asyncio.sleep(wait_seconds)

        logger.error("API request gave up method=%s endpoint=%s attempts=%s error=%s",
                     method, endpoint, attempts, last_error)
        raise last_error

    @staticmethod
    def _decode(response: httpx.Response) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return response.text

    async def get(self, endpoint: str, params: Optional[Dict[str, Any]] = None,
                  cancel_token: Optional[CancellationToken] = None) -> Any:
        return await self.request('GET', endpoint, params=params, cancel_token=cancel_token)

    async def post(self, endpoint: str, json: Any = None, idempotent: bool = False,
                   cancel_token: Optional[CancellationToken] = None) -> Any:
        return await self.request('POST', endpoint, json=json, idempotent=idempotent,
                                  cancel_token=cancel_token)

    async def put(self, endpoint: str, json: Any = None) -> Any:
        return await self.request('PUT', endpoint, json=json)

    async def delete(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return await self.request('DELETE', endpoint, params=params)
