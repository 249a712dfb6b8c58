"""Error types raised by the API transport and the tracking pipeline."""

from typing import Dict, List, Optional


class LunchStatsError(Exception):
    """Base class for lunchstats failures."""


class NetworkUnavailable(LunchStatsError):
    """No response reached the client (connection error, timeout)."""

    def __init__(self, endpoint: str, reason: Optional[str] = None):
        self.endpoint = endpoint
        self.reason = reason
        message = f"Network unavailable for {endpoint}"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class RemoteRequestFailed(LunchStatsError):
    """The remote API answered with a non-2xx status."""

    def __init__(self, endpoint: str, status: int, status_text: str = '', body: str = ''):
        self.endpoint = endpoint
        self.status = status
        self.status_text = status_text
        self.body = body
        message = f"HTTP {status} {status_text} for {endpoint}".replace('  ', ' ')
        if body:
            message += f" - {body[:200]}"
        super().__init__(message)


class RequestCancelled(LunchStatsError):
    """An in-flight request was cancelled through its cancellation token."""

    def __init__(self, endpoint: str):
        self.endpoint = endpoint
        super().__init__(f"Request to {endpoint} was cancelled")


class PartialReconciliationFailure(LunchStatsError):
    """One or more restaurants in a reconciliation batch failed to submit."""

    def __init__(self, per_restaurant_errors: Dict[str, str], succeeded: Optional[List[str]] = None):
        self.per_restaurant_errors = per_restaurant_errors
        self.succeeded = succeeded or []
        failed = ', '.join(sorted(per_restaurant_errors))
        super().__init__(
            f"{len(per_restaurant_errors)} restaurant(s) failed to sync ({failed}); "
            f"{len(self.succeeded)} succeeded"
        )
