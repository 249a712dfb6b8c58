"""Remote API transport."""

from .cancellation import CancellationToken
from .client import ApiClient
from .errors import (
    LunchStatsError,
    NetworkUnavailable,
    PartialReconciliationFailure,
    RemoteRequestFailed,
    RequestCancelled,
)

__all__ = [
    'ApiClient',
    'CancellationToken',
    'LunchStatsError',
    'NetworkUnavailable',
    'PartialReconciliationFailure',
    'RemoteRequestFailed',
    'RequestCancelled',
]
