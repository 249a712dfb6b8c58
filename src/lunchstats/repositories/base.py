"""Shared plumbing for API repositories."""

from typing import Any

from ..api.client import ApiClient
from ..utils.date_utils import format_date_key


class BaseRepository:
    """Repository wrapping one family of remote API resources."""

    def __init__(self, api_client: ApiClient):
        self.api_client = api_client

    @staticmethod
    def _unwrap(payload: Any) -> Any:
        """Strip the ``{"success": ..., "data": ...}`` envelope some endpoints use."""
        if isinstance(payload, dict) and 'success' in payload and 'data' in payload:
            return payload['data']
        return payload

    @staticmethod
    def _require(value: Any, name: str) -> str:
        if value is None or not str(value).strip():
            raise ValueError(f"{name} is required")
        return str(value).strip()

    @staticmethod
    def _date_key(value: Any, name: str = 'date') -> str:
        try:
            return format_date_key(value)
        except ValueError as e:
            raise ValueError(f"{name} must be a date in YYYY-MM-DD format") from e
