"""Lunch stats utilities."""

from .date_utils import format_date_key, format_date_string, get_today_date_string, is_today, is_valid_date_key
from .rating_utils import format_rating_summary, get_all_rating_emojis, get_rating_emoji

__all__ = [
    'format_date_key',
    'format_date_string',
    'format_rating_summary',
    'get_all_rating_emojis',
    'get_rating_emoji',
    'get_today_date_string',
    'is_today',
    'is_valid_date_key',
]
