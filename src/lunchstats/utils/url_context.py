"""Page classification from navigation paths.

Recognized shapes under the app root:

    /app                     today's day page
    /app/2024-03-15          day page for a date
    /app/2024-03-15/abc123   delivery detail page
"""

import logging
from typing import Optional
from urllib.parse import urlsplit

from ..models.tracking import UrlContext, UrlContextKind
from .date_utils import DateInput, get_today_date_string, is_valid_date_key

logger = logging.getLogger(__name__)

APP_ROOT = 'app'

NO_CONTEXT = UrlContext(kind=UrlContextKind.UNRECOGNIZED)
PARSE_ERROR_CONTEXT = UrlContext(kind=UrlContextKind.PARSE_ERROR)


def extract_url_context(path, today: Optional[DateInput] = None) -> UrlContext:
    """Extract date, delivery id and page kind from a navigation path.

    Never raises. Paths outside the app root give ``NO_CONTEXT``; input that
    cannot be parsed at all gives ``PARSE_ERROR_CONTEXT``. Both carry no date,
    no delivery id and ``is_day_page=False``.

    Args:
        path: Location path, or a full URL whose path is used
        today: Date used for the bare app root; defaults to the current date
    """
    try:
        if '://' in path:
            path = urlsplit(path).path
        segments = [segment for segment in path.split('/') if segment]

        if not segments or segments[0] != APP_ROOT:
            return NO_CONTEXT

        if len(segments) == 3 and is_valid_date_key(segments[1]):
            return UrlContext(
                date=segments[1],
                delivery_id=segments[2],
                is_day_page=False,
                kind=UrlContextKind.DELIVERY,
            )

        if len(segments) == 2 and is_valid_date_key(segments[1]):
            return UrlContext(date=segments[1], is_day_page=True, kind=UrlContextKind.DAY)

        if len(segments) == 1:
            return UrlContext(
                date=get_today_date_string(today),
                is_day_page=True,
                kind=UrlContextKind.TODAY,
            )

        delivery_id = segments[2] if len(segments) == 3 else None
        return UrlContext(delivery_id=delivery_id, kind=UrlContextKind.UNRECOGNIZED)
    except Exception as e:
        logger.debug("Could not parse navigation path %r: %s", path, e)
        return PARSE_ERROR_CONTEXT
