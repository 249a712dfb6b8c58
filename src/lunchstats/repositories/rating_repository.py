"""Rating repository for remote API operations."""

from typing import Any, Dict, Optional

from ..models.order import RatingRecord
from .base import BaseRepository

RATINGS_ENDPOINT = '/api/ratings'
ORDER_RATING_ENDPOINT = '/api/ratings/order'
RATING_STATS_ENDPOINT = '/api/ratings/stats'


class RatingRepository(BaseRepository):
    """Order rating operations."""

    async def get_order_rating(self, user_id: str, restaurant_id: str, order_date) -> Optional[Dict[str, Any]]:
        """Get the user's rating for one order, or None if it has not been rated."""
        params = {
            'userId': self._require(user_id, 'user_id'),
            'restaurantId': self._require(restaurant_id, 'restaurant_id'),
            'orderDate': self._date_key(order_date, 'order_date'),
        }
        data = self._unwrap(await self.api_client.get(ORDER_RATING_ENDPOINT, params=params))
        if isinstance(data, dict) and 'rating' in data and isinstance(data['rating'], dict):
            return data['rating']
        return data or None

    async def submit_rating(self, rating: RatingRecord) -> Any:
        """Create or replace the rating for an order.

        The record is keyed by user, restaurant and date, so resubmitting
        it is safe to retry.
        """
        if not isinstance(rating, RatingRecord):
            rating = RatingRecord.model_validate(rating)
        return self._unwrap(await self.api_client.post(
            RATINGS_ENDPOINT, json=rating.to_payload(), idempotent=True,
        ))

    async def get_rating_stats(self, restaurant_id: Optional[str] = None) -> Any:
        params = {'restaurant': restaurant_id} if restaurant_id else None
        return self._unwrap(await self.api_client.get(RATING_STATS_ENDPOINT, params=params))
