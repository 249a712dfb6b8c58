"""Order repository for remote API operations."""

from typing import Any, Dict, Iterable, Union
from urllib.parse import quote

from ..models.order import MenuItem
from .base import BaseRepository

ORDERS_ENDPOINT = '/api/orders'
ORDERS_SUMMARY_ENDPOINT = '/api/orders/summary'


class OrderRepository(BaseRepository):
    """User order history operations."""

    async def get_user_restaurant_summary(self, user_id: str) -> Dict[str, Any]:
        """Get every restaurant a user has ordered from, most recent first."""
        user_id = self._require(user_id, 'user_id')
        data = self._unwrap(await self.api_client.get(ORDERS_SUMMARY_ENDPOINT, params={'userId': user_id}))
        if not isinstance(data, dict):
            return {'userId': user_id, 'totalRestaurants': 0, 'restaurants': []}
        return data

    async def update_user_order(
        self,
        user_id: str,
        restaurant_id: str,
        order_date,
        items: Iterable[Union[MenuItem, Dict[str, Any], str]],
    ) -> Any:
        """Replace the items of a user's order for one date."""
        user_id = self._require(user_id, 'user_id')
        restaurant_id = self._require(restaurant_id, 'restaurant_id')
        date_key = self._date_key(order_date, 'order_date')
        payload_items = [
            (item if isinstance(item, MenuItem) else MenuItem.model_validate(item)).model_dump(by_alias=True)
            for item in items
        ]
        endpoint = f"{ORDERS_ENDPOINT}/{quote(date_key)}"
        return self._unwrap(await self.api_client.put(endpoint, json={
            'userId': user_id,
            'restaurantId': restaurant_id,
            'items': payload_items,
        }))

    async def delete_user_restaurant_history(self, user_id: str, restaurant_id: str, order_date) -> Any:
        """Delete a user's order with a restaurant on one date."""
        user_id = self._require(user_id, 'user_id')
        restaurant_id = self._require(restaurant_id, 'restaurant_id')
        date_key = self._date_key(order_date, 'order_date')
        endpoint = f"{ORDERS_ENDPOINT}/{quote(date_key)}"
        return self._unwrap(await self.api_client.delete(endpoint, params={
            'userId': user_id,
            'restaurantId': restaurant_id,
        }))
