"""Restaurant repository for remote API operations."""

import logging
from typing import Any, Dict, Iterable, List, Optional
from urllib.parse import quote

from ..api.cancellation import CancellationToken
from ..api.errors import RemoteRequestFailed
from ..models.order import MenuItem
from ..models.restaurant import RestaurantAppearanceHistory, RestaurantStats
from ..models.tracking import TrackingUpdate
from .base import BaseRepository

logger = logging.getLogger(__name__)

RESTAURANT_ENDPOINT = '/api/restaurant'
RESTAURANT_MENU_ENDPOINT = '/api/restaurant-menu'
RESTAURANT_STATS_ENDPOINT = '/api/restaurants/stats'
UPDATE_APPEARANCES_ENDPOINT = '/api/restaurants/update-appearances'
TRACK_ENDPOINT = '/api/restaurants/appearances/track'
DAILY_AVAILABILITY_ENDPOINT = '/api/restaurants/daily-availability'
OFFICE_AVAILABILITY_ENDPOINT = '/api/restaurants/office-availability'


class RestaurantRepository(BaseRepository):
    """Restaurant lookups, stats and appearance history updates."""

    async def get_by_id(self, restaurant_id: str, restaurant_name: Optional[str] = None) -> Dict[str, Any]:
        """Get a restaurant record, with an optional name for server-side fallback lookup."""
        restaurant_id = self._require(restaurant_id, 'restaurant_id')
        params = None
        if restaurant_name and restaurant_name != restaurant_id:
            params = {'name': restaurant_name}
        endpoint = f"{RESTAURANT_ENDPOINT}/{quote(restaurant_id, safe='')}"
        return self._unwrap(await self.api_client.get(endpoint, params=params))

    async def get_menu(self, restaurant_id: str) -> List[str]:
        """Get the menu item labels recorded for a restaurant."""
        restaurant_id = self._require(restaurant_id, 'restaurant_id')
        endpoint = f"{RESTAURANT_MENU_ENDPOINT}/{quote(restaurant_id, safe='')}"
        data = self._unwrap(await self.api_client.get(endpoint))
        if isinstance(data, dict):
            return list(data.get('items') or [])
        return list(data or [])

    async def get_stats_with_user_history(
        self,
        restaurant_id: str,
        user_id: Optional[str] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> RestaurantStats:
        """Get appearance stats for a restaurant, with the user's order history if a user is given."""
        restaurant_id = self._require(restaurant_id, 'restaurant_id')
        params = {'restaurant': restaurant_id}
        if user_id:
            params['userId'] = user_id
        data = self._unwrap(await self.api_client.get(
            RESTAURANT_STATS_ENDPOINT, params=params, cancel_token=cancel_token,
        ))
        if not isinstance(data, dict):
            data = {}
        data.setdefault('id', restaurant_id)
        return RestaurantStats.model_validate(data)

    async def get_appearance_history(self, restaurant_id: str) -> RestaurantAppearanceHistory:
        """Get the recorded appearance and sold-out dates of a restaurant.

        A restaurant the remote store does not know yet has an empty history.
        """
        try:
            data = await self.get_by_id(restaurant_id)
        except RemoteRequestFailed as e:
            if e.status == 404:
                return RestaurantAppearanceHistory.empty(restaurant_id)
            raise
        return RestaurantAppearanceHistory.from_api(restaurant_id, data)

    async def update_appearances(
        self,
        restaurant_id: str,
        appearance_deltas: Iterable[str],
        soldout_deltas: Iterable[str],
        cancel_token: Optional[CancellationToken] = None,
    ) -> Any:
        """Add appearance and sold-out dates to a restaurant's history.

        Only the new dates are sent; the remote store merges them into the
        existing sets, so sending the same body twice is harmless.
        """
        restaurant_id = self._require(restaurant_id, 'restaurant_id')
        update = TrackingUpdate(
            restaurant_id=restaurant_id,
            appearance_dates_to_add=[self._date_key(d, 'appearance date') for d in appearance_deltas],
            soldout_dates_to_add=[self._date_key(d, 'sold out date') for d in soldout_deltas],
        )
        missing = set(update.soldout_dates_to_add) - set(update.appearance_dates_to_add)
        if missing:
            # A sold-out date is always an appearance date too
            update.appearance_dates_to_add = sorted(set(update.appearance_dates_to_add) | missing)

        logger.debug("Updating appearances for %s: +%s appearances, +%s sold out",
                     restaurant_id, update.appearance_dates_to_add, update.soldout_dates_to_add)
        return self._unwrap(await self.api_client.post(
            UPDATE_APPEARANCES_ENDPOINT,
            json=update.to_payload(),
            idempotent=True,
            cancel_token=cancel_token,
        ))

    async def track_appearances(
        self,
        batch: Iterable[TrackingUpdate],
        cancel_token: Optional[CancellationToken] = None,
    ) -> List[Any]:
        """Submit a batch of tracking updates through ``update_appearances``.

        Empty updates are skipped. Stops at the first failure.
        """
        results = []
        for update in batch:
            if update.is_empty:
                continue
            results.append(await self.update_appearances(
                update.restaurant_id,
                update.appearance_dates_to_add,
                update.soldout_dates_to_add,
                cancel_token=cancel_token,
            ))
        return results

    async def store_menu(
        self,
        restaurant_id: str,
        date,
        items: Iterable[MenuItem],
        restaurant_name: Optional[str] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> Any:
        """Merge menu items seen on a delivery date into the restaurant's stored menu.

        Goes through the combined tracking endpoint, which merges items by id
        and also records the date as an appearance.
        """
        restaurant_id = self._require(restaurant_id, 'restaurant_id')
        entry = {
            'id': restaurant_id,
            'menu': [item.model_dump(by_alias=True, exclude_none=True) for item in items],
        }
        if restaurant_name and restaurant_name != restaurant_id:
            entry['name'] = restaurant_name
        return self._unwrap(await self.api_client.post(
            TRACK_ENDPOINT,
            json={'date': self._date_key(date), 'restaurants': [entry]},
            idempotent=True,
            cancel_token=cancel_token,
        ))

    async def get_daily_availability(self, date) -> Any:
        """Get the aggregated availability of all restaurants on a date."""
        params = {'date': self._date_key(date)}
        return self._unwrap(await self.api_client.get(DAILY_AVAILABILITY_ENDPOINT, params=params))

    async def get_office_availability(self, office_id: Optional[str] = None, date=None) -> Any:
        """Get the aggregated availability for an office, optionally on one date."""
        params = {}
        if office_id:
            params['office'] = office_id
        if date is not None:
            params['date'] = self._date_key(date)
        return self._unwrap(await self.api_client.get(OFFICE_AVAILABILITY_ENDPOINT, params=params or None))
