"""Appearance tracking: turns scrape observations into history updates."""

import asyncio
import logging
import time
from collections import OrderedDict
from datetime import datetime
from typing import Callable, Dict, Iterable, List, Mapping, MutableMapping, Optional, Tuple, Union

from ..api.cancellation import CancellationToken
from ..api.errors import LunchStatsError, RequestCancelled
from ..config import tracking_config
from ..models.order import OrderRecord
from ..models.restaurant import RestaurantAppearanceHistory
from ..models.tracking import ReconciliationResult, ScrapeObservation, TrackingUpdate, UrlContext
from ..repositories.order_repository import OrderRepository
from ..repositories.restaurant_repository import RestaurantRepository
from ..utils.date_utils import DateInput, is_valid_date_key
from ..utils.page_parser import extract_menu, extract_observations, extract_orders, get_deliveries, parse_page_data
from ..utils.url_context import extract_url_context

logger = logging.getLogger(__name__)

APPEARANCE = 'appearance'
SOLDOUT = 'soldout'
MENU = 'menu'
ORDER = 'order'


def build_update(
    observations: Iterable[ScrapeObservation],
    history: RestaurantAppearanceHistory,
) -> TrackingUpdate:
    """Compute the dates a restaurant's history is missing.

    Every observation is an appearance, whatever its status. Only sold-out
    observations add sold-out dates. Dates already in ``history`` are left out,
    so an update built against an up-to-date history is empty.
    """
    known_appearances = set(history.appearance_dates)
    known_soldouts = set(history.soldout_dates)

    appearance_dates = set()
    soldout_dates = set()
    for observation in observations:
        appearance_dates.add(observation.observed_at)
        if observation.status.counts_as_soldout:
            soldout_dates.add(observation.observed_at)

    return TrackingUpdate(
        restaurant_id=history.restaurant_id,
        appearance_dates_to_add=sorted(appearance_dates - known_appearances),
        soldout_dates_to_add=sorted(soldout_dates - known_soldouts),
    )


class SeenDates:
    """Short-lived memory of dates already known to be recorded remotely."""

    def __init__(self, ttl: float, clock: Callable[[], float] = time.monotonic):
        self.ttl = ttl
        self.clock = clock
        self._expires: Dict[Tuple[str, str, str], float] = {}

    def add(self, restaurant_id: str, date_key: str, kind: str) -> None:
        if self.ttl > 0:
            self._expires[(restaurant_id, date_key, kind)] = self.clock() + self.ttl

    def remember(self, history: RestaurantAppearanceHistory) -> None:
        self.prune()
        for date_key in history.appearance_dates:
            self.add(history.restaurant_id, date_key, APPEARANCE)
        for date_key in history.soldout_dates:
            self.add(history.restaurant_id, date_key, SOLDOUT)

    def __contains__(self, key: Tuple[str, str, str]) -> bool:
        expires = self._expires.get(key)
        if expires is None:
            return False
        if expires <= self.clock():
            del self._expires[key]
            return False
        return True

    def prune(self) -> None:
        """Forget every expired entry."""
        now = self.clock()
        for key in [key for key, expires in self._expires.items() if expires <= now]:
            del self._expires[key]

    def clear(self) -> None:
        self._expires.clear()

    def __len__(self) -> int:
        return len(self._expires)


class TrackingService:
    """Reconciles scrape observations with the remote appearance history.

    One pass groups observations by restaurant, diffs each group against the
    restaurant's latest history and submits at most one update per
    restaurant. Passes for the same restaurant never overlap: a per-restaurant
    lock makes a second pass wait for the first and then diff against fresh
    state.
    """

    def __init__(
        self,
        restaurant_repository: RestaurantRepository,
        seen_ttl: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
        order_repository: Optional[OrderRepository] = None,
    ):
        self.restaurant_repository = restaurant_repository
        self.order_repository = order_repository
        self.seen = SeenDates(tracking_config.seen_ttl if seen_ttl is None else seen_ttl, clock)
        # Lock and number of passes holding or waiting on it, per restaurant
        self._locks: Dict[str, Tuple[asyncio.Lock, int]] = {}

    def _acquire_lock(self, restaurant_id: str) -> asyncio.Lock:
        lock, users = self._locks.get(restaurant_id, (None, 0))
        if lock is None:
            lock = asyncio.Lock()
        self._locks[restaurant_id] = (lock, users + 1)
        return lock

    def _release_lock(self, restaurant_id: str) -> None:
        lock, users = self._locks[restaurant_id]
        if users > 1:
            self._locks[restaurant_id] = (lock, users - 1)
        else:
            del self._locks[restaurant_id]

    @staticmethod
    def _anchor(
        observations: Iterable[ScrapeObservation],
        url_context: Optional[UrlContext],
    ) -> Tuple[List[ScrapeObservation], int]:
        """Pin observations to a valid delivery date, dropping those without one."""
        observations = list(observations)
        if url_context is not None:
            if not url_context.has_temporal_anchor:
                return [], len(observations)
            return [
                obs if obs.observed_at == url_context.date
                else obs.model_copy(update={'observed_at': url_context.date})
                for obs in observations
            ], 0

        anchored = [obs for obs in observations if is_valid_date_key(obs.observed_at)]
        return anchored, len(observations) - len(anchored)

    @staticmethod
    def _group(observations: Iterable[ScrapeObservation]) -> 'OrderedDict[str, List[ScrapeObservation]]':
        groups: 'OrderedDict[str, List[ScrapeObservation]]' = OrderedDict()
        for observation in observations:
            groups.setdefault(observation.restaurant_id, []).append(observation)
        return groups

    def _already_seen(self, restaurant_id: str, observations: List[ScrapeObservation]) -> bool:
        for observation in observations:
            if (restaurant_id, observation.observed_at, APPEARANCE) not in self.seen:
                return False
            if observation.status.counts_as_soldout and \
                    (restaurant_id, observation.observed_at, SOLDOUT) not in self.seen:
                return False
        return True

    async def reconcile(
        self,
        observations: Iterable[ScrapeObservation],
        url_context: Optional[UrlContext] = None,
        cancel_token: Optional[CancellationToken] = None,
        snapshots: Optional[MutableMapping[str, RestaurantAppearanceHistory]] = None,
    ) -> ReconciliationResult:
        """Run one reconciliation pass over the observations of a page view.

        Args:
            observations: Observations scraped from one page
            url_context: Context of the page. When given, its date is the date
                every observation is about; a context without a date drops
                the whole batch.
            cancel_token: Aborts in-flight requests when the page context goes away
            snapshots: Optional recent histories keyed by restaurant id, used
                instead of fetching. Entries are replaced with the merged
                history after a successful submission.

        Returns:
            What was submitted, skipped, dropped and which restaurants failed

        Raises:
            RequestCancelled: ``cancel_token`` fired during the pass
        """
        result = ReconciliationResult()

        anchored, result.dropped = self._anchor(observations, url_context)
        if result.dropped:
            logger.info("Dropped %s observation(s) without a delivery date", result.dropped)
        if not anchored:
            return result

        if cancel_token is not None and cancel_token.cancelled:
            raise RequestCancelled('reconcile')

        groups = self._group(anchored)
        outcomes = await asyncio.gather(
            *(self._reconcile_restaurant(restaurant_id, group, cancel_token, snapshots)
              for restaurant_id, group in groups.items()),
            return_exceptions=True,
        )

        cancelled = None
        for restaurant_id, outcome in zip(groups, outcomes):
            if isinstance(outcome, RequestCancelled):
                cancelled = cancelled or outcome
            elif isinstance(outcome, (LunchStatsError, ValueError)):
                logger.warning("Appearance sync failed for restaurant %s: %s", restaurant_id, outcome)
                result.failures[restaurant_id] = str(outcome)
            elif isinstance(outcome, BaseException):
                raise outcome
            elif outcome is None:
                result.skipped.append(restaurant_id)
            else:
                result.submitted.append(outcome)

        if cancelled is not None:
            raise cancelled

        logger.info(
            "Reconciled %s restaurant(s): %s submitted, %s unchanged, %s failed",
            len(groups), len(result.submitted), len(result.skipped), len(result.failures),
        )
        return result

    async def _reconcile_restaurant(
        self,
        restaurant_id: str,
        observations: List[ScrapeObservation],
        cancel_token: Optional[CancellationToken],
        snapshots: Optional[MutableMapping[str, RestaurantAppearanceHistory]],
    ) -> Optional[TrackingUpdate]:
        lock = self._acquire_lock(restaurant_id)
        try:
            async with lock:
                return await self._reconcile_locked(restaurant_id, observations, cancel_token, snapshots)
        finally:
            self._release_lock(restaurant_id)

    async def _reconcile_locked(
        self,
        restaurant_id: str,
        observations: List[ScrapeObservation],
        cancel_token: Optional[CancellationToken],
        snapshots: Optional[MutableMapping[str, RestaurantAppearanceHistory]],
    ) -> Optional[TrackingUpdate]:
        if self._already_seen(restaurant_id, observations):
            return None

        history = snapshots.get(restaurant_id) if snapshots is not None else None
        if history is None:
            history = await self._fetch_history(restaurant_id, cancel_token)
        self.seen.remember(history)

        update = build_update(observations, history)
        if update.is_empty:
            return None

        await self.restaurant_repository.update_appearances(
            restaurant_id,
            update.appearance_dates_to_add,
            update.soldout_dates_to_add,
            cancel_token=cancel_token,
        )

        merged = history.apply(update)
        self.seen.remember(merged)
        if snapshots is not None:
            snapshots[restaurant_id] = merged
        logger.debug("Recorded %s for restaurant %s", update.to_payload(), restaurant_id)
        return update

    async def _fetch_history(
        self,
        restaurant_id: str,
        cancel_token: Optional[CancellationToken],
    ) -> RestaurantAppearanceHistory:
        fetch = self.restaurant_repository.get_appearance_history(restaurant_id)
        if cancel_token is not None:
            return await cancel_token.run(fetch, f"history:{restaurant_id}")
        return await fetch

    async def track_page(
        self,
        page: Union[str, Mapping],
        path: str,
        now: Optional[datetime] = None,
        today: Optional[DateInput] = None,
        cancel_token: Optional[CancellationToken] = None,
        user_id: Optional[str] = None,
    ) -> ReconciliationResult:
        """Scrape a rendered page (HTML or decoded page props) and sync what it shows.

        Appearances are reconciled first. Menus found on the page are then
        stored, and, when an order repository is configured, the user's orders
        on a delivery page are recorded.

        Args:
            page: Page HTML, or its already-decoded page props
            path: Navigation path of the page
            now: Scrape time, used to tell sold out from ordering closed
            today: Date used for the bare app root
            cancel_token: Aborts in-flight requests on navigation
            user_id: Owner of orders that do not name their user
        """
        url_context = extract_url_context(path, today=today)
        if not url_context.has_temporal_anchor:
            logger.info("No delivery date in %r (%s), nothing to track", path, url_context.kind.value)
            return ReconciliationResult()

        page_data = parse_page_data(page) if isinstance(page, str) else dict(page)
        observations = extract_observations(page_data, url_context.date, now=now)
        if not observations:
            logger.info("No restaurants found on page %s", path)
            return ReconciliationResult()

        result = await self.reconcile(observations, url_context=url_context, cancel_token=cancel_token)
        await self._record_menus(page_data, url_context.date, result, cancel_token)
        if self.order_repository is not None:
            await self._record_orders(extract_orders(page_data, url_context.date, user_id), result)
        return result

    async def _record_menus(
        self,
        page_data: Mapping,
        date_key: str,
        result: ReconciliationResult,
        cancel_token: Optional[CancellationToken],
    ) -> None:
        for delivery in get_deliveries(page_data):
            restaurant = delivery.get('restaurant') or {}
            restaurant_id = str(restaurant.get('id') or '').strip()
            items = extract_menu(delivery)
            if not restaurant_id or not items or (restaurant_id, date_key, MENU) in self.seen:
                continue
            try:
                await self.restaurant_repository.store_menu(
                    restaurant_id, date_key, items, restaurant.get('name'), cancel_token=cancel_token,
                )
            except RequestCancelled:
                raise
            except (LunchStatsError, ValueError) as e:
                logger.warning("Menu sync failed for restaurant %s: %s", restaurant_id, e)
                result.failures[f"{MENU}:{restaurant_id}"] = str(e)
                continue
            self.seen.add(restaurant_id, date_key, MENU)
            result.menus_recorded.append(restaurant_id)

    async def _record_orders(self, orders: Iterable[OrderRecord], result: ReconciliationResult) -> None:
        # One update per user, restaurant and date holding the items of all its orders
        merged: 'OrderedDict[Tuple[str, str, str], List]' = OrderedDict()
        for order in orders:
            merged.setdefault(order.key, []).extend(order.items)

        for (user_id, restaurant_id, order_date), items in merged.items():
            seen_key = (restaurant_id, order_date, f"{ORDER}:{user_id}")
            if seen_key in self.seen:
                continue
            try:
                await self.order_repository.update_user_order(user_id, restaurant_id, order_date, items)
            except (LunchStatsError, ValueError) as e:
                logger.warning("Order sync failed for restaurant %s on %s: %s", restaurant_id, order_date, e)
                result.failures[f"{ORDER}:{restaurant_id}"] = str(e)
                continue
            self.seen.add(*seen_key)
            result.orders_recorded.append(restaurant_id)
