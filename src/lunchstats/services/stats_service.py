"""Stats aggregation for display."""

import logging
from typing import Dict, Iterable, Optional

from ..api.cancellation import CancellationToken
from ..config import tracking_config
from ..models.restaurant import RestaurantAppearanceHistory, RestaurantStats, RestaurantStatsView
from ..repositories.restaurant_repository import RestaurantRepository
from ..utils.date_utils import DateInput, format_date_string, get_today_date_string, is_valid_date_key
from ..utils.rating_utils import format_rating_summary, get_rating_emoji

logger = logging.getLogger(__name__)


def sold_out_last_time(
    appearance_dates: Iterable[str],
    soldout_dates: Iterable[str],
    today: Optional[DateInput] = None,
) -> bool:
    """Check whether a restaurant sold out the last time it was offered before today."""
    today_key = get_today_date_string(today)
    past = sorted(d for d in appearance_dates if is_valid_date_key(d) and d < today_key)
    if not past:
        return False
    return past[-1] in set(soldout_dates)


def likely_to_sell_out(
    soldout_rates: Dict[str, float],
    threshold: Optional[float] = None,
    min_difference: Optional[float] = None,
) -> Optional[str]:
    """Pick the restaurant on a day page most likely to sell out, if any stands out.

    The restaurant with the highest sold-out rate qualifies when its rate
    reaches ``threshold`` and either it is the only one with a positive rate
    or it leads the runner-up by at least ``min_difference``.
    """
    if threshold is None:
        threshold = tracking_config.sell_out_threshold
    if min_difference is None:
        min_difference = tracking_config.sell_out_min_difference

    ranked = sorted(
        ((rate, restaurant_id) for restaurant_id, rate in soldout_rates.items() if rate > 0),
        reverse=True,
    )
    if not ranked:
        return None

    top_rate, top_id = ranked[0]
    if top_rate < threshold:
        return None
    if len(ranked) == 1:
        return top_id
    runner_up = ranked[1][0]
    return top_id if top_rate - runner_up >= min_difference else None


class StatsService:
    """Builds display view models from remote restaurant stats."""

    def __init__(self, restaurant_repository: RestaurantRepository):
        self.restaurant_repository = restaurant_repository

    @staticmethod
    def build_view(stats: RestaurantStats, today: Optional[DateInput] = None) -> RestaurantStatsView:
        """Aggregate appearance history, order history and ratings into a view model."""
        history: RestaurantAppearanceHistory = stats.history

        view = RestaurantStatsView(
            restaurant_id=stats.restaurant_id,
            name=stats.name,
            appearance_count=len(history.appearance_dates) or stats.total_appearances,
            soldout_count=len(history.soldout_dates) or stats.total_soldouts,
            soldout_rate=history.soldout_rate if history.appearance_dates else round(stats.soldout_rate, 3),
            first_seen=stats.first_seen or (history.appearance_dates[0] if history.appearance_dates else None),
            last_appearance=stats.last_appearance or (history.appearance_dates[-1] if history.appearance_dates else None),
            sold_out_last_time=sold_out_last_time(history.appearance_dates, history.soldout_dates, today),
            user_order_history=stats.user_order_history,
        )

        if stats.user_order_history is not None:
            view.last_order_display = format_date_string(stats.user_order_history.last_order_date)

        rating_stats = stats.rating_stats
        if rating_stats is not None and rating_stats.total_ratings:
            view.average_rating = round(rating_stats.average_rating, 2)
            view.average_emoji = get_rating_emoji(int(round(rating_stats.average_rating)))
            view.rating_summary = format_rating_summary(rating_stats.average_rating, rating_stats.total_ratings)
        elif stats.user_order_history is not None and stats.user_order_history.last_rating is not None:
            last_rating = stats.user_order_history.last_rating.rating
            view.average_rating = float(last_rating)
            view.average_emoji = get_rating_emoji(last_rating)
            view.rating_summary = format_rating_summary(float(last_rating), 1)

        return view

    async def get_restaurant_view(
        self,
        restaurant_id: str,
        user_id: Optional[str] = None,
        cancel_token: Optional[CancellationToken] = None,
        today: Optional[DateInput] = None,
    ) -> RestaurantStatsView:
        """Fetch stats for a restaurant and build its view model."""
        logger.debug("Fetching stats for restaurant %s (user %s)", restaurant_id, user_id)
        stats = await self.restaurant_repository.get_stats_with_user_history(
            restaurant_id, user_id, cancel_token=cancel_token,
        )
        return self.build_view(stats, today=today)
