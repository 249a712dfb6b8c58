"""Restaurant history and stats models."""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field

from ..utils.date_utils import is_valid_date_key
from .order import UserOrderHistory
from .tracking import TrackingUpdate


def _date_set(values: Any) -> set:
    if not isinstance(values, (list, tuple, set)):
        return set()
    return {value for value in values if is_valid_date_key(value)}


class RestaurantAppearanceHistory(BaseModel):
    """Dates a restaurant was offered, and the subset on which it sold out."""

    model_config = ConfigDict(populate_by_name=True)

    restaurant_id: str = Field(alias='restaurantId')
    name: Optional[str] = None
    appearance_dates: List[str] = Field(default_factory=list, alias='appearanceDates')
    soldout_dates: List[str] = Field(default_factory=list, alias='soldoutDates')

    @classmethod
    def empty(cls, restaurant_id: str) -> 'RestaurantAppearanceHistory':
        """History for a restaurant the remote store has never seen."""
        return cls(restaurant_id=restaurant_id)

    @classmethod
    def from_dates(cls, restaurant_id: str, appearances, soldouts,
                   name: Optional[str] = None) -> 'RestaurantAppearanceHistory':
        """Build a normalized history: unique, sorted, sold-out dates within appearances."""
        appearance_set = _date_set(appearances)
        soldout_set = _date_set(soldouts) & appearance_set
        return cls(
            restaurant_id=restaurant_id,
            name=name,
            appearance_dates=sorted(appearance_set),
            soldout_dates=sorted(soldout_set),
        )

    @classmethod
    def from_api(cls, restaurant_id: str, payload: Optional[Dict[str, Any]]) -> 'RestaurantAppearanceHistory':
        """Normalize a remote restaurant payload into a history."""
        if not isinstance(payload, dict):
            return cls.empty(restaurant_id)
        appearances = payload.get('appearanceDates', payload.get('appearances'))
        soldouts = payload.get('soldoutDates', payload.get('soldOutDates'))
        name = payload.get('name') or payload.get('restaurant')
        if name == restaurant_id:
            name = None
        return cls.from_dates(restaurant_id, appearances, soldouts, name=name)

    def has_appearance(self, date_key: str) -> bool:
        return date_key in self.appearance_dates

    def has_soldout(self, date_key: str) -> bool:
        return date_key in self.soldout_dates

    def apply(self, update: TrackingUpdate) -> 'RestaurantAppearanceHistory':
        """Return the history the remote store holds after merging ``update``."""
        return RestaurantAppearanceHistory.from_dates(
            self.restaurant_id,
            set(self.appearance_dates) | set(update.appearance_dates_to_add),
            set(self.soldout_dates) | set(update.soldout_dates_to_add),
            name=self.name,
        )

    @property
    def is_consistent(self) -> bool:
        return set(self.soldout_dates) <= set(self.appearance_dates)

    @property
    def soldout_rate(self) -> float:
        if not self.appearance_dates:
            return 0.0
        return round(len(self.soldout_dates) / len(self.appearance_dates), 3)


class RatingStats(BaseModel):
    """Aggregated ratings for a restaurant."""

    model_config = ConfigDict(populate_by_name=True)

    total_ratings: int = Field(default=0, alias='totalRatings')
    average_rating: float = Field(default=0.0, alias='averageRating')
    distribution: Dict[int, int] = Field(
        default_factory=lambda: {1: 0, 2: 0, 3: 0, 4: 0},
        alias='ratingDistribution',
    )

    def add_rating(self, rating: int) -> None:
        """Fold one rating into the running average and distribution."""
        if rating not in (1, 2, 3, 4):
            raise ValueError(f"Rating must be between 1 and 4, got {rating!r}")
        old_total = self.total_ratings
        self.total_ratings += 1
        self.average_rating = (self.average_rating * old_total + rating) / self.total_ratings
        self.distribution[rating] = self.distribution.get(rating, 0) + 1

    def distribution_percentages(self) -> Dict[int, float]:
        if not self.total_ratings:
            return {stars: 0.0 for stars in (1, 2, 3, 4)}
        return {
            stars: round(self.distribution.get(stars, 0) / self.total_ratings * 100, 1)
            for stars in (1, 2, 3, 4)
        }


class RestaurantStats(BaseModel):
    """Restaurant stats as returned by the remote stats endpoint."""

    model_config = ConfigDict(populate_by_name=True)

    restaurant_id: str = Field(alias='id')
    name: Optional[str] = None
    color: Optional[str] = None
    appearance_dates: List[str] = Field(default_factory=list, alias='appearances')
    soldout_dates: List[str] = Field(default_factory=list, alias='soldOutDates')
    total_appearances: int = Field(default=0, alias='totalAppearances')
    total_soldouts: int = Field(default=0, alias='totalSoldOuts')
    soldout_rate: float = Field(default=0.0, alias='soldOutRate')
    first_seen: Optional[str] = Field(default=None, alias='firstSeen')
    last_appearance: Optional[str] = Field(default=None, alias='lastAppearance')
    user_order_history: Optional[UserOrderHistory] = Field(default=None, alias='userOrderHistory')
    rating_stats: Optional[RatingStats] = Field(default=None, alias='ratingStats')

    @property
    def history(self) -> RestaurantAppearanceHistory:
        return RestaurantAppearanceHistory.from_dates(
            self.restaurant_id, self.appearance_dates, self.soldout_dates, name=self.name,
        )


class RestaurantStatsView(BaseModel):
    """Display-ready stats for one restaurant."""

    restaurant_id: str
    name: Optional[str] = None
    appearance_count: int = 0
    soldout_count: int = 0
    soldout_rate: float = 0.0
    first_seen: Optional[str] = None
    last_appearance: Optional[str] = None
    sold_out_last_time: bool = False
    user_order_history: Optional[UserOrderHistory] = None
    last_order_display: str = 'Never'
    average_rating: Optional[float] = None
    average_emoji: Optional[str] = None
    rating_summary: str = 'No ratings yet'
