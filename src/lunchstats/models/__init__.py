"""Lunch stats data models."""

from .tracking import (
    ObservationStatus,
    ReconciliationResult,
    ScrapeObservation,
    TrackingUpdate,
    UrlContext,
    UrlContextKind,
)
from .order import MenuItem, OrderRecord, RatingRecord, UserOrderHistory
from .restaurant import RatingStats, RestaurantAppearanceHistory, RestaurantStats, RestaurantStatsView

__all__ = [
    'MenuItem',
    'ObservationStatus',
    'OrderRecord',
    'RatingRecord',
    'RatingStats',
    'ReconciliationResult',
    'RestaurantAppearanceHistory',
    'RestaurantStats',
    'RestaurantStatsView',
    'ScrapeObservation',
    'TrackingUpdate',
    'UrlContext',
    'UrlContextKind',
    'UserOrderHistory',
]
