"""Remote API repositories."""

from .restaurant_repository import RestaurantRepository
from .order_repository import OrderRepository
from .rating_repository import RatingRepository

__all__ = ['RestaurantRepository', 'OrderRepository', 'RatingRepository']
