"""Lunch stats services."""

from .tracking_service import TrackingService, build_update
from .stats_service import StatsService, likely_to_sell_out, sold_out_last_time

__all__ = ['TrackingService', 'StatsService', 'build_update', 'likely_to_sell_out', 'sold_out_last_time']
