"""Configuration management for the lunchstats application."""

import os
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


class ApiConfig:
    """Remote API configuration."""

    def __init__(self):
        self.base_url = os.getenv('LUNCHSTATS_API_BASE_URL', 'http://localhost:8787')
        self.timeout = float(os.getenv('LUNCHSTATS_API_TIMEOUT', '10'))
        self.retry_attempts = int(os.getenv('LUNCHSTATS_API_RETRY_ATTEMPTS', '3'))
        self.retry_delay = float(os.getenv('LUNCHSTATS_API_RETRY_DELAY', '1.0'))


class TrackingConfig:
    """Appearance tracking configuration."""

    def __init__(self):
        self.seen_ttl = float(os.getenv('LUNCHSTATS_SEEN_TTL', '600'))
        self.soldout_cutoff_hour = int(os.getenv('LUNCHSTATS_SOLDOUT_CUTOFF_HOUR', '12'))
        self.sell_out_threshold = float(os.getenv('LUNCHSTATS_SELL_OUT_THRESHOLD', '0.8'))
        self.sell_out_min_difference = float(os.getenv('LUNCHSTATS_SELL_OUT_MIN_DIFFERENCE', '0.2'))


class AppConfig:
    """Application configuration."""

    def __init__(self):
        self.log_level = os.getenv('LOG_LEVEL', 'INFO')
        self.debug = os.getenv('DEBUG', 'false').lower() == 'true'
        self.user_id = os.getenv('LUNCHSTATS_USER_ID')


# Global configuration instances
api_config = ApiConfig()
tracking_config = TrackingConfig()
app_config = AppConfig()
