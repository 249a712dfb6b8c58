"""Restaurant appearance tracking and order stats for lunch delivery pages."""

__version__ = '1.0.0'
