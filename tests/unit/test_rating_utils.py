"""Tests for the rating vocabulary."""

import sys
from pathlib import Path
import pytest

# Add src to path
PROJECT_ROOT = Path(__file__).parent.parent.parent
sys.path.insert(0, str(PROJECT_ROOT / 'src'))

from lunchstats.utils.rating_utils import (
    DEFAULT_RATING_EMOJI,
    format_rating_summary,
    get_all_rating_emojis,
    get_rating_emoji,
)


def test_rating_emojis():
    """Test each rating has its emoji."""
    assert get_rating_emoji(1) == '🤮'
    assert get_rating_emoji(2) == '😐'
    assert get_rating_emoji(3) == '🤤'
    assert get_rating_emoji(4) == '🤯'


@pytest.mark.parametrize('value', [0, 5, 99, -1, None, '3', 2.5, True, [3]])
def test_unknown_ratings_fall_back_to_star(value):
    """Test anything but 1-4 gets the star."""
    assert get_rating_emoji(value) == DEFAULT_RATING_EMOJI == '⭐'


def test_all_rating_emojis():
    """Test the scale lists ratings 1-4 in order."""
    options = get_all_rating_emojis()

    assert [option.rating for option in options] == [1, 2, 3, 4]
    assert options[0].title == 'Never Again'
    assert options[3].title == 'Life Changing'
    assert all(get_rating_emoji(option.rating) == option.emoji for option in options)


def test_format_rating_summary():
    """Test the average and count are summarized."""
    assert format_rating_summary(3.24, 5) == '🤤 3.2 (5 ratings)'
    assert format_rating_summary(4.0, 1) == '🤯 4.0 (1 rating)'
    assert format_rating_summary(None, 0) == 'No ratings yet'
