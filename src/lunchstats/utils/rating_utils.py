"""Rating vocabulary for the 1-4 order rating scale."""

from typing import List, NamedTuple, Optional

DEFAULT_RATING_EMOJI = '⭐'


class RatingOption(NamedTuple):
    rating: int
    emoji: str
    title: str


RATING_OPTIONS = (
    RatingOption(1, '🤮', 'Never Again'),
    RatingOption(2, '😐', 'Meh'),
    RatingOption(3, '🤤', 'Pretty Good'),
    RatingOption(4, '🤯', 'Life Changing'),
)

_EMOJI_BY_RATING = {option.rating: option.emoji for option in RATING_OPTIONS}


def get_rating_emoji(rating) -> str:
    """Get the emoji for a rating value, or the generic star for anything else."""
    if isinstance(rating, bool):
        return DEFAULT_RATING_EMOJI
    try:
        return _EMOJI_BY_RATING.get(rating, DEFAULT_RATING_EMOJI)
    except TypeError:
        # Unhashable input
        return DEFAULT_RATING_EMOJI


def get_all_rating_emojis() -> List[RatingOption]:
    """Get every rating option in ascending order."""
    return list(RATING_OPTIONS)


def format_rating_summary(average_rating: Optional[float], total_ratings: int) -> str:
    """Format an average rating like ``🤤 3.2 (5 ratings)``."""
    if not total_ratings or average_rating is None:
        return 'No ratings yet'
    emoji = get_rating_emoji(int(round(average_rating)))
    plural = 's' if total_ratings != 1 else ''
    return f"{emoji} {average_rating:.1f} ({total_ratings} rating{plural})"
