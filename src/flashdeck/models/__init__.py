from .card import DEFAULT_EASE_FACTOR, MIN_EASE_FACTOR, Card
from .common import Rating, StudyMode, StudyState, utc_now
from .deck import Deck, DeckStats
from .session import StudySession

__all__ = [
    "Card",
    "DEFAULT_EASE_FACTOR",
    "Deck",
    "DeckStats",
    "MIN_EASE_FACTOR",
    "Rating",
    "StudyMode",
    "StudySession",
    "StudyState",
    "utc_now",
]
