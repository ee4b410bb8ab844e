"""Spaced-repetition scheduling (SM-2 style) and retention statistics.

- again: 進捗をリセット（repetition=0, interval=1）し ease を 0.2 下げる
- hard:  1 → 6 → interval*ease と伸ばし、ease を 0.15 下げる
- good:  hard と同じ伸び方で ease は据え置き
- easy:  4 → 8 → interval*ease*1.3 と伸ばし、ease を 0.1 上げる（上限なし）
- ease は 1.3 を下回らない。interval は浮動小数の積を切り捨てた日数
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable

from .errors import InvalidArgument
from .logging import logger
from .models.card import MIN_EASE_FACTOR, Card
from .models.common import Rating


AGAIN_EASE_PENALTY = 0.2
HARD_EASE_PENALTY = 0.15
EASY_EASE_BONUS = 0.1
EASY_INTERVAL_BONUS = 1.3
MATURE_INTERVAL_DAYS = 21


def _next_interval(card: Card, first: int, second: int, multiplier: float) -> int:
    # card.repetition has already been incremented for this review
    if card.repetition == 1:
        return first
    if card.repetition == 2:
        return second
    return int(card.interval * multiplier)


def apply_review(card: Card, rating: Rating, now: datetime) -> Card:
    """Update ``card``'s scheduling fields in place for the given rating."""

    if not isinstance(rating, Rating):
        raise InvalidArgument(f"rating must be a Rating, got {rating!r}")

    previous_interval = card.interval
    card.last_review = now
    card.mark_modified(now)

    if rating is Rating.again:
        card.repetition = 0
        card.interval = 1
        card.ease_factor = max(MIN_EASE_FACTOR, card.ease_factor - AGAIN_EASE_PENALTY)
    elif rating is Rating.hard:
        card.repetition += 1
        card.interval = _next_interval(card, 1, 6, card.ease_factor)
        card.ease_factor = max(MIN_EASE_FACTOR, card.ease_factor - HARD_EASE_PENALTY)
    elif rating is Rating.good:
        card.repetition += 1
        card.interval = _next_interval(card, 1, 6, card.ease_factor)
    else:
        card.repetition += 1
        card.interval = _next_interval(card, 4, 8, card.ease_factor * EASY_INTERVAL_BONUS)
        card.ease_factor = card.ease_factor + EASY_EASE_BONUS

    card.next_review = now + timedelta(days=card.interval)
    logger.debug(
        "card_reviewed",
        card_id=card.id,
        rating=rating.name,
        previous_interval=previous_interval,
        interval=card.interval,
        repetition=card.repetition,
        ease_factor=round(card.ease_factor, 4),
    )
    return card


def get_due_cards(cards: Iterable[Card], now: datetime) -> list[Card]:
    return [card for card in cards if card.is_due(now)]


def get_new_cards(cards: Iterable[Card]) -> list[Card]:
    return [card for card in cards if card.repetition == 0]


@dataclass(frozen=True)
class RetentionStats:
    total: int
    mature: int
    young: int
    new: int


def calculate_retention_stats(cards: Iterable[Card]) -> RetentionStats:
    """Partition cards into new / mature (interval >= 21 days) / young."""

    total = mature = young = new = 0
    for card in cards:
        total += 1
        if card.repetition == 0:
            new += 1
        elif card.interval >= MATURE_INTERVAL_DAYS:
            mature += 1
        else:
            young += 1
    return RetentionStats(total=total, mature=mature, young=young, new=new)
