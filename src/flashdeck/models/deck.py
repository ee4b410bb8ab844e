from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..clock import ensure_utc
from ..errors import InvalidArgument
from ..id_factory import generate_deck_id
from .card import Card
from .common import utc_now


@dataclass(frozen=True)
class DeckStats:
    """Counters shown next to each deck in the deck list."""

    total: int
    new: int
    review: int


class Deck(BaseModel):
    """An ordered, named collection of cards.

    カードは値としてデッキに所有される（デッキ間共有なし）。カード ID は
    デッキ内で一意であり、構造変更のたびに modified を更新する。
    """

    model_config = ConfigDict(validate_assignment=True)

    id: str = Field(default_factory=generate_deck_id, frozen=True)
    name: str = Field(min_length=1)
    description: str = ""
    cards: list[Card] = Field(default_factory=list)
    created: datetime = Field(default_factory=utc_now)
    modified: datetime = Field(default_factory=utc_now)

    @field_validator("created", "modified")
    @classmethod
    def _as_utc(cls, value: datetime) -> datetime:
        return ensure_utc(value)

    @field_validator("cards")
    @classmethod
    def _unique_card_ids(cls, cards: list[Card]) -> list[Card]:
        seen: set[str] = set()
        for card in cards:
            if card.id in seen:
                raise ValueError(f"duplicate card id in deck: {card.id}")
            seen.add(card.id)
        return cards

    @classmethod
    def new(cls, name: str, description: str = "", now: datetime | None = None) -> "Deck":
        now = now or utc_now()
        return cls(name=name, description=description, created=now, modified=now)

    def mark_modified(self, now: datetime | None = None) -> None:
        self.modified = now or utc_now()

    def update_info(self, name: str, description: str, now: datetime | None = None) -> None:
        if not name.strip():
            raise InvalidArgument("deck name must not be empty")
        self.name = name
        self.description = description
        self.mark_modified(now)

    # --- cards ---
    def add_card(self, card: Card, now: datetime | None = None) -> None:
        if self.get_card(card.id) is not None:
            raise InvalidArgument(f"card {card.id} already exists in deck {self.id}")
        # list.append bypasses validate_assignment, uniqueness is checked above
        self.cards.append(card)
        self.mark_modified(now)

    def remove_card(self, card_id: str, now: datetime | None = None) -> bool:
        for index, card in enumerate(self.cards):
            if card.id == card_id:
                del self.cards[index]
                self.mark_modified(now)
                return True
        return False

    def get_card(self, card_id: str) -> Card | None:
        """Return the deck's own card object (not a copy)."""

        for card in self.cards:
            if card.id == card_id:
                return card
        return None

    def replace_card(self, card: Card, now: datetime | None = None) -> bool:
        """Write a value copy of ``card`` over the deck card with the same id."""

        for index, existing in enumerate(self.cards):
            if existing.id == card.id:
                self.cards[index] = card.model_copy(deep=True)
                self.mark_modified(now)
                return True
        return False

    def get_review_cards(self, now: datetime) -> list[Card]:
        return [card for card in self.cards if card.is_due(now)]

    def get_new_cards(self) -> list[Card]:
        return [card for card in self.cards if card.is_new]

    def get_card_stats(self, now: datetime) -> DeckStats:
        new = 0
        review = 0
        for card in self.cards:
            if card.is_new:
                new += 1
            elif card.is_due(now):
                review += 1
        return DeckStats(total=len(self.cards), new=new, review=review)
