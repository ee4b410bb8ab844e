from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from ..errors import InvalidArgument
from .card import Card
from .common import StudyMode, StudyState, utc_now


@dataclass
class StudySession:
    """In-memory selection of cards for one sitting, plus a cursor.

    セッションは構築時点のカードの値コピーを保持する（デッキへの参照ではない）。
    状態遷移: presenting → (reveal) → revealed → (advance) → presenting | complete。
    complete は終端状態で、やり直す場合は新しいセッションを構築する。
    """

    deck_id: str
    deck_name: str
    cards: list[Card] = field(default_factory=list)
    mode: StudyMode = StudyMode.review
    session_start: datetime = field(default_factory=utc_now)
    current_index: int = 0
    showing_answer: bool = False
    cards_studied: int = 0
    state: StudyState = StudyState.presenting

    def __post_init__(self) -> None:
        if not self.cards:
            self.state = StudyState.complete

    def current_card(self) -> Card | None:
        if self.current_index < 0 or self.current_index >= len(self.cards):
            return None
        return self.cards[self.current_index]

    def card_at(self, index: int) -> Card:
        if index < 0 or index >= len(self.cards):
            raise InvalidArgument(f"session index {index} out of range (0..{len(self.cards) - 1})")
        return self.cards[index]

    def reveal(self) -> None:
        if self.state is StudyState.complete:
            return
        self.showing_answer = True
        self.state = StudyState.revealed

    def advance(self) -> bool:
        """Move past the current (already rated) card.

        Returns True when another card is now presented, False when the
        session has just completed.
        """

        if self.state is not StudyState.revealed:
            raise InvalidArgument(f"cannot advance a session in state {self.state.value}")
        self.showing_answer = False
        self.cards_studied += 1
        if self.current_index < len(self.cards) - 1:
            self.current_index += 1
            self.state = StudyState.presenting
            return True
        self.current_index = len(self.cards)
        self.state = StudyState.complete
        return False

    def is_finished(self) -> bool:
        return self.state is StudyState.complete or not self.cards

    def progress(self) -> tuple[int, int]:
        """(1-based position of the current card, total cards)."""

        return min(self.current_index + 1, len(self.cards)), len(self.cards)

    def remaining(self) -> int:
        return max(0, len(self.cards) - self.current_index - 1)

    def sync_card(self, card: Card) -> bool:
        """Refresh the session's snapshot of ``card`` (matched by id)."""

        for index, existing in enumerate(self.cards):
            if existing.id == card.id:
                self.cards[index] = card.model_copy(deep=True)
                return True
        return False
