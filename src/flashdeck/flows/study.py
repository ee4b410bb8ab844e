"""Study session flow.

セッション構築（build_session）と、評価 → デッキへの書き戻し → 次カードへの遷移を
一括で行う StudyFlow を提供する。セッションはカードの値コピーを持つため、
評価結果をデッキへ反映し忘れると両者が食い違う。StudyFlow.rate はこの
書き戻しを必ず行う。
"""

from __future__ import annotations

from datetime import datetime

from ..clock import Clock, SystemClock
from ..errors import InvalidArgument
from ..logging import logger
from ..models.card import Card
from ..models.common import Rating, StudyMode
from ..models.deck import Deck
from ..models.session import StudySession
from ..srs import apply_review


def build_session(
    deck: Deck,
    max_cards: int,
    mode: StudyMode,
    now: datetime,
    new_card_limit: int | None = None,
) -> StudySession:
    """Select and order the cards for one sitting.

    - review: 期限到来カード（デッキ順）を先頭に、残り枠へ未学習カードを追加
    - practice: デッキ内の全カードをデッキ順に max_cards 件まで
    new_card_limit を指定すると review モードで追加する新規カード数をさらに制限する。
    """

    if max_cards < 0:
        raise InvalidArgument(f"max_cards must be >= 0, got {max_cards}")
    if new_card_limit is not None and new_card_limit < 0:
        raise InvalidArgument(f"new_card_limit must be >= 0, got {new_card_limit}")

    selected: list[Card]
    if mode is StudyMode.review:
        due = deck.get_review_cards(now)
        due_ids = {card.id for card in due}
        # brand-new cards are also due; never select a card twice
        fresh = [card for card in deck.get_new_cards() if card.id not in due_ids]
        budget = min(max(0, max_cards - len(due)), len(fresh))
        if new_card_limit is not None:
            budget = min(budget, new_card_limit)
        selected = due + fresh[:budget]
    elif mode is StudyMode.practice:
        selected = list(deck.cards)
    else:
        raise InvalidArgument(f"unknown study mode: {mode!r}")

    selected = selected[:max_cards]
    session = StudySession(
        deck_id=deck.id,
        deck_name=deck.name,
        cards=[card.model_copy(deep=True) for card in selected],
        mode=mode,
        session_start=now,
    )
    logger.info(
        "session_built",
        deck_id=deck.id,
        mode=mode.value,
        max_cards=max_cards,
        selected=len(session.cards),
    )
    return session


class StudyFlow:
    """Drives one study sitting against a deck."""

    def __init__(
        self,
        deck: Deck,
        max_cards: int,
        mode: StudyMode = StudyMode.review,
        clock: Clock | None = None,
        new_card_limit: int | None = None,
    ) -> None:
        self.deck = deck
        self.max_cards = max_cards
        self.mode = mode
        self.clock = clock or SystemClock()
        self.new_card_limit = new_card_limit
        self.session = build_session(deck, max_cards, mode, self.clock.now(), new_card_limit)

    def reveal(self) -> None:
        self.session.reveal()

    def rate(self, rating: Rating) -> Card:
        """Apply ``rating`` to the current card, write it back into the deck and advance.

        Persisting the deck is left to the caller (one save per rating).
        """

        card = self.session.current_card()
        if card is None or self.session.is_finished():
            raise InvalidArgument("no card to rate: the session is finished")
        if not self.session.showing_answer:
            raise InvalidArgument("reveal the answer before rating the card")

        now = self.clock.now()
        apply_review(card, rating, now)
        if not self.deck.replace_card(card, now):
            # card was deleted from the deck mid-session; keep going without it
            logger.warning("rated_card_missing_from_deck", deck_id=self.deck.id, card_id=card.id)
        self.session.advance()
        return card

    def restart(self) -> StudySession:
        self.session = build_session(
            self.deck, self.max_cards, self.mode, self.clock.now(), self.new_card_limit
        )
        return self.session
