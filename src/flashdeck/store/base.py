from __future__ import annotations

from typing import Protocol

from ..models.deck import Deck


class DeckStore(Protocol):
    """Persistence collaborator used by the UI layer.

    実装は失敗時に PersistenceFailure（存在しない場合は DeckNotFound）を送出する。
    load_all_decks は読み込めないデッキをスキップし、全体を失敗させない。
    """

    def save_deck(self, deck: Deck) -> None: ...

    def load_deck(self, deck_id: str) -> Deck: ...

    def load_all_decks(self) -> list[Deck]: ...

    def delete_deck(self, deck_id: str) -> None: ...

    def deck_exists(self, deck_id: str) -> bool: ...

    def list_deck_ids(self) -> list[str]: ...
