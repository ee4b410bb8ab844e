"""Exceptions shared by the scheduling core, the store and the UI.

コア（スケジューラ/セッション構築）は正しい入力に対して例外を投げない。
不正な引数は InvalidArgument、永続化の失敗は PersistenceFailure として
呼び出し側へ区別して伝える。
"""

from __future__ import annotations


class InvalidArgument(ValueError):
    """Raised when a caller passes a value outside an operation's domain."""


class PersistenceFailure(RuntimeError):
    """Raised by deck stores when reading or writing a deck fails.

    UI 層はこの例外をそのままエラーメッセージとして表示する。自動リトライは行わない。
    """


class DeckNotFound(PersistenceFailure):
    def __init__(self, deck_id: str) -> None:
        super().__init__(f"deck with ID {deck_id} not found")
        self.deck_id = deck_id
