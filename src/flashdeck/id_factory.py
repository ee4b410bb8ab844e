"""ID 生成ユーティリティ。

カード/デッキの ID は作成時に一度だけ採番し、以後は変更しない。
デッキ ID はそのまま JSON ファイル名になるため、パス区切りを含まない
UUID 文字列を使う。
"""

from __future__ import annotations

import uuid


def generate_card_id() -> str:
    return str(uuid.uuid4())


def generate_deck_id() -> str:
    """Return a new deck identifier (plain UUID4 string)."""

    return str(uuid.uuid4())
