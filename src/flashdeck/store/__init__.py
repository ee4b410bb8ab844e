from __future__ import annotations

from ..config import Settings
from ..errors import PersistenceFailure
from .base import DeckStore
from .json_store import JSONDeckStore


def create_store(settings: Settings) -> JSONDeckStore:
    """設定からデッキストアを構築する。

    auto_create_data_dir が無効で、データディレクトリが存在しない場合は
    ディレクトリを勝手に作らずエラーにする。
    """

    data_dir = settings.expanded_data_dir()
    if not settings.auto_create_data_dir and not data_dir.is_dir():
        raise PersistenceFailure(f"data directory does not exist: {data_dir}")
    return JSONDeckStore(data_dir, backup_dir=settings.expanded_backup_dir())


__all__ = ["DeckStore", "JSONDeckStore", "create_store"]
