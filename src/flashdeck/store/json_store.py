from __future__ import annotations

import os
import re
import shutil
import tempfile
from datetime import UTC, datetime
from pathlib import Path

from pydantic import ValidationError

from ..errors import DeckNotFound, InvalidArgument, PersistenceFailure
from ..logging import logger
from ..models.deck import Deck


_DECK_ID_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._:-]*$")


class JSONDeckStore:
    """Deck store keeping one indented JSON file per deck.

    - ファイル名は `<deck_id>.json`
    - 書き込みは一時ファイル経由の os.replace で原子的に行う
    - backup_dir 指定時は上書き前の旧ファイルを `<deck_id>.<timestamp>.json` として退避
    """

    def __init__(self, data_dir: str | Path, backup_dir: str | Path | None = None) -> None:
        self.data_dir = Path(data_dir)
        self.backup_dir = Path(backup_dir) if backup_dir else None
        self._ensure_dirs()

    # --- low-level helpers ---
    def _ensure_dirs(self) -> None:
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            if self.backup_dir is not None:
                self.backup_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise PersistenceFailure(f"failed to create data directory {self.data_dir}: {exc}") from exc

    def _deck_path(self, deck_id: str) -> Path:
        if not _DECK_ID_PATTERN.match(deck_id or "") or deck_id in {".", ".."}:
            raise InvalidArgument(f"invalid deck id: {deck_id!r}")
        return self.data_dir / f"{deck_id}.json"

    def _backup(self, path: Path, deck_id: str) -> None:
        if self.backup_dir is None or not path.exists():
            return
        stamp = datetime.now(UTC).strftime("%Y%m%dT%H%M%S%f")
        shutil.copy2(path, self.backup_dir / f"{deck_id}.{stamp}.json")

    # --- public API ---
    def save_deck(self, deck: Deck) -> None:
        path = self._deck_path(deck.id)
        payload = deck.model_dump_json(indent=2)
        tmp_name: str | None = None
        try:
            self._backup(path, deck.id)
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=self.data_dir,
                prefix=f".{deck.id}.",
                suffix=".tmp",
                delete=False,
            ) as tmp:
                tmp_name = tmp.name
                tmp.write(payload)
                tmp.write("\n")
            os.replace(tmp_name, path)
        except OSError as exc:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            logger.error("deck_save_failed", deck_id=deck.id, error_type=type(exc).__name__, error_message=str(exc))
            raise PersistenceFailure(f"failed to write deck file: {exc}") from exc
        logger.info("deck_saved", deck_id=deck.id, cards=len(deck.cards), path=str(path))

    def load_deck(self, deck_id: str) -> Deck:
        path = self._deck_path(deck_id)
        if not path.is_file():
            raise DeckNotFound(deck_id)
        try:
            raw = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise PersistenceFailure(f"failed to read deck file: {exc}") from exc
        try:
            return Deck.model_validate_json(raw)
        except ValidationError as exc:
            raise PersistenceFailure(f"failed to decode deck {deck_id}: {exc}") from exc

    def load_all_decks(self) -> list[Deck]:
        decks: list[Deck] = []
        for deck_id in self.list_deck_ids():
            try:
                decks.append(self.load_deck(deck_id))
            except (PersistenceFailure, InvalidArgument) as exc:
                # 壊れたファイルは読み飛ばして残りのデッキを返す
                logger.warning(
                    "deck_load_skipped",
                    deck_id=deck_id,
                    error_type=type(exc).__name__,
                    error_message=str(exc),
                )
        logger.info("decks_loaded", count=len(decks), data_dir=str(self.data_dir))
        return decks

    def delete_deck(self, deck_id: str) -> None:
        path = self._deck_path(deck_id)
        if not path.is_file():
            raise DeckNotFound(deck_id)
        try:
            self._backup(path, deck_id)
            path.unlink()
        except OSError as exc:
            raise PersistenceFailure(f"failed to delete deck file: {exc}") from exc
        logger.info("deck_deleted", deck_id=deck_id)

    def deck_exists(self, deck_id: str) -> bool:
        return self._deck_path(deck_id).is_file()

    def list_deck_ids(self) -> list[str]:
        try:
            return sorted(path.stem for path in self.data_dir.glob("*.json") if path.is_file())
        except OSError as exc:
            raise PersistenceFailure(f"failed to list deck files: {exc}") from exc
