from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..clock import ensure_utc
from ..id_factory import generate_card_id
from .common import utc_now


DEFAULT_EASE_FACTOR: float = 2.5
MIN_EASE_FACTOR: float = 1.3


class Card(BaseModel):
    """A single flashcard with its spaced-repetition state.

    フィールド名は JSON 保存形式（snake_case）と一致させている。
    スケジューリング項目（interval/repetition/ease_factor/next_review/last_review）は
    srs.apply_review からのみ更新し、front/back は update_content で編集する。
    """

    model_config = ConfigDict(validate_assignment=True)

    id: str = Field(default_factory=generate_card_id, frozen=True)
    front: str = ""
    back: str = ""
    created: datetime = Field(default_factory=utc_now)
    modified: datetime = Field(default_factory=utc_now)

    interval: int = Field(default=1, ge=0, description="Days until next review / 次回復習までの日数")
    repetition: int = Field(default=0, ge=0, description="Consecutive successful reviews / 連続成功回数")
    ease_factor: float = Field(
        default=DEFAULT_EASE_FACTOR,
        description="Interval growth multiplier / 間隔の伸び率（下限 1.3）",
    )
    next_review: datetime = Field(default_factory=utc_now)
    last_review: datetime | None = None

    @field_validator("created", "modified", "next_review", "last_review")
    @classmethod
    def _as_utc(cls, value: datetime | None) -> datetime | None:
        if value is None:
            return None
        return ensure_utc(value)

    @field_validator("ease_factor")
    @classmethod
    def _clamp_ease(cls, value: float) -> float:
        # 保存済みデータも下限 1.3 に揃える（読み込み自体は失敗させない）
        return max(MIN_EASE_FACTOR, value)

    @classmethod
    def new(
        cls,
        front: str,
        back: str,
        now: datetime | None = None,
        ease_factor: float = DEFAULT_EASE_FACTOR,
    ) -> "Card":
        """Create a card that is immediately eligible for review."""

        now = now or utc_now()
        return cls(
            front=front,
            back=back,
            created=now,
            modified=now,
            interval=1,
            repetition=0,
            ease_factor=max(MIN_EASE_FACTOR, ease_factor),
            next_review=now,
        )

    @property
    def is_new(self) -> bool:
        return self.repetition == 0

    def is_due(self, now: datetime) -> bool:
        return ensure_utc(now) >= self.next_review

    def mark_modified(self, now: datetime | None = None) -> None:
        self.modified = now or utc_now()

    def update_content(self, front: str, back: str, now: datetime | None = None) -> None:
        self.front = front
        self.back = back
        self.mark_modified(now)
