from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum, IntEnum

from ..errors import InvalidArgument


def utc_now() -> datetime:
    return datetime.now(UTC)


class Rating(IntEnum):
    """Recall quality reported by the user, ordered worst to best.

    学習者の想起評価。キー 1..4 がそれぞれ again/hard/good/easy に対応する。
    """

    again = 0
    hard = 1
    good = 2
    easy = 3

    @property
    def label(self) -> str:
        return self.name.capitalize()

    @property
    def key(self) -> str:
        return str(self.value + 1)

    @classmethod
    def parse(cls, raw: str) -> "Rating":
        """Parse a key ("1".."4") or a case-insensitive rating name."""

        text = (raw or "").strip().lower()
        if text.isdigit():
            index = int(text) - 1
            if 0 <= index < len(cls):
                return cls(index)
        for member in cls:
            if member.name == text:
                return member
        raise InvalidArgument(f"unknown rating: {raw!r} (use 1-4 or again/hard/good/easy)")


class StudyMode(str, Enum):
    review = "review"
    practice = "practice"


class StudyState(str, Enum):
    presenting = "presenting"
    revealed = "revealed"
    complete = "complete"
