"""Terminal rendering helpers.

描画は文字列を返すだけで print はしない（実行ループ側で出力する）。
color=False のときは ANSI エスケープを一切付けない。
"""

from __future__ import annotations

import textwrap

from ..models.card import Card
from ..models.common import Rating
from ..models.deck import DeckStats
from ..srs import RetentionStats


# ANSI color codes for terminal output
class Colors:
    RESET = "\033[0m"
    BOLD = "\033[1m"
    ITALIC = "\033[3m"

    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    BLUE = "\033[34m"
    MAGENTA = "\033[35m"
    CYAN = "\033[36m"

    BRIGHT_BLACK = "\033[90m"

    BG_BLUE = "\033[44m"
    WHITE = "\033[37m"


RATING_COLORS = {
    Rating.again: Colors.RED,
    Rating.hard: Colors.YELLOW,
    Rating.good: Colors.GREEN,
    Rating.easy: Colors.BLUE,
}


class Display:
    def __init__(self, color: bool = True, width: int = 60):
        self.color = color
        self.width = width

    def style(self, text: str, *codes: str) -> str:
        if not self.color or not codes:
            return text
        return "".join(codes) + text + Colors.RESET

    def banner(self, text: str) -> str:
        """Boxed title line."""
        width = len(text) + 4
        lines = [
            "┌" + "─" * width + "┐",
            "│  " + text + "  │",
            "└" + "─" * width + "┘",
        ]
        return "\n".join(self.style(line, Colors.BOLD, Colors.BLUE) for line in lines)

    def header(self, text: str) -> str:
        return self.style(f" {text.upper()} ", Colors.BG_BLUE, Colors.WHITE)

    def muted(self, text: str) -> str:
        return self.style(text, Colors.BRIGHT_BLACK, Colors.ITALIC)

    def error(self, text: str) -> str:
        return self.style(f"Error: {text}", Colors.RED, Colors.BOLD)

    def notice(self, text: str) -> str:
        return self.style(text, Colors.GREEN)

    def wrap(self, text: str, indent: int = 2) -> str:
        """Wrap text to the display width, keeping explicit line breaks."""
        lines: list[str] = []
        for line in (text or "").split("\n"):
            wrapped = textwrap.wrap(line, width=max(10, self.width - indent)) or [""]
            lines.extend(" " * indent + part for part in wrapped)
        return "\n".join(lines)

    def menu(self, options: list[str]) -> str:
        return "\n".join(f"  {self.style(str(i), Colors.CYAN)}  {option}" for i, option in enumerate(options, start=1))

    def deck_row(self, index: int, name: str, stats: DeckStats) -> str:
        counters = f"{stats.total} cards · {stats.new} new · {stats.review} due"
        return f"  {self.style(str(index), Colors.CYAN)}  {self.style(name, Colors.BOLD)}  {self.muted(counters)}"

    def card_row(self, index: int, card: Card) -> str:
        front = card.front if len(card.front) <= 40 else card.front[:37] + "..."
        state = "new" if card.is_new else f"every {card.interval}d"
        return f"  {self.style(str(index), Colors.CYAN)}  {front}  {self.muted(state)}"

    def card_face(self, card: Card, reveal: bool) -> str:
        rule = "─" * self.width
        parts = [rule, self.style("Q:", Colors.BOLD), self.wrap(card.front)]
        if reveal:
            parts += ["", self.style("A:", Colors.BOLD), self.wrap(card.back)]
        parts.append(rule)
        return "\n".join(parts)

    def rating_row(self) -> str:
        return "  ".join(
            self.style(f"[{rating.key}] {rating.label}", RATING_COLORS[rating]) for rating in Rating
        )

    def retention(self, name: str, stats: RetentionStats) -> str:
        return (
            f"{name}: {stats.total} total · {stats.new} new · "
            f"{stats.young} young · {stats.mature} mature"
        )
