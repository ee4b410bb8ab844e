"""Line-oriented terminal application.

画面遷移はグローバル変数ではなく AppState に集約し、1 イベントずつ dispatch() で
処理する。永続化は dispatch が返す Effect として要求し、実行ループが実行した
結果（DeckSaved / ErrorOccurred など）を再びイベントとして戻す。
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable, Union

from ..clock import Clock, SystemClock
from ..config import Settings
from ..errors import InvalidArgument, PersistenceFailure
from ..flows.study import StudyFlow
from ..logging import logger
from ..models.card import Card
from ..models.common import Rating, StudyMode
from ..models.deck import Deck
from ..srs import calculate_retention_stats
from ..store.base import DeckStore
from .display import Display


class Screen(str, Enum):
    menu = "menu"
    deck_list = "deck_list"
    study = "study"
    deck_manager = "deck_manager"
    card_editor = "card_editor"


# --- events ---
@dataclass
class Command:
    text: str


@dataclass
class DecksLoaded:
    decks: list[Deck]


@dataclass
class DeckSaved:
    deck_id: str


@dataclass
class DeckDeleted:
    deck_id: str


@dataclass
class ErrorOccurred:
    message: str


Event = Union[Command, DecksLoaded, DeckSaved, DeckDeleted, ErrorOccurred]


# --- effects ---
@dataclass
class LoadDecksEffect:
    pass


@dataclass
class SaveDeckEffect:
    deck: Deck


@dataclass
class DeleteDeckEffect:
    deck_id: str


Effect = Union[LoadDecksEffect, SaveDeckEffect, DeleteDeckEffect]


@dataclass
class PendingConfirm:
    prompt: str
    action: Callable[["AppState"], list[Effect]]


@dataclass
class AppState:
    settings: Settings
    clock: Clock = field(default_factory=SystemClock)
    screen: Screen = Screen.menu
    decks: list[Deck] = field(default_factory=list)
    current_deck: Deck | None = None
    flow: StudyFlow | None = None
    editor_return: Screen = Screen.deck_list
    message: str = ""
    error: str = ""
    confirm: PendingConfirm | None = None
    running: bool = True


MENU_OPTIONS = ["Study", "Manage decks", "Quit"]


# --- helpers ---
def _go_to(state: AppState, screen: Screen) -> None:
    state.screen = screen
    state.confirm = None
    if screen is not Screen.study:
        state.flow = None


def _pick(items: list, raw: str, what: str):
    try:
        index = int(raw)
    except ValueError:
        raise InvalidArgument(f"expected a {what} number, got {raw!r}") from None
    if index < 1 or index > len(items):
        raise InvalidArgument(f"no {what} #{index}")
    return items[index - 1]


def _split_pair(raw: str, first: str, second: str, require_second: bool) -> tuple[str, str]:
    left, sep, right = raw.partition("|")
    left, right = left.strip(), right.strip()
    if not left:
        raise InvalidArgument(f"{first} must not be empty")
    if require_second and (not sep or not right):
        raise InvalidArgument(f"use: <{first}> | <{second}>")
    return left, right


def _split_command(text: str) -> tuple[str, str]:
    head, _, rest = text.partition(" ")
    return head.lower(), rest.strip()


def start_study(state: AppState, deck: Deck, mode: StudyMode) -> None:
    session_cfg = state.settings.study_session
    state.current_deck = deck
    _go_to(state, Screen.study)
    state.flow = StudyFlow(
        deck,
        max_cards=session_cfg.cards_per_session,
        mode=mode,
        clock=state.clock,
        new_card_limit=session_cfg.new_cards_per_day if mode is StudyMode.review else None,
    )
    if state.flow.session.is_finished():
        state.message = f"Nothing to study in {deck.name} right now."


def _open_editor(state: AppState, deck: Deck, return_to: Screen) -> None:
    state.current_deck = deck
    state.editor_return = return_to
    _go_to(state, Screen.card_editor)


def stats_report(decks: list[Deck], now: datetime) -> str:
    """Plain-text retention summary, one line per deck plus a total."""

    plain = Display(color=False)
    lines = [plain.retention(deck.name, calculate_retention_stats(deck.cards)) for deck in decks]
    all_cards = [card for deck in decks for card in deck.cards]
    lines.append(plain.retention("All decks", calculate_retention_stats(all_cards)))
    due = sum(deck.get_card_stats(now).review for deck in decks)
    lines.append(f"{due} reviews due now")
    return "\n".join(lines)


# --- screen handlers ---
def _handle_menu(state: AppState, text: str) -> list[Effect]:
    choice = text.lower()
    if choice in {"1", "study", "s"}:
        _go_to(state, Screen.deck_list)
    elif choice in {"2", "manage", "m"}:
        _go_to(state, Screen.deck_manager)
    elif choice in {"3", "quit"}:
        state.running = False
    elif choice:
        raise InvalidArgument(f"unknown option: {text}")
    return []


def _handle_deck_list(state: AppState, text: str) -> list[Effect]:
    command, rest = _split_command(text)
    if not command:
        return []
    if command.isdigit():
        start_study(state, _pick(state.decks, command, "deck"), StudyMode.review)
    elif command == "p":
        start_study(state, _pick(state.decks, rest, "deck"), StudyMode.practice)
    elif command == "e":
        _open_editor(state, _pick(state.decks, rest, "deck"), Screen.deck_list)
    elif command == "n":
        _go_to(state, Screen.deck_manager)
    elif command == "s":
        state.message = stats_report(state.decks, state.clock.now())
    elif command == "r":
        return [LoadDecksEffect()]
    elif command == "b":
        _go_to(state, Screen.menu)
    else:
        raise InvalidArgument(f"unknown command: {text}")
    return []


def _handle_study(state: AppState, text: str) -> list[Effect]:
    flow = state.flow
    if flow is None:
        _go_to(state, Screen.deck_list)
        return []
    command = text.lower()
    if command == "b":
        _go_to(state, Screen.deck_list)
        return []

    session = flow.session
    if session.is_finished():
        if command == "r":
            flow.restart()
            if flow.session.is_finished():
                state.message = "Nothing left to study."
        elif command == "":
            _go_to(state, Screen.deck_list)
        else:
            raise InvalidArgument("session complete: press Enter to return or r to restart")
        return []

    if not session.showing_answer:
        if command in {"", "f", "space"}:
            flow.reveal()
            return []
        raise InvalidArgument("press Enter or f to flip the card")

    rating = Rating.parse(command) if command else Rating.good
    flow.rate(rating)
    return [SaveDeckEffect(flow.deck)]


def _handle_deck_manager(state: AppState, text: str) -> list[Effect]:
    command, rest = _split_command(text)
    now = state.clock.now()
    if not command:
        return []
    if command == "n":
        name, description = _split_pair(rest, "name", "description", require_second=False)
        deck = Deck.new(name, description, now)
        state.decks.append(deck)
        state.message = f"Created deck {name}."
        return [SaveDeckEffect(deck)]
    if command == "r":
        index, _, pair = rest.partition(" ")
        deck = _pick(state.decks, index, "deck")
        name, description = _split_pair(pair, "name", "description", require_second=False)
        deck.update_info(name, description or deck.description, now)
        state.message = f"Updated deck {name}."
        return [SaveDeckEffect(deck)]
    if command == "d":
        deck = _pick(state.decks, rest, "deck")

        def _delete(_state: AppState) -> list[Effect]:
            return [DeleteDeckEffect(deck.id)]

        state.confirm = PendingConfirm(f"Delete deck {deck.name!r} and its {len(deck.cards)} cards? (y/n)", _delete)
        return []
    if command == "c":
        _open_editor(state, _pick(state.decks, rest, "deck"), Screen.deck_manager)
        return []
    if command == "b":
        _go_to(state, Screen.menu)
        return []
    raise InvalidArgument(f"unknown command: {text}")


def _handle_card_editor(state: AppState, text: str) -> list[Effect]:
    deck = state.current_deck
    if deck is None:
        _go_to(state, Screen.deck_manager)
        return []
    command, rest = _split_command(text)
    now = state.clock.now()
    if not command:
        return []
    if command == "a":
        front, back = _split_pair(rest, "front", "back", require_second=True)
        deck.add_card(Card.new(front, back, now, ease_factor=state.settings.default_ease_factor), now)
        state.message = "Card added."
        return [SaveDeckEffect(deck)]
    if command == "e":
        index, _, pair = rest.partition(" ")
        card = _pick(deck.cards, index, "card")
        front, back = _split_pair(pair, "front", "back", require_second=True)
        card.update_content(front, back, now)
        deck.mark_modified(now)
        state.message = "Card updated."
        return [SaveDeckEffect(deck)]
    if command == "d":
        card = _pick(deck.cards, rest, "card")

        def _delete(_state: AppState) -> list[Effect]:
            deck.remove_card(card.id, _state.clock.now())
            _state.message = "Card deleted."
            return [SaveDeckEffect(deck)]

        state.confirm = PendingConfirm(f"Delete card {card.front!r}? (y/n)", _delete)
        return []
    if command == "b":
        _go_to(state, state.editor_return)
        return []
    raise InvalidArgument(f"unknown command: {text}")


SCREEN_HANDLERS: dict[Screen, Callable[[AppState, str], list[Effect]]] = {
    Screen.menu: _handle_menu,
    Screen.deck_list: _handle_deck_list,
    Screen.study: _handle_study,
    Screen.deck_manager: _handle_deck_manager,
    Screen.card_editor: _handle_card_editor,
}


def dispatch(state: AppState, event: Event) -> list[Effect]:
    """Apply one event to the application state and return requested effects."""

    if isinstance(event, DecksLoaded):
        state.decks = sorted(event.decks, key=lambda deck: deck.name.lower())
        return []
    if isinstance(event, DeckSaved):
        return []
    if isinstance(event, DeckDeleted):
        state.decks = [deck for deck in state.decks if deck.id != event.deck_id]
        if state.current_deck is not None and state.current_deck.id == event.deck_id:
            state.current_deck = None
        state.message = "Deck deleted."
        return []
    if isinstance(event, ErrorOccurred):
        state.error = event.message
        return []

    state.message = ""
    state.error = ""
    text = event.text.strip()

    if state.confirm is not None:
        pending, state.confirm = state.confirm, None
        if text.lower() in {"y", "yes"}:
            return pending.action(state)
        state.message = "Cancelled."
        return []

    if text.lower() in {"q", "quit"}:
        if state.screen is Screen.menu:
            state.running = False
        else:
            _go_to(state, Screen.menu)
        return []

    try:
        return SCREEN_HANDLERS[state.screen](state, text)
    except InvalidArgument as exc:
        state.error = str(exc)
        return []


def execute(store: DeckStore, effect: Effect) -> list[Event]:
    """Run one effect against the store and report its completion as events."""

    try:
        if isinstance(effect, LoadDecksEffect):
            return [DecksLoaded(store.load_all_decks())]
        if isinstance(effect, SaveDeckEffect):
            store.save_deck(effect.deck)
            return [DeckSaved(effect.deck.id)]
        if isinstance(effect, DeleteDeckEffect):
            store.delete_deck(effect.deck_id)
            return [DeckDeleted(effect.deck_id)]
    except PersistenceFailure as exc:
        logger.error(
            "effect_failed",
            effect=type(effect).__name__,
            error_type=type(exc).__name__,
            error_message=str(exc),
        )
        return [ErrorOccurred(str(exc))]
    raise TypeError(f"unknown effect: {effect!r}")


# --- rendering ---
def _render_study(state: AppState, display: Display) -> list[str]:
    flow = state.flow
    if flow is None:
        return []
    session = flow.session
    if session.is_finished():
        return [
            display.header("Session complete"),
            f"You studied {session.cards_studied} cards from {session.deck_name}",
            display.muted("Enter: back to deck list · r: restart session"),
        ]
    card = session.current_card()
    lines: list[str] = []
    if state.settings.study_session.show_progress:
        current, total = session.progress()
        lines.append(display.muted(f"Card {current} of {total}"))
    lines.append(display.header(session.deck_name))
    lines.append(display.card_face(card, reveal=session.showing_answer))
    if session.showing_answer:
        lines.append(display.rating_row())
        lines.append(display.muted("1-4 or a rating name to rate (Enter = Good) · b: back"))
    else:
        lines.append(display.muted("Enter or f to flip the card · b: back"))
    return lines


def render(state: AppState, display: Display) -> str:
    lines: list[str] = []
    now = state.clock.now()
    if state.screen is Screen.menu:
        lines += [display.banner("flashdeck"), display.menu(MENU_OPTIONS)]
    elif state.screen is Screen.deck_list:
        lines.append(display.header("Decks"))
        if not state.decks:
            lines.append(display.muted("  No decks yet. Press n to create one."))
        lines += [display.deck_row(i, deck.name, deck.get_card_stats(now)) for i, deck in enumerate(state.decks, 1)]
        lines.append(display.muted("N: review · p N: practice · e N: edit cards · n: new deck · s: stats · b: back"))
    elif state.screen is Screen.study:
        lines += _render_study(state, display)
    elif state.screen is Screen.deck_manager:
        lines.append(display.header("Manage decks"))
        for i, deck in enumerate(state.decks, 1):
            lines.append(display.deck_row(i, deck.name, deck.get_card_stats(now)))
            if deck.description:
                lines.append(display.muted(f"     {deck.description}"))
        lines.append(
            display.muted("n name | desc · r N name | desc · d N: delete · c N: cards · b: back")
        )
    elif state.screen is Screen.card_editor and state.current_deck is not None:
        lines.append(display.header(f"Cards · {state.current_deck.name}"))
        if not state.current_deck.cards:
            lines.append(display.muted("  No cards yet."))
        lines += [display.card_row(i, card) for i, card in enumerate(state.current_deck.cards, 1)]
        lines.append(display.muted("a front | back · e N front | back · d N: delete · b: back"))

    if state.message:
        lines.append(display.notice(state.message))
    if state.error:
        lines.append(display.error(state.error))
    if state.confirm is not None:
        lines.append(state.confirm.prompt)
    return "\n".join(lines)


def run_app(
    state: AppState,
    store: DeckStore,
    display: Display,
    read_line: Callable[[str], str] = input,
    write: Callable[[str], None] = print,
    initial_effects: list[Effect] | None = None,
) -> AppState:
    """Event loop: one command at a time, effects executed between commands."""

    pending: deque[Event] = deque()
    for effect in initial_effects if initial_effects is not None else [LoadDecksEffect()]:
        pending.extend(execute(store, effect))

    while state.running:
        while pending:
            for effect in dispatch(state, pending.popleft()):
                pending.extend(execute(store, effect))
        if not state.running:
            break
        write(render(state, display))
        try:
            line = read_line("> ")
        except (EOFError, KeyboardInterrupt):
            state.running = False
            break
        pending.append(Command(line))
    return state
