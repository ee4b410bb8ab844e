from datetime import timedelta

import pytest

from flashdeck.cli.app import (
    AppState,
    Command,
    DeckSaved,
    DecksLoaded,
    ErrorOccurred,
    LoadDecksEffect,
    SaveDeckEffect,
    Screen,
    dispatch,
    execute,
    render,
    run_app,
    stats_report,
)
from flashdeck.cli.display import Display
from flashdeck.config import Settings
from flashdeck.models import StudyMode
from tests.factories import T0, FakeDeckStore, make_deck, new_card, reviewed_card


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(data_directory=tmp_path / "decks")


@pytest.fixture
def plain() -> Display:
    return Display(color=False)


def _scripted(lines: list[str]):
    remaining = list(lines)

    def _read_line(prompt: str) -> str:
        if not remaining:
            raise EOFError
        return remaining.pop(0)

    return _read_line


def _send(state: AppState, store: FakeDeckStore, text: str) -> None:
    """Dispatch one command and run its effects synchronously."""

    for effect in dispatch(state, Command(text)):
        for event in execute(store, effect):
            dispatch(state, event)


def test_review_session_end_to_end(settings, clock, plain):
    deck = make_deck([new_card("hola"), new_card("adios")])
    store = FakeDeckStore([deck])
    state = AppState(settings=settings, clock=clock)
    screens: list[str] = []

    run_app(
        state,
        store,
        plain,
        read_line=_scripted(["1", "1", "", "3", "f", "4", "", "q", "q"]),
        write=screens.append,
    )

    assert state.running is False
    saved = store.decks[deck.id]
    assert [card.repetition for card in saved.cards] == [1, 1]
    assert [card.interval for card in saved.cards] == [1, 4]
    # one save per rating
    assert store.save_calls == [deck.id, deck.id]
    output = "\n".join(screens)
    assert "Card 1 of 2" in output
    assert "Card 2 of 2" in output
    assert "You studied 2 cards from Spanish" in output


def test_save_failure_is_shown_and_session_continues(settings, clock):
    deck = make_deck([new_card("hola"), new_card("adios")])
    store = FakeDeckStore([deck], fail_saves=True)
    state = AppState(settings=settings, clock=clock, screen=Screen.deck_list)
    dispatch(state, DecksLoaded(store.load_all_decks()))

    _send(state, store, "1")
    _send(state, store, "")
    _send(state, store, "good")

    assert state.error == "disk full"
    assert state.screen is Screen.study
    assert state.flow.session.current_card().front == "adios"
    # the in-memory deck still carries the rating
    assert state.flow.deck.cards[0].repetition == 1


def test_practice_mode_from_deck_list(settings, clock):
    deck = make_deck([reviewed_card("later", due_in_days=5)])
    store = FakeDeckStore([deck])
    state = AppState(settings=settings, clock=clock, screen=Screen.deck_list)
    dispatch(state, DecksLoaded(store.load_all_decks()))

    _send(state, store, "1")
    assert state.message == "Nothing to study in Spanish right now."

    _send(state, store, "b")
    _send(state, store, "p 1")

    assert state.flow.mode is StudyMode.practice
    assert state.flow.session.current_card().front == "later"


def test_new_cards_per_day_limits_review_sessions(tmp_path, clock):
    settings = Settings(data_directory=tmp_path, study_session={"new_cards_per_day": 1})
    deck = make_deck([new_card("a", created=T0 + timedelta(minutes=1)), new_card("b", created=T0 + timedelta(minutes=1))])
    state = AppState(settings=settings, clock=clock, screen=Screen.deck_list)
    dispatch(state, DecksLoaded([deck]))

    _send(state, FakeDeckStore(), "1")

    assert [card.front for card in state.flow.session.cards] == ["a"]


def test_rating_before_flip_is_an_error(settings, clock):
    state = AppState(settings=settings, clock=clock, screen=Screen.deck_list)
    dispatch(state, DecksLoaded([make_deck([new_card("hola")])]))
    _send(state, FakeDeckStore(), "1")

    _send(state, FakeDeckStore(), "3")

    assert "flip" in state.error
    assert state.flow.session.showing_answer is False


def test_deck_manager_create_rename_delete(settings, clock):
    store = FakeDeckStore()
    state = AppState(settings=settings, clock=clock)

    run_app(
        state,
        store,
        Display(color=False),
        read_line=_scripted(["2", "n French | verbs", "r 1 French II", "d 1", "n", "d 1", "y", "q", "q"]),
        write=lambda _text: None,
    )

    assert len(store.save_calls) == 2
    assert store.deleted == store.save_calls[:1]
    assert store.decks == {}
    assert state.decks == []


def test_rename_keeps_description_when_omitted(settings, clock):
    deck = make_deck([])
    store = FakeDeckStore([deck])
    state = AppState(settings=settings, clock=clock, screen=Screen.deck_manager)
    dispatch(state, DecksLoaded(store.load_all_decks()))

    _send(state, store, "r 1 Castellano")

    assert store.decks[deck.id].name == "Castellano"
    assert store.decks[deck.id].description == "test deck"


def test_cancelled_delete_keeps_deck(settings, clock):
    deck = make_deck([])
    store = FakeDeckStore([deck])
    state = AppState(settings=settings, clock=clock, screen=Screen.deck_manager)
    dispatch(state, DecksLoaded(store.load_all_decks()))

    _send(state, store, "d 1")
    assert state.confirm is not None
    _send(state, store, "no")

    assert state.message == "Cancelled."
    assert store.deleted == []
    assert len(state.decks) == 1


def test_card_editor_add_edit_delete(settings, clock):
    deck = make_deck([])
    store = FakeDeckStore([deck])
    state = AppState(settings=settings, clock=clock, screen=Screen.deck_manager)
    dispatch(state, DecksLoaded(store.load_all_decks()))

    _send(state, store, "c 1")
    assert state.screen is Screen.card_editor

    _send(state, store, "a hola | hello")
    _send(state, store, "a missing back")
    assert "front" in state.error
    _send(state, store, "e 1 hola | hi")
    assert [card.back for card in store.decks[deck.id].cards] == ["hi"]

    _send(state, store, "d 1")
    _send(state, store, "y")
    assert store.decks[deck.id].cards == []
    assert state.message == "Card deleted."

    _send(state, store, "b")
    assert state.screen is Screen.deck_manager


def test_new_cards_use_configured_ease(tmp_path, clock):
    settings = Settings(data_directory=tmp_path, default_ease_factor=2.1)
    store = FakeDeckStore([make_deck([])])
    state = AppState(settings=settings, clock=clock, screen=Screen.deck_manager)
    dispatch(state, DecksLoaded(store.load_all_decks()))

    _send(state, store, "c 1")
    _send(state, store, "a uno | one")

    assert state.current_deck.cards[0].ease_factor == 2.1


def test_bad_numbers_report_errors(settings, clock):
    state = AppState(settings=settings, clock=clock, screen=Screen.deck_list)

    dispatch(state, Command("7"))
    assert state.error == "no deck #7"

    dispatch(state, Command("p x"))
    assert "deck number" in state.error

    dispatch(state, Command("zzz"))
    assert state.error.startswith("unknown command")


def test_quit_returns_to_menu_then_exits(settings, clock):
    state = AppState(settings=settings, clock=clock, screen=Screen.card_editor)

    dispatch(state, Command("q"))
    assert state.screen is Screen.menu
    assert state.running is True

    dispatch(state, Command("quit"))
    assert state.running is False


def test_end_of_input_stops_the_loop(settings, clock, plain):
    state = AppState(settings=settings, clock=clock)

    run_app(state, FakeDeckStore(), plain, read_line=_scripted([]), write=lambda _text: None)

    assert state.running is False


def test_execute_reports_store_failures():
    store = FakeDeckStore(fail_saves=True)
    deck = make_deck([])

    events = execute(store, SaveDeckEffect(deck))

    assert events == [ErrorOccurred("disk full")]
    assert execute(FakeDeckStore([deck]), SaveDeckEffect(deck)) == [DeckSaved(deck.id)]
    assert isinstance(execute(FakeDeckStore(), LoadDecksEffect())[0], DecksLoaded)
    with pytest.raises(TypeError):
        execute(store, object())  # type: ignore[arg-type]


def test_render_hides_progress_when_disabled(tmp_path, clock, plain):
    settings = Settings(data_directory=tmp_path, study_session={"show_progress": False})
    state = AppState(settings=settings, clock=clock, screen=Screen.deck_list)
    dispatch(state, DecksLoaded([make_deck([new_card("hola")])]))
    dispatch(state, Command("1"))

    screen = render(state, plain)

    assert "Card 1 of 1" not in screen
    assert "hola" in screen
    assert "(back)" not in screen

    dispatch(state, Command("f"))
    assert "hola (back)" in render(state, plain)


def test_deck_list_shows_counts(settings, clock, plain):
    deck = make_deck([new_card("a"), reviewed_card("b"), reviewed_card("c", due_in_days=3)])
    state = AppState(settings=settings, clock=clock, screen=Screen.deck_list)
    dispatch(state, DecksLoaded([deck]))

    screen = render(state, plain)

    assert "Spanish" in screen
    assert "3 cards · 1 new · 1 due" in screen
    assert "\033[" not in screen


def test_stats_report_lines():
    decks = [
        make_deck([new_card("a"), reviewed_card("b", interval=30)], name="Spanish"),
        make_deck([reviewed_card("c", interval=2, due_in_days=2)], name="French"),
    ]

    report = stats_report(decks, T0).splitlines()

    assert report == [
        "Spanish: 2 total · 1 new · 0 young · 1 mature",
        "French: 1 total · 0 new · 1 young · 0 mature",
        "All decks: 3 total · 1 new · 1 young · 1 mature",
        "1 reviews due now",
    ]
