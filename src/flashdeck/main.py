"""flashdeck command line entry point."""

from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path

from pydantic import ValidationError

from .cli.app import AppState, DecksLoaded, dispatch, run_app, start_study, stats_report
from .cli.display import Display
from .clock import SystemClock
from .config import CONFIG_FILE_ENV, config_file_path, load_settings
from .errors import InvalidArgument, PersistenceFailure
from .logging import configure_logging, logger
from .models.common import StudyMode
from .store import create_store


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="flashdeck", description="Terminal flashcards with spaced repetition.")
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help=f"JSON config file (default: {config_file_path()})",
    )
    parser.add_argument("--data-dir", type=Path, default=None, help="Directory holding deck JSON files.")
    parser.add_argument("--log-level", default=None, help="DEBUG, INFO, WARNING (default), ERROR.")
    parser.add_argument("--log-file", default=None, help="Write JSON logs to this file instead of stderr.")
    parser.add_argument("--no-color", action="store_true", help="Disable ANSI colors.")

    sub = parser.add_subparsers(dest="command")
    sub.add_parser("tui", help="Interactive application (default).")

    stats = sub.add_parser("stats", help="Print retention statistics.")
    stats.add_argument("deck_id", nargs="?", default=None)

    study = sub.add_parser("study", help="Start a study session for one deck.")
    study.add_argument("deck_id")
    study.add_argument("--mode", choices=[mode.value for mode in StudyMode], default=StudyMode.review.value)
    study.add_argument("--max-cards", type=int, default=None)

    sub.add_parser("init-config", help="Write the current settings to the config file.")
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    # Settings は生成時に設定ファイルの場所を読むため、先に環境変数を上書きしておく。
    if args.config is not None:
        os.environ[CONFIG_FILE_ENV] = str(args.config)

    try:
        settings = load_settings(
            data_directory=args.data_dir,
            log_level=args.log_level,
            log_file=args.log_file,
        )
    except ValidationError as exc:
        print(f"Error loading config: {exc}", file=sys.stderr)
        return 1
    configure_logging(settings.log_level, settings.log_file)

    if args.command == "init-config":
        path = settings.save()
        print(f"Wrote {path}")
        return 0

    try:
        store = create_store(settings)
    except PersistenceFailure as exc:
        print(f"Error initializing storage: {exc}", file=sys.stderr)
        return 1

    clock = SystemClock()
    if args.command == "stats":
        try:
            decks = [store.load_deck(args.deck_id)] if args.deck_id else store.load_all_decks()
        except (PersistenceFailure, InvalidArgument) as exc:
            print(f"Error: {exc}", file=sys.stderr)
            return 1
        print(stats_report(decks, clock.now()))
        return 0

    display = Display(color=not args.no_color and sys.stdout.isatty())
    state = AppState(settings=settings, clock=clock)

    if args.command == "study":
        try:
            deck = store.load_deck(args.deck_id)
        except (PersistenceFailure, InvalidArgument) as exc:
            print(f"Error: {exc}", file=sys.stderr)
            return 1
        if args.max_cards is not None:
            settings.study_session.cards_per_session = args.max_cards
        dispatch(state, DecksLoaded([deck]))
        try:
            start_study(state, deck, StudyMode(args.mode))
        except ValueError as exc:
            print(f"Error: {exc}", file=sys.stderr)
            return 1
        run_app(state, store, display, initial_effects=[])
        return 0

    logger.info("app_started", data_dir=str(settings.expanded_data_dir()))
    run_app(state, store, display)
    return 0


if __name__ == "__main__":
    sys.exit(main())
