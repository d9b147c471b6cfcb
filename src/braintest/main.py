"""CLI entrypoint for the animal-naming self-test."""

from __future__ import annotations

import argparse
import logging
from collections.abc import Callable
from pathlib import Path

from . import __version__
from .config import Settings
from .images import ImageReference, LoadProgress, LoadState
from .models import MIXED, Difficulty, DifficultySelector, TestConfiguration, TestMode
from .service import NamingTestService, PreparedItem

InputFn = Callable[[str], str]
PrintFn = Callable[[str], None]
FLOW_EXIT_COMMANDS = {":quit", ":exit", ":q"}
RELOAD_COMMANDS = {":reload", ":r"}
MENU_QUIT_COMMANDS = {"q"}
MAX_ITEM_COUNT = 20

MODE_CHOICES = {
    "1": TestMode.FIXED,
    "2": TestMode.EXTENDED,
    "3": TestMode.ADAPTIVE,
    "4": TestMode.RANDOM,
}
DIFFICULTY_CHOICES: dict[str, DifficultySelector] = {
    "1": Difficulty.EASY,
    "2": Difficulty.MEDIUM,
    "3": Difficulty.HARD,
    "m": MIXED,
}


class QuitApp(Exception):
    """Signal immediate app exit from nested flows."""


def _service(db_path: Path | None = None) -> NamingTestService:
    """Create app service with the configured (or overridden) database path."""
    settings = Settings()
    if db_path is not None:
        settings = settings.model_copy(update={"db_path": db_path})
    return NamingTestService(settings=settings)


def run(argv: list[str] | None = None) -> int:
    """Run the CLI application."""
    parser = argparse.ArgumentParser(prog="braintest", description="Animal naming self-test")
    parser.add_argument("command", nargs="?", default="play", choices=["play", "stats", "reset", "clear-cache"])
    parser.add_argument("--db", type=Path, default=None, help="Path of the local progress database")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    args = parser.parse_args(argv)
    _configure_logging(Settings())

    if args.command == "play":
        return play_shell(db_path=args.db)

    service = _service(args.db)
    try:
        if args.command == "stats":
            _print_stats(service, print)
        elif args.command == "reset":
            service.reset_progress()
            print("Progress reset.")
        elif args.command == "clear-cache":
            removed = service.clear_image_cache()
            print(f"Removed {removed} cached image(s).")
        return 0
    finally:
        service.close()


def play_shell(input_fn: InputFn = input, print_fn: PrintFn = print, db_path: Path | None = None) -> int:
    """Run the interactive naming test loop."""
    service = _service(db_path)
    try:
        while True:
            print_fn("\n=== Animal Naming ===")
            _print_stats(service, print_fn)
            print_fn("1) Start a test")
            print_fn(f"2) Start recommended test ({_describe_config(service.recommended_configuration())})")
            print_fn("q) Quit")
            choice = input_fn("Choose: ").strip().lower()

            if choice in MENU_QUIT_COMMANDS:
                return 0
            try:
                if choice == "1":
                    config = _configure_flow(input_fn, print_fn)
                    if config is not None:
                        _run_session(service, config, input_fn, print_fn)
                elif choice == "2":
                    _run_session(service, service.recommended_configuration(), input_fn, print_fn)
                else:
                    print_fn("Invalid choice.")
            except QuitApp:
                return 0
    finally:
        service.close()


def _print_stats(service: NamingTestService, print_fn: PrintFn) -> None:
    stats = service.stats()
    print_fn(
        f"Tests: {stats.test_count} | Seen: {stats.seen_count} | Correct: {stats.correct_count} "
        f"| Accuracy: {stats.accuracy:.0%} | Skill: {stats.skill_estimate:.1f}"
    )


def _describe_config(config: TestConfiguration) -> str:
    difficulty = config.difficulty.name.lower() if isinstance(config.difficulty, Difficulty) else config.difficulty
    return f"{config.mode.value}, {config.item_count} animals, {difficulty}"


def _configure_flow(input_fn: InputFn, print_fn: PrintFn) -> TestConfiguration | None:
    """Ask for mode, item count and difficulty."""
    print_fn("\nMode")
    print_fn("1) Fixed (Lion, Camel, Rhinoceros)")
    print_fn("2) Extended (familiar and unfamiliar animals)")
    print_fn("3) Adaptive (follows your skill level)")
    print_fn("4) Random")
    mode = MODE_CHOICES.get(input_fn("Mode: ").strip().lower())
    if mode is None:
        print_fn("Invalid mode.")
        return None
    if mode is TestMode.FIXED:
        return TestConfiguration(mode=mode, item_count=3)

    raw_count = input_fn(f"How many animals (1-{MAX_ITEM_COUNT}): ").strip()
    if not raw_count.isdigit() or not 1 <= int(raw_count) <= MAX_ITEM_COUNT:
        print_fn("Invalid count.")
        return None

    difficulty: DifficultySelector = MIXED
    if mode is not TestMode.ADAPTIVE:
        selected = DIFFICULTY_CHOICES.get(input_fn("Difficulty (1 easy, 2 medium, 3 hard, m mixed): ").strip().lower())
        if selected is None:
            print_fn("Invalid difficulty.")
            return None
        difficulty = selected
    return TestConfiguration(mode=mode, item_count=int(raw_count), difficulty=difficulty)


def _run_session(
    service: NamingTestService, config: TestConfiguration, input_fn: InputFn, print_fn: PrintFn
) -> None:
    """Load images, collect one answer per item and print the graded result."""
    print_fn("\nPreparing your test...")

    def report(progress: LoadProgress) -> None:
        if progress.state is not LoadState.LOADING:
            print_fn(f"  [{progress.fraction:>4.0%}] {progress.item.name}: {progress.state.value}")

    prepared = service.start_session(config, on_progress=report)
    if not prepared:
        print_fn("No animals match this configuration.")
        return

    answers: list[str] = []
    for index, entry in enumerate(prepared, start=1):
        answers.append(_ask_item(service, entry, index, len(prepared), input_fn, print_fn))

    result = service.finish_session([entry.item for entry in prepared], answers, config)
    print_fn("\n=== Result ===")
    for graded in result.answers:
        mark = "correct" if graded.correct else f"incorrect (it was {graded.item.name})"
        print_fn(f"{graded.item.name}: {graded.answer or '-'} -> {mark}")
    print_fn(f"Score: {result.raw_score}/{result.max_score} | Difficulty-adjusted: {result.score}")


def _ask_item(
    service: NamingTestService,
    entry: PreparedItem,
    index: int,
    total: int,
    input_fn: InputFn,
    print_fn: PrintFn,
) -> str:
    while True:
        print_fn(f"\nAnimal {index}/{total}: {_describe_image(entry.image)}")
        answer = input_fn("Name this animal (:reload for another picture, :quit to exit): ").strip()
        lowered = answer.lower()
        if lowered in FLOW_EXIT_COMMANDS:
            raise QuitApp()
        if lowered in RELOAD_COMMANDS:
            if not service.reload_image(entry):
                print_fn("No different picture available.")
            continue
        if not answer:
            print_fn("Please type an answer.")
            continue
        return answer


def _describe_image(image: ImageReference) -> str:
    if image.is_bundled and image.asset is not None:
        return f"bundled image {image.asset.resource}"
    return f"{image.url} ({image.source.value})"


def _configure_logging(settings: Settings) -> None:
    logging.basicConfig(level=settings.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


def main_entry() -> None:
    """Console-script entrypoint."""
    raise SystemExit(run())
