"""Console-driven player for story projects."""
from __future__ import annotations

import argparse
import logging
import secrets
import sys
from pathlib import Path
from typing import Callable, List, Literal, Sequence, Union

from taleflow.core.log import setup_logging
from taleflow.core.rng import RNG
from taleflow.data import DataError, get_sample_project_path, load_project
from taleflow.domain.defs import ProjectDef
from taleflow.domain.state import RunState
from taleflow.presentation.cli.config import load_config, save_config
from taleflow.presentation.cli.render import (
    debug_enabled,
    render_choices,
    render_story_node,
    render_variables,
)
from taleflow.services import StoryRuntime

logger = logging.getLogger(__name__)

MenuAction = Literal["back", "restart", "variables", "quit"]
Action = Union[int, MenuAction]

_COMMANDS = {"b": "back", "r": "restart", "v": "variables", "q": "quit"}
_MAX_RANDOM_SEED = 2**31 - 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="taleflow",
        description="Play a branching story project in the terminal",
    )
    parser.add_argument(
        "project",
        nargs="?",
        type=Path,
        help="Project JSON document (defaults to the bundled sample)",
    )
    parser.add_argument("--start", dest="start_node", help="Node id to start from")
    parser.add_argument("--board", dest="board_id", help="Board whose start node begins the run")
    parser.add_argument("--seed", type=int, help="Seed for Math.random in scripts")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Console log level",
    )
    parser.add_argument("--log-file", type=Path, help="Also write logs to this file")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Start the interactive CLI session."""
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level, args.log_file)
    config = load_config()

    project_path = args.project or get_sample_project_path()
    try:
        project = load_project(project_path)
    except DataError as exc:
        logger.error("Could not load project %s: %s", project_path, exc)
        print(f"Could not load project: {exc}", file=sys.stderr)
        return 1

    if args.board_id is not None and args.board_id not in project.board_ids():
        print(
            f"Unknown board '{args.board_id}'. Boards: {', '.join(project.board_ids())}",
            file=sys.stderr,
        )
        return 1

    rng = RNG(args.seed if args.seed is not None else secrets.randbelow(_MAX_RANDOM_SEED))
    runtime = StoryRuntime(
        project,
        max_auto_advance=int(config["max_auto_advance"]),
        rng=rng,
    )
    _render_title(project)
    print(f"Story started with seed: {rng.seed}")

    def _remember_variables_panel(shown: bool) -> None:
        config["show_variables"] = shown
        save_config(config)

    state = runtime.start(args.start_node, board_id=args.board_id)
    run_story_loop(
        runtime,
        state,
        show_variables=bool(config["show_variables"]),
        on_toggle_variables=_remember_variables_panel,
    )
    print("Goodbye!")
    return 0


def _render_title(project: ProjectDef) -> None:
    print(f"=== {project.name} ===")


def run_story_loop(
    runtime: StoryRuntime,
    state: RunState,
    *,
    show_variables: bool = False,
    on_toggle_variables: Callable[[bool], None] | None = None,
) -> RunState:
    """Play until the reader quits; returns the closed run.

    ``on_toggle_variables`` receives the new setting whenever the reader
    toggles the variables panel.
    """
    while True:
        view = runtime.view(state)
        choice_targets: List[str] = []
        if view is None:
            print("\nThe story could not continue from here.")
        else:
            render_story_node(view)
            if show_variables or debug_enabled():
                render_variables(view.variables)
            if view.status == "cycle_limit":
                print("\n(The story stopped advancing: its branches loop without reaching a scene.)")
            choice_targets = [choice.target_id for choice in view.choices]
            if view.choices:
                render_choices(view.choices)
            else:
                print("\nThe End.")

        action = _prompt_action(len(choice_targets), can_go_back=runtime.can_go_back(state))
        if action == "quit":
            return runtime.close(state)
        if action == "back":
            state = runtime.go_back(state)
        elif action == "restart":
            state = runtime.restart(state)
        elif action == "variables":
            show_variables = not show_variables
            if on_toggle_variables is not None:
                on_toggle_variables(show_variables)
        else:
            state = runtime.choose(state, choice_targets[action])


def _prompt_action(choice_count: int, *, can_go_back: bool) -> Action:
    hints = ["r = restart", "v = variables", "q = quit"]
    if can_go_back:
        hints.insert(0, "b = back")
    prompt = "Select an option" if choice_count else "What now?"
    while True:
        try:
            raw = input(f"{prompt} ({', '.join(hints)}): ").strip().lower()
        except EOFError:
            return "quit"
        command = _COMMANDS.get(raw)
        if command == "back" and not can_go_back:
            print("There is nowhere to go back to.")
            continue
        if command is not None:
            return command
        try:
            index = int(raw) - 1
        except ValueError:
            print("Please enter a choice number or a command.")
            continue
        if 0 <= index < choice_count:
            return index
        if choice_count:
            print(f"Please enter a value between 1 and {choice_count}.")
        else:
            print("There are no choices here.")
