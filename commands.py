"""
Command-line game commands: parse one input line and apply it to the engine.
"""
from __future__ import annotations
import logging
from typing import List, Optional, Tuple

from config import BUY_SHORTCUTS
from display.renderer import Renderer
from engine.accrual import AccrualEngine
from engine.errors import GameError, InvalidArgument, PersistenceError
from engine.persistence import Autosaver

logger = logging.getLogger(__name__)

CONTINUE = "continue"
EXIT = "exit"

EXIT_WORDS = {"exit", "e", "quit", "q"}


def parse_command(line: str) -> Tuple[str, List[str]]:
    parts = line.strip().split()
    if not parts:
        return "", []
    return parts[0].lower(), parts[1:]


def dispatch(
    line: str,
    engine: AccrualEngine,
    renderer: Renderer,
    saver: Optional[Autosaver] = None,
) -> str:
    """
    Run one command line. Returns EXIT when the player asked to leave,
    CONTINUE otherwise. Game errors are reported, never raised.
    """
    command, args = parse_command(line)
    if not command:
        return CONTINUE
    try:
        if command in EXIT_WORDS:
            return EXIT
        if command in BUY_SHORTCUTS:
            _buy(engine, renderer, BUY_SHORTCUTS[command], args, usage=f"{command} <number>' or '{command} all")
        elif command == "buy":
            if not args:
                raise InvalidArgument("Invalid command. Format should be 'buy <name> <number>' or 'buy <name> all'.")
            _buy(engine, renderer, args[0].lower(), args[1:], usage=f"buy {args[0]} <number>' or 'buy {args[0]} all")
        elif command in ("resources", "r"):
            engine.advance()
            descriptions = {n: d.get("description", "") for n, d in engine.definitions.items()}
            renderer.resources(engine.query(), descriptions)
        elif command in ("help", "h"):
            renderer.help()
        elif command == "reset":
            _reset(engine, renderer, saver)
        else:
            raise InvalidArgument('Invalid command. Type "help" for a list of valid commands.')
    except GameError as e:
        logger.debug("Command %r failed: %s", line.strip(), e)
        renderer.error(str(e))
    return CONTINUE


def _buy(engine: AccrualEngine, renderer: Renderer, name: str, args: List[str], usage: str) -> None:
    if not args:
        raise InvalidArgument(f"Invalid command. Format should be '{usage}'.")
    name = _singular(name, engine)
    result = engine.purchase(name, args[0])
    renderer.purchased(result)


def _singular(name: str, engine: AccrualEngine) -> str:
    """Accept "camps" for "camp"."""
    if name not in engine.definitions and name.endswith("s") and name[:-1] in engine.definitions:
        return name[:-1]
    return name


def _reset(engine: AccrualEngine, renderer: Renderer, saver: Optional[Autosaver]) -> None:
    engine.reset()
    if saver is not None:
        try:
            saver.clear()
        except PersistenceError as e:
            renderer.warning(f"Could not clear the saved game: {e}")
    renderer.info("Your civilization starts over with " + ", ".join(
        f"{d.get('starting_count', 0)} {n}(s)" for n, d in engine.definitions.items()
    ) + ".")
