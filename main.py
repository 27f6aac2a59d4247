"""
Cividler CLI entry point.

Usage:
    python main.py
    python main.py --db saves/civ.sqlite --tick 0.5
    python main.py --reset --log-level INFO
"""
import argparse
import asyncio
import logging
import os
import queue
import signal
import sys
import threading

# Ensure UTF-8 output on Windows terminals
if hasattr(sys.stdout, "reconfigure"):
    sys.stdout.reconfigure(encoding="utf-8")
if hasattr(sys.stderr, "reconfigure"):
    sys.stderr.reconfigure(encoding="utf-8")

from commands import EXIT, dispatch
from engine.accrual import AccrualEngine
from engine.errors import PersistenceError
from engine.persistence import CORRUPT, FIRST_RUN, RESTORED, Autosaver, load_state
from engine.ticker import run_ticker, shutdown

PROMPT = "Enter command: "


def make_store(path: str):
    """Instantiate the correct StateStore subclass based on the file suffix."""
    suffix = os.path.splitext(path)[1].lower()
    if suffix in (".sqlite", ".sqlite3", ".db"):
        from store.sqlite_store import SqliteStore
        return SqliteStore(path)
    from store.json_store import JsonFileStore
    return JsonFileStore(path)


def setup_logging(level: str, console=None) -> None:
    from rich.logging import RichHandler
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=False)],
        force=True,
    )


class LineReader:
    """
    Reads stdin on a daemon thread. A pending input() therefore never keeps
    the process alive once the game has shut down.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop):
        self._loop = loop
        self._requests: "queue.Queue" = queue.Queue()
        self._thread = threading.Thread(target=self._run, name="stdin-reader", daemon=True)
        self._thread.start()

    def readline(self, prompt: str) -> asyncio.Future:
        """Future resolving to the next line, or None at end of input."""
        fut = self._loop.create_future()
        self._requests.put((prompt, fut))
        return fut

    def _run(self) -> None:
        while True:
            prompt, fut = self._requests.get()
            try:
                line = input(prompt)
            except (EOFError, KeyboardInterrupt):
                line = None
            self._loop.call_soon_threadsafe(_resolve, fut, line)
            if line is None:
                return


def _resolve(fut: asyncio.Future, value) -> None:
    if not fut.done():
        fut.set_result(value)


async def play(engine, saver, renderer, reader: LineReader, stop_event: asyncio.Event) -> None:
    """Foreground command loop. Returns when the player exits or shutdown is requested."""
    while not stop_event.is_set():
        engine.advance()
        renderer.notices(engine.pop_notices())
        renderer.status(engine.query())

        read = reader.readline(PROMPT)
        stopped = asyncio.ensure_future(stop_event.wait())
        done, _ = await asyncio.wait({read, stopped}, return_when=asyncio.FIRST_COMPLETED)
        if read not in done:
            read.cancel()
            break
        stopped.cancel()

        line = read.result()
        if line is None:
            renderer.info("")
            break
        if dispatch(line, engine, renderer, saver) == EXIT:
            break


async def main():
    parser = argparse.ArgumentParser(description="Cividler, the CLI based idle game")
    parser.add_argument("--db", default=None,
                        help="Save file; .sqlite/.db uses SQLite, anything else JSON (default: gameDB.json)")
    parser.add_argument("--tick", type=float, default=None,
                        help="Seconds between accrual ticks (default: 1)")
    parser.add_argument("--reset", action="store_true",
                        help="Discard the saved game and start over")
    parser.add_argument("--log-level", default=None,
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                        help="Logging level (default: WARNING)")
    args = parser.parse_args()

    import config
    if args.db:
        config.DB_PATH = args.db
    if args.tick is not None:
        if args.tick <= 0:
            parser.error("--tick must be positive")
        config.TICK_SECONDS = args.tick
    if args.log_level:
        config.LOG_LEVEL = args.log_level

    from display.renderer import Renderer, console
    setup_logging(config.LOG_LEVEL, console)
    log = logging.getLogger("cividler")
    renderer = Renderer()

    try:
        store = make_store(config.DB_PATH)
    except PersistenceError as e:
        renderer.error(f"Failed to open the game database: {e}")
        sys.exit(1)

    with store:
        engine = AccrualEngine()
        saver = Autosaver(store)

        try:
            if args.reset:
                saver.clear()
                outcome = FIRST_RUN
                log.info("Saved game discarded on request")
            else:
                outcome = load_state(engine, store)
        except PersistenceError as e:
            renderer.error(f"Failed to load the game: {e}")
            sys.exit(1)

        renderer.welcome()
        if outcome == CORRUPT:
            renderer.warning("Your saved game could not be read and was discarded. "
                             "A new civilization has been founded.")
        elif outcome == RESTORED:
            away = engine.now() - engine.state().get(config.PRIMARY_RESOURCE).last_updated
            report = engine.advance()
            renderer.caught_up(report.gains, away)
        saver.save(engine)

        loop = asyncio.get_running_loop()
        stop_event = asyncio.Event()
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, stop_event.set)
            except (NotImplementedError, RuntimeError):
                # Windows event loops do not support signal handlers
                pass

        def on_tick(report):
            renderer.notices(engine.pop_notices())
            if saver.failures == 1:
                renderer.warning(f"Could not save the game ({saver.last_error}). "
                                 "Progress is kept in memory and saving is retried every tick.")

        ticker = asyncio.create_task(
            run_ticker(engine, saver, stop_event, interval=config.TICK_SECONDS, on_tick=on_tick)
        )
        try:
            await play(engine, saver, renderer, LineReader(loop), stop_event)
        finally:
            renderer.info("Saving and Exiting the game...")
            saved = await shutdown(engine, saver, stop_event, ticker)
            if not saved:
                renderer.error(f"Final save failed: {saver.last_error}")


def run():
    asyncio.run(main())


if __name__ == "__main__":
    run()
