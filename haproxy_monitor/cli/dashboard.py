"""Curses dashboard: key handling and the input loop."""

from __future__ import annotations

import asyncio
import curses
import logging
from typing import Optional

from ..config import MonitorConfig
from ..main import MonitorApp
from ..surface import CursesSurface, init_palette

logger = logging.getLogger(__name__)

_INPUT_POLL_INTERVAL = 0.05

KEY_BINDINGS: dict[int, str] = {
    curses.KEY_UP: "up",
    ord("k"): "up",
    curses.KEY_DOWN: "down",
    ord("j"): "down",
    ord(" "): "toggle",
    ord("t"): "toggle",
    10: "toggle",
    13: "toggle",
    curses.KEY_ENTER: "toggle",
    ord("q"): "quit",
    27: "quit",
}


def key_action(key: int) -> Optional[str]:
    """Map a key code to an action name, or None for unbound keys."""
    return KEY_BINDINGS.get(key)


async def handle_key(app: MonitorApp, key: int) -> bool:
    """Apply one key press. Returns False when the dashboard should quit."""
    action = key_action(key)
    if action == "quit":
        return False
    if action == "up":
        await app.selection.up()
    elif action == "down":
        await app.selection.down()
    elif action == "toggle":
        command = await app.selection.toggle()
        if command:
            logger.info(f"Toggled: {command}")
    return True


async def input_loop(app: MonitorApp, stdscr, poll_interval: float = _INPUT_POLL_INTERVAL):
    """Read keys until quit; getch is non-blocking so the session tasks keep running."""
    while True:
        key = stdscr.getch()
        if key == -1:
            await asyncio.sleep(poll_interval)
            continue
        if not await handle_key(app, key):
            return


async def _run_app(stdscr, config: MonitorConfig):
    app = MonitorApp(config, CursesSurface(stdscr, init_palette()))
    await app.start()
    try:
        await input_loop(app, stdscr)
    finally:
        await app.stop()


def run_dashboard(config: MonitorConfig) -> int:
    """Run the curses dashboard until the user quits."""

    def _loop(stdscr):
        curses.curs_set(0)
        stdscr.nodelay(True)
        stdscr.keypad(True)
        stdscr.erase()
        asyncio.run(_run_app(stdscr, config))

    try:
        curses.wrapper(_loop)
    except KeyboardInterrupt:
        logger.info("Interrupted")
    return 0
