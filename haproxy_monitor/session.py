"""Polling session for one monitored load balancer."""

import asyncio
import logging
from typing import Awaitable, Callable, Optional, Tuple

from .models import RecordError, SessionState, StatRow, Target
from .render import RenderCoordinator
from .stats import SnapshotEntry, build_toggle_command, parse_snapshot, stat_rows
from .view import Rect, RegionBuffer, render_panel

logger = logging.getLogger(__name__)

Streams = Tuple[asyncio.StreamReader, asyncio.StreamWriter]
Connector = Callable[[Target], Awaitable[Streams]]

DEFAULT_BACKOFF = 1.0
DEFAULT_CONNECT_DELAY = 0.1


async def open_target(target: Target) -> Streams:
    """Open a stream connection to a target's stats endpoint."""
    if target.is_unix:
        return await asyncio.open_unix_connection(target.address)
    host, _, port = target.address.rpartition(":")
    return await asyncio.open_connection(host or "localhost", int(port))


class TargetSession:
    """
    Connection lifecycle, row cache and cursor of one target.

    The polling task cycles CONNECTING -> STREAMING -> BACKOFF for the
    whole life of the process. ``_lock`` guards the cursor, the parsed
    entries and the region buffer; it is never held across socket I/O or
    while waiting on the render coordinator.
    """

    def __init__(
        self,
        target: Target,
        coordinator: RenderCoordinator,
        rect: Rect,
        backoff: float = DEFAULT_BACKOFF,
        connect_delay: float = DEFAULT_CONNECT_DELAY,
        connector: Optional[Connector] = None,
    ):
        self.target = target
        self.rect = rect
        self.backoff = backoff
        self.connect_delay = connect_delay
        self._coordinator = coordinator
        self._connector = connector or open_target

        self._lock = asyncio.Lock()
        self._region = RegionBuffer(rect.width, rect.height)
        self._entries: list[SnapshotEntry] = []
        self._rows: list[StatRow] = []
        self._cursor = -1
        self._status: Optional[str] = None
        self._status_is_error = False

        self._writer: Optional[asyncio.StreamWriter] = None
        self._task: Optional[asyncio.Task] = None

        self.state = SessionState.CONNECTING
        self.connect_attempts = 0
        self.snapshots = 0
        self.last_error: Optional[str] = None

    @property
    def name(self) -> str:
        return self.target.name

    @property
    def title(self) -> str:
        return f"{self.target.name} ({self.target.address})"

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def rows(self) -> Tuple[StatRow, ...]:
        return tuple(self._rows)

    @property
    def entries(self) -> Tuple[SnapshotEntry, ...]:
        return tuple(self._entries)

    @property
    def errors(self) -> list[RecordError]:
        return [entry for entry in self._entries if isinstance(entry, RecordError)]

    @property
    def region(self) -> RegionBuffer:
        return self._region

    @property
    def selected_row(self) -> Optional[StatRow]:
        if 0 <= self._cursor < len(self._rows):
            return self._rows[self._cursor]
        return None

    @property
    def connected(self) -> bool:
        return self._writer is not None

    def start(self):
        """Start the polling task."""
        if self._task is not None and not self._task.done():
            return
        self._task = asyncio.create_task(self.run())
        logger.info(f"Started session {self.name} ({self.target.address})")

    async def stop(self):
        """Cancel the polling task and drop the connection."""
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        except Exception as e:
            logger.error(f"Session {self.name} ended with error: {e}")
        self._task = None
        logger.info(f"Stopped session {self.name}")

    async def run(self):
        """Reconnect forever with a fixed pause between attempts."""
        while True:
            await self._connect_and_stream()
            self.state = SessionState.BACKOFF
            await asyncio.sleep(self.backoff)

    async def _connect_and_stream(self):
        self.state = SessionState.CONNECTING
        await self._set_status("connecting")
        await asyncio.sleep(self.connect_delay)

        self.connect_attempts += 1
        try:
            reader, writer = await self._connector(self.target)
        except OSError as e:
            self.last_error = str(e)
            logger.warning(f"Connect to {self.name} ({self.target.address}) failed: {e}")
            await self._set_status(f"error: {e}", error=True)
            return

        self._writer = writer
        self.state = SessionState.STREAMING
        logger.info(f"Connected to {self.name} ({self.target.address})")

        try:
            await self._set_status(None)
            await self._stream(reader)
        except (OSError, ValueError) as e:
            # ValueError: line longer than the stream reader limit
            self.last_error = str(e)
            logger.warning(f"Lost connection to {self.name}: {e}")
        finally:
            self._writer = None
            writer.close()
            try:
                await writer.wait_closed()
            except OSError as e:
                logger.debug(f"Error closing connection to {self.name}: {e}")

    async def _stream(self, reader: asyncio.StreamReader):
        lines: list[bytes] = []
        while True:
            raw = await reader.readline()
            if not raw:
                logger.info(f"Connection to {self.name} closed by peer")
                return
            line = raw.rstrip(b"\r\n")
            if line:
                lines.append(line)
                continue
            # Empty line terminates a snapshot
            await self._replace_snapshot(b"\n".join(lines))
            lines = []

    async def _replace_snapshot(self, data: bytes):
        entries = list(parse_snapshot(data))
        rows = stat_rows(entries)
        async with self._lock:
            self._entries = entries
            self._rows = rows
            self._cursor = self._clamp(self._cursor)
            self._draw()
        self.snapshots += 1
        await self._render()

    def _clamp(self, value: int) -> int:
        if value >= len(self._rows):
            return len(self._rows)
        if value < 0:
            return -1
        return value

    def _draw(self):
        # Caller holds self._lock
        render_panel(
            self._region,
            self.title,
            self._entries,
            self._cursor,
            status=self._status,
            status_is_error=self._status_is_error,
        )

    async def _render(self):
        try:
            await self._coordinator.render(self._region, self.rect)
        except Exception as e:
            logger.error(f"Render failed for {self.name}: {e}")

    async def _set_status(self, text: Optional[str], error: bool = False):
        async with self._lock:
            self._status = text
            self._status_is_error = error
            self._draw()
        await self._render()

    async def redraw(self):
        """Redraw the panel from current state and wait until it is visible."""
        async with self._lock:
            self._draw()
        await self._render()

    async def move_cursor(self, diff: int) -> bool:
        """
        Move the cursor by ``diff`` rows.

        Returns:
            True if a row is selected afterwards, False if the cursor is
            parked above or below the list.
        """
        async with self._lock:
            before = self._cursor
            self._cursor = self._clamp(before + diff)
            selected = 0 <= self._cursor < len(self._rows)
            changed = self._cursor != before
            if changed:
                self._draw()

        logger.debug(f"{self.name} move {diff}: {before} -> {self._cursor} selected={selected}")
        if changed:
            await self._render()
        return selected

    async def toggle_selected(self) -> Optional[str]:
        """
        Enable or disable the selected server on the load balancer.

        Returns:
            The command line sent, or None if nothing was sent.
        """
        async with self._lock:
            row = self.selected_row
        if row is None:
            return None

        command = build_toggle_command(row)
        writer = self._writer
        if writer is None:
            logger.warning(f"Not connected to {self.name}, dropping '{command}'")
            return None

        try:
            writer.write(f"{command}\n".encode("utf-8"))
            await writer.drain()
        except OSError as e:
            logger.error(f"Failed to send '{command}' to {self.name}: {e}")
            return None

        logger.info(f"Sent '{command}' to {self.name}")
        return command
