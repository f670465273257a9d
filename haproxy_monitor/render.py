"""Single writer for the shared drawing surface."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

from .surface import Surface
from .view import Rect, RegionBuffer

logger = logging.getLogger(__name__)


@dataclass
class RenderRequest:
    """Ask the coordinator to show one panel; ``done`` resolves once it is on screen."""
    region: RegionBuffer
    rect: Rect
    done: asyncio.Future


class RenderCoordinator:
    """
    Owns the surface and serializes every panel update into it.

    Sessions call ``render()`` and get control back only after their
    panel has been blitted and flushed, so a session may redraw its
    buffer again as soon as the call returns.
    """

    def __init__(self, surface: Surface):
        self._surface = surface
        # One slot: a request is handed over, never buffered behind others
        self._requests: asyncio.Queue = asyncio.Queue(maxsize=1)
        self._task: Optional[asyncio.Task] = None
        self.renders = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self):
        """Start the coordinator task."""
        if self.running:
            return
        self._task = asyncio.create_task(self._run())
        logger.info("Render coordinator started")

    async def stop(self):
        """Stop the coordinator task."""
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Render coordinator stopped")

    def surface_size(self) -> tuple[int, int]:
        return self._surface.size()

    async def render(self, region: RegionBuffer, rect: Rect):
        """Show ``region`` at ``rect`` and wait until it is flushed."""
        done = asyncio.get_running_loop().create_future()
        await self._requests.put(RenderRequest(region=region, rect=rect, done=done))
        await done

    async def _run(self):
        while True:
            request = await self._requests.get()
            try:
                self._blit(request.region, request.rect)
                self._surface.flush()
                self.renders += 1
            except Exception as e:
                logger.error(f"Render failed for panel at {request.rect}: {e}")
                if not request.done.done():
                    request.done.set_exception(e)
                continue
            if not request.done.done():
                request.done.set_result(None)

    def _blit(self, region: RegionBuffer, rect: Rect):
        rows = min(region.height, rect.height)
        for y in range(rows):
            for x, text, style in region.runs(y):
                if x >= rect.width:
                    break
                self._surface.write(rect.y + y, rect.x + x, text[: rect.width - x], style)
