"""Unit tests for the render coordinator rendezvous."""

import asyncio

import pytest

from haproxy_monitor.render import RenderCoordinator
from haproxy_monitor.surface import MemorySurface
from haproxy_monitor.view import Rect, RegionBuffer, layout_regions


def _region(rect: Rect, text: str) -> RegionBuffer:
    buf = RegionBuffer(rect.width, rect.height)
    buf.label(0, text, "title")
    return buf


class TestRenderCoordinator:
    @pytest.mark.asyncio
    async def test_render_returns_after_surface_is_written(self, surface):
        coordinator = RenderCoordinator(surface)
        coordinator.start()
        try:
            rect = Rect(x=0, y=5, width=40, height=3)
            await coordinator.render(_region(rect, "panel-one"), rect)

            assert surface.line(5).startswith("panel-one")
            assert surface.styles[5][0] == "title"
            assert surface.flush_count == 1
        finally:
            await coordinator.stop()

    @pytest.mark.asyncio
    async def test_render_blocks_until_coordinator_runs(self, surface):
        coordinator = RenderCoordinator(surface)
        rect = Rect(x=0, y=0, width=40, height=2)
        pending = asyncio.create_task(coordinator.render(_region(rect, "late"), rect))

        await asyncio.sleep(0.05)
        assert not pending.done()
        assert surface.flush_count == 0

        coordinator.start()
        try:
            await asyncio.wait_for(pending, timeout=1.0)
            assert surface.line(0).startswith("late")
        finally:
            await coordinator.stop()

    @pytest.mark.asyncio
    async def test_concurrent_renders_are_each_visible_on_return(self):
        surface = MemorySurface(30, 110)
        rects = layout_regions(30, 110, 3)
        coordinator = RenderCoordinator(surface)
        coordinator.start()

        async def render_and_check(index: int):
            for generation in range(5):
                text = f"session-{index} gen-{generation}"
                await coordinator.render(_region(rects[index], text), rects[index])
                assert surface.line(rects[index].y).startswith(text)

        try:
            await asyncio.gather(*(render_and_check(i) for i in range(3)))
            assert coordinator.renders == 15
            assert surface.flush_count == 15
        finally:
            await coordinator.stop()

    @pytest.mark.asyncio
    async def test_blit_is_clipped_to_rect(self):
        surface = MemorySurface(4, 20)
        coordinator = RenderCoordinator(surface)
        coordinator.start()
        try:
            rect = Rect(x=0, y=1, width=5, height=1)
            buf = RegionBuffer(10, 3)
            buf.put(0, 0, "abcdefghij")
            buf.put(1, 0, "second")
            await coordinator.render(buf, rect)

            assert surface.line(1) == "abcde" + " " * 15
            assert surface.line(2).strip() == ""
        finally:
            await coordinator.stop()

    @pytest.mark.asyncio
    async def test_failed_write_is_raised_to_requester(self):
        class BrokenSurface(MemorySurface):
            def flush(self):
                raise RuntimeError("terminal gone")

        coordinator = RenderCoordinator(BrokenSurface(4, 20))
        coordinator.start()
        try:
            rect = Rect(x=0, y=0, width=10, height=1)
            with pytest.raises(RuntimeError, match="terminal gone"):
                await coordinator.render(RegionBuffer(10, 1), rect)
            assert coordinator.running
        finally:
            await coordinator.stop()
