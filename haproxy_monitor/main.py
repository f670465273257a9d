"""Application wiring - builds sessions and the render coordinator."""

import logging
from typing import Optional

from .config import MonitorConfig
from .render import RenderCoordinator
from .selection import SelectionController
from .session import Connector, TargetSession
from .surface import Surface
from .view import layout_regions

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: str = "INFO", log_file: Optional[str] = None):
    """Configure logging; the dashboard logs to a file since curses owns the terminal."""
    logging.basicConfig(
        filename=log_file,
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
    )


class MonitorApp:
    """Main application orchestrator."""

    def __init__(self, config: MonitorConfig, surface: Surface, connector: Optional[Connector] = None):
        self.config = config
        self.coordinator = RenderCoordinator(surface)

        height, width = self.coordinator.surface_size()
        regions = layout_regions(height, width, len(config.targets), config.panel_width)
        if regions and regions[0].height < 5:
            logger.warning(f"Screen height {height} leaves {regions[0].height} lines per panel")

        self.sessions = [
            TargetSession(
                target,
                self.coordinator,
                rect,
                backoff=config.backoff,
                connect_delay=config.connect_delay,
                connector=connector,
            )
            for target, rect in zip(config.targets, regions)
        ]
        self.selection = SelectionController(self.sessions)

    async def start(self):
        """Start the render coordinator and one polling task per target."""
        logger.info(f"Starting monitor for {[t.name for t in self.config.targets]}")
        self.coordinator.start()
        for session in self.sessions:
            session.start()

    async def stop(self):
        """Stop all sessions, then the coordinator."""
        logger.info("Stopping monitor...")
        for session in self.sessions:
            await session.stop()
        await self.coordinator.stop()
        logger.info("Shutdown complete")
