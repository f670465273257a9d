"""Cursor movement across all session panels."""

import logging
from typing import Optional, Sequence

from .models import StatRow
from .session import TargetSession

logger = logging.getLogger(__name__)

UP = -1
DOWN = 1


class SelectionController:
    """
    Moves one global cursor through the panels in configured order.

    When the active session's cursor runs off its list, the move is
    retried on the neighbouring session. There is no wraparound: at the
    first or last session the cursor stays parked at the boundary.
    """

    def __init__(self, sessions: Sequence[TargetSession]):
        self.sessions = list(sessions)
        self.active = 0

    @property
    def active_session(self) -> Optional[TargetSession]:
        if not self.sessions:
            return None
        return self.sessions[self.active]

    @property
    def selected_row(self) -> Optional[StatRow]:
        session = self.active_session
        return session.selected_row if session else None

    async def move(self, direction: int) -> bool:
        """
        Move the cursor one row up (-1) or down (+1).

        Returns:
            True if a row ends up selected.
        """
        if not self.sessions:
            return False

        while True:
            if await self.sessions[self.active].move_cursor(direction):
                return True
            neighbour = self.active + direction
            if neighbour < 0 or neighbour >= len(self.sessions):
                logger.debug(f"Cursor parked at the edge of {self.sessions[self.active].name}")
                return False
            self.active = neighbour

    async def up(self) -> bool:
        return await self.move(UP)

    async def down(self) -> bool:
        return await self.move(DOWN)

    async def toggle(self) -> Optional[str]:
        """Send the enable/disable command for the row under the cursor."""
        session = self.active_session
        if session is None:
            return None
        return await session.toggle_selected()
