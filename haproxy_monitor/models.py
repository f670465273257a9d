"""Data models for HAProxy Monitor."""

from dataclasses import dataclass
from enum import Enum
from typing import Tuple

# Fixed record layout of the load balancer's stats CSV
FIELD_COUNT = 63

GROUP_FIELD = 0
NAME_FIELD = 1
SCUR_FIELD = 4
BIN_FIELD = 8
BOUT_FIELD = 9
STATUS_FIELD = 17

# Rollup lines that describe a whole proxy rather than one server
AGGREGATE_NAMES = frozenset({"BACKEND", "FRONTEND"})


class SessionState(Enum):
    """Connection lifecycle of one monitored target."""
    CONNECTING = "connecting"
    STREAMING = "streaming"
    BACKOFF = "backoff"  # Waiting before the next connect attempt


@dataclass(frozen=True)
class Target:
    """A configured load balancer endpoint."""
    name: str
    address: str  # host:port, or a unix socket path

    @property
    def is_unix(self) -> bool:
        return "/" in self.address


@dataclass(frozen=True)
class Column:
    """One projected column of the dashboard."""
    title: str
    position: int
    width: int


DISPLAY_COLUMNS: Tuple[Column, ...] = (
    Column("group", GROUP_FIELD, 23),
    Column("name", NAME_FIELD, 35),
    Column("scur", SCUR_FIELD, 6),
    Column("bin", BIN_FIELD, 10),
    Column("bout", BOUT_FIELD, 10),
    Column("status", STATUS_FIELD, 7),
)


@dataclass(frozen=True)
class StatRow:
    """One server record from a stats snapshot.

    The full field tuple is kept so commands can reach fields outside
    the displayed columns.
    """
    fields: Tuple[str, ...]

    @property
    def group(self) -> str:
        return self.fields[GROUP_FIELD]

    @property
    def name(self) -> str:
        return self.fields[NAME_FIELD]

    @property
    def current_sessions(self) -> str:
        return self.fields[SCUR_FIELD]

    @property
    def bytes_in(self) -> str:
        return self.fields[BIN_FIELD]

    @property
    def bytes_out(self) -> str:
        return self.fields[BOUT_FIELD]

    @property
    def status(self) -> str:
        return self.fields[STATUS_FIELD]

    @property
    def is_up(self) -> bool:
        return self.status == "UP"

    def display_values(self, columns: Tuple[Column, ...] = DISPLAY_COLUMNS) -> list[str]:
        """Values of the projected columns, in column order."""
        return [self.fields[column.position] for column in columns]



@dataclass(frozen=True)
class RecordError:
    """Inline marker for a snapshot line that could not be used."""
    message: str
