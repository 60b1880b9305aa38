"""
Seating grid topology.

A grid of rows x cols seats is split two ways:

- Tables: four consecutive seats in one row (columns 0-3 are the left bank,
  4-7 the right bank, and so on). When the column count is not a multiple
  of four the last table in each row is partial.
- Social groups: 2x2 blocks anchored on even rows and columns. Blocks at
  the right or bottom edge of an odd-sized grid keep only their in-bounds
  seats.

Both partitions depend only on the grid dimensions, so they are built once
per size and cached.
"""

from dataclasses import dataclass
from functools import lru_cache
from types import MappingProxyType
from .errors import InvalidGridError

SEATS_PER_TABLE = 4
GROUP_SIZE = 2

Position = tuple[int, int]


@dataclass(frozen=True)
class Table:
    """Seats sharing one desk bank in a row."""
    index: int
    row: int
    bank: int  # 0 = left bank, 1 = right bank, ...
    seats: tuple[Position, ...]


@dataclass(frozen=True)
class SocialGroup:
    """A 2x2 block of seats spanning two rows and two columns."""
    index: int
    row: int  # top-left anchor
    col: int
    seats: tuple[Position, ...]


@dataclass(frozen=True)
class GridLayout:
    """Precomputed tables and social groups for one grid size."""
    rows: int
    cols: int
    tables: tuple[Table, ...]
    groups: tuple[SocialGroup, ...]
    table_of: MappingProxyType  # Position -> table index
    group_of: MappingProxyType  # Position -> group index

    @property
    def capacity(self) -> int:
        return self.rows * self.cols

    def positions(self) -> list[Position]:
        """All seat positions in row-major order."""
        return [(r, c) for r in range(self.rows) for c in range(self.cols)]

    def index_of(self, position: Position) -> int:
        """Row-major index of a seat."""
        row, col = position
        return row * self.cols + col


def _build_tables(rows: int, cols: int) -> tuple[Table, ...]:
    tables = []
    for r in range(rows):
        for bank, start in enumerate(range(0, cols, SEATS_PER_TABLE)):
            end = min(start + SEATS_PER_TABLE, cols)
            tables.append(Table(
                index=len(tables),
                row=r,
                bank=bank,
                seats=tuple((r, c) for c in range(start, end))
            ))
    return tuple(tables)


def _build_groups(rows: int, cols: int) -> tuple[SocialGroup, ...]:
    groups = []
    for r in range(0, rows, GROUP_SIZE):
        for c in range(0, cols, GROUP_SIZE):
            seats = tuple(
                (gr, gc)
                for gr in range(r, min(r + GROUP_SIZE, rows))
                for gc in range(c, min(c + GROUP_SIZE, cols))
            )
            groups.append(SocialGroup(index=len(groups), row=r, col=c, seats=seats))
    return tuple(groups)


def build_layout(rows: int, cols: int) -> GridLayout:
    """
    Build the table and social-group partitions for a grid.

    Raises InvalidGridError unless rows and cols are positive ints (bools and
    floats are rejected even when integral). Column counts that are not a
    multiple of four are accepted and produce a partial trailing table per
    row.
    """
    for value in (rows, cols):
        if type(value) is not int or value <= 0:
            raise InvalidGridError(rows, cols)
    return _cached_layout(rows, cols)


@lru_cache(maxsize=32)
def _cached_layout(rows: int, cols: int) -> GridLayout:
    tables = _build_tables(rows, cols)
    groups = _build_groups(rows, cols)

    table_of = {}
    for table in tables:
        for position in table.seats:
            table_of[position] = table.index

    group_of = {}
    for group in groups:
        for position in group.seats:
            group_of[position] = group.index

    # Shared through the cache, so callers only get read-only views
    return GridLayout(
        rows=rows,
        cols=cols,
        tables=tables,
        groups=groups,
        table_of=MappingProxyType(table_of),
        group_of=MappingProxyType(group_of)
    )
