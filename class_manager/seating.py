"""
Seating chart service.

Loads the roster, runs the placement engine, stores the result and handles
manual edits to the stored chart (swaps, reset).
"""

from typing import Optional
from .activity_log import add_log
from .config import SEATING_ROWS, SEATING_COLS
from .layout import SEATS_PER_TABLE, build_layout
from .placement import Seat, SeatingResult, plan_seating
from .repositories import RosterRepository, SeatingRepository


def empty_chart(rows: int = SEATING_ROWS, cols: int = SEATING_COLS) -> list[Seat]:
    layout = build_layout(rows, cols)
    return [Seat(row=r, col=c) for r, c in layout.positions()]


def auto_arrange(
    rows: Optional[int] = None,
    cols: Optional[int] = None,
    seed: Optional[int] = None,
    roster_repo: Optional[RosterRepository] = None,
    seating_repo: Optional[SeatingRepository] = None
) -> SeatingResult:
    """
    Arrange the current roster and store the new chart.

    Placement errors (capacity, duplicates, bad grid) propagate before
    anything is stored.
    """
    rows = SEATING_ROWS if rows is None else rows
    cols = SEATING_COLS if cols is None else cols
    roster_repo = roster_repo or RosterRepository()
    seating_repo = seating_repo or SeatingRepository()

    roster = roster_repo.load_roster()
    result = plan_seating(roster, rows, cols, seed=seed)
    seating_repo.persist_seats(result.seats)

    add_log("SEATING", f"Arranged {len(roster)} students on a {rows}x{cols} grid")
    if result.unmet:
        add_log("SEATING", f"{len(result.unmet)} placement goals could not be met")
    return result


def load_seating(
    rows: Optional[int] = None,
    cols: Optional[int] = None,
    roster_repo: Optional[RosterRepository] = None,
    seating_repo: Optional[SeatingRepository] = None
) -> list[Seat]:
    """
    Stored chart for a rows x cols grid.

    Seats pointing at students no longer on the roster come back empty. An
    empty chart is returned when nothing is stored or the stored chart has
    other dimensions.
    """
    rows = SEATING_ROWS if rows is None else rows
    cols = SEATING_COLS if cols is None else cols
    roster_repo = roster_repo or RosterRepository()
    seating_repo = seating_repo or SeatingRepository()
    layout = build_layout(rows, cols)

    stored = seating_repo.load_seats()
    if len(stored) != layout.capacity or any(s.row >= rows or s.col >= cols for s in stored):
        return empty_chart(rows, cols)

    known = roster_repo.ids()
    for seat in stored:
        if seat.student_id and seat.student_id not in known:
            seat.student_id = None
    return stored


def swap_seats(
    first: tuple[int, int],
    second: tuple[int, int],
    rows: Optional[int] = None,
    cols: Optional[int] = None,
    roster_repo: Optional[RosterRepository] = None,
    seating_repo: Optional[SeatingRepository] = None
) -> list[Seat]:
    """Exchange the occupants of two seats (either may be empty) and store the chart."""
    rows = SEATING_ROWS if rows is None else rows
    cols = SEATING_COLS if cols is None else cols
    seating_repo = seating_repo or SeatingRepository()

    for row, col in (first, second):
        if not (0 <= row < rows and 0 <= col < cols):
            raise ValueError(f"Seat ({row}, {col}) is outside the {rows}x{cols} grid")

    seats = load_seating(rows, cols, roster_repo=roster_repo, seating_repo=seating_repo)
    if first == second:
        return seats

    a = seats[first[0] * cols + first[1]]
    b = seats[second[0] * cols + second[1]]
    a.student_id, b.student_id = b.student_id, a.student_id
    seating_repo.persist_seats(seats)

    add_log("SEATING", f"Swapped seats {first} and {second}")
    return seats


def reset_seating(
    rows: Optional[int] = None,
    cols: Optional[int] = None,
    seating_repo: Optional[SeatingRepository] = None
) -> list[Seat]:
    """Store an all-empty chart."""
    seats = empty_chart(
        SEATING_ROWS if rows is None else rows,
        SEATING_COLS if cols is None else cols
    )
    (seating_repo or SeatingRepository()).persist_seats(seats)
    add_log("SEATING", "Cleared the seating chart")
    return seats


def render_seating_text(seats: list[Seat], names: dict, cols: int, width: int = 12) -> str:
    """
    Plain-text chart, one line per row, with an aisle between table banks.

    names maps student id to display name; empty seats show as dots.
    """
    lines = []
    rows = len(seats) // cols if cols else 0
    for r in range(rows):
        cells = []
        for c in range(cols):
            if c and c % SEATS_PER_TABLE == 0:
                cells.append("|")
            student_id = seats[r * cols + c].student_id
            label = names.get(student_id, student_id) if student_id else "."
            cells.append(f"{label[:width]:<{width}}")
        lines.append(f"{r + 1:>2}  " + " ".join(cells).rstrip())
    return "\n".join(lines)
