"""
Automatic seating-chart placement.

Fills a rows x cols grid from a roster snapshot in ordered greedy phases:

1. Split the roster into top (GOOD), mid (FAIR) and rest, shuffling each.
2. Spread top students: one per social group, then one per table still
   lacking one, then the leftovers anywhere.
3. Balance genders: give each table a male and a female when it has none.
   Any unplaced student may be drawn, talkative or not.
4. Separate the talkative students still unplaced: each goes to the empty
   seat farthest from the talkative students already seated.
5. Fill the remaining seats front to back.

Phases never move a student who is already seated, so the soft constraints
can go unmet. The result lists every table or group left without a top
student or without one of each gender.

The engine is a pure function of its inputs: it does no I/O, keeps no state
between calls and draws all randomness from the generator it is given.
"""

import random
from dataclasses import dataclass, field
from typing import Optional, Sequence
from .errors import CapacityExceededError, DuplicateStudentError
from .layout import GridLayout, Position, build_layout
from .models import AcademicRank, Gender


@dataclass(frozen=True)
class StudentProfile:
    """The parts of a roster entry the engine looks at."""
    id: str
    name: str
    gender: Gender
    rank: AcademicRank
    is_talkative: bool = False

    @property
    def is_top(self) -> bool:
        return self.rank == AcademicRank.GOOD

    @classmethod
    def from_record(cls, student) -> "StudentProfile":
        """Build a profile from a Student row (or anything with the same attributes)."""
        return cls(
            id=student.id,
            name=student.name,
            gender=Gender(student.gender),
            rank=AcademicRank(student.rank),
            is_talkative=bool(student.is_talkative)
        )


@dataclass
class Seat:
    """A seat on the chart; student_id is None when the seat is empty."""
    row: int
    col: int
    student_id: Optional[str] = None

    def to_dict(self) -> dict:
        return {"row": self.row, "col": self.col, "student_id": self.student_id}


@dataclass(frozen=True)
class UnmetConstraint:
    """A soft constraint the greedy phases could not satisfy."""
    kind: str  # "top_student" or "gender_balance"
    scope: str  # "table" or "group"
    index: int
    detail: str = ""


@dataclass
class SeatingResult:
    """Outcome of one placement run."""
    rows: int
    cols: int
    seats: list[Seat]
    unmet: list[UnmetConstraint] = field(default_factory=list)

    def seat_of(self, student_id: str) -> Optional[Seat]:
        for seat in self.seats:
            if seat.student_id == student_id:
                return seat
        return None

    def occupant(self, row: int, col: int) -> Optional[str]:
        return self.seats[row * self.cols + col].student_id


class SeatingGrid:
    """
    Working copy of the chart for a single placement run.

    Holds the layout and the current occupant of every seat. Each phase
    function below reads and fills one of these.
    """

    def __init__(self, layout: GridLayout):
        self.layout = layout
        self.occupants: dict[Position, StudentProfile] = {}

    def is_empty(self, position: Position) -> bool:
        return position not in self.occupants

    def empty_seats(self, positions: Optional[Sequence[Position]] = None) -> list[Position]:
        """Empty seats among positions (all seats by default), in the given order."""
        if positions is None:
            positions = self.layout.positions()
        return [p for p in positions if p not in self.occupants]

    def place(self, student: StudentProfile, position: Position):
        if position in self.occupants:
            raise ValueError(f"Seat {position} is already taken by {self.occupants[position].id}")
        self.occupants[position] = student

    def has_top(self, positions: Sequence[Position]) -> bool:
        return any(p in self.occupants and self.occupants[p].is_top for p in positions)

    def has_gender(self, positions: Sequence[Position], gender: Gender) -> bool:
        return any(p in self.occupants and self.occupants[p].gender == gender for p in positions)

    def talkative_positions(self) -> list[Position]:
        return [p for p, s in self.occupants.items() if s.is_talkative]

    def to_seats(self) -> list[Seat]:
        return [
            Seat(row=r, col=c, student_id=self.occupants[(r, c)].id if (r, c) in self.occupants else None)
            for r, c in self.layout.positions()
        ]


# ============================================================================
# Phase 1: categories
# ============================================================================

def partition_students(
    roster: Sequence[StudentProfile],
    rng: random.Random
) -> tuple[list[StudentProfile], list[StudentProfile], list[StudentProfile]]:
    """Split the roster into (top, mid, rest), each independently shuffled."""
    top = [s for s in roster if s.rank == AcademicRank.GOOD]
    mid = [s for s in roster if s.rank == AcademicRank.FAIR]
    rest = [s for s in roster if s.rank not in (AcademicRank.GOOD, AcademicRank.FAIR)]

    rng.shuffle(top)
    rng.shuffle(mid)
    rng.shuffle(rest)
    return top, mid, rest


# ============================================================================
# Phase 2: top-student spread
# ============================================================================

def spread_top_students(
    grid: SeatingGrid,
    top: list[StudentProfile],
    rng: random.Random
) -> list[StudentProfile]:
    """
    Seat every top student, covering groups first and tables second.

    Within a group, seats whose table has no top student yet are preferred,
    so one student can cover a group and a table at once.

    Returns the top students left unplaced (only when the grid is full).
    """
    pending = list(top)
    layout = grid.layout

    # Pass a: one per social group
    for group in layout.groups:
        if not pending:
            break
        if grid.has_top(group.seats):
            continue
        empty = grid.empty_seats(group.seats)
        if not empty:
            continue
        preferred = [
            p for p in empty
            if not grid.has_top(layout.tables[layout.table_of[p]].seats)
        ]
        grid.place(pending.pop(0), rng.choice(preferred or empty))

    # Pass b: one per table still lacking one
    for table in layout.tables:
        if not pending:
            break
        if grid.has_top(table.seats):
            continue
        empty = grid.empty_seats(table.seats)
        if empty:
            grid.place(pending.pop(0), empty[0])

    # Pass c: leftovers anywhere
    while pending:
        empty = grid.empty_seats()
        if not empty:
            break
        grid.place(pending.pop(0), rng.choice(empty))

    return pending


# ============================================================================
# Phase 3: gender balance
# ============================================================================

def _take_first(pool: list[StudentProfile], gender: Gender) -> Optional[StudentProfile]:
    for i, student in enumerate(pool):
        if student.gender == gender:
            return pool.pop(i)
    return None


def balance_genders(grid: SeatingGrid, pool: list[StudentProfile]) -> list[StudentProfile]:
    """
    Give each table at least one male and one female where seats allow.

    Draws from pool in order and fills the first empty seat of the table.
    Tables with a single seat are skipped. Already-seated students are never
    moved, so a table filled with one gender stays that way.

    Returns the students of pool that were not seated.
    """
    remaining = list(pool)

    for table in grid.layout.tables:
        if len(table.seats) < 2:
            continue
        for gender in (Gender.MALE, Gender.FEMALE):
            if grid.has_gender(table.seats, gender):
                continue
            empty = grid.empty_seats(table.seats)
            if not empty:
                break
            student = _take_first(remaining, gender)
            if student is not None:
                grid.place(student, empty[0])

    return remaining


# ============================================================================
# Phase 4: talkative separation
# ============================================================================

def _distance_sq(a: Position, b: Position) -> int:
    return (a[0] - b[0]) ** 2 + (a[1] - b[1]) ** 2


def separate_talkative(
    grid: SeatingGrid,
    talkative: list[StudentProfile],
    rng: random.Random
) -> list[StudentProfile]:
    """
    Seat talkative students one at a time, each as far as possible from the
    talkative students already seated (greedy max-min distance).

    Ties, and the first seat when no talkative student is seated yet, are
    chosen at random. Returns the students left unplaced.
    """
    pending = list(talkative)

    while pending:
        empty = grid.empty_seats()
        if not empty:
            break

        others = grid.talkative_positions()
        if not others:
            grid.place(pending.pop(0), rng.choice(empty))
            continue

        best_distance = -1
        best_seats = []
        for position in empty:
            nearest = min(_distance_sq(position, other) for other in others)
            if nearest > best_distance:
                best_distance = nearest
                best_seats = [position]
            elif nearest == best_distance:
                best_seats.append(position)

        grid.place(pending.pop(0), rng.choice(best_seats))

    return pending


# ============================================================================
# Phase 5: fill remainder
# ============================================================================

def fill_remaining(grid: SeatingGrid, students: list[StudentProfile]) -> list[StudentProfile]:
    """Seat students in order into the first empty seats (row-major)."""
    pending = list(students)
    for position in grid.empty_seats():
        if not pending:
            break
        grid.place(pending.pop(0), position)
    return pending


# ============================================================================
# Constraint report
# ============================================================================

def find_unmet_constraints(grid: SeatingGrid) -> list[UnmetConstraint]:
    """List occupied tables/groups without a top student and mixed tables lacking a gender."""
    unmet = []
    layout = grid.layout

    for table in layout.tables:
        occupied = [p for p in table.seats if not grid.is_empty(p)]
        if not occupied:
            continue
        if not grid.has_top(table.seats):
            unmet.append(UnmetConstraint("top_student", "table", table.index,
                                         f"row {table.row}, bank {table.bank}"))
        if len(occupied) >= 2:
            for gender in (Gender.MALE, Gender.FEMALE):
                if not grid.has_gender(table.seats, gender):
                    unmet.append(UnmetConstraint("gender_balance", "table", table.index,
                                                 f"no {gender.value} student"))

    for group in layout.groups:
        if any(not grid.is_empty(p) for p in group.seats) and not grid.has_top(group.seats):
            unmet.append(UnmetConstraint("top_student", "group", group.index,
                                         f"block at row {group.row}, col {group.col}"))

    return unmet


# ============================================================================
# Entry points
# ============================================================================

def validate_roster(roster: Sequence[StudentProfile], layout: GridLayout):
    """Raise if the roster cannot be seated on this layout."""
    if len(roster) > layout.capacity:
        raise CapacityExceededError(len(roster), layout.capacity)

    seen = set()
    duplicates = []
    for student in roster:
        if student.id in seen and student.id not in duplicates:
            duplicates.append(student.id)
        seen.add(student.id)
    if duplicates:
        raise DuplicateStudentError(duplicates)


def plan_seating(
    roster: Sequence[StudentProfile],
    rows: int,
    cols: int,
    rng: Optional[random.Random] = None,
    seed: Optional[int] = None
) -> SeatingResult:
    """
    Run every placement phase and report unmet soft constraints.

    Args:
        roster: Students to seat. Not modified.
        rows: Grid rows (positive).
        cols: Grid columns (positive; multiples of 4 give whole tables).
        rng: Random source for this run. A fresh generator seeded with
            `seed` is used when omitted.
        seed: Seed for the fresh generator; ignored when rng is given.

    Raises:
        InvalidGridError: rows or cols is not positive.
        CapacityExceededError: more students than seats.
        DuplicateStudentError: a student id appears twice.
    """
    layout = build_layout(rows, cols)
    validate_roster(roster, layout)
    if rng is None:
        rng = random.Random(seed)

    grid = SeatingGrid(layout)
    top, mid, rest = partition_students(roster, rng)

    leftover = spread_top_students(grid, top, rng)
    others = balance_genders(grid, mid + rest)

    talkative = [s for s in others if s.is_talkative]
    quiet = [s for s in others if not s.is_talkative]
    leftover += separate_talkative(grid, talkative, rng)
    leftover += fill_remaining(grid, quiet)

    # Nobody is left over once capacity has been validated.
    if leftover:
        raise CapacityExceededError(len(roster), layout.capacity)

    return SeatingResult(
        rows=rows,
        cols=cols,
        seats=grid.to_seats(),
        unmet=find_unmet_constraints(grid)
    )


def arrange(
    roster: Sequence[StudentProfile],
    rows: int,
    cols: int,
    rng: Optional[random.Random] = None,
    seed: Optional[int] = None
) -> list[Seat]:
    """Seat the roster on a rows x cols grid and return all seats, row-major."""
    return plan_seating(roster, rows, cols, rng=rng, seed=seed).seats
