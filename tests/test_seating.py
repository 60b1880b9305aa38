"""
tests/test_seating.py

Seating chart service: arrange, load, swap, reset and text rendering.
"""

import pytest
from class_manager.activity_log import get_logs
from class_manager.errors import CapacityExceededError, InvalidGridError
from class_manager.placement import Seat
from class_manager.repositories import SeatingRepository
from class_manager.roster import add_student, remove_student, seed_demo_data
from class_manager.seating import (
    auto_arrange, load_seating, swap_seats, reset_seating, render_seating_text, empty_chart
)


def occupant(seats, cols, row, col):
    return seats[row * cols + col].student_id


def test_auto_arrange_stores_chart():
    seed_demo_data(weeks=1, seed=2)

    result = auto_arrange(6, 8, seed=5)
    stored = load_seating(6, 8)

    assert [s.student_id for s in stored] == [s.student_id for s in result.seats]
    assert len([s for s in stored if s.student_id]) == 40
    assert any(e["action"] == "SEATING" for e in get_logs())


def test_auto_arrange_errors_store_nothing():
    for i in range(5):
        add_student(f"Student {i}", student_id=f"X{i}")

    with pytest.raises(CapacityExceededError):
        auto_arrange(2, 2, seed=1)
    with pytest.raises(InvalidGridError):
        auto_arrange(0, 8)
    assert SeatingRepository().load_seats() == []


def test_load_seating_without_stored_chart_is_empty():
    seats = load_seating(6, 8)
    assert len(seats) == 48
    assert all(s.student_id is None for s in seats)


def test_load_seating_with_other_dimensions_is_empty():
    add_student("An", student_id="A")
    auto_arrange(2, 4, seed=1)

    seats = load_seating(6, 8)
    assert len(seats) == 48
    assert all(s.student_id is None for s in seats)


def test_load_seating_drops_removed_students():
    add_student("An", student_id="A")
    add_student("Binh", student_id="B")
    SeatingRepository().persist_seats([Seat(0, 0, "A"), Seat(0, 1, "B")])

    # Bypass remove_student's seat cleanup to leave a dangling id
    SeatingRepository().persist_seats([Seat(0, 0, "A"), Seat(0, 1, "ghost")])
    seats = load_seating(1, 2)
    assert [s.student_id for s in seats] == ["A", None]

    remove_student("A")
    assert [s.student_id for s in load_seating(1, 2)] == [None, None]


def test_swap_occupied_and_empty_seats():
    add_student("An", student_id="A")
    add_student("Binh", student_id="B")
    SeatingRepository().persist_seats([Seat(0, 0, "A"), Seat(0, 1, "B"), Seat(0, 2), Seat(0, 3)])

    seats = swap_seats((0, 0), (0, 1), 1, 4)
    assert [s.student_id for s in seats] == ["B", "A", None, None]

    seats = swap_seats((0, 1), (0, 3), 1, 4)
    assert [s.student_id for s in seats] == ["B", None, None, "A"]
    assert [s.student_id for s in load_seating(1, 4)] == ["B", None, None, "A"]


def test_swap_same_seat_is_a_no_op():
    add_student("An", student_id="A")
    SeatingRepository().persist_seats([Seat(0, 0, "A"), Seat(0, 1)])

    seats = swap_seats((0, 0), (0, 0), 1, 2)
    assert [s.student_id for s in seats] == ["A", None]


def test_swap_out_of_range():
    with pytest.raises(ValueError):
        swap_seats((0, 0), (6, 0), 6, 8)
    with pytest.raises(ValueError):
        swap_seats((-1, 0), (0, 0), 6, 8)


def test_reset_seating():
    add_student("An", student_id="A")
    auto_arrange(1, 4, seed=1)

    seats = reset_seating(1, 4)

    assert all(s.student_id is None for s in seats)
    assert all(s.student_id is None for s in load_seating(1, 4))


def test_empty_chart_rejects_bad_grid():
    with pytest.raises(InvalidGridError):
        empty_chart(0, 4)


def test_render_seating_text():
    seats = [Seat(0, c) for c in range(8)]
    seats[0].student_id = "A"
    seats[5].student_id = "B"

    text = render_seating_text(seats, {"A": "An Nguyen"}, 8, width=4)

    assert text.startswith(" 1  An N")
    assert "|" in text
    assert "B" in text
    assert len(text.splitlines()) == 1


class MemorySeatingRepository:
    def __init__(self, seats):
        self.seats = seats

    def load_seats(self):
        return [Seat(s.row, s.col, s.student_id) for s in self.seats]

    def persist_seats(self, seats):
        self.seats = list(seats)


class FixedRosterRepository:
    def __init__(self, ids):
        self._ids = set(ids)

    def ids(self):
        return set(self._ids)


def test_swap_uses_injected_repositories():
    seating_repo = MemorySeatingRepository([Seat(0, 0, "P1"), Seat(0, 1, "P2")])
    roster_repo = FixedRosterRepository(["P1", "P2"])

    seats = swap_seats((0, 0), (0, 1), 1, 2, roster_repo=roster_repo, seating_repo=seating_repo)

    assert [s.student_id for s in seats] == ["P2", "P1"]
    assert [s.student_id for s in seating_repo.seats] == ["P2", "P1"]
    assert SeatingRepository().load_seats() == []
