"""Errors raised by the seating placement engine."""


class SeatingError(ValueError):
    """Base class for seating placement failures."""


class InvalidGridError(SeatingError):
    """Grid dimensions cannot hold a seating chart."""

    def __init__(self, rows: int, cols: int):
        self.rows = rows
        self.cols = cols
        super().__init__(f"Invalid seating grid {rows}x{cols}: rows and columns must be positive")


class CapacityExceededError(SeatingError):
    """The roster has more students than the grid has seats."""

    def __init__(self, students: int, capacity: int):
        self.students = students
        self.capacity = capacity
        super().__init__(
            f"Roster of {students} students exceeds seating capacity of {capacity}"
        )


class DuplicateStudentError(SeatingError):
    """The roster lists the same student id more than once."""

    def __init__(self, student_ids: list[str]):
        self.student_ids = student_ids
        super().__init__(f"Duplicate student ids in roster: {', '.join(student_ids)}")
