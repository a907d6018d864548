"""
directory/models.py -- Domain dataclasses for the programme directory.

Pure data containers. ProgrammeStore and the services do the work.
"""

from __future__ import annotations

from dataclasses import dataclass

# The three levels of the programme hierarchy, outermost first. Also the only
# user fields the directory can filter on.
HIERARCHY_FIELDS: tuple[str, ...] = ("faculty", "department", "programme")


@dataclass
class Programme:
    """One concrete programme offering.

    Rows repeat faculty and department values freely; the hierarchy is
    recovered with distinct-value queries, not stored as a tree.
    """

    faculty: str
    department: str
    programme: str
    id: int | None = None


@dataclass(frozen=True)
class UserFilter:
    """An exact-match equality filter on one hierarchy field of User."""

    field: str  # "faculty" | "department" | "programme"
    value: str

    def __post_init__(self) -> None:
        if self.field not in HIERARCHY_FIELDS:
            raise ValueError(f"Cannot filter users by {self.field!r}")
