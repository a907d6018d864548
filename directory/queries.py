"""
directory/queries.py -- Directory Query Service.

Two read paths:

  list_users(filter)  -- members, optionally narrowed by an exact-match
                         faculty, department or programme filter.

  list_faculties() -> list_departments(faculty) -> list_programmes(faculty, department)
                      -- a cascading choice list. Each level is a SELECT
                         DISTINCT over the programmes table constrained by the
                         parent selection. Every call scans the (small) table;
                         nothing is cached.

Member filters compare against the free text stored on each User, not against
the programmes table, so a member whose department is spelled differently
from the reference data is simply not matched.
"""

from __future__ import annotations

from typing import Optional

from auth.models import User
from auth.store import UserStore
from directory.models import UserFilter
from directory.store import ProgrammeStore


class DirectoryQueryService:
    def __init__(self, users: UserStore, programmes: ProgrammeStore) -> None:
        self._users = users
        self._programmes = programmes

    def list_users(self, user_filter: Optional[UserFilter] = None) -> list[User]:
        if user_filter is None:
            return self._users.list_users()
        return self._users.list_users(by=user_filter.field, value=user_filter.value)

    def list_faculties(self) -> list[str]:
        return self._programmes.distinct_faculties()

    def list_departments(self, faculty: str) -> list[str]:
        return self._programmes.distinct_departments(faculty)

    def list_programmes(self, faculty: str, department: str) -> list[str]:
        return self._programmes.distinct_programmes(faculty, department)
