"""
directory/store.py -- SQLAlchemy Core repository for the programmes table.

The application treats programmes as read-only reference data: rows arrive
through the CSV import (directory/ingest.py, `python main.py
import-programmes`) and are only ever read back through SELECT DISTINCT
projections.

Security: all queries use bound parameters. No f-strings in SQL.

Usage:
    store = ProgrammeStore("sqlite:///unidirectory.db")
    store.add_programmes([Programme("Science", "Physics", "BSc Physics")])
    store.distinct_faculties()                     # ["Science"]
    store.distinct_departments("Science")          # ["Physics"]
    store.distinct_programmes("Science", "Physics")
    store.close()
"""

from __future__ import annotations

from sqlalchemy import Column, Integer, MetaData, String, Table, func, select
from sqlalchemy.engine import Engine

from core.database import make_engine, store_errors
from directory.models import Programme

_metadata = MetaData()

_programmes = Table(
    "programmes",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("faculty", String(200), nullable=False, index=True),
    Column("department", String(200), nullable=False, index=True),
    Column("programme", String(200), nullable=False),
)


class ProgrammeStore:
    """Repository for Programme rows."""

    def __init__(self, db_url: str) -> None:
        self.engine: Engine = make_engine(db_url)
        with store_errors("create programmes schema"):
            _metadata.create_all(self.engine)

    def add_programmes(self, programmes: list[Programme]) -> int:
        """Bulk-insert programme rows. Duplicates are kept. Returns rows written."""
        if not programmes:
            return 0
        with store_errors("add programmes"), self.engine.connect() as conn:
            conn.execute(
                _programmes.insert(),
                [{"faculty": p.faculty, "department": p.department, "programme": p.programme} for p in programmes],
            )
            conn.commit()
        return len(programmes)

    def clear(self) -> int:
        """Delete every programme row. Returns number of rows removed."""
        with store_errors("clear programmes"), self.engine.connect() as conn:
            result = conn.execute(_programmes.delete())
            conn.commit()
        return result.rowcount

    def list_programmes(self) -> list[Programme]:
        """Return every row, ordered down the hierarchy."""
        query = _programmes.select().order_by(_programmes.c.faculty, _programmes.c.department, _programmes.c.programme)
        with store_errors("list programmes"), self.engine.connect() as conn:
            rows = conn.execute(query).fetchall()
        return [Programme(id=r.id, faculty=r.faculty, department=r.department, programme=r.programme) for r in rows]

    def count(self) -> int:
        with store_errors("count programmes"), self.engine.connect() as conn:
            return conn.execute(select(func.count()).select_from(_programmes)).scalar() or 0

    # ------------------------------------------------------------------
    # Distinct-value projections
    # ------------------------------------------------------------------

    def distinct_faculties(self) -> list[str]:
        return self._distinct(_programmes.c.faculty)

    def distinct_departments(self, faculty: str) -> list[str]:
        return self._distinct(_programmes.c.department, _programmes.c.faculty == faculty)

    def distinct_programmes(self, faculty: str, department: str) -> list[str]:
        return self._distinct(
            _programmes.c.programme,
            _programmes.c.faculty == faculty,
            _programmes.c.department == department,
        )

    def _distinct(self, column, *conditions) -> list[str]:
        """SELECT DISTINCT column WHERE all conditions, sorted ascending."""
        query = select(column).distinct().order_by(column)
        if conditions:
            query = query.where(*conditions)
        with store_errors("distinct query"), self.engine.connect() as conn:
            return [row[0] for row in conn.execute(query).fetchall()]

    def close(self) -> None:
        self.engine.dispose()
