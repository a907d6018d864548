"""
auth/store.py -- SQLAlchemy Core persistence layer for users.

Pattern: Repository + Data Mapper. UserStore is the repository; _row_to_user
is the mapper. Services and routes never touch SQL directly.

Security:
  All queries use bound parameters. No f-strings in SQL.

  Column names that come from callers (update_profile_field, list_users) are
  checked against fixed whitelists before they reach a query.

Layer rule: no imports from api/, web/, or directory/.
"""

from __future__ import annotations

from sqlalchemy import Column, Integer, MetaData, String, Table, Text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError

from auth.models import User
from core.database import make_engine, now_iso, store_errors
from core.errors import DuplicateUsernameError, StoreError

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("username", String(64), nullable=False, unique=True),
    Column("email", String(255), nullable=False),
    Column("first_name", String(100), nullable=False),
    Column("last_name", String(100), nullable=False),
    Column("faculty", String(200), nullable=False, index=True),
    Column("department", String(200), nullable=False, index=True),
    Column("programme", String(200), nullable=False, index=True),
    Column("graduating_year", Integer, nullable=False),
    Column("picture", Text, nullable=False, server_default=""),
    Column("biography", Text, nullable=False, server_default=""),
    Column("featured_works", Text, nullable=False, server_default=""),
    Column("sm_facebook", String(255), nullable=False, server_default=""),
    Column("sm_twitter", String(255), nullable=False, server_default=""),
    Column("sm_instagram", String(255), nullable=False, server_default=""),
    Column("sm_linkedin", String(255), nullable=False, server_default=""),
    Column("hashed_password", Text, nullable=False),
    Column("created_at", String(32), nullable=False),
)


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for User records.

    Usage:
        store = UserStore()
        store.create_user(User(username="alice", ..., hashed_password=hash_password("secret")))
        user = store.get_by_username("alice")
        store.close()
    """

    # Only the two self-service profile fields may be rewritten after
    # registration. Everything else is fixed at sign-up.
    _EDITABLE_FIELDS: set = {"biography", "featured_works"}

    # Exact-match filters accepted by list_users().
    _FILTERABLE_FIELDS: set = {"faculty", "department", "programme"}

    def __init__(self, db_url: str) -> None:
        self.engine: Engine = make_engine(db_url)
        with store_errors("create users schema"):
            _metadata.create_all(self.engine)

    def create_user(self, user: User) -> int:
        """Insert a new user and return its assigned database ID.

        Raises DuplicateUsernameError if the username already exists. The
        UNIQUE constraint decides, so two concurrent registrations for the
        same name cannot both succeed. Any other constraint violation (a NULL
        in a required column) is a StoreError.
        """
        try:
            with store_errors("create user"), self.engine.connect() as conn:
                result = conn.execute(
                    _users.insert().values(
                        username=user.username,
                        email=user.email,
                        first_name=user.first_name,
                        last_name=user.last_name,
                        faculty=user.faculty,
                        department=user.department,
                        programme=user.programme,
                        graduating_year=user.graduating_year,
                        picture=user.picture,
                        biography=user.biography,
                        featured_works=user.featured_works,
                        sm_facebook=user.sm_facebook,
                        sm_twitter=user.sm_twitter,
                        sm_instagram=user.sm_instagram,
                        sm_linkedin=user.sm_linkedin,
                        hashed_password=user.hashed_password,
                        created_at=now_iso(),
                    )
                )
                conn.commit()
                return result.inserted_primary_key[0]
        except IntegrityError as exc:
            if self.get_by_username(user.username) is not None:
                raise DuplicateUsernameError(user.username) from exc
            raise StoreError(f"create user failed: {exc.__class__.__name__}") from exc

    def get_by_username(self, username: str) -> User | None:
        """Look up a user by exact username. Returns None if not found.

        Callers are expected to pass an already-normalized (lowercased) name.
        """
        with store_errors("get user"), self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.username == username)).fetchone()
        return _row_to_user(row) if row is not None else None

    def update_profile_field(self, username: str, field: str, value: str) -> bool:
        """Overwrite one self-service profile column for one user.

        Only fields in _EDITABLE_FIELDS are accepted; anything else raises
        ValueError before any SQL is built. The UPDATE names exactly one
        column, so other fields on the row are never rewritten.

        Returns True if a row was updated, False if the username was not found.
        """
        if field not in self._EDITABLE_FIELDS:
            raise ValueError(f"Field {field!r} is not editable")
        with store_errors("update profile"), self.engine.connect() as conn:
            result = conn.execute(_users.update().where(_users.c.username == username).values({field: value}))
            conn.commit()
        return result.rowcount > 0

    def list_users(self, by: str | None = None, value: str | None = None) -> list[User]:
        """Return users ordered by username, optionally filtered by one field.

        by must be one of _FILTERABLE_FIELDS; the comparison is exact and
        case-sensitive.
        """
        query = _users.select()
        if by is not None:
            if by not in self._FILTERABLE_FIELDS:
                raise ValueError(f"Cannot filter users by {by!r}")
            query = query.where(_users.c[by] == value)
        with store_errors("list users"), self.engine.connect() as conn:
            rows = conn.execute(query.order_by(_users.c.username)).fetchall()
        return [_row_to_user(r) for r in rows]

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        username=row.username,
        email=row.email,
        first_name=row.first_name,
        last_name=row.last_name,
        faculty=row.faculty,
        department=row.department,
        programme=row.programme,
        graduating_year=row.graduating_year,
        picture=row.picture,
        biography=row.biography,
        featured_works=row.featured_works,
        sm_facebook=row.sm_facebook,
        sm_twitter=row.sm_twitter,
        sm_instagram=row.sm_instagram,
        sm_linkedin=row.sm_linkedin,
        hashed_password=row.hashed_password,
        created_at=row.created_at,
    )
