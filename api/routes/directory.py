"""
api/routes/directory.py -- Public directory listing endpoints.

Routes:
  GET /api/userlist                          -- all members
  GET /api/userlist/f/{faculty}              -- members with faculty == value
  GET /api/userlist/d/{department}           -- members with department == value
  GET /api/userlist/p/{programme}            -- members with programme == value
  GET /api/progdata                          -- distinct faculties
  GET /api/progdata/{faculty}                -- distinct departments in faculty
  GET /api/progdata/{faculty}/{department}   -- distinct programmes in both

Auth policy: public. The directory is browsable without signing in, so every
member record goes out through UserPublic (no credential fields).

Filters are exact and case-sensitive: /api/userlist/f/science does not match
members whose faculty is "Science".
"""

from __future__ import annotations

from fastapi import APIRouter, Request

from api.models import UserPublic
from directory.models import UserFilter
from directory.queries import DirectoryQueryService

router = APIRouter()


def _service(request: Request) -> DirectoryQueryService:
    return request.app.state.directory


def _list(request: Request, user_filter: UserFilter | None = None) -> list[UserPublic]:
    return [UserPublic.from_user(u) for u in _service(request).list_users(user_filter)]


# ---------------------------------------------------------------------------
# Members
# ---------------------------------------------------------------------------


@router.get("/userlist", response_model=list[UserPublic])
def list_all_users(request: Request) -> list[UserPublic]:
    return _list(request)


@router.get("/userlist/f/{faculty}", response_model=list[UserPublic])
def list_users_by_faculty(request: Request, faculty: str) -> list[UserPublic]:
    return _list(request, UserFilter("faculty", faculty))


@router.get("/userlist/d/{department}", response_model=list[UserPublic])
def list_users_by_department(request: Request, department: str) -> list[UserPublic]:
    return _list(request, UserFilter("department", department))


@router.get("/userlist/p/{programme}", response_model=list[UserPublic])
def list_users_by_programme(request: Request, programme: str) -> list[UserPublic]:
    return _list(request, UserFilter("programme", programme))


# ---------------------------------------------------------------------------
# Programme hierarchy
# ---------------------------------------------------------------------------


@router.get("/progdata", response_model=list[str])
def list_faculties(request: Request) -> list[str]:
    return _service(request).list_faculties()


@router.get("/progdata/{faculty}", response_model=list[str])
def list_departments(request: Request, faculty: str) -> list[str]:
    return _service(request).list_departments(faculty)


@router.get("/progdata/{faculty}/{department}", response_model=list[str])
def list_programmes(request: Request, faculty: str, department: str) -> list[str]:
    return _service(request).list_programmes(faculty, department)
