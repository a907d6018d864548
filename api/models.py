"""
API response models for UniDirectory JSON endpoints.

These Pydantic v2 models define the HTTP transport contract. They are
intentionally separate from the dataclasses in auth/models.py and
directory/models.py, which own the internal domain representation.

UserPublic is the only shape a User is ever serialized in. It has no
hashed_password and no internal id, so neither the profile endpoint nor the
public user list can leak credential material.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict

from auth.models import User

# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class UserPublic(BaseModel):
    """A member's public directory record."""

    model_config = ConfigDict(frozen=True)

    username: str
    email: str
    first_name: str
    last_name: str
    faculty: str
    department: str
    programme: str
    graduating_year: int
    picture: str
    biography: str
    featured_works: str
    sm_facebook: str
    sm_twitter: str
    sm_instagram: str
    sm_linkedin: str

    @classmethod
    def from_user(cls, user: User) -> "UserPublic":
        """Build the public view of a domain User. Credential fields are dropped here."""
        return cls(
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
        )


class HealthResponse(BaseModel):
    status: str = "healthy"
    version: str


# ---------------------------------------------------------------------------
# Error envelope
# ---------------------------------------------------------------------------


class ErrorDetail(BaseModel):
    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Uniform error body: {"error": {"code": ..., "message": ..., "detail": ...}}."""

    error: ErrorDetail
