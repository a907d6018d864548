"""
web/forms.py -- Validation for the registration form.

The browser posts flat form fields with the legacy names the register page
has always used (firstname, lastname, year, facebook, ...). RegistrationForm
accepts those names via aliases and exposes them as ProfileFields for the
Credential Store.

The rules are deliberately conservative: bounded lengths, a plausible email
shape, a sane graduating year, and a minimum password length. Whether the
chosen faculty/department/programme exists in the programmes table is NOT
checked -- those fields are free text on the User record.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from auth.credentials import ProfileFields

USERNAME_PATTERN = r"^[a-z0-9._-]{3,32}$"
EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class RegistrationForm(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, populate_by_name=True)

    username: str = Field(pattern=USERNAME_PATTERN)
    email: str = Field(max_length=255, pattern=EMAIL_PATTERN)
    password: str = Field(min_length=8, max_length=255)
    first_name: str = Field(alias="firstname", min_length=1, max_length=100)
    last_name: str = Field(alias="lastname", min_length=1, max_length=100)
    faculty: str = Field(min_length=1, max_length=200)
    department: str = Field(min_length=1, max_length=200)
    programme: str = Field(min_length=1, max_length=200)
    graduating_year: int = Field(alias="year", ge=1900, le=2100)
    picture: Optional[str] = Field(default="", max_length=2048)
    facebook: str = Field(default="", max_length=255)
    twitter: str = Field(default="", max_length=255)
    instagram: str = Field(default="", max_length=255)
    linkedin: str = Field(default="", max_length=255)

    @field_validator("username", mode="before")
    @classmethod
    def lowercase_username(cls, value: str) -> str:
        """Lowercase before the pattern check so "Alice" is accepted as "alice"."""
        return str(value).strip().lower()

    def to_profile_fields(self) -> ProfileFields:
        return ProfileFields(
            username=self.username,
            email=self.email,
            first_name=self.first_name,
            last_name=self.last_name,
            faculty=self.faculty,
            department=self.department,
            programme=self.programme,
            graduating_year=self.graduating_year,
            picture=self.picture or "",
            sm_facebook=self.facebook,
            sm_twitter=self.twitter,
            sm_instagram=self.instagram,
            sm_linkedin=self.linkedin,
        )


def describe_errors(exc) -> list[str]:
    """Turn a pydantic ValidationError into short, user-facing messages.

    Messages name the offending field only; submitted values are never echoed
    back into the page.
    """
    messages: list[str] = []
    for err in exc.errors():
        field = str(err["loc"][0]) if err.get("loc") else "form"
        messages.append(f"Invalid value for {field}.")
    return messages
