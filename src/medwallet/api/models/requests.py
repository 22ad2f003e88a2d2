"""API request schemas."""

from typing import Any

from pydantic import BaseModel, Field

from ...session import Role


class SignInRequest(BaseModel):
    """Request to start a session.

    Credentials are not verified; the role and user id are stored as given.
    """

    role: Role = Field(default=Role.USER, description="user, doctor or admin")
    user_id: str = Field(
        default="demo-user",
        description="Identity whose record the session works on",
        min_length=1,
    )


class UpdatePatientRequest(BaseModel):
    """Partial record edit: top-level fields to replace (camelCase or snake_case)."""

    updates: dict[str, Any] = Field(
        ...,
        description="Top-level record fields and their new values",
    )
