"""
API request and response models for gatekeep REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py, which
own the internal domain representation. Route handlers map between the two.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict

# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class CredentialsRequest(BaseModel):
    """Body of POST /register and POST /login (JSON or form-encoded).

    Both fields are optional at the schema level on purpose: a missing or
    empty field must produce the service's InvalidInput (400) or
    InvalidCredentials (401), not FastAPI's generic 422.
    """

    model_config = ConfigDict(extra="ignore")

    login: Optional[str] = None
    password: Optional[str] = None


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class MessageResponse(BaseModel):
    """Plain confirmation used by register, login and logout."""

    model_config = ConfigDict(frozen=True)

    message: str


class DataResponse(BaseModel):
    """Response for GET /data."""

    model_config = ConfigDict(frozen=True)

    data: Any
    cached: bool


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /health."""

    model_config = ConfigDict(frozen=True)

    status: str = "ok"
    version: str
