# Common API response schemas.
# Created: 2026-10-13

from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class APIModel(BaseModel):
    """Base model; camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(
        from_attributes=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


class ErrorResponse(BaseModel):
    """Standard error envelope."""

    message: str


def error_responses(*status_codes: int) -> dict[int | str, dict]:
    """OpenAPI ``responses=`` entries for the error statuses a route returns."""
    return {code: {"model": ErrorResponse} for code in status_codes}


class StatusResponse(BaseModel):
    """Status string response."""

    status: str = "ok"
    version: str | None = None
