"""Shared Pydantic schema base."""

from __future__ import annotations

from pydantic import BaseModel


class ApiModel(BaseModel):
    """All API schemas inherit from this; field names are the snake_case wire names."""

    model_config = {
        "populate_by_name": True,
        "from_attributes": True,
    }


class HealthResponse(BaseModel):
    """Health-check response returned by /health."""
    status: str = "ok"
    app: str
    env: str
