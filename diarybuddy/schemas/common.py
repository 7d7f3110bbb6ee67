"""
Shared schema primitives used across the API.
"""
from typing import Any, Optional
from pydantic import BaseModel, ConfigDict


class ErrorResponse(BaseModel):
    """Standard error envelope returned for all 4xx/5xx responses."""
    model_config = ConfigDict(from_attributes=True)

    code: str
    message: str
    details: Optional[dict[str, Any]] = None


def strip_required(v, name: str):
    """Strip a string field and reject it when nothing is left."""
    stripped = v.strip() if isinstance(v, str) else v
    if isinstance(stripped, str) and not stripped:
        raise ValueError(f"{name} must not be empty after stripping whitespace")
    return stripped
