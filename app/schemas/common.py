"""Response envelope shared by every endpoint."""

from typing import Generic, TypeVar

from pydantic import BaseModel, Field

DataT = TypeVar("DataT")


class ApiResponse(BaseModel, Generic[DataT]):
    """Success envelope: {success, message, data}."""

    success: bool = Field(default=True, description="Always true on success")
    message: str = Field(..., description="Human-readable outcome")
    data: DataT


class ErrorResponse(BaseModel):
    """Error envelope: {success: false, message, errors}."""

    success: bool = False
    message: str
    errors: dict[str, list[str]] = Field(default_factory=dict)


class EmptyData(BaseModel):
    """Placeholder payload for endpoints that return no data."""
