from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


# PUBLIC_INTERFACE
class TodoPayload(BaseModel):
    """
    Request body for creating or updating a todo: the fields are nested
    under a ``todo`` key. Field values are checked by the store, not here.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {"todo": {"title": "Buy groceries", "status": "open"}}
        }
    )

    todo: Dict[str, Any] = Field(..., description="Todo fields to create or change")


# PUBLIC_INTERFACE
class TodoOut(BaseModel):
    """
    A todo as returned by the API. Caller-supplied fields are passed through
    next to the server-managed ones.
    """

    model_config = ConfigDict(
        extra="allow",
        json_schema_extra={
            "example": {
                "id": "5a7db6c74d55bc51bdf39793",
                "owner": "user-1",
                "title": "Buy groceries",
                "status": "open",
                "created_at": "2025-01-25T10:15:30.123456+00:00",
                "updated_at": "2025-01-26T09:00:00.000001+00:00",
            }
        },
    )

    id: str = Field(..., description="Store-assigned identifier")
    owner: str = Field(..., description="Identifier of the principal that created the todo")
    title: str = Field(..., description="Short title for the todo item")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: datetime = Field(..., description="Last update timestamp")


# PUBLIC_INTERFACE
class TodoEnvelope(BaseModel):
    """Single-todo response body."""

    todo: TodoOut


# PUBLIC_INTERFACE
class TodoListEnvelope(BaseModel):
    """List response body."""

    todos: List[TodoOut]


class ErrorBody(BaseModel):
    """Error response body written by the error translator."""

    error: str
    detail: Optional[List[Dict[str, str]]] = Field(
        default=None, description="Per-field issues; only present on validation errors"
    )
