from __future__ import annotations

import re
import secrets
from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from .errors import MalformedIdentifier, ValidationFailed

# A stored todo document. Besides the server-managed keys below it carries
# whatever string fields the owner supplied.
TodoEntity = Dict[str, Any]

ID_FIELD = "id"
OWNER_FIELD = "owner"
CREATED_AT_FIELD = "created_at"
UPDATED_AT_FIELD = "updated_at"

# Keys a client can never set through a request body
PROTECTED_FIELDS = frozenset({ID_FIELD, "_id", OWNER_FIELD, CREATED_AT_FIELD, UPDATED_AT_FIELD})

_ID_PATTERN = re.compile(r"^[0-9a-f]{24}$")


# PUBLIC_INTERFACE
def new_identifier() -> str:
    """Return a fresh 24-character hex identifier (same shape as a Mongo ObjectId)."""
    return secrets.token_hex(12)


# PUBLIC_INTERFACE
def parse_identifier(raw_id: str) -> str:
    """
    Normalize an identifier taken from a request path.

    Raises:
        MalformedIdentifier: if raw_id is not 24 hex characters.
    """
    candidate = (raw_id or "").strip().lower()
    if not _ID_PATTERN.match(candidate):
        raise MalformedIdentifier(raw_id)
    return candidate


class TodoDocument(BaseModel):
    """
    Store-level schema for a todo document. Only ``title`` and ``owner`` are
    fixed; any other caller-supplied field is accepted as long as it is a
    string and its key is safe to persist in a document store.
    """

    model_config = ConfigDict(extra="allow")

    title: str = Field(..., min_length=1, description="Short title for the todo item")
    owner: str = Field(..., min_length=1, description="Identifier of the creating principal")

    @model_validator(mode="after")
    def check_extra_fields(self) -> "TodoDocument":
        for key, value in (self.model_extra or {}).items():
            if key.startswith("$") or "." in key:
                raise ValueError(f"field name '{key}' is not allowed")
            if not isinstance(value, str):
                raise ValueError(f"field '{key}' must be a string")
        return self


def _validation_details(exc: ValidationError) -> List[Dict[str, str]]:
    details: List[Dict[str, str]] = []
    for issue in exc.errors():
        location = [str(part) for part in issue.get("loc", ())]
        details.append(
            {
                "field": ".".join(location) if location else "todo",
                "issue": str(issue.get("msg", "Invalid value")),
            }
        )
    return details


# PUBLIC_INTERFACE
def validate_document(fields: Dict[str, Any]) -> None:
    """
    Validate the caller-controlled part of a document before it is written.
    Server-managed keys other than ``owner`` are ignored here.

    Raises:
        ValidationFailed: with one detail entry per offending field.
    """
    candidate = {k: v for k, v in fields.items() if k == OWNER_FIELD or k not in PROTECTED_FIELDS}
    try:
        TodoDocument.model_validate(candidate)
    except ValidationError as exc:
        raise ValidationFailed(_validation_details(exc)) from exc
