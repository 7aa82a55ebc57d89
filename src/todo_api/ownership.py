"""
Ownership enforcement and update-body policy shared by the todo routes.

``require_ownership`` must run before any mutating store call so that a
non-owner can never cause a partial write.
"""
from __future__ import annotations

from typing import Any, Dict, Optional

from .auth import Principal
from .errors import NotFound, NotOwned
from .models import OWNER_FIELD, PROTECTED_FIELDS, TodoEntity


# PUBLIC_INTERFACE
def ensure_found(record: Optional[TodoEntity]) -> TodoEntity:
    """Return the looked-up record, or raise NotFound when the lookup came back empty."""
    if record is None:
        raise NotFound()
    return record


# PUBLIC_INTERFACE
def is_owner(principal: Principal, record: TodoEntity) -> bool:
    """True when the caller is the principal recorded as the todo's owner."""
    return record.get(OWNER_FIELD) == principal.id


# PUBLIC_INTERFACE
def require_ownership(principal: Principal, record: TodoEntity) -> TodoEntity:
    """Raise NotOwned unless the caller owns the record; returns the record otherwise."""
    if not is_owner(principal, record):
        raise NotOwned()
    return record


# PUBLIC_INTERFACE
def strip_protected(fields: Dict[str, Any]) -> Dict[str, Any]:
    """Drop server-managed keys (id, owner, timestamps) from a request body."""
    return {k: v for k, v in fields.items() if k not in PROTECTED_FIELDS}


# PUBLIC_INTERFACE
def drop_empty_values(fields: Dict[str, Any]) -> Dict[str, Any]:
    """
    Drop every key whose value is exactly the empty string.

    Clients send "" for fields they do not want to change, so a field can
    not be cleared to "" through an update.
    """
    return {k: v for k, v in fields.items() if v != ""}
