from __future__ import annotations

from typing import Dict, List, Optional, Sequence

from fastapi import status


class TodoApiError(Exception):
    """Base class for failures the error translator knows how to render."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


# PUBLIC_INTERFACE
class AuthenticationRequired(TodoApiError):
    """Bearer credential missing, malformed or unknown."""

    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Not authenticated"


# PUBLIC_INTERFACE
class NotFound(TodoApiError):
    """No document matches the requested identifier."""

    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Todo not found"


# PUBLIC_INTERFACE
class NotOwned(TodoApiError):
    """The authenticated caller does not own the target document."""

    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "The provided token does not match the owner of this todo"


# PUBLIC_INTERFACE
class MalformedIdentifier(TodoApiError):
    """The identifier in the path cannot be cast to a store identifier."""

    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Todo not found"

    def __init__(self, raw_id: str, message: Optional[str] = None) -> None:
        self.raw_id = raw_id
        super().__init__(message)


# PUBLIC_INTERFACE
class ValidationFailed(TodoApiError):
    """
    A document was rejected by store-level validation (missing required
    field, wrong value type, unsafe key).
    """

    status_code = 422
    default_message = "Todo validation failed"

    def __init__(self, details: Sequence[Dict[str, str]], message: Optional[str] = None) -> None:
        self.details: List[Dict[str, str]] = list(details)
        super().__init__(message)
