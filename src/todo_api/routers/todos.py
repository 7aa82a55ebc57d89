from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Response, status

from ..auth import Principal, get_current_user
from ..models import OWNER_FIELD
from ..ownership import drop_empty_values, ensure_found, require_ownership, strip_protected
from ..repositories import Repository, get_repository
from ..schemas import ErrorBody, TodoEnvelope, TodoListEnvelope, TodoOut, TodoPayload

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/todos",
    tags=["todos"],
    responses={401: {"model": ErrorBody, "description": "Missing or invalid bearer token"}},
)


def _get_repo(repo: Repository = Depends(get_repository)) -> Repository:
    """
    Dependency wrapper for repository to keep signatures clean.
    """
    return repo


# PUBLIC_INTERFACE
@router.get(
    "",
    response_model=TodoListEnvelope,
    summary="List Todos",
    description="List every todo in the store. Any authenticated caller sees all todos.",
    responses={200: {"description": "List retrieved successfully"}},
)
def list_todos(
    user: Principal = Depends(get_current_user),
    repo: Repository = Depends(_get_repo),
) -> TodoListEnvelope:
    """
    List all todos.
    """
    return TodoListEnvelope(todos=[TodoOut(**t) for t in repo.find_all()])


# PUBLIC_INTERFACE
@router.get(
    "/{todo_id}",
    response_model=TodoEnvelope,
    summary="Get Todo",
    description="Get a single todo by ID.",
    responses={
        200: {"description": "Todo found"},
        404: {"model": ErrorBody, "description": "Todo not found"},
    },
)
def get_todo(
    todo_id: str,
    user: Principal = Depends(get_current_user),
    repo: Repository = Depends(_get_repo),
) -> TodoEnvelope:
    """
    Retrieve a single todo by its ID.
    """
    todo = ensure_found(repo.find_by_id(todo_id))
    return TodoEnvelope(todo=TodoOut(**todo))


# PUBLIC_INTERFACE
@router.post(
    "",
    response_model=TodoEnvelope,
    status_code=status.HTTP_201_CREATED,
    summary="Create Todo",
    description=(
        "Create a todo owned by the caller. Any owner supplied in the body is ignored."
    ),
    responses={
        201: {"description": "Todo created successfully"},
        422: {"model": ErrorBody, "description": "Validation error"},
    },
)
def create_todo(
    payload: TodoPayload,
    user: Principal = Depends(get_current_user),
    repo: Repository = Depends(_get_repo),
) -> TodoEnvelope:
    """
    Create a new todo. The owner is always the authenticated caller.
    """
    fields = strip_protected(payload.todo)
    fields[OWNER_FIELD] = user.id
    created = repo.create(fields)
    logger.info("User %s created todo %s", user.id, created["id"])
    return TodoEnvelope(todo=TodoOut(**created))


# PUBLIC_INTERFACE
@router.patch(
    "/{todo_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    summary="Update Todo",
    description=(
        "Partially update a todo owned by the caller. Fields sent as empty strings "
        "are left unchanged, so a field can not be cleared through this route. "
        "Returns no body; fetch the todo again to see its new state."
    ),
    responses={
        204: {"description": "Todo updated"},
        404: {"model": ErrorBody, "description": "Todo not found"},
        422: {"model": ErrorBody, "description": "Validation error"},
    },
)
def patch_todo(
    todo_id: str,
    payload: TodoPayload,
    user: Principal = Depends(get_current_user),
    repo: Repository = Depends(_get_repo),
) -> Response:
    """
    Partial update of a todo. Ownership is checked after existence and before any write.
    """
    changes = strip_protected(payload.todo)
    todo = ensure_found(repo.find_by_id(todo_id))
    require_ownership(user, todo)
    repo.update(todo, drop_empty_values(changes))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# PUBLIC_INTERFACE
@router.delete(
    "/{todo_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    summary="Delete Todo",
    description="Delete a todo owned by the caller.",
    responses={
        204: {"description": "Todo deleted"},
        404: {"model": ErrorBody, "description": "Todo not found"},
    },
)
def delete_todo(
    todo_id: str,
    user: Principal = Depends(get_current_user),
    repo: Repository = Depends(_get_repo),
) -> Response:
    """
    Delete a todo. Returns 204 on success, 404 if not found.
    """
    todo = ensure_found(repo.find_by_id(todo_id))
    require_ownership(user, todo)
    repo.delete(todo)
    logger.info("User %s deleted todo %s", user.id, todo["id"])
    return Response(status_code=status.HTTP_204_NO_CONTENT)
