"""
Todo Ownership API package.

The FastAPI application lives in ``todo_api.main:app``.
"""
