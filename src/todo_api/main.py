from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .error_handlers import register_error_handlers
from .logging_config import configure_logging
from .routers import todos as todos_router
from .settings import get_settings

openapi_tags = [
    {"name": "health", "description": "Service health and status endpoints."},
    {
        "name": "todos",
        "description": "Ownership-scoped CRUD operations for todos. Every route needs a bearer token.",
    },
]

_settings = get_settings()
configure_logging(_settings.log_level)

app = FastAPI(
    title="Todo Ownership API",
    description="Bearer-authenticated todo resource backed by a document store.",
    version="0.1.0",
    openapi_tags=openapi_tags,
)

# Configure CORS based on settings (CORS_ALLOW_ORIGINS), with '*' fallback
allow_all = (_settings.cors_allow_origins == ["*"]) or (len(_settings.cors_allow_origins) == 0)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if allow_all else _settings.cors_allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)


# PUBLIC_INTERFACE
@app.get("/", summary="Health Check", tags=["health"])
def health_check():
    """
    Health check endpoint. Does not require authentication.

    Returns:
        A JSON object indicating service health.
    """
    return {"message": "Healthy", "backend": _settings.persistence_backend}


# Include routers
app.include_router(todos_router.router)
