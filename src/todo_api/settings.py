from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Dict, List


@dataclass(frozen=True)
class Settings:
    """
    Application settings loaded from environment variables.

    Env vars:
    - PERSISTENCE_BACKEND: 'memory' (default), 'sqlite' or 'mongo'
    - SQLITE_DB_PATH: path to sqlite db file. Default './data/todos.db'
    - MONGO_URI: connection string for the mongo backend. Default 'mongodb://localhost:27017'
    - MONGO_DB_NAME / MONGO_COLLECTION: database and collection names. Default 'todos'
    - API_TOKENS: comma-separated 'token:user_id' pairs accepted as bearer credentials
    - CORS_ALLOW_ORIGINS: comma-separated list of allowed origins; '*' by default
    - LOG_LEVEL: root log level (default: INFO)
    """

    persistence_backend: str
    sqlite_db_path: str
    mongo_uri: str
    mongo_db_name: str
    mongo_collection: str
    cors_allow_origins: List[str]
    log_level: str
    api_tokens: Dict[str, str] = field(default_factory=dict)


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name, default)
    if value is None or value == "":
        return default
    return value


def _parse_origins(origins_value: str) -> List[str]:
    """
    Parse CORS origins from env. Supports:
    - '*' to allow all origins
    - Comma-separated list of origins
    """
    value = origins_value.strip()
    if value == "*":
        return ["*"]
    return [o.strip() for o in value.split(",") if o.strip()]


def _parse_tokens(tokens_value: str) -> Dict[str, str]:
    """
    Parse the bearer token table from 'token:user_id,token2:user_id2'.
    Entries without both a token and a user id are skipped.
    """
    tokens: Dict[str, str] = {}
    for entry in tokens_value.split(","):
        token, sep, user_id = entry.strip().partition(":")
        if not sep or not token.strip() or not user_id.strip():
            continue
        tokens[token.strip()] = user_id.strip()
    return tokens


# PUBLIC_INTERFACE
@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Return application settings loaded from environment variables.
    Parsed once per process; call get_settings.cache_clear() to re-read.
    """
    backend = _get_env("PERSISTENCE_BACKEND", "memory").strip().lower()
    if backend not in {"memory", "sqlite", "mongo"}:
        # Fallback to memory if unsupported
        backend = "memory"

    return Settings(
        persistence_backend=backend,
        sqlite_db_path=_get_env("SQLITE_DB_PATH", "./data/todos.db").strip(),
        mongo_uri=_get_env("MONGO_URI", "mongodb://localhost:27017").strip(),
        mongo_db_name=_get_env("MONGO_DB_NAME", "todos").strip(),
        mongo_collection=_get_env("MONGO_COLLECTION", "todos").strip(),
        cors_allow_origins=_parse_origins(_get_env("CORS_ALLOW_ORIGINS", "*")),
        log_level=_get_env("LOG_LEVEL", "INFO").strip().upper(),
        api_tokens=_parse_tokens(_get_env("API_TOKENS", "")),
    )
