from __future__ import annotations

import os
from dataclasses import dataclass
from typing import List

from dotenv import find_dotenv, load_dotenv


@dataclass(frozen=True)
class Settings:
    """
    Application settings loaded from environment variables.

    Env vars (an optional .env file in the working directory is read first):
    - MONGODB_URI: MongoDB connection string. Default 'mongodb://localhost:27017'
    - DB_NAME: database holding the todo collection. Default 'todos'
    - COLLECTION_NAME: collection name. Default 'todos'
    - HOST / PORT: bind address for the HTTP server. Default '0.0.0.0' / 9000
    - READ_TIMEOUT: seconds allowed for listing todos. Default 10
    - WRITE_TIMEOUT: seconds allowed for insert/update/delete. Default 5
    - CONNECT_TIMEOUT: seconds allowed for the startup ping. Default 10
    - CORS_ALLOW_ORIGINS: comma-separated list of allowed origins; '*' by default
    - LOG_LEVEL: DEBUG, INFO, WARNING, ERROR or CRITICAL. Default 'INFO'
    """

    mongodb_uri: str
    db_name: str
    collection_name: str
    host: str
    port: int
    read_timeout: float
    write_timeout: float
    connect_timeout: float
    cors_allow_origins: List[str]
    log_level: str


_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name, default)
    if value is None or value == "":
        return default
    return value


def _parse_int(value: str, default: int) -> int:
    try:
        parsed = int(value.strip())
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _parse_seconds(value: str, default: float) -> float:
    try:
        parsed = float(value.strip())
    except ValueError:
        return default
    return parsed if parsed > 0 else default


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


# PUBLIC_INTERFACE
def get_settings() -> Settings:
    """Return application settings loaded from the environment (and .env, if present)."""
    load_dotenv(find_dotenv(usecwd=True))

    log_level = _get_env("LOG_LEVEL", "INFO").strip().upper()
    if log_level not in _LOG_LEVELS:
        log_level = "INFO"

    return Settings(
        mongodb_uri=_get_env("MONGODB_URI", "mongodb://localhost:27017").strip(),
        db_name=_get_env("DB_NAME", "todos").strip(),
        collection_name=_get_env("COLLECTION_NAME", "todos").strip(),
        host=_get_env("HOST", "0.0.0.0").strip(),
        port=_parse_int(_get_env("PORT", "9000"), 9000),
        read_timeout=_parse_seconds(_get_env("READ_TIMEOUT", "10"), 10.0),
        write_timeout=_parse_seconds(_get_env("WRITE_TIMEOUT", "5"), 5.0),
        connect_timeout=_parse_seconds(_get_env("CONNECT_TIMEOUT", "10"), 10.0),
        cors_allow_origins=_parse_origins(_get_env("CORS_ALLOW_ORIGINS", "*")),
        log_level=log_level,
    )
