"""
Runtime configuration.

Uses ``pydantic_settings.BaseSettings`` for automatic environment
variable binding, type coercion, and validation.  A ``.env`` file
is loaded by the server entry point before settings are read.
"""

from __future__ import annotations

from typing import Literal

import pydantic
import pydantic_settings

from tracely.models import site


class Settings(pydantic_settings.BaseSettings):
    """Server and engine configuration.

    Attributes:
        storage_backend: ``memory`` (default) or ``json``.
        data_dir: Root directory for the JSON backend.
        history_capacity: Snapshots kept per scope.
        cors_origin: Allowed browser origin for the dashboard.
        environment: ``development`` or ``production``.
        host: Bind address for uvicorn.
        port: Bind port for uvicorn.
        debug: Emit debug-level log lines.
    """

    storage_backend: Literal["memory", "json"] = pydantic.Field(
        default="memory", validation_alias="TRACELY_STORAGE"
    )
    data_dir: str = pydantic.Field(
        default=".data", validation_alias="TRACELY_DATA_DIR"
    )
    history_capacity: int = pydantic.Field(
        default=site.HISTORY_CAPACITY, ge=1, validation_alias="TRACELY_HISTORY_CAPACITY"
    )
    cors_origin: str = pydantic.Field(
        default="http://localhost:5173", validation_alias="CORS_ORIGIN"
    )
    environment: str = pydantic.Field(
        default="development", validation_alias="ENVIRONMENT"
    )
    host: str = pydantic.Field(
        default="0.0.0.0", validation_alias="UVICORN_HOST"
    )
    port: int = pydantic.Field(
        default=3000, validation_alias="UVICORN_PORT"
    )
    debug: bool = pydantic.Field(
        default=False, validation_alias="TRACELY_DEBUG"
    )

    @property
    def is_production(self) -> bool:
        """True when running with ``ENVIRONMENT=production``."""
        return self.environment == "production"
