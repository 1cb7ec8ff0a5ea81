"""Shared serialization helpers for camelCase conversion.

Provides a single ``snake_to_camel`` implementation used by
Pydantic model configs, plus the JSON envelope helpers used by
the API routes.
"""

from __future__ import annotations

from typing import Any

import pydantic


def snake_to_camel(name: str) -> str:
    """Convert a snake_case string to camelCase.

    Args:
        name: A snake_case identifier such as
            ``"my_field_name"``.

    Returns:
        The camelCase equivalent, e.g. ``"myFieldName"``.
    """
    parts = name.split("_")
    return parts[0] + "".join(w.capitalize() for w in parts[1:])


def to_wire(obj: pydantic.BaseModel | list[pydantic.BaseModel]) -> Any:
    """Dump a model (or list of models) to JSON-safe camelCase data."""
    if isinstance(obj, list):
        return [item.model_dump(by_alias=True, mode="json") for item in obj]
    return obj.model_dump(by_alias=True, mode="json")


def envelope(data: Any, **extra: Any) -> dict[str, Any]:
    """Wrap response data in the ``{"success": true, "data": ...}`` envelope."""
    body: dict[str, Any] = {"success": True, "data": data}
    body.update(extra)
    return body
