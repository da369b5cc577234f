from __future__ import annotations

from typing import Any


def ok(data: Any = None, message: str | None = None, **extra: Any) -> dict:
    """Success envelope shared by all endpoints: {"success": true, "data": ...}."""
    body: dict[str, Any] = {"success": True}
    if data is not None:
        body["data"] = data
    if message:
        body["message"] = message
    body.update(extra)
    return body


def error(message: str, errors: list | None = None) -> dict:
    body: dict[str, Any] = {"success": False, "message": message}
    if errors:
        body["errors"] = errors
    return body
