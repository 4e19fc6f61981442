"""Domain contracts for cached aggregate views."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, JsonValue


class CachedView(BaseModel):
    """One aggregate view and whether it was served from the cache."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    key: str
    value: JsonValue
    from_cache: bool


def view_key(resource: str, view: str) -> str:
    """Compose the ``<resource>:<view>`` key of an aggregate view."""
    resource = resource.strip()
    view = view.strip()
    if resource == "" or view == "":
        raise ValueError("resource and view must be non-empty")
    return f"{resource}:{view}"
