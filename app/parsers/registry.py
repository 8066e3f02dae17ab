from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from app.parsers.base import BaseLayout

LAYOUT_REGISTRY: dict[str, type[BaseLayout]] = {}


def register_layout(key: str):
    """Decorator to register a table layout class under a key."""
    def decorator(cls):
        LAYOUT_REGISTRY[key] = cls
        return cls
    return decorator


def get_layout(key: str) -> BaseLayout:
    """Return a layout instance for the given key."""
    if key not in LAYOUT_REGISTRY:
        raise KeyError(f"Unknown table layout: {key}")
    return LAYOUT_REGISTRY[key]()


def list_layout_keys() -> list[str]:
    """Return all registered layout keys."""
    return sorted(LAYOUT_REGISTRY.keys())
