"""Helper modules for the OrbitCloud application."""

__all__ = [
    "catalog",
    "validation",
]
