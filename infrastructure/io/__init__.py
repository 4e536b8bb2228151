"""I/O utilities: filesystem checks and persisted selection storage."""

from infrastructure.io.fs import SelectionStorage, ensure_exists

__all__ = [
    "ensure_exists",
    "SelectionStorage",
]
