"""Filesystem utilities: path checks and the persisted-selection file."""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


def ensure_exists(path: Path, what: str) -> None:
    """
    Check that a path exists, raise FileNotFoundError if not.

    Args:
        path: Path to check
        what: Description of what this path represents (for error message)

    Raises:
        FileNotFoundError: If path does not exist
    """
    if not path.exists():
        raise FileNotFoundError(f"Missing {what} at: {path}")


class SelectionStorage:
    """
    Single JSON document holding the persisted taxonomy selection.

    Writes go to a temp file in the same directory followed by `os.replace`,
    so a crash mid-write never leaves a truncated document behind.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def load(self) -> dict[str, Any] | None:
        """Return the stored document, or None when missing or unreadable."""
        if not self.path.exists():
            return None
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Ignoring unreadable selection file %s: %s", self.path, e)
            return None
        if not isinstance(data, dict):
            logger.warning("Ignoring selection file %s: expected a JSON object", self.path)
            return None
        return data

    def save(self, document: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{self.path.name}.", dir=self.path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(document, f, ensure_ascii=False, indent=2)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        logger.debug("Saved taxonomy selection to %s", self.path)

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)
