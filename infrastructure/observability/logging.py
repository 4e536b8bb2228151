"""
Logging setup with contextvars-based metadata injection.

- Adds session tag and the active organization/location ids into every log line (via contextvars).
- Supports console-only logging OR console + rotating file logs.
- Tunes noisy third-party library loggers (httpx, httpcore).
"""

import contextvars
import hashlib
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

# Context variables for dynamic log metadata
cv_session_tag = contextvars.ContextVar("session_tag", default="-")
cv_organization_id = contextvars.ContextVar("organization_id", default="-")
cv_location_id = contextvars.ContextVar("location_id", default="-")

# Kept for metadata, not printed on every line
cv_base_url = contextvars.ContextVar("base_url", default="-")


def make_session_tag(session_key: str, length: int = 8) -> str:
    """
    Stable short tag derived from a session key (e.g. base URL + user).
    Uses BLAKE2s; the raw key (which may contain a username) is never printed.
    """
    h = hashlib.blake2s(session_key.encode("utf-8"), digest_size=8).hexdigest()
    return h[:length]


class ContextInjectFilter(logging.Filter):
    """Inject context variables into log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.session = cv_session_tag.get() or "-"
        record.org = cv_organization_id.get() or "-"
        record.loc = cv_location_id.get() or "-"
        return True


def set_log_context(
    *,
    session_key: str | None = None,
    organization_id: int | None = None,
    location_id: int | None = None,
    base_url: str | None = None,
) -> None:
    """Update logging context (safe across asyncio tasks via contextvars)."""
    if session_key is not None:
        cv_session_tag.set(make_session_tag(str(session_key)))
    if organization_id is not None:
        cv_organization_id.set(str(int(organization_id)))
    if location_id is not None:
        cv_location_id.set(str(int(location_id)))
    if base_url is not None:
        cv_base_url.set(str(base_url))


def get_log_context() -> dict[str, str]:
    """Return the current context in a convenient dict form."""
    return {
        "session_tag": str(cv_session_tag.get() or "-"),
        "organization_id": str(cv_organization_id.get() or "-"),
        "location_id": str(cv_location_id.get() or "-"),
        "base_url": str(cv_base_url.get() or "-"),
    }


def clear_taxonomy_context() -> None:
    """Reset organization/location context to default (keep session info)."""
    cv_organization_id.set("-")
    cv_location_id.set("-")


def configure_logging(
    *,
    log_file: Path | None = None,
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
    max_bytes: int = 10_000_000,  # 10MB
    backup_count: int = 5,
) -> None:
    """
    Configure application logging with contextvars support.

    Args:
        log_file: Path to log file (None = console only)
        console_level: Minimum level for console output (default: INFO)
        file_level: Minimum level for file output (default: DEBUG)
        max_bytes: Max log file size before rotation
        backup_count: Number of backup files to keep
    """
    # Clear existing handlers to avoid duplicate logs if called multiple times
    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(logging.DEBUG)  # keep root permissive; handlers enforce levels

    console_fmt = "%(asctime)s [%(levelname)s] o=%(org)s l=%(loc)s | %(message)s"
    file_fmt = "%(asctime)s [%(levelname)s] %(name)s | s=%(session)s o=%(org)s l=%(loc)s | %(message)s"

    console_formatter = logging.Formatter(console_fmt, datefmt="%H:%M:%S")
    file_formatter = logging.Formatter(file_fmt, datefmt="%Y-%m-%d %H:%M:%S")

    ctx_filter = ContextInjectFilter()

    ch = logging.StreamHandler()
    ch.setLevel(console_level)
    ch.setFormatter(console_formatter)
    ch.addFilter(ctx_filter)
    root.addHandler(ch)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        fh = RotatingFileHandler(
            log_file,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        fh.setLevel(file_level)
        fh.setFormatter(file_formatter)
        fh.addFilter(ctx_filter)
        root.addHandler(fh)

    # Reduce noise from HTTP libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    logging.getLogger(__name__).info(
        "Logging configured (console_level=%s, file=%s)",
        logging.getLevelName(console_level),
        str(log_file) if log_file is not None else "None",
    )
