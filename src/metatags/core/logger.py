import logging
import sys
import contextvars
from typing import Optional

# Context variable carrying the key prefix of the encode/decode call in progress
_PREFIX: contextvars.ContextVar[str] = contextvars.ContextVar("prefix", default="-")


class _PrefixFilter(logging.Filter):
    """Logging filter that injects the active key prefix from contextvars into the record."""

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        record.prefix = _PREFIX.get()
        return True


_PREFIX_FILTER = _PrefixFilter()


def _build_formatter() -> logging.Formatter:
    return logging.Formatter(
        fmt="%(asctime)s | %(levelname)-8s | %(name)s | prefix=%(prefix)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def configure_root_logger(level: str = "INFO") -> None:
    """
    Configure root logger and metatags-specific logger.

    Root logger stays at INFO to keep other libraries quiet.
    Only metatags namespace logs are set to the requested level.

    Safe to call multiple times; it will not duplicate handlers (idempotent).
    """
    root = logging.getLogger()

    for h in root.handlers:
        if isinstance(h, logging.StreamHandler) and any(isinstance(f, _PrefixFilter) for f in h.filters):
            # Already configured; just update metatags logger level
            logging.getLogger("metatags").setLevel(getattr(logging, level.upper(), logging.INFO))
            return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(_build_formatter())
    handler.addFilter(_PrefixFilter())
    root.addHandler(handler)
    root.setLevel(logging.INFO)

    logging.getLogger("metatags").setLevel(getattr(logging, level.upper(), logging.INFO))


def get_logger(name: str = "metatags", level: Optional[str] = None) -> logging.Logger:
    """
    Get a module-specific logger.

    Library modules call this without a level and leave handler setup to the
    application (or the CLI). Passing a level configures the root handler too.
    """
    if level is not None:
        configure_root_logger(level)
    logger = logging.getLogger(name)
    logger.addFilter(_PREFIX_FILTER)
    return logger


def push_prefix(prefix: Optional[str]) -> Optional[contextvars.Token]:
    """Set the current key prefix in context and return a token for later reset."""
    if prefix is None:
        return None
    return _PREFIX.set(prefix)


def reset_prefix(token: Optional[contextvars.Token]) -> None:
    """Reset the prefix context using the provided token (if any)."""
    if token is None:
        return
    _PREFIX.reset(token)
