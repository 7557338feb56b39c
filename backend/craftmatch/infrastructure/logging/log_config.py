"""Centralized logging configuration.

Applies per-category log levels from Settings so that noisy loggers
(SQLAlchemy statements, httpx/httpcore) can be silenced without affecting
the matching pipeline, and tags every record emitted while a search is
running with that search's id, so log lines can be joined to decision logs.

Usage:
    from craftmatch.infrastructure.logging.log_config import setup_logging
    setup_logging()   # once, in the FastAPI lifespan
"""

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar

from craftmatch.config import Settings, get_settings
from craftmatch.infrastructure.logging.colored_logger import PIPELINE_LOGGER_PREFIX

LOG_FORMAT = "%(levelname)-8s %(name)s [%(search_id)s]: %(message)s"
_NO_SEARCH = "-"
_HANDLER_NAME = "craftmatch"

_current_search_id: ContextVar[str] = ContextVar("craftmatch_search_id", default=_NO_SEARCH)


# ── Logger-name → Settings-field mapping ────────────────────────────

_CATEGORY_MAP: dict[str, list[str]] = {
    "log_level_sql": ["sqlalchemy.engine", "sqlalchemy.pool", "aiosqlite"],
    "log_level_http": ["httpx", "httpcore"],
    "log_level_uvicorn": ["uvicorn", "uvicorn.access", "uvicorn.error"],
    "log_level_pipeline": [
        PIPELINE_LOGGER_PREFIX,
        "craftmatch.application.services.matching_orchestrator",
        "craftmatch.application.services.ai_fallback_classifier",
        "craftmatch.application.services.candidate_retrieval",
    ],
    "log_level_openrouter": [
        "craftmatch.infrastructure.openrouter",
        "craftmatch.infrastructure.llm",
    ],
    "log_level_analytics": [
        "craftmatch.application.services.matching_analytics",
        "craftmatch.application.services.decision_recorder",
        "craftmatch.application.services.query_analysis_cache",
    ],
}


# ── Search correlation ───────────────────────────────────────────────


class SearchIdFilter(logging.Filter):
    """Adds ``record.search_id`` (``-`` outside a search)."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "search_id"):
            record.search_id = _current_search_id.get()
        return True


@contextmanager
def bind_search_id(search_id: str) -> Iterator[None]:
    """Tag log records emitted inside the block (and its awaited calls) with ``search_id``."""
    token = _current_search_id.set(search_id)
    try:
        yield
    finally:
        _current_search_id.reset(token)


def current_search_id() -> str | None:
    value = _current_search_id.get()
    return None if value == _NO_SEARCH else value


# ── Setup ────────────────────────────────────────────────────────────


def setup_logging(settings: Settings | None = None) -> None:
    """Configure Python logging levels from application settings.

    Safe to call more than once; the search-id filter is installed on every
    root handler exactly once.
    """
    settings = settings or get_settings()

    root = logging.getLogger()
    root.setLevel(_parse_level(settings.log_level))

    # uvicorn usually installs a handler; tests and scripts do not.
    if not root.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.set_name(_HANDLER_NAME)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)

    for handler in root.handlers:
        if not any(isinstance(f, SearchIdFilter) for f in handler.filters):
            handler.addFilter(SearchIdFilter())

    for settings_field, logger_names in _CATEGORY_MAP.items():
        level = _parse_level(getattr(settings, settings_field, "INFO"))
        for name in logger_names:
            logging.getLogger(name).setLevel(level)

    logging.getLogger(__name__).debug(
        "Logging configured: root=%s, sql=%s, http=%s, pipeline=%s, openrouter=%s, analytics=%s",
        settings.log_level,
        settings.log_level_sql,
        settings.log_level_http,
        settings.log_level_pipeline,
        settings.log_level_openrouter,
        settings.log_level_analytics,
    )


def _parse_level(raw: str) -> int:
    """Convert a level name string to a logging constant, defaulting to INFO."""
    numeric = getattr(logging, str(raw).upper(), None)
    if isinstance(numeric, int):
        return numeric
    return logging.INFO
