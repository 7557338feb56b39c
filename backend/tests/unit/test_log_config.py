"""Unit tests for logging setup and search-id correlation."""

import logging

from craftmatch.config import Settings
from craftmatch.infrastructure.logging.log_config import (
    SearchIdFilter,
    bind_search_id,
    current_search_id,
    setup_logging,
)


def _record() -> logging.LogRecord:
    return logging.LogRecord("craftmatch.test", logging.INFO, __file__, 1, "hello", None, None)


def test_records_outside_a_search_get_placeholder():
    record = _record()
    SearchIdFilter().filter(record)
    assert record.search_id == "-"
    assert current_search_id() is None


def test_bound_search_id_is_attached_and_reset():
    with bind_search_id("search-42"):
        record = _record()
        SearchIdFilter().filter(record)
        assert current_search_id() == "search-42"
    assert record.search_id == "search-42"
    assert current_search_id() is None


def test_setup_applies_category_levels_and_is_idempotent():
    settings = Settings(_env_file=None, log_level_sql="ERROR", log_level_analytics="DEBUG")

    setup_logging(settings)
    setup_logging(settings)

    assert logging.getLogger("sqlalchemy.engine").level == logging.ERROR
    assert logging.getLogger("craftmatch.application.services.decision_recorder").level == logging.DEBUG
    for handler in logging.getLogger().handlers:
        assert sum(isinstance(f, SearchIdFilter) for f in handler.filters) == 1


def test_unknown_level_falls_back_to_info():
    setup_logging(Settings(_env_file=None, log_level_http="chatty"))
    assert logging.getLogger("httpx").level == logging.INFO
