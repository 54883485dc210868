# tests/test_logging.py
import logging

import pytest

from money_tracker.logging_config import THIRD_PARTY_LOGGERS, get_logger, setup_logging


@pytest.fixture
def restore_levels():
    names = ["money_tracker", *THIRD_PARTY_LOGGERS]
    saved = {name: logging.getLogger(name).level for name in names}
    yield
    for name, level in saved.items():
        logging.getLogger(name).setLevel(level)
    setup_logging()


def test_third_party_loggers_follow_their_own_level(restore_levels):
    setup_logging(app_log_level="DEBUG", third_party_log_level="ERROR")

    assert logging.getLogger("money_tracker").level == logging.DEBUG
    for name in THIRD_PARTY_LOGGERS:
        assert logging.getLogger(name).level == logging.ERROR


def test_only_libraries_this_project_uses_are_pinned():
    assert set(THIRD_PARTY_LOGGERS) == {
        "sqlalchemy.engine",
        "sqlalchemy.pool",
        "uvicorn.access",
        "uvicorn.error",
        "urllib3",
        "faker",
    }


def test_app_logger_does_not_propagate(restore_levels):
    app_logger = setup_logging()

    assert app_logger.name == "money_tracker"
    assert app_logger.propagate is False
    assert len(app_logger.handlers) == 1


def test_get_logger_nests_under_app_logger():
    assert get_logger("requests").name == "money_tracker.requests"
    assert get_logger("money_tracker.crud.crud_user").name == "money_tracker.crud.crud_user"
    assert get_logger().name == "money_tracker"


def test_request_middleware_logs_each_request(client, caplog):
    app_logger = logging.getLogger("money_tracker")
    app_logger.addHandler(caplog.handler)
    try:
        with caplog.at_level(logging.INFO, logger="money_tracker.requests"):
            client.get("/healthz")
    finally:
        app_logger.removeHandler(caplog.handler)

    messages = [r.getMessage() for r in caplog.records if r.name == "money_tracker.requests"]
    assert any(m.startswith("GET /healthz -> 200 in ") for m in messages)
