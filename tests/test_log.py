import sys
import logging

import pytest

from mcwrap.config import WrapperSettings
from mcwrap.log import setup_logging, LokiHandler
import mcwrap.log.handler as handler_module


@pytest.fixture()
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    for handler in list(root.handlers):
        root.removeHandler(handler)
        if handler not in handlers:
            handler.close()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)


class FakeResponse:
    status_code = 204
    text = ""


@pytest.fixture()
def posts(monkeypatch):
    sent = []

    def fake_post(url, json=None, headers=None, timeout=None):
        sent.append({"url": url, "json": json, "headers": headers})
        return FakeResponse()

    monkeypatch.setattr(handler_module.requests, "post", fake_post)
    return sent


def test_console_handler_writes_to_stderr(restore_root_logger):
    setup_logging(logging.WARNING)

    handlers = restore_root_logger.handlers
    assert len(handlers) == 1
    assert handlers[0].stream is sys.stderr
    assert handlers[0].level == logging.WARNING
    assert not any(isinstance(h, LokiHandler) for h in handlers)


def test_loki_handler_added_when_enabled(posts, restore_root_logger):
    settings = WrapperSettings(environ={"MCWRAP_LOKI_ENABLED": "true", "MCWRAP_LOKI_URL": "http://loki:3100/"})

    setup_logging(logging.INFO, settings, program="java")

    loki = [h for h in restore_root_logger.handlers if isinstance(h, LokiHandler)]
    assert len(loki) == 1
    assert loki[0].url == "http://loki:3100/loki/api/v1/push"
    assert loki[0].program == "java"


def test_loki_handler_batches_and_pushes(posts):
    handler = LokiHandler("http://loki:3100", org_id="tenant", program="server", flush_interval=60, batch_size=2)
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger = logging.getLogger("mcwrap.test.loki")
    logger.propagate = False
    logger.addHandler(handler)
    try:
        logger.warning("first")
        assert posts == []
        logger.warning("second")
    finally:
        logger.removeHandler(handler)
        handler.close()

    assert len(posts) == 1
    streams = posts[0]["json"]["streams"]
    assert [s["values"][0][1] for s in streams] == ["first", "second"]
    assert streams[0]["stream"]["program"] == "server"
    assert streams[0]["stream"]["level"] == "warning"
    assert posts[0]["headers"]["X-Scope-OrgID"] == "tenant"


def test_loki_flush_without_records_sends_nothing(posts):
    handler = LokiHandler("http://loki:3100", flush_interval=60)
    handler.close()

    assert posts == []
