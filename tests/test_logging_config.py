from __future__ import annotations

import logging
from pathlib import Path

import pytest

from sfdc_login.logging_config import SecretRedactingFilter, configure_logging


@pytest.fixture
def restore_root_logging():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in root.handlers:
        handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


def test_password_masked_in_log_file(tmp_path: Path, restore_root_logging) -> None:
    log_file = tmp_path / "logs" / "sfdc-login.log"
    configure_logging("INFO", str(log_file), secrets=("s3cret", ""))

    log = logging.getLogger("sfdc_login.test")
    log.info("Login failed for %s with %s", "me@example.com", "s3cret")
    log.debug("not emitted at INFO")
    for handler in logging.getLogger().handlers:
        handler.flush()

    text = log_file.read_text(encoding="utf-8")
    assert "s3cret" not in text
    assert "Login failed for me@example.com with ***" in text
    assert "not emitted" not in text


def test_verbose_overrides_level(restore_root_logging) -> None:
    configure_logging("WARNING", verbose=True)

    assert logging.getLogger().level == logging.DEBUG
    assert logging.getLogger("playwright").level == logging.WARNING


def test_filter_masks_longest_secret_first() -> None:
    record = logging.LogRecord("x", logging.INFO, __file__, 1, "pw=%s", ("abc123",), None)

    assert SecretRedactingFilter(["abc", "abc123"]).filter(record) is True
    assert record.getMessage() == "pw=***"
