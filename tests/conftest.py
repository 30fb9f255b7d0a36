from __future__ import annotations

import sys
from typing import Any
from pathlib import Path

import pytest


ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))


def pytest_configure(config: Any) -> None:
    config.addinivalue_line(
        "markers",
        "browser: tests that drive a real Playwright Chromium (skipped when no browser can be launched)",
    )


@pytest.fixture
def fast_timeouts():
    from sfdc_login.config import TimeoutsConfig

    # Keep polling loops short so the fake-page tests run in milliseconds.
    return TimeoutsConfig(
        navigation_ms=100,
        entry_navigation_ms=100,
        settle_ms=0,
        entry_settle_ms=0,
        login_iframe_wait_ms=40,
        login_iframe_poll_ms=10,
        login_iframe_fill_ms=200,
        main_frame_fill_ms=50,
        other_frame_fill_ms=50,
        fill_poll_ms=10,
        challenge_ms=10,
        post_login_marker_ms=10,
    )


@pytest.fixture
def clean_sf_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in (
        "SF_USERNAME",
        "SF_PASSWORD",
        "SF_LOGIN_URL",
        "SF_HOME_PATH",
        "SF_AUTH_DIR",
        "SF_STATE_FILE",
        "SF_PROFILE_DIR",
        "SF_DEBUG_DIR",
        "SF_BROWSER_CHANNELS",
        "LOG_LEVEL",
        "LOG_FILE",
    ):
        # setenv first so monkeypatch also removes values a test loads via python-dotenv.
        monkeypatch.setenv(key, "")
        monkeypatch.delenv(key)
