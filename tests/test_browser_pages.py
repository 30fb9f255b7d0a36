"""
Runs the in-page fill script and the challenge wait against real Chromium pages built with `set_content`.
"""

from __future__ import annotations

import pytest

from sfdc_login.config import TimeoutsConfig
from sfdc_login.credentials import Credentials
from sfdc_login.models import LoginOutcome
from sfdc_login.portal.challenge import ChallengeDetector
from sfdc_login.portal.login_form import LoginFormFiller


pytestmark = pytest.mark.browser

CREDS = Credentials(username="me@example.com", password="s3cret")

LOGIN_FORM = """
<form id="login_form" onsubmit="event.preventDefault(); window.__submits = (window.__submits || 0) + 1;">
  <input id="username" type="email">
  <input id="password" type="password">
  <button type="submit" onclick="window.__clicks = (window.__clicks || 0) + 1">Log In</button>
</form>
<script>
  window.__inputs = 0;
  window.__changes = 0;
  document.addEventListener('input', () => window.__inputs++);
  document.addEventListener('change', () => window.__changes++);
</script>
"""


@pytest.fixture(scope="module")
def browser():
    from playwright.sync_api import sync_playwright

    with sync_playwright() as p:
        try:
            b = p.chromium.launch(headless=True)
        except Exception as e:
            pytest.skip(f"Chromium not available: {e}")
        yield b
        b.close()


@pytest.fixture
def page(browser):
    ctx = browser.new_context()
    pg = ctx.new_page()
    yield pg
    ctx.close()


@pytest.fixture
def filler() -> LoginFormFiller:
    return LoginFormFiller(
        timeouts=TimeoutsConfig(
            login_iframe_wait_ms=100,
            login_iframe_poll_ms=50,
            login_iframe_fill_ms=300,
            main_frame_fill_ms=300,
            other_frame_fill_ms=1_000,
            fill_poll_ms=50,
        )
    )


def test_fill_sets_values_fires_events_and_clicks_submit_once(page, filler: LoginFormFiller) -> None:
    page.set_content(LOGIN_FORM)

    outcome, result = filler.fill(page, CREDS)

    assert outcome is LoginOutcome.CREDENTIALS_SUBMITTED
    assert result.done is True
    assert result.message == "submitted"
    assert page.evaluate("window.__clicks") == 1
    assert page.evaluate("window.__submits") == 1
    assert page.input_value("#username") == "me@example.com"
    assert page.input_value("#password") == "s3cret"
    assert page.evaluate("window.__inputs") == 2
    assert page.evaluate("window.__changes") == 2


def test_username_only_reports_missing_password(page, filler: LoginFormFiller) -> None:
    page.set_content('<form><input id="username"><button type="submit">Next</button></form>')

    result = filler.fill_frame(page.main_frame, CREDS)
    assert result.done is False
    assert result.message == "no password field"

    outcome, full = filler.fill(page, CREDS)
    assert outcome is LoginOutcome.FORM_NOT_FOUND
    assert "no password field" in full.message


def test_form_inside_iframe_is_found(page, filler: LoginFormFiller) -> None:
    inner = LOGIN_FORM.replace('"', "&quot;")
    page.set_content(f'<h1>Welcome</h1><iframe srcdoc="{inner}"></iframe>')

    outcome, result = filler.fill(page, CREDS)

    assert outcome is LoginOutcome.CREDENTIALS_SUBMITTED
    inner_frame = next(f for f in page.frames if f is not page.main_frame)
    assert inner_frame.evaluate("window.__clicks") == 1


def test_classic_login_button_and_native_form_submit(page, filler: LoginFormFiller) -> None:
    # No submit control: falls back to form.submit() (which does not fire onsubmit).
    page.set_content(
        '<form name="login" action="javascript:void(0)">'
        '<input name="username"><input name="pw" type="password"></form>'
    )
    _, result = filler.fill(page, CREDS)
    assert result.message == "form submitted"

    page.set_content('<input class="username"><input type="password">')
    _, result = filler.fill(page, CREDS)
    assert result == (True, "filled, no button")


def test_challenge_detected_when_injected_during_wait(page) -> None:
    page.set_content("<div id='root'></div>")
    page.evaluate(
        "setTimeout(() => { const i = document.createElement('input'); i.id = 'otp-code';"
        " document.body.appendChild(i); }, 200)"
    )
    assert ChallengeDetector().detect(page, timeout_ms=3_000) is True


def test_challenge_absent_until_timeout(page) -> None:
    page.set_content("<p>Home</p>")
    assert ChallengeDetector().detect(page, timeout_ms=300) is False
