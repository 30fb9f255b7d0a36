from __future__ import annotations

import logging
import time
from typing import Callable, Optional

from playwright.sync_api import Frame, Page

from ..config import TimeoutsConfig
from ..credentials import Credentials
from ..models import FillResult, LoginOutcome
from .selectors import LoginSelectors


logger = logging.getLogger(__name__)


# Runs inside a frame. Setting `.value` alone is invisible to the page's own form bindings,
# so every field also gets bubbling `input` + `change` events.
_FILL_SCRIPT = """
({ username, password, sel }) => {
  const first = (list) => {
    for (const s of list) {
      const el = document.querySelector(s);
      if (el) return el;
    }
    return null;
  };
  const setValue = (el, value) => {
    el.focus();
    el.value = value;
    el.dispatchEvent(new Event('input', { bubbles: true }));
    el.dispatchEvent(new Event('change', { bubbles: true }));
  };

  const u = first(sel.username);
  const p = first(sel.password);
  if (!u || !p) return { done: false, message: !u ? 'no username field' : 'no password field' };

  setValue(u, username);
  setValue(p, password);

  const btn = first(sel.submit);
  if (btn) {
    btn.click();
    return { done: true, message: 'submitted' };
  }
  const form = first(sel.form) || u.closest('form');
  if (form) {
    form.submit();
    return { done: true, message: 'form submitted' };
  }
  return { done: true, message: 'filled, no button' };
}
"""


class LoginFormFiller:
    """
    Fill and submit the Salesforce login form, wherever it lives.

    The form may be in the top document or in one of several iframes (the `sessionserver`
    iframe on some sandboxes), so the search is an ordered list of passes, each bounded.
    """

    def __init__(self, *, timeouts: Optional[TimeoutsConfig] = None, selectors: Optional[LoginSelectors] = None) -> None:
        self.timeouts = timeouts or TimeoutsConfig()
        self.selectors = selectors or LoginSelectors()

    def fill(
        self,
        page: Page,
        creds: Credentials,
        *,
        frame_timeout_ms: Optional[int] = None,
    ) -> tuple[LoginOutcome, FillResult]:
        passes: list[tuple[str, Callable[[], FillResult]]] = [
            ("login iframe", lambda: self._fill_login_iframe(page, creds, frame_timeout_ms)),
            ("main frame", lambda: self._fill_main_frame(page, creds, frame_timeout_ms)),
            ("other frames", lambda: self._fill_other_frames(page, creds, frame_timeout_ms)),
        ]

        reasons: list[str] = []
        for name, attempt in passes:
            logger.debug("Login form pass: %s", name)
            result = attempt()
            if result.done:
                logger.debug("Login filled in %s: %s", name, result.message)
                return LoginOutcome.CREDENTIALS_SUBMITTED, result
            logger.debug("Login form pass %s failed: %s", name, result.message)
            reasons.append(f"{name}: {result.message}")

        return LoginOutcome.FORM_NOT_FOUND, FillResult(False, "; ".join(reasons))

    def fill_frame(self, frame: Frame, creds: Credentials) -> FillResult:
        """
        One injection attempt in one frame. Evaluation errors (navigating / detached frames) are reported
        as "not done" instead of raised.
        """
        try:
            value = frame.evaluate(
                _FILL_SCRIPT,
                {
                    "username": creds.username,
                    "password": creds.password,
                    "sel": {
                        "username": list(self.selectors.username_inputs),
                        "password": list(self.selectors.password_inputs),
                        "submit": list(self.selectors.submit_controls),
                        "form": list(self.selectors.login_forms),
                    },
                },
            )
        except Exception as e:
            return FillResult(False, f"frame evaluate error: {e}")
        return FillResult.from_script(value)

    def _wait_and_fill(self, frame: Frame, creds: Credentials, *, max_wait_ms: int) -> FillResult:
        deadline = time.time() + (max_wait_ms / 1000)
        last = FillResult(False, "timeout")
        while True:
            result = self.fill_frame(frame, creds)
            if result.done:
                return result
            logger.debug("Form not ready (%s): %s", self._frame_url(frame), result.message)
            last = result

            if time.time() >= deadline:
                break
            try:
                frame.wait_for_timeout(self.timeouts.fill_poll_ms)
            except Exception:
                # Detached frame; nothing left to poll.
                break
        return FillResult(False, f"timeout ({last.message})")

    def _fill_login_iframe(self, page: Page, creds: Credentials, override_ms: Optional[int]) -> FillResult:
        marker = self.selectors.login_iframe_marker
        deadline = time.time() + (self.timeouts.login_iframe_wait_ms / 1000)
        result = FillResult(False, f"no {marker} frame")
        while True:
            frame = next((f for f in page.frames if marker in self._frame_url(f)), None)
            if frame is not None:
                logger.debug("Found %s frame, filling via JS...", marker)
                result = self._wait_and_fill(
                    frame, creds, max_wait_ms=override_ms if override_ms is not None else self.timeouts.login_iframe_fill_ms
                )
                if result.done:
                    return result

            if time.time() >= deadline:
                return result
            page.wait_for_timeout(self.timeouts.login_iframe_poll_ms)

    def _fill_main_frame(self, page: Page, creds: Credentials, override_ms: Optional[int]) -> FillResult:
        return self._wait_and_fill(
            page.main_frame, creds, max_wait_ms=override_ms if override_ms is not None else self.timeouts.main_frame_fill_ms
        )

    def _fill_other_frames(self, page: Page, creds: Credentials, override_ms: Optional[int]) -> FillResult:
        marker = self.selectors.login_iframe_marker
        main = page.main_frame
        result = FillResult(False, "no other frames")
        for frame in list(page.frames):
            if frame is main or marker in self._frame_url(frame):
                continue
            result = self._wait_and_fill(
                frame, creds, max_wait_ms=override_ms if override_ms is not None else self.timeouts.other_frame_fill_ms
            )
            if result.done:
                return result
        return result

    def _frame_url(self, frame: Frame) -> str:
        try:
            return frame.url or ""
        except Exception:
            return ""
