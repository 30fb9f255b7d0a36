from __future__ import annotations

import logging
from typing import Optional

from playwright.sync_api import Page

from .selectors import LoginSelectors


logger = logging.getLogger(__name__)


class ChallengeDetector:
    """
    Best-effort check for Salesforce identity verification (OTP / "Verify your identity") after login.

    Only informs the user; completing the challenge happens in the browser.
    """

    def __init__(self, *, timeout_ms: int = 3_000, selectors: Optional[LoginSelectors] = None) -> None:
        self.timeout_ms = timeout_ms
        self.selectors = selectors or LoginSelectors()

    def detect(self, page: Page, timeout_ms: Optional[int] = None) -> bool:
        try:
            page.wait_for_selector(
                self.selectors.challenge_selector,
                state="visible",
                timeout=self.timeout_ms if timeout_ms is None else timeout_ms,
            )
            return True
        except Exception:
            logger.debug("No verification challenge visible.", exc_info=True)
            return False
