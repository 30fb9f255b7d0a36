from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Optional, Union

from playwright.sync_api import BrowserContext, Page

from ..portal.selectors import LoginSelectors
from .store import SessionStore


logger = logging.getLogger(__name__)


class SessionPersister:
    """
    Save the browser context's full storage state once the login is complete.

    Interactive runs wait for the user to confirm (OTP completion time is unbounded);
    unattended runs wait a bounded time for the app shell and then save regardless.
    """

    def __init__(
        self,
        store: SessionStore,
        *,
        confirm: Callable[[str], object] = input,
        post_login_timeout_ms: int = 120_000,
        selectors: Optional[LoginSelectors] = None,
    ) -> None:
        self.store = store
        self.confirm = confirm
        self.post_login_timeout_ms = post_login_timeout_ms
        self.selectors = selectors or LoginSelectors()

    def finalize(
        self,
        context: BrowserContext,
        path: Union[str, Path],
        *,
        interactive: bool,
        page: Optional[Page] = None,
    ) -> Path:
        if interactive:
            print("")
            print(">>> Complete OTP in the browser if asked. When you see the Salesforce home page, press Enter to SAVE the session. <<<")
            print("")
            self.confirm("Press Enter when you see the Salesforce home page (to save session for next run)...")
        else:
            self._wait_for_post_login(context, page)

        state_path = self.store.save(path, context.storage_state())
        logger.info("Session saved to %s", state_path)
        return state_path

    def _wait_for_post_login(self, context: BrowserContext, page: Optional[Page]) -> None:
        if page is None:
            pages = context.pages
            if not pages:
                return
            page = pages[0]
        try:
            page.wait_for_selector(self.selectors.post_login_selector, timeout=self.post_login_timeout_ms)
        except Exception:
            logger.warning(
                "Post-login page not detected within %.0fs; saving session anyway.",
                self.post_login_timeout_ms / 1000,
            )
