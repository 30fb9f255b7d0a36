from __future__ import annotations

import logging
import re
from typing import Optional

from playwright.sync_api import BrowserContext, Page

from ..config import PortalConfig, TimeoutsConfig
from ..models import SessionArtifact
from .selectors import LoginSelectors


logger = logging.getLogger(__name__)


class SessionProbe:
    """
    Decide whether the browser is already signed in, by where the provider lands us.

    The post-login URL is not fixed (Lightning, classic, a Setup deep link, a frontdoor redirect),
    so the checks are layered and permissive.
    """

    def __init__(
        self,
        portal: PortalConfig,
        *,
        timeouts: Optional[TimeoutsConfig] = None,
        selectors: Optional[LoginSelectors] = None,
    ) -> None:
        self.portal = portal
        self.timeouts = timeouts or TimeoutsConfig()
        self.selectors = selectors or LoginSelectors()
        self._authenticated_url_re = re.compile(self.selectors.authenticated_url_pattern, re.I)

    def is_authenticated(self, context: BrowserContext, page: Page, artifact: SessionArtifact) -> bool:
        if not artifact.is_empty:
            self._seed_cookies(context, artifact)

            if artifact.derived_endpoint:
                url = artifact.derived_endpoint.rstrip("/") + self.portal.home_path
                logger.info("Loading saved session and opening home page...")
                current = self._goto(page, url, wait_until="domcontentloaded", timeout_ms=self.timeouts.navigation_ms)
                self._settle(page, self.timeouts.settle_ms)
                if self._looks_authenticated_strict(self._current_url(page, fallback=current)):
                    logger.info("Already logged in. Home page opened.")
                    return True

            # No derived endpoint (or it bounced to login): let the entry URL redirect us.
            self._goto(page, self.portal.entry_url, wait_until="domcontentloaded", timeout_ms=self.timeouts.navigation_ms)
            self._settle(page, self.timeouts.settle_ms)
            if self._looks_authenticated_strict(self._current_url(page)):
                logger.info("Already logged in.")
                return True
            return False

        # First run (no usable saved session): the browser profile itself may still be signed in.
        self._goto(page, self.portal.entry_url, wait_until="load", timeout_ms=self.timeouts.entry_navigation_ms)
        self._settle(page, self.timeouts.entry_settle_ms)
        if self._looks_authenticated_broad(self._current_url(page)):
            logger.info("Already logged in. Opening home page...")
            self._goto(page, self.portal.home_url, wait_until="domcontentloaded", timeout_ms=self.timeouts.navigation_ms)
            return True
        return False

    def _seed_cookies(self, context: BrowserContext, artifact: SessionArtifact) -> None:
        try:
            context.add_cookies(artifact.cookies)
            logger.debug("Seeded %d cookies from saved session", len(artifact.cookies))
        except Exception:
            logger.debug("Failed to seed cookies from saved session (continuing).", exc_info=True)

    def _goto(self, page: Page, url: str, *, wait_until: str, timeout_ms: int) -> str:
        logger.debug("Navigating to %s", url)
        try:
            page.goto(url, wait_until=wait_until, timeout=timeout_ms)
        except Exception as e:
            # Redirect chains and slow sandboxes time out routinely; classification uses whatever URL we reached.
            logger.debug("Navigation to %s did not complete: %s", url, e)
        return self._current_url(page)

    def _settle(self, page: Page, ms: int) -> None:
        try:
            page.wait_for_timeout(ms)
        except Exception as e:
            logger.debug("Settle wait interrupted: %s", e)

    def _current_url(self, page: Page, *, fallback: str = "") -> str:
        try:
            return page.url or fallback
        except Exception:
            return fallback

    def _looks_authenticated_strict(self, url: str) -> bool:
        ok = "login" not in url and (
            self.portal.app_shell_marker in url or self.portal.account_domain_marker in url
        )
        logger.debug("URL after loading saved session: %s authenticated=%s", url, ok)
        return ok

    def _looks_authenticated_broad(self, url: str) -> bool:
        ok = bool(self._authenticated_url_re.search(url)) or (
            self.portal.provider_domain in url and "/login" not in url and url != self.portal.entry_url
        )
        logger.debug("URL after opening entry page: %s authenticated=%s", url, ok)
        return ok
