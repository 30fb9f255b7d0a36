from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from .config import AppConfig
from .credentials import Credentials
from .models import LoginOutcome
from .portal.browser import BrowserSession
from .portal.challenge import ChallengeDetector
from .portal.debug import save_debug_artifacts
from .portal.login_form import LoginFormFiller
from .portal.probe import SessionProbe
from .session.persister import SessionPersister
from .session.store import SessionStore


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FlowResult:
    outcome: LoginOutcome
    challenge_detected: bool = False
    saved_to: Optional[Path] = None


class LoginFlow:
    """
    One login run:

    load saved session -> probe -> (if needed) fill credentials -> detect challenge -> persist.

    The browser is always closed on the way out, whatever happened.
    """

    def __init__(
        self,
        cfg: AppConfig,
        creds: Credentials,
        *,
        interactive: bool = False,
        verbose: bool = False,
        browser: Optional[BrowserSession] = None,
        store: Optional[SessionStore] = None,
        probe: Optional[SessionProbe] = None,
        filler: Optional[LoginFormFiller] = None,
        challenge: Optional[ChallengeDetector] = None,
        persister: Optional[SessionPersister] = None,
        confirm: Callable[[str], object] = input,
    ) -> None:
        self.cfg = cfg
        self.creds = creds
        self.interactive = interactive
        self.verbose = verbose
        self.confirm = confirm

        self.browser = browser or BrowserSession(
            channels=cfg.browser.channels,
            launch_args=cfg.browser.launch_args,
            slow_mo_ms=cfg.browser.slow_mo_ms,
        )
        self.store = store or SessionStore(authenticated_domain_suffix=cfg.portal.authenticated_domain_suffix)
        self.probe = probe or SessionProbe(cfg.portal, timeouts=cfg.timeouts)
        self.filler = filler or LoginFormFiller(timeouts=cfg.timeouts)
        self.challenge = challenge or ChallengeDetector(timeout_ms=cfg.timeouts.challenge_ms)
        self.persister = persister or SessionPersister(
            self.store,
            confirm=confirm,
            post_login_timeout_ms=cfg.timeouts.post_login_marker_ms,
        )

    def run(self) -> FlowResult:
        state_path = Path(self.cfg.paths.state_file)
        artifact = self.store.load(state_path)
        if not artifact.is_empty:
            logger.info("Loaded saved session from %s (cookies=%d)", state_path, len(artifact.cookies))
            logger.debug("Home endpoint from saved session: %s", artifact.derived_endpoint)
        else:
            logger.info("No saved session at %s; a fresh login is needed.", state_path)

        try:
            context = self.browser.open(self.cfg.paths.profile_dir, headless=not self.interactive)
            page = self.browser.page()
            result = self._run_in_browser(context, page, artifact, state_path)

            if self.interactive:
                self.confirm("Press Enter to close the browser...")
            return result
        finally:
            self.browser.close()

    def _run_in_browser(self, context, page, artifact, state_path: Path) -> FlowResult:
        if self.probe.is_authenticated(context, page, artifact):
            return FlowResult(LoginOutcome.ALREADY_AUTHENTICATED)

        logger.info("Entering credentials in the login form (username length: %d)", len(self.creds.username))
        outcome, fill = self.filler.fill(page, self.creds)
        if outcome is LoginOutcome.FORM_NOT_FOUND:
            logger.debug("Login form not detected after checking all frames (last: %s). URL: %s", fill.message, page.url)
            if self.verbose:
                save_debug_artifacts(page, debug_dir=self.cfg.paths.debug_dir, name_prefix="login_form_not_found")
            logger.info("Login form not found; assuming already logged in (session from cookies).")
            return FlowResult(outcome)

        logger.info("Credentials submitted (%s). Waiting for next page...", fill.message)
        try:
            page.wait_for_load_state("domcontentloaded")
        except Exception:
            logger.debug("Load state wait after submit failed (continuing).", exc_info=True)

        challenged = self.challenge.detect(page)
        if challenged:
            logger.info("OTP/verification detected. Enter the code in the browser.")

        saved_to = self.persister.finalize(context, state_path, interactive=self.interactive, page=page)
        return FlowResult(outcome, challenge_detected=challenged, saved_to=saved_to)
