from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Iterable, Optional, Union

from playwright.sync_api import BrowserContext, Page, sync_playwright

from ..errors import BrowserUnavailableError


logger = logging.getLogger(__name__)


class BrowserSession:
    """
    Owns one persistent (non-incognito) Chromium-family context bound to an on-disk profile.
    """

    def __init__(
        self,
        *,
        channels: Iterable[str] = ("chrome", "msedge"),
        launch_args: Iterable[str] = (),
        slow_mo_ms: int = 0,
        playwright: Any = None,
    ) -> None:
        self.channels = tuple(channels)
        self.launch_args = list(launch_args)
        self.slow_mo_ms = int(slow_mo_ms or 0)

        # Tests inject a fake; otherwise Playwright is started on first `open()`.
        self._playwright = playwright
        self._owns_playwright = playwright is None

        self.context: Optional[BrowserContext] = None
        self.engine: Optional[str] = None

    def __enter__(self) -> "BrowserSession":
        return self

    def __exit__(self, *_exc: object) -> None:
        self.close()

    def _ensure_playwright(self) -> Any:
        if self._playwright is None:
            try:
                self._playwright = sync_playwright().start()
            except Exception as e:
                raise BrowserUnavailableError(f"Could not start Playwright: {e}") from e
        return self._playwright

    def open(self, profile_dir: Union[str, Path], *, headless: bool) -> BrowserContext:
        profile = Path(profile_dir)
        # The profile directory must exist before launch so Chromium treats it as a real profile.
        profile.mkdir(parents=True, exist_ok=True)

        chromium = self._ensure_playwright().chromium
        options: dict = {
            "headless": headless,
            "no_viewport": True,
            # Corporate TLS-intercepting proxies present certificates the browser won't trust.
            "ignore_https_errors": True,
            "args": list(self.launch_args),
        }
        if self.slow_mo_ms:
            options["slow_mo"] = self.slow_mo_ms

        failures: dict[str, str] = {}
        # Installed browsers first (no `playwright install` needed), then the bundled Chromium.
        for channel in [*self.channels, None]:
            label = channel or "bundled chromium"
            kwargs = dict(options)
            if channel:
                kwargs["channel"] = channel
            try:
                ctx = chromium.launch_persistent_context(str(profile), **kwargs)
            except Exception as e:
                failures[label] = (str(e).strip().splitlines() or [type(e).__name__])[0]
                logger.debug("Browser launch failed (engine=%s): %s", label, failures[label])
                continue

            self.context = ctx
            self.engine = label
            logger.debug("Using browser: %s (profile=%s)", label, profile)
            return ctx

        self.close()
        raise BrowserUnavailableError(
            "No usable browser: tried " + ", ".join(failures) + ". Install Chrome/Edge or run `playwright install chromium`.",
            failures=failures,
        )

    def page(self) -> Page:
        if self.context is None:
            raise RuntimeError("BrowserSession.open() must be called before page()")
        pages = self.context.pages
        if pages:
            return pages[0]
        return self.context.new_page()

    def close(self) -> None:
        ctx, self.context = self.context, None
        if ctx is not None:
            try:
                ctx.close()
            except Exception:
                logger.debug("Failed to close browser context.", exc_info=True)

        if self._owns_playwright and self._playwright is not None:
            pw, self._playwright = self._playwright, None
            try:
                pw.stop()
            except Exception:
                logger.debug("Failed to stop Playwright.", exc_info=True)
