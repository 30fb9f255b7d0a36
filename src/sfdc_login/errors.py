from __future__ import annotations

from typing import Optional


class ConfigurationError(RuntimeError):
    """
    Raised when required configuration (e.g. SF_USERNAME / SF_PASSWORD) is missing.
    Fatal: the run stops before a browser is launched.
    """


class BrowserUnavailableError(RuntimeError):
    """
    Raised when no browser engine could be launched (every channel plus the bundled Chromium failed).
    """

    def __init__(self, message: str, *, failures: Optional[dict[str, str]] = None) -> None:
        super().__init__(message)
        self.failures = dict(failures or {})
