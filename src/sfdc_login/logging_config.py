import logging
import os
from pathlib import Path
from typing import Iterable, Optional


LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s - %(message)s"
NOISY_LOGGERS = ("playwright", "asyncio")


class SecretRedactingFilter(logging.Filter):
    """
    Masks known secret values (the Salesforce password) in every record a handler emits,
    including text that arrives through exception messages or Playwright errors.
    """

    def __init__(self, secrets: Iterable[str] = ()) -> None:
        super().__init__()
        # Longest first so a secret containing another is masked whole.
        self.secrets = sorted({s for s in secrets if s}, key=len, reverse=True)

    def filter(self, record: logging.LogRecord) -> bool:
        if not self.secrets:
            return True
        message = record.getMessage()
        redacted = message
        for secret in self.secrets:
            redacted = redacted.replace(secret, "***")
        if redacted != message:
            record.msg = redacted
            record.args = None
        return True


def configure_logging(
    level: str = "INFO",
    file_path: Optional[str] = None,
    *,
    verbose: bool = False,
    secrets: Iterable[str] = (),
) -> None:
    numeric_level = logging.DEBUG if verbose else getattr(logging, (level or "INFO").upper(), logging.INFO)

    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if file_path:
        path = Path(file_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(path, encoding="utf-8"))

    redactor = SecretRedactingFilter(secrets)
    for handler in handlers:
        handler.addFilter(redactor)

    # force=True: the CLI reconfigures once config and credentials are known.
    logging.basicConfig(level=numeric_level, format=LOG_FORMAT, handlers=handlers, force=True)

    for noisy in NOISY_LOGGERS:
        logging.getLogger(noisy).setLevel(os.getenv("NOISY_LOG_LEVEL", "WARNING"))
