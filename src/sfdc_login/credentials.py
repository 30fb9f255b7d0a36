from __future__ import annotations

import logging
from dataclasses import dataclass, field

from .config import CredentialsConfig
from .errors import ConfigurationError


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Credentials:
    username: str
    password: str = field(repr=False)


class CredentialSource:
    def __init__(self, config: CredentialsConfig) -> None:
        self.config = config

    def resolve(self) -> Credentials:
        username = (self.config.username or "").strip()
        password = (self.config.password or "").strip()

        missing = [name for name, value in (("SF_USERNAME", username), ("SF_PASSWORD", password)) if not value]
        if missing:
            raise ConfigurationError(
                f"Missing {' and '.join(missing)}. Set them in .env (project root) or the environment."
            )

        logger.info(
            "Using credentials from configuration (username length: %d, password length: %d)",
            len(username),
            len(password),
        )
        return Credentials(username=username, password=password)
