from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, NamedTuple, Optional


@dataclass(frozen=True)
class SessionArtifact:
    """
    A Playwright storage-state snapshot as read from disk.

    Only `cookies` is interpreted; `origins` (localStorage per origin) is carried along untouched.
    """

    cookies: list[dict[str, Any]] = field(default_factory=list)
    origins: list[dict[str, Any]] = field(default_factory=list)
    derived_endpoint: Optional[str] = None

    @classmethod
    def empty(cls) -> "SessionArtifact":
        return cls()

    @property
    def is_empty(self) -> bool:
        return not self.cookies


class LoginOutcome(Enum):
    ALREADY_AUTHENTICATED = "already_authenticated"
    CREDENTIALS_SUBMITTED = "credentials_submitted"
    FORM_NOT_FOUND = "form_not_found"


class FillResult(NamedTuple):
    done: bool
    message: str

    @classmethod
    def from_script(cls, value: object) -> "FillResult":
        # The in-page fill script returns `{done, message}`; anything else counts as "not done".
        if not isinstance(value, dict):
            return cls(False, f"unexpected script result: {value!r}")
        return cls(bool(value.get("done")), str(value.get("message") or ""))
