from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Iterable, Optional, Union

from ..models import SessionArtifact


logger = logging.getLogger(__name__)

DEFAULT_AUTHENTICATED_DOMAIN_SUFFIX = "lightning.force.com"


class SessionStore:
    """
    Reads and writes the persisted Playwright storage-state file.

    The file format is whatever `BrowserContext.storage_state()` produces:
    `{"cookies": [...], "origins": [...]}`. Only the cookie list is interpreted.
    """

    def __init__(self, *, authenticated_domain_suffix: str = DEFAULT_AUTHENTICATED_DOMAIN_SUFFIX) -> None:
        self.authenticated_domain_suffix = authenticated_domain_suffix

    def load(self, path: Union[str, Path]) -> SessionArtifact:
        """
        Never raises: a missing, unreadable or malformed file is the same as "no prior session".
        """
        state_path = Path(path)
        if not state_path.exists():
            return SessionArtifact.empty()

        try:
            data = json.loads(state_path.read_text(encoding="utf-8"))
        except Exception:
            logger.warning("Saved session file is unreadable or not valid JSON; ignoring it: %s", state_path)
            logger.debug("Session file read failure", exc_info=True)
            return SessionArtifact.empty()

        if not isinstance(data, dict) or not isinstance(data.get("cookies", []), list):
            logger.warning("Saved session file has an unexpected shape; ignoring it: %s", state_path)
            return SessionArtifact.empty()

        cookies = [c for c in data.get("cookies") or [] if isinstance(c, dict)]
        origins = data.get("origins") if isinstance(data.get("origins"), list) else []
        return SessionArtifact(
            cookies=cookies,
            origins=list(origins),
            derived_endpoint=self.derive_endpoint(cookies),
        )

    def derive_endpoint(self, cookies: Iterable[dict[str, Any]]) -> Optional[str]:
        for cookie in cookies:
            domain = str(cookie.get("domain") or "").strip()
            if domain and self.authenticated_domain_suffix in domain:
                # Cookie domains may carry a leading dot (".foo.lightning.force.com").
                return f"https://{domain.lstrip('.')}"
        return None

    def save(self, path: Union[str, Path], snapshot: dict[str, Any]) -> Path:
        """
        Overwrite the session file with a full storage-state snapshot (write to a temp file, then rename).
        """
        state_path = Path(path)
        state_path.parent.mkdir(parents=True, exist_ok=True)
        tmp = state_path.with_name(state_path.name + ".tmp")
        tmp.write_text(json.dumps(snapshot, indent=2), encoding="utf-8")
        tmp.replace(state_path)
        logger.debug("Wrote session file %s (cookies=%d)", state_path, len(snapshot.get("cookies") or []))
        return state_path

    def delete(self, path: Union[str, Path]) -> bool:
        state_path = Path(path)
        if not state_path.exists():
            return False
        state_path.unlink()
        return True
