from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Optional, Union

from playwright.sync_api import Page


logger = logging.getLogger(__name__)


def save_debug_artifacts(page: Page, *, debug_dir: Union[str, Path], name_prefix: str) -> Optional[Path]:
    """
    Best-effort: save a screenshot, the HTML and the frame URLs so a failed login can be diagnosed offline.

    Never captures the session file or credentials.
    """
    safe = re.sub(r"[^a-zA-Z0-9_-]+", "_", name_prefix).strip("_")[:60] or "debug"
    try:
        out_dir = Path(debug_dir)
        out_dir.mkdir(parents=True, exist_ok=True)
        page.screenshot(path=str(out_dir / f"{safe}.png"), full_page=True)
        (out_dir / f"{safe}.html").write_text(page.content(), encoding="utf-8")
        try:
            urls = [f.url for f in page.frames]
            (out_dir / f"{safe}.frames.txt").write_text("\n".join(urls) + "\n", encoding="utf-8")
        except Exception:
            pass
        logger.info("Saved debug artifacts to %s (%s.*)", out_dir, safe)
        return out_dir / f"{safe}.png"
    except Exception:
        logger.debug("Failed to save debug artifacts.", exc_info=True)
        return None
