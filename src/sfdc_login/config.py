from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Union
from urllib.parse import urlparse

import yaml
from pydantic import BaseModel, Field, model_validator


_ENV_VAR_PATTERN = re.compile(r"\$\{([A-Z0-9_]+)\}")

DEFAULT_ENTRY_URL = "https://test.salesforce.com/"
DEFAULT_HOME_PATH = "/lightning/page/home"


def _expand_env_vars(value: object) -> object:
    if isinstance(value, str):
        def repl(match: re.Match[str]) -> str:
            var = match.group(1)
            return os.getenv(var, "")

        return _ENV_VAR_PATTERN.sub(repl, value)
    if isinstance(value, list):
        return [_expand_env_vars(v) for v in value]
    if isinstance(value, dict):
        return {k: _expand_env_vars(v) for k, v in value.items()}
    return value


def _deep_merge(base: object, override: object) -> object:
    if isinstance(base, dict) and isinstance(override, dict):
        out = dict(base)
        for k, v in override.items():
            if k in out:
                out[k] = _deep_merge(out[k], v)
            else:
                out[k] = v
        return out
    return override


def _parse_channels_env(value: str) -> list[str]:
    # "chrome,msedge" or "chrome msedge"; empty -> defaults
    items = [c.strip().lower() for c in re.split(r"[,\s]+", value or "") if c.strip()]
    out: list[str] = []
    for c in items:
        if c not in out:
            out.append(c)
    return out


def _default_config_from_env() -> dict:
    """
    Env-only config so most users only need `.env` (SF_USERNAME / SF_PASSWORD).

    A YAML file passed via `--config` is an optional override on top of this.
    """
    auth_dir = os.getenv("SF_AUTH_DIR", ".auth")
    cfg: dict = {
        "credentials": {
            "username": os.getenv("SF_USERNAME", ""),
            "password": os.getenv("SF_PASSWORD", ""),
        },
        "portal": {
            "entry_url": os.getenv("SF_LOGIN_URL", DEFAULT_ENTRY_URL),
            "home_path": os.getenv("SF_HOME_PATH", DEFAULT_HOME_PATH),
        },
        "paths": {
            "state_file": os.getenv("SF_STATE_FILE", str(Path(auth_dir) / "salesforce-auth.json")),
            "profile_dir": os.getenv("SF_PROFILE_DIR", str(Path(auth_dir) / "browser-profile")),
            "debug_dir": os.getenv("SF_DEBUG_DIR", str(Path(auth_dir) / "debug")),
        },
        "logging": {
            "level": os.getenv("LOG_LEVEL", "INFO"),
            "file_path": os.getenv("LOG_FILE", ""),
        },
    }
    channels = _parse_channels_env(os.getenv("SF_BROWSER_CHANNELS", ""))
    if channels:
        cfg["browser"] = {"channels": channels}
    return cfg


class CredentialsConfig(BaseModel):
    # Validation (non-empty after trimming) happens in CredentialSource so a missing
    # value is reported as a ConfigurationError instead of a pydantic error.
    username: str = ""
    password: str = Field(default="", repr=False)


class PortalConfig(BaseModel):
    """
    Identity provider URLs and the URL markers used to classify a page as authenticated.

    Defaults target a Salesforce sandbox; production orgs use `https://login.salesforce.com/`.
    """

    entry_url: str = DEFAULT_ENTRY_URL
    home_path: str = DEFAULT_HOME_PATH

    # Cookie domain that identifies the authenticated app host (e.g. `foo.lightning.force.com`).
    authenticated_domain_suffix: str = "lightning.force.com"
    app_shell_marker: str = "lightning"
    account_domain_marker: str = "my.salesforce.com"
    provider_domain: str = "salesforce.com"

    @model_validator(mode="after")
    def _normalize(self) -> "PortalConfig":
        entry = (self.entry_url or "").strip()
        parsed = urlparse(entry)
        if not parsed.scheme or not parsed.netloc:
            raise ValueError(f"portal.entry_url must be a full URL like {DEFAULT_ENTRY_URL!r} (got {entry!r})")
        if not parsed.path:
            entry = entry + "/"

        home = (self.home_path or "").strip() or DEFAULT_HOME_PATH
        if not home.startswith("/"):
            home = "/" + home

        self.entry_url = entry
        self.home_path = home
        return self

    @property
    def entry_origin(self) -> str:
        parsed = urlparse(self.entry_url)
        return f"{parsed.scheme}://{parsed.netloc}"

    @property
    def home_url(self) -> str:
        return self.entry_origin + self.home_path


class PathsConfig(BaseModel):
    state_file: str = ".auth/salesforce-auth.json"
    profile_dir: str = ".auth/browser-profile"
    debug_dir: str = ".auth/debug"


class BrowserConfig(BaseModel):
    # Installed browsers tried in order before falling back to Playwright's bundled Chromium.
    channels: list[str] = Field(default_factory=lambda: ["chrome", "msedge"])
    launch_args: list[str] = Field(
        default_factory=lambda: [
            "--no-first-run",
            "--no-default-browser-check",
            "--disable-default-apps",
            "--start-maximized",
        ]
    )
    slow_mo_ms: int = 0


class TimeoutsConfig(BaseModel):
    navigation_ms: int = 30_000
    entry_navigation_ms: int = 60_000
    settle_ms: int = 3_000
    entry_settle_ms: int = 5_000

    login_iframe_wait_ms: int = 35_000
    login_iframe_poll_ms: int = 800
    login_iframe_fill_ms: int = 20_000
    main_frame_fill_ms: int = 15_000
    other_frame_fill_ms: int = 8_000
    fill_poll_ms: int = 500

    challenge_ms: int = 3_000
    post_login_marker_ms: int = 120_000

    @model_validator(mode="after")
    def _validate_positive(self) -> "TimeoutsConfig":
        for name, value in self.model_dump().items():
            if value < 0:
                raise ValueError(f"timeouts.{name} must be >= 0 (got {value})")
        return self


class LoggingConfig(BaseModel):
    level: str = "INFO"
    file_path: str = ""


class AppConfig(BaseModel):
    credentials: CredentialsConfig = CredentialsConfig()
    portal: PortalConfig = PortalConfig()
    paths: PathsConfig = PathsConfig()
    browser: BrowserConfig = BrowserConfig()
    timeouts: TimeoutsConfig = TimeoutsConfig()
    logging: LoggingConfig = LoggingConfig()


def load_config(path: Union[str, Path, None] = None) -> AppConfig:
    raw: dict = {}
    if path:
        p = Path(path)
        if p.exists():
            raw = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
            raw = _expand_env_vars(raw)  # supports ${ENV_VAR} in YAML

    merged = _deep_merge(_default_config_from_env(), raw)
    return AppConfig.model_validate(merged)
