from __future__ import annotations

import argparse
import logging
import os
import shutil
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from .config import AppConfig, load_config
from .credentials import CredentialSource
from .errors import BrowserUnavailableError, ConfigurationError
from .flow import LoginFlow
from .logging_config import configure_logging
from .session.store import SessionStore


logger = logging.getLogger("sfdc_login")


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="sfdc-login")
    p.add_argument(
        "--env-file",
        default=".env",
        help="Path to a dotenv file (default: .env). If missing, env vars must already be set.",
    )
    p.add_argument(
        "--config",
        default="config.yaml",
        help="Optional YAML config overriding env defaults (default: config.yaml, ignored if missing)",
    )

    sub = p.add_subparsers(dest="cmd", required=True)

    login = sub.add_parser(
        "login",
        help="Reuse the saved Salesforce session or log in with SF_USERNAME/SF_PASSWORD and save it",
    )
    login.add_argument(
        "--headed",
        action="store_true",
        help="Visible browser; pauses so you can complete OTP, then press Enter to save the session.",
    )
    login.add_argument("--debug", action="store_true", help="Verbose logging (URLs, per-frame fill attempts).")
    login.add_argument("--state-file", default="", help="Override the session file path.")
    login.add_argument("--profile-dir", default="", help="Override the persistent browser profile directory.")

    status = sub.add_parser("status", help="Summarize the saved session file (never prints cookie values)")
    status.add_argument("--state-file", default="", help="Override the session file path.")

    reset = sub.add_parser("reset", help="Delete the saved session so the next login starts from scratch")
    reset.add_argument("--state-file", default="", help="Override the session file path.")
    reset.add_argument(
        "--profile",
        action="store_true",
        help="Also delete the persistent browser profile directory.",
    )

    return p


def _apply_path_overrides(cfg: AppConfig, args: argparse.Namespace) -> AppConfig:
    updates: dict = {}
    if getattr(args, "state_file", ""):
        updates["state_file"] = args.state_file
    if getattr(args, "profile_dir", ""):
        updates["profile_dir"] = args.profile_dir
    if not updates:
        return cfg
    return cfg.model_copy(update={"paths": cfg.paths.model_copy(update=updates)})


def main(argv: Optional[List[str]] = None) -> int:
    args = _build_parser().parse_args(argv)

    env_path = Path(args.env_file)
    if env_path.exists():
        load_dotenv(env_path)

    verbose = bool(getattr(args, "debug", False))
    # Default logging: can be overridden once config is loaded.
    configure_logging(level=os.getenv("LOG_LEVEL", "INFO"), verbose=verbose)

    try:
        cfg = _apply_path_overrides(load_config(args.config), args)
    except Exception as e:
        logger.error("Invalid configuration: %s", e)
        return 1
    configure_logging(level=cfg.logging.level, file_path=cfg.logging.file_path or None, verbose=verbose)

    if args.cmd == "status":
        return _status(cfg)

    if args.cmd == "reset":
        return _reset(cfg, include_profile=args.profile)

    if args.cmd == "login":
        try:
            creds = CredentialSource(cfg.credentials).resolve()
        except ConfigurationError as e:
            logger.error("%s", e)
            logger.error("Current .env lookup: %s", env_path.resolve())
            return 1
        configure_logging(
            level=cfg.logging.level,
            file_path=cfg.logging.file_path or None,
            verbose=verbose,
            secrets=(creds.password,),
        )

        try:
            result = LoginFlow(cfg, creds, interactive=args.headed, verbose=verbose).run()
        except BrowserUnavailableError as e:
            logger.error("%s", e)
            for engine, reason in e.failures.items():
                logger.debug("  %s: %s", engine, reason)
            return 1
        except Exception:
            logger.exception("Login flow failed")
            return 1

        logger.info("Done (outcome=%s)", result.outcome.value)
        return 0

    raise SystemExit(f"Unknown command: {args.cmd}")


def _status(cfg: AppConfig) -> int:
    state_path = Path(cfg.paths.state_file)
    store = SessionStore(authenticated_domain_suffix=cfg.portal.authenticated_domain_suffix)
    artifact = store.load(state_path)

    if artifact.is_empty:
        print(f"No saved session ({state_path}). Run `sfdc-login login --headed` to create one.")
        return 0

    expiries = [
        float(c["expires"])
        for c in artifact.cookies
        if isinstance(c.get("expires"), (int, float)) and float(c["expires"]) > 0
    ]
    domains = sorted({str(c.get("domain") or "").lstrip(".") for c in artifact.cookies if c.get("domain")})

    print(f"Session file: {state_path}")
    print(f"Cookies: {len(artifact.cookies)} across {len(domains)} domain(s)")
    for d in domains:
        print(f"  - {d}")
    print(f"Home endpoint: {artifact.derived_endpoint or '(none; generic login URL will be used)'}")
    if expiries:
        earliest = datetime.fromtimestamp(min(expiries), tz=timezone.utc)
        print(f"Earliest cookie expiry: {earliest.isoformat()}")
    return 0


def _reset(cfg: AppConfig, *, include_profile: bool) -> int:
    state_path = Path(cfg.paths.state_file)
    store = SessionStore(authenticated_domain_suffix=cfg.portal.authenticated_domain_suffix)
    if store.delete(state_path):
        logger.info("Deleted saved session %s", state_path)
    else:
        logger.info("No saved session at %s", state_path)

    if include_profile:
        profile = Path(cfg.paths.profile_dir)
        if profile.exists():
            shutil.rmtree(profile)
            logger.info("Deleted browser profile %s", profile)
        else:
            logger.info("No browser profile at %s", profile)
    return 0
