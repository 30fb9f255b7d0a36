from __future__ import annotations

import json
from pathlib import Path

import pytest
from fakes import sf_cookie

from sfdc_login import cli
from sfdc_login.errors import BrowserUnavailableError
from sfdc_login.flow import FlowResult
from sfdc_login.models import LoginOutcome


@pytest.fixture
def workdir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, clean_sf_env) -> Path:
    monkeypatch.chdir(tmp_path)
    return tmp_path


def _write_state(path: Path, cookies: list[dict]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps({"cookies": cookies, "origins": []}), encoding="utf-8")


def test_login_without_credentials_exits_nonzero_before_launching(workdir: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    class NeverRun:
        def __init__(self, *_args, **_kwargs) -> None:
            raise AssertionError("flow must not start without credentials")

    monkeypatch.setattr(cli, "LoginFlow", NeverRun)
    assert cli.main(["login"]) == 1
    assert not (workdir / ".auth" / "browser-profile").exists()


def test_login_reads_env_file_and_runs_flow(workdir: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    (workdir / "org.env").write_text("SF_USERNAME=me@example.com\nSF_PASSWORD=s3cret\n", encoding="utf-8")
    seen: dict = {}

    class FakeFlow:
        def __init__(self, cfg, creds, *, interactive: bool, verbose: bool) -> None:
            seen.update(cfg=cfg, creds=creds, interactive=interactive, verbose=verbose)

        def run(self) -> FlowResult:
            return FlowResult(LoginOutcome.ALREADY_AUTHENTICATED)

    monkeypatch.setattr(cli, "LoginFlow", FakeFlow)
    rc = cli.main(["--env-file", "org.env", "login", "--headed", "--debug", "--state-file", "custom/state.json"])

    assert rc == 0
    assert seen["creds"].username == "me@example.com"
    assert seen["interactive"] is True
    assert seen["verbose"] is True
    assert seen["cfg"].paths.state_file == "custom/state.json"


def test_login_browser_unavailable_exits_nonzero(workdir: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SF_USERNAME", "me@example.com")
    monkeypatch.setenv("SF_PASSWORD", "s3cret")

    class NoBrowserFlow:
        def __init__(self, *_args, **_kwargs) -> None:
            pass

        def run(self) -> FlowResult:
            raise BrowserUnavailableError("No usable browser", failures={"chrome": "not found"})

    monkeypatch.setattr(cli, "LoginFlow", NoBrowserFlow)
    assert cli.main(["login"]) == 1


def test_login_unexpected_error_exits_nonzero(workdir: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SF_USERNAME", "me@example.com")
    monkeypatch.setenv("SF_PASSWORD", "s3cret")

    class BrokenFlow:
        def __init__(self, *_args, **_kwargs) -> None:
            pass

        def run(self) -> FlowResult:
            raise RuntimeError("boom")

    monkeypatch.setattr(cli, "LoginFlow", BrokenFlow)
    assert cli.main(["login"]) == 1


def test_invalid_config_exits_nonzero(workdir: Path) -> None:
    (workdir / "config.yaml").write_text("portal:\n  entry_url: not-a-url\n", encoding="utf-8")
    assert cli.main(["status"]) == 1


def test_status_without_session(workdir: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert cli.main(["status"]) == 0
    assert "No saved session" in capsys.readouterr().out


def test_status_summarizes_without_values(workdir: Path, capsys: pytest.CaptureFixture[str]) -> None:
    _write_state(
        workdir / ".auth" / "salesforce-auth.json",
        [sf_cookie(domain="foo.lightning.force.com", value="TOPSECRET"), sf_cookie(domain=".salesforce.com", name="BrowserId")],
    )

    assert cli.main(["status"]) == 0
    out = capsys.readouterr().out
    assert "Cookies: 2 across 2 domain(s)" in out
    assert "https://foo.lightning.force.com" in out
    assert "Earliest cookie expiry" in out
    assert "TOPSECRET" not in out


def test_reset_deletes_session_and_optionally_profile(workdir: Path) -> None:
    state = workdir / ".auth" / "salesforce-auth.json"
    profile = workdir / ".auth" / "browser-profile"
    _write_state(state, [sf_cookie()])
    (profile / "Default").mkdir(parents=True)

    assert cli.main(["reset"]) == 0
    assert not state.exists()
    assert profile.exists()

    assert cli.main(["reset", "--profile"]) == 0
    assert not profile.exists()
