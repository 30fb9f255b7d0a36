from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class LoginSelectors:
    """
    Salesforce login pages change over time (classic, Lightning, sandbox, My Domain).
    Keep all UI selectors/URL markers here for easy maintenance.
    """

    # Login form. Each tuple is tried in order; the first match wins.
    login_iframe_marker: str = "sessionserver"
    username_inputs: tuple[str, ...] = (
        "input#username",
        'input[name="username"]',
        "input.username",
        'input[type="email"]',
    )
    password_inputs: tuple[str, ...] = (
        "input#password",
        'input[name="pw"]',
        'input[type="password"]',
    )
    submit_controls: tuple[str, ...] = (
        "input#Login",
        'input[name="Login"]',
        'button[type="submit"]',
        'input[type="submit"]',
    )
    login_forms: tuple[str, ...] = (
        "form#login_form",
        'form[name="login"]',
    )

    # Identity verification (OTP / "Verify your identity")
    challenge_markers: tuple[str, ...] = (
        'input[id*="otp"]',
        'input[name*="otp"]',
        'input[placeholder*="code"]',
        "#emc",
        "#tlkp_verify",
        ".verify-identity",
        "#smc",
    )

    # Present once the authenticated app shell (classic or Lightning) has rendered.
    post_login_markers: tuple[str, ...] = (
        'div[id="content"]',
        "[data-aura-rendered-by]",
        ".slds-global-header",
        "#phHeader",
        ".slds-page-header",
    )

    # Broad "this URL looks authenticated" shapes for a first run without a saved session:
    # Lightning, classic home, Setup deep links, frontdoor redirects, 15-char record ids.
    authenticated_url_pattern: str = (
        r"lightning|home\.jsp|\.com/home|Setup|secur/frontdoor|salesforce\.com/[a-z0-9]{15}"
    )

    @property
    def challenge_selector(self) -> str:
        return ", ".join(self.challenge_markers)

    @property
    def post_login_selector(self) -> str:
        return ", ".join(self.post_login_markers)
