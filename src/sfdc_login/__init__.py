from .credentials import CredentialSource, Credentials
from .errors import BrowserUnavailableError, ConfigurationError
from .flow import FlowResult, LoginFlow
from .models import FillResult, LoginOutcome, SessionArtifact
from .session.store import SessionStore

__all__ = [
    "BrowserUnavailableError",
    "ConfigurationError",
    "CredentialSource",
    "Credentials",
    "FillResult",
    "FlowResult",
    "LoginFlow",
    "LoginOutcome",
    "SessionArtifact",
    "SessionStore",
]
