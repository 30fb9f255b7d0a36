from .persister import SessionPersister
from .store import SessionStore

__all__ = ["SessionPersister", "SessionStore"]
