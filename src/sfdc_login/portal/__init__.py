from .browser import BrowserSession
from .challenge import ChallengeDetector
from .login_form import LoginFormFiller
from .probe import SessionProbe

__all__ = ["BrowserSession", "ChallengeDetector", "LoginFormFiller", "SessionProbe"]
