"""
Lock/unlock gate for KeyInfo.

The gate starts locked and only unlocks on a successful biometric or
passcode check. Presentation code subscribes to state changes to swap the
lock screen for the main window.
"""

import enum
import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Protocol

from . import config
from .settings import Settings

logger = logging.getLogger(__name__)


class AuthState(enum.Enum):
    LOCKED = "locked"
    UNLOCKED = "unlocked"


@dataclass(frozen=True)
class AuthResult:
    """Outcome of an authentication attempt."""
    success: bool
    reason: Optional[str] = None

    @classmethod
    def ok(cls) -> 'AuthResult':
        return cls(True)

    @classmethod
    def failed(cls, reason: str) -> 'AuthResult':
        return cls(False, reason)


class Authenticator(Protocol):
    def can_authenticate(self) -> bool: ...

    def authenticate(self, reason: str) -> AuthResult: ...


class PasscodeVerifier(Protocol):
    def is_configured(self) -> bool: ...

    def verify(self, candidate: str) -> bool: ...


class AuthGate:
    """Two-state lock guarding access to the item views."""

    def __init__(self, authenticator: Authenticator, passcode: PasscodeVerifier, settings: Settings):
        self.authenticator = authenticator
        self.passcode = passcode
        self.settings = settings
        self._state = AuthState.LOCKED
        self._subscribers: List[Callable[[AuthState], None]] = []

    @property
    def state(self) -> AuthState:
        return self._state

    def is_unlocked(self) -> bool:
        return self._state is AuthState.UNLOCKED

    def subscribe(self, callback: Callable[[AuthState], None]) -> None:
        self._subscribers.append(callback)

    def _set_state(self, state: AuthState) -> None:
        if state is self._state:
            return
        self._state = state
        logger.info(f"Auth state changed to {state.value}")
        for callback in list(self._subscribers):
            callback(state)

    def start(self) -> AuthState:
        """Apply the launch policy. Unlocks straight away when launch auth is off."""
        if not self.settings.require_auth_on_launch:
            logger.info("Authentication on launch disabled, unlocking")
            self._set_state(AuthState.UNLOCKED)
        return self._state

    def request_biometric_auth(self) -> AuthResult:
        """
        Ask the platform authenticator to verify the user.

        Returns:
            AuthResult; on failure ``reason`` holds a message suitable for an alert
        """
        if not self.settings.use_biometric_auth:
            return AuthResult.failed(config.AUTH_ERROR_DISABLED)
        if not self.authenticator.can_authenticate():
            logger.info("Biometric authentication unavailable")
            return AuthResult.failed(config.AUTH_ERROR_UNAVAILABLE)

        try:
            result = self.authenticator.authenticate(config.AUTH_REASON_UNLOCK)
        except Exception as e:
            logger.error(f"Platform authenticator raised: {e}", exc_info=True)
            return AuthResult.failed(str(e) or config.AUTH_ERROR_DEFAULT)

        if result.success:
            self._set_state(AuthState.UNLOCKED)
            return result
        logger.info(f"Biometric authentication failed: {result.reason}")
        return AuthResult.failed(result.reason or config.AUTH_ERROR_DEFAULT)

    def verify_passcode(self, candidate: str) -> AuthResult:
        """Check a passcode entered on the lock screen. No rate limiting is applied."""
        if not self.passcode.is_configured():
            return AuthResult.failed(config.AUTH_ERROR_NO_PASSCODE)
        if self.passcode.verify(candidate):
            self._set_state(AuthState.UNLOCKED)
            return AuthResult.ok()
        logger.info("Passcode rejected")
        return AuthResult.failed(config.AUTH_ERROR_PASSCODE)

    def lock(self) -> None:
        self._set_state(AuthState.LOCKED)

    def on_app_background(self) -> None:
        """Re-lock when the app is hidden, if the user opted in."""
        if self.settings.relock_on_background:
            self.lock()
