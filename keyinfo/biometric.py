"""
Platform authentication support for KeyInfo.

PlatformAuthenticator talks to the operating system's biometric prompt
(Windows Hello on Windows, fprintd on Linux). PasscodeManager holds the
fallback passcode as an Argon2id hash.
"""

import platform
import os
import json
import ctypes
import shutil
import logging
import subprocess
from typing import Optional

from argon2 import PasswordHasher, Type
from argon2.exceptions import InvalidHashError, VerificationError, VerifyMismatchError

from . import config
from .auth import AuthResult
from .utils import ensure_dir, set_owner_only_permissions

logger = logging.getLogger(__name__)


class WindowsHelloHelper:
    """Windows Hello availability check and prompt."""

    def __init__(self):
        self.has_biometric = self._check_biometric_available()

    def _check_biometric_available(self) -> bool:
        """Check for an enrolled biometric device through WMI."""
        try:
            result = subprocess.run(
                ["wmic", "path", "Win32_Biometric", "get", "DeviceId"],
                capture_output=True,
                text=True,
                timeout=config.BIOMETRIC_AUTH_TIMEOUT_SECONDS,
                creationflags=getattr(subprocess, "CREATE_NO_WINDOW", 0)
            )
        except (OSError, subprocess.SubprocessError) as e:
            logger.debug(f"Error checking biometric: {e}")
            return False

        if result.returncode == 0 and "DeviceId" in result.stdout:
            lines = [line for line in result.stdout.strip().split('\n') if line.strip()]
            return len(lines) > 1  # Header + at least one device
        return False

    def authenticate(self) -> AuthResult:
        """Trigger the Windows credential prompt through a ``runas`` ShellExecute."""
        try:
            shell32 = ctypes.windll.shell32
            result = shell32.ShellExecuteW(None, "runas", "cmd.exe", "/c exit", None, 0)  # SW_HIDE
        except (AttributeError, OSError) as e:
            logger.debug(f"Windows Hello authentication error: {e}")
            return AuthResult.failed(str(e))
        # Values above 32 mean success
        if result > 32:
            return AuthResult.ok()
        return AuthResult.failed("Authentication was canceled.")


class FprintdHelper:
    """Linux fingerprint verification via the fprintd command line tool."""

    def __init__(self):
        self.command = shutil.which(config.FPRINTD_VERIFY_COMMAND)

    @property
    def has_biometric(self) -> bool:
        return self.command is not None

    def authenticate(self) -> AuthResult:
        try:
            result = subprocess.run(
                [self.command],
                capture_output=True,
                text=True,
                timeout=config.BIOMETRIC_AUTH_TIMEOUT_SECONDS
            )
        except subprocess.TimeoutExpired:
            return AuthResult.failed("Fingerprint verification timed out.")
        except OSError as e:
            return AuthResult.failed(str(e))

        if result.returncode == 0 and config.FPRINTD_MATCH_MARKER in result.stdout:
            return AuthResult.ok()
        # fprintd reports "verify-no-match", "No devices available", enrollment errors...
        message = (result.stderr or result.stdout).strip().splitlines()
        return AuthResult.failed(message[-1] if message else config.AUTH_ERROR_DEFAULT)


class PlatformAuthenticator:
    """Biometric authenticator for the current operating system."""

    def __init__(self):
        self.system = platform.system()
        self._helper = None
        if self.system == "Windows":
            self._helper = WindowsHelloHelper()
        elif self.system == "Linux":
            self._helper = FprintdHelper()

    def can_authenticate(self) -> bool:
        return self._helper is not None and self._helper.has_biometric

    def get_device_info(self) -> str:
        """Name of the biometric method, for settings labels."""
        if self.system == "Windows":
            return "Windows Hello"
        elif self.system == "Linux":
            return "Fingerprint"
        return "Biometric"

    def authenticate(self, reason: str) -> AuthResult:
        logger.info(f"Starting authentication: {reason}")
        if not self.can_authenticate():
            return AuthResult.failed(config.AUTH_ERROR_UNAVAILABLE)
        return self._helper.authenticate()


class PasscodeManager:
    """Stores the single fallback passcode as an Argon2id hash."""

    def __init__(self, filepath: Optional[str] = None):
        if filepath is None:
            filepath = os.path.join(config.get_config_dir(), config.PASSCODE_FILE)
        self.filepath = filepath
        self.ph = PasswordHasher(
            time_cost=config.ARGON2_TIME_COST,
            memory_cost=config.ARGON2_MEMORY_COST,
            parallelism=config.ARGON2_PARALLELISM,
            type=Type.ID
        )
        self._stored_hash: Optional[str] = None
        self._load()

    def _load(self) -> None:
        if not os.path.exists(self.filepath):
            return
        try:
            with open(self.filepath, 'r', encoding='utf-8') as f:
                data = json.load(f)
            self._stored_hash = data.get('passcode_hash')
        except (OSError, ValueError, AttributeError) as e:
            logger.error(f"Error loading passcode file {self.filepath}: {e}")

    def is_configured(self) -> bool:
        return self._stored_hash is not None

    def set_passcode(self, passcode: str) -> None:
        """
        Hash and store a new passcode.
        Raises:
            ValueError: if the passcode is empty
            OSError: if the file cannot be written; the previous passcode stays in effect
        """
        if not passcode:
            raise ValueError("Passcode must not be empty")
        passcode_hash = self.ph.hash(passcode)
        ensure_dir(os.path.dirname(self.filepath) or ".")
        with open(self.filepath, 'w', encoding='utf-8') as f:
            json.dump({'passcode_hash': passcode_hash}, f)
        set_owner_only_permissions(self.filepath)
        self._stored_hash = passcode_hash
        logger.info("Passcode set up")

    def verify(self, candidate: str) -> bool:
        if self._stored_hash is None:
            return False
        try:
            return self.ph.verify(self._stored_hash, candidate)
        except VerifyMismatchError:
            return False
        except (VerificationError, InvalidHashError) as e:
            logger.error(f"Stored passcode hash could not be checked: {e}")
            return False
