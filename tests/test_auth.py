import subprocess

import pytest

from keyinfo import biometric, config
from keyinfo.auth import AuthGate, AuthResult, AuthState
from keyinfo.biometric import FprintdHelper, PasscodeManager
from keyinfo.settings import Settings

from conftest import FakeAuthenticator, FakePasscode


class TestAuthGate:
    def test_starts_locked(self, gate):
        assert gate.state is AuthState.LOCKED
        assert not gate.is_unlocked()

    def test_biometric_success_unlocks(self, gate, authenticator):
        result = gate.request_biometric_auth()
        assert result.success
        assert gate.is_unlocked()
        assert authenticator.reasons == [config.AUTH_REASON_UNLOCK]

    def test_biometric_failure_keeps_locked_and_reports_reason(self, settings):
        authenticator = FakeAuthenticator(result=AuthResult.failed("User canceled"))
        gate = AuthGate(authenticator, FakePasscode(), settings)
        result = gate.request_biometric_auth()
        assert result == AuthResult(False, "User canceled")
        assert gate.state is AuthState.LOCKED

    def test_failure_without_reason_gets_default(self, settings):
        gate = AuthGate(FakeAuthenticator(result=AuthResult(False)), FakePasscode(), settings)
        assert gate.request_biometric_auth().reason == config.AUTH_ERROR_DEFAULT

    def test_unavailable_biometrics(self, settings):
        authenticator = FakeAuthenticator(available=False)
        gate = AuthGate(authenticator, FakePasscode(), settings)
        result = gate.request_biometric_auth()
        assert result.reason == config.AUTH_ERROR_UNAVAILABLE
        assert authenticator.reasons == []

    def test_disabled_biometrics_never_prompt(self, authenticator):
        gate = AuthGate(authenticator, FakePasscode(), Settings(use_biometric_auth=False))
        result = gate.request_biometric_auth()
        assert not result.success
        assert result.reason == config.AUTH_ERROR_DISABLED
        assert authenticator.reasons == []

    def test_platform_error_becomes_failure(self, settings):
        gate = AuthGate(FakeAuthenticator(error=OSError("no enrollment")), FakePasscode(), settings)
        result = gate.request_biometric_auth()
        assert result == AuthResult(False, "no enrollment")
        assert gate.state is AuthState.LOCKED

    def test_passcode(self, gate):
        assert gate.verify_passcode("0000") == AuthResult(False, config.AUTH_ERROR_PASSCODE)
        assert gate.state is AuthState.LOCKED
        assert gate.verify_passcode("1234").success
        assert gate.is_unlocked()

    def test_passcode_not_configured(self, authenticator, settings):
        gate = AuthGate(authenticator, FakePasscode(passcode=None), settings)
        assert gate.verify_passcode("1234").reason == config.AUTH_ERROR_NO_PASSCODE

    def test_subscribers_see_transitions_once(self, gate):
        seen = []
        gate.subscribe(seen.append)
        gate.verify_passcode("1234")
        gate.verify_passcode("1234")
        gate.lock()
        assert seen == [AuthState.UNLOCKED, AuthState.LOCKED]

    def test_launch_policy(self, authenticator):
        gate = AuthGate(authenticator, FakePasscode(), Settings(require_auth_on_launch=False))
        assert gate.start() is AuthState.UNLOCKED

    def test_launch_requires_auth_by_default(self, gate):
        assert gate.start() is AuthState.LOCKED

    @pytest.mark.parametrize("relock,expected", [(True, AuthState.LOCKED), (False, AuthState.UNLOCKED)])
    def test_background_relock_is_opt_in(self, authenticator, relock, expected):
        gate = AuthGate(authenticator, FakePasscode(), Settings(relock_on_background=relock))
        gate.verify_passcode("1234")
        gate.on_app_background()
        assert gate.state is expected


@pytest.fixture
def cheap_argon2(monkeypatch):
    monkeypatch.setattr(config, "ARGON2_TIME_COST", 1)
    monkeypatch.setattr(config, "ARGON2_MEMORY_COST", 1024)
    monkeypatch.setattr(config, "ARGON2_PARALLELISM", 1)


class TestPasscodeManager:
    def test_set_and_verify(self, tmp_path, cheap_argon2):
        manager = PasscodeManager(str(tmp_path / "auth.json"))
        assert not manager.is_configured()
        assert not manager.verify("1234")

        manager.set_passcode("1234")
        assert manager.verify("1234")
        assert not manager.verify("4321")

    def test_hash_survives_reload_and_is_not_plaintext(self, tmp_path, cheap_argon2):
        path = tmp_path / "auth.json"
        PasscodeManager(str(path)).set_passcode("2468")
        assert "2468" not in path.read_text()
        assert PasscodeManager(str(path)).verify("2468")

    def test_empty_passcode_rejected(self, tmp_path, cheap_argon2):
        with pytest.raises(ValueError):
            PasscodeManager(str(tmp_path / "auth.json")).set_passcode("")

    def test_failed_write_leaves_passcode_unset(self, tmp_path, cheap_argon2):
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("")
        manager = PasscodeManager(str(blocker / "auth.json"))
        with pytest.raises(OSError):
            manager.set_passcode("1234")
        assert not manager.is_configured()

    def test_garbage_hash_does_not_verify(self, tmp_path, cheap_argon2):
        path = tmp_path / "auth.json"
        path.write_text('{"passcode_hash": "not-a-hash"}')
        manager = PasscodeManager(str(path))
        assert manager.is_configured()
        assert not manager.verify("1234")

    def test_works_with_gate(self, tmp_path, cheap_argon2, authenticator, settings):
        manager = PasscodeManager(str(tmp_path / "auth.json"))
        manager.set_passcode("9999")
        gate = AuthGate(authenticator, manager, settings)
        assert gate.verify_passcode("9999").success


class TestFprintd:
    def _helper(self, monkeypatch, completed=None, error=None):
        monkeypatch.setattr(biometric.shutil, "which", lambda name: "/usr/bin/" + name)

        def fake_run(*args, **kwargs):
            if error is not None:
                raise error
            return completed
        monkeypatch.setattr(biometric.subprocess, "run", fake_run)
        return FprintdHelper()

    def test_match(self, monkeypatch):
        done = subprocess.CompletedProcess([], 0, stdout="Verify result: verify-match (done)\n", stderr="")
        assert self._helper(monkeypatch, done).authenticate().success

    def test_no_match_reports_last_line(self, monkeypatch):
        done = subprocess.CompletedProcess([], 1, stdout="Verify started\nVerify result: verify-no-match (done)\n", stderr="")
        result = self._helper(monkeypatch, done).authenticate()
        assert result == AuthResult(False, "Verify result: verify-no-match (done)")

    def test_timeout(self, monkeypatch):
        helper = self._helper(monkeypatch, error=subprocess.TimeoutExpired("fprintd-verify", 30))
        assert not helper.authenticate().success

    def test_missing_command(self, monkeypatch):
        monkeypatch.setattr(biometric.shutil, "which", lambda name: None)
        assert not FprintdHelper().has_biometric
