"""
Main entry point for KeyInfo.
"""

import sys
import signal
import logging
from typing import Optional

from PyQt5.QtWidgets import QApplication, QMessageBox
from PyQt5.QtCore import Qt

from keyinfo.auth import AuthGate, AuthState
from keyinfo.biometric import PasscodeManager, PlatformAuthenticator
from keyinfo.editor import ItemEditor
from keyinfo.list_engine import ListEngine
from keyinfo.settings import SettingsManager
from keyinfo.storage import StorageManager, StoreInitializationError
from keyinfo.ui import LockDialog, MainWindow
from keyinfo import config

logger = logging.getLogger(__name__)

STATE_LOCKED = "LOCKED"
STATE_MAIN_WINDOW = "MAIN_WINDOW"
STATE_EXIT = "EXIT"


class KeyInfoApp:
    """Wires the components together and runs the lock/main window loop."""

    def __init__(self, store: StorageManager):
        self.app = QApplication.instance() or QApplication(sys.argv)
        self.app.setApplicationName(config.APP_NAME)
        self.app.setStyle(config.APP_STYLE)

        self.store = store
        self.settings_manager = SettingsManager()
        self.authenticator = PlatformAuthenticator()
        self.passcode = PasscodeManager()
        self.gate = AuthGate(self.authenticator, self.passcode, self.settings_manager.settings)
        self.editor = ItemEditor(self.store)
        self.engine = ListEngine(self.store, self.settings_manager.settings)
        self.main_window: Optional[MainWindow] = None
        self.gate.subscribe(self._handle_auth_state)

        # Handle Ctrl+C gracefully
        signal.signal(signal.SIGINT, signal.SIG_DFL)

    def _handle_auth_state(self, state: AuthState):
        if state is AuthState.LOCKED and self.main_window is not None:
            # Re-locked while the main window was open; leave its event loop
            self.main_window.close()

    def run(self) -> int:
        current_state = STATE_LOCKED
        if self.gate.start() is AuthState.UNLOCKED:
            current_state = STATE_MAIN_WINDOW

        while current_state != STATE_EXIT:
            if current_state == STATE_LOCKED:
                dialog = LockDialog(self.gate, self.passcode)
                if dialog.exec_() and self.gate.is_unlocked():
                    current_state = STATE_MAIN_WINDOW
                else:
                    current_state = STATE_EXIT

            elif current_state == STATE_MAIN_WINDOW:
                self.main_window = MainWindow(
                    self.gate, self.editor, self.engine, self.settings_manager, self.authenticator
                )
                self.main_window.show()
                self.app.exec_()
                self.main_window = None
                current_state = STATE_LOCKED if not self.gate.is_unlocked() else STATE_EXIT

        return 0

    def cleanup(self):
        self.engine.close()


def main():
    """Main entry point."""
    logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(name)s - %(message)s')
    if hasattr(Qt, 'AA_EnableHighDpiScaling'):
        QApplication.setAttribute(Qt.AA_EnableHighDpiScaling, True)

    try:
        store = StorageManager()
    except StoreInitializationError as e:
        logger.critical(f"Cannot start: {e}")
        # Kept referenced so the QApplication outlives the message box
        _app = QApplication(sys.argv)
        QMessageBox.critical(None, config.APP_NAME, f"Your data could not be opened.\n\n{e}")
        return 1

    app = KeyInfoApp(store)
    try:
        return app.run()
    finally:
        app.cleanup()


if __name__ == "__main__":
    sys.exit(main())
