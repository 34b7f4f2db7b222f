"""
User interface for KeyInfo.

Thin PyQt5 layer: it renders ListEngine sections and forwards user actions to
AuthGate, ItemEditor and the clipboard. No list or validation logic lives here.
"""

import logging
from typing import Optional

from PyQt5.QtWidgets import (
    QMainWindow, QDialog, QWidget, QVBoxLayout, QHBoxLayout, QLabel, QLineEdit,
    QPushButton, QMessageBox, QCheckBox, QDialogButtonBox, QMenu, QComboBox,
    QFormLayout, QApplication, QInputDialog, QTreeWidget, QTreeWidgetItem, QGroupBox
)
from PyQt5.QtCore import Qt, QTimer, QEvent
from PyQt5.QtGui import QColor, QBrush, QFont, QPixmap, QIcon

from .auth import AuthGate
from .biometric import PasscodeManager, PlatformAuthenticator
from .clipboard import ClipboardManager
from .editor import ItemEditor, ItemKind, ValidationError
from .list_engine import ListEngine, SortOption, item_details
from .settings import SettingsManager
from .storage import Item, ItemNotFoundError, PersistenceError
from . import config

logger = logging.getLogger(__name__)


def _color_icon(color_name: str) -> QIcon:
    pixmap = QPixmap(12, 12)
    pixmap.fill(QColor(config.COLOR_HEX.get(color_name, config.COLOR_HEX[config.DEFAULT_COLOR])))
    return QIcon(pixmap)


def _confirm_delete(parent) -> bool:
    reply = QMessageBox.question(
        parent, "Delete Item?",
        "Are you sure you want to delete this item? This action cannot be undone.",
        QMessageBox.Yes | QMessageBox.No
    )
    return reply == QMessageBox.Yes


class LockDialog(QDialog):
    """Lock screen: biometric unlock with passcode fallback."""

    def __init__(self, gate: AuthGate, passcode: PasscodeManager, parent=None):
        super().__init__(parent)
        self.gate = gate
        self.passcode = passcode
        self.init_ui()

    def init_ui(self):
        self.setWindowTitle(f"{config.APP_TITLE_PREFIX} - Locked")
        self.setMinimumSize(360, 220)
        self.setModal(True)

        layout = QVBoxLayout()

        title = QLabel(config.APP_NAME)
        title.setAlignment(Qt.AlignCenter)
        font = title.font()
        font.setPointSize(18)
        font.setBold(True)
        title.setFont(font)
        layout.addWidget(title)

        tagline = QLabel(config.APP_TAGLINE)
        tagline.setAlignment(Qt.AlignCenter)
        layout.addWidget(tagline)

        self.biometric_button = QPushButton("Unlock with Biometrics")
        self.biometric_button.clicked.connect(self.biometric_login)
        layout.addWidget(self.biometric_button)

        self.passcode_group = QGroupBox(config.PASSCODE_PROMPT_ENTER)
        passcode_layout = QHBoxLayout()
        self.passcode_input = QLineEdit()
        self.passcode_input.setEchoMode(QLineEdit.Password)
        self.passcode_input.returnPressed.connect(self.passcode_login)
        passcode_layout.addWidget(self.passcode_input)
        unlock_button = QPushButton("Unlock")
        unlock_button.clicked.connect(self.passcode_login)
        passcode_layout.addWidget(unlock_button)
        self.passcode_group.setLayout(passcode_layout)
        self.passcode_group.setVisible(False)
        layout.addWidget(self.passcode_group)

        use_passcode_button = QPushButton("Use Passcode")
        use_passcode_button.clicked.connect(self.show_passcode_entry)
        layout.addWidget(use_passcode_button)

        layout.addStretch()
        self.setLayout(layout)

    def showEvent(self, event):
        super().showEvent(event)
        if self.gate.settings.use_biometric_auth:
            QTimer.singleShot(500, self.biometric_login)
        else:
            self.show_passcode_entry()

    def show_passcode_entry(self):
        if not self.passcode.is_configured() and not self.setup_passcode():
            return
        self.passcode_group.setVisible(True)
        self.passcode_input.setFocus()

    def setup_passcode(self) -> bool:
        passcode, ok = QInputDialog.getText(
            self, "Passcode Setup", config.PASSCODE_PROMPT_SETUP, QLineEdit.Password, ""
        )
        if not (ok and passcode):
            return False
        try:
            self.passcode.set_passcode(passcode)
        except OSError as e:
            QMessageBox.critical(self, "Error", f"Failed to save passcode: {e}")
            return False
        QMessageBox.information(self, "Passcode Set Up", "Your passcode has been set up.")
        return True

    def biometric_login(self):
        if self.gate.is_unlocked():
            return
        result = self.gate.request_biometric_auth()
        if result.success:
            self.accept()
            return
        QMessageBox.warning(self, "Authentication Failed", result.reason or config.AUTH_ERROR_DEFAULT)
        self.show_passcode_entry()

    def passcode_login(self):
        result = self.gate.verify_passcode(self.passcode_input.text())
        self.passcode_input.clear()
        if result.success:
            self.accept()
        else:
            QMessageBox.warning(self, "Authentication Failed", result.reason or config.AUTH_ERROR_DEFAULT)


class ItemDialog(QDialog):
    """Dialog for adding or editing an item."""

    def __init__(self, editor: ItemEditor, item: Optional[Item] = None, parent=None):
        super().__init__(parent)
        self.editor = editor
        self.item = item
        self.init_ui()

    def init_ui(self):
        self.setWindowTitle("Edit Item" if self.item else "Add Key Info")
        self.setModal(True)
        self.setMinimumWidth(420)

        layout = QFormLayout()

        self.kind_combo = QComboBox()
        for kind in ItemKind:
            self.kind_combo.addItem(kind.value, kind)
        self.kind_combo.setCurrentIndex(self.kind_combo.findData(ItemKind.CUSTOM))
        self.kind_combo.currentIndexChanged.connect(self.apply_kind_defaults)
        if not self.item:
            layout.addRow("Type:", self.kind_combo)

        self.label_input = QLineEdit()
        layout.addRow("Label:", self.label_input)

        self.value_input = QLineEdit()
        layout.addRow("Value:", self.value_input)

        self.category_combo = QComboBox()
        self.category_combo.setEditable(True)
        self.category_combo.addItems(config.PREDEFINED_CATEGORIES)
        layout.addRow("Category:", self.category_combo)

        self.color_combo = QComboBox()
        for color_name in config.COLOR_PALETTE:
            self.color_combo.addItem(_color_icon(color_name), color_name)
        layout.addRow("Color:", self.color_combo)

        if self.item:
            self.label_input.setText(self.item.label)
            self.value_input.setText(self.item.value)
            self.category_combo.setCurrentText(self.item.category)
            self.color_combo.setCurrentText(self.item.color_name)
        else:
            self.category_combo.setCurrentText(config.DEFAULT_CATEGORY)
            self.color_combo.setCurrentText(config.DEFAULT_COLOR)

        buttons = QDialogButtonBox(QDialogButtonBox.Save | QDialogButtonBox.Cancel)
        buttons.accepted.connect(self.save)
        buttons.rejected.connect(self.reject)
        layout.addRow(buttons)

        self.setLayout(layout)

    def apply_kind_defaults(self):
        kind = self.kind_combo.currentData()
        if kind is ItemKind.CUSTOM:
            return
        defaults = kind.defaults
        self.label_input.setText(kind.value)
        self.category_combo.setCurrentText(defaults.category)
        self.color_combo.setCurrentText(defaults.color_name)

    def save(self):
        label = self.label_input.text()
        value = self.value_input.text()
        category = self.category_combo.currentText().strip()
        color_name = self.color_combo.currentText()
        try:
            if self.item:
                self.editor.update(self.item, label, value, category, color_name)
            else:
                self.item = self.editor.create(
                    label, value, category=category, color_name=color_name,
                    kind=self.kind_combo.currentData()
                )
        except ValidationError as e:
            QMessageBox.warning(self, "Validation Error", str(e))
            return
        except ItemNotFoundError as e:
            QMessageBox.warning(self, "Item Deleted", str(e))
            self.reject()
            return
        except PersistenceError as e:
            QMessageBox.critical(self, "Error", f"Failed to save item: {e}")
            return
        self.accept()


class ItemDetailDialog(QDialog):
    """Read-only view of one item with copy, edit and delete actions."""

    def __init__(self, editor: ItemEditor, clipboard: ClipboardManager, item: Item, parent=None):
        super().__init__(parent)
        self.editor = editor
        self.clipboard = clipboard
        self.item = item
        self.field_labels = {}
        self.init_ui()
        self.refresh()

    def init_ui(self):
        self.setWindowTitle("Item Details")
        self.setModal(True)
        self.setMinimumWidth(420)

        layout = QVBoxLayout()

        form = QFormLayout()
        for title, _ in item_details(self.item):
            field_label = QLabel()
            field_label.setWordWrap(True)
            field_label.setTextInteractionFlags(Qt.TextSelectableByMouse)
            self.field_labels[title] = field_label
            form.addRow(f"{title}:", field_label)
        layout.addLayout(form)

        self.favorite_label = QLabel(f"⭐ {config.FAVORITE_BADGE_TEXT}")
        layout.addWidget(self.favorite_label)

        self.copied_label = QLabel(f"✔ {config.COPY_CONFIRMATION_TEXT}")
        self.copied_label.setVisible(False)
        layout.addWidget(self.copied_label)

        button_layout = QHBoxLayout()
        copy_button = QPushButton("Copy Value")
        copy_button.clicked.connect(self.copy_value)
        button_layout.addWidget(copy_button)
        edit_button = QPushButton("Edit")
        edit_button.clicked.connect(self.edit_item)
        button_layout.addWidget(edit_button)
        delete_button = QPushButton("Delete")
        delete_button.clicked.connect(self.delete_item)
        button_layout.addWidget(delete_button)
        button_layout.addStretch()
        close_button = QPushButton("Close")
        close_button.clicked.connect(self.accept)
        button_layout.addWidget(close_button)
        layout.addLayout(button_layout)

        self.setLayout(layout)

    def refresh(self):
        for title, text in item_details(self.item):
            self.field_labels[title].setText(text)
        self.favorite_label.setVisible(self.item.is_favorite)

    def copy_value(self):
        self.clipboard.copy(self.item.value)
        self.copied_label.setVisible(True)
        QTimer.singleShot(int(config.COPY_CONFIRMATION_SECONDS * 1000) + 50, self.refresh_copy_confirmation)

    def refresh_copy_confirmation(self):
        self.copied_label.setVisible(self.clipboard.confirmation_visible)

    def edit_item(self):
        dialog = ItemDialog(self.editor, self.item, parent=self)
        result = dialog.exec_()
        if self.editor.store.get(self.item.id) is None:
            # Removed while the editor was open
            self.reject()
        elif result:
            self.refresh()

    def delete_item(self):
        if not _confirm_delete(self):
            return
        try:
            self.editor.delete(self.item)
        except PersistenceError as e:
            QMessageBox.critical(self, "Error", f"Failed to delete item: {e}")
            return
        self.accept()


class SettingsDialog(QDialog):
    """Settings dialog."""

    def __init__(self, settings_manager: SettingsManager, editor: ItemEditor,
                 authenticator: PlatformAuthenticator, parent=None):
        super().__init__(parent)
        self.settings_manager = settings_manager
        self.editor = editor
        self.authenticator = authenticator
        self.init_ui()

    def init_ui(self):
        self.setWindowTitle("Settings")
        self.setModal(True)
        self.setMinimumWidth(380)
        settings = self.settings_manager.settings

        layout = QVBoxLayout()

        security_group = QGroupBox("Security")
        security_layout = QVBoxLayout()
        self.biometric_check = QCheckBox(f"Use {self.authenticator.get_device_info()} Authentication")
        self.biometric_check.setChecked(settings.use_biometric_auth)
        self.biometric_check.toggled.connect(lambda v: self._save_setting(use_biometric_auth=v))
        security_layout.addWidget(self.biometric_check)
        if not self.authenticator.can_authenticate():
            unavailable = QLabel(config.AUTH_ERROR_UNAVAILABLE)
            unavailable.setWordWrap(True)
            security_layout.addWidget(unavailable)
        self.launch_check = QCheckBox("Require Authentication on Launch")
        self.launch_check.setChecked(settings.require_auth_on_launch)
        self.launch_check.toggled.connect(lambda v: self._save_setting(require_auth_on_launch=v))
        security_layout.addWidget(self.launch_check)
        self.relock_check = QCheckBox("Lock when minimized")
        self.relock_check.setChecked(settings.relock_on_background)
        self.relock_check.toggled.connect(lambda v: self._save_setting(relock_on_background=v))
        security_layout.addWidget(self.relock_check)
        security_group.setLayout(security_layout)
        layout.addWidget(security_group)

        data_group = QGroupBox("Data Management")
        data_layout = QVBoxLayout()
        sample_button = QPushButton("Generate Sample Data")
        sample_button.clicked.connect(self.generate_sample_data)
        data_layout.addWidget(sample_button)
        delete_button = QPushButton("Delete All Data")
        delete_button.clicked.connect(self.delete_all_data)
        data_layout.addWidget(delete_button)
        data_group.setLayout(data_layout)
        layout.addWidget(data_group)

        reset_button = QPushButton("Reset All Settings")
        reset_button.clicked.connect(self.reset_settings)
        layout.addWidget(reset_button)

        layout.addWidget(QLabel(f"Version {config.APP_VERSION}"))

        buttons = QDialogButtonBox(QDialogButtonBox.Close)
        buttons.rejected.connect(self.accept)
        layout.addWidget(buttons)

        self.setLayout(layout)

    def generate_sample_data(self):
        reply = QMessageBox.question(
            self, "Add Sample Data",
            f"This will add {len(config.SAMPLE_ITEMS)} sample entries. Continue?",
            QMessageBox.Yes | QMessageBox.No
        )
        if reply != QMessageBox.Yes:
            return
        try:
            self.editor.add_sample_data()
        except PersistenceError as e:
            QMessageBox.critical(self, "Error", f"Failed to save sample data: {e}")

    def delete_all_data(self):
        reply = QMessageBox.warning(
            self, "Delete All Data",
            "This will permanently delete all your stored information. This action cannot be undone.",
            QMessageBox.Ok | QMessageBox.Cancel
        )
        if reply != QMessageBox.Ok:
            return
        word = config.DELETE_ALL_CONFIRMATION_WORD
        text, ok = QInputDialog.getText(self, "Confirm", f"Type '{word}' to confirm:")
        if not ok or text.strip().lower() != word:
            return
        try:
            self.editor.delete_all()
        except PersistenceError as e:
            QMessageBox.critical(self, "Error", f"Failed to delete data: {e}")

    def _save_setting(self, **changes):
        try:
            self.settings_manager.update(**changes)
        except OSError as e:
            QMessageBox.critical(self, "Error", f"Failed to save settings: {e}")
            self._sync_checks()

    def _sync_checks(self):
        settings = self.settings_manager.settings
        for check, value in ((self.biometric_check, settings.use_biometric_auth),
                             (self.launch_check, settings.require_auth_on_launch),
                             (self.relock_check, settings.relock_on_background)):
            check.blockSignals(True)
            check.setChecked(value)
            check.blockSignals(False)

    def reset_settings(self):
        try:
            self.settings_manager.reset()
        except OSError as e:
            QMessageBox.critical(self, "Error", f"Failed to reset settings: {e}")
        self._sync_checks()


class MainWindow(QMainWindow):
    """Main application window."""

    def __init__(self, gate: AuthGate, editor: ItemEditor, engine: ListEngine,
                 settings_manager: SettingsManager, authenticator: PlatformAuthenticator):
        super().__init__()
        self.gate = gate
        self.editor = editor
        self.engine = engine
        self.settings_manager = settings_manager
        self.authenticator = authenticator
        self.clipboard = ClipboardManager(lambda text: QApplication.clipboard().setText(text))
        self.init_ui()
        self._unsubscribe = editor.store.subscribe(self.load_items)
        self.load_items()

    def init_ui(self):
        self.setWindowTitle(config.APP_TITLE_PREFIX)
        self.setGeometry(100, 100, 720, 560)

        central_widget = QWidget()
        self.setCentralWidget(central_widget)
        layout = QVBoxLayout()
        central_widget.setLayout(layout)

        toolbar_layout = QHBoxLayout()
        self.search_input = QLineEdit()
        self.search_input.setPlaceholderText("Search...")
        self.search_input.textChanged.connect(self.search_changed)
        toolbar_layout.addWidget(self.search_input)

        self.sort_combo = QComboBox()
        for option in SortOption:
            self.sort_combo.addItem(option.title, option)
        self.sort_combo.setCurrentIndex(self.sort_combo.findData(self.engine.options.sort_option))
        self.sort_combo.currentIndexChanged.connect(self.sort_changed)
        toolbar_layout.addWidget(self.sort_combo)

        self.group_check = QCheckBox("Group by category")
        self.group_check.setChecked(self.engine.options.group_by_category)
        self.group_check.toggled.connect(self.group_changed)
        toolbar_layout.addWidget(self.group_check)

        add_button = QPushButton("Add")
        add_button.clicked.connect(self.add_item)
        toolbar_layout.addWidget(add_button)

        settings_button = QPushButton("Settings")
        settings_button.clicked.connect(self.show_settings)
        toolbar_layout.addWidget(settings_button)
        layout.addLayout(toolbar_layout)

        self.tree = QTreeWidget()
        self.tree.setColumnCount(3)
        self.tree.setHeaderLabels(["Label", "Value", "Category"])
        self.tree.setContextMenuPolicy(Qt.CustomContextMenu)
        self.tree.customContextMenuRequested.connect(self.show_context_menu)
        self.tree.itemDoubleClicked.connect(lambda node, _col: self.show_details(node.data(0, Qt.UserRole)))
        layout.addWidget(self.tree)

        self.empty_label = QLabel("No items yet. Add your first key info.")
        self.empty_label.setAlignment(Qt.AlignCenter)
        layout.addWidget(self.empty_label)

        self.count_label = QLabel("")
        self.statusBar().addPermanentWidget(self.count_label)

    def load_items(self):
        """Rebuild the tree from the engine's sections."""
        self.tree.clear()
        bold = QFont()
        bold.setBold(True)
        for section in self.engine.sections:
            parent = self.tree.invisibleRootItem()
            if section.title is not None:
                title = f"⭐ {section.title}" if section.is_favorites else section.title
                parent = QTreeWidgetItem([title])
                parent.setFont(0, bold)
                parent.setFirstColumnSpanned(True)
                self.tree.addTopLevelItem(parent)
            for item in section.items:
                label = f"★ {item.label}" if item.is_favorite else item.label
                node = QTreeWidgetItem([label, config.TABLE_VALUE_HIDDEN_TEXT, item.category])
                node.setIcon(0, _color_icon(item.color_name))
                node.setData(0, Qt.UserRole, item)
                node.setForeground(2, QBrush(QColor(config.COLOR_HEX[item.color_name])))
                if parent is self.tree.invisibleRootItem():
                    self.tree.addTopLevelItem(node)
                else:
                    parent.addChild(node)
        self.tree.expandAll()
        empty = self.engine.is_empty()
        self.tree.setVisible(not empty)
        self.empty_label.setVisible(empty)
        if empty and self.engine.options.search_text:
            self.empty_label.setText("No items match your search.")
        else:
            self.empty_label.setText("No items yet. Add your first key info.")
        self.count_label.setText(f"Items: {self.engine.visible_count()}")

    def search_changed(self, text: str):
        self.engine.set_search_text(text)
        self.load_items()

    def sort_changed(self):
        option = self.sort_combo.currentData()
        self.engine.set_sort_option(option)
        self._save_setting(sort_option=option.value)
        self.load_items()

    def group_changed(self, checked: bool):
        self.engine.set_group_by_category(checked)
        self._save_setting(group_by_category=checked)
        self.load_items()

    def _save_setting(self, **changes):
        try:
            self.settings_manager.update(**changes)
        except OSError as e:
            QMessageBox.warning(self, "Error", f"Failed to save settings: {e}")

    def show_context_menu(self, position):
        node = self.tree.itemAt(position)
        item = node.data(0, Qt.UserRole) if node else None
        if item is None:
            return

        menu = QMenu()
        details_action = menu.addAction("View Details")
        copy_action = menu.addAction("Copy Value")
        favorite_action = menu.addAction("Remove from Favorites" if item.is_favorite else "Add to Favorites")
        menu.addSeparator()
        edit_action = menu.addAction("Edit")
        delete_action = menu.addAction("Delete")

        action = menu.exec_(self.tree.viewport().mapToGlobal(position))
        if action == details_action:
            self.show_details(item)
        elif action == copy_action:
            self.copy_value(item)
        elif action == favorite_action:
            self._run(self.editor.toggle_favorite, item)
        elif action == edit_action:
            ItemDialog(self.editor, item, parent=self).exec_()
        elif action == delete_action:
            self.delete_item(item)

    def _run(self, operation, *args):
        try:
            operation(*args)
        except ItemNotFoundError as e:
            QMessageBox.warning(self, "Item Deleted", str(e))
            self.load_items()
        except PersistenceError as e:
            QMessageBox.critical(self, "Error", f"Failed to save changes: {e}")

    def add_item(self):
        ItemDialog(self.editor, parent=self).exec_()

    def show_details(self, item: Optional[Item]):
        if item is None:
            return
        ItemDetailDialog(self.editor, self.clipboard, item, parent=self).exec_()

    def delete_item(self, item: Item):
        if _confirm_delete(self):
            self._run(self.editor.delete, item)

    def copy_value(self, item: Optional[Item]):
        if item is None:
            return
        self.clipboard.copy(item.value)
        self.statusBar().showMessage(config.COPY_CONFIRMATION_TEXT)
        QTimer.singleShot(int(config.COPY_CONFIRMATION_SECONDS * 1000) + 50, self.refresh_copy_confirmation)

    def refresh_copy_confirmation(self):
        if not self.clipboard.confirmation_visible:
            self.statusBar().clearMessage()

    def show_settings(self):
        SettingsDialog(self.settings_manager, self.editor, self.authenticator, self).exec_()

    def changeEvent(self, event):
        if event.type() == QEvent.WindowStateChange and self.isMinimized():
            self.gate.on_app_background()
        super().changeEvent(event)

    def closeEvent(self, event):
        self._unsubscribe()
        super().closeEvent(event)
