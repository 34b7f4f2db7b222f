"""
Item storage for KeyInfo.

Items are kept in memory and written through to a JSON document after every
mutation. Subscribers are notified whenever the collection changes so views
can recompute.
"""

import os
import json
import uuid
import datetime
import threading
import shutil
import logging
from contextlib import contextmanager
from dataclasses import dataclass, asdict, field
from typing import Callable, Dict, List, Optional, Any

from . import config
from .utils import ensure_dir, set_owner_only_permissions

logger = logging.getLogger(__name__)


class PersistenceError(Exception):
    """Raised when the store cannot be written to disk."""


class StoreInitializationError(Exception):
    """Raised when an existing store file cannot be read at startup."""


class ItemNotFoundError(KeyError):
    """Raised when a change targets an item that is no longer in the store."""

    def __init__(self, item_id: str):
        super().__init__(item_id)
        self.item_id = item_id

    def __str__(self):
        return f"Item {self.item_id} no longer exists"


def normalize_color(color_name: str) -> str:
    """Map unknown color names to the default palette color."""
    if color_name in config.COLOR_PALETTE:
        return color_name
    return config.DEFAULT_COLOR


def _new_id() -> str:
    return uuid.uuid4().hex


@dataclass
class Item:
    """A single labeled secret."""
    label: str
    value: str
    icon_name: str = config.DEFAULT_ICON
    category: str = config.DEFAULT_CATEGORY
    color_name: str = config.DEFAULT_COLOR
    is_favorite: bool = False
    id: str = field(default_factory=_new_id)
    date_created: datetime.datetime = field(default_factory=datetime.datetime.now)

    def __post_init__(self):
        self.color_name = normalize_color(self.color_name)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        data = asdict(self)
        data['date_created'] = self.date_created.isoformat()
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Item':
        """Create from dictionary."""
        return cls(
            id=data['id'],
            label=data['label'],
            value=data['value'],
            icon_name=data.get('icon_name', config.DEFAULT_ICON),
            category=data.get('category', config.DEFAULT_CATEGORY),
            color_name=data.get('color_name', config.DEFAULT_COLOR),
            is_favorite=bool(data.get('is_favorite', False)),
            date_created=datetime.datetime.fromisoformat(data['date_created']),
        )


class StorageManager:
    """Durable keyed collection of Items backed by a JSON file."""

    VERSION = config.STORE_FORMAT_VERSION

    def __init__(self, filepath: Optional[str] = None):
        """
        Initialize the store and load any existing items.
        Args:
            filepath: Path to the store file; defaults to the user's data directory
        Raises:
            StoreInitializationError: if an existing file cannot be parsed
        """
        if filepath is None:
            filepath = os.path.join(config.get_config_dir(), config.DEFAULT_STORE_FILE)
        self.filepath = filepath
        self._lock = threading.RLock()
        self._items: Dict[str, Item] = {}
        self._subscribers: List[Callable[[], None]] = []
        self._load()

    def _load(self) -> None:
        if not os.path.exists(self.filepath):
            logger.info(f"No store at {self.filepath}, starting empty")
            return
        try:
            with open(self.filepath, 'r', encoding='utf-8') as f:
                data = json.load(f)
            version = data.get('metadata', {}).get('version')
            if version != self.VERSION:
                raise ValueError(f"unsupported store version {version!r}")
            items = [Item.from_dict(e) for e in data['items']]
        except (OSError, ValueError, KeyError, TypeError, AttributeError) as e:
            logger.error(f"Failed to load store {self.filepath}: {e}", exc_info=True)
            raise StoreInitializationError(f"Could not open {self.filepath}: {e}") from e
        self._items = {item.id: item for item in items}
        logger.info(f"Loaded {len(self._items)} items from {self.filepath}")

    def subscribe(self, callback: Callable[[], None]) -> Callable[[], None]:
        """
        Register a callback fired after every committed change.
        Returns a function that removes the subscription.
        """
        self._subscribers.append(callback)

        def unsubscribe():
            if callback in self._subscribers:
                self._subscribers.remove(callback)
        return unsubscribe

    def _notify(self) -> None:
        for callback in list(self._subscribers):
            callback()

    def insert(self, item: Item) -> None:
        with self._lock:
            if item.id in self._items:
                raise ValueError(f"Item {item.id} already exists")
            self._items[item.id] = item

    def update(self, item: Item) -> bool:
        """Replace the stored item with the same id. Returns False if unknown."""
        with self._lock:
            if item.id not in self._items:
                return False
            self._items[item.id] = item
            return True

    def delete(self, item_id: str) -> bool:
        with self._lock:
            return self._items.pop(item_id, None) is not None

    def clear(self) -> int:
        """Remove every item. Returns how many were removed."""
        with self._lock:
            count = len(self._items)
            self._items = {}
            return count

    def get(self, item_id: str) -> Optional[Item]:
        with self._lock:
            return self._items.get(item_id)

    def query_all(self) -> List[Item]:
        """All items, newest first."""
        with self._lock:
            return sorted(self._items.values(), key=lambda i: i.date_created, reverse=True)

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    @contextmanager
    def transaction(self):
        """
        Stage mutations, persist them, and keep them only if the write succeeds.
        On any error the collection is restored to its previous membership and
        the error is re-raised.
        """
        with self._lock:
            snapshot = dict(self._items)
            try:
                yield self
                self.persist(notify=False)
            except BaseException:
                self._items = snapshot
                raise
        self._notify()

    def persist(self, notify: bool = True) -> None:
        """
        Write all items to disk atomically.
        Raises:
            PersistenceError: if the file cannot be written
        """
        with self._lock:
            data = {
                'items': [item.to_dict() for item in self.query_all()],
                'metadata': {
                    'version': self.VERSION,
                    'last_modified': datetime.datetime.now().isoformat()
                }
            }
            tmp_path = self.filepath + '.tmp'
            try:
                ensure_dir(os.path.dirname(self.filepath) or ".")
                with open(tmp_path, 'w', encoding='utf-8') as f:
                    json.dump(data, f, indent=2)
                # Atomic replace
                shutil.move(tmp_path, self.filepath)
            except OSError as e:
                logger.error(f"Error saving store file {self.filepath}: {e}", exc_info=True)
                if os.path.exists(tmp_path):
                    os.remove(tmp_path)
                raise PersistenceError(f"Could not save items: {e}") from e

            if not set_owner_only_permissions(self.filepath):
                logger.warning(f"Failed to set secure file permissions for store: {self.filepath}")
            logger.debug(f"Persisted {len(self._items)} items to {self.filepath}")
        if notify:
            self._notify()
