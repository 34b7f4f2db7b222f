"""
Creation and editing of items.

Every change goes through StorageManager.transaction(): it is staged,
written to disk, and only kept in memory once the write succeeded.
"""

import enum
import datetime
import logging
from dataclasses import dataclass
from typing import List, Optional

from . import config
from .storage import Item, ItemNotFoundError, StorageManager, normalize_color

logger = logging.getLogger(__name__)


class ValidationError(ValueError):
    """Raised when an item is missing its label or value."""


class ItemKind(enum.Enum):
    LICENSE = "Driver License"
    PPS = "PPS Number"
    EIRCODE = "Eircode"
    LOCKER = "Locker Code"
    PASSPORT = "Passport"
    BANK_ACCOUNT = "Bank Account"
    CREDIT_CARD = "Credit Card"
    WIFI = "WiFi Password"
    EMAIL = "Email Account"
    PHONE = "Phone Number"
    INSURANCE = "Insurance"
    MEMBERSHIP = "Membership"
    CUSTOM = "Custom"

    @property
    def defaults(self) -> 'KindDefaults':
        icon_name, category, color_name = config.ITEM_KIND_DEFAULTS[self.value]
        return KindDefaults(icon_name, category, color_name)


@dataclass(frozen=True)
class KindDefaults:
    icon_name: str
    category: str
    color_name: str


def validate(label: str, value: str) -> None:
    if not label or not label.strip():
        raise ValidationError("Label must not be empty")
    if not value or not value.strip():
        raise ValidationError("Value must not be empty")


class ItemEditor:
    """Validates and commits changes to items."""

    def __init__(self, store: StorageManager):
        self.store = store

    def create(self, label: Optional[str] = None, value: str = "", icon_name: Optional[str] = None,
               category: Optional[str] = None, color_name: Optional[str] = None,
               kind: Optional[ItemKind] = None) -> Item:
        """
        Create and store a new item.

        Fields left as None are taken from ``kind`` when one is given, and
        from the general defaults otherwise. A non-custom kind also names
        the item when no label is supplied.

        Raises:
            ValidationError: if label or value is blank
            PersistenceError: if the store could not be written
        """
        if kind is not None:
            defaults = kind.defaults
            if label is None and kind is not ItemKind.CUSTOM:
                label = kind.value
        else:
            defaults = KindDefaults(config.DEFAULT_ICON, config.DEFAULT_CATEGORY, config.DEFAULT_COLOR)

        label = label or ""
        validate(label, value)
        item = Item(
            label=label,
            value=value,
            icon_name=icon_name if icon_name is not None else defaults.icon_name,
            category=category or defaults.category,
            color_name=color_name or defaults.color_name,
        )
        with self.store.transaction():
            self.store.insert(item)
        logger.info(f"Created item {item.id} in category {item.category!r}")
        return item

    def update(self, item: Item, label: str, value: str, category: str, color_name: str) -> Item:
        """
        Change the editable fields of an item; id and creation date are kept.

        Raises:
            ValidationError: if label or value is blank
            ItemNotFoundError: if the item was deleted in the meantime
            PersistenceError: if the store could not be written; the item is left unchanged
        """
        validate(label, value)
        previous = (item.label, item.value, item.category, item.color_name)
        try:
            with self.store.transaction():
                item.label = label
                item.value = value
                item.category = category or config.DEFAULT_CATEGORY
                item.color_name = normalize_color(color_name)
                if not self.store.update(item):
                    raise ItemNotFoundError(item.id)
        except BaseException:
            item.label, item.value, item.category, item.color_name = previous
            raise
        logger.info(f"Updated item {item.id}")
        return item

    def toggle_favorite(self, item: Item) -> Item:
        """
        Flip the favorite flag. On any failure the flag is flipped back.

        Raises:
            ItemNotFoundError: if the item was deleted in the meantime
            PersistenceError: if the store could not be written
        """
        item.is_favorite = not item.is_favorite
        try:
            with self.store.transaction():
                if not self.store.update(item):
                    raise ItemNotFoundError(item.id)
        except BaseException:
            item.is_favorite = not item.is_favorite
            raise
        logger.debug(f"Item {item.id} favorite={item.is_favorite}")
        return item

    def delete(self, item: Item) -> None:
        with self.store.transaction():
            self.store.delete(item.id)
        logger.info(f"Deleted item {item.id}")

    def delete_all(self) -> int:
        with self.store.transaction():
            count = self.store.clear()
        logger.info(f"Deleted all {count} items")
        return count

    def add_sample_data(self) -> List[Item]:
        """Insert the demo entries, oldest first, one day apart."""
        now = datetime.datetime.now()
        total = len(config.SAMPLE_ITEMS)
        created = []
        with self.store.transaction():
            for index, (label, kind_name, category, value, is_favorite) in enumerate(config.SAMPLE_ITEMS):
                defaults = ItemKind(kind_name).defaults
                item = Item(
                    label=label,
                    value=value,
                    icon_name=defaults.icon_name,
                    category=category,
                    color_name=defaults.color_name,
                    is_favorite=is_favorite,
                    date_created=now - datetime.timedelta(days=(total - index) * config.SAMPLE_ITEM_SPACING_DAYS),
                )
                self.store.insert(item)
                created.append(item)
        logger.info(f"Added {len(created)} sample items")
        return created
