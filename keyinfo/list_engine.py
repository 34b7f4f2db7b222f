"""
Derives what the item list shows from the stored items and the current
search, sort and grouping options.

The pipeline always runs in the same order:

1. favorites first, in every section;
2. sort by the selected option;
3. keep only items matching the search text;
4. optionally split into a Favorites section plus one section per category.

A favorite shows up twice when grouped: once under Favorites and once under
its own category.
"""

import enum
import logging
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

from . import config
from .settings import Settings
from .storage import Item, StorageManager

logger = logging.getLogger(__name__)


class SortOption(enum.Enum):
    LABEL = "label"
    DATE_CREATED = "date_created"
    CATEGORY = "category"

    @property
    def title(self) -> str:
        return {
            SortOption.LABEL: "Label",
            SortOption.DATE_CREATED: "Date Added",
            SortOption.CATEGORY: "Category",
        }[self]

    @classmethod
    def parse(cls, value: str) -> 'SortOption':
        """Lenient lookup used for persisted settings; unknown values give LABEL."""
        try:
            return cls(value)
        except ValueError:
            logger.warning(f"Unknown sort option {value!r}, using label")
            return cls.LABEL


@dataclass
class ListOptions:
    sort_option: SortOption = SortOption.LABEL
    group_by_category: bool = True
    search_text: str = ""


@dataclass(frozen=True)
class Section:
    """One visible group of items. ``title`` is None for the flat list."""
    title: Optional[str]
    items: Tuple[Item, ...]
    is_favorites: bool = False


def sort_items(items: Iterable[Item], sort_option: SortOption, within_category: bool = False) -> List[Item]:
    """
    Order items favorites-first, then by ``sort_option``.

    ``within_category`` is used inside a category section where sorting by
    category is meaningless, so it falls back to label.
    """
    items = list(items)
    if sort_option is SortOption.DATE_CREATED:
        items.sort(key=lambda i: i.date_created, reverse=True)
    elif sort_option is SortOption.CATEGORY and not within_category:
        items.sort(key=lambda i: (i.category, i.label))
    else:
        items.sort(key=lambda i: i.label)
    # stable, so the ordering above survives within each favorite status
    items.sort(key=lambda i: not i.is_favorite)
    return items


def matches_search(item: Item, search_text: str) -> bool:
    if not search_text:
        return True
    needle = search_text.casefold()
    return (needle in item.label.casefold()
            or needle in item.value.casefold()
            or needle in item.category.casefold())


def filter_items(items: Iterable[Item], search_text: str) -> List[Item]:
    return [item for item in items if matches_search(item, search_text)]


def group_items(items: Sequence[Item], sort_option: SortOption) -> Tuple[Section, ...]:
    """Split already sorted and filtered items into Favorites plus category sections."""
    sections = []
    favorites = tuple(item for item in items if item.is_favorite)
    if favorites:
        sections.append(Section(config.FAVORITES_SECTION_TITLE, favorites, is_favorites=True))

    by_category = {}
    for item in items:
        by_category.setdefault(item.category, []).append(item)
    for category in sorted(by_category):
        ordered = sort_items(by_category[category], sort_option, within_category=True)
        sections.append(Section(category, tuple(ordered)))
    return tuple(sections)


def item_details(item: Item) -> List[Tuple[str, str]]:
    """Read-only (title, text) rows shown for a single item."""
    return [
        ("Label", item.label),
        ("Value", item.value),
        ("Category", item.category),
        ("Created", item.date_created.strftime(config.DETAIL_DATE_FORMAT)),
    ]


def derive_sections(items: Iterable[Item], options: ListOptions) -> Tuple[Section, ...]:
    """Run the whole pipeline. Empty input or no matches give an empty tuple."""
    visible = filter_items(sort_items(items, options.sort_option), options.search_text)
    if not visible:
        return ()
    if options.group_by_category:
        return group_items(visible, options.sort_option)
    return (Section(None, tuple(visible)),)


class ListEngine:
    """
    Keeps the derived sections for a store up to date.

    The result is recomputed from scratch on the first read after the store
    changes or an option is set.
    """

    def __init__(self, store: StorageManager, settings: Optional[Settings] = None,
                 derive: Callable[[Iterable[Item], ListOptions], Tuple[Section, ...]] = derive_sections):
        self.store = store
        self.options = ListOptions()
        if settings is not None:
            self.options.group_by_category = settings.group_by_category
            self.options.sort_option = SortOption.parse(settings.sort_option)
        self._derive = derive
        self._sections: Optional[Tuple[Section, ...]] = None
        self._unsubscribe = store.subscribe(self.invalidate)

    def invalidate(self) -> None:
        self._sections = None

    def close(self) -> None:
        self._unsubscribe()

    def set_sort_option(self, sort_option: SortOption) -> None:
        self.options.sort_option = sort_option
        self.invalidate()

    def set_group_by_category(self, enabled: bool) -> None:
        self.options.group_by_category = enabled
        self.invalidate()

    def set_search_text(self, text: str) -> None:
        self.options.search_text = text
        self.invalidate()

    @property
    def sections(self) -> Tuple[Section, ...]:
        if self._sections is None:
            self._sections = self._derive(self.store.query_all(), self.options)
        return self._sections

    def __iter__(self):
        return iter(self.sections)

    def is_empty(self) -> bool:
        return not self.sections

    def visible_count(self) -> int:
        """Distinct items on screen; favorites shown twice count once."""
        return len({item.id for section in self.sections for item in section.items})
