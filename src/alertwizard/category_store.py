"""
CategoryStore: per-key recipient category state.

Holds, per category key, the available items, the selected ids and the
"all selected" flag. Knows nothing about dependencies; DependencyResolver and
SelectionAggregator read from it.

Every mutation replaces the named category with a new immutable
RecipientCategory and then notifies change listeners with the mutated key.
Referencing a key that was never initialized is not an error: the store
synthesizes a default category (label = key, no items, no selection).

Thread safety: Not thread-safe (all operations expected on one event loop).
"""
import logging
from dataclasses import replace
from typing import Any, Callable, Dict, Iterable, Iterator, List, Mapping, Optional, Union

from alertwizard.models import RecipientCategory, RecipientItem, coerce_items

logger = logging.getLogger(__name__)

ChangeCallback = Callable[[str], None]


class CategoryStore:
    """Mutable map of category key -> RecipientCategory with change notification.

    Lifecycle: created with the wizard session, cleared by reset() when the
    wizard closes. Categories are independent; a mutation only ever touches the
    category named by ``key``.
    """

    def __init__(self):
        self._categories: Dict[str, RecipientCategory] = {}
        self._on_change_callbacks: List[ChangeCallback] = []

    # ========== CHANGE NOTIFICATION ==========

    def on_change(self, callback: ChangeCallback) -> None:
        """Subscribe to mutations. Callback receives the mutated category key."""
        if callback not in self._on_change_callbacks:
            self._on_change_callbacks.append(callback)

    def off_change(self, callback: ChangeCallback) -> None:
        """Unsubscribe from mutations."""
        if callback in self._on_change_callbacks:
            self._on_change_callbacks.remove(callback)

    def _notify_change(self, key: str) -> None:
        """Fire change callbacks (best-effort)."""
        for callback in list(self._on_change_callbacks):
            try:
                callback(key)
            except Exception as e:
                logger.warning(f"Error in category change callback for {key!r}: {e}")

    # ========== ACCESS ==========

    def get_or_create(self, key: str) -> RecipientCategory:
        """Return the category for ``key``, inserting a default one if absent.

        This is the single place where the create-on-demand policy lives.
        """
        category = self._categories.get(key)
        if category is None:
            category = RecipientCategory.empty(key)
            self._categories[key] = category
            logger.debug(f"Created default category: key={key!r}")
        return category

    def get(self, key: str) -> Optional[RecipientCategory]:
        """Return the category for ``key`` without creating it."""
        return self._categories.get(key)

    def __contains__(self, key: str) -> bool:
        return key in self._categories

    def __iter__(self) -> Iterator[str]:
        return iter(self._categories)

    def __len__(self) -> int:
        return len(self._categories)

    def keys(self) -> List[str]:
        return list(self._categories.keys())

    def categories(self) -> List[RecipientCategory]:
        """All categories in insertion order."""
        return list(self._categories.values())

    def as_mapping(self) -> Mapping[str, RecipientCategory]:
        """Read-only view used by the resolver."""
        return dict(self._categories)

    def selected_ids(self, key: str) -> frozenset:
        category = self._categories.get(key)
        return category.selected_ids if category else frozenset()

    def is_all_selected(self, key: str) -> bool:
        category = self._categories.get(key)
        return category.all_selected if category else False

    # ========== MUTATION ==========

    def initialize(self, category: RecipientCategory) -> bool:
        """Insert ``category`` if its key is absent.

        Existing categories are left untouched; refresh items through
        replace_items() instead.

        Returns:
            True if the category was inserted, False if the key already existed.
        """
        if category.key in self._categories:
            logger.debug(f"initialize: category {category.key!r} already present, ignoring")
            return False
        self._categories[category.key] = category
        logger.debug(
            f"Initialized category: key={category.key!r}, items={len(category.available_items)}, "
            f"selected={len(category.selected_ids)}, depends_on={list(category.depends_on)}"
        )
        self._notify_change(category.key)
        return True

    def replace_items(self, key: str, items: Iterable[Union[RecipientItem, Mapping[str, Any]]]) -> RecipientCategory:
        """Replace the available items of ``key``, preserving every other field."""
        base = self.get_or_create(key)
        updated = replace(base, available_items=coerce_items(items))
        self._categories[key] = updated
        logger.debug(f"Replaced items: key={key!r}, items={len(updated.available_items)}")
        self._notify_change(key)
        return updated

    def replace_selection(self, key: str, selected_ids: Iterable[str], all_selected: bool) -> RecipientCategory:
        """Overwrite the selection of ``key`` verbatim."""
        base = self.get_or_create(key)
        updated = replace(base, selected_ids=frozenset(selected_ids), all_selected=bool(all_selected))
        self._categories[key] = updated
        logger.debug(
            f"Replaced selection: key={key!r}, selected={len(updated.selected_ids)}, "
            f"all_selected={updated.all_selected}"
        )
        self._notify_change(key)
        return updated

    def clear_selection(self, key: str) -> RecipientCategory:
        """Empty the selection of ``key``."""
        return self.replace_selection(key, (), False)

    def reset(self) -> None:
        """Drop every category. Listeners stay connected."""
        keys = list(self._categories)
        self._categories.clear()
        logger.debug(f"Reset category store ({len(keys)} categories dropped)")
        for key in keys:
            self._notify_change(key)
