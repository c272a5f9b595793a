"""
Selection aggregation on top of the filtered category view.

Toggles always operate on what the resolver currently exposes for a category:
"select all" never reaches items hidden by the parent filter, and the
``all_selected`` flag is recomputed against the filtered id set, not against
every available item.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

from alertwizard.category_store import CategoryStore
from alertwizard.dependency_resolver import DependencyResolver

logger = logging.getLogger(__name__)


def _all_selected(selected: frozenset, filtered_ids: Iterable[str]) -> bool:
    filtered = frozenset(filtered_ids)
    return bool(filtered) and selected == filtered


class SelectionAggregator:
    """Item and select-all toggles for one CategoryStore."""

    def __init__(self, store: CategoryStore, resolver: DependencyResolver):
        self.store = store
        self.resolver = resolver

    def toggle_all(self, key: str) -> frozenset:
        """Select every filtered item, or clear the selection if that is already the case.

        Returns:
            The new selected id set.
        """
        filtered_ids = self.resolver.filtered_ids(key)
        current = self.store.get_or_create(key).selected_ids
        if current == frozenset(filtered_ids):
            category = self.store.replace_selection(key, (), False)
        else:
            category = self.store.replace_selection(key, filtered_ids, bool(filtered_ids))
        logger.debug(f"toggle_all {key!r}: {len(category.selected_ids)}/{len(filtered_ids)} selected")
        return category.selected_ids

    def toggle_item(self, key: str, item_id: str) -> frozenset:
        """Flip membership of ``item_id`` and recompute ``all_selected``.

        Returns:
            The new selected id set.
        """
        current = self.store.get_or_create(key).selected_ids
        if item_id in current:
            selected = current - {item_id}
        else:
            selected = current | {item_id}
        all_selected = _all_selected(selected, self.resolver.filtered_ids(key))
        category = self.store.replace_selection(key, selected, all_selected)
        return category.selected_ids

    def is_selected(self, key: str, item_id: str) -> bool:
        return item_id in self.store.selected_ids(key)

    def is_indeterminate(self, key: str) -> bool:
        """Some, but not all, filtered items are selected (tri-state checkbox)."""
        category = self.store.get_or_create(key)
        return bool(category.selected_ids) and not category.all_selected

    def has_visible_selection(self, key: str) -> bool:
        """At least one currently filtered item is selected."""
        selected = self.store.selected_ids(key)
        return any(item_id in selected for item_id in self.resolver.filtered_ids(key))

    def auto_select_single(self, keys: Optional[Iterable[str]] = None) -> List[str]:
        """Select the only filtered item of each category that has exactly one and no selection.

        Categories are visited in order and filtering is recomputed after each
        selection, so a lone school cascades into its lone grade, and so on.

        Args:
            keys: Category keys in dependency order (defaults to store order)

        Returns:
            Keys of the categories that were auto-selected.
        """
        selected_keys = []
        for key in list(keys if keys is not None else self.store.keys()):
            category = self.store.get_or_create(key)
            if category.selected_ids:
                continue
            filtered = self.resolver.filtered_items(key)
            if len(filtered) == 1:
                self.store.replace_selection(key, (filtered[0].id,), True)
                selected_keys.append(key)
        if selected_keys:
            logger.debug(f"Auto-selected single items in: {selected_keys}")
        return selected_keys


@dataclass(frozen=True)
class CategorySummary:
    """Selection counts for one category."""
    key: str
    label: str
    selected: int
    available: int
    enabled: bool
    indeterminate: bool


def format_selection_text(count: int, total: int) -> str:
    """Badge text, e.g. "1 de 3 selecionado" / "2 de 3 selecionados"."""
    if count == 1:
        return f"{count} de {total} selecionado"
    return f"{count} de {total} selecionados"


def selection_summary(aggregator: SelectionAggregator, keys: Optional[Iterable[str]] = None) -> Dict[str, CategorySummary]:
    """Per-category counts keyed by category key.

    ``available`` counts every available item (not only the filtered ones),
    matching the badge shown next to each category.
    """
    store = aggregator.store
    summary = {}
    for key in list(keys if keys is not None else store.keys()):
        category = store.get_or_create(key)
        summary[key] = CategorySummary(
            key=key,
            label=category.label,
            selected=len(category.selected_ids),
            available=len(category.available_items),
            enabled=aggregator.resolver.is_enabled(key),
            indeterminate=aggregator.is_indeterminate(key),
        )
    return summary


def selection_total(aggregator: SelectionAggregator, keys: Optional[Iterable[str]] = None) -> Tuple[int, int]:
    """(selected, available) summed over every category."""
    store = aggregator.store
    selected = available = 0
    for key in list(keys if keys is not None else store.keys()):
        category = store.get_or_create(key)
        selected += len(category.selected_ids)
        available += len(category.available_items)
    return selected, available


def format_total_text(selected: int, available: int) -> str:
    """Footer text, e.g. "Total: 3 de 7 selecionados"."""
    return f"Total: {format_selection_text(selected, available)}"
