"""
Dependency resolver for hierarchical recipient categories.

Given a category's declared parents (``depends_on``) and the current store
contents, computes:
  1. whether the category is enabled
  2. the subset of its items consistent with the parent selection
  3. a grouped presentation of that subset when several parents are selected

The module-level functions are pure (category + mapping of all categories in,
result out). DependencyResolver binds them to a live CategoryStore. Nothing is
cached: results are recomputed on every read so they can never be stale.

Only the first declared dependency is consulted. Extra keys in ``depends_on``
are accepted and kept, but play no part in enablement, filtering or grouping.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional, Tuple

from alertwizard.models import GroupLabelFormatter, ItemGroup, RecipientCategory, RecipientItem

logger = logging.getLogger(__name__)

# Item attribute used as the parent link when the category declares no ParentLink
DEFAULT_PARENT_FIELD = "parentId"

# Label for a group whose parent id does not resolve to a parent item
NO_GROUP_LABEL = "Sem grupo"

GROUP_ORDER_FIRST_SEEN = "first_seen"
GROUP_ORDER_PARENT = "parent"
_GROUP_ORDERS = (GROUP_ORDER_FIRST_SEEN, GROUP_ORDER_PARENT)


def _parent_of(category: RecipientCategory, categories: Mapping[str, RecipientCategory]) -> Optional[RecipientCategory]:
    parent_key = category.parent_key
    if parent_key is None:
        return None
    return categories.get(parent_key)


def _link_value(item: RecipientItem, link_field: str) -> Optional[str]:
    value = item.get(link_field)
    return None if value is None else str(value)


def parent_link_field(category: RecipientCategory) -> str:
    """Attribute holding the parent id for items of ``category``."""
    parent_key = category.parent_key
    if parent_key is None:
        return DEFAULT_PARENT_FIELD
    return category.link_field_for(parent_key) or DEFAULT_PARENT_FIELD


def is_category_enabled(category: RecipientCategory, categories: Mapping[str, RecipientCategory]) -> bool:
    """A category is enabled when it has no dependency or its first parent has a selection."""
    if not category.depends_on:
        return True
    parent = _parent_of(category, categories)
    return bool(parent is not None and parent.selected_ids)


def filter_items(category: RecipientCategory, categories: Mapping[str, RecipientCategory]) -> List[RecipientItem]:
    """
    Items of ``category`` consistent with the current parent selection.

    ALGORITHM:
      1. No dependency: every available item, in declared order
      2. Parent has no selection: nothing is eligible yet
      3. Otherwise: items whose parent-link attribute is one of the parent's
         selected ids

    Args:
        category: The category to filter
        categories: All categories keyed by key (the parent is looked up here)

    Returns:
        Filtered items in the category's declared order
    """
    if not category.depends_on:
        return list(category.available_items)

    parent = _parent_of(category, categories)
    parent_ids = parent.selected_ids if parent is not None else frozenset()
    if not parent_ids:
        return []

    link_field = parent_link_field(category)
    return [
        item for item in category.available_items
        if _link_value(item, link_field) in parent_ids
    ]


def group_items(
    category: RecipientCategory,
    categories: Mapping[str, RecipientCategory],
    format_group_label: Optional[GroupLabelFormatter] = None,
    order: str = GROUP_ORDER_FIRST_SEEN,
) -> List[ItemGroup]:
    """
    Partition the filtered items of ``category`` by parent.

    Grouping only happens when the parent has more than one selected id;
    otherwise a single unlabeled group holds every filtered item.

    Labels come from, in order: the category's own ``format_group_label``, the
    ``format_group_label`` argument, the parent item's name. A parent id that
    does not resolve to a parent item is labeled NO_GROUP_LABEL.

    Args:
        category: The category to group
        categories: All categories keyed by key
        format_group_label: Fallback formatter (parent_item, all_parent_items, category_key) -> str
        order: GROUP_ORDER_FIRST_SEEN (order parents are met while scanning the
               filtered items) or GROUP_ORDER_PARENT (the parent's declared item order)

    Returns:
        Non-empty list of ItemGroup
    """
    if order not in _GROUP_ORDERS:
        raise ValueError(f"Unknown group order {order!r}; expected one of {_GROUP_ORDERS}")

    filtered = filter_items(category, categories)
    parent = _parent_of(category, categories)
    if parent is None or len(parent.selected_ids) <= 1:
        return [ItemGroup(items=tuple(filtered))]

    link_field = parent_link_field(category)
    buckets: Dict[Optional[str], List[RecipientItem]] = {}
    for item in filtered:
        buckets.setdefault(_link_value(item, link_field), []).append(item)

    parent_items = parent.available_items
    parent_by_id = {item.id: item for item in parent_items}
    formatter = category.format_group_label or format_group_label

    parent_ids = list(buckets.keys())
    if order == GROUP_ORDER_PARENT:
        position = {item.id: index for index, item in enumerate(parent_items)}
        parent_ids.sort(key=lambda pid: position.get(pid, len(position)))

    groups = []
    for parent_id in parent_ids:
        parent_item = parent_by_id.get(parent_id)
        if parent_item is None:
            label = NO_GROUP_LABEL
        elif formatter is not None:
            label = formatter(parent_item, parent_items, category.key)
        else:
            label = parent_item.name
        groups.append(ItemGroup(items=tuple(buckets[parent_id]), label=label, parent_id=parent_id))

    logger.debug(f"Grouped {category.key!r}: {len(filtered)} items into {len(groups)} groups")
    return groups


class DependencyResolver:
    """Binds the pure resolver functions to a live CategoryStore.

    Reads go through ``store.get_or_create`` so querying an unknown key
    behaves like querying an empty category.
    """

    def __init__(
        self,
        store: Any,
        format_group_label: Optional[GroupLabelFormatter] = None,
        group_order: str = GROUP_ORDER_FIRST_SEEN,
    ):
        """
        Args:
            store: The CategoryStore to read from
            format_group_label: Default group label formatter for every category
            group_order: Default group ordering (see group_items)
        """
        if group_order not in _GROUP_ORDERS:
            raise ValueError(f"Unknown group order {group_order!r}; expected one of {_GROUP_ORDERS}")
        self.store = store
        self.format_group_label = format_group_label
        self.group_order = group_order

    def is_enabled(self, key: str) -> bool:
        return is_category_enabled(self.store.get_or_create(key), self.store.as_mapping())

    def filtered_items(self, key: str) -> List[RecipientItem]:
        return filter_items(self.store.get_or_create(key), self.store.as_mapping())

    def filtered_ids(self, key: str) -> Tuple[str, ...]:
        return tuple(item.id for item in self.filtered_items(key))

    def grouped_view(self, key: str, order: Optional[str] = None) -> List[ItemGroup]:
        return group_items(
            self.store.get_or_create(key),
            self.store.as_mapping(),
            format_group_label=self.format_group_label,
            order=order or self.group_order,
        )

    def dependents_of(self, key: str) -> List[str]:
        """Keys of categories whose consulted parent is ``key``, in store order."""
        return [
            category.key for category in self.store.categories()
            if category.parent_key == key
        ]
