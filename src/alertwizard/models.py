"""
Data model for the alert wizard.

Typed, immutable records for recipients, categories, step rendering states and
the payload handed to the submit collaborator. Mutable wizard state lives in
the store and controller; everything here is replaced wholesale, never edited
in place.

Design Philosophy: Correct by Construction
- Frozen dataclasses for everything that crosses a component boundary
- Open attribute bag on RecipientItem, declared fields for everything else
- to_dict()/from_dict() for the JSON-shaped boundary with the view layer
"""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, Dict, FrozenSet, Iterable, Mapping, Optional, Tuple, Union

# Validators return True on success or a human-readable message on failure
ValidationResult = Union[bool, str]

# (parent_item, all_parent_items, category_key) -> label
GroupLabelFormatter = Callable[['RecipientItem', Tuple['RecipientItem', ...], str], str]


@dataclass(frozen=True)
class RecipientItem:
    """A selectable recipient (school, class, student, ...).

    Extra attributes (parent-link fields such as ``schoolId``) live in the
    ``attributes`` mapping and are read through ``get()``.
    """
    id: str
    name: str
    attributes: Mapping[str, Any] = field(default_factory=dict, hash=False)

    def __post_init__(self):
        # Read-only copy of the caller's dict
        object.__setattr__(self, 'attributes', MappingProxyType(dict(self.attributes)))

    def get(self, attribute: str, default: Any = None) -> Any:
        """Read a declared field or an extra attribute by name."""
        if attribute == 'id':
            return self.id
        if attribute == 'name':
            return self.name
        return self.attributes.get(attribute, default)

    def to_dict(self) -> Dict[str, Any]:
        """Export to a flat dict (extra attributes inlined)."""
        return {'id': self.id, 'name': self.name, **self.attributes}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'RecipientItem':
        """Import from a flat dict; unknown keys become extra attributes."""
        extras = {k: v for k, v in data.items() if k not in ('id', 'name')}
        return cls(id=str(data['id']), name=str(data.get('name', data['id'])), attributes=extras)


def coerce_items(items: Iterable[Union[RecipientItem, Mapping[str, Any]]]) -> Tuple[RecipientItem, ...]:
    """Normalize a mix of RecipientItem and plain dicts into a fresh tuple."""
    return tuple(
        item if isinstance(item, RecipientItem) else RecipientItem.from_dict(item)
        for item in items
    )


@dataclass(frozen=True)
class ParentLink:
    """Declares which item attribute holds the id of an item in a parent category.

    Example: ``ParentLink(key='escola', internal_field='schoolId')`` on the
    'serie' category means each grade's ``schoolId`` points at a school id.
    """
    key: str
    internal_field: str

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'ParentLink':
        return cls(
            key=str(data['key']),
            internal_field=str(data.get('internal_field', data.get('internalField'))),
        )


@dataclass(frozen=True)
class RecipientCategory:
    """Immutable snapshot of one category in the store.

    ``selected_ids`` is a set: order is irrelevant. ``all_selected`` is stored
    verbatim; SelectionAggregator keeps it consistent with the filtered view.
    """
    key: str
    label: str
    available_items: Tuple[RecipientItem, ...] = ()
    selected_ids: FrozenSet[str] = frozenset()
    all_selected: bool = False
    depends_on: Tuple[str, ...] = ()
    filtered_by: Tuple[ParentLink, ...] = ()
    format_group_label: Optional[GroupLabelFormatter] = field(default=None, compare=False)

    def __post_init__(self):
        object.__setattr__(self, 'available_items', coerce_items(self.available_items))
        object.__setattr__(self, 'selected_ids', frozenset(self.selected_ids))
        object.__setattr__(self, 'depends_on', tuple(self.depends_on))
        object.__setattr__(self, 'filtered_by', tuple(
            link if isinstance(link, ParentLink) else ParentLink.from_dict(link)
            for link in self.filtered_by
        ))

    @classmethod
    def empty(cls, key: str) -> 'RecipientCategory':
        """Default category synthesized when a key is referenced before initialization."""
        return cls(key=key, label=key)

    @property
    def parent_key(self) -> Optional[str]:
        """The only dependency consulted for enablement and filtering."""
        return self.depends_on[0] if self.depends_on else None

    def link_field_for(self, parent_key: str) -> Optional[str]:
        """Attribute name linking items of this category to ``parent_key``."""
        for link in self.filtered_by:
            if link.key == parent_key:
                return link.internal_field
        return None

    def item_ids(self) -> Tuple[str, ...]:
        return tuple(item.id for item in self.available_items)


@dataclass(frozen=True)
class ItemGroup:
    """A cluster of filtered items; ``label`` is None for an unlabeled group."""
    items: Tuple[RecipientItem, ...]
    label: Optional[str] = None
    parent_id: Optional[str] = None


class StepStatus(Enum):
    """Rendering status of a wizard step."""
    COMPLETED = "completed"
    CURRENT = "current"
    PENDING = "pending"


@dataclass(frozen=True)
class StepState:
    """A step tagged with its rendering status (see WizardController.dynamic_step_states)."""
    id: str
    label: str
    status: StepStatus

    def to_dict(self) -> Dict[str, str]:
        return {'id': self.id, 'label': self.label, 'state': self.status.value}


@dataclass
class AlertFormData:
    """Mutable form fields edited across the wizard steps.

    Created fresh when the wizard opens and reset when it closes. The session
    owns the live categories in its CategoryStore; ``recipient_categories`` is
    filled with a snapshot of them whenever the form is handed to a validator.
    """
    title: str = ""
    message: str = ""
    image: Optional[Any] = None
    date: str = ""
    time: str = ""
    send_today: bool = False
    send_copy_to_email: bool = False
    recipient_categories: Mapping[str, RecipientCategory] = field(default_factory=dict)


@dataclass(frozen=True)
class CategorySelection:
    """What the submit collaborator receives for one category."""
    selected_ids: FrozenSet[str]
    all_selected: bool

    def to_dict(self) -> Dict[str, Any]:
        return {'selectedIds': sorted(self.selected_ids), 'allSelected': self.all_selected}


@dataclass(frozen=True)
class AlertPayload:
    """Immutable, flattened result of a finished wizard."""
    title: str
    message: str
    image: Optional[Any]
    date: str
    time: str
    send_today: bool
    send_copy_to_email: bool
    recipient_categories: Mapping[str, CategorySelection]

    def __post_init__(self):
        object.__setattr__(self, 'recipient_categories', MappingProxyType(dict(self.recipient_categories)))

    def to_dict(self) -> Dict[str, Any]:
        """Export to the camelCase JSON shape used by the front-end API."""
        return {
            'title': self.title,
            'message': self.message,
            'image': self.image,
            'date': self.date,
            'time': self.time,
            'sendToday': self.send_today,
            'sendCopyToEmail': self.send_copy_to_email,
            'recipientCategories': {
                key: selection.to_dict()
                for key, selection in self.recipient_categories.items()
            },
        }


@dataclass(frozen=True)
class StepResult:
    """Outcome of a navigation attempt."""
    success: bool
    error: Optional[str] = None


@dataclass(frozen=True)
class SubmissionResult:
    """Outcome of finishing the wizard."""
    success: bool
    payload: Optional[AlertPayload] = None
    error: Optional[str] = None
