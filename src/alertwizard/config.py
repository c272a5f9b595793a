"""
Configuration dataclasses for an alert wizard session.

Configuration is provided as Python objects. Every class also accepts the
front-end's JSON shape through ``from_dict`` (camelCase or snake_case keys),
so a config authored for the web component can be passed through unchanged.
"""

import logging
from dataclasses import dataclass, field, fields
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from alertwizard.models import GroupLabelFormatter, ParentLink, RecipientCategory, RecipientItem, coerce_items
from alertwizard.steps import WizardStep

logger = logging.getLogger(__name__)


def _snake(key: str) -> str:
    """camelCase -> snake_case (``sendTodayLabel`` -> ``send_today_label``)."""
    out = []
    for char in key:
        if char.isupper():
            out.append('_')
            out.append(char.lower())
        else:
            out.append(char)
    return ''.join(out)


def _normalize_keys(data: Mapping[str, Any], allowed: Tuple[str, ...]) -> Dict[str, Any]:
    normalized = {}
    for key, value in data.items():
        name = _snake(key)
        if name in allowed:
            normalized[name] = value
        else:
            logger.debug(f"Ignoring unknown config key: {key!r}")
    return normalized


@dataclass(frozen=True)
class LabelsConfig:
    """User-facing labels. Defaults are the Portuguese UI strings."""
    modal_title: str = "Enviar aviso"
    message_title: str = "Mensagem"
    recipients_title: str = "Destinatários"
    recipients_description: str = "Para quem você vai enviar o aviso?"
    date_label: str = "Data de envio"
    time_label: str = "Hora de envio"
    send_today_label: str = "Enviar Hoje?"
    send_copy_to_email_label: str = "Enviar cópia para e-mail"
    preview_title: str = "Prévia"
    cancel_button: str = "Cancelar"
    previous_button: str = "Anterior"
    next_button: str = "Próximo"
    finish_button: str = "Enviar Aviso"

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> 'LabelsConfig':
        if not data:
            return cls()
        allowed = tuple(f.name for f in fields(cls))
        # None means "use the default"
        values = {k: v for k, v in _normalize_keys(data, allowed).items() if v is not None}
        return cls(**values)


@dataclass(frozen=True)
class BehaviorConfig:
    """Feature switches and external collaborators.

    The ``allow_*`` switches are not read by the engine; they pass through to
    the view layer, which hides the matching controls when a switch is off.
    """
    allow_scheduling: bool = True
    allow_email_copy: bool = True
    allow_image_attachment: bool = True
    on_send_alert: Optional[Callable] = None
    on_load_alerts: Optional[Callable] = None
    on_delete_alert: Optional[Callable] = None
    on_load_error: Optional[Callable[[str, Exception], None]] = None
    format_group_label: Optional[GroupLabelFormatter] = None

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> 'BehaviorConfig':
        if not data:
            return cls()
        allowed = tuple(f.name for f in fields(cls))
        return cls(**_normalize_keys(data, allowed))


@dataclass(frozen=True)
class CategoryConfig:
    """Declaration of one recipient category.

    ``load_items`` (optional) refreshes ``items`` whenever the first parent's
    selection changes; it receives the parent's selected ids.
    """
    key: str
    label: str
    items: Tuple[RecipientItem, ...] = ()
    selected_ids: Tuple[str, ...] = ()
    depends_on: Tuple[str, ...] = ()
    filtered_by: Tuple[ParentLink, ...] = ()
    load_items: Optional[Callable] = None
    format_group_label: Optional[GroupLabelFormatter] = None

    def __post_init__(self):
        object.__setattr__(self, 'items', coerce_items(self.items))
        object.__setattr__(self, 'selected_ids', tuple(self.selected_ids or ()))
        object.__setattr__(self, 'depends_on', tuple(self.depends_on or ()))
        object.__setattr__(self, 'filtered_by', tuple(
            link if isinstance(link, ParentLink) else ParentLink.from_dict(link)
            for link in (self.filtered_by or ())
        ))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'CategoryConfig':
        allowed = tuple(f.name for f in fields(cls)) + ('itens',)
        values = _normalize_keys(data, allowed)
        # The web component spells the item list "itens"
        if 'itens' in values:
            values.setdefault('items', values.pop('itens'))
        values = {k: v for k, v in values.items() if v is not None}
        return cls(**values)

    def to_category(self) -> RecipientCategory:
        """Initial store entry for this declaration."""
        return RecipientCategory(
            key=self.key,
            label=self.label,
            available_items=self.items,
            selected_ids=frozenset(self.selected_ids),
            all_selected=False,
            depends_on=self.depends_on,
            filtered_by=self.filtered_by,
            format_group_label=self.format_group_label,
        )


@dataclass(frozen=True)
class AlertsConfig:
    """Everything needed to open an alert wizard.

    ``steps`` replaces the default registry entirely; ``extra_steps`` are
    appended after the four built-in steps.
    """
    categories: Tuple[CategoryConfig, ...] = ()
    labels: LabelsConfig = field(default_factory=LabelsConfig)
    behavior: BehaviorConfig = field(default_factory=BehaviorConfig)
    steps: Optional[Tuple[WizardStep, ...]] = None
    extra_steps: Tuple[WizardStep, ...] = ()

    def __post_init__(self):
        categories = tuple(
            c if isinstance(c, CategoryConfig) else CategoryConfig.from_dict(c)
            for c in self.categories
        )
        keys = [c.key for c in categories]
        duplicates = sorted({k for k in keys if keys.count(k) > 1})
        if duplicates:
            raise ValueError(f"Duplicate category keys: {duplicates}")
        object.__setattr__(self, 'categories', categories)
        object.__setattr__(self, 'labels', _coerce(self.labels, LabelsConfig))
        object.__setattr__(self, 'behavior', _coerce(self.behavior, BehaviorConfig))
        if self.steps is not None:
            object.__setattr__(self, 'steps', tuple(_coerce_step(s) for s in self.steps))
        object.__setattr__(self, 'extra_steps', tuple(_coerce_step(s) for s in self.extra_steps))

    @property
    def category_keys(self) -> List[str]:
        return [c.key for c in self.categories]

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'AlertsConfig':
        values = _normalize_keys(data, ('categories', 'labels', 'behavior', 'steps', 'extra_steps'))
        return cls(
            categories=tuple(values.get('categories') or ()),
            labels=values.get('labels'),
            behavior=values.get('behavior'),
            steps=values.get('steps'),
            extra_steps=tuple(values.get('extra_steps') or ()),
        )


def _coerce(value: Any, config_type: type) -> Any:
    if isinstance(value, config_type):
        return value
    return config_type.from_dict(value)


def _coerce_step(step: Any) -> WizardStep:
    if isinstance(step, WizardStep):
        return step
    return WizardStep(
        id=str(step['id']),
        label=str(step['label']),
        validate=step.get('validate'),
        component=step.get('component'),
    )
