"""
AlertWizardSession: one open/close cycle of the alert wizard.

Wires the CategoryStore, DependencyResolver, SelectionAggregator,
WizardController, SubmissionAssembler and ItemLoadCoordinator together
around a single AlertsConfig, and owns the mutable form fields.

Usage:
    session = AlertWizardSession(config)
    session.open()
    session.set_title("Reunião de pais")
    session.set_message("Quinta-feira às 19h")
    session.advance()
    session.toggle_item("escola", "e1")
    ...
    result = await session.finish()
"""

import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from alertwizard.category_store import CategoryStore
from alertwizard.config import AlertsConfig
from alertwizard.dependency_resolver import DependencyResolver
from alertwizard.history import AlertHistory
from alertwizard.loader import ItemLoadCoordinator
from alertwizard.models import (
    AlertFormData, AlertPayload, ItemGroup, RecipientCategory, RecipientItem, StepResult, StepState,
    SubmissionResult,
)
from alertwizard.selection import (
    CategorySummary, SelectionAggregator, format_selection_text, format_total_text, selection_summary, selection_total,
)
from alertwizard.steps import StepRegistry
from alertwizard.submission import SubmissionAssembler
from alertwizard.wizard import WizardController

logger = logging.getLogger(__name__)

DATE_FORMAT = "%Y-%m-%d"
TIME_FORMAT = "%H:%M"


class AlertWizardSession:
    """Facade over the wizard components for one configured alert form.

    Lifecycle:
        open()   initialize categories, auto-select lone items, start loads
        close()  reset form, store, navigation and in-flight loads
        finish() submit; closes the session on success
    """

    def __init__(self, config: Union[AlertsConfig, Mapping[str, Any]], clock: Optional[Callable[[], datetime]] = None):
        """
        Args:
            config: AlertsConfig, or its dict shape (see AlertsConfig.from_dict)
            clock: Returns "now" for the send-today stamp (default: datetime.now)
        """
        if not isinstance(config, AlertsConfig):
            config = AlertsConfig.from_dict(config)
        self.config = config
        self.clock = clock or datetime.now
        behavior = config.behavior

        self.form = AlertFormData()
        self.store = CategoryStore()
        self.resolver = DependencyResolver(self.store, format_group_label=behavior.format_group_label)
        self.selection = SelectionAggregator(self.store, self.resolver)

        if config.steps is not None:
            self.registry = StepRegistry(config.steps)
        else:
            self.registry = StepRegistry.with_defaults(config.labels, config.extra_steps)

        self.wizard = WizardController(self.registry, self.form_snapshot, self.ordered_categories)
        self.submission = SubmissionAssembler(
            self.wizard, self.form_snapshot, self.store.as_mapping, on_send_alert=behavior.on_send_alert,
        )
        self.loader = ItemLoadCoordinator(self.store, on_error=behavior.on_load_error)
        self.history = AlertHistory(behavior.on_load_alerts, behavior.on_delete_alert)

        self._is_open = False
        self._seen_selection: Dict[str, frozenset] = {}
        self._on_change_callbacks: List[Callable[[], None]] = []

        self.store.on_change(self._on_category_change)
        self.wizard.on_change(self._notify_change)

    # ========== CHANGE NOTIFICATION ==========

    def on_change(self, callback: Callable[[], None]) -> None:
        """Subscribe to any change (form, selection, items, navigation)."""
        if callback not in self._on_change_callbacks:
            self._on_change_callbacks.append(callback)

    def off_change(self, callback: Callable[[], None]) -> None:
        if callback in self._on_change_callbacks:
            self._on_change_callbacks.remove(callback)

    def _notify_change(self) -> None:
        for callback in list(self._on_change_callbacks):
            try:
                callback()
            except Exception as e:
                logger.warning(f"Error in session change callback: {e}")

    def _on_category_change(self, key: str) -> None:
        if self._is_open:
            category = self.store.get(key)
            selected = category.selected_ids if category is not None else frozenset()
            if self._seen_selection.get(key) != selected:
                self._seen_selection[key] = selected
                self._reload_dependents(key)
        self._notify_change()

    def _reload_dependents(self, key: str) -> None:
        parent_ids = self.store.selected_ids(key)
        for dependent in self.resolver.dependents_of(key):
            self.loader.request_and_dispatch(dependent, parent_ids)

    # ========== LIFECYCLE ==========

    @property
    def is_open(self) -> bool:
        return self._is_open

    def open(self) -> None:
        """Initialize categories from config and apply chained auto-selection.

        Dependents with a loader whose parent already has a selection are
        loaded right away. Opening an open session does nothing.
        """
        if self._is_open:
            return
        for category_config in self.config.categories:
            if category_config.load_items is not None:
                self.loader.register(category_config.key, category_config.load_items)
            self.store.initialize(category_config.to_category())
        self._seen_selection = {key: self.store.selected_ids(key) for key in self.store.keys()}
        self._is_open = True

        self.selection.auto_select_single(self.config.category_keys)
        for key in self.config.category_keys:
            parent_key = self.store.get_or_create(key).parent_key
            if parent_key is not None and self.store.selected_ids(parent_key):
                self.loader.request_and_dispatch(key, self.store.selected_ids(parent_key))

        logger.info(f"Opened alert wizard: categories={self.config.category_keys}, steps={len(self.registry)}")
        self._notify_change()

    def close(self) -> None:
        """Discard everything entered in this cycle."""
        self.reset()
        logger.info("Closed alert wizard")

    def reset(self) -> None:
        self._is_open = False
        self.loader.reset()
        self.form = AlertFormData()
        self.store.reset()
        self._seen_selection = {}
        self.wizard.reset()

    async def wait_for_loads(self) -> None:
        """Await every pending ``load_items`` call."""
        await self.loader.wait()

    # ========== FORM ==========

    def _set_form(self, **values: Any) -> None:
        for name, value in values.items():
            setattr(self.form, name, value)
        self._notify_change()

    def set_title(self, title: str) -> None:
        self._set_form(title=title)

    def set_message(self, message: str) -> None:
        self._set_form(message=message)

    def set_image(self, image: Optional[Any]) -> None:
        self._set_form(image=image)

    def set_date(self, date: str) -> None:
        self._set_form(date=date)

    def set_time(self, time: str) -> None:
        self._set_form(time=time)

    def set_send_copy_to_email(self, send_copy_to_email: bool) -> None:
        self._set_form(send_copy_to_email=bool(send_copy_to_email))

    def set_send_today(self, send_today: bool) -> None:
        """Toggle immediate sending; turning it on stamps the current date and time."""
        if send_today:
            now = self.clock()
            self._set_form(send_today=True, date=now.strftime(DATE_FORMAT), time=now.strftime(TIME_FORMAT))
        else:
            self._set_form(send_today=False)

    def form_snapshot(self) -> AlertFormData:
        """Copy of the form with the current categories attached."""
        return AlertFormData(
            title=self.form.title,
            message=self.form.message,
            image=self.form.image,
            date=self.form.date,
            time=self.form.time,
            send_today=self.form.send_today,
            send_copy_to_email=self.form.send_copy_to_email,
            recipient_categories=self.store.as_mapping(),
        )

    def ordered_categories(self) -> List[RecipientCategory]:
        """Initialized categories in configured order."""
        categories = (self.store.get(key) for key in self.config.category_keys)
        return [category for category in categories if category is not None]

    # ========== RECIPIENTS ==========

    def is_enabled(self, key: str) -> bool:
        return self.resolver.is_enabled(key)

    def filtered_items(self, key: str) -> List[RecipientItem]:
        return self.resolver.filtered_items(key)

    def grouped_view(self, key: str, order: Optional[str] = None) -> List[ItemGroup]:
        return self.resolver.grouped_view(key, order)

    def toggle_item(self, key: str, item_id: str) -> frozenset:
        return self.selection.toggle_item(key, item_id)

    def toggle_all(self, key: str) -> frozenset:
        return self.selection.toggle_all(key)

    def summary(self) -> Dict[str, CategorySummary]:
        return selection_summary(self.selection, self.config.category_keys)

    def selection_text(self, key: str) -> str:
        category = self.store.get_or_create(key)
        return format_selection_text(len(category.selected_ids), len(category.available_items))

    def total_text(self) -> str:
        """Selected versus available items across every configured category."""
        return format_total_text(*selection_total(self.selection, self.config.category_keys))

    # ========== NAVIGATION ==========

    def advance(self) -> StepResult:
        return self.wizard.advance()

    def retreat(self) -> bool:
        return self.wizard.retreat()

    def can_advance(self) -> bool:
        return self.wizard.can_advance()

    def can_finish(self) -> bool:
        return self.wizard.can_finish()

    def dynamic_step_states(self) -> List[StepState]:
        return self.wizard.dynamic_step_states()

    # ========== SUBMISSION ==========

    def payload(self) -> AlertPayload:
        return self.submission.assemble()

    async def finish(self) -> SubmissionResult:
        """Submit, closing the session only if the collaborator accepted it."""
        result = await self.submission.finish()
        if result.success:
            self.close()
        return result
