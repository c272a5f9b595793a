"""
Alert wizard engine: hierarchical recipient selection and step-gated submission.

Key Features:
- Recipient categories with first-parent dependencies (school → grade → class)
- Filtered and grouped item views driven by the parent selection
- Select-all / per-item toggles scoped to the filtered view
- Step-gated wizard navigation with pluggable validators
- Immutable AlertPayload handed to an external submit collaborator
- Generation-tagged dynamic loading of dependent category items

Quick Start:
    >>> from alertwizard import AlertWizardSession, AlertsConfig, CategoryConfig
    >>>
    >>> config = AlertsConfig(categories=(
    ...     CategoryConfig(key="escola", label="Escolas", items=[{"id": "e1", "name": "Escola A"}]),
    ...     CategoryConfig(key="turma", label="Turmas", depends_on=("escola",),
    ...                    items=[{"id": "t1", "name": "1A", "parentId": "e1"}]),
    ... ), behavior={"on_send_alert": send})
    >>>
    >>> session = AlertWizardSession(config)
    >>> session.open()          # lone items are auto-selected down the chain
    >>> session.set_title("Aviso")
    >>> session.set_message("Sem aula amanhã")
    >>> session.set_send_today(True)
    >>> result = await session.finish()

Modules:
    - models: Immutable data records and payload types
    - category_store: Per-key category state with change notification
    - dependency_resolver: Enablement, filtering and grouping
    - selection: Toggle semantics and selection summaries
    - validation: Built-in step validators
    - steps: Step metadata and registry
    - wizard: Step-gated navigation controller
    - submission: Payload assembly and submit hand-off
    - loader: Dynamic dependent item loading
    - history: Sent alerts and recipient status pagination
    - config: Configuration dataclasses
    - session: Facade owning one open/close cycle
"""

# Models
from alertwizard.models import (
    AlertFormData,
    AlertPayload,
    CategorySelection,
    ItemGroup,
    ParentLink,
    RecipientCategory,
    RecipientItem,
    StepResult,
    StepState,
    StepStatus,
    SubmissionResult,
    ValidationResult,
)

# Store and resolver
from alertwizard.category_store import CategoryStore
from alertwizard.dependency_resolver import (
    DEFAULT_PARENT_FIELD,
    NO_GROUP_LABEL,
    DependencyResolver,
    filter_items,
    group_items,
    is_category_enabled,
)

# Selection
from alertwizard.selection import (
    CategorySummary,
    SelectionAggregator,
    format_selection_text,
    format_total_text,
    selection_summary,
    selection_total,
)

# Steps and navigation
from alertwizard.validation import can_finish, validate_step
from alertwizard.steps import StepRegistry, WizardStep, default_steps
from alertwizard.wizard import WizardController, WizardState

# Submission and loading
from alertwizard.submission import SubmissionAssembler, build_payload
from alertwizard.loader import ItemLoadCoordinator, LoadRequest

# History
from alertwizard.history import AlertHistory, AlertTableItem, RecipientStatus, paginate

# Configuration and session
from alertwizard.config import AlertsConfig, BehaviorConfig, CategoryConfig, LabelsConfig
from alertwizard.session import AlertWizardSession

__all__ = [
    # Models
    'AlertFormData',
    'AlertPayload',
    'CategorySelection',
    'ItemGroup',
    'ParentLink',
    'RecipientCategory',
    'RecipientItem',
    'StepResult',
    'StepState',
    'StepStatus',
    'SubmissionResult',
    'ValidationResult',
    # Store and resolver
    'CategoryStore',
    'DEFAULT_PARENT_FIELD',
    'NO_GROUP_LABEL',
    'DependencyResolver',
    'filter_items',
    'group_items',
    'is_category_enabled',
    # Selection
    'CategorySummary',
    'SelectionAggregator',
    'format_selection_text',
    'format_total_text',
    'selection_summary',
    'selection_total',
    # Steps and navigation
    'can_finish',
    'validate_step',
    'StepRegistry',
    'WizardStep',
    'default_steps',
    'WizardController',
    'WizardState',
    # Submission and loading
    'SubmissionAssembler',
    'build_payload',
    'ItemLoadCoordinator',
    'LoadRequest',
    # History
    'AlertHistory',
    'AlertTableItem',
    'RecipientStatus',
    'paginate',
    # Configuration and session
    'AlertsConfig',
    'BehaviorConfig',
    'CategoryConfig',
    'LabelsConfig',
    'AlertWizardSession',
]

__version__ = '1.0.0'
__description__ = 'Hierarchical recipient selection and step-gated alert submission'
