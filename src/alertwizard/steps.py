"""
Step registry for the alert wizard.

An ordered, append-only list of WizardStep. Indices 0..3 hold the built-in
steps (message, recipients, date, preview) unless the caller replaces the
whole registry with custom steps.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Iterator, List, Optional

from alertwizard.models import AlertFormData, ValidationResult

logger = logging.getLogger(__name__)

StepValidator = Callable[[AlertFormData], ValidationResult]


@dataclass(frozen=True)
class WizardStep:
    """Step metadata.

    ``validate`` (optional) is authoritative for this step's gating.
    ``component`` is an opaque custom step implementation for the view layer.
    """
    id: str
    label: str
    validate: Optional[StepValidator] = None
    component: Optional[Any] = None

    @property
    def is_custom(self) -> bool:
        return self.component is not None


def default_steps(labels: Optional[Any] = None) -> List[WizardStep]:
    """The four built-in steps, labeled from a LabelsConfig when given."""
    return [
        WizardStep(id="1", label=getattr(labels, 'message_title', None) or "Mensagem"),
        WizardStep(id="2", label=getattr(labels, 'recipients_title', None) or "Destinatários"),
        WizardStep(id="3", label=getattr(labels, 'date_label', None) or "Data de envio"),
        WizardStep(id="4", label=getattr(labels, 'preview_title', None) or "Prévia"),
    ]


class StepRegistry:
    """Ordered collection of steps; ids are unique, steps immutable once registered."""

    def __init__(self, steps: Iterable[WizardStep] = ()):
        self._steps: List[WizardStep] = []
        for step in steps:
            self.register(step)

    @classmethod
    def with_defaults(cls, labels: Optional[Any] = None, extra_steps: Iterable[WizardStep] = ()) -> 'StepRegistry':
        """Built-in steps followed by ``extra_steps`` (indices 4 and up)."""
        registry = cls(default_steps(labels))
        for step in extra_steps:
            registry.register(step)
        return registry

    def register(self, step: WizardStep) -> int:
        """Append ``step``.

        Returns:
            The index of the new step.

        Raises:
            ValueError: If a step with the same id is already registered.
        """
        if any(existing.id == step.id for existing in self._steps):
            raise ValueError(f"Duplicate step id: {step.id!r}")
        self._steps.append(step)
        logger.debug(f"Registered step {step.id!r} ({step.label}) at index {len(self._steps) - 1}")
        return len(self._steps) - 1

    def __len__(self) -> int:
        return len(self._steps)

    def __getitem__(self, index: int) -> WizardStep:
        return self._steps[index]

    def __iter__(self) -> Iterator[WizardStep]:
        return iter(self._steps)

    def get(self, index: int) -> Optional[WizardStep]:
        if 0 <= index < len(self._steps):
            return self._steps[index]
        return None

    def index_of(self, step_id: str) -> int:
        for index, step in enumerate(self._steps):
            if step.id == step_id:
                return index
        raise KeyError(step_id)

    @property
    def last_index(self) -> int:
        return len(self._steps) - 1
