"""
WizardController: step-gated navigation over a StepRegistry.

Tracks the current step index and the set of completed step indices.
Forward navigation is gated by the step's validator; backward navigation is
free and never forgets a completed step.
"""
import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence, Set

from alertwizard.models import AlertFormData, RecipientCategory, StepResult, StepState, StepStatus, ValidationResult
from alertwizard.steps import StepRegistry
from alertwizard.validation import ALREADY_ON_LAST_STEP, INVALID_STEP, can_finish, first_finish_error, validate_step

logger = logging.getLogger(__name__)


@dataclass
class WizardState:
    """Navigation state. ``completed_step_indices`` only ever grows until reset."""
    current_step_index: int = 0
    completed_step_indices: Set[int] = field(default_factory=set)


class WizardController:
    """Step-gated state machine.

    The controller does not own form data or categories; it pulls fresh values
    from the providers on every check, so gating always reflects the latest
    store contents.
    """

    def __init__(
        self,
        registry: StepRegistry,
        form_provider: Callable[[], AlertFormData],
        categories_provider: Callable[[], Sequence[RecipientCategory]],
    ):
        """
        Args:
            registry: Ordered steps (must not be empty)
            form_provider: Returns the current form data (with categories snapshot)
            categories_provider: Returns categories in configured order
        """
        if len(registry) == 0:
            raise ValueError("Wizard needs at least one step")
        self.registry = registry
        self._form_provider = form_provider
        self._categories_provider = categories_provider
        self.state = WizardState()
        self._on_change_callbacks: List[Callable[[], None]] = []

    # ========== CHANGE NOTIFICATION ==========

    def on_change(self, callback: Callable[[], None]) -> None:
        """Subscribe to navigation changes (step moved or completed set grew)."""
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
                logger.warning(f"Error in wizard change callback: {e}")

    # ========== QUERIES ==========

    @property
    def current_step_index(self) -> int:
        return self.state.current_step_index

    @property
    def completed_step_indices(self) -> Set[int]:
        return set(self.state.completed_step_indices)

    @property
    def is_first_step(self) -> bool:
        return self.state.current_step_index == 0

    @property
    def is_last_step(self) -> bool:
        return self.state.current_step_index == self.registry.last_index

    def progress_text(self) -> str:
        return f"Etapa {self.state.current_step_index + 1} de {len(self.registry)}"

    def validate(self, index: int) -> ValidationResult:
        """Run the validator that applies to step ``index``."""
        return validate_step(index, self._form_provider(), self._categories_provider(), self.registry)

    def can_advance(self, index: Optional[int] = None) -> bool:
        """True iff the validator of ``index`` (default: current step) returns exactly True."""
        if index is None:
            index = self.state.current_step_index
        return self.validate(index) is True

    def can_finish(self) -> bool:
        """Message, recipients and date rules all pass, independent of the current step."""
        return can_finish(self._form_provider(), self._categories_provider())

    def finish_error(self) -> Optional[str]:
        """First message blocking finish, or None."""
        return first_finish_error(self._form_provider(), self._categories_provider())

    def dynamic_step_states(self) -> List[StepState]:
        """Tag each step completed/current/pending; completed wins over current."""
        states = []
        for index, step in enumerate(self.registry):
            if index in self.state.completed_step_indices:
                status = StepStatus.COMPLETED
            elif index == self.state.current_step_index:
                status = StepStatus.CURRENT
            else:
                status = StepStatus.PENDING
            states.append(StepState(id=step.id, label=step.label, status=status))
        return states

    # ========== NAVIGATION ==========

    def mark_completed(self, index: int) -> bool:
        """Add ``index`` to the completed set.

        Returns:
            True if the index was newly added.
        """
        if index in self.state.completed_step_indices:
            return False
        self.state.completed_step_indices.add(index)
        self._notify_change()
        return True

    def advance(self) -> StepResult:
        """Validate the current step and move forward.

        Returns:
            StepResult; on failure ``error`` carries the validator's message.
        """
        current = self.state.current_step_index
        if current >= self.registry.last_index:
            return StepResult(success=False, error=ALREADY_ON_LAST_STEP)

        result = self.validate(current)
        if result is not True:
            error = result if isinstance(result, str) and result else INVALID_STEP
            logger.warning(f"Advance blocked at step {current}: {error}")
            return StepResult(success=False, error=error)

        self.state.completed_step_indices.add(current)
        self.state.current_step_index = current + 1
        logger.debug(f"Advanced from step {current} to {current + 1}")
        self._notify_change()
        return StepResult(success=True)

    def retreat(self) -> bool:
        """Move back one step. Completed steps stay completed.

        Returns:
            True if the wizard moved.
        """
        current = self.state.current_step_index
        if current <= 0:
            return False
        self.state.current_step_index = current - 1
        logger.debug(f"Retreated from step {current} to {current - 1}")
        self._notify_change()
        return True

    def go_to(self, index: int) -> None:
        """Jump to ``index`` without validation (custom navigation)."""
        if not 0 <= index <= self.registry.last_index:
            raise ValueError(f"Step index {index} out of range [0, {self.registry.last_index}]")
        self.state.current_step_index = index
        self._notify_change()

    def reset(self) -> None:
        self.state = WizardState()
        self._notify_change()
