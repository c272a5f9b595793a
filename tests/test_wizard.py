"""Tests for StepRegistry and WizardController navigation."""
import itertools

import pytest

from alertwizard import (
    AlertFormData,
    LabelsConfig,
    RecipientCategory,
    StepRegistry,
    StepStatus,
    WizardController,
    WizardStep,
    default_steps,
)
from alertwizard.validation import ALREADY_ON_LAST_STEP, INVALID_STEP, SELECT_RECIPIENTS, TITLE_REQUIRED


@pytest.fixture
def form():
    return AlertFormData(title="Aviso", message="Sem aula", date="2024-03-20")


@pytest.fixture
def categories():
    return [RecipientCategory(key="class", label="Turmas", selected_ids={"c1"})]


@pytest.fixture
def controller(form, categories):
    return WizardController(StepRegistry.with_defaults(), lambda: form, lambda: categories)


class TestStepRegistry:

    def test_default_steps(self):
        steps = default_steps()
        assert [s.id for s in steps] == ["1", "2", "3", "4"]
        assert [s.label for s in steps] == ["Mensagem", "Destinatários", "Data de envio", "Prévia"]

    def test_default_labels_from_config(self):
        labels = LabelsConfig(message_title="Message", preview_title="Preview")
        steps = default_steps(labels)
        assert steps[0].label == "Message"
        assert steps[3].label == "Preview"

    def test_extra_steps_appended(self):
        registry = StepRegistry.with_defaults(extra_steps=[WizardStep(id="anexos", label="Anexos")])
        assert len(registry) == 5
        assert registry.index_of("anexos") == 4
        assert registry.last_index == 4

    def test_duplicate_id_rejected(self):
        registry = StepRegistry.with_defaults()
        with pytest.raises(ValueError):
            registry.register(WizardStep(id="2", label="Outro"))

    def test_lookup(self):
        registry = StepRegistry.with_defaults()
        assert registry.get(1).id == "2"
        assert registry.get(9) is None
        with pytest.raises(KeyError):
            registry.index_of("missing")

    def test_custom_step_flag(self):
        assert WizardStep(id="x", label="X", component=object()).is_custom is True
        assert WizardStep(id="y", label="Y").is_custom is False

    def test_empty_registry_rejected_by_controller(self, form):
        with pytest.raises(ValueError):
            WizardController(StepRegistry(), lambda: form, lambda: [])


class TestAdvance:

    def test_advance_through_all_steps(self, controller):
        for expected in (1, 2, 3):
            result = controller.advance()
            assert result.success is True
            assert result.error is None
            assert controller.current_step_index == expected
        assert controller.is_last_step
        assert controller.completed_step_indices == {0, 1, 2}

    def test_last_step_always_fails(self, controller):
        """Test that advancing from the last step fails even with a valid form."""
        controller.go_to(3)
        result = controller.advance()
        assert result.success is False
        assert result.error == ALREADY_ON_LAST_STEP
        assert controller.current_step_index == 3

    def test_validation_blocks(self, form, controller):
        form.title = ""
        result = controller.advance()
        assert result.success is False
        assert result.error == TITLE_REQUIRED
        assert controller.current_step_index == 0
        assert controller.completed_step_indices == set()

    def test_recipients_step_blocks_without_selection(self, form):
        controller = WizardController(
            StepRegistry.with_defaults(), lambda: form, lambda: [RecipientCategory(key="class", label="Turmas")],
        )
        controller.advance()
        result = controller.advance()
        assert result.error == SELECT_RECIPIENTS
        assert controller.current_step_index == 1

    def test_falsy_validator_result_gets_generic_message(self, form):
        registry = StepRegistry([WizardStep(id="a", label="A", validate=lambda f: False), WizardStep(id="b", label="B")])
        controller = WizardController(registry, lambda: form, lambda: [])
        assert controller.advance().error == INVALID_STEP

    def test_can_advance_requires_exact_true(self, form):
        registry = StepRegistry([WizardStep(id="a", label="A", validate=lambda f: "não"), WizardStep(id="b", label="B")])
        controller = WizardController(registry, lambda: form, lambda: [])
        assert controller.can_advance() is False
        assert controller.can_advance(1) is True


class TestRetreat:

    def test_retreat_keeps_completed(self, controller):
        controller.advance()
        controller.advance()
        assert controller.retreat() is True
        assert controller.current_step_index == 1
        assert controller.completed_step_indices == {0, 1}

    def test_retreat_at_first_step(self, controller):
        assert controller.retreat() is False
        assert controller.is_first_step

    def test_completed_never_shrinks(self, controller):
        """Test that no advance/retreat sequence removes a completed index."""
        previous = set()
        for move in itertools.islice(itertools.cycle(["a", "a", "r", "a", "r", "r", "a", "a", "a"]), 40):
            if move == "a":
                controller.advance()
            else:
                controller.retreat()
            assert previous <= controller.completed_step_indices
            previous = controller.completed_step_indices


class TestStepStates:

    def test_initial_states(self, controller):
        states = controller.dynamic_step_states()
        assert [s.status for s in states] == [StepStatus.CURRENT, StepStatus.PENDING, StepStatus.PENDING, StepStatus.PENDING]

    def test_completed_wins_over_current(self, controller):
        controller.advance()
        controller.retreat()
        states = controller.dynamic_step_states()
        assert states[0].status is StepStatus.COMPLETED
        assert states[1].status is StepStatus.PENDING

    def test_to_dict(self, controller):
        assert controller.dynamic_step_states()[0].to_dict() == {"id": "1", "label": "Mensagem", "state": "current"}

    def test_progress_text(self, controller):
        assert controller.progress_text() == "Etapa 1 de 4"
        controller.advance()
        assert controller.progress_text() == "Etapa 2 de 4"


class TestControllerMisc:

    def test_can_finish_independent_of_position(self, controller):
        assert controller.current_step_index == 0
        assert controller.can_finish() is True

    def test_go_to_out_of_range(self, controller):
        with pytest.raises(ValueError):
            controller.go_to(4)

    def test_mark_completed(self, controller):
        assert controller.mark_completed(2) is True
        assert controller.mark_completed(2) is False

    def test_reset(self, controller):
        controller.advance()
        controller.reset()
        assert controller.current_step_index == 0
        assert controller.completed_step_indices == set()

    def test_change_notification(self, controller):
        calls = []
        controller.on_change(lambda: calls.append(controller.current_step_index))
        controller.advance()
        controller.retreat()
        controller.retreat()
        assert calls == [1, 0]

    def test_providers_read_fresh_values(self, form, controller):
        form.title = ""
        assert controller.can_advance() is False
        form.title = "De volta"
        assert controller.can_advance() is True
