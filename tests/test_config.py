"""Tests for configuration dataclasses and their dict shape."""
import pytest

from alertwizard import AlertsConfig, BehaviorConfig, CategoryConfig, LabelsConfig, ParentLink, WizardStep


def test_labels_defaults():
    labels = LabelsConfig()
    assert labels.modal_title == "Enviar aviso"
    assert labels.send_today_label == "Enviar Hoje?"


def test_labels_from_camel_case():
    """Test that front-end label keys map onto the snake_case fields."""
    labels = LabelsConfig.from_dict({"sendTodayLabel": "Send Today?", "previewTitle": None, "unknownLabel": "x"})
    assert labels.send_today_label == "Send Today?"
    assert labels.preview_title == "Prévia"


def test_behavior_from_dict():
    def send(payload):
        return None

    behavior = BehaviorConfig.from_dict({"onSendAlert": send, "allowScheduling": False})
    assert behavior.on_send_alert is send
    assert behavior.allow_scheduling is False
    assert behavior.allow_email_copy is True


class TestCategoryConfig:

    def test_from_front_end_shape(self):
        config = CategoryConfig.from_dict({
            "key": "serie",
            "label": "Séries",
            "itens": [{"id": "g1", "name": "1º ano", "schoolId": "e1"}],
            "selectedIds": ["g1"],
            "dependsOn": ["escola"],
            "filteredBy": [{"key": "escola", "internalField": "schoolId"}],
        })
        assert config.items[0].get("schoolId") == "e1"
        assert config.selected_ids == ("g1",)
        assert config.depends_on == ("escola",)
        assert config.filtered_by == (ParentLink(key="escola", internal_field="schoolId"),)

    def test_to_category(self):
        category = CategoryConfig(key="escola", label="Escolas", items=[{"id": "e1", "name": "E1"}],
                                  selected_ids=["e1"]).to_category()
        assert category.key == "escola"
        assert category.item_ids() == ("e1",)
        assert category.selected_ids == frozenset({"e1"})
        assert category.all_selected is False


class TestAlertsConfig:

    def test_from_dict(self):
        config = AlertsConfig.from_dict({
            "categories": [
                {"key": "escola", "label": "Escolas"},
                {"key": "turma", "label": "Turmas", "dependsOn": ["escola"]},
            ],
            "labels": {"modalTitle": "Novo aviso"},
            "behavior": {"allowEmailCopy": False},
            "extraSteps": [{"id": "anexos", "label": "Anexos"}],
        })
        assert config.category_keys == ["escola", "turma"]
        assert config.labels.modal_title == "Novo aviso"
        assert config.behavior.allow_email_copy is False
        assert config.extra_steps == (WizardStep(id="anexos", label="Anexos"),)
        assert config.steps is None

    def test_duplicate_keys_rejected(self):
        with pytest.raises(ValueError, match="escola"):
            AlertsConfig(categories=(
                CategoryConfig(key="escola", label="A"),
                CategoryConfig(key="escola", label="B"),
            ))

    def test_defaults(self):
        config = AlertsConfig()
        assert config.categories == ()
        assert isinstance(config.labels, LabelsConfig)
        assert isinstance(config.behavior, BehaviorConfig)
