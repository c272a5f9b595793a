"""Pytest configuration and shared fixtures."""
from datetime import datetime

import pytest

from alertwizard import (
    AlertsConfig,
    AlertWizardSession,
    CategoryConfig,
    CategoryStore,
    DependencyResolver,
    RecipientCategory,
    SelectionAggregator,
)


SCHOOLS = [
    {"id": "s1", "name": "Escola Norte"},
    {"id": "s2", "name": "Escola Sul"},
]

CLASSES = [
    {"id": "c1", "name": "Turma 1A", "parentId": "s1"},
    {"id": "c2", "name": "Turma 2B", "parentId": "s2"},
]


@pytest.fixture
def school_category():
    return RecipientCategory(key="school", label="Escolas", available_items=SCHOOLS)


@pytest.fixture
def class_category():
    return RecipientCategory(key="class", label="Turmas", available_items=CLASSES, depends_on=("school",))


@pytest.fixture
def store(school_category, class_category):
    """Store holding the school -> class hierarchy, nothing selected."""
    store = CategoryStore()
    store.initialize(school_category)
    store.initialize(class_category)
    return store


@pytest.fixture
def resolver(store):
    return DependencyResolver(store)


@pytest.fixture
def aggregator(store, resolver):
    return SelectionAggregator(store, resolver)


@pytest.fixture
def fixed_clock():
    """Clock frozen at 2024-03-15 09:05."""
    return lambda: datetime(2024, 3, 15, 9, 5)


@pytest.fixture
def sent_payloads():
    """Collects every payload handed to on_send_alert."""
    return []


@pytest.fixture
def alerts_config(sent_payloads):
    return AlertsConfig(
        categories=(
            CategoryConfig(key="school", label="Escolas", items=SCHOOLS),
            CategoryConfig(key="class", label="Turmas", items=CLASSES, depends_on=("school",)),
        ),
        behavior={"on_send_alert": sent_payloads.append},
    )


@pytest.fixture
def session(alerts_config, fixed_clock):
    """Opened session over the school -> class hierarchy."""
    session = AlertWizardSession(alerts_config, clock=fixed_clock)
    session.open()
    return session
