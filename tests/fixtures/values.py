"""
Table definition fixtures shared across tests.

The tables describe a small veterinary clinic: owners, pets,
veterinarians and appointments.
"""
import pytest
from dbmodel import Model


@pytest.fixture
def owner_model():
    return Model('Owner', [
        {'name': 'id', 'type': 'INTEGER', 'pk': True},
        {'name': 'name', 'type': 'TEXT', 'nullable': False},
        {'name': 'phone', 'type': 'INTEGER', 'nullable': False, 'unique': True},
        {'name': 'address', 'type': 'TEXT'},
    ])


@pytest.fixture
def pet_model():
    return Model('Pet', [
        {'name': 'id', 'type': 'INTEGER', 'pk': True},
        {'name': 'name', 'type': 'TEXT', 'nullable': False},
        {'name': 'species', 'type': 'TEXT', 'nullable': False},
        {'name': 'breed', 'type': 'TEXT', 'nullable': False},
        {'name': 'owner_id', 'type': 'INTEGER', 'references': 'Owner.id'},
    ])


@pytest.fixture
def vet_model():
    return Model('Veterinarian', [
        {'name': 'id', 'type': 'INTEGER', 'pk': True},
        {'name': 'name', 'type': 'TEXT'},
    ])


@pytest.fixture
def appointment_model():
    # dates are unix epoch seconds
    return Model('Appointment', [
        {'name': 'id', 'type': 'INTEGER', 'pk': True},
        {'name': 'date', 'type': 'INTEGER', 'nullable': False},
        {'name': 'pet_id', 'type': 'INTEGER', 'nullable': False, 'references': 'Pet.id'},
        {'name': 'vet_id', 'type': 'INTEGER', 'nullable': False, 'references': 'Veterinarian.id'},
    ])


@pytest.fixture
def clinic_models(owner_model, pet_model, vet_model, appointment_model):
    """All clinic tables, in dependency order."""
    return [owner_model, vet_model, pet_model, appointment_model]
