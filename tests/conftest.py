"""Shared pytest fixtures for movekit tests."""

import tempfile
import os
from datetime import date
import pytest

from movekit.database.factories import create_sqlite_database
from movekit.domain.directory import DirectoryService
from movekit.domain.movement import MovementService
from movekit.domain.sinks import RecordingInvalidator, RecordingNotifier
from movekit.domain.taxonomy import TaxonomyService

ORG = "org-1"
PROJECT = "project-1"
USER = "user-1"
TODAY = date(2024, 1, 15)


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    db = create_sqlite_database(database_path=db_path)
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def taxonomy_service(temp_db):
    """Create a TaxonomyService with a temporary database."""
    return TaxonomyService(temp_db)


@pytest.fixture
def directory_service(temp_db):
    """Create a DirectoryService with a temporary database."""
    return DirectoryService(temp_db)


@pytest.fixture
def invalidator():
    return RecordingInvalidator()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def movement_service(temp_db, invalidator, notifier):
    """Create a MovementService that records cache tags and notifications."""
    return MovementService(temp_db, invalidator=invalidator, notifier=notifier)


@pytest.fixture
def concepts(taxonomy_service):
    """Create the default concept tree; returns concept IDs keyed by path."""
    from movekit.cli.commands.init_concepts import INITIAL_CONCEPTS

    concept_ids = {}
    for name, parent_path, view_mode, override, concept_id in INITIAL_CONCEPTS:
        created_id = taxonomy_service.create_concept(
            name=name,
            parent_path=parent_path,
            view_mode=view_mode,
            variant_override=override,
            concept_id=concept_id,
        )
        path = f"{parent_path} > {name}" if parent_path else name
        concept_ids[path] = created_id
    return concept_ids


@pytest.fixture
def taxonomy(taxonomy_service, concepts):
    """Taxonomy over the default concept tree."""
    return taxonomy_service.load_taxonomy(ORG)


@pytest.fixture
def directory(directory_service):
    """Create USD/ARS, Caja/Banco and one member; returns IDs by name."""
    ids = {
        "USD": directory_service.add_currency(ORG, "USD", "Dólar"),
        "ARS": directory_service.add_currency(ORG, "ARS", "Peso"),
        "Banco": directory_service.add_wallet(ORG, "Banco"),
        "Caja": directory_service.add_wallet(ORG, "Caja"),
        "member": directory_service.add_member(ORG, USER, "Ana Pérez"),
        "partner": directory_service.add_member(ORG, "user-2", "Bruno Díaz"),
    }
    return ids


@pytest.fixture
def new_form(movement_service, concepts, directory):
    """Factory for new-movement coordinators seeded with defaults."""

    def _new_form():
        return movement_service.new_form(ORG, user_id=USER, project_id=PROJECT, today=TODAY)

    return _new_form


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()
