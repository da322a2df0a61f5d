"""
Pytest configuration and shared fixtures.
"""

import pytest
from typing import Any, Dict, List

from rostercheck.database import init_database, get_session_factory
from rostercheck.records import IdentityRecord
from rostercheck.reconcile import ReconciliationService
from rostercheck.sources import JsonRosterSource


@pytest.fixture
def db_path(tmp_path):
    """Initialized temporary SQLite database."""
    path = tmp_path / "test.db"
    init_database(path)
    return path


@pytest.fixture
def session_factory(db_path):
    return get_session_factory(db_path)


@pytest.fixture
def service(session_factory) -> ReconciliationService:
    return ReconciliationService(session_factory)


@pytest.fixture
def declared_identities() -> List[IdentityRecord]:
    """Declared (admissions platform) identities."""
    return [
        IdentityRecord(1, "Jean", "Dupont", "1990-05-15"),
        IdentityRecord(2, "Marie", "Curie", "1992-11-07"),
        IdentityRecord(3, "François", "Gérard", "1991-02-20"),
    ]


@pytest.fixture
def authoritative_identities() -> List[IdentityRecord]:
    """Authoritative (transcript) identities, in a different order."""
    return [
        IdentityRecord(12, "Francois", "Gerard", "20/02/1991"),
        IdentityRecord(10, "Jean", "Dupond", "1990-05-15"),
        IdentityRecord(11, "Marie", "Curie", "1992-11-07"),
    ]


@pytest.fixture
def roster_document() -> Dict[str, Any]:
    """Roster with one declared file and two transcript files in program 7."""
    return {
        "fields": [
            {"name": "maths", "kind": "numeric"},
            {"name": "physics", "kind": "numeric", "target_name": "physique"},
        ],
        "files": [
            {
                "file_id": 1,
                "side": "declared",
                "program_id": 7,
                "records": [
                    {"id": 1, "full_name": "Jean Dupont", "date_of_birth": "1990-05-15",
                     "fields": {"maths": "14,5", "physics": "12"}},
                    {"id": 2, "first_name": "Marie", "last_name": "Curie", "date_of_birth": "1992-11-07",
                     "fields": {"maths": "19", "physics": "18"}},
                ],
            },
            {
                "file_id": 2,
                "side": "authoritative",
                "program_id": 7,
                "records": [
                    {"id": 20, "full_name": "Jean Dupont", "date_of_birth": "15/05/1990",
                     "fields": {"maths": "14.5", "physique": "12"}},
                    {"id": 21, "full_name": "Marie Curie", "date_of_birth": "1992-11-07",
                     "fields": {"maths": "8", "physique": "18"}},
                ],
            },
            {
                "file_id": 3,
                "side": "authoritative",
                "program_id": 7,
                "records": [
                    {"id": 30, "full_name": "Marie Curie", "date_of_birth": "1992-11-07",
                     "fields": {"maths": "19"}},
                ],
            },
            {
                "file_id": 4,
                "side": "authoritative",
                "program_id": 8,
                "records": [],
            },
        ],
    }


@pytest.fixture
def roster_source(roster_document) -> JsonRosterSource:
    return JsonRosterSource(roster_document)


@pytest.fixture
def sourced_service(session_factory, roster_source) -> ReconciliationService:
    return ReconciliationService(session_factory, source=roster_source)
