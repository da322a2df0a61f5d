"""
Roster sources: the normalizer side of the reconciliation.

The core never parses spreadsheets. It reads normalized identities and
raw field values through a RosterSource; JsonRosterSource serves them
from a JSON document for the CLI and tests.
"""

import json
from abc import ABC, abstractmethod
from itertools import product
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from .normalize import split_full_name
from .records import FieldSpec, IdentityRecord
from .schema import validate_roster


class RosterSource(ABC):
    """Supplies identities and field values keyed by stable integer ids."""

    @abstractmethod
    def list_identities(self, file_id: int) -> List[IdentityRecord]:
        """Identities of one roster file."""

    @abstractmethod
    def get_field_values(self, file_id: int, candidate_id: int) -> Dict[str, Any]:
        """Raw comparable values of one record (empty if unknown)."""

    @abstractmethod
    def list_file_pairs(self, program_id: int) -> List[Tuple[int, int]]:
        """Every (declared file, authoritative file) pair of a program."""

    def field_specs(self) -> Optional[List[FieldSpec]]:
        """Fields to compare; None lets the comparator infer them."""
        return None

    def get_identity(self, file_id: int, candidate_id: int) -> Optional[IdentityRecord]:
        for identity in self.list_identities(file_id):
            if identity.id == candidate_id:
                return identity
        return None


class JsonRosterSource(RosterSource):
    """
    Roster source backed by a JSON document:

        {
          "fields": [{"name": "maths", "kind": "numeric"}],
          "files": [
            {"file_id": 1, "side": "declared", "program_id": 7,
             "records": [{"id": 10, "full_name": "Jean Dupont",
                          "date_of_birth": "1990-05-15",
                          "fields": {"maths": "14,5"}}]}
          ]
        }
    """

    def __init__(self, data: Dict[str, Any]):
        errors = validate_roster(data)
        if errors:
            raise ValueError("Invalid roster document: " + "; ".join(errors))

        self._files: Dict[int, Dict[str, Any]] = {}
        self._identities: Dict[int, List[IdentityRecord]] = {}
        self._values: Dict[Tuple[int, int], Dict[str, Any]] = {}

        for entry in data["files"]:
            file_id = entry["file_id"]
            self._files[file_id] = entry
            identities = []
            for record in entry.get("records", []):
                identity = self._to_identity(record)
                identities.append(identity)
                self._values[(file_id, identity.id)] = dict(record.get("fields") or {})
            self._identities[file_id] = identities

        specs = data.get("fields")
        self._field_specs = [FieldSpec.from_dict(s) for s in specs] if specs else None

    @classmethod
    def from_file(cls, path: Path) -> "JsonRosterSource":
        with Path(path).open("r", encoding="utf-8") as f:
            return cls(json.load(f))

    @staticmethod
    def _to_identity(record: Dict[str, Any]) -> IdentityRecord:
        first = record.get("first_name")
        last = record.get("last_name")
        if not first and not last:
            first, last = split_full_name(record.get("full_name"))
        return IdentityRecord(
            id=record["id"],
            first_name=first,
            last_name=last,
            date_of_birth=record.get("date_of_birth"),
        )

    def list_identities(self, file_id: int) -> List[IdentityRecord]:
        return list(self._identities.get(file_id, []))

    def get_identity(self, file_id: int, candidate_id: int) -> Optional[IdentityRecord]:
        if (file_id, candidate_id) not in self._values:
            return None
        return super().get_identity(file_id, candidate_id)

    def get_field_values(self, file_id: int, candidate_id: int) -> Dict[str, Any]:
        return dict(self._values.get((file_id, candidate_id), {}))

    def list_file_pairs(self, program_id: int) -> List[Tuple[int, int]]:
        def files_on(side):
            return sorted(
                fid for fid, entry in self._files.items()
                if entry["side"] == side and entry.get("program_id") == program_id
            )

        return list(product(files_on("declared"), files_on("authoritative")))

    def field_specs(self) -> Optional[List[FieldSpec]]:
        return self._field_specs
