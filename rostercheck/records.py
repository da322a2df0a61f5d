"""
Domain records shared by the matcher, the comparator and the store.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional


class VerificationStatus(str, Enum):
    """Trustworthiness of a field or of a whole match."""

    FULLY_VERIFIED = "fully_verified"
    PARTIALLY_VERIFIED = "partially_verified"
    FRAUD = "fraud"
    CANNOT_VERIFY = "cannot_verify"


class FieldKind(str, Enum):
    TEXT = "text"
    NUMERIC = "numeric"
    DATE = "date"


@dataclass(frozen=True)
class IdentityRecord:
    """Canonical person record produced by the normalizer. Never persisted."""

    id: int
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    date_of_birth: Optional[Any] = None

    @property
    def full_name(self) -> str:
        return " ".join(p for p in (self.first_name, self.last_name) if p)


@dataclass(frozen=True)
class MatchedPair:
    """An accepted one-to-one assignment proposed by the matcher."""

    source: IdentityRecord
    target: IdentityRecord
    score: float
    name_score: float
    dob_score: Optional[float] = None  # None when one side had no birth date


@dataclass(frozen=True)
class FieldSpec:
    """
    A comparable attribute.

    ``name`` is the declared field, ``target_name`` the authoritative field it
    maps to (same name when omitted). ``scale_max`` overrides the configured
    grading scale for numeric fields.
    """

    name: str
    kind: FieldKind = FieldKind.TEXT
    target_name: Optional[str] = None
    scale_max: Optional[float] = None

    @property
    def authoritative_name(self) -> str:
        return self.target_name or self.name

    @property
    def label(self) -> str:
        if self.target_name and self.target_name != self.name:
            return f"{self.name} -> {self.target_name}"
        return self.name

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FieldSpec":
        return cls(
            name=data["name"],
            kind=FieldKind(data.get("kind", FieldKind.TEXT.value)),
            target_name=data.get("target_name"),
            scale_max=data.get("scale_max"),
        )


@dataclass(frozen=True)
class FieldComparison:
    """Outcome of comparing one field of a matched pair."""

    field_name: str
    source_value: Optional[str]
    target_value: Optional[str]
    similarity_score: float
    verification_status: VerificationStatus

    def to_dict(self) -> Dict[str, Any]:
        return {
            "field_name": self.field_name,
            "source_value": self.source_value,
            "target_value": self.target_value,
            "similarity_score": round(self.similarity_score, 4),
            "verification_status": self.verification_status.value,
        }


@dataclass(frozen=True)
class VerificationSummary:
    average_similarity: float
    overall_status: VerificationStatus


@dataclass
class ComparisonReport:
    """Match identity summary, verification summary and ordered field results."""

    match_id: int
    source_file_id: int
    target_file_id: int
    source_candidate_id: int
    target_candidate_id: int
    created_at: Optional[datetime]
    average_similarity: float
    overall_verification_status: VerificationStatus
    fields: List[FieldComparison] = field(default_factory=list)
    full_name: Optional[str] = None
    date_of_birth: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "match_id": self.match_id,
            "candidate": {
                "source_candidate_id": self.source_candidate_id,
                "target_candidate_id": self.target_candidate_id,
                "full_name": self.full_name,
                "date_of_birth": self.date_of_birth,
            },
            "source_file_id": self.source_file_id,
            "target_file_id": self.target_file_id,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "average_similarity": round(self.average_similarity, 4),
            "overall_verification_status": self.overall_verification_status.value,
            "fields": [f.to_dict() for f in self.fields],
        }


@dataclass
class CandidateStatus:
    """Latest verdict of one declared candidate within a program."""

    candidate_id: int
    source_file_id: int
    full_name: Optional[str]
    date_of_birth: Optional[str]
    verification_status: VerificationStatus = VerificationStatus.CANNOT_VERIFY
    match_id: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "candidate_id": self.candidate_id,
            "source_file_id": self.source_file_id,
            "full_name": self.full_name,
            "date_of_birth": self.date_of_birth,
            "verification_status": self.verification_status.value,
            "match_id": self.match_id,
        }
