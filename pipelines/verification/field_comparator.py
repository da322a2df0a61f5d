"""
Field Comparison for matched pairs.

Responsibilities:
- Score each comparable field of a declared/authoritative pair.
- Classify each field against the verification thresholds.

Non-Responsibilities:
- No aggregation across fields.
- No persistence.

Invariant:
A missing or unreadable value on either side is never scored as a
mismatch; it is classified cannot_verify.
"""

from typing import Any, List, Mapping, Optional, Sequence

from rostercheck.config import VerificationConfig
from rostercheck.normalize import is_missing, parse_date, parse_grade
from rostercheck.records import FieldComparison, FieldKind, FieldSpec, VerificationStatus

from pipelines.entity_resolution.features import dob_agreement, string_similarity

DATE_FIELD_NAMES = {"date_of_birth", "dateofbirth", "dob", "birth_date", "birthdate"}


def classify(similarity: float, config: Optional[VerificationConfig] = None) -> VerificationStatus:
    config = config or VerificationConfig()
    if similarity >= config.fully_verified_threshold:
        return VerificationStatus.FULLY_VERIFIED
    if similarity >= config.partially_verified_threshold:
        return VerificationStatus.PARTIALLY_VERIFIED
    return VerificationStatus.FRAUD


def grade_similarity(a: float, b: float, scale_max: float) -> float:
    """Linear closeness 1 - min(|a - b| / scale_max, 1)."""
    return 1.0 - min(abs(a - b) / scale_max, 1.0)


def _as_text(value: Any) -> Optional[str]:
    if is_missing(value):
        return None
    return str(value).strip()


def compare_field(
    spec: FieldSpec,
    declared_value: Any,
    authoritative_value: Any,
    config: Optional[VerificationConfig] = None,
) -> FieldComparison:
    config = config or VerificationConfig()

    def result(score: float, status: VerificationStatus) -> FieldComparison:
        return FieldComparison(
            field_name=spec.label,
            source_value=_as_text(declared_value),
            target_value=_as_text(authoritative_value),
            similarity_score=score,
            verification_status=status,
        )

    if is_missing(declared_value) or is_missing(authoritative_value):
        return result(0.0, VerificationStatus.CANNOT_VERIFY)

    if spec.kind == FieldKind.NUMERIC:
        a = parse_grade(declared_value)
        b = parse_grade(authoritative_value)
        if a is None or b is None:
            return result(0.0, VerificationStatus.CANNOT_VERIFY)
        similarity = grade_similarity(a, b, spec.scale_max or config.grade_scale_max)
    elif spec.kind == FieldKind.DATE:
        if parse_date(declared_value) is None or parse_date(authoritative_value) is None:
            return result(0.0, VerificationStatus.CANNOT_VERIFY)
        similarity = dob_agreement(declared_value, authoritative_value)
    else:
        similarity = string_similarity(str(declared_value), str(authoritative_value))

    return result(similarity, classify(similarity, config))


def infer_field_specs(
    declared: Mapping[str, Any],
    authoritative: Mapping[str, Any],
) -> List[FieldSpec]:
    """
    Guess field specs from the keys present on either side.

    Birth date keys compare as dates, keys whose present values all read
    as numbers compare as grades, everything else as text.
    """
    specs = []
    for name in sorted(set(declared) | set(authoritative)):
        values = [v for v in (declared.get(name), authoritative.get(name)) if not is_missing(v)]
        if name.lower() in DATE_FIELD_NAMES:
            kind = FieldKind.DATE
        elif values and all(parse_grade(v) is not None for v in values):
            kind = FieldKind.NUMERIC
        else:
            kind = FieldKind.TEXT
        specs.append(FieldSpec(name=name, kind=kind))
    return specs


def compare_fields(
    declared: Mapping[str, Any],
    authoritative: Mapping[str, Any],
    field_specs: Optional[Sequence[FieldSpec]] = None,
    config: Optional[VerificationConfig] = None,
) -> List[FieldComparison]:
    """
    Compare every field named by the specs.

    Args:
        declared: Field values from the admissions platform record
        authoritative: Field values from the transcript record
        field_specs: Fields to compare (inferred from the keys when omitted)
        config: Classification thresholds and grading scale

    Returns:
        One FieldComparison per spec, in spec order
    """
    if field_specs is None:
        field_specs = infer_field_specs(declared, authoritative)
    return [
        compare_field(spec, declared.get(spec.name), authoritative.get(spec.authoritative_name), config)
        for spec in field_specs
    ]
