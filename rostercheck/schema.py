from typing import Any, Dict, List

from .records import FieldKind

SIDES = {"declared", "authoritative"}
FIELD_KINDS = {k.value for k in FieldKind}


def _is_non_empty_str(v: Any) -> bool:
    return isinstance(v, str) and v.strip() != ""


def _is_int(v: Any) -> bool:
    return isinstance(v, int) and not isinstance(v, bool)


def validate_record(record: Any, where: str) -> List[str]:
    """Validate one normalized person record."""
    if not isinstance(record, dict):
        return [f"{where}: record must be an object"]

    errors: List[str] = []
    if not _is_int(record.get("id")):
        errors.append(f"{where}: field 'id' must be an integer")

    has_parts = _is_non_empty_str(record.get("first_name")) or _is_non_empty_str(record.get("last_name"))
    if not has_parts and not _is_non_empty_str(record.get("full_name")):
        errors.append(f"{where}: needs 'first_name'/'last_name' or 'full_name'")

    for f in ("first_name", "last_name", "full_name", "date_of_birth"):
        if record.get(f) is not None and not isinstance(record[f], str):
            errors.append(f"{where}: field '{f}' must be a string if provided")

    if "fields" in record and not isinstance(record["fields"], dict):
        errors.append(f"{where}: field 'fields' must be an object")

    return errors


def validate_roster(data: Dict[str, Any]) -> List[str]:
    """
    Returns a list of validation error messages. Empty list means valid.

    Checks the shape of a roster document: files with a side and unique
    integer ids, records with ids unique per file, and optional field specs.
    """
    if not isinstance(data, dict):
        return ["Roster document must be an object"]

    errors: List[str] = []

    files = data.get("files")
    if not isinstance(files, list) or not files:
        errors.append("Field 'files' must be a non-empty list")
        files = []

    seen_files = set()
    for i, entry in enumerate(files):
        where = f"files[{i}]"
        if not isinstance(entry, dict):
            errors.append(f"{where}: must be an object")
            continue
        file_id = entry.get("file_id")
        if not _is_int(file_id):
            errors.append(f"{where}: field 'file_id' must be an integer")
        elif file_id in seen_files:
            errors.append(f"{where}: duplicate file_id {file_id}")
        else:
            seen_files.add(file_id)
        if entry.get("side") not in SIDES:
            errors.append(f"{where}: field 'side' must be one of {sorted(SIDES)}")
        if "program_id" in entry and not _is_int(entry["program_id"]):
            errors.append(f"{where}: field 'program_id' must be an integer if provided")

        records = entry.get("records", [])
        if not isinstance(records, list):
            errors.append(f"{where}: field 'records' must be a list")
            continue
        seen_ids = set()
        for j, record in enumerate(records):
            errors.extend(validate_record(record, f"{where}.records[{j}]"))
            if isinstance(record, dict) and _is_int(record.get("id")):
                if record["id"] in seen_ids:
                    errors.append(f"{where}.records[{j}]: duplicate id {record['id']}")
                seen_ids.add(record["id"])

    specs = data.get("fields", [])
    if not isinstance(specs, list):
        errors.append("Field 'fields' must be a list if provided")
        specs = []
    for i, spec in enumerate(specs):
        where = f"fields[{i}]"
        if not isinstance(spec, dict) or not _is_non_empty_str(spec.get("name")):
            errors.append(f"{where}: needs a non-empty 'name'")
            continue
        if spec.get("kind", "text") not in FIELD_KINDS:
            errors.append(f"{where}: field 'kind' must be one of {sorted(FIELD_KINDS)}")
        scale = spec.get("scale_max")
        if scale is not None and (isinstance(scale, bool) or not isinstance(scale, (int, float)) or scale <= 0):
            errors.append(f"{where}: field 'scale_max' must be a positive number")

    return errors
