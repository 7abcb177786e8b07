"""
Record Normaliser - Source-Shaped Dictionaries to Typed Entities

The data-access collaborator hands over plain dictionaries in the source's
camelCase shape (``totalUnits``, ``coordinates: {latitude, longitude}``...).
This module maps them to the engine's entity dataclasses. It does not load
anything and does not validate coordinate ranges: records with bad geometry
become entities that the grouper reports as ungroupable.
"""

from __future__ import annotations

import hashlib
import logging
import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Final, Iterable, Optional

from portfolio.market_engine.models import (
    CompetitorProperty,
    Coordinate,
    Entity,
    EntityKind,
    SubjectProperty,
    University,
)


logger = logging.getLogger(__name__)


# =============================================================================
# Rejection Handling
# =============================================================================

RECORD_ERROR_CODES: Final[dict[str, str]] = {
    "INVALID_RECORD": "Record is not a mapping of fields",
    "MISSING_ID": "Required field 'id' not provided",
    "DUPLICATE_ID": "Record id already seen in this batch",
    "MISSING_NAME": "Required field 'name' not provided",
    "MISSING_COORDINATES": "Required field 'coordinates' not provided",
    "INVALID_COORDINATES": "Coordinates are not numeric latitude/longitude",
    "MISSING_FIELD": "A required numeric field was not provided",
    "INVALID_NUMBER": "A numeric field could not be parsed",
    "OUT_OF_RANGE": "A rate lies outside 0..1",
    "UNKNOWN_KIND": "Entity kind is not subject, competitor or university",
}


class RecordError(ValueError):
    """Raised when a record cannot be mapped to an entity."""

    def __init__(self, code: str, record_id: Optional[str] = None, detail: str = ""):
        self.code = code
        self.record_id = record_id
        self.detail = detail
        reason = RECORD_ERROR_CODES.get(code, f"Unknown code: {code}")
        message = f"{record_id or '<no id>'}: {reason}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)


@dataclass(frozen=True)
class RejectionRecord:
    """
    Record that failed normalisation.

    Used for audit trail and data quality monitoring.
    """

    record_id: Optional[str]
    kind: str
    rejection_code: str
    rejection_reason: str
    raw_data_hash: str
    rejected_at: datetime

    @classmethod
    def create(
        cls,
        error: RecordError,
        kind: str,
        raw_data: Optional[dict] = None,
    ) -> "RejectionRecord":
        """Create a rejection record with automatic hash and timestamp."""
        if isinstance(raw_data, dict) and raw_data:
            data_str = str(sorted(raw_data.items(), key=lambda kv: kv[0]))
            raw_hash = hashlib.sha256(data_str.encode()).hexdigest()[:16]
        else:
            raw_hash = "no_data"

        return cls(
            record_id=error.record_id,
            kind=kind,
            rejection_code=error.code,
            rejection_reason=str(error),
            raw_data_hash=raw_hash,
            rejected_at=datetime.now(),
        )


@dataclass
class NormalisedRecords:
    """Entities that normalised cleanly, plus the rejected records."""

    entities: list[Entity] = field(default_factory=list)
    rejections: list[RejectionRecord] = field(default_factory=list)


# =============================================================================
# Field Helpers
# =============================================================================


def _text(record: dict[str, Any], key: str) -> str:
    value = record.get(key)
    return str(value).strip() if value is not None else ""


def _number(
    record: dict[str, Any],
    key: str,
    cast: Callable[[Any], Any],
    required: bool,
) -> Any:
    value = record.get(key)
    if value is None or value == "":
        if required:
            raise RecordError("MISSING_FIELD", record.get("id"), key)
        return None
    try:
        number = cast(value)
    except (ValueError, TypeError, OverflowError):
        raise RecordError("INVALID_NUMBER", record.get("id"), f"{key}={value!r}")
    if isinstance(number, float) and not math.isfinite(number):
        raise RecordError("INVALID_NUMBER", record.get("id"), f"{key}={value!r}")
    return number


def _int(record: dict[str, Any], key: str, required: bool = True) -> Optional[int]:
    return _number(record, key, int, required)


def _float(record: dict[str, Any], key: str, required: bool = True) -> Optional[float]:
    return _number(record, key, float, required)


def _rate(record: dict[str, Any], key: str, required: bool = True) -> Optional[float]:
    """Fraction in 0..1, such as occupancy or prelease."""
    value = _float(record, key, required)
    if value is not None and not 0.0 <= value <= 1.0:
        raise RecordError("OUT_OF_RANGE", record.get("id"), f"{key}={value!r}")
    return value


def _coordinates(record: dict[str, Any]) -> Coordinate:
    raw = record.get("coordinates")
    if not isinstance(raw, dict):
        raise RecordError("MISSING_COORDINATES", record.get("id"))
    try:
        return Coordinate(
            latitude=float(raw["latitude"]),
            longitude=float(raw["longitude"]),
        )
    except (KeyError, ValueError, TypeError):
        raise RecordError("INVALID_COORDINATES", record.get("id"))


def _common(record: dict[str, Any]) -> dict[str, Any]:
    record_id = _text(record, "id")
    if not record_id:
        raise RecordError("MISSING_ID")
    name = _text(record, "name")
    if not name:
        raise RecordError("MISSING_NAME", record_id)
    return {
        "id": record_id,
        "name": name,
        "address": _text(record, "address"),
        "coordinates": _coordinates(record),
        "market": _text(record, "market") or None,
    }


def _building(record: dict[str, Any]) -> dict[str, Any]:
    """Fields shared by subject and competitor records."""
    return {
        "total_units": _int(record, "totalUnits"),
        "total_beds": _int(record, "totalBeds"),
        "distance_to_campus": _float(record, "distanceToCampus"),
        "management_company": _text(record, "managementCompany"),
        "property_type": _text(record, "propertyType"),
        "classification": _text(record, "classification"),
        "year_built": _int(record, "yearBuilt", required=False),
        "year_renovated": _int(record, "yearRenovated", required=False),
        "status": _text(record, "status") or "active",
    }


# =============================================================================
# Record Mapping
# =============================================================================


def subject_from_record(record: dict[str, Any]) -> SubjectProperty:
    return SubjectProperty(
        **_common(record),
        **_building(record),
        average_rent=_float(record, "averageRent"),
        occupancy_rate=_rate(record, "occupancyRate"),
        prelease_rate=_rate(record, "preleaseRate"),
        amenities=tuple(record.get("amenities") or ()),
        description=_text(record, "description"),
    )


def competitor_from_record(record: dict[str, Any]) -> CompetitorProperty:
    return CompetitorProperty(
        **_common(record),
        **_building(record),
        average_rent=_float(record, "averageRent", required=False),
        occupancy_rate=_rate(record, "occupancyRate", required=False),
        prelease_rate=_rate(record, "preleaseRate", required=False),
        associated_subject_property_id=(
            _text(record, "associatedSubjectPropertyId") or None
        ),
        competitive_set_id=_text(record, "competitiveSetId"),
        market_position=_int(record, "marketPosition", required=False),
    )


def university_from_record(record: dict[str, Any]) -> University:
    return University(
        **_common(record),
        total_enrollment=_int(record, "totalEnrollment"),
        undergraduate_enrollment=_int(record, "undergraduateEnrollment"),
        graduate_enrollment=_int(record, "graduateEnrollment"),
        campus_type=_text(record, "campusType"),
        housing_requirement=_text(record, "housingRequirement"),
        academic_calendar=_text(record, "academicCalendar"),
    )


_MAPPERS: Final[dict[EntityKind, Callable[[dict[str, Any]], Entity]]] = {
    EntityKind.SUBJECT: subject_from_record,
    EntityKind.COMPETITOR: competitor_from_record,
    EntityKind.UNIVERSITY: university_from_record,
}


def entity_from_record(record: dict[str, Any], kind: EntityKind | str) -> Entity:
    """
    Map one source record to an entity of the given kind.

    Args:
        record: camelCase dictionary as supplied by the data source
        kind: EntityKind or its string value

    Returns:
        Frozen entity dataclass

    Raises:
        RecordError: If the record or its kind is invalid, or a field is
            missing or malformed
    """
    if not isinstance(record, dict):
        raise RecordError("INVALID_RECORD", detail=type(record).__name__)
    if isinstance(kind, str):
        resolved = EntityKind.from_string(kind)
        if resolved is None:
            raise RecordError("UNKNOWN_KIND", record.get("id"), kind)
        kind = resolved
    return _MAPPERS[kind](record)


def normalise_records(
    subjects: Iterable[dict[str, Any]] = (),
    competitors: Iterable[dict[str, Any]] = (),
    universities: Iterable[dict[str, Any]] = (),
) -> NormalisedRecords:
    """
    Normalise the three source collections into one entity list.

    Order is subjects, then competitors, then universities, each in source
    order. Records that fail are logged and recorded as rejections; they
    never abort the batch. Ids must be unique across all three collections.
    """
    result = NormalisedRecords()
    seen_ids: set[str] = set()

    batches = (
        (EntityKind.SUBJECT, subjects),
        (EntityKind.COMPETITOR, competitors),
        (EntityKind.UNIVERSITY, universities),
    )
    for kind, records in batches:
        for record in records:
            try:
                entity = entity_from_record(record, kind)
                if entity.id in seen_ids:
                    raise RecordError("DUPLICATE_ID", entity.id)
            except RecordError as e:
                result.rejections.append(RejectionRecord.create(e, kind.value, record))
                logger.warning("Rejected %s record: %s", kind.value, e)
                continue

            seen_ids.add(entity.id)
            result.entities.append(entity)

    return result
