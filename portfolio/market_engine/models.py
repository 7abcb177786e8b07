"""
Data models for the Market Engine.

Entities are a tagged union of three independent frozen dataclasses
(SubjectProperty, CompetitorProperty, University). Each carries an
explicit ``kind`` discriminator; engine code branches on ``kind`` rather
than on class hierarchy.

Markets, metrics and bounding regions are derived structures. They are
rebuilt from scratch whenever the entity collection changes.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple, Union

from portfolio.utils.formatting import (
    format_count,
    format_currency,
    format_metric,
    format_rate,
)

from .errors import MalformedCoordinateError


class EntityKind(Enum):
    """Discriminator for the entity tagged union."""
    SUBJECT = "subject"
    COMPETITOR = "competitor"
    UNIVERSITY = "university"

    @classmethod
    def from_string(cls, value: str) -> Optional["EntityKind"]:
        """Convert string to EntityKind, case-insensitive."""
        normalised = value.lower().strip()
        for member in cls:
            if member.value == normalised:
                return member
        return None


PROPERTY_KINDS = frozenset({EntityKind.SUBJECT, EntityKind.COMPETITOR})


@dataclass(frozen=True)
class Coordinate:
    """
    A WGS84 point.

    Construction never fails so that records with bad geometry can still be
    carried through the pipeline; call ``validate()`` at the ingestion
    boundary.
    """
    latitude: float
    longitude: float

    @property
    def is_valid(self) -> bool:
        return -90 <= self.latitude <= 90 and -180 <= self.longitude <= 180

    def validate(self) -> "Coordinate":
        """Return self, or raise MalformedCoordinateError if out of range."""
        if not self.is_valid:
            raise MalformedCoordinateError(self.latitude, self.longitude)
        return self


# =============================================================================
# Entities
# =============================================================================

@dataclass(frozen=True)
class SubjectProperty:
    """
    A property in the managed portfolio.

    Financial and occupancy fields are always recorded for subjects.
    Rates are fractions in [0, 1]; distance is in miles.
    """
    id: str
    name: str
    address: str
    coordinates: Coordinate
    total_units: int
    total_beds: int
    distance_to_campus: float
    average_rent: float
    occupancy_rate: float
    prelease_rate: float

    # Explicit market affiliation (falls back to the address when empty)
    market: Optional[str] = None

    # Descriptive fields (never used by aggregation)
    management_company: str = ""
    property_type: str = ""
    classification: str = ""
    year_built: Optional[int] = None
    year_renovated: Optional[int] = None
    status: str = "active"
    amenities: Tuple[str, ...] = ()
    description: str = ""

    kind: EntityKind = field(default=EntityKind.SUBJECT, init=False)


@dataclass(frozen=True)
class CompetitorProperty:
    """
    A property competing against one of the subject properties.

    ``associated_subject_property_id`` is a lookup-only reference; the
    competitor does not own or embed the subject. Financial and occupancy
    fields are optional because competitor surveys are often incomplete.
    """
    id: str
    name: str
    address: str
    coordinates: Coordinate
    total_units: int
    total_beds: int
    distance_to_campus: float

    average_rent: Optional[float] = None
    occupancy_rate: Optional[float] = None
    prelease_rate: Optional[float] = None

    associated_subject_property_id: Optional[str] = None
    competitive_set_id: str = ""
    market_position: Optional[int] = None  # 1-10 scale

    market: Optional[str] = None

    management_company: str = ""
    property_type: str = ""
    classification: str = ""
    year_built: Optional[int] = None
    year_renovated: Optional[int] = None
    status: str = "active"

    kind: EntityKind = field(default=EntityKind.COMPETITOR, init=False)


@dataclass(frozen=True)
class University:
    """A university campus that anchors demand in a market."""
    id: str
    name: str
    address: str
    coordinates: Coordinate
    total_enrollment: int
    undergraduate_enrollment: int
    graduate_enrollment: int

    market: Optional[str] = None

    campus_type: str = ""  # public / private
    housing_requirement: str = ""
    academic_calendar: str = ""

    kind: EntityKind = field(default=EntityKind.UNIVERSITY, init=False)


Entity = Union[SubjectProperty, CompetitorProperty, University]
Property = Union[SubjectProperty, CompetitorProperty]


def is_property(entity: Entity) -> bool:
    """True for subject and competitor properties."""
    return entity.kind in PROPERTY_KINDS


def is_university(entity: Entity) -> bool:
    return entity.kind == EntityKind.UNIVERSITY


# =============================================================================
# Derived Structures
# =============================================================================

@dataclass(frozen=True)
class BoundingRegion:
    """
    Axis-aligned latitude/longitude rectangle.

    Does not handle antimeridian crossing; markets are city-scale.
    """
    south: float
    west: float
    north: float
    east: float

    def __post_init__(self):
        if self.south > self.north:
            raise ValueError("south must be <= north")
        if self.west > self.east:
            raise ValueError("west must be <= east")

    @classmethod
    def from_coordinates(cls, coordinates: Iterable[Coordinate]) -> "BoundingRegion":
        """Smallest region enclosing every coordinate."""
        coords = list(coordinates)
        if not coords:
            raise ValueError("cannot bound an empty coordinate set")
        return cls(
            south=min(c.latitude for c in coords),
            west=min(c.longitude for c in coords),
            north=max(c.latitude for c in coords),
            east=max(c.longitude for c in coords),
        )

    @property
    def center(self) -> Coordinate:
        return Coordinate(
            latitude=(self.south + self.north) / 2,
            longitude=(self.west + self.east) / 2,
        )

    @property
    def lat_span(self) -> float:
        return self.north - self.south

    @property
    def lng_span(self) -> float:
        return self.east - self.west

    def contains(self, coordinate: Coordinate) -> bool:
        return (
            self.south <= coordinate.latitude <= self.north
            and self.west <= coordinate.longitude <= self.east
        )

    def padded(self, fraction: float, min_span_degrees: float = 0.0) -> "BoundingRegion":
        """
        Extend each side by ``fraction`` of the axis span.

        Axes narrower than ``min_span_degrees`` are first widened about
        their midpoint. Results are clamped to valid latitude/longitude.
        """
        if fraction < 0:
            raise ValueError("padding fraction must be non-negative")

        south, north = _widen(self.south, self.north, min_span_degrees)
        west, east = _widen(self.west, self.east, min_span_degrees)

        lat_pad = (north - south) * fraction
        lng_pad = (east - west) * fraction

        return BoundingRegion(
            south=max(-90.0, south - lat_pad),
            west=max(-180.0, west - lng_pad),
            north=min(90.0, north + lat_pad),
            east=min(180.0, east + lng_pad),
        )

    def to_dict(self) -> dict:
        return {
            "south": self.south,
            "west": self.west,
            "north": self.north,
            "east": self.east,
        }


def _widen(low: float, high: float, min_span: float) -> Tuple[float, float]:
    if high - low >= min_span:
        return low, high
    mid = (low + high) / 2
    return mid - min_span / 2, mid + min_span / 2


@dataclass(frozen=True)
class AggregateMetrics:
    """
    Summary statistics over a set of entities.

    Averages are None ("no data") when no member carries the field.
    Universities only count towards ``university_count`` and
    ``total_enrollment``.
    """
    total_units: int
    property_count: int
    average_occupancy: Optional[float]
    average_rent: Optional[float]

    total_beds: int = 0
    average_prelease: Optional[float] = None
    subject_count: int = 0
    competitor_count: int = 0
    university_count: int = 0
    total_enrollment: int = 0

    AVERAGE_FIELDS = ("average_occupancy", "average_rent", "average_prelease")

    def missing_fields(self) -> List[str]:
        """Names of average fields holding the no-data sentinel."""
        return [name for name in self.AVERAGE_FIELDS if getattr(self, name) is None]

    @property
    def has_data(self) -> bool:
        return self.property_count > 0

    def to_dict(self) -> dict:
        return {
            "total_units": self.total_units,
            "total_beds": self.total_beds,
            "property_count": self.property_count,
            "subject_count": self.subject_count,
            "competitor_count": self.competitor_count,
            "university_count": self.university_count,
            "total_enrollment": self.total_enrollment,
            "average_occupancy": self.average_occupancy,
            "average_rent": self.average_rent,
            "average_prelease": self.average_prelease,
        }


@dataclass(frozen=True)
class Market:
    """
    A geographic cluster of entities sharing a market key.

    Built only by ``build_markets``. ``members`` references the caller's
    entity objects; if the underlying collection changes the market is stale
    and must be rebuilt.
    """
    key: str
    members: Tuple[Entity, ...]
    center: Coordinate
    radius_m: float
    bounds: BoundingRegion
    metrics: AggregateMetrics

    @property
    def name(self) -> str:
        return self.key

    @property
    def member_count(self) -> int:
        return len(self.members)

    @property
    def properties(self) -> List[Property]:
        return [m for m in self.members if is_property(m)]

    @property
    def subject_properties(self) -> List[SubjectProperty]:
        return [m for m in self.members if m.kind == EntityKind.SUBJECT]

    @property
    def competitor_properties(self) -> List[CompetitorProperty]:
        return [m for m in self.members if m.kind == EntityKind.COMPETITOR]

    @property
    def universities(self) -> List[University]:
        return [m for m in self.members if m.kind == EntityKind.UNIVERSITY]

    @property
    def coordinates(self) -> List[Coordinate]:
        return [m.coordinates for m in self.members]

    def contains(self, entity_id: str) -> bool:
        return any(m.id == entity_id for m in self.members)

    def to_summary(self) -> Dict[str, str]:
        """Display strings for a market summary card."""
        m = self.metrics
        return {
            "market": self.key,
            "properties": format_count(m.property_count),
            "universities": format_count(m.university_count),
            "total_units": format_count(m.total_units),
            "average_occupancy": format_metric(m.average_occupancy, format_rate),
            "average_rent": format_metric(m.average_rent, format_currency),
            "average_prelease": format_metric(m.average_prelease, format_rate),
        }


class DrillDownLevel(Enum):
    """Navigation level of the dashboard."""
    NATIONAL = "national"
    MARKET_DETAIL = "market_detail"


@dataclass(frozen=True)
class SelectionState:
    """
    Current market and entity selection.

    Immutable; every transition produces a new state.
    """
    selected_market_key: Optional[str] = None
    selected_entity_id: Optional[str] = None
    selected_entity_kind: Optional[EntityKind] = None

    def __post_init__(self):
        if (self.selected_entity_id is None) != (self.selected_entity_kind is None):
            raise ValueError("entity id and kind must be set together")

    @property
    def level(self) -> DrillDownLevel:
        if self.selected_market_key is None:
            return DrillDownLevel.NATIONAL
        return DrillDownLevel.MARKET_DETAIL

    @property
    def has_entity(self) -> bool:
        return self.selected_entity_id is not None
