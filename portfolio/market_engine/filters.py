"""
Filter/Sort Engine for the Market Engine

Composable predicates and a per-key comparator for list and table views:
- Entity kind membership (subject / competitor / university / all)
- Case-insensitive substring search over name or address
- Sort by name, distance to campus, average rent or occupancy rate

Each sort key has its own default direction: nearest first for distance,
highest first for rent and occupancy.
"""

import unicodedata
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Iterable, List, Optional

from .models import CompetitorProperty, Entity, EntityKind, PROPERTY_KINDS


Predicate = Callable[[Entity], bool]


class KindFilter(Enum):
    """Entity kinds shown in a list view."""
    ALL = "all"
    PROPERTIES = "properties"  # subjects and competitors
    SUBJECT = "subject"
    COMPETITOR = "competitor"
    UNIVERSITY = "university"

    @property
    def kinds(self) -> frozenset:
        if self == KindFilter.ALL:
            return frozenset(EntityKind)
        if self == KindFilter.PROPERTIES:
            return PROPERTY_KINDS
        return frozenset({EntityKind(self.value)})


class SortDirection(Enum):
    ASCENDING = "asc"
    DESCENDING = "desc"


class SortKey(Enum):
    """Sortable columns."""
    NAME = "name"
    DISTANCE_TO_CAMPUS = "distance"
    AVERAGE_RENT = "rent"
    OCCUPANCY_RATE = "occupancy"

    @property
    def default_direction(self) -> SortDirection:
        if self in (SortKey.AVERAGE_RENT, SortKey.OCCUPANCY_RATE):
            return SortDirection.DESCENDING
        return SortDirection.ASCENDING


# =============================================================================
# Predicates
# =============================================================================

def kind_filter(kind: KindFilter) -> Predicate:
    """Predicate matching entities whose kind is covered by ``kind``."""
    allowed = kind.kinds

    def _matches(entity: Entity) -> bool:
        return entity.kind in allowed

    return _matches


def text_filter(query: str) -> Predicate:
    """
    Predicate matching a case-insensitive substring of name or address.

    The query is matched as typed, surrounding whitespace included. An
    empty query matches everything.
    """
    needle = (query or "").casefold()

    def _matches(entity: Entity) -> bool:
        if not needle:
            return True
        return (
            needle in (entity.name or "").casefold()
            or needle in (entity.address or "").casefold()
        )

    return _matches


def all_of(*predicates: Predicate) -> Predicate:
    """Conjunction of predicates; no predicates matches everything."""

    def _matches(entity: Entity) -> bool:
        return all(p(entity) for p in predicates)

    return _matches


@dataclass(frozen=True)
class EntityFilter:
    """Kind and search-text filter as set from a list view's controls."""
    kind: KindFilter = KindFilter.ALL
    query: str = ""
    _predicate: Predicate = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(
            self, "_predicate", all_of(kind_filter(self.kind), text_filter(self.query))
        )

    def as_predicate(self) -> Predicate:
        return self._predicate

    def __call__(self, entity: Entity) -> bool:
        return self._predicate(entity)


# =============================================================================
# Sorting
# =============================================================================

def name_collation_key(name: str) -> str:
    """
    Locale-independent collation key approximating natural name order.

    Accents are stripped and case folded so "Élan" sorts with "Elan"
    rather than after "Z".
    """
    decomposed = unicodedata.normalize("NFKD", name or "")
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return stripped.casefold()


def _numeric(entity: Entity, attribute: str) -> float:
    """Numeric sort value; absent or unrecorded fields order as zero."""
    if entity.kind == EntityKind.UNIVERSITY:
        return 0.0
    value = getattr(entity, attribute)
    return float(value) if value is not None else 0.0


def _sort_value(sort_key: SortKey) -> Callable[[Entity], object]:
    if sort_key == SortKey.NAME:
        return lambda e: name_collation_key(e.name)
    if sort_key == SortKey.DISTANCE_TO_CAMPUS:
        return lambda e: _numeric(e, "distance_to_campus")
    if sort_key == SortKey.AVERAGE_RENT:
        return lambda e: _numeric(e, "average_rent")
    if sort_key == SortKey.OCCUPANCY_RATE:
        return lambda e: _numeric(e, "occupancy_rate")
    raise ValueError(f"Unsupported sort key: {sort_key}")


def sort_entities(
    entities: Iterable[Entity],
    sort_key: SortKey = SortKey.NAME,
    direction: Optional[SortDirection] = None,
) -> List[Entity]:
    """
    Return a new list ordered by ``sort_key``.

    The sort is stable in both directions: entities with equal keys keep
    their input order.

    Args:
        entities: Entities to order (not modified)
        sort_key: Column to sort by
        direction: Explicit direction, or None for the key's default
    """
    direction = direction or sort_key.default_direction
    return sorted(
        entities,
        key=_sort_value(sort_key),
        reverse=direction == SortDirection.DESCENDING,
    )


def select(
    entities: Iterable[Entity],
    predicate: Optional[Predicate] = None,
    sort_key: SortKey = SortKey.NAME,
    direction: Optional[SortDirection] = None,
) -> List[Entity]:
    """
    Filter then sort entities for presentation.

    Args:
        entities: Entities to select from, e.g. a market's members
        predicate: Inclusion test (default: include everything)
        sort_key: Column to sort by
        direction: Explicit direction, or None for the key's default

    Returns:
        New ordered list; the input is left untouched
    """
    matched = [e for e in entities if predicate is None or predicate(e)]
    return sort_entities(matched, sort_key, direction)


def competitive_set(
    entities: Iterable[Entity],
    subject_id: Optional[str] = None,
    competitive_set_id: Optional[str] = None,
) -> List[CompetitorProperty]:
    """
    Competitors in a subject's competitive set, in input order.

    A competitor belongs if it references ``subject_id`` directly or carries
    ``competitive_set_id``. Both are weak id references; the subject itself
    need not be in ``entities``.
    """
    return [
        e for e in entities
        if e.kind == EntityKind.COMPETITOR
        and (
            (subject_id is not None and e.associated_subject_property_id == subject_id)
            or (competitive_set_id and e.competitive_set_id == competitive_set_id)
        )
    ]
