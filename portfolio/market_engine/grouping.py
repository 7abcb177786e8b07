"""
Market Grouper for the Market Engine

Partitions a flat entity collection into markets:
- Explicit ``market`` field first, address city segment as fallback
- Markets are derived from properties; universities join existing markets
- Market order follows first occurrence of the key in the input
- Ungroupable entities are reported, never dropped
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Set

from .errors import (
    MalformedCoordinateError,
    MarketEngineError,
    UngroupableEntityError,
)
from .models import Entity, University, is_property, is_university


logger = logging.getLogger(__name__)


# Address segment holding the city, e.g. "1325 65th St, Sacramento, CA 95819"
ADDRESS_CITY_SEGMENT = 1


@dataclass
class GroupingResult:
    """
    Output of ``group_by_market``.

    ``markets`` maps each key to its members in input order. Every entity
    of the input is still reachable through ``entities``, including the
    ungrouped ones and universities without a property market.
    """
    markets: Dict[str, List[Entity]]
    entities: List[Entity]
    ungrouped: List[Entity] = field(default_factory=list)
    unmatched_universities: List[University] = field(default_factory=list)
    errors: List[MarketEngineError] = field(default_factory=list)

    @property
    def keys(self) -> List[str]:
        return list(self.markets)

    @property
    def universities(self) -> List[University]:
        """All universities of the input, matched or not."""
        return [e for e in self.entities if is_university(e)]

    def members(self, key: str) -> List[Entity]:
        return self.markets.get(key, [])

    def is_grouped(self, entity_id: str) -> bool:
        return any(
            member.id == entity_id
            for members in self.markets.values()
            for member in members
        )


def resolve_market_key(entity: Entity) -> str:
    """
    Resolve the market key of an entity.

    Resolution order:
    1. Explicit ``market`` field, trimmed, if non-empty
    2. Second comma-delimited segment of the address, trimmed

    Args:
        entity: Any entity variant

    Returns:
        Non-empty market key

    Raises:
        UngroupableEntityError: If neither source yields a non-empty key
    """
    explicit = (entity.market or "").strip()
    if explicit:
        return explicit

    segments = (entity.address or "").split(",")
    if len(segments) > ADDRESS_CITY_SEGMENT:
        city = segments[ADDRESS_CITY_SEGMENT].strip()
        if city:
            return city

    raise UngroupableEntityError(
        entity.id,
        "no market field and no city segment in address "
        f"{entity.address!r}",
    )


def group_by_market(entities: List[Entity]) -> GroupingResult:
    """
    Partition entities into markets.

    Every groupable property lands in exactly one market. Universities are
    attached to the property market with the same key, or kept aside in
    ``unmatched_universities``. Failures are collected per entity and logged;
    the batch always completes.

    Args:
        entities: Flat collection of subjects, competitors and universities

    Returns:
        GroupingResult with ordered markets and per-entity errors
    """
    entities = list(entities)
    errors: List[MarketEngineError] = []
    ungrouped: List[Entity] = []

    # Pass 1: resolve keys, remembering first occurrence order
    resolved: List[tuple] = []
    first_seen: Dict[str, int] = {}
    property_keys: Set[str] = set()

    for index, entity in enumerate(entities):
        try:
            entity.coordinates.validate()
            key = resolve_market_key(entity)
        except MalformedCoordinateError as e:
            _reject(entity, e.for_entity(entity.id), errors, ungrouped)
            continue
        except UngroupableEntityError as e:
            _reject(entity, e, errors, ungrouped)
            continue

        resolved.append((entity, key))
        first_seen.setdefault(key, index)
        if is_property(entity):
            property_keys.add(key)

    # Pass 2: markets exist only where a property resolved to the key
    markets: Dict[str, List[Entity]] = {
        key: [] for key in first_seen if key in property_keys
    }
    unmatched: List[University] = []

    for entity, key in resolved:
        if key in markets:
            markets[key].append(entity)
        else:
            # Only universities can resolve to a key without a market
            unmatched.append(entity)
            logger.info(
                "University %s has no property market %r; kept unassigned",
                entity.id,
                key,
            )

    return GroupingResult(
        markets=markets,
        entities=entities,
        ungrouped=ungrouped,
        unmatched_universities=unmatched,
        errors=errors,
    )


def _reject(
    entity: Entity,
    error: MarketEngineError,
    errors: List[MarketEngineError],
    ungrouped: List[Entity],
) -> None:
    errors.append(error)
    ungrouped.append(entity)
    logger.warning("Excluded %s %s from grouping: %s", entity.kind.value, entity.id, error)
