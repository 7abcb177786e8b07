"""
Campus Portfolio Engine

Aggregation and analytics core for a student-housing portfolio dashboard:
1. Record normalisation (source dictionaries to typed entities)
2. Market grouping (explicit market field, address fallback)
3. Market geometry and aggregate metrics
4. Filtering and sorting across mixed entity kinds
5. National / market drill-down with map viewport
"""

from .market_engine import (
    AggregateMetrics,
    BoundingRegion,
    CompetitorProperty,
    Coordinate,
    DrillDownController,
    DrillDownLevel,
    EmptyAggregateError,
    Entity,
    EntityFilter,
    EntityKind,
    InvalidSelectionError,
    KindFilter,
    MalformedCoordinateError,
    Market,
    MarketEngineError,
    MarketSet,
    SelectionListener,
    SelectionState,
    SortDirection,
    SortKey,
    SubjectProperty,
    UngroupableEntityError,
    University,
    build_markets,
    compute_market_geometry,
    compute_metrics,
    compute_viewport,
    group_by_market,
    select,
)
from .records import (
    NormalisedRecords,
    RecordError,
    RejectionRecord,
    entity_from_record,
    normalise_records,
)

__all__ = [
    # Entities
    "CompetitorProperty",
    "Coordinate",
    "Entity",
    "EntityKind",
    "SubjectProperty",
    "University",
    # Derived structures
    "AggregateMetrics",
    "BoundingRegion",
    "Market",
    "MarketSet",
    "SelectionState",
    "DrillDownLevel",
    # Errors
    "EmptyAggregateError",
    "InvalidSelectionError",
    "MalformedCoordinateError",
    "MarketEngineError",
    "UngroupableEntityError",
    # Engine
    "build_markets",
    "compute_market_geometry",
    "compute_metrics",
    "compute_viewport",
    "group_by_market",
    "select",
    "EntityFilter",
    "KindFilter",
    "SortDirection",
    "SortKey",
    "DrillDownController",
    "SelectionListener",
    # Record normalisation
    "NormalisedRecords",
    "RecordError",
    "RejectionRecord",
    "entity_from_record",
    "normalise_records",
]
