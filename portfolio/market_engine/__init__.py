"""
Market Engine

Groups subject properties, competitors and universities into geographic
markets, aggregates their geometry and metrics, and drives the national to
market drill-down with a synchronized map viewport.
"""

from .models import (
    AggregateMetrics,
    BoundingRegion,
    CompetitorProperty,
    Coordinate,
    DrillDownLevel,
    Entity,
    EntityKind,
    Market,
    Property,
    SelectionState,
    SubjectProperty,
    University,
    is_property,
    is_university,
)
from .errors import (
    EmptyAggregateError,
    InvalidSelectionError,
    MalformedCoordinateError,
    MarketEngineError,
    UngroupableEntityError,
)
from .grouping import GroupingResult, group_by_market, resolve_market_key
from .geometry import MarketGeometry, compute_market_geometry, haversine_distance_m
from .metrics import compute_metrics
from .markets import MarketSet, build_markets
from .filters import (
    EntityFilter,
    KindFilter,
    SortDirection,
    SortKey,
    all_of,
    competitive_set,
    kind_filter,
    select,
    sort_entities,
    text_filter,
)
from .viewport import compute_viewport
from .drilldown import DrillDownController, SelectionListener

__all__ = [
    # Models
    "AggregateMetrics",
    "BoundingRegion",
    "CompetitorProperty",
    "Coordinate",
    "DrillDownLevel",
    "Entity",
    "EntityKind",
    "Market",
    "Property",
    "SelectionState",
    "SubjectProperty",
    "University",
    "is_property",
    "is_university",
    # Errors
    "EmptyAggregateError",
    "InvalidSelectionError",
    "MalformedCoordinateError",
    "MarketEngineError",
    "UngroupableEntityError",
    # Engine
    "GroupingResult",
    "group_by_market",
    "resolve_market_key",
    "MarketGeometry",
    "compute_market_geometry",
    "haversine_distance_m",
    "compute_metrics",
    "MarketSet",
    "build_markets",
    "EntityFilter",
    "KindFilter",
    "SortDirection",
    "SortKey",
    "all_of",
    "competitive_set",
    "kind_filter",
    "select",
    "sort_entities",
    "text_filter",
    "compute_viewport",
    "DrillDownController",
    "SelectionListener",
]

__version__ = "1.0"
