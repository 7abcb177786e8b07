"""
Error taxonomy for the Market Engine.

Grouping and aggregation errors are per-entity and never abort a batch:
they are collected on the result and logged. Selection errors are raised
synchronously to the caller.
"""

from typing import List, Optional


class MarketEngineError(Exception):
    """Base class for all market engine errors."""

    pass


class UngroupableEntityError(MarketEngineError):
    """Raised when an entity has no usable market key."""

    def __init__(self, entity_id: str, reason: str):
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(f"Entity {entity_id} cannot be grouped: {reason}")


class MalformedCoordinateError(MarketEngineError, ValueError):
    """Raised when a latitude/longitude pair is outside the valid range."""

    def __init__(
        self,
        latitude: float,
        longitude: float,
        entity_id: Optional[str] = None,
    ):
        self.latitude = latitude
        self.longitude = longitude
        self.entity_id = entity_id
        subject = f"Entity {entity_id}" if entity_id else "Coordinate"
        super().__init__(
            f"{subject} has malformed coordinates ({latitude}, {longitude})"
        )

    def for_entity(self, entity_id: str) -> "MalformedCoordinateError":
        """Return a copy of this error attributed to an entity."""
        return MalformedCoordinateError(self.latitude, self.longitude, entity_id)


class EmptyAggregateError(MarketEngineError):
    """
    Soft error: a market has no data for one or more aggregate fields.

    Never raised by the engine itself. Instances are collected as warnings
    so callers can render a placeholder for the affected fields.
    """

    def __init__(self, market_key: str, fields: List[str]):
        self.market_key = market_key
        self.fields = list(fields)
        super().__init__(
            f"Market {market_key} has no data for: {', '.join(self.fields)}"
        )


class InvalidSelectionError(MarketEngineError):
    """Raised when a selection references a market or entity not in the data."""

    def __init__(self, reason: str, key: Optional[str] = None):
        self.reason = reason
        self.key = key
        super().__init__(f"Invalid selection: {reason}")
