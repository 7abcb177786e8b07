"""
Configuration management.
"""

import os
from dataclasses import dataclass, field
from typing import Tuple

# Contiguous United States (south, west, north, east)
DEFAULT_NATIONAL_BOUNDS = (24.396308, -124.848974, 49.384358, -66.885444)


def _parse_bounds(raw: str) -> Tuple[float, float, float, float]:
    parts = [p.strip() for p in raw.split(",")]
    if len(parts) != 4:
        raise ValueError(
            f"NATIONAL_BOUNDS must be 'south,west,north,east', got {raw!r}"
        )
    south, west, north, east = (float(p) for p in parts)
    return south, west, north, east


def _bounds_from_env() -> Tuple[float, float, float, float]:
    raw = os.getenv("NATIONAL_BOUNDS")
    if not raw:
        return DEFAULT_NATIONAL_BOUNDS
    return _parse_bounds(raw)


@dataclass
class Config:
    """
    Engine configuration.

    Loads from environment variables with sensible defaults. The fallback
    radius and padding fractions are presentation constants, not invariants.
    """

    # Geometry
    fallback_radius_m: float = field(
        default_factory=lambda: float(os.getenv("FALLBACK_RADIUS_M", "5000"))
    )

    # Viewport
    national_padding: float = field(
        default_factory=lambda: float(os.getenv("NATIONAL_PADDING", "0.10"))
    )
    market_padding: float = field(
        default_factory=lambda: float(os.getenv("MARKET_PADDING", "0.20"))
    )
    min_span_degrees: float = field(
        default_factory=lambda: float(os.getenv("MIN_SPAN_DEGREES", "0.01"))
    )
    national_bounds: Tuple[float, float, float, float] = field(
        default_factory=_bounds_from_env
    )

    def __post_init__(self):
        """Validate configuration after initialization."""
        if self.fallback_radius_m <= 0:
            raise ValueError("fallback_radius_m must be positive")
        if self.national_padding < 0 or self.market_padding < 0:
            raise ValueError("padding fractions must be non-negative")
        if self.min_span_degrees < 0:
            raise ValueError("min_span_degrees must be non-negative")
        south, west, north, east = self.national_bounds
        if not (-90 <= south <= north <= 90 and -180 <= west <= east <= 180):
            raise ValueError(f"national_bounds out of range: {self.national_bounds}")

    @classmethod
    def load(cls) -> "Config":
        """Load configuration from environment."""
        return cls()

    def to_dict(self) -> dict:
        """Convert config to dictionary."""
        return {
            "fallback_radius_m": self.fallback_radius_m,
            "national_padding": self.national_padding,
            "market_padding": self.market_padding,
            "min_span_degrees": self.min_span_degrees,
            "national_bounds": list(self.national_bounds),
        }
