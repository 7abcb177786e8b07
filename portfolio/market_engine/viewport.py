"""
Viewport Controller for the Market Engine

Produces the region the map must fit for the current drill-down state:
- National: configured national bounding box, lightly padded
- Market detail: all member coordinates of the market, padded more so
  markers do not touch the edge
"""

from typing import Iterable, Optional, Union

from portfolio.utils.config import Config

from .errors import InvalidSelectionError
from .models import BoundingRegion, Market, SelectionState
from .markets import MarketSet


def national_region(config: Config) -> BoundingRegion:
    south, west, north, east = config.national_bounds
    return BoundingRegion(south=south, west=west, north=north, east=east)


def market_region(market: Market, config: Config) -> BoundingRegion:
    """Padded region enclosing every member of a market."""
    return BoundingRegion.from_coordinates(market.coordinates).padded(
        config.market_padding,
        min_span_degrees=config.min_span_degrees,
    )


def compute_viewport(
    state: SelectionState,
    markets: Union[MarketSet, Iterable[Market]],
    config: Optional[Config] = None,
) -> BoundingRegion:
    """
    Compute the map viewport for a selection state.

    Always derived from the state passed in; nothing is cached between
    calls, so a new market selection never sees the previous geometry.

    Args:
        state: Current selection
        markets: Current market set
        config: Engine configuration (default: loaded from environment)

    Returns:
        Padded BoundingRegion

    Raises:
        InvalidSelectionError: If the selected market key is not in ``markets``
    """
    config = config or Config.load()

    if state.selected_market_key is None:
        return national_region(config).padded(config.national_padding)

    key = state.selected_market_key
    market = next((m for m in markets if m.key == key), None)
    if market is None:
        raise InvalidSelectionError(f"unknown market {key!r}", key=key)

    return market_region(market, config)
