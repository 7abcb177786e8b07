"""
Market assembly pipeline for the Market Engine.

Pipeline order:
1. GROUP - Partition entities by market key
2. LOCATE - Center, radius and bounds per market
3. MEASURE - Aggregate metrics per market
4. REPORT - Collect grouping errors and no-data warnings

The result is rebuilt from scratch on every call; callers that want to
avoid recomputation own the memoisation.
"""

import logging
from typing import Dict, Iterator, List, Optional

from portfolio.utils.config import Config

from .errors import EmptyAggregateError, MarketEngineError
from .geometry import bounding_region, compute_market_geometry
from .grouping import GroupingResult, group_by_market
from .metrics import compute_metrics
from .models import AggregateMetrics, Entity, Market, University


logger = logging.getLogger(__name__)


class MarketSet:
    """
    Ordered set of markets built from one entity collection.

    Also keeps the full input so that ungrouped entities and universities
    without a market remain retrievable.
    """

    def __init__(
        self,
        markets: List[Market],
        grouping: GroupingResult,
        warnings: List[MarketEngineError],
    ):
        self._markets = list(markets)
        self._by_key: Dict[str, Market] = {m.key: m for m in self._markets}
        self._grouping = grouping
        self._warnings = list(warnings)
        self._entities_by_id: Dict[str, Entity] = {}
        for entity in grouping.entities:
            # First occurrence wins if the source repeats an id
            self._entities_by_id.setdefault(entity.id, entity)

    def __iter__(self) -> Iterator[Market]:
        return iter(self._markets)

    def __len__(self) -> int:
        return len(self._markets)

    def __contains__(self, key: object) -> bool:
        return key in self._by_key

    @property
    def markets(self) -> List[Market]:
        return list(self._markets)

    @property
    def keys(self) -> List[str]:
        return [m.key for m in self._markets]

    def get(self, key: str) -> Optional[Market]:
        return self._by_key.get(key)

    @property
    def entities(self) -> List[Entity]:
        """Every input entity, grouped or not, in input order."""
        return list(self._grouping.entities)

    @property
    def grouped_entities(self) -> List[Entity]:
        """Members of all markets, market by market."""
        return [member for market in self._markets for member in market.members]

    @property
    def universities(self) -> List[University]:
        return self._grouping.universities

    @property
    def ungrouped(self) -> List[Entity]:
        return list(self._grouping.ungrouped)

    @property
    def unmatched_universities(self) -> List[University]:
        return list(self._grouping.unmatched_universities)

    @property
    def warnings(self) -> List[MarketEngineError]:
        return list(self._warnings)

    def find_entity(self, entity_id: str) -> Optional[Entity]:
        return self._entities_by_id.get(entity_id)

    def market_of(self, entity_id: str) -> Optional[Market]:
        """Market containing the entity, or None if it is not grouped."""
        for market in self._markets:
            if market.contains(entity_id):
                return market
        return None

    def portfolio_metrics(self) -> AggregateMetrics:
        """Metrics across every grouped entity, for the national overview."""
        return compute_metrics(self.grouped_entities)


def build_markets(entities: List[Entity], config: Optional[Config] = None) -> MarketSet:
    """
    Build markets with geometry and metrics from an entity collection.

    Args:
        entities: Flat collection of subjects, competitors and universities
        config: Engine configuration (default: loaded from environment)

    Returns:
        MarketSet; per-entity problems are reported in ``warnings``
    """
    config = config or Config.load()

    # Step 1: Group
    grouping = group_by_market(entities)
    warnings: List[MarketEngineError] = list(grouping.errors)

    markets: List[Market] = []
    for key, members in grouping.markets.items():
        coordinates = [m.coordinates for m in members]

        # Step 2: Locate
        geometry = compute_market_geometry(
            coordinates,
            fallback_radius_m=config.fallback_radius_m,
        )

        # Step 3: Measure
        metrics = compute_metrics(members)

        # Step 4: Report fields without data
        missing = metrics.missing_fields()
        if missing:
            warning = EmptyAggregateError(key, missing)
            warnings.append(warning)
            logger.warning("%s", warning)

        markets.append(Market(
            key=key,
            members=tuple(members),
            center=geometry.center,
            radius_m=geometry.radius_m,
            bounds=bounding_region(coordinates),
            metrics=metrics,
        ))

    logger.debug(
        "Built %d markets from %d entities (%d ungrouped)",
        len(markets),
        len(grouping.entities),
        len(grouping.ungrouped),
    )

    return MarketSet(markets, grouping, warnings)

