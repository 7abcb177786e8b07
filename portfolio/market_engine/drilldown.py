"""
Selection / Drill-down State Machine for the Market Engine

States:
- NATIONAL: no market selected
- MARKET_DETAIL(key): one market selected

Either state may additionally have one entity selected. Transitions that
reference data not in the current market set are rejected with
InvalidSelectionError and leave the state unchanged.
"""

import logging
from typing import List, Optional

from portfolio.utils.config import Config

from .errors import InvalidSelectionError
from .markets import MarketSet
from .models import (
    BoundingRegion,
    DrillDownLevel,
    Entity,
    EntityKind,
    Market,
    SelectionState,
)
from .viewport import compute_viewport


logger = logging.getLogger(__name__)


class SelectionListener:
    """
    Receives selection notifications.

    Subclass and override the hooks of interest; the defaults do nothing.
    Exceptions raised by a listener propagate to the caller of the
    transition.
    """

    def on_market_selected(self, market_key: str) -> None:
        pass

    def on_entity_selected(self, entity_id: str, kind: EntityKind) -> None:
        pass

    def on_back(self) -> None:
        pass

    def on_selection_cleared(self) -> None:
        pass


class DrillDownController:
    """
    Tracks market drill-down and entity selection for one market set.

    The controller owns the only mutable state in the engine. It has a
    single writer (the presentation layer); every other output is derived
    from ``state`` on read.
    """

    def __init__(self, market_set: MarketSet, config: Optional[Config] = None):
        """
        Initialize in the NATIONAL state with nothing selected.

        Args:
            market_set: Markets built from the current entity collection
            config: Engine configuration used for the viewport
        """
        self._market_set = market_set
        self._config = config or Config.load()
        self._state = SelectionState()
        self._listeners: List[SelectionListener] = []

    # =========================================================================
    # Read side
    # =========================================================================

    @property
    def state(self) -> SelectionState:
        return self._state

    @property
    def level(self) -> DrillDownLevel:
        return self._state.level

    @property
    def market_set(self) -> MarketSet:
        return self._market_set

    @property
    def selected_market(self) -> Optional[Market]:
        if self._state.selected_market_key is None:
            return None
        return self._market_set.get(self._state.selected_market_key)

    @property
    def selected_entity(self) -> Optional[Entity]:
        if self._state.selected_entity_id is None:
            return None
        return self._market_set.find_entity(self._state.selected_entity_id)

    @property
    def visible_markets(self) -> List[Market]:
        """Markets drawn on the map: all nationally, one in detail."""
        market = self.selected_market
        return [market] if market is not None else self._market_set.markets

    @property
    def visible_entities(self) -> List[Entity]:
        """Entities listed for the current level, before filtering."""
        market = self.selected_market
        if market is not None:
            return list(market.members)
        return self._market_set.grouped_entities

    @property
    def viewport(self) -> BoundingRegion:
        return compute_viewport(self._state, self._market_set, self._config)

    # =========================================================================
    # Listeners
    # =========================================================================

    def add_listener(self, listener: SelectionListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: SelectionListener) -> None:
        self._listeners.remove(listener)

    # =========================================================================
    # Transitions
    # =========================================================================

    def select_market(self, market_key: str) -> SelectionState:
        """
        Drill down into a market.

        Allowed from NATIONAL and from another market. An entity selection
        is kept only if the entity belongs to the target market.

        Raises:
            InvalidSelectionError: If ``market_key`` is not a current market
        """
        market = self._market_set.get(market_key)
        if market is None:
            self._reject(f"unknown market {market_key!r}", market_key)

        entity_id = self._state.selected_entity_id
        if entity_id is not None and market.contains(entity_id):
            new_state = SelectionState(
                selected_market_key=market_key,
                selected_entity_id=entity_id,
                selected_entity_kind=self._state.selected_entity_kind,
            )
        else:
            new_state = SelectionState(selected_market_key=market_key)

        self._state = new_state
        for listener in list(self._listeners):
            listener.on_market_selected(market_key)
        return self._state

    def back(self) -> SelectionState:
        """Return to NATIONAL, clearing any entity selection."""
        if self._state.level == DrillDownLevel.NATIONAL:
            logger.debug("back() ignored: already at national level")
            return self._state

        self._state = SelectionState()
        for listener in list(self._listeners):
            listener.on_back()
        return self._state

    def select_entity(self, entity_id: str, kind: EntityKind) -> SelectionState:
        """
        Select an entity without changing the drill-down level.

        The entity may be any entity of the current data, including ones
        outside every market.

        Raises:
            InvalidSelectionError: If the id is unknown or its kind differs
        """
        entity = self._market_set.find_entity(entity_id)
        if entity is None:
            self._reject(f"unknown entity {entity_id!r}", entity_id)
        if entity.kind != kind:
            self._reject(
                f"entity {entity_id!r} is a {entity.kind.value}, not a {kind.value}",
                entity_id,
            )

        self._state = SelectionState(
            selected_market_key=self._state.selected_market_key,
            selected_entity_id=entity_id,
            selected_entity_kind=kind,
        )
        for listener in list(self._listeners):
            listener.on_entity_selected(entity_id, kind)
        return self._state

    def clear_selection(self) -> SelectionState:
        """Clear the entity selection, keeping the drill-down level."""
        if not self._state.has_entity:
            return self._state

        self._state = SelectionState(
            selected_market_key=self._state.selected_market_key,
        )
        for listener in list(self._listeners):
            listener.on_selection_cleared()
        return self._state

    def reset(self, market_set: MarketSet) -> SelectionState:
        """
        Re-initialise against a freshly built market set.

        Used on full data reload. Listeners are kept; no notification is sent.
        """
        self._market_set = market_set
        self._state = SelectionState()
        return self._state

    def _reject(self, reason: str, key: str) -> None:
        logger.warning("Rejected selection: %s", reason)
        raise InvalidSelectionError(reason, key=key)
