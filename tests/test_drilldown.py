"""
Tests for the Selection / Drill-down State Machine

Covers:
- Initial NATIONAL state
- select_market / back / select_entity / clear_selection transitions
- Rejected transitions leave the state unchanged
- Listener notifications
- Derived outputs (visible entities, viewport) follow the state
"""

import pytest

from portfolio.market_engine import (
    DrillDownController,
    DrillDownLevel,
    EntityKind,
    InvalidSelectionError,
    SelectionListener,
    SelectionState,
    build_markets,
    compute_viewport,
)


class RecordingListener(SelectionListener):
    """Collects notifications in order."""

    def __init__(self):
        self.events = []

    def on_market_selected(self, market_key):
        self.events.append(("market", market_key))

    def on_entity_selected(self, entity_id, kind):
        self.events.append(("entity", entity_id, kind))

    def on_back(self):
        self.events.append(("back",))

    def on_selection_cleared(self):
        self.events.append(("cleared",))


@pytest.fixture
def market_set(portfolio, config):
    return build_markets(portfolio, config)


@pytest.fixture
def controller(market_set, config):
    return DrillDownController(market_set, config)


@pytest.fixture
def listener(controller):
    recorder = RecordingListener()
    controller.add_listener(recorder)
    return recorder


# =============================================================================
# Test: Initial State
# =============================================================================

class TestInitialState:

    def test_starts_national_without_entity(self, controller):
        assert controller.state == SelectionState()
        assert controller.level == DrillDownLevel.NATIONAL
        assert controller.selected_market is None
        assert controller.selected_entity is None

    def test_national_shows_all_markets(self, controller, market_set):
        assert controller.visible_markets == market_set.markets
        assert controller.visible_entities == market_set.grouped_entities


# =============================================================================
# Test: Market Transitions
# =============================================================================

class TestMarketTransitions:

    def test_select_market(self, controller, listener):
        state = controller.select_market("Reno")

        assert state.level == DrillDownLevel.MARKET_DETAIL
        assert state.selected_market_key == "Reno"
        assert controller.selected_market.key == "Reno"
        assert listener.events == [("market", "Reno")]

    def test_unknown_market_rejected(self, controller, listener):
        """Selecting 'Atlantis' raises and leaves the state at NATIONAL."""
        with pytest.raises(InvalidSelectionError) as exc_info:
            controller.select_market("Atlantis")

        assert exc_info.value.key == "Atlantis"
        assert controller.state == SelectionState()
        assert controller.level == DrillDownLevel.NATIONAL
        assert listener.events == []

    def test_unknown_market_from_detail_keeps_detail(self, controller):
        controller.select_market("Reno")

        with pytest.raises(InvalidSelectionError):
            controller.select_market("Atlantis")

        assert controller.state.selected_market_key == "Reno"

    def test_back_returns_national_and_clears_entity(self, controller, listener):
        controller.select_market("Reno")
        controller.select_entity("P1197887", EntityKind.SUBJECT)

        state = controller.back()

        assert state == SelectionState()
        assert listener.events[-1] == ("back",)

    def test_back_at_national_is_noop(self, controller, listener):
        controller.back()

        assert controller.state == SelectionState()
        assert listener.events == []

    def test_switch_market_keeps_member_entity(self, controller):
        controller.select_entity("C1197887-001", EntityKind.COMPETITOR)

        state = controller.select_market("Reno")

        assert state.selected_entity_id == "C1197887-001"

    def test_switch_market_drops_foreign_entity(self, controller):
        controller.select_market("Reno")
        controller.select_entity("P1197887", EntityKind.SUBJECT)

        state = controller.select_market("Sacramento")

        assert state.selected_market_key == "Sacramento"
        assert not state.has_entity


# =============================================================================
# Test: Entity Transitions
# =============================================================================

class TestEntityTransitions:

    def test_select_entity_keeps_level(self, controller, listener):
        state = controller.select_entity("u1", EntityKind.UNIVERSITY)

        assert state.level == DrillDownLevel.NATIONAL
        assert state.selected_entity_id == "u1"
        assert state.selected_entity_kind == EntityKind.UNIVERSITY
        assert controller.selected_entity.name == "Sacramento State University"
        assert listener.events == [("entity", "u1", EntityKind.UNIVERSITY)]

    def test_select_entity_in_detail(self, controller):
        controller.select_market("Fayetteville")
        state = controller.select_entity("C518041-001", EntityKind.COMPETITOR)

        assert state.selected_market_key == "Fayetteville"
        assert state.has_entity

    def test_unknown_entity_rejected(self, controller):
        controller.select_market("Reno")

        with pytest.raises(InvalidSelectionError):
            controller.select_entity("nope", EntityKind.SUBJECT)

        assert controller.state == SelectionState(selected_market_key="Reno")

    def test_wrong_kind_rejected(self, controller):
        with pytest.raises(InvalidSelectionError):
            controller.select_entity("P641240", EntityKind.COMPETITOR)

        assert not controller.state.has_entity

    def test_ungrouped_entity_selectable(self, portfolio, make_subject, config):
        orphan = make_subject("P404", address="123 Main St")
        controller = DrillDownController(build_markets(portfolio + [orphan], config), config)

        controller.select_entity("P404", EntityKind.SUBJECT)

        assert controller.selected_entity is orphan

    def test_clear_selection(self, controller, listener):
        controller.select_market("Reno")
        controller.select_entity("P1197887", EntityKind.SUBJECT)

        state = controller.clear_selection()

        assert state == SelectionState(selected_market_key="Reno")
        assert listener.events[-1] == ("cleared",)

    def test_clear_without_selection_is_silent(self, controller, listener):
        controller.clear_selection()
        assert listener.events == []


# =============================================================================
# Test: Derived Outputs
# =============================================================================

class TestDerivedOutputs:

    def test_visible_entities_scoped_to_market(self, controller, market_set):
        controller.select_market("Fayetteville")

        assert controller.visible_entities == list(market_set.get("Fayetteville").members)
        assert [m.key for m in controller.visible_markets] == ["Fayetteville"]

    def test_viewport_follows_state(self, controller, market_set, config):
        national = controller.viewport

        controller.select_market("Reno")
        reno = controller.viewport

        controller.select_market("Sacramento")
        sacramento = controller.viewport

        assert national == compute_viewport(SelectionState(), market_set, config)
        assert reno == compute_viewport(
            SelectionState(selected_market_key="Reno"), market_set, config
        )
        assert sacramento != reno

        controller.back()
        assert controller.viewport == national

    def test_reset_returns_to_national(self, controller, portfolio, config):
        controller.select_market("Reno")
        reloaded = build_markets(portfolio[:3], config)

        state = controller.reset(reloaded)

        assert state == SelectionState()
        assert controller.market_set is reloaded

    def test_listener_error_propagates_after_transition(self, controller):
        class FailingListener(SelectionListener):
            def on_market_selected(self, market_key):
                raise RuntimeError(f"map failed to load {market_key}")

        controller.add_listener(FailingListener())

        with pytest.raises(RuntimeError, match="Reno"):
            controller.select_market("Reno")

        assert controller.state == SelectionState(selected_market_key="Reno")
        assert controller.selected_market.key == "Reno"

    def test_removed_listener_not_notified(self, controller):
        recorder = RecordingListener()
        controller.add_listener(recorder)
        controller.remove_listener(recorder)

        controller.select_market("Reno")

        assert recorder.events == []


class TestSelectionState:

    def test_entity_id_requires_kind(self):
        with pytest.raises(ValueError):
            SelectionState(selected_entity_id="P1")

    def test_level(self):
        assert SelectionState().level == DrillDownLevel.NATIONAL
        assert SelectionState(selected_market_key="Reno").level == DrillDownLevel.MARKET_DETAIL
