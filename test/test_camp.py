"""Camp phase: rummaging, bribing heroes, and heading out."""

import pytest

from loot_goblin.engine.actions import (
    bribe_hero,
    bribe_take_item,
    event_start,
    rummage_for_loot,
    rummage_leave_loot,
    rummage_take_loot,
)
from loot_goblin.engine.errors import AdventureError
from loot_goblin.engine.state import (
    MAX_LOOT,
    BribeResult,
    EventPhase,
    Loot,
    RummageFail,
    RummageSuccess,
)


def _reason(excinfo):
    return excinfo.value.reason


def _goblin(adventure, player="p1"):
    return adventure.goblins.get(player)


# ── Rummaging ──────────────────────────────────


def test_rummage_draws_uniform_rarity(started, act):
    adventure = started()
    adventure, events = act(adventure, rummage_for_loot("p1"), 2)
    assert adventure.state.phase.rummage_result == RummageSuccess(loot=Loot("rare"), took=None)
    assert events[0].type == "loot_rummaged"
    assert events[0].payload["rarity"] == "rare"


def test_rummage_is_single_shot(started, act):
    adventure = started()
    adventure, _ = act(adventure, rummage_for_loot("p1"), 0)
    before = adventure.copy()
    with pytest.raises(AdventureError) as excinfo:
        act(adventure, rummage_for_loot("p1"), 1)
    assert _reason(excinfo) == "already_resolved"
    assert adventure == before


def test_take_loot(started, act):
    adventure = started()
    adventure, _ = act(adventure, rummage_for_loot("p1"), 4)
    greed = _goblin(adventure).greed
    adventure, events = act(adventure, rummage_take_loot("p1"))

    assert _goblin(adventure).loot == [Loot("epic")]
    assert _goblin(adventure).greed == greed + 1
    assert adventure.state.phase.rummage_result.took is True
    assert [e.type for e in events] == ["loot_taken", "stat_changed"]


def test_leave_loot(started, act):
    adventure = started()
    adventure, _ = act(adventure, rummage_for_loot("p1"), 0)
    greed = _goblin(adventure).greed
    adventure, _ = act(adventure, rummage_leave_loot("p1"))

    assert _goblin(adventure).loot == []
    assert _goblin(adventure).greed == greed - 1
    assert adventure.state.phase.rummage_result.took is False


def test_leave_loot_floors_greed_at_zero(started, act):
    adventure = started()
    _goblin(adventure).greed = 0
    adventure, _ = act(adventure, rummage_for_loot("p1"), 0)
    adventure, events = act(adventure, rummage_leave_loot("p1"))
    assert _goblin(adventure).greed == 0
    assert [e.type for e in events] == ["loot_left"]


def test_take_before_rummage_fails(started, act):
    adventure = started()
    with pytest.raises(AdventureError) as excinfo:
        act(adventure, rummage_take_loot("p1"))
    assert _reason(excinfo) == "not_yet_resolved"


@pytest.mark.parametrize("second", [rummage_take_loot, rummage_leave_loot])
def test_rummage_decision_is_single_shot(started, act, second):
    adventure = started()
    adventure, _ = act(adventure, rummage_for_loot("p1"), 0)
    adventure, _ = act(adventure, rummage_take_loot("p1"))
    with pytest.raises(AdventureError) as excinfo:
        act(adventure, second("p1"))
    assert _reason(excinfo) == "already_resolved"


def test_take_loot_when_full(started, act):
    adventure = started()
    _goblin(adventure).loot = [Loot() for _ in range(MAX_LOOT)]
    adventure, _ = act(adventure, rummage_for_loot("p1"), 0)
    with pytest.raises(AdventureError) as excinfo:
        act(adventure, rummage_take_loot("p1"))
    assert _reason(excinfo) == "loot_full"


def test_rummage_can_get_caught(started, act):
    adventure = started(rummage_fail_odds=3)
    adventure, events = act(adventure, rummage_for_loot("p1"), 0)
    assert adventure.state.phase.rummage_result == RummageFail()
    assert events[0].type == "rummage_failed"

    with pytest.raises(AdventureError) as excinfo:
        act(adventure, rummage_take_loot("p1"))
    assert _reason(excinfo) == "already_resolved"


def test_rummage_with_fail_odds_can_still_succeed(started, act):
    adventure = started(rummage_fail_odds=3)
    adventure, _ = act(adventure, rummage_for_loot("p1"), 2, 1)
    assert adventure.state.phase.rummage_result == RummageSuccess(loot=Loot("uncommon"))


# ── Bribing ──────────────────────────────────


def test_bribe_hero(started, act):
    adventure = started()
    _goblin(adventure).loot = [Loot("common"), Loot("legendary")]
    adventure, events = act(adventure, bribe_hero("p1", "wizard"), 2)

    assert _goblin(adventure).loot == [Loot("common")]
    assert adventure.settings.heroes["wizard"] == 1
    assert adventure.state.phase.bribe_result == BribeResult(hero="wizard", got="baz", confirmed=False)
    assert events[0].payload == {"player": "p1", "hero": "wizard", "rarity": "legendary", "got": "baz"}


def test_bribe_needs_loot(started, act):
    adventure = started()
    with pytest.raises(AdventureError) as excinfo:
        act(adventure, bribe_hero("p1", "thief"), 0)
    assert _reason(excinfo) == "nothing_to_offer"


def test_bribe_unknown_hero(started, act):
    adventure = started()
    _goblin(adventure).loot = [Loot()]
    with pytest.raises(AdventureError) as excinfo:
        act(adventure, bribe_hero("p1", "ninja"), 0)
    assert _reason(excinfo) == "invalid_argument"


def test_bribe_once_per_camp(started, act):
    adventure = started()
    _goblin(adventure).loot = [Loot(), Loot()]
    adventure, _ = act(adventure, bribe_hero("p1", "thief"), 0)
    with pytest.raises(AdventureError) as excinfo:
        act(adventure, bribe_hero("p1", "merchant"), 0)
    assert _reason(excinfo) == "already_resolved"


def test_take_item_replaces_oldest(started, act):
    adventure = started()
    _goblin(adventure).loot = [Loot()]
    _goblin(adventure).items = ["foo"]
    adventure, _ = act(adventure, bribe_hero("p1", "warrior"), 3)
    adventure, events = act(adventure, bribe_take_item("p1"))

    assert _goblin(adventure).items == ["qux"]
    assert adventure.state.phase.bribe_result.confirmed is True
    assert events[0].payload["dropped"] == "foo"

    with pytest.raises(AdventureError) as excinfo:
        act(adventure, bribe_take_item("p1"))
    assert _reason(excinfo) == "already_resolved"


def test_take_item_without_bribe(started, act):
    adventure = started()
    with pytest.raises(AdventureError) as excinfo:
        act(adventure, bribe_take_item("p1"))
    assert _reason(excinfo) == "not_yet_resolved"


# ── Heading out ──────────────────────────────────


def test_event_start_picks_location_and_scenario(started, act, catalog):
    adventure = started()
    adventure, events = act(adventure, event_start("p1"), 3, 5)
    assert adventure.state.phase == EventPhase(location=3, scenario=5)
    assert events[-1].payload["location_id"] == catalog.locations[3].id


def test_event_start_with_pending_rummage(started, act):
    adventure = started()
    adventure, _ = act(adventure, rummage_for_loot("p1"), 0)
    adventure, _ = act(adventure, event_start("p1"), 0, 0)
    assert adventure.phase_key == "event"


def test_rummage_take_then_head_out_scenario(started, act, catalog):
    adventure = started()
    assert adventure.state.phase.rummage_result is None

    adventure, _ = act(adventure, rummage_for_loot("p1"), 1)
    assert isinstance(adventure.state.phase.rummage_result, RummageSuccess)

    adventure, _ = act(adventure, rummage_take_loot("p1"))
    goblin = _goblin(adventure)
    assert len(goblin.loot) == 1
    assert goblin.greed == 5
    assert adventure.state.phase.rummage_result.took is True
    assert adventure.phase_key == "camp"

    adventure, _ = act(adventure, event_start("p1"), 8, 7)
    event = adventure.state.phase
    assert 0 <= event.location < len(catalog.locations)
    assert 0 <= event.scenario < len(catalog.locations[event.location].scenarios)
