"""Snapshot encoding, tolerant decoding, and the roster structure."""

import json

import pytest

from loot_goblin.engine.actions import (
    RISKY,
    bribe_hero,
    event_make_choice,
    event_start,
    rummage_for_loot,
    take_a_break,
)
from loot_goblin.engine.state import (
    Adventure,
    Complete,
    Goblin,
    Loot,
    Preparing,
    Roster,
    Started,
)
from loot_goblin.engine.utils import create_adventure


def _reachable(started, act):
    """A handful of adventures covering every state/phase/result variant."""
    out = [create_adventure(["p1", "p3"], creator="alice", num_rounds=2)]

    camp = started(["p1", "p2"])
    camp.goblins.get("p1").loot = [Loot("rare"), Loot("epic")]
    camp.goblins.get("p1").items = ["qux"]
    out.append(camp)

    rummaged, _ = act(camp, rummage_for_loot("p1"), 3)
    bribed, _ = act(rummaged, bribe_hero("p1", "merchant"), 0)
    out.extend([rummaged, bribed])

    failed = started(rummage_fail_odds=2)
    failed, _ = act(failed, rummage_for_loot("p1"), 0)
    out.append(failed)

    event, _ = act(camp, event_start("p1"), 6, 2)
    chosen, _ = act(event, event_make_choice("p1", RISKY), 5, sampling="uniform")
    out.extend([event, chosen])

    done = started(num_rounds=1)
    done, _ = act(done, event_start("p1"), 0, 0)
    done, _ = act(done, take_a_break("p1"))
    assert isinstance(done.state, Complete)
    out.append(done)
    return out


def test_round_trip_dict(started, act):
    for adventure in _reachable(started, act):
        assert Adventure.from_dict(adventure.to_dict()) == adventure


def test_round_trip_json(started, act):
    for adventure in _reachable(started, act):
        assert Adventure.from_json(adventure.to_json()) == adventure


def test_save_and_load(started, act, tmp_path):
    adventure = _reachable(started, act)[-2]
    path = tmp_path / "adventure.json"
    adventure.save(str(path))
    assert Adventure.load(str(path)) == adventure


def test_snapshot_is_versioned_and_tagged(started, act):
    data = _reachable(started, act)[2].to_dict()
    assert data["version"] == 1
    assert data["state"]["status"] == "started"
    assert data["state"]["phase"]["kind"] == "camp"
    assert data["state"]["phase"]["rummage_result"]["kind"] == "success"
    json.dumps(data)


def test_snapshot_stores_indices_not_content(started, act):
    event = _reachable(started, act)[5]
    phase = event.to_dict()["state"]["phase"]
    assert phase == {"kind": "event", "location": 6, "scenario": 2, "outcome": None}


def test_from_dict_fills_defaults():
    adventure = Adventure.from_dict({"state": {"goblins": {"p2": {}}}})
    assert isinstance(adventure.state, Preparing)
    assert adventure.goblins.get("p2") == Goblin()
    assert adventure.settings.num_rounds == 10
    assert adventure.creator == ""


def test_from_dict_clamps_negative_stats():
    goblin = Goblin.from_dict({"health": -3, "luck": "x", "greed": 2, "loot": [{"rarity": "mythic"}]})
    assert goblin == Goblin(health=0, luck=0, greed=2, loot=[Loot("common")])


@pytest.mark.parametrize("state", [
    {"status": "paused"},
    {"status": "started", "goblins": {"p1": {}}, "turn": {"player": "p1"}, "phase": {"kind": "shop"}},
    {
        "status": "started",
        "goblins": {"p1": {}},
        "turn": {"player": "p1"},
        "phase": {"kind": "camp", "rummage_result": {"kind": "maybe"}},
    },
])
def test_from_dict_rejects_unknown_tags(state):
    with pytest.raises(ValueError):
        Adventure.from_dict({"state": state})


def test_from_dict_rejects_turn_on_empty_slot():
    with pytest.raises(ValueError):
        Adventure.from_dict({"state": {"status": "started", "goblins": {"p1": {}}, "turn": {"player": "p3"}}})


def _started_snapshot(order, turn_player="p1", outcome=None):
    return {
        "status": "started",
        "goblins": {"p1": {}, "p2": {}},
        "settings": {"goblin_order": order},
        "turn": {"player": turn_player},
        "phase": {"kind": "event", "location": 0, "scenario": 0, "outcome": outcome},
    }


def test_from_dict_accepts_consistent_started_state():
    state = _started_snapshot(["p1", "p2"], "p2", {"choice": 1, "effect": 13})
    adventure = Adventure.from_dict({"state": state})
    assert adventure.state.phase.outcome.effect == 13


@pytest.mark.parametrize("state", [
    _started_snapshot(["p1"], "p2"),
    _started_snapshot([], "p1"),
    _started_snapshot(["p1", "p3"], "p1"),
    _started_snapshot(["p1", "p2", "p1"], "p1"),
    _started_snapshot(["p1", "p2"], "p1", {"choice": 2, "effect": 0}),
    _started_snapshot(["p1", "p2"], "p1", {"choice": 1, "effect": 14}),
    _started_snapshot(["p1", "p2"], "p1", {"choice": 0, "effect": 99}),
])
def test_from_dict_rejects_inconsistent_started_state(state):
    with pytest.raises(ValueError):
        Adventure.from_dict({"state": state})


def test_from_dict_rejects_newer_version():
    with pytest.raises(ValueError):
        Adventure.from_dict({"version": 2})


def test_copy_is_deep(started):
    adventure = started()
    clone = adventure.copy()
    clone.goblins.get("p1").loot.append(Loot())
    assert adventure.goblins.get("p1").loot == []


# ── Roster ──────────────────────────────────


def test_roster_slots():
    roster = Roster()
    assert len(roster) == 0
    roster.put("p3", Goblin())
    roster.put("p1", Goblin())
    assert roster.players() == ["p1", "p3"]
    assert "p3" in roster
    assert "p2" not in roster
    assert "p9" not in roster
    roster.remove("p3")
    assert len(roster) == 1


def test_roster_rejects_unknown_player():
    with pytest.raises(ValueError):
        Roster().put("p5", Goblin())


def test_started_state_round_trips_each_field(started):
    adventure = started(["p2", "p3"])
    state = adventure.state
    assert isinstance(state, Started)
    restored = Adventure.from_dict(adventure.to_dict()).state
    assert restored.turn == state.turn
    assert restored.settings == state.settings
    assert restored.phase == state.phase
