"""Effect table applied to the goblin roster."""

import pytest

from loot_goblin.engine.definitions import EFFECT_KINDS
from loot_goblin.engine.effects import apply_effect
from loot_goblin.engine.resolver import ScriptedRandom
from loot_goblin.engine.state import MAX_LOOT, Goblin, Loot, Roster, Settings


def _party(*players):
    goblins = Roster()
    for p in players:
        goblins.put(p, Goblin())
    settings = Settings()
    settings.update_goblin_order(goblins)
    return goblins, settings


@pytest.mark.parametrize("effect", ["get_loot", "get_item", "steal_loot", "steal_item"])
def test_gain_effects_add_one_loot(effect):
    goblins, settings = _party("p1")
    events = apply_effect(goblins, settings, "p1", effect, ScriptedRandom([1]))
    assert goblins.get("p1").loot == [Loot("uncommon")]
    assert events[0].type == "loot_gained"


def test_gain_at_max_loot_draws_nothing():
    goblins, settings = _party("p1")
    goblins.get("p1").loot = [Loot() for _ in range(MAX_LOOT)]
    # An empty script raises if anything is drawn
    events = apply_effect(goblins, settings, "p1", "get_loot", ScriptedRandom([]))
    assert len(goblins.get("p1").loot) == MAX_LOOT
    assert events == []


def test_heal_and_boost_luck():
    goblins, settings = _party("p1")
    apply_effect(goblins, settings, "p1", "heal", ScriptedRandom([]))
    apply_effect(goblins, settings, "p1", "boost_luck", ScriptedRandom([]))
    goblin = goblins.get("p1")
    assert goblin.health == 3
    assert goblin.luck == 1


def test_get_attacked_floors_at_zero():
    goblins, settings = _party("p1")
    goblin = goblins.get("p1")
    goblin.health = 0
    events = apply_effect(goblins, settings, "p1", "get_attacked", ScriptedRandom([]))
    assert goblin.health == 0
    assert events == []

    goblin.health = 2
    events = apply_effect(goblins, settings, "p1", "get_attacked", ScriptedRandom([]))
    assert goblin.health == 1
    assert events[0].payload["change"] == -1


@pytest.mark.parametrize("start,expected", [(5, 3), (1, 0), (0, 0)])
def test_reduce_greed(start, expected):
    goblins, settings = _party("p1")
    goblins.get("p1").greed = start
    apply_effect(goblins, settings, "p1", "reduce_greed", ScriptedRandom([]))
    assert goblins.get("p1").greed == expected


@pytest.mark.parametrize("effect", ["lose_loot", "lose_item", "item_got_stolen"])
def test_lose_effects_drop_newest_loot(effect):
    goblins, settings = _party("p1")
    goblins.get("p1").loot = [Loot("common"), Loot("epic")]
    events = apply_effect(goblins, settings, "p1", effect, ScriptedRandom([]))
    assert goblins.get("p1").loot == [Loot("common")]
    assert events[0].payload["rarity"] == "epic"


def test_lose_effect_on_empty_loot_is_noop():
    goblins, settings = _party("p1")
    assert apply_effect(goblins, settings, "p1", "lose_loot", ScriptedRandom([])) == []


def test_stolen_loot_goes_to_next_in_order():
    goblins, settings = _party("p1", "p2", "p4")
    goblins.get("p2").loot = [Loot("rare")]
    events = apply_effect(goblins, settings, "p2", "loot_got_stolen", ScriptedRandom([]))
    assert goblins.get("p2").loot == []
    assert goblins.get("p4").loot == [Loot("rare")]
    assert events[0].payload == {"from_player": "p2", "to_player": "p4", "rarity": "rare"}


def test_stolen_loot_wraps_to_first():
    goblins, settings = _party("p1", "p2", "p4")
    goblins.get("p4").loot = [Loot("epic")]
    apply_effect(goblins, settings, "p4", "loot_got_stolen", ScriptedRandom([]))
    assert goblins.get("p1").loot == [Loot("epic")]


def test_stolen_loot_is_lost_when_alone():
    goblins, settings = _party("p3")
    goblins.get("p3").loot = [Loot("rare")]
    events = apply_effect(goblins, settings, "p3", "loot_got_stolen", ScriptedRandom([]))
    assert goblins.get("p3").loot == []
    assert events[0].type == "loot_lost"


def test_stolen_loot_is_lost_when_recipient_full():
    goblins, settings = _party("p1", "p2")
    goblins.get("p1").loot = [Loot("rare")]
    goblins.get("p2").loot = [Loot() for _ in range(MAX_LOOT)]
    events = apply_effect(goblins, settings, "p1", "loot_got_stolen", ScriptedRandom([]))
    assert goblins.get("p1").loot == []
    assert len(goblins.get("p2").loot) == MAX_LOOT
    assert events[0].type == "loot_lost"


@pytest.mark.parametrize("effect", ["slap_fight", "ok"])
def test_no_op_effects(effect):
    goblins, settings = _party("p1")
    before = goblins.to_dict()
    assert apply_effect(goblins, settings, "p1", effect, ScriptedRandom([])) == []
    assert goblins.to_dict() == before


def test_every_effect_kind_is_handled():
    for effect in EFFECT_KINDS:
        goblins, settings = _party("p1", "p2")
        apply_effect(goblins, settings, "p1", effect, ScriptedRandom([0]))


def test_unknown_effect():
    goblins, settings = _party("p1")
    with pytest.raises(ValueError):
        apply_effect(goblins, settings, "p1", "explode", ScriptedRandom([]))
