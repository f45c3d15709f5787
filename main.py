"""
Main entry point for the Loot Goblin adventure engine.
Demonstrates core functionality with a scripted, seeded adventure.
"""

import os
import tempfile

from loot_goblin.config import configure_logging
from loot_goblin.engine.actions import (
    RISKY,
    SAFE,
    event_handle_outcome,
    event_make_choice,
    event_start,
    keep_going,
    recruit_goblin,
    rummage_for_loot,
    rummage_take_loot,
    start_adventure,
    take_a_break,
    update_settings,
)
from loot_goblin.engine.definitions import get_catalog
from loot_goblin.engine.errors import AdventureError
from loot_goblin.engine.queries import get_available_action_types, get_event_view, get_standings
from loot_goblin.engine.reducer import apply_action, replay_from_actions
from loot_goblin.engine.resolver import RecordingRandom, ScriptedRandom, SeededRandom
from loot_goblin.engine.state import Adventure
from loot_goblin.engine.utils import print_adventure, print_events


def play_turn(adventure, catalog, rng, actions_log, events_per_turn=2):
    """One goblin's turn: rummage and pocket the loot, then a few events, then back to camp."""
    player = adventure.state.turn.player

    def step(action):
        nonlocal adventure
        adventure, events = apply_action(adventure, action, catalog, rng)
        actions_log.append(action)
        return events

    step(rummage_for_loot(player))
    if "rummage_take_loot" in get_available_action_types(adventure):
        step(rummage_take_loot(player))
    step(event_start(player))
    for i in range(events_per_turn):
        if i:
            step(keep_going(player))
        step(event_make_choice(player, RISKY if i % 2 == 0 else SAFE))
        step(event_handle_outcome(player))
    step(take_a_break(player))
    return adventure


def main():
    configure_logging()
    print("Loot Goblin Adventure Engine")
    print("=" * 60)

    catalog = get_catalog()
    print(f"Catalog: {catalog.display_name} ({len(catalog.locations)} locations)")

    # ===== SCENARIO 1: Preparing =====
    print("\n[SCENARIO 1: Roster and settings]")
    adventure = Adventure.new(creator="demo")
    rng = RecordingRandom(SeededRandom(42))
    setup_actions = [
        recruit_goblin("p1", "p2"),
        recruit_goblin("p1", "p4"),
        update_settings("p1", num_rounds=3),
        start_adventure("p1"),
    ]
    initial = adventure.copy()
    for action in setup_actions:
        adventure, events = apply_action(adventure, action, catalog, rng)
        print(f"✓ {action.type}: {[e.type for e in events]}")
    print_adventure(adventure, catalog)
    print("Starting greed:", {p: adventure.goblins.get(p).greed for p in adventure.settings.goblin_order})

    # ===== SCENARIO 2: Rejected actions leave state untouched =====
    print("\n[SCENARIO 2: Precondition failures]")
    for action in [start_adventure("p1"), rummage_take_loot("p1"), keep_going("p2")]:
        try:
            apply_action(adventure, action, catalog, rng)
            print(f"✗ {action.type} unexpectedly succeeded")
        except AdventureError as e:
            print(f"✓ {action.type} rejected: {e.reason}")

    # ===== SCENARIO 3: Camp and event =====
    print("\n[SCENARIO 3: One full turn]")
    actions_log = list(setup_actions)
    adventure = play_turn(adventure, catalog, rng, actions_log)
    print_adventure(adventure, catalog, verbose=True)

    # ===== SCENARIO 4: Play to the end =====
    print("\n[SCENARIO 4: Play until the round budget runs out]")
    while adventure.status == "started":
        adventure = play_turn(adventure, catalog, rng, actions_log)
    print_adventure(adventure, catalog, verbose=True)
    for s in get_standings(adventure):
        print(f"  #{s['rank']} {s['player']}: loot={s['loot']} luck={s['luck']} health={s['health']}")

    # ===== SCENARIO 5: Replay from the action log =====
    print("\n[SCENARIO 5: Replay]")
    replayed, all_events = replay_from_actions(initial, actions_log, catalog, ScriptedRandom(rng.draws))
    print(f"Replayed {len(actions_log)} actions, {len(rng.draws)} draws, {len(all_events)} events")
    print("✓ Replay matches" if replayed == adventure else "✗ Replay diverged")

    # ===== SCENARIO 6: Save / load =====
    print("\n[SCENARIO 6: Save and load]")
    with tempfile.TemporaryDirectory() as tmp:
        path = os.path.join(tmp, "adventure.json")
        adventure.save(path)
        loaded = Adventure.load(path)
    print("✓ Snapshot round-trips" if loaded == adventure else "✗ Snapshot differs")

    # Peek at one event view for flavor
    preview = Adventure.new(creator="demo")
    preview, _ = apply_action(preview, start_adventure("p1"), catalog, rng.inner)
    preview, _ = apply_action(preview, event_start("p1"), catalog, rng.inner)
    preview, events = apply_action(preview, event_make_choice("p1", RISKY), catalog, rng.inner)
    view = get_event_view(preview, catalog)
    print(f"\n{view['location_name']} - {view['scenario_name']}")
    print(f"  > {view['actions'][RISKY]}")
    print(f"  {view['outcome']['description']}")
    print_events(events)


if __name__ == "__main__":
    main()
