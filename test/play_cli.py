#!/usr/bin/env python3
"""
Interactive CLI for playing a Loot Goblin adventure against the engine.
Run: python test/play_cli.py [save.json]
"""

import sys

from loot_goblin.engine.actions import (
    RISKY,
    SAFE,
    bribe_hero,
    bribe_take_item,
    dismiss_goblin,
    event_handle_outcome,
    event_make_choice,
    event_start,
    keep_going,
    recruit_goblin,
    rummage_for_loot,
    rummage_leave_loot,
    rummage_take_loot,
    start_adventure,
    take_a_break,
    update_settings,
)
from loot_goblin.engine.definitions import get_catalog
from loot_goblin.engine.errors import AdventureError
from loot_goblin.engine.queries import (
    get_available_action_types,
    get_camp_view,
    get_event_view,
    get_standings,
    pick_dialog,
)
from loot_goblin.engine.reducer import apply_action
from loot_goblin.engine.resolver import SeededRandom
from loot_goblin.engine.state import PLAYERS, Adventure, Started
from loot_goblin.engine.utils import print_adventure


def print_camp(view):
    print(f"\n--- {view['name']} ---")
    print(view["description"])
    rummage = view["rummage"]
    if rummage["status"] == "success":
        took = {None: "undecided", True: "taken", False: "left"}[rummage["took"]]
        print(f"Rummaged: {rummage['rarity']} loot ({took})")
    elif rummage["status"] == "fail":
        print("Rummaged: caught red-handed!")
    if view["bribe"]:
        b = view["bribe"]
        print(f"Bribed the {b['hero']} for a {b['got']}{' (pocketed)' if b['confirmed'] else ''}")


def print_event(view):
    print(f"\n--- {view['location_name']}: {view['scenario_name']} ---")
    print(view["scenario_description"])
    for i, label in enumerate(view["actions"]):
        print(f"  ({i}) {label}")
    outcome = view["outcome"]
    if outcome:
        mood = "good" if outcome["is_good"] else "bad"
        print(f"\n{outcome['description']}")
        print(f"[{outcome['effect']}, {mood}] {outcome['effect_description']}")


def print_events(events):
    for e in events:
        p = e.payload
        if e.type == "loot_gained":
            print(f"  {p['player']} gained {p['rarity']} loot")
        elif e.type == "loot_lost":
            print(f"  {p['player']} lost {p['rarity']} loot")
        elif e.type == "loot_transferred":
            print(f"  {p['from_player']}'s {p['rarity']} loot ended up with {p['to_player']}")
        elif e.type == "stat_changed":
            print(f"  {p['player']} {p['stat']}: {p['old_value']} -> {p['new_value']}")
        elif e.type == "adventure_completed":
            print(f"\n  *** ADVENTURE COMPLETE after {p['rounds_played']} rounds ***")
        elif e.type in ["phase_changed", "turn_started", "event_started"]:
            pass  # Header will show this
        else:
            print(f"  {e.type}: {p}")


def prompt_player(prompt):
    target = input(prompt).strip().lower()
    return target if target in PLAYERS else None


def main_loop(save_path=None):
    """Main adventure loop."""
    print("\n" + "=" * 60)
    print("  LOOT GOBLIN")
    print("  CLI Test Interface")
    print("=" * 60)

    catalog = get_catalog()
    rng = SeededRandom()
    adventure = Adventure.load(save_path) if save_path else Adventure.new(creator="cli")

    while True:
        print_adventure(adventure, catalog)
        state = adventure.state
        available = get_available_action_types(adventure)
        actor = state.turn.player if isinstance(state, Started) else state.goblins.players()[0]

        camp = get_camp_view(adventure, catalog)
        event = get_event_view(adventure, catalog)
        if camp:
            print_camp(camp)
        if event:
            print_event(event)

        if adventure.status == "complete":
            print("\n--- Standings ---")
            for s in get_standings(adventure):
                print(f"  #{s['rank']} {s['player']}: {s['loot']} loot, luck {s['luck']}")
            input("\nPress Enter to exit.")
            break

        menu = []
        if "recruit_goblin" in available:
            menu.append(("r", "Recruit goblin"))
        if "dismiss_goblin" in available:
            menu.append(("d", "Dismiss goblin"))
        if "update_settings" in available:
            menu.append(("n", f"Set number of rounds ({state.settings.num_rounds})"))
        if "start_adventure" in available:
            menu.append(("g", "Start adventure"))
        if "rummage_for_loot" in available:
            menu.append(("l", "Rummage for loot"))
        if "rummage_take_loot" in available:
            menu.append(("t", "Take the loot"))
        if "rummage_leave_loot" in available:
            menu.append(("p", "Put it back"))
        if "bribe_hero" in available:
            menu.append(("b", "Bribe a hero"))
        if "bribe_take_item" in available:
            menu.append(("i", "Take the item"))
        if "event_start" in available:
            menu.append(("e", "Head out"))
        if "event_make_choice" in available:
            menu.append(("0", "Risky choice"))
            menu.append(("1", "Safe choice"))
        if "event_handle_outcome" in available:
            menu.append(("a", "Accept outcome"))
        if "keep_going" in available:
            menu.append(("k", "Keep going"))
        if "take_a_break" in available:
            menu.append(("c", "Take a break (back to camp)"))
        menu.append(("s", "Save adventure"))
        menu.append(("q", "Quit"))

        print(f"\n--- Actions ({actor}) ---")
        for key, desc in menu:
            print(f"  [{key}] {desc}")

        choice = input("\nAction: ").strip().lower()
        action = None

        if choice == "q":
            print("Thanks for playing!")
            break
        elif choice == "s":
            filename = input("Save filename (default: save.json): ").strip() or "save.json"
            adventure.save(filename)
            print(f"Adventure saved to {filename}")
            continue
        elif choice == "r":
            target = prompt_player("Slot (p1-p4): ")
            action = recruit_goblin(actor, target) if target else None
        elif choice == "d":
            target = prompt_player("Slot (p1-p4): ")
            action = dismiss_goblin(actor, target) if target else None
        elif choice == "n":
            raw = input("Rounds: ").strip()
            action = update_settings(actor, num_rounds=int(raw)) if raw.isdigit() else None
        elif choice == "g":
            action = start_adventure(actor)
        elif choice == "l":
            action = rummage_for_loot(actor)
        elif choice == "t":
            action = rummage_take_loot(actor)
        elif choice == "p":
            action = rummage_leave_loot(actor)
        elif choice == "b":
            heroes = list(state.settings.heroes)
            for i, h in enumerate(heroes):
                print(f"  ({i}) {h}")
            raw = input("Hero #: ").strip()
            if raw.isdigit() and int(raw) < len(heroes):
                action = bribe_hero(actor, heroes[int(raw)])
        elif choice == "i":
            action = bribe_take_item(actor)
        elif choice == "e":
            action = event_start(actor)
        elif choice in ("0", "1"):
            action = event_make_choice(actor, RISKY if choice == "0" else SAFE)
        elif choice == "a":
            action = event_handle_outcome(actor)
        elif choice == "k":
            action = keep_going(actor)
        elif choice == "c":
            action = take_a_break(actor)

        if action is None:
            continue
        try:
            adventure, events = apply_action(adventure, action, catalog, rng)
        except AdventureError as ex:
            print(f"\nCan't do that ({ex.reason}): {ex.message}")
            continue

        if action.type == "rummage_for_loot":
            pool = "loot_rummage" if events[0].type == "loot_rummaged" else "loot_rummage_fail"
            print(f'\n"{pick_dialog(catalog, pool, rng)}"')
        elif action.type == "take_a_break" and adventure.status != "complete":
            print(f'\n"{pick_dialog(catalog, "entering_camp", rng)}"')
        print_events(events)


if __name__ == "__main__":
    try:
        main_loop(sys.argv[1] if len(sys.argv) > 1 else None)
    except KeyboardInterrupt:
        print("\n\nAdventure interrupted. Goodbye!")
        sys.exit(0)
