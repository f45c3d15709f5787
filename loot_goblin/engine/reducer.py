"""
Main adventure reducer.
Applies actions to an Adventure, enforcing phase rules and producing a new Adventure.
Returns (new_adventure, events) where events describe what happened.

A rejected action raises AdventureError and leaves the input untouched: handlers only
ever see a deep copy.
"""

import logging

from loot_goblin.config import MAX_NUM_ROUNDS
from loot_goblin.engine.actions import RISKY, SAFE, Action
from loot_goblin.engine.definitions import Catalog
from loot_goblin.engine.effects import apply_effect, change_stat
from loot_goblin.engine.errors import (
    ALREADY_RESOLVED,
    INVALID_ARGUMENT,
    INVALID_CHOICE_INDEX,
    INVALID_PLAYER,
    LAST_GOBLIN,
    LOOT_FULL,
    NOT_YET_ACCEPTED,
    NOT_YET_RESOLVED,
    NOT_YOUR_TURN,
    NOTHING_TO_OFFER,
    SLOT_TAKEN,
    UNKNOWN_ACTION,
    WRONG_PHASE,
    AdventureError,
)
from loot_goblin.engine.events import (
    AdventureEvent,
    adventure_completed,
    adventure_started,
    choice_made,
    event_started,
    goblin_dismissed,
    goblin_recruited,
    hero_bribed,
    item_taken,
    loot_left,
    loot_rummaged,
    loot_taken,
    outcome_applied,
    phase_changed,
    rummage_failed,
    settings_updated,
    turn_started,
)
from loot_goblin.engine.resolver import (
    RandomSource,
    draw_item,
    draw_location_and_scenario,
    draw_loot,
    rummage_caught,
    select_outcome,
)
from loot_goblin.engine.state import (
    MAX_ITEMS,
    MAX_LOOT,
    PLAYERS,
    Adventure,
    BribeResult,
    CampPhase,
    Complete,
    EventOutcome,
    EventPhase,
    Goblin,
    Preparing,
    RummageFail,
    RummageSuccess,
    Started,
    Turn,
)
from loot_goblin.engine.utils import next_player, rank_goblins

logger = logging.getLogger(__name__)


# Phase rules: which action types are allowed in which phase key
# ("preparing", "camp", "event", "complete"; see Adventure.phase_key)
PHASE_ALLOWED_ACTIONS = {
    "preparing": ["recruit_goblin", "dismiss_goblin", "update_settings", "start_adventure"],
    "camp": [
        "rummage_for_loot",
        "rummage_take_loot",
        "rummage_leave_loot",
        "bribe_hero",
        "bribe_take_item",
        "event_start",
    ],
    "event": ["event_make_choice", "event_handle_outcome", "keep_going", "take_a_break"],
    "complete": [],
}

ACTION_TYPES = frozenset(t for types in PHASE_ALLOWED_ACTIONS.values() for t in types)


def _validate_action_for_phase(action: Action, adventure: Adventure) -> None:
    """
    Validate that an action is known, allowed in the current phase, and sent by the right goblin.
    While Started only the goblin holding the turn may act; while Preparing any recruited goblin may.
    """
    if action.type not in ACTION_TYPES:
        raise AdventureError(UNKNOWN_ACTION, f"Unknown action type: {action.type}")

    phase = adventure.phase_key
    allowed_actions = PHASE_ALLOWED_ACTIONS[phase]
    if action.type not in allowed_actions:
        raise AdventureError(
            WRONG_PHASE,
            f"Action '{action.type}' is not allowed in phase '{phase}'. "
            f"Allowed actions: {', '.join(allowed_actions) or 'none'}",
        )

    state = adventure.state
    if isinstance(state, Started):
        if action.player != state.turn.player:
            raise AdventureError(
                NOT_YOUR_TURN,
                f"Action player {action.player} does not hold the turn ({state.turn.player})",
            )
    elif action.player not in state.goblins:
        raise AdventureError(INVALID_PLAYER, f"{action.player} has no goblin in this adventure")


def apply_action(
    adventure: Adventure,
    action: Action,
    catalog: Catalog,
    rng: RandomSource,
    sampling: str | None = None,
) -> tuple[Adventure, list[AdventureEvent]]:
    """
    Apply a single action to the current adventure, returning the new adventure and events.

    Args:
        adventure: Current adventure (never mutated)
        action: Action to apply
        catalog: Content catalog the adventure's location/scenario indices refer to
        rng: Source for every random draw this action makes
        sampling: Outcome sampling mode ("weighted" or "uniform"); defaults to config

    Returns:
        Tuple of (new_adventure, events) where events describe what happened

    Raises:
        AdventureError: action rejected; .reason is one of errors.FAILURE_REASONS
    """
    try:
        _validate_action_for_phase(action, adventure)

        new_adventure = adventure.copy()
        events: list[AdventureEvent] = []

        if action.type == "recruit_goblin":
            evts = _handle_recruit_goblin(new_adventure, action)
        elif action.type == "dismiss_goblin":
            evts = _handle_dismiss_goblin(new_adventure, action)
        elif action.type == "update_settings":
            evts = _handle_update_settings(new_adventure, action)
        elif action.type == "start_adventure":
            evts = _handle_start_adventure(new_adventure)

        elif action.type == "rummage_for_loot":
            evts = _handle_rummage_for_loot(new_adventure, rng)
        elif action.type == "rummage_take_loot":
            evts = _handle_rummage_take_loot(new_adventure)
        elif action.type == "rummage_leave_loot":
            evts = _handle_rummage_leave_loot(new_adventure)
        elif action.type == "bribe_hero":
            evts = _handle_bribe_hero(new_adventure, action, rng)
        elif action.type == "bribe_take_item":
            evts = _handle_bribe_take_item(new_adventure)
        elif action.type == "event_start":
            evts = _handle_event_start(new_adventure, catalog, rng)

        elif action.type == "event_make_choice":
            evts = _handle_event_make_choice(new_adventure, action, catalog, rng, sampling)
        elif action.type == "event_handle_outcome":
            evts = _handle_event_handle_outcome(new_adventure, catalog, rng)
        elif action.type == "keep_going":
            evts = _handle_keep_going(new_adventure, catalog, rng)
        elif action.type == "take_a_break":
            evts = _handle_take_a_break(new_adventure)

        else:
            raise AdventureError(UNKNOWN_ACTION, f"Unknown action type: {action.type}")
        events.extend(evts)
    except AdventureError as e:
        logger.info("Rejected %s from %s: %s (%s)", action.type, action.player, e.reason, e.message)
        raise

    logger.debug("Applied %s from %s -> %s (%d events)", action.type, action.player, new_adventure.phase_key, len(events))
    return new_adventure, events


# ===== Preparing =====

def _handle_recruit_goblin(adventure: Adventure, action: Action) -> list[AdventureEvent]:
    state = adventure.state
    target = action.payload.get("target")
    owner = action.payload.get("owner")
    if target not in PLAYERS:
        raise AdventureError(INVALID_PLAYER, f"Unknown player slot: {target!r}")
    if target in state.goblins:
        raise AdventureError(SLOT_TAKEN, f"Slot {target} already has a goblin")
    if owner and owner in state.settings.goblin_owners:
        raise AdventureError(SLOT_TAKEN, f"{owner} already owns {state.settings.goblin_owners[owner]}")

    state.goblins.put(target, Goblin())
    if owner:
        state.settings.goblin_owners[owner] = target
    state.settings.goblin_order = state.goblins.players()
    return [goblin_recruited(target, owner)]


def _handle_dismiss_goblin(adventure: Adventure, action: Action) -> list[AdventureEvent]:
    state = adventure.state
    target = action.payload.get("target")
    if target not in state.goblins:
        raise AdventureError(INVALID_PLAYER, f"No goblin in slot {target!r}")
    if len(state.goblins) <= 1:
        raise AdventureError(LAST_GOBLIN, "Cannot dismiss the last goblin")

    state.goblins.remove(target)
    owners = state.settings.goblin_owners
    for owner in [o for o, p in owners.items() if p == target]:
        del owners[owner]
    state.settings.goblin_order = state.goblins.players()
    return [goblin_dismissed(target)]


def _handle_update_settings(adventure: Adventure, action: Action) -> list[AdventureEvent]:
    settings = adventure.state.settings
    changes = {}

    num_rounds = action.payload.get("num_rounds")
    if num_rounds is not None:
        if isinstance(num_rounds, bool) or not isinstance(num_rounds, int) or not 1 <= num_rounds <= MAX_NUM_ROUNDS:
            raise AdventureError(INVALID_ARGUMENT, f"num_rounds must be 1..{MAX_NUM_ROUNDS}, got {num_rounds!r}")
        changes["num_rounds"] = num_rounds

    odds = action.payload.get("rummage_fail_odds")
    if odds is not None:
        if isinstance(odds, bool) or not isinstance(odds, int) or odds < 0:
            raise AdventureError(INVALID_ARGUMENT, f"rummage_fail_odds must be >= 0, got {odds!r}")
        changes["rummage_fail_odds"] = odds

    for key, value in changes.items():
        setattr(settings, key, value)
    return [settings_updated(changes)]


def _handle_start_adventure(adventure: Adventure) -> list[AdventureEvent]:
    """
    Fix turn order over the occupied slots (contiguous from 0), seed greed as 4 - ordinal,
    hand the turn to the first goblin and open a fresh camp.
    """
    prep = adventure.state
    prep.settings.update_goblin_order(prep.goblins)
    order = prep.settings.goblin_order
    first = order[0]

    adventure.state = Started(
        goblins=prep.goblins,
        settings=prep.settings,
        turn=Turn(player=first),
        phase=CampPhase(),
    )
    starting_greed = {p: prep.goblins.get(p).greed for p in order}
    return [
        adventure_started(list(order), starting_greed),
        phase_changed(Preparing.status, CampPhase.kind, first),
        turn_started(first, 0, 1),
    ]


# ===== Camp =====

def _camp(adventure: Adventure) -> tuple[Started, CampPhase]:
    state = adventure.state
    return state, state.phase


def _pending_rummage(camp: CampPhase) -> RummageSuccess:
    """The rummage result awaiting take/leave, or raise."""
    result = camp.rummage_result
    if result is None:
        raise AdventureError(NOT_YET_RESOLVED, "Nothing rummaged yet")
    if isinstance(result, RummageFail):
        raise AdventureError(ALREADY_RESOLVED, "Rummage failed; nothing to take or leave")
    if result.took is not None:
        raise AdventureError(ALREADY_RESOLVED, "Rummaged loot already taken or left")
    return result


def _handle_rummage_for_loot(adventure: Adventure, rng: RandomSource) -> list[AdventureEvent]:
    state, camp = _camp(adventure)
    player = state.turn.player
    if camp.rummage_result is not None:
        raise AdventureError(ALREADY_RESOLVED, "Already rummaged at this camp")

    if rummage_caught(state.settings.rummage_fail_odds, rng):
        camp.rummage_result = RummageFail()
        return [rummage_failed(player)]

    loot = draw_loot(rng)
    camp.rummage_result = RummageSuccess(loot=loot)
    return [loot_rummaged(player, loot.rarity)]


def _handle_rummage_take_loot(adventure: Adventure) -> list[AdventureEvent]:
    state, camp = _camp(adventure)
    player = state.turn.player
    result = _pending_rummage(camp)
    goblin = state.goblins.get(player)
    if len(goblin.loot) >= MAX_LOOT:
        raise AdventureError(LOOT_FULL, f"{player} already carries {MAX_LOOT} loot")

    goblin.loot.append(result.loot)
    result.took = True
    events = [loot_taken(player, result.loot.rarity, len(goblin.loot))]
    events.extend(change_stat(goblin, player, "greed", 1, "rummage_take_loot"))
    return events


def _handle_rummage_leave_loot(adventure: Adventure) -> list[AdventureEvent]:
    state, camp = _camp(adventure)
    player = state.turn.player
    result = _pending_rummage(camp)
    goblin = state.goblins.get(player)

    result.took = False
    events = [loot_left(player, result.loot.rarity)]
    events.extend(change_stat(goblin, player, "greed", -1, "rummage_leave_loot"))
    return events


def _handle_bribe_hero(adventure: Adventure, action: Action, rng: RandomSource) -> list[AdventureEvent]:
    """Hand the newest loot to a hero; the hero offers an item in return (confirmed by bribe_take_item)."""
    state, camp = _camp(adventure)
    player = state.turn.player
    hero = action.payload.get("hero")
    if camp.bribe_result is not None:
        raise AdventureError(ALREADY_RESOLVED, "Already bribed a hero at this camp")
    if hero not in state.settings.heroes:
        raise AdventureError(INVALID_ARGUMENT, f"No hero {hero!r} to bribe")
    goblin = state.goblins.get(player)
    if not goblin.loot:
        raise AdventureError(NOTHING_TO_OFFER, f"{player} has no loot to offer")

    loot = goblin.loot.pop()
    state.settings.heroes[hero] += 1
    got = draw_item(rng)
    camp.bribe_result = BribeResult(hero=hero, got=got)
    return [hero_bribed(player, hero, loot.rarity, got)]


def _handle_bribe_take_item(adventure: Adventure) -> list[AdventureEvent]:
    state, camp = _camp(adventure)
    player = state.turn.player
    bribe = camp.bribe_result
    if bribe is None:
        raise AdventureError(NOT_YET_RESOLVED, "No hero has been bribed")
    if bribe.confirmed:
        raise AdventureError(ALREADY_RESOLVED, "Item already taken")

    goblin = state.goblins.get(player)
    dropped = None
    if len(goblin.items) >= MAX_ITEMS:
        dropped = goblin.items.pop(0)
    goblin.items.append(bribe.got)
    bribe.confirmed = True
    return [item_taken(player, bribe.got, dropped)]


def _handle_event_start(adventure: Adventure, catalog: Catalog, rng: RandomSource) -> list[AdventureEvent]:
    """Leave camp for a random location/scenario. Valid whatever the rummage and bribe state."""
    state = adventure.state
    player = state.turn.player
    location, scenario = draw_location_and_scenario(catalog, rng)
    state.phase = EventPhase(location=location, scenario=scenario)
    return [
        phase_changed(CampPhase.kind, EventPhase.kind, player),
        event_started(player, location, scenario, catalog.location(location).id),
    ]


# ===== Event =====

def _handle_event_make_choice(
    adventure: Adventure,
    action: Action,
    catalog: Catalog,
    rng: RandomSource,
    sampling: str | None,
) -> list[AdventureEvent]:
    """
    Pick risky/safe, draw one of that action's outcomes, greed +1.
    The effect is applied later by event_handle_outcome.
    """
    state = adventure.state
    event = state.phase
    player = state.turn.player
    choice = action.payload.get("choice")
    if event.outcome is not None:
        raise AdventureError(ALREADY_RESOLVED, "A choice was already made for this event")
    if isinstance(choice, bool) or choice not in (RISKY, SAFE):
        raise AdventureError(INVALID_CHOICE_INDEX, f"Choice must be {RISKY} (risky) or {SAFE} (safe), got {choice!r}")

    action_def = catalog.action(event.location, event.scenario, choice)
    effect_index = select_outcome(action_def, rng, sampling)
    event.outcome = EventOutcome(choice=choice, effect=effect_index)

    goblin = state.goblins.get(player)
    events = [choice_made(player, choice, effect_index, action_def.outcomes[effect_index].effect)]
    events.extend(change_stat(goblin, player, "greed", 1, "event_make_choice"))
    return events


def _handle_event_handle_outcome(adventure: Adventure, catalog: Catalog, rng: RandomSource) -> list[AdventureEvent]:
    state = adventure.state
    event = state.phase
    player = state.turn.player
    outcome = event.outcome
    if outcome is None:
        raise AdventureError(NOT_YET_RESOLVED, "No choice made yet")
    if outcome.accepted:
        raise AdventureError(ALREADY_RESOLVED, "Outcome already accepted")

    outcome_def = catalog.outcome(event.location, event.scenario, outcome.choice, outcome.effect)
    effect_def = catalog.effect(outcome_def.effect)
    events = [outcome_applied(player, outcome_def.effect, effect_def.is_good)]
    events.extend(apply_effect(state.goblins, state.settings, player, outcome_def.effect, rng))
    outcome.accepted = True
    return events


def _handle_keep_going(adventure: Adventure, catalog: Catalog, rng: RandomSource) -> list[AdventureEvent]:
    """Next event for the same goblin. turn.num_events counts these and is never reset."""
    state = adventure.state
    event = state.phase
    player = state.turn.player
    if event.outcome is None:
        raise AdventureError(NOT_YET_RESOLVED, "No choice made yet")
    if not event.outcome.accepted:
        raise AdventureError(NOT_YET_ACCEPTED, "Accept the outcome before moving on")

    state.turn.num_events += 1
    location, scenario = draw_location_and_scenario(catalog, rng)
    state.phase = EventPhase(location=location, scenario=scenario)
    return [event_started(player, location, scenario, catalog.location(location).id)]


def _handle_take_a_break(adventure: Adventure) -> list[AdventureEvent]:
    """
    Pass the turn to the next goblin and return to a fresh camp.
    A goblin can rest before choosing or after accepting; a drawn outcome must be accepted first,
    so every effect that was drawn gets applied.
    When the turn wraps back to the first goblin and num_rounds full rounds are done,
    the adventure is Complete instead.
    """
    state = adventure.state
    event = state.phase
    player = state.turn.player
    if event.outcome is not None and not event.outcome.accepted:
        raise AdventureError(NOT_YET_ACCEPTED, "Accept the outcome before taking a break")

    order = state.settings.goblin_order
    state.turn.nonce += 1
    following = next_player(state.settings, player)
    rounds_played = state.turn.nonce // len(order)

    if following == order[0] and rounds_played >= state.settings.num_rounds:
        adventure.state = Complete(goblins=state.goblins, settings=state.settings)
        logger.info("Adventure complete after %d rounds", rounds_played)
        return [
            phase_changed(EventPhase.kind, Complete.status, player),
            adventure_completed(rounds_played, rank_goblins(state.goblins, state.settings)),
        ]

    state.turn.player = following
    state.phase = CampPhase()
    return [
        phase_changed(EventPhase.kind, CampPhase.kind, following),
        turn_started(following, state.turn.nonce, rounds_played + 1),
    ]


def replay_from_actions(
    initial: Adventure,
    actions: list[Action],
    catalog: Catalog,
    rng: RandomSource,
    sampling: str | None = None,
) -> tuple[Adventure, list[AdventureEvent]]:
    """
    Replay a series of actions from an initial adventure.
    With rng = ScriptedRandom(recorded draws) this reproduces a recorded session exactly.

    Returns:
        Tuple of (final_adventure, all_events) after all actions applied
    """
    current = initial.copy()
    all_events: list[AdventureEvent] = []

    for action in actions:
        current, events = apply_action(current, action, catalog, rng, sampling)
        all_events.extend(events)

    return current, all_events
