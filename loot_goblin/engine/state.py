"""
Adventure state representation.
The reducer never mutates its input; it works on a copy and returns the new Adventure.
Includes JSON serialization for save/load functionality.

Closed unions are plain dataclasses tagged on the wire:
    AdventureState = Preparing | Started | Complete      ("status")
    Phase          = CampPhase | EventPhase              ("kind")
    RummageResult  = RummageFail | RummageSuccess        ("kind")
"""

import json
from copy import deepcopy
from dataclasses import dataclass, field
from typing import Any, ClassVar, Union

from loot_goblin.config import DEFAULT_NUM_ROUNDS, DEFAULT_RUMMAGE_FAIL_ODDS
from loot_goblin.engine import (
    ACTIONS_PER_SCENARIO,
    MAX_GOBLINS,
    OUTCOMES_PER_ACTION,
    SNAPSHOT_VERSION,
    STARTING_GREED_BASE,
    STARTING_HEALTH,
)

# Canonical roster order; a participant's identity is its slot
PLAYERS = ("p1", "p2", "p3", "p4")
RARITIES = ("common", "uncommon", "rare", "legendary", "epic")
ITEM_KINDS = ("foo", "bar", "baz", "qux")
HERO_KINDS = ("thief", "wizard", "warrior", "merchant", "ninja")
# Heroes travelling with the party (the ones a goblin can bribe)
PARTY_HEROES = ("thief", "wizard", "warrior", "merchant")

MAX_ITEMS = 1
MAX_LOOT = 32


def _int(value: Any, default: int, minimum: int | None = 0) -> int:
    try:
        result = int(value) if value is not None else default
    except (TypeError, ValueError):
        result = default
    if minimum is not None:
        result = max(minimum, result)
    return result


def _optional_bool(value: Any) -> bool | None:
    if isinstance(value, bool):
        return value
    return None


def player_index(player: str) -> int:
    """Slot index for a participant id. Raises ValueError for ids outside p1..p4."""
    try:
        return PLAYERS.index(player)
    except ValueError:
        raise ValueError(f"Unknown player: {player!r}") from None


@dataclass
class Loot:
    """A collected piece of loot."""
    rarity: str = "common"

    def to_dict(self) -> dict[str, Any]:
        return {"rarity": self.rarity}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Loot":
        if not isinstance(data, dict):
            data = {}
        rarity = data.get("rarity")
        return cls(rarity=rarity if rarity in RARITIES else "common")


@dataclass
class Goblin:
    """Per-participant attributes and inventory. All numbers are floored at 0."""
    health: int = STARTING_HEALTH
    luck: int = 0
    greed: int = 0
    items: list[str] = field(default_factory=list)  # ITEM_KINDS, at most MAX_ITEMS
    loot: list[Loot] = field(default_factory=list)  # oldest first, at most MAX_LOOT

    def to_dict(self) -> dict[str, Any]:
        return {
            "health": self.health,
            "luck": self.luck,
            "greed": self.greed,
            "items": list(self.items),
            "loot": [l.to_dict() for l in self.loot],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Goblin":
        if not isinstance(data, dict):
            data = {}
        items = data.get("items")
        if not isinstance(items, list):
            items = []
        loot = data.get("loot")
        if not isinstance(loot, list):
            loot = []
        return cls(
            health=_int(data.get("health"), STARTING_HEALTH),
            luck=_int(data.get("luck"), 0),
            greed=_int(data.get("greed"), 0),
            items=[str(i) for i in items if i in ITEM_KINDS][:MAX_ITEMS],
            loot=[Loot.from_dict(l) for l in loot if isinstance(l, dict)][:MAX_LOOT],
        )


@dataclass
class Roster:
    """Fixed four-slot goblin store, indexed in PLAYERS order. Empty slots are None."""
    slots: list[Goblin | None] = field(default_factory=lambda: [None] * MAX_GOBLINS)

    def get(self, player: str) -> Goblin | None:
        if player not in PLAYERS:
            return None
        return self.slots[player_index(player)]

    def put(self, player: str, goblin: Goblin) -> None:
        self.slots[player_index(player)] = goblin

    def remove(self, player: str) -> None:
        self.slots[player_index(player)] = None

    def players(self) -> list[str]:
        """Occupied slots in canonical order."""
        return [p for p, g in zip(PLAYERS, self.slots) if g is not None]

    def __contains__(self, player: object) -> bool:
        return isinstance(player, str) and self.get(player) is not None

    def __len__(self) -> int:
        return sum(1 for g in self.slots if g is not None)

    def to_dict(self) -> dict[str, Any]:
        return {p: (g.to_dict() if g is not None else None) for p, g in zip(PLAYERS, self.slots)}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Roster":
        if not isinstance(data, dict):
            data = {}
        return cls(slots=[
            Goblin.from_dict(data[p]) if isinstance(data.get(p), dict) else None
            for p in PLAYERS
        ])


@dataclass
class Settings:
    """Adventure settings. Mutable only while Preparing (turn order is fixed by start_adventure)."""
    num_rounds: int = DEFAULT_NUM_ROUNDS
    # Index is the ordinal: goblin_order[0] acts first
    goblin_order: list[str] = field(default_factory=lambda: ["p1"])
    # owner identity -> player
    goblin_owners: dict[str, str] = field(default_factory=dict)
    # hero -> pieces of loot handed over in bribes
    heroes: dict[str, int] = field(default_factory=lambda: {h: 0 for h in PARTY_HEROES})
    rummage_fail_odds: int = DEFAULT_RUMMAGE_FAIL_ODDS

    def update_goblin_order(self, goblins: Roster) -> None:
        """Fix turn order over the occupied slots and seed starting greed (first to act is greediest)."""
        self.goblin_order = goblins.players()
        for ordinal, player in enumerate(self.goblin_order):
            goblins.get(player).greed = max(0, STARTING_GREED_BASE - ordinal)

    def owner_of(self, player: str) -> str | None:
        for owner, p in self.goblin_owners.items():
            if p == player:
                return owner
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "num_rounds": self.num_rounds,
            "goblin_order": list(self.goblin_order),
            "goblin_owners": dict(self.goblin_owners),
            "heroes": dict(self.heroes),
            "rummage_fail_odds": self.rummage_fail_odds,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Settings":
        if not isinstance(data, dict):
            data = {}
        order = data.get("goblin_order")
        if not isinstance(order, list):
            order = ["p1"]
        owners = data.get("goblin_owners")
        if not isinstance(owners, dict):
            owners = {}
        heroes = data.get("heroes")
        if not isinstance(heroes, dict):
            heroes = {h: 0 for h in PARTY_HEROES}
        return cls(
            num_rounds=_int(data.get("num_rounds"), DEFAULT_NUM_ROUNDS, minimum=1),
            goblin_order=[str(p) for p in order if p in PLAYERS],
            goblin_owners={str(k): str(v) for k, v in owners.items() if v in PLAYERS},
            heroes={str(k): _int(v, 0) for k, v in heroes.items() if k in HERO_KINDS},
            rummage_fail_odds=_int(data.get("rummage_fail_odds"), DEFAULT_RUMMAGE_FAIL_ODDS),
        )


@dataclass
class Turn:
    """Whose turn it is. nonce counts completed turns, num_events counts keep_going calls."""
    player: str
    nonce: int = 0
    num_events: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {"player": self.player, "nonce": self.nonce, "num_events": self.num_events}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Turn":
        if not isinstance(data, dict):
            data = {}
        player = data.get("player")
        return cls(
            player=player if player in PLAYERS else "p1",
            nonce=_int(data.get("nonce"), 0),
            num_events=_int(data.get("num_events"), 0),
        )


# ===== Camp phase =====

@dataclass
class RummageFail:
    """The goblin got caught rummaging; nothing to take."""
    kind: ClassVar[str] = "fail"

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind}


@dataclass
class RummageSuccess:
    """Loot found in the party sack. took is None until the goblin decides."""
    loot: Loot
    took: bool | None = None
    kind: ClassVar[str] = "success"

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind, "loot": self.loot.to_dict(), "took": self.took}


RummageResult = Union[RummageFail, RummageSuccess]


def rummage_result_from_dict(data: Any) -> RummageResult | None:
    if not isinstance(data, dict):
        return None
    kind = data.get("kind")
    if kind == RummageFail.kind:
        return RummageFail()
    if kind == RummageSuccess.kind:
        return RummageSuccess(loot=Loot.from_dict(data.get("loot")), took=_optional_bool(data.get("took")))
    raise ValueError(f"Unknown rummage result kind: {kind!r}")


@dataclass
class BribeResult:
    """A hero took loot and handed over an item. confirmed once the goblin pockets it."""
    hero: str
    got: str
    confirmed: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {"hero": self.hero, "got": self.got, "confirmed": self.confirmed}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "BribeResult":
        if not isinstance(data, dict):
            data = {}
        hero = data.get("hero")
        got = data.get("got")
        return cls(
            hero=hero if hero in HERO_KINDS else PARTY_HEROES[0],
            got=got if got in ITEM_KINDS else ITEM_KINDS[0],
            confirmed=bool(data.get("confirmed", False)),
        )


@dataclass
class CampPhase:
    """Rest stop between events. Each result goes from unset to set once per visit."""
    rummage_result: RummageResult | None = None
    bribe_result: BribeResult | None = None
    kind: ClassVar[str] = "camp"

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "rummage_result": self.rummage_result.to_dict() if self.rummage_result else None,
            "bribe_result": self.bribe_result.to_dict() if self.bribe_result else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CampPhase":
        if not isinstance(data, dict):
            data = {}
        bribe = data.get("bribe_result")
        return cls(
            rummage_result=rummage_result_from_dict(data.get("rummage_result")),
            bribe_result=BribeResult.from_dict(bribe) if isinstance(bribe, dict) else None,
        )


# ===== Event phase =====

@dataclass
class EventOutcome:
    """The drawn outcome: which action was chosen and which of its outcomes came up."""
    choice: int  # action index within the scenario (0 = risky, 1 = safe)
    effect: int  # outcome index within the action
    accepted: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {"choice": self.choice, "effect": self.effect, "accepted": self.accepted}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "EventOutcome":
        if not isinstance(data, dict):
            data = {}
        return cls(
            choice=_int(data.get("choice"), 0),
            effect=_int(data.get("effect"), 0),
            accepted=bool(data.get("accepted", False)),
        )


@dataclass
class EventPhase:
    """Exploration event at a catalog location/scenario. Stores indices only, never catalog content."""
    location: int
    scenario: int
    outcome: EventOutcome | None = None
    kind: ClassVar[str] = "event"

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "location": self.location,
            "scenario": self.scenario,
            "outcome": self.outcome.to_dict() if self.outcome else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "EventPhase":
        if not isinstance(data, dict):
            data = {}
        outcome = data.get("outcome")
        return cls(
            location=_int(data.get("location"), 0),
            scenario=_int(data.get("scenario"), 0),
            outcome=EventOutcome.from_dict(outcome) if isinstance(outcome, dict) else None,
        )


Phase = Union[CampPhase, EventPhase]


def phase_from_dict(data: Any) -> Phase:
    if not isinstance(data, dict):
        return CampPhase()
    kind = data.get("kind")
    if kind == CampPhase.kind:
        return CampPhase.from_dict(data)
    if kind == EventPhase.kind:
        return EventPhase.from_dict(data)
    raise ValueError(f"Unknown phase kind: {kind!r}")


# ===== Adventure lifecycle =====

@dataclass
class Preparing:
    """Roster and settings are still open."""
    goblins: Roster
    settings: Settings
    status: ClassVar[str] = "preparing"

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status,
            "goblins": self.goblins.to_dict(),
            "settings": self.settings.to_dict(),
        }


@dataclass
class Started:
    """Adventure in progress; exactly one phase is active."""
    goblins: Roster
    settings: Settings
    turn: Turn
    phase: Phase
    status: ClassVar[str] = "started"

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status,
            "goblins": self.goblins.to_dict(),
            "settings": self.settings.to_dict(),
            "turn": self.turn.to_dict(),
            "phase": self.phase.to_dict(),
        }


@dataclass
class Complete:
    """Round budget spent. Accepts no further actions."""
    goblins: Roster
    settings: Settings
    status: ClassVar[str] = "complete"

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status,
            "goblins": self.goblins.to_dict(),
            "settings": self.settings.to_dict(),
        }


AdventureState = Union[Preparing, Started, Complete]


def _check_started(goblins: Roster, settings: Settings, turn: Turn, phase: Phase) -> None:
    """Turn order covers occupied slots only, once each, and holds the turn player; outcome indices in range."""
    order = settings.goblin_order
    if not order:
        raise ValueError("Started adventure has an empty turn order")
    if len(set(order)) != len(order):
        raise ValueError(f"Turn order repeats a goblin: {order}")
    empty = [p for p in order if p not in goblins]
    if empty:
        raise ValueError(f"Turn order names empty slots: {empty}")
    if turn.player not in order:
        raise ValueError(f"Turn player {turn.player} is not in the turn order {order}")
    if isinstance(phase, EventPhase) and phase.outcome is not None:
        outcome = phase.outcome
        if not 0 <= outcome.choice < ACTIONS_PER_SCENARIO:
            raise ValueError(f"Outcome choice {outcome.choice} out of range")
        if not 0 <= outcome.effect < OUTCOMES_PER_ACTION:
            raise ValueError(f"Outcome index {outcome.effect} out of range")


def adventure_state_from_dict(data: Any) -> AdventureState:
    """
    Decode a tagged AdventureState. Raises ValueError for unknown tags, and for a Started state
    whose turn, turn order or drawn outcome could not have been produced by the reducer.
    """
    if not isinstance(data, dict):
        data = {}
    status = data.get("status", Preparing.status)
    goblins = Roster.from_dict(data.get("goblins"))
    settings = Settings.from_dict(data.get("settings"))
    if status == Preparing.status:
        return Preparing(goblins=goblins, settings=settings)
    if status == Complete.status:
        return Complete(goblins=goblins, settings=settings)
    if status == Started.status:
        turn = Turn.from_dict(data.get("turn"))
        if turn.player not in goblins:
            raise ValueError(f"Turn player {turn.player} has no goblin")
        phase = phase_from_dict(data.get("phase"))
        _check_started(goblins, settings, turn, phase)
        return Started(goblins=goblins, settings=settings, turn=turn, phase=phase)
    raise ValueError(f"Unknown adventure status: {status!r}")


@dataclass
class Adventure:
    """One persistent play session: who created it, which save slot, and its state."""
    creator: str
    save_slot: int
    state: AdventureState

    @classmethod
    def new(cls, creator: str = "", save_slot: int = 0) -> "Adventure":
        """Fresh adventure in Preparing with the creator's goblin in slot p1."""
        goblins = Roster()
        goblins.put("p1", Goblin())
        settings = Settings()
        if creator:
            settings.goblin_owners[creator] = "p1"
        return cls(creator=creator, save_slot=save_slot, state=Preparing(goblins=goblins, settings=settings))

    @property
    def status(self) -> str:
        return self.state.status

    @property
    def phase_key(self) -> str:
        """'preparing', 'camp', 'event' or 'complete'."""
        if isinstance(self.state, Started):
            return self.state.phase.kind
        return self.state.status

    @property
    def goblins(self) -> Roster:
        return self.state.goblins

    @property
    def settings(self) -> Settings:
        return self.state.settings

    def copy(self) -> "Adventure":
        """Return a deep copy of this adventure."""
        return deepcopy(self)

    # ===== Serialization Methods =====

    def to_dict(self) -> dict[str, Any]:
        """Convert Adventure to a dictionary for JSON serialization."""
        return {
            "version": SNAPSHOT_VERSION,
            "creator": self.creator,
            "save_slot": self.save_slot,
            "state": self.state.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Adventure":
        """Create Adventure from a dictionary (missing fields fall back to defaults)."""
        if not isinstance(data, dict):
            data = {}
        version = _int(data.get("version"), SNAPSHOT_VERSION)
        if version > SNAPSHOT_VERSION:
            raise ValueError(f"Snapshot version {version} is newer than supported {SNAPSHOT_VERSION}")
        return cls(
            creator=str(data.get("creator") or ""),
            save_slot=_int(data.get("save_slot"), 0),
            state=adventure_state_from_dict(data.get("state")),
        )

    def to_json(self, indent: int = 2) -> str:
        """Serialize Adventure to a JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_json(cls, json_str: str) -> "Adventure":
        """Deserialize Adventure from a JSON string."""
        return cls.from_dict(json.loads(json_str))

    def save(self, filepath: str) -> None:
        """Save Adventure to a JSON file."""
        with open(filepath, "w") as f:
            f.write(self.to_json())

    @classmethod
    def load(cls, filepath: str) -> "Adventure":
        """Load Adventure from a JSON file."""
        with open(filepath, "r") as f:
            return cls.from_json(f.read())
