"""
Static content catalog: locations, scenarios, actions, outcomes, effects and dialog.
All catalog data lives under data/catalogs/<catalog_id>/: locations.json, outcome_tables.json,
effects.json, dialog.json, and optional manifest.json (display_name, version).

Catalogs are loaded once and never mutated; adventures only store indices into them.
"""

import json
from dataclasses import dataclass, field
from pathlib import Path

from loot_goblin.engine import ACTIONS_PER_SCENARIO, OUTCOMES_PER_ACTION

DATA_DIR = Path(__file__).parent.parent / "data"
CATALOGS_DIR = DATA_DIR / "catalogs"

REQUIRED_FILES = ("locations.json", "outcome_tables.json", "effects.json", "dialog.json")

# Effect tags, in effect-table order
EFFECT_KINDS = (
    "get_loot",
    "get_item",
    "steal_loot",
    "steal_item",
    "heal",
    "boost_luck",
    "reduce_greed",
    "lose_loot",
    "lose_item",
    "loot_got_stolen",
    "item_got_stolen",
    "slap_fight",
    "get_attacked",
    "ok",
)


def _default_catalog_id() -> str:
    """Single place for default: loot_goblin.config.DEFAULT_CATALOG_ID."""
    from loot_goblin.config import DEFAULT_CATALOG_ID
    return DEFAULT_CATALOG_ID


def _catalog_dir(catalog_id: str) -> Path:
    return CATALOGS_DIR / catalog_id


def _read_manifest(catalog_dir: Path) -> dict:
    manifest_path = catalog_dir / "manifest.json"
    if not manifest_path.exists():
        return {}
    try:
        with open(manifest_path, "r") as f:
            m = json.load(f)
        return m if isinstance(m, dict) else {}
    except (json.JSONDecodeError, OSError):
        return {}


def list_catalogs() -> list[dict]:
    """Return [{ id, display_name, version }, ...] for all catalogs (subdirs of data/catalogs/ with locations.json)."""
    out = []
    if not CATALOGS_DIR.exists():
        return out
    for d in sorted(CATALOGS_DIR.iterdir()):
        if not d.is_dir() or not (d / "locations.json").exists():
            continue
        m = _read_manifest(d)
        out.append({
            "id": m.get("id", d.name),
            "display_name": m.get("display_name", d.name),
            "version": m.get("version", 1),
        })
    return out


@dataclass(frozen=True)
class OutcomeDefinition:
    """One of the fourteen possible consequences of an action."""
    effect: str  # one of EFFECT_KINDS
    weight: int  # relative, non-negative
    description: str
    dialog: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class ActionDefinition:
    """A choice offered by a scenario (index 0 = risky, 1 = safe)."""
    label: str
    outcomes: list[OutcomeDefinition]
    dialog: list[str] = field(default_factory=list)

    @property
    def weights(self) -> list[int]:
        return [o.weight for o in self.outcomes]


@dataclass(frozen=True)
class ScenarioDefinition:
    name: str
    description: str
    actions: list[ActionDefinition]


@dataclass(frozen=True)
class LocationDefinition:
    id: str
    name: str
    description: str
    scenarios: list[ScenarioDefinition]
    images: list[str] = field(default_factory=list)
    dialog: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class EffectDefinition:
    """Player-facing text for an effect tag."""
    id: str
    description: str
    is_good: bool
    goblin_dialog: str = ""


@dataclass(frozen=True)
class CampDefinition:
    name: str
    description: str
    images: list[str] = field(default_factory=list)
    dialog: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class Catalog:
    """A loaded content catalog. Pass by reference; never copy into adventure state."""
    id: str
    display_name: str
    version: int
    locations: list[LocationDefinition]
    effects: dict[str, EffectDefinition]
    camp: CampDefinition
    # Pool name -> lines, e.g. "entering_camp", "loot_rummage", "keep_going"
    dialog: dict[str, list[str]] = field(default_factory=dict)

    def location(self, index: int) -> LocationDefinition:
        """Location by index, wrapping around the catalog."""
        return self.locations[index % len(self.locations)]

    def scenario(self, location: int, scenario: int) -> ScenarioDefinition:
        loc = self.location(location)
        return loc.scenarios[scenario % len(loc.scenarios)]

    def action(self, location: int, scenario: int, choice: int) -> ActionDefinition:
        return self.scenario(location, scenario).actions[choice]

    def outcome(self, location: int, scenario: int, choice: int, effect_index: int) -> OutcomeDefinition:
        return self.action(location, scenario, choice).outcomes[effect_index]

    def effect(self, effect: str) -> EffectDefinition:
        return self.effects[effect]


def _str_list(value) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(v) for v in value]


def _parse_outcome(data: dict, where: str) -> OutcomeDefinition:
    effect = data.get("effect")
    if effect not in EFFECT_KINDS:
        raise ValueError(f"{where}: unknown effect {effect!r}")
    try:
        weight = int(data.get("weight", 1))
    except (TypeError, ValueError):
        raise ValueError(f"{where}: weight must be an integer") from None
    if weight < 0:
        raise ValueError(f"{where}: negative weight {weight}")
    return OutcomeDefinition(
        effect=effect,
        weight=weight,
        description=str(data.get("description", "")),
        dialog=_str_list(data.get("dialog")),
    )


def _parse_outcomes(raw, outcome_tables: dict, where: str) -> list[OutcomeDefinition]:
    if isinstance(raw, str):
        if raw not in outcome_tables:
            raise ValueError(f"{where}: unknown outcome table {raw!r}")
        raw = outcome_tables[raw]
    if not isinstance(raw, list) or len(raw) != OUTCOMES_PER_ACTION:
        count = len(raw) if isinstance(raw, list) else 0
        raise ValueError(f"{where}: expected {OUTCOMES_PER_ACTION} outcomes, got {count}")
    return [_parse_outcome(o, f"{where} outcome {i}") for i, o in enumerate(raw)]


def _parse_location(data: dict, outcome_tables: dict) -> LocationDefinition:
    loc_id = data.get("id") or data.get("name")
    if not loc_id:
        raise ValueError("Location without id")
    raw_scenarios = data.get("scenarios") or []
    if not raw_scenarios:
        raise ValueError(f"Location {loc_id} has no scenarios")
    scenarios = []
    for s_idx, s in enumerate(raw_scenarios):
        where = f"{loc_id} scenario {s_idx}"
        raw_actions = s.get("actions") or []
        if len(raw_actions) != ACTIONS_PER_SCENARIO:
            raise ValueError(f"{where}: expected {ACTIONS_PER_SCENARIO} actions, got {len(raw_actions)}")
        actions = [
            ActionDefinition(
                label=str(a.get("label", "")),
                outcomes=_parse_outcomes(a.get("outcomes"), outcome_tables, f"{where} action {a_idx}"),
                dialog=_str_list(a.get("dialog")),
            )
            for a_idx, a in enumerate(raw_actions)
        ]
        scenarios.append(ScenarioDefinition(
            name=str(s.get("name", "")),
            description=str(s.get("description", "")),
            actions=actions,
        ))
    return LocationDefinition(
        id=str(loc_id),
        name=str(data.get("name", loc_id)),
        description=str(data.get("description", "")),
        scenarios=scenarios,
        images=_str_list(data.get("images")),
        dialog=_str_list(data.get("dialog")),
    )


def load_catalog(catalog_id: str | None = None, data_dir: Path | str | None = None) -> Catalog:
    """
    Load and validate a content catalog.

    Args:
        catalog_id: Use data/catalogs/<catalog_id>/ (defaults to config.DEFAULT_CATALOG_ID).
        data_dir: Directory containing the catalog JSON files (overrides catalog_id).

    Raises FileNotFoundError for a missing catalog, ValueError for malformed content.
    """
    if data_dir is not None:
        catalog_dir = Path(data_dir)
    else:
        catalog_dir = _catalog_dir(catalog_id or _default_catalog_id())
    if not catalog_dir.exists() or not catalog_dir.is_dir():
        raise FileNotFoundError(f"Catalog not found: {catalog_dir.name}")
    for name in REQUIRED_FILES:
        if not (catalog_dir / name).exists():
            raise FileNotFoundError(f"{name} not found in catalog: {catalog_dir.name}")

    with open(catalog_dir / "outcome_tables.json", "r") as f:
        outcome_tables = json.load(f)
    with open(catalog_dir / "locations.json", "r") as f:
        locations_data = json.load(f)
    with open(catalog_dir / "effects.json", "r") as f:
        effects_data = json.load(f)
    with open(catalog_dir / "dialog.json", "r") as f:
        dialog_data = json.load(f)

    if not isinstance(locations_data, list) or not locations_data:
        raise ValueError("locations.json must be a non-empty list")
    locations = [_parse_location(loc, outcome_tables) for loc in locations_data]

    effects = {}
    for effect_id in EFFECT_KINDS:
        data = effects_data.get(effect_id)
        if not isinstance(data, dict):
            raise ValueError(f"effects.json is missing {effect_id}")
        effects[effect_id] = EffectDefinition(
            id=effect_id,
            description=str(data.get("description", "")),
            is_good=bool(data.get("is_good", False)),
            goblin_dialog=str(data.get("goblin_dialog", "")),
        )

    camp_data = dialog_data.get("camp") or {}
    camp = CampDefinition(
        name=str(camp_data.get("name", "Camp")),
        description=str(camp_data.get("description", "")),
        images=_str_list(camp_data.get("images")),
        dialog=_str_list(camp_data.get("dialog")),
    )
    dialog = {k: _str_list(v) for k, v in dialog_data.items() if k != "camp"}

    manifest = _read_manifest(catalog_dir)
    return Catalog(
        id=manifest.get("id", catalog_dir.name),
        display_name=manifest.get("display_name", catalog_dir.name),
        version=int(manifest.get("version", 1)),
        locations=locations,
        effects=effects,
        camp=camp,
        dialog=dialog,
    )


_catalog_cache: dict[str, Catalog] = {}


def get_catalog(catalog_id: str | None = None) -> Catalog:
    """Load a catalog once per process and reuse it."""
    catalog_id = catalog_id or _default_catalog_id()
    if catalog_id not in _catalog_cache:
        _catalog_cache[catalog_id] = load_catalog(catalog_id)
    return _catalog_cache[catalog_id]
