"""
FastAPI backend for Loot Goblin.
Provides REST API endpoints for adventure management and actions.
"""

import json
import logging
import secrets
import string
import traceback
import uuid
from typing import Any, Callable

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy.orm import Session

from .auth import (
    get_current_player,
    get_current_player_optional,
    hash_password,
    is_valid_username,
    issue_token,
    verify_password,
    MIN_PASSWORD_LENGTH,
)
from .database import get_db, init_db
from .models import AdventureRecord, Player

from loot_goblin import config
from loot_goblin.config import DEFAULT_CATALOG_ID, SAVE_SLOTS, configure_logging
from loot_goblin.engine.actions import (
    Action,
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
from loot_goblin.engine.definitions import Catalog, get_catalog, list_catalogs
from loot_goblin.engine.errors import AdventureError
from loot_goblin.engine.queries import (
    get_adventure_summary,
    get_available_action_types,
    get_camp_view,
    get_event_view,
    validate_action,
)
from loot_goblin.engine.reducer import apply_action
from loot_goblin.engine.resolver import SeededRandom
from loot_goblin.engine.state import PLAYERS, Adventure, Preparing, Started

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Loot Goblin API",
    description="Backend API for Loot Goblin - a turn-based looting adventure",
    version="1.0.0",
)

# CORS configuration for frontend
CORS_ORIGINS = ["http://localhost:5173", "http://localhost:5174", "http://localhost:3000"]
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request, call_next):
    """Log method and path of 5xx responses so they can be traced to the failing endpoint."""
    method = request.method
    path = request.url.path
    try:
        response = await call_next(request)
    except Exception:
        logger.error("[500] %s %s (exception)", method, path)
        raise
    if response.status_code >= 500:
        logger.error("[%d] %s %s", response.status_code, method, path)
    return response


@app.exception_handler(Exception)
async def unhandled_exception_handler(request, exc):
    """Return 500 JSON; the error text and traceback are only sent when config.DEBUG is on."""
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    origin = request.headers.get("origin")
    allow_origin = origin if origin in CORS_ORIGINS else CORS_ORIGINS[0]
    content = {"detail": "Internal server error"}
    if config.DEBUG:
        content = {"detail": str(exc), "traceback": "".join(traceback.format_exception(exc))}
    return JSONResponse(
        status_code=500,
        content=content,
        headers={
            "Access-Control-Allow-Origin": allow_origin,
            "Access-Control-Allow-Credentials": "true",
        },
    )


# Uppercase + digits for join codes
JOIN_CODE_CHARS = string.ascii_uppercase + string.digits
JOIN_CODE_LENGTH = 4


# ===== Pydantic Models =====

class RegisterRequest(BaseModel):
    email: str
    username: str
    password: str


class LoginRequest(BaseModel):
    email: str
    password: str


class CreateAdventureRequest(BaseModel):
    name: str
    save_slot: int = 0
    is_multiplayer: bool = False
    """Catalog id from GET /catalogs. Omitted = loot_goblin.config.DEFAULT_CATALOG_ID."""
    catalog_id: str | None = None


class JoinAdventureRequest(BaseModel):
    join_code: str


class RosterRequest(BaseModel):
    target: str  # p1..p4


class SettingsRequest(BaseModel):
    num_rounds: int | None = None
    rummage_fail_odds: int | None = None


class BribeRequest(BaseModel):
    hero: str


class ChoiceRequest(BaseModel):
    choice: int  # 0 = risky, 1 = safe


# ===== Helper Functions =====

def generate_join_code(db: Session) -> str:
    """Generate a unique 4-char join code."""
    for _ in range(20):
        code = "".join(secrets.choice(JOIN_CODE_CHARS) for _ in range(JOIN_CODE_LENGTH))
        if db.query(AdventureRecord).filter(AdventureRecord.join_code == code).first() is None:
            return code
    raise HTTPException(status_code=500, detail="Could not generate unique join code")


def _load_json(raw: Any, default: Any) -> Any:
    try:
        value = json.loads(raw) if isinstance(raw, str) else raw
    except (TypeError, json.JSONDecodeError):
        return default
    return value if isinstance(value, type(default)) else default


def _get_row(adventure_id: str, db: Session) -> AdventureRecord:
    row = db.get(AdventureRecord, adventure_id)
    if row is None:
        raise HTTPException(status_code=404, detail=f"Adventure {adventure_id} not found")
    return row


def get_catalog_for(row: AdventureRecord) -> Catalog:
    """Catalog this adventure was created with (config.catalog_id), falling back to the default."""
    config = _load_json(row.config, {})
    return get_catalog(config.get("catalog_id") or DEFAULT_CATALOG_ID)


def get_adventure(adventure_id: str, db: Session) -> Adventure:
    """Load an adventure from the DB; 404 if it does not exist or its snapshot is unreadable."""
    row = _get_row(adventure_id, db)
    try:
        adventure = Adventure.from_json(row.adventure_state)
    except (ValueError, TypeError):
        logger.warning("Unreadable snapshot for adventure %s", adventure_id)
        raise HTTPException(status_code=404, detail=f"Adventure {adventure_id} not found")
    return adventure


def save_adventure(adventure_id: str, adventure: Adventure, db: Session) -> None:
    """Persist adventure snapshot and status to DB."""
    row = _get_row(adventure_id, db)
    row.adventure_state = adventure.to_json()
    row.status = adventure.status
    db.commit()


def _goblin_of(row: AdventureRecord, player: Player) -> str | None:
    """Roster slot (p1..p4) this account controls in the adventure, if any."""
    for entry in _load_json(row.players, []):
        if str(entry.get("player_id")) == str(player.id):
            return entry.get("goblin")
    return None


def _player_can_act(adventure: Adventure, row: AdventureRecord, player: Player | None) -> bool:
    """
    Preparing: only the creator. Started: only the owner of the goblin holding the turn;
    goblins nobody joined for are played by the creator.
    """
    if player is None:
        return False
    if isinstance(adventure.state, Preparing):
        return str(row.created_by) == str(player.id)
    if isinstance(adventure.state, Started):
        owners = {e.get("goblin"): str(e.get("player_id")) for e in _load_json(row.players, [])}
        return owners.get(adventure.state.turn.player, str(row.created_by)) == str(player.id)
    return False


def _require_can_act(adventure: Adventure, row: AdventureRecord, player: Player) -> None:
    """Raise 403 if this player is not allowed to act right now."""
    if not _player_can_act(adventure, row, player):
        detail = "Only the creator can change the roster" if isinstance(adventure.state, Preparing) else "Not your turn"
        raise HTTPException(status_code=403, detail=detail)


def _acting_goblin(adventure: Adventure, row: AdventureRecord, player: Player) -> str:
    if isinstance(adventure.state, Started):
        return adventure.state.turn.player
    return _goblin_of(row, player) or adventure.goblins.players()[0]


def state_for_response(adventure: Adventure, catalog: Catalog) -> dict[str, Any]:
    """Snapshot plus resolved camp/event text and a summary for the UI."""
    out = adventure.to_dict()
    out["summary"] = get_adventure_summary(adventure)
    out["camp"] = get_camp_view(adventure, catalog)
    out["event"] = get_event_view(adventure, catalog)
    return out


def _run_action(
    adventure_id: str,
    build: Callable[[str], Action],
    player: Player,
    db: Session,
) -> dict[str, Any]:
    """
    Shared endpoint flow: permission check, validate, apply with a fresh random source, save.
    build receives the acting goblin's slot and returns the Action.
    """
    row = _get_row(adventure_id, db)
    adventure = get_adventure(adventure_id, db)
    _require_can_act(adventure, row, player)
    catalog = get_catalog_for(row)
    action = build(_acting_goblin(adventure, row, player))

    validation = validate_action(adventure, action, catalog)
    if not validation.valid:
        raise HTTPException(status_code=400, detail={"reason": validation.reason, "message": validation.error})
    try:
        new_adventure, events = apply_action(adventure, action, catalog, SeededRandom())
    except AdventureError as e:
        raise HTTPException(status_code=400, detail=e.to_dict())

    save_adventure(adventure_id, new_adventure, db)
    return {
        "state": state_for_response(new_adventure, catalog),
        "events": [e.to_dict() for e in events],
        "can_act": _player_can_act(new_adventure, row, player),
    }


@app.on_event("startup")
def on_startup():
    configure_logging()
    init_db()


# ===== API Endpoints =====

@app.get("/")
def root():
    return {"message": "Loot Goblin API", "version": "1.0.0"}


# ----- Auth -----

def _player_json(player: Player) -> dict[str, str]:
    return {"id": player.id, "email": player.email, "username": player.username}


@app.post("/auth/register")
def register(request: RegisterRequest, db: Session = Depends(get_db)):
    """Register with email, username (unique, no spaces/special), and password."""
    if not is_valid_username(request.username):
        raise HTTPException(
            status_code=400,
            detail="Username must be 2-32 characters, letters numbers and underscore only",
        )
    if len(request.password) < MIN_PASSWORD_LENGTH:
        raise HTTPException(status_code=400, detail=f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    if db.query(Player).filter(Player.email == request.email).first():
        raise HTTPException(status_code=400, detail="Email already registered")
    if db.query(Player).filter(Player.username == request.username).first():
        raise HTTPException(status_code=400, detail="Username already taken")

    player = Player(
        id=str(uuid.uuid4()),
        email=request.email,
        username=request.username,
        password_hash=hash_password(request.password),
    )
    db.add(player)
    db.commit()
    logger.info("Registered player %s", player.username)
    return {"access_token": issue_token(player.id), "player": _player_json(player)}


@app.post("/auth/login")
def login(request: LoginRequest, db: Session = Depends(get_db)):
    """Login with email and password."""
    player = db.query(Player).filter(Player.email == request.email).first()
    if not player or not verify_password(request.password, player.password_hash):
        raise HTTPException(status_code=401, detail="Invalid email or password")
    return {"access_token": issue_token(player.id), "player": _player_json(player)}


@app.get("/auth/me")
def auth_me(player: Player = Depends(get_current_player)):
    """Return current player (email, username; password not included)."""
    return _player_json(player)


# ----- Adventures (create, list, join) -----

@app.get("/catalogs")
def get_catalogs():
    """List available content catalogs. Use catalog_id in POST /adventures/create."""
    return {"catalogs": list_catalogs()}


@app.post("/adventures/create")
def create_adventure(
    request: CreateAdventureRequest,
    player: Player = Depends(get_current_player),
    db: Session = Depends(get_db),
):
    """Create a new adventure in one of the creator's save slots. Returns adventure_id and join_code (if multiplayer)."""
    if not 0 <= request.save_slot < SAVE_SLOTS:
        raise HTTPException(status_code=400, detail=f"save_slot must be 0..{SAVE_SLOTS - 1}")
    existing = (
        db.query(AdventureRecord)
        .filter(AdventureRecord.created_by == player.id, AdventureRecord.save_slot == request.save_slot)
        .first()
    )
    if existing is not None:
        raise HTTPException(status_code=400, detail=f"Save slot {request.save_slot} is in use")
    catalog_id = request.catalog_id or DEFAULT_CATALOG_ID
    try:
        get_catalog(catalog_id)
    except FileNotFoundError as e:
        raise HTTPException(status_code=400, detail=str(e))

    adventure = Adventure.new(creator=str(player.id), save_slot=request.save_slot)
    adventure_id = str(uuid.uuid4())
    join_code = generate_join_code(db) if request.is_multiplayer else None
    row = AdventureRecord(
        id=adventure_id,
        name=request.name,
        join_code=join_code,
        created_by=player.id,
        save_slot=request.save_slot,
        status=adventure.status,
        adventure_state=adventure.to_json(),
        players=json.dumps([{"player_id": str(player.id), "goblin": "p1"}]),
        config=json.dumps({"catalog_id": catalog_id}),
    )
    db.add(row)
    db.commit()
    logger.info("Created adventure %s (slot %d) for %s", adventure_id, request.save_slot, player.username)
    return {"adventure_id": adventure_id, "join_code": join_code, "name": request.name}


@app.get("/adventures")
def list_my_adventures(
    player: Player = Depends(get_current_player),
    db: Session = Depends(get_db),
):
    """List adventures the current player is in, with a short summary of each."""
    mine = []
    for row in db.query(AdventureRecord).order_by(AdventureRecord.created_at).all():
        goblin = _goblin_of(row, player)
        if goblin is None:
            continue
        try:
            summary = get_adventure_summary(Adventure.from_json(row.adventure_state))
        except (ValueError, TypeError):
            summary = None
        mine.append({
            "id": row.id,
            "name": row.name,
            "join_code": row.join_code,
            "save_slot": row.save_slot if str(row.created_by) == str(player.id) else None,
            "status": row.status,
            "goblin": goblin,
            "created_at": row.created_at.isoformat() if row.created_at else None,
            "summary": summary,
        })
    return {"adventures": mine}


@app.post("/adventures/join")
def join_adventure(
    request: JoinAdventureRequest,
    player: Player = Depends(get_current_player),
    db: Session = Depends(get_db),
):
    """Join a multiplayer adventure by 4-char join code; the joiner gets the first free goblin slot."""
    code = request.join_code.strip().upper()
    if len(code) != JOIN_CODE_LENGTH:
        raise HTTPException(status_code=400, detail="Join code must be 4 characters")
    row = db.query(AdventureRecord).filter(AdventureRecord.join_code == code).first()
    if not row:
        raise HTTPException(status_code=404, detail="Adventure not found")
    if _goblin_of(row, player) is not None:
        return {"adventure_id": row.id, "message": "Already in adventure"}

    adventure = get_adventure(row.id, db)
    if not isinstance(adventure.state, Preparing):
        raise HTTPException(status_code=400, detail="Adventure already started")
    free = [p for p in PLAYERS if p not in adventure.goblins]
    if not free:
        raise HTTPException(status_code=400, detail="Adventure is full")

    action = recruit_goblin(adventure.goblins.players()[0], free[0], owner=str(player.id))
    try:
        new_adventure, events = apply_action(adventure, action, get_catalog_for(row), SeededRandom())
    except AdventureError as e:
        raise HTTPException(status_code=400, detail=e.to_dict())
    players_list = _load_json(row.players, [])
    players_list.append({"player_id": str(player.id), "goblin": free[0]})
    row.players = json.dumps(players_list)
    save_adventure(row.id, new_adventure, db)
    return {"adventure_id": row.id, "name": row.name, "goblin": free[0]}


@app.get("/adventures/{adventure_id}")
def get_adventure_state(
    adventure_id: str,
    db: Session = Depends(get_db),
    player: Player | None = Depends(get_current_player_optional),
):
    """Current adventure state. can_act is true only if the authenticated player may act now."""
    row = _get_row(adventure_id, db)
    adventure = get_adventure(adventure_id, db)
    catalog = get_catalog_for(row)
    return {
        "adventure_id": adventure_id,
        "state": state_for_response(adventure, catalog),
        "can_act": _player_can_act(adventure, row, player),
    }


@app.get("/adventures/{adventure_id}/meta")
def get_adventure_meta(adventure_id: str, db: Session = Depends(get_db)):
    """Adventure metadata (name, status, players) for the lobby."""
    row = _get_row(adventure_id, db)
    return {
        "id": row.id,
        "name": row.name,
        "join_code": row.join_code,
        "status": row.status,
        "created_by": row.created_by,
        "save_slot": row.save_slot,
        "created_at": row.created_at.isoformat() if row.created_at else None,
        "players": _load_json(row.players, []),
        "config": _load_json(row.config, {}),
    }


@app.delete("/adventures/{adventure_id}")
def delete_adventure(
    adventure_id: str,
    player: Player = Depends(get_current_player),
    db: Session = Depends(get_db),
):
    """Delete an adventure. Only the creator can delete (frees the save slot)."""
    row = _get_row(adventure_id, db)
    if str(row.created_by) != str(player.id):
        raise HTTPException(status_code=403, detail="Only the creator can delete this adventure")
    db.delete(row)
    db.commit()
    return {"message": f"Adventure {adventure_id} deleted"}


@app.get("/adventures/{adventure_id}/available-actions")
def get_available_actions(adventure_id: str, db: Session = Depends(get_db)):
    """Action types that would currently succeed for the goblin holding the turn."""
    row = _get_row(adventure_id, db)
    adventure = get_adventure(adventure_id, db)
    catalog = get_catalog_for(row)
    state = adventure.state
    return {
        "phase": adventure.phase_key,
        "player": state.turn.player if isinstance(state, Started) else None,
        "actions": get_available_action_types(adventure),
        "camp": get_camp_view(adventure, catalog),
        "event": get_event_view(adventure, catalog),
    }


# ----- Preparing (creator only) -----

@app.post("/adventures/{adventure_id}/recruit")
def do_recruit(
    adventure_id: str,
    request: RosterRequest,
    player: Player = Depends(get_current_player),
    db: Session = Depends(get_db),
):
    """Recruit an unowned goblin into an empty slot (solo play with several goblins)."""
    return _run_action(adventure_id, lambda g: recruit_goblin(g, request.target), player, db)


@app.post("/adventures/{adventure_id}/dismiss")
def do_dismiss(
    adventure_id: str,
    request: RosterRequest,
    player: Player = Depends(get_current_player),
    db: Session = Depends(get_db),
):
    """Dismiss a goblin; its owner (if any) leaves the adventure."""
    result = _run_action(adventure_id, lambda g: dismiss_goblin(g, request.target), player, db)
    row = _get_row(adventure_id, db)
    players_list = [p for p in _load_json(row.players, []) if p.get("goblin") != request.target]
    row.players = json.dumps(players_list)
    db.commit()
    return result


@app.post("/adventures/{adventure_id}/settings")
def do_update_settings(
    adventure_id: str,
    request: SettingsRequest,
    player: Player = Depends(get_current_player),
    db: Session = Depends(get_db),
):
    return _run_action(
        adventure_id,
        lambda g: update_settings(g, num_rounds=request.num_rounds, rummage_fail_odds=request.rummage_fail_odds),
        player,
        db,
    )


@app.post("/adventures/{adventure_id}/start")
def do_start(
    adventure_id: str,
    player: Player = Depends(get_current_player),
    db: Session = Depends(get_db),
):
    """Start the adventure: turn order is fixed and the first goblin enters camp."""
    return _run_action(adventure_id, start_adventure, player, db)


# ----- Camp -----

@app.post("/adventures/{adventure_id}/camp/rummage")
def do_rummage(adventure_id: str, player: Player = Depends(get_current_player), db: Session = Depends(get_db)):
    return _run_action(adventure_id, rummage_for_loot, player, db)


@app.post("/adventures/{adventure_id}/camp/take-loot")
def do_take_loot(adventure_id: str, player: Player = Depends(get_current_player), db: Session = Depends(get_db)):
    return _run_action(adventure_id, rummage_take_loot, player, db)


@app.post("/adventures/{adventure_id}/camp/leave-loot")
def do_leave_loot(adventure_id: str, player: Player = Depends(get_current_player), db: Session = Depends(get_db)):
    return _run_action(adventure_id, rummage_leave_loot, player, db)


@app.post("/adventures/{adventure_id}/camp/bribe")
def do_bribe(
    adventure_id: str,
    request: BribeRequest,
    player: Player = Depends(get_current_player),
    db: Session = Depends(get_db),
):
    return _run_action(adventure_id, lambda g: bribe_hero(g, request.hero), player, db)


@app.post("/adventures/{adventure_id}/camp/take-item")
def do_take_item(adventure_id: str, player: Player = Depends(get_current_player), db: Session = Depends(get_db)):
    return _run_action(adventure_id, bribe_take_item, player, db)


@app.post("/adventures/{adventure_id}/event/start")
def do_event_start(adventure_id: str, player: Player = Depends(get_current_player), db: Session = Depends(get_db)):
    return _run_action(adventure_id, event_start, player, db)


# ----- Event -----

@app.post("/adventures/{adventure_id}/event/choice")
def do_make_choice(
    adventure_id: str,
    request: ChoiceRequest,
    player: Player = Depends(get_current_player),
    db: Session = Depends(get_db),
):
    return _run_action(adventure_id, lambda g: event_make_choice(g, request.choice), player, db)


@app.post("/adventures/{adventure_id}/event/outcome")
def do_handle_outcome(adventure_id: str, player: Player = Depends(get_current_player), db: Session = Depends(get_db)):
    return _run_action(adventure_id, event_handle_outcome, player, db)


@app.post("/adventures/{adventure_id}/event/keep-going")
def do_keep_going(adventure_id: str, player: Player = Depends(get_current_player), db: Session = Depends(get_db)):
    return _run_action(adventure_id, keep_going, player, db)


@app.post("/adventures/{adventure_id}/event/take-a-break")
def do_take_a_break(adventure_id: str, player: Player = Depends(get_current_player), db: Session = Depends(get_db)):
    return _run_action(adventure_id, take_a_break, player, db)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
