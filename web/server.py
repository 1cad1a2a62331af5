#!/usr/bin/env python3
"""
Card Battle HTTP Server

JSON API over the battle engine. Each battle is an engine held in memory;
clients post actions and move virtual time explicitly with /advance, or
set BATTLE_REALTIME=1 to have the server advance every battle on the wall
clock (one time unit per second).

Usage:
    python web/server.py

Then:
    curl -X POST localhost:8080/api/battles -d '{"profile": "alice", "enemy": "bandit", "seed": 7}'
"""

import asyncio
import logging
import os
import sys
import time
from contextlib import asynccontextmanager
from dataclasses import asdict
from typing import Any, Dict, Optional

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
import uvicorn

from packages.battle.combat_engine import BattleEngine, BattleReport, create_battle
from packages.battle.config import BattleConfig
from packages.battle.content.cards import ALL_CARDS
from packages.battle.content.enemies import ALL_ENEMIES, get_enemy_for_floor
from packages.battle.profile import InMemoryProfileStore, JsonProfileStore, ProfileStore
from packages.battle.state.combat import (
    DiscardCard,
    EndTurn,
    PlayCard,
    RespondToCounter,
    UseDiscardAbility,
    UseDrawAbility,
    UseItem,
)
from packages.battle.state.rng import Random

load_dotenv()

logger = logging.getLogger("battle.web")

TICK_SECONDS = 0.25

# Wire name -> (action class, body field carried into it)
ACTION_TYPES = {
    "play_card": (PlayCard, "card_id"),
    "discard_card": (DiscardCard, "card_id"),
    "end_turn": (EndTurn, None),
    "respond_to_counter": (RespondToCounter, "card_id"),
    "use_draw_ability": (UseDrawAbility, None),
    "use_discard_ability": (UseDiscardAbility, "card_id"),
    "use_item": (UseItem, "item_id"),
}
ACTION_NAMES = {cls: name for name, (cls, _) in ACTION_TYPES.items()}


def make_store() -> ProfileStore:
    directory = os.environ.get("BATTLE_PROFILES_DIR")
    if directory:
        return JsonProfileStore(directory)
    return InMemoryProfileStore()


CONFIG = BattleConfig.from_env()
STORE: ProfileStore = make_store()
BATTLES: Dict[str, BattleEngine] = {}


# ============================================================================
# REAL-TIME TICKER
# ============================================================================

async def _ticker():
    last = time.monotonic()
    while True:
        await asyncio.sleep(TICK_SECONDS)
        now = time.monotonic()
        dt, last = now - last, now
        for engine in list(BATTLES.values()):
            if not engine.state.terminal:
                engine.advance(dt)


@asynccontextmanager
async def lifespan(app: FastAPI):
    task = None
    if os.environ.get("BATTLE_REALTIME") == "1":
        logger.info("Real-time ticker enabled (%.2fs)", TICK_SECONDS)
        task = asyncio.create_task(_ticker())
    yield
    if task is not None:
        task.cancel()


app = FastAPI(title="Card Battle Engine", lifespan=lifespan)


# ============================================================================
# HELPERS
# ============================================================================

def serialize_action(action) -> Dict[str, Any]:
    data = {"type": ACTION_NAMES[type(action)]}
    data.update(asdict(action))
    return data


def parse_action(body: Dict[str, Any]):
    """Build an action from {"type": ..., "card_id"/"item_id": ...}."""
    kind = body.get("type")
    if kind not in ACTION_TYPES:
        raise ValueError(f"Unknown action type: {kind!r}")
    cls, arg = ACTION_TYPES[kind]
    if arg is None:
        return cls()
    value = body.get(arg)
    if value is None and cls is not RespondToCounter:
        raise ValueError(f"{kind} requires {arg}")
    return cls(value)


def battle_view(engine: BattleEngine) -> Dict[str, Any]:
    view = engine.snapshot()
    view["legal_actions"] = [serialize_action(a) for a in engine.get_legal_actions()]
    return view


def _not_found(session_id: str) -> JSONResponse:
    return JSONResponse({"error": f"No battle {session_id}"}, status_code=404)


async def _json_body(request: Request) -> Dict[str, Any]:
    body = await request.body()
    if not body:
        return {}
    return await request.json()


# ============================================================================
# ROUTES
# ============================================================================

@app.get("/")
async def index():
    return {"name": "card-battle-engine", "battles": len(BATTLES)}


@app.get("/api/content")
async def get_content():
    """Enemies and cards available to battles."""
    return {
        "enemies": [e.to_dict() for e in ALL_ENEMIES.values()],
        "cards": [c.to_dict() for c in ALL_CARDS.values()],
    }


@app.post("/api/battles")
async def create_battle_route(request: Request):
    """Create and start a battle.

    Request body (all optional):
    {"profile": "alice", "enemy": "bandit", "floor": 3, "seed": 42, "deck": [...]}
    """
    body = await _json_body(request)
    name = body.get("profile", "Player")
    seed = body.get("seed")
    if seed is None:
        seed = int(time.time() * 1000)

    enemy = body.get("enemy")
    if enemy is None:
        enemy = get_enemy_for_floor(int(body.get("floor", 1)), Random(seed))
    elif enemy not in ALL_ENEMIES:
        return JSONResponse({"error": f"Unknown enemy: {enemy}"}, status_code=400)

    def record(report: BattleReport):
        STORE.record_battle(name, report)

    try:
        engine = create_battle(STORE.load(name), deck=body.get("deck"), enemy=enemy,
                               config=CONFIG, rng=int(seed), on_end=record)
    except ValueError as e:
        return JSONResponse({"error": str(e)}, status_code=400)

    BATTLES[engine.session_id] = engine
    engine.start_battle()
    logger.info("Battle %s created for %s", engine.session_id, name)
    return JSONResponse(battle_view(engine), status_code=201)


@app.get("/api/battles/{session_id}")
async def get_battle(session_id: str):
    engine = BATTLES.get(session_id)
    if engine is None:
        return _not_found(session_id)
    return battle_view(engine)


@app.get("/api/battles/{session_id}/log")
async def get_battle_log(session_id: str, count: int = 50):
    engine = BATTLES.get(session_id)
    if engine is None:
        return _not_found(session_id)
    return {"entries": engine.log.tail(count)}


@app.post("/api/battles/{session_id}/actions")
async def post_action(session_id: str, request: Request):
    """Submit one player action. Rejections come back as 409."""
    engine = BATTLES.get(session_id)
    if engine is None:
        return _not_found(session_id)

    try:
        action = parse_action(await _json_body(request))
    except ValueError as e:
        return JSONResponse({"error": str(e)}, status_code=400)

    result = engine.execute_action(action)
    if not result["success"]:
        return JSONResponse({
            "success": False,
            "rejection": result["rejection"].value,
            "error": result["error"],
        }, status_code=409)
    return {"result": result, "battle": battle_view(engine)}


@app.post("/api/battles/{session_id}/advance")
async def advance_battle(session_id: str, request: Request):
    """Move virtual time. Body: {"dt": 1.5}"""
    engine = BATTLES.get(session_id)
    if engine is None:
        return _not_found(session_id)

    body = await _json_body(request)
    try:
        dt = float(body.get("dt", 1.0))
    except (TypeError, ValueError):
        return JSONResponse({"error": "dt must be a number"}, status_code=400)
    if dt < 0:
        return JSONResponse({"error": "dt must be >= 0"}, status_code=400)

    engine.advance(dt)
    return battle_view(engine)


@app.delete("/api/battles/{session_id}")
async def delete_battle(session_id: str):
    engine = BATTLES.pop(session_id, None)
    if engine is None:
        return _not_found(session_id)
    engine.scheduler.cancel_session(session_id)
    return {"deleted": session_id}


@app.get("/api/profiles/{name}")
async def get_profile(name: str):
    return STORE.load(name).to_dict()


@app.post("/api/profiles/{name}/card-reward")
async def take_card_reward(name: str, request: Request):
    """Pick one offered card (or {"card_id": null} to skip)."""
    body = await _json_body(request)
    profile = STORE.load(name)
    if not profile.take_card_reward(body.get("card_id")):
        return JSONResponse({"error": "Card was not offered"}, status_code=400)
    STORE.save(profile)
    return profile.to_dict()


# ============================================================================
# MAIN
# ============================================================================

def main(argv: Optional[list] = None):
    import argparse

    parser = argparse.ArgumentParser(description="Card Battle HTTP server")
    parser.add_argument("--host", default="0.0.0.0", help="Host to bind to (default: 0.0.0.0)")
    parser.add_argument("--port", type=int, default=8080, help="Port to listen on (default: 8080)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose logging")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    uvicorn.run(
        app,
        host=args.host,
        port=args.port,
        log_level="info",
    )


if __name__ == "__main__":
    main()
