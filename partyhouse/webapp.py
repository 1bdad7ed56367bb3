# partyhouse/webapp.py
from __future__ import annotations

import os
import uuid

import uvicorn
from typing import Dict, List, Optional

from fastapi import FastAPI, Request, Form
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates

from partyhouse.config import HOST, MAX_ROUNDS, PORT, STAR_GOAL, STREAK_PATH, TROUBLE_LIMIT
from partyhouse.controller import PartyController
from partyhouse.engine import RoundEngine
from partyhouse.models import MANUAL_KINDS, AbilityKind
from partyhouse.streak import JsonStreak

_PKG_ROOT = os.path.abspath(os.path.dirname(__file__))

app = FastAPI()
templates = Jinja2Templates(directory=os.path.join(_PKG_ROOT, "templates"))
app.mount("/static", StaticFiles(directory=os.path.join(_PKG_ROOT, "static")), name="static")

STREAK = JsonStreak(STREAK_PATH)


class Session:
    """One browser game: controller plus messages waiting to be shown."""

    def __init__(self, streak=None):
        self.messages: List[str] = []
        self.choice: Optional[int] = None
        self.controller = PartyController(
            RoundEngine(streak=streak if streak is not None else STREAK),
            notify=self.messages.append,
            choose=self._choose,
        )

    def _choose(self, prompt: str, labels: List[str]) -> Optional[int]:
        # the form already posted the answer
        return self.choice

    def pop_messages(self) -> List[str]:
        out = list(self.messages)
        self.messages.clear()
        return out


# session id -> game; lost on restart
SESSIONS: Dict[str, Session] = {}


def _back(sid: str) -> RedirectResponse:
    return RedirectResponse(url=f"/game/{sid}", status_code=303)


@app.get("/", response_class=HTMLResponse)
def root(request: Request):
    sid = str(uuid.uuid4())
    SESSIONS[sid] = Session()
    return _back(sid)


@app.get("/game/{sid}", response_class=HTMLResponse)
def game_view(request: Request, sid: str):
    session = SESSIONS.get(sid)
    if not session:
        return RedirectResponse(url="/", status_code=303)

    engine = session.controller.engine
    state = engine.state

    if state.game_over:
        return templates.TemplateResponse(
            request,
            "end.html",
            {
                "sid": sid,
                "won": state.won,
                "round": min(state.round, state.max_rounds),
                "streak": engine.streak.get(),
                "history": state.history,
                "messages": session.pop_messages(),
            },
        )

    abilities = {
        g.instance_id: [
            (kind.value, engine.ability_ready(kind, g.instance_id))
            for kind in MANUAL_KINDS if g.has_ability(kind)
        ]
        for g in state.house
    }
    counts = engine.available_counts()

    return templates.TemplateResponse(
        request,
        "game.html",
        {
            "sid": sid,
            "state": state,
            "turns": MAX_ROUNDS,
            "star_goal": STAR_GOAL,
            "trouble_limit": TROUBLE_LIMIT,
            "trouble": engine.trouble_count(),
            "raw_trouble": engine.trouble_count(raw=True),
            "stars": engine.star_count(),
            "abilities": abilities,
            "pool": [(engine.definition(k), n) for k, n in counts.items()],
            "upgrade_cost": engine.capacity_upgrade_cost(),
            "shop": engine.shop_listing(),
            "streak": engine.streak.get(),
            "messages": session.pop_messages(),
        },
    )


@app.post("/game/{sid}/door")
def open_door(sid: str):
    session = SESSIONS.get(sid)
    if not session:
        return RedirectResponse(url="/", status_code=303)
    session.controller.open_door()
    return _back(sid)


@app.get("/game/{sid}/ability/{kind}/{instance_id}", response_class=HTMLResponse)
def ability_form(request: Request, sid: str, kind: str, instance_id: str):
    session = SESSIONS.get(sid)
    if not session:
        return RedirectResponse(url="/", status_code=303)
    try:
        ability = AbilityKind(kind)
    except ValueError:
        return _back(sid)

    labels = session.controller.engine.selection_labels(ability, instance_id)
    return templates.TemplateResponse(
        request,
        "choose.html",
        {
            "sid": sid,
            "kind": ability.value,
            "instance_id": instance_id,
            "prompt": "Select a guest to kick:" if ability is AbilityKind.KICK else "Select a guest to invite:",
            "labels": labels,
        },
    )


@app.post("/game/{sid}/ability/{kind}/{instance_id}")
def use_ability(sid: str, kind: str, instance_id: str, choice: Optional[int] = Form(None)):
    session = SESSIONS.get(sid)
    if not session:
        return RedirectResponse(url="/", status_code=303)
    try:
        ability = AbilityKind(kind)
    except ValueError:
        return _back(sid)

    # Validate choice (1..n) happens in the engine; None means cancelled
    session.choice = choice
    try:
        session.controller.use_ability(ability, instance_id)
    finally:
        session.choice = None
    return _back(sid)


@app.post("/game/{sid}/end-round")
def end_round(sid: str):
    session = SESSIONS.get(sid)
    if not session:
        return RedirectResponse(url="/", status_code=303)
    session.controller.end_round()
    return _back(sid)


@app.post("/game/{sid}/buy")
def buy(sid: str, key: str = Form(...)):
    session = SESSIONS.get(sid)
    if not session:
        return RedirectResponse(url="/", status_code=303)
    session.controller.buy_guest(key)
    return _back(sid)


@app.post("/game/{sid}/upgrade")
def upgrade(sid: str):
    session = SESSIONS.get(sid)
    if not session:
        return RedirectResponse(url="/", status_code=303)
    session.controller.upgrade_capacity()
    return _back(sid)


@app.post("/game/{sid}/next-round")
def next_round(sid: str):
    session = SESSIONS.get(sid)
    if not session:
        return RedirectResponse(url="/", status_code=303)
    session.controller.next_round()
    return _back(sid)


@app.post("/game/{sid}/quit")
def quit_game(sid: str):
    session = SESSIONS.get(sid)
    if not session:
        return RedirectResponse(url="/", status_code=303)
    session.controller.quit_game()
    return _back(sid)


@app.post("/game/{sid}/restart")
def restart(sid: str):
    session = SESSIONS.get(sid)
    if not session:
        return RedirectResponse(url="/", status_code=303)
    session.controller.start_game()
    return _back(sid)


def main() -> None:
    uvicorn.run(app, host=HOST, port=PORT)
