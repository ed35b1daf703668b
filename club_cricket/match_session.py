from __future__ import annotations

import logging
import random
from copy import deepcopy
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from club_cricket.engine import ScoreEngine
from club_cricket.events import BallEvent, ensure_valid, parse_event
from club_cricket.exceptions import ValidationError
from club_cricket.models import Match, ScoreSnapshot

logger = logging.getLogger(__name__)


# action name -> required keys
ACTIONS: Dict[str, tuple] = {
    "toss": (),
    "decide": ("choice",),
    "openers": ("striker", "non_striker", "bowler"),
    "ball": (),
    "striker": ("player",),
    "non_striker": ("player",),
    "bowler": ("player",),
    "change_bowler": (),
    "undo": (),
    "second_innings": (),
    "tie_breaker": ("choice",),
    "nominate": ("team", "bowlers"),
    "bowl_out": ("outcome",),
}


def parse_action(raw: Dict[str, Any]) -> Dict[str, Any]:
    """
    Validate one recorded action and normalise it.
    A "ball" action carries either a compact "code" or a full "event" dict.
    """
    if not isinstance(raw, dict) or "action" not in raw:
        raise ValidationError("invalid action format")

    name = raw["action"]
    if name not in ACTIONS:
        raise ValidationError(f"unknown action: {name!r}")

    missing = [k for k in ACTIONS[name] if k not in raw]
    if missing:
        raise ValidationError(f"{name} action is missing {missing}")

    action = dict(raw)
    if name == "ball":
        action["event"] = _ball_event(raw)
        action.pop("code", None)
    return action


def _ball_event(raw: Dict[str, Any]) -> BallEvent:
    if isinstance(raw.get("event"), BallEvent):
        event = raw["event"]
    elif isinstance(raw.get("event"), dict):
        event = BallEvent.from_dict(raw["event"])
    elif "code" in raw:
        speed = raw.get("speed")
        return parse_event(raw["code"], float(speed) if speed is not None else None)
    else:
        raise ValidationError("ball action needs a code or an event")

    ensure_valid(event)
    return event


def _export(action: Dict[str, Any]) -> Dict[str, Any]:
    out = dict(action)
    if isinstance(out.get("event"), BallEvent):
        out["event"] = out["event"].to_dict()
    return out


class MatchSession:
    """
    Single local match session.

    Responsibilities:
    - Manage one ScoreEngine instance
    - Apply recorded actions one at a time
    - Bulk replay recorded actions (atomic)
    - Store timeline snapshots
    - Export replayable actions
    """

    def __init__(
        self,
        match: Match,
        seed: Optional[int] = None,
        clock: Optional[Callable[[], datetime]] = None,
        on_update: Optional[Callable[[Match], None]] = None,
    ):
        self._initial = deepcopy(match)
        self._seed = seed
        self._clock = clock
        self._on_update = on_update

        self._engine = self._new_engine(on_update)
        self._timeline: List[ScoreSnapshot] = []
        self._actions: List[Dict[str, Any]] = []

    @property
    def engine(self) -> ScoreEngine:
        return self._engine

    @property
    def match(self) -> Match:
        return self._engine.match

    # ---------------------------------------------------------
    # Core API
    # ---------------------------------------------------------

    def apply(self, raw: Dict[str, Any]) -> ScoreSnapshot:
        action = parse_action(raw)
        snapshot = self._dispatch(self._engine, action)

        self._actions.append(action)
        self._timeline.append(snapshot)
        return snapshot

    def load_actions(self, actions: List[Dict[str, Any]]) -> List[ScoreSnapshot]:
        """
        Bulk replay recorded actions from list of dicts.
        Atomic: if any action fails -> no state mutation.
        """
        if not isinstance(actions, list):
            raise ValueError("actions must be a list")

        # Convert first (validation stage)
        parsed = [parse_action(a) for a in actions]

        # Prepare temp engine for atomic replay
        temp_engine = self._new_engine(None)
        temp_timeline: List[ScoreSnapshot] = []
        temp_actions: List[Dict[str, Any]] = []

        for action in parsed:
            temp_timeline.append(self._dispatch(temp_engine, action))
            temp_actions.append(action)

        # If everything succeeds → commit
        self._engine = temp_engine
        self._timeline = temp_timeline
        self._actions = temp_actions

        self._engine.on_update = self._on_update
        if self._on_update is not None:
            self._on_update(self._engine.match)

        logger.info("Replayed %d actions for match %s", len(parsed), self._initial.id)
        return deepcopy(self._timeline)

    def get_snapshot(self) -> ScoreSnapshot:
        if not self._timeline:
            raise RuntimeError("No actions applied")

        return self._timeline[-1]

    def get_timeline(self) -> List[ScoreSnapshot]:
        return deepcopy(self._timeline)

    def export_actions(self) -> List[Dict[str, Any]]:
        return [_export(a) for a in self._actions]

    def reset(self):
        self._engine = self._new_engine(self._on_update)
        self._timeline = []
        self._actions = []

    # ---------------------------------------------------------
    # Internals
    # ---------------------------------------------------------

    def _new_engine(self, on_update: Optional[Callable[[Match], None]]) -> ScoreEngine:
        rng = random.Random(self._seed) if self._seed is not None else None
        return ScoreEngine(deepcopy(self._initial), rng=rng, clock=self._clock, on_update=on_update)

    @staticmethod
    def _dispatch(engine: ScoreEngine, action: Dict[str, Any]) -> ScoreSnapshot:
        name = action["action"]

        if name == "toss":
            # pin the outcome so the export replays identically
            action["winner"] = engine.toss(action.get("winner"))
        elif name == "decide":
            engine.decide(action["choice"])
        elif name == "openers":
            engine.select_openers(action["striker"], action["non_striker"], action["bowler"])
        elif name == "ball":
            return engine.play_ball(action["event"])
        elif name == "striker":
            engine.select_striker(action["player"])
        elif name == "non_striker":
            engine.select_non_striker(action["player"])
        elif name == "bowler":
            engine.select_bowler(action["player"])
        elif name == "change_bowler":
            engine.change_bowler()
        elif name == "undo":
            return engine.undo()
        elif name == "second_innings":
            engine.start_second_innings()
        elif name == "tie_breaker":
            engine.choose_tie_breaker(action["choice"])
        elif name == "nominate":
            engine.nominate_bowl_out_bowlers(action["team"], list(action["bowlers"]))
        elif name == "bowl_out":
            engine.bowl_out_attempt(action["outcome"])

        return engine.snapshot()
