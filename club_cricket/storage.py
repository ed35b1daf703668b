from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List

from club_cricket.config import STATE_FILE, STATE_KEY
from club_cricket.models import Match, Player, Withdrawal

logger = logging.getLogger(__name__)


@dataclass
class ClubState:
    players: List[Player] = field(default_factory=list)
    matches: List[Match] = field(default_factory=list)
    withdrawals: List[Withdrawal] = field(default_factory=list)

    def find_match(self, match_id: str) -> Match:
        for m in self.matches:
            if m.id == match_id:
                return m
        raise KeyError(match_id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "players": [p.to_dict() for p in self.players],
            "matches": [m.to_dict() for m in self.matches],
            "withdrawals": [w.to_dict() for w in self.withdrawals],
        }

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "ClubState":
        return ClubState(
            players=[Player.from_dict(p) for p in (d.get("players") or [])],
            matches=[Match.from_dict(m) for m in (d.get("matches") or [])],
            withdrawals=[Withdrawal.from_dict(w) for w in (d.get("withdrawals") or [])],
        )


def load_state(path: Path = STATE_FILE) -> ClubState:
    """
    Read the club blob. A missing or unreadable file yields an empty state.
    """
    path = Path(path)
    if not path.exists():
        logger.info("No saved state at %s, starting empty", path)
        return ClubState()

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        return ClubState.from_dict(data[STATE_KEY])
    except (OSError, ValueError, KeyError, TypeError) as e:
        logger.error("Failed to load state from %s: %s", path, e)
        return ClubState()


def save_state(state: ClubState, path: Path = STATE_FILE) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    data: Dict[str, Any] = {}
    if path.exists():
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning("Overwriting unreadable state file %s: %s", path, e)
            data = {}
        if not isinstance(data, dict):
            data = {}

    data[STATE_KEY] = state.to_dict()

    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=4)


def save_match(state: ClubState, match: Match, path: Path = STATE_FILE) -> None:
    """Replace (or add) one match and write the whole blob."""
    state.matches = [match if m.id == match.id else m for m in state.matches]
    if all(m.id != match.id for m in state.matches):
        state.matches.append(match)
    save_state(state, path)


def make_autosave(state: ClubState, path: Path = STATE_FILE) -> Callable[[Match], None]:
    """
    Engine on_update hook persisting the whole state after each mutation.
    """
    def _on_update(match: Match) -> None:
        save_match(state, match, path)

    return _on_update
