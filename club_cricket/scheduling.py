from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional

from club_cricket.config import MATCH_FEE_PER_PLAYER, MIN_SQUAD_SIZE
from club_cricket.exceptions import InvalidMatchError
from club_cricket.models import Match

logger = logging.getLogger(__name__)


def roster_problems(teams: Dict[str, List[str]], captains: Dict[str, str]) -> List[str]:
    """
    Return list of problems (empty == valid).
    Shared by scheduling and by the engine before the toss.
    """
    problems: List[str] = []

    if len(teams) != 2:
        problems.append("a match needs exactly two teams")
        return problems

    names = list(teams.keys())
    if any(not n.strip() for n in names):
        problems.append("team names must be non-empty")

    for name, ids in teams.items():
        if len(ids) < MIN_SQUAD_SIZE:
            problems.append(f"{name} must have at least {MIN_SQUAD_SIZE} players (has {len(ids)})")
        if len(set(ids)) != len(ids):
            problems.append(f"{name} lists a player more than once")

    shared = set(teams[names[0]]) & set(teams[names[1]])
    if shared:
        problems.append(f"players on both teams: {sorted(shared)}")

    for name in names:
        captain = captains.get(name)
        if not captain:
            problems.append(f"{name} has no captain")
        elif captain not in teams[name]:
            problems.append(f"captain {captain} is not in {name}")

    chosen = [c for c in captains.values() if c]
    if len(chosen) != len(set(chosen)):
        problems.append("the same player cannot captain both teams")

    unknown = set(captains) - set(names)
    if unknown:
        problems.append(f"captains given for unknown teams: {sorted(unknown)}")

    return problems


def next_match_id(matches: Iterable[Match]) -> str:
    return f"m{len(list(matches)) + 1}"


def schedule_match(
    match_id: str,
    name: str,
    date: str,
    time: str,
    total_overs: int,
    teams: Dict[str, List[str]],
    captains: Dict[str, str],
    fee_per_player: Optional[float] = None,
) -> Match:
    problems: List[str] = []
    if not name.strip() or not date.strip() or not time.strip():
        problems.append("match name, date and time are required")
    if not isinstance(total_overs, int) or total_overs <= 0:
        problems.append("total overs must be a positive whole number")
    problems.extend(roster_problems(teams, captains))

    if problems:
        raise InvalidMatchError("Cannot schedule match: " + "; ".join(problems))

    players: List[str] = []
    for ids in teams.values():
        players.extend(ids)

    match = Match(
        id=match_id,
        name=name,
        date=date,
        time=time,
        total_overs=total_overs,
        teams={k: list(v) for k, v in teams.items()},
        captains=dict(captains),
        players=players,
        status="Scheduled",
        fees={pid: "Unpaid" for pid in players},
        fee_per_player=MATCH_FEE_PER_PLAYER if fee_per_player is None else fee_per_player,
    )
    logger.info("Scheduled %s (%s): %s", match.id, match.name, " vs ".join(match.teams))
    return match
