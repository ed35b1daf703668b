from __future__ import annotations

from typing import Iterable, List, Optional

from club_cricket.config import BALLS_PER_OVER
from club_cricket.models import BatsmanStats, BowlerStats, FallOfWicket, Innings


BOWLER_CREDITED = ("Bowled", "Caught", "LBW")


def new_innings(player_ids: Iterable[str], batting_team: str, bowling_team: str) -> Innings:
    """
    Zeroed ledger for one batting effort.

    Every match player gets a batting and a bowling line up front so
    later lookups never fail, whichever side they are on.
    """
    innings = Innings(batting_team=batting_team, bowling_team=bowling_team)
    for pid in player_ids:
        innings.batsmen_stats[pid] = BatsmanStats()
        innings.bowler_stats[pid] = BowlerStats()
    return innings


def _batsman(innings: Innings, player_id: str) -> BatsmanStats:
    return innings.batsmen_stats.setdefault(player_id, BatsmanStats())


def _bowler(innings: Innings, player_id: str) -> BowlerStats:
    return innings.bowler_stats.setdefault(player_id, BowlerStats())


# =========================================================
# MUTATIONS
# =========================================================

def apply_runs(
    innings: Innings,
    striker_id: str,
    runs: int,
    bowler_id: Optional[str] = None,
    boundary: bool = True,
) -> None:
    """
    Runs off the bat. boundary=False for runs that were run (short runs,
    runs completed before a run out) so a run four is not a boundary.
    """
    innings.score += runs

    batsman = _batsman(innings, striker_id)
    batsman.runs += runs
    if boundary:
        if runs == 4:
            batsman.fours += 1
        elif runs == 6:
            batsman.sixes += 1

    if bowler_id:
        _bowler(innings, bowler_id).runs_conceded += runs


def apply_extra(
    innings: Innings,
    kind: str,
    extra_runs: int,
    bowler_id: Optional[str],
    striker_id: Optional[str],
) -> None:
    total = 1 + extra_runs
    innings.score += total

    if bowler_id:
        _bowler(innings, bowler_id).runs_conceded += total

    # runs hit off a no-ball belong to the striker; the penalty does not
    if kind == "Nb" and extra_runs > 0 and striker_id:
        batsman = _batsman(innings, striker_id)
        batsman.runs += extra_runs
        if extra_runs == 4:
            batsman.fours += 1
        elif extra_runs == 6:
            batsman.sixes += 1


def record_ball(innings: Innings, bowler_id: Optional[str], striker_id: Optional[str] = None) -> None:
    """Legal deliveries only."""
    innings.total_legal_balls += 1
    if bowler_id:
        _bowler(innings, bowler_id).balls_bowled += 1
    if striker_id:
        _batsman(innings, striker_id).balls += 1


def record_wicket(
    innings: Innings,
    batsman_id: str,
    how_out: str,
    bowler_id: Optional[str] = None,
    fielder_id: Optional[str] = None,
) -> None:
    innings.wickets += 1

    batsman = _batsman(innings, batsman_id)
    batsman.is_out = True
    batsman.how_out = how_out  # type: ignore
    if fielder_id:
        batsman.fielder_id = fielder_id

    if how_out in BOWLER_CREDITED and bowler_id:
        batsman.bowler_id = bowler_id
        _bowler(innings, bowler_id).wickets += 1

    innings.fall_of_wickets.append(
        FallOfWicket(score=innings.score, wicket=innings.wickets, batsman_id=batsman_id)
    )


# =========================================================
# QUERIES
# =========================================================

def not_out_batters(innings: Innings, roster: Iterable[str]) -> List[str]:
    return [pid for pid in roster if not _is_out(innings, pid)]


def _is_out(innings: Innings, player_id: str) -> bool:
    stats = innings.batsmen_stats.get(player_id)
    return bool(stats and stats.is_out)


def format_overs(balls: int) -> str:
    if balls < 0:
        balls = 0
    return f"{balls // BALLS_PER_OVER}.{balls % BALLS_PER_OVER}"


def strike_rate(runs: int, balls: int) -> float:
    if balls <= 0:
        return 0.0
    return runs / balls * 100


def economy(runs_conceded: int, balls_bowled: int) -> float:
    """Runs conceded per six legal balls."""
    if balls_bowled <= 0:
        return 0.0
    return runs_conceded / (balls_bowled / BALLS_PER_OVER)


def extras(innings: Innings) -> int:
    """Runs in the total not credited to any batter."""
    return innings.score - sum(s.runs for s in innings.batsmen_stats.values())
