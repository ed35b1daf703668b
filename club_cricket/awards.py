from __future__ import annotations

from typing import Dict, Iterable, Optional

from club_cricket.ledger import economy, strike_rate
from club_cricket.models import FastestBall, Innings, Match


# Main innings weights
RUN_WEIGHT = 1.5
STRIKE_RATE_THRESHOLD = 120
STRIKE_RATE_WEIGHT = 0.5
CENTURY_BONUS = 50
FIFTY_BONUS = 25
WICKET_WEIGHT = 25
FIVE_WICKET_BONUS = 50
THREE_WICKET_BONUS = 25
ECONOMY_MIN_BALLS = 12
ECONOMY_THRESHOLD = 8
ECONOMY_WEIGHT = 10
FIELDING_CREDIT = 10

# Super Over weights
SUPER_OVER_RUN_WEIGHT = 5
SUPER_OVER_HIGH_SCORE = 10
SUPER_OVER_HIGH_SCORE_BONUS = 20
SUPER_OVER_SIX_BONUS = 10
SUPER_OVER_WICKET_WEIGHT = 50
SUPER_OVER_TIGHT_RUNS = 6
SUPER_OVER_TIGHT_BONUS = 30
SUPER_OVER_FAIR_RUNS = 10
SUPER_OVER_FAIR_BONUS = 15

BOWL_OUT_HIT_BONUS = 50
WINNING_TEAM_BONUS = 20


def _score_innings(scores: Dict[str, float], innings: Innings) -> None:
    for pid, bat in innings.batsmen_stats.items():
        points = bat.runs * RUN_WEIGHT
        if bat.balls > 0:
            sr = strike_rate(bat.runs, bat.balls)
            if sr > STRIKE_RATE_THRESHOLD:
                points += (sr - STRIKE_RATE_THRESHOLD) * STRIKE_RATE_WEIGHT
        if bat.runs >= 100:
            points += CENTURY_BONUS
        elif bat.runs >= 50:
            points += FIFTY_BONUS
        scores[pid] = scores.get(pid, 0) + points

    for pid, bowl in innings.bowler_stats.items():
        points = bowl.wickets * WICKET_WEIGHT
        if bowl.wickets >= 5:
            points += FIVE_WICKET_BONUS
        elif bowl.wickets >= 3:
            points += THREE_WICKET_BONUS
        if bowl.balls_bowled >= ECONOMY_MIN_BALLS:
            econ = economy(bowl.runs_conceded, bowl.balls_bowled)
            if econ < ECONOMY_THRESHOLD:
                points += (ECONOMY_THRESHOLD - econ) * ECONOMY_WEIGHT
        scores[pid] = scores.get(pid, 0) + points

    for bat in innings.batsmen_stats.values():
        if bat.how_out in ("Caught", "Run Out") and bat.fielder_id:
            scores[bat.fielder_id] = scores.get(bat.fielder_id, 0) + FIELDING_CREDIT


def _score_super_over(scores: Dict[str, float], innings: Innings) -> None:
    for pid, bat in innings.batsmen_stats.items():
        points = bat.runs * SUPER_OVER_RUN_WEIGHT + bat.sixes * SUPER_OVER_SIX_BONUS
        if bat.runs >= SUPER_OVER_HIGH_SCORE:
            points += SUPER_OVER_HIGH_SCORE_BONUS
        scores[pid] = scores.get(pid, 0) + points

    for pid, bowl in innings.bowler_stats.items():
        points = bowl.wickets * SUPER_OVER_WICKET_WEIGHT
        if bowl.balls_bowled > 0:
            if bowl.runs_conceded <= SUPER_OVER_TIGHT_RUNS:
                points += SUPER_OVER_TIGHT_BONUS
            elif bowl.runs_conceded <= SUPER_OVER_FAIR_RUNS:
                points += SUPER_OVER_FAIR_BONUS
        scores[pid] = scores.get(pid, 0) + points


def player_scores(match: Match) -> Dict[str, float]:
    """
    Accumulated award points per player, in roster order.
    """
    scores: Dict[str, float] = {pid: 0.0 for pid in match.players}

    if match.innings:
        _score_innings(scores, match.innings.innings1)
        _score_innings(scores, match.innings.innings2)

    for tb in match.tie_breakers:
        if not tb.result_description:
            continue
        if tb.type == "Super Over" and tb.super_over:
            _score_super_over(scores, tb.super_over.innings1)
            _score_super_over(scores, tb.super_over.innings2)
        elif tb.type == "Bowl Out":
            for attempt in tb.bowl_out:
                if attempt.outcome == "Hit":
                    scores[attempt.bowler_id] = scores.get(attempt.bowler_id, 0) + BOWL_OUT_HIT_BONUS

    if match.winner:
        for pid in match.teams.get(match.winner, []):
            if pid in scores:
                scores[pid] += WINNING_TEAM_BONUS

    return scores


def man_of_the_match(match: Match) -> Optional[str]:
    if match.status != "Completed" or (not match.innings and not match.tie_breakers):
        return None

    best_id: Optional[str] = None
    best = -1.0
    # strict comparison: first maximum wins
    for pid, points in player_scores(match).items():
        if points > best:
            best = points
            best_id = pid

    return best_id if best > 0 else None


def update_fastest_ball(
    current: Optional[FastestBall],
    bowler_id: Optional[str],
    speed: Optional[float],
) -> Optional[FastestBall]:
    if not speed or not bowler_id:
        return current
    if current is None or speed > current.speed:
        return FastestBall(bowler_id=bowler_id, speed=float(speed))
    return current


def fastest_ball_of(matches: Iterable[Match]) -> Optional[FastestBall]:
    """Club record across completed matches."""
    best: Optional[FastestBall] = None
    for m in matches:
        if m.status == "Completed" and m.fastest_ball:
            best = update_fastest_ball(best, m.fastest_ball.bowler_id, m.fastest_ball.speed)
    return best
