import random
from datetime import datetime

import pytest

from club_cricket.config import BALLS_PER_OVER, MAX_WICKETS, SUPER_OVER_WICKETS
from club_cricket.engine import ScoreEngine
from club_cricket.events import BallEvent
from club_cricket.exceptions import SelectionRequiredError
from club_cricket.scheduling import schedule_match


# ---------------------------------------------------------
# Helpers
# ---------------------------------------------------------

def create_engine(seed, overs=3):
    match = schedule_match(
        match_id=f"sim{seed}",
        name="Simulation",
        date="2026-10-18",
        time="09:00",
        total_overs=overs,
        teams={
            "Team A": [f"a{i}" for i in range(1, 12)],
            "Team B": [f"b{i}" for i in range(1, 12)],
        },
        captains={"Team A": "a1", "Team B": "b1"},
    )
    return ScoreEngine(match, rng=random.Random(seed), clock=lambda: datetime(2026, 10, 18, 18, 30))


def contribution(event):
    if event.kind in ("Wd", "Nb"):
        return 1 + event.extra_runs
    if event.kind in ("runs", "short"):
        return event.runs
    return event.dismissal.runs_completed


def random_event(engine, rng):
    live = engine.stage.live
    fielders = engine.match.teams[engine.snapshot().bowling_team]
    speed = round(rng.uniform(95, 150), 1) if rng.random() < 0.5 else None
    r = rng.random()

    if r < 0.08:
        return BallEvent.wicket(rng.choice(["Bowled", "LBW"]), speed=speed)
    if r < 0.12:
        return BallEvent.wicket("Caught", fielder_id=rng.choice(fielders), speed=speed)
    if r < 0.16:
        waiting = engine.available_batsmen()
        return BallEvent.run_out(
            rng.choice([live.on_strike_id, live.off_strike_id]),
            rng.choice(fielders),
            new_batsman_id=rng.choice(waiting) if waiting and rng.random() < 0.7 else None,
            runs_completed=rng.choice([0, 1, 2]),
            crossed=rng.random() < 0.5,
            off=rng.choice([None, None, "Wd", "Nb"]),
            speed=speed,
        )
    if r < 0.22:
        return BallEvent.wide(rng.choice([0, 0, 1, 4]))
    if r < 0.27:
        return BallEvent.no_ball(rng.choice([0, 1, 2, 4, 6]))
    if r < 0.30:
        attempted = rng.choice([1, 2, 3])
        return BallEvent.short_run(attempted - 1, attempted, speed=speed)
    return BallEvent.scored(rng.choice([0, 0, 1, 1, 1, 2, 3, 4, 6]), speed=speed)


def make_selection(engine, rng):
    missing = engine.pending_selection()

    if missing == "openers":
        striker, non_striker = rng.sample(engine.available_batsmen(), 2)
        engine.select_openers(striker, non_striker, rng.choice(engine.available_bowlers()))
    elif missing == "striker":
        engine.select_striker(rng.choice(engine.available_batsmen()))
    elif missing == "non_striker":
        engine.select_non_striker(rng.choice(engine.available_batsmen()))
    elif missing == "bowler":
        engine.select_bowler(rng.choice(engine.available_bowlers()))
    elif missing == "bowl_out_bowlers":
        for team in engine.stage.team_order:
            if team not in engine.stage.nominations:
                engine.nominate_bowl_out_bowlers(team, rng.sample(engine.match.teams[team], 5))


def simulate(seed, overs=3, undo_rate=0.0, on_ball=None):
    rng = random.Random(seed)
    engine = create_engine(seed, overs)
    engine.toss()
    engine.decide(rng.choice(["Bat", "Bowl"]))

    steps = 0
    while not engine.snapshot().is_finished:
        steps += 1
        assert steps < 10000

        stage = engine.stage.name
        if stage == "inningsBreak":
            engine.start_second_innings()
        elif stage == "tieBreakerSelection":
            engine.choose_tie_breaker(rng.choice(["Super Over", "Bowl Out", "Tie"]))
        elif engine.pending_selection():
            make_selection(engine, rng)
        elif stage == "bowlOutPlay":
            engine.bowl_out_attempt(rng.choice(["Hit", "Miss"]))
        else:
            before = engine.progress()
            event = random_event(engine, rng)
            engine.play_ball(event)

            if on_ball is not None:
                on_ball(engine, before, event)

            if engine.can_undo and rng.random() < undo_rate:
                engine.undo()
                assert engine.progress() == before

    return engine


# ---------------------------------------------------------
# Score Invariants
# ---------------------------------------------------------

@pytest.mark.parametrize("seed", range(25))
def test_score_conservation(seed):
    def check(engine, before, event):
        inn_before = before.innings.get(before.innings_number)
        inn_after = engine.innings.get(before.innings_number)
        assert inn_after.score == inn_before.score + contribution(event)

    simulate(seed, on_ball=check)


@pytest.mark.parametrize("seed", range(25))
def test_ball_and_wicket_bounds(seed):
    def check(engine, before, event):
        inn = engine.innings.get(before.innings_number)
        if before.segment == "super_over":
            assert inn.total_legal_balls <= BALLS_PER_OVER
            assert inn.wickets <= SUPER_OVER_WICKETS
        else:
            assert inn.total_legal_balls <= engine.match.total_overs * BALLS_PER_OVER
            assert inn.wickets <= MAX_WICKETS

    simulate(seed, on_ball=check)


@pytest.mark.parametrize("seed", range(10))
def test_ledgers_agree(seed):
    match = simulate(seed).match

    for inn in (match.innings.innings1, match.innings.innings2):
        assert inn.score == sum(b.runs_conceded for b in inn.bowler_stats.values())
        assert inn.total_legal_balls == sum(b.balls_bowled for b in inn.bowler_stats.values())
        assert inn.wickets == len(inn.fall_of_wickets)
        assert inn.wickets == sum(1 for s in inn.batsmen_stats.values() if s.is_out)


# ---------------------------------------------------------
# Results
# ---------------------------------------------------------

@pytest.mark.parametrize("seed", range(25))
def test_every_match_completes(seed):
    match = simulate(seed).match

    assert match.status == "Completed"
    assert match.result_description
    assert match.live_progress is None
    assert match.winner is None or match.winner in match.teams
    assert len(match.tie_breakers) <= 2


@pytest.mark.parametrize("seed", range(10))
def test_replay_is_deterministic(seed):
    first = simulate(seed).match
    second = simulate(seed).match

    assert first.to_dict() == second.to_dict()


# ---------------------------------------------------------
# Undo
# ---------------------------------------------------------

@pytest.mark.parametrize("seed", range(10))
def test_undo_restores_state(seed):
    engine = simulate(seed, undo_rate=0.3)

    assert engine.match.status == "Completed"


# ---------------------------------------------------------
# Selections
# ---------------------------------------------------------

def test_no_ball_until_selection_made():
    fresh = create_engine(99)
    fresh.toss("Team A")
    fresh.decide("Bat")
    fresh.select_openers("a1", "a2", "b1")
    fresh.play_ball(BallEvent.wicket("LBW"))

    with pytest.raises(SelectionRequiredError):
        fresh.play_ball(BallEvent.scored(2))

    assert fresh.innings.innings1.score == 0
    assert fresh.innings.innings1.total_legal_balls == 1
