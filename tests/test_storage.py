import json

from club_cricket.config import STATE_KEY
from club_cricket.engine import ScoreEngine
from club_cricket.events import BallEvent
from club_cricket.models import Player, Withdrawal
from club_cricket.scheduling import schedule_match
from club_cricket.storage import ClubState, load_state, make_autosave, save_match, save_state


# ---------------------------------------------------------
# Helpers
# ---------------------------------------------------------

def create_state():
    match = schedule_match(
        match_id="m1",
        name="Stored",
        date="2026-10-18",
        time="09:00",
        total_overs=5,
        teams={
            "Team A": [f"a{i}" for i in range(1, 12)],
            "Team B": [f"b{i}" for i in range(1, 12)],
        },
        captains={"Team A": "a1", "Team B": "b1"},
    )
    return ClubState(
        players=[Player(id="a1", full_name="Arjun Mehta", role="All-Rounder", jersey_number=7)],
        matches=[match],
        withdrawals=[Withdrawal(id="w1_1", amount=250.0, reason="Balls", date="2026-10-01")],
    )


# ---------------------------------------------------------
# Load / save
# ---------------------------------------------------------

def test_missing_file_gives_empty_state(tmp_path):
    state = load_state(tmp_path / "nope.json")

    assert state == ClubState()


def test_corrupt_file_gives_empty_state(tmp_path):
    path = tmp_path / "state.json"
    path.write_text("{not json", encoding="utf-8")

    assert load_state(path) == ClubState()


def test_save_and_load(tmp_path):
    path = tmp_path / "data" / "state.json"
    state = create_state()

    save_state(state, path)
    loaded = load_state(path)

    assert loaded == state
    assert STATE_KEY in json.loads(path.read_text(encoding="utf-8"))


def test_save_keeps_other_keys(tmp_path):
    path = tmp_path / "state.json"
    path.write_text(json.dumps({"theme": "dark"}), encoding="utf-8")

    save_state(create_state(), path)

    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["theme"] == "dark"
    assert data[STATE_KEY]["players"][0]["full_name"] == "Arjun Mehta"


# ---------------------------------------------------------
# Live match persistence
# ---------------------------------------------------------

def test_autosave_persists_live_progress(tmp_path):
    path = tmp_path / "state.json"
    state = create_state()
    match = state.matches[0]

    engine = ScoreEngine(match, on_update=make_autosave(state, path))
    engine.toss("Team B")
    engine.decide("Bat")
    engine.select_openers("b1", "b2", "a1")
    engine.play_ball(BallEvent.scored(4, speed=133.0))

    stored = load_state(path).find_match("m1")
    assert stored.status == "Live"
    assert stored.live_progress.stage.name == "play"
    assert stored.live_progress.innings.innings1.score == 4
    assert stored.fastest_ball.speed == 133.0

    # a restarted engine carries on from the stored progress
    resumed = ScoreEngine(stored)
    assert resumed.snapshot().score == 4
    assert resumed.snapshot().striker == "b1"


def test_save_match_adds_new_match(tmp_path):
    path = tmp_path / "state.json"
    state = create_state()
    other = schedule_match(
        "m2", "Second", "2026-10-25", "09:00", 10,
        {k: list(v) for k, v in state.matches[0].teams.items()},
        dict(state.matches[0].captains),
    )

    save_match(state, other, path)

    assert [m.id for m in load_state(path).matches] == ["m1", "m2"]
