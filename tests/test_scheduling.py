import pytest

from club_cricket.exceptions import InvalidMatchError
from club_cricket.scheduling import next_match_id, roster_problems, schedule_match


def make_teams(size_a=11, size_b=11):
    return {
        "Team A": [f"a{i}" for i in range(1, size_a + 1)],
        "Team B": [f"b{i}" for i in range(1, size_b + 1)],
    }


CAPTAINS = {"Team A": "a1", "Team B": "b1"}


# ---------- ROSTERS ----------

def test_valid_roster_has_no_problems():
    assert roster_problems(make_teams(), CAPTAINS) == []


@pytest.mark.parametrize("teams, captains", [
    (make_teams(10, 11), CAPTAINS),
    ({"Team A": make_teams()["Team A"]}, {"Team A": "a1"}),
    (make_teams(), {"Team A": "a1"}),
    (make_teams(), {"Team A": "a1", "Team B": "a2"}),
    (make_teams(), {"Team A": "a1", "Team B": "b1", "Team C": "c1"}),
    ({"Team A": make_teams()["Team A"], "Team B": make_teams()["Team A"]}, {"Team A": "a1", "Team B": "a2"}),
    ({"Team A": make_teams()["Team A"] + ["a1"], "Team B": make_teams()["Team B"]}, CAPTAINS),
    ({"  ": make_teams()["Team A"], "Team B": make_teams()["Team B"]}, {"  ": "a1", "Team B": "b1"}),
])
def test_roster_problems(teams, captains):
    assert roster_problems(teams, captains)


def test_same_captain_twice():
    teams = make_teams()
    teams["Team B"].append("a1")
    teams["Team A"].remove("a1")
    teams["Team A"].append("a12")

    problems = roster_problems(teams, {"Team A": "a1", "Team B": "a1"})

    assert any("both teams" in p for p in problems)


# ---------- SCHEDULING ----------

def test_schedule_fills_fees_and_players():
    match = schedule_match("m1", "Derby", "2026-10-18", "09:00", 20, make_teams(), CAPTAINS)

    assert match.status == "Scheduled"
    assert len(match.players) == 22
    assert set(match.fees.values()) == {"Unpaid"}
    assert match.fee_per_player == 100


def test_schedule_custom_fee():
    match = schedule_match("m1", "Derby", "2026-10-18", "09:00", 20, make_teams(), CAPTAINS, fee_per_player=80)

    assert match.fee_per_player == 80


@pytest.mark.parametrize("name, overs", [
    ("", 20),
    ("Derby", 0),
    ("Derby", -5),
])
def test_schedule_rejects_bad_input(name, overs):
    with pytest.raises(InvalidMatchError):
        schedule_match("m1", name, "2026-10-18", "09:00", overs, make_teams(), CAPTAINS)


def test_schedule_copies_rosters():
    teams = make_teams()
    match = schedule_match("m1", "Derby", "2026-10-18", "09:00", 20, teams, CAPTAINS)

    teams["Team A"].append("a99")

    assert "a99" not in match.teams["Team A"]


def test_next_match_id():
    first = schedule_match("m1", "Derby", "2026-10-18", "09:00", 20, make_teams(), CAPTAINS)

    assert next_match_id([]) == "m1"
    assert next_match_id([first]) == "m2"
