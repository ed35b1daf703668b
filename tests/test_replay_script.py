import json

from club_cricket.scheduling import schedule_match
from scripts.replay_match import main


def write_replay(path, actions):
    match = schedule_match(
        match_id="m9",
        name="Recorded",
        date="2026-10-18",
        time="09:00",
        total_overs=1,
        teams={
            "Team A": [f"a{i}" for i in range(1, 12)],
            "Team B": [f"b{i}" for i in range(1, 12)],
        },
        captains={"Team A": "a1", "Team B": "b1"},
    )
    path.write_text(json.dumps({"match": match.to_dict(), "actions": actions}), encoding="utf-8")


def test_replay_writes_output(tmp_path, capsys):
    source = tmp_path / "replay.json"
    out = tmp_path / "out" / "final.json"
    actions = [
        {"action": "toss", "winner": "Team B"},
        {"action": "decide", "choice": "Bowl"},
        {"action": "openers", "striker": "a1", "non_striker": "a2", "bowler": "b1"},
    ] + [{"action": "ball", "code": c} for c in ["4", "0", "0", "0", "0", "0"]] + [
        {"action": "second_innings"},
        {"action": "openers", "striker": "b1", "non_striker": "b2", "bowler": "a1"},
        {"action": "ball", "code": "6"},
    ]
    write_replay(source, actions)

    assert main(["--input", str(source), "--out", str(out)]) == 0

    data = json.loads(out.read_text(encoding="utf-8"))
    assert data["match"]["result_description"] == "Team B won by 10 wickets"
    assert len(data["actions"]) == len(actions)
    assert "Team B won by 10 wickets" in capsys.readouterr().out


def test_rejected_replay_returns_error(tmp_path):
    source = tmp_path / "replay.json"
    write_replay(source, [{"action": "decide", "choice": "Bat"}])

    assert main(["--input", str(source)]) == 1
