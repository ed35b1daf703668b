from datetime import date

import pytest

from club_cricket.models import Player
from club_cricket.registry import import_players, parse_registration_date


TODAY = date(2026, 10, 17)


# ---------- DATES ----------

@pytest.mark.parametrize("value, expected", [
    ("2025-03-09", "2025-03-09"),
    ("09-03-2025", "2025-03-09"),
    ("09/03/2025", "2025-03-09"),
    (date(2024, 1, 2), "2024-01-02"),
    ("someday", "2026-10-17"),
    (None, "2026-10-17"),
])
def test_parse_registration_date(value, expected):
    assert parse_registration_date(value, TODAY) == expected


# ---------- IMPORT ----------

def test_import_merges_by_id():
    existing = [
        Player(id="p1", full_name="Old Name"),
        Player(id="p2", full_name="Stays"),
    ]
    records = [
        {"id": "p1", "full_name": "New Name", "role": "Bowler", "jersey_number": "18"},
        {"id": "p3", "full_name": "Newcomer", "registration_date": "2026-01-05"},
    ]

    players, problems = import_players(existing, records, today=TODAY)

    by_id = {p.id: p for p in players}
    assert problems == []
    assert [p.id for p in players] == ["p1", "p2", "p3"]
    assert by_id["p1"].full_name == "New Name"
    assert by_id["p1"].jersey_number == 18
    assert by_id["p3"].registration_date == "2026-01-05"


def test_bad_records_skipped_individually():
    records = [
        {"id": "p1", "full_name": "Good"},
        {"id": "", "full_name": "No Id"},
        {"id": "p3"},
        {"id": "p4", "full_name": "Odd Role", "role": "Keeper"},
        {"id": "p5", "full_name": "Also Good", "registration_date": "not a date"},
    ]

    players, problems = import_players([], records, today=TODAY)

    assert [p.id for p in players] == ["p1", "p5"]
    assert len(problems) == 3
    assert problems[0].startswith("record 2")
    assert players[1].registration_date == "2026-10-17"
