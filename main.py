import logging
import random

from club_cricket.engine import ScoreEngine
from club_cricket.events import BallEvent, parse_event
from club_cricket.finance import financial_summary, unpaid_losers
from club_cricket.scheduling import schedule_match

logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

rng = random.Random(7)

teams = {
    "Team A": [f"a{i}" for i in range(1, 12)],
    "Team B": [f"b{i}" for i in range(1, 12)],
}
match = schedule_match(
    match_id="m1",
    name="Sunday Friendly",
    date="2026-10-18",
    time="09:00",
    total_overs=3,
    teams=teams,
    captains={"Team A": "a1", "Team B": "b1"},
)

engine = ScoreEngine(match, rng=rng)

engine.toss()
engine.decide("Bat")

codes = ["0", "1", "1", "2", "4", "6", "Wd", "Nb", "1S2"]

while not engine.snapshot().is_finished:
    stage = engine.stage.name
    missing = engine.pending_selection()

    if stage == "inningsBreak":
        print("\nInnings break:", engine.snapshot())
        engine.start_second_innings()
    elif stage == "tieBreakerSelection":
        engine.choose_tie_breaker("Super Over")
    elif missing == "openers":
        bats = engine.available_batsmen()
        engine.select_openers(bats[0], bats[1], engine.available_bowlers()[0])
    elif missing == "striker":
        engine.select_striker(engine.available_batsmen()[0])
    elif missing == "non_striker":
        engine.select_non_striker(engine.available_batsmen()[0])
    elif missing == "bowler":
        engine.select_bowler(rng.choice(engine.available_bowlers()))
    elif rng.random() < 0.1:
        engine.play_ball(BallEvent.wicket("Bowled", speed=round(rng.uniform(110, 145), 1)))
    else:
        engine.play_ball(parse_event(rng.choice(codes), speed=round(rng.uniform(110, 145), 1)))

print("\n==========================")
print("MATCH FINISHED")
print("==========================")
print("Result:", match.result_description)
print("Man of the Match:", match.man_of_the_match_id)
print("Fastest ball:", match.fastest_ball)

# part of the winning side has paid
if match.winner:
    for pid in match.teams[match.winner][:6]:
        match.fees[pid] = "Paid"

print("Finance:", financial_summary([match], []))
for reminder in unpaid_losers([match]):
    print(f"Reminder for {reminder.losing_team}: {len(reminder.unpaid_ids)} unpaid, due {reminder.amount_due:g}")
print("==========================\n")
