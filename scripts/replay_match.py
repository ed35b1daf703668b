# scripts/replay_match.py
from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Any, List, Optional

from club_cricket.exceptions import ClubError
from club_cricket.ledger import economy, format_overs
from club_cricket.match_session import MatchSession
from club_cricket.models import Innings, Match
from club_cricket.storage import load_state, save_match


def load_json(path: Path) -> Any:
    with path.open("r", encoding="utf-8") as f:
        return json.load(f)


# ----------------------------
# Scorecard
# ----------------------------
def print_innings(title: str, inn: Innings) -> None:
    print(f"\n{title}: {inn.batting_team} {inn.score}/{inn.wickets} ({format_overs(inn.total_legal_balls)} ov)")

    for pid, bat in inn.batsmen_stats.items():
        if bat.balls == 0 and not bat.is_out:
            continue
        status = bat.how_out or "not out"
        print(f"  {pid:<12} {bat.runs:>4} ({bat.balls})  4s={bat.fours} 6s={bat.sixes}  {status}")

    for pid, bowl in inn.bowler_stats.items():
        if bowl.balls_bowled == 0 and bowl.runs_conceded == 0:
            continue
        econ = economy(bowl.runs_conceded, bowl.balls_bowled)
        print(f"  {pid:<12} {format_overs(bowl.balls_bowled)}-{bowl.runs_conceded}-{bowl.wickets}  econ={econ:.2f}")


def print_match(match: Match) -> None:
    print("\n==========================")
    print(f"{match.name} ({match.status})")
    print("==========================")

    if match.innings:
        print_innings("1st innings", match.innings.innings1)
        print_innings("2nd innings", match.innings.innings2)

    for i, tb in enumerate(match.tie_breakers, 1):
        print(f"\nTie-breaker {i}: {tb.type} -> {tb.result_description or 'in progress'}")

    if match.status == "Completed":
        print("\nResult:", match.result_description)
        print("Man of the Match:", match.man_of_the_match_id or "-")
        if match.fastest_ball:
            print(f"Fastest ball: {match.fastest_ball.speed:g} km/h by {match.fastest_ball.bowler_id}")
    print("==========================\n")


# ----------------------------
# Main
# ----------------------------
def main(argv: Optional[List[str]] = None) -> int:
    p = argparse.ArgumentParser(
        description="Replay a recorded cricket match from a JSON action file."
    )
    p.add_argument("--input", required=True, help='JSON file with "match" and "actions"')
    p.add_argument("--out", default=None, help="Write the final match and exported actions here")
    p.add_argument("--seed", type=int, default=None, help="Seed for an unpinned toss")
    p.add_argument("--save", action="store_true", help="Persist the replayed match to the club state file")
    p.add_argument("--debug", action="store_true")

    args = p.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    data = load_json(Path(args.input))
    match = Match.from_dict(data["match"])
    session = MatchSession(match, seed=args.seed if args.seed is not None else data.get("seed"))

    try:
        timeline = session.load_actions(data.get("actions") or [])
    except ClubError as e:
        print("[ERROR] Replay rejected:", e)
        return 1

    print(f"[INFO] Replayed {len(timeline)} actions")
    if timeline:
        last = timeline[-1]
        print(f"[INFO] Stage: {last.stage}  {last.batting_team} {last.score}/{last.wickets} ({last.overs})")

    print_match(session.match)

    if args.out:
        out_path = Path(args.out)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(
            json.dumps(
                {"match": session.match.to_dict(), "actions": session.export_actions()},
                ensure_ascii=False,
                indent=2,
            ),
            encoding="utf-8",
        )
        print(f"[INFO] Saved: {out_path}")

    if args.save:
        state = load_state()
        save_match(state, session.match)
        print("[INFO] Match stored in club state")

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
