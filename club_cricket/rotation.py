"""
Which batter faces the next ball.

Ends are tracked by identity: (striker, non_striker). An empty id marks
an end waiting for a new batter.
"""
from __future__ import annotations

from typing import Tuple

Ends = Tuple[str, str]


def rotate_for_runs(striker: str, non_striker: str, runs: int) -> Ends:
    if runs % 2 != 0:
        return non_striker, striker
    return striker, non_striker


def end_of_over(striker: str, non_striker: str) -> Ends:
    return non_striker, striker


def vacate(striker: str, non_striker: str, out_id: str) -> Ends:
    """Bowled, caught or lbw: the dismissed batter's end is left empty."""
    if out_id == striker:
        return "", non_striker
    return striker, ""


def resolve_run_out(
    striker: str,
    non_striker: str,
    out_id: str,
    new_batsman_id: str,
    runs_completed: int,
    crossed: bool,
) -> Ends:
    """
    Place the surviving batter and the replacement after a run out.

    Completed runs decide who was notionally on strike before the fatal
    run; crossing on that run swaps the survivor's end once more.
    """
    not_out = non_striker if out_id == striker else striker
    notional_striker = non_striker if runs_completed % 2 != 0 else striker

    survivor_at_strikers_end = not_out == notional_striker
    if crossed:
        survivor_at_strikers_end = not survivor_at_strikers_end

    if survivor_at_strikers_end:
        return not_out, new_batsman_id
    return new_batsman_id, not_out
