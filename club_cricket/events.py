from __future__ import annotations

import re
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Literal, Optional

from club_cricket.exceptions import ValidationError


BallKind = Literal["runs", "Wd", "Nb", "W", "short"]
DismissalKind = Literal["Bowled", "Caught", "LBW", "Run Out"]

BALL_KINDS = ("runs", "Wd", "Nb", "W", "short")
EXTRA_KINDS = ("Wd", "Nb")
SCORING_RUNS = (0, 1, 2, 3, 4, 6)
DISMISSAL_KINDS = ("Bowled", "Caught", "LBW", "Run Out")

# Not out on a free hit
FREE_HIT_PROTECTED = ("Bowled", "Caught", "LBW")

_SHORT_RUN = re.compile(r"^(\d+)S(\d+)$")
_EXTRA = re.compile(r"^(Wd|Nb)(?:\+(\d+))?$")


@dataclass(frozen=True)
class Dismissal:
    kind: DismissalKind
    fielder_id: Optional[str] = None
    batsman_out_id: Optional[str] = None   # defaults to the striker
    new_batsman_id: Optional[str] = None   # run outs only
    crossed: bool = False
    runs_completed: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "Dismissal":
        return Dismissal(
            kind=d["kind"],
            fielder_id=d.get("fielder_id"),
            batsman_out_id=d.get("batsman_out_id"),
            new_batsman_id=d.get("new_batsman_id"),
            crossed=bool(d.get("crossed", False)),
            runs_completed=int(d.get("runs_completed", 0)),
        )


@dataclass(frozen=True)
class BallEvent:
    """
    One delivery.

    - kind "runs": runs off the bat (0, 1, 2, 3, 4, 6)
    - kind "short": `runs` scored out of `attempted`
    - kind "Wd" / "Nb": one penalty run plus `extra_runs`
    - kind "W": a dismissal on a legal ball
    A run out can also come off a Wd / Nb, in which case `extra_runs`
    are the runs completed before the wicket.
    """
    kind: BallKind
    runs: int = 0
    attempted: int = 0
    extra_runs: int = 0
    dismissal: Optional[Dismissal] = None
    speed: Optional[float] = None

    # ---------------------------------------------------------
    # Constructors
    # ---------------------------------------------------------

    @staticmethod
    def scored(runs: int, speed: Optional[float] = None) -> "BallEvent":
        return BallEvent(kind="runs", runs=runs, speed=speed)

    @staticmethod
    def wide(extra_runs: int = 0) -> "BallEvent":
        return BallEvent(kind="Wd", extra_runs=extra_runs)

    @staticmethod
    def no_ball(extra_runs: int = 0) -> "BallEvent":
        return BallEvent(kind="Nb", extra_runs=extra_runs)

    @staticmethod
    def short_run(scored: int, attempted: int, speed: Optional[float] = None) -> "BallEvent":
        return BallEvent(kind="short", runs=scored, attempted=attempted, speed=speed)

    @staticmethod
    def wicket(
        how_out: DismissalKind,
        fielder_id: Optional[str] = None,
        speed: Optional[float] = None,
    ) -> "BallEvent":
        return BallEvent(kind="W", dismissal=Dismissal(kind=how_out, fielder_id=fielder_id), speed=speed)

    @staticmethod
    def run_out(
        batsman_out_id: str,
        fielder_id: str,
        new_batsman_id: Optional[str] = None,
        runs_completed: int = 0,
        crossed: bool = False,
        off: Optional[str] = None,
        speed: Optional[float] = None,
    ) -> "BallEvent":
        dismissal = Dismissal(
            kind="Run Out",
            fielder_id=fielder_id,
            batsman_out_id=batsman_out_id,
            new_batsman_id=new_batsman_id,
            crossed=crossed,
            runs_completed=runs_completed,
        )
        if off in EXTRA_KINDS:
            return BallEvent(kind=off, extra_runs=runs_completed, dismissal=dismissal)  # type: ignore
        return BallEvent(kind="W", dismissal=dismissal, speed=speed)

    # ---------------------------------------------------------
    # Derived facts
    # ---------------------------------------------------------

    @property
    def is_legal(self) -> bool:
        return self.kind not in EXTRA_KINDS

    @property
    def rotation_runs(self) -> int:
        """
        Runs the batters physically completed, which decide the ends.
        A short run rotates by what was attempted, not what was credited.
        """
        if self.kind == "runs":
            return self.runs
        if self.kind == "short":
            return self.attempted
        if self.kind in EXTRA_KINDS:
            return self.extra_runs
        return self.dismissal.runs_completed if self.dismissal else 0

    @property
    def code(self) -> str:
        """Compact notation used in the over log."""
        run_out = self.dismissal is not None and self.dismissal.kind == "Run Out"

        if self.kind == "runs":
            return str(self.runs)
        if self.kind == "short":
            return f"{self.runs}S{self.attempted}"
        if self.kind in EXTRA_KINDS:
            base = self.kind if self.extra_runs == 0 else f"{self.kind}+{self.extra_runs}"
            return f"{base}RO" if run_out else base
        if run_out:
            done = self.dismissal.runs_completed  # type: ignore
            return f"{done}RO" if done else "RO"
        return "W"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "runs": self.runs,
            "attempted": self.attempted,
            "extra_runs": self.extra_runs,
            "dismissal": self.dismissal.to_dict() if self.dismissal else None,
            "speed": self.speed,
        }

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "BallEvent":
        speed = d.get("speed")
        return BallEvent(
            kind=d["kind"],
            runs=int(d.get("runs", 0)),
            attempted=int(d.get("attempted", 0)),
            extra_runs=int(d.get("extra_runs", 0)),
            dismissal=Dismissal.from_dict(d["dismissal"]) if d.get("dismissal") else None,
            speed=float(speed) if speed is not None else None,
        )


# =============================================================================
# Validation
# =============================================================================

def validate_event(event: BallEvent) -> List[str]:
    """
    Return list of problems (empty == valid).
    """
    problems: List[str] = []

    if event.kind not in BALL_KINDS:
        problems.append(f"invalid ball kind: {event.kind}")
        return problems

    if event.kind == "runs" and event.runs not in SCORING_RUNS:
        problems.append(f"runs off the bat must be one of {SCORING_RUNS}, got {event.runs}")

    if event.kind == "short":
        if event.attempted <= 0 or event.runs < 0:
            problems.append("short run needs positive runs attempted and non-negative runs scored")
        elif event.runs >= event.attempted:
            problems.append("runs attempted must be greater than runs scored")

    if event.extra_runs < 0:
        problems.append("extra runs cannot be negative")

    if event.speed is not None and event.speed <= 0:
        problems.append("speed must be positive")

    d = event.dismissal
    if event.kind == "W" and d is None:
        problems.append("a wicket needs dismissal details")

    if d is not None:
        problems.extend(_dismissal_problems(event, d))

    return problems


def _dismissal_problems(event: BallEvent, d: Dismissal) -> List[str]:
    problems: List[str] = []

    if d.kind not in DISMISSAL_KINDS:
        problems.append(f"invalid dismissal: {d.kind}")
        return problems

    if event.kind in ("runs", "short"):
        problems.append("scoring deliveries cannot carry a dismissal")
    if event.kind in EXTRA_KINDS and d.kind != "Run Out":
        problems.append(f"only a run out can happen off a {event.kind}")

    if d.kind in ("Caught", "Run Out") and not d.fielder_id:
        problems.append(f"{d.kind} needs a fielder")

    if d.kind == "Run Out":
        if d.runs_completed < 0:
            problems.append("runs completed cannot be negative")
        if event.kind in EXTRA_KINDS and d.runs_completed != event.extra_runs:
            problems.append("runs completed must match the extra runs of the delivery")
    else:
        if d.runs_completed or d.new_batsman_id or d.crossed:
            problems.append(f"{d.kind} cannot carry run-out details")

    return problems


def ensure_valid(event: BallEvent) -> None:
    problems = validate_event(event)
    if problems:
        raise ValidationError("Invalid ball event: " + "; ".join(problems))


def parse_event(code: str, speed: Optional[float] = None) -> BallEvent:
    """
    Parse a compact code: "0".."6", "Wd", "Wd+2", "Nb+4", "1S2".

    Wickets need dismissal details and cannot be expressed as a bare code.
    """
    code = str(code).strip()

    if code.isdigit():
        event = BallEvent(kind="runs", runs=int(code), speed=speed)
        ensure_valid(event)
        return event

    m = _SHORT_RUN.match(code)
    if m:
        event = BallEvent(kind="short", runs=int(m.group(1)), attempted=int(m.group(2)), speed=speed)
        ensure_valid(event)
        return event

    m = _EXTRA.match(code)
    if m:
        return BallEvent(kind=m.group(1), extra_runs=int(m.group(2) or 0))  # type: ignore

    if code in ("W", "RO"):
        raise ValidationError("Wicket codes need dismissal details; pass a structured event")

    raise ValidationError(f"Unrecognised ball code: {code!r}")
