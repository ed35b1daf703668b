"""
Stage records of the live match state machine.

Each stage carries only the data that is meaningful while the engine
sits in it, so a bowl-out tally can never exist next to a live ball
cursor.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, ClassVar, Dict, List, Literal, Optional, Union

from club_cricket.config import BOWL_OUT_ROUNDS
from club_cricket.models import BowlOutAttempt, FastestBall, InningsPair, LiveState


Segment = Literal["main", "super_over", "bowl_out"]


@dataclass
class TossStage:
    name: ClassVar[str] = "toss"


@dataclass
class DecisionStage:
    toss_winner: str
    name: ClassVar[str] = "decision"


@dataclass
class OpenersStage:
    target: int = 0
    name: ClassVar[str] = "openers"


@dataclass
class PlayStage:
    live: LiveState
    name: ClassVar[str] = "play"


@dataclass
class InningsBreakStage:
    target: int
    name: ClassVar[str] = "inningsBreak"


@dataclass
class TieBreakerSelectionStage:
    name: ClassVar[str] = "tieBreakerSelection"


@dataclass
class BowlOutStage:
    team_order: List[str]
    nominations: Dict[str, List[str]] = field(default_factory=dict)
    attempts: List[BowlOutAttempt] = field(default_factory=list)
    name: ClassVar[str] = "bowlOutPlay"

    def attempts_by(self, team: str) -> int:
        return sum(1 for a in self.attempts if a.team_name == team)

    def hits(self, team: str) -> int:
        return sum(1 for a in self.attempts if a.team_name == team and a.outcome == "Hit")

    def is_ready(self) -> bool:
        return all(t in self.nominations for t in self.team_order)

    def next_team(self) -> str:
        first, second = self.team_order
        return first if self.attempts_by(first) <= self.attempts_by(second) else second

    def next_bowler(self) -> str:
        team = self.next_team()
        return self.nominations[team][self.attempts_by(team)]

    def is_complete(self) -> bool:
        first, second = self.team_order
        hits_first, hits_second = self.hits(first), self.hits(second)
        left_first = BOWL_OUT_ROUNDS - self.attempts_by(first)
        left_second = BOWL_OUT_ROUNDS - self.attempts_by(second)

        if left_first == 0 and left_second == 0:
            return True
        # one side is out of reach of the other
        return hits_first > hits_second + left_second or hits_second > hits_first + left_first

    def leader(self) -> Optional[str]:
        first, second = self.team_order
        if self.hits(first) > self.hits(second):
            return first
        if self.hits(second) > self.hits(first):
            return second
        return None


@dataclass
class MatchOverStage:
    winner: Optional[str]
    result_description: str
    name: ClassVar[str] = "matchOver"


Stage = Union[
    TossStage,
    DecisionStage,
    OpenersStage,
    PlayStage,
    InningsBreakStage,
    TieBreakerSelectionStage,
    BowlOutStage,
    MatchOverStage,
]


def stage_to_dict(stage: Stage) -> Dict[str, Any]:
    d = asdict(stage)
    d["stage"] = stage.name
    return d


def stage_from_dict(d: Dict[str, Any]) -> Stage:
    name = d.get("stage")

    if name == TossStage.name:
        return TossStage()
    if name == DecisionStage.name:
        return DecisionStage(toss_winner=str(d["toss_winner"]))
    if name == OpenersStage.name:
        return OpenersStage(target=int(d.get("target", 0)))
    if name == PlayStage.name:
        live = dict(d["live"])
        live["current_over_events"] = list(live.get("current_over_events") or [])
        return PlayStage(live=LiveState(**live))
    if name == InningsBreakStage.name:
        return InningsBreakStage(target=int(d["target"]))
    if name == TieBreakerSelectionStage.name:
        return TieBreakerSelectionStage()
    if name == BowlOutStage.name:
        return BowlOutStage(
            team_order=list(d["team_order"]),
            nominations={k: list(v) for k, v in (d.get("nominations") or {}).items()},
            attempts=[BowlOutAttempt(**a) for a in (d.get("attempts") or [])],
        )
    if name == MatchOverStage.name:
        return MatchOverStage(
            winner=d.get("winner"),
            result_description=str(d.get("result_description", "")),
        )

    raise ValueError(f"Unknown stage: {name}")


@dataclass
class LiveProgress:
    """
    Everything needed to resume an in-progress match after a restart.
    """
    stage: Stage
    segment: Segment = "main"
    innings_number: int = 1
    innings: Optional[InningsPair] = None
    fastest_ball: Optional[FastestBall] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "stage": stage_to_dict(self.stage),
            "segment": self.segment,
            "innings_number": self.innings_number,
            "innings": self.innings.to_dict() if self.innings else None,
            "fastest_ball": asdict(self.fastest_ball) if self.fastest_ball else None,
        }

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "LiveProgress":
        fastest = d.get("fastest_ball")
        return LiveProgress(
            stage=stage_from_dict(d["stage"]),
            segment=d.get("segment", "main"),
            innings_number=int(d.get("innings_number", 1)),
            innings=InningsPair.from_dict(d["innings"]) if d.get("innings") else None,
            fastest_ball=FastestBall(**fastest) if fastest else None,
        )
