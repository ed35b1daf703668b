from __future__ import annotations

from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Literal, Optional


PlayerRole = Literal["Batter", "Bowler", "All-Rounder"]
HowOut = Literal["Bowled", "Caught", "LBW", "Run Out"]
FeeStatus = Literal["Paid", "Unpaid", "Exempt"]
MatchStatus = Literal["Scheduled", "Live", "Completed"]
Decision = Literal["Bat", "Bowl"]
TieBreakerType = Literal["Super Over", "Bowl Out"]
BowlOutOutcome = Literal["Hit", "Miss"]


@dataclass
class Player:
    id: str
    full_name: str
    role: PlayerRole = "Batter"
    email: str = ""
    dob: str = ""
    gender: str = ""
    state: str = ""
    country: str = ""
    photo_url: str = ""
    registration_date: str = ""
    jersey_number: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "Player":
        jersey = d.get("jersey_number")
        return Player(
            id=str(d["id"]),
            full_name=str(d["full_name"]),
            role=str(d.get("role", "Batter")),  # type: ignore
            email=str(d.get("email", "")),
            dob=str(d.get("dob", "")),
            gender=str(d.get("gender", "")),
            state=str(d.get("state", "")),
            country=str(d.get("country", "")),
            photo_url=str(d.get("photo_url", "")),
            registration_date=str(d.get("registration_date", "")),
            jersey_number=int(jersey) if jersey is not None else None,
        )


# --- INNINGS LEDGER TYPES ---

@dataclass
class BatsmanStats:
    runs: int = 0
    balls: int = 0
    is_out: bool = False
    fours: int = 0
    sixes: int = 0
    how_out: Optional[HowOut] = None
    fielder_id: Optional[str] = None  # catches, run outs
    bowler_id: Optional[str] = None   # bowler credited with the wicket


@dataclass
class BowlerStats:
    balls_bowled: int = 0
    runs_conceded: int = 0
    wickets: int = 0


@dataclass
class FallOfWicket:
    score: int
    wicket: int
    batsman_id: str


@dataclass
class Innings:
    batting_team: str
    bowling_team: str
    score: int = 0
    wickets: int = 0
    total_legal_balls: int = 0
    batsmen_stats: Dict[str, BatsmanStats] = field(default_factory=dict)
    bowler_stats: Dict[str, BowlerStats] = field(default_factory=dict)
    fall_of_wickets: List[FallOfWicket] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "Innings":
        return Innings(
            batting_team=str(d.get("batting_team", "")),
            bowling_team=str(d.get("bowling_team", "")),
            score=int(d.get("score", 0)),
            wickets=int(d.get("wickets", 0)),
            total_legal_balls=int(d.get("total_legal_balls", 0)),
            batsmen_stats={
                pid: BatsmanStats(**s) for pid, s in (d.get("batsmen_stats") or {}).items()
            },
            bowler_stats={
                pid: BowlerStats(**s) for pid, s in (d.get("bowler_stats") or {}).items()
            },
            fall_of_wickets=[FallOfWicket(**f) for f in (d.get("fall_of_wickets") or [])],
        )


@dataclass
class InningsPair:
    innings1: Innings
    innings2: Innings

    def get(self, number: int) -> Innings:
        return self.innings1 if number == 1 else self.innings2

    def to_dict(self) -> Dict[str, Any]:
        return {"innings1": self.innings1.to_dict(), "innings2": self.innings2.to_dict()}

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "InningsPair":
        return InningsPair(
            innings1=Innings.from_dict(d["innings1"]),
            innings2=Innings.from_dict(d["innings2"]),
        )


# --- TIE-BREAKERS ---

@dataclass
class BowlOutAttempt:
    team_name: str
    bowler_id: str
    outcome: BowlOutOutcome


@dataclass
class TieBreaker:
    type: TieBreakerType
    super_over: Optional[InningsPair] = None
    bowl_out: List[BowlOutAttempt] = field(default_factory=list)
    result_description: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "super_over": self.super_over.to_dict() if self.super_over else None,
            "bowl_out": [asdict(a) for a in self.bowl_out],
            "result_description": self.result_description,
        }

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "TieBreaker":
        return TieBreaker(
            type=d["type"],
            super_over=InningsPair.from_dict(d["super_over"]) if d.get("super_over") else None,
            bowl_out=[BowlOutAttempt(**a) for a in (d.get("bowl_out") or [])],
            result_description=d.get("result_description"),
        )


@dataclass
class FastestBall:
    bowler_id: str
    speed: float


@dataclass
class Withdrawal:
    id: str
    amount: float
    reason: str
    date: str
    person_name: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "Withdrawal":
        return Withdrawal(
            id=str(d["id"]),
            amount=float(d["amount"]),
            reason=str(d.get("reason", "")),
            date=str(d.get("date", "")),
            person_name=d.get("person_name"),
        )


# --- LIVE BALL STATE ---

@dataclass
class LiveState:
    """
    Ball-level cursor of the innings in play.

    An empty id means the engine is waiting for that selection.
    """
    on_strike_id: str = ""
    off_strike_id: str = ""
    bowler_id: str = ""
    previous_bowler_id: str = ""
    current_over_events: List[str] = field(default_factory=list)
    target: int = 0
    is_free_hit: bool = False


# --- AGGREGATE ROOT ---

@dataclass
class Match:
    id: str
    name: str
    date: str
    teams: Dict[str, List[str]]
    captains: Dict[str, str] = field(default_factory=dict)
    players: List[str] = field(default_factory=list)
    time: str = ""
    total_overs: Optional[int] = None
    status: MatchStatus = "Scheduled"
    toss_winner: Optional[str] = None
    decision: Optional[Decision] = None
    innings: Optional[InningsPair] = None
    live_progress: Optional[Any] = None  # club_cricket.stages.LiveProgress
    tie_breakers: List[TieBreaker] = field(default_factory=list)
    winner: Optional[str] = None
    result_description: Optional[str] = None
    completion_date: Optional[str] = None
    man_of_the_match_id: Optional[str] = None
    fastest_ball: Optional[FastestBall] = None
    fees: Dict[str, FeeStatus] = field(default_factory=dict)
    fee_per_player: Optional[float] = None

    @property
    def team_names(self) -> List[str]:
        return list(self.teams.keys())

    def other_team(self, team_name: str) -> str:
        for name in self.teams:
            if name != team_name:
                return name
        raise KeyError(team_name)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "date": self.date,
            "time": self.time,
            "teams": {k: list(v) for k, v in self.teams.items()},
            "captains": dict(self.captains),
            "players": list(self.players),
            "total_overs": self.total_overs,
            "status": self.status,
            "toss_winner": self.toss_winner,
            "decision": self.decision,
            "innings": self.innings.to_dict() if self.innings else None,
            "live_progress": self.live_progress.to_dict() if self.live_progress else None,
            "tie_breakers": [t.to_dict() for t in self.tie_breakers],
            "winner": self.winner,
            "result_description": self.result_description,
            "completion_date": self.completion_date,
            "man_of_the_match_id": self.man_of_the_match_id,
            "fastest_ball": asdict(self.fastest_ball) if self.fastest_ball else None,
            "fees": dict(self.fees),
            "fee_per_player": self.fee_per_player,
        }

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "Match":
        # stages depends on this module
        from club_cricket.stages import LiveProgress

        fastest = d.get("fastest_ball")
        overs = d.get("total_overs")
        return Match(
            id=str(d["id"]),
            name=str(d.get("name", "")),
            date=str(d.get("date", "")),
            time=str(d.get("time", "")),
            teams={k: list(v) for k, v in d["teams"].items()},
            captains=dict(d.get("captains") or {}),
            players=list(d.get("players") or []),
            total_overs=int(overs) if overs is not None else None,
            status=d.get("status", "Scheduled"),
            toss_winner=d.get("toss_winner"),
            decision=d.get("decision"),
            innings=InningsPair.from_dict(d["innings"]) if d.get("innings") else None,
            live_progress=(
                LiveProgress.from_dict(d["live_progress"]) if d.get("live_progress") else None
            ),
            tie_breakers=[TieBreaker.from_dict(t) for t in (d.get("tie_breakers") or [])],
            winner=d.get("winner"),
            result_description=d.get("result_description"),
            completion_date=d.get("completion_date"),
            man_of_the_match_id=d.get("man_of_the_match_id"),
            fastest_ball=FastestBall(**fastest) if fastest else None,
            fees=dict(d.get("fees") or {}),
            fee_per_player=d.get("fee_per_player"),
        )


# --- READ MODEL ---

@dataclass(frozen=True)
class ScoreSnapshot:
    stage: str
    segment: str
    innings_number: int
    batting_team: str = ""
    bowling_team: str = ""
    score: int = 0
    wickets: int = 0
    legal_balls: int = 0
    overs: str = "0.0"
    target: int = 0
    striker: str = ""
    non_striker: str = ""
    bowler: str = ""
    is_free_hit: bool = False
    is_finished: bool = False
    winner: Optional[str] = None
    result_description: Optional[str] = None
