from __future__ import annotations

import logging
import random
from copy import deepcopy
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, List, Optional

from club_cricket import awards, ledger
from club_cricket.config import (
    BALLS_PER_OVER,
    MATCH_FEE_PER_PLAYER,
    MAX_TIE_BREAKERS,
    MAX_WICKETS,
    SUPER_OVER_OVERS,
    SUPER_OVER_WICKETS,
)
from club_cricket.events import FREE_HIT_PROTECTED, BallEvent, ensure_valid
from club_cricket.exceptions import (
    InvalidMatchError,
    InvalidSelectionError,
    MatchFinishedError,
    NothingToUndoError,
    SelectionRequiredError,
    StageError,
    ValidationError,
)
from club_cricket.models import (
    BowlOutAttempt,
    FastestBall,
    Innings,
    InningsPair,
    LiveState,
    Match,
    ScoreSnapshot,
    TieBreaker,
)
from club_cricket.rotation import end_of_over, resolve_run_out, rotate_for_runs, vacate
from club_cricket.scheduling import roster_problems
from club_cricket.stages import (
    BowlOutStage,
    DecisionStage,
    InningsBreakStage,
    LiveProgress,
    MatchOverStage,
    OpenersStage,
    PlayStage,
    Stage,
    TieBreakerSelectionStage,
    TossStage,
)

logger = logging.getLogger(__name__)


@dataclass
class _HistoryEntry:
    innings: InningsPair
    live: LiveState
    fastest_ball: Optional[FastestBall]


def _plural(n: int, word: str) -> str:
    return f"{n} {word}" if n == 1 else f"{n} {word}s"


class ScoreEngine:
    """
    Live match engine.

    Responsibilities:
    - Drive one Match from toss to completion
    - Apply BallEvents to the innings in play
    - Enforce selection and playing-condition invariants
    - Resolve innings, tie-breakers and the final result
    - Checkpoint live progress after every mutation
    """

    def __init__(
        self,
        match: Match,
        rng: Optional[random.Random] = None,
        clock: Optional[Callable[[], datetime]] = None,
        on_update: Optional[Callable[[Match], None]] = None,
    ):
        self.match = match
        self._rng = rng or random.Random()
        self._clock = clock or datetime.now
        self.on_update = on_update

        self.stage: Stage = TossStage()
        self.segment = "main"
        self.innings_number = 1
        self.innings: Optional[InningsPair] = None
        self.fastest_ball: Optional[FastestBall] = match.fastest_ball
        self._history: List[_HistoryEntry] = []

        self._validate_initial_state()

        if match.status == "Completed":
            self.stage = MatchOverStage(match.winner, match.result_description or "")
            self.innings = match.innings
            return

        if match.live_progress is not None:
            self._resume(match.live_progress)
        else:
            self._start_fresh()

        if match.status == "Scheduled":
            match.status = "Live"
            logger.info("Match %s is live", match.id)

        self._checkpoint()

    # =========================================================
    # PUBLIC API: TOSS & SETUP
    # =========================================================

    def toss(self, winner: Optional[str] = None) -> str:
        """
        Pick the toss winner. A recorded winner can be passed when
        replaying a match.
        """
        self._require(TossStage)
        names = self.match.team_names

        if winner is None:
            winner = names[0] if self._rng.random() < 0.5 else names[1]
        elif winner not in names:
            raise InvalidSelectionError(f"Unknown team: {winner}")

        self.match.toss_winner = winner
        self.stage = DecisionStage(toss_winner=winner)
        logger.info("%s won the toss", winner)
        self._checkpoint()
        return winner

    def decide(self, choice: str) -> None:
        stage = self._require(DecisionStage)
        if choice not in ("Bat", "Bowl"):
            raise ValidationError(f"Decision must be Bat or Bowl, got {choice!r}")

        self.match.toss_winner = stage.toss_winner
        self.match.decision = choice  # type: ignore
        self._setup_main_innings()
        logger.info("%s chose to %s first", stage.toss_winner, choice.lower())
        self._checkpoint()

    def select_openers(self, striker_id: str, non_striker_id: str, bowler_id: str) -> None:
        stage = self._require(OpenersStage)

        if striker_id == non_striker_id:
            raise InvalidSelectionError("Two different opening batters are required")
        available = self.available_batsmen()
        for pid in (striker_id, non_striker_id):
            if pid not in available:
                raise InvalidSelectionError(f"{pid} cannot open for {self._current().batting_team}")
        if bowler_id not in self.match.teams[self._current().bowling_team]:
            raise InvalidSelectionError(f"{bowler_id} cannot bowl for {self._current().bowling_team}")

        self.stage = PlayStage(
            live=LiveState(
                on_strike_id=striker_id,
                off_strike_id=non_striker_id,
                bowler_id=bowler_id,
                target=stage.target,
            )
        )
        self._history = []
        self._checkpoint()

    # =========================================================
    # PUBLIC API: SELECTIONS DURING PLAY
    # =========================================================

    def select_striker(self, player_id: str) -> None:
        live = self._require(PlayStage).live
        if live.on_strike_id:
            raise InvalidSelectionError("Striker's end is already occupied")
        self._check_incoming_batter(player_id)
        live.on_strike_id = player_id
        self._checkpoint()

    def select_non_striker(self, player_id: str) -> None:
        live = self._require(PlayStage).live
        if live.off_strike_id:
            raise InvalidSelectionError("Non-striker's end is already occupied")
        self._check_incoming_batter(player_id)
        live.off_strike_id = player_id
        self._checkpoint()

    def select_bowler(self, bowler_id: str) -> None:
        live = self._require(PlayStage).live
        if live.bowler_id:
            raise InvalidSelectionError("A bowler is already on")
        if bowler_id not in self.match.teams[self._current().bowling_team]:
            raise InvalidSelectionError(f"{bowler_id} is not in {self._current().bowling_team}")
        if bowler_id == live.previous_bowler_id:
            raise InvalidSelectionError("A bowler cannot bowl consecutive overs")

        live.bowler_id = bowler_id
        # undo never reaches back into the previous over
        self._history = []
        self._checkpoint()

    def change_bowler(self) -> None:
        """Take the bowler off before the first ball of the over."""
        live = self._require(PlayStage).live
        if not live.bowler_id or live.current_over_events:
            raise InvalidSelectionError("The bowler can only be changed before the over starts")
        live.bowler_id = ""
        self._checkpoint()

    def pending_selection(self) -> Optional[str]:
        if isinstance(self.stage, OpenersStage):
            return "openers"
        if isinstance(self.stage, BowlOutStage) and not self.stage.is_ready():
            return "bowl_out_bowlers"
        if not isinstance(self.stage, PlayStage):
            return None

        live = self.stage.live
        if not live.on_strike_id:
            return "striker"
        if not live.off_strike_id:
            return "non_striker"
        if not live.bowler_id:
            return "bowler"
        return None

    def available_batsmen(self) -> List[str]:
        if self.innings is None:
            return []
        inn = self._current()
        live = self.stage.live if isinstance(self.stage, PlayStage) else LiveState()
        at_crease = (live.on_strike_id, live.off_strike_id)
        return [
            pid for pid in ledger.not_out_batters(inn, self.match.teams[inn.batting_team])
            if pid not in at_crease
        ]

    def available_bowlers(self) -> List[str]:
        if self.innings is None:
            return []
        live = self.stage.live if isinstance(self.stage, PlayStage) else LiveState()
        excluded = (live.bowler_id, live.previous_bowler_id)
        return [pid for pid in self.match.teams[self._current().bowling_team] if pid not in excluded]

    # =========================================================
    # PUBLIC API: BALL BY BALL
    # =========================================================

    def play_ball(self, event: BallEvent) -> ScoreSnapshot:
        live = self._require(PlayStage).live
        ensure_valid(event)

        missing = self.pending_selection()
        if missing:
            raise SelectionRequiredError(missing)
        self._validate_dismissal(event, live)

        self._history.append(self._capture(live))

        inn = self._current()
        striker = live.on_strike_id
        non_striker = live.off_strike_id
        bowler = live.bowler_id
        was_free_hit = live.is_free_hit

        # 1) Runs and extras
        if event.kind in ("runs", "short"):
            ledger.apply_runs(inn, striker, event.runs, bowler, boundary=event.kind == "runs")
        elif event.kind in ("Wd", "Nb"):
            ledger.apply_extra(inn, event.kind, event.extra_runs, bowler, striker)
        elif event.dismissal is not None and event.dismissal.runs_completed:
            ledger.apply_runs(inn, striker, event.dismissal.runs_completed, bowler, boundary=False)

        # 2) Legal ball
        if event.is_legal:
            ledger.record_ball(inn, bowler, striker)
            self.fastest_ball = awards.update_fastest_ball(self.fastest_ball, bowler, event.speed)

        # 3) Wicket
        out_id: Optional[str] = None
        if event.dismissal is not None:
            d = event.dismissal
            candidate = d.batsman_out_id or striker
            if was_free_hit and d.kind in FREE_HIT_PROTECTED:
                logger.info("Free hit: %s not out (%s)", candidate, d.kind)
            else:
                ledger.record_wicket(inn, candidate, d.kind, bowler, d.fielder_id)
                out_id = candidate

        live.current_over_events.append(event.code)
        logger.debug(
            "%s %s: %s -> %d/%d (%s)",
            self.segment, inn.batting_team, event.code,
            inn.score, inn.wickets, ledger.format_overs(inn.total_legal_balls),
        )

        # 4) Innings / match end
        if self._settle_innings(inn, live.target, out_id is not None):
            self._checkpoint()
            return self.snapshot()

        # 5) Ends for the next ball
        if out_id is not None and event.dismissal.kind == "Run Out":  # type: ignore
            d = event.dismissal
            striker, non_striker = resolve_run_out(
                striker, non_striker, out_id, d.new_batsman_id or "", d.runs_completed, d.crossed
            )
        elif out_id is not None:
            striker, non_striker = vacate(striker, non_striker, out_id)
        else:
            striker, non_striker = rotate_for_runs(striker, non_striker, event.rotation_runs)

        if event.is_legal and inn.total_legal_balls % BALLS_PER_OVER == 0:
            striker, non_striker = end_of_over(striker, non_striker)
            live.previous_bowler_id = bowler
            live.bowler_id = ""
            live.current_over_events = []
            self._history = []

        live.on_strike_id = striker
        live.off_strike_id = non_striker
        live.is_free_hit = event.kind == "Nb" or (was_free_hit and event.kind == "Wd")

        self._checkpoint()
        return self.snapshot()

    def undo(self) -> ScoreSnapshot:
        stage = self._require(PlayStage)
        if not self._history:
            raise NothingToUndoError("Nothing to undo in this over")

        entry = self._history.pop()
        self.innings = entry.innings
        stage.live = entry.live
        self.fastest_ball = entry.fastest_ball
        logger.info("Last event undone")
        self._checkpoint()
        return self.snapshot()

    @property
    def can_undo(self) -> bool:
        return isinstance(self.stage, PlayStage) and bool(self._history)

    # =========================================================
    # PUBLIC API: BREAKS & TIE-BREAKERS
    # =========================================================

    def start_second_innings(self) -> None:
        stage = self._require(InningsBreakStage)
        self.innings_number = 2
        self.stage = OpenersStage(target=stage.target)
        self._checkpoint()

    def choose_tie_breaker(self, choice: str) -> None:
        self._require(TieBreakerSelectionStage)

        if choice == "Tie":
            self._end_match(None, "Match Tied")
        elif choice == "Super Over":
            self._start_super_over()
        elif choice == "Bowl Out":
            self.match.tie_breakers.append(TieBreaker(type="Bowl Out"))
            self.segment = "bowl_out"
            self.stage = BowlOutStage(team_order=self.match.team_names)
            logger.info("Bowl Out %d started", len(self.match.tie_breakers))
        else:
            raise ValidationError(f"Tie-breaker must be Super Over, Bowl Out or Tie, got {choice!r}")

        self._checkpoint()

    def nominate_bowl_out_bowlers(self, team: str, bowler_ids: List[str]) -> None:
        stage = self._require(BowlOutStage)

        if team not in self.match.teams:
            raise InvalidSelectionError(f"Unknown team: {team}")
        if team in stage.nominations:
            raise InvalidSelectionError(f"{team} has already nominated its bowlers")
        if len(bowler_ids) != 5 or len(set(bowler_ids)) != 5:
            raise InvalidSelectionError("Exactly five different bowlers are required")
        strangers = [pid for pid in bowler_ids if pid not in self.match.teams[team]]
        if strangers:
            raise InvalidSelectionError(f"Not in {team}: {strangers}")

        stage.nominations[team] = list(bowler_ids)
        self._checkpoint()

    def bowl_out_attempt(self, outcome: str) -> BowlOutAttempt:
        stage = self._require(BowlOutStage)
        if outcome not in ("Hit", "Miss"):
            raise ValidationError(f"Bowl Out outcome must be Hit or Miss, got {outcome!r}")
        if not stage.is_ready():
            raise SelectionRequiredError("bowl_out_bowlers")

        attempt = BowlOutAttempt(
            team_name=stage.next_team(),
            bowler_id=stage.next_bowler(),
            outcome=outcome,  # type: ignore
        )
        stage.attempts.append(attempt)

        if stage.is_complete():
            winner = stage.leader()
            if winner:
                self._close_tie_breaker(winner, f"{winner} won in Bowl Out")
            else:
                self._close_tie_breaker(None, "Bowl Out Tied")

        self._checkpoint()
        return attempt

    # =========================================================
    # READ MODEL
    # =========================================================

    def snapshot(self) -> ScoreSnapshot:
        finished = isinstance(self.stage, MatchOverStage)
        base = dict(
            stage=self.stage.name,
            segment=self.segment,
            innings_number=self.innings_number,
            is_finished=finished,
            winner=self.match.winner if finished else None,
            result_description=self.match.result_description if finished else None,
        )
        if self.innings is None or self.segment == "bowl_out":
            return ScoreSnapshot(**base)

        inn = self._current()
        live = self.stage.live if isinstance(self.stage, PlayStage) else LiveState()
        return ScoreSnapshot(
            **base,
            batting_team=inn.batting_team,
            bowling_team=inn.bowling_team,
            score=inn.score,
            wickets=inn.wickets,
            legal_balls=inn.total_legal_balls,
            overs=ledger.format_overs(inn.total_legal_balls),
            target=self._target(),
            striker=live.on_strike_id,
            non_striker=live.off_strike_id,
            bowler=live.bowler_id,
            is_free_hit=live.is_free_hit,
        )

    def progress(self) -> LiveProgress:
        return LiveProgress(
            stage=deepcopy(self.stage),
            segment=self.segment,  # type: ignore
            innings_number=self.innings_number,
            innings=deepcopy(self.innings),
            fastest_ball=deepcopy(self.fastest_ball),
        )

    # =========================================================
    # VALIDATION
    # =========================================================

    def _validate_initial_state(self):
        m = self.match
        if m.status not in ("Scheduled", "Live", "Completed"):
            raise InvalidMatchError(f"Unknown match status: {m.status}")
        if m.status == "Completed":
            return

        problems = roster_problems(m.teams, m.captains)
        if m.total_overs is not None and m.total_overs <= 0:
            problems.append("total overs must be positive")
        if problems:
            raise InvalidMatchError("Match cannot start: " + "; ".join(problems))

        if not m.players:
            for ids in m.teams.values():
                m.players.extend(ids)

    def _require(self, stage_type):
        if isinstance(self.stage, MatchOverStage):
            raise MatchFinishedError("Match is already completed")
        if not isinstance(self.stage, stage_type):
            raise StageError(f"Not allowed during {self.stage.name} (needs {stage_type.name})")
        return self.stage

    def _check_incoming_batter(self, player_id: str) -> None:
        if player_id not in self.available_batsmen():
            raise InvalidSelectionError(f"{player_id} is not available to bat")

    def _validate_dismissal(self, event: BallEvent, live: LiveState) -> None:
        d = event.dismissal
        if d is None:
            return

        at_crease = (live.on_strike_id, live.off_strike_id)
        if d.batsman_out_id and d.batsman_out_id not in at_crease:
            raise InvalidSelectionError(f"{d.batsman_out_id} is not batting")
        if d.kind != "Run Out" and d.batsman_out_id not in (None, live.on_strike_id):
            raise InvalidSelectionError(f"Only the striker can be out {d.kind}")
        if d.fielder_id and d.fielder_id not in self.match.teams[self._current().bowling_team]:
            raise InvalidSelectionError(f"{d.fielder_id} is not fielding")
        if d.new_batsman_id and d.new_batsman_id not in self.available_batsmen():
            raise InvalidSelectionError(f"{d.new_batsman_id} cannot come in to bat")

    # =========================================================
    # INNINGS LOGIC
    # =========================================================

    def _current(self) -> Innings:
        return self.innings.get(self.innings_number)  # type: ignore

    def _max_wickets(self) -> int:
        return SUPER_OVER_WICKETS if self.segment == "super_over" else MAX_WICKETS

    def _max_balls(self) -> Optional[int]:
        if self.segment == "super_over":
            return SUPER_OVER_OVERS * BALLS_PER_OVER
        if self.match.total_overs is None:
            return None
        return self.match.total_overs * BALLS_PER_OVER

    def _target(self) -> int:
        if isinstance(self.stage, PlayStage):
            return self.stage.live.target
        if isinstance(self.stage, (OpenersStage, InningsBreakStage)):
            return self.stage.target
        return 0

    def _innings_over(self, inn: Innings, ball_was_wicket: bool) -> bool:
        max_balls = self._max_balls()
        batters_left = ledger.not_out_batters(inn, self.match.teams[inn.batting_team])
        return (
            inn.wickets >= self._max_wickets()
            or (max_balls is not None and inn.total_legal_balls >= max_balls)
            or (len(batters_left) <= 1 and not ball_was_wicket)
        )

    def _settle_innings(self, inn: Innings, target: int, ball_was_wicket: bool) -> bool:
        """
        Apply the end-of-innings checks in priority order.
        Returns True when the innings is no longer in play.
        """
        if self.innings_number == 2 and target > 0 and inn.score >= target:
            self._history = []
            winner = inn.batting_team
            if self.segment == "super_over":
                self._close_tie_breaker(winner, f"{winner} won in Super Over")
            else:
                left = self._max_wickets() - inn.wickets
                self._end_match(winner, f"{winner} won by {_plural(left, 'wicket')}")
            return True

        if not self._innings_over(inn, ball_was_wicket):
            return False

        self._history = []

        if self.innings_number == 1:
            self.stage = InningsBreakStage(target=inn.score + 1)
            logger.info(
                "Innings break: %s %d/%d, target %d",
                inn.batting_team, inn.score, inn.wickets, inn.score + 1,
            )
            return True

        if self.segment == "super_over":
            first = self.innings.innings1  # type: ignore
            if first.score > inn.score:
                self._close_tie_breaker(first.batting_team, f"{first.batting_team} won in Super Over")
            elif inn.score > first.score:
                self._close_tie_breaker(inn.batting_team, f"{inn.batting_team} won in Super Over")
            else:
                self._close_tie_breaker(None, "Super Over Tied")
        elif inn.score == target - 1:
            self.match.innings = self.innings
            self.stage = TieBreakerSelectionStage()
            logger.info("Scores level on %d: tie-breaker required", inn.score)
        else:
            winner = inn.bowling_team
            self._end_match(winner, f"{winner} won by {_plural(target - 1 - inn.score, 'run')}")
        return True

    # =========================================================
    # SEGMENT / MATCH LIFECYCLE
    # =========================================================

    def _first_batting_team(self) -> str:
        winner = self.match.toss_winner
        return winner if self.match.decision == "Bat" else self.match.other_team(winner)  # type: ignore

    def _setup_main_innings(self) -> None:
        first = self._first_batting_team()
        second = self.match.other_team(first)
        self.innings = InningsPair(
            innings1=ledger.new_innings(self.match.players, first, second),
            innings2=ledger.new_innings(self.match.players, second, first),
        )
        self.segment = "main"
        self.innings_number = 1
        self.stage = OpenersStage(target=0)

    def _start_super_over(self) -> None:
        main = self.match.innings
        # the side that chased in the main match bats first
        bat_first = main.innings2.batting_team  # type: ignore
        bowl_first = main.innings1.batting_team  # type: ignore

        self.match.tie_breakers.append(TieBreaker(type="Super Over"))
        self.innings = InningsPair(
            innings1=ledger.new_innings(self.match.players, bat_first, bowl_first),
            innings2=ledger.new_innings(self.match.players, bowl_first, bat_first),
        )
        self.segment = "super_over"
        self.innings_number = 1
        self.stage = OpenersStage(target=0)
        self._history = []
        logger.info("Super Over %d started: %s bat first", len(self.match.tie_breakers), bat_first)

    def _close_tie_breaker(self, winner: Optional[str], description: str) -> None:
        tb = self.match.tie_breakers[-1]
        if tb.type == "Super Over":
            tb.super_over = self.innings
        elif isinstance(self.stage, BowlOutStage):
            tb.bowl_out = list(self.stage.attempts)
        tb.result_description = description
        logger.info("%s: %s", tb.type, description)

        if winner is not None:
            self._end_match(winner, description)
        elif len(self.match.tie_breakers) < MAX_TIE_BREAKERS:
            self.stage = TieBreakerSelectionStage()
        elif tb.type == "Super Over":
            self._end_match(None, "Match Tied after multiple Super Overs")
        else:
            self._end_match(None, "Match Tied after Bowl Out")

    def _end_match(self, winner: Optional[str], description: str) -> None:
        m = self.match
        if self.segment == "main":
            m.innings = self.innings

        m.status = "Completed"
        m.winner = winner
        m.result_description = description
        m.completion_date = self._clock().isoformat()
        m.live_progress = None
        m.fastest_ball = self.fastest_ball

        if m.fee_per_player is None:
            m.fee_per_player = MATCH_FEE_PER_PLAYER
        for pid in m.players:
            m.fees.setdefault(pid, "Unpaid")

        m.man_of_the_match_id = awards.man_of_the_match(m)

        self.stage = MatchOverStage(winner=winner, result_description=description)
        self._history = []
        logger.info("Match %s completed: %s", m.id, description)

    # =========================================================
    # PERSISTENCE
    # =========================================================

    def _start_fresh(self) -> None:
        m = self.match
        if m.toss_winner and m.decision:
            self._setup_main_innings()
        elif m.toss_winner:
            self.stage = DecisionStage(toss_winner=m.toss_winner)
        else:
            self.stage = TossStage()

    def _resume(self, progress: LiveProgress) -> None:
        self.stage = deepcopy(progress.stage)
        self.segment = progress.segment
        self.innings_number = progress.innings_number
        self.innings = deepcopy(progress.innings)
        self.fastest_ball = deepcopy(progress.fastest_ball)
        logger.info("Resumed match %s at %s", self.match.id, self.stage.name)

    def _capture(self, live: LiveState) -> _HistoryEntry:
        return _HistoryEntry(
            innings=deepcopy(self.innings),  # type: ignore
            live=deepcopy(live),
            fastest_ball=deepcopy(self.fastest_ball),
        )

    def _checkpoint(self) -> None:
        m = self.match
        if not isinstance(self.stage, MatchOverStage):
            if self.segment == "main" and self.innings is not None:
                m.innings = self.innings
            m.fastest_ball = self.fastest_ball
            m.live_progress = self.progress()

        if self.on_update is not None:
            self.on_update(m)
