from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from club_cricket.config import MATCH_FEE_PER_PLAYER
from club_cricket.exceptions import InsufficientBalanceError, ValidationError
from club_cricket.models import FeeStatus, Match, Player, Withdrawal

logger = logging.getLogger(__name__)

FEE_STATUSES = ("Paid", "Unpaid", "Exempt")


@dataclass(frozen=True)
class FinancialSummary:
    total_collected: float
    total_withdrawn: float
    balance: float


@dataclass(frozen=True)
class FeeReminder:
    match_id: str
    match_name: str
    losing_team: str
    captain_id: Optional[str]
    unpaid_ids: List[str]
    amount_per_player: float

    @property
    def amount_due(self) -> float:
        return self.amount_per_player * len(self.unpaid_ids)


# =========================================================
# FEES
# =========================================================

def fee_for(match: Match) -> float:
    return MATCH_FEE_PER_PLAYER if match.fee_per_player is None else match.fee_per_player


def paid_count(match: Match) -> int:
    return sum(1 for status in match.fees.values() if status == "Paid")


def total_collected(matches: Iterable[Match]) -> float:
    """Paid fees across completed matches only."""
    return sum(paid_count(m) * fee_for(m) for m in matches if m.status == "Completed")


def total_withdrawn(withdrawals: Iterable[Withdrawal]) -> float:
    return sum(w.amount for w in withdrawals)


def financial_summary(matches: Iterable[Match], withdrawals: Iterable[Withdrawal]) -> FinancialSummary:
    collected = total_collected(matches)
    withdrawn = total_withdrawn(withdrawals)
    return FinancialSummary(
        total_collected=collected,
        total_withdrawn=withdrawn,
        balance=collected - withdrawn,
    )


def set_fee_status(match: Match, player_id: str, status: FeeStatus) -> None:
    if status not in FEE_STATUSES:
        raise ValidationError(f"Fee status must be one of {FEE_STATUSES}, got {status!r}")
    if player_id not in match.players:
        raise ValidationError(f"{player_id} did not play in {match.id}")
    match.fees[player_id] = status


def unpaid_losers(matches: Iterable[Match]) -> List[FeeReminder]:
    """
    Losing-side players still owing a fee, per completed match.
    Tied matches have no losing side and produce no reminders.
    """
    reminders: List[FeeReminder] = []

    for m in matches:
        if m.status != "Completed" or not m.winner:
            continue

        losing_team = m.other_team(m.winner)
        unpaid = [pid for pid in m.teams[losing_team] if m.fees.get(pid) == "Unpaid"]
        if not unpaid:
            continue

        reminders.append(
            FeeReminder(
                match_id=m.id,
                match_name=m.name,
                losing_team=losing_team,
                captain_id=m.captains.get(losing_team),
                unpaid_ids=unpaid,
                amount_per_player=fee_for(m),
            )
        )

    return reminders


def reminder_message(player: Player, match: Match) -> str:
    return (
        f"Hi {player.full_name}, this is a friendly reminder for your pending match fee "
        f"of Rs. {fee_for(match):g} for the game \"{match.name}\". "
        f"Please pay at your earliest convenience. Thank you!"
    )


# =========================================================
# WITHDRAWALS
# =========================================================

def add_withdrawal(
    withdrawals: List[Withdrawal],
    matches: Iterable[Match],
    amount: float,
    reason: str,
    date: str,
    person_name: Optional[str] = None,
) -> List[Withdrawal]:
    """
    Record a withdrawal against the club balance.

    Returns a new list, newest date first. The input list is untouched.
    """
    if not amount or amount <= 0 or not reason.strip() or not date.strip():
        raise ValidationError("Please fill out all fields with valid values")

    summary = financial_summary(matches, withdrawals)
    if amount > summary.balance:
        raise InsufficientBalanceError(
            f"Insufficient balance to withdraw {amount:g} (balance {summary.balance:g})"
        )

    withdrawal = Withdrawal(
        id=f"w{len(withdrawals) + 1}_{int(time.time() * 1000)}",
        amount=float(amount),
        reason=reason.strip(),
        date=date.strip(),
        person_name=person_name or None,
    )
    logger.info("Withdrawal %s: %.2f for %s", withdrawal.id, withdrawal.amount, withdrawal.reason)

    # ISO dates sort lexically
    return sorted([withdrawal, *withdrawals], key=lambda w: w.date, reverse=True)


def fee_breakdown(match: Match) -> Dict[str, int]:
    counts = {status: 0 for status in FEE_STATUSES}
    for status in match.fees.values():
        counts[status] = counts.get(status, 0) + 1
    return counts
