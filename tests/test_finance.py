import pytest

from club_cricket.exceptions import InsufficientBalanceError, ValidationError
from club_cricket.finance import (
    add_withdrawal,
    fee_breakdown,
    fee_for,
    financial_summary,
    reminder_message,
    set_fee_status,
    unpaid_losers,
)
from club_cricket.models import Player, Withdrawal
from club_cricket.scheduling import schedule_match


# ---------------------------------------------------------
# Helpers
# ---------------------------------------------------------

def create_match(match_id="m1", status="Completed", winner="Team A", fee=100):
    match = schedule_match(
        match_id=match_id,
        name=f"Match {match_id}",
        date="2026-10-04",
        time="09:00",
        total_overs=10,
        teams={
            "Team A": [f"a{i}" for i in range(1, 12)],
            "Team B": [f"b{i}" for i in range(1, 12)],
        },
        captains={"Team A": "a1", "Team B": "b2"},
        fee_per_player=fee,
    )
    match.status = status
    match.winner = winner
    return match


def pay(match, ids):
    for pid in ids:
        set_fee_status(match, pid, "Paid")


# ---------------------------------------------------------
# Collections
# ---------------------------------------------------------

def test_only_completed_matches_count():
    done = create_match("m1")
    live = create_match("m2", status="Live")
    pay(done, ["a1", "a2", "b1"])
    pay(live, ["a1", "a2"])

    summary = financial_summary([done, live], [])

    assert summary.total_collected == 300
    assert summary.balance == 300


def test_missing_fee_uses_default():
    match = create_match()
    match.fee_per_player = None

    assert fee_for(match) == 100


def test_exempt_players_pay_nothing():
    match = create_match(fee=50)
    pay(match, ["a1"])
    set_fee_status(match, "a2", "Exempt")

    assert financial_summary([match], []).total_collected == 50
    assert fee_breakdown(match) == {"Paid": 1, "Unpaid": 20, "Exempt": 1}


def test_set_fee_status_validation():
    match = create_match()

    with pytest.raises(ValidationError):
        set_fee_status(match, "a1", "Waived")
    with pytest.raises(ValidationError):
        set_fee_status(match, "z9", "Paid")


# ---------------------------------------------------------
# Withdrawals
# ---------------------------------------------------------

def test_withdrawal_reduces_balance():
    match = create_match()
    pay(match, ["a1", "a2", "a3", "a4", "a5"])

    withdrawals = add_withdrawal([], [match], 200, "New balls", "2026-10-05", "Ravi")
    summary = financial_summary([match], withdrawals)

    assert summary.total_withdrawn == 200
    assert summary.balance == 300
    assert withdrawals[0].person_name == "Ravi"
    assert withdrawals[0].id.startswith("w1_")


def test_withdrawal_above_balance_rejected():
    match = create_match()
    pay(match, ["a1"])

    with pytest.raises(InsufficientBalanceError):
        add_withdrawal([], [match], 150, "Kit", "2026-10-05")


@pytest.mark.parametrize("amount, reason, date", [
    (0, "Kit", "2026-10-05"),
    (-20, "Kit", "2026-10-05"),
    (50, "", "2026-10-05"),
    (50, "Kit", ""),
])
def test_withdrawal_needs_valid_fields(amount, reason, date):
    match = create_match()
    pay(match, ["a1", "a2"])

    with pytest.raises(ValidationError):
        add_withdrawal([], [match], amount, reason, date)


def test_withdrawals_sorted_newest_first():
    match = create_match()
    pay(match, match.players)
    existing = [Withdrawal(id="w1_1", amount=10, reason="Tea", date="2026-09-01")]

    result = add_withdrawal(existing, [match], 20, "Umpire", "2026-10-01")
    result = add_withdrawal(result, [match], 30, "Ground", "2026-08-15")

    assert [w.date for w in result] == ["2026-10-01", "2026-09-01", "2026-08-15"]
    assert len(existing) == 1


# ---------------------------------------------------------
# Reminders
# ---------------------------------------------------------

def test_unpaid_losers():
    won = create_match("m1")
    pay(won, ["b1", "b3"])
    tied = create_match("m2", winner=None)
    all_paid = create_match("m3", winner="Team B")
    pay(all_paid, all_paid.teams["Team A"])

    reminders = unpaid_losers([won, tied, all_paid])

    assert len(reminders) == 1
    r = reminders[0]
    assert r.match_id == "m1"
    assert r.losing_team == "Team B"
    assert r.captain_id == "b2"
    assert "b1" not in r.unpaid_ids and len(r.unpaid_ids) == 9
    assert r.amount_due == 900


def test_reminder_message():
    match = create_match(fee=150)
    player = Player(id="b4", full_name="Kiran Rao")

    text = reminder_message(player, match)

    assert "Kiran Rao" in text
    assert "150" in text
    assert match.name in text
