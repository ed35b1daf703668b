from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Optional, Tuple

from club_cricket.exceptions import ImportRecordError
from club_cricket.models import Player

logger = logging.getLogger(__name__)

DATE_FORMATS = ("%Y-%m-%d", "%d-%m-%Y", "%d/%m/%Y")
ROLES = ("Batter", "Bowler", "All-Rounder")


def parse_registration_date(value: Any, today: date) -> str:
    """
    Normalise an imported date to YYYY-MM-DD, falling back to today.
    """
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()

    text = str(value or "").strip()
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date().isoformat()
        except ValueError:
            continue

    if text:
        logger.warning("Could not parse date value %r, defaulting to today", text)
    return today.isoformat()


def player_from_record(record: Dict[str, Any], today: date) -> Player:
    pid = str(record.get("id") or "").strip()
    name = str(record.get("full_name") or "").strip()
    if not pid or not name:
        raise ImportRecordError("record is missing required data (id, full_name)")

    role = record.get("role") or "Batter"
    if role not in ROLES:
        raise ImportRecordError(f"unknown role {role!r}")

    jersey = record.get("jersey_number")
    try:
        jersey_number: Optional[int] = int(jersey) if jersey not in (None, "") else None
    except (TypeError, ValueError):
        raise ImportRecordError(f"jersey number {jersey!r} is not a number")

    return Player(
        id=pid,
        full_name=name,
        role=role,
        email=str(record.get("email") or ""),
        dob=str(record.get("dob") or ""),
        gender=str(record.get("gender") or ""),
        state=str(record.get("state") or ""),
        country=str(record.get("country") or ""),
        photo_url=str(record.get("photo_url") or ""),
        registration_date=parse_registration_date(record.get("registration_date"), today),
        jersey_number=jersey_number,
    )


def import_players(
    existing: Iterable[Player],
    records: Iterable[Dict[str, Any]],
    today: Optional[date] = None,
) -> Tuple[List[Player], List[str]]:
    """
    Merge imported records into the registry by player id.

    A bad record is skipped and reported; the rest of the batch still
    applies. Returns (players, problems).
    """
    today = today or date.today()
    merged: Dict[str, Player] = {p.id: p for p in existing}
    problems: List[str] = []

    for index, record in enumerate(records, start=1):
        try:
            player = player_from_record(record, today)
        except ImportRecordError as e:
            problems.append(f"record {index}: {e}")
            continue
        merged[player.id] = player

    if problems:
        logger.warning("Skipped %d of the imported records", len(problems))

    return list(merged.values()), problems
